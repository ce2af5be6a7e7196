"""Dependências injetadas nas rotas."""

from __future__ import annotations

import hmac

from fastapi import HTTPException, Request, status

from chatguard.application.admin import GuardAdmin
from chatguard.application.engine import AbuseGuard
from chatguard.config.settings import Settings
from chatguard.observability.logging import get_logger

logger = get_logger(__name__)


def get_settings(request: Request) -> Settings:
    """Retorna settings da aplicação."""

    return request.app.state.settings


def get_guard(request: Request) -> AbuseGuard:
    """Retorna o motor de decisão ativo."""

    return request.app.state.guard


def get_admin(request: Request) -> GuardAdmin:
    """Retorna o facade administrativo."""

    return request.app.state.admin


def require_admin_token(request: Request) -> None:
    """Valida token administrativo no header configurado.

    Sem ADMIN_TOKEN configurado, apenas desenvolvimento libera a superfície admin.
    """
    settings: Settings = request.app.state.settings
    expected = settings.admin_token
    provided = request.headers.get(settings.admin_token_header)

    if expected and provided and hmac.compare_digest(provided, expected):
        return
    if not expected and settings.is_development:
        return

    logger.warning("invalid_admin_token")
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="unauthorized_admin_call",
    )
