"""Rotas HTTP do guard (avaliação e superfície administrativa)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status

from chatguard.api.dependencies import get_admin, get_guard, get_settings, require_admin_token
from chatguard.api.schemas import EvaluateRequest, ResetResponse
from chatguard.application.admin import GuardAdmin
from chatguard.application.engine import AbuseGuard
from chatguard.config.settings import Settings
from chatguard.domain.models import GuardStats, Verdict
from chatguard.infra.session_store import SessionStoreError
from chatguard.observability.logging import get_logger, mask_session_id
from chatguard.observability.middleware import get_correlation_id
from chatguard.observability.timing import timed

logger = get_logger(__name__)

router = APIRouter()


def _store_unavailable(exc: SessionStoreError) -> HTTPException:
    """503 padronizado para falhas do session store."""
    logger.error("session_store_unavailable", extra={"error": str(exc)})
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail={
            "error": "session_store_unavailable",
            "correlation_id": get_correlation_id(),
        },
    )


@router.get("/health")
def health(settings: Settings = Depends(get_settings)) -> dict[str, str]:
    """Healthcheck simples."""
    return {"status": "ok", "service": settings.service_name, "version": settings.version}


@router.post("/v1/guard/evaluate", response_model=Verdict, response_model_exclude_none=True)
def evaluate_message(
    body: EvaluateRequest,
    response: Response,
    guard: AbuseGuard = Depends(get_guard),
    settings: Settings = Depends(get_settings),
) -> Verdict:
    """Avalia uma mensagem; rejeições voltam como 200 + veredito."""
    if len(body.message) > settings.max_request_message_chars:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="message_too_large",
        )

    try:
        with timed("guard_evaluate", session_id=mask_session_id(body.session_id)):
            verdict = guard.evaluate(body.message, body.session_id)
    except SessionStoreError as exc:
        raise _store_unavailable(exc) from exc

    if verdict.wait_seconds is not None:
        response.headers["Retry-After"] = str(verdict.wait_seconds)
    return verdict


@router.get(
    "/v1/guard/stats",
    response_model=GuardStats,
    dependencies=[Depends(require_admin_token)],
)
def guard_stats(admin: GuardAdmin = Depends(get_admin)) -> GuardStats:
    """Estatísticas agregadas (executa um sweep antes de agregar)."""
    return admin.stats()


@router.delete(
    "/v1/guard/sessions/{session_id}",
    response_model=ResetResponse,
    dependencies=[Depends(require_admin_token)],
)
def reset_session(session_id: str, admin: GuardAdmin = Depends(get_admin)) -> ResetResponse:
    """Reset manual de uma sessão (remove todo o estado de abuso)."""
    try:
        deleted = admin.reset_session(session_id)
    except SessionStoreError as exc:
        raise _store_unavailable(exc) from exc
    return ResetResponse(deleted=deleted)
