"""Factory do session store a partir de Settings.

Responsabilidades:
- Traduzir Settings em ExpiryPolicy
- Criar cliente Redis quando o backend exigir
- Recusar backend em memória fora de desenvolvimento
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from chatguard.domain.enums import ExpiryMode
from chatguard.domain.expiry import ExpiryPolicy
from chatguard.infra.session_store import SessionStore, create_session_store
from chatguard.observability.logging import get_logger

if TYPE_CHECKING:
    from chatguard.config.settings import Settings

logger: logging.Logger = get_logger(__name__)


def expiry_policy_from_settings(settings: Settings) -> ExpiryPolicy:
    """Política de expiração configurada."""
    return ExpiryPolicy(
        timeout_seconds=settings.session_timeout_seconds,
        mode=ExpiryMode(settings.expiry_mode.lower()),
    )


def create_redis_client(redis_url: str) -> Any:
    """Cria cliente Redis a partir da URL."""
    import redis

    return redis.from_url(redis_url, decode_responses=True)


def create_session_store_from_settings(
    settings: Settings, redis_client: Any | None = None
) -> SessionStore:
    """Cria SessionStore a partir de Settings.

    Padrão seguro:
    - Desenvolvimento: memory
    - Staging/produção: redis (contadores compartilhados entre instâncias)

    Raises:
        ValueError: Se configuração inválida para o ambiente
    """
    backend = settings.session_store_backend.lower()

    if (settings.is_production or settings.is_staging) and backend == "memory":
        msg = (
            "SESSION_STORE_BACKEND=memory is unsuitable for production. "
            "Use 'redis' for shared counters across instances."
        )
        raise ValueError(msg)

    if backend == "redis" and redis_client is None:
        if not settings.redis_url:
            msg = "SESSION_STORE_BACKEND=redis requer REDIS_URL configurado"
            raise ValueError(msg)
        try:
            redis_client = create_redis_client(settings.redis_url)
        except Exception as e:
            msg = f"Failed to create Redis client for session store: {e}"
            raise ValueError(msg) from e
        logger.info("Auto-created Redis client for session store")

    # Em Redis o TTL nativo substitui o sweep por acesso (SCAN a cada mensagem)
    sweep_on_access = settings.sweep_on_access and backend == "memory"

    return create_session_store(
        backend=backend,
        expiry=expiry_policy_from_settings(settings),
        shards=settings.store_shards,
        sweep_on_access=sweep_on_access,
        redis_client=redis_client,
        key_prefix=settings.redis_key_prefix,
        lock_timeout_seconds=settings.redis_lock_timeout_seconds,
    )
