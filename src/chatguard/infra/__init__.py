"""Camada de infraestrutura: armazenamento do estado de abuso.

Este módulo exporta:

- Session: InMemorySessionStore, RedisSessionStore, create_session_store
- Factory: create_session_store_from_settings

Uso típico:
    from chatguard.infra import create_session_store_from_settings

Infraestrutura não decide regra de negócio; logs sem conteúdo de mensagens.
"""

from chatguard.infra.session_store import (
    InMemorySessionStore,
    RedisSessionStore,
    SessionStore,
    SessionStoreError,
    create_session_store,
)
from chatguard.infra.store_factory import (
    create_redis_client,
    create_session_store_from_settings,
    expiry_policy_from_settings,
)

__all__ = [
    "SessionStore",
    "SessionStoreError",
    "InMemorySessionStore",
    "RedisSessionStore",
    "create_session_store",
    "create_session_store_from_settings",
    "create_redis_client",
    "expiry_policy_from_settings",
]
