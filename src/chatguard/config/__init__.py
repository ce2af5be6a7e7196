"""Configurações centralizadas do chatguard.

Este módulo exporta:
- Settings: classe de configuração via variáveis de ambiente
- get_settings: função cacheada para obter instância única

Uso típico:
    from chatguard.config import get_settings
"""

from chatguard.config.settings import (
    DEFAULT_BLOCK_BASE_SECONDS,
    DEFAULT_MAX_MESSAGES_PER_WINDOW,
    DEFAULT_RATE_LIMIT_WINDOW_SECONDS,
    DEFAULT_SESSION_TIMEOUT_SECONDS,
    Settings,
    get_settings,
)

__all__ = [
    "Settings",
    "get_settings",
    "DEFAULT_BLOCK_BASE_SECONDS",
    "DEFAULT_MAX_MESSAGES_PER_WINDOW",
    "DEFAULT_RATE_LIMIT_WINDOW_SECONDS",
    "DEFAULT_SESSION_TIMEOUT_SECONDS",
]
