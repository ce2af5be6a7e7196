"""Configurações do guard via variáveis de ambiente.

Todos os limiares do motor de abuso são configuráveis por env var; os valores
padrão reproduzem o comportamento em produção do endpoint de chat.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

# -----------------------------------------------------------------------------
# Limites padrão do guard (referenciados por domínio e testes)
# -----------------------------------------------------------------------------
DEFAULT_RATE_LIMIT_WINDOW_SECONDS: int = 60
DEFAULT_MAX_MESSAGES_PER_WINDOW: int = 10
DEFAULT_SESSION_TIMEOUT_SECONDS: int = 24 * 60 * 60
DEFAULT_BLOCK_BASE_SECONDS: int = 5 * 60


class Settings(BaseSettings):
    """Configurações lidas do ambiente."""

    model_config = SettingsConfigDict(
        env_prefix="",
        case_sensitive=False,
    )

    # Aplicação
    service_name: str = "chatguard"
    version: str = "0.1.0"
    environment: str = "development"
    log_level: str = "INFO"
    log_format: str = "json"  # json | text
    correlation_id_header: str = "X-Correlation-ID"

    # Rate limiting: janela deslizante por sessão
    rate_limit_window_seconds: int = DEFAULT_RATE_LIMIT_WINDOW_SECONDS
    max_messages_per_window: int = DEFAULT_MAX_MESSAGES_PER_WINDOW

    # Pontuação de suspeita
    flag_threshold: int = 80  # Rejeição pontual (sessão continua aberta)
    block_threshold: int = 100  # Bloqueio temporário
    notable_score_threshold: int = 40  # Entra no histórico de suspeitas
    suspicious_event_threshold: int = 50  # Evento marcado como suspicious_pattern
    min_message_interval_ms: int = 1000
    max_message_length: int = 500
    burst_event_count: int = 5  # Eventos no último minuto antes de penalizar
    rules_path: str | None = None  # JSON com regras; None = regras embutidas

    # Bloqueio progressivo
    block_base_seconds: int = DEFAULT_BLOCK_BASE_SECONDS
    block_multiplier: int = 2
    block_escalation_step: int = 20  # A cada N mensagens o bloqueio dobra

    # Histórico por sessão
    suspicious_history_size: int = 10
    event_retention_seconds: int = 60 * 60

    # Session store e limpeza
    session_store_backend: str = "memory"  # memory | redis
    redis_url: str | None = None
    redis_key_prefix: str = "chatguard:session:"
    redis_lock_timeout_seconds: float = 5.0
    store_shards: int = 16
    session_timeout_seconds: int = DEFAULT_SESSION_TIMEOUT_SECONDS
    expiry_mode: str = "absolute"  # absolute | idle
    sweep_on_access: bool = True
    sweep_interval_seconds: float = 0.0  # 0 = sem sweeper periódico

    # Superfície administrativa
    admin_token: str | None = None
    admin_token_header: str = "X-Admin-Token"
    max_request_message_chars: int = 8000  # Limite de transporte (não é regra de score)

    def validate_session_store_config(self) -> list[str]:
        """Valida backend do session store por ambiente.

        Em staging/prod, memory é proibido (estado não compartilhado entre instâncias).
        Retorna lista de erros (vazia = tudo OK).
        """
        errors: list[str] = []
        backend = self.session_store_backend.lower()

        valid_backends = {"memory", "redis"}
        if backend not in valid_backends:
            errors.append(
                f"SESSION_STORE_BACKEND '{backend}' inválido. Valores válidos: {valid_backends}"
            )

        if backend == "memory" and (self.is_staging or self.is_production):
            errors.append(
                "SESSION_STORE_BACKEND=memory é proibido em staging/production. "
                "Configure 'redis' para contadores compartilhados."
            )

        if backend == "redis" and not self.redis_url:
            errors.append("SESSION_STORE_BACKEND=redis requer REDIS_URL configurado")

        if self.expiry_mode.lower() not in {"absolute", "idle"}:
            errors.append("EXPIRY_MODE inválido: use absolute | idle")

        if self.store_shards < 1:
            errors.append("STORE_SHARDS deve ser >= 1")

        if self.sweep_interval_seconds < 0:
            errors.append("SWEEP_INTERVAL_SECONDS não pode ser negativo")

        return errors

    def validate_guard_thresholds(self) -> list[str]:
        """Valida coerência dos limiares de score e rate limit."""
        errors: list[str] = []
        if not 0 < self.flag_threshold <= self.block_threshold <= 100:
            errors.append("Limiar inválido: requer 0 < FLAG_THRESHOLD <= BLOCK_THRESHOLD <= 100")
        if self.max_messages_per_window < 1:
            errors.append("MAX_MESSAGES_PER_WINDOW deve ser >= 1")
        if self.rate_limit_window_seconds < 1:
            errors.append("RATE_LIMIT_WINDOW_SECONDS deve ser >= 1")
        if self.event_retention_seconds < self.rate_limit_window_seconds:
            errors.append("EVENT_RETENTION_SECONDS deve cobrir a janela de rate limit")
        if self.suspicious_history_size < 1:
            errors.append("SUSPICIOUS_HISTORY_SIZE deve ser >= 1")
        if self.block_base_seconds < 1 or self.block_multiplier < 1:
            errors.append("BLOCK_BASE_SECONDS e BLOCK_MULTIPLIER devem ser >= 1")
        if self.block_escalation_step < 1:
            errors.append("BLOCK_ESCALATION_STEP deve ser >= 1")
        return errors

    def validate_admin_config(self) -> list[str]:
        """Em staging/prod a superfície administrativa exige token."""
        errors: list[str] = []
        if (self.is_staging or self.is_production) and not self.admin_token:
            errors.append("ADMIN_TOKEN obrigatório em staging/production")
        return errors

    @property
    def is_production(self) -> bool:
        """Retorna True se ambiente é produção."""
        return self.environment.lower() in ("production", "prod")

    @property
    def is_staging(self) -> bool:
        """Retorna True se ambiente é staging."""
        return self.environment.lower() in ("staging", "stage")

    @property
    def is_development(self) -> bool:
        """Retorna True se ambiente é desenvolvimento."""
        return self.environment.lower() in ("development", "dev", "local")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Retorna uma instância cacheada de Settings.

    A cache garante que mesmo múltiplas injeções não criam novos objetos.
    """
    return Settings()
