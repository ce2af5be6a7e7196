"""Modelos de domínio do guard: SessionRecord, eventos, veredito e estatísticas.

SessionRecord é a unidade de estado por sessão:
- Uma sessão = um session_id opaco fornecido pelo chamador
- Criada sob demanda na primeira avaliação
- Serializável (JSON) para backends compartilhados como Redis
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from chatguard.domain.enums import EventKind, GuardReason


class SecurityEvent(BaseModel):
    """Evento registrado para uma mensagem que passou pela pontuação."""

    timestamp: float
    kind: EventKind = EventKind.MESSAGE
    content: str
    score: int = Field(ge=0, le=100)


class SessionRecord(BaseModel):
    """Estado de abuso de uma sessão.

    Invariantes:
    - suspicious_history nunca excede a capacidade configurada (FIFO)
    - events só mantém entradas dentro da janela de retenção
    - blocked_until, quando definido, é maior que o instante em que foi definido
    """

    session_id: str
    first_seen_time: float
    last_activity_time: float
    message_count: int = 0
    last_message_content: str = ""
    last_message_time: float | None = None
    suspicious_history: list[str] = Field(default_factory=list)
    blocked_until: float | None = None
    rate_limited_count: int = 0
    events: list[SecurityEvent] = Field(default_factory=list)

    @classmethod
    def new(cls, session_id: str, now: float) -> SessionRecord:
        """Cria registro vazio para uma sessão nunca vista."""
        return cls(session_id=session_id, first_seen_time=now, last_activity_time=now)

    def events_since(self, cutoff: float) -> list[SecurityEvent]:
        """Eventos com timestamp estritamente após `cutoff`."""
        return [e for e in self.events if e.timestamp > cutoff]

    def prune_events(self, now: float, retention_seconds: float) -> None:
        """Remove eventos mais antigos que a janela de retenção."""
        cutoff = now - retention_seconds
        self.events = self.events_since(cutoff)

    def remember_suspicious(self, content: str, capacity: int) -> None:
        """Adiciona conteúdo ao histórico de suspeitas, descartando o mais antigo."""
        self.suspicious_history.append(content)
        overflow = len(self.suspicious_history) - capacity
        if overflow > 0:
            del self.suspicious_history[:overflow]

    def is_blocked(self, now: float) -> bool:
        """True se há bloqueio ativo em `now`."""
        return self.blocked_until is not None and now < self.blocked_until


class Verdict(BaseModel):
    """Decisão retornada para cada mensagem avaliada.

    Rejeições são dados (allowed=False + reason), nunca exceções.
    """

    allowed: bool
    reason: GuardReason | None = None
    suspicion_score: int = Field(ge=0, le=100)
    wait_seconds: int | None = None

    @classmethod
    def allow(cls, score: int) -> Verdict:
        return cls(allowed=True, suspicion_score=score)

    @classmethod
    def reject(cls, reason: GuardReason, score: int, wait_seconds: int | None = None) -> Verdict:
        return cls(
            allowed=False,
            reason=reason,
            suspicion_score=score,
            wait_seconds=wait_seconds,
        )


class GuardStats(BaseModel):
    """Agregado de observabilidade sobre o conteúdo do store."""

    total_sessions: int = 0
    total_messages: int = 0
    blocked_sessions: int = 0
    suspicious_message_count: int = 0
    rate_limited_messages: int = 0
    active_sessions_last_24h: int = 0
    last_cleanup: str | None = None
