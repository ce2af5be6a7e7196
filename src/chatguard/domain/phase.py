"""Fases de bloqueio da sessão e funções de transição.

Apenas duas fases são persistidas:
- Open: sessão aceita mensagens (sujeita a rate limit e score)
- Blocked(until): toda mensagem é rejeitada até `until`

RateLimited e Flagged são resultados transitórios de uma única avaliação e
não alteram a fase. Transições são puras sobre o SessionRecord recebido.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from chatguard.domain.models import SessionRecord


@dataclass(frozen=True, slots=True)
class Open:
    """Sessão sem bloqueio ativo."""


@dataclass(frozen=True, slots=True)
class Blocked:
    """Sessão bloqueada até `until` (timestamp em segundos)."""

    until: float

    def remaining_seconds(self, now: float) -> int:
        return max(0, math.ceil(self.until - now))


SessionPhase = Open | Blocked

OPEN = Open()


def phase_of(session: SessionRecord, now: float) -> SessionPhase:
    """Fase corrente da sessão em `now`."""
    if session.blocked_until is not None and now < session.blocked_until:
        return Blocked(until=session.blocked_until)
    return OPEN


def block_duration(
    message_count: int,
    base_seconds: float = 300,
    multiplier: int = 2,
    escalation_step: int = 20,
) -> float:
    """Duração do bloqueio progressivo: base * multiplier ** (count // step)."""
    return base_seconds * multiplier ** (message_count // escalation_step)


def enter_blocked(session: SessionRecord, now: float, duration: float) -> Blocked:
    """Open -> Blocked. Exige duração positiva (blocked_until > now)."""
    if duration <= 0:
        raise ValueError("duração de bloqueio deve ser positiva")
    session.blocked_until = now + duration
    return Blocked(until=session.blocked_until)


def release_if_elapsed(session: SessionRecord, now: float) -> SessionPhase:
    """Blocked -> Open quando o bloqueio expirou; limpa blocked_until."""
    phase = phase_of(session, now)
    if isinstance(phase, Open) and session.blocked_until is not None:
        session.blocked_until = None
    return phase
