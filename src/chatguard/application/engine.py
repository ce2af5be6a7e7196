"""Motor de decisão do guard: bloqueio, rate limit, score e veredito.

Ordem por chamada de `evaluate`:
1. Bloqueio ativo -> blocked (sem pontuar)
2. Janela excedida -> rate_limited (mensagem não entra no histórico)
3. Pontua com o estado atual e só então registra evento/contadores
4. score >= block_threshold -> Blocked com duração progressiva
5. score >= flag_threshold -> flagged (rejeição pontual, sessão segue aberta)
6. caso contrário -> allowed

Nenhum resultado de abuso vira exceção; toda rejeição é um Verdict.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass

from chatguard.domain.enums import EventKind, GuardReason
from chatguard.domain.models import SecurityEvent, SessionRecord, Verdict
from chatguard.domain.phase import Blocked, block_duration, enter_blocked, release_if_elapsed
from chatguard.domain.protocols.session_store import SessionStoreProtocol
from chatguard.domain.rate_limit import SlidingWindowRateLimiter
from chatguard.domain.scoring import SuspicionScorer, normalize
from chatguard.observability.logging import get_logger, mask_session_id

logger: logging.Logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class GuardPolicy:
    """Limiares de decisão e parâmetros de bloqueio progressivo."""

    flag_threshold: int = 80
    block_threshold: int = 100
    notable_score_threshold: int = 40
    suspicious_event_threshold: int = 50
    blocked_score: int = 100  # score reportado enquanto a sessão está bloqueada
    rate_limited_score: int = 60  # score reportado em rejeição por frequência
    block_base_seconds: float = 300
    block_multiplier: int = 2
    block_escalation_step: int = 20
    history_size: int = 10
    event_retention_seconds: float = 3600


class AbuseGuard:
    """Ponto de entrada: uma chamada de `evaluate` por mensagem recebida."""

    def __init__(
        self,
        store: SessionStoreProtocol,
        scorer: SuspicionScorer | None = None,
        rate_limiter: SlidingWindowRateLimiter | None = None,
        policy: GuardPolicy | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._scorer = scorer or SuspicionScorer()
        self._rate_limiter = rate_limiter or SlidingWindowRateLimiter()
        self._policy = policy or GuardPolicy()
        self._clock = clock

    @property
    def policy(self) -> GuardPolicy:
        return self._policy

    def evaluate(self, message: str, session_id: str, now: float | None = None) -> Verdict:
        """Avalia a mensagem e atualiza o estado da sessão de forma serializada."""
        now = self._clock() if now is None else now

        with self._store.session(session_id, now) as session:
            verdict = self._decide(message, session, now)

        self._log_verdict(session_id, verdict)
        return verdict

    def _decide(self, message: str, session: SessionRecord, now: float) -> Verdict:
        policy = self._policy
        session.last_activity_time = now

        phase = release_if_elapsed(session, now)
        if isinstance(phase, Blocked):
            return Verdict.reject(
                GuardReason.BLOCKED,
                policy.blocked_score,
                wait_seconds=phase.remaining_seconds(now),
            )

        window = self._rate_limiter.check_window(session, now)
        if window.exceeded:
            session.rate_limited_count += 1
            return Verdict.reject(
                GuardReason.RATE_LIMITED,
                policy.rate_limited_score,
                wait_seconds=window.wait_seconds,
            )

        breakdown = self._scorer.breakdown(message, session, now)
        score = breakdown.score
        if breakdown.signals and logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Suspicion signals",
                extra={
                    "session_id": mask_session_id(session.session_id),
                    "signals": breakdown.signals,
                    "raw_score": breakdown.raw_score,
                    "profanity": self._scorer.has_profanity(message),
                },
            )

        self._record(message, session, now, score)

        if score >= policy.block_threshold:
            duration = block_duration(
                session.message_count,
                base_seconds=policy.block_base_seconds,
                multiplier=policy.block_multiplier,
                escalation_step=policy.block_escalation_step,
            )
            enter_blocked(session, now, duration)
            return Verdict.reject(GuardReason.BLOCKED, score, wait_seconds=math.ceil(duration))

        if score >= policy.flag_threshold:
            return Verdict.reject(GuardReason.FLAGGED, score)

        return Verdict.allow(score)

    def _event_kind(
        self, message: str, session: SessionRecord, now: float, score: int
    ) -> EventKind:
        """Classifica o evento com o estado ANTERIOR à atualização."""
        if self._scorer.is_repeat(message, session):
            return EventKind.REPEATED_MESSAGE
        if self._scorer.is_high_frequency(session, now):
            return EventKind.HIGH_FREQUENCY
        if score > self._policy.suspicious_event_threshold:
            return EventKind.SUSPICIOUS_PATTERN
        return EventKind.MESSAGE

    def _record(self, message: str, session: SessionRecord, now: float, score: int) -> None:
        policy = self._policy
        trimmed = normalize(message)

        session.events.append(
            SecurityEvent(
                timestamp=now,
                kind=self._event_kind(message, session, now, score),
                content=message,
                score=score,
            )
        )
        session.prune_events(now, policy.event_retention_seconds)

        session.message_count += 1
        session.last_message_content = trimmed
        session.last_message_time = now

        if score > policy.notable_score_threshold:
            session.remember_suspicious(trimmed, policy.history_size)

    def _log_verdict(self, session_id: str, verdict: Verdict) -> None:
        extra = {
            "session_id": mask_session_id(session_id),
            "allowed": verdict.allowed,
            "reason": verdict.reason.value if verdict.reason else None,
            "suspicion_score": verdict.suspicion_score,
            "wait_seconds": verdict.wait_seconds,
        }
        if verdict.allowed:
            logger.debug("Message allowed", extra=extra)
        elif verdict.reason == GuardReason.BLOCKED:
            logger.warning("Message rejected: session blocked", extra=extra)
        else:
            logger.info("Message rejected", extra=extra)
