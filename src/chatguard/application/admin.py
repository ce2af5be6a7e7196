"""Facade administrativo: estatísticas agregadas e reset manual de sessão."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from chatguard.application.sweeper import CleanupSweeper
from chatguard.domain.models import GuardStats
from chatguard.domain.protocols.session_store import SessionStoreProtocol
from chatguard.observability.logging import get_logger, mask_session_id

logger: logging.Logger = get_logger(__name__)


class GuardAdmin:
    """Leitura agregada do store (sempre após um sweep) e reset de sessões."""

    def __init__(
        self,
        store: SessionStoreProtocol,
        sweeper: CleanupSweeper,
        suspicious_event_threshold: int = 50,
        activity_window_seconds: float = 24 * 60 * 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._sweeper = sweeper
        self._suspicious_event_threshold = suspicious_event_threshold
        self._activity_window = activity_window_seconds
        self._clock = clock

    def stats(self, now: float | None = None) -> GuardStats:
        """Agrega contadores de todas as sessões vivas."""
        now = self._clock() if now is None else now
        self._sweeper.sweep(now)

        stats = GuardStats(last_cleanup=self._sweeper.last_sweep_iso())
        for record in self._store.iter_records():
            stats.total_sessions += 1
            stats.total_messages += record.message_count
            stats.rate_limited_messages += record.rate_limited_count
            if record.is_blocked(now):
                stats.blocked_sessions += 1
            if now - record.last_activity_time <= self._activity_window:
                stats.active_sessions_last_24h += 1
            stats.suspicious_message_count += sum(
                1 for e in record.events if e.score > self._suspicious_event_threshold
            )
        return stats

    def reset_session(self, session_id: str) -> bool:
        """Remove a sessão; True se existia."""
        deleted = self._store.delete(session_id)
        logger.info(
            "Session reset requested",
            extra={"session_id": mask_session_id(session_id), "deleted": deleted},
        )
        return deleted
