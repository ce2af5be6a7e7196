"""Sweeper de sessões expiradas.

Dois modos de uso:
- sob demanda (`sweep`), chamado pelo facade de estatísticas e por scripts
- periódico (`run_periodically`), task asyncio iniciada no lifespan da API
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime

from chatguard.domain.protocols.session_store import SessionStoreProtocol
from chatguard.observability.logging import get_logger
from chatguard.observability.timing import timed

logger: logging.Logger = get_logger(__name__)


class CleanupSweeper:
    """Remove do store toda sessão que a política de expiração rejeita."""

    def __init__(
        self,
        store: SessionStoreProtocol,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._clock = clock
        self._last_sweep_at: float | None = None

    @property
    def last_sweep_at(self) -> float | None:
        return self._last_sweep_at

    def last_sweep_iso(self) -> str | None:
        if self._last_sweep_at is None:
            return None
        return datetime.fromtimestamp(self._last_sweep_at, tz=UTC).isoformat()

    def sweep(self, now: float | None = None) -> int:
        """Executa um passe de limpeza; retorna sessões removidas."""
        now = self._clock() if now is None else now
        with timed("session_sweep", store=type(self._store).__name__):
            removed = self._store.purge_expired(now)
        self._last_sweep_at = now

        if removed:
            logger.info("Expired sessions swept", extra={"removed": removed})
        return removed

    async def run_periodically(self, interval_seconds: float, stop: asyncio.Event) -> None:
        """Loop de sweep até `stop` ser sinalizado.

        O passe roda em thread para não bloquear o event loop com I/O do Redis.
        """
        logger.info("Periodic sweeper started", extra={"interval_seconds": interval_seconds})
        while not stop.is_set():
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval_seconds)
            except TimeoutError:
                try:
                    await asyncio.to_thread(self.sweep)
                except Exception as e:
                    logger.error(
                        "Periodic sweep failed",
                        extra={"error": type(e).__name__},
                    )
        logger.info("Periodic sweeper stopped")
