"""Rate limiter de janela deslizante sobre o histórico de eventos da sessão.

Independente do score: uma sessão pode ser rejeitada apenas por frequência,
mesmo com conteúdo inofensivo.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from chatguard.domain.models import SessionRecord


@dataclass(slots=True)
class RateLimitResult:
    """Resultado da verificação da janela."""

    exceeded: bool
    message_count: int
    window_seconds: int
    threshold: int
    wait_seconds: int | None = None


class SlidingWindowRateLimiter:
    """Conta eventos da sessão na janela [now - window, now]."""

    def __init__(self, max_messages: int = 10, window_seconds: int = 60) -> None:
        self._threshold = max_messages
        self._window = window_seconds

    def check_window(self, session: SessionRecord, now: float) -> RateLimitResult:
        """Verifica a janela sem registrar nada na sessão.

        Quando excedido, wait_seconds aponta para o instante em que o evento
        mais antigo da janela sai dela (mínimo de 1 segundo).
        """
        in_window = session.events_since(now - self._window)

        if len(in_window) < self._threshold:
            return RateLimitResult(
                exceeded=False,
                message_count=len(in_window),
                window_seconds=self._window,
                threshold=self._threshold,
            )

        oldest = min(e.timestamp for e in in_window)
        wait = max(1, math.ceil(oldest + self._window - now))
        return RateLimitResult(
            exceeded=True,
            message_count=len(in_window),
            window_seconds=self._window,
            threshold=self._threshold,
            wait_seconds=wait,
        )
