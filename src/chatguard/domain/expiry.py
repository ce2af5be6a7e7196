"""Política de expiração de sessões usada pelo sweeper."""

from __future__ import annotations

from dataclasses import dataclass

from chatguard.domain.enums import ExpiryMode
from chatguard.domain.models import SessionRecord


@dataclass(frozen=True, slots=True)
class ExpiryPolicy:
    """Define quando um SessionRecord pode ser removido.

    - absolute: idade desde first_seen_time maior que o timeout; sessões
      continuamente ativas também são removidas e recomeçam zeradas
    - idle: tempo desde last_activity_time maior que o timeout; bloqueios
      ainda ativos nunca são removidos
    """

    timeout_seconds: float = 24 * 60 * 60
    mode: ExpiryMode = ExpiryMode.ABSOLUTE

    def is_expired(self, session: SessionRecord, now: float) -> bool:
        if self.mode == ExpiryMode.IDLE:
            if session.is_blocked(now):
                return False
            return now - session.last_activity_time > self.timeout_seconds
        return now - session.first_seen_time > self.timeout_seconds
