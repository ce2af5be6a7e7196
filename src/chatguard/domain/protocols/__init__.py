"""Re-exports dos protocolos de domínio para uso por Application/Infra."""

from __future__ import annotations

from chatguard.domain.protocols.session_store import SessionStoreProtocol

__all__ = ["SessionStoreProtocol"]
