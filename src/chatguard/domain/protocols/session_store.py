"""Protocolo de domínio para o armazenamento de SessionRecord."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import AbstractContextManager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from chatguard.domain.models import SessionRecord


class SessionStoreProtocol(ABC):
    """Contrato mínimo para o store de sessões do guard.

    O store é dono de todos os registros; chamadores só leem/alteram via
    `session()`, que garante acesso exclusivo e persiste ao sair.
    """

    @abstractmethod
    def session(self, session_id: str, now: float) -> AbstractContextManager[SessionRecord]: ...

    @abstractmethod
    def get_or_create(self, session_id: str, now: float) -> SessionRecord: ...

    @abstractmethod
    def get(self, session_id: str) -> SessionRecord | None: ...

    @abstractmethod
    def delete(self, session_id: str) -> bool: ...

    @abstractmethod
    def iter_records(self) -> Iterator[SessionRecord]: ...

    @abstractmethod
    def purge_expired(self, now: float) -> int: ...

    @abstractmethod
    def count(self) -> int: ...
