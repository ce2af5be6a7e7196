"""Session store do guard em memória (sharded) e em Redis.

Contratos e implementações para o estado de abuso por sessão, com acesso
exclusivo por sessão e limpeza oportunista de sessões expiradas.
"""

from __future__ import annotations

import logging
import math
import threading
import zlib
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from chatguard.domain.enums import ExpiryMode
from chatguard.domain.expiry import ExpiryPolicy
from chatguard.domain.models import SessionRecord
from chatguard.domain.protocols.session_store import SessionStoreProtocol
from chatguard.observability.logging import get_logger, mask_session_id

logger: logging.Logger = get_logger(__name__)


class SessionStoreError(Exception):
    """Erro ao persistir ou recuperar sessão."""

    pass


class SessionStore(SessionStoreProtocol):
    """Base comum: política de expiração e sweep oportunista.

    Responsabilidades:
    - Criar o registro na primeira avaliação de um session_id
    - Garantir acesso serializado por sessão
    - Remover sessões expiradas (sob o mesmo lock da criação)
    """

    def __init__(self, expiry: ExpiryPolicy | None = None, sweep_on_access: bool = True) -> None:
        self._expiry = expiry or ExpiryPolicy()
        self._sweep_on_access = sweep_on_access

    @property
    def expiry(self) -> ExpiryPolicy:
        return self._expiry

    def get_or_create(self, session_id: str, now: float) -> SessionRecord:
        """Retorna cópia do registro (criando se necessário).

        A cópia não é viva: alterações devem passar por `session()`.
        """
        with self.session(session_id, now) as record:
            return record.model_copy(deep=True)


@dataclass
class _Shard:
    lock: threading.Lock = field(default_factory=threading.Lock)
    records: dict[str, SessionRecord] = field(default_factory=dict)


class InMemorySessionStore(SessionStore):
    """Armazenamento em memória, particionado em shards com um lock cada.

    ⚠️ Estado local ao processo:
    - Não persiste entre restarts
    - Não compartilha contadores entre múltiplas instâncias
    """

    def __init__(
        self,
        expiry: ExpiryPolicy | None = None,
        shards: int = 16,
        sweep_on_access: bool = True,
    ) -> None:
        super().__init__(expiry=expiry, sweep_on_access=sweep_on_access)
        if shards < 1:
            raise ValueError("shards deve ser >= 1")
        self._shards = [_Shard() for _ in range(shards)]

    def _shard_for(self, session_id: str) -> _Shard:
        index = zlib.crc32(session_id.encode("utf-8")) % len(self._shards)
        return self._shards[index]

    @contextmanager
    def session(self, session_id: str, now: float) -> Iterator[SessionRecord]:
        """Acesso exclusivo ao registro (lock do shard mantido no bloco)."""
        if self._sweep_on_access:
            self.purge_expired(now)

        shard = self._shard_for(session_id)
        with shard.lock:
            record = shard.records.get(session_id)
            if record is not None and self._expiry.is_expired(record, now):
                del shard.records[session_id]
                record = None
            if record is None:
                record = SessionRecord.new(session_id, now)
                shard.records[session_id] = record
                logger.debug(
                    "Session created (in-memory)",
                    extra={"session_id": mask_session_id(session_id)},
                )
            yield record

    def get(self, session_id: str) -> SessionRecord | None:
        shard = self._shard_for(session_id)
        with shard.lock:
            record = shard.records.get(session_id)
            return record.model_copy(deep=True) if record else None

    def delete(self, session_id: str) -> bool:
        """Remove sessão da memória."""
        shard = self._shard_for(session_id)
        with shard.lock:
            if session_id not in shard.records:
                return False
            del shard.records[session_id]

        logger.debug(
            "Session deleted (in-memory)",
            extra={"session_id": mask_session_id(session_id)},
        )
        return True

    def iter_records(self) -> Iterator[SessionRecord]:
        """Cópias de todos os registros, um shard por vez."""
        for shard in self._shards:
            with shard.lock:
                snapshot = [r.model_copy(deep=True) for r in shard.records.values()]
            yield from snapshot

    def purge_expired(self, now: float) -> int:
        """Remove sessões expiradas; retorna quantas foram removidas."""
        removed = 0
        for shard in self._shards:
            with shard.lock:
                expired = [
                    sid for sid, r in shard.records.items() if self._expiry.is_expired(r, now)
                ]
                for sid in expired:
                    del shard.records[sid]
            removed += len(expired)

        if removed:
            logger.debug("Expired sessions purged (in-memory)", extra={"removed": removed})
        return removed

    def count(self) -> int:
        total = 0
        for shard in self._shards:
            with shard.lock:
                total += len(shard.records)
        return total


class RedisSessionStore(SessionStore):
    """Armazenamento em Redis para múltiplas instâncias.

    Características:
    - Registro serializado em JSON (SessionRecord.model_dump_json)
    - Lock distribuído por sessão (redis-py `lock`)
    - TTL nativo alinhado à política de expiração
    """

    def __init__(
        self,
        redis_client: object,
        expiry: ExpiryPolicy | None = None,
        key_prefix: str = "chatguard:session:",
        lock_prefix: str = "chatguard:lock:",
        lock_timeout_seconds: float = 5.0,
        sweep_on_access: bool = False,
    ) -> None:
        super().__init__(expiry=expiry, sweep_on_access=sweep_on_access)
        self._redis = redis_client
        self._key_prefix = key_prefix
        self._lock_prefix = lock_prefix
        self._lock_timeout = lock_timeout_seconds

    def _make_key(self, session_id: str) -> str:
        return f"{self._key_prefix}{session_id}"

    def _ttl_seconds(self, record: SessionRecord, now: float) -> int:
        """TTL restante conforme a política (Redis remove o que o sweep removeria)."""
        if self._expiry.mode == ExpiryMode.IDLE:
            ttl = self._expiry.timeout_seconds
            if record.blocked_until is not None:
                ttl = max(ttl, record.blocked_until - now)
        else:
            ttl = record.first_seen_time + self._expiry.timeout_seconds - now
        return max(1, math.ceil(ttl))

    def _load(self, session_id: str) -> SessionRecord | None:
        key = self._make_key(session_id)
        try:
            payload = self._redis.get(key)
        except Exception as e:
            logger.error(
                "Failed to load session from Redis",
                extra={"session_id": mask_session_id(session_id), "error": str(e)},
            )
            raise SessionStoreError(f"Redis load failed: {e}") from e

        if not payload:
            return None

        # Se for bytes (redis-py sem decode_responses), decodificar
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8")

        try:
            return SessionRecord.model_validate_json(payload)
        except ValueError as e:
            logger.error(
                "Corrupted session payload in Redis",
                extra={"session_id": mask_session_id(session_id), "error": type(e).__name__},
            )
            raise SessionStoreError(f"Invalid session payload: {type(e).__name__}") from e

    def _save(self, record: SessionRecord, now: float) -> None:
        key = self._make_key(record.session_id)
        ttl = self._ttl_seconds(record, now)
        try:
            self._redis.setex(key, ttl, record.model_dump_json())
        except Exception as e:
            logger.error(
                "Failed to save session to Redis",
                extra={"session_id": mask_session_id(record.session_id), "error": str(e)},
            )
            raise SessionStoreError(f"Redis save failed: {e}") from e

    @contextmanager
    def _locked(self, session_id: str) -> Iterator[None]:
        lock = self._redis.lock(
            f"{self._lock_prefix}{session_id}",
            timeout=self._lock_timeout,
            blocking_timeout=self._lock_timeout,
        )
        try:
            acquired = lock.acquire()
        except Exception as e:
            raise SessionStoreError(f"Redis lock failed: {e}") from e
        if not acquired:
            raise SessionStoreError("Redis lock timeout")
        try:
            yield
        finally:
            try:
                lock.release()
            except Exception as e:
                # Lock expirou antes do release; próximo acesso segue normalmente
                logger.warning(
                    "Redis lock release failed",
                    extra={"session_id": mask_session_id(session_id), "error": str(e)},
                )

    @contextmanager
    def session(self, session_id: str, now: float) -> Iterator[SessionRecord]:
        """Carrega (ou cria), entrega o registro e persiste ao sair do bloco."""
        if self._sweep_on_access:
            self.purge_expired(now)

        with self._locked(session_id):
            record = self._load(session_id)
            if record is not None and self._expiry.is_expired(record, now):
                record = None
            if record is None:
                record = SessionRecord.new(session_id, now)
                logger.debug(
                    "Session created (Redis)",
                    extra={"session_id": mask_session_id(session_id)},
                )
            yield record
            self._save(record, now)

    def get(self, session_id: str) -> SessionRecord | None:
        return self._load(session_id)

    def delete(self, session_id: str) -> bool:
        """Remove sessão de Redis.

        Raises:
            SessionStoreError: Se Redis falhar (distinto de sessão inexistente)
        """
        try:
            deleted = self._redis.delete(self._make_key(session_id))
        except Exception as e:
            logger.error(
                "Failed to delete session from Redis",
                extra={"session_id": mask_session_id(session_id), "error": str(e)},
            )
            raise SessionStoreError(f"Redis delete failed: {e}") from e
        return bool(deleted)

    def _iter_keys(self) -> Iterator[str]:
        for key in self._redis.scan_iter(match=f"{self._key_prefix}*"):
            yield key.decode("utf-8") if isinstance(key, bytes) else key

    def iter_records(self) -> Iterator[SessionRecord]:
        for key in self._iter_keys():
            session_id = key[len(self._key_prefix):]
            try:
                record = self._load(session_id)
            except SessionStoreError:
                continue
            if record is not None:
                yield record

    def purge_expired(self, now: float) -> int:
        """Remove registros que a política considera expirados.

        O TTL do Redis já cobre o caso comum; este sweep cobre mudanças de
        política e registros gravados sem TTL.
        """
        removed = 0
        for record in list(self.iter_records()):
            if not self._expiry.is_expired(record, now):
                continue
            try:
                with self._locked(record.session_id):
                    current = self._load(record.session_id)
                    if current is not None and self._expiry.is_expired(current, now):
                        removed += int(bool(self._redis.delete(self._make_key(record.session_id))))
            except SessionStoreError as e:
                logger.warning(
                    "Skipping session during Redis sweep",
                    extra={"session_id": mask_session_id(record.session_id), "error": str(e)},
                )
        return removed

    def count(self) -> int:
        try:
            return sum(1 for _ in self._iter_keys())
        except Exception as e:
            logger.error("Failed to count sessions in Redis", extra={"error": str(e)})
            return 0


def create_session_store(
    backend: str,
    expiry: ExpiryPolicy | None = None,
    shards: int = 16,
    sweep_on_access: bool = True,
    redis_client: object | None = None,
    key_prefix: str = "chatguard:session:",
    lock_timeout_seconds: float = 5.0,
) -> SessionStore:
    """Factory para SessionStore.

    Args:
        backend: "memory" ou "redis"
        expiry: Política de expiração (padrão: 24h absoluta)
        shards: Número de shards do store em memória
        sweep_on_access: Sweep oportunista em cada acesso
        redis_client: Cliente Redis (obrigatório se backend="redis")

    Raises:
        ValueError: Se backend inválido ou cliente Redis não fornecido
    """
    backend = backend.lower()
    if backend == "memory":
        logger.info(
            "Using in-memory session store",
            extra={"shards": shards, "sweep_on_access": sweep_on_access},
        )
        return InMemorySessionStore(expiry=expiry, shards=shards, sweep_on_access=sweep_on_access)

    if backend == "redis":
        if redis_client is None:
            msg = "redis_client required for redis backend"
            raise ValueError(msg)
        logger.info("Using Redis session store (distributed)", extra={"key_prefix": key_prefix})
        return RedisSessionStore(
            redis_client=redis_client,
            expiry=expiry,
            key_prefix=key_prefix,
            lock_timeout_seconds=lock_timeout_seconds,
            sweep_on_access=sweep_on_access,
        )

    msg = f"Unknown session store backend: {backend}"
    raise ValueError(msg)
