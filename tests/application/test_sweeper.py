"""Testes para o sweeper de sessões expiradas."""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock, patch

from chatguard.application.sweeper import CleanupSweeper
from chatguard.infra.session_store import InMemorySessionStore

START = 1_700_000_000.0
DAY = 24 * 60 * 60


def _store_with_stale_session() -> InMemorySessionStore:
    store = InMemorySessionStore(sweep_on_access=False)
    store.get_or_create("stale", START - DAY - 3600)
    store.get_or_create("fresh", START - 60)
    return store


def test_sweep_removes_expired_sessions():
    store = _store_with_stale_session()
    sweeper = CleanupSweeper(store)

    assert sweeper.sweep(START) == 1
    assert store.get("stale") is None
    assert store.get("fresh") is not None


def test_last_sweep_tracking():
    sweeper = CleanupSweeper(InMemorySessionStore())

    assert sweeper.last_sweep_at is None
    assert sweeper.last_sweep_iso() is None

    sweeper.sweep(START)

    assert sweeper.last_sweep_at == START
    assert sweeper.last_sweep_iso() == "2023-11-14T22:13:20+00:00"


def test_sweep_uses_clock():
    store = _store_with_stale_session()
    sweeper = CleanupSweeper(store, clock=lambda: START)

    assert sweeper.sweep() == 1
    assert sweeper.last_sweep_at == START


def test_run_periodically_sweeps_until_stopped():
    store = _store_with_stale_session()
    sweeper = CleanupSweeper(store, clock=lambda: START)

    async def scenario() -> None:
        stop = asyncio.Event()
        task = asyncio.create_task(sweeper.run_periodically(0.01, stop))
        await asyncio.sleep(0.1)
        stop.set()
        await asyncio.wait_for(task, timeout=1)

    asyncio.run(scenario())

    assert sweeper.last_sweep_at == START
    assert store.count() == 1


def test_run_periodically_survives_store_failure():
    """Falha em um passe é logada e o loop continua."""
    store = MagicMock()
    store.purge_expired.side_effect = RuntimeError("store down")
    sweeper = CleanupSweeper(store, clock=lambda: START)

    async def scenario() -> None:
        stop = asyncio.Event()
        task = asyncio.create_task(sweeper.run_periodically(0.01, stop))
        await asyncio.sleep(0.1)
        stop.set()
        await asyncio.wait_for(task, timeout=1)

    asyncio.run(scenario())

    assert store.purge_expired.call_count >= 2
    assert sweeper.last_sweep_at is None


def test_sweep_latency_names_store_backend():
    sweeper = CleanupSweeper(InMemorySessionStore())

    with patch("chatguard.observability.timing.logger") as mock_logger:
        sweeper.sweep(START)

    extra = mock_logger.debug.call_args.kwargs["extra"]
    assert extra["component"] == "session_sweep"
    assert extra["store"] == "InMemorySessionStore"
