"""Testes para o rate limiter de janela deslizante."""

from __future__ import annotations

import pytest

from chatguard.domain.models import SecurityEvent, SessionRecord
from chatguard.domain.rate_limit import SlidingWindowRateLimiter

START = 1_700_000_000.0


def _with_events(*offsets: float) -> SessionRecord:
    record = SessionRecord.new("rl-session", START)
    for offset in offsets:
        record.events.append(SecurityEvent(timestamp=START + offset, content="m", score=0))
    return record


@pytest.fixture
def limiter() -> SlidingWindowRateLimiter:
    return SlidingWindowRateLimiter(max_messages=10, window_seconds=60)


def test_empty_session_not_exceeded(limiter: SlidingWindowRateLimiter):
    result = limiter.check_window(SessionRecord.new("x", START), START)
    assert not result.exceeded
    assert result.message_count == 0
    assert result.wait_seconds is None


def test_nine_events_leave_room_for_tenth(limiter: SlidingWindowRateLimiter):
    result = limiter.check_window(_with_events(*range(9)), START + 10)
    assert not result.exceeded
    assert result.message_count == 9


def test_ten_events_exceed(limiter: SlidingWindowRateLimiter):
    result = limiter.check_window(_with_events(*range(0, 20, 2)), START + 20)

    assert result.exceeded
    assert result.message_count == 10
    assert result.threshold == 10
    assert result.window_seconds == 60
    # evento mais antigo (START) sai da janela em START + 60
    assert result.wait_seconds == 40


def test_events_outside_window_ignored(limiter: SlidingWindowRateLimiter):
    record = _with_events(*range(10))
    result = limiter.check_window(record, START + 70)
    assert not result.exceeded
    assert result.message_count == 0


def test_event_exactly_at_window_edge_is_outside(limiter: SlidingWindowRateLimiter):
    record = _with_events(*range(10))
    # cutoff = START; o evento em START não conta
    result = limiter.check_window(record, START + 60)
    assert result.message_count == 9
    assert not result.exceeded


def test_wait_is_at_least_one_second():
    limiter = SlidingWindowRateLimiter(max_messages=2, window_seconds=10)
    result = limiter.check_window(_with_events(0.5, 1.0), START + 10.4)
    assert result.exceeded
    assert result.wait_seconds == 1


def test_check_does_not_mutate(limiter: SlidingWindowRateLimiter):
    record = _with_events(*range(10))
    limiter.check_window(record, START + 20)
    assert len(record.events) == 10
    assert record.message_count == 0
