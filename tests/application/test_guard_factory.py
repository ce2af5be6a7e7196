"""Testes para a montagem dos componentes a partir de Settings."""

from __future__ import annotations

import json

import pytest

from chatguard.application.factory import (
    build_components,
    build_policy,
    build_rule_set,
    build_scorer,
)
from chatguard.config.settings import Settings
from chatguard.domain.models import SessionRecord
from chatguard.domain.rules import RuleConfigError
from chatguard.infra.session_store import InMemorySessionStore

START = 1_700_000_000.0


def test_default_rule_set_when_no_path():
    assert len(build_rule_set(Settings())) == 10


def test_rule_set_from_file(tmp_path):
    path = tmp_path / "rules.json"
    path.write_text(json.dumps([{"name": "promo", "pattern": "promo", "weight": 45}]))

    scorer = build_scorer(Settings(rules_path=str(path)))

    assert scorer.score("big promo today", SessionRecord.new("s", START), START) == 45


def test_bad_rule_file_propagates(tmp_path):
    with pytest.raises(RuleConfigError):
        build_rule_set(Settings(rules_path=str(tmp_path / "missing.json")))


def test_scorer_interval_in_milliseconds():
    scorer = build_scorer(Settings(min_message_interval_ms=5000))
    record = SessionRecord.new("s", START)
    record.last_message_time = START

    assert scorer.is_high_frequency(record, START + 4)
    assert not scorer.is_high_frequency(record, START + 5)


def test_policy_mirrors_settings():
    policy = build_policy(
        Settings(
            flag_threshold=70,
            block_threshold=90,
            block_base_seconds=60,
            suspicious_history_size=3,
        )
    )

    assert policy.flag_threshold == 70
    assert policy.block_threshold == 90
    assert policy.block_base_seconds == 60
    assert policy.history_size == 3


def test_components_share_store():
    store = InMemorySessionStore()
    components = build_components(Settings(max_messages_per_window=1), store)

    components.guard.evaluate("first question here", "s1", now=START)
    verdict = components.guard.evaluate("second question here", "s1", now=START + 5)

    assert verdict.reason == "rate_limited"
    assert components.store is store
    assert components.admin.stats(now=START + 5).rate_limited_messages == 1
