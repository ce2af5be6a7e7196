"""Montagem dos componentes do guard a partir de Settings.

Centraliza a tradução de configuração em objetos de domínio, para que API,
scripts e testes construam o guard do mesmo jeito.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from chatguard.application.admin import GuardAdmin
from chatguard.application.engine import AbuseGuard, GuardPolicy
from chatguard.application.sweeper import CleanupSweeper
from chatguard.domain.rate_limit import SlidingWindowRateLimiter
from chatguard.domain.rules import RuleSet, default_rule_set, load_rules
from chatguard.domain.scoring import ScoringLimits, SuspicionScorer

if TYPE_CHECKING:
    from chatguard.config.settings import Settings
    from chatguard.domain.protocols.session_store import SessionStoreProtocol


@dataclass(slots=True)
class GuardComponents:
    """Componentes prontos para injeção (app.state, scripts)."""

    store: SessionStoreProtocol
    guard: AbuseGuard
    sweeper: CleanupSweeper
    admin: GuardAdmin


def build_rule_set(settings: Settings) -> RuleSet:
    """Tabela configurada (arquivo JSON) ou a embutida."""
    if settings.rules_path:
        return load_rules(settings.rules_path)
    return default_rule_set()


def build_scorer(settings: Settings, rules: RuleSet | None = None) -> SuspicionScorer:
    limits = ScoringLimits(
        max_length=settings.max_message_length,
        min_interval_seconds=settings.min_message_interval_ms / 1000,
        burst_window_seconds=settings.rate_limit_window_seconds,
        burst_event_count=settings.burst_event_count,
    )
    return SuspicionScorer(rules=rules or build_rule_set(settings), limits=limits)


def build_policy(settings: Settings) -> GuardPolicy:
    return GuardPolicy(
        flag_threshold=settings.flag_threshold,
        block_threshold=settings.block_threshold,
        notable_score_threshold=settings.notable_score_threshold,
        suspicious_event_threshold=settings.suspicious_event_threshold,
        block_base_seconds=settings.block_base_seconds,
        block_multiplier=settings.block_multiplier,
        block_escalation_step=settings.block_escalation_step,
        history_size=settings.suspicious_history_size,
        event_retention_seconds=settings.event_retention_seconds,
    )


def build_components(settings: Settings, store: SessionStoreProtocol) -> GuardComponents:
    """Guard, sweeper e admin compartilhando o mesmo store."""
    guard = AbuseGuard(
        store=store,
        scorer=build_scorer(settings),
        rate_limiter=SlidingWindowRateLimiter(
            max_messages=settings.max_messages_per_window,
            window_seconds=settings.rate_limit_window_seconds,
        ),
        policy=build_policy(settings),
    )
    sweeper = CleanupSweeper(store)
    admin = GuardAdmin(
        store=store,
        sweeper=sweeper,
        suspicious_event_threshold=settings.suspicious_event_threshold,
        activity_window_seconds=settings.session_timeout_seconds,
    )
    return GuardComponents(store=store, guard=guard, sweeper=sweeper, admin=admin)
