"""Pontuação heurística de suspeita por mensagem.

Função pura sobre (conteúdo, estado da sessão, instante): não altera a sessão.
O score é um sinal de risco, não um classificador; cada sinal soma seu peso de
forma independente e o total é limitado a [0, 100].
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from chatguard.domain.enums import RuleCategory
from chatguard.domain.models import SessionRecord
from chatguard.domain.rules import RuleSet, default_rule_set

MAX_SCORE = 100

_LOWERCASE_WORD = re.compile(r"^[a-z]+$")
# \w restrito a ASCII: palavras curtas em outros alfabetos não são token curto
_BARE_TOKEN = re.compile(r"^\w{1,3}$", re.ASCII)


@dataclass(frozen=True, slots=True)
class SignalWeights:
    """Pesos dos sinais comportamentais (fora da tabela de regras)."""

    short_message: int = 20
    long_message: int = 30
    repeated_message: int = 30
    high_frequency: int = 35
    known_suspicious: int = 20
    bot_signature: int = 15
    bare_token: int = 10
    burst: int = 25


@dataclass(frozen=True, slots=True)
class ScoringLimits:
    """Limiares usados pelos sinais comportamentais."""

    min_length: int = 3
    max_length: int = 500
    min_interval_seconds: float = 1.0
    bot_signature_min_length: int = 20
    burst_window_seconds: float = 60.0
    burst_event_count: int = 5


@dataclass(slots=True)
class ScoreBreakdown:
    """Resultado detalhado: score final, bruto e sinais que dispararam."""

    score: int
    raw_score: int
    signals: list[str] = field(default_factory=list)


def normalize(message: str) -> str:
    """Normalização usada para comparação com o histórico da sessão."""
    return message.strip()


class SuspicionScorer:
    """Calcula o score de suspeita de uma mensagem."""

    def __init__(
        self,
        rules: RuleSet | None = None,
        weights: SignalWeights | None = None,
        limits: ScoringLimits | None = None,
    ) -> None:
        self._rules = rules if rules is not None else default_rule_set()
        self._weights = weights or SignalWeights()
        self._limits = limits or ScoringLimits()

    @property
    def rules(self) -> RuleSet:
        return self._rules

    def score(self, message: str, session: SessionRecord, now: float) -> int:
        """Score final em [0, 100]."""
        return self.breakdown(message, session, now).score

    def breakdown(self, message: str, session: SessionRecord, now: float) -> ScoreBreakdown:
        """Score com a lista de sinais (somente nomes, nunca conteúdo)."""
        w = self._weights
        limits = self._limits
        trimmed = normalize(message)
        content = trimmed.lower()
        signals: list[tuple[str, int]] = []

        if len(content) < limits.min_length:
            signals.append(("short_message", w.short_message))

        if len(content) > limits.max_length:
            signals.append(("long_message", w.long_message))

        for rule in self._rules.matching(content):
            signals.append((f"{rule.category.value}:{rule.name}", rule.weight))

        if session.last_message_time is not None and trimmed == session.last_message_content:
            signals.append(("repeated_message", w.repeated_message))

        if self.is_high_frequency(session, now):
            signals.append(("high_frequency", w.high_frequency))

        if trimmed in session.suspicious_history:
            signals.append(("known_suspicious", w.known_suspicious))

        if _LOWERCASE_WORD.match(content) and len(content) > limits.bot_signature_min_length:
            signals.append(("bot_signature", w.bot_signature))

        if _BARE_TOKEN.match(content):
            signals.append(("bare_token", w.bare_token))

        recent = session.events_since(now - limits.burst_window_seconds)
        if len(recent) > limits.burst_event_count:
            signals.append(("burst", w.burst))

        raw_score = sum(weight for _, weight in signals)
        return ScoreBreakdown(
            score=max(0, min(raw_score, MAX_SCORE)),
            raw_score=raw_score,
            signals=[name for name, _ in signals],
        )

    def is_high_frequency(self, session: SessionRecord, now: float) -> bool:
        """True se a mensagem anterior chegou há menos que o intervalo mínimo."""
        if session.last_message_time is None:
            return False
        return now - session.last_message_time < self._limits.min_interval_seconds

    def is_repeat(self, message: str, session: SessionRecord) -> bool:
        return (
            session.last_message_time is not None
            and normalize(message) == session.last_message_content
        )

    def has_profanity(self, message: str) -> bool:
        content = normalize(message).lower()
        return any(r.matches(content) for r in self._rules.by_category(RuleCategory.PROFANITY))
