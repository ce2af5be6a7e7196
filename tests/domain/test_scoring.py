"""Testes para o scorer de suspeita (sinais comportamentais e regras)."""

from __future__ import annotations

import pytest

from chatguard.domain.enums import EventKind, RuleCategory
from chatguard.domain.models import SecurityEvent, SessionRecord
from chatguard.domain.rules import RuleSet, SuspicionRule
from chatguard.domain.scoring import ScoringLimits, SuspicionScorer

START = 1_700_000_000.0
BENIGN = "hello there how are you today"


@pytest.fixture
def scorer() -> SuspicionScorer:
    return SuspicionScorer()


def _fresh(session_id: str = "s-1") -> SessionRecord:
    return SessionRecord.new(session_id, START)


def _after(message: str, at: float, session_id: str = "s-1") -> SessionRecord:
    """Sessão cuja última mensagem foi `message` em `at`."""
    record = _fresh(session_id)
    record.last_message_content = message.strip()
    record.last_message_time = at
    record.message_count = 1
    return record


class TestContentSignals:
    """Sinais que dependem só do conteúdo."""

    def test_benign_message_scores_zero(self, scorer: SuspicionScorer):
        assert scorer.score(BENIGN, _fresh(), START) == 0

    def test_short_message(self, scorer: SuspicionScorer):
        """'ok' soma curta (+20) e token curto (+10)."""
        result = scorer.breakdown("ok", _fresh(), START)
        assert result.score == 30
        assert result.signals == ["short_message", "bare_token"]

    def test_empty_message_only_short(self, scorer: SuspicionScorer):
        assert scorer.score("   ", _fresh(), START) == 20

    def test_long_message(self, scorer: SuspicionScorer):
        message = " ".join(f"token{i}" for i in range(100))
        result = scorer.breakdown(message, _fresh(), START)
        assert len(message) > 500
        assert "long_message" in result.signals

    def test_digits_only(self, scorer: SuspicionScorer):
        result = scorer.breakdown("12345", _fresh(), START)
        assert result.signals == ["suspicious:digits_only"]
        assert result.score == 25

    def test_url_counts_with_punctuation(self, scorer: SuspicionScorer):
        """URL casa a regra de URL e a de caracteres fora do alfabeto."""
        result = scorer.breakdown("see http://example", _fresh(), START)
        assert "suspicious:url" in result.signals
        assert "suspicious:non_latin_characters" in result.signals
        assert result.score == 50

    def test_spam_keyword(self, scorer: SuspicionScorer):
        assert scorer.breakdown("buy bitcoin now", _fresh(), START).signals == [
            "suspicious:spam_keywords"
        ]

    @pytest.mark.parametrize("message", ["kurwa", "fuck", "what the SHIT is this"])
    def test_profanity_weighs_forty(self, scorer: SuspicionScorer, message: str):
        result = scorer.breakdown(message, _fresh(), START)
        assert result.score == 40
        assert scorer.has_profanity(message)

    def test_polish_letters_are_not_foreign(self, scorer: SuspicionScorer):
        """Letras latinas estendidas não disparam a regra de caracteres."""
        result = scorer.breakdown("zażółć gęślą jaźń", _fresh(), START)
        assert "suspicious:non_latin_characters" not in result.signals

    @pytest.mark.parametrize("message", ["привет как дела", "你好吗", "مرحبا بك"])
    def test_other_scripts_are_foreign(self, scorer: SuspicionScorer, message: str):
        """Cirílico, CJK e árabe ficam fora do alfabeto latino estendido."""
        result = scorer.breakdown(message, _fresh(), START)
        assert result.signals == ["suspicious:non_latin_characters"]
        assert result.score == 25

    def test_short_foreign_word_is_not_bare_token(self, scorer: SuspicionScorer):
        """'да' é curta (+20) e estrangeira (+25), mas não token ASCII curto."""
        result = scorer.breakdown("да", _fresh(), START)
        assert result.signals == ["short_message", "suspicious:non_latin_characters"]
        assert result.score == 45

    def test_bot_signature(self, scorer: SuspicionScorer):
        result = scorer.breakdown("abcdefghijklmnopqrstuvwxyz", _fresh(), START)
        assert result.signals == ["bot_signature"]
        assert result.score == 15

    def test_repeated_chars_hit_three_rules(self, scorer: SuspicionScorer):
        result = scorer.breakdown("aaaaaaaaaaaa", _fresh(), START)
        assert result.score == 75
        assert set(result.signals) == {
            "suspicious:char_repetition",
            "suspicious:phrase_repetition",
            "suspicious:pattern_repetition",
        }


class TestSessionSignals:
    """Sinais que dependem do estado da sessão."""

    def test_repeat_scores_higher_than_fresh(self, scorer: SuspicionScorer):
        repeated = scorer.score(BENIGN, _after(BENIGN, START), START + 10)
        fresh = scorer.score(BENIGN, _after("something else", START), START + 10)
        assert repeated > fresh
        assert repeated - fresh == 30

    def test_repeat_compares_trimmed_content(self, scorer: SuspicionScorer):
        record = _after(BENIGN, START)
        assert scorer.is_repeat(f"  {BENIGN}  ", record)

    def test_empty_message_on_new_session_is_not_repeat(self, scorer: SuspicionScorer):
        assert not scorer.is_repeat("", _fresh())

    def test_high_frequency_under_one_second(self, scorer: SuspicionScorer):
        record = _after("previous question", START)
        assert scorer.breakdown(BENIGN, record, START + 0.5).signals == ["high_frequency"]
        assert scorer.score(BENIGN, record, START + 1.0) == 0

    def test_known_suspicious_history(self, scorer: SuspicionScorer):
        record = _fresh()
        record.suspicious_history.append(BENIGN)
        assert scorer.breakdown(BENIGN, record, START).signals == ["known_suspicious"]

    def test_burst_after_more_than_five_recent_events(self, scorer: SuspicionScorer):
        record = _fresh()
        for i in range(6):
            record.events.append(
                SecurityEvent(
                    timestamp=START - 50 + i, kind=EventKind.MESSAGE, content="x", score=0
                )
            )
        assert scorer.breakdown(BENIGN, record, START).signals == ["burst"]

    def test_five_recent_events_do_not_burst(self, scorer: SuspicionScorer):
        record = _fresh()
        for i in range(5):
            record.events.append(SecurityEvent(timestamp=START - 10 + i, content="x", score=0))
        assert scorer.score(BENIGN, record, START) == 0

    def test_old_events_ignored_for_burst(self, scorer: SuspicionScorer):
        record = _fresh()
        for i in range(8):
            record.events.append(SecurityEvent(timestamp=START - 120 + i, content="x", score=0))
        assert scorer.score(BENIGN, record, START) == 0

    def test_scorer_does_not_mutate_session(self, scorer: SuspicionScorer):
        record = _after("aaaaaaaaaaaa", START)
        before = record.model_dump()
        scorer.score("aaaaaaaaaaaa", record, START + 0.1)
        assert record.model_dump() == before


class TestScoreBounds:
    """O score final fica sempre em [0, 100]."""

    def test_adversarial_content_is_clamped(self, scorer: SuspicionScorer):
        message = "fuck fuck fuck shit damn http://casino.com !!!!!!!!!!!!!!"
        record = _after(message, START)
        record.suspicious_history.append(message)

        result = scorer.breakdown(message, record, START + 0.1)

        assert result.raw_score > 100
        assert result.score == 100

    @pytest.mark.parametrize(
        "message",
        ["", "a", "aaaaaaaaaaaa", "x" * 2000, "💥" * 50, "kurwa fuck casino http://x", BENIGN],
    )
    def test_score_in_range(self, scorer: SuspicionScorer, message: str):
        record = _after(message, START)
        score = scorer.score(message, record, START + 0.2)
        assert 0 <= score <= 100


class TestConfigurableRules:
    """Regras sintéticas substituem a tabela de produção."""

    def test_custom_rule_set(self):
        rules = RuleSet(
            rules=[
                SuspicionRule(
                    name="forbidden_word",
                    pattern=r"\bforbidden\b",
                    weight=60,
                    category=RuleCategory.SUSPICIOUS,
                )
            ]
        )
        scorer = SuspicionScorer(rules=rules)
        assert scorer.score("this is forbidden", _fresh(), START) == 60
        assert scorer.score("http://casino", _fresh(), START) == 0

    def test_empty_rule_set_keeps_behavioural_signals(self):
        scorer = SuspicionScorer(rules=RuleSet())
        assert scorer.score("aaaaaaaaaaaa", _fresh(), START) == 0
        assert scorer.score("ok", _fresh(), START) == 30

    def test_custom_limits(self):
        scorer = SuspicionScorer(limits=ScoringLimits(max_length=10))
        assert "long_message" in scorer.breakdown("hello there friend", _fresh(), START).signals
