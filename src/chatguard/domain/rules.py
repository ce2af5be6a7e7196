"""Tabela declarativa de regras de conteúdo (padrões suspeitos e palavrões).

Cada regra é `{name, pattern, weight, category}`. A tabela padrão cobre:
- repetição de caracteres e de frases
- caracteres fora do alfabeto latino estendido
- conteúdo só numérico ou sem vogais
- URLs e palavras-chave de spam
- palavrões em polonês e inglês

Regras são aplicadas sobre o conteúdo normalizado (trim + lowercase) e somam
o peso de CADA regra que casar; uma mensagem pode disparar várias ao mesmo tempo.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError, field_validator

from chatguard.domain.enums import RuleCategory
from chatguard.observability.logging import get_logger

logger = get_logger(__name__)

SUSPICIOUS_RULE_WEIGHT = 25
PROFANITY_RULE_WEIGHT = 40


class RuleConfigError(Exception):
    """Arquivo de regras inválido ou ilegível."""

    pass


class SuspicionRule(BaseModel):
    """Regra de conteúdo com regex pré-compilada."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    pattern: str = Field(min_length=1)
    weight: int = Field(ge=0)
    category: RuleCategory = RuleCategory.SUSPICIOUS
    ignore_case: bool = True

    _compiled: re.Pattern[str] = PrivateAttr()

    @field_validator("pattern")
    @classmethod
    def _pattern_must_compile(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as exc:
            raise ValueError(f"regex inválida: {exc}") from exc
        return value

    def model_post_init(self, __context: Any) -> None:
        flags = re.IGNORECASE if self.ignore_case else 0
        self._compiled = re.compile(self.pattern, flags)

    def matches(self, content: str) -> bool:
        """True se o padrão ocorre em qualquer posição do conteúdo."""
        return self._compiled.search(content) is not None


class RuleSet(BaseModel):
    """Coleção ordenada de regras."""

    rules: list[SuspicionRule] = Field(default_factory=list)

    def by_category(self, category: RuleCategory) -> list[SuspicionRule]:
        return [r for r in self.rules if r.category == category]

    def matching(self, content: str) -> list[SuspicionRule]:
        """Regras que casam com o conteúdo, na ordem da tabela."""
        return [r for r in self.rules if r.matches(content)]

    def __len__(self) -> int:
        return len(self.rules)


def _suspicious(name: str, pattern: str) -> SuspicionRule:
    return SuspicionRule(
        name=name,
        pattern=pattern,
        weight=SUSPICIOUS_RULE_WEIGHT,
        category=RuleCategory.SUSPICIOUS,
    )


def _profanity(name: str, pattern: str) -> SuspicionRule:
    return SuspicionRule(
        name=name,
        pattern=pattern,
        weight=PROFANITY_RULE_WEIGHT,
        category=RuleCategory.PROFANITY,
    )


DEFAULT_RULES: tuple[SuspicionRule, ...] = (
    _suspicious("char_repetition", r"(.)\1{10,}"),
    _suspicious("non_latin_characters", r"[^A-Za-z0-9_\s\u00C0-\u024F\u1E00-\u1EFF]"),
    _suspicious("phrase_repetition", r"^\s*(.+?)\s*\1\s*\1"),
    _suspicious("pattern_repetition", r"^(.{1,10})\1{3,}"),
    _suspicious("digits_only", r"^[0-9]+$"),
    _suspicious("vowel_starved", r"^[^aeiouąęióuy\s]{10,}"),
    _suspicious("url", r"https?://"),
    _suspicious(
        "spam_keywords",
        r"\b(viagra|casino|bitcoin|crypto|investment|loan|money)\b",
    ),
    _profanity("profanity_pl", r"\b(kurwa|chuj|dupa|pierdol|jebać|skurwysyn)\b"),
    _profanity("profanity_en", r"\b(fuck|shit|damn|bitch|asshole)\b"),
)


def default_rule_set() -> RuleSet:
    """Tabela padrão embutida."""
    return RuleSet(rules=list(DEFAULT_RULES))


def load_rules(path: str | Path) -> RuleSet:
    """Carrega tabela de regras de um arquivo JSON.

    Formato aceito: lista de regras ou objeto `{"rules": [...]}`.

    Raises:
        RuleConfigError: Se o arquivo não existe, não é JSON ou tem regra inválida
    """
    rules_file = Path(path)
    try:
        raw = json.loads(rules_file.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise RuleConfigError(f"Arquivo de regras não encontrado: {rules_file}") from exc
    except json.JSONDecodeError as exc:
        raise RuleConfigError(f"Arquivo de regras não é JSON válido: {exc}") from exc

    payload = {"rules": raw} if isinstance(raw, list) else raw
    try:
        rule_set = RuleSet.model_validate(payload)
    except ValidationError as exc:
        raise RuleConfigError(f"Regra inválida em {rules_file}: {exc}") from exc

    logger.info(
        "Rule table loaded",
        extra={
            "file": str(rules_file),
            "suspicious_rules": len(rule_set.by_category(RuleCategory.SUSPICIOUS)),
            "profanity_rules": len(rule_set.by_category(RuleCategory.PROFANITY)),
        },
    )
    return rule_set
