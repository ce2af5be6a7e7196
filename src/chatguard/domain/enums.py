"""Enums de domínio do guard: motivos de rejeição, tipos de evento e regras."""

from __future__ import annotations

from enum import StrEnum


class GuardReason(StrEnum):
    """Motivos canônicos de rejeição de uma mensagem."""

    BLOCKED = "blocked"
    RATE_LIMITED = "rate_limited"
    FLAGGED = "flagged"


class EventKind(StrEnum):
    """Classificação do evento registrado para cada mensagem pontuada.

    Prioridade na escolha: repeated_message > high_frequency >
    suspicious_pattern > message.
    """

    MESSAGE = "message"
    REPEATED_MESSAGE = "repeated_message"
    HIGH_FREQUENCY = "high_frequency"
    SUSPICIOUS_PATTERN = "suspicious_pattern"


class RuleCategory(StrEnum):
    """Categorias da tabela de regras de conteúdo."""

    SUSPICIOUS = "suspicious"
    PROFANITY = "profanity"


class ExpiryMode(StrEnum):
    """Critério de expiração usado pelo sweeper."""

    ABSOLUTE = "absolute"  # idade desde first_seen_time
    IDLE = "idle"  # inatividade desde last_activity_time
