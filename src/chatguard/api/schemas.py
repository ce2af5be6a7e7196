"""Contratos HTTP da API do guard."""

from __future__ import annotations

from pydantic import BaseModel, Field


class EvaluateRequest(BaseModel):
    """Mensagem recebida pelo endpoint de chat, encaminhada para avaliação."""

    session_id: str = Field(min_length=1, max_length=256)
    message: str


class ResetResponse(BaseModel):
    deleted: bool
