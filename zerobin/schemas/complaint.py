"""
Complaint and sentiment schemas.
"""
from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

SentimentLabel = Literal["negative", "neutral", "positive"]
ComplaintSeverity = Literal["low", "medium", "high"]


class SentimentRequest(BaseModel):
    text: str = ""
    language: str = ""


class SentimentResult(BaseModel):
    text: str
    sentiment: str | None = None
    confidence: float | None = None
    scores: list[float] | None = None
    raw: Any = None


class SentimentResponse(BaseModel):
    source: Literal["bangla", "huggingface"]
    result: SentimentResult


class ComplaintCreate(BaseModel):
    text: str = Field(min_length=1)
    language: str
    sentiment: str
    confidence: float
    severity: ComplaintSeverity


class Complaint(BaseModel):
    id: str | None = None
    text: str
    language: str | None = None
    sentiment: str | None = None
    confidence: float | None = None
    severity: str | None = None
    created_at: str | None = None

    model_config = {"extra": "allow"}


def severity_for_confidence(confidence: float) -> ComplaintSeverity:
    if confidence >= 0.8:
        return "high"
    if confidence >= 0.5:
        return "medium"
    return "low"
