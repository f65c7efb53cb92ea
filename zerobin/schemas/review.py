"""
Admin review (flagged report) schemas.
"""
from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from zerobin.schemas.pagination import Page

ReviewStatus = Literal["pending", "approved", "rejected"]
FlagReason = Literal[
    "low_ai_confidence",
    "location_mismatch",
    "photo_quality_issue",
    "suspicious_activity",
    "duplicate_report",
    "incomplete_data",
]


class Review(BaseModel):
    id: str
    quest_id: str
    reviewer_id: str | None = None
    flag_reason: str
    ai_confidence_score: float
    status: str
    ai_notes: str | None = None
    admin_notes: str | None = None
    created_at: datetime
    reviewed_at: datetime | None = None

    @property
    def flag_reason_label(self) -> str:
        return " ".join(word.capitalize() for word in self.flag_reason.split("_"))


class ReviewPage(Page[Review]):
    pending_count: int = 0


class ReviewCreate(BaseModel):
    quest_id: str
    ai_confidence_score: float = Field(default=0.5, ge=0, le=1)
    ai_notes: str
    flag_reason: FlagReason = "low_ai_confidence"
