"""
Quest (waste report) Pydantic schemas.
Includes create/complete payloads, the image analysis result and the fraud
rejection detail returned by the analysis endpoint.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from zerobin.schemas.pagination import Page
from zerobin.schemas.user import GeoPoint, UserSummary

QuestStatus = Literal[
    "pending", "reported", "assigned", "in_progress", "completed", "verified", "rejected"
]
Severity = Literal["low", "medium", "high"]

# Position along pending -> assigned -> in_progress/completed -> verified.
# "reported" is the backend's name for a fresh, unassigned report.
STATUS_RANK: dict[str, int] = {
    "pending": 0,
    "reported": 0,
    "assigned": 1,
    "in_progress": 2,
    "completed": 2,
    "verified": 3,
}
FINISHED_STATUSES = frozenset({"completed", "verified"})


def status_rank(status: str) -> int:
    """Rank of a status; unknown statuses (e.g. ``rejected``) sort last."""
    return STATUS_RANK.get(status, len(STATUS_RANK))


# ── Location ──────────────────────────────────────────────────────────────────

class LatLng(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


# ── Read ──────────────────────────────────────────────────────────────────────

class Quest(BaseModel):
    id: str
    reporter_id: str
    collector_id: str | None = None
    title: str
    description: str = ""
    location: GeoPoint | None = None
    geohash: str | None = None
    waste_type: str
    severity: str
    status: str
    bounty_points: int = 0
    image_url: str | None = None
    before_photo_url: str | None = None
    after_photo_url: str | None = None
    ai_verification_score: float | None = None
    assigned_at: datetime | None = None
    completed_at: datetime | None = None
    verified_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    reporter: UserSummary | None = None
    collector: UserSummary | None = None

    # Forward transition requested locally but not yet confirmed by the server
    requested_status: str | None = Field(default=None, exclude=True)

    @property
    def is_finished(self) -> bool:
        return self.status in FINISHED_STATUSES

    @property
    def display_status(self) -> str:
        """Server-confirmed status; a requested transition never replaces it."""
        return self.status

    @property
    def pending_transition(self) -> str | None:
        if self.requested_status and self.requested_status != self.status:
            return self.requested_status
        return None


class QuestPage(Page[Quest]):
    pass


# ── Create ────────────────────────────────────────────────────────────────────

class QuestCreate(BaseModel):
    description: str
    image_url: str
    location: LatLng
    severity: str
    title: str = Field(min_length=1, max_length=500)
    waste_type: str


# ── Complete ──────────────────────────────────────────────────────────────────

class QuestCompletion(BaseModel):
    collector_id: str
    status: Literal["completed"] = "completed"
    before_photo_url: str
    after_photo_url: str
    before_photo_metadata: dict[str, Any] = Field(default_factory=dict)
    after_photo_metadata: dict[str, Any] = Field(default_factory=dict)
    ai_verification_score: float = 0
    verification_notes: str = "Completed by collector"


# ── Analysis ──────────────────────────────────────────────────────────────────

class ImageAnalysis(BaseModel):
    waste_type: str
    severity: str
    description: str = ""
    confidence_score: float = 0


MAX_SHOWN_MATCHES = 3


class WebMatch(BaseModel):
    type: str | None = None
    url: str | None = None
    page_title: str | None = None
    score: float | None = None

    @property
    def label(self) -> str:
        return self.page_title or self.url or "Web source"


class FraudDetails(BaseModel):
    """
    Fraud verdict carried in the analysis endpoint's 400 detail.
    Only ``error`` is guaranteed; the backend sends ``null`` for whatever
    a detector did not produce.
    """

    error: str = "Image fraud detected"
    fraud_type: str | None = None
    message: str = "This image appears to be downloaded from the internet"
    confidence_score: float | None = None
    detailed_reason: str | None = None
    web_matches: list[WebMatch] = Field(default_factory=list)

    model_config = {"extra": "allow"}

    @field_validator("web_matches", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("message", mode="before")
    @classmethod
    def default_message(cls, v: Any) -> Any:
        return v or "This image appears to be downloaded from the internet"

    @property
    def confidence_label(self) -> str:
        # A verdict without a score is treated as certain
        if not self.confidence_score:
            return "100%"
        return f"{self.confidence_score * 100:.0f}%"

    def summary_lines(self) -> list[str]:
        lines = []
        if self.detailed_reason:
            lines.append(self.detailed_reason)
        lines.append(f"Confidence: {self.confidence_label}")
        if self.web_matches:
            lines.append(f"Found {len(self.web_matches)} web match(es)")
        for match in self.web_matches[:MAX_SHOWN_MATCHES]:
            if match.score is None:
                lines.append(match.label)
            else:
                lines.append(f"{match.label} ({match.score * 100:.0f}% confidence)")
        return lines
