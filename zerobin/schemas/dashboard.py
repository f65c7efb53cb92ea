"""
Dashboard aggregate schemas (admin analytics, heatmap, leaderboard, e-waste analytics).
"""
from __future__ import annotations

from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

from zerobin.schemas.user import UserSummary

T = TypeVar("T")


class Analytics(BaseModel):
    total_users: int
    total_collectors: int
    total_kabadiwalas: int
    total_quests: int
    quests_completed: int
    quests_pending: int
    total_listings: int
    listings_active: int
    total_transactions_value: float
    total_waste_collected_kg: float

    @property
    def completion_rate(self) -> float:
        if self.total_quests == 0:
            return 0.0
        return self.quests_completed / self.total_quests


class HeatmapPoint(BaseModel):
    id: str
    latitude: float
    longitude: float
    waste_type: str
    severity: str
    status: str
    created_at: datetime


class LeaderboardEntry(BaseModel):
    rank: int
    user: UserSummary
    quests_completed: int = 0
    total_bounty_earned: int = 0
    badges_count: int = 0

    @property
    def initials(self) -> str:
        return "".join(part[0] for part in self.user.full_name.split() if part).upper()[:2]


class RecentListing(BaseModel):
    id: str
    device_type: str
    device_name: str
    condition: str
    estimated_value_min: float
    estimated_value_max: float
    status: str
    created_at: datetime


class EWasteAnalytics(BaseModel):
    total_listings: int
    active_listings: int
    completed_listings: int
    device_type_breakdown: dict[str, int] = Field(default_factory=dict)
    total_estimated_value_min: float
    total_estimated_value_max: float
    total_realized_value: float
    average_listing_value: float
    recent_listings: list[RecentListing] = Field(default_factory=list)


# ── Views served by the dashboard routes ──────────────────────────────────────

class DashboardSection(BaseModel, Generic[T]):
    """A dashboard dataset plus whether it is live or the fallback copy."""

    data: T
    is_fallback: bool = False
    error: str | None = None


class AdminOverview(BaseModel):
    analytics: DashboardSection[Analytics]
    heatmap: DashboardSection[list[HeatmapPoint]]
    leaderboard: DashboardSection[list[LeaderboardEntry]]
