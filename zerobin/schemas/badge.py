"""
Badge and reputation schemas.
"""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


def badge_label(badge_type: str) -> str:
    return " ".join(word.capitalize() for word in badge_type.split("_"))


class Badge(BaseModel):
    id: str
    user_id: str
    badge_type: str
    awarded_at: datetime

    @property
    def label(self) -> str:
        return badge_label(self.badge_type)


class UserBadges(BaseModel):
    user_id: str
    full_name: str = ""
    user_type: str = ""
    reputation_score: float = 0
    total_transactions: int = 0
    badges: list[Badge] = []


class BadgeCriterion(BaseModel):
    description: str
    type: str


BadgeCriteria = dict[str, BadgeCriterion]
