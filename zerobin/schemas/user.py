"""
User Pydantic schemas.
Only the public summary embedded in other records and the session user are modelled.
"""
from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel

UserType = Literal["citizen", "collector", "kabadiwala", "admin"]


class GeoPoint(BaseModel):
    """GeoJSON point; coordinates are ``[longitude, latitude]``."""

    type: str = "Point"
    coordinates: tuple[float, float]

    @property
    def longitude(self) -> float:
        return self.coordinates[0]

    @property
    def latitude(self) -> float:
        return self.coordinates[1]


class UserSummary(BaseModel):
    id: str
    full_name: str
    user_type: str
    reputation_score: float = 0
    is_sponsor: bool = False


class SessionUser(BaseModel):
    id: str
    email: str
    full_name: str
    phone_number: str | None = None
    user_type: UserType
    is_active: bool = True
    is_verified: bool = False
    is_sponsor: bool = False
    reputation_score: float = 0
    total_transactions: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
    location: GeoPoint | None = None
