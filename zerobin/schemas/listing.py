"""
E-waste listing Pydantic schemas.
"""
from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from zerobin.schemas.pagination import Page
from zerobin.schemas.quest import LatLng

DeviceType = Literal["laptop", "mobile", "tablet", "desktop", "monitor", "other"]
Condition = Literal["working", "partially_working", "not_working"]
UsagePattern = Literal["Light", "Moderate", "Heavy"]

DEVICE_TYPES: frozenset[str] = frozenset(DeviceType.__args__)  # type: ignore[attr-defined]
CONDITIONS: frozenset[str] = frozenset(Condition.__args__)  # type: ignore[attr-defined]


class AIClassification(BaseModel):
    confidence_score: float = 0
    identified_components: list[str] = Field(default_factory=list)
    condition_notes: str | None = None


class Listing(BaseModel):
    id: str
    device_name: str
    device_type: str
    description: str = ""
    condition: str
    estimated_value_min: float = 0
    estimated_value_max: float = 0
    image_urls: list[str] = Field(default_factory=list)
    status: str
    seller_id: str
    buyer_id: str | None = None
    final_price: float | None = None
    created_at: datetime
    ai_classification: AIClassification | None = None


class ListingPage(Page[Listing]):
    pass


class ListingAnalysis(BaseModel):
    device_name: str | None = None
    device_type: str | None = None
    condition: str | None = None
    ai_description: str | None = None
    condition_notes: str | None = None
    estimated_value_min: float | None = None
    estimated_value_max: float | None = None
    confidence_score: float | None = None
    recycling_value_notes: str | None = None


class ListingCreate(BaseModel):
    condition: Condition
    description: str = Field(min_length=1)
    device_name: str = Field(min_length=1)
    device_type: DeviceType
    image_urls: list[str] = Field(min_length=1)
    location: LatLng

    # Optional inputs for the backend's price prediction model
    brand: str | None = None
    build_quality: int | None = Field(default=None, ge=1, le=10)
    original_price: float | None = None
    usage_pattern: UsagePattern | None = None
    used_duration: float | None = None
    user_lifespan: float | None = None
    expiry_years: float | None = None
