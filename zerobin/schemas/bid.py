"""
Bid Pydantic schemas, including pickup QR and weight confirmation payloads.
"""
from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

BidStatus = Literal["pending", "accepted", "rejected", "withdrawn"]


class Bid(BaseModel):
    id: str
    listing_id: str
    kabadiwala_id: str
    offered_price: float
    pickup_time_estimate: str
    message: str | None = None
    status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class BidCreate(BaseModel):
    listing_id: str
    offered_price: float = Field(gt=0)
    pickup_time_estimate: str
    message: str | None = None

    @classmethod
    def for_hours(
        cls,
        listing_id: str,
        offered_price: float,
        hours: int,
        message: str | None = None,
    ) -> "BidCreate":
        return cls(
            listing_id=listing_id,
            offered_price=offered_price,
            pickup_time_estimate=f"{hours} hours",
            message=message or None,
        )


class PickupQR(BaseModel):
    qr_code_url: str
    qr_data: str


class WeightConfirmation(BaseModel):
    qr_data: str
    weight_kg: float = Field(gt=0)

    @staticmethod
    def transaction_qr(bid_id: str, listing_id: str, amount: float = 0) -> str:
        return f"transaction:{bid_id}:{listing_id}:{amount:g}:confirm"


class WeightConfirmed(BaseModel):
    weight_kg: float

    model_config = {"extra": "allow"}


class WeightValidationDetail(BaseModel):
    error: str | None = None
    message: str = "Weight validation failed"
    entered_weight: float
    typical_weight: float | None = None
    max_expected_weight: float | None = None
    suggestion: str | None = None

    def summary_lines(self) -> list[str]:
        lines = [f"Entered Weight: {self.entered_weight} kg"]
        if self.typical_weight is not None:
            lines.append(f"Typical Weight: {self.typical_weight} kg")
        if self.max_expected_weight is not None:
            lines.append(f"Max Expected Weight: {self.max_expected_weight} kg")
        if self.suggestion:
            lines.append(self.suggestion)
        return lines
