"""
Collector workload and location schemas.
"""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

from zerobin.schemas.quest import LatLng

CollectorStatus = Literal["available", "busy", "offline"]
FraudRiskTier = Literal["low", "medium", "high"]


class Workload(BaseModel):
    active_quests: int
    max_concurrent: int
    capacity_remaining: int
    completed_last_week: int = 0
    status: str
    fraud_risk_score: float = 0

    @property
    def fraud_risk_tier(self) -> FraudRiskTier:
        if self.fraud_risk_score < 0.3:
            return "low"
        if self.fraud_risk_score < 0.6:
            return "medium"
        return "high"

    @property
    def utilisation(self) -> float:
        """Fraction of concurrent capacity in use, clamped to ``[0, 1]``."""
        if self.max_concurrent <= 0:
            return 1.0
        return min(1.0, max(0.0, self.active_quests / self.max_concurrent))


class LocationUpdate(LatLng):
    pass
