"""
Collector workload panel and location updates.
"""
from __future__ import annotations

import logging
from typing import Any

from zerobin.clients.zerobin_api import ZeroBinClient
from zerobin.core.exceptions import ZeroBinException
from zerobin.schemas.collector import LocationUpdate, Workload
from zerobin.schemas.quest import LatLng
from zerobin.services.geolocation import Locator, locate, parse_coordinates
from zerobin.state.feedback import FeedbackChannel

logger = logging.getLogger(__name__)


class CollectorWorkloadPanel:

    def __init__(
        self,
        client: ZeroBinClient,
        feedback: FeedbackChannel | None = None,
        *,
        locator: Locator | None = None,
    ) -> None:
        self.client = client
        self.feedback = feedback or FeedbackChannel()
        self.locator = locator
        self.workload: Workload | None = None
        self.error: str | None = None
        self.form_error: str | None = None
        self.submitting = False

    async def load(self) -> Workload | None:
        self.client.session.require_token()
        self.error = None
        try:
            self.workload = await self.client.get_workload()
        except ZeroBinException as exc:
            self.error = exc.detail or "Failed to fetch workload"
            logger.warning("Workload load failed: %s", self.error)
        return self.workload

    async def use_device_location(self) -> LatLng | None:
        self.form_error = None
        try:
            return await locate(self.locator)
        except ZeroBinException as exc:
            self.form_error = exc.detail
            return None

    async def update_location(self, latitude: Any, longitude: Any) -> bool:
        """Send the collector's position; returns whether the server accepted it."""
        self.form_error = None
        try:
            point = parse_coordinates(latitude, longitude)
        except ZeroBinException as exc:
            self.form_error = exc.detail
            return False

        self.submitting = True
        try:
            await self.client.update_location(LocationUpdate(**point.model_dump()))
        except ZeroBinException as exc:
            self.form_error = exc.detail or "Failed to update location"
            self.feedback.error(self.form_error)
            return False
        finally:
            self.submitting = False
        self.feedback.success("Location updated")
        return True
