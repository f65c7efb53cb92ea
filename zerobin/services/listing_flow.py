"""
E-waste listing submission flow.
Several photos are uploaded one after another with per-file progress; the
first one is analysed to pre-fill the form. Analysis is advisory: a failure
only asks the user to fill the details in by hand.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, Field

from zerobin.clients.image_host import ImageFile, ImageHostClient
from zerobin.clients.zerobin_api import ZeroBinClient
from zerobin.core.exceptions import ZeroBinException
from zerobin.schemas.listing import (
    CONDITIONS,
    DEVICE_TYPES,
    Condition,
    DeviceType,
    Listing,
    ListingAnalysis,
    ListingCreate,
    UsagePattern,
)
from zerobin.schemas.quest import LatLng
from zerobin.services.geolocation import Locator, locate, parse_coordinates
from zerobin.state.feedback import FeedbackChannel

logger = logging.getLogger(__name__)

MY_LISTINGS_PATH = "/user/my-listings"


class ListingForm(BaseModel):
    device_name: str = ""
    device_type: DeviceType = "laptop"
    condition: Condition = "working"
    description: str = ""
    latitude: float | None = None
    longitude: float | None = None

    # Advanced fields for the price model
    brand: str = ""
    build_quality: int | None = Field(default=5, ge=1, le=10)
    original_price: float | None = None
    usage_pattern: UsagePattern | None = "Moderate"
    used_duration: float | None = None
    user_lifespan: float | None = None
    expiry_years: float | None = None

    model_config = {"validate_assignment": True}

    @property
    def location(self) -> LatLng | None:
        if self.latitude is None or self.longitude is None:
            return None
        return LatLng(latitude=self.latitude, longitude=self.longitude)

    def apply_analysis(self, analysis: ListingAnalysis) -> None:
        """Fill empty text fields and accept recognised type/condition values."""
        if not self.device_name and analysis.device_name:
            self.device_name = analysis.device_name
        if analysis.device_type and analysis.device_type.lower() in DEVICE_TYPES:
            self.device_type = analysis.device_type.lower()  # type: ignore[assignment]
        if analysis.condition and analysis.condition.lower() in CONDITIONS:
            self.condition = analysis.condition.lower()  # type: ignore[assignment]
        if not self.description and analysis.condition_notes:
            self.description = analysis.condition_notes


class ListingSubmissionFlow:

    def __init__(
        self,
        client: ZeroBinClient,
        uploader: ImageHostClient,
        feedback: FeedbackChannel | None = None,
        *,
        locator: Locator | None = None,
    ) -> None:
        self.client = client
        self.uploader = uploader
        self.feedback = feedback or FeedbackChannel()
        self.locator = locator
        self.form = ListingForm()

        self.files: list[ImageFile] = []
        self.previews: list[str] = []
        self.progress: list[int] = []
        self.image_urls: list[str] = []
        self.analysis: ListingAnalysis | None = None

        self.uploading = False
        self.analyzing = False
        self.submitting = False
        self.message: str | None = None
        self.created: Listing | None = None
        self.redirect_to: str | None = None

    # ── Images ────────────────────────────────────────────────────────────────

    def add_images(self, images: list[ImageFile]) -> None:
        for image in images:
            self.files.append(image)
            self.previews.append(image.preview_data_url())
            self.progress.append(0)

    def remove_image(self, index: int) -> None:
        del self.files[index]
        del self.previews[index]
        del self.progress[index]
        if index < len(self.image_urls):
            del self.image_urls[index]

    def _progress_for(self, index: int) -> Callable[[int], None]:
        def update(percent: int) -> None:
            self.progress[index] = percent
        return update

    async def upload_all(self) -> list[str]:
        """Upload every selected file in order, then analyse the first one."""
        if not self.files:
            return []
        self.uploading = True
        self.message = None
        urls: list[str] = []
        try:
            for index, image in enumerate(self.files):
                urls.append(await self.uploader.upload(image, self._progress_for(index)))
        except ZeroBinException as exc:
            self.message = exc.detail or "Failed to upload images"
            raise
        finally:
            self.uploading = False

        self.image_urls = urls
        self.message = "Images uploaded successfully."
        if self.analysis is None:
            await self.analyze(urls[0])
        return urls

    async def analyze(self, image_url: str) -> ListingAnalysis | None:
        self.analyzing = True
        try:
            analysis = await self.client.analyze_listing(image_url, self.form.description)
        except ZeroBinException as exc:
            logger.warning("Listing analysis failed: %s", exc.detail)
            self.message = "AI analysis failed. Please fill in the details manually."
            return None
        finally:
            self.analyzing = False
        self.analysis = analysis
        self.form.apply_analysis(analysis)
        return analysis

    # ── Location ──────────────────────────────────────────────────────────────

    def set_location(self, latitude: Any, longitude: Any) -> None:
        point = parse_coordinates(latitude, longitude)
        self.form.latitude = point.latitude
        self.form.longitude = point.longitude
        self.message = f"Location set: {point.latitude:.4f}, {point.longitude:.4f}"

    async def use_device_location(self) -> LatLng | None:
        self.message = None
        try:
            point = await locate(self.locator)
        except ZeroBinException as exc:
            self.message = exc.detail
            return None
        self.form.latitude = point.latitude
        self.form.longitude = point.longitude
        self.message = "Location set successfully!"
        return point

    # ── Submit ────────────────────────────────────────────────────────────────

    def build_payload(self, image_urls: list[str]) -> ListingCreate:
        form = self.form
        return ListingCreate(
            condition=form.condition,
            description=form.description,
            device_name=form.device_name,
            device_type=form.device_type,
            image_urls=image_urls,
            location=form.location,
            brand=form.brand or None,
            build_quality=form.build_quality or None,
            original_price=form.original_price,
            usage_pattern=form.usage_pattern or None,
            used_duration=form.used_duration,
            user_lifespan=form.user_lifespan,
            expiry_years=form.expiry_years,
        )

    async def submit(self) -> Listing | None:
        self.message = None
        if not self.form.device_name or not self.form.description:
            self.message = "Please fill in device name and description."
            return None
        if self.form.location is None:
            self.message = "Please provide location (use the button to take your location)."
            return None
        if not self.client.session.is_authenticated:
            self.message = "You must be logged in to create a listing. Please login first."
            return None

        self.submitting = True
        try:
            urls = self.image_urls
            if self.files and len(urls) != len(self.files):
                urls = await self.upload_all()
            if not urls:
                self.message = "Please upload at least one image."
                return None
            created = await self.client.create_listing(self.build_payload(urls))
        except ZeroBinException as exc:
            self.message = f"Error: {exc.detail or 'Failed to create listing'}"
            logger.warning("Listing creation failed: %s", self.message)
            return None
        finally:
            self.submitting = False

        self.created = created
        self.message = "Listing created successfully. Redirecting..."
        self.feedback.success("Listing created successfully")
        self.redirect_to = MY_LISTINGS_PATH
        return created
