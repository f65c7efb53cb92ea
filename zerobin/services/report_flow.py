"""
Waste report submission flow.

State machine for the citizen's report page:

    idle -> image_selected -> uploading -> analyzed -> ready_to_submit
         -> submitting -> created | failed

``uploading`` may end in ``fraud_rejected`` when the analysis endpoint flags
the photo; all upload state is cleared and the flow must restart from
``idle``. ``failed`` is recoverable and returns to ``ready_to_submit``.
"""
from __future__ import annotations

import logging
from typing import Any, Literal

from pydantic import ValidationError

from zerobin.clients.image_host import ImageFile, ImageHostClient
from zerobin.clients.zerobin_api import ZeroBinClient
from zerobin.core.exceptions import (
    FraudDetectedError,
    InvalidTransitionError,
    ZeroBinException,
)
from zerobin.schemas.quest import FraudDetails, ImageAnalysis, LatLng, Quest, QuestCreate
from zerobin.services.geolocation import DEFAULT_LOCATION, Locator, locate, parse_coordinates
from zerobin.state.feedback import FeedbackChannel

logger = logging.getLogger(__name__)

ReportState = Literal[
    "idle",
    "image_selected",
    "uploading",
    "analyzed",
    "fraud_rejected",
    "ready_to_submit",
    "submitting",
    "created",
    "failed",
]

TRANSITIONS: dict[str, frozenset[str]] = {
    "idle": frozenset({"image_selected"}),
    "image_selected": frozenset({"image_selected", "uploading", "idle"}),
    "uploading": frozenset({"analyzed", "fraud_rejected", "image_selected"}),
    "analyzed": frozenset({"ready_to_submit", "image_selected", "idle"}),
    "fraud_rejected": frozenset({"idle"}),
    "ready_to_submit": frozenset({"analyzed", "submitting", "image_selected", "idle"}),
    "submitting": frozenset({"created", "failed"}),
    "failed": frozenset({"ready_to_submit"}),
    "created": frozenset({"idle"}),
}

REPORTS_PATH = "/user/showreports"
INCOMPLETE_MESSAGE = "Please complete upload, analysis, title, and location."
CREATED_MESSAGE = "Quest created successfully! 🎉"


def _fraud_details(details: dict[str, Any]) -> FraudDetails:
    # Malformed extras still reject the image
    try:
        return FraudDetails.model_validate(details)
    except ValidationError as exc:
        logger.warning("Unreadable fraud details, showing defaults: %s", exc)
        return FraudDetails()


class ReportSubmissionFlow:

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

        self.state: ReportState = "idle"
        self.history: list[ReportState] = ["idle"]

        self.image: ImageFile | None = None
        self.preview: str | None = None
        self.image_url: str | None = None
        self.upload_progress = 0
        self.analysis: ImageAnalysis | None = None
        self.fraud: FraudDetails | None = None

        self.title = ""
        self.location: LatLng | None = DEFAULT_LOCATION
        self.message: str | None = None
        self.created: Quest | None = None
        self.redirect_to: str | None = None

    # ── State machine ─────────────────────────────────────────────────────────

    def _move(self, target: ReportState, action: str) -> None:
        if target not in TRANSITIONS[self.state]:
            raise InvalidTransitionError(self.state, action)
        logger.debug("Report flow: %s -> %s", self.state, target)
        self.state = target
        self.history.append(target)

    @property
    def is_complete(self) -> bool:
        return bool(
            self.analysis is not None
            and self.image_url
            and self.title.strip()
            and self.location is not None
        )

    def _sync_ready(self) -> None:
        if self.state == "analyzed" and self.is_complete:
            self._move("ready_to_submit", "mark ready")
        elif self.state == "ready_to_submit" and not self.is_complete:
            self._move("analyzed", "edit form")

    def _clear_upload(self) -> None:
        self.image = None
        self.preview = None
        self.image_url = None
        self.upload_progress = 0
        self.analysis = None

    # ── Image ─────────────────────────────────────────────────────────────────

    def select_image(self, image: ImageFile) -> None:
        self._move("image_selected", "select an image")
        self.image = image
        self.preview = image.preview_data_url()
        self.image_url = None
        self.upload_progress = 0
        self.analysis = None
        self.message = None

    def clear_image(self) -> None:
        self._move("idle", "clear the image")
        self._clear_upload()

    def _on_progress(self, percent: int) -> None:
        self.upload_progress = percent

    async def upload_and_analyze(self) -> ImageAnalysis | None:
        """Upload the selected photo, then classify it. Returns the analysis, if any."""
        if self.image is None:
            raise InvalidTransitionError(self.state, "analyze without an image")
        self._move("uploading", "upload")
        self.message = None
        self.fraud = None

        try:
            self.image_url = await self.uploader.upload(self.image, self._on_progress)
            analysis = await self.client.analyze_quest_image(self.image_url)
        except FraudDetectedError as exc:
            self._reject_as_fraud(_fraud_details(exc.details))
            return None
        except ZeroBinException as exc:
            self.message = exc.detail or "Failed to analyze image"
            logger.warning("Report image analysis failed: %s", self.message)
            self._move("image_selected", "recover from a failed analysis")
            return None

        self.analysis = analysis
        self._move("analyzed", "store the analysis")
        self._sync_ready()
        return analysis

    def _reject_as_fraud(self, fraud: FraudDetails) -> None:
        self._clear_upload()
        self.fraud = fraud
        self.message = None
        self._move("fraud_rejected", "reject the image")
        self.feedback.modal(
            "Image Fraud Detected",
            fraud.message,
            lines=fraud.summary_lines(),
            data=fraud.model_dump(mode="json"),
        )

    def dismiss_fraud(self) -> None:
        self.fraud = None
        self._move("idle", "dismiss the fraud warning")

    # ── Form ──────────────────────────────────────────────────────────────────

    def set_title(self, title: str) -> None:
        self.title = title
        self._sync_ready()

    def set_location(self, latitude: Any, longitude: Any) -> None:
        self.location = parse_coordinates(latitude, longitude)
        self._sync_ready()

    def clear_location(self) -> None:
        self.location = None
        self._sync_ready()

    async def use_device_location(self) -> LatLng | None:
        self.message = None
        try:
            self.location = await locate(self.locator)
        except ZeroBinException as exc:
            self.message = exc.detail
            return None
        self._sync_ready()
        return self.location

    # ── Submit ────────────────────────────────────────────────────────────────

    async def submit(self) -> Quest | None:
        """Create the quest. Returns the created record (or ``None`` on failure)."""
        if self.state != "ready_to_submit" or not self.is_complete:
            self.feedback.error(INCOMPLETE_MESSAGE)
            return None

        payload = QuestCreate(
            description=self.analysis.description,
            image_url=self.image_url,
            location=self.location,
            severity=self.analysis.severity,
            title=self.title,
            waste_type=self.analysis.waste_type,
        )
        self._move("submitting", "submit")
        self.message = None
        try:
            created = await self.client.create_quest(payload)
        except ZeroBinException as exc:
            self.message = exc.detail or "Failed to create quest"
            self.feedback.error(self.message)
            self._move("failed", "record the failure")
            self._move("ready_to_submit", "retry")
            return None

        self.feedback.success(CREATED_MESSAGE)
        self._move("created", "finish")
        self.created = created
        self._clear_upload()
        self.title = ""
        self.redirect_to = REPORTS_PATH
        return created

    def start_over(self) -> None:
        self._move("idle", "start over")
        self.created = None
        self.redirect_to = None
