"""
Admin review queue, complaint desk and collector workload tests.
"""
from __future__ import annotations

import pytest

from zerobin.clients.sentiment import SentimentClient
from zerobin.clients.zerobin_api import ZeroBinClient
from zerobin.core.exceptions import ValidationFailedError
from zerobin.schemas.quest import LatLng
from zerobin.services.collector_service import CollectorWorkloadPanel
from zerobin.services.complaint_service import ComplaintDesk, detect_language
from zerobin.services.geolocation import INVALID_COORDINATES
from zerobin.services.review_service import ReviewQueue
from zerobin.state.feedback import FeedbackChannel

from conftest import Upstream

pytestmark = pytest.mark.asyncio


def _review(review_id: str, status: str = "pending", score: float = 0.3) -> dict:
    return {
        "id": review_id,
        "quest_id": f"quest-{review_id}",
        "flag_reason": "low_ai_confidence",
        "ai_confidence_score": score,
        "status": status,
        "ai_notes": "Blurry after photo",
        "created_at": "2025-12-02T10:00:00",
    }


class TestReviewQueue:
    async def test_load_and_filter(self, api: ZeroBinClient, upstream: Upstream) -> None:
        upstream.on(
            "GET",
            "/admin/reviews",
            json_body={
                "items": [_review("r-1"), _review("r-2", "approved", 0.7), _review("r-3", "pending", 0.1)],
                "total": 3,
                "pending_count": 2,
            },
        )
        queue = ReviewQueue(api)
        await queue.load()

        assert queue.pending_count == 2
        assert queue.low_confidence_count() == 2
        assert len(queue.visible) == 3
        queue.status_filter = "approved"
        assert [r.id for r in queue.visible] == ["r-2"]
        assert queue.store.get("r-1").flag_reason_label == "Low Ai Confidence"

    async def test_load_failure_toast(
        self, api: ZeroBinClient, upstream: Upstream, feedback: FeedbackChannel
    ) -> None:
        upstream.on("GET", "/admin/reviews", status=403, json_body={"detail": "Admins only"})
        queue = ReviewQueue(api, feedback)

        assert await queue.load() == []
        assert feedback.errors[-1].message == "Failed to load flagged reviews: Admins only"

    async def test_submit_review(
        self, api: ZeroBinClient, upstream: Upstream, feedback: FeedbackChannel
    ) -> None:
        upstream.on("POST", "/admin/reviews", json_body=_review("r-9"))
        queue = ReviewQueue(api, feedback)

        review = await queue.submit_review("quest-r-9", "Photo looks reused", flag_reason="suspicious_activity")

        assert review is not None
        assert upstream.last_json("POST", "/admin/reviews") == {
            "quest_id": "quest-r-9",
            "ai_confidence_score": 0.5,
            "ai_notes": "Photo looks reused",
            "flag_reason": "suspicious_activity",
        }
        assert feedback.last.message == "Review submitted successfully!"

    async def test_notes_required(
        self, api: ZeroBinClient, upstream: Upstream, feedback: FeedbackChannel
    ) -> None:
        queue = ReviewQueue(api, feedback)
        with pytest.raises(ValidationFailedError):
            await queue.submit_review("quest-1", "  ")
        assert feedback.errors[-1].message == "Please enter AI notes"
        assert upstream.requests("POST", "/admin/reviews") == []


class TestComplaintDesk:
    async def test_detect_language(self) -> None:
        assert detect_language("রাস্তায় ময়লা") == "bn"
        assert detect_language("Trash on the road") == "en"

    async def test_analyze_and_submit(
        self, api: ZeroBinClient, sentiment: SentimentClient, upstream: Upstream
    ) -> None:
        upstream.on(
            "POST",
            "/inference",
            json_body=[[
                {"label": "negative", "score": 0.62},
                {"label": "neutral", "score": 0.3},
                {"label": "positive", "score": 0.08},
            ]],
        )
        upstream.on("POST", "/complaints", json_body={"id": "c-1"})
        upstream.on("GET", "/complaints", json_body=[{"id": "c-1", "text": "Trash everywhere"}])
        desk = ComplaintDesk(api, sentiment)
        desk.set_text("Trash everywhere")
        assert not desk.can_submit

        result = await desk.analyze()

        assert result is not None and result.sentiment == "negative"
        assert desk.severity == "medium"
        assert await desk.submit()
        assert upstream.last_json("POST", "/complaints") == {
            "text": "Trash everywhere",
            "language": "en",
            "sentiment": "negative",
            "confidence": 0.62,
            "severity": "medium",
        }
        assert desk.text == "" and desk.result is None
        assert [c.id for c in desk.complaints] == ["c-1"]

    async def test_bangla_defaults(
        self, api: ZeroBinClient, sentiment: SentimentClient, upstream: Upstream
    ) -> None:
        upstream.on("POST", "/predict", json_body={"text": "ময়লা"})
        desk = ComplaintDesk(api, sentiment)
        desk.set_text("ময়লা")

        result = await desk.analyze()

        assert desk.language == "bn"
        assert result.sentiment == "neutral"
        assert result.confidence == 0
        assert desk.severity == "low"

    async def test_analysis_failure(
        self, api: ZeroBinClient, sentiment: SentimentClient, upstream: Upstream
    ) -> None:
        upstream.on("POST", "/inference", status=500, text="overloaded")
        desk = ComplaintDesk(api, sentiment)
        desk.set_text("Dirty drain")

        assert await desk.analyze() is None
        assert desk.error == "HF API error"
        assert not desk.can_submit


class TestCollectorWorkload:
    async def test_load(self, api: ZeroBinClient, upstream: Upstream) -> None:
        upstream.on(
            "GET",
            "/collectors/me/workload",
            json_body={
                "active_quests": 2,
                "max_concurrent": 5,
                "capacity_remaining": 3,
                "completed_last_week": 7,
                "status": "available",
                "fraud_risk_score": 0.45,
            },
        )
        panel = CollectorWorkloadPanel(api)
        workload = await panel.load()

        assert workload.utilisation == 0.4
        assert workload.fraud_risk_tier == "medium"

    async def test_load_failure(self, api: ZeroBinClient, upstream: Upstream) -> None:
        upstream.on("GET", "/collectors/me/workload", status=500, json_body={})
        panel = CollectorWorkloadPanel(api)
        assert await panel.load() is None
        assert panel.error == "HTTP 500"

    async def test_update_location(
        self, api: ZeroBinClient, upstream: Upstream, feedback: FeedbackChannel
    ) -> None:
        upstream.on("PATCH", "/collectors/me/location", json_body={"message": "Location updated"})
        panel = CollectorWorkloadPanel(api, feedback)

        assert await panel.update_location("23.81", "90.41")
        assert upstream.last_json("PATCH", "/collectors/me/location") == {"latitude": 23.81, "longitude": 90.41}
        assert feedback.last.message == "Location updated"

    async def test_invalid_location_not_sent(self, api: ZeroBinClient, upstream: Upstream) -> None:
        panel = CollectorWorkloadPanel(api)
        assert not await panel.update_location("abc", 90)
        assert panel.form_error == INVALID_COORDINATES
        assert upstream.requests("PATCH", "/collectors/me/location") == []

    async def test_device_location(self, api: ZeroBinClient) -> None:
        async def locator() -> LatLng:
            raise TimeoutError()

        panel = CollectorWorkloadPanel(api, locator=locator)
        assert await panel.use_device_location() is None
        assert panel.form_error == "Couldn't get location. Please allow location access."
