"""
E-waste listing tests.
Covers: multi-image upload with analysis autofill, submission validation,
payload shape, marketplace search, seller pickups.
"""
from __future__ import annotations

import pytest
import pytest_asyncio

from zerobin.clients.image_host import ImageFile, ImageHostClient
from zerobin.clients.zerobin_api import ZeroBinClient
from zerobin.core.exceptions import UnauthorizedException
from zerobin.core.session import ANONYMOUS, Session
from zerobin.services.listing_flow import MY_LISTINGS_PATH, ListingSubmissionFlow
from zerobin.services.listing_service import ListingsBrowser, MyListings, SellerPickups
from zerobin.state.feedback import FeedbackChannel

from conftest import Upstream
from payloads import bid_json, listing_json

pytestmark = pytest.mark.asyncio

ANALYSIS = {
    "device_name": "Dell XPS 13",
    "device_type": "Laptop",
    "condition": "Partially_Working",
    "condition_notes": "Hinge is loose, battery holds 2 hours",
    "estimated_value_min": 150,
    "estimated_value_max": 260,
    "confidence_score": 0.81,
}


@pytest_asyncio.fixture
async def flow(
    api: ZeroBinClient, uploader: ImageHostClient, image_host: Upstream, feedback: FeedbackChannel
) -> ListingSubmissionFlow:
    image_host.on("POST", "/listings/analyze", json_body=ANALYSIS)
    return ListingSubmissionFlow(api, uploader, feedback)


@pytest.fixture
def photos() -> list[ImageFile]:
    return [
        ImageFile(filename="front.jpg", content=b"f" * 16),
        ImageFile(filename="back.png", content=b"b" * 24, content_type="image/png"),
    ]


class TestListingFlow:
    async def test_upload_all_and_autofill(
        self, flow: ListingSubmissionFlow, upstream: Upstream, photos: list[ImageFile]
    ) -> None:
        flow.add_images(photos)

        urls = await flow.upload_all()

        assert len(urls) == 2
        assert flow.progress == [100, 100]
        assert len(upstream.requests("POST", "/v0/b/zerobin-test/o")) == 2
        assert upstream.last_json("POST", "/listings/analyze") == {"image_url": urls[0], "description": ""}
        assert flow.form.device_name == "Dell XPS 13"
        assert flow.form.device_type == "laptop"
        assert flow.form.condition == "partially_working"
        assert flow.form.description == "Hinge is loose, battery holds 2 hours"

    async def test_autofill_keeps_user_input(
        self, flow: ListingSubmissionFlow, photos: list[ImageFile]
    ) -> None:
        flow.form.device_name = "My old laptop"
        flow.form.description = "Works fine"
        flow.add_images(photos[:1])

        await flow.upload_all()

        assert flow.form.device_name == "My old laptop"
        assert flow.form.description == "Works fine"

    async def test_unknown_device_type_ignored(
        self, flow: ListingSubmissionFlow, upstream: Upstream, photos: list[ImageFile]
    ) -> None:
        upstream.on("POST", "/listings/analyze", json_body={**ANALYSIS, "device_type": "Toaster"})
        flow.add_images(photos[:1])
        await flow.upload_all()
        assert flow.form.device_type == "laptop"

    async def test_analysis_failure_is_advisory(
        self, flow: ListingSubmissionFlow, upstream: Upstream, photos: list[ImageFile]
    ) -> None:
        upstream.on("POST", "/listings/analyze", status=500, json_body={"detail": "Vision error"})
        flow.add_images(photos)

        urls = await flow.upload_all()

        assert len(urls) == 2
        assert flow.analysis is None
        assert flow.message == "AI analysis failed. Please fill in the details manually."

    async def test_remove_image(self, flow: ListingSubmissionFlow, photos: list[ImageFile]) -> None:
        flow.add_images(photos)
        flow.remove_image(0)
        assert [f.filename for f in flow.files] == ["back.png"]
        assert len(flow.previews) == 1 and len(flow.progress) == 1

    async def test_submit_payload(
        self,
        flow: ListingSubmissionFlow,
        upstream: Upstream,
        feedback: FeedbackChannel,
        photos: list[ImageFile],
    ) -> None:
        upstream.on("POST", "/listings", json_body=listing_json("listing-new"))
        flow.add_images(photos)
        await flow.upload_all()
        flow.set_location("23.7806", "90.4074")
        flow.form.original_price = 1200

        created = await flow.submit()

        assert created is not None and created.id == "listing-new"
        body = upstream.last_json("POST", "/listings")
        assert body["device_name"] == "Dell XPS 13"
        assert body["device_type"] == "laptop"
        assert body["condition"] == "partially_working"
        assert body["image_urls"] == flow.image_urls
        assert body["location"] == {"latitude": 23.7806, "longitude": 90.4074}
        assert body["build_quality"] == 5
        assert body["usage_pattern"] == "Moderate"
        assert body["original_price"] == 1200
        assert "brand" not in body
        assert flow.redirect_to == MY_LISTINGS_PATH
        assert flow.message == "Listing created successfully. Redirecting..."
        assert feedback.last.level == "success"

    async def test_submit_uploads_pending_images(
        self, flow: ListingSubmissionFlow, upstream: Upstream, photos: list[ImageFile]
    ) -> None:
        upstream.on("POST", "/listings", json_body=listing_json("listing-new"))
        flow.add_images(photos)
        flow.form.device_name = "Phone"
        flow.form.description = "Screen cracked"
        flow.set_location(23.78, 90.40)

        assert await flow.submit() is not None
        assert len(upstream.requests("POST", "/v0/b/zerobin-test/o")) == 2

    async def test_validation_messages(
        self, flow: ListingSubmissionFlow, upstream: Upstream
    ) -> None:
        assert await flow.submit() is None
        assert flow.message == "Please fill in device name and description."

        flow.form.device_name = "Phone"
        flow.form.description = "Screen cracked"
        assert await flow.submit() is None
        assert flow.message == "Please provide location (use the button to take your location)."

        flow.set_location(23.78, 90.40)
        assert await flow.submit() is None
        assert flow.message == "Please upload at least one image."
        assert upstream.requests("POST", "/listings") == []

    async def test_login_required(
        self, api: ZeroBinClient, uploader: ImageHostClient, photos: list[ImageFile]
    ) -> None:
        flow = ListingSubmissionFlow(api.with_session(ANONYMOUS), uploader)
        flow.form.device_name = "Phone"
        flow.form.description = "Screen cracked"
        flow.set_location(23.78, 90.40)

        assert await flow.submit() is None
        assert flow.message == "You must be logged in to create a listing. Please login first."

    async def test_server_error_message(
        self, flow: ListingSubmissionFlow, upstream: Upstream, photos: list[ImageFile]
    ) -> None:
        upstream.on("POST", "/listings", status=400, json_body={"detail": "Invalid device type"})
        flow.add_images(photos[:1])
        await flow.upload_all()
        flow.set_location(23.78, 90.40)

        assert await flow.submit() is None
        assert flow.message == "Error: Invalid device type"

    async def test_manual_location_message(self, flow: ListingSubmissionFlow) -> None:
        flow.set_location(23.780612, 90.407433)
        assert flow.message == "Location set: 23.7806, 90.4074"


class TestBrowse:
    async def test_search_by_name_or_type(self, api: ZeroBinClient, upstream: Upstream) -> None:
        upstream.on(
            "GET",
            "/listings",
            json_body={
                "items": [
                    listing_json("l-1"),
                    listing_json("l-2", device_name="ThinkPad T480", device_type="laptop"),
                    listing_json("l-3", device_name="Galaxy Tab", device_type="tablet"),
                ]
            },
        )
        browser = ListingsBrowser(api)
        await browser.load()

        assert upstream.requests("GET", "/listings")[0].url.params["status_filter"] == "listed"
        assert [item.id for item in browser.search("LAPTOP")] == ["l-2"]
        assert [item.id for item in browser.search("iphone")] == ["l-1"]
        assert len(browser.search("  ")) == 3

    async def test_my_listings_requires_login(self, api: ZeroBinClient) -> None:
        with pytest.raises(UnauthorizedException):
            await MyListings(api.with_session(ANONYMOUS)).load()

    async def test_my_listings(self, api: ZeroBinClient, upstream: Upstream) -> None:
        upstream.on("GET", "/listings/my", json_body={"items": [listing_json("l-1")], "total": 1})
        listings = MyListings(api.with_session(Session(token="seller-token")))
        assert [item.id for item in await listings.load()] == ["l-1"]
        assert upstream.requests("GET", "/listings/my")[0].headers["Authorization"] == "Bearer seller-token"


class TestSellerPickups:
    async def test_pickups_grouped_with_bids(self, api: ZeroBinClient, upstream: Upstream) -> None:
        upstream.on(
            "GET",
            "/listings/my",
            json_body={
                "items": [
                    listing_json("l-1", "accepted"),
                    listing_json("l-2", "listed"),
                    listing_json("l-3", "picked_up"),
                ]
            },
        )
        upstream.on("GET", "/bids/listing/l-1", json_body=[bid_json("b-1", "l-1", "accepted")])
        upstream.on("GET", "/bids/listing/l-3", status=500, json_body={"detail": "boom"})
        pickups = SellerPickups(api)

        entries = await pickups.load()

        assert [entry.listing.id for entry in entries] == ["l-1", "l-3"]
        assert entries[0].accepted_bid.id == "b-1"
        assert entries[1].bids == []
        assert pickups.counts() == {"accepted": 1, "picked_up": 1}
