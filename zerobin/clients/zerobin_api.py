"""
Async client for the external ZeroBin REST API.

Every call goes through ``ZeroBinClient.request``, which attaches the common
headers, turns transport failures, non-success statuses and non-JSON bodies
into ``ZeroBinException`` subclasses, and returns the decoded JSON body.
The typed endpoint methods below validate that body into pydantic models.
"""
from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from zerobin.core.config import Settings, settings
from zerobin.core.exceptions import (
    ApiError,
    FraudDetectedError,
    MalformedResponseError,
    NetworkError,
    NonJsonResponseError,
    WeightValidationError,
)
from zerobin.core.session import ANONYMOUS, Session
from zerobin.schemas.badge import BadgeCriteria, UserBadges
from zerobin.schemas.bid import (
    Bid,
    BidCreate,
    PickupQR,
    WeightConfirmation,
    WeightConfirmed,
)
from zerobin.schemas.chat import Chat, ChatCreate, ChatMessage, DealConfirmation, MessageCreate
from zerobin.schemas.collector import LocationUpdate, Workload
from zerobin.schemas.complaint import Complaint, ComplaintCreate
from zerobin.schemas.dashboard import (
    Analytics,
    EWasteAnalytics,
    HeatmapPoint,
    LeaderboardEntry,
)
from zerobin.schemas.listing import Listing, ListingAnalysis, ListingCreate, ListingPage
from zerobin.schemas.notification import Notification, NotificationPage
from zerobin.schemas.quest import ImageAnalysis, Quest, QuestCompletion, QuestCreate, QuestPage
from zerobin.schemas.review import Review, ReviewCreate, ReviewPage

logger = logging.getLogger(__name__)

FRAUD_ERROR = "Image fraud detected"
TUNNEL_HEADER = "ngrok-skip-browser-warning"


def extract_error_message(body: Any, status_code: int) -> str:
    """
    Pick the most human-readable message out of an error body.
    Understands ``{"message"}``, ``{"detail": str}``, ``{"detail": {"message"}}``
    and FastAPI validation arrays; falls back to body text, then ``HTTP {status}``.
    """
    if isinstance(body, dict):
        for key in ("message", "detail", "error"):
            candidate = body.get(key)
            if isinstance(candidate, str) and candidate.strip():
                return candidate
            if isinstance(candidate, dict) and isinstance(candidate.get("message"), str):
                return candidate["message"]
            if isinstance(candidate, list) and candidate:
                return ", ".join(_format_validation_item(item) for item in candidate)
    elif isinstance(body, str) and body.strip():
        return body.strip()[:200]
    return f"HTTP {status_code}"


def _format_validation_item(item: Any) -> str:
    if isinstance(item, dict):
        loc = ".".join(str(part) for part in item.get("loc", []))
        msg = item.get("msg", "")
        return f"{loc}: {msg}" if loc else str(msg)
    return str(item)


def _parse(adapter_type: Any, body: Any, resource: str) -> Any:
    try:
        return TypeAdapter(adapter_type).validate_python(body)
    except ValidationError as exc:
        logger.error("Malformed %s response: %s", resource, exc)
        raise MalformedResponseError(resource, details=exc.errors()) from exc


def _dump(payload: BaseModel) -> dict[str, Any]:
    return payload.model_dump(mode="json", exclude_none=True)


class ZeroBinClient:
    """
    Thin wrapper around a shared ``httpx.AsyncClient``.
    The session is bound per client instance; ``with_session`` returns a new
    view over the same connection pool.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        base_url: str | None = None,
        session: Session | None = None,
        send_tunnel_header: bool | None = None,
    ) -> None:
        self._http = http
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.session = session or ANONYMOUS
        self.send_tunnel_header = (
            settings.SEND_TUNNEL_HEADER if send_tunnel_header is None else send_tunnel_header
        )

    @classmethod
    def create(cls, config: Settings = settings, session: Session | None = None) -> "ZeroBinClient":
        http = httpx.AsyncClient(timeout=config.REQUEST_TIMEOUT_SECONDS)
        return cls(
            http,
            base_url=config.API_BASE_URL,
            session=session,
            send_tunnel_header=config.SEND_TUNNEL_HEADER,
        )

    def with_session(self, session: Session) -> "ZeroBinClient":
        return ZeroBinClient(
            self._http,
            base_url=self.base_url,
            session=session,
            send_tunnel_header=self.send_tunnel_header,
        )

    @property
    def http(self) -> httpx.AsyncClient:
        return self._http

    async def aclose(self) -> None:
        await self._http.aclose()

    # ── Transport ─────────────────────────────────────────────────────────────

    def _headers(self, auth: bool) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.send_tunnel_header:
            headers[TUNNEL_HEADER] = "true"
        if auth and self.session.token:
            headers["Authorization"] = f"Bearer {self.session.token}"
        return headers

    async def request(
        self,
        method: str,
        path: str,
        *,
        auth: bool = True,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """Send a request and return its decoded JSON body (``None`` for empty bodies)."""
        url = path if path.startswith("http") else f"{self.base_url}{path}"
        logger.debug("API request: %s %s auth=%s", method, url, auth and self.session.is_authenticated)
        try:
            response = await self._http.request(
                method,
                url,
                params=params,
                json=json,
                headers=self._headers(auth),
            )
        except httpx.TransportError as exc:
            logger.error("Network error on %s %s: %r", method, url, exc)
            raise NetworkError(str(exc) or "Network error - please check your connection") from exc

        logger.debug("API response: %s %s -> %s", method, url, response.status_code)
        return self._decode(response)

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        content_type = response.headers.get("content-type", "")
        text = response.text
        is_json = "application/json" in content_type

        body: Any = text
        if is_json and text.strip():
            try:
                body = response.json()
            except ValueError:
                body = text
                is_json = False

        if not response.is_success:
            message = extract_error_message(body, response.status_code)
            logger.warning("API error %s: %s", response.status_code, message)
            raise ApiError(response.status_code, message, details=body)

        if not text.strip():
            return None
        if not is_json:
            raise NonJsonResponseError(response.status_code, text)
        return body

    async def get(self, path: str, *, params: dict[str, Any] | None = None, auth: bool = True) -> Any:
        return await self.request("GET", path, params=params, auth=auth)

    # ── Quests ────────────────────────────────────────────────────────────────

    async def list_quests(self, *, skip: int = 0, limit: int = 100) -> QuestPage:
        body = await self.get("/quests", params={"skip": skip, "limit": limit})
        return _parse(QuestPage, body, "quests")

    async def create_quest(self, quest_in: QuestCreate) -> Quest | None:
        body = await self.request("POST", "/quests", json=_dump(quest_in))
        return _parse(Quest, body, "quest") if body else None

    async def analyze_quest_image(self, image_url: str) -> ImageAnalysis:
        """Classify an uploaded photo; raises ``FraudDetectedError`` on a fraud verdict."""
        try:
            body = await self.request(
                "POST", "/quests/analyze-image", json={"image_url": image_url}
            )
        except ApiError as exc:
            detail = exc.details.get("detail") if isinstance(exc.details, dict) else None
            if exc.status_code == 400 and isinstance(detail, dict) and detail.get("error") == FRAUD_ERROR:
                logger.info("Image rejected as fraudulent: %s", detail.get("fraud_type"))
                raise FraudDetectedError(detail) from exc
            raise
        return _parse(ImageAnalysis, body, "image analysis")

    async def complete_quest(self, quest_id: str, completion: QuestCompletion) -> Quest | None:
        body = await self.request(
            "POST", f"/quests/{quest_id}/complete", json=_dump(completion)
        )
        return _parse(Quest, body, "quest") if body else None

    # ── Collectors ────────────────────────────────────────────────────────────

    async def list_assigned_quests(
        self, *, skip: int = 0, limit: int = 100, status_filter: str | None = None
    ) -> QuestPage:
        params: dict[str, Any] = {"skip": skip, "limit": limit}
        if status_filter:
            params["status_filter"] = status_filter
        body = await self.get("/collectors/me/quests", params=params)
        return _parse(QuestPage, body, "assigned quests")

    async def get_workload(self) -> Workload:
        body = await self.get("/collectors/me/workload")
        return _parse(Workload, body, "workload")

    async def update_location(self, location: LocationUpdate) -> Any:
        return await self.request("PATCH", "/collectors/me/location", json=_dump(location))

    # ── Notifications ─────────────────────────────────────────────────────────

    async def list_notifications(
        self, *, skip: int = 0, limit: int = 20, unread_only: bool = False
    ) -> NotificationPage:
        body = await self.get(
            "/notifications",
            params={"skip": skip, "limit": limit, "unread_only": str(unread_only).lower()},
        )
        return _parse(NotificationPage, body, "notifications")

    async def mark_notification_read(self, notification_id: str) -> Notification | None:
        body = await self.request("PATCH", f"/notifications/{notification_id}/read")
        if isinstance(body, dict) and "id" in body:
            return _parse(Notification, body, "notification")
        return None

    # ── Admin reviews ─────────────────────────────────────────────────────────

    async def list_reviews(self, *, skip: int = 0, limit: int = 50) -> ReviewPage:
        body = await self.get("/admin/reviews", params={"skip": skip, "limit": limit})
        return _parse(ReviewPage, body, "reviews")

    async def create_review(self, review_in: ReviewCreate) -> Review | None:
        body = await self.request("POST", "/admin/reviews", json=_dump(review_in))
        return _parse(Review, body, "review") if body else None

    # ── Dashboards ────────────────────────────────────────────────────────────

    async def get_analytics(self) -> Analytics:
        return _parse(Analytics, await self.get("/dashboard/analytics"), "analytics")

    async def get_heatmap(self, *, limit: int = 500) -> list[HeatmapPoint]:
        body = await self.get("/dashboard/heatmap", params={"limit": limit})
        return _parse(list[HeatmapPoint], body, "heatmap")

    async def get_leaderboard(self, *, limit: int = 10) -> list[LeaderboardEntry]:
        body = await self.get("/dashboard/leaderboard", params={"limit": limit})
        return _parse(list[LeaderboardEntry], body, "leaderboard")

    async def get_ewaste_analytics(self) -> EWasteAnalytics:
        body = await self.get("/dashboard/ewaste-analytics")
        return _parse(EWasteAnalytics, body, "e-waste analytics")

    # ── Listings ──────────────────────────────────────────────────────────────

    async def list_listings(self, *, status_filter: str | None = "listed") -> ListingPage:
        params = {"status_filter": status_filter} if status_filter else None
        return _parse(ListingPage, await self.get("/listings", params=params), "listings")

    async def my_listings(self) -> ListingPage:
        return _parse(ListingPage, await self.get("/listings/my"), "listings")

    async def get_listing(self, listing_id: str) -> Listing:
        return _parse(Listing, await self.get(f"/listings/{listing_id}"), "listing")

    async def analyze_listing(self, image_url: str, description: str = "") -> ListingAnalysis:
        body = await self.request(
            "POST",
            "/listings/analyze",
            json={"image_url": image_url, "description": description},
        )
        return _parse(ListingAnalysis, body, "listing analysis")

    async def create_listing(self, listing_in: ListingCreate) -> Listing | None:
        body = await self.request("POST", "/listings", json=_dump(listing_in))
        return _parse(Listing, body, "listing") if body else None

    # ── Bids ──────────────────────────────────────────────────────────────────

    async def my_bids(self) -> list[Bid]:
        return _parse(list[Bid], await self.get("/bids/my-bids") or [], "bids")

    async def listing_bids(self, listing_id: str) -> list[Bid]:
        return _parse(list[Bid], await self.get(f"/bids/listing/{listing_id}") or [], "bids")

    async def create_bid(self, bid_in: BidCreate) -> Bid | None:
        body = await self.request("POST", "/bids", json=_dump(bid_in))
        return _parse(Bid, body, "bid") if body else None

    async def accept_bid(self, bid_id: str) -> Bid | None:
        body = await self.request("PATCH", f"/bids/{bid_id}/accept")
        if isinstance(body, dict) and "id" in body and "listing_id" in body:
            return _parse(Bid, body, "bid")
        return None

    async def generate_pickup_qr(self, bid_id: str) -> PickupQR:
        body = await self.request("POST", f"/bids/{bid_id}/generate-pickup-qr")
        return _parse(PickupQR, body, "pickup QR")

    async def confirm_weight(
        self, confirmation: WeightConfirmation, *, confirm_excessive_weight: bool = False
    ) -> WeightConfirmed:
        """Confirm the measured pickup weight; raises ``WeightValidationError`` on a structured 400."""
        try:
            body = await self.request(
                "POST",
                "/bids/confirm-weight",
                params={"confirm_excessive_weight": str(confirm_excessive_weight).lower()},
                json=_dump(confirmation),
            )
        except ApiError as exc:
            detail = exc.details.get("detail") if isinstance(exc.details, dict) else None
            if exc.status_code == 400 and isinstance(detail, dict) and "entered_weight" in detail:
                raise WeightValidationError(detail) from exc
            raise
        return _parse(WeightConfirmed, body, "weight confirmation")

    # ── Chats ─────────────────────────────────────────────────────────────────

    async def get_listing_chat(self, listing_id: str) -> Chat:
        return _parse(Chat, await self.get(f"/chats/listing/{listing_id}"), "chat")

    async def create_chat(self, chat_in: ChatCreate) -> Chat:
        return _parse(Chat, await self.request("POST", "/chats", json=_dump(chat_in)), "chat")

    async def get_chat(self, chat_id: str) -> Chat:
        return _parse(Chat, await self.get(f"/chats/{chat_id}"), "chat")

    async def list_chat_messages(self, chat_id: str) -> list[ChatMessage]:
        body = await self.get(f"/chats/{chat_id}/messages")
        return _parse(list[ChatMessage], body if isinstance(body, list) else [], "chat messages")

    async def send_chat_message(self, chat_id: str, message_in: MessageCreate) -> ChatMessage:
        body = await self.request("POST", f"/chats/{chat_id}/messages", json=_dump(message_in))
        return _parse(ChatMessage, body, "chat message")

    async def confirm_deal(self, chat_id: str) -> str | None:
        """Confirm the deal in a chat; returns the chat's new status when the server reports one."""
        body = await self.request(
            "POST", f"/chats/{chat_id}/confirm-deal", json=_dump(DealConfirmation())
        )
        if isinstance(body, dict) and isinstance(body.get("status"), str):
            return body["status"]
        return None

    # ── Badges ────────────────────────────────────────────────────────────────

    async def my_badges(self) -> UserBadges:
        return _parse(UserBadges, await self.get("/badges/my-badges"), "badges")

    async def badge_criteria(self) -> BadgeCriteria:
        return _parse(BadgeCriteria, await self.get("/badges/criteria") or {}, "badge criteria")

    # ── Complaints ────────────────────────────────────────────────────────────

    async def list_complaints(self) -> list[Complaint]:
        return _parse(list[Complaint], await self.get("/complaints") or [], "complaints")

    async def create_complaint(self, complaint_in: ComplaintCreate) -> Any:
        return await self.request("POST", "/complaints", json=_dump(complaint_in))
