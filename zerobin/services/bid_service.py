"""
Bid services.
Covers the kabadiwala's own bids, the seller's bid board for one listing
(optimistic accept, then refetch) and the pickup verification step
(QR generation and weight confirmation).
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any

from zerobin.clients.zerobin_api import ZeroBinClient
from zerobin.core.exceptions import (
    InvalidTransitionError,
    NotFoundException,
    ValidationFailedError,
    WeightValidationError,
    ZeroBinException,
)
from zerobin.schemas.bid import (
    Bid,
    BidCreate,
    PickupQR,
    WeightConfirmation,
    WeightConfirmed,
    WeightValidationDetail,
)
from zerobin.schemas.listing import Listing
from zerobin.state.feedback import FeedbackChannel
from zerobin.state.optimistic import MutationResult, OptimisticMutator
from zerobin.state.store import ViewStore

logger = logging.getLogger(__name__)

ACCEPTED_MESSAGE = "Bid accepted successfully! You can now chat with the kabadiwala."
EXCESSIVE_WEIGHT_HINT = "significantly above average"


# ── Kabadiwala: my bids ───────────────────────────────────────────────────────

class MyBids:

    def __init__(self, client: ZeroBinClient, feedback: FeedbackChannel | None = None) -> None:
        self.client = client
        self.feedback = feedback or FeedbackChannel()
        self.store: ViewStore[Bid] = ViewStore()
        self.placing = False

    async def load(self) -> list[Bid]:
        self.store.loading = True
        self.store.error = None
        try:
            bids = await self.client.my_bids()
        except ZeroBinException as exc:
            self.store.error = exc.detail or "Failed to load bids"
            raise
        finally:
            self.store.loading = False
        self.store.replace_all(bids)
        return self.store.items

    def counters(self) -> dict[str, int]:
        by_status = self.store.count_by("status")
        return {status: by_status.get(status, 0) for status in ("accepted", "pending", "rejected")}

    async def place_bid(
        self,
        listing_id: str,
        offered_price: Any,
        pickup_hours: int,
        message: str = "",
    ) -> Bid | None:
        try:
            price = float(offered_price)
        except (TypeError, ValueError) as exc:
            raise ValidationFailedError("Please enter a valid offer price.") from exc
        if price <= 0:
            raise ValidationFailedError("Please enter a valid offer price.")

        self.placing = True
        try:
            bid = await self.client.create_bid(
                BidCreate.for_hours(listing_id, price, pickup_hours, message)
            )
        except ZeroBinException as exc:
            self.feedback.error(exc.detail or "Failed to place bid")
            return None
        finally:
            self.placing = False
        self.feedback.success("Bid placed successfully!")
        if bid is not None:
            self.store.put(bid)
            self.store.total = len(self.store)
        return bid


# ── Seller: bids on one listing ───────────────────────────────────────────────

class ListingBidBoard:

    def __init__(
        self,
        client: ZeroBinClient,
        listing_id: str,
        feedback: FeedbackChannel | None = None,
    ) -> None:
        self.client = client
        self.listing_id = listing_id
        self.feedback = feedback or FeedbackChannel()
        self.listing: Listing | None = None
        self.store: ViewStore[Bid] = ViewStore()
        self.error: str | None = None
        self.accepting: str | None = None
        self._mutator: OptimisticMutator[Bid] = OptimisticMutator(
            self.store, self.feedback, resource="bid"
        )

    @property
    def bids(self) -> list[Bid]:
        return self.store.items

    @property
    def accepted_bid(self) -> Bid | None:
        accepted = self.store.filter(lambda b: b.status == "accepted")
        return accepted[0] if accepted else None

    async def load_listing(self) -> Listing | None:
        try:
            self.listing = await self.client.get_listing(self.listing_id)
        except ZeroBinException as exc:
            self.error = exc.detail or "Failed to load listing"
        return self.listing

    async def load_bids(self) -> list[Bid]:
        try:
            bids = await self.client.listing_bids(self.listing_id)
        except ZeroBinException as exc:
            self.error = exc.detail or "Failed to load bids"
            return self.store.items
        self.store.replace_all(bids)
        return self.store.items

    async def load(self) -> None:
        self.error = None
        await asyncio.gather(self.load_listing(), self.load_bids())

    async def accept(self, bid_id: str) -> MutationResult[Bid]:
        """Accept one bid; a listing can have at most one accepted bid."""
        if bid_id not in self.store:
            raise NotFoundException("Bid", bid_id)
        current = self.accepted_bid
        if current is not None:
            raise InvalidTransitionError(
                "accepted", "accept another bid" if current.id != bid_id else "accept the bid again"
            )

        self.accepting = bid_id
        try:
            result = await self._mutator.mutate(
                bid_id,
                lambda b: b.model_copy(update={"status": "accepted"}),
                lambda: self.client.accept_bid(bid_id),
                failure_message="Failed to accept bid",
            )
        finally:
            self.accepting = None

        if result.ok:
            await self.load_listing()
            await self.load_bids()
            self.feedback.success(ACCEPTED_MESSAGE)
        return result


# ── Pickup verification ───────────────────────────────────────────────────────

class PickupVerification:
    """
    Pickup handshake between seller and kabadiwala.
    The seller shows a QR code; the kabadiwala scans it and enters the
    measured weight. A weight far above the device's typical weight is
    rejected once and can be resubmitted with ``confirm_excessive`` set.
    """

    def __init__(
        self,
        client: ZeroBinClient,
        listing_id: str,
        feedback: FeedbackChannel | None = None,
    ) -> None:
        self.client = client
        self.listing_id = listing_id
        self.feedback = feedback or FeedbackChannel()
        self.listing: Listing | None = None
        self.bid: Bid | None = None
        self.qr: PickupQR | None = None
        self.scanned_data: str | None = None
        self.confirm_excessive = False
        self.verifying = False
        self.error: str | None = None
        self.weight_issue: WeightValidationDetail | None = None
        self.redirect_to: str | None = None

    async def load(self) -> Bid | None:
        self.error = None
        try:
            self.listing = await self.client.get_listing(self.listing_id)
            bids = await self.client.listing_bids(self.listing_id)
        except ZeroBinException as exc:
            logger.warning("Pickup details failed to load: %s", exc.detail)
            self.error = "Failed to load pickup details"
            return None
        self.bid = next((b for b in bids if b.status == "accepted"), None)
        if self.bid is None:
            self.error = "No accepted bid found for this listing"
        return self.bid

    async def generate_qr(self) -> PickupQR | None:
        if self.bid is None:
            return None
        try:
            self.qr = await self.client.generate_pickup_qr(self.bid.id)
        except ZeroBinException as exc:
            self.error = exc.detail or "Failed to generate QR"
            return None
        return self.qr

    def scan(self) -> str:
        """Stand-in for a camera scan: build the transaction payload the backend parses."""
        self.error = None
        if self.bid is None:
            raise ValidationFailedError("Bid ID is required for weight confirmation")
        self.scanned_data = WeightConfirmation.transaction_qr(self.bid.id, self.listing_id)
        return self.scanned_data

    async def confirm_weight(self, weight_kg: Any) -> WeightConfirmed | None:
        if not self.scanned_data or weight_kg in (None, ""):
            return None
        try:
            confirmation = WeightConfirmation(qr_data=self.scanned_data, weight_kg=float(weight_kg))
        except (TypeError, ValueError) as exc:
            raise ValidationFailedError("Please enter a valid weight in kg.") from exc

        self.verifying = True
        self.error = None
        self.weight_issue = None
        try:
            confirmed = await self.client.confirm_weight(
                confirmation, confirm_excessive_weight=self.confirm_excessive
            )
        except WeightValidationError as exc:
            self._show_weight_issue(WeightValidationDetail.model_validate(exc.details))
            return None
        except ZeroBinException as exc:
            self.error = exc.detail or "Failed to confirm weight"
            if EXCESSIVE_WEIGHT_HINT in self.error:
                self.confirm_excessive = True
            return None
        finally:
            self.verifying = False

        self.feedback.success(
            f"Pickup confirmed! Weight: {confirmed.weight_kg:g}kg. Payment initiated."
        )
        self.redirect_to = "/"
        return confirmed

    def _show_weight_issue(self, issue: WeightValidationDetail) -> None:
        self.weight_issue = issue
        self.error = issue.message
        if EXCESSIVE_WEIGHT_HINT in issue.message:
            self.confirm_excessive = True
        self.feedback.modal(
            "Weight Validation Failed",
            issue.message,
            lines=issue.summary_lines(),
            data=issue.model_dump(),
        )
