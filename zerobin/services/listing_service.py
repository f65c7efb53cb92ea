"""
Listing views: the kabadiwala's marketplace browse, the seller's own listings
and the seller's pickups (listings with an accepted bid or already picked up).
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from zerobin.clients.zerobin_api import ZeroBinClient
from zerobin.core.exceptions import ZeroBinException
from zerobin.schemas.bid import Bid
from zerobin.schemas.listing import Listing
from zerobin.state.store import ViewStore

logger = logging.getLogger(__name__)

PICKUP_STATUSES = frozenset({"accepted", "picked_up"})


def matches_search(listing: Listing, query: str) -> bool:
    needle = query.strip().lower()
    if not needle:
        return True
    return needle in listing.device_name.lower() or needle in listing.device_type.lower()


class ListingsBrowser:

    def __init__(self, client: ZeroBinClient, *, status_filter: str | None = "listed") -> None:
        self.client = client
        self.status_filter = status_filter
        self.store: ViewStore[Listing] = ViewStore()
        self.query = ""

    async def load(self) -> list[Listing]:
        self.store.loading = True
        self.store.error = None
        try:
            page = await self.client.list_listings(status_filter=self.status_filter)
        except ZeroBinException as exc:
            self.store.error = exc.detail or "Failed to load listings"
            raise
        finally:
            self.store.loading = False
        self.store.replace_all(page.items, total=page.total)
        return self.store.items

    def search(self, query: str) -> list[Listing]:
        self.query = query
        return self.visible

    @property
    def visible(self) -> list[Listing]:
        return self.store.filter(lambda listing: matches_search(listing, self.query))


class MyListings:

    def __init__(self, client: ZeroBinClient) -> None:
        self.client = client
        self.store: ViewStore[Listing] = ViewStore()

    async def load(self) -> list[Listing]:
        self.client.session.require_token()
        self.store.error = None
        try:
            page = await self.client.my_listings()
        except ZeroBinException as exc:
            self.store.error = exc.detail or "Failed to fetch listings"
            raise
        self.store.replace_all(page.items, total=page.total)
        return self.store.items


@dataclass
class PickupEntry:
    listing: Listing
    bids: list[Bid] = field(default_factory=list)

    @property
    def accepted_bid(self) -> Bid | None:
        return next((b for b in self.bids if b.status == "accepted"), None)

    @property
    def awaiting_pickup(self) -> bool:
        return self.listing.status == "accepted"


class SellerPickups:

    def __init__(self, client: ZeroBinClient) -> None:
        self.client = client
        self.entries: list[PickupEntry] = []
        self.error: str | None = None

    async def load(self) -> list[PickupEntry]:
        self.client.session.require_token()
        try:
            page = await self.client.my_listings()
        except ZeroBinException as exc:
            self.error = exc.detail or "Failed to fetch pickup listings"
            raise
        pickups = [listing for listing in page.items if listing.status in PICKUP_STATUSES]
        self.entries = list(await asyncio.gather(*(self._with_bids(listing) for listing in pickups)))
        self.error = None
        return self.entries

    async def _with_bids(self, listing: Listing) -> PickupEntry:
        try:
            bids = await self.client.listing_bids(listing.id)
        except ZeroBinException as exc:
            logger.warning("Bids for listing %s failed to load: %s", listing.id, exc.detail)
            bids = []
        return PickupEntry(listing=listing, bids=bids)

    def counts(self) -> dict[str, int]:
        awaiting = sum(1 for e in self.entries if e.awaiting_pickup)
        return {"accepted": awaiting, "picked_up": len(self.entries) - awaiting}
