"""
Admin review queue: flagged reports awaiting a human decision, and manual
flagging of a quest from the admin reports page.
"""
from __future__ import annotations

import logging

from zerobin.clients.zerobin_api import ZeroBinClient
from zerobin.core.exceptions import ValidationFailedError, ZeroBinException
from zerobin.schemas.review import FlagReason, Review, ReviewCreate
from zerobin.state.feedback import FeedbackChannel
from zerobin.state.store import ViewStore

logger = logging.getLogger(__name__)

LOW_CONFIDENCE_THRESHOLD = 0.4


class ReviewQueue:

    def __init__(
        self,
        client: ZeroBinClient,
        feedback: FeedbackChannel | None = None,
        *,
        limit: int = 50,
    ) -> None:
        self.client = client
        self.feedback = feedback or FeedbackChannel()
        self.limit = limit
        self.store: ViewStore[Review] = ViewStore()
        self.pending_count = 0
        self.status_filter = "all"
        self.submitting = False

    async def load(self) -> list[Review]:
        self.client.session.require_token()
        self.store.loading = True
        self.store.error = None
        try:
            page = await self.client.list_reviews(skip=0, limit=self.limit)
        except ZeroBinException as exc:
            self.store.error = exc.detail or "Failed to load reviews"
            self.feedback.error(f"Failed to load flagged reviews: {exc.detail or 'Unknown error'}")
            return self.store.items
        finally:
            self.store.loading = False
        self.store.replace_all(page.items, total=page.total)
        self.pending_count = page.pending_count
        return self.store.items

    @property
    def visible(self) -> list[Review]:
        if self.status_filter == "all":
            return self.store.items
        return self.store.filter(lambda r: r.status == self.status_filter)

    def low_confidence_count(self) -> int:
        return len(self.store.filter(lambda r: r.ai_confidence_score < LOW_CONFIDENCE_THRESHOLD))

    async def submit_review(
        self,
        quest_id: str,
        ai_notes: str,
        *,
        ai_confidence_score: float = 0.5,
        flag_reason: FlagReason = "low_ai_confidence",
    ) -> Review | None:
        """Flag a quest for review. Notes are required."""
        if not ai_notes.strip():
            self.feedback.error("Please enter AI notes")
            raise ValidationFailedError("Please enter AI notes")

        payload = ReviewCreate(
            quest_id=quest_id,
            ai_confidence_score=ai_confidence_score,
            ai_notes=ai_notes,
            flag_reason=flag_reason,
        )
        self.submitting = True
        try:
            review = await self.client.create_review(payload)
        except ZeroBinException as exc:
            self.feedback.error(exc.detail or "Failed to submit review")
            return None
        finally:
            self.submitting = False
        self.feedback.success("Review submitted successfully!")
        if review is not None:
            self.store.put(review)
        return review
