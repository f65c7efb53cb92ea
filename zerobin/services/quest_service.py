"""
Quest services.
The collector's assigned-quest board (load, status counters, completion with
an after photo) and the citizen's reports list with per-status statistics.
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field

from zerobin.clients.image_host import ImageFile, ImageHostClient
from zerobin.clients.zerobin_api import ZeroBinClient
from zerobin.core.config import settings
from zerobin.core.exceptions import (
    NotFoundException,
    StatusRegressionError,
    ValidationFailedError,
    ZeroBinException,
)
from zerobin.schemas.quest import Quest, QuestCompletion, QuestPage, status_rank
from zerobin.state.feedback import FeedbackChannel
from zerobin.state.loader import TaskScope
from zerobin.state.optimistic import MutationResult, OptimisticMutator
from zerobin.state.store import ViewStore

logger = logging.getLogger(__name__)

ALREADY_COMPLETED = "✅ This quest is already completed!"
COMPLETED_MESSAGE = "Quest completed successfully! Your bounty points have been added."


def request_transition(quest: Quest, target: str) -> Quest:
    """
    Mark ``target`` as the requested next status without touching ``status``.
    Raises ``StatusRegressionError`` for a backwards request.
    """
    if status_rank(target) < status_rank(quest.status):
        raise StatusRegressionError(quest.status, target)
    return quest.model_copy(update={"requested_status": target})


def merge_server_quests(store: ViewStore[Quest], page: QuestPage) -> None:
    """Replace the board with a server page, logging any confirmed regressions."""
    for quest in page.items:
        local = store.get(quest.id)
        if local is not None and status_rank(quest.status) < status_rank(local.status):
            logger.warning(
                "Server moved quest %s from %s back to %s", quest.id, local.status, quest.status
            )
    store.replace_all(page.items, total=page.total)


class CollectorQuestBoard:

    def __init__(
        self,
        client: ZeroBinClient,
        uploader: ImageHostClient,
        feedback: FeedbackChannel | None = None,
        *,
        limit: int = settings.DEFAULT_PAGE_LIMIT,
    ) -> None:
        self.client = client
        self.uploader = uploader
        self.feedback = feedback or FeedbackChannel()
        self.limit = limit
        self.status_filter: str | None = None
        self.store: ViewStore[Quest] = ViewStore()
        self.upload_progress = 0
        self.completing: set[str] = set()
        self.scope = TaskScope()
        self._mutator: OptimisticMutator[Quest] = OptimisticMutator(
            self.store, self.feedback, resource="quest"
        )

    @property
    def quests(self) -> list[Quest]:
        return self.store.items

    def counts(self) -> dict[str, int]:
        return self.store.count_by("status")

    async def load(self, status_filter: str | None = None) -> list[Quest]:
        if status_filter is not None:
            self.status_filter = status_filter or None
        self.client.session.require_token()
        self.store.loading = True
        self.store.error = None
        try:
            page = await self.client.list_assigned_quests(
                skip=0, limit=self.limit, status_filter=self.status_filter
            )
        except ZeroBinException as exc:
            if not self.scope.closed:
                self.store.error = exc.detail or "Failed to fetch quests"
            raise
        finally:
            self.store.loading = False
        if not self.scope.closed:
            merge_server_quests(self.store, page)
        return self.store.items

    async def complete(
        self,
        quest_id: str,
        after_photo: ImageFile | None,
        *,
        notes: str = "",
    ) -> MutationResult[Quest] | None:
        """
        Upload the after photo and report the quest as completed.
        Returns ``None`` when nothing was sent (already finished quest).
        """
        quest = self.store.get(quest_id)
        if quest is None:
            raise NotFoundException("Quest", quest_id)
        if quest.is_finished:
            self.feedback.success(ALREADY_COMPLETED)
            return None

        before_url = quest.image_url or quest.before_photo_url
        if not before_url:
            raise ValidationFailedError("Before photo is missing from the quest.")
        if after_photo is None:
            raise ValidationFailedError("Please upload an after photo showing the cleaned area.")
        collector = self.client.session.require_user()

        async def submit() -> Quest | None:
            after_url = await self.uploader.upload(after_photo, self._on_progress)
            self.feedback.success("Photo uploaded successfully!")
            completion = QuestCompletion(
                collector_id=collector.id,
                before_photo_url=before_url,
                after_photo_url=after_url,
                verification_notes=notes or "Completed by collector",
            )
            return await self.client.complete_quest(quest_id, completion)

        self.upload_progress = 0
        self.completing.add(quest_id)
        try:
            result = await self._mutator.mutate(
                quest_id,
                lambda q: request_transition(q, "completed"),
                submit,
                failure_message="Failed to complete quest. Please try again.",
            )
        finally:
            self.completing.discard(quest_id)

        if result.ok:
            self.feedback.modal("Success", COMPLETED_MESSAGE, level="success")
            try:
                await self.load()
            except ZeroBinException as exc:
                logger.warning("Refetch after completing quest %s failed: %s", quest_id, exc.detail)
        return result

    def _on_progress(self, percent: int) -> None:
        self.upload_progress = percent

    async def close(self) -> None:
        await self.scope.close()


# ── Citizen reports list ──────────────────────────────────────────────────────

@dataclass
class ReportStats:
    total: int = 0
    by_status: dict[str, int] = field(default_factory=dict)

    @property
    def pending(self) -> int:
        return self.by_status.get("pending", 0) + self.by_status.get("reported", 0)

    @property
    def in_progress(self) -> int:
        return self.by_status.get("assigned", 0) + self.by_status.get("in_progress", 0)

    @property
    def completed(self) -> int:
        return self.by_status.get("completed", 0) + self.by_status.get("verified", 0)


class ReportsList:
    """Quests as listed on the reports page, newest first as the server sends them."""

    def __init__(self, client: ZeroBinClient, *, limit: int = settings.DEFAULT_PAGE_LIMIT) -> None:
        self.client = client
        self.limit = limit
        self.store: ViewStore[Quest] = ViewStore()

    async def load(self) -> list[Quest]:
        self.store.loading = True
        self.store.error = None
        try:
            page = await self.client.list_quests(skip=0, limit=self.limit)
        except ZeroBinException as exc:
            self.store.error = exc.detail or "Failed to load reports"
            raise
        finally:
            self.store.loading = False
        self.store.replace_all(page.items, total=page.total)
        return self.store.items

    def stats(self) -> ReportStats:
        return ReportStats(
            total=self.store.total,
            by_status=dict(Counter(q.status for q in self.store)),
        )
