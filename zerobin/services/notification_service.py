"""
Notification feed service.
Loads the current user's notifications (with the fallback dataset on failure),
marks them read optimistically, and polls for new ones while the view is open.
"""
from __future__ import annotations

import asyncio
import logging

from zerobin.clients.zerobin_api import ZeroBinClient
from zerobin.core.config import settings
from zerobin.core.exceptions import NotFoundException
from zerobin.schemas.notification import Notification, NotificationPage
from zerobin.state import fallbacks
from zerobin.state.feedback import FeedbackChannel
from zerobin.state.loader import LoadResult, TaskScope, load_with_fallback
from zerobin.state.optimistic import MutationResult, OptimisticMutator
from zerobin.state.store import ViewStore

logger = logging.getLogger(__name__)


class NotificationFeed:

    def __init__(
        self,
        client: ZeroBinClient,
        feedback: FeedbackChannel | None = None,
        *,
        page_size: int = settings.NOTIFICATION_PAGE_SIZE,
        unread_only: bool = False,
    ) -> None:
        self.client = client
        self.feedback = feedback or FeedbackChannel()
        self.page_size = page_size
        self.unread_only = unread_only
        self.store: ViewStore[Notification] = ViewStore()
        self.unread_count = 0
        self.scope = TaskScope()
        self._marking: dict[str, asyncio.Task[MutationResult[Notification]]] = {}
        self._mutator: OptimisticMutator[Notification] = OptimisticMutator(
            self.store, self.feedback, resource="notification"
        )

    @property
    def items(self) -> list[Notification]:
        return self.store.items

    async def load(self, *, refresh: bool = False) -> LoadResult[NotificationPage]:
        """
        Replace the feed with the first page from the server.
        A failed first load shows the mount fallback; a failed refresh shows
        the refresh fallback.
        """
        fallback = fallbacks.refreshed_notifications if refresh else fallbacks.notifications
        self.store.loading = True
        try:
            result = await load_with_fallback(
                lambda: self.client.list_notifications(
                    skip=0, limit=self.page_size, unread_only=self.unread_only
                ),
                fallback,
                resource="notifications",
                feedback=self.feedback,
            )
        finally:
            self.store.loading = False

        if self.scope.closed:
            return result
        page = result.data
        self.store.replace_all(page.items, total=page.total, is_fallback=result.is_fallback)
        self.store.error = result.banner
        self.unread_count = page.unread_count
        return result

    async def refresh(self) -> LoadResult[NotificationPage]:
        return await self.load(refresh=True)

    async def mark_read(self, notification_id: str) -> MutationResult[Notification]:
        """
        Mark one notification read. A repeated call while the request is in
        flight joins that request and gets its outcome.
        """
        in_flight = self._marking.get(notification_id)
        if in_flight is not None:
            return await asyncio.shield(in_flight)

        current = self.store.get(notification_id)
        if current is None:
            raise NotFoundException("Notification", notification_id)
        if current.is_read:
            return MutationResult(ok=True, record=current)

        task = asyncio.get_running_loop().create_task(self._mark_read(notification_id))
        self._marking[notification_id] = task
        try:
            return await task
        finally:
            if self._marking.get(notification_id) is task:
                del self._marking[notification_id]

    async def _mark_read(self, notification_id: str) -> MutationResult[Notification]:
        decremented = False

        def on_apply(before: Notification, after: Notification) -> None:
            nonlocal decremented
            if not before.is_read and after.is_read and self.unread_count > 0:
                self.unread_count -= 1
                decremented = True

        def on_revert(before: Notification, after: Notification) -> None:
            # Undo exactly what on_apply did, once
            nonlocal decremented
            if decremented:
                self.unread_count += 1
                decremented = False

        return await self._mutator.mutate(
            notification_id,
            lambda n: n.model_copy(update={"is_read": True}),
            lambda: self.client.mark_notification_read(notification_id),
            failure_message="Failed to mark as read",
            on_apply=on_apply,
            on_revert=on_revert,
        )

    # ── Polling ───────────────────────────────────────────────────────────────

    def start_polling(self, interval: float | None = None) -> asyncio.Task[None]:
        return self.scope.spawn(self._poll(interval or settings.NOTIFICATION_POLL_SECONDS))

    async def _poll(self, interval: float) -> None:
        while not self.scope.closed:
            await asyncio.sleep(interval)
            logger.debug("Polling notifications")
            await self.load(refresh=True)

    async def close(self) -> None:
        await self.scope.close()
