"""
Listing chat service.
Opens (or creates) the chat attached to a listing, keeps its messages and
lock status fresh by polling while the view is open, and sends messages.
"""
from __future__ import annotations

import asyncio
import logging

from zerobin.clients.zerobin_api import ZeroBinClient
from zerobin.core.config import settings
from zerobin.core.exceptions import ApiError, InvalidTransitionError, ZeroBinException
from zerobin.schemas.chat import Chat, ChatCreate, ChatMessage, MessageCreate
from zerobin.state.feedback import FeedbackChannel
from zerobin.state.loader import TaskScope
from zerobin.state.store import ViewStore

logger = logging.getLogger(__name__)

SEND_FAILED = "Failed to send message. Please try again."
UNLOCK_FAILED = "Failed to unlock chat. Please try again."


async def open_listing_chat(client: ZeroBinClient, listing_id: str) -> Chat:
    """Return the listing's chat, creating it when the server has none yet."""
    client.session.require_token()
    try:
        return await client.get_listing_chat(listing_id)
    except ApiError as exc:
        if exc.status_code != 404:
            raise
    logger.info("No chat for listing %s, creating one", listing_id)
    return await client.create_chat(ChatCreate(listing_id=listing_id))


class ChatThread:

    def __init__(
        self,
        client: ZeroBinClient,
        chat_id: str,
        feedback: FeedbackChannel | None = None,
    ) -> None:
        self.client = client
        self.chat_id = chat_id
        self.feedback = feedback or FeedbackChannel()
        self.store: ViewStore[ChatMessage] = ViewStore()
        self.status = "unlocked"
        self.draft = ""
        self.sending = False
        self.unlocking = False
        self.scope = TaskScope()

    @classmethod
    async def for_listing(
        cls, client: ZeroBinClient, listing_id: str, feedback: FeedbackChannel | None = None
    ) -> "ChatThread":
        chat = await open_listing_chat(client, listing_id)
        thread = cls(client, chat.id, feedback)
        thread.status = chat.status
        return thread

    @property
    def messages(self) -> list[ChatMessage]:
        return self.store.items

    @property
    def is_locked(self) -> bool:
        return self.status == "locked"

    @property
    def is_closed(self) -> bool:
        return self.status == "closed"

    @property
    def can_send(self) -> bool:
        return not self.is_closed and bool(self.draft.strip()) and not self.sending

    def is_mine(self, message: ChatMessage) -> bool:
        user = self.client.session.user
        return user is not None and message.sender_id == user.id

    async def refresh(self) -> bool:
        """Fetch messages and chat status together; a failed poll keeps what is shown."""
        self.store.loading = True
        try:
            messages, chat = await asyncio.gather(
                self.client.list_chat_messages(self.chat_id),
                self.client.get_chat(self.chat_id),
            )
        except ZeroBinException as exc:
            logger.warning("Failed to fetch chat %s: %s", self.chat_id, exc.detail)
            return False
        finally:
            self.store.loading = False

        if self.scope.closed:
            return False
        self.store.replace_all(messages)
        self.status = chat.status
        return True

    async def send(self, content: str | None = None) -> ChatMessage | None:
        if content is not None:
            self.draft = content
        if not self.draft.strip():
            return None
        if self.is_closed:
            raise InvalidTransitionError(self.status, "send a message")

        self.sending = True
        try:
            message = await self.client.send_chat_message(
                self.chat_id, MessageCreate(content=self.draft)
            )
        except ZeroBinException as exc:
            logger.warning("Failed to send message in chat %s: %s", self.chat_id, exc.detail)
            self.feedback.error(SEND_FAILED)
            return None
        finally:
            self.sending = False

        self.store.put(message)
        self.draft = ""
        return message

    async def confirm_deal(self) -> bool:
        self.unlocking = True
        try:
            status = await self.client.confirm_deal(self.chat_id)
        except ZeroBinException as exc:
            logger.warning("Failed to unlock chat %s: %s", self.chat_id, exc.detail)
            self.feedback.error(UNLOCK_FAILED)
            return False
        finally:
            self.unlocking = False
        if status is not None:
            self.status = status
        return True

    # ── Polling ───────────────────────────────────────────────────────────────

    def start_polling(self, interval: float | None = None) -> asyncio.Task[None]:
        return self.scope.spawn(self._poll(interval or settings.CHAT_POLL_SECONDS))

    async def _poll(self, interval: float) -> None:
        while not self.scope.closed:
            await self.refresh()
            await asyncio.sleep(interval)

    async def close(self) -> None:
        await self.scope.close()
