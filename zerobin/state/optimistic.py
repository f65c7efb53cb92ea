"""
Optimistic mutation with server reconciliation.

A mutation projects the expected post-request record into the store right
away, then awaits the server call. Success keeps the projection, or replaces
it with the record the server returned. Failure puts back the exact snapshot
of that one record and reports the error through the feedback channel.
Mutations of the same record are serialised; different records do not wait
on each other.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from zerobin.core.exceptions import MutationFailedError, NotFoundException, ZeroBinException
from zerobin.state.feedback import FeedbackChannel
from zerobin.state.store import ViewStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

Hook = Callable[[T, T], None]


@dataclass
class MutationResult(Generic[T]):
    ok: bool
    record: T
    error: MutationFailedError | None = None


class OptimisticMutator(Generic[T]):
    def __init__(
        self,
        store: ViewStore[T],
        feedback: FeedbackChannel,
        *,
        resource: str = "record",
    ) -> None:
        self.store = store
        self.feedback = feedback
        self.resource = resource
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiting: dict[str, int] = {}

    def is_pending(self, record_id: str) -> bool:
        return self._waiting.get(record_id, 0) > 0

    async def mutate(
        self,
        record_id: str,
        transform: Callable[[T], T],
        operation: Callable[[], Awaitable[T | None]],
        *,
        failure_message: str = "Update failed",
        on_apply: Hook | None = None,
        on_revert: Hook | None = None,
    ) -> MutationResult[T]:
        """
        Apply ``transform`` to the record now and reconcile with ``operation``.

        ``on_apply(before, after)`` runs right after the projection is stored,
        ``on_revert(before, after)`` only when the snapshot is put back. Both
        let callers keep derived state (counters) consistent with the record.
        """
        lock = self._locks.setdefault(record_id, asyncio.Lock())
        self._waiting[record_id] = self._waiting.get(record_id, 0) + 1
        try:
            async with lock:
                return await self._run(
                    record_id, transform, operation, failure_message, on_apply, on_revert
                )
        finally:
            self._waiting[record_id] -= 1
            if not self._waiting[record_id]:
                del self._waiting[record_id]
                if not lock.locked():
                    self._locks.pop(record_id, None)

    async def _run(
        self,
        record_id: str,
        transform: Callable[[T], T],
        operation: Callable[[], Awaitable[T | None]],
        failure_message: str,
        on_apply: Hook | None,
        on_revert: Hook | None,
    ) -> MutationResult[T]:
        snapshot = self.store.get(record_id)
        if snapshot is None:
            raise NotFoundException(self.resource.capitalize(), record_id)

        projected = transform(snapshot)
        self.store.put(projected)
        if on_apply is not None:
            on_apply(snapshot, projected)

        try:
            confirmed = await operation()
        except ZeroBinException as exc:
            if self._restore(record_id, snapshot, projected) and on_revert is not None:
                on_revert(snapshot, projected)
            message = exc.detail or failure_message
            logger.warning("Optimistic update of %s %s rolled back: %s", self.resource, record_id, message)
            self.feedback.error(message)
            return MutationResult(
                ok=False, record=snapshot, error=MutationFailedError(message, exc)
            )
        except BaseException:
            if self._restore(record_id, snapshot, projected) and on_revert is not None:
                on_revert(snapshot, projected)
            raise

        final = projected
        if confirmed is not None:
            # Server response wins over the local projection
            final = confirmed
            if record_id in self.store:
                self.store.put(confirmed)
        return MutationResult(ok=True, record=final)

    def _restore(self, record_id: str, snapshot: T, projected: T) -> bool:
        # A refresh that landed meanwhile already holds newer server state
        if self.store.get(record_id) is not projected:
            return False
        self.store.put(snapshot)
        return True
