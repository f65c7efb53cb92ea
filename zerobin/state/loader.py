"""
List fetch with fallback, and task scoping for views.

A load is one attempt: no retry, no backoff. On failure the caller gets the
fallback dataset together with the error and ``is_fallback=True`` so the view
can show an unavailable banner next to the substituted numbers.
"""
from __future__ import annotations

import asyncio
import copy
import logging
from collections.abc import Awaitable, Callable, Coroutine
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from zerobin.clients.zerobin_api import ZeroBinClient
from zerobin.core.exceptions import ZeroBinException
from zerobin.state.feedback import FeedbackChannel

logger = logging.getLogger(__name__)

T = TypeVar("T")

FALLBACK_SUFFIX = " - Showing fallback data"


@dataclass
class LoadResult(Generic[T]):
    data: T
    total: int | None = None
    error: str | None = None
    is_fallback: bool = False

    @property
    def banner(self) -> str | None:
        if self.error is None:
            return None
        return f"{self.error}{FALLBACK_SUFFIX}" if self.is_fallback else self.error


def _total_of(data: Any) -> int | None:
    total = getattr(data, "total", None)
    if isinstance(total, int):
        return total
    if isinstance(data, list):
        return len(data)
    return None


def _materialise(fallback: T | Callable[[], T]) -> T:
    if callable(fallback):
        return fallback()
    return copy.deepcopy(fallback)


async def load_with_fallback(
    fetch: Callable[[], Awaitable[T]],
    fallback: T | Callable[[], T],
    *,
    resource: str,
    feedback: FeedbackChannel | None = None,
) -> LoadResult[T]:
    """Run ``fetch`` once; on any normalised failure substitute ``fallback``."""
    try:
        data = await fetch()
    except ZeroBinException as exc:
        message = exc.detail or f"Failed to load {resource}"
        logger.warning("Loading %s failed, using fallback data: %s", resource, message)
        result: LoadResult[T] = LoadResult(
            data=_materialise(fallback), error=message, is_fallback=True
        )
        result.total = _total_of(result.data)
        if feedback is not None:
            feedback.banner(result.banner or message)
        return result
    return LoadResult(data=data, total=_total_of(data))


async def fetch_list_with_fallback(
    client: ZeroBinClient,
    endpoint: str,
    params: dict[str, Any] | None,
    fallback_data: T | Callable[[], T],
    *,
    parse: Callable[[Any], T] | None = None,
    resource: str | None = None,
    feedback: FeedbackChannel | None = None,
) -> LoadResult[T]:
    """GET ``endpoint`` with ``params`` and fall back to ``fallback_data`` on failure."""

    async def fetch() -> T:
        body = await client.get(endpoint, params=params)
        return parse(body) if parse is not None else body

    return await load_with_fallback(
        fetch, fallback_data, resource=resource or endpoint.strip("/"), feedback=feedback
    )


class TaskScope:
    """
    Owns the background tasks of one view.
    ``close`` cancels whatever is still in flight; views check ``closed``
    before writing results so nothing lands after teardown.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()
        self.closed = False

    def spawn(self, coro: Coroutine[Any, Any, T]) -> asyncio.Task[T]:
        if self.closed:
            coro.close()
            raise RuntimeError("Cannot spawn tasks on a closed scope")
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def pending(self) -> int:
        return sum(1 for t in self._tasks if not t.done())

    async def close(self) -> None:
        self.closed = True
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
