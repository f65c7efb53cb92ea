"""
View state tests.
Covers: identity-keyed store, optimistic mutation (projection, server wins,
per-record rollback, per-record serialisation, refresh during a mutation),
fallback loading and task scopes.
"""
from __future__ import annotations

import asyncio

import pytest
from pydantic import BaseModel

from zerobin.clients.zerobin_api import ZeroBinClient
from zerobin.core.exceptions import ApiError, NotFoundException
from zerobin.state.feedback import FeedbackChannel
from zerobin.state.loader import TaskScope, fetch_list_with_fallback, load_with_fallback
from zerobin.state.optimistic import OptimisticMutator
from zerobin.state.store import ViewStore

from conftest import Upstream

pytestmark = pytest.mark.asyncio


class Record(BaseModel):
    id: str
    value: int = 0
    flag: bool = False


def _store(*records: Record) -> ViewStore[Record]:
    store: ViewStore[Record] = ViewStore()
    store.replace_all(records)
    return store


def _flag(record: Record) -> Record:
    return record.model_copy(update={"flag": True})


class TestViewStore:
    async def test_duplicate_ids_collapse_to_later_record(self) -> None:
        store = _store(Record(id="a", value=1), Record(id="b"), Record(id="a", value=2))
        assert len(store) == 2
        assert store.get("a").value == 2
        assert store.total == 2

    async def test_put_keeps_position(self) -> None:
        store = _store(Record(id="a"), Record(id="b"), Record(id="c"))
        store.put(Record(id="b", value=9))
        assert [r.id for r in store] == ["a", "b", "c"]
        assert store.get("b").value == 9

    async def test_count_by(self) -> None:
        store = _store(Record(id="a", value=1), Record(id="b", value=1), Record(id="c", value=2))
        assert store.count_by("value") == {1: 2, 2: 1}


class TestOptimisticMutator:
    async def test_projection_kept_when_server_returns_nothing(self) -> None:
        store = _store(Record(id="a"))
        mutator = OptimisticMutator(store, FeedbackChannel())

        async def operation() -> None:
            return None

        result = await mutator.mutate("a", _flag, operation)
        assert result.ok
        assert store.get("a").flag is True

    async def test_server_record_wins(self) -> None:
        store = _store(Record(id="a"))
        mutator = OptimisticMutator(store, FeedbackChannel())

        async def operation() -> Record:
            return Record(id="a", value=42, flag=True)

        result = await mutator.mutate("a", _flag, operation)
        assert result.record.value == 42
        assert store.get("a").value == 42

    async def test_failure_restores_only_that_record(self) -> None:
        store = _store(Record(id="a"), Record(id="b"))
        feedback = FeedbackChannel()
        mutator = OptimisticMutator(store, feedback)

        async def fails() -> None:
            await asyncio.sleep(0)
            raise ApiError(500, "boom")

        async def succeeds() -> None:
            await asyncio.sleep(0)
            return None

        first, second = await asyncio.gather(
            mutator.mutate("a", _flag, fails, failure_message="Failed"),
            mutator.mutate("b", _flag, succeeds),
        )
        assert not first.ok
        assert first.error is not None and first.error.detail == "boom"
        assert second.ok
        assert store.get("a").flag is False
        assert store.get("b").flag is True
        assert [n.message for n in feedback.errors] == ["boom"]

    async def test_same_record_mutations_are_serialised(self) -> None:
        store = _store(Record(id="a"), Record(id="b"))
        mutator = OptimisticMutator(store, FeedbackChannel())
        release = asyncio.Event()
        started: list[str] = []

        def operation(label: str, wait: bool):
            async def run() -> None:
                started.append(label)
                if wait:
                    await release.wait()
                return None
            return run

        def bump(record: Record) -> Record:
            return record.model_copy(update={"value": record.value + 1})

        first = asyncio.create_task(mutator.mutate("a", bump, operation("a1", True)))
        await asyncio.sleep(0.01)
        second = asyncio.create_task(mutator.mutate("a", bump, operation("a2", False)))
        other = asyncio.create_task(mutator.mutate("b", bump, operation("b1", False)))
        await asyncio.sleep(0.01)

        assert started == ["a1", "b1"]
        assert mutator.is_pending("a")
        assert other.done()

        release.set()
        await asyncio.gather(first, second)
        assert started == ["a1", "b1", "a2"]
        assert store.get("a").value == 2
        assert not mutator.is_pending("a")

    async def test_refresh_during_mutation_is_not_rolled_back(self) -> None:
        store = _store(Record(id="a"))
        reverted: list[str] = []
        mutator = OptimisticMutator(store, FeedbackChannel())
        release = asyncio.Event()

        async def fails() -> None:
            await release.wait()
            raise ApiError(500, "boom")

        task = asyncio.create_task(
            mutator.mutate(
                "a", _flag, fails, on_revert=lambda before, after: reverted.append(before.id)
            )
        )
        await asyncio.sleep(0.01)
        store.replace_all([Record(id="a", value=7, flag=True)])
        release.set()
        result = await task

        assert not result.ok
        assert store.get("a").value == 7
        assert reverted == []

    async def test_unknown_record(self) -> None:
        mutator = OptimisticMutator(_store(), FeedbackChannel())

        async def operation() -> None:
            return None

        with pytest.raises(NotFoundException):
            await mutator.mutate("missing", _flag, operation)

    async def test_cancellation_restores_snapshot(self) -> None:
        store = _store(Record(id="a"))
        mutator = OptimisticMutator(store, FeedbackChannel())

        async def hangs() -> None:
            await asyncio.Event().wait()

        task = asyncio.create_task(mutator.mutate("a", _flag, hangs))
        await asyncio.sleep(0.01)
        assert store.get("a").flag is True
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert store.get("a").flag is False


class TestLoader:
    async def test_success_passes_data_through(self) -> None:
        async def fetch() -> list[int]:
            return [1, 2, 3]

        result = await load_with_fallback(fetch, [9], resource="numbers")
        assert result.data == [1, 2, 3]
        assert result.total == 3
        assert not result.is_fallback
        assert result.banner is None

    async def test_failure_uses_fresh_fallback_copy(self) -> None:
        fallback = [{"n": 1}]
        feedback = FeedbackChannel()

        async def fetch() -> list[dict]:
            raise ApiError(503, "Service unavailable")

        result = await load_with_fallback(fetch, fallback, resource="numbers", feedback=feedback)
        result.data[0]["n"] = 2

        assert fallback == [{"n": 1}]
        assert result.is_fallback
        assert result.error == "Service unavailable"
        assert result.banner == "Service unavailable - Showing fallback data"
        assert feedback.of_kind("banner")[0].message == result.banner

    async def test_fetch_list_sends_params(self, api: ZeroBinClient, upstream: Upstream) -> None:
        upstream.on("GET", "/listings", json_body=[{"id": "l-1"}, {"id": "l-2"}])

        result = await fetch_list_with_fallback(api, "/listings", {"status": "listed"}, list)

        assert result.data == [{"id": "l-1"}, {"id": "l-2"}]
        assert result.total == 2
        assert upstream.requests("GET", "/listings")[0].url.params["status"] == "listed"

    async def test_fetch_list_falls_back_after_one_attempt(
        self, api: ZeroBinClient, upstream: Upstream
    ) -> None:
        upstream.on("GET", "/listings", status=500, json_body={"detail": "Database down"})

        result = await fetch_list_with_fallback(api, "/listings", None, lambda: [{"id": "demo"}])

        assert result.is_fallback
        assert result.data == [{"id": "demo"}]
        assert result.error == "Database down"
        assert len(upstream.requests("GET", "/listings")) == 1


class TestTaskScope:
    async def test_close_cancels_pending_tasks(self) -> None:
        scope = TaskScope()
        task = scope.spawn(asyncio.sleep(10))
        assert scope.pending == 1
        await scope.close()
        assert task.cancelled()
        assert scope.pending == 0

    async def test_spawn_after_close(self) -> None:
        scope = TaskScope()
        await scope.close()
        with pytest.raises(RuntimeError):
            scope.spawn(asyncio.sleep(0))
