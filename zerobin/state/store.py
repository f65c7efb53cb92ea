"""
Identity-keyed view state store.
Holds the ephemeral copy of server records a view renders, in server order.
"""
from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable, Iterator
from operator import attrgetter
from typing import Generic, TypeVar

T = TypeVar("T")


class ViewStore(Generic[T]):
    """
    Ordered collection of records keyed by identity.

    ``replace_all`` swaps the whole collection (the result of a fetch);
    ``put`` updates one record in place, keeping its position.
    """

    def __init__(self, key: Callable[[T], str] = attrgetter("id")) -> None:
        self._key = key
        self._records: dict[str, T] = {}
        self.total = 0
        self.loading = False
        self.error: str | None = None
        self.is_fallback = False

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._records.values()))

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._records

    @property
    def items(self) -> list[T]:
        return list(self._records.values())

    def get(self, record_id: str) -> T | None:
        return self._records.get(record_id)

    def replace_all(
        self,
        records: Iterable[T],
        *,
        total: int | None = None,
        is_fallback: bool = False,
    ) -> None:
        # Duplicate ids in one response collapse onto the later record
        fresh: dict[str, T] = {}
        for record in records:
            fresh[self._key(record)] = record
        self._records = fresh
        self.total = total if total is not None else len(fresh)
        self.is_fallback = is_fallback

    def put(self, record: T) -> None:
        self._records[self._key(record)] = record

    def clear(self) -> None:
        self._records = {}
        self.total = 0
        self.error = None
        self.is_fallback = False

    def filter(self, predicate: Callable[[T], bool]) -> list[T]:
        return [r for r in self._records.values() if predicate(r)]

    def count_by(self, attribute: str) -> dict[str, int]:
        return dict(Counter(getattr(r, attribute) for r in self._records.values()))
