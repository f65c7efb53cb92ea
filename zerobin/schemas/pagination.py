"""
Generic paginated response schema.
The external API answers every list endpoint with items plus skip/limit metadata.
"""
from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, model_validator

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """
    Generic paginated response wrapper.
    A missing total is taken to be the number of items returned.
    """

    items: list[T] = []
    total: int = 0
    skip: int = 0
    limit: int | None = None

    model_config = {"extra": "ignore"}

    @model_validator(mode="before")
    @classmethod
    def default_total(cls, data: Any) -> Any:
        if isinstance(data, dict):
            items = data.get("items") or []
            if not data.get("total"):
                data = {**data, "items": items, "total": len(items)}
        return data
