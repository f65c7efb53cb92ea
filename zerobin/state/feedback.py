"""
User feedback channel.
Views report outcomes here instead of printing: short-lived toasts, persistent
banners for list-level problems, and blocking modals for errors the user must
act on (fraud rejection, weight mismatch).
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Literal

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

NoticeKind = Literal["toast", "banner", "modal"]
NoticeLevel = Literal["success", "info", "warning", "error"]


class Notice(BaseModel):
    kind: NoticeKind
    level: NoticeLevel
    message: str
    title: str | None = None
    lines: list[str] = Field(default_factory=list)
    data: dict[str, Any] = Field(default_factory=dict)


class FeedbackChannel:
    """Collects notices in emission order and forwards them to an optional listener."""

    def __init__(self, listener: Callable[[Notice], None] | None = None) -> None:
        self._listener = listener
        self.notices: list[Notice] = []

    def emit(self, notice: Notice) -> Notice:
        self.notices.append(notice)
        log = logger.warning if notice.level == "error" else logger.debug
        log("%s[%s]: %s", notice.kind, notice.level, notice.message)
        if self._listener is not None:
            self._listener(notice)
        return notice

    # ── Shorthands ────────────────────────────────────────────────────────────

    def toast(self, message: str, level: NoticeLevel = "info") -> Notice:
        return self.emit(Notice(kind="toast", level=level, message=message))

    def success(self, message: str) -> Notice:
        return self.toast(message, "success")

    def error(self, message: str) -> Notice:
        return self.toast(message, "error")

    def banner(self, message: str, level: NoticeLevel = "error") -> Notice:
        return self.emit(Notice(kind="banner", level=level, message=message))

    def modal(
        self,
        title: str,
        message: str,
        *,
        lines: list[str] | None = None,
        level: NoticeLevel = "error",
        data: dict[str, Any] | None = None,
    ) -> Notice:
        return self.emit(
            Notice(
                kind="modal",
                level=level,
                title=title,
                message=message,
                lines=lines or [],
                data=data or {},
            )
        )

    # ── Queries ───────────────────────────────────────────────────────────────

    def of_kind(self, kind: NoticeKind) -> list[Notice]:
        return [n for n in self.notices if n.kind == kind]

    @property
    def last(self) -> Notice | None:
        return self.notices[-1] if self.notices else None

    @property
    def errors(self) -> list[Notice]:
        return [n for n in self.notices if n.level == "error"]

    def dismiss(self, kind: NoticeKind | None = None) -> None:
        if kind is None:
            self.notices.clear()
        else:
            self.notices = [n for n in self.notices if n.kind != kind]
