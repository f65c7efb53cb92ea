"""
Notification Pydantic schemas.
"""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from zerobin.schemas.pagination import Page


class NotificationMetadata(BaseModel):
    quest_bounty: float | None = None
    waste_type: str | None = None
    severity: str | None = None

    model_config = {"extra": "allow"}


class Notification(BaseModel):
    id: str
    notification_type: str
    title: str
    message: str
    related_quest_id: str | None = None
    metadata: NotificationMetadata | None = None
    is_read: bool = False
    created_at: datetime


class NotificationPage(Page[Notification]):
    unread_count: int = 0
