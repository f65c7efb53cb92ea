"""
Listing chat Pydantic schemas.
A chat opens between seller and kabadiwala once a bid is accepted on a listing.
"""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class Chat(BaseModel):
    id: str
    listing_id: str | None = None
    status: str = "unlocked"

    # Chat ids come back as integers from some deployments
    model_config = {"extra": "allow", "coerce_numbers_to_str": True}


class ChatCreate(BaseModel):
    listing_id: str


class ChatMessage(BaseModel):
    id: str
    sender_id: str
    content: str
    created_at: datetime
    is_read: bool = False

    model_config = {"coerce_numbers_to_str": True}


class MessageCreate(BaseModel):
    content: str = Field(min_length=1)


class DealConfirmation(BaseModel):
    confirm: bool = True
