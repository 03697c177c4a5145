# app/schemas/chat.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.models.chat import ChatKind


class ChatRequest(BaseModel):
    # documents the body only; ChatService validates the prompt after authentication
    prompt: Optional[str] = None


class ChatOut(BaseModel):
    """Client-facing projection of a ChatRecord; the owner is never exposed."""
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    id: int
    prompt: str
    response: str
    kind: ChatKind
    image_url: Optional[str] = None
    model_name: Optional[str] = None
    created_at: datetime


class PaginationOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current: int
    total_pages: int = Field(alias="total")
    page_size: int = Field(alias="limit")
    total_count: int = Field(alias="count")


class HistoryOut(BaseModel):
    chats: List[ChatOut]
    pagination: PaginationOut


class MessageOut(BaseModel):
    message: str
