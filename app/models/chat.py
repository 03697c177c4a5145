"""ChatRecord SQLModel definition.

Models:
- ChatKind: text answer or image description
- ChatRecord: one persisted prompt/response exchange
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import Column, DateTime, Index, Text
from sqlmodel import Field, SQLModel


class ChatKind(str, Enum):
    TEXT = "text"
    IMAGE = "image"


class ChatRecord(SQLModel, table=True):
    """
    One prompt/response exchange.

    Ownership: each record belongs to exactly one user via user_id.
    All queries MUST filter by user_id. Records are never updated,
    only created and deleted.
    """
    __tablename__ = "chat_records"
    __table_args__ = (
        Index("ix_chat_records_user_created", "user_id", "created_at"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", nullable=False)
    prompt: str = Field(sa_column=Column(Text, nullable=False))
    response: str = Field(sa_column=Column(Text, nullable=False))
    kind: ChatKind = Field(default=ChatKind.TEXT)
    image_url: Optional[str] = Field(default=None, max_length=512)
    model_name: str = Field(max_length=100)
    tokens: int = Field(default=0)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_type=DateTime(timezone=True),
    )
