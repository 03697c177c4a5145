"""Persistence of chat records, always scoped to the owning user."""
import logging
from typing import List, Optional, Tuple

from sqlalchemy import delete, func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from app.core.errors import StoreError
from app.database import Database
from app.models.chat import ChatKind, ChatRecord

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 20
# OFFSET and LIMIT are bound as signed 64-bit integers
MAX_SQL_INT = 2 ** 63 - 1


def normalize_page(page: Optional[int], page_size: Optional[int]) -> Tuple[int, int]:
    """
    Fall back to page 1 / 20 per page for missing, non-positive or
    out-of-range values.
    """
    if not isinstance(page_size, int) or not 1 <= page_size <= MAX_SQL_INT:
        page_size = DEFAULT_PAGE_SIZE
    if not isinstance(page, int) or page < 1 or (page - 1) * page_size > MAX_SQL_INT:
        page = DEFAULT_PAGE
    return page, page_size


class ChatRepository:
    """Create, page through and delete chat records."""

    def __init__(self, database: Database):
        self.database = database

    def create(
        self,
        user_id: int,
        prompt: str,
        response: str,
        kind: ChatKind,
        model_name: str,
        image_url: Optional[str] = None,
        tokens: int = 0,
    ) -> ChatRecord:
        """
        Store a chat record.

        Returns:
            The stored ChatRecord with id and created_at assigned

        Raises:
            StoreError: If the insert fails
        """
        record = ChatRecord(
            user_id=user_id,
            prompt=prompt,
            response=response,
            kind=kind,
            image_url=image_url if kind == ChatKind.IMAGE else None,
            model_name=model_name,
            tokens=tokens,
        )
        try:
            with self.database.session() as session:
                session.add(record)
                session.commit()
                session.refresh(record)
        except SQLAlchemyError as e:
            logger.exception("Failed to store chat record for user %s", user_id)
            raise StoreError(detail=str(e)) from e
        return record

    def list_by_user(
        self,
        user_id: int,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> Tuple[List[ChatRecord], int]:
        """
        Get one page of a user's records, newest first.

        Returns:
            Tuple of (records, total record count for the user)
        """
        page, page_size = normalize_page(page, page_size)

        statement = (
            select(ChatRecord)
            .where(ChatRecord.user_id == user_id)
            .order_by(ChatRecord.created_at.desc(), ChatRecord.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        count_statement = (
            select(func.count()).select_from(ChatRecord).where(ChatRecord.user_id == user_id)
        )

        try:
            with self.database.session() as session:
                records = list(session.exec(statement).all())
                total = session.exec(count_statement).one()
        except SQLAlchemyError as e:
            logger.exception("Failed to list chat records for user %s", user_id)
            raise StoreError(detail=str(e)) from e

        return records, total

    def delete_one(self, record_id: int, user_id: int) -> bool:
        """
        Delete a record if, and only if, it belongs to user_id.

        Returns:
            True if a record was deleted, False if none matched
        """
        statement = delete(ChatRecord).where(
            ChatRecord.id == record_id,
            ChatRecord.user_id == user_id,
        )
        try:
            with self.database.session() as session:
                result = session.exec(statement)
                session.commit()
        except SQLAlchemyError as e:
            logger.exception("Failed to delete chat record %s for user %s", record_id, user_id)
            raise StoreError(detail=str(e)) from e

        return result.rowcount > 0
