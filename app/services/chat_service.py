"""Chat service layer: the request pipeline behind the chat endpoints.

Handles:
- Authentication of the caller (before anything else runs)
- Prompt validation
- Dispatch to the generation API and upstream error mapping
- Persistence of the resulting chat record
- History paging and owner-scoped deletion
"""
import logging
import math
from dataclasses import dataclass
from typing import Any, List, Optional, Union

from app.core.errors import (
    InvalidInput,
    NotFound,
    StoreError,
    UpstreamError,
    UpstreamErrorKind,
    UpstreamRateLimited,
)
from app.models.chat import ChatKind, ChatRecord
from app.services.auth_service import AuthService
from app.services.chat_repository import MAX_SQL_INT, ChatRepository, normalize_page
from app.services.generation_client import GenerationClient

logger = logging.getLogger(__name__)

PROMPT_MIN_LENGTH = 1
PROMPT_MAX_LENGTH = 2000


@dataclass
class HistoryPage:
    records: List[ChatRecord]
    current: int
    total_pages: int
    page_size: int
    total_count: int


class ChatService:
    """Service layer for chat operations. Holds no per-request state."""

    def __init__(
        self,
        credentials: AuthService,
        generator: GenerationClient,
        repository: ChatRepository,
        debug: bool = False,
    ):
        """
        Args:
            credentials: Resolves bearer tokens to users
            generator: Generation API client
            repository: Chat record store
            debug: Attach upstream details to client-facing errors
        """
        self.credentials = credentials
        self.generator = generator
        self.repository = repository
        self.debug = debug

    def handle_chat(self, token: Optional[str], kind: ChatKind, prompt: Any) -> ChatRecord:
        """
        Generate and store a response for a prompt.

        Flow:
        1. Authenticate the token
        2. Validate the prompt
        3. Call the generation API
        4. Map upstream failures to client-facing errors
        5. Store the chat record
        6. Return it

        Returns:
            The stored ChatRecord

        Raises:
            Unauthorized: Missing or invalid token (nothing else is called)
            InvalidInput: Prompt missing, not a string, or not 1-2000 characters after trimming
            UpstreamError: Generation failed (400/401/429/502 per upstream status)
            StoreError: Response generated but could not be saved
        """
        user = self.credentials.verify_token(token)
        prompt = self.validate_prompt(prompt)

        try:
            result = self.generator.generate(kind, prompt)
        except UpstreamError as e:
            raise self._map_upstream_error(e, user.id) from e

        try:
            record = self.repository.create(
                user_id=user.id,
                prompt=prompt,
                response=result.response_text,
                kind=kind,
                model_name=result.model_name,
                image_url=result.image_url,
                tokens=result.tokens,
            )
        except StoreError as e:
            logger.error(f"Generated response could not be saved for user {user.id}: {e.detail}")
            raise StoreError(
                "Response generated but could not be saved", detail=e.detail
            ) from e

        logger.info(
            f"Chat processed: user={user.id}, kind={kind.value}, record={record.id}, "
            f"model={record.model_name}, tokens={record.tokens}"
        )
        return record

    def list_history(
        self,
        token: Optional[str],
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> HistoryPage:
        """
        Get one page of the caller's chat history, newest first.

        Raises:
            Unauthorized: Missing or invalid token
            StoreError: History could not be read
        """
        user = self.credentials.verify_token(token)
        page, page_size = normalize_page(page, page_size)

        try:
            records, total = self.repository.list_by_user(user.id, page, page_size)
        except StoreError as e:
            raise StoreError("Error retrieving chat history", detail=e.detail) from e

        return HistoryPage(
            records=records,
            current=page,
            total_pages=math.ceil(total / page_size),
            page_size=page_size,
            total_count=total,
        )

    def delete_chat(self, token: Optional[str], record_id: Union[int, str]) -> None:
        """
        Delete one of the caller's chat records.

        A record that does not exist, a record owned by someone else and an
        id that is not a record id all produce NotFound.

        Raises:
            Unauthorized: Missing or invalid token
            NotFound: No record with this id owned by the caller
            StoreError: Deletion failed
        """
        user = self.credentials.verify_token(token)

        try:
            record_id = int(record_id)
        except (TypeError, ValueError):
            raise NotFound("Chat not found")
        if not 1 <= record_id <= MAX_SQL_INT:
            raise NotFound("Chat not found")

        try:
            deleted = self.repository.delete_one(record_id, user.id)
        except StoreError as e:
            raise StoreError("Error deleting chat", detail=e.detail) from e

        if not deleted:
            raise NotFound("Chat not found")

        logger.info(f"Chat deleted: user={user.id}, record={record_id}")

    @staticmethod
    def validate_prompt(prompt: Any) -> str:
        """Return the trimmed prompt or raise InvalidInput."""
        if prompt is None:
            raise InvalidInput.for_field("prompt", "Prompt is required")
        if not isinstance(prompt, str):
            raise InvalidInput.for_field("prompt", "Prompt must be a string")

        prompt = prompt.strip()
        if not PROMPT_MIN_LENGTH <= len(prompt) <= PROMPT_MAX_LENGTH:
            raise InvalidInput.for_field(
                "prompt",
                f"Prompt must be {PROMPT_MIN_LENGTH}-{PROMPT_MAX_LENGTH} characters",
            )
        return prompt

    def _map_upstream_error(self, error: UpstreamError, user_id: int) -> UpstreamError:
        detail = error.detail if self.debug else None
        status = error.upstream_status

        logger.error(
            f"Generation failed for user {user_id}: kind={error.kind.value}, "
            f"upstream_status={status}, detail={error.detail}"
        )

        if error.kind == UpstreamErrorKind.CLIENT_ERROR:
            if status == 429:
                return UpstreamRateLimited(detail=detail, upstream_status=status)
            if status == 400:
                return UpstreamError(
                    error.kind,
                    detail=detail,
                    upstream_status=status,
                    message="Invalid request to generation API",
                    status_code=400,
                )
            if status in (401, 403):
                return UpstreamError(
                    error.kind,
                    detail=detail,
                    upstream_status=status,
                    message="Invalid API key",
                    status_code=401,
                )

        return UpstreamError(error.kind, detail=detail, upstream_status=status)
