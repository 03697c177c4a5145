"""Chat endpoint routes.

Provides:
- POST /api/chat/text - Generate a text answer
- POST /api/chat/image - Generate an image description
- GET /api/chat/history - Page through the caller's chat records
- DELETE /api/chat/{chat_id} - Delete one of the caller's chat records

Routes only translate HTTP to ChatService calls; authentication, validation
and error mapping happen in the service.
"""
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request

from app.core.deps import get_bearer_token, get_chat_service
from app.models.chat import ChatKind
from app.schemas.chat import ChatOut, ChatRequest, HistoryOut, MessageOut, PaginationOut
from app.services.chat_service import ChatService

router = APIRouter(prefix="/api/chat", tags=["chat"])


def _parse_int(value: Optional[str]) -> Optional[int]:
    """Lenient query parsing: anything that is not an integer counts as unset."""
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


async def read_prompt(request: Request) -> Any:
    """
    The "prompt" member of the JSON body, taken as-is.

    The body is not validated here so that an unauthenticated request is
    always answered with 401; ChatService rejects a bad prompt after it has
    checked the token.
    """
    try:
        payload = await request.json()
    except ValueError:
        return None
    if isinstance(payload, dict):
        return payload.get("prompt")
    return None


# body schema for the OpenAPI docs, the route itself reads the raw JSON
CHAT_REQUEST_BODY = {
    "requestBody": {
        "required": True,
        "content": {"application/json": {"schema": ChatRequest.model_json_schema()}},
    }
}


@router.post(
    "/text",
    response_model=ChatOut,
    response_model_exclude_none=True,
    openapi_extra=CHAT_REQUEST_BODY,
)
def chat_text(
    prompt: Any = Depends(read_prompt),
    token: Optional[str] = Depends(get_bearer_token),
    chat_service: ChatService = Depends(get_chat_service),
) -> ChatOut:
    """
    Generate a text answer for a prompt.

    Raises:
        Unauthorized: 401 if the bearer token is missing or invalid
        InvalidInput: 400 if the prompt is not 1-2000 characters
        UpstreamError: 400/401/429/502 if generation fails
        StoreError: 500 if the answer could not be saved
    """
    record = chat_service.handle_chat(token, ChatKind.TEXT, prompt)
    return ChatOut.model_validate(record)


@router.post(
    "/image",
    response_model=ChatOut,
    response_model_exclude_none=True,
    openapi_extra=CHAT_REQUEST_BODY,
)
def chat_image(
    prompt: Any = Depends(read_prompt),
    token: Optional[str] = Depends(get_bearer_token),
    chat_service: ChatService = Depends(get_chat_service),
) -> ChatOut:
    """Generate an image description and a placeholder image URL for a prompt."""
    record = chat_service.handle_chat(token, ChatKind.IMAGE, prompt)
    return ChatOut.model_validate(record)


@router.get("/history", response_model=HistoryOut)
def chat_history(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    token: Optional[str] = Depends(get_bearer_token),
    chat_service: ChatService = Depends(get_chat_service),
) -> HistoryOut:
    """
    List the caller's chat records, newest first.

    Args:
        page: 1-based page number (default 1)
        limit: Page size (default 20)
    """
    history = chat_service.list_history(token, _parse_int(page), _parse_int(limit))
    return HistoryOut(
        chats=[ChatOut.model_validate(record) for record in history.records],
        pagination=PaginationOut(
            current=history.current,
            total_pages=history.total_pages,
            page_size=history.page_size,
            total_count=history.total_count,
        ),
    )


@router.delete("/{chat_id}", response_model=MessageOut)
def delete_chat(
    chat_id: str,
    token: Optional[str] = Depends(get_bearer_token),
    chat_service: ChatService = Depends(get_chat_service),
) -> MessageOut:
    """
    Delete one of the caller's chat records.

    Raises:
        NotFound: 404 if the record does not exist, is not owned by the caller
            or the id is not a record id
    """
    chat_service.delete_chat(token, chat_id)
    return MessageOut(message="Chat deleted successfully")
