"""Error taxonomy for the chatbot API.

Every failure the API reports to a client is a ChatbotError subclass
carrying the HTTP status it maps to. Routes never build error responses
themselves; the handler registered in app.main renders them.
"""
from enum import Enum
from typing import Any, Dict, List, Optional


class ChatbotError(Exception):
    """Base error with a client-facing message and an HTTP status."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None):
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)

    def to_dict(self, debug: bool = False) -> Dict[str, Any]:
        body: Dict[str, Any] = {"message": self.message}
        if debug and self.detail:
            body["error"] = self.detail
        return body


class InvalidInput(ChatbotError):
    """Client-correctable input problem, reported per field."""

    status_code = 400
    default_message = "Validation failed"

    def __init__(
        self,
        errors: List[Dict[str, str]],
        message: Optional[str] = None,
    ):
        super().__init__(message)
        self.errors = errors

    @classmethod
    def for_field(cls, field: str, message: str) -> "InvalidInput":
        return cls([{"field": field, "message": message}])

    def to_dict(self, debug: bool = False) -> Dict[str, Any]:
        body = super().to_dict(debug)
        body["errors"] = self.errors
        return body


class Unauthorized(ChatbotError):
    status_code = 401
    default_message = "Not authorized"


class NotFound(ChatbotError):
    status_code = 404
    default_message = "Not found"


class UpstreamErrorKind(str, Enum):
    CLIENT_ERROR = "client_error"
    SERVER_ERROR = "server_error"
    MALFORMED_RESPONSE = "malformed_response"


class UpstreamError(ChatbotError):
    """
    Failure of the external generation API.

    Raised by the generation client with the upstream status preserved;
    ChatService re-raises it with the client-facing status and message.
    """

    status_code = 502
    default_message = "Error generating response"

    def __init__(
        self,
        kind: UpstreamErrorKind,
        detail: Optional[str] = None,
        upstream_status: Optional[int] = None,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, detail)
        self.kind = kind
        self.upstream_status = upstream_status
        if status_code is not None:
            self.status_code = status_code


class UpstreamRateLimited(UpstreamError):
    status_code = 429
    default_message = "Rate limit exceeded"

    def __init__(self, detail: Optional[str] = None, upstream_status: Optional[int] = 429):
        super().__init__(
            UpstreamErrorKind.CLIENT_ERROR,
            detail=detail,
            upstream_status=upstream_status,
        )


class StoreError(ChatbotError):
    status_code = 500
    default_message = "Database error"


class InternalError(ChatbotError):
    status_code = 500
    default_message = "Internal server error"
