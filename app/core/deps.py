"""FastAPI dependencies shared by the routers.

Services are built once at startup (see app.main) and stored on app.state;
these functions hand them to the routes.
"""
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.models.user import User
from app.services.auth_service import AuthService
from app.services.chat_service import ChatService

# auto_error=False: a missing header is reported by the services as Unauthorized
bearer_scheme = HTTPBearer(auto_error=False)


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    """Raw bearer token from the Authorization header, or None."""
    if credentials is None:
        return None
    return credentials.credentials


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_chat_service(request: Request) -> ChatService:
    return request.app.state.chat_service


def get_current_user(
    token: Optional[str] = Depends(get_bearer_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> User:
    """
    Authenticated user for routes outside the chat pipeline.

    Raises:
        Unauthorized: If the token is missing or invalid
    """
    return auth_service.verify_token(token)
