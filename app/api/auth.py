"""Authentication routes.

Provides:
- POST /api/auth/register - Create an account and receive a token
- POST /api/auth/login - Exchange credentials for a token
- GET /api/auth/me - Current user for a token
"""
from fastapi import APIRouter, Depends, status

from app.core.deps import get_auth_service, get_current_user
from app.models.user import User
from app.schemas.auth import LoginRequest, MeResponse, RegisterRequest, TokenResponse, UserOut
from app.services.auth_service import AuthService

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(
    request: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    user, token = auth_service.register(request.username, request.email, request.password)
    return TokenResponse(token=token, user=UserOut.model_validate(user))


@router.post("/login", response_model=TokenResponse)
def login(
    request: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    user, token = auth_service.login(request.email, request.password)
    return TokenResponse(token=token, user=UserOut.model_validate(user))


@router.get("/me", response_model=MeResponse)
def me(current_user: User = Depends(get_current_user)) -> MeResponse:
    return MeResponse(user=UserOut.model_validate(current_user))
