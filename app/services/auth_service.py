"""Credential service: registration, login and bearer token verification."""
import logging
from typing import Optional, Tuple

import jwt
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import select

from app.config import Settings
from app.core.errors import InvalidInput, StoreError, Unauthorized
from app.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from app.database import Database
from app.models.user import User

logger = logging.getLogger(__name__)


class AuthService:
    """Issues tokens for credentials and resolves tokens to users."""

    def __init__(
        self,
        database: Database,
        jwt_secret: str,
        jwt_algorithm: str = "HS256",
        token_expire_minutes: int = 60 * 24 * 7,
    ):
        """
        Args:
            database: Database handle for user lookups
            jwt_secret: Key used to sign and verify tokens
            jwt_algorithm: JWT signing algorithm
            token_expire_minutes: Lifetime of issued tokens
        """
        self.database = database
        self.jwt_secret = jwt_secret
        self.jwt_algorithm = jwt_algorithm
        self.token_expire_minutes = token_expire_minutes

    @classmethod
    def from_settings(cls, database: Database, settings: Settings) -> "AuthService":
        return cls(
            database,
            jwt_secret=settings.JWT_SECRET,
            jwt_algorithm=settings.JWT_ALGORITHM,
            token_expire_minutes=settings.JWT_EXPIRE_MINUTES,
        )

    def issue_token(self, user_id: int, expires_minutes: Optional[int] = None) -> str:
        """Signed access token for user_id; expires_minutes overrides the configured lifetime."""
        return create_access_token(
            user_id,
            self.jwt_secret,
            algorithm=self.jwt_algorithm,
            expires_minutes=self.token_expire_minutes if expires_minutes is None else expires_minutes,
        )

    def register(self, username: str, email: str, password: str) -> Tuple[User, str]:
        """
        Create a user and issue a token.

        Raises:
            InvalidInput: If the username or email is already taken
        """
        email = email.strip().lower()
        username = username.strip()

        try:
            with self.database.session() as session:
                existing = session.exec(
                    select(User).where(or_(User.email == email, User.username == username))
                ).first()
                if existing:
                    field = "email" if existing.email == email else "username"
                    raise InvalidInput.for_field(field, f"User with this {field} already exists")

                user = User(
                    username=username,
                    email=email,
                    hashed_password=hash_password(password),
                )
                session.add(user)
                session.commit()
                session.refresh(user)
        except IntegrityError as e:
            # lost a race with a concurrent registration
            raise InvalidInput.for_field("email", "User already exists") from e
        except SQLAlchemyError as e:
            logger.exception("Failed to register user %s", email)
            raise StoreError("Error registering user", detail=str(e)) from e

        logger.info(f"User registered: id={user.id}")
        return user, self.issue_token(user.id)

    def login(self, email: str, password: str) -> Tuple[User, str]:
        """
        Check credentials and issue a token.

        Raises:
            Unauthorized: If the email is unknown or the password is wrong
        """
        email = email.strip().lower()
        try:
            with self.database.session() as session:
                user = session.exec(select(User).where(User.email == email)).first()
        except SQLAlchemyError as e:
            logger.exception("Failed to load user %s", email)
            raise StoreError("Error logging in", detail=str(e)) from e

        if not user or not verify_password(password, user.hashed_password):
            logger.warning("Failed login attempt")
            raise Unauthorized("Invalid credentials")

        return user, self.issue_token(user.id)

    def verify_token(self, token: Optional[str]) -> User:
        """
        Resolve a bearer token to its user.

        Raises:
            Unauthorized: If the token is missing, invalid, expired or
                refers to a user that no longer exists
        """
        if not token:
            raise Unauthorized("No token, authorization denied")

        try:
            payload = decode_access_token(token, self.jwt_secret, self.jwt_algorithm)
            user_id = int(payload["sub"])
        except (jwt.PyJWTError, KeyError, ValueError) as e:
            logger.warning(f"Token rejected: {str(e)}")
            raise Unauthorized("Token is not valid") from e

        try:
            with self.database.session() as session:
                user = session.get(User, user_id)
        except SQLAlchemyError as e:
            logger.exception("Failed to load user %s", user_id)
            raise StoreError("Error verifying token", detail=str(e)) from e

        if not user:
            raise Unauthorized("Token is not valid")
        return user
