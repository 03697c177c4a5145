"""Password hashing and bearer token helpers."""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import bcrypt
import jwt

# bcrypt only uses the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


def _secret(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Hash a plain password with a fresh bcrypt salt."""
    return bcrypt.hashpw(_secret(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(_secret(password), hashed_password.encode("utf-8"))
    except ValueError:
        # stored hash is not a bcrypt hash
        return False


def create_access_token(
    subject: Any,
    secret: str,
    algorithm: str = "HS256",
    expires_minutes: int = 60 * 24 * 7,
) -> str:
    """
    Issue a signed access token.

    Args:
        subject: User ID stored in the "sub" claim
        secret: Signing key
        algorithm: JWT signing algorithm
        expires_minutes: Token lifetime

    Returns:
        Encoded JWT string
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(subject),
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(payload, secret, algorithm=algorithm)


def decode_access_token(token: str, secret: str, algorithm: str = "HS256") -> Dict[str, Any]:
    """
    Decode and verify an access token.

    Raises:
        jwt.PyJWTError: If the token is malformed, tampered with or expired
    """
    return jwt.decode(
        token,
        secret,
        algorithms=[algorithm],
        options={"require": ["sub", "exp"]},
    )
