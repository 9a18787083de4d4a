# backend/core/security.py
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError

from core.config import settings


JWT_SECRET = settings.SECRET_KEY
JWT_ALGORITHM = settings.JWT_ALGORITHM

# Token expiry (minutes) default from settings
ACCESS_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES


def create_access_token(
    subject: str,
    expires_minutes: Optional[int] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Mint a JWT for `subject` (a user id). Login lives in the accounts service;
    this exists so operators and tests can produce a token the API accepts.
    """
    if expires_delta is not None:
        exp = datetime.now(timezone.utc) + expires_delta
    else:
        exp = datetime.now(timezone.utc) + timedelta(
            minutes=expires_minutes or ACCESS_EXPIRE_MINUTES
        )

    to_encode = {"sub": str(subject), "exp": exp}
    return jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    """
    Decode and validate a JWT. Raises JWTError on invalid/expired tokens.
    """
    return jwt.decode(
        token,
        JWT_SECRET,
        algorithms=[JWT_ALGORITHM],
        options={"verify_aud": False},  # we don't use 'aud'
    )


def user_id_from_token(token: str) -> Optional[int]:
    """`sub` as an int, or None when the token is bad or carries no numeric subject."""
    try:
        payload = decode_token(token)
    except JWTError:
        return None
    try:
        return int(payload.get("sub"))
    except (TypeError, ValueError):
        return None
