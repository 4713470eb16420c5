"""Caller identity from bearer JWTs."""

from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Header
from jose import JWTError, jwt

from app.config import settings
from app.errors import AuthenticationError
from app.services.storage_service import OWNER_PATTERN


def create_access_token(user_id: str, expires_hours: Optional[int] = None) -> str:
    """Create a JWT whose subject is ``user_id``."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "iat": now,
        "exp": now + timedelta(hours=expires_hours or settings.JWT_EXPIRE_HOURS),
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> str:
    """Validate a JWT and return its subject."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise AuthenticationError("Invalid or expired token")
    subject = payload.get("sub")
    if not subject or not OWNER_PATTERN.match(subject):
        raise AuthenticationError("Token missing subject")
    return subject


async def get_current_user(authorization: Optional[str] = Header(None)) -> str:
    """FastAPI dependency returning the authenticated owner identity."""
    if not authorization:
        raise AuthenticationError("You must be logged in")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise AuthenticationError("Authorization header must be 'Bearer <token>'")
    return decode_token(token.strip())
