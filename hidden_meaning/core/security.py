# hidden_meaning/core/security.py
import logging
from datetime import datetime, timedelta, timezone
from jose import jwt, JWTError
from fastapi import HTTPException, status

from hidden_meaning.core.config import settings

logger = logging.getLogger("hidden_meaning.core.security")  # Logger for this module


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Issues a token in the same shape the identity provider does. Used by tests and local tooling."""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    if settings.JWT_AUDIENCE and "aud" not in to_encode:
        to_encode["aud"] = settings.JWT_AUDIENCE
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


async def verify_identity_token(token: str) -> dict:
    """
    Verifies a bearer token from the identity provider and returns its claims.
    Raises HTTPException(401) if the token is invalid or expired.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            options={"verify_aud": settings.JWT_AUDIENCE is not None},
        )
        return payload
    except JWTError as e: # Expired, bad signature, wrong audience...
        logger.warning(f"JWTError during identity token verification: {e}")
        raise credentials_exception
