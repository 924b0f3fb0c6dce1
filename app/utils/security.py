"""
Password hashing and JWT helpers
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
from jose import JWTError, jwt

from app.config import settings

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    """Check if a password matches the hashed version."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Stored hash is not a bcrypt hash
        return False


def _encode(claims: Dict[str, Any], secret: str, expires_delta: timedelta, token_type: str) -> str:
    to_encode = claims.copy()
    to_encode.update({
        "type": token_type,
        "iat": datetime.now(timezone.utc),
        "exp": datetime.now(timezone.utc) + expires_delta,
    })
    return jwt.encode(to_encode, secret, algorithm=settings.JWT_ALGORITHM)


def create_access_token(claims: Dict[str, Any]) -> str:
    return _encode(
        claims,
        settings.JWT_SECRET_KEY,
        timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        ACCESS_TOKEN_TYPE,
    )


def create_refresh_token(claims: Dict[str, Any]) -> str:
    return _encode(
        claims,
        settings.REFRESH_TOKEN_SECRET_KEY,
        timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        REFRESH_TOKEN_TYPE,
    )


def decode_token(token: str, token_type: str = ACCESS_TOKEN_TYPE) -> Optional[Dict[str, Any]]:
    """
    Decode and validate a token

    Returns:
        The payload, or None if the token is invalid, expired or of another type
    """
    secret = settings.JWT_SECRET_KEY if token_type == ACCESS_TOKEN_TYPE else settings.REFRESH_TOKEN_SECRET_KEY
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        logger.debug(f"Token rejected: {str(e)}")
        return None

    if payload.get("type") != token_type:
        return None
    return payload
