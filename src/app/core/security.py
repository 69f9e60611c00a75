"""
Security Utilities

JWT encoding and decoding for actor tokens. Authentication itself (login,
passwords) lives outside this service; tokens are minted by the identity
provider or by scripts/issue_dev_token.py.
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from app.core.config import settings

logger = logging.getLogger(__name__)


def create_access_token(*, subject: dict[str, Any], expires_minutes: int | None = None) -> str:
    """
    Create a signed access token.

    Args:
        subject: Claims to embed (must include "sub")
        expires_minutes: Lifetime override, defaults to settings

    Returns:
        Encoded JWT string
    """
    if expires_minutes is None:
        expires_minutes = settings.access_token_expire_minutes

    to_encode = subject.copy()
    expire = datetime.now(UTC) + timedelta(minutes=expires_minutes)
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict[str, Any] | None:
    """
    Decode and validate a JWT.

    Returns:
        The claims, or None if the signature, algorithm or expiry is invalid
    """
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.debug(f"Token rejected: {e}")
        return None
