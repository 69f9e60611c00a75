"""
Authentication and Authorization Module

Provides actor lookup dependencies for FastAPI endpoints.
Tokens are issued by an external identity provider; this module only
validates them (via security.py) and maps their claims onto an Actor.

SECURITY NOTE:
- Development mode test tokens are ONLY accepted when PYTHON_ENV=development
- Production environments MUST set PYTHON_ENV=production to disable them
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import settings
from app.core.security import decode_token

logger = logging.getLogger(__name__)

# Security scheme for OpenAPI documentation
security = HTTPBearer(
    auto_error=True,
    description="JWT Bearer token describing the current actor",
)


class ActorRole(str, Enum):
    """Roles that can act on transfer documents."""

    DIRECTOR = "director"
    STUDENT = "student"


@dataclass
class Actor:
    """
    The authenticated user behind a request.

    Attributes:
        id: Identifier issued by the identity provider
        name: Display name
        role: director or student
        school: School the actor belongs to
        city: City of that school
        class_name: Student class (turma), students only
        grade: Student grade level (classe), students only
        national_id: Student BI number, students only
    """

    id: str
    name: str
    role: ActorRole
    school: str
    city: str
    class_name: str | None = None
    grade: str | None = None
    national_id: str | None = None

    @property
    def is_director(self) -> bool:
        return self.role == ActorRole.DIRECTOR

    @property
    def is_student(self) -> bool:
        return self.role == ActorRole.STUDENT

    def __str__(self) -> str:
        return f"Actor(id={self.id}, role={self.role.value}, school={self.school})"


def _is_dev_mode_safe() -> bool:
    """
    Check if development test tokens may be accepted.

    Requires PYTHON_ENV=development in settings AND no production/staging
    value in the raw environment.
    """
    env_var = os.getenv("PYTHON_ENV", "").lower()

    is_safe = (
        settings.is_development
        and not settings.is_production
        and env_var not in ("production", "staging")
    )

    if is_safe:
        logger.warning("SECURITY: Development auth mode is ENABLED. Do not use in production!")

    return is_safe


_DEVELOPMENT_MODE = _is_dev_mode_safe()

# Demo actors matching the seeded test users of the school network
_DEV_ACTORS: dict[str, Actor] = {
    "dev-director": Actor(
        id="1",
        name="Dr. Carlos Silva",
        role=ActorRole.DIRECTOR,
        school="Escola Primária São João",
        city="Maputo",
    ),
    "dev-student": Actor(
        id="3",
        name="Maria Silva",
        role=ActorRole.STUDENT,
        school="Escola Técnica de Gaza",
        city="Gaza",
        class_name="11B",
        grade="11",
        national_id="987654321",
    ),
}


def _unauthorized(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


def actor_from_claims(payload: dict) -> Actor:
    """
    Build an Actor from decoded token claims.

    Raises:
        ValueError: If a required claim is missing or the role is unknown
    """
    actor_id = payload.get("sub")
    if not actor_id:
        raise ValueError("Missing 'sub' claim in token")

    for claim in ("name", "role", "school", "city"):
        if not payload.get(claim):
            raise ValueError(f"Missing '{claim}' claim in token")

    return Actor(
        id=str(actor_id),
        name=payload["name"],
        role=ActorRole(payload["role"]),
        school=payload["school"],
        city=payload["city"],
        class_name=payload.get("class_name"),
        grade=payload.get("grade"),
        national_id=payload.get("national_id"),
    )


async def _validate_jwt_token(token: str) -> Actor:
    """
    Validate a bearer token and extract the actor.

    Raises:
        HTTPException 401: If the token is invalid, expired or malformed
    """
    if _DEVELOPMENT_MODE and token in _DEV_ACTORS:
        logger.debug("Development mode: Using test actor")
        return _DEV_ACTORS[token]

    payload = decode_token(token)

    if payload is None:
        logger.warning("Invalid or expired JWT token")
        raise _unauthorized("INVALID_TOKEN", "Invalid or expired authentication token.")

    if payload.get("type", "access") != "access":
        logger.warning(f"Invalid token type: {payload.get('type')}")
        raise _unauthorized("INVALID_TOKEN_TYPE", "This endpoint requires an access token.")

    try:
        return actor_from_claims(payload)
    except ValueError as e:
        logger.warning(f"Invalid token claims: {e}")
        raise _unauthorized(
            "INVALID_TOKEN_CLAIMS", "Token contains invalid or missing claims."
        ) from e


async def get_current_actor(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Actor:
    """
    FastAPI dependency returning the authenticated actor.

    Raises:
        HTTPException 401: If the token is missing, invalid or expired
    """
    actor = await _validate_jwt_token(credentials.credentials)
    logger.debug(f"Authenticated actor: {actor}")
    return actor


async def get_current_director(actor: Actor = Depends(get_current_actor)) -> Actor:
    """
    Dependency requiring a school director.

    Raises:
        HTTPException 403: If the actor is not a director
    """
    if not actor.is_director:
        logger.warning(f"Access denied: {actor} is not a director")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "DIRECTOR_ACCESS_REQUIRED",
                "message": "Only school directors can perform this action.",
            },
        )
    return actor


async def get_current_student(actor: Actor = Depends(get_current_actor)) -> Actor:
    """
    Dependency requiring a student.

    Raises:
        HTTPException 403: If the actor is not a student
    """
    if not actor.is_student:
        logger.warning(f"Access denied: {actor} is not a student")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "STUDENT_ACCESS_REQUIRED",
                "message": "Only students can perform this action.",
            },
        )
    return actor


__all__ = [
    "Actor",
    "ActorRole",
    "actor_from_claims",
    "get_current_actor",
    "get_current_director",
    "get_current_student",
]
