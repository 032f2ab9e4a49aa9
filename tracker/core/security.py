"""Security utilities for handling JWT tokens and resolving the acting user."""

import logging
from typing import Optional
from datetime import timedelta
import jwt
from fastapi import Request
from .config import settings
from tracker.core.exceptions import NotAuthenticated
from tracker.schemas.actorSchema import Actor
from tracker.utils.time import utcnow

logger = logging.getLogger(__name__)


def create_jwt_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Creates a JWT (JSON Web Token) with the provided data and expiration time.

    Args:
        data (dict): The payload data to be encoded in the JWT.
        expires_delta (timedelta, optional): The time until the token expires.
            Defaults to ACCESS_TOKEN_EXPIRE_MINUTES.

    Returns:
        str: The encoded JWT string.

    Example:
        >>> token = create_jwt_token({"sub": "u-1", "projects": [1], "groups": []})

    Note:
        The token includes standard JWT claims:
        - exp (expiration time)
        - iat (issued at time)
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = data.copy()
    now = utcnow()
    to_encode.update({
        "exp": now + expires_delta,
        "iat": now,
    })
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_jwt_token(token: str) -> dict:
    """Decodes and validates a JWT token.

    Args:
        token (str): The JWT token string to decode.

    Returns:
        dict: The decoded token payload containing the claims.

    Raises:
        jwt.InvalidTokenError: If the token is invalid, expired, or improperly formatted.
    """
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
    except jwt.InvalidTokenError as e:
        logger.info(f"JWT Decode Error: {str(e)}")
        raise


def _extract_token(request: Request) -> Optional[str]:
    token = request.cookies.get("auth_token")
    if token:
        return token
    authorization = request.headers.get("authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return None


async def get_current_actor(request: Request) -> Actor:
    """
    Dependency to get the acting user from the JWT cookie or bearer header.
    Raises 401 if not authenticated.

    Project and group memberships come from the ``projects`` and ``groups``
    claims; role management lives with the identity provider.
    """
    token = _extract_token(request)

    if not token:
        raise NotAuthenticated("Not authenticated")

    try:
        payload = decode_jwt_token(token)
    except jwt.InvalidTokenError:
        raise NotAuthenticated("Invalid authentication token")

    actor_id = payload.get("sub")
    if not actor_id:
        raise NotAuthenticated("Invalid token")

    return Actor(
        actor_id=str(actor_id),
        project_ids=frozenset(payload.get("projects") or []),
        group_ids=frozenset(payload.get("groups") or []),
    )
