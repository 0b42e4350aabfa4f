"""
Authentication for the review widgets dashboard API.

JWT issuance and verification, and the current-user dependency. The
dashboard sends the session cookie; the builder's HTTP gateway may send
the same JWT as a Bearer token.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Annotated
from uuid import UUID

import jwt
from fastapi import Cookie, Header, HTTPException, status

from backend import config
from backend.models.user import User
from backend.repos.user_repo import UserRepo

user_repo = UserRepo()


def create_jwt(user_id: UUID) -> str:
    """
    Create a JWT for a user session.

    Args:
        user_id: User UUID to encode in the token

    Returns:
        Signed JWT string
    """
    expires_at = datetime.now(UTC) + timedelta(hours=config.settings.JWT_EXPIRY_HOURS)
    payload = {
        "sub": str(user_id),
        "exp": expires_at,
        "iat": datetime.now(UTC),
    }
    return jwt.encode(payload, config.settings.JWT_SECRET, algorithm=config.settings.JWT_ALGORITHM)


def decode_jwt(token: str) -> dict:
    """
    Decode and verify a JWT.

    Args:
        token: JWT string to decode

    Returns:
        Decoded payload

    Raises:
        HTTPException: If token is invalid or expired
    """
    try:
        return jwt.decode(token, config.settings.JWT_SECRET, algorithms=[config.settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session expired. Please sign in again.",
        ) from e
    except jwt.InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid session token. Please sign in again.",
        ) from e


async def get_user_from_jwt(token: str) -> User:
    """
    Resolve a session JWT to its user.

    Raises:
        HTTPException: If the token is invalid or the user no longer exists
    """
    payload = decode_jwt(token)
    try:
        user_id = UUID(payload.get("sub") or "")
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid session token. Please sign in again.",
        ) from e

    user = await user_repo.get(user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found. Please sign in again.",
        )
    return user


async def get_current_user(
    session: Annotated[str | None, Cookie()] = None,
    authorization: Annotated[str | None, Header()] = None,
) -> User:
    """
    FastAPI dependency to get the current authenticated user.

    Tries the Bearer header first, then the session cookie.

    Raises:
        HTTPException: If authentication fails
    """
    if authorization and authorization.startswith("Bearer "):
        return await get_user_from_jwt(authorization.removeprefix("Bearer "))

    if session:
        return await get_user_from_jwt(session)

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated. Please sign in.",
    )
