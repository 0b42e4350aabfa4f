"""Repository for user operations."""

from __future__ import annotations

from uuid import UUID

import asyncpg

from backend.db import user_conn
from backend.models.user import User


def _row_to_user(row: asyncpg.Record) -> User:
    """Convert a database row to a User model."""
    return User(
        id=row["id"],
        email=row["email"],
        name=row["name"],
        created_at=row["created_at"],
    )


class UserRepo:
    """All user-related database operations."""

    async def get(self, user_id: UUID) -> User | None:
        """
        Get a user by ID.

        Args:
            user_id: User UUID

        Returns:
            User if found, None otherwise
        """
        async with user_conn(user_id) as conn:
            row = await conn.fetchrow("SELECT * FROM users WHERE id = $1", user_id)
            return _row_to_user(row) if row else None
