"""User model for authentication and company membership."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr


class User(BaseModel):
    """Core user model. Represents a row in the users table."""

    id: UUID
    email: EmailStr
    name: str | None = None
    created_at: datetime
