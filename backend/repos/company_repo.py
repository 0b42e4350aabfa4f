"""Repository for company membership checks."""

from __future__ import annotations

from uuid import UUID

from backend.db import user_conn


class CompanyRepo:
    """Company lookups, always scoped to the signed-in user."""

    async def is_member(self, user_id: UUID, company_id: UUID) -> bool:
        """
        Check whether a user belongs to a company.

        Args:
            user_id: User UUID
            company_id: Company UUID

        Returns:
            True if the user is a member (any role)
        """
        async with user_conn(user_id) as conn:
            found = await conn.fetchval(
                "SELECT 1 FROM company_members WHERE company_id = $1 AND user_id = $2",
                company_id,
                user_id,
            )
            return found is not None
