"""Repository for widget operations."""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID, uuid4

import asyncpg

from backend.db import system_conn, user_conn
from backend.models.widget import CreateWidgetRequest, UpdateWidgetRequest, Widget


def _row_to_widget(row: asyncpg.Record) -> Widget:
    """Convert a database row to a Widget model."""
    return Widget(
        id=row["id"],
        company_id=row["company_id"],
        name=row["name"],
        type=row["type"],
        status=row["status"],
        config_json=row["config_json"],
        published_at=row["published_at"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class WidgetRepo:
    """All widget-related database operations."""

    async def create(self, user_id: UUID, req: CreateWidgetRequest) -> Widget:
        """
        Create a widget for one of the user's companies.

        Args:
            user_id: User UUID
            req: CreateWidgetRequest with a validated config and resolved type

        Returns:
            Newly created Widget
        """
        now = datetime.now(UTC)

        async with user_conn(user_id) as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO widgets (id, company_id, name, type, status, config_json, published_at, created_at, updated_at)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $8)
                RETURNING *
                """,
                uuid4(),
                req.company_id,
                req.name,
                req.type or "CAROUSEL",
                req.status,
                req.config_json,
                now if req.status == "PUBLISHED" else None,
                now,
            )
            return _row_to_widget(row)

    async def get(self, user_id: UUID, widget_id: UUID) -> Widget | None:
        """
        Get a widget by ID. RLS limits this to members of the owning company.

        Args:
            user_id: User UUID
            widget_id: Widget UUID

        Returns:
            Widget if found and visible to the user, None otherwise
        """
        async with user_conn(user_id) as conn:
            row = await conn.fetchrow("SELECT * FROM widgets WHERE id = $1", widget_id)
            return _row_to_widget(row) if row else None

    async def list_for_user(self, user_id: UUID, company_id: UUID | None = None) -> list[Widget]:
        """
        List widgets across the user's companies, or within one of them.

        Returns:
            List of Widget objects ordered by updated_at DESC
        """
        async with user_conn(user_id) as conn:
            if company_id is None:
                rows = await conn.fetch("SELECT * FROM widgets ORDER BY updated_at DESC")
            else:
                rows = await conn.fetch(
                    "SELECT * FROM widgets WHERE company_id = $1 ORDER BY updated_at DESC",
                    company_id,
                )
            return [_row_to_widget(row) for row in rows]

    async def update(
        self,
        user_id: UUID,
        widget_id: UUID,
        req: UpdateWidgetRequest,
        widget_type: str | None = None,
    ) -> Widget | None:
        """
        Partially update a widget. published_at is set the first time it is published.

        Args:
            user_id: User UUID
            widget_id: Widget UUID
            req: UpdateWidgetRequest with fields to update
            widget_type: Record type derived from the new config, if any

        Returns:
            Updated Widget if found and visible to the user, None otherwise
        """
        updates = {}
        if req.name is not None:
            updates["name"] = req.name
        if req.config_json is not None:
            updates["config_json"] = req.config_json
        if widget_type is not None:
            updates["type"] = widget_type
        if req.status is not None:
            updates["status"] = req.status

        if not updates:
            return await self.get(user_id, widget_id)

        set_clause = ", ".join(f"{k} = ${i + 2}" for i, k in enumerate(updates))
        if req.status == "PUBLISHED":
            set_clause += ", published_at = COALESCE(published_at, now())"
        values = list(updates.values())

        async with user_conn(user_id) as conn:
            # S608/B608: False positive - set_clause only contains fixed column names
            row = await conn.fetchrow(
                f"""
                UPDATE widgets
                SET {set_clause}, updated_at = now()
                WHERE id = $1
                RETURNING *
                """,  # nosec B608
                widget_id,
                *values,
            )
            return _row_to_widget(row) if row else None

    async def delete(self, user_id: UUID, widget_id: UUID) -> bool:
        """
        Delete a widget. Locations, reviews and overrides cascade.

        Returns:
            True if deleted, False if not found or not visible to the user
        """
        async with user_conn(user_id) as conn:
            result = await conn.execute("DELETE FROM widgets WHERE id = $1", widget_id)
            return result == "DELETE 1"

    async def get_published(self, widget_id: UUID) -> Widget | None:
        """
        Get a published widget for the public embed path.
        System conn: embed requests are anonymous.
        """
        async with system_conn() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM widgets WHERE id = $1 AND status = 'PUBLISHED'",
                widget_id,
            )
            return _row_to_widget(row) if row else None
