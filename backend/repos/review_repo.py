"""
Repository for the reviews a widget displays.

Reads only. Reviews arrive through the provider sync; the dashboard edits
overrides (hidden, pinned, excerpt, tags) elsewhere. Used by the public
embed path, so every query runs on a system connection.
"""

from __future__ import annotations

from uuid import UUID

import asyncpg

from backend.db import system_conn
from engine.widget.types import Review, Summary


def _row_to_review(row: asyncpg.Record) -> Review:
    """Convert a joined review + override row to the engine's Review."""
    return Review(
        id=str(row["id"]),
        author_name=row["author_name"],
        author_avatar_url=row["author_avatar_url"],
        rating=row["rating"],
        text=row["text"],
        date=row["review_created_at"],
        review_url=row["review_url"],
        pinned=row["pinned"],
        hidden=row["hidden"],
        custom_excerpt=row["custom_excerpt"],
        tags=row["tags"] or [],
    )


class ReviewRepo:
    """Review and rating-summary reads for a widget."""

    async def list_for_widget(self, widget_id: UUID) -> list[Review]:
        """
        All reviews from the widget's enabled locations, newest first.

        Hidden reviews are included, flagged by their override.

        Args:
            widget_id: Widget UUID

        Returns:
            List of Review objects with overrides applied
        """
        async with system_conn() as conn:
            rows = await conn.fetch(
                """
                SELECT r.id, r.author_name, r.author_avatar_url, r.rating, r.text,
                       r.review_url, r.review_created_at,
                       COALESCE(o.pinned, false) AS pinned,
                       COALESCE(o.hidden, false) AS hidden,
                       o.custom_excerpt,
                       COALESCE(o.tags, '[]'::jsonb) AS tags
                FROM reviews r
                JOIN widget_locations l ON l.id = r.widget_location_id
                LEFT JOIN review_overrides o ON o.review_id = r.id
                WHERE l.widget_id = $1 AND l.enabled
                ORDER BY r.review_created_at DESC
                """,
                widget_id,
            )
            return [_row_to_review(row) for row in rows]

    async def get_summary(self, widget_id: UUID) -> Summary | None:
        """
        Rating summary for a widget.

        Uses the stored summary written by the last sync. Before the first
        sync, aggregates the visible reviews of enabled locations instead.

        Returns:
            Summary, or None when the widget has no reviews at all
        """
        async with system_conn() as conn:
            row = await conn.fetchrow(
                "SELECT avg_rating, total_reviews FROM widget_summaries WHERE widget_id = $1",
                widget_id,
            )
            if row is None:
                row = await conn.fetchrow(
                    """
                    SELECT AVG(r.rating)::float AS avg_rating, COUNT(*) AS total_reviews
                    FROM reviews r
                    JOIN widget_locations l ON l.id = r.widget_location_id
                    LEFT JOIN review_overrides o ON o.review_id = r.id
                    WHERE l.widget_id = $1 AND l.enabled AND NOT COALESCE(o.hidden, false)
                    """,
                    widget_id,
                )
            if row is None or not row["total_reviews"]:
                return None
            return Summary(avg_rating=float(row["avg_rating"]), total_reviews=row["total_reviews"])
