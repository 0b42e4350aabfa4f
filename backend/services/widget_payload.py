"""
Widget payload service — what the public embed path renders.

One snapshot per request: the published config, the reviews from the
widget's enabled locations and the rating summary.
"""

from __future__ import annotations

import logging
from uuid import UUID

from backend.config import settings
from backend.repos.review_repo import ReviewRepo
from backend.repos.widget_repo import WidgetRepo
from engine.widget.config import TEMPLATES, WidgetConfig, create_default_config, parse_config
from engine.widget.errors import ConfigValidationError, NotFoundError
from engine.widget.types import WidgetPayload

logger = logging.getLogger(__name__)

widget_repo = WidgetRepo()
review_repo = ReviewRepo()


async def get_widget_payload(widget_id: str) -> WidgetPayload:
    """
    Load everything needed to render a published widget.

    Args:
        widget_id: Widget id from the embed URL (untrusted)

    Returns:
        WidgetPayload with a complete config

    Raises:
        NotFoundError: If the id is malformed, unknown, or the widget is a draft
    """
    try:
        uuid = UUID(widget_id)
    except ValueError as e:
        raise NotFoundError(widget_id) from e

    widget = await widget_repo.get_published(uuid)
    if widget is None:
        raise NotFoundError(widget_id)

    # Hidden reviews never leave the server on the public path
    reviews = [r for r in await review_repo.list_for_widget(uuid) if not r.hidden]
    summary = await review_repo.get_summary(uuid)
    return WidgetPayload(
        config=_stored_config(widget_id, widget.type, widget.config_json),
        summary=summary,
        reviews=reviews,
    )


def _stored_config(widget_id: str, widget_type: str, config_json: dict) -> WidgetConfig:
    """
    Parse a stored config. A record written before a schema change may no
    longer validate; outside development it falls back to its type's template.
    """
    try:
        return parse_config(config_json)
    except ConfigValidationError as e:
        if settings.RENDER_STRICT:
            raise
        logger.warning("Stored config for widget %s is invalid (%s); using template", widget_id, e)
        template = widget_type.lower()
        return create_default_config(template if template in TEMPLATES else "carousel")
