"""Public embed serving — GET /w/{id} renders a published widget, plus the loader script."""

from __future__ import annotations

import hashlib
import logging

from fastapi import APIRouter
from fastapi.responses import HTMLResponse, Response

from backend.config import settings
from backend.services import widget_payload
from engine.widget.embed import LOADER_PATH, loader_script
from engine.widget.errors import NotFoundError
from engine.widget.renderer import render, render_unavailable
from engine.widget.types import RenderOptions

logger = logging.getLogger(__name__)

router = APIRouter(tags=["embed"])

# Short shared cache: edits show up within a minute of publishing
_CACHE_CONTROL = "public, s-maxage=60, stale-while-revalidate=300"
_LOADER_CACHE_CONTROL = "public, max-age=3600"
_EMBED_HEADERS = {
    "X-Robots-Tag": "noindex",
    "X-Content-Type-Options": "nosniff",
}


def render_options() -> RenderOptions:
    """Renderer options for the public frame, from settings."""
    return RenderOptions(
        parent_origin=settings.WIDGET_PARENT_ORIGIN,
        footer=settings.WIDGET_POWERED_BY or None,
        footer_url=settings.WIDGET_POWERED_BY_URL or None,
        strict=settings.RENDER_STRICT,
    )


@router.get("/w/{widget_id}", response_class=HTMLResponse)
async def serve_widget(widget_id: str) -> Response:
    """
    Serve the embed document for a published widget.

    Drafts and unknown ids get the neutral unavailable document (404).
    Unexpected failures are logged and answered the same way (500), so
    the hosting page never shows a stack trace.
    """
    options = render_options()
    try:
        payload = await widget_payload.get_widget_payload(widget_id)
        html = render(payload.config, payload.reviews, payload.summary, options)
    except NotFoundError:
        return HTMLResponse(render_unavailable(options), status_code=404, headers=_EMBED_HEADERS)
    except Exception:
        logger.exception("Failed to render widget %s", widget_id)
        return HTMLResponse(render_unavailable(options), status_code=500, headers=_EMBED_HEADERS)

    body = html.encode("utf-8")
    etag = f'"{hashlib.md5(body, usedforsecurity=False).hexdigest()}"'
    return Response(
        content=body,
        media_type="text/html; charset=utf-8",
        headers={**_EMBED_HEADERS, "Cache-Control": _CACHE_CONTROL, "ETag": etag},
    )


@router.get(LOADER_PATH)
async def serve_loader() -> Response:
    """The script the embed snippet references. Bound to this server's origin."""
    return Response(
        content=loader_script(settings.PUBLIC_URL),
        media_type="application/javascript; charset=utf-8",
        headers={"Cache-Control": _LOADER_CACHE_CONTROL},
    )
