"""
Widget routes.

Authenticated CRUD for the dashboard builder (/api/widgets) and the
public, CORS-enabled payload read the embed uses.
"""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse, Response

from backend.auth import get_current_user
from backend.config import settings
from backend.middleware.rate_limit import rate_limiter
from backend.models.user import User
from backend.models.widget import (
    CreateWidgetRequest,
    DeleteWidgetResponse,
    UpdateWidgetRequest,
    WidgetResponse,
)
from backend.repos.company_repo import CompanyRepo
from backend.repos.widget_repo import WidgetRepo
from backend.services import widget_payload
from engine.widget.config import parse_config
from engine.widget.errors import NotFoundError

router = APIRouter(prefix="/api/widgets", tags=["widgets"])
widget_repo = WidgetRepo()
company_repo = CompanyRepo()

_PAYLOAD_CACHE_CONTROL = "public, s-maxage=60, stale-while-revalidate=300"
_NOT_PUBLISHED = {"error": "Widget not found or not published"}


@router.get("", status_code=200)
async def list_widgets(
    company_id: Annotated[UUID | None, Query(alias="companyId")] = None,
    user: User = Depends(get_current_user),
) -> list[WidgetResponse]:
    """List widgets across the user's companies, or within one company."""
    widgets = await widget_repo.list_for_user(user.id, company_id)
    return [WidgetResponse.from_model(w) for w in widgets]


@router.post("", status_code=201)
async def create_widget(
    req: CreateWidgetRequest,
    user: User = Depends(get_current_user),
) -> WidgetResponse:
    """
    Create a widget. The config is completed from its layout's template
    and stored in full; the record type follows the layout unless given.
    """
    if not await company_repo.is_member(user.id, req.company_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not a member of this company.")

    config = parse_config(req.config_json)
    req = req.model_copy(
        update={
            "config_json": config.to_json(),
            "type": req.type or config.widget_type(),
        }
    )
    widget = await widget_repo.create(user.id, req)
    return WidgetResponse.from_model(widget)


@router.get("/{widget_id}", status_code=200)
async def get_widget(
    widget_id: UUID,
    user: User = Depends(get_current_user),
) -> WidgetResponse:
    """Get a single widget by ID."""
    widget = await widget_repo.get(user.id, widget_id)
    if not widget:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Widget not found.")
    return WidgetResponse.from_model(widget)


@router.patch("/{widget_id}", status_code=200)
async def update_widget(
    widget_id: UUID,
    req: UpdateWidgetRequest,
    user: User = Depends(get_current_user),
) -> WidgetResponse:
    """Update a widget's name, config or status."""
    widget_type = None
    if req.config_json is not None:
        config = parse_config(req.config_json)
        req = req.model_copy(update={"config_json": config.to_json()})
        widget_type = config.widget_type()

    widget = await widget_repo.update(user.id, widget_id, req, widget_type)
    if not widget:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Widget not found.")
    return WidgetResponse.from_model(widget)


@router.delete("/{widget_id}", status_code=200)
async def delete_widget(
    widget_id: UUID,
    user: User = Depends(get_current_user),
) -> DeleteWidgetResponse:
    """Delete a widget with its locations and reviews."""
    deleted = await widget_repo.delete(user.id, widget_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Widget not found.")
    return DeleteWidgetResponse()


# ── public payload ──────────────────────────────────────────────────────────


def _cors_headers(request: Request) -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": request.headers.get("origin") or "*",
        "Access-Control-Allow-Methods": "GET, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type",
        "Vary": "Origin",
    }


def client_ip(request: Request) -> str:
    """First hop of X-Forwarded-For when behind the proxy, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


@router.get("/{widget_id}/payload")
async def get_widget_payload(widget_id: str, request: Request) -> Response:
    """
    Public payload for a published widget. No auth; CORS open to any embedding page.

    404 for drafts and unknown ids alike.
    """
    headers = _cors_headers(request)

    if not rate_limiter.check_rate_limit(
        f"payload:{client_ip(request)}", settings.PAYLOAD_RATE_LIMIT_PER_MINUTE, window_minutes=1
    ):
        return JSONResponse(status_code=429, content={"error": "Too many requests"}, headers=headers)

    try:
        payload = await widget_payload.get_widget_payload(widget_id)
    except NotFoundError:
        return JSONResponse(status_code=404, content=_NOT_PUBLISHED, headers=headers)

    return JSONResponse(
        content=payload.model_dump(mode="json", by_alias=True),
        headers={**headers, "Cache-Control": _PAYLOAD_CACHE_CONTROL},
    )


@router.options("/{widget_id}/payload")
async def preflight_widget_payload(widget_id: str, request: Request) -> Response:
    """CORS preflight for the public payload."""
    return Response(status_code=204, headers={**_cors_headers(request), "Access-Control-Max-Age": "86400"})
