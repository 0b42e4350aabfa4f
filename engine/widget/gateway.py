"""
Widget Engine — Gateway

The persistence port the builder talks to. Implement over HTTP for the
dashboard, or in memory for tests and local previews.

Every implementation raises NotFoundError for unknown ids and
PersistenceError for anything else that goes wrong.
"""

from __future__ import annotations

import copy
import uuid
from datetime import UTC, datetime
from typing import Any

import httpx
from pydantic import ValidationError

from engine.widget.errors import NotFoundError, PersistenceError
from engine.widget.types import WIDGET_STATUSES, WidgetRecord


class WidgetGateway:
    """
    Abstract widget persistence.
    """

    async def create_widget(
        self,
        company_id: str,
        name: str,
        type: str,
        config_json: dict[str, Any],
        status: str = "DRAFT",
    ) -> WidgetRecord:
        """Create a widget and return the stored record (allocates the id)."""
        raise NotImplementedError

    async def get_widget(self, widget_id: str) -> WidgetRecord:
        """Fetch a widget. Raises NotFoundError if it doesn't exist."""
        raise NotImplementedError

    async def update_widget(
        self,
        widget_id: str,
        *,
        name: str | None = None,
        config_json: dict[str, Any] | None = None,
        status: str | None = None,
    ) -> WidgetRecord:
        """Apply a partial update. Fields left as None are unchanged."""
        raise NotImplementedError

    async def delete_widget(self, widget_id: str) -> None:
        raise NotImplementedError


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------


class MemoryGateway(WidgetGateway):
    """
    In-memory gateway for tests and local previews.

    `calls` records (operation, widget_id) pairs in order. Set `failing` to
    make every write raise PersistenceError until it is cleared.
    """

    def __init__(self) -> None:
        self.records: dict[str, WidgetRecord] = {}
        self.calls: list[tuple[str, str | None]] = []
        self.failing = False

    def _check_available(self) -> None:
        if self.failing:
            raise PersistenceError("Gateway unavailable")

    async def create_widget(
        self,
        company_id: str,
        name: str,
        type: str,
        config_json: dict[str, Any],
        status: str = "DRAFT",
    ) -> WidgetRecord:
        self.calls.append(("create", None))
        self._check_available()
        _check_status(status)
        now = datetime.now(UTC)
        record = WidgetRecord(
            id=str(uuid.uuid4()),
            company_id=company_id,
            name=name,
            type=type,
            status=status,
            config_json=copy.deepcopy(config_json),
            published_at=now if status == "PUBLISHED" else None,
            created_at=now,
            updated_at=now,
        )
        self.records[record.id] = record
        return record.model_copy(deep=True)

    async def get_widget(self, widget_id: str) -> WidgetRecord:
        self.calls.append(("get", widget_id))
        record = self.records.get(widget_id)
        if record is None:
            raise NotFoundError(widget_id)
        return record.model_copy(deep=True)

    async def update_widget(
        self,
        widget_id: str,
        *,
        name: str | None = None,
        config_json: dict[str, Any] | None = None,
        status: str | None = None,
    ) -> WidgetRecord:
        self.calls.append(("update", widget_id))
        self._check_available()
        record = self.records.get(widget_id)
        if record is None:
            raise NotFoundError(widget_id)

        changes: dict[str, Any] = {"updated_at": datetime.now(UTC)}
        if name is not None:
            changes["name"] = name
        if config_json is not None:
            changes["config_json"] = copy.deepcopy(config_json)
        if status is not None:
            _check_status(status)
            changes["status"] = status
            if status == "PUBLISHED" and record.published_at is None:
                changes["published_at"] = changes["updated_at"]

        record = record.model_copy(update=changes)
        self.records[widget_id] = record
        return record.model_copy(deep=True)

    async def delete_widget(self, widget_id: str) -> None:
        self.calls.append(("delete", widget_id))
        self._check_available()
        if self.records.pop(widget_id, None) is None:
            raise NotFoundError(widget_id)

    def writes(self) -> list[tuple[str, str | None]]:
        """create/update/delete calls only."""
        return [c for c in self.calls if c[0] != "get"]


def _check_status(status: str) -> None:
    if status not in WIDGET_STATUSES:
        raise PersistenceError(f"Invalid status: {status}")


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


class HttpGateway(WidgetGateway):
    """
    Gateway over the dashboard API (/api/widgets).

    Authenticates with a bearer token or the browser session cookie.
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        session_cookie: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ):
        headers = {}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if session_cookie:
            headers["Cookie"] = f"session={session_cookie}"
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._client.headers.update(headers)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def create_widget(
        self,
        company_id: str,
        name: str,
        type: str,
        config_json: dict[str, Any],
        status: str = "DRAFT",
    ) -> WidgetRecord:
        body = {
            "companyId": company_id,
            "name": name,
            "type": type,
            "status": status,
            "configJson": config_json,
        }
        data = await self._request("POST", "/api/widgets", json=body)
        return _to_record(data)

    async def get_widget(self, widget_id: str) -> WidgetRecord:
        data = await self._request("GET", f"/api/widgets/{widget_id}", widget_id=widget_id)
        return _to_record(data)

    async def update_widget(
        self,
        widget_id: str,
        *,
        name: str | None = None,
        config_json: dict[str, Any] | None = None,
        status: str | None = None,
    ) -> WidgetRecord:
        body: dict[str, Any] = {}
        if name is not None:
            body["name"] = name
        if config_json is not None:
            body["configJson"] = config_json
        if status is not None:
            body["status"] = status
        data = await self._request("PATCH", f"/api/widgets/{widget_id}", json=body, widget_id=widget_id)
        return _to_record(data)

    async def delete_widget(self, widget_id: str) -> None:
        await self._request("DELETE", f"/api/widgets/{widget_id}", widget_id=widget_id)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        widget_id: str | None = None,
    ) -> Any:
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.HTTPError as e:
            raise PersistenceError(f"{method} {path} failed: {e}") from e

        if response.status_code == 404 and widget_id is not None:
            raise NotFoundError(widget_id)
        if response.is_error:
            raise PersistenceError(f"{method} {path} returned {response.status_code}: {_detail(response)}")
        try:
            return response.json()
        except ValueError as e:
            raise PersistenceError(f"{method} {path} returned invalid JSON") from e


def _to_record(data: Any) -> WidgetRecord:
    try:
        return WidgetRecord.model_validate(data)
    except ValidationError as e:
        raise PersistenceError(f"Unexpected widget record: {e}") from e


def _detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        return str(body.get("detail") or body.get("error") or body)
    return str(body)
