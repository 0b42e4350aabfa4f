"""
Widget Engine — Builder Session

Holds the draft (name + WidgetConfig) of one widget being edited and keeps
it synchronized with the Gateway without explicit save actions.

Save status: saved → unsaved → saving → {saved | error}

- Every mutation dirties the session unless the serialized draft equals the
  last persisted one.
- Mutations (re)arm a debounce timer; only its expiry writes, carrying the
  draft as it is at that moment.
- At most one Gateway write is in flight. Mutations during a write are kept
  and picked up by the next cycle.
- A failed write leaves the draft in place; the next mutation retries.

New widgets start with a pending template choice. Nothing is autosaved
until confirm_template() creates the record. publish() writes immediately.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel

from engine.widget.config import (
    TEMPLATES,
    SourceLocation,
    WidgetConfig,
    create_default_config,
    parse_config,
    validate_config,
)
from engine.widget.errors import ConfigValidationError, NotFoundError, PersistenceError, WidgetError
from engine.widget.gateway import WidgetGateway
from engine.widget.renderer import render_widget
from engine.widget.scheduler import LoopScheduler, Scheduler, Timer
from engine.widget.types import RenderOptions, Review, Summary, WidgetRecord

logger = logging.getLogger(__name__)

AUTOSAVE_QUIESCENCE_SECONDS = 1.5

SECTIONS: tuple[str, ...] = ("source", "layout", "header", "reviews", "style", "settings")

DEFAULT_WIDGET_NAME = "New Widget"


class SaveStatus(str, Enum):
    SAVED = "saved"
    UNSAVED = "unsaved"
    SAVING = "saving"
    ERROR = "error"


@dataclass(frozen=True)
class BuilderState:
    """Snapshot of a builder session."""

    name: str
    config: WidgetConfig
    status: SaveStatus
    widget: WidgetRecord | None
    template_pending: bool


class BuilderSession:
    """
    One editing session for one widget.

    Construct with BuilderSession.new() for a widget that doesn't exist yet,
    or `await BuilderSession.open()` for a stored one.
    """

    def __init__(
        self,
        gateway: WidgetGateway,
        company_id: str,
        *,
        widget: WidgetRecord | None = None,
        scheduler: Scheduler | None = None,
        quiescence: float = AUTOSAVE_QUIESCENCE_SECONDS,
        name: str = DEFAULT_WIDGET_NAME,
    ):
        self._gateway = gateway
        self.company_id = company_id
        self._scheduler = scheduler or LoopScheduler()
        self._quiescence = quiescence
        self._lock = asyncio.Lock()
        self._timer: Timer | None = None
        self._widget = widget

        if widget is not None:
            self._name = widget.name
            self._config = parse_config(widget.config_json)
            self._persisted: str | None = self._serialize()
            self._template_pending = False
            self._status = SaveStatus.SAVED
        else:
            self._name = name
            self._config = create_default_config()
            self._persisted = None
            self._template_pending = True
            self._status = SaveStatus.UNSAVED

    @classmethod
    def new(cls, gateway: WidgetGateway, company_id: str, **kwargs: Any) -> BuilderSession:
        return cls(gateway, company_id, **kwargs)

    @classmethod
    async def open(
        cls,
        gateway: WidgetGateway,
        company_id: str,
        widget_id: str,
        **kwargs: Any,
    ) -> BuilderSession:
        """
        Load a stored widget into a new session.

        Raises:
            NotFoundError: If the widget doesn't exist
            ConfigValidationError: If its stored config has a malformed field
        """
        record = await gateway.get_widget(widget_id)
        return cls(gateway, company_id, widget=record, **kwargs)

    # -- Read ---------------------------------------------------------------

    @property
    def state(self) -> BuilderState:
        return BuilderState(
            name=self._name,
            config=self._config,
            status=self._status,
            widget=self._widget,
            template_pending=self._template_pending,
        )

    @property
    def status(self) -> SaveStatus:
        return self._status

    def preview(
        self,
        reviews: Iterable[Review],
        summary: Summary | None = None,
        options: RenderOptions | None = None,
    ) -> str:
        """Live preview of the current draft."""
        return render_widget(self._config, reviews, summary, options or RenderOptions(include_scripts=False))

    # -- Mutations ----------------------------------------------------------

    def rename(self, name: str) -> BuilderState:
        return self._commit(name, self._config)

    def update(self, section: str, **changes: Any) -> BuilderState:
        """
        Change fields of one config section, e.g.
        update("header", title="Reviews") or update("layout", type="grid").

        Keys may be attribute names (write_review_button) or the stored
        camelCase names (writeReviewButton, schema). Nested dicts merge into
        the current values. Switching layout.type starts from the new type's
        template layout. The source section takes the full location list:
        update("source", locations=[...]).

        Raises:
            ConfigValidationError: The draft is left unchanged
        """
        if section not in SECTIONS:
            raise ConfigValidationError(section, "Unknown config section")

        data = self._config.to_json()

        if section == "source":
            unknown = set(changes) - {"locations"}
            if unknown:
                raise ConfigValidationError(f"source.{sorted(unknown)[0]}", "Unknown source field")
            data["source"] = [_location_data(loc) for loc in changes.get("locations", [])]
        else:
            current = data[section]
            model = type(getattr(self._config, section))
            if section == "layout" and "type" in changes and changes["type"] != current["type"]:
                layout_type = changes["type"]
                if layout_type not in TEMPLATES:
                    raise ConfigValidationError("layout.type", f"Unknown layout type: {layout_type}")
                template = create_default_config(layout_type)
                current = template.to_json()["layout"]
                model = type(template.layout)
            data[section] = _apply_changes(current, _normalize_changes(model, changes, section))

        return self._commit(self._name, validate_config(data))

    def replace_config(self, config: WidgetConfig | dict[str, Any]) -> BuilderState:
        """Swap in a whole config (parsed and defaulted first)."""
        return self._commit(self._name, parse_config(config))

    def choose_template(self, key: str) -> BuilderState:
        """
        Replace the draft with a template's defaults. Only before the widget
        has been created.

        Raises:
            ConfigValidationError: If the template is unknown
            WidgetError: If the widget already exists
        """
        if not self._template_pending:
            raise WidgetError("Templates can only be chosen for a new widget")
        config = create_default_config(key)
        self._cancel_timer()
        self._config = config
        self._status = SaveStatus.UNSAVED
        return self.state

    def _commit(self, name: str, config: WidgetConfig) -> BuilderState:
        self._name = name
        self._config = config

        if self._serialize() == self._persisted and not self._lock.locked():
            self._cancel_timer()
            self._status = SaveStatus.SAVED
            return self.state

        self._status = SaveStatus.UNSAVED
        if not self._template_pending:
            self._arm()
        return self.state

    # -- Persistence --------------------------------------------------------

    async def confirm_template(self) -> BuilderState:
        """
        Create the widget from the current draft right away.

        Raises:
            PersistenceError: If the create fails (status becomes error)
        """
        if not self._template_pending:
            return self.state
        self._template_pending = False
        self._cancel_timer()
        async with self._lock:
            await self._write_now(status=None)
        return self.state

    async def publish(self) -> WidgetRecord:
        """
        Persist the current draft with status PUBLISHED, without waiting for
        the autosave timer. A never-saved widget is created already published.

        Raises:
            PersistenceError: If the write fails (status becomes error)
        """
        self._template_pending = False
        async with self._lock:
            return await self._write_now(status="PUBLISHED")

    async def unpublish(self) -> BuilderState:
        """Back to DRAFT. No-op for a widget that was never saved."""
        if self._widget is None:
            return self.state
        async with self._lock:
            await self._write_now(status="DRAFT")
        return self.state

    async def flush(self) -> BuilderState:
        """
        Persist the draft if it differs from the last persisted snapshot.
        Called when the debounce timer expires. Failures only set the error
        status.
        """
        async with self._lock:
            if self._template_pending:
                return self.state
            if self._serialize() == self._persisted:
                if self._status is SaveStatus.UNSAVED:
                    self._status = SaveStatus.SAVED
                return self.state
            try:
                await self._persist(status=None)
            except (PersistenceError, NotFoundError) as e:
                logger.warning("Autosave failed for widget %s: %s", self._widget_id(), e)
        return self.state

    def close(self) -> None:
        """Stop the pending autosave, if any."""
        self._cancel_timer()

    async def _write_now(self, status: str | None) -> WidgetRecord:
        try:
            return await self._persist(status=status)
        except (PersistenceError, NotFoundError) as e:
            logger.warning("Save failed for widget %s: %s", self._widget_id(), e)
            if isinstance(e, PersistenceError):
                raise
            raise PersistenceError(str(e)) from e

    async def _persist(self, status: str | None) -> WidgetRecord:
        # Caller holds the lock
        name, config = self._name, self._config
        sent = self._serialize()
        self._status = SaveStatus.SAVING
        logger.debug("Saving widget %s", self._widget_id())

        try:
            if self._widget is None:
                record = await self._gateway.create_widget(
                    self.company_id,
                    name,
                    config.widget_type(),
                    config.to_json(),
                    status=status or "DRAFT",
                )
            else:
                record = await self._gateway.update_widget(
                    self._widget.id,
                    name=name,
                    config_json=config.to_json(),
                    status=status,
                )
        except (PersistenceError, NotFoundError):
            self._status = SaveStatus.ERROR
            raise
        except asyncio.CancelledError:
            self._status = SaveStatus.UNSAVED
            raise
        except Exception as e:
            self._status = SaveStatus.ERROR
            raise PersistenceError(f"Gateway write failed: {e!r}") from e

        self._widget = record
        self._persisted = sent
        self._status = SaveStatus.SAVED if self._serialize() == sent else SaveStatus.UNSAVED
        logger.debug("Saved widget %s (%s)", record.id, self._status.value)
        return record

    # -- Timer --------------------------------------------------------------

    def _arm(self) -> None:
        self._cancel_timer()
        self._timer = self._scheduler.call_later(self._quiescence, self._on_timer)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def _on_timer(self) -> None:
        await self.flush()

    # -- Helpers ------------------------------------------------------------

    def _serialize(self) -> str:
        return json.dumps(
            {"name": self._name, "configJson": self._config.to_json()},
            sort_keys=True,
            separators=(",", ":"),
        )

    def _widget_id(self) -> str:
        return self._widget.id if self._widget is not None else "<new>"


def _apply_changes(current: dict[str, Any], changes: dict[str, Any]) -> dict[str, Any]:
    """Merge keyword changes into a section dict. Nested dicts merge; other values replace."""
    result = dict(current)
    for key, value in changes.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _apply_changes(result[key], value)
        else:
            result[key] = value
    return result


def _location_data(location: SourceLocation | dict[str, Any]) -> Any:
    if isinstance(location, SourceLocation):
        return location.model_dump(by_alias=True)
    return location


def _normalize_changes(model: type[BaseModel], changes: dict[str, Any], path: str) -> dict[str, Any]:
    """Re-key changes by stored camelCase name, rejecting keys the section model lacks."""
    fields = {}
    for attr, field in model.model_fields.items():
        fields[attr] = field
        fields[field.alias or attr] = field

    result: dict[str, Any] = {}
    for key, value in changes.items():
        field = fields.get(key)
        if field is None:
            raise ConfigValidationError(f"{path}.{key}", "Unknown field")
        stored = field.alias or key
        nested = field.annotation
        if isinstance(value, dict) and isinstance(nested, type) and issubclass(nested, BaseModel):
            value = _normalize_changes(nested, value, f"{path}.{stored}")
        result[stored] = value
    return result
