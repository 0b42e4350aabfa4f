"""Widget models for the dashboard API and the widgets table."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

WidgetStatus = Literal["DRAFT", "PUBLISHED"]


class Widget(BaseModel):
    """Core widget model. Represents a row in the widgets table."""

    id: UUID
    company_id: UUID
    name: str
    type: str = "CAROUSEL"
    status: WidgetStatus = "DRAFT"
    config_json: dict[str, Any] = Field(default_factory=dict)
    published_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class CreateWidgetRequest(BaseModel):
    """What the client sends to create a widget. camelCase on the wire."""

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    company_id: UUID
    name: str = Field(default="New Widget", min_length=1, max_length=200)
    type: str | None = Field(default=None, max_length=50)  # derived from configJson when absent
    status: WidgetStatus = "DRAFT"
    config_json: dict[str, Any] = Field(default_factory=dict)


class UpdateWidgetRequest(BaseModel):
    """What the client sends to update a widget. All fields optional."""

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    name: str | None = Field(default=None, min_length=1, max_length=200)
    config_json: dict[str, Any] | None = None
    status: WidgetStatus | None = None


class WidgetResponse(BaseModel):
    """What the API returns. Serialized camelCase, the shape the builder's gateway reads."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: UUID
    company_id: UUID
    name: str
    type: str
    status: WidgetStatus
    config_json: dict[str, Any]
    published_at: datetime | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, widget: Widget) -> WidgetResponse:
        """Convert internal Widget model to public API response."""
        return cls(
            id=widget.id,
            company_id=widget.company_id,
            name=widget.name,
            type=widget.type,
            status=widget.status,
            config_json=widget.config_json,
            published_at=widget.published_at,
            created_at=widget.created_at,
            updated_at=widget.updated_at,
        )


class DeleteWidgetResponse(BaseModel):
    success: bool = True
