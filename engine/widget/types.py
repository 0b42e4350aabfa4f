"""
Widget Engine — Shared Types

Read models the engine consumes (reviews, summary, widget records, the
public payload) and the renderer's options. Wire shapes are camelCase to
match the dashboard API and the stored records.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from engine.widget.config import WidgetConfig, parse_config

WidgetStatus = Literal["DRAFT", "PUBLISHED"]

WIDGET_STATUSES: set[str] = {"DRAFT", "PUBLISHED"}


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Review(_CamelModel):
    """
    A review as displayed by a widget.

    `pinned`, `hidden`, `custom_excerpt` and `tags` come from the per-review
    override record maintained in the dashboard.
    """

    id: str
    author_name: str
    author_avatar_url: str | None = None
    rating: int = Field(ge=1, le=5)
    text: str | None = None
    date: datetime
    review_url: str | None = None
    pinned: bool = False
    hidden: bool = False
    custom_excerpt: str | None = None
    tags: list[str] = Field(default_factory=list)

    def display_text(self) -> str | None:
        """Text shown on the card: the custom excerpt wins over the original text."""
        return self.custom_excerpt or self.text


class Summary(_CamelModel):
    """Aggregate rating across all of a widget's sources."""

    avg_rating: float
    total_reviews: int


class WidgetRecord(_CamelModel):
    """A persisted widget as returned by the gateway."""

    id: str
    company_id: str
    name: str
    type: str = "CAROUSEL"
    status: WidgetStatus = "DRAFT"
    config_json: dict[str, Any] = Field(default_factory=dict)
    published_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class WidgetPayload(_CamelModel):
    """What the public embed path renders: one snapshot per request."""

    config: WidgetConfig
    summary: Summary | None = None
    reviews: list[Review] = Field(default_factory=list)

    @field_validator("config", mode="before")
    @classmethod
    def _complete_config(cls, value: Any) -> WidgetConfig:
        return parse_config(value)


@dataclass
class RenderOptions:
    """Options controlling what the renderer includes in output."""

    parent_origin: str = "*"  # postMessage target for height updates
    footer: str | None = None  # "Powered by ..." text
    footer_url: str | None = None
    fallback_review_url: str | None = None
    include_scripts: bool = True  # off for builder previews
    strict: bool = False  # raise on unparsed configs instead of defaulting
