"""
Widget Engine — Configuration Model

The versioned WidgetConfig schema, its template presets, and the
defaulting parser that turns stored or partial JSON into a complete config.

Stored configs use camelCase keys (the `configJson` column); Python code
uses the snake_case attribute names. Unknown keys are ignored so that
older or newer payloads still load.

parse_config() is total over missing fields: anything absent is filled
from the template matching `layout.type`. Only wrong shapes raise.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainValidator,
    StrictBool,
    StrictInt,
    StrictStr,
    ValidationError,
)
from pydantic.alias_generators import to_camel

from engine.widget.errors import ConfigValidationError

WIDGET_CONFIG_VERSION = 1

LAYOUT_TYPES: tuple[str, ...] = ("carousel", "grid", "masonry", "list", "slider", "badge")
SLIDING_LAYOUTS: frozenset[str] = frozenset({"carousel", "slider"})
MAX_REVIEWS_LIMIT = 100

# ---------------------------------------------------------------------------
# Bounded numbers and sentinel-or-number fields
# ---------------------------------------------------------------------------


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _min_rating(value: Any) -> int | float:
    if isinstance(value, (int, float)) and not isinstance(value, bool) and 1 <= value <= 5:
        return value
    raise ValueError("must be a number between 1 and 5")


def _max_reviews(value: Any) -> int | str:
    if value == "all":
        return value
    if _is_int(value) and 1 <= value <= MAX_REVIEWS_LIMIT:
        return value
    raise ValueError(f'must be an integer between 1 and {MAX_REVIEWS_LIMIT} or "all"')


def _columns(value: Any) -> int | str:
    if value == "auto":
        return value
    if _is_int(value) and 1 <= value <= 6:
        return value
    raise ValueError('must be an integer between 1 and 6 or "auto"')


def _width(value: Any) -> int | str:
    # "auto" is the pre-v1 spelling of "responsive"
    if value in ("responsive", "auto"):
        return "responsive"
    if _is_int(value) and value > 0:
        return value
    raise ValueError('must be a positive pixel width or "responsive"')


MinRating = Annotated[Union[int, float], PlainValidator(_min_rating)]
MaxReviews = Annotated[Union[int, Literal["all"]], PlainValidator(_max_reviews)]
Columns = Annotated[Union[int, Literal["auto"]], PlainValidator(_columns)]
Width = Annotated[Union[int, Literal["responsive"]], PlainValidator(_width)]


class ConfigModel(BaseModel):
    """Base for every config section: camelCase on the wire, unknown keys ignored."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


# ---------------------------------------------------------------------------
# Source
# ---------------------------------------------------------------------------


class SourceLocation(ConfigModel):
    place_id: StrictStr = ""
    label: StrictStr | None = None
    provider: Literal["google", "facebook", "yelp"] = "google"
    enabled: StrictBool = True


# ---------------------------------------------------------------------------
# Layout (tagged by `type`)
# ---------------------------------------------------------------------------


class Autoplay(ConfigModel):
    enabled: StrictBool = False
    interval: StrictInt = Field(default=5000, ge=1000, le=30000)
    pause_on_hover: StrictBool = True


class Navigation(ConfigModel):
    arrows: StrictBool = True
    dots: StrictBool = True
    swipe: StrictBool = True


class _LayoutBase(ConfigModel):
    width: Width = "responsive"
    item_spacing: StrictInt = Field(default=16, ge=0, le=100)
    animation: Literal["slide", "fade"] = "slide"


class _PagedLayout(_LayoutBase):
    columns: Columns = "auto"
    rows_desktop: StrictInt = Field(default=1, ge=1, le=10)
    rows_mobile: StrictInt = Field(default=1, ge=1, le=10)
    scroll_mode: Literal["item", "page"] = "item"
    navigation: Navigation = Field(default_factory=Navigation)


class CarouselLayout(_PagedLayout):
    """Horizontally traversable layouts. The only ones that autoplay."""

    type: Literal["carousel", "slider"] = "carousel"
    autoplay: Autoplay = Field(default_factory=Autoplay)


class GridLayout(_PagedLayout):
    """Layouts that show the whole filtered set at once."""

    type: Literal["grid", "masonry", "list"] = "grid"


class BadgeLayout(_LayoutBase):
    """Aggregate rating only; the review list is ignored."""

    type: Literal["badge"] = "badge"


Layout = Annotated[Union[CarouselLayout, GridLayout, BadgeLayout], Field(discriminator="type")]


# ---------------------------------------------------------------------------
# Header
# ---------------------------------------------------------------------------


class WriteReviewButton(ConfigModel):
    enabled: StrictBool = True
    text: StrictStr = "Write a Review"
    url: StrictStr | None = None


class WidgetHeader(ConfigModel):
    enabled: StrictBool = True
    title: StrictStr = "What Our Customers Say"
    show_rating_summary: StrictBool = True
    show_review_count: StrictBool = True
    write_review_button: WriteReviewButton = Field(default_factory=WriteReviewButton)


# ---------------------------------------------------------------------------
# Reviews (filter / sort spec)
# ---------------------------------------------------------------------------


class ReviewFilter(ConfigModel):
    type: Literal["author", "text", "tag"] = "text"
    value: StrictStr = ""


class ReviewsSpec(ConfigModel):
    min_rating: MinRating = 1
    max_reviews: MaxReviews = "all"
    sort_by: Literal["newest", "highest", "lowest"] = "newest"
    show_without_text: StrictBool = False
    include_filters: list[ReviewFilter] = Field(default_factory=list)
    exclude_filters: list[ReviewFilter] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Style
# ---------------------------------------------------------------------------


class ElementStyle(ConfigModel):
    background_color: StrictStr | None = None
    text_color: StrictStr | None = None
    border_radius: StrictInt | None = None
    border_color: StrictStr | None = None
    border_width: StrictInt | None = None


class StarsStyle(ConfigModel):
    filled_color: StrictStr = "#fbbf24"
    empty_color: StrictStr = "#e5e7eb"


class LinksStyle(ConfigModel):
    color: StrictStr | None = None
    hover_color: StrictStr | None = None


class StyleElements(ConfigModel):
    background: ElementStyle = Field(default_factory=ElementStyle)
    card: ElementStyle = Field(default_factory=ElementStyle)
    title: ElementStyle = Field(default_factory=ElementStyle)
    stars: StarsStyle = Field(default_factory=StarsStyle)
    button: ElementStyle = Field(default_factory=ElementStyle)
    links: LinksStyle = Field(default_factory=LinksStyle)


class WidgetStyle(ConfigModel):
    color_scheme: Literal["light", "dark"] = "light"
    accent_color: StrictStr = "#ee5f64"
    font_family: StrictStr | None = None
    elements: StyleElements = Field(default_factory=StyleElements)
    # Injected verbatim by the renderer. Writable only through the
    # authenticated widget write path.
    custom_css: StrictStr = ""


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class ExternalLinks(ConfigModel):
    enabled: StrictBool = True
    open_in_new_tab: StrictBool = True


class StructuredData(ConfigModel):
    enabled: StrictBool = True
    type: Literal["aggregate", "individual"] = "aggregate"


class WidgetSettings(ConfigModel):
    language: StrictStr = "en"
    auto_translate: StrictBool = False
    external_links: ExternalLinks = Field(default_factory=ExternalLinks)
    rating_format: Literal["decimal", "integer"] = "decimal"
    structured_data: StructuredData = Field(default_factory=StructuredData, alias="schema")


# ---------------------------------------------------------------------------
# Complete config
# ---------------------------------------------------------------------------


class WidgetConfig(ConfigModel):
    version: StrictInt = WIDGET_CONFIG_VERSION
    source: list[SourceLocation] = Field(default_factory=list)
    layout: Layout = Field(default_factory=CarouselLayout)
    header: WidgetHeader = Field(default_factory=WidgetHeader)
    reviews: ReviewsSpec = Field(default_factory=ReviewsSpec)
    style: WidgetStyle = Field(default_factory=WidgetStyle)
    settings: WidgetSettings = Field(default_factory=WidgetSettings)

    def to_json(self) -> dict[str, Any]:
        """Serialize to the stored camelCase shape."""
        return self.model_dump(mode="json", by_alias=True)

    def widget_type(self) -> str:
        """Record-level widget type (CAROUSEL, GRID, ...)."""
        return self.layout.type.upper()


def dump_config(config: WidgetConfig) -> str:
    """Stable JSON string for change detection."""
    return json.dumps(config.to_json(), sort_keys=True, separators=(",", ":"))


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WidgetTemplate:
    """A named preset. `overrides` is a partial config in stored (camelCase) form."""

    name: str
    description: str
    thumbnail: str
    overrides: dict[str, Any] = field(default_factory=dict)


TEMPLATES: dict[str, WidgetTemplate] = {
    "carousel": WidgetTemplate(
        name="Carousel",
        description="Rotating reviews slider with navigation arrows",
        thumbnail="/assets/widget-templates/carousel.png",
        overrides={
            "layout": {
                "type": "carousel",
                "columns": "auto",
                "rowsDesktop": 1,
                "rowsMobile": 1,
                "itemSpacing": 16,
                "scrollMode": "item",
                "animation": "slide",
                "autoplay": {"enabled": True, "interval": 5000, "pauseOnHover": True},
                "navigation": {"arrows": True, "dots": True, "swipe": True},
            },
        },
    ),
    "grid": WidgetTemplate(
        name="Grid",
        description="Display reviews in a responsive grid layout",
        thumbnail="/assets/widget-templates/grid.png",
        overrides={
            "layout": {
                "type": "grid",
                "columns": 3,
                "rowsDesktop": 2,
                "rowsMobile": 1,
                "itemSpacing": 16,
                "scrollMode": "page",
                "animation": "slide",
                "navigation": {"arrows": True, "dots": True, "swipe": True},
            },
        },
    ),
    "masonry": WidgetTemplate(
        name="Masonry",
        description="Pinterest-style staggered grid layout",
        thumbnail="/assets/widget-templates/masonry.png",
        overrides={
            "layout": {
                "type": "masonry",
                "columns": 4,
                "rowsDesktop": 3,
                "rowsMobile": 2,
                "itemSpacing": 16,
                "scrollMode": "page",
                "animation": "fade",
                "navigation": {"arrows": False, "dots": False, "swipe": True},
            },
        },
    ),
    "list": WidgetTemplate(
        name="List",
        description="Simple vertical list of reviews",
        thumbnail="/assets/widget-templates/list.png",
        overrides={
            "layout": {
                "type": "list",
                "columns": 1,
                "rowsDesktop": 5,
                "rowsMobile": 3,
                "itemSpacing": 12,
                "scrollMode": "page",
                "animation": "slide",
                "navigation": {"arrows": False, "dots": True, "swipe": True},
            },
        },
    ),
    "slider": WidgetTemplate(
        name="Slider",
        description="Full-width single review at a time",
        thumbnail="/assets/widget-templates/slider.png",
        overrides={
            "layout": {
                "type": "slider",
                "columns": 1,
                "rowsDesktop": 1,
                "rowsMobile": 1,
                "itemSpacing": 0,
                "scrollMode": "item",
                "animation": "fade",
                "autoplay": {"enabled": True, "interval": 4000, "pauseOnHover": True},
                "navigation": {"arrows": True, "dots": True, "swipe": True},
            },
        },
    ),
    "badge": WidgetTemplate(
        name="Card Badge",
        description="Compact rating badge for headers or sidebars",
        thumbnail="/assets/widget-templates/badge.png",
        overrides={
            "layout": {
                "type": "badge",
                "width": 300,
                "itemSpacing": 0,
                "animation": "fade",
            },
            "header": {
                "enabled": True,
                "title": "",
                "showRatingSummary": True,
                "showReviewCount": True,
                "writeReviewButton": {"enabled": False, "text": "Write a Review"},
            },
        },
    ),
}


def create_default_config(template: str = "carousel") -> WidgetConfig:
    """
    Build a complete config from the base defaults plus a template's overrides.

    Raises:
        ConfigValidationError: If the template name is unknown
    """
    preset = TEMPLATES.get(template)
    if preset is None:
        raise ConfigValidationError("template", f"Unknown template: {template}")
    merged = _deep_merge(WidgetConfig().to_json(), preset.overrides)
    return validate_config(merged)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_config(raw: Any) -> WidgetConfig:
    """
    Turn a stored, partial or legacy config into a complete WidgetConfig.

    Accepts a dict, a JSON string, an existing WidgetConfig or None.
    Every missing leaf is taken from the template for `layout.type`
    (carousel when absent or unrecognized). Idempotent:
    parse_config(parse_config(x)) == parse_config(x).

    Raises:
        ConfigValidationError: If a present field has the wrong type or an
            out-of-domain value. The error names the dotted camelCase path.
    """
    if isinstance(raw, WidgetConfig):
        raw = raw.to_json()
    elif isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise ConfigValidationError("", "Config is not valid JSON") from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigValidationError("", "Config must be an object")

    raw = _normalize_legacy(raw)
    base = create_default_config(_template_for(raw)).to_json()
    return validate_config(_deep_merge(base, raw))


def _template_for(raw: dict[str, Any]) -> str:
    layout = raw.get("layout")
    layout_type = layout.get("type") if isinstance(layout, dict) else None
    if isinstance(layout_type, str) and layout_type in TEMPLATES:
        return layout_type
    return "carousel"


def _normalize_legacy(raw: dict[str, Any]) -> dict[str, Any]:
    """Accept the older `source: {locations: [...]}` shape."""
    source = raw.get("source")
    if isinstance(source, dict) and "locations" in source:
        raw = dict(raw)
        raw["source"] = source["locations"]
    return raw


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Overlay `override` onto `base`. Nested dicts merge, lists replace, None counts as missing."""
    result = dict(base)
    for key, value in override.items():
        if value is None and key in base:
            continue
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            result[key] = _deep_merge(base[key], value)
        else:
            result[key] = value
    return result


def validate_config(data: dict[str, Any]) -> WidgetConfig:
    """Validate a complete config dict, naming the first bad field on failure."""
    try:
        return WidgetConfig.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        raise ConfigValidationError(_error_path(first), first["msg"]) from e


def _error_path(error: Any) -> str:
    loc = list(error["loc"])
    # Tagged-union errors carry the tag as an extra location segment
    if len(loc) >= 2 and loc[0] == "layout" and loc[1] in LAYOUT_TYPES:
        del loc[1]
    if error["type"] in ("union_tag_invalid", "union_tag_not_found"):
        loc.append("type")
    return ".".join(str(part) for part in loc)
