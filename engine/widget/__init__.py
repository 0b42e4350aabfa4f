"""
Review widget engine.

Pure pieces (config parsing, review selection, rendering) plus the
builder session that autosaves drafts through a Gateway.
"""

from engine.widget.builder import BuilderSession, BuilderState, SaveStatus
from engine.widget.config import (
    TEMPLATES,
    WidgetConfig,
    create_default_config,
    parse_config,
)
from engine.widget.embed import embed_snippet, height_message, loader_script
from engine.widget.errors import (
    ConfigValidationError,
    NotFoundError,
    PersistenceError,
    RenderPreconditionError,
    WidgetError,
)
from engine.widget.gateway import HttpGateway, MemoryGateway, WidgetGateway
from engine.widget.renderer import render, render_unavailable, render_widget
from engine.widget.scheduler import LoopScheduler, ManualScheduler, Scheduler
from engine.widget.selection import select_reviews
from engine.widget.types import (
    RenderOptions,
    Review,
    Summary,
    WidgetPayload,
    WidgetRecord,
)

__all__ = [
    # Config
    "TEMPLATES",
    "WidgetConfig",
    "create_default_config",
    "parse_config",
    # Types
    "RenderOptions",
    "Review",
    "Summary",
    "WidgetPayload",
    "WidgetRecord",
    # Pipeline
    "select_reviews",
    "render",
    "render_widget",
    "render_unavailable",
    # Embed
    "embed_snippet",
    "height_message",
    "loader_script",
    # Builder
    "BuilderSession",
    "BuilderState",
    "SaveStatus",
    "Scheduler",
    "LoopScheduler",
    "ManualScheduler",
    # Gateway
    "WidgetGateway",
    "MemoryGateway",
    "HttpGateway",
    # Errors
    "WidgetError",
    "ConfigValidationError",
    "NotFoundError",
    "PersistenceError",
    "RenderPreconditionError",
]
