"""
Widget Engine — Exceptions

The four failure classes the engine distinguishes. Callers decide how to
surface them: blocking error in the builder, neutral empty state on the
public path, non-fatal save status for persistence failures.
"""

from __future__ import annotations


class WidgetError(Exception):
    """Base class for widget engine errors."""


class ConfigValidationError(WidgetError):
    """A config field has the wrong shape (as opposed to merely missing)."""

    def __init__(self, path: str, message: str):
        self.path = path
        self.message = message
        super().__init__(f"{path or '<root>'}: {message}")


class NotFoundError(WidgetError):
    """Widget id does not resolve, or is not published on the public path."""

    def __init__(self, widget_id: str):
        self.widget_id = widget_id
        super().__init__(f"Widget {widget_id} not found")


class PersistenceError(WidgetError):
    """A gateway call failed (network, authorization, storage)."""


class RenderPreconditionError(WidgetError):
    """Render was called with something other than a parsed WidgetConfig."""
