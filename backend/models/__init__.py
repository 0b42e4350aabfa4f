"""
Pydantic models for the review widgets backend.

All data shapes defined here. No imports from db, repos, or routes.
"""

from backend.models.user import User
from backend.models.widget import (
    CreateWidgetRequest,
    DeleteWidgetResponse,
    UpdateWidgetRequest,
    Widget,
    WidgetResponse,
)

__all__ = [
    # User models
    "User",
    # Widget models
    "Widget",
    "CreateWidgetRequest",
    "UpdateWidgetRequest",
    "WidgetResponse",
    "DeleteWidgetResponse",
]
