"""
Review widgets configuration — all environment variables in one place.

Read from environment at runtime. Never hardcode secrets.
"""

from __future__ import annotations

import os


class Settings:
    """Application settings from environment variables."""

    # Database
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "")

    # Auth
    JWT_SECRET: str = os.environ.get("JWT_SECRET", "")
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRY_HOURS: int = 24

    # Application
    ENVIRONMENT: str = os.environ.get("ENVIRONMENT", "development")

    @property
    def PUBLIC_URL(self) -> str:
        url = os.environ.get("PUBLIC_URL")
        if url:
            return url.rstrip("/")
        return "http://localhost:8000" if self.ENVIRONMENT == "development" else "https://reviews.5me.io"

    # Embed
    # Target origin for the frame's height messages. "*" keeps the widget
    # usable on any customer domain.
    WIDGET_PARENT_ORIGIN: str = os.environ.get("WIDGET_PARENT_ORIGIN", "*")
    WIDGET_POWERED_BY: str = os.environ.get("WIDGET_POWERED_BY", "Powered by 5me")
    WIDGET_POWERED_BY_URL: str = os.environ.get("WIDGET_POWERED_BY_URL", "https://5me.io")

    @property
    def RENDER_STRICT(self) -> bool:
        return self.ENVIRONMENT == "development"

    # Rate Limits
    PAYLOAD_RATE_LIMIT_PER_MINUTE: int = int(os.environ.get("PAYLOAD_RATE_LIMIT_PER_MINUTE", "120"))  # per IP


# Singleton instance
settings = Settings()

if not settings.DATABASE_URL:
    raise RuntimeError("DATABASE_URL environment variable is required")
if not settings.JWT_SECRET:
    raise RuntimeError("JWT_SECRET environment variable is required")
