# backend/smartseller/config.py
from __future__ import annotations
import os


def _csv(value: str | None) -> list[str]:
    return [part.strip() for part in (value or "").split(",") if part.strip()]


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite file next to the instance folder unless DATABASE_URL points elsewhere
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///smartseller.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Single vendor account
    VENDOR_PASSWORD = os.environ.get("VENDOR_PASSWORD", "admin123")
    SESSION_TTL_HOURS = int(os.environ.get("SESSION_TTL_HOURS", "12"))

    # Used when the settings table has no usable deliveryFee
    DEFAULT_DELIVERY_FEE = float(os.environ.get("DEFAULT_DELIVERY_FEE", "100"))
    MAX_DISCOUNT_RATIO = 0.5

    # Empty list allows every origin (dev-friendly)
    CORS_ORIGINS = _csv(os.environ.get("CORS_ORIGINS"))
