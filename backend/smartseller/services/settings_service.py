from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from typing import Any

from flask import current_app

from ..extensions import db
from ..models import Setting


class SettingsError(ValueError):
    pass


class SettingsValidationError(SettingsError):
    pass


THEMES = {"light", "dark"}


@dataclass
class StoreSettings:
    """
    Typed view over the key/value settings table.

    Only these keys are interpreted by the backend. Anything else a client
    stores is kept in ``extra`` and handed back untouched.
    """
    businessName: str = "Chicken Nation"
    branchName: str = "Main Branch"
    currency: str = "XAF"
    theme: str = "dark"
    language: str = "en"
    deliveryFee: float = 100.0
    logoUrl: str = ""
    address: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        data = dict(self.extra)
        for f in fields(self):
            if f.name != "extra":
                data[f.name] = getattr(self, f.name)
        return data


KNOWN_KEYS = tuple(f.name for f in fields(StoreSettings) if f.name != "extra")


def _as_number(value) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        num = float(value)
    elif isinstance(value, str) and value.strip():
        try:
            num = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return num if math.isfinite(num) else None


def _validate_known(key: str, value):
    if key == "deliveryFee":
        num = _as_number(value)
        if num is None or num < 0:
            raise SettingsValidationError("deliveryFee must be a non-negative number")
        return num
    if key == "theme":
        if value not in THEMES:
            raise SettingsValidationError(f"theme must be one of {sorted(THEMES)}")
        return value
    if value is None:
        return ""
    if not isinstance(value, str):
        raise SettingsValidationError(f"{key} must be a string")
    return value.strip()


def _stored_values() -> dict[str, Any]:
    rows = db.session.query(Setting).all()
    return {row.key: row.value for row in rows}


def load_settings() -> StoreSettings:
    stored = _stored_values()
    settings = StoreSettings()
    for key, value in stored.items():
        if key not in KNOWN_KEYS:
            settings.extra[key] = value
            continue
        if key == "deliveryFee":
            num = _as_number(value)
            if num is not None:
                settings.deliveryFee = num
            continue
        if value is not None:
            setattr(settings, key, value)
    return settings


def get_settings() -> dict:
    return load_settings().to_dict()


def update_settings(patch: dict) -> dict:
    """
    Upsert every key of ``patch`` in one transaction.

    Known keys are validated and normalized; unknown keys are stored as
    given.
    """
    if not isinstance(patch, dict):
        raise SettingsValidationError("Settings payload must be an object")

    cleaned = {}
    for key, value in patch.items():
        if not isinstance(key, str) or not key.strip():
            raise SettingsValidationError("Setting keys must be non-empty strings")
        cleaned[key] = _validate_known(key, value) if key in KNOWN_KEYS else value

    try:
        for key, value in cleaned.items():
            row = db.session.get(Setting, key)
            if row is None:
                db.session.add(Setting(key=key, value=value))
            else:
                row.value = value
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info("Settings updated: %s", ", ".join(sorted(cleaned)))
    return get_settings()


def get_delivery_fee(session=None) -> float:
    """
    Configured delivery fee, or Config.DEFAULT_DELIVERY_FEE when unset or
    unparseable. Pricing floors the value at zero.
    """
    fallback = float(current_app.config.get("DEFAULT_DELIVERY_FEE", 100))
    session = session or db.session
    row = session.get(Setting, "deliveryFee")
    if row is None:
        return fallback
    num = _as_number(row.value)
    return fallback if num is None else num


def seed_defaults() -> int:
    """Write defaults for any known key that has no row yet."""
    defaults = StoreSettings().to_dict()
    existing = set(_stored_values())
    added = 0
    for key in KNOWN_KEYS:
        if key not in existing:
            db.session.add(Setting(key=key, value=defaults[key]))
            added += 1
    db.session.commit()
    return added


def reset_system() -> int:
    """
    Drop every table, recreate the schema and write default settings.

    Deletes all data, vendor sessions included. Returns the number of
    settings written.
    """
    current_app.logger.warning("System reset: dropping all tables")
    db.session.close()
    db.drop_all()
    db.create_all()
    added = seed_defaults()
    current_app.logger.info("System reset complete (%d default settings written)", added)
    return added
