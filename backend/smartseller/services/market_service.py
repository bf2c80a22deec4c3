from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import MarketItem
from ..models.market import MARKET_OPEN, MARKET_PRIORITIES, MARKET_STATUSES, PRIORITY_MEDIUM
from ..validation import ValidationError, optional_string, require_one_of, require_string
from .errors import MarketItemNotFound


def list_items(status: str | None = None) -> list[dict]:
    query = db.session.query(MarketItem)
    if status is not None:
        query = query.filter(MarketItem.status == require_one_of(status, "status", MARKET_STATUSES))
    items = query.order_by(MarketItem.created_at.desc(), MarketItem.id.desc()).all()
    return [i.to_dict() for i in items]


def _quantity(value) -> str:
    if value is None:
        return "1"
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise ValidationError("quantity must be text or a number")
    text = str(value).strip()
    return text or "1"


def create_item(payload: dict) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    item = MarketItem(
        item=require_string(payload.get("item"), "item"),
        quantity=_quantity(payload.get("quantity")),
        priority=require_one_of(payload.get("priority") or PRIORITY_MEDIUM, "priority", MARKET_PRIORITIES),
        notes=optional_string(payload.get("notes")),
        status=require_one_of(payload.get("status") or MARKET_OPEN, "status", MARKET_STATUSES),
    )
    try:
        db.session.add(item)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info("Market item %s added: %s", item.id, item.item)
    return item.to_dict()


def update_item(item_id: int, payload: dict) -> dict:
    """
    Partial update: keys absent from ``payload`` are kept; ``notes: null``
    clears the notes.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    item = db.session.get(MarketItem, item_id)
    if item is None:
        raise MarketItemNotFound("Item not found", details={"item_id": item_id})

    changes = {}
    if "item" in payload:
        changes["item"] = require_string(payload["item"], "item")
    if "quantity" in payload:
        changes["quantity"] = _quantity(payload["quantity"])
    if "priority" in payload:
        changes["priority"] = require_one_of(payload["priority"], "priority", MARKET_PRIORITIES)
    if "status" in payload:
        changes["status"] = require_one_of(payload["status"], "status", MARKET_STATUSES)
    if "notes" in payload:
        changes["notes"] = optional_string(payload["notes"])

    try:
        for key, value in changes.items():
            setattr(item, key, value)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return item.to_dict()


def delete_item(item_id: int) -> None:
    item = db.session.get(MarketItem, item_id)
    if item is None:
        raise MarketItemNotFound("Item not found", details={"item_id": item_id})
    try:
        db.session.delete(item)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    current_app.logger.info("Market item %s deleted", item_id)
