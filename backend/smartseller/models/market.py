from __future__ import annotations

from ..extensions import db
from smartseller.time_utils import to_utc_z


PRIORITY_LOW = "low"
PRIORITY_MEDIUM = "medium"
PRIORITY_HIGH = "high"
MARKET_PRIORITIES = (PRIORITY_LOW, PRIORITY_MEDIUM, PRIORITY_HIGH)

MARKET_OPEN = "open"
MARKET_DONE = "done"
MARKET_STATUSES = (MARKET_OPEN, MARKET_DONE)


class MarketItem(db.Model):
    """Shopping checklist entry; quantity is free text ("2 kg", "1 crate")."""
    __tablename__ = "market_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    item = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.String(64), nullable=False, default="1")
    priority = db.Column(db.String(16), nullable=False, default=PRIORITY_MEDIUM)
    notes = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(16), nullable=False, default=MARKET_OPEN, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item": self.item,
            "quantity": self.quantity,
            "priority": self.priority,
            "notes": self.notes,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
