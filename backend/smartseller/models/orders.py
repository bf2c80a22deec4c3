from __future__ import annotations

from ..extensions import db
from ..money_utils import as_float
from smartseller.time_utils import to_utc_z


# =============================================================================
# ORDER STATUS / PAYMENT TYPE (CONSTANTS)
# =============================================================================

STATUS_PENDING = "pending"
STATUS_DELIVERED = "delivered"
STATUS_DEBT = "debt"
STATUS_CREDIT = "credit"

ORDER_STATUSES = (STATUS_PENDING, STATUS_DELIVERED, STATUS_DEBT, STATUS_CREDIT)

# Goods have left inventory in every one of these
FULFILLED_STATUSES = frozenset({STATUS_DELIVERED, STATUS_DEBT, STATUS_CREDIT})

PAYMENT_CASH = "cash"
PAYMENT_CREDIT = "credit"

PAYMENT_TYPES = (PAYMENT_CASH, PAYMENT_CREDIT)

ITEM_PRODUCT = "product"
ITEM_COMBO = "combo"

ITEM_TYPES = (ITEM_PRODUCT, ITEM_COMBO)


class Order(db.Model):
    """
    Customer order with snapshotted lines.

    Money columns are Numeric(12, 2) and always written already rounded.
    delivered_at is set the first time the order reaches 'delivered' and
    is never cleared afterwards.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.CheckConstraint(
            "status IN ('pending', 'delivered', 'debt', 'credit')",
            name="ck_orders_status",
        ),
        db.CheckConstraint("payment_type IN ('cash', 'credit')", name="ck_orders_payment_type"),
        db.Index("ix_orders_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    customer_name = db.Column(db.String(255), nullable=False, default="Guest")
    customer_phone = db.Column(db.String(64), nullable=True)

    status = db.Column(db.String(16), nullable=False, default=STATUS_PENDING, index=True)
    payment_type = db.Column(db.String(16), nullable=False, default=PAYMENT_CASH)

    subtotal = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    discount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    delivery_fee = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    amount_paid = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    report_session_id = db.Column(
        db.Integer,
        db.ForeignKey("report_sessions.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    delivered_at = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    version_id = db.Column(db.Integer, nullable=False, default=1)

    lines = db.relationship(
        "OrderLine",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLine.id",
        lazy="selectin",
    )
    report_session = db.relationship("ReportSession")

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Order id={self.id} status={self.status} total={self.total_amount}>"

    def to_dict(self, include_lines: bool = False) -> dict:
        data = {
            "id": self.id,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "status": self.status,
            "payment_type": self.payment_type,
            "subtotal": as_float(self.subtotal),
            "discount": as_float(self.discount),
            "delivery_fee": as_float(self.delivery_fee),
            "total_amount": as_float(self.total_amount),
            "amount_paid": as_float(self.amount_paid),
            "report_session_id": self.report_session_id,
            "delivered_at": to_utc_z(self.delivered_at) if self.delivered_at else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }
        if include_lines:
            data["items"] = [line.to_dict() for line in self.lines]
        return data


class OrderLine(db.Model):
    """
    Immutable line of an order.

    name/price/cost are copied at order time so later catalog edits never
    rewrite history. Exactly one of product_id / combo_id is set.
    """
    __tablename__ = "order_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
        db.CheckConstraint(
            "(item_type = 'product' AND product_id IS NOT NULL AND combo_id IS NULL)"
            " OR (item_type = 'combo' AND combo_id IS NOT NULL AND product_id IS NULL)",
            name="ck_order_items_product_xor_combo",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(
        db.Integer,
        db.ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    item_type = db.Column(db.String(16), nullable=False)

    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )
    combo_id = db.Column(
        db.Integer,
        db.ForeignKey("combos.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )

    quantity = db.Column(db.Integer, nullable=False)

    name_at_time = db.Column(db.String(255), nullable=False)
    unit_price_at_time = db.Column(db.Numeric(12, 2), nullable=False)
    unit_cost_at_time = db.Column(db.Numeric(12, 2), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    order = db.relationship("Order", back_populates="lines")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "item_type": self.item_type,
            "product_id": self.product_id,
            "combo_id": self.combo_id,
            "quantity": self.quantity,
            "name_at_time": self.name_at_time,
            "price_at_time": as_float(self.unit_price_at_time),
            "cost_at_time": as_float(self.unit_cost_at_time),
            "created_at": to_utc_z(self.created_at),
        }
