from __future__ import annotations

from ..extensions import db
from ..money_utils import as_float
from smartseller.time_utils import to_utc_z


class Product(db.Model):
    """
    Sellable product with an on-hand stock counter.

    STOCK INVARIANT: stock never goes negative. The CHECK constraint is the
    last line; services only ever touch stock through the conditional
    decrement / increment primitives in inventory_service.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("stock >= 0", name="ck_products_stock_nonnegative"),
        db.CheckConstraint("price >= 0", name="ck_products_price_nonnegative"),
        db.CheckConstraint("cost_price >= 0", name="ck_products_cost_nonnegative"),
        db.Index("ix_products_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)

    price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    cost_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    stock = db.Column(db.Integer, nullable=False, default=0)
    low_stock_threshold = db.Column(db.Integer, nullable=False, default=5)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} stock={self.stock}>"

    @property
    def is_low_stock(self) -> bool:
        return (self.stock or 0) <= (self.low_stock_threshold or 0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "price": as_float(self.price),
            "cost_price": as_float(self.cost_price),
            "stock": self.stock,
            "low_stock_threshold": self.low_stock_threshold,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Combo(db.Model):
    """
    Bundle assembled from a fixed list of ingredient products.

    A combo has no stock column: availability is derived from ingredient
    stock every time it is asked for (see combo_service.available_units).
    """
    __tablename__ = "combos"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    ingredients = db.relationship(
        "ComboIngredient",
        back_populates="combo",
        cascade="all, delete-orphan",
        order_by="ComboIngredient.position",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Combo id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ComboIngredient(db.Model):
    """One ingredient row of a combo; product is referenced, never owned."""
    __tablename__ = "combo_items"
    __table_args__ = (
        db.UniqueConstraint("combo_id", "product_id", name="uq_combo_items_combo_product"),
        db.CheckConstraint("quantity > 0", name="ck_combo_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    combo_id = db.Column(
        db.Integer,
        db.ForeignKey("combos.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    quantity = db.Column(db.Integer, nullable=False)

    # Keeps the caller's ingredient order stable
    position = db.Column(db.Integer, nullable=False, default=0)

    combo = db.relationship("Combo", back_populates="ingredients")
    product = db.relationship("Product", lazy="joined")

    def to_dict(self) -> dict:
        product = self.product
        return {
            "combo_id": self.combo_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "product_name": product.name if product else None,
            "stock": product.stock if product else None,
            "price": as_float(product.price) if product else None,
            "cost_price": as_float(product.cost_price) if product else None,
        }
