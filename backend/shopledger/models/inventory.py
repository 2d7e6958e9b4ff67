from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


def normalize_name(name: str) -> str:
    """Case-insensitive uniqueness key for item and supplier names."""
    return " ".join(name.split()).lower()


class Supplier(db.Model):
    """Supplier master data. Names are unique per shop (case-insensitive)."""
    __tablename__ = "suppliers"
    __table_args__ = (
        db.UniqueConstraint("shop_id", "name_key", name="uq_suppliers_shop_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    name_key = db.Column(db.String(255), nullable=False)
    address = db.Column(db.String(255), nullable=False, default="")
    phone = db.Column(db.String(32), nullable=False, default="")
    email = db.Column(db.String(255), nullable=False, default="")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "name": self.name,
            "address": self.address,
            "phone": self.phone,
            "email": self.email,
            "created_at": to_utc_z(self.created_at),
        }


class Item(db.Model):
    """
    Stock-keeping item.

    INVARIANT: quantity >= 0 at all times. The only writers are the sale
    engine (conditional decrement), void (increment), purchase intake and
    manual adjustment; each write is paired with a StockMovement row.
    """
    __tablename__ = "items"
    __table_args__ = (
        db.UniqueConstraint("shop_id", "name_key", name="uq_items_shop_name"),
        db.CheckConstraint("quantity >= 0", name="ck_items_quantity_non_negative"),
        db.Index("ix_items_shop_active", "shop_id", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    name_key = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(128), nullable=False, default="General")
    barcode = db.Column(db.String(64), nullable=True)

    # Authoritative storage in cents
    buying_price_cents = db.Column(db.Integer, nullable=False, default=0)
    selling_price_cents = db.Column(db.Integer, nullable=False, default=0)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    min_stock_level = db.Column(db.Integer, nullable=False, default=5)

    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=True, index=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=db.func.now(),
        onupdate=utcnow,
    )

    supplier = db.relationship("Supplier", backref=db.backref("items", lazy=True))

    def __repr__(self) -> str:
        return f"<Item id={self.id} name={self.name!r} shop_id={self.shop_id} qty={self.quantity}>"

    @property
    def stock_status(self) -> str:
        if self.quantity <= 0:
            return "OUT"
        if self.quantity <= self.min_stock_level:
            return "LOW"
        return "OK"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "name": self.name,
            "category": self.category,
            "barcode": self.barcode,
            "buying_price_cents": self.buying_price_cents,
            "selling_price_cents": self.selling_price_cents,
            "quantity": self.quantity,
            "min_stock_level": self.min_stock_level,
            "supplier_id": self.supplier_id,
            "supplier_name": self.supplier.name if self.supplier else None,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Purchase(db.Model):
    """
    One stock-intake line.

    IMMUTABLE: never updated after creation.
    """
    __tablename__ = "purchases"
    __table_args__ = (
        db.Index("ix_purchases_shop_date", "shop_id", "date_purchased"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=False, index=True)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    buying_price_cents = db.Column(db.Integer, nullable=False)
    total_cost_cents = db.Column(db.Integer, nullable=False)

    date_purchased = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    item = db.relationship("Item")
    supplier = db.relationship("Supplier", backref=db.backref("purchases", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "supplier_id": self.supplier_id,
            "supplier_name": self.supplier.name if self.supplier else "Unknown",
            "item_id": self.item_id,
            "item_name": self.item.name if self.item else "Unknown",
            "quantity": self.quantity,
            "buying_price_cents": self.buying_price_cents,
            "total_cost_cents": self.total_cost_cents,
            "date_purchased": to_utc_z(self.date_purchased),
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
        }


class StockMovement(db.Model):
    """
    Append-only audit trail of every stock quantity change.

    MOVEMENT TYPES:
    - IN: purchase intake or positive manual adjustment
    - OUT: sale or negative manual adjustment
    - RETURN: stock restored by voiding a sale
    - ADJUSTMENT: reserved for count corrections

    IMMUTABLE: Records are never updated or deleted.
    """
    __tablename__ = "stock_movements"
    __table_args__ = (
        db.Index("ix_stock_movements_shop_created", "shop_id", "created_at"),
        db.Index("ix_stock_movements_reference", "shop_id", "reference_type", "reference_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False, index=True)
    item_name = db.Column(db.String(255), nullable=False)

    movement_type = db.Column(db.String(16), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)  # magnitude, always positive
    balance_after = db.Column(db.Integer, nullable=False)

    reference_type = db.Column(db.String(32), nullable=True)  # sale, void, purchase, adjustment
    reference_id = db.Column(db.Integer, nullable=True)
    supplier_name = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.String(255), nullable=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "item_id": self.item_id,
            "item_name": self.item_name,
            "movement_type": self.movement_type,
            "quantity": self.quantity,
            "balance_after": self.balance_after,
            "reference_type": self.reference_type,
            "reference_id": self.reference_id,
            "supplier_name": self.supplier_name,
            "notes": self.notes,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
        }
