from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


PAYMENT_TYPES = ("cash", "mpesa", "sacco", "credit")

STATUS_COMPLETED = "completed"
STATUS_VOIDED = "voided"


class Sale(db.Model):
    """
    Completed sale.

    LIFECYCLE: created as 'completed'; the only permitted change afterwards
    is the one-way transition completed -> voided. There is no un-void.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.UniqueConstraint("shop_id", "receipt_number", name="uq_sales_shop_receipt"),
        db.Index("ix_sales_receipt_number", "receipt_number"),
        # Shop-scoped queries by status/payment and date (shift close, reports)
        db.Index("ix_sales_shop_status_created", "shop_id", "status", "created_at"),
        db.Index("ix_sales_shop_payment_created", "shop_id", "payment_type", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)

    # Human-readable receipt number (e.g., "TS-20240501-0001")
    receipt_number = db.Column(db.String(64), nullable=False)

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    customer_name = db.Column(db.String(255), nullable=False, default="Walk-in Customer")
    customer_phone = db.Column(db.String(32), nullable=False, default="")

    total_amount_cents = db.Column(db.Integer, nullable=False)
    payment_type = db.Column(db.String(16), nullable=False)
    status = db.Column(db.String(16), nullable=False, default=STATUS_COMPLETED, index=True)
    notes = db.Column(db.String(255), nullable=False, default="")

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    # Void audit trail
    voided_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    voided_at = db.Column(db.DateTime(timezone=True), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    customer = db.relationship("Customer", backref=db.backref("sales", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "receipt_number": self.receipt_number,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "total_amount_cents": self.total_amount_cents,
            "payment_type": self.payment_type,
            "status": self.status,
            "notes": self.notes,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
            "voided_by_user_id": self.voided_by_user_id,
            "voided_at": to_utc_z(self.voided_at) if self.voided_at else None,
            "version_id": self.version_id,
        }


class SaleItem(db.Model):
    """
    Line item of a sale.

    buying_price_cents is a snapshot taken at sale time; COGS and void
    reversals use it even if the item's price changes later.

    IMMUTABLE: never updated after creation.
    """
    __tablename__ = "sale_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False, index=True)
    item_name = db.Column(db.String(255), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    buying_price_cents = db.Column(db.Integer, nullable=False)
    subtotal_cents = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    sale = db.relationship("Sale", backref=db.backref("lines", lazy=True, order_by="SaleItem.id"))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "item_id": self.item_id,
            "item_name": self.item_name,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "buying_price_cents": self.buying_price_cents,
            "subtotal_cents": self.subtotal_cents,
            "created_at": to_utc_z(self.created_at),
        }
