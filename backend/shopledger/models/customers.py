from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


CREDIT_UNPAID = "unpaid"
CREDIT_PARTIAL = "partial"
CREDIT_PAID = "paid"
CREDIT_VOIDED = "voided"


class Customer(db.Model):
    """
    Customer with a running receivable balance.

    INVARIANT: total_credit_cents mirrors the unpaid/partial credit ledger
    balances for this customer. It is a materialised cache; the credit
    sales and CreditPayment rows are the event log it can be rebuilt from.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_shop_name", "shop_id", "name_key"),
        db.Index("ix_customers_shop_phone", "shop_id", "phone"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    name_key = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=False, default="")

    total_credit_cents = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "name": self.name,
            "phone": self.phone,
            "total_credit_cents": self.total_credit_cents,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class CreditLedgerEntry(db.Model):
    """
    One receivable per credit sale.

    balance_cents = max(0, amount_cents - paid_amount_cents).
    STATUS: unpaid -> partial -> paid, or voided when the sale is voided.
    Rows are never deleted.
    """
    __tablename__ = "credit_ledger"
    __table_args__ = (
        db.UniqueConstraint("sale_id", name="uq_credit_ledger_sale"),
        db.Index("ix_credit_ledger_shop_customer", "shop_id", "customer_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    customer_name = db.Column(db.String(255), nullable=False)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False)

    amount_cents = db.Column(db.Integer, nullable=False)
    paid_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    balance_cents = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(16), nullable=False, default=CREDIT_UNPAID, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    customer = db.relationship("Customer", backref=db.backref("credit_entries", lazy=True))
    sale = db.relationship("Sale")
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "sale_id": self.sale_id,
            "receipt_number": self.sale.receipt_number if self.sale else "N/A",
            "amount_cents": self.amount_cents,
            "paid_amount_cents": self.paid_amount_cents,
            "balance_cents": self.balance_cents,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class CreditPayment(db.Model):
    """
    One payment against a credit ledger entry, or against the customer's
    general balance when ledger_id is NULL.

    IMMUTABLE: Records are never updated or deleted.
    """
    __tablename__ = "credit_payments"
    __table_args__ = (
        db.Index("ix_credit_payments_shop_customer", "shop_id", "customer_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    ledger_id = db.Column(db.Integer, db.ForeignKey("credit_ledger.id"), nullable=True, index=True)

    amount_cents = db.Column(db.Integer, nullable=False)
    payment_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    notes = db.Column(db.String(255), nullable=False, default="")

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    customer = db.relationship("Customer", backref=db.backref("credit_payments", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "customer_id": self.customer_id,
            "customer_name": self.customer.name if self.customer else "Unknown",
            "ledger_id": self.ledger_id,
            "amount_cents": self.amount_cents,
            "payment_date": to_utc_z(self.payment_date),
            "notes": self.notes,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
        }
