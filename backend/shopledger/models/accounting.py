from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


ACCOUNT_TYPES = ("Asset", "Revenue", "Expense", "Liability")


class GeneralLedgerEntry(db.Model):
    """
    Append-only double-entry journal row.

    Every financial event writes a debit row and a matching credit row
    sharing (reference_type, reference_id) in the same DB transaction.
    Errors are corrected by posting offsetting rows, never by edit/delete.
    """
    __tablename__ = "general_ledger"
    __table_args__ = (
        db.CheckConstraint("debit_cents >= 0 AND credit_cents >= 0", name="ck_general_ledger_non_negative"),
        db.Index("ix_general_ledger_reference", "shop_id", "reference_type", "reference_id"),
        db.Index("ix_general_ledger_shop_account", "shop_id", "account_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)

    account_name = db.Column(db.String(64), nullable=False)
    account_type = db.Column(db.String(16), nullable=False)
    debit_cents = db.Column(db.Integer, nullable=False, default=0)
    credit_cents = db.Column(db.Integer, nullable=False, default=0)

    reference_type = db.Column(db.String(32), nullable=False)  # sale, void, purchase, payment
    reference_id = db.Column(db.Integer, nullable=False)
    description = db.Column(db.String(255), nullable=False, default="")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "account_name": self.account_name,
            "account_type": self.account_type,
            "debit_cents": self.debit_cents,
            "credit_cents": self.credit_cents,
            "reference_type": self.reference_type,
            "reference_id": self.reference_id,
            "description": self.description,
            "created_at": to_utc_z(self.created_at),
        }
