from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class ReceiptSequence(db.Model):
    """
    Atomic per-shop, per-day receipt counters.

    WHY: Prevent duplicate receipt numbers when sales on the same shop/day
    race. One row per (shop_id, sequence_date); allocation is a single
    UPDATE ... SET next_number = next_number + 1.
    """
    __tablename__ = "receipt_sequences"
    __table_args__ = (
        db.UniqueConstraint("shop_id", "sequence_date", name="uq_receipt_sequences_shop_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)
    sequence_date = db.Column(db.Date, nullable=False)
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "sequence_date": self.sequence_date.isoformat(),
            "next_number": self.next_number,
            "updated_at": to_utc_z(self.updated_at),
        }
