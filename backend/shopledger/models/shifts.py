from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


SHIFT_OPEN = "open"
SHIFT_CLOSED = "closed"


class ShiftRegister(db.Model):
    """
    Cash-drawer shift for one user in one shop.

    LIFECYCLE:
    - open: started with a counted float (start_cash_cents)
    - closed: expected cash computed from cash sales since start_time,
      actual cash counted, variance = actual - expected

    IMMUTABLE: Once closed, a shift cannot be reopened or modified.
    Shifts are advisory; sales are not blocked when no shift is open.
    """
    __tablename__ = "shift_registers"
    __table_args__ = (
        db.Index("ix_shift_registers_shop_user_status", "shop_id", "user_id", "status"),
        # At most one open shift per user and shop
        db.Index(
            "uq_shift_registers_one_open",
            "shop_id",
            "user_id",
            unique=True,
            sqlite_where=db.text("status = 'open'"),
            postgresql_where=db.text("status = 'open'"),
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    status = db.Column(db.String(16), nullable=False, default=SHIFT_OPEN, index=True)

    start_time = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    end_time = db.Column(db.DateTime(timezone=True), nullable=True)

    # Cash tracking (all amounts in cents)
    start_cash_cents = db.Column(db.Integer, nullable=False, default=0)
    cash_sales_cents = db.Column(db.Integer, nullable=True)  # Set when closing
    expected_cash_cents = db.Column(db.Integer, nullable=True)  # start + cash sales
    actual_cash_cents = db.Column(db.Integer, nullable=True)  # counted at close
    variance_cents = db.Column(db.Integer, nullable=True)  # actual - expected

    notes = db.Column(db.Text, nullable=False, default="")
    version_id = db.Column(db.Integer, nullable=False, default=1)

    user = db.relationship("User", backref=db.backref("shifts", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "user_id": self.user_id,
            "user_name": (self.user.full_name or self.user.username) if self.user else "Unknown",
            "status": self.status,
            "start_time": to_utc_z(self.start_time),
            "end_time": to_utc_z(self.end_time) if self.end_time else None,
            "start_cash_cents": self.start_cash_cents,
            "cash_sales_cents": self.cash_sales_cents,
            "expected_cash_cents": self.expected_cash_cents,
            "actual_cash_cents": self.actual_cash_cents,
            "variance_cents": self.variance_cents,
            "notes": self.notes,
        }
