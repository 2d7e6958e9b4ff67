# Overview: Shift register state machine; opens cash drawers and reconciles them at close.

"""
Shift Register Service

WHY: Cash accountability per cashier. A shift records the opening float;
closing it counts the drawer and compares against the float plus the
cash sales recorded since the shift started.

STATES: no open shift -> open -> closed (terminal). A closed shift is
never reopened; the cashier opens a new one.

DESIGN: Shifts are advisory. Sales are accepted whether or not a shift
is open.
"""

from __future__ import annotations

from sqlalchemy import func

from ..errors import InvalidPayload, NoOpenShift, ShiftAlreadyOpen
from ..extensions import db
from ..models import Sale, ShiftRegister
from ..models.sales import STATUS_COMPLETED
from ..models.shifts import SHIFT_CLOSED, SHIFT_OPEN
from ..time_utils import utcnow
from .concurrency import lock_for_update, run_in_transaction
from .tenant_service import ShopScope, scoped_query


def _require_user(scope: ShopScope) -> int:
    if scope.user_id is None:
        raise InvalidPayload("Shifts belong to a user; no user in context")
    return scope.user_id


def _open_shift_query(scope: ShopScope, user_id: int):
    return (
        scoped_query(scope, ShiftRegister)
        .filter(ShiftRegister.user_id == user_id, ShiftRegister.status == SHIFT_OPEN)
        .order_by(ShiftRegister.start_time.desc(), ShiftRegister.id.desc())
    )


def get_shift_status(scope: ShopScope) -> ShiftRegister | None:
    """The caller's open shift in this shop, if any."""
    return _open_shift_query(scope, _require_user(scope)).first()


def open_shift(scope: ShopScope, *, starting_cash_cents: int = 0, notes: str | None = None) -> ShiftRegister:
    """
    Start a shift for the caller.

    Two concurrent opens can both pass the existence check; the partial
    unique index on open shifts rejects the second insert and the retry
    then reports ShiftAlreadyOpen.
    """
    user_id = _require_user(scope)

    def _op() -> ShiftRegister:
        existing = _open_shift_query(scope, user_id).first()
        if existing:
            raise ShiftAlreadyOpen(existing.id)

        shift = ShiftRegister(
            shop_id=scope.shop_id,
            user_id=user_id,
            status=SHIFT_OPEN,
            start_time=utcnow(),
            start_cash_cents=starting_cash_cents,
            notes=notes or "",
        )
        db.session.add(shift)
        db.session.flush()
        return shift

    return run_in_transaction(_op)


def cash_sales_since(scope: ShopScope, start_time) -> int:
    """Completed cash sales in this shop at or after start_time."""
    total = (
        scoped_query(scope, Sale)
        .with_entities(func.coalesce(func.sum(Sale.total_amount_cents), 0))
        .filter(
            Sale.payment_type == "cash",
            Sale.status == STATUS_COMPLETED,
            Sale.created_at >= start_time,
        )
        .scalar()
    )
    return int(total or 0)


def close_shift(scope: ShopScope, *, actual_cash_cents: int, notes: str | None = None) -> ShiftRegister:
    """
    Close the caller's open shift and compute the variance.

    expected = start cash + cash sales since start
    variance = actual - expected (positive surplus, negative shortage)

    Only cash sales count; mpesa, sacco and credit never reach the drawer.
    The shift row is locked and versioned, so two concurrent closes cannot
    both succeed.
    """
    user_id = _require_user(scope)

    def _op() -> ShiftRegister:
        shift = lock_for_update(_open_shift_query(scope, user_id)).first()
        if shift is None:
            raise NoOpenShift()

        cash_sales = cash_sales_since(scope, shift.start_time)
        expected = shift.start_cash_cents + cash_sales

        shift.cash_sales_cents = cash_sales
        shift.expected_cash_cents = expected
        shift.actual_cash_cents = actual_cash_cents
        shift.variance_cents = actual_cash_cents - expected
        shift.end_time = utcnow()
        shift.status = SHIFT_CLOSED
        if notes:
            shift.notes = notes
        db.session.flush()
        return shift

    return run_in_transaction(_op)


def shift_history(scope: ShopScope, *, limit: int = 100) -> list[ShiftRegister]:
    limit = max(1, min(limit, 500))
    return (
        scoped_query(scope, ShiftRegister)
        .order_by(ShiftRegister.start_time.desc(), ShiftRegister.id.desc())
        .limit(limit)
        .all()
    )
