# Overview: Receipt number allocation; one atomic "next value" per (shop, day).

from __future__ import annotations

from datetime import date

from flask import current_app
from sqlalchemy import update

from ..extensions import db
from ..models import ReceiptSequence, Sale
from ..time_utils import compact_date
from .tenant_service import ShopScope, scoped_query


def receipt_prefix(on_date: date) -> str:
    prefix = current_app.config.get("RECEIPT_PREFIX", "TS")
    return f"{prefix}-{compact_date(on_date)}"


def format_receipt_number(on_date: date, number: int, pad: int = 4) -> str:
    return f"{receipt_prefix(on_date)}-{number:0{pad}d}"


def highest_issued_number(scope: ShopScope, on_date: date) -> int:
    """
    Highest numeric suffix among receipts already issued for this shop/day.

    Seeds a fresh counter so numbering continues after rows that predate
    the sequence table.
    """
    prefix = receipt_prefix(on_date) + "-"
    receipts = (
        scoped_query(scope, Sale)
        .with_entities(Sale.receipt_number)
        .filter(Sale.receipt_number.like(prefix + "%"))
        .all()
    )
    highest = 0
    for (receipt_number,) in receipts:
        suffix = receipt_number[len(prefix):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return highest


def next_receipt_number(scope: ShopScope, on_date: date) -> str:
    """
    Atomically allocate the next receipt number for a shop/day.

    Must be called inside the caller's transaction (no commit here): if the
    sale insert fails, the allocation rolls back with it.

    The UPDATE takes a write lock on the (shop, day) row, which serialises
    concurrent sales for the same shop/day until the enclosing commit. If
    two transactions race to create the row, the loser hits the unique
    constraint and run_in_transaction re-runs the whole sale.
    """
    stmt = (
        update(ReceiptSequence)
        .where(
            ReceiptSequence.shop_id == scope.shop_id,
            ReceiptSequence.sequence_date == on_date,
        )
        .values(next_number=ReceiptSequence.next_number + 1)
        .execution_options(synchronize_session=False)
    )

    result = db.session.execute(stmt)
    if result.rowcount:
        current = (
            db.session.query(ReceiptSequence.next_number)
            .filter_by(shop_id=scope.shop_id, sequence_date=on_date)
            .scalar()
        )
        next_num = current - 1
    else:
        next_num = highest_issued_number(scope, on_date) + 1
        seq = ReceiptSequence(shop_id=scope.shop_id, sequence_date=on_date, next_number=next_num + 1)
        db.session.add(seq)
        db.session.flush()

    return format_receipt_number(on_date, next_num)
