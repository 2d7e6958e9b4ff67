# Overview: Service-layer operations for inventory; the only writer of Item.quantity.

from __future__ import annotations

from datetime import datetime

from sqlalchemy import update

from ..errors import InsufficientStock, InvalidPayload, ItemNotFound
from ..extensions import db
from ..models import Item, StockMovement
from ..time_utils import end_of_day, period_start
from .concurrency import lock_for_update
from .tenant_service import ShopScope, scoped_query
"""
Inventory Invariants (authoritative)

- Item.quantity is the on-hand count and may never go negative.
- Decrements are conditional UPDATEs (quantity >= requested), so the
  availability check and the write are one atomic statement; zero rows
  affected means the stock was not there and becomes InsufficientStock.
- Every quantity change appends exactly one StockMovement in the same
  DB transaction (quantity stored as a positive magnitude, plus the
  resulting balance).
- Stock movements are append-only (no updates/deletes).
"""


MOVEMENT_IN = "IN"
MOVEMENT_OUT = "OUT"
MOVEMENT_RETURN = "RETURN"
MOVEMENT_ADJUSTMENT = "ADJUSTMENT"
MOVEMENT_TYPES = {MOVEMENT_IN, MOVEMENT_OUT, MOVEMENT_RETURN, MOVEMENT_ADJUSTMENT}


def get_item_for_update(scope: ShopScope, item_id: int, *, lock: bool = False, active_only: bool = True) -> Item:
    query = scoped_query(scope, Item).filter(Item.id == item_id)
    if active_only:
        query = query.filter(Item.is_active.is_(True))
    if lock:
        query = lock_for_update(query)
    item = query.first()
    if item is None:
        raise ItemNotFound(item_id)
    return item


def current_quantity(scope: ShopScope, item_id: int) -> int:
    """Read the committed-or-flushed quantity straight from the table."""
    return int(
        scoped_query(scope, Item)
        .with_entities(Item.quantity)
        .filter(Item.id == item_id)
        .scalar()
        or 0
    )


def _apply_delta(scope: ShopScope, item: Item, delta: int) -> int:
    """Single-statement quantity change; returns rows affected (0 = refused)."""
    stmt = (
        update(Item)
        .where(Item.id == item.id, Item.shop_id == scope.shop_id)
        .values(quantity=Item.quantity + delta)
        .execution_options(synchronize_session=False)
    )
    if delta < 0:
        stmt = stmt.where(Item.quantity >= -delta)
    result = db.session.execute(stmt)
    if result.rowcount:
        # The in-memory Item is stale after a Core UPDATE
        db.session.expire(item, ["quantity", "updated_at"])
    return result.rowcount


def record_movement(
    scope: ShopScope,
    *,
    item: Item,
    movement_type: str,
    quantity: int,
    balance_after: int,
    reference_type: str | None,
    reference_id: int | None,
    notes: str | None = None,
    supplier_name: str | None = None,
) -> StockMovement:
    if movement_type not in MOVEMENT_TYPES:
        raise InvalidPayload(f"Unknown movement type {movement_type!r}")
    movement = StockMovement(
        shop_id=scope.shop_id,
        item_id=item.id,
        item_name=item.name,
        movement_type=movement_type,
        quantity=quantity,
        balance_after=balance_after,
        reference_type=reference_type,
        reference_id=reference_id,
        supplier_name=supplier_name,
        notes=notes,
        created_by_user_id=scope.user_id,
    )
    db.session.add(movement)
    db.session.flush()
    return movement


def remove_stock(
    scope: ShopScope,
    item: Item,
    quantity: int,
    *,
    movement_type: str = MOVEMENT_OUT,
    reference_type: str | None,
    reference_id: int | None,
    notes: str | None = None,
) -> StockMovement:
    """
    Conditionally decrement on-hand and log the movement.

    No commit here; callers run inside run_in_transaction.
    """
    if quantity <= 0:
        raise InvalidPayload("quantity must be positive")
    if not _apply_delta(scope, item, -quantity):
        raise InsufficientStock(
            item_id=item.id,
            item_name=item.name,
            available=current_quantity(scope, item.id),
            requested=quantity,
        )
    return record_movement(
        scope,
        item=item,
        movement_type=movement_type,
        quantity=quantity,
        balance_after=current_quantity(scope, item.id),
        reference_type=reference_type,
        reference_id=reference_id,
        notes=notes,
    )


def add_stock(
    scope: ShopScope,
    item: Item,
    quantity: int,
    *,
    movement_type: str = MOVEMENT_IN,
    reference_type: str | None,
    reference_id: int | None,
    notes: str | None = None,
    supplier_name: str | None = None,
) -> StockMovement:
    """Increment on-hand and log the movement. No commit here."""
    if quantity <= 0:
        raise InvalidPayload("quantity must be positive")
    if not _apply_delta(scope, item, quantity):
        raise ItemNotFound(item.id)
    return record_movement(
        scope,
        item=item,
        movement_type=movement_type,
        quantity=quantity,
        balance_after=current_quantity(scope, item.id),
        reference_type=reference_type,
        reference_id=reference_id,
        notes=notes,
        supplier_name=supplier_name,
    )


def set_quantity(scope: ShopScope, item: Item, new_quantity: int, *, notes: str = "Manual stock adjustment") -> StockMovement | None:
    """
    Manual adjustment to an absolute count.

    Logged as IN/OUT by sign with reference_type 'adjustment'.
    """
    if new_quantity < 0:
        raise InvalidPayload("quantity must not be negative")
    delta = new_quantity - current_quantity(scope, item.id)
    if delta == 0:
        return None
    if delta > 0:
        return add_stock(scope, item, delta, reference_type="adjustment", reference_id=None, notes=notes)
    return remove_stock(scope, item, -delta, reference_type="adjustment", reference_id=None, notes=notes)


# =============================================================================
# READ MODELS
# =============================================================================

def _date_filtered(query, period: str | None, from_dt: datetime | None, to_dt: datetime | None):
    start = period_start(period)
    if start is not None:
        return query.filter(StockMovement.created_at >= start)
    if from_dt is not None:
        query = query.filter(StockMovement.created_at >= from_dt)
    if to_dt is not None:
        query = query.filter(StockMovement.created_at <= end_of_day(to_dt))
    return query


def list_movements(
    scope: ShopScope,
    *,
    movement_types: list[str] | None = None,
    item_id: int | None = None,
    period: str | None = None,
    from_dt: datetime | None = None,
    to_dt: datetime | None = None,
    limit: int = 500,
) -> list[StockMovement]:
    query = scoped_query(scope, StockMovement)
    if movement_types:
        query = query.filter(StockMovement.movement_type.in_(movement_types))
    if item_id is not None:
        query = query.filter(StockMovement.item_id == item_id)
    query = _date_filtered(query, period, from_dt, to_dt)
    return query.order_by(StockMovement.created_at.desc(), StockMovement.id.desc()).limit(limit).all()


def current_stock(scope: ShopScope) -> dict:
    """
    Stock valuation snapshot.

    Status per item: OUT (qty <= 0), LOW (qty <= min level), OK.
    """
    items = (
        scoped_query(scope, Item)
        .filter(Item.is_active.is_(True))
        .order_by(Item.quantity.asc(), Item.name.asc())
        .all()
    )

    summary = {
        "total_items": 0,
        "total_units": 0,
        "total_value_selling_cents": 0,
        "total_value_cost_cents": 0,
        "out_of_stock": 0,
        "low_stock": 0,
    }
    rows = []
    for item in items:
        value_selling = item.quantity * item.selling_price_cents
        value_cost = item.quantity * item.buying_price_cents
        status = item.stock_status

        summary["total_items"] += 1
        summary["total_units"] += item.quantity
        summary["total_value_selling_cents"] += value_selling
        summary["total_value_cost_cents"] += value_cost
        if status == "OUT":
            summary["out_of_stock"] += 1
        elif status == "LOW":
            summary["low_stock"] += 1

        row = item.to_dict()
        row.update({
            "value_selling_cents": value_selling,
            "value_cost_cents": value_cost,
            "status": status,
        })
        rows.append(row)

    return {"items": rows, "summary": summary}
