# Overview: Purchase intake engine; stock-in with supplier resolution, movements and journal pairs.

from __future__ import annotations

from datetime import datetime

from flask import current_app

from ..errors import EmptyCart, InvalidPayload, SupplierRequired
from ..extensions import db
from ..models import Item, Purchase
from ..models.inventory import normalize_name
from ..money import apply_bps, line_total
from ..validation import get_cents, get_datetime, get_int, get_str
from ..time_utils import end_of_day
from .concurrency import run_in_transaction
from .inventory_service import add_stock, get_item_for_update
from .item_service import find_by_name
from .ledger_service import CASH, INVENTORY, REF_PURCHASE, post_entry
from .supplier_service import find_or_create_supplier, get_supplier
from .tenant_service import ShopScope, scoped_query
"""
Purchase Intake Invariants (authoritative)

- One intake batch is one transaction: every line lands or none does.
- Each line appends exactly one Purchase, one IN StockMovement and one
  balanced Inventory/Cash journal pair for buying_price x quantity.
- Prices on the item are overwritten by the latest intake; quantity is
  only ever incremented here.
"""


def _parse_line(index: int, raw) -> dict:
    if not isinstance(raw, dict):
        raise InvalidPayload(f"items[{index}] must be an object")
    line = {
        "item_id": get_int(raw, "item_id", minimum=1),
        "item_name": get_str(raw, "item_name", max_length=255),
        "quantity": get_int(raw, "quantity", required=True, minimum=1),
        "buying_price_cents": get_cents(raw, "buying_price_cents", required=True),
        "selling_price_cents": get_cents(raw, "selling_price_cents"),
        "min_stock_level": get_int(raw, "min_stock_level", minimum=0),
        "category": get_str(raw, "category", max_length=128),
        "date_purchased": get_datetime(raw, "date_purchased"),
    }
    if line["item_id"] is None and not line["item_name"]:
        raise InvalidPayload("Item ID or name is required for each purchase item.")
    return line


def _resolve_item(scope: ShopScope, line: dict, supplier_id: int) -> Item:
    """Existing item (by id or name) updated with the intake prices, or a new one."""
    if line["item_id"] is not None:
        item = get_item_for_update(scope, line["item_id"], lock=True)
    else:
        item = find_by_name(scope, line["item_name"])

    if item is not None:
        item.buying_price_cents = line["buying_price_cents"]
        if line["selling_price_cents"] is not None:
            item.selling_price_cents = line["selling_price_cents"]
        if line["min_stock_level"] and line["item_id"] is None:
            item.min_stock_level = line["min_stock_level"]
        item.supplier_id = supplier_id
        item.is_active = True
        return item

    config = current_app.config
    selling_price = line["selling_price_cents"]
    if selling_price is None:
        selling_price = apply_bps(line["buying_price_cents"], config["DEFAULT_MARKUP_BPS"])
    item = Item(
        shop_id=scope.shop_id,
        name=line["item_name"],
        name_key=normalize_name(line["item_name"]),
        buying_price_cents=line["buying_price_cents"],
        selling_price_cents=selling_price,
        quantity=0,
        min_stock_level=line["min_stock_level"] or config["DEFAULT_MIN_STOCK_LEVEL"],
        supplier_id=supplier_id,
        category=line["category"] or config["DEFAULT_CATEGORY"],
    )
    db.session.add(item)
    db.session.flush()
    return item


def record_purchase(
    scope: ShopScope,
    *,
    items,
    supplier_id: int | None = None,
    supplier_name: str | None = None,
    supplier_address: str | None = None,
    supplier_phone: str | None = None,
    supplier_email: str | None = None,
) -> list[dict]:
    """
    Record one stock-intake batch.

    The supplier is taken by id (must exist in the shop) or found/created
    by name. Returns one summary row per line.
    """
    if not items:
        raise EmptyCart()
    if supplier_id is None and not supplier_name:
        raise SupplierRequired()
    lines = [_parse_line(index, raw) for index, raw in enumerate(items)]

    def _op() -> list[dict]:
        if supplier_id is not None:
            supplier = get_supplier(scope, supplier_id)
        else:
            supplier = find_or_create_supplier(
                scope,
                name=supplier_name,
                address=supplier_address,
                phone=supplier_phone,
                email=supplier_email,
            )

        results = []
        for line in lines:
            item = _resolve_item(scope, line, supplier.id)
            total_cost = line_total(line["buying_price_cents"], line["quantity"])

            purchase = Purchase(
                shop_id=scope.shop_id,
                supplier_id=supplier.id,
                item_id=item.id,
                quantity=line["quantity"],
                buying_price_cents=line["buying_price_cents"],
                total_cost_cents=total_cost,
                created_by_user_id=scope.user_id,
            )
            if line["date_purchased"] is not None:
                purchase.date_purchased = line["date_purchased"]
            db.session.add(purchase)
            db.session.flush()

            movement = add_stock(
                scope,
                item,
                line["quantity"],
                reference_type=REF_PURCHASE,
                reference_id=purchase.id,
                notes="Stock purchase",
                supplier_name=supplier.name,
            )
            post_entry(
                scope,
                debit_account=INVENTORY,
                credit_account=CASH,
                amount_cents=total_cost,
                reference_type=REF_PURCHASE,
                reference_id=purchase.id,
                description=f"Purchase of {item.name} from {supplier.name}",
            )

            results.append({
                "purchase_id": purchase.id,
                "item_id": item.id,
                "item_name": item.name,
                "quantity": line["quantity"],
                "total_cost_cents": total_cost,
                "balance_after": movement.balance_after,
            })
        return results

    return run_in_transaction(_op)


def list_purchases(
    scope: ShopScope,
    *,
    from_dt: datetime | None = None,
    to_dt: datetime | None = None,
    supplier_id: int | None = None,
) -> list[Purchase]:
    query = scoped_query(scope, Purchase)
    if from_dt is not None:
        query = query.filter(Purchase.date_purchased >= from_dt)
    if to_dt is not None:
        query = query.filter(Purchase.date_purchased <= end_of_day(to_dt))
    if supplier_id is not None:
        query = query.filter(Purchase.supplier_id == supplier_id)
    return query.order_by(Purchase.date_purchased.desc(), Purchase.id.desc()).all()
