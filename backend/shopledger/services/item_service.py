# Overview: Service-layer operations for the item catalogue.

from __future__ import annotations

from flask import current_app
from sqlalchemy import or_

from ..errors import DuplicateName, InvalidPayload, ItemNotFound, SupplierNotFound
from ..extensions import db
from ..models import Item, Supplier
from ..models.inventory import normalize_name
from .concurrency import run_in_transaction
from .inventory_service import add_stock, get_item_for_update, set_quantity
from .tenant_service import ShopScope, scoped_query


def _ensure_unique_name(scope: ShopScope, name: str, *, exclude_id: int | None = None) -> None:
    query = scoped_query(scope, Item).filter(Item.name_key == normalize_name(name))
    if exclude_id is not None:
        query = query.filter(Item.id != exclude_id)
    if query.first():
        raise DuplicateName("An item with this name already exists in your shop.", details={"name": name})


def _ensure_supplier(scope: ShopScope, supplier_id: int | None) -> None:
    if supplier_id is None:
        return
    if not scoped_query(scope, Supplier).filter(Supplier.id == supplier_id).first():
        raise SupplierNotFound()


def find_by_name(scope: ShopScope, name: str) -> Item | None:
    """Case-insensitive name lookup (inactive items included)."""
    return scoped_query(scope, Item).filter(Item.name_key == normalize_name(name)).first()


def list_items(
    scope: ShopScope,
    *,
    q: str | None = None,
    category: str | None = None,
    low_stock: bool = False,
) -> list[Item]:
    query = scoped_query(scope, Item).filter(Item.is_active.is_(True))
    if q:
        pattern = f"%{q.strip().lower()}%"
        query = query.filter(or_(
            Item.name_key.like(pattern),
            db.func.lower(Item.category).like(pattern),
            db.func.lower(Item.barcode).like(pattern),
        ))
    if category:
        query = query.filter(Item.category == category)
    if low_stock:
        query = query.filter(Item.quantity <= Item.min_stock_level)
    return query.order_by(Item.name.asc()).all()


def list_categories(scope: ShopScope) -> list[str]:
    rows = (
        scoped_query(scope, Item)
        .with_entities(Item.category)
        .filter(Item.is_active.is_(True))
        .distinct()
        .order_by(Item.category.asc())
        .all()
    )
    return [category for (category,) in rows if category]


def get_item(scope: ShopScope, item_id: int) -> Item:
    item = scoped_query(scope, Item).filter(Item.id == item_id, Item.is_active.is_(True)).first()
    if item is None:
        raise ItemNotFound(item_id)
    return item


def create_item(
    scope: ShopScope,
    *,
    name: str,
    buying_price_cents: int,
    selling_price_cents: int,
    quantity: int = 0,
    min_stock_level: int | None = None,
    supplier_id: int | None = None,
    category: str | None = None,
    barcode: str | None = None,
) -> Item:
    """
    Create a catalogue item.

    Opening stock is logged as an IN movement ("Initial stock entry") so
    the movement trail explains every unit on hand.
    """
    if not name or not name.strip():
        raise InvalidPayload("Name, buying price, and selling price are required.")
    if quantity < 0:
        raise InvalidPayload("quantity must not be negative")
    config = current_app.config

    def _op() -> Item:
        _ensure_unique_name(scope, name)
        _ensure_supplier(scope, supplier_id)

        item = Item(
            shop_id=scope.shop_id,
            name=name.strip(),
            name_key=normalize_name(name),
            buying_price_cents=buying_price_cents,
            selling_price_cents=selling_price_cents,
            quantity=0,
            min_stock_level=min_stock_level if min_stock_level is not None else config["DEFAULT_MIN_STOCK_LEVEL"],
            supplier_id=supplier_id,
            category=category or config["DEFAULT_CATEGORY"],
            barcode=barcode,
        )
        db.session.add(item)
        db.session.flush()

        if quantity > 0:
            add_stock(
                scope,
                item,
                quantity,
                reference_type="adjustment",
                reference_id=None,
                notes="Initial stock entry",
            )
        return item

    return run_in_transaction(_op)


def update_item(scope: ShopScope, item_id: int, changes: dict) -> Item:
    """
    Partial update. A quantity change is a manual stock adjustment and
    writes a movement; prices/metadata are overwritten in place.
    """
    def _op() -> Item:
        item = get_item_for_update(scope, item_id, lock=True)

        name = changes.get("name")
        if name:
            _ensure_unique_name(scope, name, exclude_id=item.id)
            item.name = name.strip()
            item.name_key = normalize_name(name)

        if "supplier_id" in changes:
            _ensure_supplier(scope, changes["supplier_id"])
            item.supplier_id = changes["supplier_id"]

        for field in ("buying_price_cents", "selling_price_cents", "min_stock_level", "category", "barcode"):
            if changes.get(field) is not None:
                setattr(item, field, changes[field])

        if changes.get("quantity") is not None:
            set_quantity(scope, item, changes["quantity"])

        db.session.flush()
        return item

    return run_in_transaction(_op)


def delete_item(scope: ShopScope, item_id: int) -> Item:
    """
    Soft delete.

    WHY: Sale lines, purchases and stock movements reference the item and
    are permanent audit rows, so the item is deactivated instead.
    """
    def _op() -> Item:
        item = get_item_for_update(scope, item_id, lock=True)
        item.is_active = False
        return item

    return run_in_transaction(_op)
