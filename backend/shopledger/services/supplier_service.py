# Overview: Service-layer operations for suppliers.

"""
Supplier Service

WHY: Every purchase intake line is attributed to exactly one supplier.
Suppliers are found-or-created by name during intake, or managed directly.

MULTI-TENANT: Supplier names are unique within a shop (case-insensitive).
"""

from __future__ import annotations

from sqlalchemy import func

from ..errors import DuplicateName, InvalidPayload, SupplierNotFound
from ..extensions import db
from ..models import Item, Purchase, Supplier
from ..models.inventory import normalize_name
from .concurrency import run_in_transaction
from .tenant_service import ShopScope, scoped_query


def get_supplier(scope: ShopScope, supplier_id: int) -> Supplier:
    supplier = scoped_query(scope, Supplier).filter(Supplier.id == supplier_id).first()
    if supplier is None:
        raise SupplierNotFound()
    return supplier


def find_or_create_supplier(
    scope: ShopScope,
    *,
    name: str,
    address: str | None = None,
    phone: str | None = None,
    email: str | None = None,
) -> Supplier:
    """
    Case-insensitive find-or-create; contact fields that are supplied
    overwrite the stored ones. No commit here.
    """
    supplier = scoped_query(scope, Supplier).filter(Supplier.name_key == normalize_name(name)).first()
    if supplier:
        if address:
            supplier.address = address
        if phone:
            supplier.phone = phone
        if email:
            supplier.email = email
        return supplier

    supplier = Supplier(
        shop_id=scope.shop_id,
        name=name.strip(),
        name_key=normalize_name(name),
        address=address or "",
        phone=phone or "",
        email=email or "",
    )
    db.session.add(supplier)
    db.session.flush()
    return supplier


def list_suppliers(scope: ShopScope) -> list[dict]:
    """Suppliers with the number of items currently linked to them."""
    counts = dict(
        scoped_query(scope, Item)
        .with_entities(Item.supplier_id, func.count(Item.id))
        .filter(Item.supplier_id.isnot(None))
        .group_by(Item.supplier_id)
        .all()
    )
    rows = []
    for supplier in scoped_query(scope, Supplier).order_by(Supplier.name.asc()).all():
        row = supplier.to_dict()
        row["item_count"] = counts.get(supplier.id, 0)
        rows.append(row)
    return rows


def create_supplier(
    scope: ShopScope,
    *,
    name: str | None,
    address: str | None = None,
    phone: str | None = None,
    email: str | None = None,
) -> Supplier:
    if not name:
        raise InvalidPayload("Supplier name is required.")

    def _op() -> Supplier:
        if scoped_query(scope, Supplier).filter(Supplier.name_key == normalize_name(name)).first():
            raise DuplicateName("A supplier with this name already exists.", details={"name": name})
        supplier = Supplier(
            shop_id=scope.shop_id,
            name=name.strip(),
            name_key=normalize_name(name),
            address=address or "",
            phone=phone or "",
            email=email or "",
        )
        db.session.add(supplier)
        db.session.flush()
        return supplier

    return run_in_transaction(_op)


def update_supplier(scope: ShopScope, supplier_id: int, changes: dict) -> Supplier:
    def _op() -> Supplier:
        supplier = get_supplier(scope, supplier_id)
        name = changes.get("name")
        if name:
            duplicate = (
                scoped_query(scope, Supplier)
                .filter(Supplier.name_key == normalize_name(name), Supplier.id != supplier.id)
                .first()
            )
            if duplicate:
                raise DuplicateName("A supplier with this name already exists.", details={"name": name})
            supplier.name = name.strip()
            supplier.name_key = normalize_name(name)
        for field in ("address", "phone", "email"):
            if changes.get(field):
                setattr(supplier, field, changes[field])
        return supplier

    return run_in_transaction(_op)


def supplier_purchases(scope: ShopScope, supplier_id: int) -> list[Purchase]:
    get_supplier(scope, supplier_id)
    return (
        scoped_query(scope, Purchase)
        .filter(Purchase.supplier_id == supplier_id)
        .order_by(Purchase.date_purchased.desc(), Purchase.id.desc())
        .all()
    )
