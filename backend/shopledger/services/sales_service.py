# Overview: Sale transaction engine; create and void sales atomically across stock, credit and journal.

"""
Sales Service

WHY: A sale touches four aggregates at once: item stock, the sale
document, the customer's receivable and the general ledger. All of them
move together inside one transaction or not at all.

VOID: The only change allowed on a completed sale is completed -> voided.
Voiding posts reversing rows (RETURN movements, inverse journal pairs)
instead of editing or deleting the originals.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func

from ..errors import (
    AlreadyVoided,
    CustomerRequiredForCredit,
    EmptyCart,
    InsufficientStock,
    InvalidPayload,
    InvalidPaymentMethod,
    SaleNotFound,
)
from ..extensions import db
from ..models import Sale, SaleItem
from ..models.sales import PAYMENT_TYPES, STATUS_COMPLETED, STATUS_VOIDED
from ..money import line_total
from ..time_utils import end_of_day, utcnow
from ..validation import get_cents, get_int
from .concurrency import lock_for_update, run_in_transaction
from .customer_service import find_or_create_customer, open_credit_entry, void_credit_entry
from .inventory_service import MOVEMENT_RETURN, add_stock, get_item_for_update, remove_stock
from .ledger_service import (
    COGS,
    INVENTORY,
    REF_SALE,
    REF_VOID,
    SALES_REVENUE,
    payment_account,
    post_entry,
)
from .sequence_service import next_receipt_number
from .tenant_service import ShopScope, scoped_query


WALK_IN_CUSTOMER = "Walk-in Customer"


def _parse_lines(items) -> list[dict]:
    lines = []
    for index, raw in enumerate(items):
        if not isinstance(raw, dict):
            raise InvalidPayload(f"items[{index}] must be an object")
        lines.append({
            "item_id": get_int(raw, "item_id", required=True, minimum=1),
            "quantity": get_int(raw, "quantity", required=True, minimum=1),
            "unit_price_cents": get_cents(raw, "unit_price_cents"),
        })
    return lines


def create_sale(
    scope: ShopScope,
    *,
    items,
    payment_type: str | None,
    customer_name: str | None = None,
    customer_phone: str | None = None,
    notes: str | None = None,
) -> Sale:
    """
    Record a completed sale.

    Each line: {item_id, quantity, unit_price_cents?}; the unit price
    defaults to the item's current selling price.

    Steps inside one transaction:
    1. load every item in-shop and check availability
    2. resolve or create the customer
    3. allocate the receipt number
    4. insert sale + lines (buying price snapshot per line)
    5. per line: conditional stock decrement, OUT movement, COGS pair
    6. revenue pair on the payment-method account
    7. credit sales: receivable entry and customer balance
    """
    if not items:
        raise EmptyCart()
    if payment_type not in PAYMENT_TYPES:
        raise InvalidPaymentMethod(payment_type)
    if payment_type == "credit" and not (customer_name and customer_name.strip()):
        raise CustomerRequiredForCredit()
    lines = _parse_lines(items)

    def _op() -> Sale:
        prepared = []
        for line in lines:
            item = get_item_for_update(scope, line["item_id"], lock=True)
            if item.quantity < line["quantity"]:
                raise InsufficientStock(
                    item_id=item.id,
                    item_name=item.name,
                    available=item.quantity,
                    requested=line["quantity"],
                )
            unit_price = line["unit_price_cents"]
            if unit_price is None:
                unit_price = item.selling_price_cents
            prepared.append((item, line["quantity"], unit_price))

        customer = None
        if customer_name and customer_name.strip():
            customer = find_or_create_customer(scope, name=customer_name, phone=customer_phone)

        now = utcnow()
        receipt_number = next_receipt_number(scope, now.date())

        sale = Sale(
            shop_id=scope.shop_id,
            receipt_number=receipt_number,
            customer_id=customer.id if customer else None,
            customer_name=customer_name.strip() if customer else WALK_IN_CUSTOMER,
            customer_phone=customer_phone or "",
            total_amount_cents=sum(line_total(price, qty) for _, qty, price in prepared),
            payment_type=payment_type,
            status=STATUS_COMPLETED,
            notes=notes or "",
            created_by_user_id=scope.user_id,
            created_at=now,
        )
        db.session.add(sale)
        db.session.flush()

        for item, quantity, unit_price in prepared:
            db.session.add(SaleItem(
                shop_id=scope.shop_id,
                sale_id=sale.id,
                item_id=item.id,
                item_name=item.name,
                quantity=quantity,
                unit_price_cents=unit_price,
                buying_price_cents=item.buying_price_cents,
                subtotal_cents=line_total(unit_price, quantity),
            ))

            remove_stock(
                scope,
                item,
                quantity,
                reference_type=REF_SALE,
                reference_id=sale.id,
                notes=f"Sale - {receipt_number}",
            )
            post_entry(
                scope,
                debit_account=COGS,
                credit_account=INVENTORY,
                amount_cents=line_total(item.buying_price_cents, quantity),
                reference_type=REF_SALE,
                reference_id=sale.id,
                description=f"COGS for {item.name} (Receipt: {receipt_number})",
            )

        post_entry(
            scope,
            debit_account=payment_account(payment_type),
            credit_account=SALES_REVENUE,
            amount_cents=sale.total_amount_cents,
            reference_type=REF_SALE,
            reference_id=sale.id,
            description=f"Sale Revenue (Receipt: {receipt_number}, Method: {payment_type})",
        )

        if payment_type == "credit":
            open_credit_entry(scope, customer=customer, sale_id=sale.id, amount_cents=sale.total_amount_cents)

        db.session.flush()
        return sale

    return run_in_transaction(_op)


def void_sale(scope: ShopScope, sale_id: int) -> Sale:
    """
    Void a completed sale.

    Restores stock with RETURN movements, posts the inverse COGS and
    revenue pairs under reference type 'void' with the sale's id, and
    reverses the receivable of a credit sale. A second void fails with
    AlreadyVoided and changes nothing.
    """
    def _op() -> Sale:
        sale = lock_for_update(scoped_query(scope, Sale).filter(Sale.id == sale_id)).first()
        if sale is None:
            raise SaleNotFound()
        if sale.status == STATUS_VOIDED:
            raise AlreadyVoided(sale.receipt_number)

        for line in sale.lines:
            # Deactivated items still take their stock back
            item = get_item_for_update(scope, line.item_id, lock=True, active_only=False)
            add_stock(
                scope,
                item,
                line.quantity,
                movement_type=MOVEMENT_RETURN,
                reference_type=REF_VOID,
                reference_id=sale.id,
                notes=f"Voided sale - {sale.receipt_number}",
            )
            post_entry(
                scope,
                debit_account=INVENTORY,
                credit_account=COGS,
                amount_cents=line_total(line.buying_price_cents, line.quantity),
                reference_type=REF_VOID,
                reference_id=sale.id,
                description=f"Stock Restored from Void (Item: {line.item_name})",
            )

        post_entry(
            scope,
            debit_account=SALES_REVENUE,
            credit_account=payment_account(sale.payment_type),
            amount_cents=sale.total_amount_cents,
            reference_type=REF_VOID,
            reference_id=sale.id,
            description=f"Sale Voided (Receipt: {sale.receipt_number})",
        )

        if sale.payment_type == "credit" and sale.customer_id:
            void_credit_entry(scope, sale_id=sale.id, customer_id=sale.customer_id)

        sale.status = STATUS_VOIDED
        sale.voided_at = utcnow()
        sale.voided_by_user_id = scope.user_id
        db.session.flush()
        return sale

    return run_in_transaction(_op)


# =============================================================================
# READS
# =============================================================================

def get_sale(scope: ShopScope, sale_id: int) -> Sale:
    sale = scoped_query(scope, Sale).filter(Sale.id == sale_id).first()
    if sale is None:
        raise SaleNotFound()
    return sale


def sale_payload(sale: Sale) -> dict:
    return {
        "sale": sale.to_dict(),
        "items": [line.to_dict() for line in sale.lines],
        "receipt_number": sale.receipt_number,
    }


def list_sales(
    scope: ShopScope,
    *,
    from_dt: datetime | None = None,
    to_dt: datetime | None = None,
    payment_type: str | None = None,
    status: str | None = None,
) -> list[dict]:
    """Sales newest first, each with its line count."""
    query = scoped_query(scope, Sale)
    if from_dt is not None:
        query = query.filter(Sale.created_at >= from_dt)
    if to_dt is not None:
        query = query.filter(Sale.created_at <= end_of_day(to_dt))
    if payment_type:
        query = query.filter(Sale.payment_type == payment_type)
    if status:
        query = query.filter(Sale.status == status)
    sales = query.order_by(Sale.created_at.desc(), Sale.id.desc()).all()

    counts = {}
    if sales:
        counts = dict(
            scoped_query(scope, SaleItem)
            .with_entities(SaleItem.sale_id, func.count(SaleItem.id))
            .filter(SaleItem.sale_id.in_([sale.id for sale in sales]))
            .group_by(SaleItem.sale_id)
            .all()
        )

    rows = []
    for sale in sales:
        row = sale.to_dict()
        row["item_count"] = counts.get(sale.id, 0)
        rows.append(row)
    return rows
