# Overview: Credit ledger operations: customer resolution, receivables and payments.

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, or_

from ..errors import CustomerNotFound, EntryNotFound, EntryVoided, InvalidAmount
from ..extensions import db
from ..models import CreditLedgerEntry, CreditPayment, Customer
from ..models.customers import CREDIT_PAID, CREDIT_PARTIAL, CREDIT_UNPAID, CREDIT_VOIDED
from ..models.inventory import normalize_name
from ..money import floor_zero
from ..time_utils import utcnow
from .concurrency import lock_for_update, run_in_transaction
from .ledger_service import ACCOUNTS_RECEIVABLE, CASH, REF_PAYMENT, post_entry
from .tenant_service import ShopScope, scoped_query
"""
Credit Ledger Invariants (authoritative)

- One CreditLedgerEntry per credit sale; balance = max(0, amount - paid).
- Status follows the balance: paid when balance <= 0, partial when
  something was paid, unpaid otherwise; voided only via sale void.
- Customer.total_credit_cents is a materialised receivable, floored at 0.
  It moves only with credit sales (+), payments (-) and voids (-).
- CreditPayment rows are the immutable event log; entries are never deleted.
"""


def find_or_create_customer(scope: ShopScope, *, name: str, phone: str | None = None) -> Customer:
    """
    Match by case-insensitive name OR exact phone within the shop.

    A matched customer whose phone differs from the supplied one gets the
    new phone. No commit here; callers own the transaction.
    """
    conditions = [Customer.name_key == normalize_name(name)]
    if phone:
        conditions.append(Customer.phone == phone)
    customer = (
        scoped_query(scope, Customer)
        .filter(or_(*conditions))
        .order_by(Customer.id.asc())
        .first()
    )
    if customer:
        if phone and customer.phone != phone:
            customer.phone = phone
        return customer

    customer = Customer(
        shop_id=scope.shop_id,
        name=name.strip(),
        name_key=normalize_name(name),
        phone=phone or "",
        total_credit_cents=0,
    )
    db.session.add(customer)
    db.session.flush()
    return customer


def list_customers(scope: ShopScope, *, q: str | None = None) -> list[Customer]:
    query = scoped_query(scope, Customer)
    if q:
        pattern = f"%{q.strip().lower()}%"
        query = query.filter(or_(Customer.name_key.like(pattern), Customer.phone.like(pattern)))
    return query.order_by(Customer.name.asc()).all()


def get_customer(scope: ShopScope, customer_id: int) -> Customer:
    customer = scoped_query(scope, Customer).filter(Customer.id == customer_id).first()
    if customer is None:
        raise CustomerNotFound()
    return customer


def get_credit_ledger(scope: ShopScope, customer_id: int) -> list[CreditLedgerEntry]:
    get_customer(scope, customer_id)
    return (
        scoped_query(scope, CreditLedgerEntry)
        .filter(CreditLedgerEntry.customer_id == customer_id)
        .order_by(CreditLedgerEntry.created_at.desc(), CreditLedgerEntry.id.desc())
        .all()
    )


def open_credit_entry(scope: ShopScope, *, customer: Customer, sale_id: int, amount_cents: int) -> CreditLedgerEntry:
    """Receivable for a new credit sale; bumps the customer's running balance."""
    entry = CreditLedgerEntry(
        shop_id=scope.shop_id,
        customer_id=customer.id,
        customer_name=customer.name,
        sale_id=sale_id,
        amount_cents=amount_cents,
        paid_amount_cents=0,
        balance_cents=amount_cents,
        status=CREDIT_UNPAID,
    )
    db.session.add(entry)
    customer.total_credit_cents = customer.total_credit_cents + amount_cents
    db.session.flush()
    return entry


def void_credit_entry(scope: ShopScope, *, sale_id: int, customer_id: int) -> CreditLedgerEntry | None:
    """
    Reverse the receivable of a voided credit sale.

    The customer's balance drops by the original credit amount (floored at
    0) and the entry is kept with status 'voided'.
    """
    entry = lock_for_update(
        scoped_query(scope, CreditLedgerEntry).filter(CreditLedgerEntry.sale_id == sale_id)
    ).first()
    if entry is None:
        return None

    customer = lock_for_update(
        scoped_query(scope, Customer).filter(Customer.id == customer_id)
    ).first()
    if customer is not None:
        customer.total_credit_cents = floor_zero(customer.total_credit_cents - entry.amount_cents)

    entry.status = CREDIT_VOIDED
    db.session.flush()
    return entry


def _status_for(entry: CreditLedgerEntry) -> str:
    if entry.balance_cents <= 0:
        return CREDIT_PAID
    if entry.paid_amount_cents > 0:
        return CREDIT_PARTIAL
    return CREDIT_UNPAID


def pay_credit(
    scope: ShopScope,
    customer_id: int,
    *,
    amount_cents: int | None,
    ledger_id: int | None = None,
    payment_date: datetime | None = None,
    notes: str | None = None,
) -> Customer:
    """
    Record a payment against one credit entry or the general balance.

    All steps (entry update, payment row, customer balance, journal pair)
    commit together or not at all.
    """
    if amount_cents is None or amount_cents <= 0:
        raise InvalidAmount()

    def _op() -> Customer:
        customer = lock_for_update(
            scoped_query(scope, Customer).filter(Customer.id == customer_id)
        ).first()
        if customer is None:
            raise CustomerNotFound()

        if ledger_id is not None:
            entry = lock_for_update(
                scoped_query(scope, CreditLedgerEntry).filter(
                    CreditLedgerEntry.id == ledger_id,
                    CreditLedgerEntry.customer_id == customer.id,
                )
            ).first()
            if entry is None:
                raise EntryNotFound()
            if entry.status == CREDIT_VOIDED:
                raise EntryVoided(entry.id)
            entry.paid_amount_cents = entry.paid_amount_cents + amount_cents
            entry.balance_cents = floor_zero(entry.amount_cents - entry.paid_amount_cents)
            entry.status = _status_for(entry)

        payment = CreditPayment(
            shop_id=scope.shop_id,
            customer_id=customer.id,
            ledger_id=ledger_id,
            amount_cents=amount_cents,
            payment_date=payment_date or utcnow(),
            notes=notes or "Partial payment",
            created_by_user_id=scope.user_id,
        )
        db.session.add(payment)

        customer.total_credit_cents = floor_zero(customer.total_credit_cents - amount_cents)
        db.session.flush()

        post_entry(
            scope,
            debit_account=CASH,
            credit_account=ACCOUNTS_RECEIVABLE,
            amount_cents=amount_cents,
            reference_type=REF_PAYMENT,
            reference_id=payment.id,
            description=f"Credit payment from {customer.name}",
        )
        return customer

    return run_in_transaction(_op)


def recompute_customer_credit(scope: ShopScope, customer_id: int) -> int:
    """
    Rebuild the receivable from the event log.

    Sum of non-voided credit entries minus the payments made against
    them or against the general balance, floored at 0. Payments against
    a voided entry are dropped along with it.
    """
    get_customer(scope, customer_id)

    open_entries = scoped_query(scope, CreditLedgerEntry).filter(
        CreditLedgerEntry.customer_id == customer_id,
        CreditLedgerEntry.status != CREDIT_VOIDED,
    )
    charged = open_entries.with_entities(func.coalesce(func.sum(CreditLedgerEntry.amount_cents), 0)).scalar()
    open_ids = [entry_id for (entry_id,) in open_entries.with_entities(CreditLedgerEntry.id).all()]

    payments = scoped_query(scope, CreditPayment).filter(CreditPayment.customer_id == customer_id)
    if open_ids:
        payments = payments.filter(or_(CreditPayment.ledger_id.is_(None), CreditPayment.ledger_id.in_(open_ids)))
    else:
        payments = payments.filter(CreditPayment.ledger_id.is_(None))
    paid = payments.with_entities(func.coalesce(func.sum(CreditPayment.amount_cents), 0)).scalar()

    return floor_zero(int(charged or 0) - int(paid or 0))
