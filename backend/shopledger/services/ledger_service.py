# Overview: Double-entry journal posting and balance checks for the general ledger.

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import GeneralLedgerEntry
from .tenant_service import ShopScope, scoped_query
"""
General Ledger Invariants (authoritative)

- Append-only: rows are never updated or deleted; reversals post offsetting rows.
- Every posting writes exactly one debit row and one credit row of equal
  amount, inside the same DB transaction as the business event.
- A void reverses a sale under reference_type 'void' with the sale's id,
  so original + reversal net to zero per account for that sale id.
"""


# Account chart
CASH = "Cash"
MPESA = "Mpesa"
SACCO = "Sacco"
ACCOUNTS_RECEIVABLE = "Accounts Receivable"
INVENTORY = "Inventory"
SALES_REVENUE = "Sales Revenue"
COGS = "Cost of Goods Sold"

ACCOUNT_TYPES = {
    CASH: "Asset",
    MPESA: "Asset",
    SACCO: "Asset",
    ACCOUNTS_RECEIVABLE: "Asset",
    INVENTORY: "Asset",
    SALES_REVENUE: "Revenue",
    COGS: "Expense",
}

# Where the money from a sale lands, by payment type
PAYMENT_ACCOUNTS = {
    "cash": CASH,
    "mpesa": MPESA,
    "sacco": SACCO,
    "credit": ACCOUNTS_RECEIVABLE,
}

# Reference types
REF_SALE = "sale"
REF_VOID = "void"
REF_PURCHASE = "purchase"
REF_PAYMENT = "payment"


class LedgerError(Exception):
    """Raised for malformed postings (programming errors, not user input)."""
    pass


def payment_account(payment_type: str) -> str:
    try:
        return PAYMENT_ACCOUNTS[payment_type]
    except KeyError:
        raise LedgerError(f"No ledger account for payment type {payment_type!r}")


def post_entry(
    scope: ShopScope,
    *,
    debit_account: str,
    credit_account: str,
    amount_cents: int,
    reference_type: str,
    reference_id: int,
    description: str,
) -> list[GeneralLedgerEntry]:
    """
    Append one balanced debit/credit pair.

    - No commit here; the caller's transaction owns both rows.
    - Zero amounts post nothing (a free line has no COGS).
    """
    if not isinstance(amount_cents, int) or isinstance(amount_cents, bool):
        raise LedgerError("amount_cents must be an integer")
    if amount_cents < 0:
        raise LedgerError("amount_cents must not be negative")
    if amount_cents == 0:
        return []
    if debit_account not in ACCOUNT_TYPES or credit_account not in ACCOUNT_TYPES:
        raise LedgerError(f"Unknown account in posting: {debit_account!r} / {credit_account!r}")
    if reference_id is None:
        raise LedgerError("reference_id is required")

    rows = [
        GeneralLedgerEntry(
            shop_id=scope.shop_id,
            account_name=debit_account,
            account_type=ACCOUNT_TYPES[debit_account],
            debit_cents=amount_cents,
            credit_cents=0,
            reference_type=reference_type,
            reference_id=reference_id,
            description=description,
        ),
        GeneralLedgerEntry(
            shop_id=scope.shop_id,
            account_name=credit_account,
            account_type=ACCOUNT_TYPES[credit_account],
            debit_cents=0,
            credit_cents=amount_cents,
            reference_type=reference_type,
            reference_id=reference_id,
            description=description,
        ),
    ]
    db.session.add_all(rows)
    db.session.flush()
    return rows


def reference_totals(scope: ShopScope, reference_type: str, reference_id: int) -> dict:
    """Debit and credit totals for one event."""
    row = (
        scoped_query(scope, GeneralLedgerEntry)
        .with_entities(
            func.coalesce(func.sum(GeneralLedgerEntry.debit_cents), 0).label("debit"),
            func.coalesce(func.sum(GeneralLedgerEntry.credit_cents), 0).label("credit"),
        )
        .filter(
            GeneralLedgerEntry.reference_type == reference_type,
            GeneralLedgerEntry.reference_id == reference_id,
        )
        .one()
    )
    debit = int(row.debit or 0)
    credit = int(row.credit or 0)
    return {
        "reference_type": reference_type,
        "reference_id": reference_id,
        "debit_cents": debit,
        "credit_cents": credit,
        "balanced": debit == credit,
    }


def account_balances(scope: ShopScope, reference_types: list[str] | None = None, reference_id: int | None = None) -> dict[str, int]:
    """
    Net (debit - credit) per account, optionally restricted to events.

    Used to check that a sale and its void cancel out account by account.
    """
    q = scoped_query(scope, GeneralLedgerEntry).with_entities(
        GeneralLedgerEntry.account_name,
        func.coalesce(func.sum(GeneralLedgerEntry.debit_cents - GeneralLedgerEntry.credit_cents), 0),
    )
    if reference_types:
        q = q.filter(GeneralLedgerEntry.reference_type.in_(reference_types))
    if reference_id is not None:
        q = q.filter(GeneralLedgerEntry.reference_id == reference_id)
    return {name: int(net or 0) for name, net in q.group_by(GeneralLedgerEntry.account_name).all()}


def list_entries(
    scope: ShopScope,
    *,
    reference_type: str | None = None,
    reference_id: int | None = None,
    limit: int = 500,
) -> list[GeneralLedgerEntry]:
    q = scoped_query(scope, GeneralLedgerEntry)
    if reference_type:
        q = q.filter(GeneralLedgerEntry.reference_type == reference_type)
    if reference_id is not None:
        q = q.filter(GeneralLedgerEntry.reference_id == reference_id)
    limit = max(1, min(limit, 1000))
    return q.order_by(GeneralLedgerEntry.id.desc()).limit(limit).all()
