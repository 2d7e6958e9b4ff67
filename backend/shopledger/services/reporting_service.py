# Overview: Read-only reports over sales, stock, the general ledger and the credit ledger.

from __future__ import annotations

from datetime import date, datetime, time, timedelta

from sqlalchemy import func

from ..models import CreditLedgerEntry, CreditPayment, Customer, GeneralLedgerEntry, Item, Sale, SaleItem
from ..models.customers import CREDIT_PARTIAL, CREDIT_UNPAID
from ..models.sales import PAYMENT_TYPES, STATUS_COMPLETED
from ..time_utils import end_of_day, utcnow
from . import inventory_service, ledger_service
from .tenant_service import ShopScope, scoped_query


DEBIT_NORMAL_TYPES = ("Asset", "Expense")

FAST_MOVING_DAYS = 30
FAST_MOVING_LIMIT = 10


def trial_balance(scope: ShopScope) -> dict:
    """
    Per-account totals and a P&L / balance sheet summary.

    Net balance is debit - credit for Asset and Expense accounts and
    credit - debit for Revenue and Liability accounts.
    """
    rows = (
        scoped_query(scope, GeneralLedgerEntry)
        .with_entities(
            GeneralLedgerEntry.account_name,
            GeneralLedgerEntry.account_type,
            func.coalesce(func.sum(GeneralLedgerEntry.debit_cents), 0),
            func.coalesce(func.sum(GeneralLedgerEntry.credit_cents), 0),
        )
        .group_by(GeneralLedgerEntry.account_name, GeneralLedgerEntry.account_type)
        .order_by(GeneralLedgerEntry.account_type.asc(), GeneralLedgerEntry.account_name.asc())
        .all()
    )

    totals = {"Revenue": 0, "Expense": 0, "Asset": 0, "Liability": 0}
    accounts = []
    for account_name, account_type, debits, credits in rows:
        debits = int(debits or 0)
        credits = int(credits or 0)
        if account_type in DEBIT_NORMAL_TYPES:
            net = debits - credits
        else:
            net = credits - debits
        totals[account_type] = totals.get(account_type, 0) + net
        accounts.append({
            "account_name": account_name,
            "account_type": account_type,
            "total_debit_cents": debits,
            "total_credit_cents": credits,
            "net_balance_cents": net,
        })

    return {
        "trial_balance": accounts,
        "summary": {
            "total_revenue_cents": totals["Revenue"],
            "total_expenses_cents": totals["Expense"],
            "net_profit_cents": totals["Revenue"] - totals["Expense"],
            "total_assets_cents": totals["Asset"],
            "total_liabilities_cents": totals["Liability"],
            "equity_cents": totals["Asset"] - totals["Liability"],
        },
    }


def credit_report(scope: ShopScope) -> dict:
    """Customers owing money, open receivables and the latest payments."""
    outstanding = (
        scoped_query(scope, CreditLedgerEntry)
        .filter(CreditLedgerEntry.status.in_((CREDIT_UNPAID, CREDIT_PARTIAL)))
        .order_by(CreditLedgerEntry.created_at.desc(), CreditLedgerEntry.id.desc())
        .all()
    )
    open_counts: dict[int, int] = {}
    for entry in outstanding:
        open_counts[entry.customer_id] = open_counts.get(entry.customer_id, 0) + 1

    customers = (
        scoped_query(scope, Customer)
        .filter(Customer.total_credit_cents > 0)
        .order_by(Customer.total_credit_cents.desc())
        .all()
    )
    payments = (
        scoped_query(scope, CreditPayment)
        .order_by(CreditPayment.created_at.desc(), CreditPayment.id.desc())
        .limit(50)
        .all()
    )

    return {
        "customers": [
            {
                "id": customer.id,
                "name": customer.name,
                "phone": customer.phone,
                "total_credit_cents": customer.total_credit_cents,
                "entries": open_counts.get(customer.id, 0),
            }
            for customer in customers
        ],
        "total_outstanding_cents": sum(entry.balance_cents for entry in outstanding),
        "ledger": [entry.to_dict() for entry in outstanding],
        "recent_payments": [payment.to_dict() for payment in payments],
    }


def journal(scope: ShopScope, *, reference_type: str | None = None, reference_id: int | None = None) -> list[dict]:
    entries = ledger_service.list_entries(scope, reference_type=reference_type, reference_id=reference_id)
    return [entry.to_dict() for entry in entries]


def ledger_balance_check(scope: ShopScope, reference_type: str, reference_id: int) -> dict:
    return ledger_service.reference_totals(scope, reference_type, reference_id)


def daily_report(scope: ShopScope, on_date: date | None = None) -> dict:
    """
    Takings for one UTC calendar day, completed sales only.

    Cost of goods uses the buying-price snapshot on each sale line, so a
    later price change does not rewrite past profit.
    """
    on_date = on_date or utcnow().date()
    day_start = datetime.combine(on_date, time.min)
    day_end = end_of_day(day_start)

    sales = (
        scoped_query(scope, Sale)
        .filter(
            Sale.status == STATUS_COMPLETED,
            Sale.created_at >= day_start,
            Sale.created_at <= day_end,
        )
        .all()
    )
    by_method = {payment_type: 0 for payment_type in PAYMENT_TYPES}
    revenue = 0
    for sale in sales:
        revenue += sale.total_amount_cents
        by_method[sale.payment_type] = by_method.get(sale.payment_type, 0) + sale.total_amount_cents

    cost, items_sold = 0, 0
    if sales:
        cost, items_sold = (
            scoped_query(scope, SaleItem)
            .with_entities(
                func.coalesce(func.sum(SaleItem.buying_price_cents * SaleItem.quantity), 0),
                func.coalesce(func.sum(SaleItem.quantity), 0),
            )
            .filter(SaleItem.sale_id.in_([sale.id for sale in sales]))
            .one()
        )
    cost = int(cost or 0)

    return {
        "date": on_date.isoformat(),
        "revenue_cents": revenue,
        "cost_of_goods_cents": cost,
        "profit_estimate_cents": revenue - cost,
        "items_sold": int(items_sold or 0),
        "cash_sales_cents": by_method["cash"],
        "mpesa_sales_cents": by_method["mpesa"],
        "sacco_sales_cents": by_method["sacco"],
        "credit_sales_cents": by_method["credit"],
        "transaction_count": len(sales),
    }


def inventory_report(scope: ShopScope, *, days: int = FAST_MOVING_DAYS, limit: int = FAST_MOVING_LIMIT) -> dict:
    """
    Stock valuation, best sellers of the last `days` days and low-stock items.

    Fast movers are ranked by units sold on completed sales; ties go to
    the item name.
    """
    snapshot = inventory_service.current_stock(scope)
    summary = snapshot["summary"]

    since = utcnow() - timedelta(days=days)
    units = func.sum(SaleItem.quantity)
    movers = (
        scoped_query(scope, SaleItem)
        .join(Sale, Sale.id == SaleItem.sale_id)
        .join(Item, Item.id == SaleItem.item_id)
        .with_entities(Item.id, Item.name, units)
        .filter(Sale.status == STATUS_COMPLETED, Sale.created_at >= since)
        .group_by(Item.id, Item.name)
        .order_by(units.desc(), Item.name.asc())
        .limit(limit)
        .all()
    )

    return {
        "valuation": {
            "total_items": summary["total_items"],
            "total_units": summary["total_units"],
            "cost_value_cents": summary["total_value_cost_cents"],
            "selling_value_cents": summary["total_value_selling_cents"],
        },
        "fast_moving": [
            {"item_id": item_id, "name": name, "sold": int(sold)}
            for item_id, name, sold in movers
        ],
        "low_stock": [
            {
                "item_id": row["id"],
                "name": row["name"],
                "quantity": row["quantity"],
                "min_stock_level": row["min_stock_level"],
            }
            for row in snapshot["items"]
            if row["status"] in ("LOW", "OUT")
        ],
    }
