# Overview: Pytest coverage for the daily, inventory, trial balance, credit report and journal reads.

from datetime import date, datetime, timedelta

import pytest

from shopledger.services import customer_service, item_service, purchase_service, reporting_service, sales_service
from shopledger.time_utils import utcnow


@pytest.fixture
def sale_clock(monkeypatch):
    """Settable sale timestamp, starting at 2024-05-01 10:00 UTC."""
    clock = {"now": datetime(2024, 5, 1, 10, 0)}
    monkeypatch.setattr(sales_service, "utcnow", lambda: clock["now"])
    return clock


def _sell(scope, item, quantity=1, payment_type="cash", **kwargs):
    return sales_service.create_sale(
        scope, items=[{"item_id": item.id, "quantity": quantity}], payment_type=payment_type, **kwargs
    )


def _accounts(report):
    return {row["account_name"]: row for row in report["trial_balance"]}


class TestTrialBalance:

    def test_empty_shop(self, db_session, scope_a):
        report = reporting_service.trial_balance(scope_a)

        assert report["trial_balance"] == []
        assert report["summary"]["net_profit_cents"] == 0

    def test_profit_from_sales(self, db_session, scope_a, brake_pads):
        sales_service.create_sale(
            scope_a, items=[{"item_id": brake_pads.id, "quantity": 2}], payment_type="cash"
        )
        sales_service.create_sale(
            scope_a, items=[{"item_id": brake_pads.id, "quantity": 1}], payment_type="mpesa"
        )

        report = reporting_service.trial_balance(scope_a)
        accounts = _accounts(report)

        assert accounts["Sales Revenue"]["net_balance_cents"] == 3 * 4500
        assert accounts["Cost of Goods Sold"]["net_balance_cents"] == 3 * 3000
        assert accounts["Cash"]["net_balance_cents"] == 2 * 4500
        assert accounts["Mpesa"]["net_balance_cents"] == 4500
        assert report["summary"]["total_revenue_cents"] == 13500
        assert report["summary"]["total_expenses_cents"] == 9000
        assert report["summary"]["net_profit_cents"] == 4500

    def test_voided_sale_leaves_no_profit(self, db_session, scope_a, brake_pads):
        sale = sales_service.create_sale(
            scope_a, items=[{"item_id": brake_pads.id, "quantity": 2}], payment_type="cash"
        )
        sales_service.void_sale(scope_a, sale.id)

        summary = reporting_service.trial_balance(scope_a)["summary"]

        assert summary["total_revenue_cents"] == 0
        assert summary["total_expenses_cents"] == 0

    def test_debits_equal_credits(self, db_session, scope_a, brake_pads):
        purchase_service.record_purchase(
            scope_a,
            supplier_name="Coast Spares",
            items=[{"item_id": brake_pads.id, "quantity": 4, "buying_price_cents": 3000}],
        )
        sale = sales_service.create_sale(
            scope_a,
            items=[{"item_id": brake_pads.id, "quantity": 3}],
            payment_type="credit",
            customer_name="Jane",
        )
        customer_service.pay_credit(scope_a, sale.customer_id, amount_cents=5000)

        rows = reporting_service.trial_balance(scope_a)["trial_balance"]

        assert sum(r["total_debit_cents"] for r in rows) == sum(r["total_credit_cents"] for r in rows)


class TestCreditReport:

    def test_outstanding_customers_and_entries(self, db_session, scope_a, brake_pads):
        paid = sales_service.create_sale(
            scope_a, items=[{"item_id": brake_pads.id, "quantity": 1}],
            payment_type="credit", customer_name="Jane",
        )
        sales_service.create_sale(
            scope_a, items=[{"item_id": brake_pads.id, "quantity": 2}],
            payment_type="credit", customer_name="Otieno",
        )
        voided = sales_service.create_sale(
            scope_a, items=[{"item_id": brake_pads.id, "quantity": 1}],
            payment_type="credit", customer_name="Otieno",
        )
        sales_service.void_sale(scope_a, voided.id)
        jane_entry = customer_service.get_credit_ledger(scope_a, paid.customer_id)[0]
        customer_service.pay_credit(scope_a, paid.customer_id, amount_cents=4500, ledger_id=jane_entry.id)

        report = reporting_service.credit_report(scope_a)

        assert [(c["name"], c["total_credit_cents"], c["entries"]) for c in report["customers"]] == [
            ("Otieno", 9000, 1),
        ]
        assert report["total_outstanding_cents"] == 9000
        assert [entry["status"] for entry in report["ledger"]] == ["unpaid"]
        assert len(report["recent_payments"]) == 1
        assert report["recent_payments"][0]["customer_name"] == "Jane"


class TestJournal:

    def test_journal_filtered_by_reference(self, db_session, scope_a, brake_pads):
        sale = sales_service.create_sale(
            scope_a, items=[{"item_id": brake_pads.id, "quantity": 1}], payment_type="cash"
        )

        rows = reporting_service.journal(scope_a, reference_type="sale", reference_id=sale.id)
        check = reporting_service.ledger_balance_check(scope_a, "sale", sale.id)

        assert len(rows) == 4
        assert {row["account_name"] for row in rows} == {"Cash", "Sales Revenue", "Cost of Goods Sold", "Inventory"}
        assert check["balanced"] is True


class TestDailyReport:

    def test_takings_for_one_day(self, db_session, scope_a, brake_pads, oil_filter, sale_clock):
        _sell(scope_a, brake_pads, 2)
        _sell(scope_a, oil_filter, payment_type="mpesa")
        _sell(scope_a, brake_pads, payment_type="credit", customer_name="Jane")
        voided = _sell(scope_a, oil_filter, payment_type="sacco")
        sales_service.void_sale(scope_a, voided.id)
        sale_clock["now"] = datetime(2024, 5, 2, 9, 0)
        _sell(scope_a, oil_filter)

        report = reporting_service.daily_report(scope_a, date(2024, 5, 1))

        assert report == {
            "date": "2024-05-01",
            "revenue_cents": 9000 + 1200 + 4500,
            "cost_of_goods_cents": 6000 + 800 + 3000,
            "profit_estimate_cents": 14700 - 9800,
            "items_sold": 4,
            "cash_sales_cents": 9000,
            "mpesa_sales_cents": 1200,
            "sacco_sales_cents": 0,
            "credit_sales_cents": 4500,
            "transaction_count": 3,
        }
        assert reporting_service.daily_report(scope_a, date(2024, 5, 2))["transaction_count"] == 1

    def test_cost_uses_price_at_time_of_sale(self, db_session, scope_a, brake_pads, sale_clock):
        _sell(scope_a, brake_pads)
        item_service.update_item(scope_a, brake_pads.id, {"buying_price_cents": 9999})

        report = reporting_service.daily_report(scope_a, date(2024, 5, 1))

        assert report["cost_of_goods_cents"] == 3000
        assert report["profit_estimate_cents"] == 1500

    def test_quiet_day(self, db_session, scope_a):
        report = reporting_service.daily_report(scope_a, date(2024, 5, 1))

        assert report["revenue_cents"] == 0
        assert report["items_sold"] == 0
        assert report["transaction_count"] == 0


class TestInventoryReport:

    def test_valuation_movers_and_low_stock(self, db_session, scope_a, brake_pads, oil_filter, make_item, sale_clock):
        make_item(scope_a, "Spark Plug", quantity=0, buying=300, selling=500)
        sale_clock["now"] = utcnow() - timedelta(days=45)
        _sell(scope_a, oil_filter, 3)
        sale_clock["now"] = utcnow()
        _sell(scope_a, brake_pads, 3)
        _sell(scope_a, oil_filter)
        voided = _sell(scope_a, brake_pads, 5)
        sales_service.void_sale(scope_a, voided.id)

        report = reporting_service.inventory_report(scope_a)

        assert report["valuation"] == {
            "total_items": 3,
            "total_units": 17 + 1,
            "cost_value_cents": 17 * 3000 + 800,
            "selling_value_cents": 17 * 4500 + 1200,
        }
        assert [(row["name"], row["sold"]) for row in report["fast_moving"]] == [
            ("Brake Pads", 3),
            ("Oil Filter", 1),
        ]
        assert [(row["name"], row["quantity"]) for row in report["low_stock"]] == [
            ("Spark Plug", 0),
            ("Oil Filter", 1),
        ]

    def test_fast_movers_capped(self, db_session, scope_a, make_item):
        for n in range(12):
            item = make_item(scope_a, f"Fuse {n:02d}", quantity=20)
            _sell(scope_a, item, n + 1)

        movers = reporting_service.inventory_report(scope_a)["fast_moving"]

        assert len(movers) == 10
        assert movers[0] == {"item_id": movers[0]["item_id"], "name": "Fuse 11", "sold": 12}
        assert movers[-1]["name"] == "Fuse 02"
