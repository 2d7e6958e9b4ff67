# Overview: Pytest coverage for credit sales, payments and customer balances.

import pytest

from shopledger.errors import CustomerNotFound, EntryNotFound, EntryVoided, InvalidAmount
from shopledger.models import CreditLedgerEntry, CreditPayment, Customer
from shopledger.services import customer_service, ledger_service, sales_service


@pytest.fixture
def jane_credit_sale(db_session, scope_a, make_item):
    """Credit sale of 500.00 to Jane."""
    battery = make_item(scope_a, "Battery 45Ah", quantity=3, buying=35000, selling=50000)
    sale = sales_service.create_sale(
        scope_a,
        items=[{"item_id": battery.id, "quantity": 1}],
        payment_type="credit",
        customer_name="Jane",
        customer_phone="0711222333",
    )
    entry = db_session.query(CreditLedgerEntry).filter_by(sale_id=sale.id).one()
    return sale, entry


class TestCreditSale:

    def test_credit_sale_opens_receivable(self, db_session, scope_a, jane_credit_sale):
        sale, entry = jane_credit_sale

        assert entry.amount_cents == 50000
        assert entry.paid_amount_cents == 0
        assert entry.balance_cents == 50000
        assert entry.status == "unpaid"
        assert entry.customer_name == "Jane"
        assert sale.customer.total_credit_cents == 50000

    def test_second_credit_sale_accumulates(self, db_session, scope_a, jane_credit_sale, brake_pads):
        sales_service.create_sale(
            scope_a,
            items=[{"item_id": brake_pads.id, "quantity": 1}],
            payment_type="credit",
            customer_name="jane",
        )

        customer = db_session.query(Customer).one()
        assert customer.total_credit_cents == 50000 + 4500
        assert db_session.query(CreditLedgerEntry).filter_by(customer_id=customer.id).count() == 2


class TestPayCredit:

    def test_full_payment_settles_entry(self, db_session, scope_a, jane_credit_sale):
        sale, entry = jane_credit_sale

        customer = customer_service.pay_credit(
            scope_a, sale.customer_id, amount_cents=50000, ledger_id=entry.id
        )

        db_session.refresh(entry)
        assert entry.status == "paid"
        assert entry.paid_amount_cents == 50000
        assert entry.balance_cents == 0
        assert customer.total_credit_cents == 0

    def test_partial_payment(self, db_session, scope_a, jane_credit_sale):
        sale, entry = jane_credit_sale

        customer = customer_service.pay_credit(
            scope_a, sale.customer_id, amount_cents=20000, ledger_id=entry.id, notes="First instalment"
        )

        db_session.refresh(entry)
        assert entry.status == "partial"
        assert entry.balance_cents == 30000
        assert customer.total_credit_cents == 30000

        payment = db_session.query(CreditPayment).one()
        assert payment.ledger_id == entry.id
        assert payment.notes == "First instalment"
        assert payment.created_by_user_id == scope_a.user_id

    def test_overpayment_floors_balances_at_zero(self, db_session, scope_a, jane_credit_sale):
        sale, entry = jane_credit_sale

        customer = customer_service.pay_credit(
            scope_a, sale.customer_id, amount_cents=60000, ledger_id=entry.id
        )

        db_session.refresh(entry)
        assert entry.balance_cents == 0
        assert entry.status == "paid"
        assert customer.total_credit_cents == 0

    def test_general_payment_without_entry(self, db_session, scope_a, jane_credit_sale):
        sale, entry = jane_credit_sale

        customer = customer_service.pay_credit(scope_a, sale.customer_id, amount_cents=10000)

        db_session.refresh(entry)
        assert entry.status == "unpaid"
        assert customer.total_credit_cents == 40000
        assert db_session.query(CreditPayment).one().notes == "Partial payment"

    def test_payment_posts_cash_and_receivable_pair(self, db_session, scope_a, jane_credit_sale):
        sale, entry = jane_credit_sale

        customer_service.pay_credit(scope_a, sale.customer_id, amount_cents=15000, ledger_id=entry.id)

        payment = db_session.query(CreditPayment).one()
        balances = ledger_service.account_balances(scope_a, reference_types=["payment"], reference_id=payment.id)
        assert balances == {"Cash": 15000, "Accounts Receivable": -15000}

    @pytest.mark.parametrize("amount", [0, -100, None])
    def test_invalid_amount(self, db_session, scope_a, jane_credit_sale, amount):
        sale, _ = jane_credit_sale

        with pytest.raises(InvalidAmount):
            customer_service.pay_credit(scope_a, sale.customer_id, amount_cents=amount)

        assert db_session.query(CreditPayment).count() == 0

    def test_unknown_entry_changes_nothing(self, db_session, scope_a, jane_credit_sale):
        sale, _ = jane_credit_sale

        with pytest.raises(EntryNotFound):
            customer_service.pay_credit(scope_a, sale.customer_id, amount_cents=1000, ledger_id=99999)

        customer = db_session.query(Customer).one()
        assert customer.total_credit_cents == 50000
        assert db_session.query(CreditPayment).count() == 0

    def test_entry_of_other_customer_not_found(self, db_session, scope_a, jane_credit_sale, brake_pads):
        _, jane_entry = jane_credit_sale
        other = sales_service.create_sale(
            scope_a,
            items=[{"item_id": brake_pads.id, "quantity": 1}],
            payment_type="credit",
            customer_name="Otieno",
        )

        with pytest.raises(EntryNotFound):
            customer_service.pay_credit(scope_a, other.customer_id, amount_cents=1000, ledger_id=jane_entry.id)

    @pytest.mark.parametrize("amount", [20000, 50000])
    def test_voided_entry_refuses_payment(self, db_session, scope_a, jane_credit_sale, amount):
        sale, entry = jane_credit_sale
        sales_service.void_sale(scope_a, sale.id)

        with pytest.raises(EntryVoided):
            customer_service.pay_credit(scope_a, sale.customer_id, amount_cents=amount, ledger_id=entry.id)

        db_session.refresh(entry)
        assert entry.status == "voided"
        assert entry.paid_amount_cents == 0
        assert db_session.query(CreditPayment).count() == 0
        customer = customer_service.get_customer(scope_a, sale.customer_id)
        assert customer.total_credit_cents == 0
        assert customer_service.recompute_customer_credit(scope_a, customer.id) == 0

    def test_unknown_customer(self, db_session, scope_a):
        with pytest.raises(CustomerNotFound):
            customer_service.pay_credit(scope_a, 99999, amount_cents=1000)


class TestCreditBalanceRebuild:

    def test_recompute_matches_running_balance(self, db_session, scope_a, jane_credit_sale, brake_pads):
        sale, entry = jane_credit_sale
        sales_service.create_sale(
            scope_a,
            items=[{"item_id": brake_pads.id, "quantity": 2}],
            payment_type="credit",
            customer_name="Jane",
        )
        customer_service.pay_credit(scope_a, sale.customer_id, amount_cents=20000, ledger_id=entry.id)
        customer_service.pay_credit(scope_a, sale.customer_id, amount_cents=5000)

        customer = customer_service.get_customer(scope_a, sale.customer_id)
        assert customer.total_credit_cents == 50000 + 9000 - 25000
        assert customer_service.recompute_customer_credit(scope_a, customer.id) == customer.total_credit_cents

    def test_recompute_after_void(self, db_session, scope_a, jane_credit_sale, brake_pads):
        sale, _ = jane_credit_sale
        second = sales_service.create_sale(
            scope_a,
            items=[{"item_id": brake_pads.id, "quantity": 1}],
            payment_type="credit",
            customer_name="Jane",
        )
        sales_service.void_sale(scope_a, second.id)

        customer = customer_service.get_customer(scope_a, sale.customer_id)
        assert customer.total_credit_cents == 50000
        assert customer_service.recompute_customer_credit(scope_a, customer.id) == 50000

    def test_credit_ledger_newest_first(self, db_session, scope_a, jane_credit_sale, brake_pads):
        sale, first_entry = jane_credit_sale
        sales_service.create_sale(
            scope_a,
            items=[{"item_id": brake_pads.id, "quantity": 1}],
            payment_type="credit",
            customer_name="Jane",
        )

        entries = customer_service.get_credit_ledger(scope_a, sale.customer_id)

        assert len(entries) == 2
        assert entries[-1].id == first_entry.id
