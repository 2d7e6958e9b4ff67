# Overview: Pytest coverage for shift open/close and drawer reconciliation.

import pytest
from sqlalchemy.exc import IntegrityError

from shopledger.errors import InvalidPayload, NoOpenShift, ShiftAlreadyOpen
from shopledger.models import ShiftRegister, User
from shopledger.services import sales_service, shift_service
from shopledger.services.tenant_service import ShopScope


@pytest.fixture
def tyre_valve(scope_a, make_item):
    return make_item(scope_a, "Tyre Valve", quantity=50, buying=3000, selling=5000)


def _sell(scope, item, payment_type="cash", **kwargs):
    return sales_service.create_sale(
        scope, items=[{"item_id": item.id, "quantity": 1}], payment_type=payment_type, **kwargs
    )


class TestShiftReconciliation:

    @pytest.mark.parametrize("actual_cash, variance", [
        (15000, 0),
        (14000, -1000),
        (16000, 1000),
    ])
    def test_variance(self, db_session, scope_a, tyre_valve, actual_cash, variance):
        shift_service.open_shift(scope_a, starting_cash_cents=10000)
        _sell(scope_a, tyre_valve)

        shift = shift_service.close_shift(scope_a, actual_cash_cents=actual_cash)

        assert shift.status == "closed"
        assert shift.cash_sales_cents == 5000
        assert shift.expected_cash_cents == 15000
        assert shift.actual_cash_cents == actual_cash
        assert shift.variance_cents == variance
        assert shift.end_time is not None

    def test_only_completed_cash_sales_count(self, db_session, scope_a, tyre_valve):
        _sell(scope_a, tyre_valve)  # before the shift opened
        shift_service.open_shift(scope_a, starting_cash_cents=10000)
        _sell(scope_a, tyre_valve)
        _sell(scope_a, tyre_valve, payment_type="mpesa")
        _sell(scope_a, tyre_valve, payment_type="sacco")
        _sell(scope_a, tyre_valve, payment_type="credit", customer_name="Jane")
        voided = _sell(scope_a, tyre_valve)
        sales_service.void_sale(scope_a, voided.id)

        shift = shift_service.close_shift(scope_a, actual_cash_cents=15000)

        assert shift.cash_sales_cents == 5000
        assert shift.variance_cents == 0

    def test_close_notes_replace_open_notes(self, db_session, scope_a):
        shift_service.open_shift(scope_a, notes="Morning")
        shift = shift_service.close_shift(scope_a, actual_cash_cents=0, notes="Drawer counted twice")

        assert shift.notes == "Drawer counted twice"


class TestShiftStateMachine:

    def test_open_twice_fails(self, db_session, scope_a):
        first = shift_service.open_shift(scope_a, starting_cash_cents=5000)

        with pytest.raises(ShiftAlreadyOpen) as exc_info:
            shift_service.open_shift(scope_a, starting_cash_cents=5000)

        assert exc_info.value.details["shift_id"] == first.id

    def test_database_refuses_second_open_row(self, db_session, scope_a):
        shift_service.open_shift(scope_a)

        db_session.add(ShiftRegister(shop_id=scope_a.shop_id, user_id=scope_a.user_id, status="open"))
        with pytest.raises(IntegrityError):
            db_session.flush()
        db_session.rollback()

        closed = shift_service.close_shift(scope_a, actual_cash_cents=0)
        db_session.add(ShiftRegister(shop_id=scope_a.shop_id, user_id=scope_a.user_id, status="closed"))
        db_session.commit()

        assert closed.status == "closed"
        assert shift_service.open_shift(scope_a).status == "open"

    def test_close_without_open_shift(self, db_session, scope_a):
        with pytest.raises(NoOpenShift):
            shift_service.close_shift(scope_a, actual_cash_cents=0)

    def test_close_twice_fails(self, db_session, scope_a):
        shift_service.open_shift(scope_a)
        shift_service.close_shift(scope_a, actual_cash_cents=0)

        with pytest.raises(NoOpenShift):
            shift_service.close_shift(scope_a, actual_cash_cents=0)

    def test_reopen_after_close_starts_new_shift(self, db_session, scope_a):
        first = shift_service.open_shift(scope_a)
        shift_service.close_shift(scope_a, actual_cash_cents=0)

        second = shift_service.open_shift(scope_a, starting_cash_cents=2000)

        assert second.id != first.id
        assert shift_service.get_shift_status(scope_a).id == second.id

    def test_status_without_shift(self, db_session, scope_a):
        assert shift_service.get_shift_status(scope_a) is None

    def test_shift_requires_user(self, db_session, shop_a):
        with pytest.raises(InvalidPayload):
            shift_service.open_shift(ShopScope(shop_id=shop_a.id))

    def test_shifts_are_per_user(self, db_session, scope_a, shop_a):
        other = User(shop_id=shop_a.id, username="cashier_a2", full_name="Amos Cashier", role="cashier")
        db_session.add(other)
        db_session.commit()
        other_scope = ShopScope(shop_id=shop_a.id, user_id=other.id)

        shift_service.open_shift(scope_a)
        shift_service.open_shift(other_scope)

        assert shift_service.get_shift_status(scope_a).user_id == scope_a.user_id
        assert shift_service.get_shift_status(other_scope).user_id == other.id

    def test_history_newest_first(self, db_session, scope_a):
        first = shift_service.open_shift(scope_a)
        shift_service.close_shift(scope_a, actual_cash_cents=0)
        second = shift_service.open_shift(scope_a)

        history = shift_service.shift_history(scope_a)

        assert [shift.id for shift in history] == [second.id, first.id]
