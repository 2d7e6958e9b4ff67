# Overview: Pytest coverage for per-shop, per-day receipt numbering.

from datetime import date, datetime

import pytest

from shopledger.errors import InsufficientStock
from shopledger.models import ReceiptSequence, Sale
from shopledger.services import sales_service, sequence_service


MAY_FIRST = datetime(2024, 5, 1, 10, 0)


@pytest.fixture
def frozen_clock(monkeypatch):
    """Pin the sale timestamp to 2024-05-01 10:00 UTC."""
    clock = {"now": MAY_FIRST}
    monkeypatch.setattr(sales_service, "utcnow", lambda: clock["now"])
    return clock


def _sell(scope, item, quantity=1):
    return sales_service.create_sale(
        scope, items=[{"item_id": item.id, "quantity": quantity}], payment_type="cash"
    )


class TestReceiptNumbers:

    def test_same_day_receipts_are_sequential(self, db_session, scope_a, brake_pads, frozen_clock):
        first = _sell(scope_a, brake_pads)
        second = _sell(scope_a, brake_pads)

        assert first.receipt_number == "TS-20240501-0001"
        assert second.receipt_number == "TS-20240501-0002"

    def test_new_day_restarts_at_one(self, db_session, scope_a, brake_pads, frozen_clock):
        _sell(scope_a, brake_pads)
        frozen_clock["now"] = datetime(2024, 5, 2, 8, 30)

        assert _sell(scope_a, brake_pads).receipt_number == "TS-20240502-0001"

    def test_shops_number_independently(self, db_session, scope_a, scope_b, brake_pads, make_item, frozen_clock):
        shop_b_item = make_item(scope_b, "Brake Pads", quantity=5)

        a1 = _sell(scope_a, brake_pads)
        b1 = _sell(scope_b, shop_b_item)
        a2 = _sell(scope_a, brake_pads)

        assert a1.receipt_number == "TS-20240501-0001"
        assert b1.receipt_number == "TS-20240501-0001"
        assert a2.receipt_number == "TS-20240501-0002"

    def test_failed_sale_does_not_consume_number(self, db_session, scope_a, oil_filter, brake_pads, frozen_clock):
        with pytest.raises(InsufficientStock):
            _sell(scope_a, oil_filter, quantity=50)

        assert _sell(scope_a, brake_pads).receipt_number == "TS-20240501-0001"

    def test_counter_seeded_from_existing_receipts(self, db_session, scope_a, brake_pads, frozen_clock):
        db_session.add(Sale(
            shop_id=scope_a.shop_id,
            receipt_number="TS-20240501-0041",
            total_amount_cents=100,
            payment_type="cash",
            created_at=MAY_FIRST,
        ))
        db_session.commit()

        assert _sell(scope_a, brake_pads).receipt_number == "TS-20240501-0042"
        assert _sell(scope_a, brake_pads).receipt_number == "TS-20240501-0043"

    def test_one_counter_row_per_shop_day(self, db_session, scope_a, brake_pads, frozen_clock):
        for _ in range(3):
            _sell(scope_a, brake_pads)

        counter = db_session.query(ReceiptSequence).one()
        assert counter.sequence_date == date(2024, 5, 1)
        assert counter.next_number == 4


def test_format_receipt_number(app):
    assert sequence_service.format_receipt_number(date(2024, 5, 1), 7) == "TS-20240501-0007"
