# Overview: Threaded tests for stock, receipt numbering and shifts under parallel requests.

"""
Concurrency Tests

Each worker runs in its own thread with its own app context (and so its
own session and connection) against a file-backed SQLite database,
the way parallel requests hit a deployed server.

SQLite serialises writers, so a worker can still lose a lock race after
its retries run out. Those failures must leave no partial writes; the
assertions below hold over whatever subset of workers succeeded.
"""

import os
import tempfile
import threading

import pytest
from sqlalchemy.exc import OperationalError

from shopledger import create_app
from shopledger.errors import InsufficientStock, IntegrityConflict, ShiftAlreadyOpen
from shopledger.extensions import db
from shopledger.models import Sale, ShiftRegister, Shop, StockMovement, User
from shopledger.services import item_service, sales_service, shift_service
from shopledger.services.inventory_service import current_quantity
from shopledger.services.tenant_service import ShopScope


WORKERS = 8
LOST_RACE_ERRORS = (OperationalError, IntegrityConflict)


@pytest.fixture
def file_app():
    """App bound to a throwaway on-disk database shared by all threads."""
    tmpdir = tempfile.TemporaryDirectory()
    db_path = os.path.join(tmpdir.name, "concurrency.db")
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}",
        "SQLALCHEMY_ENGINE_OPTIONS": {"connect_args": {"timeout": 30, "check_same_thread": False}},
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()
        db.engine.dispose()
    tmpdir.cleanup()


@pytest.fixture
def counter_scope(file_app):
    shop = Shop(name="Counter Shop", code="CNTR", is_active=True)
    db.session.add(shop)
    db.session.commit()
    user = User(shop_id=shop.id, username="counter", full_name="Counter Clerk", role="cashier")
    db.session.add(user)
    db.session.commit()
    return ShopScope(shop_id=shop.id, user_id=user.id)


def _run_parallel(app, job, count=WORKERS):
    """Run job(n) in count threads started together; returns (results, errors)."""
    results, errors = [], []
    lock = threading.Lock()
    barrier = threading.Barrier(count)

    def worker(n):
        with app.app_context():
            try:
                barrier.wait()
                value = job(n)
                with lock:
                    results.append(value)
            except Exception as exc:
                with lock:
                    errors.append(exc)
            finally:
                db.session.remove()

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return results, errors


class TestConcurrentSales:

    def test_stock_never_goes_negative(self, file_app, counter_scope):
        item = item_service.create_item(
            counter_scope, name="Last Few Bulbs", buying_price_cents=100, selling_price_cents=200, quantity=3
        )
        item_id = item.id

        def sell_one(n):
            sale = sales_service.create_sale(
                counter_scope, items=[{"item_id": item_id, "quantity": 1}], payment_type="cash"
            )
            return sale.id

        sold, errors = _run_parallel(file_app, sell_one)

        assert all(isinstance(e, (InsufficientStock,) + LOST_RACE_ERRORS) for e in errors), errors
        assert 1 <= len(sold) <= 3
        assert current_quantity(counter_scope, item_id) == 3 - len(sold)
        out_movements = db.session.query(StockMovement).filter_by(item_id=item_id, movement_type="OUT").all()
        assert sorted(m.reference_id for m in out_movements) == sorted(sold)
        assert db.session.query(Sale).count() == len(sold)

    def test_receipts_unique_and_contiguous(self, file_app, counter_scope):
        item = item_service.create_item(
            counter_scope, name="Fuse Box", buying_price_cents=100, selling_price_cents=200, quantity=100
        )
        item_id = item.id
        # Creates today's counter row so workers only race on the increment
        first = sales_service.create_sale(
            counter_scope, items=[{"item_id": item_id, "quantity": 1}], payment_type="cash"
        )
        prefix = first.receipt_number.rsplit("-", 1)[0]

        def sell_one(n):
            sale = sales_service.create_sale(
                counter_scope, items=[{"item_id": item_id, "quantity": 1}], payment_type="mpesa"
            )
            return sale.receipt_number

        receipts, errors = _run_parallel(file_app, sell_one)

        assert all(isinstance(e, LOST_RACE_ERRORS) for e in errors), errors
        assert receipts
        assert len(receipts) == len(set(receipts))
        issued = sorted([first.receipt_number] + receipts)
        assert issued == [f"{prefix}-{n:04d}" for n in range(1, len(issued) + 1)]
        assert current_quantity(counter_scope, item_id) == 100 - len(issued)


class TestConcurrentShifts:

    def test_one_open_shift_per_user(self, file_app, counter_scope):
        def open_one(n):
            return shift_service.open_shift(counter_scope, starting_cash_cents=1000 * n).id

        opened, errors = _run_parallel(file_app, open_one)

        assert all(isinstance(e, (ShiftAlreadyOpen,) + LOST_RACE_ERRORS) for e in errors), errors
        assert len(opened) == 1
        assert db.session.query(ShiftRegister).filter_by(status="open").count() == 1
