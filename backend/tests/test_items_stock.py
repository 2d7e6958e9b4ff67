# Overview: Pytest coverage for the item catalogue, stock movements and suppliers.

import pytest

from shopledger.errors import DuplicateName, InsufficientStock, InvalidPayload, ItemNotFound, SupplierNotFound
from shopledger.models import StockMovement
from shopledger.services import inventory_service, item_service, sales_service, supplier_service


class TestItemCatalogue:

    def test_opening_stock_is_logged(self, db_session, scope_a, oil_filter):
        movement = db_session.query(StockMovement).filter_by(item_id=oil_filter.id).one()

        assert movement.movement_type == "IN"
        assert movement.quantity == 5
        assert movement.balance_after == 5
        assert movement.reference_type == "adjustment"
        assert movement.notes == "Initial stock entry"

    def test_defaults_from_config(self, db_session, scope_a):
        item = item_service.create_item(
            scope_a, name="Hose Clamp", buying_price_cents=100, selling_price_cents=150
        )

        assert item.category == "General"
        assert item.min_stock_level == 5
        assert item.quantity == 0
        assert db_session.query(StockMovement).count() == 0

    def test_duplicate_name_is_case_insensitive(self, db_session, scope_a, oil_filter):
        with pytest.raises(DuplicateName):
            item_service.create_item(
                scope_a, name="  oil filter ", buying_price_cents=100, selling_price_cents=150
            )

    def test_same_name_allowed_in_other_shop(self, db_session, scope_a, scope_b, oil_filter):
        other = item_service.create_item(
            scope_b, name="Oil Filter", buying_price_cents=100, selling_price_cents=150
        )
        assert other.shop_id == scope_b.shop_id

    def test_unknown_supplier_rejected(self, db_session, scope_a):
        with pytest.raises(SupplierNotFound):
            item_service.create_item(
                scope_a, name="Hose Clamp", buying_price_cents=100, selling_price_cents=150, supplier_id=4242
            )

    def test_blank_name_rejected(self, db_session, scope_a):
        with pytest.raises(InvalidPayload):
            item_service.create_item(scope_a, name="   ", buying_price_cents=100, selling_price_cents=150)

    def test_update_prices_and_rename(self, db_session, scope_a, oil_filter):
        item = item_service.update_item(scope_a, oil_filter.id, {
            "name": "Oil Filter (Toyota)",
            "selling_price_cents": 1300,
            "category": "Filters",
        })

        assert item.name == "Oil Filter (Toyota)"
        assert item.selling_price_cents == 1300
        assert item.buying_price_cents == 800
        assert item.category == "Filters"

    def test_rename_to_existing_name_rejected(self, db_session, scope_a, oil_filter, brake_pads):
        with pytest.raises(DuplicateName):
            item_service.update_item(scope_a, oil_filter.id, {"name": "BRAKE PADS"})

    def test_quantity_change_is_an_adjustment(self, db_session, scope_a, oil_filter):
        item_service.update_item(scope_a, oil_filter.id, {"quantity": 2})
        item_service.update_item(scope_a, oil_filter.id, {"quantity": 9})

        movements = (
            db_session.query(StockMovement)
            .filter_by(item_id=oil_filter.id, notes="Manual stock adjustment")
            .order_by(StockMovement.id)
            .all()
        )
        assert [(m.movement_type, m.quantity, m.balance_after) for m in movements] == [
            ("OUT", 3, 2),
            ("IN", 7, 9),
        ]
        assert inventory_service.current_quantity(scope_a, oil_filter.id) == 9

    def test_delete_is_soft(self, db_session, scope_a, oil_filter):
        item_service.delete_item(scope_a, oil_filter.id)

        with pytest.raises(ItemNotFound):
            item_service.get_item(scope_a, oil_filter.id)
        assert item_service.find_by_name(scope_a, "Oil Filter").is_active is False
        assert item_service.list_items(scope_a) == []

    def test_list_filters(self, db_session, scope_a, make_item):
        make_item(scope_a, "Spark Plug", quantity=2, category="Ignition", min_stock_level=5)
        make_item(scope_a, "Coil Pack", quantity=40, category="Ignition", min_stock_level=5)
        make_item(scope_a, "Wiper Blade", quantity=10, category="Body")

        assert [i.name for i in item_service.list_items(scope_a, category="Ignition")] == ["Coil Pack", "Spark Plug"]
        assert [i.name for i in item_service.list_items(scope_a, low_stock=True)] == ["Spark Plug"]
        assert [i.name for i in item_service.list_items(scope_a, q="wiper")] == ["Wiper Blade"]
        assert item_service.list_categories(scope_a) == ["Body", "Ignition"]


class TestStockReads:

    def test_current_stock_summary(self, db_session, scope_a, make_item):
        make_item(scope_a, "Spark Plug", quantity=2, buying=300, selling=500, min_stock_level=5)
        make_item(scope_a, "Coil Pack", quantity=10, buying=2000, selling=3000, min_stock_level=5)
        make_item(scope_a, "Fuse", quantity=0, buying=20, selling=50)

        snapshot = inventory_service.current_stock(scope_a)

        summary = snapshot["summary"]
        assert summary["total_items"] == 3
        assert summary["total_units"] == 12
        assert summary["total_value_cost_cents"] == 2 * 300 + 10 * 2000
        assert summary["total_value_selling_cents"] == 2 * 500 + 10 * 3000
        assert summary["out_of_stock"] == 1
        assert summary["low_stock"] == 1
        assert {row["name"]: row["status"] for row in snapshot["items"]} == {
            "Spark Plug": "LOW",
            "Coil Pack": "OK",
            "Fuse": "OUT",
        }

    def test_list_movements_by_type(self, db_session, scope_a, brake_pads):
        sale = sales_service.create_sale(
            scope_a, items=[{"item_id": brake_pads.id, "quantity": 2}], payment_type="cash"
        )
        sales_service.void_sale(scope_a, sale.id)

        out = inventory_service.list_movements(scope_a, movement_types=["OUT", "RETURN"])
        incoming = inventory_service.list_movements(scope_a, movement_types=["IN"])

        assert sorted(m.movement_type for m in out) == ["OUT", "RETURN"]
        assert [m.notes for m in incoming] == ["Initial stock entry"]

    def test_remove_stock_never_goes_negative(self, db_session, scope_a, oil_filter):
        item = inventory_service.get_item_for_update(scope_a, oil_filter.id)

        with pytest.raises(InsufficientStock):
            inventory_service.remove_stock(
                scope_a, item, 6, reference_type="adjustment", reference_id=None
            )
        db_session.rollback()

        assert inventory_service.current_quantity(scope_a, oil_filter.id) == 5


class TestSuppliers:

    def test_create_and_list_with_item_count(self, db_session, scope_a, make_item):
        supplier = supplier_service.create_supplier(scope_a, name="Coast Spares", phone="0733")
        make_item(scope_a, "Fuse", supplier_id=supplier.id)

        rows = supplier_service.list_suppliers(scope_a)

        assert [(row["name"], row["item_count"]) for row in rows] == [("Coast Spares", 1)]

    def test_duplicate_supplier_name(self, db_session, scope_a):
        supplier_service.create_supplier(scope_a, name="Coast Spares")

        with pytest.raises(DuplicateName):
            supplier_service.create_supplier(scope_a, name="COAST SPARES")

    def test_supplier_name_required(self, db_session, scope_a):
        with pytest.raises(InvalidPayload):
            supplier_service.create_supplier(scope_a, name="")

    def test_update_supplier(self, db_session, scope_a):
        supplier = supplier_service.create_supplier(scope_a, name="Coast Spares")

        updated = supplier_service.update_supplier(
            scope_a, supplier.id, {"name": "Coast Spares Ltd", "email": "sales@coast.example"}
        )

        assert updated.name == "Coast Spares Ltd"
        assert updated.email == "sales@coast.example"
