# Overview: Flask API routes for the item catalogue; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import InvalidPayload, ShopLedgerError
from ..services import item_service
from ..validation import get_cents, get_int, get_str
from ..decorators import require_auth


items_bp = Blueprint("items", __name__, url_prefix="/api/items")


def _item_changes(data: dict) -> dict:
    changes = {
        "name": get_str(data, "name", max_length=255),
        "buying_price_cents": get_cents(data, "buying_price_cents"),
        "selling_price_cents": get_cents(data, "selling_price_cents"),
        "quantity": get_int(data, "quantity"),
        "min_stock_level": get_int(data, "min_stock_level", minimum=0),
        "category": get_str(data, "category", max_length=128),
        "barcode": get_str(data, "barcode", max_length=64),
    }
    if changes["quantity"] is not None and changes["quantity"] < 0:
        raise InvalidPayload("quantity must not be negative")
    if "supplier_id" in data:
        changes["supplier_id"] = get_int(data, "supplier_id", minimum=1)
    return changes


@items_bp.get("/")
@items_bp.get("")
@require_auth
def list_items_route():
    """Query params: q (name/category/barcode search), category, low_stock=true."""
    items = item_service.list_items(
        g.scope,
        q=request.args.get("q"),
        category=request.args.get("category"),
        low_stock=request.args.get("low_stock", "").lower() in ("1", "true", "yes"),
    )
    return jsonify({"items": [i.to_dict() for i in items]}), 200


@items_bp.get("/categories")
@require_auth
def list_categories_route():
    return jsonify({"categories": item_service.list_categories(g.scope)}), 200


@items_bp.get("/<int:item_id>")
@require_auth
def get_item_route(item_id: int):
    try:
        item = item_service.get_item(g.scope, item_id)
        return jsonify({"item": item.to_dict()}), 200

    except ShopLedgerError as e:
        return jsonify(e.to_dict()), e.status_code


@items_bp.post("/")
@items_bp.post("")
@require_auth
def create_item_route():
    """
    Request body:
    {
        "name": "Oil Filter",
        "buying_price_cents": 1000,
        "selling_price_cents": 1500,
        "quantity": 5,            (optional, opening stock)
        "min_stock_level": 5,     (optional)
        "supplier_id": 1,         (optional)
        "category": "Filters",    (optional)
        "barcode": "..."          (optional)
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        changes = _item_changes(data)
        if not changes["name"] or changes["buying_price_cents"] is None or changes["selling_price_cents"] is None:
            raise InvalidPayload("Name, buying price, and selling price are required.")

        item = item_service.create_item(
            g.scope,
            name=changes["name"],
            buying_price_cents=changes["buying_price_cents"],
            selling_price_cents=changes["selling_price_cents"],
            quantity=changes["quantity"] or 0,
            min_stock_level=changes["min_stock_level"],
            supplier_id=changes.get("supplier_id"),
            category=changes["category"],
            barcode=changes["barcode"],
        )

        current_app.logger.info("Item %s created (shop=%s, name=%r)", item.id, g.scope.shop_id, item.name)
        return jsonify({"item": item.to_dict()}), 201

    except ShopLedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create item")
        return jsonify({"error": "Internal server error"}), 500


@items_bp.put("/<int:item_id>")
@require_auth
def update_item_route(item_id: int):
    """Partial update; a quantity change is logged as a manual stock adjustment."""
    try:
        data = request.get_json(silent=True) or {}
        item = item_service.update_item(g.scope, item_id, _item_changes(data))
        return jsonify({"item": item.to_dict()}), 200

    except ShopLedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update item")
        return jsonify({"error": "Internal server error"}), 500


@items_bp.delete("/<int:item_id>")
@require_auth
def delete_item_route(item_id: int):
    try:
        item = item_service.delete_item(g.scope, item_id)
        current_app.logger.info("Item %s deactivated (shop=%s)", item.id, g.scope.shop_id)
        return jsonify({"message": "Item deleted successfully."}), 200

    except ShopLedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete item")
        return jsonify({"error": "Internal server error"}), 500
