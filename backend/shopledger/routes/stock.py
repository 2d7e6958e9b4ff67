# Overview: Flask API routes for stock movements and valuation; read-only.

from flask import Blueprint, request, jsonify, g

from ..errors import ShopLedgerError
from ..services import inventory_service
from ..services.inventory_service import MOVEMENT_IN, MOVEMENT_OUT, MOVEMENT_RETURN
from ..validation import get_datetime, get_int
from ..decorators import require_auth


stock_bp = Blueprint("stock", __name__, url_prefix="/api/stock")


def _movements(movement_types: list[str] | None):
    """Shared filters: period (today|week|month) or from/to, item_id, limit."""
    try:
        requested_type = request.args.get("type")
        if movement_types is None and requested_type:
            movement_types = [requested_type.upper()]
        movements = inventory_service.list_movements(
            g.scope,
            movement_types=movement_types,
            item_id=get_int(request.args, "item_id", minimum=1),
            period=request.args.get("period"),
            from_dt=get_datetime(request.args, "from"),
            to_dt=get_datetime(request.args, "to"),
            limit=get_int(request.args, "limit", default=500, minimum=1),
        )
        return jsonify({"movements": [m.to_dict() for m in movements]}), 200

    except ShopLedgerError as e:
        return jsonify(e.to_dict()), e.status_code


@stock_bp.get("/movements")
@require_auth
def movements_route():
    return _movements(None)


@stock_bp.get("/in")
@require_auth
def stock_in_route():
    return _movements([MOVEMENT_IN])


@stock_bp.get("/out")
@require_auth
def stock_out_route():
    return _movements([MOVEMENT_OUT, MOVEMENT_RETURN])


@stock_bp.get("/current")
@require_auth
def current_stock_route():
    return jsonify(inventory_service.current_stock(g.scope)), 200
