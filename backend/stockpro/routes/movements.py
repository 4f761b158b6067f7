# Overview: Flask API routes for stock movements; parses input and returns JSON responses.

"""
Stock movement routes.

MULTI-TENANT: scoped to g.company_id.

Direction accepts IN / OUT (case-insensitive) and the screen labels
"entrada" / "saida".
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..models.inventory import MOVEMENT_IN, MOVEMENT_OUT
from ..services import stock_service
from ..services.stock_service import StockError
from ..services.tenant_service import TenantAccessError
from ..time_utils import parse_iso_date


movements_bp = Blueprint("movements", __name__, url_prefix="/api/movements")

_DIRECTION_ALIASES = {
    "in": MOVEMENT_IN,
    "entrada": MOVEMENT_IN,
    "out": MOVEMENT_OUT,
    "saida": MOVEMENT_OUT,
    "saída": MOVEMENT_OUT,
}


def _direction(value):
    if value is None:
        return None
    return _DIRECTION_ALIASES.get(str(value).strip().lower(), str(value))


@movements_bp.get("")
@require_auth
def list_movements_route():
    """
    Query params:
    - direction: IN | OUT
    - start, end: YYYY-MM-DD, inclusive
    - limit: max rows (newest first)
    """
    try:
        start = parse_iso_date(request.args.get("start"))
        end = parse_iso_date(request.args.get("end"))
    except ValueError:
        return jsonify({"error": "start/end must be dates (YYYY-MM-DD)"}), 400

    try:
        items = stock_service.list_movements(
            g.company_id,
            direction=_direction(request.args.get("direction")),
            start=start,
            end=end,
            limit=request.args.get("limit", type=int),
        )
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({"items": items, "count": len(items)}), 200


@movements_bp.post("")
@require_auth
def create_movement_route():
    data = request.get_json(silent=True) or {}
    product_id = data.get("product_id")
    if isinstance(product_id, bool) or not isinstance(product_id, int):
        return jsonify({"error": "product_id must be an integer"}), 400

    try:
        movement = stock_service.apply_movement(
            g.company_id,
            product_id,
            _direction(data.get("direction")),
            data.get("quantity"),
            note=(data.get("note") or None),
            occurred_at=data.get("occurred_at"),
        )
    except TenantAccessError:
        return jsonify({"error": "Product not found"}), 404
    except StockError as e:
        return jsonify({"error": str(e)}), 409
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to record movement")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(movement), 201


@movements_bp.delete("/<int:movement_id>")
@require_auth
def delete_movement_route(movement_id: int):
    try:
        deleted = stock_service.delete_movement(g.company_id, movement_id)
    except TenantAccessError:
        return jsonify({"error": "Movement not found"}), 404
    except StockError as e:
        return jsonify({"error": str(e)}), 409

    return jsonify({"ok": True, "movement": deleted}), 200
