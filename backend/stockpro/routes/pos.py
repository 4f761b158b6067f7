# Overview: Flask API route for point-of-sale checkout.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..services import pos_service
from ..services.pos_service import CartError
from ..services.stock_service import StockError
from ..services.tenant_service import TenantAccessError


pos_bp = Blueprint("pos", __name__, url_prefix="/api/pos")


@pos_bp.post("/checkout")
@require_auth
def checkout_route():
    """
    Body: {"items": [{"product_id": 1, "quantity": 2}, {"code": "002", "quantity": 1}]}

    All lines are recorded or none is.
    """
    data = request.get_json(silent=True) or {}
    try:
        sale = pos_service.checkout(g.company_id, data.get("items"))
    except CartError as e:
        return jsonify({"error": str(e)}), 400
    except TenantAccessError as e:
        return jsonify({"error": str(e)}), 404
    except StockError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to complete POS sale")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(sale), 201
