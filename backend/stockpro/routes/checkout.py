# Overview: Flask API routes for plan checkout; parses input and returns JSON responses.

from flask import Blueprint, current_app, jsonify, request

from ..services import checkout_service
from ..services.checkout_service import CheckoutError, DuplicateAccountError


checkout_bp = Blueprint("checkout", __name__, url_prefix="/api/checkout")


@checkout_bp.get("/plans")
def list_plans_route():
    return jsonify({"plans": checkout_service.list_plans()}), 200


@checkout_bp.post("")
def checkout_route():
    """
    Purchase a plan (simulated payment).

    Body: {plano: {id}, cliente: {nome, email, telefone, nomeEmpresa,
    emailEmpresa, cnpj?}, metodoPagamento: cartao | pix | boleto}
    """
    payload = request.get_json(silent=True)
    try:
        result = checkout_service.process_checkout(payload)
    except CheckoutError as e:
        return jsonify({"error": str(e)}), 400
    except DuplicateAccountError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to process checkout")
        return jsonify({"error": "Error processing checkout"}), 500
    return jsonify(result), 201


@checkout_bp.get("/payments/<payment_id>")
def payment_status_route(payment_id: str):
    return jsonify(checkout_service.verify_payment(payment_id)), 200


@checkout_bp.post("/credentials")
def credentials_route():
    data = request.get_json(silent=True) or {}
    try:
        return jsonify(checkout_service.generate_credentials(data.get("companyName", ""))), 200
    except CheckoutError as e:
        return jsonify({"error": str(e)}), 400
