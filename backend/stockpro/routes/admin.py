# Overview: Flask API routes for company lifecycle administration.

"""
SECURITY: Platform administrators only (User.is_platform_admin).
"""

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth, require_platform_admin
from ..services import company_service
from ..services.company_service import CompanyNotFoundError
from ..validation import ValidationError


admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.get("/companies")
@require_auth
@require_platform_admin
def list_companies_route():
    companies = company_service.list_companies()
    return jsonify({"items": companies, "count": len(companies)}), 200


@admin_bp.post("/companies/toggle-status")
@require_auth
@require_platform_admin
def toggle_status_route():
    data = request.get_json(silent=True) or {}
    if data.get("companyId") is None or not data.get("status"):
        return jsonify({"error": "companyId and status are required"}), 400

    try:
        company = company_service.toggle_status(data["companyId"], data["status"])
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except CompanyNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to change company status")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"success": True, "company": company}), 200


@admin_bp.post("/companies/extend-trial")
@require_auth
@require_platform_admin
def extend_trial_route():
    data = request.get_json(silent=True) or {}
    if data.get("companyId") is None or data.get("days") is None:
        return jsonify({"error": "companyId and days are required"}), 400

    try:
        company = company_service.extend_trial(data["companyId"], data["days"])
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except CompanyNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to extend trial")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"success": True, "company": company}), 200
