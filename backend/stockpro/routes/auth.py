# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/stockpro/routes/auth.py
"""
Authentication API routes

- login issues a JWT, returned in the body and set as an http-only cookie
- register creates a TRIAL company with its first ADMIN user
- alterar-senha replaces a (temporary) password
"""

from flask import Blueprint, current_app, g, jsonify, make_response, request

from ..decorators import require_auth
from ..services import auth_service, token_service
from ..services.auth_service import (
    AccountSuspendedError,
    AuthError,
    PasswordValidationError,
    RegistrationError,
)
from ..validation import ValidationError


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _set_auth_cookie(response, token: str):
    response.set_cookie(
        current_app.config.get("AUTH_COOKIE_NAME", "auth-token"),
        token,
        max_age=current_app.config.get("JWT_EXPIRES_DAYS", 7) * 24 * 60 * 60,
        httponly=True,
        secure=current_app.config.get("AUTH_COOKIE_SECURE", False),
        samesite="Lax",
    )
    return response


@auth_bp.post("/login")
def login_route():
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")
    if not email or not password:
        return jsonify({"error": "email and password required"}), 400

    try:
        user = auth_service.authenticate(email, password)
        token = token_service.issue_token(user)
    except AuthError as e:
        return jsonify({"error": str(e)}), 401
    except AccountSuspendedError as e:
        return jsonify({"error": str(e)}), 403
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500

    response = make_response(jsonify({
        "success": True,
        "user": user.to_dict(),
        "company": user.company.to_dict() if user.company else None,
        "token": token,
        "first_access": user.first_access,
    }), 200)
    return _set_auth_cookie(response, token)


@auth_bp.post("/register")
def register_route():
    data = request.get_json(silent=True) or {}
    try:
        company, user = auth_service.register_company(
            company_name=data.get("companyName"),
            company_email=data.get("companyEmail"),
            user_name=data.get("userName"),
            user_email=data.get("userEmail"),
            password=data.get("password"),
            plan=data.get("plan"),
        )
    except RegistrationError as e:
        return jsonify({"error": str(e)}), 400
    except PasswordValidationError as e:
        return jsonify({"error": "Weak password", "details": e.errors}), 400
    except Exception:
        current_app.logger.exception("Failed to register company")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({
        "success": True,
        "company": company.to_dict(),
        "user": user.to_dict(),
    }), 201


@auth_bp.post("/alterar-senha")
@require_auth
def change_password_route():
    data = request.get_json(silent=True) or {}
    new_password = data.get("novaSenha", data.get("new_password"))
    confirm_password = data.get("confirmarSenha", data.get("confirm_password"))

    try:
        auth_service.change_password(g.current_user, new_password, confirm_password)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except PasswordValidationError as e:
        return jsonify({"error": "Weak password", "details": e.errors}), 400

    return jsonify({"success": True, "message": "Password changed"}), 200


@auth_bp.post("/logout")
def logout_route():
    response = make_response(jsonify({"message": "Logout successful"}), 200)
    response.delete_cookie(current_app.config.get("AUTH_COOKIE_NAME", "auth-token"))
    return response


@auth_bp.get("/me")
@require_auth
def me_route():
    user = g.current_user
    return jsonify({
        "user": user.to_dict(),
        "company": user.company.to_dict() if user.company else None,
    }), 200
