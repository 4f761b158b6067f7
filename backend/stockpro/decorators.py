# Overview: Request authentication and role decorators for API routes.

from functools import wraps

from flask import current_app, g, jsonify, request

from .services import token_service


def _token_from_request() -> str | None:
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1].strip() or None
    return request.cookies.get(current_app.config.get("AUTH_COOKIE_NAME", "auth-token"))


def _is_authenticated() -> bool:
    return hasattr(g, "current_user") and hasattr(g, "company_id")


def require_auth(f):
    """
    Require authentication and establish tenant context.

    MULTI-TENANT: Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.company_id: The company ID (tenant context)

    The token is read from "Authorization: Bearer <jwt>" or, failing that,
    from the auth cookie.

    SECURITY: Returns 401 for a missing, invalid or expired token and 403
    when the user's company has been suspended since the token was issued.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _token_from_request()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        user = token_service.user_from_token(token)
        if user is None:
            return jsonify({"error": "Invalid or expired token"}), 401

        if user.company is not None and user.company.is_blocked:
            return jsonify({"error": "Account suspended. Contact support."}), 403

        g.current_user = user
        g.company_id = user.company_id
        return f(*args, **kwargs)

    return decorated_function


def require_role(role: str):
    """Require the authenticated user to hold `role` (e.g. "ADMIN")."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401
            if g.current_user.role != role:
                return jsonify({"error": "Permission denied", "required_role": role}), 403
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def require_platform_admin(f):
    """Company lifecycle management is reserved to platform operators."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _is_authenticated():
            return jsonify({"error": "Authentication required"}), 401
        if not g.current_user.is_platform_admin:
            return jsonify({"error": "Permission denied"}), 403
        return f(*args, **kwargs)
    return decorated_function
