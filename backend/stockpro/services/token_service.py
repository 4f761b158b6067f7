# Overview: Signs and verifies the JWT session tokens (python-jose, HS256).

from __future__ import annotations

from datetime import timedelta

from flask import current_app
from jose import JWTError, jwt

from ..extensions import db
from ..models import User
from ..time_utils import utcnow


def _settings() -> tuple[str, str]:
    return current_app.config["JWT_SECRET"], current_app.config.get("JWT_ALGORITHM", "HS256")


def issue_token(user: User) -> str:
    """Claims: sub, email, company_id, role, company_status, iat, exp."""
    secret, algorithm = _settings()
    now = utcnow()
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "company_id": user.company_id,
        "role": user.role,
        "company_status": user.company.status if user.company else None,
        "iat": now,
        "exp": now + timedelta(days=current_app.config.get("JWT_EXPIRES_DAYS", 7)),
    }
    return jwt.encode(payload, secret, algorithm=algorithm)


def decode_token(token: str) -> dict | None:
    """Claims of a valid, unexpired token; None otherwise."""
    secret, algorithm = _settings()
    try:
        return jwt.decode(token, secret, algorithms=[algorithm])
    except JWTError:
        return None


def user_from_token(token: str) -> User | None:
    """
    Resolve the active user a token was issued for.

    The database is authoritative for company status, so a suspension
    takes effect before the token expires.
    """
    claims = decode_token(token)
    if not claims:
        return None
    try:
        user_id = int(claims.get("sub"))
    except (TypeError, ValueError):
        return None

    user = db.session.get(User, user_id)
    if user is None or not user.is_active:
        return None
    if user.company_id != claims.get("company_id"):
        return None
    return user
