# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service with Multi-Tenant Support

MULTI-TENANT: Users belong to exactly one company (company_id). E-mail is
the login identifier and is unique across all companies.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from PASSWORD_HASH_ROUNDS, 12 by default)
- Minimum 8 characters, with uppercase, lowercase, digit and special char
- Session tokens are issued separately (see token_service.py)
- Login is refused for users of SUSPENDED or INACTIVE companies
"""

from __future__ import annotations

import logging
import re
from datetime import timedelta

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import Company, User
from ..models.auth import USER_ROLES
from ..time_utils import utcnow
from ..validation import ValidationError


logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Invalid credentials (401)."""


class AccountSuspendedError(Exception):
    """The user's company is blocked (403)."""


class RegistrationError(ValueError):
    """Self-registration rejected (400)."""


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""

    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


def password_strength_errors(password: str) -> list[str]:
    """Every failed strength rule, in a stable order. Empty list means strong."""
    errors = []
    if len(password) < 8:
        errors.append("Password must be at least 8 characters long")
    if not re.search(r'[A-Z]', password):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r'[a-z]', password):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r'\d', password):
        errors.append("Password must contain at least one digit")
    if not re.search(r"[!@#$%^&*(),.?'\":{}|<>_\-+=\[\]\\/;~`]", password):
        errors.append("Password must contain at least one special character")
    return errors


def validate_password_strength(password: str) -> None:
    errors = password_strength_errors(password or "")
    if errors:
        raise PasswordValidationError(errors)


def hash_password(password: str, *, validate: bool = True) -> str:
    """
    Hash password using bcrypt.

    Generated temporary passwords skip the strength check (validate=False);
    their holders must pick a strong one on first access.
    """
    if validate:
        validate_password_strength(password)
    rounds = current_app.config.get("PASSWORD_HASH_ROUNDS", 12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=rounds))
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed stored hash
        return False


def _normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def authenticate(email: str, password: str) -> User:
    """
    Check credentials and the company status.

    Raises:
        AuthError: unknown e-mail, inactive user or wrong password
        AccountSuspendedError: company is SUSPENDED or INACTIVE
    """
    user = db.session.query(User).filter(User.email == _normalize_email(email)).first()
    if user is None or not user.is_active:
        raise AuthError("Invalid credentials")
    if not verify_password(password or "", user.password_hash):
        logger.info("Failed login for user %s", user.id)
        raise AuthError("Invalid credentials")

    if user.company is not None and user.company.is_blocked:
        logger.info("Login refused for user %s: company %s is %s", user.id, user.company_id, user.company.status)
        raise AccountSuspendedError("Account suspended. Contact support.")

    user.last_login_at = utcnow()
    db.session.commit()
    return user


def create_user(
    *,
    company_id: int,
    name: str,
    email: str,
    password: str,
    role: str = "USER",
    is_platform_admin: bool = False,
    temporary: bool = False,
) -> User:
    """
    Create a user inside a company.

    Raises:
        ValueError: unknown company, duplicate e-mail, invalid role
        PasswordValidationError: weak password (unless temporary)
    """
    if role not in USER_ROLES:
        raise ValueError(f"role must be one of {', '.join(USER_ROLES)}")
    if db.session.get(Company, company_id) is None:
        raise ValueError("Company not found")

    email = _normalize_email(email)
    if db.session.query(User).filter(User.email == email).first() is not None:
        raise ValueError("User email already registered")

    user = User(
        company_id=company_id,
        name=name,
        email=email,
        password_hash=hash_password(password, validate=not temporary),
        role=role,
        is_platform_admin=is_platform_admin,
        first_access=temporary,
        temporary_password=temporary,
    )
    db.session.add(user)
    db.session.commit()
    return user


def register_company(
    *,
    company_name: str,
    company_email: str,
    user_name: str,
    user_email: str,
    password: str,
    plan: str | None = None,
) -> tuple[Company, User]:
    """
    Self-service sign-up: a TRIAL company plus its first ADMIN user.

    trial_ends_at = now + TRIAL_DAYS (7 by default).
    """
    missing = [
        name for name, value in (
            ("companyName", company_name),
            ("companyEmail", company_email),
            ("userName", user_name),
            ("userEmail", user_email),
            ("password", password),
        )
        if not (value or "").strip()
    ]
    if missing:
        raise RegistrationError(f"Missing required fields: {', '.join(missing)}")

    company_email = _normalize_email(company_email)
    user_email = _normalize_email(user_email)

    if db.session.query(Company).filter(Company.email == company_email).first() is not None:
        raise RegistrationError("Company email already registered")
    if db.session.query(User).filter(User.email == user_email).first() is not None:
        raise RegistrationError("User email already registered")

    password_hash = hash_password(password)

    now = utcnow()
    company = Company(
        name=company_name.strip(),
        email=company_email,
        plan=(plan or "BASICO").strip().upper(),
        status="TRIAL",
        trial_ends_at=now + timedelta(days=current_app.config.get("TRIAL_DAYS", 7)),
    )
    db.session.add(company)
    db.session.flush()

    user = User(
        company_id=company.id,
        name=user_name.strip(),
        email=user_email,
        password_hash=password_hash,
        role="ADMIN",
    )
    db.session.add(user)
    db.session.commit()

    logger.info("Company %s registered (trial until %s)", company.id, company.trial_ends_at)
    return company, user


def change_password(user: User, new_password: str | None, confirm_password: str | None) -> None:
    """
    Replace the user's password and clear the first-access flags.

    Raises:
        ValidationError: missing fields or confirmation mismatch
        PasswordValidationError: weak password
    """
    if not new_password or not confirm_password:
        raise ValidationError("New password and confirmation are required")
    if new_password != confirm_password:
        raise ValidationError("Passwords do not match")

    user.password_hash = hash_password(new_password)
    user.first_access = False
    user.temporary_password = False
    db.session.commit()
    logger.info("Password changed for user %s", user.id)
