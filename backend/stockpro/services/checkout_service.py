# Overview: Plan purchase with a simulated payment; provisions a company and its admin user.

"""
Checkout Service

There is no real payment processor. A checkout:
1. validates the plan, the client data and the payment method
2. creates an ACTIVE company carrying the purchase data
3. creates its ADMIN user with a generated temporary password
   (first_access / temporary_password set, so the first login must change it)
4. returns a simulated payment preference whose init_point is the success page

The login e-mail is the company e-mail.
"""

from __future__ import annotations

import logging
import re
import secrets
import string
import time
import unicodedata

from flask import current_app

from ..extensions import db
from ..models import Company, User
from ..time_utils import to_utc_z, utcnow
from .auth_service import hash_password


logger = logging.getLogger(__name__)

PLANS = {
    "basico": {"id": "basico", "name": "Básico", "price_cents": 4900},
    "profissional": {"id": "profissional", "name": "Profissional", "price_cents": 9900},
    "enterprise": {"id": "enterprise", "name": "Enterprise", "price_cents": 19900},
}

PAYMENT_METHODS = ("cartao", "pix", "boleto")

TEMP_PASSWORD_ALPHABET = string.ascii_uppercase + string.digits
TEMP_PASSWORD_LENGTH = 8

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class CheckoutError(ValueError):
    """Invalid checkout request (400)."""


class DuplicateAccountError(Exception):
    """Company or user e-mail already registered (409)."""


def _now_ms() -> int:
    return int(time.time() * 1000)


def generate_temporary_password() -> str:
    return "".join(secrets.choice(TEMP_PASSWORD_ALPHABET) for _ in range(TEMP_PASSWORD_LENGTH))


def generate_credentials(company_name: str) -> dict:
    """
    Suggested access credentials for a company name.

    "Padaria São João Ltda" -> padariasaojoaol@stockpro.com (accents stripped,
    lowercase alphanumerics only, at most 15 characters).
    """
    normalized = unicodedata.normalize("NFD", company_name or "")
    ascii_only = "".join(ch for ch in normalized if unicodedata.category(ch) != "Mn")
    slug = re.sub(r"[^a-z0-9]", "", ascii_only.lower())[:15]
    if not slug:
        raise CheckoutError("Company name must contain letters or digits")
    return {"email": f"{slug}@stockpro.com", "password": generate_temporary_password()}


def list_plans() -> list[dict]:
    return list(PLANS.values())


def _require(data: dict, key: str, label: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise CheckoutError(f"{label} is required")
    return value.strip()


def _validate(payload: dict) -> tuple[dict, dict, str]:
    if not isinstance(payload, dict):
        raise CheckoutError("Invalid JSON payload")

    plan_data = payload.get("plano") or {}
    plan_id = str(plan_data.get("id") or "").strip().lower() if isinstance(plan_data, dict) else ""
    plan = PLANS.get(plan_id)
    if plan is None:
        raise CheckoutError("Unknown plan")

    client = payload.get("cliente")
    if not isinstance(client, dict):
        raise CheckoutError("Client data is required")

    cleaned = {
        "name": _require(client, "nome", "Client name"),
        "email": _require(client, "email", "Client email").lower(),
        "phone": _require(client, "telefone", "Phone"),
        "company_name": _require(client, "nomeEmpresa", "Company name"),
        "company_email": _require(client, "emailEmpresa", "Company email").lower(),
        "tax_id": (client.get("cnpj") or "").strip() or None,
    }
    for key in ("email", "company_email"):
        if not _EMAIL_RE.match(cleaned[key]):
            raise CheckoutError(f"Invalid e-mail: {cleaned[key]}")

    method = str(payload.get("metodoPagamento") or "").strip().lower()
    if method not in PAYMENT_METHODS:
        raise CheckoutError(f"metodoPagamento must be one of {', '.join(PAYMENT_METHODS)}")

    return plan, cleaned, method


def create_preference(plan: dict, reference: str) -> dict:
    """Simulated payment preference; the payment is always approved."""
    base_url = current_app.config.get("PUBLIC_URL", "").rstrip("/")
    init_point = f"{base_url}/pagamento/sucesso?mock=true&payment_id={reference}&status=approved"
    return {
        "id": reference,
        "init_point": init_point,
        "sandbox_init_point": init_point,
        "amount_cents": plan["price_cents"],
    }


def process_checkout(payload: dict) -> dict:
    """
    Provision a paying customer.

    Raises:
        CheckoutError: invalid plan, client data or payment method
        DuplicateAccountError: company e-mail already registered
    """
    plan, client, method = _validate(payload)
    login_email = client["company_email"]

    if db.session.query(Company).filter(Company.email == login_email).first() is not None:
        raise DuplicateAccountError("Company email already registered")
    if db.session.query(User).filter(User.email == login_email).first() is not None:
        raise DuplicateAccountError("User email already registered")

    temporary_password = generate_temporary_password()
    now_ms = _now_ms()

    company = Company(
        name=client["company_name"],
        email=login_email,
        trade_name=client["company_name"],
        tax_id=client["tax_id"],
        phone=client["phone"],
        plan=plan["id"].upper(),
        status="ACTIVE",
        amount_paid_cents=plan["price_cents"],
        payment_method=method,
        transaction_id=f"TXN_{now_ms}",
        purchased_at=utcnow(),
    )
    db.session.add(company)
    db.session.flush()

    user = User(
        company_id=company.id,
        name=client["name"],
        email=login_email,
        password_hash=hash_password(temporary_password, validate=False),
        role="ADMIN",
        first_access=True,
        temporary_password=True,
    )
    db.session.add(user)
    db.session.commit()

    reference = f"STOCKPRO_{now_ms}_{secrets.token_hex(5)[:9]}"
    logger.info("Checkout completed: company %s on plan %s (%s)", company.id, company.plan, method)

    return {
        "success": True,
        "preference": create_preference(plan, reference),
        "credentials": {"email": login_email, "password": temporary_password},
        "client": {
            "id": user.id,
            "company_id": company.id,
            "name": user.name,
            "company": company.name,
        },
    }


def verify_payment(payment_id: str) -> dict:
    """Simulated payment lookup; every payment is approved."""
    return {
        "id": payment_id,
        "status": "approved",
        "status_detail": "accredited",
        "currency_id": "BRL",
        "external_reference": payment_id,
        "date_created": to_utc_z(utcnow()),
    }
