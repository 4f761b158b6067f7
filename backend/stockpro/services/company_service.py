# Overview: Company lifecycle operations for platform administrators.

from __future__ import annotations

import logging
from datetime import timedelta

from ..extensions import db
from ..models import Company
from ..models.tenancy import COMPANY_STATUSES
from ..time_utils import utcnow
from ..validation import ValidationError


logger = logging.getLogger(__name__)


class CompanyNotFoundError(LookupError):
    pass


def _get_company(company_id) -> Company:
    if isinstance(company_id, bool) or not isinstance(company_id, int):
        raise ValidationError("companyId must be an integer")
    company = db.session.get(Company, company_id)
    if company is None:
        raise CompanyNotFoundError("Company not found")
    return company


def list_companies() -> list[dict]:
    companies = db.session.query(Company).order_by(Company.created_at.desc(), Company.id.desc()).all()
    result = []
    for c in companies:
        data = c.to_dict()
        data["user_count"] = len(c.users)
        result.append(data)
    return result


def create_company(*, name: str, email: str, plan: str = "BASICO", status: str = "ACTIVE") -> Company:
    if status not in COMPANY_STATUSES:
        raise ValidationError(f"status must be one of {', '.join(COMPANY_STATUSES)}")
    email = (email or "").strip().lower()
    if db.session.query(Company).filter(Company.email == email).first() is not None:
        raise ValidationError("Company email already registered")
    company = Company(name=name.strip(), email=email, plan=plan.upper(), status=status)
    db.session.add(company)
    db.session.commit()
    return company


def toggle_status(company_id, status) -> dict:
    if status not in COMPANY_STATUSES:
        raise ValidationError(f"status must be one of {', '.join(COMPANY_STATUSES)}")
    company = _get_company(company_id)
    previous = company.status
    company.status = status
    db.session.commit()
    logger.info("Company %s status changed: %s -> %s", company.id, previous, status)
    return company.to_dict()


def extend_trial(company_id, days) -> dict:
    """
    Push the trial end forward by `days`, counting from the current end (or
    from now when there is none). The company goes back to TRIAL.
    """
    if isinstance(days, bool) or not isinstance(days, int) or days <= 0:
        raise ValidationError("days must be a positive integer")
    company = _get_company(company_id)

    base = company.trial_ends_at or utcnow()
    company.trial_ends_at = base + timedelta(days=days)
    company.status = "TRIAL"
    db.session.commit()
    logger.info("Company %s trial extended by %d days until %s", company.id, days, company.trial_ends_at)
    return company.to_dict()
