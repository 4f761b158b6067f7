"""
Multi-Tenant Service: Tenant Validation and Scoping Helpers

SECURITY INVARIANTS:
1. Every authenticated request has g.company_id set (see decorators.require_auth)
2. Ids from client input are resolved only within that company
3. A record of another company is indistinguishable from a missing one

USAGE:
    from stockpro.services.tenant_service import require_product_in_company

    product = require_product_in_company(product_id, g.company_id)
"""

from __future__ import annotations

import logging

from flask import g

from ..extensions import db
from ..models import Movement, Product, Supplier
from .concurrency import lock_for_update


logger = logging.getLogger(__name__)


class TenantAccessError(Exception):
    """Raised when a record is missing or owned by another company."""


def get_current_company_id() -> int:
    company_id = getattr(g, "company_id", None)
    if company_id is None:
        raise TenantAccessError("Tenant context not established")
    return company_id


def _require_owned(model, record_id: int, company_id: int, label: str, *, lock: bool = False):
    query = db.session.query(model).filter(model.id == record_id)
    if lock:
        query = lock_for_update(query)
    record = query.first()

    if record is None:
        raise TenantAccessError(f"{label} not found")
    if record.company_id != company_id:
        logger.warning(
            "Cross-tenant access attempt: company %s requested %s %s of company %s",
            company_id, label.lower(), record_id, record.company_id,
        )
        raise TenantAccessError(f"{label} not found")
    return record


def require_product_in_company(product_id: int, company_id: int, *, lock: bool = False) -> Product:
    return _require_owned(Product, product_id, company_id, "Product", lock=lock)


def require_movement_in_company(movement_id: int, company_id: int) -> Movement:
    return _require_owned(Movement, movement_id, company_id, "Movement")


def require_supplier_in_company(supplier_id: int, company_id: int) -> Supplier:
    return _require_owned(Supplier, supplier_id, company_id, "Supplier")
