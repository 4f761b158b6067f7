# Overview: Supplier registry operations, scoped per company.

from __future__ import annotations

from ..extensions import db
from ..models import Supplier
from .tenant_service import require_supplier_in_company


SUPPLIER_MUTABLE_FIELDS = {
    "name", "legal_name", "tax_id", "phone", "email", "address", "contact_name", "is_active",
}


def list_suppliers(company_id: int, *, active_only: bool = False) -> list[dict]:
    query = db.session.query(Supplier).filter(Supplier.company_id == company_id)
    if active_only:
        query = query.filter(Supplier.is_active.is_(True))
    return [s.to_dict() for s in query.order_by(Supplier.name.asc(), Supplier.id.asc()).all()]


def get_supplier(company_id: int, supplier_id: int) -> dict:
    return require_supplier_in_company(supplier_id, company_id).to_dict()


def create_supplier(company_id: int, patch: dict) -> dict:
    s = Supplier(company_id=company_id)
    for k, v in patch.items():
        if k in SUPPLIER_MUTABLE_FIELDS:
            setattr(s, k, v)
    db.session.add(s)
    db.session.commit()
    return s.to_dict()


def update_supplier(company_id: int, supplier_id: int, patch: dict) -> dict:
    s = require_supplier_in_company(supplier_id, company_id)
    for k, v in patch.items():
        if k in SUPPLIER_MUTABLE_FIELDS:
            setattr(s, k, v)
    db.session.commit()
    return s.to_dict()


def deactivate_supplier(company_id: int, supplier_id: int) -> dict:
    s = require_supplier_in_company(supplier_id, company_id)
    s.is_active = False
    db.session.commit()
    return s.to_dict()
