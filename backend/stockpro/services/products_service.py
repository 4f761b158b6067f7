# backend/stockpro/services/products_service.py
"""
Products Service with Multi-Tenant Support

MULTI-TENANT: Every function takes the caller's company_id and only ever
touches that company's products. Ids of other companies raise
TenantAccessError, which routes report as 404.

STOCK: quantity_on_hand may be set when a product is created. Afterwards it
only changes through movements (stock_service), so it is not patchable here.

CODES: When no code is supplied, the next code is the count of active
products + 1, zero-padded to three digits ("001", "002", ...). Codes already
taken (including by inactive products) are skipped.
"""
from __future__ import annotations

import logging

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Movement, Product
from ..validation import ConflictError
from .tenant_service import require_product_in_company


logger = logging.getLogger(__name__)

PRODUCT_MUTABLE_FIELDS = {
    "code", "barcode", "name", "category", "brand",
    "cost_price_cents", "sale_price_cents", "reorder_threshold",
    "is_active", "has_expiry", "expiry_date", "alert_window_days",
}
PRODUCT_CREATE_FIELDS = PRODUCT_MUTABLE_FIELDS | {"quantity_on_hand"}


def _company_products(company_id: int):
    return db.session.query(Product).filter(Product.company_id == company_id)


def apply_product_patch(p: Product, patch: dict, allowed: set[str] = PRODUCT_MUTABLE_FIELDS) -> None:
    for k, v in patch.items():
        if k not in allowed:
            continue
        setattr(p, k, v)
    if not p.has_expiry:
        p.expiry_date = None


def list_products(
    company_id: int,
    *,
    active_only: bool = False,
    category: str | None = None,
    search: str | None = None,
) -> dict:
    """
    Tenant-scoped product listing ordered by name.

    search matches name, code or barcode (case-insensitive substring).
    """
    query = _company_products(company_id)
    if active_only:
        query = query.filter(Product.is_active.is_(True))
    if category:
        query = query.filter(Product.category == category)
    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(
            or_(
                func.lower(Product.name).like(pattern),
                func.lower(Product.code).like(pattern),
                func.lower(Product.barcode).like(pattern),
            )
        )

    products = query.order_by(Product.name.asc(), Product.id.asc()).all()
    return {"items": [p.to_dict() for p in products], "count": len(products)}


def get_product(company_id: int, product_id: int) -> dict:
    return require_product_in_company(product_id, company_id).to_dict()


def next_product_code(company_id: int) -> str:
    active_count = (
        _company_products(company_id)
        .filter(Product.is_active.is_(True))
        .count()
    )
    taken = {code for (code,) in db.session.query(Product.code).filter(Product.company_id == company_id)}

    n = active_count + 1
    while f"{n:03d}" in taken:
        n += 1
    return f"{n:03d}"


def _ensure_code_free(company_id: int, code: str, *, exclude_id: int | None = None) -> None:
    query = _company_products(company_id).filter(Product.code == code)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first() is not None:
        raise ConflictError(f"Product code {code} already exists")


def create_product(company_id: int, patch: dict) -> dict:
    """
    Create a product from a validated patch dict.

    Raises:
        ConflictError: code already used in this company
    """
    code = (patch.get("code") or "").strip()
    if not code:
        code = next_product_code(company_id)
    _ensure_code_free(company_id, code)

    p = Product(company_id=company_id, code=code, name=patch["name"])
    apply_product_patch(p, {k: v for k, v in patch.items() if k != "code"}, PRODUCT_CREATE_FIELDS)

    db.session.add(p)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f"Product code {code} already exists")

    logger.info("Product %s created (code %s, company %s)", p.id, p.code, company_id)
    return p.to_dict()


def update_product(company_id: int, product_id: int, patch: dict) -> dict:
    p = require_product_in_company(product_id, company_id)

    if "code" in patch:
        if not patch["code"]:
            patch = {k: v for k, v in patch.items() if k != "code"}
        else:
            _ensure_code_free(company_id, patch["code"], exclude_id=p.id)

    apply_product_patch(p, patch)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Product code already exists")
    return p.to_dict()


def current_values(company_id: int, product_id: int) -> dict:
    """Stored values used by cross-field validation on update."""
    p = require_product_in_company(product_id, company_id)
    return {
        "cost_price_cents": p.cost_price_cents,
        "sale_price_cents": p.sale_price_cents,
        "has_expiry": p.has_expiry,
        "expiry_date": p.expiry_date,
    }


def deactivate_product(company_id: int, product_id: int) -> dict:
    """Soft delete. The product disappears from sales; history and reports keep it."""
    p = require_product_in_company(product_id, company_id)
    p.is_active = False
    db.session.commit()
    logger.info("Product %s deactivated (company %s)", p.id, company_id)
    return p.to_dict()


def delete_product(company_id: int, product_id: int) -> None:
    """
    Hard delete.

    Movements survive with their captured code and name and product_id set
    to NULL. Their sales then count as orphaned in reports unless another
    product takes over the code.
    """
    p = require_product_in_company(product_id, company_id)
    db.session.query(Movement).filter(
        Movement.company_id == company_id,
        Movement.product_id == p.id,
    ).update({Movement.product_id: None}, synchronize_session="fetch")
    db.session.delete(p)
    db.session.commit()
    logger.info("Product %s (code %s) hard-deleted (company %s)", product_id, p.code, company_id)


def lookup_product(company_id: int, term: str) -> dict | None:
    """POS lookup: barcode first, then code. Active products only."""
    term = (term or "").strip()
    if not term:
        return None

    base = _company_products(company_id).filter(Product.is_active.is_(True))
    p = base.filter(Product.barcode == term).first()
    if p is None:
        p = base.filter(Product.code == term).first()
    return p.to_dict() if p else None


def list_categories(company_id: int) -> list[str]:
    rows = (
        db.session.query(Product.category)
        .filter(Product.company_id == company_id, Product.category != "")
        .distinct()
        .order_by(Product.category.asc())
        .all()
    )
    return [c for (c,) in rows]


def list_low_stock(company_id: int) -> list[dict]:
    """Active products with 0 < quantity_on_hand <= reorder_threshold."""
    products = (
        _company_products(company_id)
        .filter(
            Product.is_active.is_(True),
            Product.quantity_on_hand > 0,
            Product.quantity_on_hand <= Product.reorder_threshold,
        )
        .order_by(Product.quantity_on_hand.asc(), Product.name.asc())
        .all()
    )
    return [p.to_dict() for p in products]


def list_out_of_stock(company_id: int) -> list[dict]:
    products = (
        _company_products(company_id)
        .filter(Product.is_active.is_(True), Product.quantity_on_hand <= 0)
        .order_by(Product.name.asc())
        .all()
    )
    return [p.to_dict() for p in products]
