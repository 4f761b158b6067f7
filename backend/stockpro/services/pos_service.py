# Overview: Point-of-sale checkout; turns a cart into OUT movements in one transaction.

from __future__ import annotations

import logging

from ..extensions import db
from ..models import Product
from ..models.inventory import MOVEMENT_OUT
from ..time_utils import utcnow
from ..validation import MAX_QUANTITY
from .concurrency import lock_for_update, run_with_retry
from .stock_service import StockError, build_movement
from .tenant_service import TenantAccessError


logger = logging.getLogger(__name__)

POS_SALE_NOTE = "POS sale"


class CartError(ValueError):
    """Invalid cart payload (400)."""


def _normalize_cart(items) -> list[tuple[str, object, int]]:
    """
    Validate cart lines and merge duplicates.

    Each line identifies its product by product_id or code. Returns
    (key_type, key, quantity) tuples in first-seen order.
    """
    if not isinstance(items, list) or not items:
        raise CartError("Cart is empty")

    merged: dict[tuple[str, object], int] = {}
    for line in items:
        if not isinstance(line, dict):
            raise CartError("Invalid cart line")

        quantity = line.get("quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise CartError("quantity must be a positive integer")

        if line.get("product_id") is not None:
            product_id = line["product_id"]
            if isinstance(product_id, bool) or not isinstance(product_id, int):
                raise CartError("product_id must be an integer")
            key = ("id", product_id)
        elif line.get("code"):
            key = ("code", str(line["code"]).strip())
        else:
            raise CartError("Each line needs product_id or code")

        merged[key] = merged.get(key, 0) + quantity

    for (_, key), quantity in merged.items():
        if quantity > MAX_QUANTITY:
            raise CartError(f"quantity cannot exceed {MAX_QUANTITY}")

    return [(kind, key, qty) for (kind, key), qty in merged.items()]


def _locked_product(company_id: int, kind: str, key) -> Product:
    query = db.session.query(Product).filter(Product.company_id == company_id)
    if kind == "id":
        query = query.filter(Product.id == key)
    else:
        query = query.filter(Product.code == key)
    product = lock_for_update(query).first()
    if product is None:
        raise TenantAccessError(f"Product {key} not found")
    return product


def checkout(company_id: int, items) -> dict:
    """
    Register a POS sale.

    All lines are checked against stock before anything is written; then one
    OUT movement per (merged) line is recorded with note "POS sale". Either
    every line is recorded or none is.

    Raises:
        CartError: empty or malformed cart
        TenantAccessError: a product does not exist in this company
        StockError: a product is inactive or has insufficient stock
    """
    lines = _normalize_cart(items)
    occurred_at = utcnow()

    def _op():
        try:
            resolved = []
            for kind, key, quantity in lines:
                product = _locked_product(company_id, kind, key)
                if not product.is_active:
                    raise StockError(f"Product {product.code} is inactive")
                if quantity > product.quantity_on_hand:
                    raise StockError(
                        f"Insufficient stock for {product.name}: "
                        f"available {product.quantity_on_hand}, requested {quantity}"
                    )
                resolved.append((product, quantity))

            movements = [
                build_movement(product, MOVEMENT_OUT, quantity, note=POS_SALE_NOTE, occurred_at=occurred_at)
                for product, quantity in resolved
            ]
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return movements

    movements = run_with_retry(_op)
    total = sum(m.total_price_cents for m in movements)
    logger.info(
        "POS sale recorded: %d line(s), total %d cents (company %s)",
        len(movements), total, company_id,
    )
    return {
        "total_cents": total,
        "items_count": sum(m.quantity for m in movements),
        "movements": [m.to_dict() for m in movements],
    }
