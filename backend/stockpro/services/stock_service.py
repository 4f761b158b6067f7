# Overview: Service-layer operations for stock movements; the only writer of quantity_on_hand.

"""
StockPro Stock Ledger Invariants

Inventory model:
- Product.quantity_on_hand is a running total.
- It changes only together with a Movement row, in the same DB transaction:
    IN  adds quantity, OUT subtracts quantity.
- Therefore, for every product:
    quantity_on_hand == initial quantity + sum(IN) - sum(OUT)

Business invariants:
- Stock may never go negative: an OUT above quantity_on_hand is refused.
- Inactive products accept no new movements.
- Movement quantity is a positive integer.

Captured values (never rewritten afterwards):
- product_code, product_name
- unit_price_cents: cost price on IN, sale price on OUT
- total_price_cents = unit_price_cents * quantity
- cost_price_cents_at_sale on OUT (historical profit basis)

Deleting a movement re-applies the inverse delta to its product (when the
product still exists) in the same transaction. A reversal that would make
stock negative is refused.

Concurrency:
- The product row is locked (SELECT ... FOR UPDATE where supported) and the
  product's version_id catches concurrent updates; conflicts are retried.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from ..extensions import db
from ..models import Movement
from ..models.inventory import MOVEMENT_DIRECTIONS, MOVEMENT_OUT
from ..time_utils import parse_iso_datetime, utcnow
from ..validation import MAX_QUANTITY
from .concurrency import run_with_retry
from .tenant_service import require_movement_in_company, require_product_in_company


logger = logging.getLogger(__name__)


class StockError(Exception):
    """Raised when a movement would break a stock invariant."""


def _parse_occurred_at(value) -> datetime:
    """
    Normalize occurred_at to canonical UTC-naive datetime.

    None -> utcnow(); aware datetime -> UTC naive; str -> ISO-8601.
    """
    if value is None:
        return utcnow()

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    if isinstance(value, str):
        dt = parse_iso_datetime(value)
        if dt is None:
            raise ValueError("invalid occurred_at")
        return dt

    raise ValueError("invalid occurred_at")


def _check_quantity(quantity) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValueError("quantity must be an integer")
    if quantity <= 0:
        raise ValueError("quantity must be > 0")
    if quantity > MAX_QUANTITY:
        raise ValueError(f"quantity cannot exceed {MAX_QUANTITY}")


def build_movement(product, direction: str, quantity: int, *, note=None, occurred_at: datetime) -> Movement:
    """
    Create the Movement for `product` and adjust its stock. Caller owns the
    transaction and must hold the product row lock.
    """
    if not product.is_active:
        raise StockError(f"Product {product.code} is inactive")

    if direction == MOVEMENT_OUT:
        if quantity > product.quantity_on_hand:
            raise StockError(
                f"Insufficient stock for {product.code}: "
                f"available {product.quantity_on_hand}, requested {quantity}"
            )
        unit_price = product.sale_price_cents
        cost_at_sale = product.cost_price_cents
    else:
        unit_price = product.cost_price_cents
        cost_at_sale = None

    movement = Movement(
        company_id=product.company_id,
        product_id=product.id,
        product_code=product.code,
        product_name=product.name,
        direction=direction,
        quantity=quantity,
        unit_price_cents=unit_price,
        total_price_cents=unit_price * quantity,
        cost_price_cents_at_sale=cost_at_sale,
        note=note,
        occurred_at=occurred_at,
    )
    product.quantity_on_hand += movement.quantity_delta
    db.session.add(movement)
    return movement


def apply_movement(
    company_id: int,
    product_id: int,
    direction: str,
    quantity: int,
    note: str | None = None,
    occurred_at=None,
) -> dict:
    """
    Record one stock movement and update the product's running quantity.

    Raises:
        ValueError: invalid direction / quantity / occurred_at
        TenantAccessError: product not found in company
        StockError: inactive product or insufficient stock
    """
    if direction not in MOVEMENT_DIRECTIONS:
        raise ValueError("direction must be IN or OUT")
    _check_quantity(quantity)
    occurred = _parse_occurred_at(occurred_at)

    def _op():
        try:
            product = require_product_in_company(product_id, company_id, lock=True)
            movement = build_movement(product, direction, quantity, note=note, occurred_at=occurred)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return movement

    movement = run_with_retry(_op)
    logger.info(
        "Movement %s recorded: %s %d x %s (company %s)",
        movement.id, movement.direction, movement.quantity, movement.product_code, company_id,
    )
    return movement.to_dict()


def delete_movement(company_id: int, movement_id: int) -> dict:
    """
    Delete a movement and revert its effect on stock.

    The product (if it still exists) gets the inverse delta: deleting an OUT
    restores stock, deleting an IN removes it. A reversal that would leave
    negative stock raises StockError and nothing is changed.
    """
    def _op():
        try:
            movement = require_movement_in_company(movement_id, company_id)
            snapshot = movement.to_dict()

            if movement.product_id is not None:
                product = require_product_in_company(movement.product_id, company_id, lock=True)
                new_quantity = product.quantity_on_hand - movement.quantity_delta
                if new_quantity < 0:
                    raise StockError(
                        f"Cannot delete movement {movement_id}: stock of {product.code} "
                        f"would become {new_quantity}"
                    )
                product.quantity_on_hand = new_quantity

            db.session.delete(movement)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return snapshot

    snapshot = run_with_retry(_op)
    logger.info(
        "Movement %s deleted and reverted: %s %d x %s (company %s)",
        movement_id, snapshot["direction"], snapshot["quantity"], snapshot["product_code"], company_id,
    )
    return snapshot


def list_movements(
    company_id: int,
    direction: str | None = None,
    start=None,
    end=None,
    limit: int | None = None,
) -> list[dict]:
    """Movements of a company, newest first. start/end are inclusive datetimes or dates."""
    from .repository import StockRepository

    if direction is not None and direction not in MOVEMENT_DIRECTIONS:
        raise ValueError("direction must be IN or OUT")

    movements = StockRepository(company_id).list_movements(start=start, end=end, direction=direction)
    movements.reverse()
    if limit is not None:
        movements = movements[:max(limit, 0)]
    return [m.to_dict() for m in movements]

