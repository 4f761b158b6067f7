# Overview: Tenant-scoped read access to products and movements for reporting.

"""
Stock Repository

MULTI-TENANT: A repository instance is bound to one company_id and every
query it issues is filtered by it.

FAILURE SEMANTICS:
Reports must be able to tell "no data" from "data unavailable". Any
SQLAlchemyError raised while loading is re-raised as DataUnavailableError
(HTTP 503, retryable) instead of surfacing as an empty collection.

Writes are delegated to stock_service / products_service so that the row
locking and retry policy lives in one place.
"""

from __future__ import annotations

import logging
from datetime import date, datetime

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Movement, Product
from ..time_utils import end_of_day, start_of_day


logger = logging.getLogger(__name__)


class DataUnavailableError(Exception):
    """Storage could not be read; the caller may retry."""


class StockRepository:
    def __init__(self, company_id: int):
        self.company_id = company_id

    def _load(self, what: str, query):
        try:
            return query.all()
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.error("Failed to load %s for company %s: %s", what, self.company_id, exc)
            raise DataUnavailableError(f"Could not load {what}, please try again") from exc

    def list_products(self, include_inactive: bool = True) -> list[Product]:
        query = db.session.query(Product).filter(Product.company_id == self.company_id)
        if not include_inactive:
            query = query.filter(Product.is_active.is_(True))
        return self._load("products", query.order_by(Product.id.asc()))

    def list_movements(
        self,
        start: date | datetime | None = None,
        end: date | datetime | None = None,
        direction: str | None = None,
    ) -> list[Movement]:
        """
        Movements in chronological order (occurred_at, then id).

        Bounds are optional and inclusive; a date end covers its whole day.
        The range narrows the SQL query only; exact period semantics are
        applied by aggregation.filter_by_period.
        """
        query = db.session.query(Movement).filter(Movement.company_id == self.company_id)
        if start is not None:
            start_dt = start if isinstance(start, datetime) else start_of_day(start)
            query = query.filter(Movement.occurred_at >= start_dt)
        if end is not None:
            query = query.filter(Movement.occurred_at <= end_of_day(end))
        if direction is not None:
            query = query.filter(Movement.direction == direction)
        return self._load("movements", query.order_by(Movement.occurred_at.asc(), Movement.id.asc()))

    def count_movements(self) -> int:
        try:
            return db.session.query(Movement).filter(Movement.company_id == self.company_id).count()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise DataUnavailableError("Could not load movements, please try again") from exc

    def get_product(self, product_id: int) -> Product | None:
        try:
            return (
                db.session.query(Product)
                .filter(Product.id == product_id, Product.company_id == self.company_id)
                .first()
            )
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise DataUnavailableError("Could not load product, please try again") from exc

    def find_product_by_code(self, code: str, *, active_only: bool = False) -> Product | None:
        query = db.session.query(Product).filter(
            Product.company_id == self.company_id,
            Product.code == code,
        )
        if active_only:
            query = query.filter(Product.is_active.is_(True))
        try:
            return query.first()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise DataUnavailableError("Could not load product, please try again") from exc

    def upsert_product(self, patch: dict, product_id: int | None = None) -> dict:
        from . import products_service

        if product_id is None:
            return products_service.create_product(self.company_id, patch)
        return products_service.update_product(self.company_id, product_id, patch)

    def apply_movement(
        self,
        product_id: int,
        direction: str,
        quantity: int,
        note: str | None = None,
        occurred_at: datetime | None = None,
    ) -> dict:
        from . import stock_service

        return stock_service.apply_movement(
            self.company_id,
            product_id,
            direction,
            quantity,
            note=note,
            occurred_at=occurred_at,
        )

    def revert_movement(self, movement_id: int) -> dict:
        from . import stock_service

        return stock_service.delete_movement(self.company_id, movement_id)
