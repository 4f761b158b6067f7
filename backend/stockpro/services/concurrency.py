# Overview: Row locking and retry helpers shared by stock-changing services.

from __future__ import annotations

import logging
import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


logger = logging.getLogger(__name__)


def lock_for_update(query):
    """
    Apply row-level locking to a product query.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; there the product version_id
    (optimistic locking) is what detects concurrent stock changes.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run a unit of work that commits its own transaction, retrying on
    lock timeouts / deadlocks (OperationalError) and version conflicts
    (StaleDataError). The session is rolled back before each retry.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                logger.error("Giving up after %d attempts: %s", attempts, exc)
                raise
            logger.warning("Concurrent write conflict, retrying (attempt %d): %s", attempt + 1, exc)
            time.sleep(backoff_base * (2 ** attempt))
