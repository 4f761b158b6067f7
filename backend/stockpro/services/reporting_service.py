# Overview: Service-layer operations for reporting; loads tenant data and runs the aggregation engine.

from __future__ import annotations

from datetime import date, timedelta

from flask import current_app

from ..models.inventory import MOVEMENT_OUT
from ..time_utils import parse_iso_date, utcnow
from . import aggregation
from .aggregation import (
    COST_BASES,
    COST_BASIS_CURRENT,
    Statistics,
    aggregate,
    classify_expiry,
    filter_by_period,
    resolve_period,
    stock_value_cents,
)
from .repository import StockRepository


class ReportError(Exception):
    """Raised when report parameters are invalid."""


def _parse_day(value, name: str) -> date | None:
    if value is None or isinstance(value, date):
        return value
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ReportError(f"{name} must be a date (YYYY-MM-DD)")


def _today(today: date | None) -> date:
    return today if today is not None else utcnow().date()


def _max_range_days() -> int:
    return current_app.config.get("REPORT_MAX_RANGE_DAYS", 365)


def build_statistics(
    company_id: int,
    *,
    start=None,
    end=None,
    days: int | None = None,
    cost_basis: str = COST_BASIS_CURRENT,
    today: date | None = None,
) -> tuple[Statistics, list, list]:
    """
    Load the company's products and the movements of the requested period
    and aggregate them.

    Returns (statistics, products, period_movements); exports need all three.

    Raises:
        ReportError: unparseable dates, negative days, unknown cost basis, or
            a range (explicit or rolling) longer than REPORT_MAX_RANGE_DAYS
        DataUnavailableError: storage could not be read
    """
    if cost_basis not in COST_BASES:
        raise ReportError(f"cost_basis must be one of {', '.join(COST_BASES)}")
    if days is not None and days < 0:
        raise ReportError("days must be >= 0")
    if days is not None and days > _max_range_days():
        raise ReportError(f"Period cannot exceed {_max_range_days()} days")

    start_day = _parse_day(start, "start")
    end_day = _parse_day(end, "end")
    period = resolve_period(start=start_day, end=end_day, days=days, today=_today(today))

    if not period.is_empty:
        max_days = _max_range_days()
        if (period.end - period.start).days > max_days:
            raise ReportError(f"Period cannot exceed {max_days} days")

    repo = StockRepository(company_id)
    products = repo.list_products()
    if period.is_empty:
        movements = []
    else:
        movements = filter_by_period(repo.list_movements(start=period.start, end=period.end), period.start, period.end)

    stats = aggregate(
        movements,
        products,
        period=period,
        top_n=current_app.config.get("REPORT_TOP_N", aggregation.DEFAULT_TOP_N),
        cost_basis=cost_basis,
    )
    return stats, products, movements


def sales_report(
    company_id: int,
    *,
    start=None,
    end=None,
    days: int | None = None,
    cost_basis: str = COST_BASIS_CURRENT,
    today: date | None = None,
) -> dict:
    stats, _, _ = build_statistics(
        company_id, start=start, end=end, days=days, cost_basis=cost_basis, today=today,
    )
    return stats.to_dict()


def expiry_report(company_id: int, today: date | None = None) -> dict:
    """
    Classify active products by expiry date.

    Buckets: expired, expires_today, expires_within_7_days, near_expiry
    (within the product's alert window, default 30 days), valid, no_expiry.
    lost_value_cents is quantity * cost price over expired products.
    """
    today = _today(today)
    products = StockRepository(company_id).list_products(include_inactive=False)

    buckets: dict[str, list[dict]] = {
        aggregation.EXPIRY_EXPIRED: [],
        aggregation.EXPIRY_TODAY: [],
        aggregation.EXPIRY_WITHIN_7_DAYS: [],
        aggregation.EXPIRY_NEAR: [],
        aggregation.EXPIRY_VALID: [],
        aggregation.EXPIRY_NONE: [],
    }
    lost_value = 0

    for p in products:
        bucket, days_remaining = classify_expiry(p, today)
        item = p.to_dict()
        item["days_remaining"] = days_remaining
        buckets[bucket].append(item)
        if bucket == aggregation.EXPIRY_EXPIRED:
            lost_value += p.quantity_on_hand * p.cost_price_cents

    for bucket, items in buckets.items():
        if bucket != aggregation.EXPIRY_NONE:
            items.sort(key=lambda item: item["days_remaining"])

    return {
        "as_of": today.isoformat(),
        "summary": {bucket: len(items) for bucket, items in buckets.items()},
        "items": buckets,
        "lost_value_cents": lost_value,
    }


def stock_report(company_id: int) -> dict:
    """Stock position of active products, with a per-category breakdown."""
    products = StockRepository(company_id).list_products(include_inactive=False)

    out_of_stock = [p for p in products if p.quantity_on_hand <= 0]
    low_stock = [p for p in products if 0 < p.quantity_on_hand <= p.reorder_threshold]

    categories: dict[str, dict] = {}
    for p in products:
        entry = categories.setdefault(
            p.category,
            {"category": p.category, "products": 0, "value_cents": 0, "out_of_stock": 0},
        )
        entry["products"] += 1
        entry["value_cents"] += p.quantity_on_hand * p.cost_price_cents
        if p.quantity_on_hand <= 0:
            entry["out_of_stock"] += 1

    critical = sorted(out_of_stock + low_stock, key=lambda p: (p.quantity_on_hand, p.name))[:10]

    return {
        "active_products": len(products),
        "out_of_stock_count": len(out_of_stock),
        "low_stock_count": len(low_stock),
        "stock_value_cents": stock_value_cents(products),
        "categories": sorted(categories.values(), key=lambda c: -c["value_cents"]),
        "critical_products": [p.to_dict() for p in critical],
    }


def daily_sales(company_id: int, days: int = 7, today: date | None = None) -> list[dict]:
    if days <= 0:
        raise ReportError("days must be > 0")
    if days > _max_range_days():
        raise ReportError(f"days cannot exceed {_max_range_days()}")
    today = _today(today)
    movements = StockRepository(company_id).list_movements(
        start=today - timedelta(days=days - 1),
        end=today,
        direction=MOVEMENT_OUT,
    )
    return aggregation.daily_revenue(movements, days=days, today=today)


def dashboard(company_id: int, today: date | None = None) -> dict:
    """
    Home screen figures.

    low_stock_count counts active products at or below their threshold
    (zero stock included); zero_stock_count counts the empty ones.
    """
    today = _today(today)
    repo = StockRepository(company_id)
    products = repo.list_products(include_inactive=False)
    month_start = today.replace(day=1)
    month_sales = repo.list_movements(start=month_start, end=today, direction=MOVEMENT_OUT)

    low = [p for p in products if p.quantity_on_hand <= p.reorder_threshold]
    zero = [p for p in products if p.quantity_on_hand <= 0]
    healthy_pct = round((len(products) - len(low)) / len(products) * 100.0, 1) if products else 0.0

    return {
        "month_revenue_cents": sum(m.total_price_cents for m in month_sales),
        "month_sale_count": len(month_sales),
        "active_products": len(products),
        "low_stock_count": len(low),
        "zero_stock_count": len(zero),
        "stock_value_cents": stock_value_cents(products),
        "movement_count": repo.count_movements(),
        "healthy_stock_pct": healthy_pct,
    }
