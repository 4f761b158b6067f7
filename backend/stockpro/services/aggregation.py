# Overview: Pure report computations over already-loaded products and movements.

"""
Report Aggregation Engine

Everything here is a pure function of its arguments: no database access, no
Flask context, no clock reads unless `today` is omitted. Callers load the
product and movement collections (see repository.StockRepository) and pass
them in.

Inputs are duck-typed. A movement needs: direction, quantity,
total_price_cents, product_code, product_name, occurred_at and optionally
cost_price_cents_at_sale. A product needs: code, name, category,
cost_price_cents, quantity_on_hand, reorder_threshold, is_active and the
expiry fields.

Time semantics:
- Periods are inclusive on both ends.
- A date `start` means its first instant; `end` always extends to the last
  instant of its day.
- An empty or inverted period selects nothing. It is never an error.

Money is integer cents throughout.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, Sequence

from ..models.inventory import MOVEMENT_IN, MOVEMENT_OUT
from ..time_utils import end_of_day, format_br_date, start_of_day, utcnow


DEFAULT_TOP_N = 5
DEFAULT_ROLLING_DAYS = 30

COST_BASIS_CURRENT = "current"
COST_BASIS_HISTORICAL = "historical"
COST_BASES = (COST_BASIS_CURRENT, COST_BASIS_HISTORICAL)


@dataclass(frozen=True)
class Period:
    start: date | None
    end: date | None
    label: str

    @property
    def is_empty(self) -> bool:
        return self.start is None or self.end is None or self.start > self.end


@dataclass(frozen=True)
class ProductRanking:
    code: str
    name: str
    quantity: int
    revenue_cents: int

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "name": self.name,
            "quantity": self.quantity,
            "revenue_cents": self.revenue_cents,
        }


@dataclass(frozen=True)
class Statistics:
    """
    Report output value object. Derived, never persisted.

    top_products and revenue_by_category are final: exporters and UI render
    them in the given order.
    """
    total_revenue_cents: int = 0
    total_cost_of_goods_cents: int = 0
    net_profit_cents: int = 0
    units_sold: int = 0
    sale_count: int = 0
    top_products: tuple[ProductRanking, ...] = ()
    revenue_by_category: dict[str, int] = field(default_factory=dict)
    period_label: str = ""
    period_start: date | None = None
    period_end: date | None = None
    orphaned_sale_count: int = 0
    cost_basis: str = COST_BASIS_CURRENT

    @property
    def profit_margin_pct(self) -> float:
        if not self.total_revenue_cents:
            return 0.0
        return round(self.net_profit_cents / self.total_revenue_cents * 100.0, 2)

    def to_dict(self) -> dict:
        return {
            "total_revenue_cents": self.total_revenue_cents,
            "total_cost_of_goods_cents": self.total_cost_of_goods_cents,
            "net_profit_cents": self.net_profit_cents,
            "profit_margin_pct": self.profit_margin_pct,
            "units_sold": self.units_sold,
            "sale_count": self.sale_count,
            "top_products": [p.to_dict() for p in self.top_products],
            "revenue_by_category": [
                {"category": category, "revenue_cents": revenue}
                for category, revenue in self.revenue_by_category.items()
            ],
            "period_label": self.period_label,
            "period_start": self.period_start.isoformat() if self.period_start else None,
            "period_end": self.period_end.isoformat() if self.period_end else None,
            "orphaned_sale_count": self.orphaned_sale_count,
            "cost_basis": self.cost_basis,
        }


def _as_datetime_start(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    return start_of_day(value)


def filter_by_period(
    movements: Iterable,
    start: date | datetime | None,
    end: date | datetime | None,
) -> list:
    """
    Select movements whose occurred_at falls inside [start, end].

    end is normalized to 23:59:59.999999 of its day so a same-day range
    includes everything recorded that day. Missing or inverted bounds
    return an empty list. Input order is preserved.
    """
    if start is None or end is None:
        return []

    start_dt = _as_datetime_start(start)
    end_dt = end_of_day(end)
    if start_dt > end_dt:
        return []

    return [m for m in movements if start_dt <= m.occurred_at <= end_dt]


def resolve_period(
    *,
    start: date | None = None,
    end: date | None = None,
    days: int | None = None,
    today: date | None = None,
) -> Period:
    """
    Build the reporting period.

    - start and end both given: explicit range, label "DD/MM/YYYY to DD/MM/YYYY"
    - neither given: rolling "last N days" ending today (N defaults to 30)
    - only one given: empty period
    """
    if start is not None or end is not None:
        if start is None or end is None:
            return Period(start=None, end=None, label="")
        return Period(
            start=start,
            end=end,
            label=f"{format_br_date(start)} to {format_br_date(end)}",
        )

    if today is None:
        today = utcnow().date()
    n = DEFAULT_ROLLING_DAYS if days is None else days
    if n < 0:
        return Period(start=None, end=None, label="")
    try:
        start = today - timedelta(days=n)
    except OverflowError:
        # window reaches before date.min
        return Period(start=None, end=None, label="")
    return Period(start=start, end=today, label=f"Last {n} days")


def _index_products_by_code(products: Iterable) -> dict:
    by_code: dict = {}
    for product in products:
        # First product wins when a code appears twice
        by_code.setdefault(product.code, product)
    return by_code


def _sale_cost_cents(sale, product, cost_basis: str) -> int | None:
    if cost_basis == COST_BASIS_HISTORICAL:
        captured = getattr(sale, "cost_price_cents_at_sale", None)
        if captured is not None:
            return captured
    if product is None:
        return None
    return product.cost_price_cents


def aggregate(
    movements: Sequence,
    products: Sequence,
    *,
    period: Period | None = None,
    top_n: int = DEFAULT_TOP_N,
    cost_basis: str = COST_BASIS_CURRENT,
) -> Statistics:
    """
    Summarize a (pre-filtered) movement set.

    Profit per sale is total_price - cost * quantity. With the default
    "current" cost basis the cost is the product's cost price today; sales
    whose product code no longer resolves contribute nothing to profit or to
    the category breakdown and are counted in orphaned_sale_count.
    Revenue and units always come straight from the movements.

    Top products are ranked by summed quantity. Ties keep first-seen order.
    """
    if cost_basis not in COST_BASES:
        raise ValueError(f"cost_basis must be one of {', '.join(COST_BASES)}")

    sales = [m for m in movements if m.direction == MOVEMENT_OUT]
    purchases = [m for m in movements if m.direction == MOVEMENT_IN]
    by_code = _index_products_by_code(products)

    total_revenue = 0
    units_sold = 0
    net_profit = 0
    orphaned = 0
    grouped: dict[str, dict] = {}
    by_category: dict[str, int] = {}

    for sale in sales:
        total_revenue += sale.total_price_cents
        units_sold += sale.quantity

        product = by_code.get(sale.product_code)
        if product is None:
            orphaned += 1

        cost = _sale_cost_cents(sale, product, cost_basis)
        if cost is not None:
            net_profit += sale.total_price_cents - cost * sale.quantity

        if product is not None:
            by_category[product.category] = by_category.get(product.category, 0) + sale.total_price_cents

        entry = grouped.get(sale.product_code)
        if entry is None:
            grouped[sale.product_code] = {
                "name": sale.product_name,
                "quantity": sale.quantity,
                "revenue": sale.total_price_cents,
            }
        else:
            entry["quantity"] += sale.quantity
            entry["revenue"] += sale.total_price_cents

    # sorted() is stable, so equal quantities keep first-seen order
    ranked = sorted(grouped.items(), key=lambda item: -item[1]["quantity"])
    top_products = tuple(
        ProductRanking(code=code, name=data["name"], quantity=data["quantity"], revenue_cents=data["revenue"])
        for code, data in ranked[:max(top_n, 0)]
    )

    revenue_by_category = dict(sorted(by_category.items(), key=lambda item: -item[1]))

    return Statistics(
        total_revenue_cents=total_revenue,
        total_cost_of_goods_cents=sum(m.total_price_cents for m in purchases),
        net_profit_cents=net_profit,
        units_sold=units_sold,
        sale_count=len(sales),
        top_products=top_products,
        revenue_by_category=revenue_by_category,
        period_label=period.label if period else "",
        period_start=period.start if period else None,
        period_end=period.end if period else None,
        orphaned_sale_count=orphaned,
        cost_basis=cost_basis,
    )


def daily_revenue(movements: Iterable, *, days: int = 7, today: date | None = None) -> list[dict]:
    """Sales revenue per day for the last `days` days (oldest first, today included)."""
    if today is None:
        today = utcnow().date()
    buckets: dict[date, int] = {today - timedelta(days=i): 0 for i in range(days - 1, -1, -1)}
    for m in movements:
        if m.direction != MOVEMENT_OUT:
            continue
        day = m.occurred_at.date()
        if day in buckets:
            buckets[day] += m.total_price_cents
    return [{"date": day.isoformat(), "revenue_cents": revenue} for day, revenue in buckets.items()]


# Expiry buckets
EXPIRY_EXPIRED = "expired"
EXPIRY_TODAY = "expires_today"
EXPIRY_WITHIN_7_DAYS = "expires_within_7_days"
EXPIRY_NEAR = "near_expiry"
EXPIRY_VALID = "valid"
EXPIRY_NONE = "no_expiry"

DEFAULT_ALERT_WINDOW_DAYS = 30


def classify_expiry(product, today: date) -> tuple[str, int | None]:
    """Return (bucket, days_remaining) for one product."""
    if not product.has_expiry or product.expiry_date is None:
        return EXPIRY_NONE, None

    days_remaining = (product.expiry_date - today).days
    window = product.alert_window_days or DEFAULT_ALERT_WINDOW_DAYS

    if days_remaining < 0:
        return EXPIRY_EXPIRED, days_remaining
    if days_remaining == 0:
        return EXPIRY_TODAY, days_remaining
    if days_remaining <= 7:
        return EXPIRY_WITHIN_7_DAYS, days_remaining
    if days_remaining <= window:
        return EXPIRY_NEAR, days_remaining
    return EXPIRY_VALID, days_remaining


def stock_value_cents(products: Iterable) -> int:
    """Value of active stock at cost price."""
    return sum(p.quantity_on_hand * p.cost_price_cents for p in products if p.is_active)
