"""Period-bucketed aggregation over salary records and other expenses.

Every function here is pure: it takes rows already loaded from the store
(model instances or plain dicts with the same field names) and returns new
lists. Nothing is written back.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterable

from helpers import month_label, now

logger = logging.getLogger(__name__)


@dataclass
class MonthGroup:
    key: str
    year: int
    month: int
    label: str
    total: float = 0.0
    items: list = field(default_factory=list)


@dataclass
class MonthBucket:
    month: int
    label: str
    total: float = 0.0
    share: float = 0.0  # percent of the largest bucket in the series


@dataclass
class EntityTotal:
    entity_id: Any
    name: str
    role: str | None
    total: float = 0.0


@dataclass
class YearSummary:
    year: int
    salary: float = 0.0
    expenses: float = 0.0

    @property
    def net(self) -> float:
        return self.salary + self.expenses


def _field(item: Any, name: str, default: Any = None) -> Any:
    if isinstance(item, dict):
        return item.get(name, default)
    return getattr(item, name, default)


def coerce_date(value: Any) -> date | datetime:
    """Turn a date, datetime or ISO string into a date; anything unusable becomes now."""
    if isinstance(value, (date, datetime)):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.strip()[:10]).date()
        except ValueError:
            logger.warning("Unparseable date %r, bucketing under current month", value)
    return now()


def item_period(item: Any) -> tuple[int, int]:
    """(year, month) for an item.

    Explicit year/month win, then the item's own date, then its created_at
    timestamp, then the current time.
    """
    year, month = _field(item, "year"), _field(item, "month")
    if year is not None and month is not None:
        return int(year), int(month)

    raw = _field(item, "date") or _field(item, "expense_date") or _field(item, "created_at")
    d = coerce_date(raw)
    return d.year, d.month


def item_amount(item: Any) -> float:
    value = _field(item, "grand_total")
    if value is None:
        value = _field(item, "amount")
    return float(value or 0)


def aggregate_by_month(items: Iterable[Any]) -> list[MonthGroup]:
    """Group items by calendar month, newest month first.

    Items sharing a month add into one total and keep their input order
    inside the group.
    """
    groups: dict[str, MonthGroup] = {}
    for item in items:
        year, month = item_period(item)
        key = f"{year}-{month:02d}"
        group = groups.get(key)
        if group is None:
            group = groups[key] = MonthGroup(key, year, month, month_label(month, year))
        group.items.append(item)
        group.total += item_amount(item)

    return sorted(groups.values(), key=lambda g: (g.year, g.month), reverse=True)


def aggregate_per_entity(records: Iterable[Any], entities: Iterable[Any]) -> list[EntityTotal]:
    """Lifetime grand_total per employee, in employee order. Not filtered by year."""
    per_entity: dict[Any, float] = {}
    for rec in records:
        emp_id = _field(rec, "employee_id")
        per_entity[emp_id] = per_entity.get(emp_id, 0.0) + float(_field(rec, "grand_total") or 0)

    return [
        EntityTotal(
            entity_id=_field(e, "id"),
            name=_field(e, "name"),
            role=_field(e, "role"),
            total=per_entity.get(_field(e, "id"), 0.0),
        )
        for e in entities
    ]


def top_entities(records: Iterable[Any], entities: Iterable[Any], n: int = 3) -> list[EntityTotal]:
    # sorted() is stable, so equal totals keep employee order
    totals = [t for t in aggregate_per_entity(records, entities) if t.total > 0]
    return sorted(totals, key=lambda t: t.total, reverse=True)[:n]


def monthly_series(records: Iterable[Any], year: int) -> list[MonthBucket]:
    """Twelve buckets (Jan..Dec) of grand_total for one year, zero-filled."""
    buckets = [MonthBucket(m, month_label(m, year).split()[0]) for m in range(1, 13)]
    for rec in records:
        rec_year, rec_month = item_period(rec)
        if rec_year == year and 1 <= rec_month <= 12:
            buckets[rec_month - 1].total += item_amount(rec)

    peak = max(b.total for b in buckets)
    if peak > 0:
        for b in buckets:
            b.share = b.total / peak * 100
    return buckets


def year_summary(records: Iterable[Any], year: int) -> YearSummary:
    summary = YearSummary(year)
    for rec in records:
        if item_period(rec)[0] != year:
            continue
        summary.salary += float(_field(rec, "base_salary") or 0)
        summary.expenses += float(_field(rec, "total_expenses") or 0)
    return summary
