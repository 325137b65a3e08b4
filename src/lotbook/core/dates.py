"""Calendar helpers for coupon schedules."""

from __future__ import annotations

from datetime import date, datetime

from dateutil.relativedelta import relativedelta


def add_months(d: date, months: int) -> date:
    """Shift ``d`` by whole calendar months, clamping to the last day of short months.

    >>> add_months(date(2024, 1, 31), 1)
    datetime.date(2024, 2, 29)
    """
    return d + relativedelta(months=months)


def first_of_month(d: date) -> date:
    return d.replace(day=1)


def days_between(d0: date, d1: date) -> int:
    """Signed number of days from ``d0`` to ``d1``."""
    return (d1 - d0).days


def coerce_date(value: object, field_name: str = "date") -> date:
    """Accept a date, a datetime or an ISO ``YYYY-MM-DD`` string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError as e:
            raise ValueError(f"{field_name} is not an ISO date: {value!r}") from e
    raise ValueError(f"{field_name} must be a date, got {type(value).__name__}")
