# ERP FinSight - Cost & Profitability engine for small-business ERPs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Period helpers for ERP FinSight.

This module defines the Period value object used by every period-scoped
calculation, the month keys ("YYYY-MM") used by salary adjustments and
bill payments, and the helpers that resolve predefined reporting periods
(this month, last 7/30/90 days, this year, all time) from CLI arguments.

The engine itself never looks at the clock: "today" and "current month"
are resolved here, at the presentation boundary, through `_today()`.
"""

import math
import re
from calendar import monthrange
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional, Union

import pandas as pd

_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")

DateLike = Union[date, datetime, pd.Timestamp]


@dataclass(frozen=True)
class Period:
    """Represents a reporting period with a human-readable label.

    Both bounds are inclusive when filtering records.
    """

    start: date
    end: date
    label: str


def _today() -> date:
    """Return today's date as a date object (isolated for easier testing)."""
    return datetime.today().date()


# ---------------------------------------------------------------------------
# Month keys
# ---------------------------------------------------------------------------


def is_valid_month(month: object) -> bool:
    """True if `month` is a "YYYY-MM" string with a month between 01 and 12."""
    if not isinstance(month, str):
        return False
    m = _MONTH_RE.match(month)
    return bool(m) and 1 <= int(m.group(2)) <= 12


def parse_month(month: str) -> tuple[int, int]:
    """
    Parse a "YYYY-MM" month key.

    Returns:
        (year, month) tuple.

    Raises:
        ValueError: if the key is not a valid month.
    """
    if not is_valid_month(month):
        raise ValueError(f"Invalid month {month!r}, expected YYYY-MM format.")
    year_str, month_str = month.split("-")
    return int(year_str), int(month_str)


def month_key(d: DateLike) -> str:
    """Month key ("YYYY-MM") of a date."""
    return f"{d.year:04d}-{d.month:02d}"


def current_month() -> str:
    """Month key of today's date."""
    return month_key(_today())


def shift_month(month: str, offset: int) -> str:
    """Return the month key `offset` months after (or before) `month`."""
    year, mon = parse_month(month)
    index = year * 12 + (mon - 1) + offset
    return f"{index // 12:04d}-{index % 12 + 1:02d}"


def period_for_month(month: str) -> Period:
    """Full calendar month, from the 1st to the last day."""
    year, mon = parse_month(month)
    last_day = monthrange(year, mon)[1]
    return Period(
        start=date(year, mon, 1),
        end=date(year, mon, last_day),
        label=month,
    )


# ---------------------------------------------------------------------------
# Period length
# ---------------------------------------------------------------------------


def days_in_period(period: Period) -> int:
    """
    Length of a period in days: ceil((end - start) / 1 day).

    A same-day period has a length of 0, and an inverted period (end
    before start) is clamped to 0.
    """
    delta = pd.Timestamp(period.end) - pd.Timestamp(period.start)
    days = math.ceil(delta.total_seconds() / 86400)
    return max(0, days)


# ---------------------------------------------------------------------------
# Predefined periods
# ---------------------------------------------------------------------------


def period_this_month() -> Period:
    """Current calendar month."""
    p = period_for_month(current_month())
    return Period(start=p.start, end=p.end, label="This month")


def period_last_days(days: int) -> Period:
    """Rolling window ending today and starting `days` days ago."""
    today = _today()
    return Period(
        start=today - timedelta(days=days),
        end=today,
        label=f"Last {days} days",
    )


def period_this_year() -> Period:
    """Current calendar year."""
    today = _today()
    return Period(
        start=date(today.year, 1, 1),
        end=date(today.year, 12, 31),
        label="This year",
    )


def period_all_time() -> Period:
    """Everything from the epoch until today."""
    return Period(start=date(1970, 1, 1), end=_today(), label="All time")


def determine_period_from_args(args) -> Period:
    """
    Determine the reporting period to use based on CLI args.

    Priority (highest to lowest):

        1. args.from_date / args.to_date (custom period)
        2. args.period (month, last-7, last-30, last-90, year, all)
        3. args.month (the whole calendar month)
        4. the current calendar month by default
    """
    from_raw: Optional[str] = getattr(args, "from_date", None)
    to_raw: Optional[str] = getattr(args, "to_date", None)

    if from_raw or to_raw:
        default = period_this_month()
        start = date.fromisoformat(from_raw) if from_raw else default.start
        end = date.fromisoformat(to_raw) if to_raw else default.end

        if end < start:
            raise ValueError("Custom period end date cannot be before start date.")

        label = f"Custom period ({start} → {end})"
        return Period(start=start, end=end, label=label)

    p = getattr(args, "period", None)
    if p:
        if p == "month":
            return period_this_month()
        if p == "last-7":
            return period_last_days(7)
        if p == "last-30":
            return period_last_days(30)
        if p == "last-90":
            return period_last_days(90)
        if p == "year":
            return period_this_year()
        if p == "all":
            return period_all_time()
        raise ValueError(f"Unknown period: {p!r}")

    month: Optional[str] = getattr(args, "month", None)
    if month:
        return period_for_month(month)

    return period_this_month()


def filter_by_period(df: pd.DataFrame, column: str, period: Period) -> pd.DataFrame:
    """
    Keep only the rows of `df` whose `column` date falls within the period.

    Parameters
    ----------
    df:
        DataFrame with a datetime64[ns] column named `column`.
    column:
        Name of the date column ('date', 'paid_date', 'created_at', ...).
    period:
        Period defining the [start, end] boundaries (inclusive).

    Returns
    -------
    pandas.DataFrame
        Filtered copy of `df`; the input is left untouched.
    """
    if df.empty:
        return df.copy()

    # Compared by calendar day so that the end date is included whole.
    day = df[column].dt.normalize()
    mask = (day >= pd.Timestamp(period.start).normalize()) & (
        day <= pd.Timestamp(period.end).normalize()
    )
    return df.loc[mask].copy()
