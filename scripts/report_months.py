#!/usr/bin/env python3
"""Calendar month windows for monthly report exports."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Callable, Iterator, Union

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

DateLike = Union[date, str]


class InvalidInput(ValueError):
    pass


@dataclass(frozen=True)
class MonthRange:
    start: date
    end: date


def parse_start_date(value: str) -> date:
    text = (value or "").strip()
    if not text:
        raise InvalidInput("Missing start date. Use YYYY-MM-DD.")
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        # Missing fields resolve to the first of the month, not to today.
        return date_parser.parse(text, default=datetime(date.today().year, 1, 1)).date()
    except (ValueError, OverflowError) as exc:
        raise InvalidInput(f"Invalid date '{value}'. Use YYYY-MM-DD.") from exc


def _as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parse_start_date(value)


def end_of_month(value: DateLike) -> date:
    day = _as_date(value)
    last_day = calendar.monthrange(day.year, day.month)[1]
    return date(day.year, day.month, last_day)


def add_month(value: DateLike) -> date:
    # relativedelta clamps overflowing days: Jan 31 -> Feb 28/29.
    return _as_date(value) + relativedelta(months=1)


def iter_months(start: DateLike, now: Callable[[], datetime] = datetime.now) -> Iterator[MonthRange]:
    """Yield month windows from ``start`` until it reaches the current time.

    ``now`` is called before every window, so a long run stops advancing once
    it catches up with the wall clock.
    """
    current = _as_date(start)
    while datetime.combine(current, time.min) < now():
        yield MonthRange(start=current, end=end_of_month(current))
        current = add_month(current)
