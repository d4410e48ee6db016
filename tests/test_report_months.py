from __future__ import annotations

from datetime import date, datetime

import pytest

from report_months import InvalidInput, MonthRange, add_month, end_of_month, iter_months, parse_start_date


def fixed_now(value: datetime):
    return lambda: value


def test_end_of_month_regular_and_leap_february():
    assert end_of_month("2021-02-03") == date(2021, 2, 28)
    assert end_of_month("2020-02-03") == date(2020, 2, 29)
    assert end_of_month(date(2021, 12, 1)) == date(2021, 12, 31)


def test_add_month_keeps_day_of_month():
    assert add_month(date(2021, 1, 15)) == date(2021, 2, 15)
    assert add_month(date(2021, 12, 15)) == date(2022, 1, 15)


def test_add_month_clamps_overflowing_day():
    assert add_month(date(2021, 1, 31)) == date(2021, 2, 28)
    assert add_month(date(2020, 1, 31)) == date(2020, 2, 29)


def test_parse_start_date_accepts_iso_and_other_forms():
    assert parse_start_date("2021-01-15") == date(2021, 1, 15)
    assert parse_start_date(" 2021-01-15 ") == date(2021, 1, 15)
    assert parse_start_date("15 January 2021") == date(2021, 1, 15)


@pytest.mark.parametrize("value", ["", "   ", "not-a-date", "2021-13-45"])
def test_parse_start_date_rejects_garbage(value):
    with pytest.raises(InvalidInput):
        parse_start_date(value)


def test_iter_months_advances_one_month_at_a_time():
    months = list(iter_months("2021-01-15", now=fixed_now(datetime(2021, 3, 20, 12, 0))))
    assert months == [
        MonthRange(date(2021, 1, 15), date(2021, 1, 31)),
        MonthRange(date(2021, 2, 15), date(2021, 2, 28)),
        MonthRange(date(2021, 3, 15), date(2021, 3, 31)),
    ]


def test_iter_months_stops_when_start_reaches_now():
    # Midnight on the next start date is not strictly before now.
    months = list(iter_months(date(2021, 1, 15), now=fixed_now(datetime(2021, 2, 15, 0, 0))))
    assert [month.start for month in months] == [date(2021, 1, 15)]


def test_iter_months_is_empty_for_future_start():
    assert list(iter_months(date(2030, 1, 1), now=fixed_now(datetime(2021, 1, 1)))) == []


def test_iter_months_reevaluates_now_each_iteration():
    clock = iter([datetime(2022, 1, 1), datetime(2022, 1, 1), datetime(2021, 1, 1)])
    months = list(iter_months(date(2021, 1, 1), now=lambda: next(clock)))
    assert [month.start for month in months] == [date(2021, 1, 1), date(2021, 2, 1)]


@pytest.mark.parametrize("value", ["2021-01", "January 2021", "Jan 2021"])
def test_parse_start_date_partial_dates_start_on_first_day(value):
    assert parse_start_date(value) == date(2021, 1, 1)
