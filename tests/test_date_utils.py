from datetime import datetime, timedelta, timezone

from utils.date_utils import (
    get_business_cycle, get_calendar_month_range, parse_document_date,
    get_document_date, is_in_date_range, shift_month, months_back, current_period,
)


def test_cycle_on_start_day_opens_new_cycle():
    start, end = get_business_cycle(datetime(2025, 3, 5, 0, 0, 1))
    assert start == datetime(2025, 3, 5)
    assert end == datetime(2025, 4, 4, 23, 59, 59)


def test_cycle_before_start_day_belongs_to_previous_month():
    start, end = get_business_cycle(datetime(2025, 1, 4, 23, 59))
    assert start == datetime(2024, 12, 5)
    assert end == datetime(2025, 1, 4, 23, 59, 59)


def test_cycle_custom_start_day():
    start, _ = get_business_cycle(datetime(2025, 6, 20), start_day=25)
    assert start == datetime(2025, 5, 25)


def test_calendar_month_range_december():
    start, end = get_calendar_month_range(2024, 12)
    assert start == datetime(2024, 12, 1)
    assert end.year == 2024 and end.month == 12 and end.day == 31


def test_shift_month_wraps_years():
    assert shift_month(2025, 1, -1) == (2024, 12)
    assert shift_month(2024, 11, 3) == (2025, 2)
    assert months_back(datetime(2025, 2, 17), 12) == datetime(2024, 2, 1)


def test_parse_document_date_shapes():
    assert parse_document_date("2025-02-10") == datetime(2025, 2, 10)
    assert parse_document_date("2025-02-10T08:00:00Z") == datetime(2025, 2, 10, 8)
    assert parse_document_date("2025-02-10T10:00:00+02:00") == datetime(2025, 2, 10, 8)
    assert parse_document_date({"seconds": 0}) == datetime(1970, 1, 1)
    assert parse_document_date("yesterday") is None
    assert parse_document_date(None) is None


def test_document_date_prefers_timestamp():
    doc = {"date": "2025-01-01", "timestamp": "2025-02-01"}
    assert get_document_date(doc) == datetime(2025, 2, 1)


def test_date_range_fails_open():
    start, end = datetime(2025, 1, 1), datetime(2025, 1, 31)
    assert is_in_date_range({"timestamp": "2025-01-15"}, start, end)
    assert not is_in_date_range({"timestamp": "2025-02-15"}, start, end)
    assert is_in_date_range({"timestamp": "not a date"}, start, end)
    assert is_in_date_range({}, start, end)



def test_date_range_with_aware_or_missing_bounds():
    doc = {"timestamp": "2025-01-15T10:00:00"}
    aware_start = datetime(2025, 1, 15, 12, 0, tzinfo=timezone(timedelta(hours=2)))

    assert is_in_date_range(doc, start=aware_start)
    assert not is_in_date_range(doc, start=datetime(2025, 1, 16))
    assert is_in_date_range(doc, end=datetime(2025, 1, 16))
    assert not is_in_date_range(doc, end=datetime(2025, 1, 1, tzinfo=timezone.utc))
    assert is_in_date_range(doc)


def test_current_period():
    assert current_period(datetime(2025, 7, 3)) == "2025-07"
