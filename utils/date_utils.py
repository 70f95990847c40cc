"""
utils/date_utils.py

Purpose: Business cycle and date helpers

- Business cycle windows (5th of one month to the 4th of the next)
- Calendar month windows for reports
- Lenient parsing of the date shapes stored on documents
- Fail-open date range filter
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple, List, Dict, Any

DEFAULT_CYCLE_START_DAY = 5

# First cycle listed in the cycle picker
CYCLES_EPOCH = datetime(2024, 1, 1)


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    """Moves (year, month) by delta months, month is 1-12."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def get_business_cycle(
    date: Optional[datetime] = None,
    start_day: int = DEFAULT_CYCLE_START_DAY
) -> Tuple[datetime, datetime]:
    """
    Returns the business cycle window containing the given date.

    On or after the start day the cycle runs from this month's start day
    00:00:00 to the day before next month's start day 23:59:59. Before the
    start day the previous month's cycle applies.

    Args:
        date: Reference date (defaults to now, UTC)
        start_day: Day of month a cycle opens on

    Returns:
        (start_date, end_date)
    """
    date = date or datetime.utcnow()

    if date.day < start_day:
        year, month = shift_month(date.year, date.month, -1)
    else:
        year, month = date.year, date.month

    start_date = datetime(year, month, start_day, 0, 0, 0)
    next_year, next_month = shift_month(year, month, 1)
    end_date = datetime(next_year, next_month, start_day, 0, 0, 0) - timedelta(seconds=1)
    return start_date, end_date


def get_business_cycle_label(start_date: datetime) -> str:
    """Labels a cycle by the month it opens in, e.g. 'Feb 2025'."""
    return start_date.strftime("%b %Y")


def get_all_business_cycles(
    from_date: datetime = CYCLES_EPOCH,
    now: Optional[datetime] = None,
    start_day: int = DEFAULT_CYCLE_START_DAY
) -> List[Dict[str, str]]:
    """
    Lists every cycle that has opened since from_date, newest first.
    """
    now = now or datetime.utcnow()
    cycles = []
    year, month = from_date.year, from_date.month
    current = datetime(year, month, start_day)

    while current <= now:
        start, end = get_business_cycle(current, start_day)
        cycles.append({
            "label": get_business_cycle_label(start),
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
        })
        year, month = shift_month(year, month, 1)
        current = datetime(year, month, start_day)

    cycles.reverse()
    return cycles


def get_calendar_month_range(year: int, month: int) -> Tuple[datetime, datetime]:
    """
    Returns the first and last instant of a calendar month (month is 1-12).
    """
    start = datetime(year, month, 1)
    next_year, next_month = shift_month(year, month, 1)
    end = datetime(next_year, next_month, 1) - timedelta(microseconds=1)
    return start, end


def parse_document_date(value: Any) -> Optional[datetime]:
    """
    Parses the date shapes found on stored documents into a naive UTC datetime.

    Accepts datetime objects, ISO strings (with or without time, 'Z' suffix
    allowed) and {'seconds': n} timestamp dicts. Anything else yields None.
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, dict) and "seconds" in value:
        try:
            return datetime.utcfromtimestamp(float(value["seconds"]))
        except (TypeError, ValueError, OverflowError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def get_document_date(doc: Dict[str, Any]) -> Optional[datetime]:
    """Reads the first parseable of timestamp, date, created_at."""
    for key in ("timestamp", "date", "created_at"):
        parsed = parse_document_date(doc.get(key))
        if parsed is not None:
            return parsed
    return None


def is_in_date_range(doc: Dict[str, Any], start: Optional[datetime] = None, end: Optional[datetime] = None) -> bool:
    """
    Checks whether a document falls inside [start, end]. Either bound may
    be omitted, and aware bounds are compared as naive UTC.

    Documents without a parseable date are kept (fail-open) so that
    malformed legacy records still show up in listings.
    """
    doc_date = get_document_date(doc)
    if doc_date is None:
        return True
    start, end = parse_document_date(start), parse_document_date(end)
    if start is not None and doc_date < start:
        return False
    if end is not None and doc_date > end:
        return False
    return True


def current_period(date: Optional[datetime] = None) -> str:
    """Returns the YYYY-MM period key for a date (defaults to now)."""
    date = date or datetime.utcnow()
    return date.strftime("%Y-%m")


def months_back(date: datetime, months: int) -> datetime:
    """First day of the month `months` before the given date."""
    year, month = shift_month(date.year, date.month, -months)
    return datetime(year, month, 1)
