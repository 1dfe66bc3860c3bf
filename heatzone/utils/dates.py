"""Date utilities for archive queries and scene filtering."""
from datetime import date, datetime, timedelta, timezone

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from heatzone.errors import InvalidConfiguration


def parse_date(value):
    """
    Parse a date-like value into a timezone-aware UTC datetime.

    Args:
        value: datetime, date, or string (YYYY-MM-DD or ISO 8601)

    Returns:
        datetime in UTC
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        try:
            dt = date_parser.isoparse(value)
        except ValueError:
            raise InvalidConfiguration(f"Invalid date: {value!r}")
    else:
        raise InvalidConfiguration(f"Invalid date: {value!r}")

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def validate_date_range(start, end):
    """
    Parse and check a half-open [start, end) interval.

    Returns:
        tuple: (start_dt, end_dt)
    """
    start_dt = parse_date(start)
    end_dt = parse_date(end)
    if start_dt >= end_dt:
        raise InvalidConfiguration(f"Date range is empty: {start_dt.date()} to {end_dt.date()}")
    return start_dt, end_dt


def subdivide_date_range(start, end, max_months=12):
    """
    Subdivide a half-open date range into chunks of max_months or less.

    Args:
        start: Start of the range (inclusive)
        end: End of the range (exclusive)
        max_months: Maximum number of months per chunk

    Returns:
        List of (chunk_start, chunk_end) datetime tuples, end exclusive
    """
    start_dt, end_dt = validate_date_range(start, end)

    chunks = []
    current_start = start_dt

    while current_start < end_dt:
        chunk_end = current_start + relativedelta(months=max_months)
        if chunk_end > end_dt:
            chunk_end = end_dt

        chunks.append((current_start, chunk_end))
        current_start = chunk_end

    return chunks


def to_stac_interval(start, end):
    """
    Format a half-open range as a STAC datetime interval.

    STAC intervals are inclusive at both ends, so the end is pulled back by one second.
    """
    start_dt, end_dt = validate_date_range(start, end)
    last = end_dt - timedelta(seconds=1)
    return f"{start_dt.strftime('%Y-%m-%dT%H:%M:%SZ')}/{last.strftime('%Y-%m-%dT%H:%M:%SZ')}"
