"""UTC datetime utilities."""

from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-aware datetime.

    This function should be used instead of datetime.now() or datetime.utcnow()
    to ensure all timestamps are timezone-aware and stored in UTC.

    Returns:
        Timezone-aware datetime in UTC

    Example:
        >>> now = utc_now()
        >>> now.tzinfo
        datetime.timezone.utc
        >>> now.tzinfo is not None
        True
    """
    return datetime.now(timezone.utc)


def utc_today() -> date:
    """Return the current UTC calendar date."""
    return utc_now().date()


def nights_between(check_in: date, check_out: date) -> int:
    """
    Number of nights in the half-open stay [check_in, check_out).

    Example:
        >>> nights_between(date(2025, 1, 1), date(2025, 1, 3))
        2
    """
    return (check_out - check_in).days


def overlap_nights(start: date, end: date, window_start: date, window_end: date) -> int:
    """Nights of [start, end) that fall inside [window_start, window_end)."""
    lo = max(start, window_start)
    hi = min(end, window_end)
    return max((hi - lo).days, 0)
