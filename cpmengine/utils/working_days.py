from datetime import date, datetime, timedelta


def is_working_day(day):
    """Return True for Monday to Friday."""
    return day.weekday() < 5


def to_date(value):
    """
    Coerce a date-like value into a datetime.date.

    Args:
        value: date, datetime or ISO formatted string ("2025-04-01")

    Returns:
        date: The calendar date

    Raises:
        ValueError: If the value cannot be interpreted as a date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        # Timestamps from the data service carry a time part
        if "T" in text:
            text = text.split("T", 1)[0]
        try:
            return date.fromisoformat(text)
        except ValueError:
            raise ValueError(f"Invalid date: {value!r}")
    raise ValueError(f"Invalid date: {value!r}")


def add_working_days(start, days, is_working_day=is_working_day):
    """
    Move a date forward (or backward for negative values) by working days.

    The walk steps one calendar day at a time and only counts days accepted
    by ``is_working_day``. Zero returns the date unchanged.

    Args:
        start: The date to move from
        days: Number of working days to move (may be negative)
        is_working_day: Predicate deciding whether a day counts

    Returns:
        date: The resulting date
    """
    current = to_date(start)
    days = int(days)
    step = timedelta(days=1 if days >= 0 else -1)
    remaining = abs(days)

    while remaining > 0:
        current += step
        if is_working_day(current):
            remaining -= 1

    return current


def working_days_between(start, end, is_working_day=is_working_day):
    """
    Count working days in the interval (start, end].

    When ``end`` is before ``start`` the count of (end, start] is returned
    negated, so that ``add_working_days(start, n)`` and this function agree
    in both directions.
    """
    start = to_date(start)
    end = to_date(end)

    if end < start:
        return -working_days_between(end, start, is_working_day)

    count = 0
    current = start
    while current < end:
        current += timedelta(days=1)
        if is_working_day(current):
            count += 1

    return count


def daterange(start, end):
    """Yield every calendar day from start to end, both inclusive."""
    current = to_date(start)
    end = to_date(end)
    while current <= end:
        yield current
        current += timedelta(days=1)
