"""Calendar helpers: capture labels and the ten-day timetable rotation."""

from datetime import date, timedelta

ROTATION_DAYS = 10


def today_str(today: date | None = None) -> str:
    """Local date as YYYY-MM-DD, used as the snapshot capture label."""
    return (today or date.today()).isoformat()


def sheet_name_for_date(target: date, cycle_start: date) -> str | None:
    """Name of the rotation sheet ("Day 1".."Day 10") in use on a date.

    Weekdays are counted from cycle_start through target inclusive; weekends
    have no sheet.

    Returns:
        "Day N", or None on Saturday/Sunday.
    """
    if target.weekday() >= 5:
        return None

    weekday_count = 0
    day = cycle_start
    while day <= target:
        if day.weekday() < 5:
            weekday_count += 1
        day += timedelta(days=1)

    return f"Day {(weekday_count - 1) % ROTATION_DAYS + 1}"
