"""
Working-day arithmetic shared by the entitlement and admission services.

A working day is any Monday-Friday. Public holidays are not modelled.
All ranges are inclusive on both ends.
"""
import calendar
from datetime import date, timedelta
from typing import Optional, Tuple

ONE_DAY = timedelta(days=1)


def is_weekend(day: date) -> bool:
    """Saturday or Sunday."""
    return day.weekday() >= 5


def count_working_days(start: date, end: date) -> int:
    """Weekdays between start and end, both included. 0 when start > end."""
    count = 0
    current = start
    while current <= end:
        if not is_weekend(current):
            count += 1
        current += ONE_DAY
    return count


def add_working_days(day: date, working_days: int) -> date:
    """
    Step forward one calendar day at a time until `working_days` weekdays
    have been passed. The starting day itself is never counted.
    """
    result = day
    added = 0
    while added < working_days:
        result += ONE_DAY
        if not is_weekend(result):
            added += 1
    return result


def count_working_days_within_range(start: date, end: date, range_start: date, range_end: date) -> int:
    """Working days of [start, end] that fall inside [range_start, range_end]."""
    effective_start = max(start, range_start)
    effective_end = min(end, range_end)
    if effective_end < effective_start:
        return 0
    return count_working_days(effective_start, effective_end)


def count_calendar_days(start: date, end: date) -> int:
    return (end - start).days + 1


def year_bounds(year: int) -> Tuple[date, date]:
    return date(year, 1, 1), date(year, 12, 31)


def add_months(day: date, months: int) -> date:
    # Day is clamped to the last day of the target month (Nov 30 + 3 months -> Feb 28/29)
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def has_completed_trial_period(hire_date: Optional[date], today: date, months: int = 3) -> bool:
    """No hire date counts as trial not completed."""
    if hire_date is None:
        return False
    return today >= add_months(hire_date, months)
