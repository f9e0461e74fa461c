"""
Recurrence expansion.

Turns a bill definition into the concrete dates it falls due within one
calendar month. Expansion works in both directions: a bill created today
still yields occurrences for earlier months, so transactions imported
from old statements can be matched retroactively.

All arithmetic is on datetime.date (civil dates, no time zones).
Months are 1-based.
"""

import calendar
from datetime import date, timedelta

from bill_tracker.models.ledger import BillDefinition, Frequency


WEEK = timedelta(days=7)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def clamp_day(year: int, month: int, day: int) -> date:
    """Date for `day` in the month, moved back to the last day if the month is shorter."""
    return date(year, month, min(day, days_in_month(year, month)))


def month_difference(start: date, year: int, month: int) -> int:
    """Signed number of months from start's month to (year, month)."""
    return (year - start.year) * 12 + (month - start.month)


def _weekly_dates(start: date, year: int, month: int) -> list[date]:
    month_start = date(year, month, 1)
    month_end = date(year, month, days_in_month(year, month))

    # First start + N weeks on or after the month start; N may be negative
    offset = (month_start - start).days
    weeks = -(-offset // 7)
    current = start + weeks * WEEK

    dates = []
    while current <= month_end:
        dates.append(current)
        current += WEEK
    return dates


def expand_occurrence_dates(bill: BillDefinition, year: int, month: int) -> list[date]:
    """
    Dates on which `bill` falls due in the given month, ascending.

    Rules:
    - one-time: the due date, if it is in the month
    - monthly: the due day of every month, before or after the start
    - quarterly: months a multiple of three away from the start month
    - yearly: the start month of every year
    - weekly: every date a whole number of weeks from the due date

    A bill without a due date has no occurrences.
    """
    start = bill.due_date
    if start is None:
        return []

    frequency = bill.frequency

    if frequency == Frequency.ONE_TIME:
        if start.year == year and start.month == month:
            return [start]
        return []

    if frequency == Frequency.MONTHLY:
        return [clamp_day(year, month, start.day)]

    if frequency == Frequency.QUARTERLY:
        if month_difference(start, year, month) % 3 == 0:
            return [clamp_day(year, month, start.day)]
        return []

    if frequency == Frequency.YEARLY:
        if month == start.month:
            return [clamp_day(year, month, start.day)]
        return []

    if frequency == Frequency.WEEKLY:
        return _weekly_dates(start, year, month)

    return []
