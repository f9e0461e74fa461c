"""
Occurrence generation.

Combines recurrence expansion with payment lookup to produce the bill
occurrences of one month, or of several months at once for
reconciliation.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from bill_tracker.matching.payments import find_payment
from bill_tracker.matching.recurrence import expand_occurrence_dates
from bill_tracker.models.ledger import (
    BillDefinition,
    BillOccurrence,
    BillSummary,
    Frequency,
    LedgerEntry,
)


def iter_bills(entries: Iterable[LedgerEntry]) -> Iterable[BillDefinition]:
    return (entry for entry in entries if isinstance(entry, BillDefinition))


def make_occurrence(bill: BillDefinition, occurrence_date: date) -> BillOccurrence:
    if bill.frequency == Frequency.WEEKLY or bill.due_date is None:
        due_day = occurrence_date.day
    else:
        due_day = bill.due_date.day

    return BillOccurrence(
        bill_id=bill.id,
        bill_name=bill.bill_name,
        bill_amount=bill.bill_amount,
        occurrence_date=occurrence_date,
        due_day=due_day,
        category=bill.category,
        source_description=bill.source_description,
        payment=find_payment(bill, occurrence_date),
        bill=bill,
    )


def generate_bill_occurrences(
    entries: Sequence[LedgerEntry],
    year: int,
    month: int,
) -> list[BillOccurrence]:
    """
    All bill occurrences falling in (year, month).

    Bills keep their ledger order; a bill with several occurrences in the
    month (weekly) yields them in date order.
    """
    occurrences = []
    for bill in iter_bills(entries):
        for occurrence_date in expand_occurrence_dates(bill, year, month):
            occurrences.append(make_occurrence(bill, occurrence_date))
    return occurrences


def generate_occurrence_pool(
    entries: Sequence[LedgerEntry],
    months: Iterable[tuple[int, int]],
) -> list[BillOccurrence]:
    """Occurrences of every listed month, each (bill, date) pair once."""
    pool = []
    seen: set[tuple[Optional[str], date]] = set()
    for year, month in months:
        for occurrence in generate_bill_occurrences(entries, year, month):
            if occurrence.key in seen:
                continue
            seen.add(occurrence.key)
            pool.append(occurrence)
    return pool


def summarize_bill_occurrences(occurrences: Sequence[BillOccurrence]) -> BillSummary:
    total = sum((o.bill_amount for o in occurrences), Decimal("0"))
    paid = sum((o.bill_amount for o in occurrences if o.is_paid), Decimal("0"))
    paid_count = sum(1 for o in occurrences if o.is_paid)

    return BillSummary(
        total_bills=len(occurrences),
        paid_bills=paid_count,
        unpaid_bills=len(occurrences) - paid_count,
        total_amount=total,
        paid_amount=paid,
        unpaid_amount=total - paid,
    )
