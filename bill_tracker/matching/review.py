"""
Read-only views used by the reconciliation screen.

- unmatched expenses of a month
- unpaid occurrences of a month
- low-confidence suggestions (scored, but below the auto-match threshold)
- potential payers for one unpaid occurrence

Plus conversion of a transaction into a new bill definition.
"""

from decimal import Decimal
from typing import Iterable, Optional, Sequence
from uuid import uuid4

from bill_tracker.config.settings import BillMatchingSettings
from bill_tracker.matching.matcher import match_transaction
from bill_tracker.matching.occurrences import (
    generate_bill_occurrences,
    generate_occurrence_pool,
)
from bill_tracker.matching.reconcile import reconciliation_months
from bill_tracker.matching.scoring import SUGGESTION_MIN_SCORE, amount_difference
from bill_tracker.models.ledger import (
    BillDefinition,
    BillOccurrence,
    Frequency,
    LedgerEntry,
    Transaction,
    TransactionBillMatch,
)


def _in_month(entry: LedgerEntry, year: int, month: int) -> bool:
    return entry.date.year == year and entry.date.month == month


def _is_open_expense(entry: LedgerEntry) -> bool:
    return isinstance(entry, Transaction) and entry.is_expense and not entry.is_matched


def get_unmatched_expense_transactions(
    entries: Sequence[LedgerEntry],
    year: int,
    month: int,
) -> list[Transaction]:
    """Expenses of the month that are not linked to any bill."""
    return [
        entry for entry in entries
        if _is_open_expense(entry) and _in_month(entry, year, month)
    ]


def get_unpaid_bill_occurrences(
    entries: Sequence[LedgerEntry],
    year: int,
    month: int,
) -> list[BillOccurrence]:
    return [
        occurrence
        for occurrence in generate_bill_occurrences(entries, year, month)
        if not occurrence.is_paid
    ]


def get_suggested_matches(
    entries: Sequence[LedgerEntry],
    year: int,
    month: int,
    settings: BillMatchingSettings,
    floor: int = SUGGESTION_MIN_SCORE,
) -> list[TransactionBillMatch]:
    """
    Matches worth showing to the user but not good enough to auto-apply.

    Each unmatched expense of the month is scored against every unpaid
    occurrence of the reconciliation window; its best match is suggested
    when floor <= score < settings.minimum_score.
    """
    pool = [
        occurrence
        for occurrence in generate_occurrence_pool(
            entries,
            reconciliation_months(entries, year, month),
        )
        if not occurrence.is_paid
    ]

    suggestions = []
    for index, entry in enumerate(entries):
        if not _is_open_expense(entry) or not _in_month(entry, year, month):
            continue
        match = match_transaction(entry, pool, settings, transaction_index=index)
        if match.is_match and floor <= match.match_score < settings.minimum_score:
            suggestions.append(match)
    return suggestions


def find_candidate_transactions(
    occurrence: BillOccurrence,
    entries: Iterable[LedgerEntry],
    settings: BillMatchingSettings,
) -> list[Transaction]:
    """
    Unmatched expenses that could have paid `occurrence`.

    The amount check is twice as lenient as for automatic matching.
    """
    limit = settings.amount_tolerance * 2
    return [
        entry for entry in entries
        if _is_open_expense(entry)
        and amount_difference(entry, occurrence.bill_amount) <= limit
    ]


def create_bill_from_transaction(
    transaction: Transaction,
    frequency: Frequency = Frequency.MONTHLY,
    bill_id: Optional[str] = None,
) -> BillDefinition:
    """
    Turn a transaction into a bill definition due on the transaction date.

    The transaction's raw description is kept as source_description so
    future payments from the same merchant match on description.
    """
    amount = abs(transaction.amount)
    name = transaction.display_name

    return BillDefinition(
        id=bill_id or f"bill-{uuid4().hex[:12]}",
        date=transaction.date,
        description=name,
        amount=-amount,
        category=transaction.category,
        memo=transaction.memo,
        bill_name=name,
        bill_amount=amount,
        due_date=transaction.date,
        frequency=frequency,
        source_description=transaction.description,
    )
