"""
Reconciliation: automatic transaction-to-bill matching over a whole ledger.

The pass is monotonic and idempotent:
- it only links transactions that are not linked yet
- an occurrence whose payment is settled (manual, legacy, or an auto-match
  whose transaction is still linked) is never re-assigned, so manual
  payments are never touched
- an auto payment whose transaction has left the ledger is stale and may
  be replaced by a new auto-match
- a transaction whose best occurrence is settled gets nothing; it does
  not fall back to its second-best occurrence
- each occurrence receives at most one transaction per pass

Because scores depend only on fields reconciliation never writes, running
the pass again on its own output finds nothing new.
"""

from typing import Optional, Sequence

import structlog

from bill_tracker.config.settings import BillMatchingSettings
from bill_tracker.matching.matcher import match_transaction
from bill_tracker.matching.occurrences import generate_occurrence_pool
from bill_tracker.matching.payments import is_payer, upsert_payment
from bill_tracker.models.ledger import (
    BillDefinition,
    BillOccurrence,
    BillPayment,
    LedgerEntry,
    Transaction,
    TransactionBillMatch,
)


logger = structlog.get_logger(__name__)


def activity_months(entries: Sequence[LedgerEntry]) -> list[tuple[int, int]]:
    """Distinct (year, month) pairs of all non-bill transactions, ascending."""
    return sorted({
        (entry.date.year, entry.date.month)
        for entry in entries
        if isinstance(entry, Transaction)
    })


def reconciliation_months(
    entries: Sequence[LedgerEntry],
    year: int,
    month: int,
) -> list[tuple[int, int]]:
    """Months whose occurrences take part in a pass: every active month plus the viewed one."""
    return sorted(set(activity_months(entries)) | {(year, month)})


def is_settled(occurrence: BillOccurrence, entries: Sequence[LedgerEntry]) -> bool:
    """
    Is the occurrence's payment final for reconciliation?

    Manual payments always are. An auto payment is final only while the
    transaction that made it is still in the ledger and linked to the bill;
    once that transaction is gone the payment may be replaced.
    """
    payment = occurrence.payment
    if payment is None:
        return False
    if payment.manually_marked or payment.transaction_date is None:
        return True
    return any(
        isinstance(entry, Transaction) and is_payer(entry, occurrence.bill_id, payment)
        for entry in entries
    )


def find_auto_matches(
    entries: Sequence[LedgerEntry],
    year: int,
    month: int,
    settings: BillMatchingSettings,
) -> list[TransactionBillMatch]:
    """
    Matches a reconciliation pass would apply, without applying them.

    Returned in ledger order of the matched transactions.
    """
    pool = generate_occurrence_pool(entries, reconciliation_months(entries, year, month))

    winners: dict[tuple, TransactionBillMatch] = {}
    for index, entry in enumerate(entries):
        if not isinstance(entry, Transaction) or entry.is_matched:
            continue

        match = match_transaction(entry, pool, settings, transaction_index=index)
        if not match.is_match or match.match_score < settings.minimum_score:
            continue

        occurrence = match.matched_bill
        if occurrence.bill_id is None or is_settled(occurrence, entries):
            continue

        current = winners.get(occurrence.key)
        if current is None or match.match_score > current.match_score:
            winners[occurrence.key] = match

    return sorted(winners.values(), key=lambda m: m.transaction_index)


def auto_payment(transaction: Transaction, occurrence: BillOccurrence) -> BillPayment:
    return BillPayment(
        occurrence_date=occurrence.occurrence_date,
        transaction_date=transaction.date,
        transaction_amount=transaction.amount,
        transaction_description=transaction.description,
        manually_marked=False,
    )


def apply_matches(
    entries: Sequence[LedgerEntry],
    matches: Sequence[TransactionBillMatch],
) -> list[LedgerEntry]:
    """Write match links and auto payments back into a new ledger list."""
    links: dict[int, BillOccurrence] = {}
    payments_by_bill: dict[Optional[str], list[BillPayment]] = {}
    for match in matches:
        links[match.transaction_index] = match.matched_bill
        payments_by_bill.setdefault(match.matched_bill.bill_id, []).append(
            auto_payment(match.transaction, match.matched_bill)
        )

    updated = []
    for index, entry in enumerate(entries):
        if index in links:
            entry = entry.model_copy(update={
                "matched_to_bill_id": links[index].bill_id,
                "hidden_as_bill_payment": True,
            })
        elif isinstance(entry, BillDefinition) and entry.id in payments_by_bill:
            payments = entry.payments
            for payment in payments_by_bill.pop(entry.id):
                payments = upsert_payment(payments, payment)
            entry = entry.model_copy(update={"payments": payments})
        updated.append(entry)
    return updated


def reconcile(
    entries: Sequence[LedgerEntry],
    year: int,
    month: int,
    settings: BillMatchingSettings,
) -> list[LedgerEntry]:
    """
    Auto-match every unlinked transaction against the bills and return the
    updated ledger.

    Occurrences are generated for every month that has transactions, not
    just (year, month), so old transactions can still find their bill.
    """
    matches = find_auto_matches(entries, year, month, settings)

    logger.debug(
        "reconcile_completed",
        year=year,
        month=month,
        entries=len(entries),
        matches=len(matches),
    )

    if not matches:
        return list(entries)
    return apply_matches(entries, matches)
