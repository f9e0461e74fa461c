"""
User-driven match operations: manual match, unmatch and toggling paid.

A manual action always wins: it overwrites whatever payment the
occurrence had, and reconciliation never overwrites it afterwards.
All operations validate first and return a new ledger list; on error the
input ledger is left exactly as it was.
"""

from datetime import date
from decimal import Decimal
from typing import Sequence, Union

from bill_tracker.matching.errors import (
    AmountMismatchError,
    BillNotFoundError,
    TransactionNotFoundError,
)
from bill_tracker.matching.payments import (
    find_payment,
    is_payer,
    remove_payments,
    upsert_payment,
    without_paid_date,
)
from bill_tracker.matching.scoring import amount_difference
from bill_tracker.models.ledger import (
    BillDefinition,
    BillPayment,
    LedgerEntry,
    Transaction,
)


DEFAULT_MANUAL_TOLERANCE = Decimal("5")

_UNLINKED = {"matched_to_bill_id": None, "hidden_as_bill_payment": None}


def as_date(value: Union[date, str]) -> date:
    """Accept ISO YYYY-MM-DD strings as well as dates."""
    if isinstance(value, str):
        return date.fromisoformat(value)
    return value


def find_transaction(
    entries: Sequence[LedgerEntry],
    transaction_id: str,
) -> tuple[int, Transaction]:
    for index, entry in enumerate(entries):
        if isinstance(entry, Transaction) and entry.transaction_key == transaction_id:
            return index, entry
    raise TransactionNotFoundError(transaction_id)


def find_bill(
    entries: Sequence[LedgerEntry],
    bill_id: str,
) -> tuple[int, BillDefinition]:
    for index, entry in enumerate(entries):
        if isinstance(entry, BillDefinition) and entry.id == bill_id:
            return index, entry
    raise BillNotFoundError(bill_id)


def _unlink(entries: list[LedgerEntry], index: int) -> list[LedgerEntry]:
    """Strip a transaction's link and drop the payments it made on its bill."""
    transaction = entries[index]
    bill_id = transaction.matched_to_bill_id

    updated = list(entries)
    updated[index] = transaction.model_copy(update=_UNLINKED)

    for position, entry in enumerate(updated):
        if isinstance(entry, BillDefinition) and entry.id == bill_id:
            updated[position] = entry.model_copy(update={
                "payments": remove_payments(
                    entry.payments,
                    lambda p: is_payer(transaction, bill_id, p),
                ),
            })
    return updated


def _release_payer(
    entries: list[LedgerEntry],
    bill_id: str,
    payment: BillPayment,
    keep_index: int = -1,
) -> list[LedgerEntry]:
    """Unlink the transaction(s) that made `payment`, once it is gone from the bill."""
    if payment.transaction_date is None:
        return entries

    updated = list(entries)
    for index, entry in enumerate(updated):
        if index == keep_index or not isinstance(entry, Transaction):
            continue
        if is_payer(entry, bill_id, payment):
            updated[index] = entry.model_copy(update=_UNLINKED)
    return updated


def manual_match(
    entries: Sequence[LedgerEntry],
    transaction_id: str,
    bill_id: str,
    occurrence_date: Union[date, str],
    tolerance: Union[Decimal, int, float, str] = DEFAULT_MANUAL_TOLERANCE,
) -> list[LedgerEntry]:
    """
    Link a transaction to one bill occurrence on the user's say-so.

    Raises:
        TransactionNotFoundError / BillNotFoundError: unknown id
        AmountMismatchError: |amount| differs from the bill amount by more
            than `tolerance`
    """
    occurrence_date = as_date(occurrence_date)
    tolerance = Decimal(str(tolerance))

    transaction_index, transaction = find_transaction(entries, transaction_id)
    bill_index, bill = find_bill(entries, bill_id)

    difference = amount_difference(transaction, bill.bill_amount)
    if difference > tolerance:
        raise AmountMismatchError(difference, tolerance)

    updated = list(entries)
    if transaction.is_matched:
        updated = _unlink(updated, transaction_index)
        bill = updated[bill_index]

    displaced = next(
        (p for p in bill.payments or [] if p.occurrence_date == occurrence_date),
        None,
    )

    payment = BillPayment(
        occurrence_date=occurrence_date,
        transaction_date=transaction.date,
        transaction_amount=transaction.amount,
        transaction_description=transaction.description,
        manually_marked=True,
    )
    updated[bill_index] = bill.model_copy(update={
        "payments": upsert_payment(bill.payments, payment, overwrite_manual=True),
    })

    if displaced is not None:
        updated = _release_payer(updated, bill_id, displaced, keep_index=transaction_index)

    updated[transaction_index] = transaction.model_copy(update={
        "matched_to_bill_id": bill_id,
        "hidden_as_bill_payment": True,
    })
    return updated


def unmatch(
    entries: Sequence[LedgerEntry],
    transaction_id: str,
) -> list[LedgerEntry]:
    """
    Undo a match (manual or automatic).

    The payment this transaction made on the linked bill (same transaction
    date, and same description when the payment recorded one) is removed
    with it. A transaction that is not linked is left alone.

    Raises:
        TransactionNotFoundError: unknown id
    """
    index, transaction = find_transaction(entries, transaction_id)
    if not transaction.is_matched:
        return list(entries)
    return _unlink(list(entries), index)


def toggle_occurrence_paid(
    entries: Sequence[LedgerEntry],
    bill_id: str,
    occurrence_date: Union[date, str],
) -> list[LedgerEntry]:
    """
    Flip the paid state of one occurrence.

    Unpaid -> a manual payment with no transaction attached.
    Paid -> the payment (and any legacy paid date) is removed, and the
    transaction that made it, if any, is unlinked.

    Raises:
        BillNotFoundError: unknown bill id
    """
    occurrence_date = as_date(occurrence_date)
    index, bill = find_bill(entries, bill_id)
    payment = find_payment(bill, occurrence_date)

    updated = list(entries)
    if payment is None:
        updated[index] = bill.model_copy(update={
            "payments": upsert_payment(
                bill.payments,
                BillPayment(occurrence_date=occurrence_date, manually_marked=True),
                overwrite_manual=True,
            ),
        })
        return updated

    updated[index] = bill.model_copy(update={
        "payments": remove_payments(
            bill.payments,
            lambda p: p.occurrence_date == occurrence_date,
        ),
        "paid_dates": without_paid_date(bill.paid_dates, occurrence_date),
    })
    return _release_payer(updated, bill_id, payment)
