"""
Payment lookup and immutable payment-list helpers.

A bill records payments in two formats:
- payments: list of BillPayment (current format)
- paid_dates: flat list of occurrence dates (legacy format)

Legacy dates are treated as manual payments, since they were only ever
set by a user ticking "paid".
"""

from datetime import date
from typing import Callable, Optional

from bill_tracker.models.ledger import BillDefinition, BillPayment, Transaction


def find_payment(bill: BillDefinition, occurrence_date: date) -> Optional[BillPayment]:
    """Payment recorded for one occurrence of `bill`, or None if unpaid."""
    for payment in bill.payments or []:
        if payment.occurrence_date == occurrence_date:
            return payment

    if bill.paid_dates and occurrence_date in bill.paid_dates:
        return BillPayment(
            occurrence_date=occurrence_date,
            manually_marked=True,
        )

    return None


def is_payer(transaction: Transaction, bill_id: Optional[str], payment: BillPayment) -> bool:
    """Is `transaction` the linked transaction that made `payment` on `bill_id`?"""
    if payment.transaction_date is None:
        return False
    if transaction.matched_to_bill_id != bill_id or transaction.date != payment.transaction_date:
        return False
    return (
        payment.transaction_description is None
        or transaction.description == payment.transaction_description
    )


def upsert_payment(
    payments: Optional[list[BillPayment]],
    payment: BillPayment,
    overwrite_manual: bool = False,
) -> list[BillPayment]:
    """
    Return a new payment list with `payment` recorded for its occurrence.

    An existing manual payment for the same occurrence is kept unless
    overwrite_manual is set.
    """
    existing = list(payments or [])
    for index, current in enumerate(existing):
        if current.occurrence_date != payment.occurrence_date:
            continue
        if current.manually_marked and not overwrite_manual:
            return existing
        return existing[:index] + [payment] + existing[index + 1:]

    return existing + [payment]


def remove_payments(
    payments: Optional[list[BillPayment]],
    predicate: Callable[[BillPayment], bool],
) -> Optional[list[BillPayment]]:
    """
    Return the payments that do not satisfy `predicate`.

    An emptied list becomes None so the field is dropped from storage.
    """
    remaining = [p for p in payments or [] if not predicate(p)]
    return remaining or None


def without_paid_date(
    paid_dates: Optional[list[date]],
    occurrence_date: date,
) -> Optional[list[date]]:
    """Legacy paid_dates without `occurrence_date`; unchanged if it was absent."""
    if paid_dates is None or occurrence_date not in paid_dates:
        return paid_dates
    return [d for d in paid_dates if d != occurrence_date]
