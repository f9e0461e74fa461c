"""
Errors raised by the manual matching operations.

Scoring, expansion and reconciliation are total functions and never raise.
Only the user-driven operations (manual match, unmatch, toggling paid)
can fail, and they fail before touching the ledger.
"""

from decimal import Decimal


class MatchingError(Exception):
    """Base exception for bill matching errors."""
    pass


class NotFoundError(MatchingError):
    """A referenced ledger entry does not exist."""
    pass


class TransactionNotFoundError(NotFoundError):
    """No non-bill transaction has the requested id."""

    def __init__(self, transaction_id: str):
        self.transaction_id = transaction_id
        super().__init__(f"Transaction not found: {transaction_id}")


class BillNotFoundError(NotFoundError):
    """No bill definition has the requested id."""

    def __init__(self, bill_id: str):
        self.bill_id = bill_id
        super().__init__(f"Bill not found: {bill_id}")


class AmountMismatchError(MatchingError):
    """The transaction amount is too far from the bill amount to link them."""

    def __init__(self, difference: Decimal, tolerance: Decimal):
        self.difference = difference
        self.tolerance = tolerance
        super().__init__(
            f"Amount mismatch: transaction differs from the bill by "
            f"{difference:.2f}, which exceeds the tolerance of {tolerance:.2f}"
        )
