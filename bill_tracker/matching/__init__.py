"""
Bill Matching Package

Recurrence expansion, payment lookup, scoring, matching and
reconciliation over a ledger of transactions and bill definitions.
"""

from bill_tracker.matching.errors import (
    AmountMismatchError,
    BillNotFoundError,
    MatchingError,
    NotFoundError,
    TransactionNotFoundError,
)
from bill_tracker.matching.manual import (
    manual_match,
    toggle_occurrence_paid,
    unmatch,
)
from bill_tracker.matching.matcher import match_transaction, meets_requirements
from bill_tracker.matching.occurrences import (
    generate_bill_occurrences,
    generate_occurrence_pool,
    summarize_bill_occurrences,
)
from bill_tracker.matching.payments import find_payment, upsert_payment
from bill_tracker.matching.reconcile import find_auto_matches, reconcile
from bill_tracker.matching.recurrence import expand_occurrence_dates
from bill_tracker.matching.review import (
    create_bill_from_transaction,
    find_candidate_transactions,
    get_suggested_matches,
    get_unmatched_expense_transactions,
    get_unpaid_bill_occurrences,
)
from bill_tracker.matching.scoring import (
    SUGGESTION_MIN_SCORE,
    description_matches,
    score_match,
)

__all__ = [
    # Errors
    "AmountMismatchError",
    "BillNotFoundError",
    "MatchingError",
    "NotFoundError",
    "TransactionNotFoundError",
    # Occurrences
    "expand_occurrence_dates",
    "find_payment",
    "generate_bill_occurrences",
    "generate_occurrence_pool",
    "summarize_bill_occurrences",
    "upsert_payment",
    # Scoring and matching
    "SUGGESTION_MIN_SCORE",
    "description_matches",
    "match_transaction",
    "meets_requirements",
    "score_match",
    # Reconciliation
    "find_auto_matches",
    "reconcile",
    # Manual operations
    "manual_match",
    "toggle_occurrence_paid",
    "unmatch",
    # Review
    "create_bill_from_transaction",
    "find_candidate_transactions",
    "get_suggested_matches",
    "get_unmatched_expense_transactions",
    "get_unpaid_bill_occurrences",
]
