"""
Best-occurrence selection for a single transaction.
"""

from typing import Optional, Sequence

from bill_tracker.config.settings import BillMatchingSettings
from bill_tracker.matching.scoring import score_match
from bill_tracker.models.ledger import (
    BillOccurrence,
    MatchDetails,
    Transaction,
    TransactionBillMatch,
)


def meets_requirements(details: MatchDetails, settings: BillMatchingSettings) -> bool:
    """Check the hard requirements that are switched on in settings."""
    if settings.require_description_match and not details.description_match:
        return False
    if settings.require_amount_match and not details.amount_match:
        return False
    if settings.require_date_window and not details.within_window:
        return False
    return True


def match_transaction(
    transaction: Transaction,
    occurrences: Sequence[BillOccurrence],
    settings: BillMatchingSettings,
    transaction_index: Optional[int] = None,
) -> TransactionBillMatch:
    """
    Pick the highest-scoring occurrence that meets the requirements.

    Only a strictly greater score replaces the current best, so the first
    occurrence seen wins a tie. Without a qualifying occurrence the result
    has no matched_bill and a score of 0.
    """
    best_match = None
    best_score = 0
    best_details = MatchDetails()

    if transaction.is_expense:
        for occurrence in occurrences:
            result = score_match(transaction, occurrence, settings)
            if not meets_requirements(result.details, settings):
                continue
            if result.score > best_score:
                best_match = occurrence
                best_score = result.score
                best_details = result.details

    return TransactionBillMatch(
        transaction=transaction,
        transaction_index=transaction_index,
        matched_bill=best_match,
        match_score=best_score,
        match_details=best_details,
    )
