"""
Match scoring.

Scores one expense transaction against one bill occurrence from three
independent signals:

    description   +40   names overlap
    amount        +30   within the amount tolerance (+10 if exact to the cent)
    date          +0..30  within the date window, 3 points lost per day

No signal is a hard gate here; the matcher applies the requirements
configured in BillMatchingSettings.
"""

from decimal import Decimal
from typing import Optional

from bill_tracker.config.settings import BillMatchingSettings
from bill_tracker.models.ledger import (
    BillOccurrence,
    MatchDetails,
    MatchScore,
    Transaction,
)


DESCRIPTION_POINTS = 40
AMOUNT_POINTS = 30
EXACT_AMOUNT_BONUS = 10
MAX_DATE_POINTS = 30
DATE_DECAY_PER_DAY = 3

# Below this a pair is not worth showing even as a suggestion
SUGGESTION_MIN_SCORE = 30

ONE_CENT = Decimal("0.01")
MIN_TOKEN_LENGTH = 4


def _significant_words(text: str) -> list[str]:
    return [word for word in text.split() if len(word) >= MIN_TOKEN_LENGTH]


def description_matches(
    transaction: Transaction,
    bill_name: str,
    source_description: Optional[str] = None,
) -> bool:
    """
    Does the transaction look like a payment of the named bill?

    True when the display name (merchant name, else description) and the
    bill name are equal or one contains the other, when the raw description
    equals the description the bill was created from, or when the two names
    share a word longer than three characters.
    """
    display = transaction.display_name.strip().lower()
    name = bill_name.strip().lower()

    if display and name:
        if display == name or name in display or display in name:
            return True

    if source_description:
        if transaction.description.strip().lower() == source_description.strip().lower():
            return True

    bill_words = _significant_words(name)
    transaction_words = _significant_words(display)
    return any(
        bill_word in transaction_word or transaction_word in bill_word
        for bill_word in bill_words
        for transaction_word in transaction_words
    )


def amount_difference(transaction: Transaction, bill_amount: Decimal) -> Decimal:
    return abs(abs(transaction.amount) - bill_amount)


def date_points(days: int) -> int:
    return max(0, MAX_DATE_POINTS - DATE_DECAY_PER_DAY * days)


def score_match(
    transaction: Transaction,
    occurrence: BillOccurrence,
    settings: BillMatchingSettings,
) -> MatchScore:
    """Score `transaction` against `occurrence`. Income always scores 0."""
    if not transaction.is_expense:
        return MatchScore(score=0)

    score = 0

    description_match = description_matches(
        transaction,
        occurrence.bill_name,
        occurrence.source_description,
    )
    if description_match:
        score += DESCRIPTION_POINTS

    difference = amount_difference(transaction, occurrence.bill_amount)
    amount_match = difference <= settings.amount_tolerance
    if amount_match:
        score += AMOUNT_POINTS
        if difference < ONE_CENT:
            score += EXACT_AMOUNT_BONUS

    days = abs((transaction.date - occurrence.occurrence_date).days)
    within_window = days <= settings.date_window_days
    if within_window:
        score += date_points(days)

    return MatchScore(
        score=score,
        details=MatchDetails(
            description_match=description_match,
            amount_match=amount_match,
            date_proximity=days,
            within_window=within_window,
        ),
    )
