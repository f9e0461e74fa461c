"""Shared fixtures: matching settings and ledger entry factories."""

from datetime import date
from decimal import Decimal

import pytest

from bill_tracker.config import BillMatchingSettings
from bill_tracker.models.ledger import BillDefinition, Frequency, Transaction


@pytest.fixture
def settings() -> BillMatchingSettings:
    """Strict settings: every signal required, 1.00 tolerance, 7-day window."""
    return BillMatchingSettings(
        amount_tolerance=Decimal("1"),
        date_window_days=7,
        minimum_score=60,
        require_description_match=True,
        require_amount_match=True,
        require_date_window=True,
    )


@pytest.fixture
def make_bill():
    def _make(
        bill_id="bill-netflix",
        name="Netflix",
        amount="15.49",
        due_date="2024-01-05",
        frequency=Frequency.MONTHLY,
        **extra,
    ) -> BillDefinition:
        due = date.fromisoformat(due_date) if due_date else None
        extra.setdefault("date", due or date(2024, 1, 1))
        extra.setdefault("category", "Subscriptions")
        return BillDefinition(
            id=bill_id,
            bill_name=name,
            bill_amount=Decimal(amount),
            due_date=due,
            frequency=frequency,
            **extra,
        )
    return _make


@pytest.fixture
def make_transaction():
    def _make(
        description="NETFLIX.COM",
        amount="-15.49",
        on="2024-02-06",
        transaction_id=None,
        **extra,
    ) -> Transaction:
        return Transaction(
            id=transaction_id,
            date=date.fromisoformat(on),
            description=description,
            amount=Decimal(amount),
            **extra,
        )
    return _make
