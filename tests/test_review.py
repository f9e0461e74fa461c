"""
Tests for the review queries and bill creation.
"""

import pytest
from datetime import date
from decimal import Decimal

from bill_tracker.config import BillMatchingSettings
from bill_tracker.matching import (
    create_bill_from_transaction,
    find_candidate_transactions,
    generate_bill_occurrences,
    get_suggested_matches,
    get_unmatched_expense_transactions,
    get_unpaid_bill_occurrences,
    reconcile,
)
from bill_tracker.models.ledger import BillPayment, Frequency


@pytest.fixture
def lenient_settings() -> BillMatchingSettings:
    """Description optional, so amount and date alone can score."""
    return BillMatchingSettings(
        amount_tolerance=Decimal("1"),
        date_window_days=7,
        minimum_score=60,
        require_description_match=False,
        require_amount_match=True,
        require_date_window=True,
    )


class TestUnmatchedExpenses:
    """Tests for the unmatched expense list."""

    def test_filters_month_income_and_linked(self, make_transaction):
        entries = [
            make_transaction(transaction_id="t-open"),
            make_transaction(transaction_id="t-income", amount="2500.00"),
            make_transaction(transaction_id="t-other-month", on="2024-03-06"),
            make_transaction(transaction_id="t-linked", matched_to_bill_id="bill-netflix"),
        ]

        result = get_unmatched_expense_transactions(entries, 2024, 2)

        assert [t.id for t in result] == ["t-open"]

    def test_bills_are_not_expenses(self, make_bill):
        assert get_unmatched_expense_transactions([make_bill(due_date="2024-02-05")], 2024, 2) == []


class TestUnpaidOccurrences:
    """Tests for the unpaid occurrence list."""

    def test_excludes_paid(self, make_bill):
        paid = make_bill(
            bill_id="bill-rent",
            name="Rent",
            amount="1200",
            due_date="2024-01-01",
            payments=[BillPayment(occurrence_date=date(2024, 2, 1), manually_marked=True)],
        )
        result = get_unpaid_bill_occurrences([paid, make_bill()], 2024, 2)
        assert [o.bill_id for o in result] == ["bill-netflix"]


class TestSuggestedMatches:
    """Tests for low-confidence suggestions."""

    def test_suggests_below_threshold(self, lenient_settings, make_bill, make_transaction):
        """Test amount plus a distant date is suggested, not auto-matched."""
        entries = [
            make_bill(),
            make_transaction(transaction_id="t-1", description="ONLINE PAYMENT", on="2024-02-10"),
        ]

        suggestions = get_suggested_matches(entries, 2024, 2, lenient_settings)

        assert len(suggestions) == 1
        assert suggestions[0].transaction.id == "t-1"
        assert suggestions[0].matched_bill.occurrence_date == date(2024, 2, 5)
        assert suggestions[0].match_score == 55
        assert reconcile(entries, 2024, 2, lenient_settings) == entries

    def test_auto_matches_are_not_suggested(self, lenient_settings, make_bill, make_transaction):
        entries = [make_bill(), make_transaction(transaction_id="t-1")]
        assert get_suggested_matches(entries, 2024, 2, lenient_settings) == []

    def test_floor(self, lenient_settings, make_bill, make_transaction):
        entries = [
            make_bill(),
            make_transaction(transaction_id="t-1", description="ONLINE PAYMENT", on="2024-02-10"),
        ]
        assert get_suggested_matches(entries, 2024, 2, lenient_settings, floor=56) == []

    def test_paid_occurrences_not_suggested(self, lenient_settings, make_bill, make_transaction):
        entries = [
            make_bill(payments=[BillPayment(occurrence_date=date(2024, 2, 5), manually_marked=True)]),
            make_transaction(transaction_id="t-1", description="ONLINE PAYMENT", on="2024-02-10"),
        ]
        assert get_suggested_matches(entries, 2024, 2, lenient_settings) == []

    def test_only_month_transactions(self, lenient_settings, make_bill, make_transaction):
        entries = [
            make_bill(),
            make_transaction(transaction_id="t-1", description="ONLINE PAYMENT", on="2024-03-10"),
        ]
        assert get_suggested_matches(entries, 2024, 2, lenient_settings) == []


class TestCandidateTransactions:
    """Tests for potential payers of one occurrence."""

    def test_double_tolerance(self, settings, make_bill, make_transaction):
        occurrence = generate_bill_occurrences([make_bill()], 2024, 2)[0]
        entries = [
            make_transaction(transaction_id="t-close", amount="-17.00"),
            make_transaction(transaction_id="t-far", amount="-18.00"),
            make_transaction(transaction_id="t-linked", matched_to_bill_id="bill-x"),
            make_transaction(transaction_id="t-refund", amount="15.49"),
        ]

        result = find_candidate_transactions(occurrence, entries, settings)

        assert [t.id for t in result] == ["t-close"]


class TestCreateBillFromTransaction:
    """Tests for turning a transaction into a bill."""

    def test_fields(self, make_transaction):
        transaction = make_transaction(
            description="SQ *GYM 0042",
            merchant_name="Iron Gym",
            amount="-45.00",
            on="2024-02-12",
            category="Health",
        )

        bill = create_bill_from_transaction(transaction, Frequency.MONTHLY, bill_id="bill-gym")

        assert bill.id == "bill-gym"
        assert bill.is_bill is True
        assert bill.bill_name == "Iron Gym"
        assert bill.bill_amount == Decimal("45.00")
        assert bill.amount == Decimal("-45.00")
        assert bill.due_date == date(2024, 2, 12)
        assert bill.date == date(2024, 2, 12)
        assert bill.category == "Health"
        assert bill.source_description == "SQ *GYM 0042"

    def test_generated_id(self, make_transaction):
        bill = create_bill_from_transaction(make_transaction())
        assert bill.id.startswith("bill-")
        assert bill.frequency == Frequency.MONTHLY

    def test_future_payment_matches_on_source_description(self, settings, make_transaction):
        """Test a new bill recognises later payments with the same raw text."""
        first = make_transaction(description="ACH 55102 LENDER", amount="-300.00", on="2024-01-20")
        bill = create_bill_from_transaction(first, bill_id="bill-loan")
        later = make_transaction(
            transaction_id="t-feb",
            description="ACH 55102 LENDER",
            amount="-300.00",
            on="2024-02-21",
        )

        result = reconcile([bill, later], 2024, 2, settings)

        assert result[1].matched_to_bill_id == "bill-loan"
