"""
Tests for ledger and audit storage backends.
"""

import json
import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from bill_tracker.models.audit import AuditEventBuilder
from bill_tracker.models.ledger import BillDefinition, BillPayment, Transaction
from bill_tracker.services.storage import (
    CorruptLedgerError,
    InMemoryAuditStorage,
    InMemoryLedgerStorage,
    JsonFileLedgerStorage,
    JsonLinesAuditStorage,
    StorageConnectionError,
)


@pytest.fixture
def ledger(make_bill, make_transaction):
    bill = make_bill(
        source_description="NETFLIX.COM",
        paid_dates=[date(2024, 1, 5)],
        payments=[
            BillPayment(
                occurrence_date=date(2024, 2, 5),
                transaction_date=date(2024, 2, 6),
                transaction_amount=Decimal("-15.49"),
                transaction_description="NETFLIX.COM",
            )
        ],
    )
    transaction = make_transaction(
        transaction_id="t-1",
        merchant_name="Netflix",
        matched_to_bill_id="bill-netflix",
        hidden_as_bill_payment=True,
        needWant="want",
    )
    return [bill, transaction, make_transaction(transaction_id="t-2", description="Salary", amount="2500")]


class TestInMemoryLedgerStorage:
    """Tests for the in-memory backend."""

    def test_empty(self):
        assert InMemoryLedgerStorage().load_entries() == []

    def test_round_trip(self, ledger):
        storage = InMemoryLedgerStorage(ledger)
        loaded = storage.load_entries()

        assert loaded == ledger
        assert isinstance(loaded[0], BillDefinition)
        assert isinstance(loaded[1], Transaction)

    def test_stored_format(self, ledger):
        """Test the blob uses camelCase keys and plain JSON numbers."""
        storage = InMemoryLedgerStorage(ledger)
        stored = json.loads(storage.raw)

        bill, transaction = stored[0], stored[1]
        assert bill["isBill"] is True
        assert bill["billName"] == "Netflix"
        assert bill["billAmount"] == 15.49
        assert bill["dueDate"] == "2024-01-05"
        assert bill["frequency"] == "monthly"
        assert bill["paidDates"] == ["2024-01-05"]
        assert bill["payments"][0]["occurrenceDate"] == "2024-02-05"
        assert bill["payments"][0]["transactionAmount"] == -15.49
        assert bill["payments"][0]["manuallyMarked"] is False
        assert transaction["isBill"] is False
        assert transaction["amount"] == -15.49
        assert transaction["matchedToBillId"] == "bill-netflix"
        assert transaction["hiddenAsBillPayment"] is True
        assert transaction["needWant"] == "want"
        assert "memo" not in transaction


class TestJsonFileLedgerStorage:
    """Tests for the JSON file backend."""

    def test_missing_file_is_empty(self, tmp_path):
        storage = JsonFileLedgerStorage(tmp_path / "ledger.json", "transactions")
        assert storage.load_entries() == []

    def test_round_trip(self, tmp_path, ledger):
        storage = JsonFileLedgerStorage(tmp_path / "data" / "ledger.json", "transactions")

        assert storage.save_entries(ledger) is True
        assert storage.load_entries() == ledger

    def test_ledger_stored_as_string_under_key(self, tmp_path, ledger):
        path = tmp_path / "ledger.json"
        JsonFileLedgerStorage(path, "transactions").save_entries(ledger)

        store = json.loads(path.read_text(encoding="utf-8"))

        assert isinstance(store["transactions"], str)
        assert json.loads(store["transactions"])[1]["id"] == "t-1"

    def test_other_keys_preserved(self, tmp_path, ledger):
        path = tmp_path / "ledger.json"
        path.write_text(json.dumps({"budgets": "[]"}), encoding="utf-8")

        JsonFileLedgerStorage(path, "transactions").save_entries(ledger)

        store = json.loads(path.read_text(encoding="utf-8"))
        assert store["budgets"] == "[]"
        assert "transactions" in store

    def test_no_temp_file_left(self, tmp_path, ledger):
        JsonFileLedgerStorage(tmp_path / "ledger.json", "transactions").save_entries(ledger)
        assert [p.name for p in tmp_path.iterdir()] == ["ledger.json"]

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "ledger.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(CorruptLedgerError):
            JsonFileLedgerStorage(path, "transactions").load_entries()

    def test_unreadable_path(self, tmp_path):
        """Test an OS error on read surfaces as a storage error after retries."""
        with pytest.raises(StorageConnectionError):
            JsonFileLedgerStorage(tmp_path, "transactions").load_entries()

    def test_invalid_ledger(self, tmp_path):
        """Test a blob that parses but is not a ledger."""
        path = tmp_path / "ledger.json"
        path.write_text(json.dumps({"transactions": '[{"description": "no date"}]'}), encoding="utf-8")

        with pytest.raises(CorruptLedgerError):
            JsonFileLedgerStorage(path, "transactions").load_entries()

    def test_reads_existing_camel_case_blob(self, tmp_path):
        """Test a ledger written by the web app loads unchanged."""
        blob = json.dumps([
            {
                "id": "bill-1",
                "isBill": True,
                "date": "2024-01-01",
                "description": "Rent",
                "amount": -1200,
                "category": "Housing",
                "billName": "Rent",
                "billAmount": 1200,
                "dueDate": "2024-01-01",
                "frequency": "monthly",
                "paidDates": ["2024-01-01"],
            },
            {"date": "2024-02-01", "description": "RENT", "amount": -1200},
        ])
        path = tmp_path / "ledger.json"
        path.write_text(json.dumps({"transactions": blob}), encoding="utf-8")

        entries = JsonFileLedgerStorage(path, "transactions").load_entries()

        assert entries[0].paid_dates == [date(2024, 1, 1)]
        assert entries[1].transaction_key == "2024-02-01-RENT"


class TestAuditStorage:
    """Tests for audit storage backends."""

    def test_json_lines_append_and_query(self, tmp_path):
        storage = JsonLinesAuditStorage(tmp_path / "audit.jsonl")
        correlation_id = uuid4()

        storage.append_event(AuditEventBuilder.ledger_saved(3, correlation_id=correlation_id))
        storage.append_event(AuditEventBuilder.save_failed("disk full"))
        storage.append_event(AuditEventBuilder.ledger_loaded(3, 1, correlation_id=correlation_id))

        lines = (tmp_path / "audit.jsonl").read_text(encoding="utf-8").splitlines()
        assert len(lines) == 3

        related = storage.get_events_by_correlation_id(correlation_id)
        assert [e.event_type.value for e in related] == ["ledger_saved", "ledger_loaded"]

        recent = storage.get_recent_events(limit=2)
        assert [e.event_type.value for e in recent] == ["ledger_loaded", "save_failed"]

    def test_json_lines_missing_file(self, tmp_path):
        assert JsonLinesAuditStorage(tmp_path / "audit.jsonl").get_recent_events() == []

    def test_in_memory(self):
        storage = InMemoryAuditStorage()
        event = AuditEventBuilder.save_failed("disk full")

        assert storage.append_event(event) is True
        assert storage.get_recent_events() == [event]
