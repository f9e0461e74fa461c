"""
Core Data Models for Bill Tracker

Transactions and bill definitions live in ONE ledger list. A bill
definition is a ledger entry tagged with isBill=true that carries the
extra recurrence and payment fields.

These models are designed to:
1. Round-trip losslessly through the single JSON blob the ledger is stored as
2. Keep the camelCase field names of the stored format
3. Be immutable, so every operation has to return new entries

DESIGN DECISION: The ledger is a tagged union (Transaction | BillDefinition)
discriminated on isBill. Code dispatches on the entry type, never on
whether optional fields happen to be present.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    PlainSerializer,
    Tag,
    TypeAdapter,
    model_validator,
)
from pydantic.alias_generators import to_camel


# Stored as a JSON number, like the rest of the ledger blob
Money = Annotated[
    Decimal,
    PlainSerializer(float, return_type=float, when_used="json"),
]


# =============================================================================
# ENUMS
# =============================================================================

class Frequency(str, Enum):
    """Recurrence rule of a bill definition."""
    ONE_TIME = "one-time"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


# =============================================================================
# BASE
# =============================================================================

class LedgerModel(BaseModel):
    """Shared config: camelCase on the wire, snake_case in Python, immutable."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_json_dict(self) -> dict[str, Any]:
        """Dump in the stored format (camelCase, unset optionals omitted)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class BillPayment(LedgerModel):
    """
    One confirmed payment for one bill occurrence.

    The transaction fields are a snapshot of the paying transaction, so a
    payment can be displayed without looking the transaction up again.
    Manual toggles ("mark as paid") carry no transaction data at all.
    """

    occurrence_date: dt.date
    transaction_date: Optional[dt.date] = None
    transaction_amount: Optional[Money] = None
    transaction_description: Optional[str] = None
    manually_marked: bool = Field(
        default=False,
        description="True if user-confirmed or user-linked, False if auto-matched"
    )


class LedgerEntryBase(LedgerModel):
    """
    Fields shared by every ledger entry.

    Unknown fields (UI-only data such as needWant or friendlyName) are kept
    as extras so that saving the ledger never drops them.
    """

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    date: dt.date
    description: str = ""
    amount: Money
    category: str = "Uncategorized"
    merchant_name: Optional[str] = None
    memo: Optional[str] = None

    # Match state
    matched_to_bill_id: Optional[str] = None
    hidden_as_bill_payment: Optional[bool] = None

    @property
    def transaction_key(self) -> str:
        """Stable identity: the id, else date and description."""
        if self.id:
            return self.id
        return f"{self.date.isoformat()}-{self.description}"

    @property
    def display_name(self) -> str:
        return self.merchant_name or self.description


# =============================================================================
# LEDGER ENTRIES
# =============================================================================

class Transaction(LedgerEntryBase):
    """A single ledger entry imported from a statement or typed in."""

    is_bill: Literal[False] = False

    @property
    def is_expense(self) -> bool:
        return self.amount < 0

    @property
    def is_matched(self) -> bool:
        return self.matched_to_bill_id is not None


class BillDefinition(LedgerEntryBase):
    """
    A recurring (or one-time) bill.

    due_date is the first occurrence; frequency says how it repeats.
    payments is the current payment record; paid_dates is the legacy flat
    list of occurrence dates that predates auto-matching.
    """

    is_bill: Literal[True] = True

    bill_name: str
    bill_amount: Money = Field(
        ...,
        description="Expected amount, positive"
    )
    due_date: Optional[dt.date] = None
    frequency: Frequency = Frequency.MONTHLY
    source_description: Optional[str] = Field(
        default=None,
        description="Description of the transaction this bill was created from"
    )
    paid_dates: Optional[list[dt.date]] = None
    payments: Optional[list[BillPayment]] = None

    @model_validator(mode="before")
    @classmethod
    def fill_entry_fields(cls, data: Any) -> Any:
        """A bill's own ledger amount/date default to -billAmount and dueDate."""
        if not isinstance(data, dict):
            return data

        data = dict(data)
        if data.get("amount") is None:
            bill_amount = data.get("billAmount", data.get("bill_amount"))
            if bill_amount is not None:
                data["amount"] = -abs(Decimal(str(bill_amount)))
        if data.get("date") is None:
            due_date = data.get("dueDate", data.get("due_date"))
            if due_date is not None:
                data["date"] = due_date
        return data


def _entry_tag(value: Any) -> str:
    if isinstance(value, dict):
        is_bill = value.get("isBill", value.get("is_bill", False))
    else:
        is_bill = getattr(value, "is_bill", False)
    return "bill" if is_bill else "transaction"


LedgerEntry = Annotated[
    Union[
        Annotated[Transaction, Tag("transaction")],
        Annotated[BillDefinition, Tag("bill")],
    ],
    Discriminator(_entry_tag),
]

_ledger_adapter = TypeAdapter(list[LedgerEntry])


def load_ledger(data: Union[str, bytes, list]) -> list[Union[Transaction, BillDefinition]]:
    """Parse a stored ledger (JSON text or already-decoded list)."""
    if isinstance(data, (str, bytes)):
        return _ledger_adapter.validate_json(data)
    return _ledger_adapter.validate_python(data)


def dump_ledger(entries: list[Union[Transaction, BillDefinition]]) -> str:
    """Serialize the whole ledger to the stored JSON format."""
    return _ledger_adapter.dump_json(
        entries,
        by_alias=True,
        exclude_none=True,
    ).decode("utf-8")


# =============================================================================
# DERIVED MODELS (never persisted)
# =============================================================================

class BillOccurrence(LedgerModel):
    """
    One calendar instance of a bill definition.

    Computed fresh from the bill definitions on every query.
    """

    bill_id: Optional[str]
    bill_name: str
    bill_amount: Money
    occurrence_date: dt.date
    due_day: int = Field(ge=1, le=31)
    category: str
    source_description: Optional[str] = None
    payment: Optional[BillPayment] = None

    # Back-reference to the owning definition
    bill: BillDefinition = Field(exclude=True, repr=False)

    @property
    def is_paid(self) -> bool:
        return self.payment is not None

    @property
    def key(self) -> tuple[Optional[str], dt.date]:
        """Identity of the occurrence: (bill id, occurrence date)."""
        return self.bill_id, self.occurrence_date


class MatchDetails(LedgerModel):
    """Which scoring signals fired for one transaction/occurrence pair."""

    description_match: bool = False
    amount_match: bool = False
    date_proximity: Optional[int] = Field(
        default=None,
        description="Days between transaction and occurrence; None if not scored"
    )
    within_window: bool = False


class MatchScore(LedgerModel):
    """Score of one transaction against one occurrence."""

    score: int = Field(ge=0)
    details: MatchDetails = Field(default_factory=MatchDetails)


class TransactionBillMatch(LedgerModel):
    """Best available occurrence for one transaction (or none)."""

    transaction: Transaction
    transaction_index: Optional[int] = None
    matched_bill: Optional[BillOccurrence] = None
    match_score: int = Field(default=0, ge=0)
    match_details: MatchDetails = Field(default_factory=MatchDetails)

    @property
    def is_match(self) -> bool:
        return self.matched_bill is not None


class BillSummary(LedgerModel):
    """Paid/unpaid totals for a set of occurrences (usually one month)."""

    total_bills: int = 0
    paid_bills: int = 0
    unpaid_bills: int = 0
    total_amount: Money = Decimal("0")
    paid_amount: Money = Decimal("0")
    unpaid_amount: Money = Decimal("0")
