"""Data models for statement parsing.

Intermediate records (:class:`RawRow`, :class:`ColumnMapping`,
:class:`NormalizedStatement`) are frozen dataclasses: they are created once per
parse and never leave the pipeline. Output records
(:class:`NormalizedTransaction`, :class:`ParseResult`) are Pydantic models so
callers can serialize them to JSON with the camelCase field names of the
import contract (``totalAmount``, ``dateRange``, ``aiUsed``).
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from decimal import Decimal
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .errors import ROW_SKIPPED

# ---------------------------------------------------------------------------
# Intermediate records (normalizer output)
# ---------------------------------------------------------------------------

type StatementShape = Literal["csv", "statement", "text"]
"""How the transaction table was located.

- ``csv``: first record is the header, every later non-blank record is a row.
- ``statement``: header found after a preamble (marker or structural scan).
- ``text``: free-text line scan; no header or column mapping.
"""


@dataclass(frozen=True, slots=True)
class ColumnMapping:
    """Resolved header → column index assignment for one transaction table.

    ``date`` and at least one amount-bearing role (``amount``, ``debit``, or
    ``credit``) are always present; the resolver rejects tables otherwise.
    """

    headers: tuple[str, ...]
    date: int
    value_date: int | None = None
    description: int | None = None
    amount: int | None = None
    debit: int | None = None
    credit: int | None = None
    balance: int | None = None
    reference: int | None = None
    merchant: int | None = None
    mode: int | None = None
    type: int | None = None

    @property
    def has_split_amounts(self) -> bool:
        return self.debit is not None or self.credit is not None

    @property
    def width(self) -> int:
        return len(self.headers)

    def cell(self, record: list[str], role: str) -> str | None:
        idx = getattr(self, role)
        if idx is None or idx >= len(record):
            return None
        value = record[idx].strip()
        return value or None

    def roles(self) -> dict[str, str]:
        """Return ``{role: header}`` for every assigned role (debugging/logging)."""

        out: dict[str, str] = {}
        for role in (
            "date",
            "value_date",
            "description",
            "amount",
            "debit",
            "credit",
            "balance",
            "reference",
            "merchant",
            "mode",
            "type",
        ):
            idx = getattr(self, role)
            if idx is not None:
                out[role] = self.headers[idx]
        return out


@dataclass(frozen=True, slots=True)
class RawRow:
    """One line of the detected transaction table, before classification.

    Exactly one amount representation is present: either the
    ``deposit``/``withdrawal`` pair (two-column formats, at most one of them
    non-zero) or a signed ``amount`` (single-column formats).
    """

    line: int
    date_text: str
    date: dt.date
    description: str
    deposit: Decimal | None = None
    withdrawal: Decimal | None = None
    amount: Decimal | None = None
    running_balance: Decimal | None = None
    reference: str | None = None
    mode: str | None = None
    merchant: str | None = None
    type_hint: str | None = None
    is_opening_balance: bool = False

    def __post_init__(self) -> None:
        has_pair = self.deposit is not None or self.withdrawal is not None
        if has_pair == (self.amount is not None):
            raise ValueError(
                f"line {self.line}: a row needs either a deposit/withdrawal pair "
                "or a signed amount, not both or neither"
            )
        if has_pair and (self.deposit or Decimal(0)) != 0 and (self.withdrawal or Decimal(0)) != 0:
            raise ValueError(f"line {self.line}: both deposit and withdrawal are non-zero")

    @property
    def signed_amount(self) -> Decimal:
        """Credit positive, debit negative."""

        if self.amount is not None:
            return self.amount
        if self.deposit:
            return abs(self.deposit)
        if self.withdrawal:
            return -abs(self.withdrawal)
        return Decimal(0)

    @property
    def is_credit(self) -> bool:
        return self.signed_amount > 0


@dataclass(frozen=True, slots=True)
class NormalizedStatement:
    """Normalizer output: rows in file order plus how they were found."""

    rows: list[RawRow]
    mapping: ColumnMapping | None
    shape: StatementShape
    errors: list[str] = field(default_factory=list)

    @property
    def skipped_rows(self) -> int:
        return sum(1 for e in self.errors if e.startswith(ROW_SKIPPED))


@dataclass(frozen=True, slots=True)
class ParseOptions:
    """Per-call switches for :meth:`statement_import.pipeline.StatementParser.parse`.

    Attributes
    ----------
    use_ai:
        Try the AI classifier first (requires an API key in the config).
    auto_categorize:
        Apply keyword categories in the rule-based strategy; when ``False``,
        rule-classified rows are ``Uncategorized``.
    merge_duplicates:
        Collapse same-date, same-amount, same-description transactions.
    validate_amounts:
        Drop rows with zero or implausibly large amounts (recorded in ``errors``).
    format_hint:
        ``None``/``"auto"`` to detect; ``"csv"``, ``"statement"``, or a
        free-text kind (``"text"``, ``"pdf"``, ``"xlsx"``, ...).
    """

    use_ai: bool = True
    auto_categorize: bool = True
    merge_duplicates: bool = False
    validate_amounts: bool = True
    format_hint: str | None = None


# ---------------------------------------------------------------------------
# Output records
# ---------------------------------------------------------------------------

# Decimals stay exact in Python and serialize as JSON numbers.
Amount = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class TransactionType(StrEnum):
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class _OutputModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class TransactionMetadata(_OutputModel):
    category: str
    source: Literal["ai", "rules"]
    reference: str | None = None
    balance: Amount | None = None
    mode: str | None = None
    confidence: float | None = None


class NormalizedTransaction(_OutputModel):
    """The pipeline's output unit.

    ``amount`` is always positive; direction lives only in ``type``.
    ``id`` is a content fingerprint, so identical input yields identical ids.
    """

    id: str
    date: dt.date
    name: str
    description: str
    amount: Amount
    type: TransactionType
    category: str
    subcategory: str | None = None
    merchant: str | None = None
    icon: str
    metadata: TransactionMetadata

    @field_validator("amount")
    @classmethod
    def _amount_positive(cls, v: Decimal) -> Decimal:
        if not v.is_finite() or v <= 0:
            raise ValueError("amount must be a positive finite number")
        return v

    @property
    def signed_amount(self) -> Decimal:
        """Contribution to the net total (transfers contribute nothing)."""

        if self.type is TransactionType.INCOME:
            return self.amount
        if self.type is TransactionType.EXPENSE:
            return -self.amount
        return Decimal(0)


class DateRange(_OutputModel):
    start: dt.date
    end: dt.date

    @model_validator(mode="after")
    def _ordered(self) -> DateRange:
        if self.start > self.end:
            raise ValueError("date range start must not be after end")
        return self


class ParseResult(_OutputModel):
    """Envelope returned by every parse call."""

    success: bool
    transactions: list[NormalizedTransaction] = Field(default_factory=list)
    total_amount: Amount = Decimal(0)
    date_range: DateRange | None = None
    ai_used: bool = False
    errors: list[str] = Field(default_factory=list)
    skipped_rows: int = 0

    @classmethod
    def failure(cls, errors: list[str], *, skipped_rows: int = 0) -> ParseResult:
        return cls(success=False, errors=list(errors), skipped_rows=skipped_rows)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


__all__ = [
    "Amount",
    "ColumnMapping",
    "DateRange",
    "NormalizedStatement",
    "NormalizedTransaction",
    "ParseOptions",
    "ParseResult",
    "RawRow",
    "StatementShape",
    "TransactionMetadata",
    "TransactionType",
]
