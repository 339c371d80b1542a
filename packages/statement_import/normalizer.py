"""Statement text → ordered :class:`~statement_import.models.RawRow` records.

Tokenization follows RFC 4180 via the stdlib :mod:`csv` module, so quoted
fields with embedded commas or newlines stay intact. Three shapes are
recognized:

- ``statement``: a bank dump with preamble blocks. The table header is the
  first resolvable record after a ``STATEMENT OF TRANSACTIONS`` marker (or,
  without a marker, the first resolvable record anywhere). The body ends at the
  first non-tabular record (cell-count mismatch or a footer marker).
- ``csv``: the first record is the header; every later non-blank record is a
  row, and rows with the wrong cell count are skipped.
- ``text``: free-text lines scanned for a date and an ``N.NN`` amount (used for
  PDF/Word/Excel text dumps when the caller passes a format hint).
"""

from __future__ import annotations

import csv
import io
import logging
import re
from collections.abc import Iterator
from decimal import Decimal

from .columns import resolve_columns, try_resolve_columns
from .errors import EmptyStatementError, UnrecognizedFormatError, row_skipped
from .logging_setup import get_logger, log_event
from .models import ColumnMapping, NormalizedStatement, RawRow, StatementShape
from .values import is_blank_cell, is_zero_cell, parse_amount, parse_date

STATEMENT_MARKER = "STATEMENT OF TRANSACTIONS"

# Records that close the transaction table in multi-section dumps.
FOOTER_MARKERS: tuple[str, ...] = (
    "SAVINGS ACCOUNT NUMBER",
    "ACCOUNT TYPE",
    "ACCOUNT NUMBER",
    "MICR CODE",
    "IFS CODE",
    "STATEMENT SUMMARY",
    "OPENING BALANCE",
    "CLOSING BALANCE",
)

TEXT_FORMAT_HINTS: frozenset[str] = frozenset({"text", "txt", "pdf", "xls", "xlsx", "doc", "docx"})
_AUTO_HINTS: frozenset[str] = frozenset({"", "auto"})

_OPENING_BALANCE_RE = re.compile(
    r"\b(?:balance\s+forward|brought\s+forward|opening\s+balance)\b|(?:^|\s)b/f(?:\s|$)",
    re.IGNORECASE,
)
_DEBIT_HINT_RE = re.compile(r"^\s*(?:dr|debit|d|withdrawal)\.?\s*$", re.IGNORECASE)

# Free-text scanning (``text`` shape).
_TEXT_DATE_RE = re.compile(r"\b\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4}\b|\b\d{4}-\d{1,2}-\d{1,2}\b")
_TEXT_AMOUNT_RE = re.compile(r"(?<![\d.])-?\d[\d,]*\.\d{2}(?![\d.])")

_logger = get_logger("statement_import.normalizer")


# ---------------------------------------------------------------------------
# Record helpers
# ---------------------------------------------------------------------------


def _read_records(text: str) -> list[tuple[int, list[str]]]:
    """Return ``(line_no, cells)`` for every non-blank CSV record."""

    out: list[tuple[int, list[str]]] = []
    # newline="" lets the csv module see CR, LF and CRLF terminators as-is.
    with io.StringIO(text, newline="") as f:
        reader = csv.reader(f, skipinitialspace=True)
        line_no = 1
        for record in reader:
            cells = [c.strip() for c in record]
            if any(cells):
                out.append((line_no, cells))
            # reader.line_num counts physical lines consumed so far.
            line_no = reader.line_num + 1
    return out


def _trimmed(cells: list[str]) -> list[str]:
    """Drop trailing empty cells (exports often pad records with commas)."""

    end = len(cells)
    while end > 0 and not cells[end - 1]:
        end -= 1
    return cells[:end]


def _is_marker(cells: list[str]) -> bool:
    non_blank = [c for c in cells if c]
    return len(non_blank) == 1 and non_blank[0].upper() == STATEMENT_MARKER


def _is_footer(cells: list[str]) -> bool:
    first = next((c for c in cells if c), "")
    return first.upper().startswith(FOOTER_MARKERS)


# ---------------------------------------------------------------------------
# Normalizer
# ---------------------------------------------------------------------------


class StatementNormalizer:
    """Detect the statement shape and extract raw transaction rows.

    Stateless: one instance can serve any number of concurrent calls.
    """

    def normalize(self, text: str, format_hint: str | None = None) -> NormalizedStatement:
        """Turn ``text`` into rows plus the resolved column mapping.

        Raises
        ------
        EmptyStatementError
            Blank input, or a header with no usable data rows.
        UnrecognizedFormatError
            No record resolves as a transaction-table header, or the text is
            not tokenizable as CSV.
        """

        hint = (format_hint or "").strip().lower()
        if hint in TEXT_FORMAT_HINTS:
            return self._normalize_text(text)
        if hint not in _AUTO_HINTS and hint not in {"csv", "statement"}:
            raise UnrecognizedFormatError(f"unsupported format hint: {format_hint!r}")

        if not text or not text.strip():
            raise EmptyStatementError("statement is empty")

        try:
            records = _read_records(text)
        except csv.Error as exc:
            raise UnrecognizedFormatError(f"malformed CSV: {exc}") from exc
        if not records:
            raise EmptyStatementError("statement is empty")

        shape, header_pos, mapping = self._locate_header(records, hint)
        body = records[header_pos + 1 :]
        errors: list[str] = []
        rows = list(self._rows(body, mapping, shape, errors))

        log_event(
            _logger,
            logging.DEBUG,
            "normalize:done",
            shape=shape,
            header_line=records[header_pos][0],
            rows=len(rows),
            skipped=len(errors),
            roles=",".join(mapping.roles()),
        )
        if not rows:
            raise EmptyStatementError(
                "no transaction rows found after the header", errors=errors
            )
        return NormalizedStatement(rows=rows, mapping=mapping, shape=shape, errors=errors)

    # ---- Header detection ------------------------------------------------

    def _locate_header(
        self, records: list[tuple[int, list[str]]], hint: str
    ) -> tuple[StatementShape, int, ColumnMapping]:
        if hint != "csv":
            for pos, (_, cells) in enumerate(records):
                if not _is_marker(cells):
                    continue
                for hpos in range(pos + 1, len(records)):
                    mapping = try_resolve_columns(_trimmed(records[hpos][1]))
                    if mapping is not None:
                        return "statement", hpos, mapping
                raise UnrecognizedFormatError(
                    f"found {STATEMENT_MARKER!r} but no transaction header after it"
                )

        first_error: UnrecognizedFormatError | None = None
        if hint != "statement":
            try:
                return "csv", 0, resolve_columns(_trimmed(records[0][1]))
            except UnrecognizedFormatError as exc:
                first_error = exc
            if hint == "csv":
                raise first_error

        # Structural scan: a header row appearing after a preamble.
        for pos, (_, cells) in enumerate(records):
            mapping = try_resolve_columns(_trimmed(cells))
            if mapping is not None:
                return "statement", pos, mapping

        if first_error is not None:
            raise first_error
        raise UnrecognizedFormatError("no transaction header found in statement")

    # ---- Body extraction -------------------------------------------------

    def _rows(
        self,
        body: list[tuple[int, list[str]]],
        mapping: ColumnMapping,
        shape: StatementShape,
        errors: list[str],
    ) -> Iterator[RawRow]:
        for line_no, cells in body:
            record = _trimmed(cells)
            # Trailing padding is tolerated in both directions.
            mismatch = len(record) > mapping.width or len(cells) < mapping.width
            if shape == "statement":
                if mismatch or _is_footer(record) or _is_marker(record):
                    # Non-tabular record: the transaction table has ended.
                    break
            elif mismatch:
                errors.append(
                    row_skipped(
                        line_no, f"expected {mapping.width} columns, found {len(record)}"
                    )
                )
                continue
            try:
                row = self._build_row(line_no, record, mapping)
            except ValueError as exc:
                errors.append(row_skipped(line_no, str(exc)))
                continue
            if row is not None:
                yield row

    def _build_row(self, line_no: int, record: list[str], mapping: ColumnMapping) -> RawRow | None:
        date_text = mapping.cell(record, "date") or ""
        description = mapping.cell(record, "description") or "Unknown Transaction"
        mode = mapping.cell(record, "mode")
        balance_text = mapping.cell(record, "balance")

        date = parse_date(date_text)
        balance = None if is_blank_cell(balance_text) else parse_amount(balance_text)
        common = {
            "line": line_no,
            "date_text": date_text,
            "date": date,
            "description": description,
            "running_balance": balance,
            "reference": mapping.cell(record, "reference"),
            "mode": mode,
            "merchant": mapping.cell(record, "merchant"),
            "type_hint": mapping.cell(record, "type"),
        }

        if mapping.has_split_amounts:
            deposit_text = mapping.cell(record, "credit")
            withdrawal_text = mapping.cell(record, "debit")
            deposit = Decimal(0) if is_zero_cell(deposit_text) else abs(parse_amount(deposit_text))
            withdrawal = (
                Decimal(0) if is_zero_cell(withdrawal_text) else abs(parse_amount(withdrawal_text))
            )
            if deposit and withdrawal:
                raise ValueError("both deposit and withdrawal are non-zero")
            if not deposit and not withdrawal:
                opening_text = f"{description} {mode or ''}"
                if _OPENING_BALANCE_RE.search(opening_text):
                    return RawRow(
                        **common, deposit=deposit, withdrawal=withdrawal, is_opening_balance=True
                    )
                log_event(_logger, logging.DEBUG, "normalize:zero_row_dropped", line=line_no)
                return None
            return RawRow(**common, deposit=deposit, withdrawal=withdrawal)

        amount_text = mapping.cell(record, "amount")
        amount = parse_amount(amount_text)
        type_hint = common["type_hint"]
        unsigned = not (amount_text or "").lstrip().startswith(("-", "("))
        if amount > 0 and unsigned and type_hint and _DEBIT_HINT_RE.match(type_hint):
            amount = -amount
        if amount == 0:
            if _OPENING_BALANCE_RE.search(description):
                return RawRow(**common, amount=amount, is_opening_balance=True)
            log_event(_logger, logging.DEBUG, "normalize:zero_row_dropped", line=line_no)
            return None
        return RawRow(**common, amount=amount)

    # ---- Free text ---------------------------------------------------------

    def _normalize_text(self, text: str) -> NormalizedStatement:
        if not text or not text.strip():
            raise EmptyStatementError("statement is empty")

        rows: list[RawRow] = []
        errors: list[str] = []
        for line_no, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            date_match = _TEXT_DATE_RE.search(line)
            amount_match = _TEXT_AMOUNT_RE.search(line)
            if not date_match or not amount_match:
                continue
            description = line.replace(amount_match.group(0), " ").replace(
                date_match.group(0), " "
            )
            description = re.sub(r"[^\w\s/&.-]", " ", description)
            description = " ".join(description.split()) or "Unknown Transaction"
            try:
                amount = parse_amount(amount_match.group(0))
                date = parse_date(date_match.group(0))
            except ValueError as exc:
                errors.append(row_skipped(line_no, str(exc)))
                continue
            if amount == 0:
                continue
            rows.append(
                RawRow(
                    line=line_no,
                    date_text=date_match.group(0),
                    date=date,
                    description=description,
                    amount=amount,
                )
            )

        if not rows:
            raise EmptyStatementError("no transaction lines found in text", errors=errors)
        return NormalizedStatement(rows=rows, mapping=None, shape="text", errors=errors)


__all__ = ["FOOTER_MARKERS", "STATEMENT_MARKER", "StatementNormalizer"]
