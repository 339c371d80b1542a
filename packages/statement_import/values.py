"""Cell-level parsing of amounts and dates.

Amounts are parsed into :class:`~decimal.Decimal` so statement values such as
``15630.8`` survive exactly. Dates are resolved to timezone-naive
:class:`datetime.date` values using a fixed, day-first policy.
"""

from __future__ import annotations

import re
from datetime import date
from decimal import Decimal, InvalidOperation

# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------

# Spreadsheet exports turn long account/deposit numbers into "3.88113E+11";
# such cells are never amounts.
_SCIENTIFIC_RE = re.compile(r"\d[eE][+-]?\d")
_NUMBER_RE = re.compile(r"(?:\d+(?:\.\d*)?|\.\d+)")
_NON_FINITE = {"nan", "inf", "infinity"}
_DASH_ONLY_RE = re.compile(r"-*")
# Longest first so "rs." wins over "rs".
_CURRENCY_MARKERS: tuple[str, ...] = ("inr", "usd", "rs.", "rs", "$", "₹", "€", "£")


def _strip_currency(s: str) -> tuple[str, bool]:
    low = s.lower()
    for marker in _CURRENCY_MARKERS:
        if low.startswith(marker):
            return s[len(marker) :].lstrip(), True
    return s, False


def parse_amount(raw: str | None) -> Decimal:
    """Parse a statement amount cell into a signed ``Decimal``.

    Accepts thousands separators, a leading ``+``/``-``, currency markers
    (``$``, ``₹``, ``Rs.``, ``INR``), surrounding parentheses (negative), and
    a trailing ``Cr``/``Dr`` suffix (``Dr`` is negative). Markers may appear in
    any order, e.g. ``"-(₹1,234.56)"``.

    Raises ``ValueError`` for empty text, scientific notation, non-finite
    values, and anything else that is not a plain number.
    """

    if raw is None:
        raise ValueError("amount is required")
    s = raw.strip()
    if not s:
        raise ValueError("amount is empty")
    if _SCIENTIFIC_RE.search(s):
        raise ValueError(f"implausible amount (scientific notation): {raw!r}")

    negative = False
    low = s.lower()
    if low.endswith("dr"):
        negative = True
        s = s[:-2].rstrip()
    elif low.endswith("cr"):
        s = s[:-2].rstrip()

    # Strip sign, currency marker, and parentheses until stable.
    while True:
        changed = False
        if s.startswith("+"):
            s = s[1:].lstrip()
            changed = True
        elif s.startswith("-"):
            negative = True
            s = s[1:].lstrip()
            changed = True
        s, stripped = _strip_currency(s)
        changed = changed or stripped
        if s.startswith("(") and s.endswith(")") and len(s) >= 2:
            negative = True
            s = s[1:-1].strip()
            changed = True
        if not changed:
            break

    s = s.replace(",", "").strip()
    if s.lower() in _NON_FINITE:
        raise ValueError(f"non-finite amount: {raw!r}")
    if not _NUMBER_RE.fullmatch(s):
        raise ValueError(f"invalid amount: {raw!r}")
    try:
        d = Decimal(s)
    except InvalidOperation as exc:  # pragma: no cover - guarded by the regex
        raise ValueError(f"invalid amount: {raw!r}") from exc
    return -d if negative else d


def is_blank_cell(raw: str | None) -> bool:
    """Return True for empty cells and dash-only placeholders (``-``, ``--``)."""

    if raw is None:
        return True
    return _DASH_ONLY_RE.fullmatch(raw.strip()) is not None


def is_zero_cell(raw: str | None) -> bool:
    """Return True for blank cells and cells that parse to zero."""

    if is_blank_cell(raw):
        return True
    try:
        return parse_amount(raw) == 0
    except ValueError:
        return False


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

_ISO_RE = re.compile(r"(\d{4})-(\d{1,2})-(\d{1,2})(?:T.*)?")
_NUMERIC_RE = re.compile(r"(\d{1,2})([/\-.])(\d{1,2})\2(\d{4}|\d{2})")
_NAMED_MONTH_RE = re.compile(r"(\d{1,2})[\s\-/]+([A-Za-z]{3,9})\.?[\s\-/,]+(\d{4}|\d{2})")

_MONTHS: dict[str, int] = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}


def _year(text: str) -> int:
    y = int(text)
    return 2000 + y if len(text) == 2 else y


def _build(year: int, month: int, day: int, raw: str) -> date:
    try:
        return date(year, month, day)
    except ValueError as exc:
        raise ValueError(f"invalid date: {raw!r}") from exc


def parse_date(raw: str | None) -> date:
    """Resolve a statement date cell to a calendar date.

    Accepted forms: ``D/M/YY``, ``DD-MM-YYYY`` (``/``, ``-`` or ``.``
    separators), ``YYYY-MM-DD`` (optionally followed by a time), and
    ``DD-Mon-YY``/``DD Mon YYYY``.

    Numeric day/month order is a fixed policy rather than locale detection:
    day-first, unless the second token cannot be a month (> 12), in which case
    the value is read month-first. Two-digit years are 20YY.
    """

    if raw is None:
        raise ValueError("date is required")
    s = raw.strip()
    if not s:
        raise ValueError("date is empty")

    m = _NAMED_MONTH_RE.fullmatch(s)
    if m:
        month = _MONTHS.get(m.group(2)[:3].lower())
        if month is None:
            raise ValueError(f"invalid month name in date: {raw!r}")
        return _build(_year(m.group(3)), month, int(m.group(1)), raw)

    # Drop a trailing time component ("30-07-2025 10:15:00").
    first = s.split()[0]

    m = _ISO_RE.fullmatch(first)
    if m:
        return _build(int(m.group(1)), int(m.group(2)), int(m.group(3)), raw)

    m = _NUMERIC_RE.fullmatch(first)
    if m:
        a, b = int(m.group(1)), int(m.group(3))
        year = _year(m.group(4))
        if a <= 12 and b > 12:
            # Cannot be day-first; unambiguously month-first.
            return _build(year, a, b, raw)
        return _build(year, b, a, raw)

    raise ValueError(f"unrecognized date format: {raw!r}")


__all__ = ["is_blank_cell", "is_zero_cell", "parse_amount", "parse_date"]
