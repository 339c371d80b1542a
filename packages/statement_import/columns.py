"""Header-row resolution into a :class:`~statement_import.models.ColumnMapping`.

Each header token is lower-cased and assigned at most one role by substring
containment, checked in priority order:

1. ``value_date`` (``Value Date``, ``Value Dt``), then ``date``
2. ``description`` (description, memo, payee, particulars, narration, remarks,
   details)
3. ``type`` (a direction indicator naming both sides, e.g. ``Dr/Cr``)
4. ``debit`` (debit, withdrawal), ``credit`` (credit, deposit), ``amount``
5. ``balance``, ``reference``, ``merchant``, ``mode``

Bank exports that carry both a value date and a transaction date take the
transaction date as ``date``; a value date alone stands in for it. Two headers
claiming the same role, or a signed ``amount`` column next to a debit/credit
pair, is rejected rather than resolved by position.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from .errors import UnrecognizedFormatError
from .models import ColumnMapping

_DESCRIPTION_KEYS: tuple[str, ...] = (
    "description",
    "memo",
    "payee",
    "particulars",
    "narration",
    "remarks",
    "details",
)
_TYPE_HEADERS: frozenset[str] = frozenset({"type", "transaction type", "txn type"})
_DR_CR_RE = re.compile(r"\b(?:dr\s*/\s*cr|cr\s*/\s*dr)\b")
_VALUE_DATE_RE = re.compile(r"\bvalue\s*(?:date|dt)\b")
_REFERENCE_KEYS: tuple[str, ...] = ("reference", "ref", "cheque", "chq")
_AMOUNT_ROLES: frozenset[str] = frozenset({"amount", "debit", "credit"})


def classify_header(header: str) -> str | None:
    """Return the role a single header token claims, or ``None``."""

    h = " ".join(header.strip().lower().split())
    if not h:
        return None
    if _VALUE_DATE_RE.search(h):
        return "value_date"
    if "date" in h:
        return "date"
    if any(k in h for k in _DESCRIPTION_KEYS):
        return "description"
    if h in _TYPE_HEADERS or _DR_CR_RE.search(h) or ("debit" in h and "credit" in h):
        return "type"
    if "debit" in h or "withdrawal" in h:
        return "debit"
    if "credit" in h or "deposit" in h:
        return "credit"
    if "amount" in h:
        return "amount"
    if "balance" in h:
        return "balance"
    if any(k in h for k in _REFERENCE_KEYS):
        return "reference"
    if "merchant" in h or "vendor" in h:
        return "merchant"
    if "mode" in h:
        return "mode"
    return None


def resolve_columns(headers: Sequence[str]) -> ColumnMapping:
    """Resolve a header record into a :class:`ColumnMapping`.

    Raises
    ------
    UnrecognizedFormatError
        When a role is claimed by more than one header, when both a signed
        amount and a debit/credit pair are present, or when no ``date`` or no
        amount-bearing column exists.
    """

    assigned: dict[str, list[int]] = {}
    for idx, header in enumerate(headers):
        role = classify_header(header)
        if role is not None:
            assigned.setdefault(role, []).append(idx)

    if "date" not in assigned and "value_date" in assigned:
        assigned["date"] = assigned.pop("value_date")

    shown = [h.strip() for h in headers]
    dupes = {role: idxs for role, idxs in assigned.items() if len(idxs) > 1}
    if dupes:
        detail = "; ".join(
            f"{role!r} matched by {[shown[i] for i in idxs]}" for role, idxs in dupes.items()
        )
        raise UnrecognizedFormatError(f"ambiguous column mapping: {detail}")

    if "date" not in assigned:
        raise UnrecognizedFormatError(f"no date column among headers {shown}")
    if not (_AMOUNT_ROLES & assigned.keys()):
        raise UnrecognizedFormatError(f"no amount, debit, or credit column among headers {shown}")
    if "amount" in assigned and ("debit" in assigned or "credit" in assigned):
        raise UnrecognizedFormatError(
            "ambiguous column mapping: both a signed amount column "
            f"({shown[assigned['amount'][0]]!r}) and debit/credit columns are present"
        )

    return ColumnMapping(
        headers=tuple(shown),
        **{role: idxs[0] for role, idxs in assigned.items()},
    )


def try_resolve_columns(headers: Sequence[str]) -> ColumnMapping | None:
    """Like :func:`resolve_columns` but return ``None`` instead of raising."""

    try:
        return resolve_columns(headers)
    except UnrecognizedFormatError:
        return None


__all__ = ["classify_header", "resolve_columns", "try_resolve_columns"]
