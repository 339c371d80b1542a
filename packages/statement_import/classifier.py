"""Classification strategies: ``RawRow`` → ``NormalizedTransaction``.

Both strategies share :func:`build_transaction`, so the id fingerprint, icon,
and metadata are identical regardless of which one ran. Transaction direction
is always derived from the row itself (:func:`~statement_import.rules.derive_type`).
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Sequence
from typing import Literal, Protocol

from .models import NormalizedTransaction, RawRow, TransactionMetadata
from .rules import UNCATEGORIZED, categorize, clean_merchant, derive_type, icon_for_category


class Classifier(Protocol):
    def classify(self, rows: Sequence[RawRow]) -> list[NormalizedTransaction]: ...


# ---------------------------------------------------------------------------
# Shared construction
# ---------------------------------------------------------------------------


def compute_transaction_id(row: RawRow) -> str:
    """Return a stable id over canonical row fields.

    Fields used: source line, date (YYYY-MM-DD), signed amount (2dp string),
    description (trimmed). Identical input yields identical ids across runs;
    two identical rows on different lines get distinct ids.
    """

    payload = {
        "line": row.line,
        "date": row.date.isoformat(),
        "amount": f"{row.signed_amount:.2f}",
        "description": row.description.strip(),
    }
    data = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return "txn_" + hashlib.sha256(data.encode("utf-8")).hexdigest()[:24]


def build_transaction(
    row: RawRow,
    *,
    category: str,
    source: Literal["ai", "rules"],
    merchant: str | None = None,
    name: str | None = None,
    subcategory: str | None = None,
    confidence: float | None = None,
) -> NormalizedTransaction:
    merchant = merchant or clean_merchant(row.description)
    return NormalizedTransaction(
        id=compute_transaction_id(row),
        date=row.date,
        name=name or merchant,
        description=row.description,
        amount=abs(row.signed_amount),
        type=derive_type(row),
        category=category,
        subcategory=subcategory,
        merchant=merchant,
        icon=icon_for_category(category),
        metadata=TransactionMetadata(
            category=category,
            source=source,
            reference=row.reference,
            balance=row.running_balance,
            mode=row.mode,
            confidence=confidence,
        ),
    )


# ---------------------------------------------------------------------------
# Rule-based strategy
# ---------------------------------------------------------------------------


class RuleBasedClassifier:
    """Keyword-table classifier. Pure: the same rows always yield the same output."""

    def __init__(self, *, auto_categorize: bool = True) -> None:
        self.auto_categorize = auto_categorize

    def classify(self, rows: Sequence[RawRow]) -> list[NormalizedTransaction]:
        out: list[NormalizedTransaction] = []
        for row in rows:
            category = categorize(row.description) if self.auto_categorize else UNCATEGORIZED
            out.append(
                build_transaction(
                    row,
                    category=category,
                    source="rules",
                    merchant=row.merchant,
                )
            )
        return out


__all__ = ["Classifier", "RuleBasedClassifier", "build_transaction", "compute_transaction_id"]
