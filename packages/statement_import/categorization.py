"""Validation and alignment of AI classification responses.

A response is accepted only as a whole: every row index exactly once, the
item count equal to the request's row count, confidences within [0,1].
Categories outside the allow-list are coerced to ``Other``. Any other
deviation raises ``ValueError``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, ValidationInfo, field_validator

from .rules import OTHER


class ClassificationItem(BaseModel):
    """Typed view of one classified row.

    The category validator reads ``allowed_set`` from ``ValidationInfo.context``.
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True, frozen=True)

    idx: int
    category: str
    subcategory: str | None = None
    merchant: str | None = None
    description: str | None = None
    confidence: float

    @field_validator("category")
    @classmethod
    def _category_in_allowlist(cls, v: str, info: ValidationInfo) -> str:
        allowed_set = info.context.get("allowed_set") if info.context else None
        if not allowed_set or v in allowed_set:
            return v
        # Fallback stays within the closed category set.
        return OTHER

    @field_validator("confidence")
    @classmethod
    def _confidence_in_range(cls, v: float) -> float:
        if 0.0 <= float(v) <= 1.0:
            return float(v)
        raise ValueError("confidence must be in [0,1]")

    @field_validator("subcategory", "merchant", "description")
    @classmethod
    def _blank_to_none(cls, v: str | None) -> str | None:
        return v or None


class _ClassificationBody(BaseModel):
    model_config = ConfigDict(extra="forbid")

    transactions: list[ClassificationItem]


def parse_and_align_classifications(
    body: Mapping[str, Any],
    *,
    num_items: int,
    allowed_categories: Sequence[str],
) -> list[ClassificationItem]:
    """Validate ``body`` with Pydantic and return items aligned by ``idx``."""

    if not isinstance(body, Mapping):
        raise ValueError("Invalid response: expected a JSON object at top level")

    try:
        parsed = _ClassificationBody.model_validate(
            body, context={"allowed_set": set(allowed_categories)}
        )
    except ValidationError as e:
        raise ValueError(f"Invalid response: {e.error_count()} validation error(s)") from e

    if len(parsed.transactions) != num_items:
        raise ValueError(
            f"Invalid response: expected {num_items} transactions, got {len(parsed.transactions)}"
        )

    out: list[ClassificationItem | None] = [None] * num_items
    for item in parsed.transactions:
        idx = item.idx
        if not (0 <= idx < num_items):
            raise ValueError(f"Invalid response: 'idx' out of range: {idx}")
        if out[idx] is not None:
            raise ValueError(f"Invalid response: duplicate idx {idx}")
        out[idx] = item

    missing = [i for i, v in enumerate(out) if v is None]
    if missing:
        raise ValueError(f"Invalid response: missing indices {missing}")
    return [v for v in out if v is not None]


__all__ = ["ClassificationItem", "parse_and_align_classifications"]
