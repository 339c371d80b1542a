"""Prompt construction and row serialization for AI classification.

This module builds:
- A deterministic JSON serialization of statement rows with a fixed field
  order.
- The system instructions and user content for the classification task.
- The strict ``response_format`` (JSON Schema) object for the OpenAI
  Responses API.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from openai.types.responses.response_format_text_json_schema_config_param import (
    ResponseFormatTextJSONSchemaConfigParam,
)

from .models import RawRow

ROW_FIELD_ORDER: tuple[str, ...] = (
    "idx",
    "date",
    "description",
    "amount",
    "direction",
    "mode",
    "reference",
)

_USER_TEMPLATE = """\
Classify every bank-statement row below.

For each row return:
- idx: the row's idx, unchanged.
- category: exactly one of the allowed categories.
- subcategory: a short free-text refinement, or null.
- merchant: the counterparty name without payment-rail noise (UPI/NEFT ids,
  card numbers, reference codes), or null when none can be identified.
- description: a short human-readable label for the transaction.
- confidence: a number in [0, 1].

Return exactly one result per row. Do not merge, split, or skip rows.

Allowed categories:
{categories}

BEGIN_ROWS_JSON
{rows_json}
END_ROWS_JSON
"""


def row_to_payload(idx: int, row: RawRow) -> dict[str, Any]:
    signed = row.signed_amount
    return {
        "idx": idx,
        "date": row.date.isoformat(),
        "description": row.description,
        "amount": f"{abs(signed):.2f}",
        "direction": "credit" if signed > 0 else "debit",
        "mode": row.mode,
        "reference": row.reference,
    }


def serialize_rows_to_json(rows: Sequence[RawRow]) -> str:
    """Serialize rows to a JSON array with a fixed field order.

    Field order per object is exactly: ``idx, date, description, amount,
    direction, mode, reference``. ``idx`` is the 0-based position in ``rows``.
    """

    arr: list[dict[str, Any]] = []
    for idx, row in enumerate(rows):
        item = row_to_payload(idx, row)
        arr.append({key: item.get(key) for key in ROW_FIELD_ORDER})
    return json.dumps(arr, ensure_ascii=False)


def build_system_instructions() -> str:
    return (
        "You are an agent that categorizes personal bank-statement transactions. "
        "Choose exactly one category per row from the allowed list. Never invent "
        "categories. Output JSON only that conforms to the specified schema."
    )


def build_user_content(rows_json: str, allowed_categories: Sequence[str]) -> str:
    categories = "\n".join(f"  - {c}" for c in allowed_categories)
    return _USER_TEMPLATE.format(categories=categories, rows_json=rows_json)


def build_response_format(
    allowed_categories: Sequence[str],
) -> ResponseFormatTextJSONSchemaConfigParam:
    """Return the strict JSON Schema response_format object.

    Schema shape::

        {"transactions": [{"idx", "category", "subcategory", "merchant",
                           "description", "confidence"}, ...]}

    ``category`` is constrained to ``allowed_categories``; nullable fields are
    still listed as required, as strict mode demands.
    """

    codes = [c for c in dict.fromkeys(s.strip() for s in allowed_categories) if c]
    if not codes:
        raise ValueError("allowed_categories must contain at least one non-blank value")

    result: ResponseFormatTextJSONSchemaConfigParam = {
        "type": "json_schema",
        "name": "statement_transactions",
        "schema": {
            "type": "object",
            "properties": {
                "transactions": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "idx": {"type": "integer"},
                            "category": {"type": "string", "enum": codes},
                            "subcategory": {"type": ["string", "null"]},
                            "merchant": {"type": ["string", "null"]},
                            "description": {"type": "string"},
                            "confidence": {"type": "number", "minimum": 0, "maximum": 1},
                        },
                        "required": [
                            "idx",
                            "category",
                            "subcategory",
                            "merchant",
                            "description",
                            "confidence",
                        ],
                        "additionalProperties": False,
                    },
                }
            },
            "required": ["transactions"],
            "additionalProperties": False,
        },
        "strict": True,
    }
    return result


__all__ = [
    "ROW_FIELD_ORDER",
    "build_response_format",
    "build_system_instructions",
    "build_user_content",
    "row_to_payload",
    "serialize_rows_to_json",
]
