"""Test helpers to stub the OpenAI Responses client used by categorize.py.

The stub parses the user-content payload to extract the embedded rows JSON
array and returns a deterministic ``{"transactions": [...]}`` body. Tests
provide a ``decide`` callable mapping each row payload to a
``(category, merchant, confidence)`` tuple so the test surface stays small and
focused on inputs/outputs.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

BEGIN = "BEGIN_ROWS_JSON\n"
END = "\nEND_ROWS_JSON"


def extract_rows_from_user_content(user_content: str) -> list[dict[str, Any]]:
    b = user_content.find(BEGIN)
    e = user_content.rfind(END)
    if b == -1 or e == -1 or e <= b:
        raise AssertionError("categorize: user content missing embedded rows JSON block")
    return json.loads(user_content[b + len(BEGIN) : e])


class _Resp:
    def __init__(self, output_text: str | None) -> None:
        self.output_text = output_text
        self.output = []


class OpenAIStub:
    """Minimal stub matching ``openai.OpenAI`` shape for ``categorize.py``.

    Parameters
    ----------
    decide:
        A callable receiving a row payload (``idx``, ``date``, ``description``,
        ``amount``, ``direction``, ...) and returning a
        ``(category, merchant, confidence)`` tuple.
    calls_out:
        A list appended with each call's kwargs for lightweight assertions.
    mutate:
        Optional hook applied to the results list before encoding, to simulate
        malformed responses (dropped rows, duplicate indices, ...).
    """

    def __init__(
        self,
        decide: Callable[[dict[str, Any]], tuple[str, str | None, float]],
        calls_out: list[dict[str, Any]] | None = None,
        mutate: Callable[[list[dict[str, Any]]], list[dict[str, Any]]] | None = None,
    ) -> None:
        self._decide = decide
        self._calls = calls_out if calls_out is not None else []
        self._mutate = mutate
        self.init_kwargs: dict[str, Any] = {}

        class _Responses:
            def __init__(self, outer: OpenAIStub) -> None:
                self._outer = outer

            def create(self, **kwargs):
                self._outer._calls.append(kwargs)
                rows = extract_rows_from_user_content(kwargs["input"])
                results = []
                for row in rows:
                    cat, merchant, confidence = self._outer._decide(row)
                    results.append(
                        {
                            "idx": row["idx"],
                            "category": cat,
                            "subcategory": None,
                            "merchant": merchant,
                            "description": (merchant or row["description"]),
                            "confidence": float(confidence),
                        }
                    )
                if self._outer._mutate is not None:
                    results = self._outer._mutate(results)
                return _Resp(json.dumps({"transactions": results}))

        self.responses = _Responses(self)

    def __call__(self, **kwargs: Any) -> OpenAIStub:
        # Lets a single instance stand in for the ``OpenAI`` class itself.
        self.init_kwargs = kwargs
        return self

    @property
    def calls(self) -> list[dict[str, Any]]:
        return self._calls


class FailingOpenAI:
    """Client whose ``responses.create`` raises ``exc`` (e.g., a simulated 500)."""

    def __init__(self, exc: BaseException) -> None:
        self.calls = 0
        outer = self

        class _Responses:
            def create(self, **kwargs):
                outer.calls += 1
                raise exc

        self.responses = _Responses()

    def __call__(self, **kwargs: Any) -> FailingOpenAI:
        return self


class FixedResponseOpenAI:
    """Client returning a fixed ``output_text`` (``None`` simulates a missing body)."""

    def __init__(self, output_text: str | None) -> None:
        text = output_text

        class _Responses:
            def create(self, **kwargs):
                return _Resp(text)

        self.responses = _Responses()

    def __call__(self, **kwargs: Any) -> FixedResponseOpenAI:
        return self
