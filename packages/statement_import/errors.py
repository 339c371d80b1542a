"""Exception taxonomy for statement parsing.

Structural failures abort a parse and are raised by the normalizer; the
orchestrator converts them into a failed :class:`~statement_import.models.ParseResult`.
Row-level problems and the AI fallback are never raised: they are recorded as
prefixed strings in ``ParseResult.errors`` (see :func:`row_skipped` and
:func:`fallback_used`).
"""

from __future__ import annotations

from collections.abc import Iterable


class StatementImportError(Exception):
    """Base class for whole-statement failures.

    ``errors`` carries the non-fatal messages collected before the failure so
    the caller can still show what was skipped.
    """

    def __init__(self, message: str, *, errors: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.message = message
        self.errors: list[str] = list(errors)

    def describe(self) -> str:
        return f"{type(self).__name__}: {self.message}"


class UnrecognizedFormatError(StatementImportError, ValueError):
    """No transaction table could be identified (date or amount role missing/ambiguous)."""


class EmptyStatementError(StatementImportError, ValueError):
    """The statement contains no usable data rows."""


class ClassificationUnavailableError(StatementImportError, RuntimeError):
    """Neither classification strategy produced results."""


class ClassificationError(RuntimeError):
    """A classification strategy failed for the whole batch.

    Raised by the AI strategy on timeout, transport errors, or malformed
    output. The orchestrator catches it and falls back to the rule-based
    strategy.
    """


ROW_SKIPPED = "RowSkipped"
FALLBACK_USED = "ClassificationFallbackUsed"


def row_skipped(line: int, reason: str) -> str:
    return f"{ROW_SKIPPED}: line {line}: {reason}"


def fallback_used(reason: str) -> str:
    return f"{FALLBACK_USED}: {reason}"


__all__ = [
    "ClassificationError",
    "ClassificationUnavailableError",
    "EmptyStatementError",
    "FALLBACK_USED",
    "ROW_SKIPPED",
    "StatementImportError",
    "UnrecognizedFormatError",
    "fallback_used",
    "row_skipped",
]
