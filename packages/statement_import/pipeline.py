"""Orchestrator: normalize → classify → merge/validate → ``ParseResult``.

Public API:
    - :class:`StatementParser`
    - :func:`parse_statement`
    - :func:`parse_statements`

A parse call holds no state beyond its own locals; one parser instance can be
shared across threads. Structural failures never raise out of
:meth:`StatementParser.parse`; they come back as ``success=False`` with a
``"<ErrorName>: message"`` entry in ``errors``.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

from .categorize import AIClassifier
from .classifier import Classifier, RuleBasedClassifier
from .config import ParserConfig
from .errors import (
    ROW_SKIPPED,
    ClassificationError,
    ClassificationUnavailableError,
    StatementImportError,
    fallback_used,
    row_skipped,
)
from .logging_setup import get_logger, log_event
from .models import (
    DateRange,
    NormalizedTransaction,
    ParseOptions,
    ParseResult,
    RawRow,
)
from .normalizer import StatementNormalizer

_logger = get_logger("statement_import.pipeline")

# Round amounts above this are logged for review but kept.
_ROUND_AMOUNT_WARN_ABOVE = Decimal(1000)


# ---------------------------------------------------------------------------
# Policies
# ---------------------------------------------------------------------------


def _validate_rows(
    rows: Sequence[RawRow], max_amount: Decimal, errors: list[str]
) -> list[RawRow]:
    kept: list[RawRow] = []
    for row in rows:
        amount = abs(row.signed_amount)
        if not amount.is_finite():
            errors.append(row_skipped(row.line, f"non-finite amount {row.signed_amount}"))
            continue
        if amount == 0:
            errors.append(row_skipped(row.line, "zero amount"))
            continue
        if amount > max_amount:
            errors.append(
                row_skipped(row.line, f"implausible amount {amount} exceeds {max_amount}")
            )
            continue
        if amount > _ROUND_AMOUNT_WARN_ABOVE and amount % 100 == 0:
            log_event(
                _logger, logging.WARNING, "validate:round_amount", line=row.line, amount=amount
            )
        kept.append(row)
    return kept


def duplicate_key(txn: NormalizedTransaction) -> tuple[str, Decimal, str]:
    """Date, absolute amount, and case/whitespace-normalized description."""

    desc = " ".join(txn.description.casefold().split())
    return (txn.date.isoformat(), txn.amount, desc)


def merge_duplicates(transactions: Iterable[NormalizedTransaction]) -> list[NormalizedTransaction]:
    """Collapse duplicates, keeping the first occurrence in file order."""

    seen: set[tuple[str, Decimal, str]] = set()
    out: list[NormalizedTransaction] = []
    for txn in transactions:
        key = duplicate_key(txn)
        if key in seen:
            continue
        seen.add(key)
        out.append(txn)
    return out


def net_total(transactions: Iterable[NormalizedTransaction]) -> Decimal:
    """Σ income − Σ expense; transfers contribute nothing."""

    return sum((t.signed_amount for t in transactions), Decimal(0))


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class StatementParser:
    """Parse statement text into a :class:`ParseResult`.

    Parameters
    ----------
    config:
        Parser settings; defaults to :meth:`ParserConfig.from_env`.
    normalizer:
        Override for the statement normalizer (tests).
    ai_classifier_factory:
        Builds the AI strategy from ``config``; defaults to :class:`AIClassifier`.
    """

    def __init__(
        self,
        config: ParserConfig | None = None,
        *,
        normalizer: StatementNormalizer | None = None,
        ai_classifier_factory: Callable[[ParserConfig], Classifier] | None = None,
    ) -> None:
        self.config = config if config is not None else ParserConfig.from_env()
        self.normalizer = normalizer or StatementNormalizer()
        self._ai_factory = ai_classifier_factory or AIClassifier

    def parse(self, text: str, options: ParseOptions | None = None) -> ParseResult:
        opts = options or ParseOptions()
        t0 = time.perf_counter()

        # ---- Normalizing ----
        try:
            statement = self.normalizer.normalize(text, opts.format_hint)
        except StatementImportError as e:
            log_event(
                _logger,
                logging.INFO,
                "parse:failed",
                stage="normalize",
                error=type(e).__name__,
            )
            return ParseResult.failure(
                [*e.errors, e.describe()], skipped_rows=_count_skipped(e.errors)
            )

        errors: list[str] = list(statement.errors)
        opening = [r for r in statement.rows if r.is_opening_balance]
        rows = [r for r in statement.rows if not r.is_opening_balance]
        log_event(
            _logger,
            logging.INFO,
            "parse:normalized",
            shape=statement.shape,
            rows=len(rows),
            opening=len(opening),
            skipped=len(errors),
        )

        if opts.validate_amounts:
            rows = _validate_rows(rows, self.config.max_amount, errors)

        # ---- Classifying ----
        try:
            transactions, ai_used = self._classify(rows, opts, errors)
        except ClassificationUnavailableError as e:
            return ParseResult.failure(
                [*errors, e.describe()], skipped_rows=_count_skipped(errors)
            )

        if opts.merge_duplicates:
            before = len(transactions)
            transactions = merge_duplicates(transactions)
            if before != len(transactions):
                log_event(
                    _logger,
                    logging.INFO,
                    "parse:merged",
                    duplicates=before - len(transactions),
                )

        skipped = _count_skipped(errors)
        if not transactions:
            log_event(_logger, logging.INFO, "parse:empty", skipped=skipped)
            return ParseResult(
                success=False,
                ai_used=ai_used,
                errors=[*errors, "EmptyStatementError: no transactions survived parsing"],
                skipped_rows=skipped,
            )

        dates = [t.date for t in transactions] + [r.date for r in opening]
        result = ParseResult(
            success=True,
            transactions=transactions,
            total_amount=net_total(transactions),
            date_range=DateRange(start=min(dates), end=max(dates)),
            ai_used=ai_used,
            errors=errors,
            skipped_rows=skipped,
        )
        dt_ms = (time.perf_counter() - t0) * 1000.0
        log_event(
            _logger,
            logging.INFO,
            "parse:done",
            transactions=len(transactions),
            skipped=skipped,
            ai_used=ai_used,
            latency_ms=dt_ms,
        )
        return result

    def _classify(
        self, rows: Sequence[RawRow], opts: ParseOptions, errors: list[str]
    ) -> tuple[list[NormalizedTransaction], bool]:
        if not rows:
            return [], False

        if opts.use_ai:
            if self.config.ai_available:
                try:
                    return self._ai_factory(self.config).classify(rows), True
                except ClassificationError as e:
                    errors.append(fallback_used(str(e)))
                    log_event(_logger, logging.WARNING, "parse:fallback", reason="ai_failed")
            else:
                errors.append(fallback_used("AI classification unavailable: no API key configured"))
                log_event(_logger, logging.INFO, "parse:fallback", reason="no_api_key")

        try:
            return RuleBasedClassifier(auto_categorize=opts.auto_categorize).classify(rows), False
        except Exception as e:  # noqa: BLE001 - rule strategy must not fail; surface as fatal
            log_event(
                _logger, logging.ERROR, "parse:rules_failed", error=e.__class__.__name__
            )
            raise ClassificationUnavailableError(
                f"rule-based classification failed: {e}", errors=errors
            ) from e


def _count_skipped(errors: Iterable[str]) -> int:
    return sum(1 for e in errors if e.startswith(ROW_SKIPPED))


# ---------------------------------------------------------------------------
# Conveniences
# ---------------------------------------------------------------------------


def parse_statement(
    text: str,
    options: ParseOptions | None = None,
    config: ParserConfig | None = None,
) -> ParseResult:
    return StatementParser(config).parse(text, options)


def parse_statements(
    texts: Iterable[str],
    options: ParseOptions | None = None,
    config: ParserConfig | None = None,
    *,
    concurrency: int | None = None,
) -> list[ParseResult]:
    """Parse independent statements concurrently, preserving input order.

    ``concurrency`` defaults to ``config.concurrency``. Each statement gets its
    own result; one failed statement never affects the others.
    """

    parser = StatementParser(config)
    workers = concurrency if concurrency is not None else parser.config.concurrency
    if not isinstance(workers, int) or workers < 1:
        raise ValueError("concurrency must be a positive integer")

    items = list(texts)
    if not items:
        return []
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="statement-import") as pool:
        return list(pool.map(lambda t: parser.parse(t, options), items))


__all__ = [
    "StatementParser",
    "duplicate_key",
    "merge_duplicates",
    "net_total",
    "parse_statement",
    "parse_statements",
]
