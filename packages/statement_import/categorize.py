"""AI classification strategy over the OpenAI Responses API.

Public API:
    - :class:`AIClassifier`

All rows of a statement go out in one request. The result is all-or-nothing:
any failure (timeout, transport error, missing text, invalid JSON, schema
violation, row-count mismatch) raises
:class:`~statement_import.errors.ClassificationError` and no partial result is
returned. No side effects occur at import time (no client creation, no
environment reads).
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any

from openai import OpenAI
from openai.types.responses import ResponseTextConfigParam

from . import prompting
from .categorization import parse_and_align_classifications
from .classifier import build_transaction
from .config import ParserConfig
from .errors import ClassificationError
from .logging_setup import get_logger, log_event
from .models import NormalizedTransaction, RawRow
from .rules import ALLOWED_CATEGORIES

_logger = get_logger("statement_import.categorize")


# ---- Internal helpers --------------------------------------------------------


def _extract_response_json_mapping(resp: Any) -> Mapping[str, Any]:
    """Decode the JSON mapping from an OpenAI Responses SDK result.

    - Prefer ``resp.output_text``; fall back to ``resp.output[0].content[0].text``.
    - Raise ``ValueError`` if text cannot be located or if JSON decoding fails.
    """

    text: str | None = getattr(resp, "output_text", None)
    if not text:
        output = getattr(resp, "output", None)
        first = output[0] if output else None
        content = getattr(first, "content", None)
        if content:
            txt_obj = getattr(content[0], "text", None)
            if isinstance(txt_obj, str):
                text = txt_obj
            else:
                # Some SDKs expose text as an object with a ``value`` string.
                maybe_val = getattr(txt_obj, "value", None)
                if isinstance(maybe_val, str):
                    text = maybe_val
    if not text or not isinstance(text, str):
        raise ValueError("Unexpected Responses API shape; unable to locate text output")

    try:
        decoded: Mapping[str, Any] = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError("Model output was not valid JSON per the requested schema") from e
    return decoded


def _create_client(config: ParserConfig) -> OpenAI:
    # Retries are disabled: a failed call falls back to the rule-based strategy.
    return OpenAI(
        api_key=config.openai_api_key,
        base_url=config.openai_base_url,
        max_retries=0,
        timeout=config.ai_timeout_sec,
    )


# ---- Strategy ----------------------------------------------------------------


class AIClassifier:
    """Classify a whole statement with one Responses API request.

    Parameters
    ----------
    config:
        Supplies the API key, optional base URL, model name, and the hard
        wall-clock timeout for the request.
    allowed_categories:
        Closed category set sent as the schema enum; anything else the model
        returns is coerced to ``Other``.
    """

    def __init__(
        self,
        config: ParserConfig,
        *,
        allowed_categories: Sequence[str] = ALLOWED_CATEGORIES,
    ) -> None:
        if not config.ai_available:
            raise ValueError("AIClassifier requires an OpenAI API key")
        self.config = config
        self.allowed_categories: tuple[str, ...] = tuple(allowed_categories)

    def classify(self, rows: Sequence[RawRow]) -> list[NormalizedTransaction]:
        if not rows:
            return []

        user_content = prompting.build_user_content(
            prompting.serialize_rows_to_json(rows), self.allowed_categories
        )
        text_cfg = ResponseTextConfigParam(
            format=prompting.build_response_format(self.allowed_categories),
        )

        log_event(
            _logger,
            logging.INFO,
            "classify_ai:request",
            model=self.config.model,
            num_rows=len(rows),
            timeout_sec=self.config.ai_timeout_sec,
        )
        t0 = time.perf_counter()
        try:
            decoded = self._request(user_content, text_cfg)
            items = parse_and_align_classifications(
                decoded,
                num_items=len(rows),
                allowed_categories=self.allowed_categories,
            )
        except ClassificationError:
            raise
        except Exception as e:  # noqa: BLE001 - any failure means the whole batch falls back
            dt_ms = (time.perf_counter() - t0) * 1000.0
            log_event(
                _logger,
                logging.WARNING,
                "classify_ai:failed",
                num_rows=len(rows),
                latency_ms=dt_ms,
                error=e.__class__.__name__,
            )
            raise ClassificationError(f"AI classification failed: {e}") from e

        dt_ms = (time.perf_counter() - t0) * 1000.0
        log_event(
            _logger, logging.INFO, "classify_ai:done", num_rows=len(rows), latency_ms=dt_ms
        )

        return [
            build_transaction(
                row,
                category=item.category,
                source="ai",
                merchant=item.merchant or row.merchant,
                name=item.description,
                subcategory=item.subcategory,
                confidence=item.confidence,
            )
            for row, item in zip(rows, items, strict=True)
        ]

    def _request(self, user_content: str, text_cfg: ResponseTextConfigParam) -> Mapping[str, Any]:
        """Run the request on a worker thread bounded by ``ai_timeout_sec``.

        On timeout the future is cancelled and the worker abandoned; its result,
        if it ever arrives, is discarded.
        """

        client = _create_client(self.config)

        def _call() -> Mapping[str, Any]:
            resp = client.responses.create(
                model=self.config.model,
                instructions=prompting.build_system_instructions(),
                input=user_content,
                text=text_cfg,
            )
            return _extract_response_json_mapping(resp)

        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="statement-import-ai")
        try:
            future = pool.submit(_call)
            try:
                return future.result(timeout=self.config.ai_timeout_sec)
            except FutureTimeoutError as e:
                future.cancel()
                log_event(
                    _logger,
                    logging.WARNING,
                    "classify_ai:timeout",
                    timeout_sec=self.config.ai_timeout_sec,
                )
                raise ClassificationError(
                    f"AI request timed out after {self.config.ai_timeout_sec:g}s"
                ) from e
        finally:
            pool.shutdown(wait=False, cancel_futures=True)


__all__ = ["AIClassifier"]
