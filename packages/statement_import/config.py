"""Runtime settings for the parser.

Settings are an explicit, immutable value handed to constructors; nothing in
the package reads them from a process-wide singleton. :meth:`ParserConfig.from_env`
builds one from environment variables (the CLI loads ``.env`` first).

Environment variables
---------------------
``OPENAI_API_KEY``
    Enables the AI classification strategy when set.
``OPENAI_BASE_URL``
    Optional alternative endpoint (e.g., an OpenAI-compatible router).
``STATEMENT_IMPORT_MODEL``
    Model name for the Responses API (default ``gpt-5``).
``STATEMENT_IMPORT_AI_TIMEOUT``
    Hard timeout in seconds for the AI call (default ``30``).
``STATEMENT_IMPORT_MAX_AMOUNT``
    Largest plausible absolute amount when validating (default ``1e12``).
``STATEMENT_IMPORT_CONCURRENCY``
    Worker cap for multi-statement parsing (default ``4``).
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

DEFAULT_MODEL: str = "gpt-5"
DEFAULT_AI_TIMEOUT_SEC: float = 30.0
DEFAULT_MAX_AMOUNT: Decimal = Decimal("1e12")
DEFAULT_CONCURRENCY: int = 4


def _env_str(env: Mapping[str, str], key: str) -> str | None:
    val = env.get(key)
    if val is None:
        return None
    val = val.strip()
    return val or None


def _env_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = _env_str(env, key)
    if raw is None:
        return default
    try:
        val = float(raw)
    except ValueError as exc:
        raise ValueError(f"{key} must be a number, got {raw!r}") from exc
    if val <= 0:
        raise ValueError(f"{key} must be positive, got {raw!r}")
    return val


def _env_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = _env_str(env, key)
    if raw is None:
        return default
    try:
        val = int(raw)
    except ValueError as exc:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from exc
    if val < 1:
        raise ValueError(f"{key} must be a positive integer, got {raw!r}")
    return val


def _env_decimal(env: Mapping[str, str], key: str, default: Decimal) -> Decimal:
    raw = _env_str(env, key)
    if raw is None:
        return default
    try:
        val = Decimal(raw)
    except InvalidOperation as exc:
        raise ValueError(f"{key} must be a number, got {raw!r}") from exc
    if not val.is_finite() or val <= 0:
        raise ValueError(f"{key} must be a positive finite number, got {raw!r}")
    return val


@dataclass(frozen=True, slots=True)
class ParserConfig:
    """Immutable parser settings.

    Attributes
    ----------
    openai_api_key:
        API key for the AI strategy. ``None`` disables AI classification.
    openai_base_url:
        Optional endpoint override passed to the OpenAI client.
    model:
        Responses API model name.
    ai_timeout_sec:
        Wall-clock bound on the single AI request.
    max_amount:
        Amounts with a larger magnitude are rejected when validating.
    concurrency:
        Default worker count for :func:`statement_import.pipeline.parse_statements`.
    """

    openai_api_key: str | None = field(default=None, repr=False)
    openai_base_url: str | None = None
    model: str = DEFAULT_MODEL
    ai_timeout_sec: float = DEFAULT_AI_TIMEOUT_SEC
    max_amount: Decimal = DEFAULT_MAX_AMOUNT
    concurrency: int = DEFAULT_CONCURRENCY

    def __post_init__(self) -> None:
        if self.ai_timeout_sec <= 0:
            raise ValueError("ai_timeout_sec must be positive")
        if self.max_amount <= 0:
            raise ValueError("max_amount must be positive")
        if isinstance(self.concurrency, bool) or self.concurrency < 1:
            raise ValueError("concurrency must be a positive integer")

    @property
    def ai_available(self) -> bool:
        return bool(self.openai_api_key)

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> ParserConfig:
        """Build settings from ``env`` (defaults to ``os.environ``)."""

        src: Mapping[str, str] = os.environ if env is None else env
        return cls(
            openai_api_key=_env_str(src, "OPENAI_API_KEY"),
            openai_base_url=_env_str(src, "OPENAI_BASE_URL"),
            model=_env_str(src, "STATEMENT_IMPORT_MODEL") or DEFAULT_MODEL,
            ai_timeout_sec=_env_float(src, "STATEMENT_IMPORT_AI_TIMEOUT", DEFAULT_AI_TIMEOUT_SEC),
            max_amount=_env_decimal(src, "STATEMENT_IMPORT_MAX_AMOUNT", DEFAULT_MAX_AMOUNT),
            concurrency=_env_int(src, "STATEMENT_IMPORT_CONCURRENCY", DEFAULT_CONCURRENCY),
        )


__all__ = ["ParserConfig"]
