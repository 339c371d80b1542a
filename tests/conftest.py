"""Pytest configuration for test isolation.

The parser reads its settings from environment variables
(``OPENAI_API_KEY``, ``STATEMENT_IMPORT_*``). A developer shell or a local
``.env`` could leak a real key into the tests and send rows to the network, so
an autouse fixture clears every relevant variable for each test. Tests that
need AI enabled set a dummy key explicitly and stub the client.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Make sure the workspace `packages/` dir is on sys.path so `statement_import` is importable.
_ROOT = Path(__file__).resolve().parents[1]
_PKG_DIR = _ROOT / "packages"
# `packages/` precedes the repo root so local packages resolve first; the root makes
# `tests.helpers` importable.
sys.path[:0] = [p for p in [str(_PKG_DIR), str(_ROOT)] if p not in sys.path]

DATA_DIR = Path(__file__).resolve().parent / "data"

_ENV_VARS = (
    "OPENAI_API_KEY",
    "OPENAI_BASE_URL",
    "STATEMENT_IMPORT_MODEL",
    "STATEMENT_IMPORT_AI_TIMEOUT",
    "STATEMENT_IMPORT_MAX_AMOUNT",
    "STATEMENT_IMPORT_CONCURRENCY",
    "STATEMENT_IMPORT_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def icici_statement_text() -> str:
    """Multi-section ICICI savings statement dump (preamble, table, footer)."""

    return (DATA_DIR / "icici_statement.csv").read_text(encoding="utf-8")
