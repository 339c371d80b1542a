"""Public interface for the ``statement_import`` package.

Re-exports the parser entry points, options/result models, configuration, and
error types as the stable import surface. There is no runtime logic here, only
symbol re-exports.
"""

from .config import ParserConfig
from .errors import (
    ClassificationError,
    ClassificationUnavailableError,
    EmptyStatementError,
    StatementImportError,
    UnrecognizedFormatError,
)
from .models import (
    DateRange,
    NormalizedTransaction,
    ParseOptions,
    ParseResult,
    RawRow,
    TransactionMetadata,
    TransactionType,
)
from .pipeline import StatementParser, parse_statement, parse_statements

__all__ = [
    # API
    "StatementParser",
    "parse_statement",
    "parse_statements",
    "ParserConfig",
    # Models / types
    "DateRange",
    "NormalizedTransaction",
    "ParseOptions",
    "ParseResult",
    "RawRow",
    "TransactionMetadata",
    "TransactionType",
    # Errors
    "StatementImportError",
    "UnrecognizedFormatError",
    "EmptyStatementError",
    "ClassificationUnavailableError",
    "ClassificationError",
]
