"""Deterministic categorization tables shared by both classifiers.

``CATEGORY_RULES`` is evaluated first-match-wins, so specific rules (refunds,
self-transfers, ATM withdrawals, salary) sit before the broad merchant tables
and the generic ``deposit``/``withdrawal`` catch-alls come last.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from .models import RawRow, TransactionType

OTHER = "Other"
UNCATEGORIZED = "Uncategorized"
DEFAULT_ICON = "📌"


def _keyword_regex(keywords: Iterable[str]) -> re.Pattern[str]:
    """Compile a word-bounded, case-insensitive alternation, longest keyword first."""

    ordered = sorted(dict.fromkeys(k.lower() for k in keywords), key=lambda k: (-len(k), k))
    alts = "|".join(re.escape(k) for k in ordered)
    # \b does not work next to "&" (h&m, at&t), so bound on non-word chars instead.
    return re.compile(rf"(?<!\w)(?:{alts})(?!\w)", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Self-transfers
# ---------------------------------------------------------------------------

BANK_NAMES: tuple[str, ...] = (
    "idfc",
    "idfc first",
    "hdfc",
    "icici",
    "sbi",
    "state bank",
    "axis",
    "kotak",
    "yes bank",
    "pnb",
    "punjab national",
    "bank of baroda",
    "canara",
    "union bank",
    "indusind",
    "federal",
    "rbl",
    "au small finance",
    "paytm payments",
)

_SELF_RE = re.compile(r"(?<!\w)self(?!\w)", re.IGNORECASE)
_BANK_RE = _keyword_regex(BANK_NAMES)
_TRANSFER_RE = _keyword_regex(("transfer", "self transfer", "own account"))


def is_self_transfer(description: str) -> bool:
    """Return True for movements between the account holder's own accounts.

    Matches ``self`` together with a recognized bank name (``Self trans/IDFC
    FIRST``) or an explicit ``transfer`` keyword.
    """

    if _TRANSFER_RE.search(description):
        return True
    return bool(_SELF_RE.search(description) and _BANK_RE.search(description))


def derive_type(row: RawRow) -> TransactionType:
    if is_self_transfer(row.description):
        return TransactionType.TRANSFER
    return TransactionType.INCOME if row.is_credit else TransactionType.EXPENSE


# ---------------------------------------------------------------------------
# Category rules
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CategoryRule:
    name: str
    predicate: Callable[[str], bool]
    category: str

    def matches(self, description: str) -> bool:
        return self.predicate(description)


def _keywords(*words: str) -> Callable[[str], bool]:
    rx = _keyword_regex(words)

    def _pred(description: str) -> bool:
        return rx.search(description) is not None

    return _pred


CATEGORY_RULES: tuple[CategoryRule, ...] = (
    CategoryRule("refund", _keywords("refund", "reversal", "cashback", "chargeback"), "Refunds"),
    CategoryRule("self_transfer", is_self_transfer, "Transfers"),
    CategoryRule("atm", _keywords("atm", "cash withdrawal"), "Cash Withdrawal"),
    CategoryRule(
        "salary",
        _keywords("salary", "payroll", "interest", "dividend", "int.pd"),
        "Income",
    ),
    CategoryRule(
        "food",
        _keywords(
            "grocery",
            "groceries",
            "supermarket",
            "food",
            "restaurant",
            "cafe",
            "starbucks",
            "mcdonalds",
            "uber eats",
            "doordash",
            "grubhub",
            "swiggy",
            "zomato",
            "pizza",
            "burger",
            "taco",
            "subway",
            "kfc",
            "wendys",
        ),
        "Food & Dining",
    ),
    CategoryRule(
        "transport",
        _keywords(
            "gas",
            "fuel",
            "petrol",
            "transport",
            "uber",
            "lyft",
            "ola",
            "taxi",
            "shell",
            "exxon",
            "chevron",
            "parking",
            "toll",
            "metro",
            "bus",
            "train",
            "irctc",
        ),
        "Transportation",
    ),
    CategoryRule(
        "shopping",
        _keywords(
            "online",
            "amazon",
            "flipkart",
            "shopping",
            "walmart",
            "target",
            "costco",
            "best buy",
            "home depot",
            "lowes",
            "macy",
            "nordstrom",
            "gap",
            "old navy",
            "h&m",
        ),
        "Shopping",
    ),
    CategoryRule(
        "entertainment",
        _keywords(
            "netflix",
            "spotify",
            "hulu",
            "disney",
            "hbo",
            "youtube",
            "movie",
            "theater",
            "concert",
            "game",
            "playstation",
            "xbox",
        ),
        "Entertainment",
    ),
    CategoryRule(
        "healthcare",
        _keywords(
            "cvs",
            "walgreens",
            "rite aid",
            "pharmacy",
            "doctor",
            "hospital",
            "medical",
            "dental",
            "vision",
        ),
        "Healthcare",
    ),
    CategoryRule(
        "utilities",
        _keywords(
            "electric",
            "electricity",
            "water",
            "internet",
            "phone",
            "mobile recharge",
            "cable",
            "at&t",
            "verizon",
            "comcast",
            "xfinity",
            "spectrum",
        ),
        "Utilities",
    ),
    CategoryRule(
        "bills",
        _keywords(
            "mortgage",
            "rent",
            "loan",
            "emi",
            "credit card",
            "insurance",
            "utility",
            "subscription",
            "membership",
        ),
        "Bills & Payments",
    ),
    CategoryRule("deposit", _keywords("deposit"), "Income"),
    CategoryRule("withdrawal", _keywords("withdrawal"), "Cash Withdrawal"),
)


def categorize(description: str) -> str:
    """Return the category of the first matching rule, or ``Other``."""

    for rule in CATEGORY_RULES:
        if rule.matches(description):
            return rule.category
    return OTHER


# ---------------------------------------------------------------------------
# Merchant cleanup and icons
# ---------------------------------------------------------------------------

_NOISE_WORDS: tuple[str, ...] = (
    "deposit",
    "withdrawal",
    "credit",
    "debit",
    "atm",
    "online",
    "purchase",
)
_NOISE_RE = _keyword_regex(_NOISE_WORDS)


def clean_merchant(description: str) -> str:
    """Strip transactional noise words and collapse whitespace.

    Never returns an empty string: when nothing survives the cleanup, the
    original description is returned verbatim.
    """

    cleaned = " ".join(_NOISE_RE.sub(" ", description).split())
    return cleaned or description


CATEGORY_ICONS: dict[str, str] = {
    "Food & Dining": "🍽️",
    "Transportation": "🚗",
    "Shopping": "🛍️",
    "Entertainment": "🎬",
    "Healthcare": "🏥",
    "Utilities": "⚡",
    "Bills & Payments": "📄",
    "Income": "💰",
    "Investment": "📈",
    "Travel": "✈️",
    "Education": "📚",
    "Home & Garden": "🏠",
    "Personal Care": "💄",
    "Gifts": "🎁",
    "Insurance": "🛡️",
    "Taxes": "📊",
    "Fees": "💳",
    "Cash Withdrawal": "🏧",
    "Refunds": "↩️",
    "Transfers": "🔁",
    OTHER: DEFAULT_ICON,
}


def icon_for_category(category: str) -> str:
    return CATEGORY_ICONS.get(category, DEFAULT_ICON)


# Closed set accepted from the AI classifier; anything else becomes ``Other``.
ALLOWED_CATEGORIES: tuple[str, ...] = (*CATEGORY_ICONS.keys(), UNCATEGORIZED)


__all__ = [
    "ALLOWED_CATEGORIES",
    "BANK_NAMES",
    "CATEGORY_ICONS",
    "CATEGORY_RULES",
    "CategoryRule",
    "DEFAULT_ICON",
    "OTHER",
    "UNCATEGORIZED",
    "categorize",
    "clean_merchant",
    "derive_type",
    "icon_for_category",
    "is_self_transfer",
]
