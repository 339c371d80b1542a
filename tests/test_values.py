from datetime import date
from decimal import Decimal

import pytest

from statement_import.values import is_blank_cell, is_zero_cell, parse_amount, parse_date

# ---- Amounts -----------------------------------------------------------------


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("15630.8", Decimal("15630.8")),
        ("1,234.56", Decimal("1234.56")),
        ("-120.50", Decimal("-120.50")),
        ("+42", Decimal("42")),
        ("$1,000.00", Decimal("1000.00")),
        ("₹ 2,230", Decimal("2230")),
        ("Rs. 179", Decimal("179")),
        ("INR 500", Decimal("500")),
        ("(45.10)", Decimal("-45.10")),
        ("-(₹1,234.56)", Decimal("-1234.56")),
        ("250.00 Dr", Decimal("-250.00")),
        ("250.00 CR", Decimal("250.00")),
        (".5", Decimal("0.5")),
    ],
)
def test_parse_amount_accepts_statement_forms(raw: str, expected: Decimal):
    assert parse_amount(raw) == expected


def test_parse_amount_keeps_decimal_precision():
    assert parse_amount("0.10") + parse_amount("0.20") == Decimal("0.30")


@pytest.mark.parametrize(
    "raw",
    [None, "", "   ", "3.88113E+11", "1e5", "NaN", "Infinity", "abc", "12.3.4", "1-2"],
)
def test_parse_amount_rejects_non_amounts(raw):
    with pytest.raises(ValueError):
        parse_amount(raw)


def test_scientific_notation_message_mentions_implausible():
    with pytest.raises(ValueError, match="implausible"):
        parse_amount("3.88113E+11")


def test_is_zero_cell():
    assert is_zero_cell(None)
    assert is_zero_cell("")
    assert is_zero_cell("0")
    assert is_zero_cell("0.00")
    assert not is_zero_cell("2230")
    # Garbage is not "zero"; the caller's parse_amount will reject it.
    assert not is_zero_cell("n/a")


@pytest.mark.parametrize("cell", ["-", "--", " - ", "---"])
def test_dash_placeholders_are_blank(cell: str):
    assert is_blank_cell(cell)
    assert is_zero_cell(cell)


def test_signed_and_zero_amounts_are_not_blank():
    assert not is_blank_cell("0")
    assert not is_blank_cell("-5.00")
    assert not is_blank_cell("n/a")


# ---- Dates -------------------------------------------------------------------


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1/7/25", date(2025, 7, 1)),
        ("8/7/25", date(2025, 7, 8)),
        ("30-07-2025", date(2025, 7, 30)),
        ("30.07.2025", date(2025, 7, 30)),
        ("2024-01-15", date(2024, 1, 15)),
        ("2024-01-15T10:30:00Z", date(2024, 1, 15)),
        ("30-07-2025 10:15:00", date(2025, 7, 30)),
        ("08-Jul-25", date(2025, 7, 8)),
        ("8 July 2025", date(2025, 7, 8)),
        # Day-first is impossible when the second token exceeds 12.
        ("7/30/2025", date(2025, 7, 30)),
    ],
)
def test_parse_date_forms(raw: str, expected: date):
    assert parse_date(raw) == expected


def test_ambiguous_numeric_dates_are_day_first():
    assert parse_date("3/4/25") == date(2025, 4, 3)


@pytest.mark.parametrize("raw", [None, "", "B/F", "31/02/2025", "13/13/2025", "07 Foo 2025"])
def test_parse_date_rejects_invalid(raw):
    with pytest.raises(ValueError):
        parse_date(raw)
