import pytest

from statement_import.columns import classify_header, resolve_columns, try_resolve_columns
from statement_import.errors import UnrecognizedFormatError


@pytest.mark.parametrize(
    "header, role",
    [
        ("Date", "date"),
        ("Transaction Date", "date"),
        ("Value Date", "value_date"),
        ("Value Dt", "value_date"),
        ("PARTICULARS", "description"),
        ("Narration", "description"),
        ("Payee", "description"),
        ("Type", "type"),
        ("Dr/Cr", "type"),
        ("Debit/Credit", "type"),
        ("WITHDRAWALS", "debit"),
        ("Withdrawal Amount (INR )", "debit"),
        ("DEPOSITS", "credit"),
        ("Credit", "credit"),
        ("Amount", "amount"),
        ("BALANCE", "balance"),
        ("Cheque Number", "reference"),
        ("Ref No.", "reference"),
        ("Merchant", "merchant"),
        ("MODE", "mode"),
        ("Card Member", None),
        ("", None),
    ],
)
def test_classify_header(header: str, role: str | None):
    assert classify_header(header) == role


def test_resolve_bank_statement_header():
    mapping = resolve_columns(["DATE", "MODE", "PARTICULARS", "DEPOSITS", "WITHDRAWALS", "BALANCE"])
    assert mapping.date == 0
    assert mapping.mode == 1
    assert mapping.description == 2
    assert mapping.credit == 3
    assert mapping.debit == 4
    assert mapping.balance == 5
    assert mapping.amount is None
    assert mapping.has_split_amounts
    assert mapping.width == 6


def test_resolve_signed_amount_header_with_type_column():
    mapping = resolve_columns(["Date", "Description", "Amount", "Type"])
    assert (mapping.date, mapping.description, mapping.amount, mapping.type) == (0, 1, 2, 3)
    assert not mapping.has_split_amounts
    assert mapping.roles() == {
        "date": "Date",
        "description": "Description",
        "amount": "Amount",
        "type": "Type",
    }


def test_icici_detailed_header_prefers_transaction_date():
    mapping = resolve_columns(
        [
            "S No.",
            "Value Date",
            "Transaction Date",
            "Cheque Number",
            "Transaction Remarks",
            "Withdrawal Amount (INR )",
            "Deposit Amount (INR )",
            "Balance (INR )",
        ]
    )
    assert mapping.date == 2
    assert mapping.value_date == 1
    assert mapping.reference == 3
    assert mapping.description == 4
    assert (mapping.debit, mapping.credit, mapping.balance) == (5, 6, 7)


def test_idfc_header_prefers_transaction_date():
    mapping = resolve_columns(
        [
            "Transaction Date",
            "Value Date",
            "Particulars",
            "Cheque No.",
            "Debit",
            "Credit",
            "Balance",
        ]
    )
    assert (mapping.date, mapping.value_date) == (0, 1)
    assert (mapping.debit, mapping.credit) == (4, 5)


def test_value_date_alone_stands_in_for_date():
    mapping = resolve_columns(["Value Date", "Narration", "Amount"])
    assert mapping.date == 0
    assert mapping.value_date is None
    assert mapping.roles()["date"] == "Value Date"


def test_two_value_dates_are_ambiguous():
    with pytest.raises(UnrecognizedFormatError, match="ambiguous"):
        resolve_columns(["Value Date", "Value Dt", "Transaction Date", "Amount"])


def test_duplicate_role_is_an_error_naming_both_headers():
    with pytest.raises(UnrecognizedFormatError) as ei:
        resolve_columns(["Transaction Date", "Post Date", "Description", "Amount"])
    msg = str(ei.value)
    assert "ambiguous" in msg
    assert "'date'" in msg
    assert "Transaction Date" in msg and "Post Date" in msg


def test_amount_alongside_debit_credit_is_an_error():
    with pytest.raises(UnrecognizedFormatError, match="ambiguous"):
        resolve_columns(["Date", "Description", "Amount", "Debit", "Credit"])


def test_missing_date_role():
    with pytest.raises(UnrecognizedFormatError, match="no date column"):
        resolve_columns(["Description", "Amount"])


def test_missing_amount_role():
    with pytest.raises(UnrecognizedFormatError, match="no amount"):
        resolve_columns(["Date", "Description", "Balance"])


def test_try_resolve_returns_none_instead_of_raising():
    assert try_resolve_columns(["Savings Number: XXXXXXXX2899"]) is None
    assert try_resolve_columns(["Date", "Amount"]) is not None
