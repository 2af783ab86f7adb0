import pytest

from ar_reports.ledger import LedgerRow, parse_rows, safe_amount
from ar_reports.reconciliation import open_balance
from conftest import make_row


def test_from_sheet_row_pads_and_parses_amounts():
    row = LedgerRow.from_sheet_row(["2024-01-05", "", "SAL100", "Acme", "Omar", "1,250.50"])
    assert row.customer_name == "Acme"
    assert row.debit == pytest.approx(1250.50)
    assert row.credit == 0.0
    assert row.due_date is None
    assert row.matching is None
    assert row.net_amount == pytest.approx(1250.50)


def test_from_mapping_accepts_camel_case_keys():
    row = LedgerRow.from_mapping(
        {"customerName": "Acme", "number": "BNK1", "date": "2024-01-05", "credit": 40, "matching": "A", "dueDate": "2024-02-05"}
    )
    assert row.matching == "A"
    assert row.due_date == "2024-02-05"
    assert row.net_amount == pytest.approx(-40)


def test_parsed_dates_degrade_to_none():
    row = LedgerRow(customer_name="Acme", number="SAL1", date="garbage", due_date="2024-02-30")
    assert row.parsed_date is None
    assert row.parsed_due_date is None


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, 0.0),
        ("", 0.0),
        ("abc", 0.0),
        ("2,000", 2000.0),
        (5, 5.0),
        ("NaN", 0.0),
        ("inf", 0.0),
        ("-Infinity", 0.0),
        (float("nan"), 0.0),
    ],
)
def test_safe_amount(raw, expected):
    assert safe_amount(raw) == expected


def test_parse_rows_drops_rows_without_customer():
    rows = parse_rows([["2024-01-01", "", "SAL1", "Acme", "", "10"], ["2024-01-01", "", "SAL2", "", "", "10"], []])
    assert [row.number for row in rows] == ["SAL1"]


def test_non_finite_amount_does_not_close_its_matching_group():
    junk = LedgerRow.from_sheet_row(["2024-01-05", "", "SAL2", "Acme", "Omar", "NaN", "", "A"])
    valid = make_row(customer_name="Acme", number="SAL1", debit=100, matching="A")
    assert junk.debit == 0.0
    rows = [junk, valid]
    assert sum(row.net_amount for row in rows) == pytest.approx(100)
    assert open_balance(rows) == pytest.approx(100)
