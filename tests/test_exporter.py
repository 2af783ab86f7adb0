import csv
from datetime import date

from ar_reports.aging import overdue_invoices
from ar_reports.exporter import OVERDUE_HEADERS, export_overdue, export_overview, safe_filename
from ar_reports.reconciliation import annotate_rows, open_invoices
from ar_reports.views import customers_overview
from conftest import make_row


def test_export_overdue_writes_condensed_rows(tmp_path):
    rows = [
        make_row(number="SAL1", matching="A", debit=100, date="2024-06-01"),
        make_row(number="BNK1", matching="A", credit=40, date="2024-06-10"),
    ]
    overdue = overdue_invoices(open_invoices(annotate_rows(rows)), date(2024, 6, 30))
    path = export_overdue(tmp_path / "out" / "overdue.csv", overdue)
    with open(path, newline="", encoding="utf-8") as handle:
        records = list(csv.reader(handle))
    assert records[0] == OVERDUE_HEADERS
    assert records[1][2] == "SAL1"
    assert records[1][6:] == ["100.00", "40.00", "60.00", "29"]


def test_export_overview(tmp_path):
    overview = customers_overview([make_row(customer_name="Acme", debit=10)])
    path = export_overview(tmp_path / "customers.csv", overview)
    with open(path, newline="", encoding="utf-8") as handle:
        records = list(csv.reader(handle))
    assert records[1] == ["Acme", "10.00", "0.00", "10.00", "1", "No"]


def test_safe_filename():
    assert safe_filename("Acme / Trading: LLC") == "Acme  Trading LLC"
    assert safe_filename("///") == "customer"
