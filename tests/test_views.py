from datetime import date

import pytest

from ar_reports.rating import DebtRating
from ar_reports.views import (
    combined_aging,
    all_customer_reports,
    customer_ratings,
    customer_report,
    customer_summary,
    customers_overview,
    month_analysis,
    sales_rep_analysis,
    year_analysis,
)
from conftest import make_row

TODAY = date(2024, 6, 30)


def test_customer_report_example_group():
    rows = [
        make_row(number="SAL1", matching="A", debit=100, credit=0, date="2024-01-01"),
        make_row(number="BNK1", matching="A", debit=0, credit=40, date="2024-02-01"),
    ]
    report = customer_report("Acme Trading", rows, TODAY)
    assert report.open_balance == pytest.approx(60)
    assert report.net_debt == pytest.approx(60)
    assert [invoice.row.number for invoice in report.overdue_invoices] == ["SAL1"]
    assert report.aging.older == pytest.approx(60)
    payload = report.to_dict()
    assert payload["aging"]["total"] == pytest.approx(60)
    assert payload["overdueInvoices"][0]["difference"] == pytest.approx(60)
    assert [entry["month"] for entry in payload["monthly"]] == ["January", "February"]


def test_zero_row_contributes_nothing():
    report = customer_report("Acme", [make_row(number="X1", debit=0, credit=0)], TODAY)
    assert report.open_balance == 0
    assert report.overdue_invoices == []
    assert report.aging.total == 0


def test_customer_summary_headline_figures():
    rows = [
        make_row(number="SAL1", debit=600, date="2024-01-10"),
        make_row(number="SAL2", debit=400, date="2024-03-10"),
        make_row(number="RSAL1", credit=100, date="2024-03-12"),
        make_row(number="BNK1", credit=300, date="2024-04-01"),
        make_row(number="BNK2", credit=200, date="2024-05-01"),
    ]
    summary = customer_summary(rows, TODAY)
    assert summary.total_sales == pytest.approx(1000)
    assert summary.total_paid == pytest.approx(600)
    assert summary.collection_rate == pytest.approx(60)
    assert summary.net_sales == pytest.approx(900)
    assert summary.average_monthly_sales == pytest.approx(300)
    assert summary.last_payment_amount == pytest.approx(200)
    assert summary.last_payment_date == date(2024, 5, 1)
    assert summary.last_activity == date(2024, 5, 1)
    assert summary.total_payments == pytest.approx(500)
    assert summary.overdue_amount == pytest.approx(400)
    assert summary.aging.total == pytest.approx(400)


def test_customers_overview_sorted_and_filtered():
    rows = [
        make_row(customer_name="Small", debit=10),
        make_row(customer_name="Big", number="SAL1", debit=500, matching="A"),
        make_row(customer_name="Big", number="BNK1", credit=100, matching="A"),
    ]
    overview = customers_overview(rows)
    assert [entry.customer_name for entry in overview] == ["Big", "Small"]
    assert overview[0].has_open_matchings is True
    assert overview[0].transaction_count == 2
    only_open = customers_overview(rows, only_open_matchings=True)
    assert [entry.customer_name for entry in only_open] == ["Big"]


def test_combined_aging_sums_customer_buckets():
    rows = [
        make_row(customer_name="One", debit=100, date="2024-06-30"),
        make_row(customer_name="Two", debit=50, date="2023-01-01"),
    ]
    total = combined_aging(list(all_customer_reports(rows, TODAY).values()))
    assert total.at_date == pytest.approx(100)
    assert total.older == pytest.approx(50)
    assert total.total == pytest.approx(150)


def test_year_analysis_only_counts_debtors_oldest_year_first():
    rows = [
        make_row(customer_name="Debtor", number="SAL1", debit=1000, date="2024-02-01"),
        make_row(customer_name="Debtor", number="SAL2", debit=500, date="FY 2023"),
        make_row(customer_name="Settled", number="SAL3", debit=100, date="2024-03-01"),
        make_row(customer_name="Settled", number="BNK1", credit=100, date="2024-03-05"),
    ]
    years = year_analysis(rows, TODAY)
    assert [entry.key for entry in years] == ["2023", "2024"]
    year_2024 = years[1]
    assert year_2024.total_debit == pytest.approx(1000)
    assert year_2024.transaction_count == 1
    assert year_2024.customer_count == 2
    assert year_2024.good_customers + year_2024.medium_customers + year_2024.bad_customers == 2
    assert years[0].total_debit == pytest.approx(500)


def test_month_analysis_is_chronological():
    rows = [
        make_row(debit=10, credit=0, date="2024-02-01"),
        make_row(debit=30, credit=15, date="2024-01-15"),
        make_row(debit=5, date="??"),
    ]
    months = month_analysis(rows)
    assert [entry.key for entry in months] == ["2024-01", "2024-02"]
    assert months[0].collection_rate == pytest.approx(50)


def test_sales_rep_analysis_counts_customers_per_rep():
    rows = [
        make_row(customer_name="A", sales_rep="Omar", debit=100),
        make_row(customer_name="B", sales_rep="Omar", debit=300),
        make_row(customer_name="B", sales_rep="Sara", debit=50),
    ]
    reps = {entry.key: entry for entry in sales_rep_analysis(rows, TODAY)}
    assert reps["Omar"].customer_count == 2
    assert reps["Omar"].net_debt == pytest.approx(400)
    assert reps["Sara"].customer_count == 1
    assert reps["Sara"].bad_customers + reps["Sara"].medium_customers + reps["Sara"].good_customers == 1


def test_customer_ratings_respect_closed_list():
    rows = [make_row(customer_name="Gone Ltd", number="BNK1", credit=10)]
    assert customer_ratings(rows, TODAY) == {"Gone Ltd": DebtRating.GOOD}
    assert customer_ratings(rows, TODAY, {"gone ltd"}) == {"Gone Ltd": DebtRating.BAD}
