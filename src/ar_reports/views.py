"""Report views built on the reconciliation, aging and rating helpers."""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import AbstractSet, Dict, List, Optional, Sequence

from ar_reports.aging import BUCKETS, AgingSummary, OverdueInvoice, aging_summary, overdue_invoices
from ar_reports.classifier import is_return, is_sale, is_smart_payment, net_sales
from ar_reports.dates import year_of
from ar_reports.ledger import EPSILON, LedgerRow
from ar_reports.monthly import MonthlyDebt, monthly_rollup
from ar_reports.rating import CustomerAnalysis, DebtRating, analyse_customers, count_ratings, debt_rating
from ar_reports.reconciliation import annotate_rows, group_by_customer, matching_totals, open_invoices

LOGGER = logging.getLogger(__name__)


@dataclass
class CustomerReport:
    customer_name: str
    net_debt: float
    open_balance: float
    overdue_invoices: List[OverdueInvoice]
    aging: AgingSummary
    monthly: List[MonthlyDebt]

    def to_dict(self) -> Dict[str, object]:
        return {
            "customerName": self.customer_name,
            "netDebt": self.net_debt,
            "openBalance": self.open_balance,
            "overdueInvoices": [invoice.to_dict() for invoice in self.overdue_invoices],
            "aging": self.aging.to_dict(),
            "monthly": [entry.to_dict() for entry in self.monthly],
        }


def customer_report(customer_name: str, rows: Sequence[LedgerRow], today: date) -> CustomerReport:
    """Net debt, open balance, overdue list, aging and monthly roll-up for one scope."""

    invoices = open_invoices(annotate_rows(rows))
    overdue = overdue_invoices(invoices, today)
    return CustomerReport(
        customer_name=customer_name,
        net_debt=sum(row.net_amount for row in rows),
        open_balance=sum(invoice.amount for invoice in invoices),
        overdue_invoices=overdue,
        aging=aging_summary(invoices, today),
        monthly=monthly_rollup(rows),
    )


def all_customer_reports(rows: Sequence[LedgerRow], today: date) -> Dict[str, CustomerReport]:
    return {
        name: customer_report(name, customer_rows, today)
        for name, customer_rows in group_by_customer(rows).items()
    }


def combined_aging(reports: Sequence[CustomerReport]) -> AgingSummary:
    total = AgingSummary()
    for report in reports:
        for bucket in BUCKETS:
            total.add(bucket, getattr(report.aging, bucket))
    return total


@dataclass
class CustomerSummary:
    """Headline figures shown above a customer's ledger."""

    total_sales: float
    total_paid: float
    collection_rate: float
    last_activity: Optional[date]
    overdue_amount: float
    overdue_count: int
    total_payments: float
    last_payment_amount: float
    last_payment_date: Optional[date]
    net_sales: float
    average_monthly_sales: float
    aging: AgingSummary


def customer_summary(rows: Sequence[LedgerRow], today: date) -> CustomerSummary:
    report = customer_report("", rows, today)
    total_sales = sum(row.debit for row in rows)
    total_paid = sum(row.credit for row in rows)
    dated = [row.parsed_date for row in rows if row.parsed_date is not None]

    payments = [row for row in rows if is_smart_payment(row) and row.parsed_date is not None]
    last_payment = max(payments, key=lambda row: row.parsed_date, default=None)

    sales_rows = [row for row in rows if is_sale(row) or is_return(row)]
    sales_dates = [row.parsed_date for row in sales_rows if row.parsed_date is not None]
    months = 1
    if sales_dates:
        first, last = min(sales_dates), max(sales_dates)
        months = max(1, (last.year - first.year) * 12 + (last.month - first.month) + 1)
    customer_net_sales = net_sales(rows)

    return CustomerSummary(
        total_sales=total_sales,
        total_paid=total_paid,
        collection_rate=(total_paid / total_sales) * 100 if total_sales > 0 else 0.0,
        last_activity=max(dated, default=None),
        overdue_amount=sum(invoice.difference for invoice in report.overdue_invoices),
        overdue_count=len(report.overdue_invoices),
        total_payments=sum(row.credit for row in rows if is_smart_payment(row)),
        last_payment_amount=last_payment.credit if last_payment else 0.0,
        last_payment_date=last_payment.parsed_date if last_payment else None,
        net_sales=customer_net_sales,
        average_monthly_sales=customer_net_sales / months,
        aging=report.aging,
    )


@dataclass
class CustomerOverviewRow:
    customer_name: str
    total_debit: float
    total_credit: float
    net_debt: float
    transaction_count: int
    has_open_matchings: bool


def customers_overview(rows: Sequence[LedgerRow], *, only_open_matchings: bool = False) -> List[CustomerOverviewRow]:
    """Per-customer totals sorted by net debt, largest first."""

    overview: List[CustomerOverviewRow] = []
    for name, customer_rows in group_by_customer(rows).items():
        total_debit = sum(row.debit for row in customer_rows)
        total_credit = sum(row.credit for row in customer_rows)
        has_open = any(abs(total) > EPSILON for total in matching_totals(customer_rows).values())
        if only_open_matchings and not has_open:
            continue
        overview.append(
            CustomerOverviewRow(
                customer_name=name,
                total_debit=total_debit,
                total_credit=total_credit,
                net_debt=total_debit - total_credit,
                transaction_count=len(customer_rows),
                has_open_matchings=has_open,
            )
        )
    overview.sort(key=lambda entry: entry.net_debt, reverse=True)
    return overview


@dataclass
class PeriodAnalysis:
    """Totals and rating counts for a year, a month, or a sales rep."""

    key: str
    total_debit: float = 0.0
    total_credit: float = 0.0
    transaction_count: int = 0
    customer_count: int = 0
    good_customers: int = 0
    medium_customers: int = 0
    bad_customers: int = 0

    @property
    def net_debt(self) -> float:
        return self.total_debit - self.total_credit

    @property
    def collection_rate(self) -> float:
        """Percentage of debit collected."""

        return (self.total_credit / self.total_debit) * 100 if self.total_debit > 0 else 0.0

    def add_row(self, row: LedgerRow) -> None:
        self.total_debit += row.debit
        self.total_credit += row.credit
        self.transaction_count += 1


def _apply_ratings(
    entry: PeriodAnalysis,
    customers: Sequence[CustomerAnalysis],
    today: date,
    closed_customers: AbstractSet[str],
) -> None:
    counts = count_ratings(customers, today, closed_customers)
    entry.customer_count = len(customers)
    entry.good_customers = counts.good
    entry.medium_customers = counts.medium
    entry.bad_customers = counts.bad


def year_analysis(
    rows: Sequence[LedgerRow],
    today: date,
    closed_customers: AbstractSet[str] = frozenset(),
) -> List[PeriodAnalysis]:
    """Per-year totals over debtor customers (net debt above the epsilon), oldest year first.

    Customers are rated once and counted in every year they transacted in.
    Rows whose date does not parse fall back to any 4-digit year in the text.
    """

    customers = analyse_customers(rows, today)
    debtors = {name for name, customer in customers.items() if customer.net_debt > EPSILON}

    years: Dict[str, PeriodAnalysis] = {}
    customers_by_year: Dict[str, set] = defaultdict(set)
    for row in rows:
        year = year_of(row.date)
        if year is None:
            LOGGER.debug("Row %s for %s has no usable year", row.number, row.customer_name)
            continue
        customers_by_year[year].add(row.customer_name)
        if row.customer_name not in debtors:
            continue
        years.setdefault(year, PeriodAnalysis(key=year)).add_row(row)

    for year, entry in years.items():
        year_customers = [customers[name] for name in sorted(customers_by_year[year])]
        _apply_ratings(entry, year_customers, today, closed_customers)
    return sorted(years.values(), key=lambda entry: entry.key)


def month_analysis(rows: Sequence[LedgerRow]) -> List[PeriodAnalysis]:
    """Per ``YYYY-MM`` totals in chronological order."""

    months: Dict[str, PeriodAnalysis] = {}
    for row in rows:
        parsed = row.parsed_date
        if parsed is None:
            continue
        key = f"{parsed.year}-{parsed.month:02d}"
        months.setdefault(key, PeriodAnalysis(key=key)).add_row(row)
    return [months[key] for key in sorted(months)]


def sales_rep_analysis(
    rows: Sequence[LedgerRow],
    today: date,
    closed_customers: AbstractSet[str] = frozenset(),
) -> List[PeriodAnalysis]:
    """Per sales rep totals; a customer is rated under every rep it was served by."""

    customers = analyse_customers(rows, today)
    reps: Dict[str, PeriodAnalysis] = {}
    rep_customers: Dict[str, set] = defaultdict(set)
    for row in rows:
        rep = row.sales_rep or ""
        reps.setdefault(rep, PeriodAnalysis(key=rep)).add_row(row)
        rep_customers[rep].add(row.customer_name)

    for rep, entry in reps.items():
        rated_customers = [
            customer for customer in customers.values() if rep and rep in customer.sales_reps
        ]
        _apply_ratings(entry, rated_customers, today, closed_customers)
        entry.customer_count = len(rep_customers[rep])
    return sorted(reps.values(), key=lambda entry: entry.net_debt, reverse=True)


def customer_ratings(
    rows: Sequence[LedgerRow],
    today: date,
    closed_customers: AbstractSet[str] = frozenset(),
) -> Dict[str, DebtRating]:
    return {
        name: debt_rating(customer, today, closed_customers)
        for name, customer in analyse_customers(rows, today).items()
    }
