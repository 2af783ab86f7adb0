"""Per-customer analysis and the Good/Medium/Bad debt rating."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import AbstractSet, Dict, Iterable, Optional, Set

from ar_reports.classifier import is_opening_balance, is_payment_txn, is_return, is_sale, payment_amount
from ar_reports.dates import days_between
from ar_reports.ledger import EPSILON, LedgerRow
from ar_reports.reconciliation import annotate_rows, group_by_customer, has_open_matchings, open_invoices

TRAILING_WINDOW_DAYS = 90


class DebtRating(str, Enum):
    GOOD = "Good"
    MEDIUM = "Medium"
    BAD = "Bad"


@dataclass
class CustomerAnalysis:
    customer_name: str
    total_debit: float = 0.0
    total_credit: float = 0.0
    net_sales: float = 0.0
    transaction_count: int = 0
    has_open_matchings: bool = False
    sales_reps: Set[str] = field(default_factory=set)
    invoice_numbers: Set[str] = field(default_factory=set)
    last_payment_date: Optional[date] = None
    last_payment_matching: Optional[str] = None
    last_payment_amount: Optional[float] = None
    last_sales_date: Optional[date] = None
    last_sales_amount: Optional[float] = None
    has_ob: bool = False
    open_ob_amount: float = 0.0
    sales_3m: float = 0.0
    sales_count_3m: int = 0
    payments_3m: float = 0.0
    payments_count_3m: int = 0

    @property
    def net_debt(self) -> float:
        return self.total_debit - self.total_credit

    @property
    def collection_rate(self) -> float:
        """Credit over debit as a fraction; zero when nothing was billed."""

        return self.total_credit / self.total_debit if self.total_debit > 0 else 0.0


def normalise_name(name: str) -> str:
    """Lowercase, trimmed and whitespace-collapsed customer name."""

    return re.sub(r"\s+", " ", name.strip().lower())


def analyse_customer(customer_name: str, rows: Iterable[LedgerRow], today: date) -> CustomerAnalysis:
    rows = list(rows)
    analysis = CustomerAnalysis(customer_name=customer_name)
    # The day exactly TRAILING_WINDOW_DAYS ago is outside the window.
    window_start = today - timedelta(days=TRAILING_WINDOW_DAYS)

    for row in rows:
        analysis.total_debit += row.debit
        analysis.total_credit += row.credit
        analysis.transaction_count += 1
        if is_sale(row):
            analysis.net_sales += row.debit
        elif is_return(row):
            analysis.net_sales -= row.credit
        if row.sales_rep:
            analysis.sales_reps.add(row.sales_rep)
        if row.number:
            analysis.invoice_numbers.add(row.number)

        parsed = row.parsed_date
        if parsed is None:
            continue

        if is_payment_txn(row) and row.credit > EPSILON:
            if analysis.last_payment_date is None or parsed > analysis.last_payment_date:
                analysis.last_payment_date = parsed
                analysis.last_payment_matching = row.matching or "UNMATCHED"
                analysis.last_payment_amount = payment_amount(row)
        if is_sale(row) and row.debit > 0:
            if analysis.last_sales_date is None or parsed > analysis.last_sales_date:
                analysis.last_sales_date = parsed
                analysis.last_sales_amount = row.debit

        if window_start < parsed <= today:
            if is_sale(row):
                analysis.sales_3m += row.debit
                analysis.sales_count_3m += 1
            if is_payment_txn(row):
                analysis.payments_3m += payment_amount(row)
                # Reversals (debit side) cancel a payment in the count.
                if row.credit > EPSILON:
                    analysis.payments_count_3m += 1
                if row.debit > EPSILON:
                    analysis.payments_count_3m -= 1

    analysis.has_open_matchings = has_open_matchings(rows)
    open_ob = [item for item in open_invoices(annotate_rows(rows)) if is_opening_balance(item.row)]
    analysis.open_ob_amount = sum(item.amount for item in open_ob if item.amount > 0)
    analysis.has_ob = analysis.open_ob_amount > EPSILON
    return analysis


def analyse_customers(rows: Iterable[LedgerRow], today: date) -> Dict[str, CustomerAnalysis]:
    return {
        name: analyse_customer(name, customer_rows, today)
        for name, customer_rows in group_by_customer(rows).items()
    }


def _recency_score(last: Optional[date], today: date) -> int:
    if last is None:
        return 0
    days = days_between(last, today)
    if days <= 30:
        return 2
    if days <= 90:
        return 1
    return 0


def _tiered(value: float, high: float, low: float) -> int:
    if value >= high:
        return 2
    if value >= low:
        return 1
    return 0


def _count_score(count: int) -> int:
    if count >= 2:
        return 2
    if count == 1:
        return 1
    return 0


def rating_score(customer: CustomerAnalysis, today: date) -> int:
    """Sum of the eight 0-2 component scores."""

    net_debt = customer.net_debt
    if net_debt <= 5000:
        debt_score = 2
    elif net_debt <= 20000:
        debt_score = 1
    else:
        debt_score = 0

    return (
        debt_score
        + _tiered(customer.collection_rate, 0.8, 0.5)
        + _recency_score(customer.last_payment_date, today)
        + _count_score(customer.payments_count_3m)
        + _recency_score(customer.last_sales_date, today)
        + _tiered(customer.payments_3m, 10000, 2000)
        + _tiered(customer.sales_3m, 10000, 2000)
        + _count_score(customer.sales_count_3m)
    )


def debt_rating(
    customer: CustomerAnalysis,
    today: date,
    closed_customers: AbstractSet[str] = frozenset(),
) -> DebtRating:
    """Rate a customer. ``closed_customers`` holds normalised names."""

    if normalise_name(customer.customer_name) in closed_customers:
        return DebtRating.BAD
    if customer.net_debt < 0:
        return DebtRating.GOOD

    no_payments = customer.payments_count_3m == 0
    if customer.sales_3m < 0 and no_payments:
        return DebtRating.BAD
    if no_payments and customer.sales_count_3m == 0 and customer.net_debt > 0:
        return DebtRating.BAD

    score = rating_score(customer, today)
    if score >= 11:
        return DebtRating.GOOD
    if score >= 6:
        return DebtRating.MEDIUM
    return DebtRating.BAD


@dataclass
class RatingCounts:
    good: int = 0
    medium: int = 0
    bad: int = 0

    def add(self, rating: DebtRating) -> None:
        if rating is DebtRating.GOOD:
            self.good += 1
        elif rating is DebtRating.MEDIUM:
            self.medium += 1
        else:
            self.bad += 1


def count_ratings(
    customers: Iterable[CustomerAnalysis],
    today: date,
    closed_customers: AbstractSet[str] = frozenset(),
) -> RatingCounts:
    counts = RatingCounts()
    for customer in customers:
        counts.add(debt_rating(customer, today, closed_customers))
    return counts

