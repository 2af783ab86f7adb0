"""Days-overdue calculation and aging buckets."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List

from ar_reports.dates import days_between, parse_flexible_date
from ar_reports.ledger import LedgerRow
from ar_reports.reconciliation import OpenInvoice

AT_DATE = "at_date"
ONE_TO_THIRTY = "one_to_thirty"
THIRTY_ONE_TO_SIXTY = "thirty_one_to_sixty"
SIXTY_ONE_TO_NINETY = "sixty_one_to_ninety"
NINETY_ONE_TO_ONE_TWENTY = "ninety_one_to_one_twenty"
OLDER = "older"

# (inclusive upper bound in days, bucket); anything past the last bound is OLDER.
_BOUNDS = (
    (0, AT_DATE),
    (30, ONE_TO_THIRTY),
    (60, THIRTY_ONE_TO_SIXTY),
    (90, SIXTY_ONE_TO_NINETY),
    (120, NINETY_ONE_TO_ONE_TWENTY),
)

BUCKETS = tuple(name for _, name in _BOUNDS) + (OLDER,)

BUCKET_LABELS = {
    AT_DATE: "Current",
    ONE_TO_THIRTY: "1-30 Days",
    THIRTY_ONE_TO_SIXTY: "31-60 Days",
    SIXTY_ONE_TO_NINETY: "61-90 Days",
    NINETY_ONE_TO_ONE_TWENTY: "91-120 Days",
    OLDER: "> 120 Days",
}


@dataclass(frozen=True)
class BucketAssignment:
    bucket: str
    days_overdue: int


def days_overdue(date_value: object, due_date: object, today: date) -> int:
    """Days past the due date (or the document date when there is none)."""

    target = parse_flexible_date(due_date) or parse_flexible_date(date_value)
    if target is None:
        return 0
    return days_between(target, today)


def bucket_for(days: int) -> str:
    for upper, name in _BOUNDS:
        if days <= upper:
            return name
    return OLDER


def bucketize(amount: float, date_value: object, due_date: object, today: date) -> BucketAssignment:
    """Place an open amount in its aging bucket. The bucket depends on dates only."""

    days = days_overdue(date_value, due_date, today)
    return BucketAssignment(bucket=bucket_for(days), days_overdue=days)


@dataclass
class AgingSummary:
    at_date: float = 0.0
    one_to_thirty: float = 0.0
    thirty_one_to_sixty: float = 0.0
    sixty_one_to_ninety: float = 0.0
    ninety_one_to_one_twenty: float = 0.0
    older: float = 0.0
    total: float = 0.0

    def add(self, bucket: str, amount: float) -> None:
        setattr(self, bucket, getattr(self, bucket) + amount)
        self.total += amount

    def to_dict(self) -> Dict[str, float]:
        return {
            "atDate": self.at_date,
            "oneToThirty": self.one_to_thirty,
            "thirtyOneToSixty": self.thirty_one_to_sixty,
            "sixtyOneToNinety": self.sixty_one_to_ninety,
            "ninetyOneToOneTwenty": self.ninety_one_to_one_twenty,
            "older": self.older,
            "total": self.total,
        }

    def chart_slices(self) -> List[tuple[str, float]]:
        """Non-empty (label, value) slices with 91+ days merged."""

        slices = [
            (BUCKET_LABELS[AT_DATE], self.at_date),
            (BUCKET_LABELS[ONE_TO_THIRTY], self.one_to_thirty),
            (BUCKET_LABELS[THIRTY_ONE_TO_SIXTY], self.thirty_one_to_sixty),
            (BUCKET_LABELS[SIXTY_ONE_TO_NINETY], self.sixty_one_to_ninety),
            ("> 90 Days", self.ninety_one_to_one_twenty + self.older),
        ]
        return [(label, value) for label, value in slices if value > 0.01]


@dataclass(frozen=True)
class OverdueInvoice:
    """An open invoice with its aging position."""

    row: LedgerRow
    difference: float
    days_overdue: int
    bucket: str = AT_DATE

    @property
    def credit(self) -> float:
        return self.row.debit - self.difference

    def to_dict(self) -> Dict[str, object]:
        payload = self.row.to_dict()
        payload.update(
            {
                "credit": self.credit,
                "difference": self.difference,
                "daysOverdue": self.days_overdue,
            }
        )
        return payload


def overdue_invoices(invoices: Iterable[OpenInvoice], today: date) -> List[OverdueInvoice]:
    result: List[OverdueInvoice] = []
    for invoice in invoices:
        assignment = bucketize(invoice.amount, invoice.row.date, invoice.row.due_date, today)
        result.append(
            OverdueInvoice(
                row=invoice.row,
                difference=invoice.amount,
                days_overdue=assignment.days_overdue,
                bucket=assignment.bucket,
            )
        )
    return result


def aging_summary(invoices: Iterable[OpenInvoice | OverdueInvoice], today: date) -> AgingSummary:
    """Accumulate open amounts by bucket.

    Accepts either open invoices or already-derived overdue invoices; the
    latter are re-bucketed from their own dates and ``difference``.
    """

    summary = AgingSummary()
    for invoice in invoices:
        amount = _amount_of(invoice)
        assignment = bucketize(amount, invoice.row.date, invoice.row.due_date, today)
        summary.add(assignment.bucket, amount)
    return summary


def overdue_total(invoices: Iterable[OverdueInvoice], *, min_days: int = 1) -> float:
    return sum(invoice.difference for invoice in invoices if invoice.days_overdue >= min_days)


def _amount_of(invoice: OpenInvoice | OverdueInvoice) -> float:
    if isinstance(invoice, OverdueInvoice):
        return invoice.difference
    return invoice.amount
