"""CSV export of report tables."""
from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Iterable, List, Sequence

from ar_reports.aging import OverdueInvoice
from ar_reports.views import CustomerOverviewRow

LOGGER = logging.getLogger(__name__)

OVERDUE_HEADERS = [
    "Date",
    "Due Date",
    "Number",
    "Customer Name",
    "Sales Rep",
    "Matching",
    "Debit",
    "Credit",
    "Difference",
    "Days Overdue",
]

OVERVIEW_HEADERS = [
    "Customer Name",
    "Total Debit",
    "Total Credit",
    "Net Debt",
    "Transactions",
    "Open Matchings",
]


def overdue_rows(invoices: Iterable[OverdueInvoice]) -> List[List[str]]:
    return [
        [
            invoice.row.date,
            invoice.row.due_date or "",
            invoice.row.number,
            invoice.row.customer_name,
            invoice.row.sales_rep or "",
            invoice.row.matching or "",
            f"{invoice.row.debit:.2f}",
            f"{invoice.credit:.2f}",
            f"{invoice.difference:.2f}",
            str(invoice.days_overdue),
        ]
        for invoice in invoices
    ]


def overview_rows(overview: Iterable[CustomerOverviewRow]) -> List[List[str]]:
    return [
        [
            entry.customer_name,
            f"{entry.total_debit:.2f}",
            f"{entry.total_credit:.2f}",
            f"{entry.net_debt:.2f}",
            str(entry.transaction_count),
            "Yes" if entry.has_open_matchings else "No",
        ]
        for entry in overview
    ]


def write_csv(path: str | Path, headers: Sequence[str], rows: Sequence[Sequence[str]]) -> Path:
    target = Path(path)
    if not target.parent.exists():
        target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle)
        writer.writerow(headers)
        writer.writerows(rows)
    LOGGER.info("Wrote %d rows to %s", len(rows), target)
    return target


def export_overdue(path: str | Path, invoices: Iterable[OverdueInvoice]) -> Path:
    return write_csv(path, OVERDUE_HEADERS, overdue_rows(invoices))


def export_overview(path: str | Path, overview: Iterable[CustomerOverviewRow]) -> Path:
    return write_csv(path, OVERVIEW_HEADERS, overview_rows(overview))


def safe_filename(name: str) -> str:
    """Customer name reduced to characters safe in a file name."""

    cleaned = "".join(char for char in name if char.isalnum() or char in " -_").strip()
    return cleaned or "customer"
