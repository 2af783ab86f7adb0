"""Produce receivables aging and reconciliation reports from the invoices sheet."""
from __future__ import annotations

import argparse
import json
import logging
import os
from datetime import date
from pathlib import Path
from typing import AbstractSet, Dict, List, Optional, Sequence, Set

from ar_reports.aging import AgingSummary
from ar_reports.csv_source import CsvLedgerSource
from ar_reports.exporter import export_overdue, export_overview, safe_filename
from ar_reports.filters import UserContext, drop_customers, scope_rows
from ar_reports.ledger import LedgerRow
from ar_reports.sheets_client import SheetsClient
from ar_reports.views import (
    all_customer_reports,
    combined_aging,
    customer_ratings,
    customer_report,
    customers_overview,
)

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
LOGGER = logging.getLogger(__name__)

# Get project root (2 levels up from this file: src/ar_reports/main.py -> root)
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


def load_config(path: str | Path) -> Dict:
    with open(path, "r", encoding="utf-8") as config_file:
        return json.load(config_file)


def _config_path() -> Path:
    config_env = os.environ.get("AR_REPORTS_CONFIG")
    return Path(config_env) if config_env else PROJECT_ROOT / "config" / "config.json"


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--customer", type=str, help="Report on a single customer")
    parser.add_argument("--user", type=str, help="Restrict rows to what this Users-tab entry may see")
    parser.add_argument(
        "--as-of",
        type=date.fromisoformat,
        default=None,
        metavar="YYYY-MM-DD",
        help="Age balances as of this date instead of today",
    )
    parser.add_argument(
        "--hide-closed",
        action="store_true",
        help="Leave customers listed on the closed-customers tab out of the report",
    )
    parser.add_argument("--export-csv", type=str, metavar="DIR", help="Write CSV reports into DIR")
    parser.add_argument(
        "--source",
        choices=("sheets", "csv"),
        default=None,
        help="Ledger source; defaults to csv when csv_url or csv_path is configured",
    )
    args = parser.parse_args(argv)
    if args.source == "csv" and (args.user or args.hide_closed):
        parser.error("--user and --hide-closed need the sheets source")
    return args


def _sheets_client(config: Dict) -> SheetsClient:
    credentials_path = os.environ.get("GOOGLE_APPLICATION_CREDENTIALS") or config.get("google_service_file")
    if not credentials_path:
        raise RuntimeError("Either GOOGLE_APPLICATION_CREDENTIALS environment variable or 'google_service_file' in config must be set")
    return SheetsClient(
        spreadsheet_id=config["spreadsheet_id"],
        credentials_path=credentials_path,
        invoices_tab=config.get("invoices_tab", "Invoices"),
        closed_tab=config.get("closed_tab", "CLOSED"),
        users_tab=config.get("users_tab", "Users"),
    )


def _resolve_source(config: Dict, source: Optional[str]) -> str:
    if source:
        return source
    return "csv" if config.get("csv_url") or config.get("csv_path") else "sheets"


def find_user(users: Sequence[UserContext], name: str) -> UserContext:
    wanted = name.strip().lower()
    for user in users:
        if user.name.lower() == wanted:
            return user
    raise ValueError(f"Unknown user: {name}")


def prepare_rows(
    rows: Sequence[LedgerRow],
    user: Optional[UserContext] = None,
    hidden_customers: AbstractSet[str] = frozenset(),
) -> List[LedgerRow]:
    """Drop hidden customers, then apply the user's visibility scope."""

    kept = drop_customers(rows, hidden_customers)
    if len(kept) != len(rows):
        LOGGER.info("Left out %d rows of closed customers", len(rows) - len(kept))
    return scope_rows(kept, user)


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    run_report(
        customer=args.customer,
        user_name=args.user,
        as_of=args.as_of,
        export_dir=args.export_csv,
        source=args.source,
        hide_closed=args.hide_closed,
    )


def run_report(
    customer: Optional[str] = None,
    user_name: Optional[str] = None,
    as_of: Optional[date] = None,
    export_dir: Optional[str] = None,
    source: Optional[str] = None,
    hide_closed: bool = False,
) -> None:
    config = load_config(_config_path())
    today = as_of or date.today()
    source_name = _resolve_source(config, source)
    if source_name == "csv" and (user_name or hide_closed):
        raise RuntimeError(
            "--user and --hide-closed read the Users and closed-customers tabs; configure the sheets source"
        )

    closed: Set[str] = set()
    users: List[UserContext] = []
    if source_name == "csv":
        rows = CsvLedgerSource(url=config.get("csv_url"), path=config.get("csv_path")).fetch_ledger_rows()
    else:
        sheets_client = _sheets_client(config)
        rows = sheets_client.fetch_ledger_rows()
        closed = sheets_client.fetch_closed_customers()
        if user_name:
            users = sheets_client.fetch_users()

    user = find_user(users, user_name) if user_name else None
    rows = prepare_rows(rows, user, closed if hide_closed else frozenset())
    export_dir = export_dir or config.get("export_dir")

    if customer:
        customer_rows = [row for row in rows if row.customer_name == customer]
        if not customer_rows:
            LOGGER.warning("No ledger rows for customer %s", customer)
            return
        report = customer_report(customer, customer_rows, today)
        LOGGER.info(
            "%s: net debt %.2f, open balance %.2f, %d open invoice(s)",
            customer,
            report.net_debt,
            report.open_balance,
            len(report.overdue_invoices),
        )
        for line in _format_aging(report.aging):
            LOGGER.info("Aging: %s", line)
        if export_dir:
            export_overdue(Path(export_dir) / f"{safe_filename(customer)}_overdue.csv", report.overdue_invoices)
        return

    overview = customers_overview(rows)
    reports = all_customer_reports(rows, today)
    ratings = customer_ratings(rows, today, closed)
    LOGGER.info("Customers: %d, rows: %d", len(overview), len(rows))
    for entry in overview[:10]:
        LOGGER.info(
            "%s: net debt %.2f (%s)",
            entry.customer_name,
            entry.net_debt,
            ratings[entry.customer_name].value,
        )
    for line in _format_aging(combined_aging(list(reports.values()))):
        LOGGER.info("Aging: %s", line)

    if export_dir:
        export_overview(Path(export_dir) / "customers.csv", overview)
        overdue = [invoice for report in reports.values() for invoice in report.overdue_invoices]
        export_overdue(Path(export_dir) / "overdue.csv", overdue)


def _format_aging(summary: AgingSummary) -> List[str]:
    """Return human-friendly bucket totals."""

    return [
        f"current {summary.at_date:.2f}",
        f"1-30 {summary.one_to_thirty:.2f}",
        f"31-60 {summary.thirty_one_to_sixty:.2f}",
        f"61-90 {summary.sixty_one_to_ninety:.2f}",
        f"91-120 {summary.ninety_one_to_one_twenty:.2f}",
        f"older {summary.older:.2f}",
        f"total {summary.total:.2f}",
    ]


if __name__ == "__main__":
    main()
