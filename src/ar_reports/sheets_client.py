"""Google Sheets access for the invoices ledger and its lookup tabs."""
from __future__ import annotations

import logging
from typing import List, Set

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from google.oauth2.service_account import Credentials

from ar_reports.filters import UserContext
from ar_reports.ledger import LEDGER_HEADERS, LedgerRow, parse_rows
from ar_reports.rating import normalise_name

LOGGER = logging.getLogger(__name__)

READONLY_SCOPES = ["https://www.googleapis.com/auth/spreadsheets.readonly"]


class SheetsClient:
    def __init__(
        self,
        *,
        spreadsheet_id: str,
        credentials_path: str,
        invoices_tab: str = "Invoices",
        closed_tab: str = "CLOSED",
        users_tab: str = "Users",
    ) -> None:
        self._spreadsheet_id = spreadsheet_id
        self._invoices_tab = invoices_tab
        self._closed_tab = closed_tab
        self._users_tab = users_tab
        credentials = Credentials.from_service_account_file(credentials_path, scopes=READONLY_SCOPES)
        self._service = build("sheets", "v4", credentials=credentials, cache_discovery=False)

    def _get_values(self, range_name: str) -> List[List[str]]:
        response = self._service.spreadsheets().values().get(
            spreadsheetId=self._spreadsheet_id, range=range_name
        ).execute()
        return response.get("values", [])

    def fetch_ledger_rows(self) -> List[LedgerRow]:
        """Read the invoices tab, skipping the header row.

        Columns: DATE, DUE DATE, NUMBER, CUSTOMER NAME, SALESREP, DEBIT, CREDIT, MATCHING.
        """

        last_column = chr(ord("A") + len(LEDGER_HEADERS) - 1)
        values = self._get_values(f"{self._invoices_tab}!A:{last_column}")
        rows = parse_rows(values[1:])
        LOGGER.info("Loaded %d ledger rows from %s", len(rows), self._invoices_tab)
        return rows

    def fetch_closed_customers(self) -> Set[str]:
        """Normalised names from column B of the closed-customers tab.

        A missing tab yields an empty set.
        """

        try:
            values = self._get_values(f"{self._closed_tab}!A:B")
        except HttpError:
            LOGGER.warning("Could not read closed customers from %s", self._closed_tab, exc_info=True)
            return set()
        closed = set()
        for row in values[1:]:
            name = str(row[1]).strip() if len(row) > 1 else ""
            if name:
                closed.add(normalise_name(name))
        LOGGER.info("Loaded %d closed customers", len(closed))
        return closed

    def fetch_users(self) -> List[UserContext]:
        """Users tab rows: NAME, ROLE, SALES REPS (comma separated)."""

        users: List[UserContext] = []
        for row in self._get_values(f"{self._users_tab}!A:C")[1:]:
            padded = list(row) + [""] * (3 - len(row))
            name = str(padded[0]).strip()
            if not name:
                continue
            reps = frozenset(rep.strip() for rep in str(padded[2]).split(",") if rep.strip())
            users.append(UserContext(name=name, role=str(padded[1]).strip(), sales_reps=reps))
        return users
