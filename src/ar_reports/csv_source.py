"""Load ledger rows from a CSV export, local or published over HTTP."""
from __future__ import annotations

import csv
import io
import logging
from pathlib import Path
from typing import List, Optional

import requests

from ar_reports.ledger import LedgerRow, parse_rows

LOGGER = logging.getLogger(__name__)


class CsvLedgerSource:
    """Reads the invoices ledger from a CSV with the invoices-tab column order.

    ``url`` is typically a published sheet export
    (``.../export?format=csv&gid=...``).
    """

    def __init__(
        self,
        *,
        url: Optional[str] = None,
        path: Optional[str | Path] = None,
        session: Optional[requests.Session] = None,
        timeout: int = 30,
    ) -> None:
        if not url and not path:
            raise ValueError("Either url or path must be provided")
        self._url = url
        self._path = Path(path) if path else None
        self._session = session or requests.Session()
        self._timeout = timeout

    def fetch_ledger_rows(self) -> List[LedgerRow]:
        text = self._read_text()
        records = list(csv.reader(io.StringIO(text)))
        rows = parse_rows(records[1:])
        LOGGER.info("Loaded %d ledger rows from CSV", len(rows))
        return rows

    def _read_text(self) -> str:
        if self._path is not None:
            return self._path.read_text(encoding="utf-8-sig")
        LOGGER.debug("Fetching ledger CSV from %s", self._url)
        response = self._session.request("GET", self._url, timeout=self._timeout)
        response.raise_for_status()
        response.encoding = response.encoding or "utf-8"
        return response.text
