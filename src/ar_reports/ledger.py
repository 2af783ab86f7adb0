"""Ledger rows as read from the invoices sheet."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date
from functools import cached_property
from typing import Dict, List, Mapping, Optional, Sequence

from ar_reports.dates import parse_flexible_date

LOGGER = logging.getLogger(__name__)

# Column order of the Invoices tab and of CSV exports of it.
LEDGER_HEADERS = [
    "date",
    "due_date",
    "number",
    "customer_name",
    "sales_rep",
    "debit",
    "credit",
    "matching",
]

EPSILON = 0.01


@dataclass(frozen=True)
class LedgerRow:
    """One receivables transaction."""

    customer_name: str
    number: str
    date: str
    debit: float = 0.0
    credit: float = 0.0
    due_date: Optional[str] = None
    matching: Optional[str] = None
    sales_rep: Optional[str] = None

    @property
    def net_amount(self) -> float:
        return self.debit - self.credit

    @cached_property
    def parsed_date(self) -> Optional[date]:
        return parse_flexible_date(self.date)

    @cached_property
    def parsed_due_date(self) -> Optional[date]:
        return parse_flexible_date(self.due_date)

    @classmethod
    def from_sheet_row(cls, row: Sequence[object]) -> "LedgerRow":
        """Build a row from a raw sheet row in :data:`LEDGER_HEADERS` order."""

        padded = list(row) + [""] * (len(LEDGER_HEADERS) - len(row))
        return cls.from_mapping(dict(zip(LEDGER_HEADERS, padded)))

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> "LedgerRow":
        """Build a row from a mapping keyed by snake_case or camelCase names."""

        def pick(*keys: str) -> object:
            for key in keys:
                if key in data and data[key] not in (None, ""):
                    return data[key]
            return None

        return cls(
            customer_name=_clean_text(pick("customer_name", "customerName")) or "",
            number=_clean_text(pick("number")) or "",
            date=_clean_text(pick("date")) or "",
            due_date=_clean_text(pick("due_date", "dueDate")),
            debit=safe_amount(pick("debit")),
            credit=safe_amount(pick("credit")),
            matching=_clean_text(pick("matching")),
            sales_rep=_clean_text(pick("sales_rep", "salesRep")),
        )

    def to_dict(self) -> Dict[str, object]:
        return {
            "customerName": self.customer_name,
            "number": self.number,
            "date": self.date,
            "dueDate": self.due_date,
            "debit": self.debit,
            "credit": self.credit,
            "matching": self.matching,
            "salesRep": self.sales_rep,
        }


def safe_amount(value: object) -> float:
    """Coerce a sheet amount to float; blanks and junk become ``0.0``."""

    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        amount = float(value)
    else:
        text = str(value).replace(",", "").strip()
        if not text:
            return 0.0
        try:
            amount = float(text)
        except ValueError:
            LOGGER.debug("Non-numeric amount %r treated as 0", value)
            return 0.0
    if not math.isfinite(amount):
        LOGGER.debug("Non-finite amount %r treated as 0", value)
        return 0.0
    return amount


def parse_rows(raw_rows: Sequence[Sequence[object]]) -> List[LedgerRow]:
    """Parse sheet rows, dropping those without a customer name."""

    rows = [LedgerRow.from_sheet_row(raw) for raw in raw_rows]
    kept = [row for row in rows if row.customer_name]
    if len(kept) != len(rows):
        LOGGER.info("Dropped %d ledger rows without a customer name", len(rows) - len(kept))
    return kept


def _clean_text(value: object) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
