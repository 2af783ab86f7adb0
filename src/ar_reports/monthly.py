"""Calendar-month roll-up of sales and payments."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from ar_reports.classifier import is_return, is_sale, is_smart_payment
from ar_reports.ledger import LedgerRow


@dataclass
class MonthlyDebt:
    year: str
    month: str
    month_number: int
    debit: float = 0.0
    credit: float = 0.0

    @property
    def net_debt(self) -> float:
        return self.debit - self.credit

    def to_dict(self) -> Dict[str, object]:
        return {
            "year": self.year,
            "month": self.month,
            "debit": self.debit,
            "credit": self.credit,
            "netDebt": self.net_debt,
        }


def monthly_rollup(rows: Iterable[LedgerRow]) -> List[MonthlyDebt]:
    """Net sales (debit) and smart payments (credit) per month.

    Rows without a parseable date are skipped. The result is ordered by year
    descending and chronologically within a year.
    """

    months: Dict[Tuple[str, int], MonthlyDebt] = {}
    for row in rows:
        parsed = row.parsed_date
        if parsed is None:
            continue
        key = (str(parsed.year), parsed.month)
        entry = months.get(key)
        if entry is None:
            entry = MonthlyDebt(year=key[0], month=parsed.strftime("%B"), month_number=parsed.month)
            months[key] = entry

        if is_sale(row):
            entry.debit += row.debit
        if is_return(row):
            entry.debit -= row.credit
        if is_smart_payment(row):
            entry.credit += row.credit

    # Two stable sorts: month ascending, then year descending.
    ordered = sorted(months.values(), key=lambda m: m.month_number)
    return sorted(ordered, key=lambda m: m.year, reverse=True)


def trend(monthly: List[MonthlyDebt], limit: int = 12) -> List[MonthlyDebt]:
    """The most recent ``limit`` months, oldest first."""

    chronological = sorted(monthly, key=lambda m: (m.year, m.month_number))
    return chronological[-limit:] if limit > 0 else []
