"""Row selection: closed customers, user scope, and the customer-view filters."""
from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet, FrozenSet, Iterable, List, Optional, Sequence

from ar_reports.classifier import TxnType, classify
from ar_reports.dates import month_label
from ar_reports.ledger import LedgerRow
from ar_reports.rating import normalise_name
from ar_reports.reconciliation import open_matchings

ALL_MATCHINGS = "All Matchings"
ALL_OPEN_MATCHINGS = "All Open Matchings"
ADMIN_ROLE = "admin"


def drop_customers(rows: Iterable[LedgerRow], customer_names: AbstractSet[str]) -> List[LedgerRow]:
    """Rows whose customer is not in ``customer_names`` (normalised names).

    Used with the closed-customers tab to leave closed accounts out of a report.
    """

    if not customer_names:
        return list(rows)
    return [row for row in rows if normalise_name(row.customer_name) not in customer_names]


@dataclass(frozen=True)
class UserContext:
    """The person a report is produced for.

    Admins see every row. Other users only see rows of their own sales reps.
    """

    name: str
    role: str = ""
    sales_reps: FrozenSet[str] = frozenset()

    @property
    def is_admin(self) -> bool:
        return self.role.strip().lower() == ADMIN_ROLE

    def can_see(self, row: LedgerRow) -> bool:
        if self.is_admin:
            return True
        return (row.sales_rep or "").strip().lower() in {rep.lower() for rep in self.sales_reps}


def scope_rows(rows: Iterable[LedgerRow], user: Optional[UserContext]) -> List[LedgerRow]:
    """Rows visible to ``user``; ``None`` means an unrestricted run."""

    if user is None:
        return list(rows)
    return [row for row in rows if user.can_see(row)]


def filter_by_types(rows: Iterable[LedgerRow], types: AbstractSet[TxnType]) -> List[LedgerRow]:
    """Keep rows whose :func:`classify` result is in ``types``."""

    return [row for row in rows if classify(row) in types]


def filter_by_months(rows: Iterable[LedgerRow], months: Optional[AbstractSet[str]]) -> List[LedgerRow]:
    """Keep rows dated in one of ``months`` (labels such as ``January 2025``).

    ``None`` disables the filter. Rows without a parseable date never match.
    """

    if months is None:
        return list(rows)
    return [row for row in rows if row.parsed_date is not None and month_label(row.parsed_date) in months]


def filter_by_matching(rows: Sequence[LedgerRow], selection: str = ALL_MATCHINGS) -> List[LedgerRow]:
    """Restrict to one matching key, to all open matching groups, or to nothing."""

    if selection == ALL_MATCHINGS:
        return list(rows)
    if selection == ALL_OPEN_MATCHINGS:
        keys = set(open_matchings(rows))
        return [row for row in rows if row.matching in keys]
    return [row for row in rows if row.matching == selection]


def available_months(rows: Iterable[LedgerRow]) -> List[str]:
    """Month labels present in ``rows``, newest first."""

    dates = {row.parsed_date.replace(day=1) for row in rows if row.parsed_date is not None}
    return [month_label(value) for value in sorted(dates, reverse=True)]


def search_customers(names: Iterable[str], query: str) -> List[str]:
    query = query.strip().lower()
    if not query:
        return list(names)
    return [name for name in names if query in name.lower()]
