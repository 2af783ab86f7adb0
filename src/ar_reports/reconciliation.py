"""Open-balance reconciliation over matching groups."""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

from ar_reports.ledger import EPSILON, LedgerRow


@dataclass(frozen=True)
class AnnotatedRow:
    """A ledger row plus its position and, for residual holders, the group net."""

    row: LedgerRow
    index: int
    residual: Optional[float] = None

    @property
    def net_amount(self) -> float:
        return self.row.net_amount

    @property
    def is_residual_holder(self) -> bool:
        return self.residual is not None


@dataclass(frozen=True)
class OpenInvoice:
    """A row still carrying an open amount.

    ``amount`` is the row's own net for unmatched rows and the group residual
    for residual holders. ``credit`` is redisplayed as ``debit - amount`` so the
    condensed line reads consistently.
    """

    row: LedgerRow
    amount: float

    @property
    def debit(self) -> float:
        return self.row.debit

    @property
    def credit(self) -> float:
        return self.row.debit - self.amount


def matching_totals(rows: Sequence[LedgerRow]) -> Dict[str, float]:
    """Net amount per matching key, summed in input order."""

    totals: Dict[str, float] = {}
    for row in rows:
        if row.matching:
            totals[row.matching] = totals.get(row.matching, 0.0) + row.net_amount
    return totals


def residual_holders(rows: Sequence[LedgerRow]) -> Dict[str, int]:
    """Index of the row with the strictly largest debit per matching key.

    The first row seen for a key is always stored, so every key has a holder
    even when all debits are equal or zero. Ties keep the earlier row.
    """

    holders: Dict[str, int] = {}
    max_debits: Dict[str, float] = {}
    for index, row in enumerate(rows):
        key = row.matching
        if not key:
            continue
        if key not in holders or row.debit > max_debits[key]:
            holders[key] = index
            max_debits[key] = row.debit
    return holders


def annotate_rows(rows: Sequence[LedgerRow]) -> List[AnnotatedRow]:
    """Attach residuals to the holder row of every open matching group."""

    totals = matching_totals(rows)
    holders = residual_holders(rows)
    annotated: List[AnnotatedRow] = []
    for index, row in enumerate(rows):
        residual = None
        if row.matching and holders.get(row.matching) == index:
            total = totals[row.matching]
            if abs(total) > EPSILON:
                residual = total
        annotated.append(AnnotatedRow(row=row, index=index, residual=residual))
    return annotated


def open_invoices(annotated: Iterable[AnnotatedRow]) -> List[OpenInvoice]:
    """Unmatched rows with a non-zero net plus residual holders, in input order."""

    result: List[OpenInvoice] = []
    for item in annotated:
        if not item.row.matching:
            if abs(item.net_amount) > EPSILON:
                result.append(OpenInvoice(row=item.row, amount=item.net_amount))
        elif item.residual is not None:
            result.append(OpenInvoice(row=item.row, amount=item.residual))
    return result


def open_balance(rows: Sequence[LedgerRow]) -> float:
    return sum(invoice.amount for invoice in open_invoices(annotate_rows(rows)))


def open_matchings(rows: Sequence[LedgerRow]) -> List[str]:
    """Sorted matching keys whose group is still open."""

    return sorted(key for key, total in matching_totals(rows).items() if abs(total) > EPSILON)


def has_open_matchings(rows: Sequence[LedgerRow]) -> bool:
    return any(abs(total) > EPSILON for total in matching_totals(rows).values())


def group_by_customer(rows: Iterable[LedgerRow]) -> Dict[str, List[LedgerRow]]:
    """Rows per customer name, keeping input order within each customer."""

    grouped: Dict[str, List[LedgerRow]] = defaultdict(list)
    for row in rows:
        grouped[row.customer_name].append(row)
    return dict(grouped)


def annotate_by_customer(rows: Iterable[LedgerRow]) -> List[AnnotatedRow]:
    """Annotate each customer's rows separately.

    Matching keys are only meaningful within one customer, so an all-customer
    scope resolves residuals per customer. Indexes are per customer.
    """

    annotated: List[AnnotatedRow] = []
    for customer_rows in group_by_customer(rows).values():
        annotated.extend(annotate_rows(customer_rows))
    return annotated
