"""Classify ledger rows by the prefix of their document number."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from ar_reports.ledger import EPSILON, LedgerRow


class TxnType(str, Enum):
    OPENING_BALANCE = "Opening Balance"
    SALE = "Sale"
    RETURN = "Return"
    DISCOUNT = "Discount"
    PAYMENT = "Payment"
    OTHER = "Invoice/Txn"


# Prefixes that never count as a payment even when the row carries a credit.
NON_PAYMENT_PREFIXES = ("SAL", "RSAL", "BIL", "JV", "OB")


@dataclass(frozen=True)
class PrefixRule:
    """A document-number prefix with an optional side-of-ledger requirement."""

    prefix: str
    txn_type: TxnType
    side: Optional[str] = None

    def matches(self, number: str, debit: float, credit: float) -> bool:
        if not number.startswith(self.prefix):
            return False
        if self.side == "debit":
            return debit > 0
        if self.side == "credit":
            return credit > 0
        return True


_RULES = (
    PrefixRule("OB", TxnType.OPENING_BALANCE),
    PrefixRule("RSAL", TxnType.RETURN, side="credit"),
    PrefixRule("SAL", TxnType.SALE, side="debit"),
    PrefixRule("JV", TxnType.DISCOUNT),
    PrefixRule("BIL", TxnType.DISCOUNT),
)


def _normalise(number: Optional[str]) -> str:
    return (number or "").strip().upper()


def classify(row: LedgerRow) -> TxnType:
    """Return the :class:`TxnType` of a ledger row."""

    number = _normalise(row.number)
    for rule in _RULES:
        if rule.matches(number, row.debit, row.credit):
            return rule.txn_type
    if row.credit > EPSILON and not number.startswith(NON_PAYMENT_PREFIXES):
        return TxnType.PAYMENT
    return TxnType.OTHER


def is_sale(row: LedgerRow) -> bool:
    return _normalise(row.number).startswith("SAL")


def is_return(row: LedgerRow) -> bool:
    return _normalise(row.number).startswith("RSAL")


def is_opening_balance(row: LedgerRow) -> bool:
    return _normalise(row.number).startswith("OB")


def is_smart_payment(row: LedgerRow) -> bool:
    """A credit that is cash/bank money received rather than a document."""

    return row.credit > EPSILON and not _normalise(row.number).startswith(NON_PAYMENT_PREFIXES)


def is_payment_txn(row: LedgerRow) -> bool:
    """Payment test used for customer ratings; ``BNK`` rows count even when reversed."""

    if _normalise(row.number).startswith("BNK"):
        return True
    return is_smart_payment(row)


def payment_amount(row: LedgerRow) -> float:
    return row.credit - row.debit


def net_sales(rows: Iterable[LedgerRow]) -> float:
    """``sum(SAL debit) - sum(RSAL credit)``."""

    total = 0.0
    for row in rows:
        if is_sale(row):
            total += row.debit
        elif is_return(row):
            total -= row.credit
    return total


def smart_payments(rows: Iterable[LedgerRow]) -> float:
    return sum(row.credit for row in rows if is_smart_payment(row))
