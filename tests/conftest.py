import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from ar_reports.ledger import LedgerRow  # noqa: E402


def make_row(**overrides) -> LedgerRow:
    defaults = {
        "customer_name": "Acme Trading",
        "number": "SAL001",
        "date": "2024-01-01",
        "debit": 0.0,
        "credit": 0.0,
        "due_date": None,
        "matching": None,
        "sales_rep": "Omar",
    }
    defaults.update(overrides)
    return LedgerRow(**defaults)


@pytest.fixture
def row_factory():
    return make_row
