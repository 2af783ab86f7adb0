"""Lenient date parsing for spreadsheet ledger values."""
from __future__ import annotations

import logging
import math
import re
from datetime import date, datetime
from typing import Optional

LOGGER = logging.getLogger(__name__)

_ISO_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(?:[T ].*)?$")
_NUMERIC_RE = re.compile(r"^(\d{1,4})[/\-.](\d{1,2})[/\-.](\d{1,4})(?:\s.*)?$")
_YEAR_RE = re.compile(r"\d{4}")

_MONTHS = {
    name: index
    for index, names in enumerate(
        [
            ("jan", "january"),
            ("feb", "february"),
            ("mar", "march"),
            ("apr", "april"),
            ("may",),
            ("jun", "june"),
            ("jul", "july"),
            ("aug", "august"),
            ("sep", "sept", "september"),
            ("oct", "october"),
            ("nov", "november"),
            ("dec", "december"),
        ],
        start=1,
    )
    for name in names
}

# "15-Jan-2024", "15 Jan 2024"
_DAY_MONTH_NAME_RE = re.compile(r"^(\d{1,2})[\s\-/]([A-Za-z]{3,9})[\s\-/,]+(\d{4})$")
# "Jan 15, 2024", "January 15 2024"
_MONTH_NAME_DAY_RE = re.compile(r"^([A-Za-z]{3,9})\s+(\d{1,2}),?\s+(\d{4})$")


def parse_flexible_date(value: object) -> Optional[date]:
    """Parse a sheet date value, returning ``None`` when it cannot be read.

    Formats are tried in order:

    1. ISO ``YYYY-MM-DD`` (optionally followed by a time component).
    2. Numeric ``A/B/YYYY`` or ``A-B-YYYY``. The first part is the day when it
       is greater than 12, otherwise ``MM/DD/YYYY`` is assumed. ``YYYY/MM/DD``
       is accepted too.
    3. Month names: ``15-Jan-2024`` and ``Jan 15, 2024``.

    Values that are already :class:`date` or :class:`datetime` are returned as
    dates unchanged.
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None

    match = _ISO_RE.match(text)
    if match:
        return _build(int(match.group(1)), int(match.group(2)), int(match.group(3)), text)

    match = _NUMERIC_RE.match(text)
    if match:
        first, second, third = (int(part) for part in match.groups())
        if len(match.group(1)) == 4:
            return _build(first, second, third, text)
        if len(match.group(3)) != 4:
            LOGGER.debug("Ignoring date with two-digit year: %r", text)
            return None
        if first > 12:
            return _build(third, second, first, text)
        return _build(third, first, second, text)

    match = _DAY_MONTH_NAME_RE.match(text)
    if match:
        month = _MONTHS.get(match.group(2).lower())
        if month:
            return _build(int(match.group(3)), month, int(match.group(1)), text)

    match = _MONTH_NAME_DAY_RE.match(text)
    if match:
        month = _MONTHS.get(match.group(1).lower())
        if month:
            return _build(int(match.group(3)), month, int(match.group(2)), text)

    LOGGER.debug("Unparseable date value: %r", text)
    return None


def year_of(value: object) -> Optional[str]:
    """Return the year of a date value, falling back to any 4-digit run."""

    parsed = parse_flexible_date(value)
    if parsed:
        return str(parsed.year)
    if value is None:
        return None
    match = _YEAR_RE.search(str(value))
    return match.group(0) if match else None


def as_day(value: date | datetime) -> date:
    """Strip the time-of-day component."""

    if isinstance(value, datetime):
        return value.date()
    return value


def days_between(earlier: date | datetime, later: date | datetime) -> int:
    """Whole days from ``earlier`` to ``later`` after normalising both to midnight."""

    delta = datetime.combine(as_day(later), datetime.min.time()) - datetime.combine(
        as_day(earlier), datetime.min.time()
    )
    return math.ceil(delta.total_seconds() / 86400)


def month_label(value: date) -> str:
    """Label used by the month filter, e.g. ``January 2025``."""

    return value.strftime("%B %Y")


def _build(year: int, month: int, day: int, raw: str) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        LOGGER.debug("Out of range date value: %r", raw)
        return None
