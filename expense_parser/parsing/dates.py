"""
Date resolution for parsed expenses.

This is DETERMINISTIC - no LLM involvement. The engine only parses the
date string the model returns; Vietnamese relative words ("hôm qua",
"tuần trước") are resolved by the model from the table that
relative_dates() puts into the prompt.

Known quirk: a "DD/MM" literal takes the year from the system clock
(today()), not from the reference date. A message parsed on 2027-01-02
with reference 2026-12-31 and date "30/12" lands in 2027.
"""

import re
from datetime import date, datetime, timedelta
from typing import Callable

_ISO_DATE = re.compile(r"^([0-9]{4})-([0-9]{2})-([0-9]{2})$")
_DAY_MONTH = re.compile(r"^([0-9]{1,2})/([0-9]{1,2})$")
_DAY_MONTH_YEAR = re.compile(r"^([0-9]{1,2})/([0-9]{1,2})/([0-9]{4})$")

# Relative vocabulary → days before the reference date
RELATIVE_DAY_OFFSETS: dict[str, int] = {
    "hôm nay": 0,
    "hôm qua": 1,
    "hôm kia": 2,
    "tuần trước": 7,
    "tháng trước": 30,
}


def _safe_date(year: int, month: int, day: int):
    try:
        return date(year, month, day)
    except ValueError:
        return None


def resolve_date(
    expr: str,
    reference: date,
    *,
    today: Callable[[], date] = date.today,
) -> date:
    """
    Resolve a date expression to a calendar date.

    Args:
        expr: "YYYY-MM-DD", "DD/MM", "DD/MM/YYYY" or anything else
        reference: Date returned for empty or unparseable input
        today: Source of the current year for "DD/MM"

    Returns:
        The resolved date. Never raises.
    """
    if isinstance(reference, datetime):
        reference = reference.date()

    text = (expr or "").strip()
    if not text:
        return reference

    m = _ISO_DATE.match(text)
    if m:
        resolved = _safe_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        return resolved or reference

    m = _DAY_MONTH.match(text)
    if m:
        resolved = _safe_date(today().year, int(m.group(2)), int(m.group(1)))
        return resolved or reference

    m = _DAY_MONTH_YEAR.match(text)
    if m:
        resolved = _safe_date(int(m.group(3)), int(m.group(2)), int(m.group(1)))
        return resolved or reference

    return reference


def relative_dates(reference: date) -> dict[str, date]:
    """The relative vocabulary resolved against reference."""
    return {
        phrase: reference - timedelta(days=offset)
        for phrase, offset in RELATIVE_DAY_OFFSETS.items()
    }
