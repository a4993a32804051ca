"""
Heuristic fallback parser.

Used whenever the remote model is unconfigured or fails. Regex and a
small multiplier lexicon only: no unit extraction, no relative dates.

This parser is TOTAL - it returns a valid ExtractionResult for every
string, including the empty string.
"""

import re
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Optional

from expense_parser.models.expense import ExtractionResult, ExtractionSource

DEFAULT_ITEMS_PLACEHOLDER = "miscellaneous expense"

# Returned when a non-empty message has no recognizable amount.
# Not a business amount - ExtractionResult.amount_inferred is False.
SENTINEL_AMOUNT = 1

MULTIPLIERS: dict[str, int] = {
    "triệu": 1_000_000,
    "tr": 1_000_000,
    "tỷ": 1_000_000_000,
    "tỉ": 1_000_000_000,
    "nghìn": 1_000,
    "ngàn": 1_000,
    "k": 1_000,
}

# Longest alternatives first so "triệu" wins over "tr".
_MULTIPLIER_ALTERNATION = "|".join(
    sorted((re.escape(m) for m in MULTIPLIERS), key=len, reverse=True)
)

_AMOUNT_PATTERN = re.compile(
    r"(?<![\d.,])(?P<number>\d+(?:[.,]\d+)*)"
    r"(?:\s*(?P<multiplier>" + _MULTIPLIER_ALTERNATION + r")(?!\w))?",
    re.IGNORECASE,
)

_SEPARATORS = re.compile(r"[.,]")

_EDGE_PUNCTUATION = " \t:;,-"


@dataclass(frozen=True)
class AmountMatch:
    """An amount found in a message."""
    amount: int
    start: int
    end: int
    text: str
    multiplier: Optional[str] = None


def _to_decimal(number: str, has_multiplier: bool) -> Optional[Decimal]:
    """
    Interpret "." and "," in a number.

    "1.5tr", "1,5 triệu" → 1.5     (decimal before a multiplier)
    "100.000", "1,200,000" → integer (3-digit groups, no multiplier)
    "1.234,5" → 1234.5             (mixed: last separator is decimal)
    """
    separators = _SEPARATORS.findall(number)
    groups = _SEPARATORS.split(number)

    if not separators:
        digits = number
    elif len(set(separators)) > 1:
        digits = "".join(groups[:-1]) + "." + groups[-1]
    elif len(separators) > 1:
        digits = "".join(groups)
    elif not has_multiplier and len(groups[1]) == 3:
        digits = "".join(groups)
    else:
        digits = groups[0] + "." + groups[1]

    try:
        return Decimal(digits)
    except InvalidOperation:
        return None


def find_amount(message: str) -> Optional[AmountMatch]:
    """
    Locate the amount in a message.

    The first number carrying a multiplier wins; otherwise the first
    bare number. Returns None when the message holds no number.
    """
    first_bare: Optional[AmountMatch] = None

    for m in _AMOUNT_PATTERN.finditer(message):
        multiplier = m.group("multiplier")
        # "trưa150k" counts, "phòng101" does not
        if not multiplier and m.start() > 0 and message[m.start() - 1].isalpha():
            continue

        number = m.group("number")
        value = _to_decimal(number, multiplier is not None)
        if value is None:
            continue

        factor = MULTIPLIERS[multiplier.lower()] if multiplier else 1
        with localcontext() as ctx:
            # Enough digits for the number times the largest multiplier
            ctx.prec = max(ctx.prec, len(number) + 12)
            amount = int((value * factor).to_integral_value(rounding=ROUND_HALF_UP))
        match = AmountMatch(
            amount=amount,
            start=m.start(),
            end=m.end(),
            text=m.group(0),
            multiplier=multiplier,
        )

        if multiplier:
            return match
        if first_bare is None:
            first_bare = match

    return first_bare


def _clean_items(text: str) -> str:
    return " ".join(text.split()).strip(_EDGE_PUNCTUATION)


def fallback_parse(
    message: str,
    reference_date: date,
    placeholder: str = DEFAULT_ITEMS_PLACEHOLDER,
) -> ExtractionResult:
    """
    Parse a message without the remote model.

    Examples:
        "ăn trưa 150k"     → items="ăn trưa", amount=150000
        "cọc nhà 34 triệu" → items="cọc nhà", amount=34000000
        ""                 → items=placeholder, amount=0

    Args:
        message: Raw message text
        reference_date: Used as the paid date
        placeholder: Items text when nothing else is left

    Returns:
        ExtractionResult with empty quantity/unit fields.
    """
    text = message or ""

    if not text.strip():
        return ExtractionResult(
            items=placeholder,
            amount=0,
            original_message=text,
            paid_date=reference_date,
            amount_inferred=False,
            source=ExtractionSource.FALLBACK,
        )

    match = find_amount(text)
    if match is None:
        items = _clean_items(text)
        amount = SENTINEL_AMOUNT
        inferred = False
    else:
        items = _clean_items(text[:match.start] + " " + text[match.end:])
        amount = match.amount
        inferred = True

    return ExtractionResult(
        items=items or placeholder,
        amount=amount,
        original_message=text,
        paid_date=reference_date,
        amount_inferred=inferred,
        source=ExtractionSource.FALLBACK,
    )
