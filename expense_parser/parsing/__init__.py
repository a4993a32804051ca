"""Deterministic parsing building blocks: cache, rate limiter, units, dates, fallback."""

from expense_parser.parsing.cache import ResultCache, normalize_key
from expense_parser.parsing.dates import relative_dates, resolve_date
from expense_parser.parsing.fallback import (
    DEFAULT_ITEMS_PLACEHOLDER,
    SENTINEL_AMOUNT,
    AmountMatch,
    fallback_parse,
    find_amount,
)
from expense_parser.parsing.prompt import (
    build_extraction_prompt,
    decode_payload,
    strip_code_fence,
)
from expense_parser.parsing.rate_limiter import RateLimiter
from expense_parser.parsing.units import BASE_UNITS, is_base_unit, normalize_unit

__all__ = [
    "AmountMatch",
    "BASE_UNITS",
    "DEFAULT_ITEMS_PLACEHOLDER",
    "RateLimiter",
    "ResultCache",
    "SENTINEL_AMOUNT",
    "build_extraction_prompt",
    "decode_payload",
    "fallback_parse",
    "find_amount",
    "is_base_unit",
    "normalize_key",
    "normalize_unit",
    "relative_dates",
    "resolve_date",
    "strip_code_fence",
]
