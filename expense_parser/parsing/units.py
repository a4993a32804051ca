"""Unit normalization: display units to the canonical kg / L / m / pcs."""

from decimal import Decimal, InvalidOperation
from typing import Optional

from expense_parser.models.expense import CANONICAL_BASE_UNITS

BASE_UNITS = CANONICAL_BASE_UNITS

# unit token → (base unit, factor to base). Exact, case-sensitive match.
_UNIT_TABLE: dict[str, tuple[str, Decimal]] = {
    # mass
    "g": ("kg", Decimal("0.001")),
    "kg": ("kg", Decimal("1")),
    # volume
    "ml": ("L", Decimal("0.001")),
    "L": ("L", Decimal("1")),
    "lít": ("L", Decimal("1")),
    # length
    "cm": ("m", Decimal("0.01")),
    "m": ("m", Decimal("1")),
    # count words
    "cái": ("pcs", Decimal("1")),
    "lon": ("pcs", Decimal("1")),
    "chai": ("pcs", Decimal("1")),
    "bịch": ("pcs", Decimal("1")),
    "bao": ("pcs", Decimal("1")),
    "pcs": ("pcs", Decimal("1")),
}


def is_base_unit(unit: str) -> bool:
    return unit in BASE_UNITS


def known_units() -> list[str]:
    """All recognized unit tokens, for the extraction prompt."""
    return list(_UNIT_TABLE)


def parse_quantity(text: str) -> Optional[Decimal]:
    """Parse "3", "0.5", "1,5" or "1/2". Empty means 1. None if unparseable."""
    s = text.strip()
    if not s:
        return Decimal("1")

    if "/" in s:
        parts = s.split("/")
        if len(parts) != 2:
            return None
        num, den = parse_quantity(parts[0]), parse_quantity(parts[1])
        if num is None or den is None or den == 0 or not parts[0].strip() or not parts[1].strip():
            return None
        return num / den

    s = s.replace(",", ".")
    try:
        value = Decimal(s)
    except InvalidOperation:
        return None
    if not value.is_finite() or value < 0:
        return None
    return value


def format_quantity(value: Decimal) -> str:
    """Shortest plain decimal text: 0.500 → "0.5", 1E+3 → "1000"."""
    if value == value.to_integral_value():
        return str(int(value))
    text = format(value.normalize(), "f")
    if "." in text:
        # Bound repeating fractions such as 1/3
        whole, frac = text.split(".")
        frac = frac[:6].rstrip("0")
        text = f"{whole}.{frac}" if frac else whole
    return text


def normalize_unit(quantity: str, unit: str) -> tuple[str, str]:
    """
    Convert a (quantity, unit) pair to (base_quantity, base_unit).

    Examples:
        ("3", "kg")   → ("3", "kg")
        ("500", "g")  → ("0.5", "kg")
        ("2", "lít")  → ("2", "L")
        ("1", "xyz")  → ("", "")

    Unknown units and unparseable quantities yield ("", "").
    """
    entry = _UNIT_TABLE.get(unit.strip()) if unit else None
    if entry is None:
        return ("", "")

    amount = parse_quantity(quantity)
    if amount is None:
        return ("", "")

    base_unit, factor = entry
    return (format_quantity(amount * factor), base_unit)
