"""
Core Data Models for the Expense Parser

These models define the strict schemas for all data flowing through
the extraction pipeline:
1. ExtractionRequest - what the caller hands in
2. ExtractionPayload - what the LLM hands back (strictly validated)
3. ExtractionResult - the canonical record the caller receives
4. CachedExtraction - what the result cache keeps

Field names are snake_case in Python and camelCase on the wire
(baseQuantity, paidDate, ...), matching the JSON the LLM is asked for.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)
from pydantic.alias_generators import to_camel


# Canonical units every recognized display unit is converted to.
CANONICAL_BASE_UNITS = frozenset({"kg", "L", "m", "pcs"})


# =============================================================================
# ENUMS
# =============================================================================

class ExtractionSource(str, Enum):
    """Which path produced a result."""
    REMOTE = "remote"      # Parsed by the LLM
    FALLBACK = "fallback"  # Parsed by the heuristic parser


# =============================================================================
# HELPERS
# =============================================================================

def _stringify(value: Any) -> Any:
    """Map None to "" and bare numbers to their shortest decimal text."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        try:
            return format(Decimal(str(value)).normalize(), "f")
        except InvalidOperation:
            return str(value)
    return value


def _check_base_unit(value: str) -> str:
    if value and value not in CANONICAL_BASE_UNITS:
        raise ValueError(
            f"Base unit must be one of {sorted(CANONICAL_BASE_UNITS)}, got {value!r}"
        )
    return value


# =============================================================================
# REQUEST
# =============================================================================

class ExtractionRequest(BaseModel):
    """An immutable parse request."""

    model_config = ConfigDict(frozen=True)

    message: str = Field(
        ...,
        description="Raw message text exactly as the user typed it"
    )
    reference_date: date = Field(
        default_factory=date.today,
        description="The date considered 'today' for relative expressions"
    )


# =============================================================================
# REMOTE PAYLOAD
# =============================================================================

class ExtractionPayload(BaseModel):
    """
    Decoded LLM response.

    CRITICAL: This is the ONLY shape accepted from the remote model.
    Anything that fails validation is treated as a malformed response
    and the heuristic parser takes over.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )

    items: str = Field(
        ...,
        min_length=1,
        description="Expense description with amount, unit and date removed"
    )
    amount: int = Field(
        ...,
        ge=0,
        description="Amount in whole VND"
    )
    quantity: str = ""
    unit: str = ""
    base_quantity: str = ""
    base_unit: str = ""
    paid_date: str = Field(
        default="",
        description="Date string as produced by the model (YYYY-MM-DD expected)"
    )

    @field_validator("quantity", "unit", "base_quantity", "base_unit", "paid_date", mode="before")
    @classmethod
    def empty_when_missing(cls, v: Any) -> Any:
        return _stringify(v)

    @field_validator("amount", mode="before")
    @classmethod
    def round_float_amount(cls, v: Any) -> Any:
        """Models sometimes answer 150000.0 - accept it as 150000."""
        if isinstance(v, float):
            return int(round(v))
        return v


# =============================================================================
# RESULT
# =============================================================================

class ExtractionResult(BaseModel):
    """
    The canonical output record.

    Always valid: the pipeline never hands back a partial result.
    quantity/unit are display values as the user wrote them;
    base_quantity/base_unit are the canonical conversion, empty when
    the unit was missing or not recognized.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    items: str = Field(
        ...,
        min_length=1,
        description="Expense description"
    )
    amount: int = Field(
        ...,
        ge=0,
        description="Amount in whole VND"
    )
    quantity: str = Field(default="", description="Quantity as stated")
    unit: str = Field(default="", description="Unit as stated")
    base_quantity: str = Field(default="", description="Quantity in base unit")
    base_unit: str = Field(default="", description="One of kg, L, m, pcs")
    original_message: str = Field(
        default="",
        description="The untouched input, kept for audit/debug"
    )
    paid_date: date = Field(
        ...,
        description="Resolved payment date"
    )

    # Extraction metadata
    amount_inferred: bool = Field(
        default=True,
        description="False when the amount is the 'could not infer' sentinel"
    )
    source: ExtractionSource = Field(
        default=ExtractionSource.REMOTE,
        description="Which path produced this result"
    )

    @field_validator("items", mode="before")
    @classmethod
    def strip_items(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("base_unit")
    @classmethod
    def validate_base_unit(cls, v: str) -> str:
        return _check_base_unit(v)

    @property
    def has_base_unit(self) -> bool:
        return bool(self.base_unit)


class CachedExtraction(BaseModel):
    """
    A result as stored in the cache.

    CRITICAL: The paid date is stored as the unresolved expression,
    never as a resolved date. A resolved date would carry the first
    caller's reference date into every later cache hit.
    """

    model_config = ConfigDict(frozen=True)

    items: str = Field(..., min_length=1)
    amount: int = Field(..., ge=0)
    quantity: str = ""
    unit: str = ""
    base_quantity: str = ""
    base_unit: str = ""
    original_message: str = ""
    paid_date_expr: str = Field(
        default="",
        description="Date expression to re-resolve on every read"
    )
    amount_inferred: bool = True
    source: ExtractionSource
    cached_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("base_unit")
    @classmethod
    def validate_base_unit(cls, v: str) -> str:
        return _check_base_unit(v)

    @classmethod
    def from_result(
        cls,
        result: ExtractionResult,
        paid_date_expr: str,
    ) -> "CachedExtraction":
        return cls(
            items=result.items,
            amount=result.amount,
            quantity=result.quantity,
            unit=result.unit,
            base_quantity=result.base_quantity,
            base_unit=result.base_unit,
            original_message=result.original_message,
            paid_date_expr=paid_date_expr,
            amount_inferred=result.amount_inferred,
            source=result.source,
        )

    def to_result(self, paid_date: date) -> ExtractionResult:
        """Rebuild the full result with a freshly resolved paid date."""
        return ExtractionResult(
            items=self.items,
            amount=self.amount,
            quantity=self.quantity,
            unit=self.unit,
            base_quantity=self.base_quantity,
            base_unit=self.base_unit,
            original_message=self.original_message,
            paid_date=paid_date,
            amount_inferred=self.amount_inferred,
            source=self.source,
        )


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of checking an ExtractionResult before it is saved.

    Parsing never fails; this is where a caller learns whether the
    parsed record is fit to persist.
    """

    validated_at: datetime = Field(
        default_factory=datetime.utcnow
    )
    is_valid: bool = Field(
        ...,
        description="True when there are no error-level issues"
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == "warning"]
