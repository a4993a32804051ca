"""
Data Models Package

This package contains all Pydantic models used in the Expense Parser.
All data flowing through the pipeline must conform to these schemas.
"""

from expense_parser.models.expense import (
    CANONICAL_BASE_UNITS,
    CachedExtraction,
    ExtractionPayload,
    ExtractionRequest,
    ExtractionResult,
    ExtractionSource,
    ValidationIssue,
    ValidationResult,
)
from expense_parser.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Expense models
    "CANONICAL_BASE_UNITS",
    "CachedExtraction",
    "ExtractionPayload",
    "ExtractionRequest",
    "ExtractionResult",
    "ExtractionSource",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
