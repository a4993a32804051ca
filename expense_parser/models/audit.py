"""
Audit Models for the Expense Parser

Every significant step of a parse is recorded as an audit event.
This provides:
1. Traceability of which path (cache, remote, fallback) produced a record
2. The raw model response whenever it could not be decoded
3. Visibility into rate limiting and remote failures

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every step in the extraction pipeline has its own event type.
    """
    # Request handling
    PARSE_REQUESTED = "parse_requested"
    CACHE_HIT = "cache_hit"
    RESULT_CACHED = "result_cached"

    # Remote extraction
    REMOTE_UNAVAILABLE = "remote_unavailable"
    RATE_LIMITED = "rate_limited"
    REMOTE_CALL_STARTED = "remote_call_started"
    REMOTE_CALL_SUCCEEDED = "remote_call_succeeded"
    MALFORMED_RESPONSE = "malformed_response"

    # Fallback
    FALLBACK_USED = "fallback_used"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant step creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Correlation - all events of one parse call share this
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate the events of a single parse call"
    )

    # Event details
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


def _preview(message: str, limit: int = 80) -> str:
    if len(message) <= limit:
        return message
    return message[:limit] + "..."


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.cache_hit(key, correlation_id)
        event = AuditEventBuilder.malformed_response(raw, error, correlation_id)
    """

    @staticmethod
    def parse_requested(
        message: str,
        reference_date: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PARSE_REQUESTED,
            severity=AuditSeverity.DEBUG,
            correlation_id=correlation_id,
            description=f"Parsing message: {_preview(message)}",
            details={
                "message": message,
                "reference_date": reference_date,
            },
        )

    @staticmethod
    def cache_hit(
        key: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CACHE_HIT,
            severity=AuditSeverity.DEBUG,
            correlation_id=correlation_id,
            description=f"Cache hit for: {_preview(key)}",
            details={"key": key},
        )

    @staticmethod
    def result_cached(
        key: str,
        source: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RESULT_CACHED,
            severity=AuditSeverity.DEBUG,
            correlation_id=correlation_id,
            description=f"Cached {source} result for: {_preview(key)}",
            details={"key": key, "source": source},
        )

    @staticmethod
    def remote_unavailable(
        reason: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REMOTE_UNAVAILABLE,
            correlation_id=correlation_id,
            description="Remote extraction unavailable, using fallback",
            details={"reason": reason},
        )

    @staticmethod
    def rate_limited(
        waited_seconds: float,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RATE_LIMITED,
            correlation_id=correlation_id,
            description=f"Rate limiting: waited {waited_seconds:.3f}s",
            details={"waited_seconds": round(waited_seconds, 3)},
        )

    @staticmethod
    def remote_call_started(
        model_name: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REMOTE_CALL_STARTED,
            severity=AuditSeverity.DEBUG,
            correlation_id=correlation_id,
            description="Calling remote extraction model",
            details={"model": model_name},
        )

    @staticmethod
    def remote_call_succeeded(
        items: str,
        amount: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REMOTE_CALL_SUCCEEDED,
            correlation_id=correlation_id,
            description=f"Remote result: items={_preview(items)}, amount={amount}",
            details={"items": items, "amount": amount},
        )

    @staticmethod
    def malformed_response(
        raw_response: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MALFORMED_RESPONSE,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description="Remote response could not be decoded, using fallback",
            error_message=error_message,
            details={"raw_response": raw_response},
        )

    @staticmethod
    def fallback_used(
        items: str,
        amount: int,
        amount_inferred: bool,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FALLBACK_USED,
            correlation_id=correlation_id,
            description=f"Fallback result: items={_preview(items)}, amount={amount}",
            details={
                "items": items,
                "amount": amount,
                "amount_inferred": amount_inferred,
            },
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}, using fallback",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
