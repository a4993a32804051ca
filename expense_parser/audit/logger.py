"""
Audit Logger

Every step of a parse is logged: cache hits, rate-limit waits, remote
calls, malformed responses and fallbacks.

The audit logger:
- Is async to fit the pipeline
- Gracefully handles failures (a broken audit sink never breaks parsing)
- Supports correlation IDs to trace the events of one parse call
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from expense_parser.audit.storage import AuditStorageInterface
from expense_parser.models.audit import AuditEvent, AuditEventBuilder


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(ensure_ascii=False)
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (structlog)
    2. An optional audit storage backend
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("expense_parser.audit")

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_parse_requested(
        self,
        message: str,
        reference_date: str,
        correlation_id: UUID,
    ) -> None:
        """Log the start of a parse call."""
        await self.log(AuditEventBuilder.parse_requested(
            message=message,
            reference_date=reference_date,
            correlation_id=correlation_id,
        ))

    async def log_cache_hit(
        self,
        key: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.cache_hit(
            key=key,
            correlation_id=correlation_id,
        ))

    async def log_result_cached(
        self,
        key: str,
        source: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.result_cached(
            key=key,
            source=source,
            correlation_id=correlation_id,
        ))

    async def log_remote_unavailable(
        self,
        reason: str,
        correlation_id: UUID,
    ) -> None:
        """Log that the remote path is disabled for this call."""
        await self.log(AuditEventBuilder.remote_unavailable(
            reason=reason,
            correlation_id=correlation_id,
        ))

    async def log_rate_limited(
        self,
        waited_seconds: float,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.rate_limited(
            waited_seconds=waited_seconds,
            correlation_id=correlation_id,
        ))

    async def log_remote_call_started(
        self,
        model_name: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.remote_call_started(
            model_name=model_name,
            correlation_id=correlation_id,
        ))

    async def log_remote_call_succeeded(
        self,
        items: str,
        amount: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.remote_call_succeeded(
            items=items,
            amount=amount,
            correlation_id=correlation_id,
        ))

    async def log_malformed_response(
        self,
        raw_response: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log an undecodable model response together with the raw text."""
        await self.log(AuditEventBuilder.malformed_response(
            raw_response=raw_response,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_fallback_used(
        self,
        items: str,
        amount: int,
        amount_inferred: bool,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.fallback_used(
            items=items,
            amount=amount,
            amount_inferred=amount_inferred,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log external service error."""
        await self.log(AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    One ID per parse call; every event of that call carries it.
    """
    return uuid4()
