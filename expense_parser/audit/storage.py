"""
Audit Storage

Abstract sink for audit events plus an in-memory implementation.
The parser core owns no persistence; a hosting service plugs its own
storage in behind AuditStorageInterface.
"""

import threading
from abc import ABC, abstractmethod
from typing import Optional

from expense_parser.models.audit import AuditEvent, AuditEventType


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event.

        Returns:
            True if appended successfully
        """
        pass


class InMemoryAuditStorage(AuditStorageInterface):
    """Keeps events in a list. Used by tests and local debugging."""

    def __init__(self):
        self._events: list[AuditEvent] = []
        # Shared across threads that each run their own event loop
        self._lock = threading.Lock()

    async def append_event(self, event: AuditEvent) -> bool:
        with self._lock:
            self._events.append(event)
        return True

    @property
    def events(self) -> list[AuditEvent]:
        with self._lock:
            return list(self._events)

    def events_of_type(
        self,
        event_type: AuditEventType,
        correlation_id: Optional[object] = None,
    ) -> list[AuditEvent]:
        with self._lock:
            events = list(self._events)
        return [
            e for e in events
            if e.event_type == event_type
            and (correlation_id is None or e.correlation_id == correlation_id)
        ]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()
