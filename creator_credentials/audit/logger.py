"""Audit trail for credential issuance and holder activity.

Records issuance attempts, profile saves, token minting, session changes
and asset uploads. Events go to the "audit" logger as structured records
and into an in-memory ring buffer for recent retrieval.
"""

import logging
from collections import deque
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any

from fastapi import Request

log = logging.getLogger("audit")


@dataclass
class AuditEvent:
    """Structured audit event."""

    action: str  # e.g., "credential.issue", "session.login"
    holder_id: str = "anonymous"  # wallet address or "anonymous"
    resource: str | None = None  # e.g., credential id, asset CID
    status: str = "success"  # "success", "rejected", "error"
    details: dict[str, Any] | None = None
    request_id: str | None = None
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


class AuditLogger:
    """Audit logger with a bounded buffer of recent events."""

    MAX_BUFFER_SIZE = 1000

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._buffer: deque[dict] = deque(maxlen=self.MAX_BUFFER_SIZE)

    def log(self, event: AuditEvent) -> None:
        """Write an audit event to the log and the buffer."""
        if not self.enabled:
            return

        self._buffer.append(asdict(event))

        extra: dict[str, Any] = {
            "type": "audit",
            "action": event.action,
            "holder_id": event.holder_id,
        }
        if event.request_id:
            extra["request_id"] = event.request_id
        if event.details or event.resource:
            extra["details"] = {**(event.details or {}), "resource": event.resource}

        if event.status in ("rejected", "error"):
            log.warning(f"audit: {event.action} {event.status}", extra=extra)
        else:
            log.info(f"audit: {event.action} {event.status}", extra=extra)

    def record(
        self,
        action: str,
        holder_id: str | None = None,
        resource: str | None = None,
        status: str = "success",
        details: dict[str, Any] | None = None,
        request: Request | None = None,
    ) -> None:
        """Convenience form of :meth:`log` taking keyword fields."""
        self.log(
            AuditEvent(
                action=action,
                holder_id=holder_id or "anonymous",
                resource=resource,
                status=status,
                details=details,
                request_id=_get_request_id(request),
            )
        )

    def get_recent_events(
        self,
        limit: int = 100,
        action_filter: str | None = None,
        status_filter: str | None = None,
    ) -> list[dict]:
        """Get recent audit events, newest first.

        Args:
            limit: Max events to return
            action_filter: Filter by action prefix (e.g., "credential.")
            status_filter: Filter by status (e.g., "rejected")
        """
        events = list(self._buffer)
        events.reverse()

        if action_filter:
            events = [e for e in events if e["action"].startswith(action_filter)]
        if status_filter:
            events = [e for e in events if e["status"] == status_filter]

        return events[:limit]


def _get_request_id(request: Request | None) -> str | None:
    """Extract request ID from request headers if available."""
    if request is None:
        return None

    for header in ("X-Request-ID", "X-Correlation-ID", "Request-Id"):
        if header in request.headers:
            return request.headers[header]

    return None


# Global logger instance
_audit_logger: AuditLogger | None = None


def get_audit_logger() -> AuditLogger:
    """Get the global audit logger instance."""
    global _audit_logger

    if _audit_logger is None:
        from creator_credentials.config import AUDIT_ENABLED

        _audit_logger = AuditLogger(enabled=AUDIT_ENABLED)

    return _audit_logger


def reset_audit_logger() -> None:
    """Reset the global logger (for testing)."""
    global _audit_logger
    _audit_logger = None
