"""
Audit Models for Trip Budget Tracker

Every change to the ledger and every degraded read is logged.
This provides:
1. Traceability of who changed what on the trip ledger
2. Debugging information when the store or the AI call fails

DESIGN DECISION: Audit events are emitted as structured log lines.
They are never edited after the fact.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Ledger changes
    RECORD_CREATED = "record_created"
    RECORD_UPDATED = "record_updated"
    RECORD_DELETED = "record_deleted"

    # Input rejected before reaching the store
    VALIDATION_FAILED = "validation_failed"

    # Reads
    COLLECTION_FETCH_FAILED = "collection_fetch_failed"
    DASHBOARD_COMPUTED = "dashboard_computed"

    # AI chart suggestions
    CHARTS_REQUESTED = "charts_requested"
    CHARTS_GENERATED = "charts_generated"
    CHARTS_FAILED = "charts_failed"

    # Store writes that failed after retries
    STORE_WRITE_FAILED = "store_write_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEvent(BaseModel):
    """A single audit event."""

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Which collection / record this is about
    entity_type: Optional[str] = Field(
        default=None,
        description="Collection name (e.g., 'expenses', 'tripDays')"
    )
    entity_id: Optional[str] = None

    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate events of one user action"
    )

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.record_created("expenses", expense_id)
        await audit_logger.log(event)
    """

    @staticmethod
    def record_created(
        collection: str,
        record_id: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_CREATED,
            entity_type=collection,
            entity_id=record_id,
            correlation_id=correlation_id,
            description=f"Created {collection} record",
            details=details or {},
            is_user_action=True,
        )

    @staticmethod
    def record_updated(
        collection: str,
        record_id: str,
        fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_UPDATED,
            entity_type=collection,
            entity_id=record_id,
            correlation_id=correlation_id,
            description=f"Updated {collection} record",
            details={"fields": fields},
            is_user_action=True,
        )

    @staticmethod
    def record_deleted(
        collection: str,
        record_id: str,
        existed: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_DELETED,
            entity_type=collection,
            entity_id=record_id,
            correlation_id=correlation_id,
            description=f"Deleted {collection} record",
            details={"existed": existed},
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        collection: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type=collection,
            correlation_id=correlation_id,
            description=f"Input for {collection} rejected",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def collection_fetch_failed(
        collection: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COLLECTION_FETCH_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type=collection,
            correlation_id=correlation_id,
            description=f"Could not fetch {collection}; treating it as empty",
            error_message=error_message,
        )

    @staticmethod
    def dashboard_computed(
        totals: dict[str, str],
        unavailable: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DASHBOARD_COMPUTED,
            severity=AuditSeverity.WARNING if unavailable else AuditSeverity.DEBUG,
            correlation_id=correlation_id,
            description="Dashboard recomputed",
            details={"totals": totals, "unavailable": unavailable},
        )

    @staticmethod
    def charts_requested(
        expense_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CHARTS_REQUESTED,
            correlation_id=correlation_id,
            description="AI chart suggestions requested",
            details={"expense_count": expense_count},
            is_user_action=True,
        )

    @staticmethod
    def charts_generated(
        chart_types: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CHARTS_GENERATED,
            correlation_id=correlation_id,
            description=f"{len(chart_types)} chart suggestions generated",
            details={"chart_types": chart_types},
        )

    @staticmethod
    def charts_failed(
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CHARTS_FAILED,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description="AI chart generation failed",
            error_message=error_message,
        )

    @staticmethod
    def store_write_failed(
        collection: str,
        operation: str,
        error_message: str,
        record_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_WRITE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type=collection,
            entity_id=record_id,
            correlation_id=correlation_id,
            description=f"Could not {operation} {collection} record",
            details={"operation": operation},
            error_message=error_message,
            is_user_action=True,
        )
