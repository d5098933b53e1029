"""
Audit Logger

DESIGN DECISION: Every change to the trip ledger and every degraded
read is logged. This provides:
1. Traceability of ledger edits
2. Debugging capability when the store or the AI call fails

The audit logger:
- Is async so flows can await it uniformly
- Gracefully handles failures (never crashes the app if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from tripbudget.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


def configure_logging(level: str = "INFO") -> None:
    """Configure stdlib logging and structlog for JSON output."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level, logging.INFO))

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
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()


class AuditLogger:
    """Central audit logging service, writing structured log lines."""

    def __init__(self):
        self._logger = structlog.get_logger("tripbudget.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns True if the event was written.
        """
        log_dict = event.to_log_dict()

        try:
            if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            # Logging must not break the calling flow
            return False

        return True

    async def log_record_created(
        self,
        collection: str,
        record_id: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.record_created(
            collection=collection,
            record_id=record_id,
            details=details,
            correlation_id=correlation_id,
        ))

    async def log_record_updated(
        self,
        collection: str,
        record_id: str,
        fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.record_updated(
            collection=collection,
            record_id=record_id,
            fields=fields,
            correlation_id=correlation_id,
        ))

    async def log_record_deleted(
        self,
        collection: str,
        record_id: str,
        existed: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.record_deleted(
            collection=collection,
            record_id=record_id,
            existed=existed,
            correlation_id=correlation_id,
        ))

    async def log_validation_failed(
        self,
        collection: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.validation_failed(
            collection=collection,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_fetch_failed(
        self,
        collection: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.collection_fetch_failed(
            collection=collection,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_dashboard_computed(
        self,
        totals: dict[str, str],
        unavailable: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.dashboard_computed(
            totals=totals,
            unavailable=unavailable,
            correlation_id=correlation_id,
        ))

    async def log_charts_requested(
        self,
        expense_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.charts_requested(
            expense_count=expense_count,
            correlation_id=correlation_id,
        ))

    async def log_charts_generated(
        self,
        chart_types: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.charts_generated(
            chart_types=chart_types,
            correlation_id=correlation_id,
        ))

    async def log_charts_failed(
        self,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.charts_failed(
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_store_write_failed(
        self,
        collection: str,
        operation: str,
        error_message: str,
        record_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.store_write_failed(
            collection=collection,
            operation=operation,
            error_message=error_message,
            record_id=record_id,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., saving an expense).
    """
    return uuid4()
