"""
Audit Logger

DESIGN DECISION: Every ledger write, and every refused or failed one,
is recorded as an AuditEvent. This provides:
1. Traceability of who changed what
2. A record of imports that replaced a whole collection
3. Visibility into storage payloads that had to be discarded

The audit logger:
- Always writes to the structured local log
- Optionally appends to an AuditStorageInterface
- Never lets an audit failure break the operation being audited
"""

import logging
from typing import Optional

import structlog

from household_ledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from household_ledger.models.transaction import Transaction
from household_ledger.services.storage.interface import AuditStorageInterface


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


def configure_logging(level: str = "INFO") -> None:
    """
    Route ledger logs to stderr at the given level.

    structlog renders each event to a JSON line; the stdlib root logger
    decides what is emitted.
    """
    logging.basicConfig(format="%(message)s", level=level.upper(), force=True)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, when one is configured
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
        self._logger = structlog.get_logger(__name__)

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

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
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

    async def log_transaction_created(
        self,
        transaction: Transaction,
        role: Optional[str] = None,
    ) -> None:
        event = AuditEventBuilder.transaction_created(
            kind=transaction.kind,
            transaction_id=transaction.id,
            transaction_code=transaction.transaction_code,
            amount=transaction.amount,
            role=role,
        )
        await self.log(event)

    async def log_transaction_updated(
        self,
        transaction: Transaction,
        role: Optional[str] = None,
    ) -> None:
        event = AuditEventBuilder.transaction_updated(
            kind=transaction.kind,
            transaction_id=transaction.id,
            transaction_code=transaction.transaction_code,
            role=role,
        )
        await self.log(event)

    async def log_transaction_deleted(
        self,
        kind: str,
        transaction_id: str,
        role: Optional[str] = None,
    ) -> None:
        event = AuditEventBuilder.transaction_deleted(
            kind=kind,
            transaction_id=transaction_id,
            role=role,
        )
        await self.log(event)

    async def log_import_completed(
        self,
        kind: str,
        row_count: int,
        role: Optional[str] = None,
    ) -> None:
        """Log a bulk import that replaced a collection."""
        event = AuditEventBuilder.import_completed(
            kind=kind,
            row_count=row_count,
            role=role,
        )
        await self.log(event)

    async def log_import_rejected(
        self,
        kind: str,
        row_number: Optional[int],
        error_message: str,
        role: Optional[str] = None,
    ) -> None:
        """Log a bulk import that was refused; the store was not touched."""
        event = AuditEventBuilder.import_rejected(
            kind=kind,
            row_number=row_number,
            error_message=error_message,
            role=role,
        )
        await self.log(event)

    async def log_option_added(
        self,
        key: str,
        value: str,
        role: Optional[str] = None,
    ) -> None:
        event = AuditEventBuilder.option_added(key=key, value=value, role=role)
        await self.log(event)

    async def log_permission_denied(
        self,
        operation: str,
        role: Optional[str] = None,
    ) -> None:
        event = AuditEventBuilder.permission_denied(operation=operation, role=role)
        await self.log(event)

    async def log_persistence_corrupted(self, key: str, error_message: str) -> None:
        event = AuditEventBuilder.persistence_corrupted(
            key=key,
            error_message=error_message,
        )
        await self.log(event)

    async def log_save_failed(
        self,
        operation: str,
        error_message: str,
        role: Optional[str] = None,
    ) -> None:
        event = AuditEventBuilder.save_failed(
            operation=operation,
            error_message=error_message,
            role=role,
        )
        await self.log(event)
