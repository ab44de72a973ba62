"""
Audit Models for Household Ledger

Every write to the ledger is logged for audit purposes.
This provides:
1. Traceability of who changed what (by role)
2. Debugging information when an import is rejected
3. A record of storage payloads that had to be discarded

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Transaction writes
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"

    # Bulk import
    IMPORT_COMPLETED = "import_completed"
    IMPORT_REJECTED = "import_rejected"

    # Option lists
    OPTION_ADDED = "option_added"

    # Access control
    PERMISSION_DENIED = "permission_denied"

    # Storage
    PERSISTENCE_CORRUPTED = "persistence_corrupted"
    SAVE_FAILED = "save_failed"


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
    Every ledger write creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
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

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'penerimaan', 'pengeluaran', 'option')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
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

    # Who triggered it
    role: Optional[str] = Field(
        default=None,
        description="Role of the caller that triggered the event"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "role": self.role,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         description, details_json, error_message, role]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
            self.role or "",
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_created(tx, role="admin")
        event = AuditEventBuilder.import_rejected("penerimaan", 3, "...")
    """

    @staticmethod
    def transaction_created(
        kind: str,
        transaction_id: str,
        transaction_code: str,
        amount: int,
        role: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            entity_type=kind,
            entity_id=transaction_id,
            description=f"Transaction created: {transaction_code} - Rp{amount}",
            details={
                "transaction_code": transaction_code,
                "amount": amount,
            },
            role=role,
        )

    @staticmethod
    def transaction_updated(
        kind: str,
        transaction_id: str,
        transaction_code: str,
        role: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            entity_type=kind,
            entity_id=transaction_id,
            description=f"Transaction updated: {transaction_code}",
            details={"transaction_code": transaction_code},
            role=role,
        )

    @staticmethod
    def transaction_deleted(
        kind: str,
        transaction_id: str,
        role: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type=kind,
            entity_id=transaction_id,
            description=f"Transaction deleted: {transaction_id}",
            role=role,
        )

    @staticmethod
    def import_completed(
        kind: str,
        row_count: int,
        role: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_COMPLETED,
            entity_type=kind,
            description=f"Imported {row_count} {kind} rows (collection replaced)",
            details={"row_count": row_count},
            role=role,
        )

    @staticmethod
    def import_rejected(
        kind: str,
        row_number: Optional[int],
        error_message: str,
        role: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type=kind,
            description=f"Import of {kind} rejected",
            details={"row_number": row_number},
            error_message=error_message,
            role=role,
        )

    @staticmethod
    def option_added(
        key: str,
        value: str,
        role: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OPTION_ADDED,
            entity_type="option",
            entity_id=key,
            description=f"Option added to {key}: {value}",
            details={"key": key, "value": value},
            role=role,
        )

    @staticmethod
    def permission_denied(
        operation: str,
        role: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERMISSION_DENIED,
            severity=AuditSeverity.WARNING,
            description=f"Write refused: {operation}",
            details={"operation": operation},
            role=role,
        )

    @staticmethod
    def persistence_corrupted(
        key: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERSISTENCE_CORRUPTED,
            severity=AuditSeverity.ERROR,
            entity_type="storage_key",
            entity_id=key,
            description=f"Stored payload for '{key}' was unreadable and has been discarded",
            error_message=error_message,
        )

    @staticmethod
    def save_failed(
        operation: str,
        error_message: str,
        role: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            description=f"Storage write failed during {operation}",
            error_message=error_message,
            details={"operation": operation},
            role=role,
        )
