"""
Audit Models for the Teller

The Ledger records what happened to the account. Audit events record
what happened in the session around it: loads, sign-in attempts,
rejected operations and storage failures.

DESIGN DECISION: Rejected operations never touch the Ledger, but they
are still audited here, at warning severity. A failed withdrawal is
not an account event, yet someone investigating a session will want
to see it.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Persistence
    ACCOUNT_LOADED = "account_loaded"
    ACCOUNT_LOAD_FAILED = "account_load_failed"
    ACCOUNT_SAVE_FAILED = "account_save_failed"
    
    # Authentication
    AUTHENTICATION_SUCCEEDED = "authentication_succeeded"
    AUTHENTICATION_FAILED = "authentication_failed"
    SESSION_LOCKED = "session_locked"
    
    # Account operations
    OPERATION_COMPLETED = "operation_completed"
    OPERATION_REJECTED = "operation_rejected"
    
    # Session lifecycle
    SESSION_ENDED = "session_ended"
    
    # System events
    SYSTEM_ERROR = "system_error"


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
    
    Never carries PINs, CVCs or full card numbers.
    """
    
    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the event occurred (local time)"
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
    
    # Correlation - all events of one teller session share an ID
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID of the session this event belongs to"
    )
    
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
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    
    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by the account holder?"
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
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


def mask_card_number(card_number: str) -> str:
    """Keep only the last four digits of a card number."""
    digits = "".join(ch for ch in card_number if ch.isdigit())
    if len(digits) <= 4:
        return "*" * len(digits)
    return "*" * (len(digits) - 4) + digits[-4:]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.
    
    Usage:
        event = AuditEventBuilder.account_loaded(location, card_number, correlation_id)
        event = AuditEventBuilder.operation_rejected("withdraw", "insufficient_funds", ...)
    """
    
    @staticmethod
    def account_loaded(
        location: str,
        card_number: str,
        ledger_size: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_LOADED,
            correlation_id=correlation_id,
            description=f"Account loaded from {location}",
            details={
                "location": location,
                "card": mask_card_number(card_number),
                "ledger_size": ledger_size,
            },
        )
    
    @staticmethod
    def account_load_failed(
        location: str,
        failure: str,
        message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_LOAD_FAILED,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"Account could not be loaded: {failure}",
            details={"location": location},
            error_code=failure,
            error_message=message,
        )
    
    @staticmethod
    def account_save_failed(
        location: str,
        message: str,
        attempts: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description="Account could not be saved",
            details={"location": location, "attempts": attempts},
            error_code="io_fault",
            error_message=message,
        )
    
    @staticmethod
    def authentication(
        succeeded: bool,
        reason: Optional[str],
        failed_attempts: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        if succeeded:
            return AuditEvent(
                event_type=AuditEventType.AUTHENTICATION_SUCCEEDED,
                correlation_id=correlation_id,
                description="Card holder authenticated",
                is_user_action=True,
            )
        return AuditEvent(
            event_type=AuditEventType.AUTHENTICATION_FAILED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"Authentication failed: {reason}",
            details={"reason": reason, "failed_attempts": failed_attempts},
            is_user_action=True,
        )
    
    @staticmethod
    def session_locked(
        failed_attempts: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_LOCKED,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"Session locked after {failed_attempts} failed attempts",
            details={"failed_attempts": failed_attempts},
        )
    
    @staticmethod
    def operation_completed(
        operation: str,
        transaction_type: str,
        amount: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OPERATION_COMPLETED,
            correlation_id=correlation_id,
            description=f"{operation} completed",
            details={
                "operation": operation,
                "transaction_type": transaction_type,
                "amount": amount,
            },
            is_user_action=True,
        )
    
    @staticmethod
    def operation_rejected(
        operation: str,
        reason: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OPERATION_REJECTED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"{operation} rejected: {reason}",
            details={"operation": operation, "reason": reason, **(details or {})},
            error_code=reason,
            is_user_action=True,
        )
    
    @staticmethod
    def session_ended(
        operations: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_ENDED,
            correlation_id=correlation_id,
            description="Teller session ended",
            details={"operations": operations},
            is_user_action=True,
        )
    
    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
