"""
Audit Logger

Every session event worth investigating later is logged as a structured
JSON line: account loads, sign-in attempts, completed and rejected
operations, save failures.

The audit logger:
- Is synchronous like the rest of the teller
- Never raises; a broken log handler must not break a withdrawal
- Tags every event with the session's correlation ID
"""

import logging
import sys
from typing import Optional
from uuid import UUID, uuid4

import structlog

from teller.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


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
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output to stderr at the given level."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )


class AuditLogger:
    """
    Central audit logging service for one teller session.
    """
    
    def __init__(self, correlation_id: Optional[UUID] = None):
        self._correlation_id = correlation_id or create_correlation_id()
        self._logger = structlog.get_logger("teller.audit")
        self._events: list[AuditEvent] = []
    
    @property
    def correlation_id(self) -> UUID:
        return self._correlation_id
    
    @property
    def events(self) -> tuple[AuditEvent, ...]:
        """Events logged so far in this session."""
        return tuple(self._events)
    
    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.
        
        Returns False if the log handler failed; never raises.
        """
        self._events.append(event)
        log_dict = event.to_log_dict()
        
        try:
            if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # Last resort - the log pipeline itself is broken
            print(f"WARNING: Failed to write audit event: {e}", file=sys.stderr)
            return False
        
        return True
    
    def log_account_loaded(
        self,
        location: str,
        card_number: str,
        ledger_size: int,
    ) -> None:
        """Log a successful account load."""
        self.log(AuditEventBuilder.account_loaded(
            location=location,
            card_number=card_number,
            ledger_size=ledger_size,
            correlation_id=self._correlation_id,
        ))
    
    def log_load_failed(self, location: str, failure: str, message: str) -> None:
        """Log a failed account load."""
        self.log(AuditEventBuilder.account_load_failed(
            location=location,
            failure=failure,
            message=message,
            correlation_id=self._correlation_id,
        ))
    
    def log_save_failed(self, location: str, message: str, attempts: int) -> None:
        """Log a save that failed after every allowed attempt."""
        self.log(AuditEventBuilder.account_save_failed(
            location=location,
            message=message,
            attempts=attempts,
            correlation_id=self._correlation_id,
        ))
    
    def log_authentication(
        self,
        succeeded: bool,
        reason: Optional[str],
        failed_attempts: int,
    ) -> None:
        """Log a sign-in attempt."""
        self.log(AuditEventBuilder.authentication(
            succeeded=succeeded,
            reason=reason,
            failed_attempts=failed_attempts,
            correlation_id=self._correlation_id,
        ))
    
    def log_session_locked(self, failed_attempts: int) -> None:
        self.log(AuditEventBuilder.session_locked(
            failed_attempts=failed_attempts,
            correlation_id=self._correlation_id,
        ))
    
    def log_operation_completed(
        self,
        operation: str,
        transaction_type: str,
        amount: str,
    ) -> None:
        """Log an operation that produced a ledger entry."""
        self.log(AuditEventBuilder.operation_completed(
            operation=operation,
            transaction_type=transaction_type,
            amount=amount,
            correlation_id=self._correlation_id,
        ))
    
    def log_operation_rejected(
        self,
        operation: str,
        reason: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log an operation that was refused (no ledger entry)."""
        self.log(AuditEventBuilder.operation_rejected(
            operation=operation,
            reason=reason,
            details=details,
            correlation_id=self._correlation_id,
        ))
    
    def log_session_ended(self, operations: int) -> None:
        self.log(AuditEventBuilder.session_ended(
            operations=operations,
            correlation_id=self._correlation_id,
        ))
    
    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=self._correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.
    
    One per teller session.
    """
    return uuid4()
