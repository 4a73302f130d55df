"""Error Hierarchy — typed, categorized exceptions for all clk2 failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
      and a JSON-RPC error code (rpc_code)
    - Domain errors are recoverable; persistence and corruption errors are critical
    - to_rpc_error() produces the JSON-RPC error object; to_response() the REST envelope
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with Clk2Error base: the RPC route catches all of it in one place
    - Core returns these inside Err values; the service layer raises them
    - rpc_code values live in the -32000..-32099 "server error" range reserved by JSON-RPC 2.0
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    CONFLICT = "conflict"
    RESOURCE_NOT_FOUND = "resource_not_found"
    PERSISTENCE = "persistence"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    clock_id: str | None = None
    rpc_method: str | None = None
    debug_info: dict[str, Any] | None = None


class Clk2Error(Exception):
    """Base exception for all clk2 errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        rpc_code: int = -32000,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.rpc_code = rpc_code
        self.http_status = http_status

    def to_rpc_error(self) -> dict:
        """Convert to a JSON-RPC 2.0 error object."""
        return {
            "code": self.rpc_code,
            "message": self.message,
            "data": {
                "code": self.code,
                "category": self.category.value,
                "severity": self.severity.value,
            },
        }

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "clock_id": self.context.clock_id,
                    "rpc_method": self.context.rpc_method,
                },
            }
        }


# ─── Domain Errors (recoverable) ────────────────────────────────

class InvalidClockIdError(Clk2Error):
    """Clock identifier is empty."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Clock with empty ID is not valid",
            "INVALID_CLOCK_ID", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, -32001, 400,
        )


class InvalidEventKindError(Clk2Error):
    """Event kind outside {start, stop, reset}."""
    def __init__(self, kind: str, context: ErrorContext | None = None):
        super().__init__(
            f"Event type {kind} is not valid",
            "INVALID_EVENT_KIND", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, -32001, 400,
        )
        self.kind = kind


class InvalidEventError(Clk2Error):
    """Event cannot be applied where it was supplied (e.g. belongs to another clock)."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_EVENT", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, -32001, 400,
        )


class IllegalTransitionError(Clk2Error):
    """Action attempted from a Status that forbids it."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "ILLEGAL_TRANSITION", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, -32002, 400,
        )


class OutOfOrderEventError(Clk2Error):
    """Event timestamp precedes the clock's latest event."""
    def __init__(
        self, clock_id: str, timestamp: datetime, latest: datetime,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Event for {clock_id} at {timestamp.isoformat()} precedes "
            f"its latest event at {latest.isoformat()}; rewrite the history of "
            f"{clock_id} to correct it",
            "OUT_OF_ORDER_EVENT", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, -32002, 400,
        )


class ClockConflictError(Clk2Error):
    """Starting a clock while a different clock is active, or overlapping histories."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CLOCK_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, -32003, 409,
        )


class MissingClockInError(Clk2Error):
    """Stop with no discoverable prior start."""
    def __init__(self, clock_id: str, context: ErrorContext | None = None):
        super().__init__(
            f"Cannot find last clock-in event for {clock_id}",
            "MISSING_CLOCK_IN", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, -32004, 400,
        )


class ClockNotFoundError(Clk2Error):
    """Requested clock does not exist."""
    def __init__(self, clock_id: str, context: ErrorContext | None = None):
        super().__init__(
            f"Could not find clock with ID {clock_id}",
            "CLOCK_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, -32005, 404,
        )


# ─── Integrity / Infrastructure Errors (critical) ───────────────

class CorruptStateError(Clk2Error):
    """In-memory state violates an internal invariant (e.g. ClockedIn without a start)."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CORRUPT_STATE", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, -32010, 500,
        )


class PersistenceError(Clk2Error):
    """Store file could not be read or written."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Store {operation} failed: {message}",
            "PERSISTENCE_ERROR", ErrorCategory.PERSISTENCE,
            ErrorSeverity.CRITICAL, context, -32011, 503,
        )
        self.operation = operation


class CorruptStoreError(Clk2Error):
    """Store file contents do not replay into a valid Store."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"Store file is corrupt: {message}",
            "CORRUPT_STORE", ErrorCategory.PERSISTENCE,
            ErrorSeverity.CRITICAL, context, -32012, 500,
        )
