"""Error Hierarchy: typed, categorized exceptions for every Praxis failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Business-rule errors are 4xx and recoverable; infrastructure errors are 5xx
    - to_response() produces the REST envelope consumed by the global handler
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with PraxisError base: FastAPI global handler catches all
    - ErrorContext as dataclass: carries entity ids for logging without coupling to logging
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


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
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    order_id: str | None = None
    ticket_id: str | None = None
    protocol: str | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None


class PraxisError(Exception):
    """Base exception for all Praxis errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def details(self) -> dict | None:
        """Structured payload for subclasses that carry more than a message."""
        return None

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        body = {
            "code": self.code,
            "message": self.context.user_message or self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "timestamp": self.context.timestamp.isoformat(),
            "context": {
                "order_id": self.context.order_id,
                "ticket_id": self.context.ticket_id,
                "protocol": self.context.protocol,
            },
        }
        details = self.details()
        if details is not None:
            body["details"] = details
        return {"error": body}


# ─── Domain Errors (400-level) ──────────────────────────────────

class ValidationError(PraxisError):
    """Malformed or out-of-range input."""
    def __init__(
        self, message: str, field: str | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field

    def details(self) -> dict | None:
        return {"field": self.field} if self.field else None


class ConfigurationInvalidError(PraxisError):
    """Configuration rejected by the compatibility resolver or by checkout."""
    def __init__(self, issues: list[dict], context: ErrorContext | None = None):
        super().__init__(
            f"Configuration has {len(issues)} issue(s)",
            "CONFIGURATION_INVALID", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 422,
        )
        self.issues = issues

    def details(self) -> dict | None:
        return {"issues": self.issues}


class ResourceNotFoundError(PraxisError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class InvalidTransitionError(PraxisError):
    """Event not permitted from the entity's current state."""
    def __init__(
        self, from_state: str, event: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Transition '{event}' is not allowed from state {from_state}",
            "INVALID_TRANSITION", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 409,
        )
        self.from_state = from_state
        self.event = event

    def details(self) -> dict | None:
        return {"from_state": self.from_state, "event": self.event}


class OutOfStockError(PraxisError):
    """Stock cannot cover the requested quantity of one or more components or products."""
    def __init__(
        self, item_ids: list[str], context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Insufficient stock for {len(item_ids)} item(s)",
            "OUT_OF_STOCK", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )
        self.item_ids = item_ids

    def details(self) -> dict | None:
        return {"item_ids": self.item_ids}


class ConcurrencyError(PraxisError):
    """Concurrent modification detected and not resolvable by re-evaluation."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONCURRENCY_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(PraxisError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class ProtocolGenerationFailedError(PraxisError):
    """No unique protocol found within the retry budget."""
    def __init__(self, kind: str, attempts: int, context: ErrorContext | None = None):
        super().__init__(
            f"Could not generate a unique {kind} protocol after {attempts} attempts",
            "PROTOCOL_GENERATION_FAILED", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.kind = kind
        self.attempts = attempts
