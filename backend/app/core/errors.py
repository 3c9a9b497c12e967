"""Error Hierarchy - typed, categorized exceptions for all Hearth failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - to_response() produces the REST envelope used by every error handler
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with HearthError base: FastAPI global handler catches all (ADR: uniform error shape)
    - ErrorContext as dataclass: rich observability without coupling to logging framework
    - Validation and business-rule failures share 422 so clients handle one status for bad input
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
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    GONE = "gone"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    user_id: str | None = None
    family_id: str | None = None
    resource_id: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class HearthError(Exception):
    """Base exception for all Hearth errors."""

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
                    "family_id": self.context.family_id,
                    "resource_id": self.context.resource_id,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class AuthenticationError(HearthError):
    """Missing, invalid or expired credentials."""
    def __init__(
        self, message: str = "Authentication required", context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "AUTHENTICATION_REQUIRED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class PermissionDeniedError(HearthError):
    """Authenticated user is not allowed to perform the action."""
    def __init__(
        self,
        message: str = "You don't have permission to perform this action.",
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "PERMISSION_DENIED", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, 403,
        )


class ResourceNotFoundError(HearthError):
    """Requested resource does not exist (or is invisible to the caller)."""
    def __init__(
        self,
        resource_type: str,
        resource_id: str,
        message: str | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message or f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type


class ValidationError(HearthError):
    """Input failed a domain validation rule."""
    def __init__(
        self, message: str, field: str | None = None, context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 422,
        )
        self.field = field

    def to_response(self) -> dict:
        response = super().to_response()
        response["error"]["details"] = [
            {"field": self.field, "message": self.message, "type": "value_error"},
        ]
        return response


class ConflictError(HearthError):
    """Request conflicts with existing state (e.g. inviting an existing member)."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "BUSINESS_RULE_VIOLATION", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 422,
        )


class InvitationGoneError(HearthError):
    """Invitation expired or already used."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVITATION_GONE", ErrorCategory.GONE,
            ErrorSeverity.WARNING, context, 410,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(HearthError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class AnthropicAPIError(HearthError):
    """Anthropic API call failed."""
    def __init__(
        self,
        message: str,
        api_error_type: str,
        retry_after_ms: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.retry_after_ms = retry_after_ms
        super().__init__(
            f"Anthropic API error ({api_error_type}): {message}",
            "ANTHROPIC_API_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, ctx, 503,
        )
        self.api_error_type = api_error_type


class RefinementError(HearthError):
    """AI-assisted goal work (refinement, sub-goals, import parsing) failed."""

    USER_MESSAGE = (
        "Our AI assistant is temporarily unavailable. "
        "Please try again in a few minutes."
    )

    def __init__(self, reason: str, context: ErrorContext | None = None):
        super().__init__(
            self.USER_MESSAGE, "AI_UNAVAILABLE", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, context, 503,
        )
        self.reason = reason
