"""Error Hierarchy: typed, categorized exceptions for all moderation failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Validation and permission errors are raised before the first write
    - Domain errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - to_response() produces the REST envelope; no internal details in user-facing messages

Design Decisions:
    - Single hierarchy with ForumError base: FastAPI global handler catches all (ADR: uniform error shape)
    - Specific permission denials subclass InsufficientPermissionError so callers can
      catch the broad kind or the precise signal
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
    PERMISSION = "permission"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    DATABASE = "database"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    actor_id: int | None = None
    target_user_id: int | None = None
    sanction_id: int | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None


class ForumError(Exception):
    """Base exception for all forum moderation errors."""

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
                "message": self.context.user_message or self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "actor_id": self.context.actor_id,
                    "target_user_id": self.context.target_user_id,
                    "sanction_id": self.context.sanction_id,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class InvalidInputError(ForumError):
    """Command input failed validation (missing reason, unknown kind...)."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_INPUT", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class ResourceNotFoundError(ForumError):
    """Requested resource does not exist."""
    def __init__(
        self,
        resource_type: str,
        resource_id: int | str,
        context: ErrorContext | None = None,
        code: str = "RESOURCE_NOT_FOUND",
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            code, ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class ActorNotFoundError(ResourceNotFoundError):
    """The acting moderator/admin does not exist."""
    def __init__(self, actor_id: int, context: ErrorContext | None = None):
        super().__init__("User", actor_id, context, code="ACTOR_NOT_FOUND")


class TargetNotFoundError(ResourceNotFoundError):
    """The user a sanction is aimed at does not exist."""
    def __init__(self, user_id: int, context: ErrorContext | None = None):
        super().__init__("User", user_id, context, code="TARGET_NOT_FOUND")


class SanctionNotFoundError(ResourceNotFoundError):
    def __init__(self, sanction_id: int, context: ErrorContext | None = None):
        super().__init__("Sanction", sanction_id, context, code="SANCTION_NOT_FOUND")


class InsufficientPermissionError(ForumError):
    """Role hierarchy violation."""
    def __init__(
        self,
        message: str = "Insufficient permissions for this action",
        context: ErrorContext | None = None,
        code: str = "INSUFFICIENT_PERMISSION",
    ):
        super().__init__(
            message, code, ErrorCategory.PERMISSION,
            ErrorSeverity.WARNING, context, 403,
        )


class CannotSanctionAdminError(InsufficientPermissionError):
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Administrators cannot be sanctioned", context,
            code="CANNOT_SANCTION_ADMIN",
        )


class CannotSanctionModeratorError(InsufficientPermissionError):
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Only administrators can sanction moderators", context,
            code="CANNOT_SANCTION_MODERATOR",
        )


class RevokeNotAllowedError(InsufficientPermissionError):
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Only administrators can revoke sanctions", context,
            code="REVOKE_NOT_ALLOWED",
        )


class AlreadyInactiveError(ForumError):
    """Revocation attempted on a sanction that is no longer in force."""
    def __init__(self, sanction_id: int, context: ErrorContext | None = None):
        super().__init__(
            f"Sanction '{sanction_id}' is already inactive",
            "ALREADY_INACTIVE", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
        )
        self.sanction_id = sanction_id


# ─── Infrastructure Errors (500-level) ──────────────────────────

class SystemFailureError(ForumError):
    """Unexpected collaborator failure."""
    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        code: str = "SYSTEM_FAILURE",
    ):
        super().__init__(
            message, code, ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )


class AuditLogFailedError(SystemFailureError):
    """Activity log append failed: the moderation action is not committed."""
    def __init__(self, action: str, context: ErrorContext | None = None):
        super().__init__(
            f"Audit log append failed for '{action}'", context,
            code="AUDIT_LOG_FAILED",
        )
        self.action = action


class DatabaseError(ForumError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
