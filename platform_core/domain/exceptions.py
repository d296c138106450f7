"""Domain exceptions for the platform core.

Defines domain-level exceptions for conditions the caller must be told about
explicitly. Expected, frequent write outcomes (missing row, duplicate unique
value) are NOT exceptions: the entity store reports them as None/False.
Presentation layer maps these exceptions to HTTP responses in exception handlers.
"""

from typing import Any


class PlatformException(Exception):
    """Base exception for all platform-core errors.

    All custom exceptions should inherit from this class to allow
    consistent error handling and logging. Presentation layer maps
    these to HTTP responses using message, error_code, and details.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, resource_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable representation for API responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(PlatformException):
    """Raised when input validation fails (e.g. invalid format or range)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class AuthenticationException(PlatformException):
    """Raised when no current actor is available for an operation that needs one."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message, "AUTHENTICATION_ERROR")


class AuthorizationException(PlatformException):
    """Raised when the actor lacks the capability for the operation."""

    def __init__(
        self,
        resource: str | None = None,
        action: str | None = None,
        message: str = "Permission denied",
    ) -> None:
        """Initialize with optional resource, action, and message.

        Args:
            resource: Optional entity type (e.g. 'customer', 'branch').
            action: Optional capability that was attempted (e.g. 'view', 'edit').
            message: Human-readable message; default used when resource/action omitted.
        """
        if resource and action:
            message = f"Permission denied: {action} on {resource}"
        details: dict[str, Any] = {}
        if resource:
            details["resource"] = resource
        if action:
            details["action"] = action
        super().__init__(message, "PERMISSION_DENIED", details)


class ResourceNotFoundException(PlatformException):
    """Raised when a requested resource is not found (presentation layer only).

    The entity store itself returns None for unknown ids.
    """

    def __init__(self, resource_type: str, resource_id: str | int) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'customer').
            resource_id: The ID that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": str(resource_id)},
        )


class EntityDescriptorError(PlatformException):
    """Raised when an entity descriptor is declared inconsistently.

    Raised at declaration/registration time, never while serving a request.
    """

    def __init__(self, entity: str, reason: str) -> None:
        super().__init__(
            f"Invalid descriptor for {entity!r}: {reason}",
            "ENTITY_DESCRIPTOR_ERROR",
            {"entity": entity, "reason": reason},
        )


class IdentityConflictException(PlatformException):
    """Raised when a caller-chosen primary key is already occupied.

    The record that was being moved keeps its store-assigned key
    (current_id); nothing else is touched.
    """

    def __init__(self, table: str, requested_id: int, current_id: int) -> None:
        """Initialize with the table and both identities.

        Args:
            table: Table whose key space was targeted (e.g. 'actor').
            requested_id: Key the caller asked for.
            current_id: Store-assigned key the record kept.
        """
        self.table = table
        self.requested_id = requested_id
        self.current_id = current_id
        super().__init__(
            f"Cannot assign {table} id {requested_id}: already in use "
            f"(record kept id {current_id})",
            "IDENTITY_CONFLICT",
            {
                "table": table,
                "requested_id": requested_id,
                "current_id": current_id,
            },
        )


class DatabaseNotConfiguredException(PlatformException):
    """Raised when an operation requires the SQL engine but it was not initialized."""

    def __init__(self) -> None:
        super().__init__(
            message="This operation requires a SQL database that is not configured.",
            error_code="SERVICE_UNAVAILABLE",
        )


class EntityWriteRejectedException(PlatformException):
    """Raised by the presentation layer when the entity store rejected a write.

    The store reports the outcome as None/False (duplicate unique value,
    still-referenced row); request handlers translate it with this class.
    """

    def __init__(self, entity: str, action: str, entity_id: int | None = None) -> None:
        details: dict[str, Any] = {"entity": entity, "action": action}
        if entity_id is not None:
            details["entity_id"] = entity_id
        super().__init__(
            f"{action} {entity} rejected (conflicting or referenced data)",
            "ENTITY_WRITE_REJECTED",
            details,
        )
