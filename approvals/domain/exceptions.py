"""Domain exceptions for the approval workflow engine.

Defines domain-level exceptions that represent business rule violations.
They are raised synchronously by the operation that detects them and
propagate unchanged to the HTTP boundary, where exception handlers map
error_code to a status code.
"""

from typing import Any


class ApprovalEngineException(Exception):
    """Base exception for all approval engine errors.

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
        """Serialize for JSON error responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(ApprovalEngineException):
    """Raised when input validation fails (e.g. duplicate stage orders)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class BadRequestException(ApprovalEngineException):
    """Raised when the requested transition is invalid for the current state.

    Covers inactive workflow, workflow without stages, a duplicate pending
    request, and an execution or request that is no longer pending.
    """

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message, "BAD_REQUEST", details)


class DuplicatePendingRequestException(BadRequestException):
    """Raised when a Pending request already exists for the entity."""

    def __init__(self, entity_type: str, entity_id: str) -> None:
        """Initialize with the entity that already has a pending request.

        Args:
            entity_type: Entity kind (e.g. 'Member').
            entity_id: Entity identifier.
        """
        super().__init__(
            f"An approval request for this {entity_type} is already pending",
            entity_type=entity_type,
            entity_id=entity_id,
        )


class WorkflowCodeAlreadyExistsException(ApprovalEngineException):
    """Raised when creating a workflow whose code already exists."""

    def __init__(self, workflow_code: str) -> None:
        """Initialize with the duplicate workflow code.

        Args:
            workflow_code: The workflow code that already exists.
        """
        super().__init__(
            f"Workflow with code {workflow_code} already exists",
            "WORKFLOW_ALREADY_EXISTS",
            {"workflow_code": workflow_code},
        )


class ResourceNotFoundException(ApprovalEngineException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'approval_workflow').
            resource_id: The ID (or code) that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class ForbiddenException(ApprovalEngineException):
    """Raised when the caller is not the assigned approver of a stage."""

    def __init__(
        self,
        message: str = "You are not authorized to approve this request",
        **details: Any,
    ) -> None:
        super().__init__(message, "FORBIDDEN", details)


class AuthenticationException(ApprovalEngineException):
    """Raised when the bearer token is missing, invalid, or expired."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message, "AUTHENTICATION_ERROR")
