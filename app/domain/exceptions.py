"""Domain exceptions for the automation flow engine.

Defines domain-level exceptions that represent business rule violations.
These exceptions are independent of infrastructure concerns. Presentation
layer maps them to HTTP responses in exception handlers.
"""

from typing import Any


class LeadflowException(Exception):
    """Base exception for all application errors.

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
        """Serialize for JSON error responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(LeadflowException):
    """Raised when input validation fails (e.g. invalid format or range)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class ResourceNotFoundException(LeadflowException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'flow', 'flow_execution').
            resource_id: The ID that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class FlowDefinitionException(LeadflowException):
    """Raised when a flow graph or one of its node configs is malformed."""

    def __init__(self, message: str, node_id: str | None = None) -> None:
        details = {"node_id": node_id} if node_id else {}
        super().__init__(message, "FLOW_DEFINITION_ERROR", details)


class FlowValidationException(LeadflowException):
    """Raised when a flow cannot be activated because its graph has errors."""

    def __init__(self, flow_id: str, errors: list[str], warnings: list[str]) -> None:
        """Initialize with the validator output.

        Args:
            flow_id: Flow that failed validation.
            errors: Blocking problems.
            warnings: Non-blocking problems reported alongside.
        """
        super().__init__(
            f"Flow {flow_id} has {len(errors)} validation error(s)",
            "FLOW_VALIDATION_ERROR",
            {"flow_id": flow_id, "errors": errors, "warnings": warnings},
        )


class InvalidExecutionTransitionException(LeadflowException):
    """Raised when an operator operation is not allowed from the current status."""

    def __init__(self, execution_id: str, status: str, operation: str) -> None:
        super().__init__(
            f"Cannot {operation} execution {execution_id} in status '{status}'",
            "INVALID_EXECUTION_TRANSITION",
            {"execution_id": execution_id, "status": status, "operation": operation},
        )


class ExecutionConflictException(LeadflowException):
    """Raised when an execution is claimed by a worker or changed concurrently."""

    def __init__(self, execution_id: str, reason: str = "execution is being advanced") -> None:
        super().__init__(
            f"Execution {execution_id} is busy: {reason}; retry.",
            "EXECUTION_CONFLICT",
            {"execution_id": execution_id, "reason": reason},
        )


class SqlNotConfiguredException(LeadflowException):
    """Raised when an operation requires the SQL database but it is not configured."""

    def __init__(self) -> None:
        super().__init__(
            message="This operation requires a SQL database that is not configured.",
            error_code="SERVICE_UNAVAILABLE",
        )


class ExternalServiceException(LeadflowException):
    """Raised when an external collaborator (CRM, messaging gateway) fails.

    retryable distinguishes transient failures (timeouts, rate limits, 5xx)
    from permanent ones (bad request, missing resource).
    """

    def __init__(
        self,
        service: str,
        message: str,
        *,
        retryable: bool,
        status_code: int | None = None,
    ) -> None:
        details: dict[str, Any] = {"service": service, "retryable": retryable}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, "EXTERNAL_SERVICE_ERROR", details)
        self.service = service
        self.retryable = retryable
        self.status_code = status_code
