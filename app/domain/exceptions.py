"""Domain exceptions for the automation rule engine.

Defines domain-level exceptions that represent business rule violations.
These exceptions are independent of infrastructure concerns. Presentation
layer maps them to HTTP responses in exception handlers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from app.domain.entities import ActionInstanceEntity


class AutomationServiceException(Exception):
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
        """Return the JSON body used by the HTTP exception handler."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(AutomationServiceException):
    """Raised when input validation fails (e.g. invalid format or range)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class ResourceNotFoundException(AutomationServiceException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'automation', 'action_instance').
            resource_id: The ID that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class SqlNotConfiguredException(AutomationServiceException):
    """Raised when an operation requires Postgres but DATABASE_URL is not set."""

    def __init__(self) -> None:
        super().__init__(
            message="This operation requires a SQL database that is not configured.",
            error_code="SERVICE_UNAVAILABLE",
        )


class AutomationException(AutomationServiceException):
    """Base for errors raised while validating or persisting an automation."""


def _format_chain(path: list[ActionInstanceEntity]) -> str:
    return " -> ".join(p.name for p in path)


class AutomationCycleException(AutomationException):
    """Raised when the requested sequential automation would close a trigger loop."""

    def __init__(self, path: list[ActionInstanceEntity]) -> None:
        """Initialize with the reconstructed chain of action instances.

        Args:
            path: Action instances forming the loop, in trigger order.
        """
        self.path = path
        super().__init__(
            f"Creating this automation would create a cycle: {_format_chain(path)}",
            "AUTOMATION_CYCLE",
            {"path": [p.to_dict() for p in path]},
        )


class AutomationMaxDepthException(AutomationException):
    """Raised when the requested sequential automation would make a chain too long."""

    def __init__(self, path: list[ActionInstanceEntity], max_depth: int) -> None:
        """Initialize with the overlong chain and the configured maximum.

        Args:
            path: Action instances of the chain that would exceed the maximum.
            max_depth: Maximum number of action instances allowed in a chain.
        """
        self.path = path
        self.max_depth = max_depth
        super().__init__(
            f"Creating this automation would exceed the maximum stack depth "
            f"({max_depth}): {_format_chain(path)}",
            "AUTOMATION_MAX_DEPTH_EXCEEDED",
            {"path": [p.to_dict() for p in path], "max_depth": max_depth},
        )


class AutomationAlreadyExistsException(AutomationException):
    """Raised when a uniqueness constraint on automations is violated."""

    def __init__(
        self,
        message: str,
        error_code: str,
        event: str,
        action_instance_id: str,
        source_action_instance_id: str | None = None,
    ) -> None:
        self.event = event
        self.action_instance_id = action_instance_id
        self.source_action_instance_id = source_action_instance_id
        details: dict[str, Any] = {
            "event": event,
            "action_instance_id": action_instance_id,
        }
        if source_action_instance_id is not None:
            details["source_action_instance_id"] = source_action_instance_id
        super().__init__(message, error_code, details)


class DuplicateSequentialAutomationException(AutomationAlreadyExistsException):
    """Raised when a sequential automation already exists for (event, source, target)."""

    def __init__(
        self,
        event: str,
        action_instance_id: str,
        source_action_instance_id: str,
    ) -> None:
        super().__init__(
            f"{event} automation for {source_action_instance_id} running "
            f"{action_instance_id} already exists",
            "DUPLICATE_SEQUENTIAL_AUTOMATION",
            event,
            action_instance_id,
            source_action_instance_id,
        )


class DuplicateAutomationException(AutomationAlreadyExistsException):
    """Raised when a non-sequential automation already exists for (event, target)."""

    def __init__(self, event: str, action_instance_id: str) -> None:
        super().__init__(
            f"{event} automation for {action_instance_id} already exists",
            "DUPLICATE_AUTOMATION",
            event,
            action_instance_id,
        )


class AutomationConfigException(AutomationException):
    """Raised when an automation's config fails the schema declared by its event."""

    def __init__(
        self,
        event: str,
        config: dict[str, Any] | None,
        validation_errors: list[Any],
    ) -> None:
        """Initialize with event, offending config and validation errors.

        Args:
            event: Automation event whose config schema was violated.
            config: The rejected configuration payload.
            validation_errors: Error entries (e.g. from pydantic ValidationError.errors()).
        """
        self.event = event
        self.config = config
        super().__init__(
            f"Invalid config for {event}",
            "AUTOMATION_CONFIG_ERROR",
            {"event": event, "config": config, "errors": validation_errors},
        )
