"""Custom exception classes for provider and resource handler operations."""

from typing import Any, Dict, List, Optional, Sequence


class ProviderError(Exception):
    """Base exception for provider operations."""

    def __init__(
        self,
        message: str,
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """Initialize provider error.

        Args:
            message: Error message
            resource_id: Identifier of the resource related to the error
            context: Additional context information
        """
        super().__init__(message)
        self.message = message
        self.resource_id = resource_id
        self.context = context or {}
        # State of a remote object created before the error, so it can be tracked
        self.partial_state: Optional[Dict[str, Any]] = None


class ResourceOperationError(ProviderError):
    """Exception raised when a remote call made by a handler fails.

    The message is the static operation prefix followed by the verbatim cause,
    e.g. ``creating SSM activation: <cause>``.
    """

    def __init__(
        self,
        operation: str,
        cause: Optional[BaseException] = None,
        resource_id: Optional[str] = None,
    ):
        """Initialize resource operation error.

        Args:
            operation: Description of the failed operation
            cause: Underlying exception, rendered verbatim
            resource_id: Identifier of the resource related to the error
        """
        message = f"{operation}: {cause}" if cause is not None else operation
        super().__init__(message, resource_id=resource_id, context={"operation": operation})
        self.operation = operation
        self.cause = cause


class ResourceNotFoundError(ProviderError):
    """Exception raised when a remote object does not exist."""

    def __init__(self, message: str, resource_id: Optional[str] = None, last_request: Any = None):
        super().__init__(message, resource_id=resource_id)
        self.last_request = last_request


class InvalidIdentifierError(ProviderError):
    """Exception raised when a resource identifier cannot be decoded."""

    def __init__(self, message: str, resource_id: Optional[str] = None):
        super().__init__(message, resource_id=resource_id)


class SchemaValidationError(ProviderError):
    """Exception raised when a resource configuration does not match its schema."""

    def __init__(self, resource_type: str, validation_errors: List[str]):
        """Initialize schema validation error.

        Args:
            resource_type: Resource type whose configuration was rejected
            validation_errors: List of validation error messages
        """
        summary = f"Invalid configuration for {resource_type}"
        if len(validation_errors) == 1:
            summary += f": {validation_errors[0]}"
        else:
            summary += f" with {len(validation_errors)} errors: " + "; ".join(validation_errors)

        super().__init__(
            summary,
            context={"resource_type": resource_type, "validation_errors": validation_errors},
        )
        self.resource_type = resource_type
        self.validation_errors = validation_errors


class RetryTimeoutError(ProviderError):
    """Exception raised when a retryable operation keeps failing past its window."""

    def __init__(self, timeout: float, last_error: Optional[BaseException] = None):
        message = f"timeout while retrying after {timeout:g}s"
        if last_error is not None:
            message += f" (last error: {last_error})"
        super().__init__(message, context={"timeout": timeout})
        self.timeout = timeout
        self.last_error = last_error


class WaitTimeoutError(ProviderError):
    """Exception raised when a status poll does not reach a target state in time."""

    def __init__(
        self,
        last_state: Optional[str],
        expected: Sequence[str],
        timeout: float,
        last_error: Optional[BaseException] = None,
    ):
        """Initialize wait timeout error.

        Args:
            last_state: Last status observed before giving up
            expected: Target statuses that were awaited
            timeout: Timeout that elapsed, in seconds
            last_error: Last error raised by the refresh function, if any
        """
        message = (
            f"timeout while waiting for state to become '{', '.join(expected)}' "
            f"(last state: '{last_state or ''}', timeout: {timeout:g}s)"
        )
        if last_error is not None:
            message += f": {last_error}"
        super().__init__(
            message,
            context={"last_state": last_state, "expected": list(expected), "timeout": timeout},
        )
        self.last_state = last_state
        self.expected = list(expected)
        self.timeout = timeout
        self.last_error = last_error


class UnexpectedStateError(ProviderError):
    """Exception raised when a polled status is neither pending nor a target."""

    def __init__(self, state: str, expected: Sequence[str]):
        super().__init__(
            f"unexpected state '{state}', wanted target '{', '.join(expected)}'",
            context={"state": state, "expected": list(expected)},
        )
        self.state = state
        self.expected = list(expected)


class OperationCancelledError(ProviderError):
    """Exception raised when the caller cancels an operation or its deadline passes."""


class UnknownResourceTypeError(ProviderError):
    """Exception raised when no handler is registered for a resource type."""

    def __init__(self, resource_type: str, known_types: Sequence[str] = ()):
        message = f"Unknown resource type: {resource_type}"
        if known_types:
            message += f" (supported: {', '.join(sorted(known_types))})"
        super().__init__(message, context={"resource_type": resource_type})
        self.resource_type = resource_type
