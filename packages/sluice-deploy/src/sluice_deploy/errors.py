"""Custom exceptions for sluice-deploy.

This module defines the exception hierarchy:
- DeployError (base)
- TransportError
- ServiceUnreachableError
- DeploymentTimeoutError
- ProtocolError
- ProtocolFailureError
"""

from __future__ import annotations


class DeployError(Exception):
    """Base exception for all deployment operations.

    Attributes:
        message: Human-readable error description.
        details: Optional additional context about the error.

    Example:
        >>> try:
        ...     session.deploy("sales")
        ... except DeployError as e:
        ...     print(f"Deployment failed: {e}")
    """

    def __init__(self, message: str, *, details: dict[str, str] | None = None) -> None:
        """Initialize DeployError.

        Args:
            message: Human-readable error description.
            details: Optional additional context about the error.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation with details if present."""
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


class TransportError(DeployError):
    """The orchestrator could not be reached or answered with an HTTP error.

    Not retried by this layer.

    Attributes:
        host: Orchestrator URL.
        status_code: HTTP status when the server answered with an error.
        cause: The underlying transport failure.
    """

    def __init__(
        self,
        message: str = "unable to complete request successfully",
        *,
        host: str | None = None,
        status_code: int | None = None,
        cause: str | None = None,
    ) -> None:
        """Initialize TransportError.

        Args:
            message: Human-readable error description.
            host: The orchestrator URL.
            status_code: HTTP status code returned by the server.
            cause: The underlying cause of the failure.
        """
        details: dict[str, str] = {}
        if host:
            details["host"] = host
        if status_code is not None:
            details["status"] = str(status_code)
        if cause:
            details["cause"] = cause
        super().__init__(message, details=details)
        self.host = host
        self.status_code = status_code
        self.cause = cause


class ServiceUnreachableError(TransportError):
    """The dial deadline passed before the orchestrator answered.

    Reported distinctly from other transport faults.

    Example:
        >>> try:
        ...     client.connect(Deadline(5))
        ... except ServiceUnreachableError:
        ...     print("can't reach the orchestrator")
    """

    def __init__(self, host: str | None = None, *, cause: str | None = None) -> None:
        super().__init__("can't reach the orchestrator service", host=host, cause=cause)


class DeploymentTimeoutError(DeployError):
    """The overall deployment deadline passed during a deploy call.

    Attributes:
        operation: The call in flight when the deadline fired.
    """

    def __init__(self, operation: str, *, timeout_seconds: float | None = None) -> None:
        details: dict[str, str] = {"operation": operation}
        if timeout_seconds is not None:
            details["timeout"] = f"{timeout_seconds:g}s"
        super().__init__("deployment process took too long, timing out", details=details)
        self.operation = operation
        self.timeout_seconds = timeout_seconds


class ProtocolError(DeployError):
    """The orchestrator sent a message that could not be decoded."""

    pass


class ProtocolFailureError(DeployError):
    """The orchestrator reported ``success: false``.

    Raised for a failed terminal ack (``entity`` names the item) and for an
    unsuccessful top-level response such as project registration.

    Attributes:
        operation: Operation that failed (e.g. "deploy_jobs").
        entity: Job or resource name from the failed ack, if any.
        server_message: Message sent by the orchestrator.
    """

    def __init__(
        self,
        operation: str,
        *,
        entity: str | None = None,
        server_message: str = "",
        message: str | None = None,
    ) -> None:
        if message is None:
            if entity:
                message = f"unable to deploy: {entity} {server_message}".rstrip()
            elif server_message:
                message = f"{operation} failed: {server_message}"
            else:
                message = f"{operation} failed"
        details: dict[str, str] = {"operation": operation}
        if entity:
            details["entity"] = entity
        super().__init__(message, details=details)
        self.operation = operation
        self.entity = entity
        self.server_message = server_message
