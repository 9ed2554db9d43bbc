"""Custom exception hierarchy for sluice-core.

This module defines the exception classes raised while reading, validating
and adapting job and resource specifications:
- SluiceError: Base exception for all sluice errors
- ValidationError: Structural constraint failures (length, pattern, enum)
- ParseError: Date or duration grammar failures
- ResolutionError: Unknown task, hook or datastore plugin
- ConfigurationError: Configuration or spec file parsing failures
- SpecNotFoundError: Requested spec does not exist in a repository
- AdaptationError: A spec could not be converted for a deployment request
- UnsupportedAnswerError: A plugin answer of an unknown kind

User-facing messages are safe to display. Technical details are passed as
``internal_details`` and only reach the structured log.
"""

from __future__ import annotations

import structlog

logger = structlog.get_logger(__name__)


class SluiceError(Exception):
    """Base exception for sluice.

    Args:
        user_message: Safe message to display to the user.
        internal_details: Optional technical details for logging. This is
            logged internally but never part of ``str(error)``.

    Example:
        >>> raise SluiceError(
        ...     "Spec invalid",
        ...     internal_details="schedule.start_date failed regex in jobs/a/job.yaml"
        ... )
    """

    def __init__(
        self,
        user_message: str,
        *,
        internal_details: str | None = None,
    ) -> None:
        """Initialize SluiceError with user message and optional internal details.

        Args:
            user_message: Safe message to display to the user.
            internal_details: Technical details for internal logging only.
        """
        super().__init__(user_message)
        self.user_message = user_message

        if internal_details:
            logger.error(
                "sluice_error",
                error_type=self.__class__.__name__,
                user_message=user_message,
                internal_details=internal_details,
            )


class ValidationError(SluiceError):
    """Raised when a spec fails a structural constraint.

    Surfaced before any network activity and never retried.
    """

    pass


class ParseError(SluiceError):
    """Raised when a date or duration string does not match its grammar.

    Attributes:
        field: Name of the field being parsed (may be None for bare parses).
        value: The offending input.

    Example:
        >>> raise ParseError("invalid duration", field="task.window.size", value="2M x")
        # str(err) -> "invalid duration (field 'task.window.size', value '2M x')"
    """

    def __init__(
        self,
        user_message: str,
        *,
        field: str | None = None,
        value: str | None = None,
        internal_details: str | None = None,
    ) -> None:
        context_parts: list[str] = []
        if field:
            context_parts.append(f"field '{field}'")
        if value is not None:
            context_parts.append(f"value '{value}'")

        if context_parts:
            full_message = f"{user_message} ({', '.join(context_parts)})"
        else:
            full_message = user_message

        super().__init__(full_message, internal_details=internal_details)
        self.field = field
        self.value = value


class ResolutionError(SluiceError):
    """Raised when a plugin name does not resolve in its registry.

    Always includes the list of available names for actionable feedback.

    Attributes:
        kind: Registry kind (task, hook, datastore).
        name: The requested name.
        available: Names registered at lookup time.

    Example:
        >>> raise ResolutionError(kind="task", name="bq2bq", available=["spark"])
        # User sees: "Task 'bq2bq' is not registered. Available: spark"
    """

    def __init__(
        self,
        *,
        kind: str,
        name: str,
        available: list[str],
        internal_details: str | None = None,
    ) -> None:
        available_str = ", ".join(available) if available else "none"
        user_message = f"{kind.capitalize()} '{name}' is not registered. Available: {available_str}"

        super().__init__(user_message, internal_details=internal_details)

        self.kind = kind
        self.name = name
        self.available = available


class ConfigurationError(SluiceError):
    """Raised when a configuration or spec file cannot be parsed or validated.

    Attributes:
        file_path: Path to the file (if known).
        field_path: Dot-separated path to the invalid field (if known).
        line_number: Line number in the file where the error occurred.

    Example:
        >>> raise ConfigurationError(
        ...     "Invalid host",
        ...     file_path="sluice.yaml",
        ...     field_path="host",
        ...     internal_details="URL must start with http:// or https://",
        ... )
    """

    def __init__(
        self,
        user_message: str,
        *,
        file_path: str | None = None,
        field_path: str | None = None,
        line_number: int | None = None,
        internal_details: str | None = None,
    ) -> None:
        context_parts: list[str] = []
        if file_path:
            context_parts.append(f"in {file_path}")
        if line_number:
            context_parts.append(f"line {line_number}")
        if field_path:
            context_parts.append(f"field '{field_path}'")

        if context_parts:
            full_message = f"{user_message} ({', '.join(context_parts)})"
        else:
            full_message = user_message

        super().__init__(full_message, internal_details=internal_details)

        self.file_path = file_path
        self.field_path = field_path
        self.line_number = line_number


class SpecNotFoundError(SluiceError):
    """Raised when a repository has no spec with the requested name."""

    def __init__(self, kind: str, name: str) -> None:
        super().__init__(f"{kind.capitalize()} spec '{name}' not found")
        self.kind = kind
        self.name = name


class AdaptationError(SluiceError):
    """Raised when a spec cannot be serialized for a deployment request.

    Wraps the underlying cause with the entity name so the whole category's
    request is abandoned with a message naming the offending spec.

    Attributes:
        entity: Name of the job or resource that failed to adapt.
    """

    def __init__(self, entity: str, cause: Exception) -> None:
        super().__init__(f"failed to serialize: {entity}: {cause}")
        self.entity = entity
        self.cause = cause


class UnsupportedAnswerError(SluiceError):
    """Raised when a plugin answer is not one of the known answer kinds."""

    def __init__(self, value: object) -> None:
        super().__init__(f"unknown type found while parsing input: {value!r}")
        self.value = value
