"""Validation function registry for spec models.

Custom field checks (cron intervals, dates) are looked up by tag name in a
ValidatorRegistry instead of a process-wide table. A registry is handed to
model validation through Pydantic's validation context:

    >>> registry = default_validators()
    >>> registry.register("cron", lambda value: None)  # accept anything
    >>> JobSpecFile.model_validate(data, context={"validators": registry})

When no registry is passed, models validate against a freshly built
``default_validators()`` registry.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator
from datetime import datetime
from typing import Any

from croniter import croniter

ValidatorFunc = Callable[[str], None]
"""A validator raises ValueError when the value is rejected."""

CONTEXT_KEY = "validators"
"""Pydantic validation context key holding the ValidatorRegistry."""

CRON = "cron"
DATE = "date"

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
"""On-disk date grammar (YYYY-MM-DD)."""

JOB_DATE_LAYOUT = "%Y-%m-%d"
"""strptime/strftime layout matching DATE_PATTERN."""


class ValidatorRegistry:
    """Maps validation tag names to validator functions.

    Example:
        >>> registry = ValidatorRegistry()
        >>> registry.register("cron", validate_cron_interval)
        >>> registry.validate("cron", "0 2 * * *")
    """

    def __init__(self, validators: dict[str, ValidatorFunc] | None = None) -> None:
        self._validators: dict[str, ValidatorFunc] = dict(validators or {})

    def register(self, tag: str, func: ValidatorFunc) -> None:
        """Register (or replace) the validator for a tag."""
        self._validators[tag] = func

    def validate(self, tag: str, value: str) -> None:
        """Run the validator registered for ``tag``.

        Raises:
            KeyError: If no validator is registered under ``tag``.
            ValueError: If the validator rejects the value.
        """
        if tag not in self._validators:
            raise KeyError(f"Unknown validator: {tag}. Registered: {sorted(self._validators)}")
        self._validators[tag](value)

    def __contains__(self, tag: object) -> bool:
        return tag in self._validators

    def __iter__(self) -> Iterator[str]:
        return iter(self._validators)

    def copy(self) -> ValidatorRegistry:
        """Return an independent copy of this registry."""
        return ValidatorRegistry(self._validators)


def validate_cron_interval(value: str) -> None:
    """Reject strings that are not cron expressions.

    Accepts 5 or 6 field expressions and macros such as ``@daily``.
    """
    if not value or not croniter.is_valid(value):
        raise ValueError(f"invalid cron interval: {value!r}")


def validate_date(value: str) -> None:
    """Reject strings that do not have the YYYY-MM-DD shape.

    Only the shape is checked here; calendar validity (month 13, day 45) is
    a ParseError raised when the adapter parses the date.
    """
    if not DATE_PATTERN.match(value):
        raise ValueError(f"date must be in YYYY-MM-DD format, got {value!r}")


def parse_job_date(value: str) -> datetime:
    """Parse a YYYY-MM-DD date into a UTC-naive midnight datetime.

    Raises:
        ValueError: If the value is not a valid calendar date.
    """
    if not DATE_PATTERN.match(value):
        raise ValueError(f"date must be in YYYY-MM-DD format, got {value!r}")
    return datetime.strptime(value, JOB_DATE_LAYOUT)


def default_validators() -> ValidatorRegistry:
    """Build a new registry with the built-in cron and date validators."""
    return ValidatorRegistry({CRON: validate_cron_interval, DATE: validate_date})


def registry_from_context(context: Any) -> ValidatorRegistry:
    """Return the registry carried by a Pydantic validation context.

    Falls back to ``default_validators()`` when the context is absent or
    carries no registry.
    """
    if isinstance(context, dict):
        registry = context.get(CONTEXT_KEY)
        if isinstance(registry, ValidatorRegistry):
            return registry
    return default_validators()
