"""Structured logging and OpenTelemetry spans for sluice-deploy.

Each deployment phase (connect, register_project, deploy_resources,
deploy_jobs) runs inside a CLIENT span named ``deploy.<phase>``. Start,
completion and failure of a phase are logged with the same attributes plus
the elapsed time, and batch phases record their item counts on the span.

Log records go to stderr so they never interleave with the progress lines
the CLI prints on stdout.
"""

from __future__ import annotations

import logging
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog
from opentelemetry import trace
from opentelemetry.trace import SpanKind, Status, StatusCode

if TYPE_CHECKING:
    from opentelemetry.trace import Span, Tracer
    from structlog.stdlib import BoundLogger

_logger: BoundLogger | None = None
_tracer: Tracer | None = None

TRACER_NAME = "sluice.deploy"


def get_logger() -> BoundLogger:
    """Get the module logger, creating it if necessary.

    Example:
        >>> logger = get_logger()
        >>> logger.info("project_registered", project="sales")
    """
    global _logger
    if _logger is None:
        _logger = structlog.get_logger(TRACER_NAME)
    assert _logger is not None  # Type narrowing for mypy
    return _logger


def get_tracer() -> Tracer:
    """Get the OpenTelemetry tracer for sluice-deploy."""
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer(TRACER_NAME)
    return _tracer


def configure_logging(
    *,
    log_level: str = "WARNING",
    json_format: bool = False,
    add_timestamp: bool = True,
) -> None:
    """Route structlog through stdlib logging, writing to stderr.

    Args:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR).
        json_format: Render JSON lines instead of the console format.
        add_timestamp: Prefix records with an ISO timestamp.

    Example:
        >>> configure_logging(log_level="DEBUG")
    """
    renderer: Any = (
        structlog.processors.JSONRenderer()
        if json_format
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    timestamper = [structlog.processors.TimeStamper(fmt="iso")] if add_timestamp else []

    structlog.configure(
        processors=[
            *timestamper,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stderr)
    logging.getLogger().setLevel(log_level.upper())


@contextmanager
def span(
    name: str,
    *,
    kind: SpanKind = SpanKind.INTERNAL,
    attributes: dict[str, Any] | None = None,
) -> Iterator[Span]:
    """Run a block inside a span, logging start, end and elapsed time.

    Failures are recorded on the span, logged at error level and re-raised.

    Example:
        >>> with span("deploy.jobs", attributes={"deploy.project": "sales"}):
        ...     send_jobs()
    """
    logger = get_logger()
    attrs = attributes or {}
    started = time.perf_counter()

    def elapsed_ms() -> float:
        return round((time.perf_counter() - started) * 1000, 3)

    with get_tracer().start_as_current_span(name, kind=kind, attributes=attrs) as s:
        logger.debug(f"{name}_started", **attrs)
        try:
            yield s
        except Exception as exc:
            s.set_status(Status(StatusCode.ERROR, str(exc)))
            s.record_exception(exc)
            logger.error(f"{name}_failed", error=str(exc), duration_ms=elapsed_ms(), **attrs)
            raise
        s.set_status(Status(StatusCode.OK))
        logger.debug(f"{name}_completed", duration_ms=elapsed_ms(), **attrs)


@contextmanager
def deploy_operation(
    operation: str,
    *,
    project: str | None = None,
    datastore: str | None = None,
    host: str | None = None,
) -> Iterator[Span]:
    """Create a span for a deployment phase with standard attributes.

    Args:
        operation: Phase name (e.g. "connect", "register_project", "deploy_jobs").
        project: Project being deployed.
        datastore: Datastore whose resources are being deployed.
        host: Orchestrator URL.

    Example:
        >>> with deploy_operation("deploy_resources", project="sales", datastore="bigquery"):
        ...     deploy_resources()
    """
    attrs: dict[str, Any] = {"deploy.operation": operation}
    if project:
        attrs["deploy.project"] = project
    if datastore:
        attrs["deploy.datastore"] = datastore
    if host:
        attrs["deploy.host"] = host

    with span(f"deploy.{operation}", kind=SpanKind.CLIENT, attributes=attrs) as s:
        yield s


def record_batch(s: Span, *, total: int, deployed: int) -> None:
    """Record a batch's item counts on its phase span."""
    s.set_attribute("deploy.items.total", total)
    s.set_attribute("deploy.items.deployed", deployed)
    s.set_attribute("deploy.items.complete", deployed == total)
