"""sluice-deploy: deployment of project specs to the sluice orchestrator.

This package provides:
- An HTTP client for the orchestrator's runtime service with NDJSON streaming
- Deadline propagation for the dial and deployment timeouts
- A deployment session with per-item acknowledgment tracking
- Structured logging via structlog and OpenTelemetry span tracing

Example:
    >>> from sluice_deploy import DeployClientConfig, DeploymentSession, RuntimeServiceClient
    >>> client = RuntimeServiceClient(DeployClientConfig(host="http://localhost:9100"))
    >>> session = DeploymentSession(client, config, job_repository, resource_repositories)
    >>> result = session.deploy("sales")
"""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = [
    # Client
    "RuntimeServiceClient",
    "Deadline",
    # Session
    "DeploymentSession",
    "DeploymentResult",
    "CategoryResult",
    "SessionState",
    "ProgressEvent",
    "ProgressEventKind",
    "ProgressReporter",
    # Configuration
    "DeployClientConfig",
    # Observability
    "configure_logging",
    # Exceptions
    "DeployError",
    "TransportError",
    "ServiceUnreachableError",
    "DeploymentTimeoutError",
    "ProtocolError",
    "ProtocolFailureError",
]

_SESSION_EXPORTS = (
    "DeploymentSession",
    "DeploymentResult",
    "CategoryResult",
    "SessionState",
    "ProgressEvent",
    "ProgressEventKind",
    "ProgressReporter",
)

_ERROR_EXPORTS = (
    "DeployError",
    "TransportError",
    "ServiceUnreachableError",
    "DeploymentTimeoutError",
    "ProtocolError",
    "ProtocolFailureError",
)


def __getattr__(name: str) -> object:
    """Lazy import of public API members."""
    if name == "RuntimeServiceClient":
        from sluice_deploy.client import RuntimeServiceClient

        return RuntimeServiceClient
    if name == "Deadline":
        from sluice_deploy.deadline import Deadline

        return Deadline
    if name in _SESSION_EXPORTS:
        from sluice_deploy import session as session_module

        return getattr(session_module, name)
    if name == "DeployClientConfig":
        from sluice_deploy.config import DeployClientConfig

        return DeployClientConfig
    if name == "configure_logging":
        from sluice_deploy.observability import configure_logging

        return configure_logging
    if name in _ERROR_EXPORTS:
        from sluice_deploy import errors as errors_module

        return getattr(errors_module, name)
    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
