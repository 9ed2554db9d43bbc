"""Orchestrator runtime service client.

This module provides RuntimeServiceClient, a thin wrapper around
``httpx.Client`` for the orchestrator's deployment API with deadline
propagation, structured logging and OpenTelemetry spans.

Nothing is retried here. A failed call must be retried from the beginning
by the caller.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING, TypeVar

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from sluice_deploy.config import DeployClientConfig
from sluice_deploy.deadline import Deadline
from sluice_deploy.errors import (
    DeploymentTimeoutError,
    ProtocolError,
    ServiceUnreachableError,
    TransportError,
)
from sluice_deploy.messages import (
    DEPLOY_JOBS_PATH,
    DEPLOY_RESOURCES_PATH,
    NDJSON_MEDIA_TYPE,
    PING_PATH,
    REGISTER_PROJECT_PATH,
    DeployJobSpecificationRequest,
    DeployJobSpecificationResponse,
    DeployResourceSpecificationRequest,
    DeployResourceSpecificationResponse,
    RegisterProjectRequest,
    RegisterProjectResponse,
)
from sluice_deploy.observability import deploy_operation, get_logger

if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger

M = TypeVar("M", bound=BaseModel)


class RuntimeServiceClient:
    """Client for the orchestrator's runtime service.

    Attributes:
        config: Connection configuration.

    Example:
        >>> config = DeployClientConfig(host="http://localhost:9100")
        >>> with RuntimeServiceClient(config) as client:
        ...     client.connect()
        ...     for message in client.deploy_job_specification(request, Deadline(300)):
        ...         print(message.job_name, message.success)
    """

    def __init__(
        self,
        config: DeployClientConfig,
        *,
        transport: httpx.BaseTransport | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        """Initialize RuntimeServiceClient.

        Args:
            config: Connection configuration.
            transport: Optional httpx transport (e.g. ``httpx.MockTransport`` in tests).
            logger: Optional structlog logger. Uses default if not provided.
        """
        self.config = config
        self._logger = logger or get_logger()

        headers = {"Accept": f"application/json, {NDJSON_MEDIA_TYPE}"}
        if config.token is not None:
            headers["Authorization"] = f"Bearer {config.token.get_secret_value()}"

        self._http = httpx.Client(base_url=config.host, headers=headers, transport=transport)
        self._connected = False

    def __enter__(self) -> RuntimeServiceClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._http.close()
        self._connected = False

    def is_connected(self) -> bool:
        """Check whether ``connect`` succeeded."""
        return self._connected

    def connect(self, deadline: Deadline | None = None) -> None:
        """Check the orchestrator is reachable within the dial deadline.

        Args:
            deadline: Dial deadline. Defaults to ``config.dial_timeout_seconds``.

        Raises:
            ServiceUnreachableError: If the deadline passes before the service answers.
            TransportError: For any other connection failure.
        """
        deadline = deadline or Deadline(self.config.dial_timeout_seconds)

        with deploy_operation("connect", host=self.config.host):
            if deadline.expired:
                self._logger.error(
                    "service_unreachable", host=self.config.host, reason="dial deadline exceeded"
                )
                raise ServiceUnreachableError(self.config.host, cause="dial deadline exceeded")

            try:
                response = self._http.get(PING_PATH, timeout=deadline.timeout())
            except httpx.TimeoutException as exc:
                self._logger.error("service_unreachable", host=self.config.host, error=str(exc))
                raise ServiceUnreachableError(self.config.host, cause=str(exc)) from exc
            except httpx.HTTPError as exc:
                self._logger.error("connection_failed", host=self.config.host, error=str(exc))
                raise TransportError(
                    "failed to connect to the orchestrator service",
                    host=self.config.host,
                    cause=str(exc),
                ) from exc

            self._check_status(response)
            self._connected = True
            self._logger.info("service_connected", host=self.config.host)

    def register_project(
        self,
        request: RegisterProjectRequest,
        deadline: Deadline,
    ) -> RegisterProjectResponse:
        """Register the project and its configuration.

        An unsuccessful response is returned, not raised; the caller decides.

        Raises:
            DeploymentTimeoutError: If the deadline passes.
            TransportError: For other transport failures.
            ProtocolError: If the response cannot be decoded.
        """
        operation = "register_project"
        self._ensure_time_left(deadline, operation)
        try:
            response = self._http.post(
                REGISTER_PROJECT_PATH,
                json=request.model_dump(mode="json"),
                timeout=deadline.timeout(),
            )
        except httpx.TimeoutException as exc:
            raise DeploymentTimeoutError(operation, timeout_seconds=deadline.seconds) from exc
        except httpx.HTTPError as exc:
            raise TransportError(
                "failed to update project configurations", host=self.config.host, cause=str(exc)
            ) from exc

        self._check_status(response)
        return self._decode(RegisterProjectResponse, response.text, operation)

    def deploy_resource_specification(
        self,
        request: DeployResourceSpecificationRequest,
        deadline: Deadline,
    ) -> Iterator[DeployResourceSpecificationResponse]:
        """Deploy one datastore's resources, yielding streamed messages.

        Raises:
            DeploymentTimeoutError: If the deadline passes during the call or stream.
            TransportError: For other transport failures.
            ProtocolError: If a streamed message cannot be decoded.
        """
        path = DEPLOY_RESOURCES_PATH.format(
            project=request.project_name, datastore=request.datastore_name
        )
        yield from self._stream(
            path,
            request,
            DeployResourceSpecificationResponse,
            deadline,
            operation="deploy_resources",
        )

    def deploy_job_specification(
        self,
        request: DeployJobSpecificationRequest,
        deadline: Deadline,
    ) -> Iterator[DeployJobSpecificationResponse]:
        """Deploy the project's jobs, yielding streamed messages.

        Raises:
            DeploymentTimeoutError: If the deadline passes during the call or stream.
            TransportError: For other transport failures.
            ProtocolError: If a streamed message cannot be decoded.
        """
        path = DEPLOY_JOBS_PATH.format(project=request.project_name)
        yield from self._stream(
            path,
            request,
            DeployJobSpecificationResponse,
            deadline,
            operation="deploy_jobs",
        )

    def _stream(
        self,
        path: str,
        request: BaseModel,
        message_type: type[M],
        deadline: Deadline,
        *,
        operation: str,
    ) -> Iterator[M]:
        """POST ``request`` and decode the NDJSON response line by line.

        Closing the generator early closes the response.
        """
        self._ensure_time_left(deadline, operation)
        try:
            with self._http.stream(
                "POST",
                path,
                json=request.model_dump(mode="json"),
                timeout=deadline.timeout(),
            ) as response:
                self._check_status(response)
                for line in response.iter_lines():
                    self._ensure_time_left(deadline, operation)
                    if not line.strip():
                        continue
                    yield self._decode(message_type, line, operation)
        except httpx.TimeoutException as exc:
            self._logger.error("deployment_timed_out", operation=operation, host=self.config.host)
            raise DeploymentTimeoutError(operation, timeout_seconds=deadline.seconds) from exc
        except httpx.HTTPError as exc:
            raise TransportError(
                "failed to receive deployment ack", host=self.config.host, cause=str(exc)
            ) from exc

    def _ensure_time_left(self, deadline: Deadline, operation: str) -> None:
        if deadline.expired:
            self._logger.error("deployment_timed_out", operation=operation, host=self.config.host)
            raise DeploymentTimeoutError(operation, timeout_seconds=deadline.seconds)

    def _check_status(self, response: httpx.Response) -> None:
        """Raise TransportError for HTTP error statuses."""
        if response.status_code >= 400:
            self._logger.error(
                "request_failed",
                host=self.config.host,
                path=response.request.url.path,
                status=response.status_code,
            )
            raise TransportError(
                "unable to complete request successfully",
                host=self.config.host,
                status_code=response.status_code,
            )

    @staticmethod
    def _decode(message_type: type[M], payload: str, operation: str) -> M:
        try:
            return message_type.model_validate_json(payload)
        except PydanticValidationError as exc:
            raise ProtocolError(
                "unable to parse server response",
                details={"operation": operation, "message": type(exc).__name__},
            ) from exc
