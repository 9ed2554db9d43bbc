"""Deployment session: synchronizes a project's specs with the orchestrator.

A session runs strictly in sequence:

    IDLE -> CONNECTING -> REGISTERING_PROJECT -> DEPLOYING_RESOURCES
         -> DEPLOYING_JOBS -> COMPLETED

Any failure after CONNECTING moves the session to FAILED and raises.

Resources are sent as one batch per datastore, jobs as one batch for the
whole project. Each batch answers with a stream of messages: a message with
``ack`` set is the terminal acknowledgment of one item, any other message is
progress. The first failed ack aborts the session immediately and the
remaining acks of that batch are never read; the status of those items is
unknown to the client.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable, Iterator, Mapping
from enum import Enum
from typing import Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from sluice_core.config import ProjectConfig
from sluice_core.errors import AdaptationError, SluiceError
from sluice_core.repository import JobSpecRepository, ResourceSpecRepository

from sluice_deploy.client import RuntimeServiceClient
from sluice_deploy.deadline import Deadline
from sluice_deploy.errors import ProtocolFailureError
from sluice_deploy.messages import (
    DeployJobSpecificationRequest,
    DeployJobSpecificationResponse,
    DeployResourceSpecificationRequest,
    DeployResourceSpecificationResponse,
    ProjectSpecification,
    RegisterProjectRequest,
)
from sluice_deploy.observability import deploy_operation, get_logger, record_batch
from sluice_deploy.wire import to_job_wire, to_resource_wire

RESOURCES = "resources"
JOBS = "jobs"

AckMessage = DeployResourceSpecificationResponse | DeployJobSpecificationResponse

S = TypeVar("S")
W = TypeVar("W")


class SessionState(str, Enum):
    """Deployment session states."""

    IDLE = "idle"
    CONNECTING = "connecting"
    REGISTERING_PROJECT = "registering_project"
    DEPLOYING_RESOURCES = "deploying_resources"
    DEPLOYING_JOBS = "deploying_jobs"
    COMPLETED = "completed"
    FAILED = "failed"


class ProgressEventKind(str, Enum):
    """Kinds of progress events surfaced to a ProgressReporter."""

    STARTED = "started"
    CONNECTED = "connected"
    PROJECT_REGISTERED = "project_registered"
    CATEGORY_STARTED = "category_started"
    CATEGORY_SKIPPED = "category_skipped"
    ITEM_DEPLOYED = "item_deployed"
    ITEM_PROGRESS = "item_progress"
    CATEGORY_COMPLETED = "category_completed"
    CATEGORY_INCOMPLETE = "category_incomplete"
    COMPLETED = "completed"


class ProgressEvent(BaseModel):
    """A progress notification from a running session.

    Attributes:
        kind: Event kind.
        project: Project being deployed.
        category: "resources" or "jobs" for category and item events.
        datastore: Datastore of a resource batch.
        entity: Job or resource name for item events.
        message: Server or session message.
        counter: Successful acks so far in the batch.
        total: Items in the batch.
    """

    model_config = ConfigDict(frozen=True)

    kind: ProgressEventKind
    project: str
    category: str | None = None
    datastore: str | None = None
    entity: str = ""
    message: str = ""
    counter: int = 0
    total: int = 0


@runtime_checkable
class ProgressReporter(Protocol):
    """Receives progress events; must not raise."""

    def on_event(self, event: ProgressEvent) -> None: ...


class LoggingProgressReporter:
    """Default reporter: every event becomes a structured log entry."""

    def __init__(self) -> None:
        self._logger = get_logger()

    def on_event(self, event: ProgressEvent) -> None:
        fields = event.model_dump(exclude={"kind"}, exclude_defaults=True)
        if event.kind is ProgressEventKind.CATEGORY_INCOMPLETE:
            self._logger.warning(f"deploy_{event.kind.value}", **fields)
        else:
            self._logger.info(f"deploy_{event.kind.value}", **fields)


class CategoryResult(BaseModel):
    """Outcome of one batch (a datastore's resources, or the jobs).

    Attributes:
        category: "resources" or "jobs".
        datastore: Datastore name for resource batches.
        total: Items sent.
        deployed: Items acknowledged successfully.
        deployed_names: Names from successful acks, in ack order.
    """

    category: str
    datastore: str | None = None
    total: int = 0
    deployed: int = 0
    deployed_names: list[str] = Field(default_factory=list)

    @property
    def complete(self) -> bool:
        """True when every item was acknowledged."""
        return self.deployed >= self.total


class DeploymentResult(BaseModel):
    """Outcome of a session.

    ``resources`` holds one entry per datastore; ``jobs`` is None when job
    deployment was skipped.
    """

    project: str
    state: SessionState = SessionState.IDLE
    resources: list[CategoryResult] = Field(default_factory=list)
    jobs: CategoryResult | None = None
    resources_skipped: bool = False
    jobs_skipped: bool = False
    elapsed_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return self.state is SessionState.COMPLETED


class DeploymentSession:
    """Deploys one project's resources and jobs to the orchestrator.

    The session assumes exclusive use of its client. It is single-use per
    ``deploy`` call; a failed deployment is retried by calling ``deploy``
    again from the start.

    Args:
        client: Runtime service client.
        config: Project configuration (project config map and timeouts).
        job_repository: Source of job specs.
        resource_repositories: Resource spec sources keyed by datastore name.
        reporter: Progress receiver. Defaults to structured logging.

    Example:
        >>> workspace = Workspace(config)
        >>> with RuntimeServiceClient(DeployClientConfig.from_project_config(config)) as client:
        ...     session = DeploymentSession(
        ...         client, config, workspace.job_repository, workspace.resource_repositories
        ...     )
        ...     result = session.deploy("sales")
    """

    def __init__(
        self,
        client: RuntimeServiceClient,
        config: ProjectConfig,
        job_repository: JobSpecRepository,
        resource_repositories: Mapping[str, ResourceSpecRepository],
        reporter: ProgressReporter | None = None,
    ) -> None:
        self.client = client
        self.config = config
        self.job_repository = job_repository
        self.resource_repositories = dict(resource_repositories)
        self.reporter = reporter or LoggingProgressReporter()
        self.state = SessionState.IDLE
        self.result: DeploymentResult | None = None
        self._logger = get_logger()

    def deploy(
        self,
        project_name: str,
        *,
        ignore_jobs: bool = False,
        ignore_resources: bool = False,
    ) -> DeploymentResult:
        """Run a full deployment.

        Args:
            project_name: Project to deploy.
            ignore_jobs: Skip job deployment.
            ignore_resources: Skip resource deployment.

        Returns:
            The result, with state COMPLETED.

        Raises:
            ServiceUnreachableError: If the dial deadline passes.
            TransportError: For other transport failures.
            DeploymentTimeoutError: If the deployment deadline passes.
            ProtocolFailureError: If registration or any item fails.
            ProtocolError: If a server message cannot be decoded.
            AdaptationError: If a spec cannot be prepared for sending.
        """
        started = time.monotonic()
        result = DeploymentResult(project=project_name)
        self.result = result
        self._emit(ProgressEventKind.STARTED, project_name, message=self.client.config.host)

        try:
            self._set_state(SessionState.CONNECTING, result)
            self.client.connect(Deadline(self.config.dial_timeout_seconds))
            self._emit(ProgressEventKind.CONNECTED, project_name, message=self.client.config.host)

            deadline = Deadline(self.config.deploy_timeout_seconds)

            self._set_state(SessionState.REGISTERING_PROJECT, result)
            self._register_project(project_name, deadline)

            self._set_state(SessionState.DEPLOYING_RESOURCES, result)
            if ignore_resources:
                result.resources_skipped = True
                self._emit(ProgressEventKind.CATEGORY_SKIPPED, project_name, category=RESOURCES)
            else:
                for datastore in sorted(self.resource_repositories):
                    self._deploy_resources(project_name, datastore, deadline, result)

            self._set_state(SessionState.DEPLOYING_JOBS, result)
            if ignore_jobs:
                result.jobs_skipped = True
                self._emit(ProgressEventKind.CATEGORY_SKIPPED, project_name, category=JOBS)
            else:
                self._deploy_jobs(project_name, deadline, result)
        except Exception:
            self._set_state(SessionState.FAILED, result)
            result.elapsed_seconds = time.monotonic() - started
            raise

        self._set_state(SessionState.COMPLETED, result)
        result.elapsed_seconds = time.monotonic() - started
        self._emit(ProgressEventKind.COMPLETED, project_name)
        return result

    def _set_state(self, state: SessionState, result: DeploymentResult) -> None:
        self._logger.debug("session_state_changed", previous=self.state.value, state=state.value)
        self.state = state
        result.state = state

    def _emit(self, kind: ProgressEventKind, project: str, **fields: object) -> None:
        self.reporter.on_event(ProgressEvent(kind=kind, project=project, **fields))

    def _register_project(self, project_name: str, deadline: Deadline) -> None:
        request = RegisterProjectRequest(
            project=ProjectSpecification(name=project_name, config=dict(self.config.project.config))
        )
        with deploy_operation(
            "register_project", project=project_name, host=self.client.config.host
        ):
            response = self.client.register_project(request, deadline)
            if not response.success:
                raise ProtocolFailureError(
                    "register_project",
                    server_message=response.message,
                    message=f"failed to update project configurations, {response.message}",
                )
        self._emit(ProgressEventKind.PROJECT_REGISTERED, project_name)

    def _deploy_resources(
        self,
        project_name: str,
        datastore: str,
        deadline: Deadline,
        result: DeploymentResult,
    ) -> None:
        repository = self.resource_repositories[datastore]
        with deploy_operation(
            "deploy_resources", project=project_name, datastore=datastore
        ) as phase:
            specs = _prepare(repository.get_all, f"datastore '{datastore}'")
            wire_specs = _adapt(specs, to_resource_wire)

            category = CategoryResult(
                category=RESOURCES, datastore=datastore, total=len(wire_specs)
            )
            result.resources.append(category)
            self._emit(
                ProgressEventKind.CATEGORY_STARTED,
                project_name,
                category=RESOURCES,
                datastore=datastore,
                total=category.total,
            )

            request = DeployResourceSpecificationRequest(
                resources=wire_specs, project_name=project_name, datastore_name=datastore
            )
            stream = self.client.deploy_resource_specification(request, deadline)
            try:
                self._consume(
                    stream,
                    category,
                    project_name,
                    name_of=lambda m: m.resource_name,
                    operation="deploy_resources",
                )
            finally:
                record_batch(phase, total=category.total, deployed=category.deployed)

    def _deploy_jobs(self, project_name: str, deadline: Deadline, result: DeploymentResult) -> None:
        with deploy_operation("deploy_jobs", project=project_name) as phase:
            specs = _prepare(self.job_repository.get_all, JOBS)
            wire_specs = _adapt(specs, to_job_wire)

            category = CategoryResult(category=JOBS, total=len(wire_specs))
            result.jobs = category
            self._emit(
                ProgressEventKind.CATEGORY_STARTED,
                project_name,
                category=JOBS,
                total=category.total,
            )

            request = DeployJobSpecificationRequest(jobs=wire_specs, project_name=project_name)
            stream = self.client.deploy_job_specification(request, deadline)
            try:
                self._consume(
                    stream,
                    category,
                    project_name,
                    name_of=lambda m: m.job_name,
                    operation="deploy_jobs",
                )
            finally:
                record_batch(phase, total=category.total, deployed=category.deployed)

    def _consume(
        self,
        stream: Iterator[AckMessage],
        category: CategoryResult,
        project_name: str,
        *,
        name_of: Callable[..., str],
        operation: str,
    ) -> None:
        """Read a batch's stream until it ends or an item fails."""
        try:
            for message in stream:
                name = name_of(message)
                if not message.ack:
                    self._emit(
                        ProgressEventKind.ITEM_PROGRESS,
                        project_name,
                        category=category.category,
                        datastore=category.datastore,
                        entity=name,
                        message=message.message,
                    )
                    continue

                if not message.success:
                    raise ProtocolFailureError(
                        operation, entity=name, server_message=message.message
                    )

                category.deployed += 1
                category.deployed_names.append(name)
                self._emit(
                    ProgressEventKind.ITEM_DEPLOYED,
                    project_name,
                    category=category.category,
                    datastore=category.datastore,
                    entity=name,
                    counter=category.deployed,
                    total=category.total,
                )
        finally:
            close = getattr(stream, "close", None)
            if close is not None:
                close()

        kind = (
            ProgressEventKind.CATEGORY_COMPLETED
            if category.complete
            else ProgressEventKind.CATEGORY_INCOMPLETE
        )
        self._emit(
            kind,
            project_name,
            category=category.category,
            datastore=category.datastore,
            counter=category.deployed,
            total=category.total,
        )


def _prepare(load: Callable[[], list[S]], entity: str) -> list[S]:
    """Load specs, naming the source when loading fails."""
    try:
        return load()
    except SluiceError as exc:
        raise AdaptationError(entity, exc) from exc


def _adapt(specs: Iterable[S], convert: Callable[[S], W]) -> list[W]:
    """Convert every spec or none; the first failure names its spec."""
    adapted: list[W] = []
    for spec in specs:
        try:
            adapted.append(convert(spec))
        except SluiceError as exc:
            raise AdaptationError(spec.name, exc) from exc  # type: ignore[attr-defined]
    return adapted
