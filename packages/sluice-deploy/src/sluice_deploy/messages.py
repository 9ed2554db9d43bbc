"""Wire messages exchanged with the orchestrator.

Requests are JSON bodies. Deploy calls answer with newline-delimited JSON,
one response message per line, until the end of the body:

    {"ack": false, "message": "validating orders"}
    {"ack": true, "success": true, "job_name": "orders"}
    {"ack": true, "success": false, "job_name": "customers", "message": "bad interval"}

A message with ``ack: true`` is the terminal acknowledgment of one item of
the batch. A message with ``ack: false`` is a progress notification.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

NDJSON_MEDIA_TYPE = "application/x-ndjson"

PING_PATH = "/api/v1/ping"
REGISTER_PROJECT_PATH = "/api/v1/project"
DEPLOY_RESOURCES_PATH = "/api/v1/project/{project}/datastore/{datastore}/resource/deploy"
DEPLOY_JOBS_PATH = "/api/v1/project/{project}/job/deploy"


class _Request(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class _Response(BaseModel):
    # Unknown fields from newer servers are ignored.
    model_config = ConfigDict(frozen=True, extra="ignore")


class ProjectSpecification(_Request):
    """Project name and configuration."""

    name: str = Field(..., min_length=1)
    config: dict[str, str] = Field(default_factory=dict)


class RegisterProjectRequest(_Request):
    project: ProjectSpecification


class RegisterProjectResponse(_Response):
    success: bool = False
    message: str = ""


class ResourceSpecification(_Request):
    """Resource as sent to the orchestrator."""

    version: int
    name: str
    datastore: str
    type: str
    spec: dict[str, Any] = Field(default_factory=dict)
    assets: dict[str, str] = Field(default_factory=dict)
    labels: dict[str, str] = Field(default_factory=dict)


class DeployResourceSpecificationRequest(_Request):
    resources: list[ResourceSpecification]
    project_name: str
    datastore_name: str


class DeployResourceSpecificationResponse(_Response):
    ack: bool = False
    success: bool = False
    resource_name: str = ""
    message: str = ""


class ConfigPair(_Request):
    name: str
    value: str


class JobDependencySpecification(_Request):
    name: str
    type: str


class JobHookSpecification(_Request):
    name: str
    config: list[ConfigPair] = Field(default_factory=list)


class JobSpecification(_Request):
    """Job as sent to the orchestrator.

    Window durations travel in their canonical string form (``24h0m0s``).
    """

    version: int
    name: str
    owner: str
    description: str = ""
    start_date: str
    end_date: str | None = None
    interval: str
    depends_on_past: bool = False
    catch_up: bool = False
    task_name: str
    config: list[ConfigPair] = Field(default_factory=list)
    window_size: str
    window_offset: str
    window_truncate_to: str
    dependencies: list[JobDependencySpecification] = Field(default_factory=list)
    assets: dict[str, str] = Field(default_factory=dict)
    hooks: list[JobHookSpecification] = Field(default_factory=list)
    labels: dict[str, str] = Field(default_factory=dict)


class DeployJobSpecificationRequest(_Request):
    jobs: list[JobSpecification]
    project_name: str


class DeployJobSpecificationResponse(_Response):
    ack: bool = False
    success: bool = False
    job_name: str = ""
    message: str = ""
