"""Canonical domain model of jobs and resources.

These are the in-memory shapes consumed by the orchestrator. Compared with
the on-disk models in ``sluice_core.schemas``:

- schedule dates are datetimes, not strings
- the task window is resolved to signed durations
- dependencies are keyed by job name (a duplicate entry overwrites)
- tasks and hooks hold resolved plugin handles, not names
"""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from sluice_core.duration import format_duration
from sluice_core.plugins import HookPlugin, TaskPlugin
from sluice_core.validators import JOB_DATE_LAYOUT

__all__ = [
    "JOB_DATE_LAYOUT",
    "DEFAULT_TRUNCATE_TO",
    "DEFAULT_WINDOW_OFFSET",
    "DEFAULT_WINDOW_SIZE",
    "DependencyType",
    "JobSpec",
    "JobSpecBehavior",
    "JobSpecConfigItem",
    "JobSpecDependency",
    "JobSpecHook",
    "JobSpecSchedule",
    "JobSpecTask",
    "JobSpecTaskWindow",
    "ResourceSpec",
]

DEFAULT_WINDOW_SIZE = timedelta(hours=24)
DEFAULT_WINDOW_OFFSET = timedelta(0)
DEFAULT_TRUNCATE_TO = "d"


class DependencyType(str, Enum):
    """Scope of a job dependency.

    Values:
        INTRA: Job in the same project.
        INTER: Job in another project of the same orchestrator.
        EXTRA: Job outside the orchestrator.
    """

    INTRA = "intra"
    INTER = "inter"
    EXTRA = "extra"


class JobSpecConfigItem(BaseModel):
    """Ordered configuration pair."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: str


class JobSpecSchedule(BaseModel):
    """Resolved schedule.

    Attributes:
        start_date: First schedule date.
        end_date: Last schedule date, or None for an open-ended schedule.
        interval: Cron expression.
    """

    model_config = ConfigDict(frozen=True)

    start_date: datetime
    end_date: datetime | None = None
    interval: str


class JobSpecBehavior(BaseModel):
    """Resolved behavior flags."""

    model_config = ConfigDict(frozen=True)

    depends_on_past: bool = False
    catch_up: bool = False


class JobSpecTaskWindow(BaseModel):
    """Resolved task window.

    Attributes:
        size: Signed window size.
        offset: Signed window offset.
        truncate_to: Truncation unit (h, d, w or M).
    """

    model_config = ConfigDict(frozen=True)

    size: timedelta = DEFAULT_WINDOW_SIZE
    offset: timedelta = DEFAULT_WINDOW_OFFSET
    truncate_to: str = DEFAULT_TRUNCATE_TO

    def size_string(self) -> str:
        """Canonical rendering of ``size`` (e.g. ``'24h0m0s'``)."""
        return format_duration(self.size)

    def offset_string(self) -> str:
        """Canonical rendering of ``offset`` (e.g. ``'0s'``)."""
        return format_duration(self.offset)


class JobSpecTask(BaseModel):
    """Task with its resolved plugin handle.

    ``unit`` may be None for a spec built in memory; such a spec cannot be
    converted back to its on-disk form or sent for deployment.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    unit: TaskPlugin | None = None
    config: tuple[JobSpecConfigItem, ...] = ()
    window: JobSpecTaskWindow = Field(default_factory=JobSpecTaskWindow)


class JobSpecHook(BaseModel):
    """Hook with its resolved plugin handle."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    unit: HookPlugin
    config: tuple[JobSpecConfigItem, ...] = ()


class JobSpecDependency(BaseModel):
    """Dependency entry; the job name is the key in ``JobSpec.dependencies``."""

    model_config = ConfigDict(frozen=True)

    type: DependencyType = DependencyType.INTRA


class JobSpec(BaseModel):
    """Canonical job specification.

    Example:
        >>> spec = adapter.to_spec(JobSpecFile.from_yaml("jobs/orders/job.yaml"))
        >>> spec.task.window.size_string()
        '24h0m0s'
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    version: int = 1
    name: str
    owner: str
    description: str = ""
    labels: dict[str, str] = Field(default_factory=dict)
    schedule: JobSpecSchedule
    behavior: JobSpecBehavior = Field(default_factory=JobSpecBehavior)
    task: JobSpecTask
    assets: dict[str, str] = Field(default_factory=dict)
    dependencies: dict[str, JobSpecDependency] = Field(default_factory=dict)
    hooks: tuple[JobSpecHook, ...] = ()

    @property
    def task_name(self) -> str | None:
        """Name of the resolved task plugin, if any."""
        return self.task.unit.name if self.task.unit is not None else None


class ResourceSpec(BaseModel):
    """Canonical resource specification, bound to a datastore."""

    model_config = ConfigDict(frozen=True)

    version: int = 1
    name: str
    type: str
    datastore: str
    labels: dict[str, str] = Field(default_factory=dict)
    spec: dict[str, Any] = Field(default_factory=dict)
    assets: dict[str, str] = Field(default_factory=dict)
