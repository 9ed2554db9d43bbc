"""Conversion of domain specs into wire messages."""

from __future__ import annotations

from sluice_core.errors import ValidationError
from sluice_core.models import JOB_DATE_LAYOUT, JobSpec, ResourceSpec

from sluice_deploy.messages import (
    ConfigPair,
    JobDependencySpecification,
    JobHookSpecification,
    JobSpecification,
    ResourceSpecification,
)


def to_job_wire(spec: JobSpec) -> JobSpecification:
    """Convert a domain job spec to its wire form.

    Raises:
        ValidationError: If the job has no resolved task plugin.
    """
    if spec.task.unit is None:
        raise ValidationError(f"Job '{spec.name}' has no task plugin")

    schedule = spec.schedule
    window = spec.task.window
    return JobSpecification(
        version=spec.version,
        name=spec.name,
        owner=spec.owner,
        description=spec.description,
        start_date=schedule.start_date.strftime(JOB_DATE_LAYOUT),
        end_date=schedule.end_date.strftime(JOB_DATE_LAYOUT) if schedule.end_date else None,
        interval=schedule.interval,
        depends_on_past=spec.behavior.depends_on_past,
        catch_up=spec.behavior.catch_up,
        task_name=spec.task.unit.name,
        config=[ConfigPair(name=c.name, value=c.value) for c in spec.task.config],
        window_size=window.size_string(),
        window_offset=window.offset_string(),
        window_truncate_to=window.truncate_to,
        dependencies=[
            JobDependencySpecification(name=name, type=dep.type.value)
            for name, dep in spec.dependencies.items()
        ],
        assets=dict(spec.assets),
        hooks=[
            JobHookSpecification(
                name=hook.unit.name,
                config=[ConfigPair(name=c.name, value=c.value) for c in hook.config],
            )
            for hook in spec.hooks
        ],
        labels=dict(spec.labels),
    )


def to_resource_wire(spec: ResourceSpec) -> ResourceSpecification:
    """Convert a domain resource spec to its wire form."""
    return ResourceSpecification(
        version=spec.version,
        name=spec.name,
        datastore=spec.datastore,
        type=spec.type,
        spec=dict(spec.spec),
        assets=dict(spec.assets),
        labels=dict(spec.labels),
    )
