"""Conversion between on-disk specs and the canonical domain model.

JobSpecAdapter converts ``JobSpecFile`` to ``JobSpec`` and back. It resolves
task and hook plugins through registries and parses dates and window
durations. ResourceSpecAdapter binds ``ResourceSpecFile`` to a datastore.

Both adapters are stateless apart from their registries and are safe to
share between sessions.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime

import structlog

from sluice_core.duration import parse_window_duration
from sluice_core.errors import ParseError, ValidationError
from sluice_core.models import (
    DEFAULT_TRUNCATE_TO,
    DEFAULT_WINDOW_OFFSET,
    DEFAULT_WINDOW_SIZE,
    DependencyType,
    JobSpec,
    JobSpecBehavior,
    JobSpecConfigItem,
    JobSpecDependency,
    JobSpecHook,
    JobSpecSchedule,
    JobSpecTask,
    JobSpecTaskWindow,
    ResourceSpec,
)
from sluice_core.plugins import Datastore, HookPlugin, PluginRegistry, TaskPlugin
from sluice_core.schemas import (
    ConfigItem,
    JobBehavior,
    JobDependency,
    JobHook,
    JobSchedule,
    JobSpecFile,
    JobTask,
    JobTaskWindow,
    ResourceSpecFile,
)
from sluice_core.validators import JOB_DATE_LAYOUT, parse_job_date

logger = structlog.get_logger(__name__)


def config_from_mapping(config: Mapping[str, str]) -> tuple[JobSpecConfigItem, ...]:
    """Build ordered config pairs from a mapping, keeping insertion order."""
    return tuple(JobSpecConfigItem(name=k, value=v) for k, v in config.items())


def config_to_mapping(config: Iterable[JobSpecConfigItem | ConfigItem]) -> dict[str, str]:
    """Build an insertion-ordered mapping from config pairs."""
    return {item.name: item.value for item in config}


def _domain_config(items: Iterable[ConfigItem]) -> tuple[JobSpecConfigItem, ...]:
    return tuple(JobSpecConfigItem(name=c.name, value=c.value) for c in items)


def _file_config(items: Iterable[JobSpecConfigItem]) -> tuple[ConfigItem, ...]:
    return tuple(ConfigItem.model_construct(name=c.name, value=c.value) for c in items)


def _parse_date(value: str, field: str) -> datetime:
    try:
        return parse_job_date(value)
    except ValueError as exc:
        raise ParseError("invalid date", field=field, value=value) from exc


def dependency_type_from_string(value: str, *, job: str = "") -> DependencyType:
    """Resolve a dependency type string.

    Unknown and empty values resolve to ``DependencyType.INTRA`` without
    raising; a non-empty unknown value is logged as a warning.
    """
    try:
        return DependencyType(value)
    except ValueError:
        if value:
            logger.warning(
                "dependency_type_defaulted",
                job=job,
                type=value,
                default=DependencyType.INTRA.value,
            )
        return DependencyType.INTRA


class JobSpecAdapter:
    """Converts job specs between their on-disk and domain forms.

    Args:
        task_registry: Registry used to resolve ``task.name``.
        hook_registry: Registry used to resolve each hook's ``name``.

    Example:
        >>> adapter = JobSpecAdapter(task_registry(["bq2bq"]), hook_registry())
        >>> spec = adapter.to_spec(JobSpecFile.from_yaml("jobs/orders/job.yaml"))
        >>> adapter.from_spec(spec).task.window.size
        '24h0m0s'
    """

    def __init__(
        self,
        task_registry: PluginRegistry[TaskPlugin],
        hook_registry: PluginRegistry[HookPlugin],
    ) -> None:
        self.task_registry = task_registry
        self.hook_registry = hook_registry

    def to_spec(self, conf: JobSpecFile) -> JobSpec:
        """Convert an on-disk job spec to the domain model.

        Conversion is all-or-nothing: any failure raises and no domain
        object is produced.

        Raises:
            ParseError: If a schedule date or window duration does not parse.
            ResolutionError: If the task or any hook is not registered.
        """
        start_date = _parse_date(conf.schedule.start_date, "schedule.start_date")
        end_date = None
        if conf.schedule.end_date:
            end_date = _parse_date(conf.schedule.end_date, "schedule.end_date")

        dependencies: dict[str, JobSpecDependency] = {}
        for dep in conf.dependencies:
            dependencies[dep.job] = JobSpecDependency(
                type=dependency_type_from_string(dep.type, job=conf.name)
            )

        hooks = tuple(
            JobSpecHook(
                unit=self.hook_registry.get_by_name(hook.name),
                config=_domain_config(hook.config),
            )
            for hook in conf.hooks
        )

        window = self.prepare_window(conf.task.window)
        unit = self.task_registry.get_by_name(conf.task.name)

        return JobSpec(
            version=conf.version,
            name=conf.name.strip(),
            owner=conf.owner,
            description=conf.description,
            labels=dict(conf.labels),
            schedule=JobSpecSchedule(
                start_date=start_date,
                end_date=end_date,
                interval=conf.schedule.interval,
            ),
            behavior=JobSpecBehavior(
                depends_on_past=conf.behavior.depends_on_past,
                catch_up=conf.behavior.catch_up,
            ),
            task=JobSpecTask(
                unit=unit,
                config=_domain_config(conf.task.config),
                window=window,
            ),
            assets=dict(conf.asset),
            dependencies=dependencies,
            hooks=hooks,
        )

    @staticmethod
    def prepare_window(window: JobTaskWindow) -> JobSpecTaskWindow:
        """Resolve an authored window, applying defaults for empty fields.

        Defaults: size 24h, offset 0, truncate_to ``"d"``.

        Raises:
            ParseError: If size or offset is not a valid window duration.
        """
        size = DEFAULT_WINDOW_SIZE
        offset = DEFAULT_WINDOW_OFFSET
        truncate_to = window.truncate_to or DEFAULT_TRUNCATE_TO

        if window.size:
            try:
                size = parse_window_duration(window.size)
            except ParseError as exc:
                raise ParseError(
                    "failed to parse task window size", field="task.window.size", value=window.size
                ) from exc
        if window.offset:
            try:
                offset = parse_window_duration(window.offset)
            except ParseError as exc:
                raise ParseError(
                    "failed to parse task window offset",
                    field="task.window.offset",
                    value=window.offset,
                ) from exc

        return JobSpecTaskWindow(size=size, offset=offset, truncate_to=truncate_to)

    def from_spec(self, spec: JobSpec) -> JobSpecFile:
        """Convert a domain job spec back to its on-disk form.

        Window durations are rendered canonically (``"1M"`` comes back as
        ``"720h0m0s"``). Dependency order follows the domain mapping.

        The domain spec is already validated, so the on-disk models are
        built without re-running field validators. Trimmed names shorter
        than the on-disk minimum and intervals accepted by a custom
        validator registry therefore convert without error.

        Raises:
            ValidationError: If the task has no resolved plugin.
        """
        if spec.task.unit is None:
            raise ValidationError(f"Job '{spec.name}' has no task plugin")

        schedule = JobSchedule.model_construct(
            start_date=spec.schedule.start_date.strftime(JOB_DATE_LAYOUT),
            end_date=(
                spec.schedule.end_date.strftime(JOB_DATE_LAYOUT) if spec.schedule.end_date else ""
            ),
            interval=spec.schedule.interval,
        )

        return JobSpecFile.model_construct(
            version=spec.version,
            name=spec.name,
            owner=spec.owner,
            description=spec.description,
            schedule=schedule,
            behavior=JobBehavior.model_construct(
                depends_on_past=spec.behavior.depends_on_past,
                catch_up=spec.behavior.catch_up,
            ),
            task=JobTask.model_construct(
                name=spec.task.unit.name,
                config=_file_config(spec.task.config),
                window=JobTaskWindow.model_construct(
                    size=spec.task.window.size_string(),
                    offset=spec.task.window.offset_string(),
                    truncate_to=spec.task.window.truncate_to,
                ),
            ),
            asset=dict(spec.assets),
            labels=dict(spec.labels),
            dependencies=tuple(
                JobDependency.model_construct(job=name, type=dep.type.value)
                for name, dep in spec.dependencies.items()
            ),
            hooks=tuple(
                JobHook.model_construct(name=hook.unit.name, config=_file_config(hook.config))
                for hook in spec.hooks
            ),
        )


class ResourceSpecAdapter:
    """Binds on-disk resource specs to a registered datastore.

    Args:
        datastore_registry: Registry used to resolve datastore names.
    """

    def __init__(self, datastore_registry: PluginRegistry[Datastore]) -> None:
        self.datastore_registry = datastore_registry

    def to_spec(self, conf: ResourceSpecFile, datastore_name: str) -> ResourceSpec:
        """Convert an on-disk resource spec to the domain model.

        Raises:
            ResolutionError: If the datastore is not registered.
            ValidationError: If the datastore does not support ``conf.type``.
        """
        datastore = self.datastore_registry.get_by_name(datastore_name)
        supported = datastore.resource_types
        if supported is not None and conf.type not in supported:
            raise ValidationError(
                f"Resource '{conf.name}' has type '{conf.type}' which datastore "
                f"'{datastore_name}' does not support. Supported: {', '.join(sorted(supported))}"
            )

        return ResourceSpec(
            version=conf.version,
            name=conf.name,
            type=conf.type,
            datastore=datastore.name,
            labels=dict(conf.labels),
            spec=dict(conf.spec),
            assets=dict(conf.assets),
        )

    def from_spec(self, spec: ResourceSpec) -> ResourceSpecFile:
        """Convert a domain resource spec back to its on-disk form."""
        return ResourceSpecFile(
            version=spec.version,
            name=spec.name,
            type=spec.type,
            labels=dict(spec.labels),
            spec=dict(spec.spec),
            assets=dict(spec.assets),
        )
