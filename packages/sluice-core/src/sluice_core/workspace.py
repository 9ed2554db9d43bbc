"""Wiring of registries, adapters and repositories for a project."""

from __future__ import annotations

import structlog

from sluice_core.adapter import JobSpecAdapter, ResourceSpecAdapter
from sluice_core.config import ProjectConfig
from sluice_core.plugins import datastore_registry, hook_registry, task_registry
from sluice_core.repository import JobSpecRepository, ResourceSpecRepository
from sluice_core.validators import ValidatorRegistry

logger = structlog.get_logger(__name__)


class Workspace:
    """Spec repositories of one project, built from its configuration.

    Example:
        >>> workspace = Workspace(load_project_config())
        >>> [spec.name for spec in workspace.job_repository.get_all()]
        ['orders']
    """

    def __init__(
        self, config: ProjectConfig, *, validators: ValidatorRegistry | None = None
    ) -> None:
        self.config = config
        discover = config.plugins.discover

        self.tasks = task_registry(config.plugins.tasks, discover=discover)
        self.hooks = hook_registry(config.plugins.hooks, discover=discover)
        self.datastores = datastore_registry(
            (ds.to_datastore() for ds in config.datastores), discover=discover
        )

        self.job_adapter = JobSpecAdapter(self.tasks, self.hooks)
        self.resource_adapter = ResourceSpecAdapter(self.datastores)

        self.job_repository = JobSpecRepository(
            config.jobs.path, self.job_adapter, validators=validators
        )
        self.resource_repositories = {
            ds.type: ResourceSpecRepository(ds.path, ds.type, self.resource_adapter)
            for ds in config.datastores
        }

        logger.debug(
            "workspace_ready",
            tasks=self.tasks.names(),
            hooks=self.hooks.names(),
            datastores=self.datastores.names(),
        )
