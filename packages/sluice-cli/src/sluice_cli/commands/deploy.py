"""sluice deploy command - Deploy a project's resources and jobs."""

from __future__ import annotations

import time
from datetime import timedelta
from pathlib import Path
from typing import TYPE_CHECKING

import click
from rich.markup import escape

from sluice_cli.output import info, success, warning

if TYPE_CHECKING:
    from sluice_deploy.session import ProgressEvent


class ConsoleProgressReporter:
    """Prints session progress as human-readable lines."""

    def on_event(self, event: ProgressEvent) -> None:
        from sluice_deploy.session import JOBS, RESOURCES, ProgressEventKind

        kind = event.kind
        entity = escape(event.entity)
        if kind is ProgressEventKind.PROJECT_REGISTERED:
            info("updated project configuration")
        elif kind is ProgressEventKind.CATEGORY_STARTED:
            if event.category == JOBS:
                info("deploying jobs")
            else:
                info(f"deploying resources of datastore {escape(event.datastore or '')}")
        elif kind is ProgressEventKind.ITEM_DEPLOYED:
            info(f"{event.counter}/{event.total}. {entity} successfully deployed")
        elif kind is ProgressEventKind.ITEM_PROGRESS:
            info(f"info '{entity}': {escape(event.message)}")
        elif kind is ProgressEventKind.CATEGORY_COMPLETED:
            info("deployed jobs" if event.category == JOBS else "deployed resources")
        elif kind is ProgressEventKind.CATEGORY_INCOMPLETE:
            acked = f"{event.counter}/{event.total} {event.category}"
            warning(f"stream ended after {acked} were acknowledged")
        elif kind is ProgressEventKind.CATEGORY_SKIPPED:
            if event.category == RESOURCES:
                info("skipping resource deployment")
            else:
                info("skipping job deployment")
        elif kind is ProgressEventKind.COMPLETED:
            success("deployment completed successfully")


@click.command()
@click.option(
    "-p",
    "--project",
    "project_name",
    required=True,
    help="Name of the project to deploy.",
)
@click.option(
    "--ignore-jobs",
    is_flag=True,
    default=False,
    help="Skip deployment of jobs.",
)
@click.option(
    "--ignore-resources",
    is_flag=True,
    default=False,
    help="Skip deployment of resources.",
)
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to sluice.yaml [default: ./sluice.yaml, then ./.sluice/sluice.yaml]",
)
def deploy(
    project_name: str,
    ignore_jobs: bool,
    ignore_resources: bool,
    config_path: str | None,
) -> None:
    """Deploy the current project to the orchestrator.

    Registers the project configuration, then deploys the resources of each
    datastore and finally all jobs. Stops at the first failure.

    Examples:

        sluice deploy --project sales

        sluice deploy --project sales --ignore-resources
    """
    # Import here to avoid heavy imports at CLI startup
    from sluice_core.config import ConfigNotFoundError, load_project_config
    from sluice_core.duration import format_duration
    from sluice_core.errors import SluiceError
    from sluice_core.workspace import Workspace
    from sluice_deploy.client import RuntimeServiceClient
    from sluice_deploy.config import DeployClientConfig
    from sluice_deploy.errors import DeployError
    from sluice_deploy.session import DeploymentSession

    from sluice_cli.errors import CLIError, handle_config_not_found, handle_deploy_failure

    try:
        config = load_project_config(Path(config_path) if config_path else None)
    except ConfigNotFoundError as e:
        handle_config_not_found(e)
    except SluiceError as e:
        raise CLIError(str(e)) from None

    info(f"deploying project {escape(project_name)} at {escape(config.host)}\nplease wait...")
    started = time.monotonic()

    try:
        workspace = Workspace(config)
        with RuntimeServiceClient(DeployClientConfig.from_project_config(config)) as client:
            session = DeploymentSession(
                client,
                config,
                workspace.job_repository,
                workspace.resource_repositories,
                reporter=ConsoleProgressReporter(),
            )
            session.deploy(
                project_name,
                ignore_jobs=ignore_jobs,
                ignore_resources=ignore_resources,
            )
    except (DeployError, SluiceError) as e:
        handle_deploy_failure(e)

    elapsed = timedelta(seconds=time.monotonic() - started)
    info(f"deployment took {format_duration(elapsed)}")
