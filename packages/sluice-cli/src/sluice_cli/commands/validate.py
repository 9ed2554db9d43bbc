"""sluice validate command - Validate project configuration and specs."""

from __future__ import annotations

from pathlib import Path

import click
from rich.markup import escape

from sluice_cli.output import info, success


@click.command()
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to sluice.yaml [default: ./sluice.yaml, then ./.sluice/sluice.yaml]",
)
def validate(config_path: str | None) -> None:
    """Validate sluice.yaml and every job and resource spec.

    Each spec is loaded and converted exactly as a deployment would, so
    unknown plugins, bad dates and bad window durations are reported
    without contacting the orchestrator.

    Examples:

        sluice validate

        sluice validate --config path/to/sluice.yaml
    """
    from sluice_core.config import ConfigNotFoundError, load_project_config
    from sluice_core.errors import SluiceError
    from sluice_core.workspace import Workspace

    from sluice_cli.errors import CLIError, handle_config_not_found

    try:
        config = load_project_config(Path(config_path) if config_path else None)
        workspace = Workspace(config)

        jobs = workspace.job_repository.get_all()
        info(f"{len(jobs)} job spec(s) valid in {escape(str(config.jobs.path))}")

        for name in sorted(workspace.resource_repositories):
            resources = workspace.resource_repositories[name].get_all()
            info(f"{len(resources)} resource spec(s) valid for datastore {escape(name)}")

    except ConfigNotFoundError as e:
        handle_config_not_found(e)
    except SluiceError as e:
        raise CLIError(f"Validation failed: {e}") from None

    success("Configuration valid")
