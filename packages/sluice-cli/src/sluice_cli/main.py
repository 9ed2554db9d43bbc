"""CLI entry point for sluice.

Defines the main command group. Subcommands are loaded lazily so that
``sluice --help`` does not import the deployment stack.
"""

from __future__ import annotations

import importlib
from typing import Any

import click
import rich_click as rclick

from sluice_cli import __version__
from sluice_cli.output import set_no_color

rclick.rich_click.TEXT_MARKUP = "markdown"
rclick.rich_click.SHOW_ARGUMENTS = True
rclick.rich_click.GROUP_ARGUMENTS_OPTIONS = True


class LazyGroup(rclick.RichGroup):
    """Click group that loads commands lazily.

    Commands are only imported when actually invoked, not at import time.

    Attributes:
        lazy_subcommands: Mapping of command names to module paths.
    """

    def __init__(
        self,
        *args: Any,
        lazy_subcommands: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize LazyGroup.

        Args:
            *args: Positional arguments for parent class.
            lazy_subcommands: Mapping of command name to module path.
                Format: {"deploy": "sluice_cli.commands.deploy.deploy"}
            **kwargs: Keyword arguments for parent class.
        """
        super().__init__(*args, **kwargs)
        self.lazy_subcommands: dict[str, str] = lazy_subcommands or {}

    def list_commands(self, ctx: click.Context) -> list[str]:
        """Return the sorted names of registered and lazy commands."""
        commands = set(super().list_commands(ctx))
        commands.update(self.lazy_subcommands.keys())
        return sorted(commands)

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        """Get a command by name, importing it on first use."""
        cmd = super().get_command(ctx, cmd_name)  # type: ignore[arg-type]
        if cmd is not None:
            return cmd

        if cmd_name not in self.lazy_subcommands:
            return None

        module_path = self.lazy_subcommands[cmd_name]
        module_name, attr_name = module_path.rsplit(".", 1)
        mod = importlib.import_module(module_name)
        return getattr(mod, attr_name)  # type: ignore[no-any-return]


LAZY_COMMANDS = {
    "deploy": "sluice_cli.commands.deploy.deploy",
    "validate": "sluice_cli.commands.validate.validate",
}


def _configure_logging(ctx: click.Context, param: click.Parameter, value: str) -> str:
    from sluice_deploy.observability import configure_logging

    configure_logging(log_level=value, json_format=False)
    return value


@click.command(cls=LazyGroup, lazy_subcommands=LAZY_COMMANDS)
@click.version_option(version=__version__, prog_name="sluice")
@click.option(
    "--no-color",
    is_flag=True,
    default=False,
    help="Disable colored output.",
    is_eager=True,
    expose_value=False,
    callback=lambda ctx, param, value: set_no_color(value) if value else None,
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Structured log level.",
    expose_value=False,
    callback=_configure_logging,
)
def cli() -> None:
    """Sluice - deploy data pipeline specs to the orchestrator.

    Jobs and resources are described in YAML files next to a sluice.yaml
    project configuration.

    **Getting Started:**

    - `sluice validate` - Validate sluice.yaml and all specs
    - `sluice deploy --project NAME` - Deploy resources and jobs
    """
    pass


if __name__ == "__main__":
    cli()
