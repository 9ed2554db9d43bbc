"""CLI error handling for sluice-cli.

Wraps sluice-core and sluice-deploy exceptions in user-facing messages with
the CLI's exit codes.
"""

from __future__ import annotations

from typing import NoReturn

import click
from rich.markup import escape

from sluice_cli.output import error

EXIT_SUCCESS = 0
EXIT_USER_ERROR = 1  # Deployment failure, invalid spec or configuration
EXIT_SYSTEM_ERROR = 2  # Missing configuration file, permissions

REQUEST_FAILED_MESSAGE = "unable to complete request successfully"


class CLIError(click.ClickException):
    """CLI-specific exception with exit code support.

    Attributes:
        message: User-facing error message.
        exit_code: Exit code for the CLI (default: 1).
    """

    def __init__(self, message: str, exit_code: int = EXIT_USER_ERROR) -> None:
        super().__init__(message)
        self.exit_code = exit_code

    def show(self, file: object = None) -> None:
        """Display the error message using Rich formatting.

        Args:
            file: Output file (unused, for Click compatibility).
        """
        error(escape(self.format_message()))


def handle_config_not_found(err: Exception) -> NoReturn:
    """Report a missing sluice.yaml.

    Raises:
        CLIError: Always, with the system error exit code.
    """
    raise CLIError(
        f"{err}\n\nCreate a sluice.yaml in the project root, or use --config to specify a path.",
        exit_code=EXIT_SYSTEM_ERROR,
    )


def handle_deploy_failure(err: Exception) -> NoReturn:
    """Report a failed deployment.

    Prints the wrapped cause, then fails with the generic request message.

    Raises:
        CLIError: Always, with the user error exit code.
    """
    error(escape(str(err)))
    raise CLIError(REQUEST_FAILED_MESSAGE)
