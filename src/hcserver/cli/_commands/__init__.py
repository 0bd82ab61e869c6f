"""hcserver CLI commands."""

from typing import TYPE_CHECKING

from ._backup import app as backup_app
from ._context import CLIContext
from ._properties import app as properties_app
from ._run import app as run_app
from ._shared import ExitCode, exit_with_error, exit_with_success, get_error_console

if TYPE_CHECKING:
    from cyclopts import App

__all__ = [
    "CLIContext",
    "ExitCode",
    "backup_app",
    "exit_with_error",
    "exit_with_success",
    "get_error_console",
    "properties_app",
    "register_commands",
    "run_app",
]


def register_commands(app: "App") -> None:
    app.command(run_app)
    app.command(backup_app)
    app.command(properties_app)
