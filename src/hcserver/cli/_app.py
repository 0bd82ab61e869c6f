"""The command-line interface for hcserver."""
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing

from pathlib import Path
from typing import Annotated

from cyclopts import App, Parameter
from rich.console import Console

from hcserver.config import safe_load_config
from hcserver.utils import create_server_logger

from ._commands import register_commands
from ._commands._context import CLIContext

APP_HELP = "Hardcore Minecraft server supervisor."


def create_app(console: Console | None = None) -> App:
    """Create the CLI app with global options bound to a meta command.

    Args:
        console: Console used for help and error output.

    Returns:
        The app; invoke ``app.meta()`` to parse global options first.
    """
    cli = App(
        name="hcserver",
        help=APP_HELP,
        help_on_error=True,
        console=console or Console(),
    )
    register_commands(cli)

    @cli.meta.default
    def _default(  # pyright: ignore[reportUnusedFunction]
        *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
        config: Annotated[
            Path | None, Parameter(name="--config", help="Path to config file")
        ] = None,
        root: Annotated[
            Path | None,
            Parameter(name="--root", help="Server directory (overrides server.root)"),
        ] = None,
    ) -> None:
        """Launch hcserver with global options.

        Args:
            tokens: Command tokens to pass to subcommands.
            config: Explicit path to config file.
            root: Server directory.
        """
        loaded_config, config_error = safe_load_config(config_path=config)

        logger = create_server_logger(
            level=loaded_config.logging.level.value,
            log_format=loaded_config.logging.format.value,  # type: ignore[arg-type]
            log_file=loaded_config.logging.file,
            max_bytes=loaded_config.logging.max_bytes,
            backup_count=loaded_config.logging.backup_count,
        )

        server_root = root if root is not None else Path(loaded_config.server.root)
        ctx = CLIContext(
            config=loaded_config,
            root=server_root.resolve(),
            config_error=config_error,
            logger=logger,
        )
        CLIContext.set_current(ctx)

        try:
            cli(tokens)
        finally:
            CLIContext.reset()

    return cli


def main() -> None:
    """Default entrypoint for the `hcserver` CLI."""
    create_app().meta()
