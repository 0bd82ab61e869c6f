"""Run the server with the hardcore ruleset and an interactive console."""

from typing import TYPE_CHECKING

import anyio
from cyclopts import App

from hcserver.hardcore import HardcoreRun, StatsFile, WorldReset
from hcserver.supervisor import (
    ConsoleOutputSink,
    OutputSink,
    ServerOptions,
    ServerSupervisor,
    mcrcon_session_factory,
)
from hcserver.utils import SevenZipArchiver

from ._console import QUIT_COMMAND, RESTART_COMMAND, run_console
from ._context import CLIContext
from ._shared import ExitCode

if TYPE_CHECKING:
    from pathlib import Path

    from structlog.typing import FilteringBoundLogger

    from hcserver.config import Config


app = App(name="run", help="Run the hardcore server", help_on_error=True)


def build_world_reset(
    config: "Config",
    root: "Path",
    *,
    output_sink: OutputSink | None = None,
    logger: "FilteringBoundLogger | None" = None,
) -> WorldReset:
    """Create the world reset workflow from the backups section."""
    return WorldReset(
        root,
        archiver=SevenZipArchiver(config.backups.archiver),
        world_dir=config.backups.world_dir,
        backup_dir=config.backups.backup_dir,
        max_backups=config.backups.max_backups,
        output_sink=output_sink,
        logger=logger,
    )


def build_hardcore_run(
    config: "Config",
    root: "Path",
    *,
    output_sink: OutputSink | None = None,
    logger: "FilteringBoundLogger | None" = None,
) -> HardcoreRun:
    """Create the hardcore session from the hardcore and backups sections."""
    hardcore = config.hardcore
    return HardcoreRun(
        reset=build_world_reset(config, root, output_sink=output_sink, logger=logger),
        stats=StatsFile(root / hardcore.stats_file),
        setup_commands=hardcore.setup_commands,
        delayed_commands=hardcore.delayed_commands,
        delayed_commands_delay=hardcore.delayed_commands_delay,
        poll_interval=hardcore.poll_interval,
        countdown_seconds=hardcore.countdown_seconds,
        logger=logger,
    )


def build_server_options(config: "Config", root: "Path") -> ServerOptions:
    """Create supervisor options from the server and rcon sections."""
    return ServerOptions(
        root=root,
        startup_script=config.server.startup_script,
        rcon_host=config.rcon.host,
        rcon_port=config.rcon.port,
        rcon_retry_delay=config.rcon.retry_delay,
        auto_restart=config.server.auto_restart,
        auto_restart_delay=config.server.auto_restart_delay,
    )


async def serve(ctx: CLIContext) -> None:
    """Start the server and run the console until it exits."""
    config = ctx.config
    sink = ConsoleOutputSink()
    run = build_hardcore_run(config, ctx.root, output_sink=sink, logger=ctx.logger)

    async def on_shutdown() -> None:
        await sink.write_message("Server stopped!")
        await sink.write_message(
            f"Type {RESTART_COMMAND} to restart the server or {QUIT_COMMAND} to exit."
        )

    async with ServerSupervisor(
        build_server_options(config, ctx.root),
        hooks=run.hooks(on_shutdown=on_shutdown),
        output_sink=sink,
        session_factory=mcrcon_session_factory(config.rcon.timeout),
        logger=ctx.logger,
    ) as server:
        if ctx.config_error is not None:
            await server.log(
                f"Using default configuration: {ctx.config_error}",
                "config_fallback",
                level="warning",
            )
        await server.start()
        await run_console(server)


@app.default
def run() -> None:
    """Run the hardcore server

    Starts the server from the configured root, watches for player deaths
    and resets the world after each one. Type commands to send them to the
    server; :quit stops the server and exits, :restart starts it again and
    :kill kills the process.
    """
    ctx = CLIContext.get_current()
    try:
        anyio.run(serve, ctx)
    except KeyboardInterrupt:
        raise SystemExit(ExitCode.INTERRUPTED) from None
