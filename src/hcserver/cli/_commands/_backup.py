"""Back up the world without touching the server."""

import anyio
from cyclopts import App

from hcserver.exceptions import WorldResetError
from hcserver.supervisor import ConsoleOutputSink

from ._context import CLIContext
from ._run import build_world_reset
from ._shared import ExitCode, exit_with_error, exit_with_success

app = App(
    name="backup", help="Archive the world and prune old backups", help_on_error=True
)


@app.default
def backup() -> None:
    """Archive the world and prune old backups

    The server should be stopped first; 7-Zip reads the world directory
    as it is on disk.
    """
    ctx = CLIContext.get_current()
    reset = build_world_reset(
        ctx.config, ctx.root, output_sink=ConsoleOutputSink(), logger=ctx.logger
    )
    if not reset.world_path.is_dir():
        exit_with_error(f"World not found: {reset.world_path}", ExitCode.NOT_FOUND)

    try:
        destination = anyio.run(reset.backup_world)
    except WorldResetError as e:
        exit_with_error(str(e), ExitCode.IO_ERROR)

    exit_with_success(f"Backup written to {destination}")
