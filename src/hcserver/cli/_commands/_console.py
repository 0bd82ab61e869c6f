"""Interactive console for a running server.

Lines typed on stdin are sent to the server as commands. Lines starting
with ``:`` are handled by the console itself:

- ``:quit``: stop the server if it is online, then exit
- ``:restart``: start a stopped server
- ``:kill``: kill the server process, then exit
"""

import sys
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

import anyio
import anyio.to_thread

from hcserver.exceptions import LifecycleError
from hcserver.supervisor import ServerState

if TYPE_CHECKING:
    from hcserver.supervisor import ServerSupervisor

QUIT_COMMAND = ":quit"
RESTART_COMMAND = ":restart"
KILL_COMMAND = ":kill"

LineReader = Callable[[], Awaitable[str]]


async def read_stdin_line() -> str:
    """Read one line from stdin without blocking the event loop."""
    return await anyio.to_thread.run_sync(sys.stdin.readline, abandon_on_cancel=True)


async def handle_console_line(server: "ServerSupervisor", line: str) -> bool:
    """Handle one console line.

    Args:
        server: The supervised server.
        line: The raw line, trailing newline included.

    Returns:
        False when the console should exit, True otherwise.
    """
    command = line.strip()
    if not command:
        return True

    try:
        match command:
            case ":quit":
                if server.is_online():
                    await server.stop()
                return False
            case ":kill":
                if server.state in (ServerState.ONLINE, ServerState.STOPPING):
                    await server.kill()
                return False
            case ":restart":
                await server.start()
            case _:
                await server.run_command(command)
    except LifecycleError as e:
        await server.log(
            str(e), "console_command_rejected", level="warning", command=command
        )
    return True


async def run_console(
    server: "ServerSupervisor", read_line: LineReader = read_stdin_line
) -> None:
    """Feed console lines to the server until told to exit.

    End of input counts as ``:quit``.
    """
    while True:
        line = await read_line()
        if not line:
            line = QUIT_COMMAND
        if not await handle_console_line(server, line):
            return
