"""Supervisor package for running one game server process.

Key Components:
    - ServerOptions: Where the server lives and how to reach its console
    - ServerHooks: Lifecycle callbacks (startup, online, shutdown)
    - ServerState / RconState: Lifecycle and remote console states
    - Generation: One spawn-to-exit lifetime of the process
    - ServerSupervisor: Owns the process and its event dispatcher
    - OnlineServer: Generation-bound view handed to the online hook
    - RconConnector / MCRconSession: Remote console connection handling
    - OutputSink / ConsoleOutputSink: Output consumption

Example:
    >>> from hcserver.supervisor import ServerOptions, ServerSupervisor
    >>> options = ServerOptions(root=Path("server"), startup_script="./start.sh")
    >>> async with ServerSupervisor(options) as server:
    ...     await server.start()
"""

from ._models import (
    Generation,
    HookResult,
    RconState,
    ServerEvent,
    ServerEventType,
    ServerHooks,
    ServerOptions,
    ServerState,
)
from ._output import ConsoleOutputSink
from ._protocol import (
    MessageLevel,
    OutputSink,
    ProcessHandle,
    RconSession,
    RconSessionFactory,
)
from ._rcon import MCRconSession, RconConnector, mcrcon_session_factory
from ._server import (
    RCON_STARTED_MARKER,
    RCON_STOPPED_MARKER,
    OnlineServer,
    ServerSupervisor,
    generate_rcon_password,
    iter_lines,
    open_server_process,
)

__all__ = [
    "RCON_STARTED_MARKER",
    "RCON_STOPPED_MARKER",
    "ConsoleOutputSink",
    "Generation",
    "HookResult",
    "MCRconSession",
    "MessageLevel",
    "OnlineServer",
    "OutputSink",
    "ProcessHandle",
    "RconConnector",
    "RconSession",
    "RconSessionFactory",
    "RconState",
    "ServerEvent",
    "ServerEventType",
    "ServerHooks",
    "ServerOptions",
    "ServerState",
    "ServerSupervisor",
    "generate_rcon_password",
    "iter_lines",
    "mcrcon_session_factory",
    "open_server_process",
]
