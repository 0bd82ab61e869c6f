"""Data models for the server supervisor.

This module defines the core data types for supervising a game server:
- ServerState: Lifecycle states of the supervised process
- RconState: Remote console connection states
- ServerEventType / ServerEvent: Messages published to the dispatcher
- Generation: One spawn-to-exit lifetime of the process
- ServerOptions: Supervisor configuration
- ServerHooks: Caller-supplied lifecycle callbacks
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path  # noqa: TC003 - Used in runtime type annotations
from typing import TYPE_CHECKING

import anyio

if TYPE_CHECKING:
    from ._protocol import ProcessHandle, RconSession
    from ._server import OnlineServer


class ServerState(StrEnum):
    """Server process lifecycle states.

    - STOPPED: No process is running
    - STARTING: A start was requested and the process is being spawned
    - ONLINE: The process is running
    - STOPPING: A stop or kill was requested and the process has not exited
    """

    STOPPED = "stopped"
    STARTING = "starting"
    ONLINE = "online"
    STOPPING = "stopping"


class RconState(StrEnum):
    """Remote console connection states.

    - DISCONNECTED: The server-side listener is not up, or the process exited
    - SERVER_READY: The server logged that its listener started
    - CONNECTED: A live session exists
    """

    DISCONNECTED = "disconnected"
    SERVER_READY = "server_ready"
    CONNECTED = "connected"


class ServerEventType(StrEnum):
    """Types of messages consumed by the supervisor's dispatcher."""

    STDOUT = "stdout"
    STDERR = "stderr"
    RCON_CONNECTED = "rcon_connected"
    EXITED = "exited"


@dataclass(frozen=True, slots=True)
class ServerEvent:
    """Immutable message published to the supervisor's event channel.

    Attributes:
        event_type: What happened.
        generation: Number of the process generation the event belongs to.
        line: Output line for STDOUT/STDERR events.
        exit_code: Exit code for EXITED events.
        session: The new session for RCON_CONNECTED events.
    """

    event_type: ServerEventType
    generation: int
    line: str | None = None
    exit_code: int | None = None
    session: "RconSession | None" = None


@dataclass(slots=True)
class Generation:
    """One spawn-to-exit lifetime of the supervised process.

    Background work that belongs to a single process (the RCON connector, the
    death countdown) is tagged with its generation. Ending the generation
    cancels every scope opened through it, and tasks that check
    ``ended`` abandon themselves.

    Attributes:
        number: Monotonically increasing generation number.
        exited: Set once the process has exited or failed to spawn.
        ended: True once the generation is over.
        stop_requested: True if stop() or kill() was called for this process.
    """

    number: int
    exited: anyio.Event = field(default_factory=anyio.Event)
    ended: bool = False
    stop_requested: bool = False
    _scopes: set[anyio.CancelScope] = field(default_factory=set, repr=False)

    def open_scope(self) -> anyio.CancelScope:
        """Return a cancel scope that is cancelled when the generation ends."""
        scope = anyio.CancelScope()
        if self.ended:
            scope.cancel()
        else:
            self._scopes.add(scope)
        return scope

    def release_scope(self, scope: anyio.CancelScope) -> None:
        """Forget a scope whose task has finished."""
        self._scopes.discard(scope)

    def end(self) -> None:
        """End the generation, cancelling its scopes and waking waiters."""
        self.ended = True
        for scope in self._scopes:
            scope.cancel()
        self._scopes.clear()
        self.exited.set()


@dataclass(frozen=True, slots=True)
class ServerOptions:
    """Configuration for a supervised server.

    Attributes:
        root: Server directory; the process runs with this working directory.
        startup_script: Shell command that launches the server.
        rcon_host: Host the RCON session connects to.
        rcon_port: Port written to server.properties before each start.
        rcon_retry_delay: Seconds between RCON connection attempts.
        auto_restart: Start the server again after an unrequested exit.
        auto_restart_delay: Seconds to wait before an automatic restart.
    """

    root: Path
    startup_script: str
    rcon_host: str = "localhost"
    rcon_port: int = 25575
    rcon_retry_delay: float = 1.0
    auto_restart: bool = False
    auto_restart_delay: float = 10.0


HookResult = Awaitable[None] | None


@dataclass(frozen=True, slots=True)
class ServerHooks:
    """Caller-supplied lifecycle callbacks.

    Each hook may be a plain function or a coroutine function. Hooks run on
    the supervisor's dispatcher, so they must not wait for a lifecycle
    transition themselves (use ``start_soon`` for long-running work).

    Attributes:
        on_startup: Called with the process handle after it is spawned.
        on_online: Called with an OnlineServer once RCON is connected.
        on_shutdown: Called once when a process generation ends.
    """

    on_startup: "Callable[[ProcessHandle], HookResult] | None" = None
    on_online: "Callable[[OnlineServer], HookResult] | None" = None
    on_shutdown: Callable[[], HookResult] | None = None

