"""Game server supervisor.

This module provides the ServerSupervisor class that owns one server
process: it spawns it, pumps its output through a single event dispatcher,
tracks the server-side remote console listener and connects to it, and
reports lifecycle transitions to caller-supplied hooks.
"""

import contextlib
import inspect
import math
import secrets
import signal
import subprocess
import sys
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from contextlib import AsyncExitStack
from pathlib import Path
from types import TracebackType
from typing import TYPE_CHECKING, Any, Literal, final

import anyio
import anyio.abc
import structlog
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
from anyio.streams.text import TextReceiveStream

from hcserver.exceptions import (
    AlreadyOnlineError,
    AlreadyStartingError,
    LifecycleError,
    NotOnlineError,
    RconConnectionError,
    RconError,
)
from hcserver.properties import PropertiesFile, PropertyValue

from ._models import (
    Generation,
    RconState,
    ServerEvent,
    ServerEventType,
    ServerHooks,
    ServerOptions,
    ServerState,
)
from ._output import ConsoleOutputSink
from ._protocol import MessageLevel, OutputSink, ProcessHandle, RconSession
from ._rcon import RconConnector, mcrcon_session_factory

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from ._protocol import RconSessionFactory

RCON_STARTED_MARKER = "RCON Listener started"
RCON_STOPPED_MARKER = "RCON Listener offline"

SpawnFunc = Callable[[str, Path], Awaitable[ProcessHandle]]


async def iter_lines(stream: anyio.abc.ByteReceiveStream) -> AsyncIterator[str]:
    """Yield decoded lines from a byte stream until it closes.

    Decoding is incremental, so multi-byte characters split across reads are
    kept intact. Both ``\\n`` and ``\\r\\n`` line endings are accepted.

    Args:
        stream: The byte stream to read.

    Yields:
        Each line without its line ending.
    """
    buffer = ""
    try:
        async for chunk in TextReceiveStream(stream, errors="replace"):
            buffer += chunk
            *lines, buffer = buffer.split("\n")
            for line in lines:
                yield line.rstrip("\r")
    except (anyio.ClosedResourceError, anyio.BrokenResourceError):
        # Stream closed, which is expected on process exit
        pass

    if buffer:
        yield buffer.rstrip("\r")


async def open_server_process(command: str, cwd: Path) -> ProcessHandle:
    """Spawn the server startup command through the shell with piped stdio."""
    return await anyio.open_process(
        command,
        cwd=cwd,
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
    )


def generate_rcon_password() -> str:
    """Return a fresh random RCON password.

    The prefix keeps the value from being decoded as a number when the
    properties file is read back.
    """
    return f"hc{secrets.token_hex(8)}"


@final
class ServerSupervisor:
    """Supervises a single game server process.

    Use as an async context manager; entering it starts the event
    dispatcher, and leaving it kills any process that is still running.

    Lifecycle:
    - ``start()``: STOPPED -> STARTING -> ONLINE
    - ``stop()`` / ``kill()``: ONLINE -> STOPPING
    - process exit or spawn error: any state -> STOPPED

    Remote console:
    - The "RCON Listener started" stdout marker moves DISCONNECTED to
      SERVER_READY and launches the connector for the current generation.
    - A successful connection moves SERVER_READY to CONNECTED and calls the
      ``on_online`` hook with an OnlineServer view.
    - The "RCON Listener offline" marker or a process exit drops the session.

    Example:
        >>> async with ServerSupervisor(options, hooks=hooks) as server:
        ...     await server.start()
    """

    __slots__ = (
        "_connector",
        "_events",
        "_exit_stack",
        "_generation",
        "_generation_counter",
        "_hooks",
        "_logger",
        "_output_sink",
        "_password_factory",
        "_process",
        "_properties",
        "_rcon",
        "_rcon_state",
        "_spawn",
        "_state",
        "_task_group",
        "options",
    )

    def __init__(
        self,
        options: ServerOptions,
        *,
        hooks: ServerHooks | None = None,
        output_sink: OutputSink | None = None,
        properties: PropertiesFile | None = None,
        session_factory: "RconSessionFactory | None" = None,
        spawn: SpawnFunc = open_server_process,
        password_factory: Callable[[], str] = generate_rcon_password,
        logger: "FilteringBoundLogger | None" = None,
    ) -> None:
        """Initialize the supervisor.

        Args:
            options: Server location, startup command and RCON settings.
            hooks: Lifecycle callbacks.
            output_sink: Sink for server output. Uses ConsoleOutputSink if None.
            properties: The server.properties store. Defaults to the file in
                the server root.
            session_factory: Opens RCON sessions. Defaults to mcrcon.
            spawn: Starts the server process.
            password_factory: Generates the RCON password for each start.
            logger: Structured logger for lifecycle events.
        """
        self.options = options
        self._hooks = hooks or ServerHooks()
        self._output_sink: OutputSink = output_sink or ConsoleOutputSink()
        self._properties = properties or PropertiesFile.in_directory(options.root)
        self._spawn = spawn
        self._password_factory = password_factory
        self._logger: FilteringBoundLogger = logger or structlog.get_logger(
            "hcserver.supervisor"
        )
        self._connector = RconConnector(
            session_factory or mcrcon_session_factory(),
            host=options.rcon_host,
            retry_delay=options.rcon_retry_delay,
            on_failure=self._on_connect_failure,
            logger=self._logger,
        )

        self._state = ServerState.STOPPED
        self._rcon_state = RconState.DISCONNECTED
        self._rcon: RconSession | None = None
        self._process: ProcessHandle | None = None
        self._generation: Generation | None = None
        self._generation_counter = 0

        self._task_group: anyio.abc.TaskGroup | None = None
        self._events: MemoryObjectSendStream[ServerEvent] | None = None
        self._exit_stack: AsyncExitStack | None = None

    async def __aenter__(self) -> "ServerSupervisor":
        async with AsyncExitStack() as stack:
            send, receive = anyio.create_memory_object_stream[ServerEvent](math.inf)
            stack.callback(send.close)
            stack.callback(receive.close)
            task_group = await stack.enter_async_context(anyio.create_task_group())
            stack.push_async_callback(self._close)

            task_group.start_soon(self._dispatch, receive)
            self._task_group = task_group
            self._events = send
            self._exit_stack = stack.pop_all()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool | None:
        stack, self._exit_stack = self._exit_stack, None
        if stack is None:
            return None
        try:
            return await stack.__aexit__(exc_type, exc_value, traceback)
        finally:
            self._task_group = None
            self._events = None

    # ------------------------------------------------------------------
    # State queries
    # ------------------------------------------------------------------

    @property
    def state(self) -> ServerState:
        """Return the process lifecycle state."""
        return self._state

    @property
    def rcon_state(self) -> RconState:
        """Return the remote console connection state."""
        return self._rcon_state

    @property
    def rcon(self) -> RconSession | None:
        """Return the live session, or None unless CONNECTED."""
        return self._rcon

    @property
    def process(self) -> ProcessHandle | None:
        """Return the running process, if any."""
        return self._process

    @property
    def generation(self) -> Generation | None:
        """Return the current (or most recent) process generation."""
        return self._generation

    def is_online(self) -> bool:
        """Check whether the server process is running and not stopping."""
        return self._state is ServerState.ONLINE

    def is_rcon_connected(self) -> bool:
        """Check whether a remote console session is live."""
        return self._rcon_state is RconState.CONNECTED

    def is_current(self, generation: Generation) -> bool:
        """Check whether ``generation`` is the live process generation."""
        return self._generation is generation and not generation.ended

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    def get_property(self, key: str) -> PropertyValue:
        """Return a server.properties value, loading the file on first use."""
        return self._properties.get(key)

    def set_property(self, key: str, value: PropertyValue) -> None:
        """Set a server.properties value and write the whole file."""
        self._properties.set(key, value)

    def _configure_rcon(self) -> None:
        # Re-read so edits made while the server was down are kept
        self._properties.invalidate()
        self._properties.update(
            {
                "enable-rcon": True,
                "broadcast-rcon-to-ops": False,
                "rcon.password": self._password_factory(),
                "rcon.port": self.options.rcon_port,
            }
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Spawn the server process.

        Writes fresh RCON credentials into server.properties and spawns the
        startup script in the server root. A spawn failure is logged and
        leaves the supervisor STOPPED; it is not raised.

        Raises:
            AlreadyStartingError: If a start is in progress.
            AlreadyOnlineError: If a process is running or stopping.
            LifecycleError: If the supervisor context has not been entered.
        """
        if self._state is ServerState.STARTING:
            msg = "Server is already starting"
            raise AlreadyStartingError(msg, state=self._state)
        if self._state is not ServerState.STOPPED:
            msg = "Server is already online"
            raise AlreadyOnlineError(msg, state=self._state)
        task_group = self._require_task_group()

        self._state = ServerState.STARTING
        self._rcon_state = RconState.DISCONNECTED
        self._generation_counter += 1
        generation = Generation(self._generation_counter)
        self._generation = generation

        try:
            self._configure_rcon()
        except (OSError, ValueError) as e:
            await self.log(
                f"Could not update server.properties: {e}",
                "server_properties_failed",
                level="error",
                error=str(e),
            )
            await self._end_generation(generation, exit_code=None)
            return

        try:
            process = await self._spawn(self.options.startup_script, self.options.root)
        except OSError as e:
            await self.log(
                f"Server encountered an error: {e}",
                "server_spawn_failed",
                level="error",
                error=str(e),
            )
            await self._end_generation(generation, exit_code=None)
            return

        self._process = process
        task_group.start_soon(self._pump_process, generation, process)
        self._state = ServerState.ONLINE

        await self._call_hook("on_startup", self._hooks.on_startup, process)
        await self.log(
            "Server process started!",
            "server_started",
            pid=process.pid,
            generation=generation.number,
        )

    async def stop(self) -> None:
        """Ask the server to stop and wait for the process to exit.

        Writes ``stop`` to the server console. There is no forced kill; use
        ``kill()`` for that. Callers must not issue concurrent stops.

        Raises:
            NotOnlineError: If the server is not online.
        """
        if self._state is not ServerState.ONLINE:
            msg = "Server is already offline"
            raise NotOnlineError(msg, state=self._state)

        generation = self._require_generation()
        generation.stop_requested = True
        self._state = ServerState.STOPPING
        await self.log(
            "Stopping server...", "server_stopping", generation=generation.number
        )
        await self._write_stdin("stop\n")
        await generation.exited.wait()

    async def kill(self) -> None:
        """Interrupt the server process and wait for it to exit.

        Raises:
            NotOnlineError: If the server is neither online nor stopping.
        """
        if self._state not in (ServerState.ONLINE, ServerState.STOPPING):
            msg = "Server is already offline"
            raise NotOnlineError(msg, state=self._state)

        generation = self._require_generation()
        process = self._process
        generation.stop_requested = True
        self._state = ServerState.STOPPING
        await self.log(
            "Killing server process...", "server_killing", generation=generation.number
        )
        if process is not None:
            # Already exited: the exit event is on its way
            with contextlib.suppress(ProcessLookupError):
                if sys.platform == "win32":
                    process.kill()
                else:
                    process.send_signal(signal.SIGINT)
        await generation.exited.wait()

    async def write(self, text: str) -> None:
        """Write raw text to the server console.

        Raises:
            NotOnlineError: If the server is not online.
        """
        if self._state is not ServerState.ONLINE:
            msg = "Tried to write to a server that is not online"
            raise NotOnlineError(msg, state=self._state)
        await self._write_stdin(text)

    async def run_command(self, command: str | Sequence[str]) -> None:
        """Write one or more console commands to the server.

        Commands are newline-joined. Responses, if any, show up on the
        output stream; nothing is returned here.

        Raises:
            NotOnlineError: If the server is not online.
        """
        if self._state is not ServerState.ONLINE:
            msg = "Tried to run a command on a server that is not online"
            raise NotOnlineError(msg, state=self._state)
        text = command if isinstance(command, str) else "\n".join(command)
        await self.write(text + "\n")

    def start_soon(self, func: Callable[..., Awaitable[Any]], *args: object) -> None:
        """Run a background task in the supervisor's task group.

        Raises:
            LifecycleError: If the supervisor context has not been entered.
        """
        self._require_task_group().start_soon(func, *args)

    # ------------------------------------------------------------------
    # Process plumbing
    # ------------------------------------------------------------------

    def _require_task_group(self) -> anyio.abc.TaskGroup:
        if self._task_group is None:
            msg = "ServerSupervisor must be used as an async context manager"
            raise LifecycleError(msg, state=self._state)
        return self._task_group

    def _require_generation(self) -> Generation:
        if self._generation is None:
            msg = "Server has never been started"
            raise NotOnlineError(msg, state=self._state)
        return self._generation

    def _publish(self, event: ServerEvent) -> None:
        if self._events is not None:
            self._events.send_nowait(event)

    def _start_generation_task(
        self,
        generation: Generation,
        func: Callable[..., Awaitable[Any]],
        *args: object,
    ) -> None:
        async def _run() -> None:
            scope = generation.open_scope()
            try:
                with scope:
                    await func(*args)
            finally:
                generation.release_scope(scope)

        self._require_task_group().start_soon(_run)

    async def _pump_stream(
        self,
        generation: Generation,
        stream: anyio.abc.ByteReceiveStream,
        event_type: ServerEventType,
    ) -> None:
        async for line in iter_lines(stream):
            self._publish(ServerEvent(event_type, generation.number, line=line))

    async def _pump_process(
        self,
        generation: Generation,
        process: ProcessHandle,
    ) -> None:
        async with anyio.create_task_group() as tg:
            if process.stdout is not None:
                tg.start_soon(
                    self._pump_stream,
                    generation,
                    process.stdout,
                    ServerEventType.STDOUT,
                )
            if process.stderr is not None:
                tg.start_soon(
                    self._pump_stream,
                    generation,
                    process.stderr,
                    ServerEventType.STDERR,
                )
            exit_code = await process.wait()

        # Published after both streams drained so every line precedes the exit
        self._publish(
            ServerEvent(ServerEventType.EXITED, generation.number, exit_code=exit_code)
        )

    async def _write_stdin(self, text: str) -> None:
        process = self._process
        if process is None or process.stdin is None:
            msg = "Server process has no console input"
            raise NotOnlineError(msg, state=self._state)
        try:
            await process.stdin.send(text.encode("utf-8"))
        except (anyio.BrokenResourceError, anyio.ClosedResourceError, OSError) as e:
            # The process is exiting; its exit event ends the generation
            self._logger.warning("stdin_write_failed", error=str(e))

    # ------------------------------------------------------------------
    # Event dispatcher
    # ------------------------------------------------------------------

    async def _dispatch(self, events: MemoryObjectReceiveStream[ServerEvent]) -> None:
        async for event in events:
            generation = self._generation
            if (
                generation is None
                or event.generation != generation.number
                or generation.ended
            ):
                self._logger.debug(
                    "stale_event_dropped",
                    event_type=event.event_type.value,
                    generation=event.generation,
                )
                if event.session is not None:
                    await self._close_session(event.session)
                continue

            match event.event_type:
                case ServerEventType.STDOUT:
                    await self._write_output("stdout", event.line or "")
                    await self._check_rcon_markers(generation, event.line or "")
                case ServerEventType.STDERR:
                    await self._write_output("stderr", event.line or "")
                case ServerEventType.RCON_CONNECTED:
                    if event.session is not None:
                        await self._on_rcon_connected(generation, event.session)
                case ServerEventType.EXITED:
                    await self._end_generation(generation, exit_code=event.exit_code)

    async def _check_rcon_markers(self, generation: Generation, line: str) -> None:
        if self._rcon_state is RconState.DISCONNECTED and RCON_STARTED_MARKER in line:
            self._rcon_state = RconState.SERVER_READY
            await self.log("Server-side RCON Online!", "rcon_server_ready")
            self._start_generation_task(generation, self._connect_rcon, generation)
        elif (
            self._rcon_state is not RconState.DISCONNECTED
            and RCON_STOPPED_MARKER in line
        ):
            await self._drop_rcon()
            await self.log("Server-side RCON Offline!", "rcon_server_offline")

    async def _connect_rcon(self, generation: Generation) -> None:
        port = int(self.get_property("rcon.port") or self.options.rcon_port)
        password = str(self.get_property("rcon.password") or "")

        def should_continue() -> bool:
            return (
                self.is_current(generation)
                and self._rcon_state is RconState.SERVER_READY
            )

        session = await self._connector.connect(
            port, password, should_continue=should_continue
        )
        if session is not None:
            self._publish(
                ServerEvent(
                    ServerEventType.RCON_CONNECTED,
                    generation.number,
                    session=session,
                )
            )

    async def _on_connect_failure(self, error: RconConnectionError) -> None:
        await self._write_message(
            f"Failed to connect to RCON: {error}", level="warning"
        )

    async def _on_rcon_connected(
        self,
        generation: Generation,
        session: RconSession,
    ) -> None:
        if self._rcon_state is not RconState.SERVER_READY:
            await self._close_session(session)
            return

        self._rcon = session
        self._rcon_state = RconState.CONNECTED
        await self.log(
            "RCON Connected!", "rcon_session_ready", generation=generation.number
        )
        await self._call_hook(
            "on_online",
            self._hooks.on_online,
            OnlineServer(self, session, generation),
        )

    async def _drop_rcon(self) -> None:
        session, self._rcon = self._rcon, None
        self._rcon_state = RconState.DISCONNECTED
        if session is not None:
            await self._close_session(session)

    async def _close_session(self, session: RconSession) -> None:
        try:
            await session.close()
        except (RconError, OSError) as e:
            self._logger.warning("rcon_close_failed", error=str(e))

    async def _end_generation(
        self,
        generation: Generation,
        *,
        exit_code: int | None,
    ) -> None:
        if generation.ended:
            return

        self._state = ServerState.STOPPED
        self._process = None
        # Ended first so watchers see the generation gone before the session
        generation.end()
        await self._drop_rcon()

        if exit_code is not None:
            await self.log(
                f"Server process exited with code {exit_code}",
                "server_exited",
                exit_code=exit_code,
                generation=generation.number,
            )
        await self._call_hook("on_shutdown", self._hooks.on_shutdown)

        if (
            exit_code is not None
            and self.options.auto_restart
            and not generation.stop_requested
        ):
            self.start_soon(self._auto_restart, generation)

    async def _auto_restart(self, generation: Generation) -> None:
        delay = self.options.auto_restart_delay
        await self.log(
            f"Restarting server in {delay:g} seconds...",
            "server_auto_restart",
            delay=delay,
        )
        await anyio.sleep(delay)

        # Someone else started (or is starting) the server in the meantime
        if self._generation is not generation or self._state is not ServerState.STOPPED:
            return
        await self.start()

    async def _close(self) -> None:
        process = self._process
        with anyio.CancelScope(shield=True):
            if process is not None and process.returncode is None:
                self._logger.warning("server_process_killed", pid=process.pid)
                # Already exited between the check and the kill
                with contextlib.suppress(ProcessLookupError):
                    process.kill()
                with anyio.move_on_after(5):
                    _ = await process.wait()
            await self._drop_rcon()

        self._state = ServerState.STOPPED
        self._process = None
        if self._generation is not None:
            self._generation.end()
        if self._task_group is not None:
            self._task_group.cancel_scope.cancel()

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    async def _call_hook(
        self,
        name: str,
        hook: Callable[..., Awaitable[None] | None] | None,
        *args: object,
    ) -> None:
        if hook is None:
            return
        try:
            result = hook(*args)
            if inspect.isawaitable(result):
                await result
        except Exception as e:  # noqa: BLE001
            self._logger.exception("hook_failed", hook=name)
            await self._write_message(f"The {name} hook failed: {e}", level="error")

    async def _write_output(
        self, stream: Literal["stdout", "stderr"], line: str
    ) -> None:
        try:
            await self._output_sink.write_line(stream, line)
        except Exception:  # noqa: BLE001
            # Output sink errors should not stop the dispatcher
            self._logger.exception("output_sink_failed", stream=stream)

    async def _write_message(
        self, message: str, *, level: MessageLevel = "info"
    ) -> None:
        try:
            await self._output_sink.write_message(message, level=level)
        except Exception:  # noqa: BLE001
            self._logger.exception("output_sink_failed", message=message)

    async def log(
        self,
        message: str,
        event: str = "supervisor_message",
        *,
        level: MessageLevel = "info",
        **fields: object,
    ) -> None:
        """Write a message to both the structured log and the output sink.

        Args:
            message: Human-readable message for the output sink.
            event: Structured log event name.
            level: Severity of the message.
            **fields: Extra structured log fields.
        """
        emit = getattr(self._logger, level)
        emit(event, message=message, **fields)
        await self._write_message(message, level=level)


@final
class OnlineServer:
    """View of a supervisor bound to one online generation and its session.

    Handed to the ``on_online`` hook. Its state queries answer for the
    generation it was created for: once that process exits, the view reports
    offline even if the supervisor has started a new process since.
    """

    __slots__ = ("_generation", "_rcon", "_server")

    def __init__(
        self,
        server: ServerSupervisor,
        rcon: RconSession,
        generation: Generation,
    ) -> None:
        """Initialize the view.

        Args:
            server: The supervisor.
            rcon: The live session.
            generation: The generation the session belongs to.
        """
        self._server = server
        self._rcon = rcon
        self._generation = generation

    @property
    def server(self) -> ServerSupervisor:
        """Return the underlying supervisor."""
        return self._server

    @property
    def rcon(self) -> RconSession:
        """Return the session opened for this generation."""
        return self._rcon

    @property
    def generation(self) -> Generation:
        """Return the generation this view is bound to."""
        return self._generation

    def is_current(self) -> bool:
        """Check whether this view's generation is still the live one."""
        return self._server.is_current(self._generation)

    def is_online(self) -> bool:
        """Check whether this view's process is running and not stopping."""
        return self.is_current() and self._server.is_online()

    def is_rcon_connected(self) -> bool:
        """Check whether this view's session is still the live one."""
        return (
            self.is_current()
            and self._server.is_rcon_connected()
            and self._server.rcon is self._rcon
        )

    async def send(self, command: str) -> str:
        """Send a command over this view's session and return the response."""
        return await self._rcon.send(command)

    async def run_command(self, command: str | Sequence[str]) -> None:
        """Write console commands to the server's standard input."""
        await self._server.run_command(command)

    async def start(self) -> None:
        """Start the supervisor again."""
        await self._server.start()

    async def stop(self) -> None:
        """Stop the supervisor and wait for the process to exit."""
        await self._server.stop()

    def start_soon(self, func: Callable[..., Awaitable[Any]], *args: object) -> None:
        """Run a background task in the supervisor's task group."""
        self._server.start_soon(func, *args)

    async def log(
        self,
        message: str,
        event: str = "supervisor_message",
        *,
        level: MessageLevel = "info",
        **fields: object,
    ) -> None:
        """Write a message through the supervisor's log and output sink."""
        await self._server.log(message, event, level=level, **fields)
