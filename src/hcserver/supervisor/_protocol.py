"""Protocol definitions for the supervisor system.

This module defines the interfaces that decouple the supervisor core from
its collaborators:
- OutputSink: Consumer of server output lines and supervisor messages
- ProcessHandle: The spawned server process
- RconSession: A connected remote console client
- RconSessionFactory: Opens RconSessions
"""

from collections.abc import Awaitable, Callable
from typing import Literal, Protocol, runtime_checkable

from anyio.abc import ByteReceiveStream, ByteSendStream

MessageLevel = Literal["info", "warning", "error"]


@runtime_checkable
class OutputSink(Protocol):
    """Protocol for consuming server output.

    OutputSinks receive every line the server prints plus the supervisor's
    own status messages, and can format, store, or display them.
    """

    async def write_line(
        self,
        stream: Literal["stdout", "stderr"],
        line: str,
    ) -> None:
        """Write a line of server output.

        Args:
            stream: Which output stream the line came from.
            line: The output line (without trailing newline).
        """
        ...

    async def write_message(
        self,
        message: str,
        *,
        level: MessageLevel = "info",
    ) -> None:
        """Write a supervisor status message.

        Args:
            message: Human-readable message.
            level: Severity of the message.
        """
        ...


@runtime_checkable
class ProcessHandle(Protocol):
    """The subset of ``anyio.abc.Process`` the supervisor relies on."""

    @property
    def pid(self) -> int:
        """Return the process ID."""
        ...

    @property
    def returncode(self) -> int | None:
        """Return the exit code, or None while the process is running."""
        ...

    @property
    def stdin(self) -> ByteSendStream | None:
        """Return the process's standard input stream."""
        ...

    @property
    def stdout(self) -> ByteReceiveStream | None:
        """Return the process's standard output stream."""
        ...

    @property
    def stderr(self) -> ByteReceiveStream | None:
        """Return the process's standard error stream."""
        ...

    async def wait(self) -> int:
        """Wait until the process exits and return its exit code."""
        ...

    def send_signal(self, signal: int) -> None:
        """Send a signal to the process."""
        ...

    def kill(self) -> None:
        """Kill the process immediately."""
        ...


@runtime_checkable
class RconSession(Protocol):
    """A connected remote console client.

    Commands sent through one session are delivered in the order the
    ``send`` calls are awaited.
    """

    async def send(self, command: str) -> str:
        """Run a command on the server and return its response text.

        Raises:
            RconCommandError: If the command could not be delivered or the
                response did not arrive in time.
        """
        ...

    async def close(self) -> None:
        """Close the session. Closing twice is a no-op."""
        ...


RconSessionFactory = Callable[[str, int, str], Awaitable[RconSession]]
"""Opens a session for ``(host, port, password)``.

Raises ``RconConnectionError`` for any socket or authentication failure.
"""
