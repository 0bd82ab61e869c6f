"""Remote console sessions and the connection retry loop.

- MCRconSession: RconSession adapter over the blocking ``mcrcon`` client
- RconConnector: fixed-delay retry loop that opens a session
"""

import contextlib
import socket
from collections.abc import Awaitable, Callable
from functools import partial
from typing import TYPE_CHECKING, final

import anyio
import anyio.to_thread
import structlog
from mcrcon import MCRcon, MCRconException

from hcserver.exceptions import RconCommandError, RconConnectionError

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from ._protocol import RconSession, RconSessionFactory


class _MCRconClient(MCRcon):
    """MCRcon that treats a closed socket as an error.

    The stock reader loops forever once ``recv`` returns no data, which is
    what happens when the server goes away mid-command or the session is
    closed from another thread.
    """

    def _read(self, length: int) -> bytes:
        sock = self.socket
        if sock is None:
            msg = "Connection closed"
            raise MCRconException(msg)
        data = b""
        while len(data) < length:
            chunk = sock.recv(length - len(data))
            if not chunk:
                msg = "Connection closed by server"
                raise MCRconException(msg)
            data += chunk
        return data


@final
class MCRconSession:
    """RconSession backed by ``mcrcon.MCRcon``.

    The client is blocking, so connect and every command run in a worker
    thread. A lock keeps one command in flight at a time so responses are
    read in the order the commands were sent.

    ``MCRcon`` arms ``SIGALRM`` for its own timeout, which only works on the
    main thread. Sessions therefore disable it and use a socket timeout.
    """

    __slots__ = ("_client", "_closed", "_lock")

    def __init__(self, client: MCRcon) -> None:
        """Wrap an already connected client."""
        self._client = client
        self._lock = anyio.Lock()
        self._closed = False

    @classmethod
    async def connect(
        cls,
        host: str,
        port: int,
        password: str,
        *,
        timeout: float = 5.0,
    ) -> "MCRconSession":
        """Open and authenticate a session.

        Args:
            host: Server host.
            port: RCON port.
            password: RCON password.
            timeout: Socket timeout in seconds for connect and each command.

        Returns:
            The connected session.

        Raises:
            RconConnectionError: If the socket cannot be opened or the
                password is rejected.
        """
        # MCRcon installs a signal handler in __init__, so build it on the
        # event loop thread.
        client = _MCRconClient(host, password, port=port, timeout=0)

        def _connect() -> None:
            client.connect()
            client.socket.settimeout(timeout)

        try:
            await anyio.to_thread.run_sync(_connect)
        except (MCRconException, OSError) as e:
            msg = f"Could not connect to {host}:{port}: {e}"
            raise RconConnectionError(msg, host=host, port=port, cause=e) from e

        return cls(client)

    async def send(self, command: str) -> str:
        """Run a command and return the server's response.

        Raises:
            RconCommandError: If the session is closed, the socket fails or
                the response times out.
        """
        async with self._lock:
            if self._closed:
                msg = "RCON session is closed"
                raise RconCommandError(msg, command=command)
            try:
                return await anyio.to_thread.run_sync(self._client.command, command)
            except (MCRconException, OSError) as e:
                msg = f"RCON command failed: {e}"
                raise RconCommandError(msg, command=command, cause=e) from e

    async def close(self) -> None:
        """Disconnect the client without waiting for a command in flight.

        Shutting the socket down wakes a worker thread blocked in ``recv``,
        so a pending ``send`` fails with RconCommandError instead of
        holding the session open.
        """
        if self._closed:
            return
        self._closed = True
        sock: socket.socket | None = self._client.socket
        if sock is None:
            return
        # Not connected or already reset by the peer
        with contextlib.suppress(OSError):
            sock.shutdown(socket.SHUT_RDWR)
        sock.close()


def mcrcon_session_factory(timeout: float = 5.0) -> "RconSessionFactory":
    """Return a session factory that opens MCRconSessions.

    Args:
        timeout: Socket timeout passed to each session.
    """
    return partial(MCRconSession.connect, timeout=timeout)


@final
class RconConnector:
    """Retries ``connect`` with a fixed delay until it succeeds.

    The loop gives up as soon as ``should_continue`` returns False, which the
    supervisor ties to the current process generation and RCON state. A
    session opened after that point is closed instead of returned.
    """

    __slots__ = ("_factory", "_host", "_logger", "_on_failure", "_retry_delay")

    def __init__(
        self,
        factory: "RconSessionFactory",
        *,
        host: str = "localhost",
        retry_delay: float = 1.0,
        on_failure: Callable[[RconConnectionError], Awaitable[None]] | None = None,
        logger: "FilteringBoundLogger | None" = None,
    ) -> None:
        """Initialize the connector.

        Args:
            factory: Opens sessions.
            host: Host to connect to.
            retry_delay: Seconds to wait after a failed attempt.
            on_failure: Awaited with each connection error before the delay.
            logger: Logger for connection attempts.
        """
        self._factory = factory
        self._host = host
        self._retry_delay = retry_delay
        self._on_failure = on_failure
        self._logger: FilteringBoundLogger = logger or structlog.get_logger(
            "hcserver.rcon"
        )

    async def connect(
        self,
        port: int,
        password: str,
        *,
        should_continue: Callable[[], bool],
    ) -> "RconSession | None":
        """Connect, retrying until success or until told to stop.

        Args:
            port: RCON port.
            password: RCON password.
            should_continue: Checked before every attempt and after a
                successful one.

        Returns:
            The session, or None if the loop was abandoned.
        """
        attempt = 0
        while should_continue():
            attempt += 1
            try:
                session = await self._factory(self._host, port, password)
            except RconConnectionError as e:
                self._logger.warning(
                    "rcon_connect_failed",
                    host=self._host,
                    port=port,
                    attempt=attempt,
                    error=str(e),
                )
                if self._on_failure is not None:
                    await self._on_failure(e)
                await anyio.sleep(self._retry_delay)
                continue

            if not should_continue():
                await session.close()
                return None

            self._logger.info(
                "rcon_connected", host=self._host, port=port, attempt=attempt
            )
            return session

        return None
