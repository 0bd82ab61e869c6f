"""Hardcore session wiring for the supervisor hooks."""

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, final

import anyio
import pendulum
import structlog

from hcserver.exceptions import NotOnlineError
from hcserver.supervisor import HookResult, OnlineServer, ServerHooks

from ._commands import DEFAULT_SETUP_COMMANDS
from ._deaths import DeathWatcher, utc_now

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from ._reset import WorldReset
    from ._stats import StatsFile


@final
class HardcoreRun:
    """State of the current hardcore session.

    Owns the run start time and the active DeathWatcher. Every time the
    server comes online the game rules and scoreboards are set up again, the
    run clock restarts and a new watcher takes over.

    Example:
        >>> run = HardcoreRun(reset=WorldReset(root))
        >>> async with ServerSupervisor(options, hooks=run.hooks()) as server:
        ...     await server.start()
    """

    __slots__ = (
        "_clock",
        "_countdown_interval",
        "_countdown_seconds",
        "_delayed_commands",
        "_delayed_commands_delay",
        "_logger",
        "_poll_interval",
        "_reset",
        "_setup_commands",
        "_stats",
        "started_at",
        "watcher",
    )

    def __init__(
        self,
        *,
        reset: "WorldReset | None" = None,
        stats: "StatsFile | None" = None,
        setup_commands: Sequence[str] = DEFAULT_SETUP_COMMANDS,
        delayed_commands: Sequence[str] = (),
        delayed_commands_delay: float = 1.0,
        poll_interval: float = 15.0,
        countdown_seconds: int = 30,
        countdown_interval: float = 1.0,
        clock: Callable[[], pendulum.DateTime] = utc_now,
        logger: "FilteringBoundLogger | None" = None,
    ) -> None:
        """Initialize the session.

        Args:
            reset: World reset run after a death.
            stats: Stats file updated after a death.
            setup_commands: Console commands run each time the server is online.
            delayed_commands: Console commands run shortly after the setup,
                e.g. datapack configuration functions.
            delayed_commands_delay: Seconds to wait before the delayed commands.
            poll_interval: Seconds between death checks.
            countdown_seconds: Length of the stop countdown.
            countdown_interval: Seconds between countdown updates.
            clock: Returns the current time.
            logger: Structured logger.
        """
        self._reset = reset
        self._stats = stats
        self._setup_commands = tuple(setup_commands)
        self._delayed_commands = tuple(delayed_commands)
        self._delayed_commands_delay = delayed_commands_delay
        self._poll_interval = poll_interval
        self._countdown_seconds = countdown_seconds
        self._countdown_interval = countdown_interval
        self._clock = clock
        self._logger: FilteringBoundLogger = logger or structlog.get_logger(
            "hcserver.hardcore"
        )
        self.started_at: pendulum.DateTime | None = None
        self.watcher: DeathWatcher | None = None

    def hooks(
        self,
        *,
        on_shutdown: Callable[[], HookResult] | None = None,
    ) -> ServerHooks:
        """Return supervisor hooks that drive this session.

        Args:
            on_shutdown: Passed through unchanged.
        """
        return ServerHooks(on_online=self.on_online, on_shutdown=on_shutdown)

    async def on_online(self, server: OnlineServer) -> None:
        """Set up the game and start watching for deaths."""
        self.started_at = self._clock()
        await server.log("Server Online!", "hardcore_run_started")
        if self._setup_commands:
            await server.run_command(self._setup_commands)

        self.watcher = DeathWatcher(
            server,
            started_at=self.started_at,
            reset=self._reset,
            stats=self._stats,
            poll_interval=self._poll_interval,
            countdown_seconds=self._countdown_seconds,
            countdown_interval=self._countdown_interval,
            clock=self._clock,
            logger=self._logger,
        )
        self.watcher.start()

        if self._delayed_commands:
            server.start_soon(self._run_delayed_commands, server)

    async def _run_delayed_commands(self, server: OnlineServer) -> None:
        await anyio.sleep(self._delayed_commands_delay)
        if not server.is_online():
            return
        try:
            await server.run_command(self._delayed_commands)
        except NotOnlineError as e:
            self._logger.warning("delayed_commands_skipped", error=str(e))
