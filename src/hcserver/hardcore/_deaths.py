"""Death detection and the end-of-run sequence.

The DeathWatcher polls the server every few seconds over the remote
console. When a player has died it reports the run's statistics, counts
down, stops the server and hands over to the world reset.
"""

from collections.abc import Callable
from enum import StrEnum
from typing import TYPE_CHECKING, final

import anyio
import pendulum
import structlog

from hcserver.exceptions import HCServerError, WorldResetError

from ._commands import (
    CUE_COMMAND,
    DEATH_QUERY_COMMAND,
    DEATH_TALLY_COMMANDS,
    GAME_OVER_COMMANDS,
    STAT_BLOCKS,
    TITLE_COMMANDS,
    countdown_command,
    format_survived,
    is_death_response,
    survived_command,
)

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from hcserver.supervisor import OnlineServer

    from ._reset import WorldReset
    from ._stats import StatsFile


class WatcherState(StrEnum):
    """DeathWatcher states. STOPPED is terminal."""

    ACTIVE = "active"
    STOPPED = "stopped"


def utc_now() -> pendulum.DateTime:
    """Return the current UTC time."""
    return pendulum.now("UTC")


@final
class DeathWatcher:
    """Polls one online server generation for player deaths.

    Each tick first checks that the server is still online with a live
    session; if not, the watcher stops for good. Otherwise it asks the
    server whether any player's death count is at least one. A death runs
    the end-of-run sequence exactly once and stops the watcher.

    Remote console failures end the current tick and are logged. The tick
    is not retried; the next one runs on schedule and its guard stops the
    watcher if the server went away.
    """

    __slots__ = (
        "_clock",
        "_countdown_interval",
        "_countdown_seconds",
        "_logger",
        "_poll_interval",
        "_reset",
        "_server",
        "_started_at",
        "_state",
        "_stats",
    )

    def __init__(
        self,
        server: "OnlineServer",
        *,
        started_at: pendulum.DateTime,
        reset: "WorldReset | None" = None,
        stats: "StatsFile | None" = None,
        poll_interval: float = 15.0,
        countdown_seconds: int = 30,
        countdown_interval: float = 1.0,
        clock: Callable[[], pendulum.DateTime] = utc_now,
        logger: "FilteringBoundLogger | None" = None,
    ) -> None:
        """Initialize the watcher.

        Args:
            server: The online server view to watch.
            started_at: When the run started.
            reset: World reset run after the server stops.
            stats: Stats file updated when a run ends.
            poll_interval: Seconds between ticks.
            countdown_seconds: Length of the visible countdown.
            countdown_interval: Seconds between countdown updates.
            clock: Returns the current time.
            logger: Structured logger.
        """
        self._server = server
        self._started_at = started_at
        self._reset = reset
        self._stats = stats
        self._poll_interval = poll_interval
        self._countdown_seconds = countdown_seconds
        self._countdown_interval = countdown_interval
        self._clock = clock
        self._logger: FilteringBoundLogger = logger or structlog.get_logger(
            "hcserver.deaths"
        )
        self._state = WatcherState.ACTIVE

    @property
    def state(self) -> WatcherState:
        """Return the watcher state."""
        return self._state

    def start(self) -> None:
        """Run the polling loop in the supervisor's task group."""
        self._server.start_soon(self.run)

    async def run(self) -> None:
        """Tick every ``poll_interval`` seconds until the watcher stops."""
        while self._state is WatcherState.ACTIVE:
            await anyio.sleep(self._poll_interval)
            await self.tick()

    async def tick(self) -> None:
        """Run one poll."""
        if self._state is WatcherState.STOPPED:
            return

        if not self._server.is_online() or not self._server.is_rcon_connected():
            self._state = WatcherState.STOPPED
            await self._server.log(
                "Server is offline. Stopping death check...", "death_watch_stopped"
            )
            return

        try:
            if await self.check_for_death():
                await self._end_run()
        except HCServerError as e:
            self._logger.warning("death_watch_tick_failed", error=str(e))
            await self._server.log(
                f"Death check failed: {e}", "death_watch_tick_failed", level="error"
            )
        except Exception as e:  # noqa: BLE001
            self._logger.exception("death_watch_tick_crashed")
            await self._server.log(
                f"Death check failed: {e}", "death_watch_tick_failed", level="error"
            )

    async def check_for_death(self) -> bool:
        """Ask the server whether any player has died.

        The tally runs server-side: a scratch score is set to 0, then raised
        to the largest death count, and finally tested against ``1..``.

        Raises:
            RconCommandError: If a command fails.
        """
        for command in DEATH_TALLY_COMMANDS:
            _ = await self._server.send(command)
        response = await self._server.send(DEATH_QUERY_COMMAND)
        return is_death_response(response)

    async def _end_run(self) -> None:
        self._state = WatcherState.STOPPED
        survived = max(0, int((self._clock() - self._started_at).total_seconds()))
        await self._server.log(
            "Death detected! Resetting server...",
            "death_detected",
            level="error",
            survived_seconds=survived,
        )
        self._record_run(survived)

        await self.announce_stats(survived)
        _ = await self._server.send(CUE_COMMAND)
        for command in TITLE_COMMANDS:
            _ = await self._server.send(command)

        if not await self.countdown():
            self._logger.info("countdown_abandoned")
            return

        await self._server.stop()
        await self._reset_world()

    def _record_run(self, survived: int) -> None:
        if self._stats is None:
            return
        try:
            totals = self._stats.record_death(survived)
        except (OSError, ValueError) as e:
            self._logger.warning("stats_write_failed", error=str(e))
            return
        self._logger.info(
            "run_recorded",
            deaths=totals.deaths,
            total_time_played=totals.total_time_played,
        )

    async def announce_stats(self, survived: int) -> None:
        """Broadcast the game-over message and the run's statistics.

        Args:
            survived: Seconds the run lasted.

        Raises:
            RconCommandError: If a command fails.
        """
        for command in GAME_OVER_COMMANDS:
            _ = await self._server.send(command)
        _ = await self._server.send(survived_command(survived))
        self._logger.info("run_survived", survived=format_survived(survived))

        for block in STAT_BLOCKS:
            for command in block.commands():
                _ = await self._server.send(command)

    async def countdown(self) -> bool:
        """Show the per-second stop countdown.

        Returns:
            True if it ran to the end, False if the watched generation ended
            first.

        Raises:
            RconCommandError: If a command fails.
        """
        for remaining in range(self._countdown_seconds, 0, -1):
            if not self._server.is_current():
                return False
            _ = await self._server.send(countdown_command(remaining))
            await anyio.sleep(self._countdown_interval)
        return self._server.is_current()

    async def _reset_world(self) -> None:
        if self._reset is None:
            return
        try:
            await self._reset.reset(self._server)
        except WorldResetError as e:
            self._logger.error("world_reset_failed", step=e.step, error=str(e))
            await self._server.log(
                f"Error while resetting world: {e}", "world_reset_failed", level="error"
            )
        except Exception as e:  # noqa: BLE001
            self._logger.exception("world_reset_crashed")
            await self._server.log(
                f"Error while resetting world: {e}", "world_reset_failed", level="error"
            )
