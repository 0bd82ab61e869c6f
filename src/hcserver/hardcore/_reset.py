"""World reset workflow: back up, prune, erase, restart."""

import shutil
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, final

import anyio
import anyio.to_thread
import structlog

from hcserver.exceptions import ArchiveError, LifecycleError, WorldResetError
from hcserver.utils import Archiver, SevenZipArchiver, get_time_file_name

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from hcserver.supervisor import MessageLevel, OutputSink


class Restartable(Protocol):
    """Anything the workflow can start again once the world is gone."""

    async def start(self) -> None:
        """Start the server."""
        ...


@final
class WorldReset:
    """Archives the world, keeps the newest backups and wipes the world.

    Steps run strictly one after another. A failing step raises
    WorldResetError naming the step; steps already done are not undone, so
    a failure after the erase leaves a stopped server without a world.
    """

    __slots__ = (
        "_archiver",
        "_backup_dir",
        "_logger",
        "_max_backups",
        "_output_sink",
        "_root",
        "_timestamp",
        "_world_dir",
    )

    def __init__(
        self,
        root: Path,
        *,
        archiver: Archiver | None = None,
        world_dir: str = "world",
        backup_dir: str = "world-backups",
        max_backups: int = 10,
        output_sink: "OutputSink | None" = None,
        timestamp: Callable[[], str] = get_time_file_name,
        logger: "FilteringBoundLogger | None" = None,
    ) -> None:
        """Initialize the workflow.

        Args:
            root: Server root directory.
            archiver: Tool that writes the backup archive.
            world_dir: World directory, relative to the root.
            backup_dir: Backup directory, relative to the root.
            max_backups: Number of backups to keep.
            output_sink: Receives progress messages.
            timestamp: Returns the sortable timestamp embedded in backup names.
            logger: Structured logger for each step.
        """
        self._root = root
        self._archiver: Archiver = archiver or SevenZipArchiver()
        self._world_dir = world_dir
        self._backup_dir = backup_dir
        self._max_backups = max_backups
        self._output_sink = output_sink
        self._timestamp = timestamp
        self._logger: FilteringBoundLogger = logger or structlog.get_logger(
            "hcserver.reset"
        )

    @property
    def world_path(self) -> Path:
        """Return the world directory."""
        return self._root / self._world_dir

    @property
    def backup_path(self) -> Path:
        """Return the backup directory."""
        return self._root / self._backup_dir

    def backup_destination(self) -> Path:
        """Return a new backup file path for the current time."""
        return self.backup_path / f"world {self._timestamp()}.zip"

    async def _report(
        self,
        message: str,
        event: str,
        *,
        level: "MessageLevel" = "info",
        **fields: object,
    ) -> None:
        emit = getattr(self._logger, level)
        emit(event, message=message, **fields)
        if self._output_sink is not None:
            await self._output_sink.write_message(message, level=level)

    async def backup_world(self) -> Path:
        """Archive the world into the backup directory and prune old backups.

        Returns:
            The path of the new archive.

        Raises:
            WorldResetError: If the directory cannot be created, the archive
                fails or pruning fails.
        """
        destination = self.backup_destination()
        await self._report(
            "Backing up World...", "world_backup_started", destination=str(destination)
        )

        try:
            await anyio.Path(self.backup_path).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            msg = f"Could not create backup directory {self.backup_path}: {e}"
            raise WorldResetError(msg, step="create_backup_dir", cause=e) from e

        try:
            await self._archiver.archive(destination, self.world_path)
        except ArchiveError as e:
            msg = f"Could not archive {self.world_path}: {e}"
            raise WorldResetError(msg, step="archive", cause=e) from e

        _ = await self.prune_backups()
        return destination

    async def prune_backups(self) -> list[Path]:
        """Delete the oldest backups until at most ``max_backups`` remain.

        Backup names embed a sortable timestamp, so the lexicographically
        smallest name is the oldest backup.

        Returns:
            The removed files, oldest first.

        Raises:
            WorldResetError: If the directory cannot be listed or a file
                cannot be removed.
        """
        try:
            backups = anyio.Path(self.backup_path)
            names = sorted([entry.name async for entry in backups.iterdir()])
        except OSError as e:
            msg = f"Could not list backups in {self.backup_path}: {e}"
            raise WorldResetError(msg, step="prune", cause=e) from e

        removed: list[Path] = []
        while len(names) > self._max_backups:
            oldest = self.backup_path / names.pop(0)
            await self._report(
                "Too many backups. Deleting oldest backup...",
                "world_backup_pruned",
                backup=oldest.name,
            )
            try:
                await anyio.Path(oldest).unlink()
            except OSError as e:
                msg = f"Could not delete backup {oldest}: {e}"
                raise WorldResetError(msg, step="prune", cause=e) from e
            removed.append(oldest)

        return removed

    async def erase_world(self) -> None:
        """Delete the world directory. A missing world is not an error.

        Raises:
            WorldResetError: If the directory cannot be removed.
        """
        try:
            if await anyio.Path(self.world_path).exists():
                await anyio.to_thread.run_sync(shutil.rmtree, self.world_path)
        except OSError as e:
            msg = f"Could not erase {self.world_path}: {e}"
            raise WorldResetError(msg, step="erase", cause=e) from e

    async def reset(self, server: Restartable) -> None:
        """Back up and erase the world, then start the server again.

        Args:
            server: The stopped server to restart.

        Raises:
            WorldResetError: If any step fails.
        """
        _ = await self.backup_world()
        await self._report(
            "World backup complete. Erasing world...", "world_erase_started"
        )
        await self.erase_world()
        await self._report(
            "World reset complete. Restarting server...", "world_reset_complete"
        )

        try:
            await server.start()
        except LifecycleError as e:
            msg = f"Could not restart the server: {e}"
            raise WorldResetError(msg, step="restart", cause=e) from e
