from pathlib import Path

import pytest
from fakes import (
    FakeOnlineServer,
    RecordingArchiver,
    RecordingSink,
    Scoreboard,
    assert_in_order,
)

from hcserver.exceptions import AlreadyOnlineError, ArchiveError, WorldResetError
from hcserver.hardcore import WorldReset

pytestmark = pytest.mark.anyio

TIMESTAMP = "2024-06-01_13-02-35-000000"


@pytest.fixture
def world(server_root: Path) -> Path:
    world = server_root / "world"
    (world / "region").mkdir(parents=True)
    _ = (world / "level.dat").write_bytes(b"level")
    _ = (world / "region" / "r.0.0.mca").write_bytes(b"region")
    return world


@pytest.fixture
def world_reset(
    server_root: Path, archiver: RecordingArchiver, sink: RecordingSink
) -> WorldReset:
    return WorldReset(
        server_root,
        archiver=archiver,
        output_sink=sink,
        timestamp=lambda: TIMESTAMP,
    )


def make_backups(backup_dir: Path, count: int) -> list[Path]:
    backup_dir.mkdir(parents=True, exist_ok=True)
    backups = [
        backup_dir / f"world 2024-01-{day:02d}_00-00-00-000000.zip"
        for day in range(1, count + 1)
    ]
    for backup in backups:
        _ = backup.write_bytes(b"PK")
    return backups


class TestPaths:
    def test_paths_are_relative_to_root(self, server_root: Path) -> None:
        reset = WorldReset(
            server_root,
            world_dir="hardcore",
            backup_dir="backups",
            timestamp=lambda: TIMESTAMP,
        )

        assert reset.world_path == server_root / "hardcore"
        assert reset.backup_path == server_root / "backups"
        assert reset.backup_destination() == server_root / "backups" / (
            f"world {TIMESTAMP}.zip"
        )


class TestBackupWorld:
    async def test_archives_world_into_backup_dir(
        self,
        world: Path,
        world_reset: WorldReset,
        archiver: RecordingArchiver,
        server_root: Path,
    ) -> None:
        destination = await world_reset.backup_world()

        expected = server_root / "world-backups" / f"world {TIMESTAMP}.zip"
        assert destination == expected
        assert archiver.calls == [(expected, world)]
        assert expected.exists()

    async def test_archive_failure_raises_and_keeps_world(
        self, world: Path, world_reset: WorldReset, archiver: RecordingArchiver
    ) -> None:
        archiver.error = ArchiveError("7-Zip exited with code 2", exit_code=2)

        with pytest.raises(WorldResetError) as exc_info:
            _ = await world_reset.backup_world()

        assert exc_info.value.step == "archive"
        assert isinstance(exc_info.value.cause, ArchiveError)
        assert world.exists()


class TestPruneBackups:
    async def test_eleven_backups_lose_the_oldest(
        self, world_reset: WorldReset, sink: RecordingSink, server_root: Path
    ) -> None:
        backups = make_backups(server_root / "world-backups", 11)

        removed = await world_reset.prune_backups()

        assert removed == [backups[0]]
        assert not backups[0].exists()
        assert sorted((server_root / "world-backups").iterdir()) == backups[1:]
        assert sink.texts == ["Too many backups. Deleting oldest backup..."]

    async def test_keeps_backups_at_the_limit(
        self, world_reset: WorldReset, server_root: Path
    ) -> None:
        backups = make_backups(server_root / "world-backups", 10)

        removed = await world_reset.prune_backups()

        assert removed == []
        assert all(backup.exists() for backup in backups)

    async def test_removes_several_when_far_over_the_limit(
        self, archiver: RecordingArchiver, server_root: Path
    ) -> None:
        backups = make_backups(server_root / "world-backups", 5)
        reset = WorldReset(server_root, archiver=archiver, max_backups=2)

        removed = await reset.prune_backups()

        assert removed == backups[:3]

    async def test_new_backup_counts_towards_the_limit(
        self, world: Path, world_reset: WorldReset, server_root: Path
    ) -> None:
        backups = make_backups(server_root / "world-backups", 10)

        destination = await world_reset.backup_world()

        remaining = sorted((server_root / "world-backups").iterdir())
        assert remaining == [*backups[1:], destination]

    async def test_missing_backup_dir_raises(self, world_reset: WorldReset) -> None:
        with pytest.raises(WorldResetError) as exc_info:
            _ = await world_reset.prune_backups()

        assert exc_info.value.step == "prune"


class TestEraseWorld:
    async def test_removes_world_directory(
        self, world: Path, world_reset: WorldReset
    ) -> None:
        await world_reset.erase_world()

        assert not world.exists()

    async def test_missing_world_is_not_an_error(self, world_reset: WorldReset) -> None:
        await world_reset.erase_world()

        assert not world_reset.world_path.exists()


class TestReset:
    async def test_backs_up_erases_then_restarts(
        self,
        world: Path,
        world_reset: WorldReset,
        scoreboard: Scoreboard,
        timeline: list[str],
        server_root: Path,
    ) -> None:
        _ = make_backups(server_root / "world-backups", 10)
        server = FakeOnlineServer(scoreboard, timeline=timeline)

        await world_reset.reset(server)

        assert server.starts == 1
        assert not world.exists()
        assert_in_order(
            timeline,
            [
                "Backing up World...",
                "archive",
                "Too many backups. Deleting oldest backup...",
                "World backup complete. Erasing world...",
                "World reset complete. Restarting server...",
                "start",
            ],
        )

    async def test_restart_failure_raises(
        self, world: Path, world_reset: WorldReset, scoreboard: Scoreboard
    ) -> None:
        server = FakeOnlineServer(scoreboard)
        server.start_error = AlreadyOnlineError("Server is already online")

        with pytest.raises(WorldResetError) as exc_info:
            await world_reset.reset(server)

        assert exc_info.value.step == "restart"
        assert not world.exists()
