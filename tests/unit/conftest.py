from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from fakes import (
    FakeRconFactory,
    FakeSpawner,
    RecordingArchiver,
    RecordingSink,
    Scoreboard,
)

from hcserver.supervisor import ServerOptions, ServerSupervisor


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if Path(item.path).is_relative_to(Path(__file__).parent):
            item.add_marker(pytest.mark.unit)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def scoreboard() -> Scoreboard:
    """Scoreboard with the ``100`` divisor the setup commands create."""
    board = Scoreboard()
    _ = board.execute("scoreboard players set 100 i 100")
    return board


@pytest.fixture
def timeline() -> list[str]:
    return []


@pytest.fixture
def spawner(scoreboard: Scoreboard, timeline: list[str]) -> FakeSpawner:
    return FakeSpawner(console=scoreboard.execute, timeline=timeline)


@pytest.fixture
def rcon_factory(scoreboard: Scoreboard) -> FakeRconFactory:
    return FakeRconFactory(scoreboard)


@pytest.fixture
def sink(timeline: list[str]) -> RecordingSink:
    return RecordingSink(timeline)


@pytest.fixture
def archiver(timeline: list[str]) -> RecordingArchiver:
    return RecordingArchiver(timeline)


@pytest.fixture
def server_options(server_root: Path) -> ServerOptions:
    return ServerOptions(
        root=server_root,
        startup_script="./start.sh",
        rcon_retry_delay=0.01,
        auto_restart_delay=0,
    )


@pytest.fixture
def make_supervisor(
    server_options: ServerOptions,
    spawner: FakeSpawner,
    rcon_factory: FakeRconFactory,
    sink: RecordingSink,
) -> Callable[..., ServerSupervisor]:
    """Return a factory for supervisors wired to the fakes."""

    def _make(
        *, options: ServerOptions | None = None, **kwargs: Any
    ) -> ServerSupervisor:
        kwargs.setdefault("output_sink", sink)
        kwargs.setdefault("session_factory", rcon_factory)
        kwargs.setdefault("spawn", spawner)
        kwargs.setdefault("password_factory", lambda: "hunter2")
        return ServerSupervisor(options or server_options, **kwargs)

    return _make
