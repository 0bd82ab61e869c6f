"""Persistent statistics across hardcore runs."""

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import final

from hcserver.utils import dump_json_file, load_json_file

STATS_FILE = "stats.json"


@dataclass(slots=True)
class RunStats:
    """Totals across every run played on this server.

    Attributes:
        deaths: Number of runs that ended in a death.
        total_time_played: Seconds survived, summed over all finished runs.
    """

    deaths: int = 0
    total_time_played: int = 0


@final
class StatsFile:
    """JSON file holding RunStats.

    A missing or unreadable file reads as empty totals.
    """

    __slots__ = ("_path",)

    def __init__(self, path: Path) -> None:
        """Initialize the store.

        Args:
            path: Location of the stats file.
        """
        self._path = path

    @classmethod
    def in_directory(cls, root: Path) -> "StatsFile":
        """Create a store for the stats file inside ``root``."""
        return cls(root / STATS_FILE)

    @property
    def path(self) -> Path:
        """Return the file location."""
        return self._path

    def read(self) -> RunStats:
        """Load the totals from disk."""
        if not self._path.exists():
            return RunStats()

        data = load_json_file(self._path)
        if not isinstance(data, dict):
            return RunStats()

        deaths = data.get("deaths", 0)
        total = data.get("total_time_played", 0)
        return RunStats(
            deaths=deaths if isinstance(deaths, int) else 0,
            total_time_played=total if isinstance(total, int) else 0,
        )

    def write(self, stats: RunStats) -> None:
        """Persist the totals, replacing the file."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        dump_json_file(self._path, asdict(stats))

    def record_death(self, survived_seconds: int) -> RunStats:
        """Add one finished run to the totals and persist them.

        Args:
            survived_seconds: How long the run lasted.

        Returns:
            The updated totals.
        """
        stats = self.read()
        stats.deaths += 1
        stats.total_time_played += survived_seconds
        self.write(stats)
        return stats
