"""Hardcore ruleset: death detection, end-of-run report and world reset.

Key Components:
    - HardcoreRun: Session context wired into the supervisor hooks
    - DeathWatcher: Polls for deaths and runs the end-of-run sequence
    - WorldReset: Backs up, prunes and erases the world, then restarts
    - StatsFile / RunStats: Totals across runs
"""

from ._commands import (
    CUE_COMMAND,
    DEATH_PASS_MARKERS,
    DEATH_QUERY_COMMAND,
    DEATH_SCORE_HOLDER,
    DEATH_TALLY_COMMANDS,
    DEFAULT_SETUP_COMMANDS,
    DISTANCE_OBJECTIVES,
    GAME_OVER_COMMANDS,
    STAT_BLOCKS,
    TITLE_COMMANDS,
    StatBlock,
    countdown_command,
    format_survived,
    is_death_response,
    survived_command,
)
from ._deaths import DeathWatcher, WatcherState, utc_now
from ._reset import Restartable, WorldReset
from ._setup import HardcoreRun
from ._stats import STATS_FILE, RunStats, StatsFile

__all__ = [
    "CUE_COMMAND",
    "DEATH_PASS_MARKERS",
    "DEATH_QUERY_COMMAND",
    "DEATH_SCORE_HOLDER",
    "DEATH_TALLY_COMMANDS",
    "DEFAULT_SETUP_COMMANDS",
    "DISTANCE_OBJECTIVES",
    "GAME_OVER_COMMANDS",
    "STATS_FILE",
    "STAT_BLOCKS",
    "TITLE_COMMANDS",
    "DeathWatcher",
    "HardcoreRun",
    "Restartable",
    "RunStats",
    "StatBlock",
    "StatsFile",
    "WatcherState",
    "WorldReset",
    "countdown_command",
    "format_survived",
    "is_death_response",
    "survived_command",
    "utc_now",
]
