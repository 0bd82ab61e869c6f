"""Default configuration values.

DEFAULT_CONFIG is a plain dict so it can be fed straight into deep_merge,
which copies it.
"""

import sys
from typing import Any

from hcserver.hardcore import DEFAULT_SETUP_COMMANDS

CONFIG_FILE_NAME = "hcserver.toml"

DEFAULT_STARTUP_SCRIPT = "start.bat" if sys.platform == "win32" else "./start.sh"

DEFAULT_CONFIG: dict[str, Any] = {
    "server": {
        "root": "./server",
        "startup_script": DEFAULT_STARTUP_SCRIPT,
        "auto_restart": True,
        "auto_restart_delay": 10.0,
    },
    "rcon": {
        "host": "localhost",
        "port": 25575,
        "retry_delay": 1.0,
        "timeout": 5.0,
    },
    "hardcore": {
        "poll_interval": 15.0,
        "countdown_seconds": 30,
        "setup_commands": list(DEFAULT_SETUP_COMMANDS),
        # e.g. "function watching:config/start_delay/remove" for datapacks
        "delayed_commands": [],
        "delayed_commands_delay": 1.0,
        "stats_file": "stats.json",
    },
    "backups": {
        "world_dir": "world",
        "backup_dir": "world-backups",
        "max_backups": 10,
        "archiver": "7z",
    },
    "logging": {
        "level": "info",
        "format": "json",
        "file": "",
    },
}
