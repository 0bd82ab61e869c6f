from pathlib import Path

import pendulum


def get_hcserver_dir() -> Path:
    """Get the path to the .hcserver/ directory in the working directory."""
    return Path.cwd() / ".hcserver"


def get_hcserver_log_dir() -> Path:
    """Get the path to the logs/ directory inside .hcserver/."""
    return get_hcserver_dir() / "logs"


def get_hcserver_log_file() -> Path:
    """Get the path to the default supervisor log file."""
    return get_hcserver_log_dir() / "hcserver.log"


def get_time_file_name() -> str:
    """Return a sortable, file-safe timestamp for the current UTC time.

    Lexicographic order of the returned strings equals chronological order,
    down to the microsecond.

    Returns:
        A timestamp such as ``2024-05-01_13-04-59-123456``.
    """
    return pendulum.now("UTC").format("YYYY-MM-DD_HH-mm-ss-SSSSSS")
