"""Shared utilities: paths, JSON files, logging and the archive tool."""

from ._archive import Archiver, SevenZipArchiver, resolve_seven_zip
from ._json import dump_json_file, load_json, load_json_file
from ._logging import LogFormatType, create_server_logger
from ._paths import (
    get_hcserver_dir,
    get_hcserver_log_dir,
    get_hcserver_log_file,
    get_time_file_name,
)

__all__ = [
    "Archiver",
    "LogFormatType",
    "SevenZipArchiver",
    "create_server_logger",
    "dump_json_file",
    "get_hcserver_dir",
    "get_hcserver_log_dir",
    "get_hcserver_log_file",
    "get_time_file_name",
    "load_json",
    "load_json_file",
    "resolve_seven_zip",
]
