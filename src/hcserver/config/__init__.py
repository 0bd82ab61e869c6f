"""Configuration loading for hcserver.

Sources, lowest precedence first:
- Built-in defaults (DEFAULT_CONFIG)
- hcserver.toml in the working directory, or the file given with --config
- HCSERVER_-prefixed environment variables (HCSERVER_RCON__PORT=25576)
"""

from ._defaults import CONFIG_FILE_NAME, DEFAULT_CONFIG, DEFAULT_STARTUP_SCRIPT
from ._load import safe_load_config
from ._loader import (
    ENV_PREFIX,
    copy_value,
    deep_merge,
    parse_env_vars,
    read_toml_file,
    set_nested_key,
)
from ._models import (
    BackupsConfig,
    Config,
    HardcoreConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    RconConfig,
    ServerConfig,
)

__all__ = [
    "CONFIG_FILE_NAME",
    "DEFAULT_CONFIG",
    "DEFAULT_STARTUP_SCRIPT",
    "ENV_PREFIX",
    "BackupsConfig",
    "Config",
    "HardcoreConfig",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "RconConfig",
    "ServerConfig",
    "copy_value",
    "deep_merge",
    "parse_env_vars",
    "read_toml_file",
    "safe_load_config",
    "set_nested_key",
]
