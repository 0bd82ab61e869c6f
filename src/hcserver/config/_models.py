"""Configuration models.

This module provides Pydantic models for hcserver configuration sections
and the main Config container class.
"""

from enum import StrEnum
from pathlib import Path
from typing import Any, ClassVar, Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from hcserver.exceptions import ConfigValidationError

from ._defaults import CONFIG_FILE_NAME, DEFAULT_CONFIG
from ._loader import deep_merge, parse_env_vars, read_toml_file


class LogLevel(StrEnum):
    """Log level threshold values.

    Values are ordered from most verbose (debug) to least verbose (error).
    """

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Log output format values."""

    JSON = "json"
    TEXT = "text"


class LoggingConfig(BaseModel):
    """Logging configuration section.

    Attributes:
        level: Log level threshold.
        format: Log output format.
        file: Path to log file (empty uses .hcserver/logs/hcserver.log).
        max_bytes: Size in bytes at which the log file is rotated.
        backup_count: Number of rotated log files to keep.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.JSON
    file: str = ""
    max_bytes: int | None = Field(
        default=None,
        gt=0,
        description="Must be set together with backup_count to enable rotation.",
    )
    backup_count: int | None = Field(
        default=None,
        ge=1,
        description="Must be set together with max_bytes to enable rotation.",
    )


class ServerConfig(BaseModel):
    """Server process section.

    Attributes:
        root: Server directory.
        startup_script: Shell command that launches the server.
        auto_restart: Start the server again after it exits on its own.
        auto_restart_delay: Seconds to wait before an automatic restart.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    root: str = "./server"
    startup_script: str = "./start.sh"
    auto_restart: bool = True
    auto_restart_delay: float = Field(default=10.0, ge=0)


class RconConfig(BaseModel):
    """Remote console section.

    Attributes:
        host: Host the session connects to.
        port: Port written to server.properties.
        retry_delay: Seconds between connection attempts.
        timeout: Socket timeout for each command.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    host: str = "localhost"
    port: int = Field(default=25575, ge=1, le=65535)
    retry_delay: float = Field(default=1.0, gt=0)
    timeout: float = Field(default=5.0, gt=0)


class HardcoreConfig(BaseModel):
    """Hardcore ruleset section.

    Attributes:
        poll_interval: Seconds between death checks.
        countdown_seconds: Length of the countdown before the server stops.
        setup_commands: Console commands run each time the server is online.
        delayed_commands: Console commands run shortly after the setup.
        delayed_commands_delay: Seconds before the delayed commands run.
        stats_file: Stats file name, relative to the server root.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    poll_interval: float = Field(default=15.0, gt=0)
    countdown_seconds: int = Field(default=30, ge=0)
    setup_commands: tuple[str, ...] = ()
    delayed_commands: tuple[str, ...] = ()
    delayed_commands_delay: float = Field(default=1.0, ge=0)
    stats_file: str = "stats.json"


class BackupsConfig(BaseModel):
    """World backup section.

    Attributes:
        world_dir: World directory, relative to the server root.
        backup_dir: Backup directory, relative to the server root.
        max_backups: Number of backups kept.
        archiver: 7-Zip executable name or path.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    world_dir: str = "world"
    backup_dir: str = "world-backups"
    max_backups: int = Field(default=10, ge=1)
    archiver: str = "7z"


class Config(BaseModel):
    """Configuration container with typed access.

    Use the factory methods to create instances; they merge the built-in
    defaults underneath whatever the sources provide.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    server: ServerConfig = Field(default_factory=ServerConfig)
    rcon: RconConfig = Field(default_factory=RconConfig)
    hardcore: HardcoreConfig = Field(default_factory=HardcoreConfig)
    backups: BackupsConfig = Field(default_factory=BackupsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any], *, source: str | None = None) -> Self:
        """Create configuration from a dictionary merged over the defaults.

        Args:
            data: Dictionary of configuration values.
            source: Where the values came from, for error messages.

        Returns:
            Configuration object.

        Raises:
            ConfigValidationError: If a value has the wrong type or range.
        """
        merged = deep_merge(DEFAULT_CONFIG, data)
        try:
            return cls.model_validate(merged)
        except ValidationError as e:
            error = e.errors()[0]
            key = ".".join(str(part) for part in error["loc"])
            msg = f"Invalid configuration value for '{key}': {error['msg']}"
            raise ConfigValidationError(
                msg,
                key=key,
                value=error.get("input"),
                expected=error["type"],
                source=source,
            ) from e

    @classmethod
    def from_file(cls, path: Path) -> Self:
        """Load configuration from a specific file.

        Args:
            path: Path to the TOML config file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigLoadError: If the file cannot be parsed.
            ConfigValidationError: If validation fails.
        """
        return cls.from_dict(read_toml_file(path), source=str(path))

    @classmethod
    def load(
        cls,
        *,
        config_path: Path | None = None,
        working_dir: Path | None = None,
        include_env: bool = True,
    ) -> Self:
        """Load merged configuration from all sources.

        Precedence, lowest first: defaults, the config file, environment
        variables. Without ``config_path`` the file is ``hcserver.toml`` in
        the working directory and may be absent.

        Args:
            config_path: Explicit config file, which must exist.
            working_dir: Directory searched for ``hcserver.toml``.
            include_env: Include ``HCSERVER_`` environment variables.

        Raises:
            FileNotFoundError: If ``config_path`` does not exist.
            ConfigLoadError: If the config file cannot be parsed.
            ConfigValidationError: If the merged config fails validation.
        """
        data: dict[str, Any] = {}
        source: str | None = None

        path = config_path or (working_dir or Path.cwd()) / CONFIG_FILE_NAME
        if config_path is not None or path.is_file():
            data = read_toml_file(path)
            source = str(path)

        if include_env:
            data = deep_merge(data, parse_env_vars())

        return cls.from_dict(data, source=source)
