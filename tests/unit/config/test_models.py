from pathlib import Path

import pytest

from hcserver.config import (
    DEFAULT_STARTUP_SCRIPT,
    Config,
    LogFormat,
    LogLevel,
)
from hcserver.exceptions import ConfigValidationError
from hcserver.hardcore import DEFAULT_SETUP_COMMANDS


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("HCSERVER_RCON__PORT", "HCSERVER_SERVER__ROOT"):
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    def test_empty_dict_gives_defaults(self) -> None:
        config = Config.from_dict({})

        assert config.server.root == "./server"
        assert config.server.startup_script == DEFAULT_STARTUP_SCRIPT
        assert config.server.auto_restart is True
        assert config.rcon.port == 25575
        assert config.hardcore.poll_interval == 15.0
        assert config.hardcore.countdown_seconds == 30
        assert config.hardcore.setup_commands == DEFAULT_SETUP_COMMANDS
        assert config.backups.max_backups == 10
        assert config.logging.level is LogLevel.INFO
        assert config.logging.format is LogFormat.JSON

    def test_config_is_frozen(self) -> None:
        config = Config.from_dict({})

        with pytest.raises(ValueError, match="frozen"):
            config.rcon.port = 1  # type: ignore[misc]

    def test_unknown_keys_are_ignored(self) -> None:
        config = Config.from_dict({"rcon": {"colour": "red"}, "extra": 1})

        assert config.rcon.port == 25575


class TestValidation:
    def test_invalid_port_names_the_key(self) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            _ = Config.from_dict({"rcon": {"port": 70000}}, source="hcserver.toml")

        error = exc_info.value
        assert error.key == "rcon.port"
        assert error.value == 70000
        assert error.source == "hcserver.toml"
        assert "rcon.port" in str(error)

    def test_wrong_type_is_rejected(self) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            _ = Config.from_dict({"hardcore": {"countdown_seconds": "soon"}})

        assert exc_info.value.key == "hardcore.countdown_seconds"

    def test_max_backups_must_be_positive(self) -> None:
        with pytest.raises(ConfigValidationError):
            _ = Config.from_dict({"backups": {"max_backups": 0}})

    def test_log_rotation_is_off_by_default(self) -> None:
        config = Config.from_dict({})

        assert config.logging.max_bytes is None
        assert config.logging.backup_count is None

    def test_log_rotation_settings(self) -> None:
        config = Config.from_dict(
            {"logging": {"max_bytes": 10_000_000, "backup_count": 5}}
        )

        assert config.logging.max_bytes == 10_000_000
        assert config.logging.backup_count == 5

    def test_log_rotation_size_must_be_positive(self) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            _ = Config.from_dict({"logging": {"max_bytes": 0}})

        assert exc_info.value.key == "logging.max_bytes"


class TestLoad:
    def test_reads_config_from_working_dir(self, tmp_path: Path) -> None:
        _ = (tmp_path / "hcserver.toml").write_text("[rcon]\nport = 25580\n")

        config = Config.load(working_dir=tmp_path, include_env=False)

        assert config.rcon.port == 25580
        assert config.rcon.host == "localhost"

    def test_missing_file_in_working_dir_gives_defaults(self, tmp_path: Path) -> None:
        config = Config.load(working_dir=tmp_path, include_env=False)

        assert config == Config.from_dict({})

    def test_explicit_path_must_exist(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            _ = Config.load(config_path=tmp_path / "missing.toml")

    def test_environment_overrides_file(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = tmp_path / "custom.toml"
        _ = path.write_text('[rcon]\nport = 25580\n[server]\nroot = "./a"\n')
        monkeypatch.setenv("HCSERVER_RCON__PORT", "25590")

        config = Config.load(config_path=path)

        assert config.rcon.port == 25590
        assert config.server.root == "./a"

    def test_environment_can_be_excluded(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("HCSERVER_RCON__PORT", "25590")

        config = Config.load(working_dir=tmp_path, include_env=False)

        assert config.rcon.port == 25575

    def test_from_file_reports_source_on_error(self, tmp_path: Path) -> None:
        path = tmp_path / "hcserver.toml"
        _ = path.write_text("[rcon]\nport = 0\n")

        with pytest.raises(ConfigValidationError) as exc_info:
            _ = Config.from_file(path)

        assert exc_info.value.source == str(path)
