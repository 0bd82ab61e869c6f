from pathlib import Path

import pytest

from hcserver.config import Config, safe_load_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("HCSERVER_STRICT_CONFIG", raising=False)
    monkeypatch.delenv("HCSERVER_RCON__PORT", raising=False)


class TestSafeLoadConfig:
    def test_returns_config_without_error(self, tmp_path: Path) -> None:
        _ = (tmp_path / "hcserver.toml").write_text("[rcon]\nport = 25580\n")

        config, error = safe_load_config(working_dir=tmp_path)

        assert error is None
        assert config.rcon.port == 25580

    def test_invalid_config_falls_back_to_defaults(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        _ = (tmp_path / "hcserver.toml").write_text("[rcon]\nport = 0\n")

        config, error = safe_load_config(working_dir=tmp_path)

        assert config == Config.from_dict({})
        assert error is not None
        assert "rcon.port" in error
        assert "Warning: Failed to load config" in capsys.readouterr().err

    def test_unparsable_config_falls_back_to_defaults(self, tmp_path: Path) -> None:
        _ = (tmp_path / "hcserver.toml").write_text("[rcon\n")

        config, error = safe_load_config(working_dir=tmp_path)

        assert config == Config.from_dict({})
        assert error is not None

    def test_strict_mode_exits(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("HCSERVER_STRICT_CONFIG", "1")
        _ = (tmp_path / "hcserver.toml").write_text("[rcon]\nport = 0\n")

        with pytest.raises(SystemExit) as exc_info:
            _ = safe_load_config(working_dir=tmp_path)

        assert exc_info.value.code == 1

    def test_missing_explicit_path_exits(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with pytest.raises(SystemExit) as exc_info:
            _ = safe_load_config(config_path=tmp_path / "missing.toml")

        assert exc_info.value.code == 1
        assert "Config file not found" in capsys.readouterr().err
