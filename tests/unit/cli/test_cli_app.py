from pathlib import Path

import pytest
from pytest_mock import MockerFixture

from hcserver.cli import CLIContext, create_app
from hcserver.cli._commands._shared import ExitCode
from hcserver.properties import PropertiesFile
from hcserver.utils import SevenZipArchiver, create_server_logger


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("HCSERVER_STRICT_CONFIG", raising=False)
    monkeypatch.delenv("HCSERVER_SERVER__ROOT", raising=False)


def invoke(root: Path, *tokens: str) -> None:
    create_app().meta(["--root", str(root), *tokens])


class TestProperties:
    def test_set_then_get(
        self, server_root: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        invoke(server_root, "properties", "set", "difficulty", "hard")
        invoke(server_root, "properties", "set", "max-players", "5")

        assert PropertiesFile.in_directory(server_root).load() == {
            "difficulty": "hard",
            "max-players": 5,
        }

        invoke(server_root, "properties", "get", "max-players")
        assert capsys.readouterr().out.strip() == "5"

    def test_get_missing_key_exits_not_found(
        self, server_root: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with pytest.raises(SystemExit) as exc_info:
            invoke(server_root, "properties", "get", "difficulty")

        assert exc_info.value.code == ExitCode.NOT_FOUND
        assert "Property 'difficulty' not found" in capsys.readouterr().err


class TestBackup:
    def test_missing_world_exits_not_found(self, server_root: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            invoke(server_root, "backup")

        assert exc_info.value.code == ExitCode.NOT_FOUND

    def test_writes_backup(self, server_root: Path, mocker: MockerFixture) -> None:
        (server_root / "world").mkdir()

        async def fake_archive(
            self: SevenZipArchiver, destination: Path, source: Path
        ) -> None:
            _ = destination.write_bytes(b"PK")

        _ = mocker.patch.object(SevenZipArchiver, "archive", fake_archive)

        with pytest.raises(SystemExit) as exc_info:
            invoke(server_root, "backup")

        assert exc_info.value.code == ExitCode.SUCCESS
        backups = list((server_root / "world-backups").iterdir())
        assert len(backups) == 1
        assert backups[0].name.startswith("world ")
        assert (server_root / "world").is_dir()


class TestGlobalOptions:
    def test_config_file_sets_root(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        root = tmp_path / "custom-root"
        root.mkdir()
        _ = (root / "server.properties").write_text("level-name=hc\n")
        config = tmp_path / "custom.toml"
        _ = config.write_text(f'[server]\nroot = "{root.as_posix()}"\n')

        create_app().meta(["--config", str(config), "properties", "get", "level-name"])

        assert capsys.readouterr().out.strip() == "hc"

    def test_context_is_reset_after_command(self, tmp_path: Path) -> None:
        root = tmp_path / "elsewhere"

        invoke(root, "properties", "set", "pvp", "false")

        assert (root / "server.properties").read_text() == "pvp=false"
        assert CLIContext.get_current().root == (tmp_path / "server").resolve()

    def test_log_rotation_settings_reach_the_logger(
        self, tmp_path: Path, server_root: Path, mocker: MockerFixture
    ) -> None:
        config = tmp_path / "custom.toml"
        _ = config.write_text("[logging]\nmax_bytes = 1048576\nbackup_count = 3\n")
        create_logger = mocker.patch(
            "hcserver.cli._app.create_server_logger",
            wraps=create_server_logger,
        )

        options = ["--config", str(config), "--root", str(server_root)]
        create_app().meta([*options, "properties", "set", "pvp", "false"])

        kwargs = create_logger.call_args.kwargs
        assert kwargs["max_bytes"] == 1048576
        assert kwargs["backup_count"] == 3


class TestExitCodes:
    def test_strict_config_failure_has_its_own_code(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("HCSERVER_STRICT_CONFIG", "1")
        config = tmp_path / "broken.toml"
        _ = config.write_text("[rcon]\nport = 0\n")

        with pytest.raises(SystemExit) as exc_info:
            create_app().meta(["--config", str(config), "properties", "get", "pvp"])

        assert exc_info.value.code == 1
        assert 1 not in {code.value for code in ExitCode}
