from pathlib import Path
from typing import TYPE_CHECKING

from hcserver.properties import SERVER_PROPERTIES_FILE, PropertiesFile

if TYPE_CHECKING:
    from pyfakefs.fake_filesystem import FakeFilesystem


class TestPropertiesFile:
    def test_in_directory_uses_server_properties(self, tmp_path: Path) -> None:
        properties = PropertiesFile.in_directory(tmp_path)

        assert properties.path == tmp_path / SERVER_PROPERTIES_FILE

    def test_missing_file_loads_empty(self, tmp_path: Path) -> None:
        properties = PropertiesFile(tmp_path / "server.properties")

        assert properties.load() == {}
        assert properties.get("difficulty") is None
        assert properties.get("difficulty", "easy") == "easy"
        assert not properties.path.exists()

    def test_reads_existing_values(self, tmp_path: Path) -> None:
        path = tmp_path / "server.properties"
        _ = path.write_text("difficulty=hard\nrcon.port=25575\n")

        properties = PropertiesFile(path)

        assert properties.get("difficulty") == "hard"
        assert properties.get("rcon.port") == 25575

    def test_set_persists_whole_file(self, tmp_path: Path) -> None:
        path = tmp_path / "server.properties"
        _ = path.write_text("#comment\ndifficulty=easy\nmotd=hello\n")
        properties = PropertiesFile(path)

        properties.set("difficulty", "hard")

        assert path.read_text() == "difficulty=hard\nmotd=hello"

    def test_set_creates_file_and_parent(self, tmp_path: Path) -> None:
        path = tmp_path / "server" / "server.properties"
        properties = PropertiesFile(path)

        properties.set("enable-rcon", True)

        assert path.read_text() == "enable-rcon=true"

    def test_update_writes_all_values(self, tmp_path: Path) -> None:
        properties = PropertiesFile(tmp_path / "server.properties")

        properties.update({"enable-rcon": True, "rcon.port": 25576})

        reloaded = PropertiesFile(properties.path)
        assert reloaded.load() == {"enable-rcon": True, "rcon.port": 25576}

    def test_cache_ignores_outside_edits_until_invalidated(
        self, tmp_path: Path
    ) -> None:
        path = tmp_path / "server.properties"
        _ = path.write_text("difficulty=easy")
        properties = PropertiesFile(path)
        assert properties.get("difficulty") == "easy"

        _ = path.write_text("difficulty=hard")

        assert properties.get("difficulty") == "easy"
        properties.invalidate()
        assert properties.get("difficulty") == "hard"

    def test_last_writer_wins(self, tmp_path: Path) -> None:
        path = tmp_path / "server.properties"
        first = PropertiesFile(path)
        second = PropertiesFile(path)
        _ = second.load()
        first.set("difficulty", "easy")
        second.set("motd", "hi")

        assert PropertiesFile(path).load() == {"motd": "hi"}

    def test_write_keeps_json_values_readable(self, fs: "FakeFilesystem") -> None:
        _ = fs.create_file(
            "/server/server.properties",
            contents="enable-rcon=false\nrcon.password=\nlevel-name=world\n",
        )
        properties = PropertiesFile(Path("/server/server.properties"))

        properties.update({"enable-rcon": True, "rcon.password": "hunter2"})

        assert Path("/server/server.properties").read_text() == (
            "enable-rcon=true\nrcon.password=hunter2\nlevel-name=world"
        )
