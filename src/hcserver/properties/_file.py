"""Lazily loaded, write-through server.properties store."""

from collections.abc import Mapping
from pathlib import Path
from typing import final

from ._codec import PropertyValue, parse, stringify

SERVER_PROPERTIES_FILE = "server.properties"


@final
class PropertiesFile:
    """A server.properties file with an in-memory cache.

    The file is read on first access. Every ``set`` or ``update`` mutates the
    cache and rewrites the whole file. There is no locking: callers must not
    interleave writes, and the last writer wins.
    """

    __slots__ = ("_path", "_values")

    def __init__(self, path: Path) -> None:
        """Initialize the store.

        Args:
            path: Location of the properties file. It does not need to exist.
        """
        self._path = path
        self._values: dict[str, PropertyValue] | None = None

    @classmethod
    def in_directory(cls, root: Path) -> "PropertiesFile":
        """Create a store for the server.properties file inside ``root``."""
        return cls(root / SERVER_PROPERTIES_FILE)

    @property
    def path(self) -> Path:
        """Return the file location."""
        return self._path

    def load(self) -> dict[str, PropertyValue]:
        """Return the cached values, reading the file if not loaded yet.

        A missing file loads as an empty mapping; a fresh server creates its
        properties file on first boot.
        """
        if self._values is None:
            if self._path.exists():
                self._values = parse(self._path.read_text(encoding="utf-8"))
            else:
                self._values = {}
        return self._values

    def get(self, key: str, default: PropertyValue = None) -> PropertyValue:
        """Return a property value, or ``default`` when the key is absent."""
        return self.load().get(key, default)

    def set(self, key: str, value: PropertyValue) -> None:
        """Set one property and persist the whole file."""
        self.load()[key] = value
        self._write()

    def update(self, values: Mapping[str, PropertyValue]) -> None:
        """Set several properties and persist the whole file once."""
        self.load().update(values)
        self._write()

    def invalidate(self) -> None:
        """Drop the cache so the next access re-reads the file."""
        self._values = None

    def _write(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        _ = self._path.write_text(stringify(self.load()), encoding="utf-8")
