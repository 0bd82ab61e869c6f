# ruff: noqa: D415
"""Read and write server.properties entries."""

from cyclopts import App

from hcserver.properties import PropertiesFile, parse_value, stringify_value

from ._context import CLIContext
from ._shared import ExitCode, exit_with_error

app = App(
    name="properties", help="Read or write server.properties", help_on_error=True
)


def _properties_file() -> PropertiesFile:
    return PropertiesFile.in_directory(CLIContext.get_current().root)


@app.command(name="get")
def _get(key: str, /) -> None:
    """Print one server.properties value

    Args:
        key: Property name (e.g., rcon.port).
    """
    properties = _properties_file()
    values = properties.load()
    if key not in values:
        exit_with_error(f"Property '{key}' not found", ExitCode.NOT_FOUND)

    print(stringify_value(values[key]))  # noqa: T201


@app.command(name="set")
def _set(key: str, value: str, /) -> None:
    """Set one server.properties value

    The value is stored as JSON when it parses as JSON (true, 25565),
    otherwise as text.

    Args:
        key: Property name (e.g., difficulty).
        value: New value.
    """
    properties = _properties_file()
    try:
        properties.set(key, parse_value(value))
    except OSError as e:
        exit_with_error(f"Failed to write {properties.path}: {e}", ExitCode.IO_ERROR)
