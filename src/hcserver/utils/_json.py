from pathlib import Path  # noqa: TC003 - Used in runtime type annotations
from typing import cast

import orjson


def load_json(
    json_str: str | bytes,
) -> dict[str, object] | list[object] | None:
    """Load and parse a JSON string.

    Args:
        json_str: The JSON text or UTF-8 bytes to parse.

    Returns:
        The parsed JSON data as a dictionary or list, or None if parsing fails.
    """
    try:
        return cast("dict[str, object] | list[object]", orjson.loads(json_str))
    except orjson.JSONDecodeError:
        return None


def load_json_file(file_path: Path) -> dict[str, object] | list[object] | None:
    """Load and parse a JSON file.

    Args:
        file_path: Path to the JSON file.

    Returns:
        The parsed JSON data, or None if the file is not valid UTF-8 JSON.
    """
    return load_json(file_path.read_bytes())


def dump_json_file(file_path: Path, data: object) -> None:
    """Serialize data as indented JSON and write it to a file.

    Args:
        file_path: Destination file, overwritten if present.
        data: JSON-serializable data.
    """
    _ = file_path.write_bytes(orjson.dumps(data, option=orjson.OPT_INDENT_2))
