"""Codec for the flat ``key=value`` server.properties format.

Values are JSON-decoded when possible, so ``true`` becomes ``True`` and
``25575`` becomes ``25575``. Anything that is not a JSON literal is kept as a
raw string, and an empty value means ``None``.
"""

from collections.abc import Mapping
from typing import Any

import orjson

PropertyValue = Any  # bool | int | float | str | list | dict | None


def parse_value(value: str) -> PropertyValue:
    """Decode a single property value.

    Args:
        value: The raw text after the ``=`` sign, already trimmed.

    Returns:
        None for an empty value, the decoded JSON literal when the text is
        one, otherwise the text itself.
    """
    if value == "":
        return None
    try:
        return orjson.loads(value)
    except orjson.JSONDecodeError:
        return value


def stringify_value(value: PropertyValue) -> str:
    """Encode a single property value.

    Args:
        value: The value to encode.

    Returns:
        An empty string for None, strings unchanged, JSON for everything else.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return orjson.dumps(value).decode("utf-8")


def parse(data: str) -> dict[str, PropertyValue]:
    """Parse properties text into a dictionary.

    Blank lines, ``#`` comments and lines without ``=`` are skipped. The
    key and value are split on the first ``=`` and trimmed.

    Args:
        data: The properties file contents.

    Returns:
        Mapping of keys to decoded values, in file order.
    """
    output: dict[str, PropertyValue] = {}

    for raw_line in data.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue

        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep or not key:
            continue

        output[key] = parse_value(value.strip())

    return output


def stringify(data: Mapping[str, PropertyValue]) -> str:
    """Serialize a mapping to properties text, one ``key=value`` per line."""
    return "\n".join(f"{key}={stringify_value(value)}" for key, value in data.items())
