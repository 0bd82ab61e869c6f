"""TOML configuration file loading and merging."""

import json
import os
import tomllib
from pathlib import Path  # noqa: TC003 - Used in runtime type annotations
from typing import Any

from hcserver.exceptions import ConfigLoadError

ENV_PREFIX = "HCSERVER_"


def read_toml_file(path: Path) -> dict[str, Any]:
    """Read and parse a TOML file.

    Args:
        path: Path to the TOML file.

    Returns:
        Parsed TOML content as dictionary.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigLoadError: If the file cannot be parsed.
    """
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Failed to parse TOML file: {e}"
        raise ConfigLoadError(
            msg,
            path=path,
            line=getattr(e, "lineno", None),
            column=getattr(e, "colno", None),
        ) from e


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two configuration dictionaries.

    Merges `override` into `base`, returning a new dictionary. Neither input
    is modified.

    Args:
        base: Base configuration (lower precedence).
        override: Override configuration (higher precedence).

    Returns:
        Merged configuration dictionary.

    Merge rules:
        - Dictionaries are recursively merged
        - Arrays are replaced entirely (no element-wise merge)
        - Scalars are replaced with override value
        - Missing keys in override preserve base values
    """
    result: dict[str, Any] = {}

    for key in base.keys() | override.keys():
        if key not in override:
            result[key] = copy_value(base[key])
        elif key not in base:
            result[key] = copy_value(override[key])
        else:
            base_val = base[key]
            override_val = override[key]

            if isinstance(base_val, dict) and isinstance(override_val, dict):
                result[key] = deep_merge(base_val, override_val)
            else:
                # Type mismatch or non-dicts - override wins
                result[key] = copy_value(override_val)

    return result


def copy_value(value: Any) -> Any:
    """Create a deep copy of a configuration value.

    Args:
        value: The value to copy.

    Returns:
        A copy of dicts and lists, nested ones included; other values as is.
    """
    if isinstance(value, dict):
        return {k: copy_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [copy_value(item) for item in value]
    return value


def parse_env_vars(prefix: str = ENV_PREFIX) -> dict[str, Any]:
    """Parse environment variables into config dictionary.

    Args:
        prefix: Environment variable prefix (default: "HCSERVER_").

    Returns:
        Dictionary of parsed config values with nested structure.

    Environment variable naming:
        - Add prefix (HCSERVER_)
        - Convert to uppercase
        - Replace dots with double underscores
        - Example: rcon.port -> HCSERVER_RCON__PORT
    """
    result: dict[str, Any] = {}

    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue

        # HCSERVER_RCON__PORT -> rcon.port
        config_key = key[len(prefix) :]
        if not config_key:
            continue

        config_path = config_key.replace("__", ".").lower()
        set_nested_key(result, config_path, _parse_env_value(value))

    return result


def _parse_env_value(value: str) -> Any:
    """Parse environment variable value with type inference.

    Args:
        value: The raw string value from the environment variable.

    Returns:
        The parsed value with appropriate type.

    Order of type inference:
        1. Boolean: true/false (case-insensitive)
        2. Integer: parseable as int
        3. Float: parseable as float (with decimal point)
        4. JSON array: starts with [ ends with ]
        5. String: anything else
    """
    lower_value = value.lower()
    if lower_value in ("true", "false"):
        return lower_value == "true"

    try:
        return int(value)
    except ValueError:
        pass

    # Must contain a decimal point to distinguish from int
    if "." in value:
        try:
            return float(value)
        except ValueError:
            pass

    if value.startswith("[") and value.endswith("]"):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            pass

    return value


def set_nested_key(d: dict[str, Any], key_path: str, value: Any) -> None:
    """Set a value at a dotted key path in a nested dictionary.

    Creates intermediate dictionaries as needed.

    Args:
        d: The dictionary to modify.
        key_path: Dotted key path (e.g., "rcon.port").
        value: The value to set.

    Example:
        >>> d = {}
        >>> set_nested_key(d, "rcon.port", 25576)
        >>> d
        {'rcon': {'port': 25576}}
    """
    parts = key_path.split(".")
    current = d

    for part in parts[:-1]:
        if not isinstance(current.get(part), dict):
            current[part] = {}
        current = current[part]

    current[parts[-1]] = value
