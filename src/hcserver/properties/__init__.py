"""server.properties support.

- parse / stringify: the flat ``key=value`` codec
- PropertiesFile: lazily loaded store that persists on every write
"""

from ._codec import PropertyValue, parse, parse_value, stringify, stringify_value
from ._file import SERVER_PROPERTIES_FILE, PropertiesFile

__all__ = [
    "SERVER_PROPERTIES_FILE",
    "PropertiesFile",
    "PropertyValue",
    "parse",
    "parse_value",
    "stringify",
    "stringify_value",
]
