"""
Caption Script Tree Adapter
===========================

Caption scripts (closecaption_<language>.txt) are KeyValues text files:

    "lang"
    {
        "Language" "english"
        "Tokens"
        {
            "npc_citizen.hello"   "Hello there."
            "npc_citizen.goodbye" "<clr:255,255,255>Goodbye!"
        }
    }

Parsing that text is left to an external KeyValues/VDF parser. The codec only
needs three operations on the parsed result, described by ScriptSection:

    section(name)          -> child section
    all()                  -> key/value pairs and nested sections, in order
    scalar(key, default)   -> value of a key in this section

MappingSection implements the interface over the nested dict shape most VDF
parsers return (str -> str | nested dict). Lookups by name are
case-insensitive, as in KeyValues.
"""

from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Optional, Protocol, Union

from .errors import ScriptTreeError


@dataclass(frozen=True)
class ScriptPair:
    """A single key/value line inside a section."""
    key: str
    value: str


class ScriptSection(Protocol):
    """Operations the codec consumes from a parsed caption script."""

    def section(self, name: str) -> "ScriptSection":
        ...

    def all(self) -> Iterator[Union[ScriptPair, "ScriptSection"]]:
        ...

    def scalar(self, key: str, default: Optional[str] = None) -> Optional[str]:
        ...


class MappingSection:
    """ScriptSection backed by a nested mapping."""

    def __init__(self, data: Mapping[str, Any], name: str = ""):
        if not isinstance(data, Mapping):
            raise TypeError(f"Expected a mapping for section {name!r}, got {type(data).__name__}")
        self.name = name
        self._data = data

    def __repr__(self):
        return f"MappingSection(name={self.name!r}, entries={len(self._data)})"

    def _find(self, name: str):
        if name in self._data:
            return name, self._data[name]
        folded = name.lower()
        for key, value in self._data.items():
            if key.lower() == folded:
                return key, value
        return None, None

    def section(self, name: str) -> "MappingSection":
        key, value = self._find(name)
        if not isinstance(value, Mapping):
            where = f" in {self.name!r}" if self.name else ""
            raise ScriptTreeError(f"Missing section {name!r}{where}")
        return MappingSection(value, key)

    def all(self) -> Iterator[Union[ScriptPair, "MappingSection"]]:
        for key, value in self._data.items():
            if isinstance(value, Mapping):
                yield MappingSection(value, key)
            else:
                yield ScriptPair(key, str(value))

    def scalar(self, key: str, default: Optional[str] = None) -> Optional[str]:
        _, value = self._find(key)
        if value is None or isinstance(value, Mapping):
            return default
        return str(value)


def pairs(section: ScriptSection) -> Iterator[ScriptPair]:
    """Yield only the key/value pairs of a section, skipping nested sections."""
    for entry in section.all():
        # nested sections expose all(); pairs do not
        if not hasattr(entry, "all"):
            yield entry
