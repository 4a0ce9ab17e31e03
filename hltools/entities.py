"""Map entities: key/value pairs and their text form in the entity lump."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Optional

from hltools.bsp import MAX_MAP_ENTSTRING
from hltools.common import ToolError

__all__ = ["Entity", "unparse_entities"]

Vec3 = tuple[float, float, float]

_FLOAT = re.compile(r"\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)")


def _scan_float(text: str, pos: int = 0) -> Optional[tuple[float, int]]:
    match = _FLOAT.match(text, pos)
    if match is None:
        return None
    return float(match.group(1)), match.end()


@dataclass
class Entity:
    """One map entity; the most recently added key comes first in its text form."""

    epairs: dict[str, str] = field(default_factory=dict)
    origin: Vec3 = (0.0, 0.0, 0.0)
    firstbrush: int = 0
    numbrushes: int = 0

    def set_key_value(self, key: str, value: str) -> None:
        """Set ``key``; an existing key keeps its place, a new one goes first."""
        self.epairs[key] = value

    def value_for_key(self, key: str) -> str:
        """Return the value of ``key``, or an empty string if it is not set."""
        return self.epairs.get(key, "")

    def float_for_key(self, key: str) -> float:
        """Return the leading number of the value of ``key``, or 0.0."""
        scanned = _scan_float(self.value_for_key(key))
        return scanned[0] if scanned else 0.0

    def vector_for_key(self, key: str) -> Vec3:
        """Read up to three numbers from the value of ``key``; missing ones are 0."""
        text = self.value_for_key(key)
        values = [0.0, 0.0, 0.0]
        pos = 0
        for index in range(3):
            scanned = _scan_float(text, pos)
            if scanned is None:
                break
            values[index], pos = scanned
        return values[0], values[1], values[2]

    def ordered_pairs(self) -> list[tuple[str, str]]:
        """Return the pairs in the order they are written out."""
        return list(reversed(self.epairs.items()))


def unparse_entities(entities: Iterable[Entity]) -> bytes:
    """Build the entity lump text, null terminated; empty entities are skipped."""
    parts: list[str] = []
    size = 0
    for entity in entities:
        if not entity.epairs:
            continue
        block = "{\n"
        block += "".join(f'"{key}" "{value}"\n' for key, value in entity.ordered_pairs())
        block += "}\n"
        encoded_size = len(block.encode("utf-8"))
        size += encoded_size
        if size > MAX_MAP_ENTSTRING:
            raise ToolError("Entity text too long")
        parts.append(block)
    return "".join(parts).encode("utf-8") + b"\0"