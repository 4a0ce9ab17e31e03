"""Loading triangles from Alias object-separated triangle files."""

from __future__ import annotations

import struct
from dataclasses import dataclass

from hltools.common import ToolError, load_file

__all__ = [
    "MAXTRIANGLES",
    "MAGIC",
    "FLOAT_START",
    "FLOAT_END",
    "Triangle",
    "load_triangle_list",
    "parse_triangle_list",
]

MAXTRIANGLES = 2048
MAGIC = 123322
FLOAT_START = 99999.0
FLOAT_END = -FLOAT_START

Vec3 = tuple[float, float, float]

_INT = struct.Struct(">i")
_FLOAT = struct.Struct(">f")
# Each of three points: normal, point, colour (3 floats each), u, v.
_TRIANGLE = struct.Struct(">33f")
_POINT_FLOATS = 11
_EXIT_PATTERN = struct.pack("<f", FLOAT_END)


@dataclass(frozen=True)
class Triangle:
    """The three corner positions of a triangle."""

    verts: tuple[Vec3, Vec3, Vec3]


class _Cursor:
    def __init__(self, data: bytes) -> None:
        self.data = data
        self.pos = 0

    def at_end(self) -> bool:
        return self.pos >= len(self.data)

    def take(self, count: int) -> bytes:
        if self.pos + count > len(self.data):
            raise ToolError("File read failure")
        chunk = self.data[self.pos : self.pos + count]
        self.pos += count
        return chunk

    def cstring(self) -> bytes:
        end = self.data.find(b"\0", self.pos)
        if end == -1:
            raise ToolError("File read failure")
        text = self.data[self.pos : end]
        self.pos = end + 1
        return text


def parse_triangle_list(data: bytes) -> list[Triangle]:
    """Decode every triangle of an Alias triangle file held in memory."""
    cursor = _Cursor(bytes(data))
    (magic,) = _INT.unpack(cursor.take(4))
    if magic != MAGIC:
        raise ToolError(
            "File is not a Alias object separated triangle file, magic number is wrong."
        )

    triangles: list[Triangle] = []
    count = 0
    while not cursor.at_end():
        raw = cursor.take(4)
        if raw != _EXIT_PATTERN:
            (start,) = _FLOAT.unpack(raw)
            if start == FLOAT_START:
                cursor.cstring()
                (count,) = _INT.unpack(cursor.take(4))
                if count != 0:
                    cursor.cstring()
            elif start == FLOAT_END:
                cursor.cstring()
                continue

        for _ in range(count):
            values = _TRIANGLE.unpack(cursor.take(_TRIANGLE.size))
            verts = tuple(
                (
                    values[j * _POINT_FLOATS + 3],
                    values[j * _POINT_FLOATS + 4],
                    values[j * _POINT_FLOATS + 5],
                )
                for j in range(3)
            )
            triangles.append(Triangle(verts))  # type: ignore[arg-type]
            if len(triangles) >= MAXTRIANGLES:
                raise ToolError("Error: too many triangles; increase MAXTRIANGLES\n")
    return triangles


def load_triangle_list(filename: str) -> list[Triangle]:
    """Read every triangle from an Alias triangle file."""
    return parse_triangle_list(load_file(filename))