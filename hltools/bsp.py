"""Reading and writing version 30 BSP map files, with visibility compression."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum
from typing import ClassVar, Sequence

from hltools.common import ToolError, load_file, save_file

__all__ = [
    "BSPVERSION",
    "TOOLVERSION",
    "MAX_MAP_HULLS",
    "MAX_MAP_MODELS",
    "MAX_MAP_BRUSHES",
    "MAX_MAP_ENTITIES",
    "MAX_MAP_ENTSTRING",
    "MAX_MAP_PLANES",
    "MAX_MAP_NODES",
    "MAX_MAP_CLIPNODES",
    "MAX_MAP_LEAFS",
    "MAX_MAP_VERTS",
    "MAX_MAP_FACES",
    "MAX_MAP_MARKSURFACES",
    "MAX_MAP_TEXINFO",
    "MAX_MAP_EDGES",
    "MAX_MAP_SURFEDGES",
    "MAX_MAP_TEXTURES",
    "MAX_MAP_MIPTEX",
    "MAX_MAP_LIGHTING",
    "MAX_MAP_VISIBILITY",
    "MAX_MAP_PORTALS",
    "MAX_KEY",
    "MAX_VALUE",
    "HEADER_LUMPS",
    "MAXLIGHTMAPS",
    "NUM_AMBIENTS",
    "TEX_SPECIAL",
    "Contents",
    "LumpType",
    "Model",
    "Vertex",
    "Plane",
    "Node",
    "ClipNode",
    "TexInfo",
    "Edge",
    "Face",
    "Leaf",
    "BspFile",
    "fast_checksum",
    "compress_vis",
    "decompress_vis",
]

MAX_MAP_HULLS = 4
MAX_MAP_MODELS = 400
MAX_MAP_BRUSHES = 4096
MAX_MAP_ENTITIES = 1024
MAX_MAP_ENTSTRING = 128 * 1024
MAX_MAP_PLANES = 32767
MAX_MAP_NODES = 32767
MAX_MAP_CLIPNODES = 32767
MAX_MAP_LEAFS = 8192
MAX_MAP_VERTS = 65535
MAX_MAP_FACES = 65535
MAX_MAP_MARKSURFACES = 65535
MAX_MAP_TEXINFO = 8192
MAX_MAP_EDGES = 256000
MAX_MAP_SURFEDGES = 512000
MAX_MAP_TEXTURES = 512
MAX_MAP_MIPTEX = 0x200000
MAX_MAP_LIGHTING = 0x200000
MAX_MAP_VISIBILITY = 0x200000
MAX_MAP_PORTALS = 65536

MAX_KEY = 32
MAX_VALUE = 1024

BSPVERSION = 30
TOOLVERSION = 2

HEADER_LUMPS = 15
MAXLIGHTMAPS = 4
NUM_AMBIENTS = 4
TEX_SPECIAL = 1

Vec3 = tuple[float, float, float]
Short3 = tuple[int, int, int]


class Contents(IntEnum):
    """Leaf and clip-node contents values."""

    EMPTY = -1
    SOLID = -2
    WATER = -3
    SLIME = -4
    LAVA = -5
    SKY = -6
    ORIGIN = -7
    CLIP = -8
    CURRENT_0 = -9
    CURRENT_90 = -10
    CURRENT_180 = -11
    CURRENT_270 = -12
    CURRENT_UP = -13
    CURRENT_DOWN = -14
    TRANSLUCENT = -15


class LumpType(IntEnum):
    """Index of each lump in the file header."""

    ENTITIES = 0
    PLANES = 1
    TEXTURES = 2
    VERTEXES = 3
    VISIBILITY = 4
    NODES = 5
    TEXINFO = 6
    FACES = 7
    LIGHTING = 8
    CLIPNODES = 9
    LEAFS = 10
    MARKSURFACES = 11
    EDGES = 12
    SURFEDGES = 13
    MODELS = 14


_HEADER = struct.Struct("<i" + "ii" * HEADER_LUMPS)
_MARKSURFACE = struct.Struct("<H")
_SURFEDGE = struct.Struct("<i")

_ZERO3: Vec3 = (0.0, 0.0, 0.0)
_ZERO_SHORT3: Short3 = (0, 0, 0)


@dataclass(frozen=True)
class Model:
    """A brush model: bounds, hull head nodes and its faces."""

    mins: Vec3 = _ZERO3
    maxs: Vec3 = _ZERO3
    origin: Vec3 = _ZERO3
    headnode: tuple[int, int, int, int] = (0, 0, 0, 0)
    visleafs: int = 0
    firstface: int = 0
    numfaces: int = 0

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<9f4i3i")

    def _pack(self) -> bytes:
        return self._STRUCT.pack(
            *self.mins, *self.maxs, *self.origin, *self.headnode,
            self.visleafs, self.firstface, self.numfaces,
        )

    @classmethod
    def _unpack(cls, v: Sequence) -> "Model":
        return cls(
            tuple(v[0:3]), tuple(v[3:6]), tuple(v[6:9]), tuple(v[9:13]), v[13], v[14], v[15]
        )


@dataclass(frozen=True)
class Vertex:
    """A point in space."""

    point: Vec3 = _ZERO3

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<3f")

    def _pack(self) -> bytes:
        return self._STRUCT.pack(*self.point)

    @classmethod
    def _unpack(cls, v: Sequence) -> "Vertex":
        return cls(tuple(v))


@dataclass(frozen=True)
class Plane:
    """A plane ``normal . x = dist`` with its axial type."""

    normal: Vec3 = _ZERO3
    dist: float = 0.0
    type: int = 0

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<4fi")

    def _pack(self) -> bytes:
        return self._STRUCT.pack(*self.normal, self.dist, self.type)

    @classmethod
    def _unpack(cls, v: Sequence) -> "Plane":
        return cls(tuple(v[0:3]), v[3], v[4])


@dataclass(frozen=True)
class Node:
    """A BSP tree node; negative children are ``-(leaf + 1)``."""

    planenum: int = 0
    children: tuple[int, int] = (0, 0)
    mins: Short3 = _ZERO_SHORT3
    maxs: Short3 = _ZERO_SHORT3
    firstface: int = 0
    numfaces: int = 0

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<i8h2H")

    def _pack(self) -> bytes:
        return self._STRUCT.pack(
            self.planenum, *self.children, *self.mins, *self.maxs, self.firstface, self.numfaces
        )

    @classmethod
    def _unpack(cls, v: Sequence) -> "Node":
        return cls(v[0], tuple(v[1:3]), tuple(v[3:6]), tuple(v[6:9]), v[9], v[10])


@dataclass(frozen=True)
class ClipNode:
    """A clipping hull node; negative children are contents."""

    planenum: int = 0
    children: tuple[int, int] = (0, 0)

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<i2h")

    def _pack(self) -> bytes:
        return self._STRUCT.pack(self.planenum, *self.children)

    @classmethod
    def _unpack(cls, v: Sequence) -> "ClipNode":
        return cls(v[0], tuple(v[1:3]))


@dataclass(frozen=True)
class TexInfo:
    """Texture projection vectors (s and t: xyz plus offset) and flags."""

    vecs: tuple[tuple[float, float, float, float], tuple[float, float, float, float]] = (
        (0.0, 0.0, 0.0, 0.0),
        (0.0, 0.0, 0.0, 0.0),
    )
    miptex: int = 0
    flags: int = 0

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<8f2i")

    def _pack(self) -> bytes:
        return self._STRUCT.pack(*self.vecs[0], *self.vecs[1], self.miptex, self.flags)

    @classmethod
    def _unpack(cls, v: Sequence) -> "TexInfo":
        return cls((tuple(v[0:4]), tuple(v[4:8])), v[8], v[9])


@dataclass(frozen=True)
class Edge:
    """Two vertex numbers."""

    v: tuple[int, int] = (0, 0)

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<2H")

    def _pack(self) -> bytes:
        return self._STRUCT.pack(*self.v)

    @classmethod
    def _unpack(cls, v: Sequence) -> "Edge":
        return cls(tuple(v))


@dataclass(frozen=True)
class Face:
    """A polygon face with its lighting information."""

    planenum: int = 0
    side: int = 0
    firstedge: int = 0
    numedges: int = 0
    texinfo: int = 0
    styles: tuple[int, int, int, int] = (0, 0, 0, 0)
    lightofs: int = 0

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<hhihh4Bi")

    def _pack(self) -> bytes:
        return self._STRUCT.pack(
            self.planenum, self.side, self.firstedge, self.numedges, self.texinfo,
            *self.styles, self.lightofs,
        )

    @classmethod
    def _unpack(cls, v: Sequence) -> "Face":
        return cls(v[0], v[1], v[2], v[3], v[4], tuple(v[5:9]), v[9])


@dataclass(frozen=True)
class Leaf:
    """A BSP leaf; ``visofs`` is -1 when there is no visibility info."""

    contents: int = 0
    visofs: int = 0
    mins: Short3 = _ZERO_SHORT3
    maxs: Short3 = _ZERO_SHORT3
    firstmarksurface: int = 0
    nummarksurfaces: int = 0
    ambient_level: tuple[int, int, int, int] = (0, 0, 0, 0)

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<ii6h2H4B")

    def _pack(self) -> bytes:
        return self._STRUCT.pack(
            self.contents, self.visofs, *self.mins, *self.maxs,
            self.firstmarksurface, self.nummarksurfaces, *self.ambient_level,
        )

    @classmethod
    def _unpack(cls, v: Sequence) -> "Leaf":
        return cls(v[0], v[1], tuple(v[2:5]), tuple(v[5:8]), v[8], v[9], tuple(v[10:14]))


def fast_checksum(data: bytes) -> int:
    """Rotate-left-by-4 and XOR each signed byte into a signed 32-bit sum."""
    checksum = 0
    for value in data:
        signed = value - 256 if value & 0x80 else value
        rotated = ((checksum << 4) | (checksum >> 28)) & 0xFFFFFFFF
        checksum = (rotated ^ signed) & 0xFFFFFFFF
    return checksum - 0x100000000 if checksum & 0x80000000 else checksum


def compress_vis(vis: bytes, numleafs: int) -> bytes:
    """Run-length encode the zero bytes of one visibility row."""
    visrow = (numleafs + 7) >> 3
    out = bytearray()
    j = 0
    while j < visrow:
        out.append(vis[j])
        if vis[j]:
            j += 1
            continue
        rep = 1
        j += 1
        while j < visrow and not vis[j] and rep != 255:
            rep += 1
            j += 1
        out.append(rep)
    return bytes(out)


def decompress_vis(data: bytes, numleafs: int) -> bytes:
    """Expand a run-length encoded visibility row to ``(numleafs + 7) // 8`` bytes."""
    row = (numleafs + 7) >> 3
    out = bytearray()
    pos = 0
    while len(out) < row:
        if pos >= len(data):
            raise ToolError("DecompressVis: data ended before the row was complete")
        value = data[pos]
        if value:
            out.append(value)
            pos += 1
            continue
        if pos + 1 >= len(data):
            raise ToolError("DecompressVis: data ended before the row was complete")
        out.extend(bytes(data[pos + 1]))
        pos += 2
    return bytes(out[:row])


def _unpack_records(cls, data: bytes) -> list:
    if len(data) % cls._STRUCT.size:
        raise ToolError("LoadBSPFile: odd lump size")
    return [cls._unpack(values) for values in cls._STRUCT.iter_unpack(data)]


def _unpack_ints(layout: struct.Struct, data: bytes) -> list[int]:
    if len(data) % layout.size:
        raise ToolError("LoadBSPFile: odd lump size")
    return [values[0] for values in layout.iter_unpack(data)]


def _pack_records(records: Sequence) -> bytes:
    return b"".join(record._pack() for record in records)


def _pack_ints(layout: struct.Struct, values: Sequence[int]) -> bytes:
    return b"".join(layout.pack(value) for value in values)


def _usage_suffix(percentage: float) -> str:
    return "VERY FULL!\n" if percentage > 80.0 else "\n"


def _array_usage(name: str, items: int, maxitems: int, itemsize: int) -> tuple[str, int]:
    percentage = items * 100.0 / maxitems if maxitems else 0.0
    line = (
        f"{name:<12}  {items:7d}/{maxitems:<7d}  "
        f"{items * itemsize:7d}/{maxitems * itemsize:<7d}  ({percentage:4.1f}%)"
    )
    return line + _usage_suffix(percentage), items * itemsize


def _glob_usage(name: str, storage: int, maxstorage: int) -> tuple[str, int]:
    percentage = storage * 100.0 / maxstorage if maxstorage else 0.0
    line = f"{name:<12}     [variable]    {storage:7d}/{maxstorage:<7d}  ({percentage:4.1f}%)"
    return line + _usage_suffix(percentage), storage


# The order in which lumps follow the header in a written file.
_WRITE_ORDER = (
    LumpType.PLANES,
    LumpType.LEAFS,
    LumpType.VERTEXES,
    LumpType.NODES,
    LumpType.TEXINFO,
    LumpType.FACES,
    LumpType.CLIPNODES,
    LumpType.MARKSURFACES,
    LumpType.SURFEDGES,
    LumpType.EDGES,
    LumpType.MODELS,
    LumpType.LIGHTING,
    LumpType.VISIBILITY,
    LumpType.ENTITIES,
    LumpType.TEXTURES,
)


@dataclass
class BspFile:
    """Every lump of a BSP file, decoded into records or kept as raw bytes."""

    models: list[Model] = field(default_factory=list)
    vertexes: list[Vertex] = field(default_factory=list)
    planes: list[Plane] = field(default_factory=list)
    leafs: list[Leaf] = field(default_factory=list)
    nodes: list[Node] = field(default_factory=list)
    texinfo: list[TexInfo] = field(default_factory=list)
    clipnodes: list[ClipNode] = field(default_factory=list)
    faces: list[Face] = field(default_factory=list)
    marksurfaces: list[int] = field(default_factory=list)
    surfedges: list[int] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)
    texdata: bytes = b""
    visdata: bytes = b""
    lightdata: bytes = b""
    entdata: bytes = b""

    @classmethod
    def _parse(cls, data: bytes, name: str) -> "BspFile":
        if len(data) < _HEADER.size:
            raise ToolError(f"{name} is too short for a BSP header")
        fields = _HEADER.unpack_from(data)
        version = fields[0]
        if version != BSPVERSION:
            raise ToolError(f"{name} is version {version}, not {BSPVERSION}")

        def lump(kind: LumpType) -> bytes:
            fileofs = fields[1 + 2 * kind]
            filelen = fields[2 + 2 * kind]
            if fileofs < 0 or filelen < 0 or fileofs + filelen > len(data):
                raise ToolError(f"LoadBSPFile: lump {kind.name.lower()} outside the file")
            return bytes(data[fileofs : fileofs + filelen])

        return cls(
            models=_unpack_records(Model, lump(LumpType.MODELS)),
            vertexes=_unpack_records(Vertex, lump(LumpType.VERTEXES)),
            planes=_unpack_records(Plane, lump(LumpType.PLANES)),
            leafs=_unpack_records(Leaf, lump(LumpType.LEAFS)),
            nodes=_unpack_records(Node, lump(LumpType.NODES)),
            texinfo=_unpack_records(TexInfo, lump(LumpType.TEXINFO)),
            clipnodes=_unpack_records(ClipNode, lump(LumpType.CLIPNODES)),
            faces=_unpack_records(Face, lump(LumpType.FACES)),
            marksurfaces=_unpack_ints(_MARKSURFACE, lump(LumpType.MARKSURFACES)),
            surfedges=_unpack_ints(_SURFEDGE, lump(LumpType.SURFEDGES)),
            edges=_unpack_records(Edge, lump(LumpType.EDGES)),
            texdata=lump(LumpType.TEXTURES),
            visdata=lump(LumpType.VISIBILITY),
            lightdata=lump(LumpType.LIGHTING),
            entdata=lump(LumpType.ENTITIES),
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "BspFile":
        """Decode a whole BSP file held in memory."""
        return cls._parse(data, "BSP data")

    @classmethod
    def load(cls, path: str) -> "BspFile":
        """Read and decode a BSP file."""
        return cls._parse(load_file(path), str(path))

    def _lump_bytes(self) -> dict[LumpType, bytes]:
        return {
            LumpType.PLANES: _pack_records(self.planes),
            LumpType.LEAFS: _pack_records(self.leafs),
            LumpType.VERTEXES: _pack_records(self.vertexes),
            LumpType.NODES: _pack_records(self.nodes),
            LumpType.TEXINFO: _pack_records(self.texinfo),
            LumpType.FACES: _pack_records(self.faces),
            LumpType.CLIPNODES: _pack_records(self.clipnodes),
            LumpType.MARKSURFACES: _pack_ints(_MARKSURFACE, self.marksurfaces),
            LumpType.SURFEDGES: _pack_ints(_SURFEDGE, self.surfedges),
            LumpType.EDGES: _pack_records(self.edges),
            LumpType.MODELS: _pack_records(self.models),
            LumpType.LIGHTING: bytes(self.lightdata),
            LumpType.VISIBILITY: bytes(self.visdata),
            LumpType.ENTITIES: bytes(self.entdata),
            LumpType.TEXTURES: bytes(self.texdata),
        }

    def to_bytes(self) -> bytes:
        """Encode the file: header, then each lump padded to four bytes."""
        lumps = self._lump_bytes()
        positions = [0] * (2 * HEADER_LUMPS)
        body = bytearray()
        for kind in _WRITE_ORDER:
            payload = lumps[kind]
            positions[2 * kind] = _HEADER.size + len(body)
            positions[2 * kind + 1] = len(payload)
            body += payload
            body += bytes(-len(payload) % 4)
        return _HEADER.pack(BSPVERSION, *positions) + bytes(body)

    def write(self, path: str) -> None:
        """Encode the file and save it to ``path``."""
        save_file(path, self.to_bytes())

    def checksums(self) -> dict[str, int]:
        """Return the fast checksum of every lump, keyed by lump name."""
        lumps = self._lump_bytes()
        # The texture checksum covers as many bytes as there are edges.
        count = min(len(self.edges), MAX_MAP_MIPTEX)
        texbytes = (self.texdata + bytes(max(0, count - len(self.texdata))))[:count]
        return {
            "models": fast_checksum(lumps[LumpType.MODELS]),
            "vertexes": fast_checksum(lumps[LumpType.VERTEXES]),
            "planes": fast_checksum(lumps[LumpType.PLANES]),
            "leafs": fast_checksum(lumps[LumpType.LEAFS]),
            "nodes": fast_checksum(lumps[LumpType.NODES]),
            "texinfo": fast_checksum(lumps[LumpType.TEXINFO]),
            "clipnodes": fast_checksum(lumps[LumpType.CLIPNODES]),
            "faces": fast_checksum(lumps[LumpType.FACES]),
            "marksurfaces": fast_checksum(lumps[LumpType.MARKSURFACES]),
            "surfedges": fast_checksum(lumps[LumpType.SURFEDGES]),
            "edges": fast_checksum(lumps[LumpType.EDGES]),
            "texdata": fast_checksum(texbytes),
            "visdata": fast_checksum(self.visdata),
            "lightdata": fast_checksum(self.lightdata),
            "entdata": fast_checksum(self.entdata),
        }

    def usage_report(self) -> str:
        """Return the table of how full each lump is against its limit."""
        lines = [
            "\n",
            "Object names  Objects/Maxobjs  Memory / Maxmem  Fullness\n",
            "------------  ---------------  ---------------  --------\n",
        ]
        arrays = (
            ("models", len(self.models), MAX_MAP_MODELS, Model._STRUCT.size),
            ("planes", len(self.planes), MAX_MAP_PLANES, Plane._STRUCT.size),
            ("vertexes", len(self.vertexes), MAX_MAP_VERTS, Vertex._STRUCT.size),
            ("nodes", len(self.nodes), MAX_MAP_NODES, Node._STRUCT.size),
            ("texinfos", len(self.texinfo), MAX_MAP_TEXINFO, TexInfo._STRUCT.size),
            ("faces", len(self.faces), MAX_MAP_FACES, Face._STRUCT.size),
            ("clipnodes", len(self.clipnodes), MAX_MAP_CLIPNODES, ClipNode._STRUCT.size),
            ("leaves", len(self.leafs), MAX_MAP_LEAFS, Leaf._STRUCT.size),
            ("marksurfaces", len(self.marksurfaces), MAX_MAP_MARKSURFACES, _MARKSURFACE.size),
            ("surfedges", len(self.surfedges), MAX_MAP_SURFEDGES, _SURFEDGE.size),
            ("edges", len(self.edges), MAX_MAP_EDGES, Edge._STRUCT.size),
        )
        globs = (
            ("texdata", len(self.texdata), MAX_MAP_MIPTEX),
            ("lightdata", len(self.lightdata), MAX_MAP_LIGHTING),
            ("visdata", len(self.visdata), MAX_MAP_VISIBILITY),
            ("entdata", len(self.entdata), MAX_MAP_ENTSTRING),
        )
        total = 0
        for name, items, maxitems, itemsize in arrays:
            line, used = _array_usage(name, items, maxitems, itemsize)
            lines.append(line)
            total += used
        for name, storage, maxstorage in globs:
            line, used = _glob_usage(name, storage, maxstorage)
            lines.append(line)
            total += used
        lines.append(f"=== Total BSP file data space used: {total} bytes ===\n")
        return "".join(lines)