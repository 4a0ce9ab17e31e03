"""Reading and writing WAD2/WAD3 lump archives."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import BinaryIO, Optional

from hltools.common import ToolError

__all__ = [
    "CMP_NONE",
    "CMP_LZSS",
    "TYP_NONE",
    "TYP_LABEL",
    "TYP_LUMPY",
    "LumpInfo",
    "cleanup_name",
    "WadReader",
    "WadWriter",
]

CMP_NONE = 0
CMP_LZSS = 1

TYP_NONE = 0
TYP_LABEL = 1
TYP_LUMPY = 64

_NAME_SIZE = 16
_HEADER_LE = struct.Struct("<4sii")
_HEADER_BE = struct.Struct(">4sii")
_LUMP_LE = struct.Struct("<iiiBBBB16s")
_LUMP_BE = struct.Struct(">iiiBBBB16s")


def cleanup_name(name: str) -> bytes:
    """Return ``name`` upper-cased and null padded to 16 bytes, as stored in a wad."""
    raw = name.encode("latin-1").split(b"\0", 1)[0][:_NAME_SIZE]
    return raw.upper().ljust(_NAME_SIZE, b"\0")


@dataclass(frozen=True)
class LumpInfo:
    """Where a lump lies in the file and what it is."""

    filepos: int
    disksize: int
    size: int
    type: int
    compression: int
    name: str
    raw_name: bytes = field(default=b"", repr=False)

    def matches(self, cleaned: bytes) -> bool:
        """Return True if the stored 16-byte name equals ``cleaned``."""
        raw = self.raw_name or self.name.encode("latin-1").ljust(_NAME_SIZE, b"\0")
        return raw == cleaned


def _read_exact(handle: BinaryIO, count: int) -> bytes:
    data = handle.read(count)
    if len(data) != count:
        raise ToolError("File read failure")
    return data


class WadReader:
    """An open wad file whose lumps can be looked up by name or number."""

    def __init__(self, filename: str) -> None:
        try:
            self._handle: BinaryIO = open(filename, "rb")
        except OSError as exc:
            raise ToolError(f"Error opening {filename}: {exc.strerror}") from exc
        try:
            ident, numlumps, infotableofs = _HEADER_LE.unpack(
                _read_exact(self._handle, _HEADER_LE.size)
            )
            if ident not in (b"WAD2", b"WAD3"):
                raise ToolError(f"Wad file {filename} doesn't have WAD2/WAD3 id\n")
            if numlumps < 0:
                raise ToolError("File read failure")
            self.identification = ident.decode("ascii")
            self._handle.seek(infotableofs)
            table = _read_exact(self._handle, numlumps * _LUMP_LE.size)
        except BaseException:
            self._handle.close()
            raise
        self.lumps: list[LumpInfo] = [
            LumpInfo(
                filepos=filepos,
                disksize=disksize,
                size=size,
                type=lump_type,
                compression=compression,
                name=raw.split(b"\0", 1)[0].decode("latin-1"),
                raw_name=raw,
            )
            for filepos, disksize, size, lump_type, compression, _p1, _p2, raw in
            _LUMP_LE.iter_unpack(table)
        ]

    def __enter__(self) -> "WadReader":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def check_num_for_name(self, name: str) -> Optional[int]:
        """Return the number of the lump called ``name`` (any case), or None."""
        cleaned = cleanup_name(name)
        for index, lump in enumerate(self.lumps):
            if lump.matches(cleaned):
                return index
        return None

    def get_num_for_name(self, name: str) -> int:
        """Return the number of the lump called ``name``; raise if absent."""
        index = self.check_num_for_name(name)
        if index is None:
            raise ToolError(f"W_GetNumForName: {name} not found!")
        return index

    def lump_length(self, lump: int) -> int:
        """Return the uncompressed size of a lump."""
        if not 0 <= lump < len(self.lumps):
            raise ToolError(f"W_LumpLength: {lump} >= numlumps")
        return self.lumps[lump].size

    def read_lump(self, lump: int) -> bytes:
        """Return the contents of a lump."""
        if not 0 <= lump < len(self.lumps):
            raise ToolError(f"W_ReadLump: {lump} >= numlumps")
        info = self.lumps[lump]
        self._handle.seek(info.filepos)
        return _read_exact(self._handle, info.size)

    def load_lump_name(self, name: str) -> bytes:
        """Return the contents of the lump called ``name``."""
        return self.read_lump(self.get_num_for_name(name))

    def close(self) -> None:
        """Close the file."""
        self._handle.close()


class WadWriter:
    """Writes lumps one after another, then the directory and header on close."""

    def __init__(self, pathname: str, bigendian: bool = False) -> None:
        try:
            self._handle: BinaryIO = open(pathname, "wb")
        except OSError as exc:
            raise ToolError(f"Error opening {pathname}: {exc.strerror}") from exc
        self._header = _HEADER_BE if bigendian else _HEADER_LE
        self._lump = _LUMP_BE if bigendian else _LUMP_LE
        self._handle.seek(self._header.size)
        self.lumps: list[LumpInfo] = []

    def __enter__(self) -> "WadWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
        else:
            self._handle.close()

    def add_lump(
        self, name: str, data: bytes, lump_type: int = TYP_NONE, compression: int = CMP_NONE
    ) -> None:
        """Append a lump; its name is stored upper-cased."""
        raw = name.encode("latin-1")[:_NAME_SIZE].upper().ljust(_NAME_SIZE, b"\0")
        offset = self._handle.tell()
        self.lumps.append(
            LumpInfo(
                filepos=offset,
                disksize=len(data),
                size=len(data),
                type=lump_type & 0xFF,
                compression=compression & 0xFF,
                name=raw.split(b"\0", 1)[0].decode("latin-1"),
                raw_name=raw,
            )
        )
        self._handle.write(bytes(data))

    def close(self, wad3: bool = True) -> None:
        """Write the directory and the header, then close the file."""
        if self._handle.closed:
            return
        infotableofs = self._handle.tell()
        for info in self.lumps:
            self._handle.write(
                self._lump.pack(
                    info.filepos, info.disksize, info.size, info.type,
                    info.compression, 0, 0, info.raw_name,
                )
            )
        ident = b"WAD3" if wad3 else b"WAD2"
        self._handle.seek(0)
        self._handle.write(self._header.pack(ident, len(self.lumps), infotableofs))
        self._handle.close()