"""Shared helpers for the map tools: tokenizing, paths, numbers, CRC and files."""

from __future__ import annotations

import os
import re
import struct
import sys
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Sequence, TextIO

__all__ = [
    "ToolError",
    "fix_slashes",
    "parse_token",
    "strncasecmp",
    "strcasecmp",
    "check_parm",
    "default_extension",
    "default_path",
    "strip_filename",
    "strip_extension",
    "extract_file_path",
    "extract_file_base",
    "extract_file_extension",
    "parse_hex",
    "parse_num",
    "Crc16",
    "crc16",
    "expand_arg",
    "ProjectPaths",
    "load_file",
    "save_file",
    "file_time",
    "create_path",
    "copy_file",
    "PakEntry",
    "read_pak_directory",
    "list_pak",
]

_SEPARATORS = "\\/"
_SINGLE_CHARS = frozenset("{})('" + ":")


class ToolError(Exception):
    """An abnormal condition that stops a tool."""


def _is_separator(char: str) -> bool:
    return char != "" and char in _SEPARATORS


def _is_absolute(path: str) -> bool:
    return path[:1] in ("/", "\\") or path[1:2] == ":"


def fix_slashes(path: str) -> str:
    """Turn every backslash into a forward slash."""
    return path.replace("\\", "/")


def parse_token(data: Optional[str]) -> Optional[tuple[str, str]]:
    """Read one token from ``data``.

    Returns ``(token, remainder)``, or ``None`` once only whitespace and
    comments are left.
    """
    if data is None:
        return None
    data = data.split("\0", 1)[0]
    size = len(data)
    pos = 0

    while True:
        while pos < size and data[pos] <= " ":
            pos += 1
        if pos >= size:
            return None
        if data.startswith("//", pos):
            while pos < size and data[pos] != "\n":
                pos += 1
            continue
        break

    char = data[pos]
    if char == '"':
        end = data.find('"', pos + 1)
        if end == -1:
            return data[pos + 1 :], ""
        return data[pos + 1 : end], data[end + 1 :]

    if char in _SINGLE_CHARS:
        return char, data[pos + 1 :]

    start = pos
    while True:
        pos += 1
        if pos >= size:
            break
        char = data[pos]
        if char in _SINGLE_CHARS or char <= " ":
            break
    return data[start:pos], data[pos:]


def _upper_ascii(char: str) -> str:
    return char.upper() if "a" <= char <= "z" else char


def strncasecmp(s1: str, s2: str, n: int) -> int:
    """Compare up to ``n`` characters ignoring ASCII case: 0 if equal, else -1."""
    pos = 0
    while True:
        c1 = s1[pos] if pos < len(s1) else ""
        c2 = s2[pos] if pos < len(s2) else ""
        pos += 1
        if n == 0:
            return 0
        n -= 1
        if c1 != c2 and _upper_ascii(c1) != _upper_ascii(c2):
            return -1
        if c1 == "":
            return 0


def strcasecmp(s1: str, s2: str) -> int:
    """Compare two strings ignoring ASCII case: 0 if equal, else -1."""
    return strncasecmp(s1, s2, 99999)


def check_parm(check: str, argv: Sequence[str]) -> int:
    """Return the index (1 to len-1) of ``check`` in ``argv``, or 0 if absent."""
    for index, arg in enumerate(argv[1:], start=1):
        if strcasecmp(check, arg) == 0:
            return index
    return 0


def default_extension(path: str, extension: str) -> str:
    """Append ``extension`` unless the last path component already has one."""
    pos = len(path) - 1
    while pos > 0 and not _is_separator(path[pos]):
        if path[pos] == ".":
            return path
        pos -= 1
    return path + extension


def default_path(path: str, basepath: str) -> str:
    """Prefix ``basepath`` unless ``path`` starts with a separator."""
    if _is_separator(path[:1]):
        return path
    return basepath + path


def strip_filename(path: str) -> str:
    """Drop the last path component together with its separator."""
    pos = len(path) - 1
    while pos > 0 and not _is_separator(path[pos]):
        pos -= 1
    return path[: max(pos, 0)]


def strip_extension(path: str) -> str:
    """Drop the extension, if the last component has one."""
    pos = len(path) - 1
    while pos > 0 and path[pos] != ".":
        pos -= 1
        if path[pos] == "/":
            return path
    if pos > 0:
        return path[:pos]
    return path


def _last_component_start(path: str) -> int:
    pos = len(path) - 1
    while pos > 0 and not _is_separator(path[pos - 1]):
        pos -= 1
    return max(pos, 0)


def extract_file_path(path: str) -> str:
    """Return the directory part of ``path``, trailing separator included."""
    return path[: _last_component_start(path)]


def extract_file_base(path: str) -> str:
    """Return the last component of ``path`` without its extension."""
    base = path[_last_component_start(path) :]
    return base.split(".", 1)[0]


def extract_file_extension(path: str) -> str:
    """Return what follows the last dot of ``path``, or an empty string."""
    pos = len(path) - 1
    while pos > 0 and path[pos - 1] != ".":
        pos -= 1
    if pos <= 0:
        return ""
    return path[pos:]


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def parse_hex(text: str) -> int:
    """Parse hexadecimal digits into a signed 32-bit integer."""
    num = 0
    for char in text:
        if char not in "0123456789abcdefABCDEF":
            raise ToolError(f"Bad hex number: {text}")
        num = (num << 4) + int(char, 16)
    return _to_int32(num)


_DECIMAL = re.compile(r"\s*([+-]?\d+)")


def parse_num(text: str) -> int:
    """Parse a number written as ``$hex``, ``0xhex`` or decimal."""
    if text.startswith("$"):
        return parse_hex(text[1:])
    if text.startswith("0x"):
        return parse_hex(text[2:])
    match = _DECIMAL.match(text)
    return int(match.group(1)) if match else 0


def _build_crc_table() -> tuple[int, ...]:
    table = []
    for index in range(256):
        crc = index << 8
        for _ in range(8):
            crc = ((crc << 1) ^ 0x1021) if crc & 0x8000 else (crc << 1)
            crc &= 0xFFFF
        table.append(crc)
    return tuple(table)


_CRC_TABLE = _build_crc_table()
CRC_INIT_VALUE = 0xFFFF
CRC_XOR_VALUE = 0x0000


class Crc16:
    """16-bit non-reflected CRC with polynomial 0x1021 (CCITT, XMODEM table)."""

    def __init__(self) -> None:
        self._crc = CRC_INIT_VALUE

    def process_byte(self, value: int) -> None:
        """Feed one byte into the CRC."""
        self._crc = ((self._crc << 8) ^ _CRC_TABLE[(self._crc >> 8) ^ (value & 0xFF)]) & 0xFFFF

    def update(self, data: Iterable[int]) -> None:
        """Feed a sequence of bytes into the CRC."""
        for value in data:
            self.process_byte(value)

    @property
    def value(self) -> int:
        """The CRC of everything fed in so far."""
        return self._crc ^ CRC_XOR_VALUE


def crc16(data: Iterable[int]) -> int:
    """Return the CRC of ``data``."""
    crc = Crc16()
    crc.update(data)
    return crc.value


def expand_arg(path: str) -> str:
    """Make a command-line path absolute against the working directory."""
    if _is_absolute(path):
        return path
    return os.getcwd() + os.sep + path


@dataclass
class ProjectPaths:
    """The project, base and game directories that script paths resolve against."""

    qproject: str
    qdir: str
    gamedir: str

    @classmethod
    def from_environment(cls, environ: Optional[Mapping[str, str]] = None) -> "ProjectPaths":
        """Derive the directories from the ``QPROJECT`` environment variable."""
        if environ is None:
            environ = os.environ
        project = environ.get("QPROJECT")
        if project is not None:
            if not _is_separator(project[-1:]):
                project += "\\"
        else:
            project = "quiver\\"
        qdir = "" if _is_absolute(project) else "\\"
        qdir += project
        return cls(qproject=project, qdir=qdir, gamedir=qdir + "\\valve\\")

    def expand_path(self, path: str) -> str:
        """Resolve a script path against the base directory."""
        if _is_absolute(path) or self.qdir in path:
            return path
        return self.qdir + path

    def expand_path_and_archive(self, path: str, archivedir: Optional[str] = None) -> str:
        """Resolve ``path`` and, given an archive directory, copy the file there."""
        expanded = self.expand_path(path)
        if archivedir is not None:
            copy_file(expanded, f"{archivedir}/{path}")
        return expanded


def load_file(filename: str) -> bytes:
    """Return the whole contents of a file."""
    try:
        with open(filename, "rb") as handle:
            return handle.read()
    except OSError as exc:
        raise ToolError(f"Error opening {filename}: {exc.strerror}") from exc


def save_file(filename: str, data: bytes) -> None:
    """Write ``data`` as the whole contents of a file."""
    try:
        with open(filename, "wb") as handle:
            handle.write(data)
    except OSError as exc:
        raise ToolError(f"Error opening {filename}: {exc.strerror}") from exc


def file_time(path: str) -> int:
    """Return the modification time of ``path``, or -1 if it does not exist."""
    try:
        return int(os.stat(path).st_mtime)
    except OSError:
        return -1


def create_path(path: str) -> None:
    """Create every directory named before a separator in ``path``."""
    for pos in range(1, len(path)):
        if path[pos] in _SEPARATORS:
            directory = path[:pos]
            try:
                os.mkdir(directory)
            except FileExistsError:
                pass
            except OSError as exc:
                raise ToolError(f"mkdir {directory}: {exc.strerror}") from exc


def copy_file(source: str, destination: str) -> None:
    """Copy a file, creating the directories the destination needs."""
    data = load_file(source)
    create_path(destination)
    save_file(destination, data)


_PAK_HEADER = struct.Struct("<4sii")
_PAK_ENTRY = struct.Struct("<56sii")


@dataclass(frozen=True)
class PakEntry:
    """One file listed in a pak directory."""

    name: str
    filepos: int
    filelen: int


def read_pak_directory(pakname: str) -> list[PakEntry]:
    """Return the directory entries of a pak file."""
    data = load_file(pakname)
    if len(data) < _PAK_HEADER.size:
        raise ToolError("File read failure")
    _ident, dirofs, dirlen = _PAK_HEADER.unpack_from(data)
    if dirofs < 0 or dirlen < 0 or dirofs + dirlen > len(data):
        raise ToolError("File read failure")
    entries = []
    for raw_name, filepos, filelen in _PAK_ENTRY.iter_unpack(
        data[dirofs : dirofs + dirlen - dirlen % _PAK_ENTRY.size]
    ):
        name = raw_name.split(b"\0", 1)[0].decode("latin-1")
        entries.append(PakEntry(name, filepos, filelen))
    return entries


def list_pak(pakname: str, file: Optional[TextIO] = None) -> None:
    """Print the contents of a pak file and its total length."""
    out = file if file is not None else sys.stdout
    entries = read_pak_directory(pakname)
    for entry in entries:
        out.write(f"{entry.name:>64} : {entry.filelen:7d}\n")
    out.write(f"Total Length: {os.path.getsize(pakname)} bytes\n")