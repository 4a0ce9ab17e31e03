"""Reading and writing 8-bit IFF LBM/PBM and uncompressed BMP images."""

from __future__ import annotations

import struct
from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Optional

from hltools.common import ToolError, load_file, save_file

__all__ = [
    "Masking",
    "Compression",
    "BitmapHeader",
    "Image",
    "rle_decompress",
    "load_lbm",
    "write_lbm",
    "load_bmp",
    "write_bmp",
]

_PALETTE_SIZE = 768

_CHUNK = struct.Struct(">4si")
_BMP_FILE_HEADER = struct.Struct("<2sIHHI")
_BMP_INFO_HEADER = struct.Struct("<IiiHHIIiiII")
_BI_RGB = 0


class Masking(IntEnum):
    """How an IFF image marks its transparent pixels."""

    NONE = 0
    MASK = 1
    TRANSCOLOR = 2
    LASSO = 3


class Compression(IntEnum):
    """How an IFF image body is stored."""

    NONE = 0
    RLE1 = 1


@dataclass(frozen=True)
class BitmapHeader:
    """The BMHD chunk of an IFF image."""

    width: int = 0
    height: int = 0
    x: int = 0
    y: int = 0
    n_planes: int = 0
    masking: int = Masking.NONE
    compression: int = Compression.NONE
    pad1: int = 0
    transparent_color: int = 0
    x_aspect: int = 0
    y_aspect: int = 0
    page_width: int = 0
    page_height: int = 0

    _STRUCT = struct.Struct(">HHhhBBBBHBBhh")

    def _pack(self) -> bytes:
        return self._STRUCT.pack(
            self.width, self.height, self.x, self.y, self.n_planes, self.masking,
            self.compression, self.pad1, self.transparent_color, self.x_aspect,
            self.y_aspect, self.page_width, self.page_height,
        )

    @classmethod
    def _unpack(cls, data: bytes) -> "BitmapHeader":
        if len(data) < cls._STRUCT.size:
            raise ToolError("BMHD chunk is too short")
        return cls(*cls._STRUCT.unpack_from(data))


@dataclass(frozen=True)
class Image:
    """A paletted image: 8-bit pixels and a 768-byte RGB palette."""

    header: BitmapHeader
    pixels: Optional[bytes]
    palette: Optional[bytes]

    @property
    def width(self) -> int:
        return self.header.width

    @property
    def height(self) -> int:
        return self.header.height


def _align(length: int) -> int:
    return length + 1 if length & 1 else length


def rle_decompress(source: bytes, offset: int, width: int) -> tuple[bytes, int]:
    """Unpack one ByteRun1 row of ``width`` bytes starting at ``offset``.

    Returns the row and the offset just past the packed data.
    """
    out = bytearray()
    pos = offset
    while len(out) < width:
        if pos >= len(source):
            raise ToolError("Decompression ran past the end of the data")
        rept = source[pos]
        pos += 1
        if rept > 0x80:
            if pos >= len(source):
                raise ToolError("Decompression ran past the end of the data")
            out.extend(bytes((source[pos],)) * (257 - rept))
            pos += 1
        elif rept < 0x80:
            count = rept + 1
            if pos + count > len(source):
                raise ToolError("Decompression ran past the end of the data")
            out.extend(source[pos : pos + count])
            pos += count
        # 0x80 is a no-op
    if len(out) > width:
        raise ToolError("Decompression exceeded width!\n")
    return bytes(out), pos


def _unpack_pbm(data: bytes, body: int, header: BitmapHeader) -> bytes:
    width, height = header.width, header.height
    rows = []
    for _ in range(height):
        if header.compression == Compression.RLE1:
            row, body = rle_decompress(data, body, width)
        elif header.compression == Compression.NONE:
            row = data[body : body + width]
            if len(row) < width:
                raise ToolError("BODY chunk is too short")
            body += _align(width)
        else:
            row = bytes(width)
        rows.append(row)
    return b"".join(rows)


def _unpack_ilbm(header: BitmapHeader) -> bytes:
    if header.n_planes not in (1, 2, 4, 8):
        raise ToolError(f"Can't munge {header.n_planes} bit planes!\n")
    if header.height > 0:
        raise ToolError(f"MungeBitPlanes{header.n_planes} not rewritten!")
    return b""


def load_lbm(filename: str) -> Image:
    """Read an IFF PBM image; ILBM bodies with rows are rejected."""
    data = load_file(filename)
    if data[:4] != b"FORM":
        raise ToolError("No FORM ID at start of file!\n")
    if len(data) < 12:
        raise ToolError("No form type in file!\n")
    (formlength,) = struct.unpack_from(">i", data, 4)
    end = 8 + _align(formlength)
    formtype = data[8:12]
    if formtype not in (b"ILBM", b"PBM "):
        raise ToolError(f"Unrecognized form type: {formtype.decode('latin-1')}\n")

    header = BitmapHeader()
    pixels: Optional[bytes] = None
    palette: Optional[bytes] = None
    pos = 12
    while pos < end:
        if pos + _CHUNK.size > len(data):
            raise ToolError("Chunk header runs past the end of the file")
        chunktype, chunklength = _CHUNK.unpack_from(data, pos)
        pos += _CHUNK.size
        chunk = data[pos : pos + chunklength]
        if chunktype == b"BMHD":
            header = BitmapHeader._unpack(chunk)
        elif chunktype == b"CMAP":
            palette = bytes(chunk[:_PALETTE_SIZE]).ljust(_PALETTE_SIZE, b"\0")
        elif chunktype == b"BODY":
            if formtype == b"PBM ":
                pixels = _unpack_pbm(data, pos, header)
            else:
                pixels = _unpack_ilbm(header)
        pos += _align(chunklength)

    return Image(header, pixels, palette)


def _chunk(name: bytes, payload: bytes) -> bytes:
    return _CHUNK.pack(name, len(payload)) + payload + bytes(len(payload) & 1)


def write_lbm(filename: str, data: bytes, width: int, height: int, palette: bytes) -> None:
    """Write an uncompressed IFF PBM image with a 256-colour palette."""
    if len(data) < width * height:
        raise ToolError("image data shorter than width * height")
    if len(palette) < _PALETTE_SIZE:
        raise ToolError("palette shorter than 768 bytes")
    header = BitmapHeader(
        width=width,
        height=height,
        n_planes=8,
        x_aspect=5,
        y_aspect=6,
        page_width=width,
        page_height=height,
    )
    form = (
        b"PBM "
        + _chunk(b"BMHD", header._pack())
        + _chunk(b"CMAP", bytes(palette[:_PALETTE_SIZE]))
        + _chunk(b"BODY", bytes(data[: width * height]))
    )
    save_file(filename, _chunk(b"FORM", form))


def load_bmp(filename: str) -> Image:
    """Read an uncompressed 8-bit BMP; rows come back top first, 4-byte aligned."""
    try:
        with open(filename, "rb") as handle:
            data = handle.read()
    except OSError as exc:
        raise ToolError("unable to open BMP file") from exc

    if len(data) < _BMP_FILE_HEADER.size:
        raise ToolError("BMP file header could not be read")
    _type, bf_size, reserved1, reserved2, _offbits = _BMP_FILE_HEADER.unpack_from(data)
    if reserved1 != 0 or reserved2 != 0:
        raise ToolError("invalid BMP file")

    pos = _BMP_FILE_HEADER.size
    if len(data) < pos + _BMP_INFO_HEADER.size:
        raise ToolError("BMP info header could not be read")
    (bi_size, bi_width, bi_height, bi_planes, bi_bitcount, bi_compression,
     _size_image, _xppm, _yppm, clr_used, _clr_important) = _BMP_INFO_HEADER.unpack_from(data, pos)
    pos += _BMP_INFO_HEADER.size

    if bi_size != _BMP_INFO_HEADER.size or bi_planes != 1:
        raise ToolError("invalid BMP file header")
    if bi_bitcount != 8:
        raise ToolError("BMP file not 8 bit")
    if bi_compression != _BI_RGB:
        raise ToolError("invalid BMP compression type")

    if clr_used == 0:
        clr_used = 256
    if clr_used > 256:
        raise ToolError("invalid BMP palette size")
    quads = data[pos : pos + clr_used * 4]
    if len(quads) != clr_used * 4:
        raise ToolError("BMP palette could not be read")
    pos += clr_used * 4

    palette = bytearray()
    for index in range(clr_used):
        blue, green, red = quads[index * 4 : index * 4 + 3]
        palette.extend((red, green, blue))
    palette = palette.ljust(_PALETTE_SIZE, b"\0")

    count = bf_size - pos
    bits = data[pos : pos + count] if count > 0 else b""
    if count < 0 or len(bits) != count:
        raise ToolError("BMP bits could not be read")

    stride = (bi_width + 3) & ~3
    if bi_height < 0 or stride * bi_height > len(bits):
        raise ToolError("BMP bits are shorter than the image")
    rows = [bits[row * stride : (row + 1) * stride] for row in range(bi_height)]
    pixels = b"".join(reversed(rows))

    header = BitmapHeader(width=bi_width & 0xFFFF, height=bi_height & 0xFFFF)
    return Image(header, pixels, bytes(palette))


def write_bmp(filename: str, bits: bytes, width: int, height: int, palette: bytes) -> None:
    """Write an uncompressed 8-bit BMP with rows padded to four bytes."""
    if bits is None or palette is None:
        raise ToolError("invalid BMP parameters")
    if len(bits) < width * height:
        raise ToolError("image data shorter than width * height")
    if len(palette) < _PALETTE_SIZE:
        raise ToolError("palette shorter than 768 bytes")

    stride = (width + 3) & ~3
    bmp_bits = stride * height
    pal_bytes = 256 * 4
    headers = _BMP_FILE_HEADER.size + _BMP_INFO_HEADER.size
    file_header = _BMP_FILE_HEADER.pack(b"BM", headers + bmp_bits + pal_bytes, 0, 0, headers + pal_bytes)
    info_header = _BMP_INFO_HEADER.pack(
        _BMP_INFO_HEADER.size, stride, height, 1, 8, _BI_RGB, 0, 0, 0, 256, 0
    )
    quads = bytearray()
    for index in range(256):
        red, green, blue = palette[index * 3 : index * 3 + 3]
        quads.extend((blue, green, red, 0))

    pad = bytes(stride - width)
    rows = [bytes(bits[row * width : (row + 1) * width]) + pad for row in range(height)]
    body = b"".join(reversed(rows))
    save_file(filename, file_header + info_header + bytes(quads) + body)


def _with_size(header: BitmapHeader, width: int, height: int) -> BitmapHeader:
    return replace(header, width=width, height=height)