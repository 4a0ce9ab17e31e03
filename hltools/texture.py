"""Texture type flags and RGBA mipmap reduction."""

from __future__ import annotations

from enum import IntEnum

__all__ = ["TextureType", "is_alpha_type", "mipmap"]


class TextureType(IntEnum):
    """How a texture's alpha channel is used."""

    NONE = 0
    ALPHA = 1
    LUM = 2
    ALPHA_GRADIENT = 3
    RGBA = 4


_ALPHA_TYPES = frozenset({TextureType.ALPHA, TextureType.ALPHA_GRADIENT, TextureType.RGBA})


def is_alpha_type(texture_type: int) -> bool:
    """Return True for texture types that carry transparency."""
    return texture_type in _ALPHA_TYPES


def mipmap(data: bytes, width: int, height: int) -> bytes:
    """Halve an RGBA image by averaging each 2x2 block of pixels.

    An odd final row is dropped. Returns ``(width // 2) * (height // 2)`` pixels.
    """
    if width % 2:
        raise ValueError("mipmap width must be even")
    row = width * 4
    if len(data) < row * height:
        raise ValueError("image data shorter than width * height * 4")
    out = bytearray()
    for y in range(height // 2):
        top = data[2 * y * row : 2 * y * row + row]
        bottom = data[(2 * y + 1) * row : (2 * y + 2) * row]
        for x in range(0, row, 8):
            out.extend(
                (top[x + c] + top[x + 4 + c] + bottom[x + c] + bottom[x + 4 + c]) >> 2
                for c in range(4)
            )
    return bytes(out)