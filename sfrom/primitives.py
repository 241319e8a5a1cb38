"""
Little-endian readers over an in-memory buffer.

Every reader takes ``(data, pos)`` and returns ``(value, new_pos)``; a read
that would run past the end of ``data`` raises ShortBuffer carrying the
position of the failed read.
"""

from __future__ import annotations

import struct
from typing import Tuple

from .constants import MAX_U24
from .errors import ShortBuffer


_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")


def require(data: bytes, pos: int, n: int) -> None:
    if pos < 0 or pos + n > len(data):
        raise ShortBuffer(pos, n, len(data) - pos)


def read_bytes(data: bytes, pos: int, n: int) -> Tuple[bytes, int]:
    require(data, pos, n)
    return bytes(data[pos : pos + n]), pos + n


def read_u8(data: bytes, pos: int) -> Tuple[int, int]:
    require(data, pos, 1)
    return data[pos], pos + 1


def read_u16(data: bytes, pos: int) -> Tuple[int, int]:
    require(data, pos, _U16.size)
    return _U16.unpack_from(data, pos)[0], pos + _U16.size


def read_u24(data: bytes, pos: int) -> Tuple[int, int]:
    require(data, pos, 3)
    return data[pos] | (data[pos + 1] << 8) | (data[pos + 2] << 16), pos + 3


def read_u32(data: bytes, pos: int) -> Tuple[int, int]:
    require(data, pos, _U32.size)
    return _U32.unpack_from(data, pos)[0], pos + _U32.size


def encode_u24(n: int) -> bytes:
    if n < 0 or n > MAX_U24:
        raise ValueError(f"u24: value out of range: {n}")
    return _U32.pack(n)[:3]


def check_uint(name: str, value: int, bits: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"{name} must be an integer, got {type(value).__name__}")
    if value < 0 or value >> bits:
        raise ValueError(f"{name} does not fit in {bits} bits: {value}")
