"""
Tag table encoder/decoder.

The tag table follows the footer and runs to the end of the container. Each
record is a single ASCII code byte followed by a payload whose shape is fixed
per code:

- A: Armet (epilepsy filter) threshold, 3 raw bytes
- D: S-DD1 codec table, u24 little-endian length || that many bytes
- G: preset id, 3 reserved bytes || u16 little-endian

The remaining documented codes (P S U a c d e h j m p r t v) have no
confirmed payload encoding. They are declared so they keep their place in the
canonical order, but reading one ends the table with an UnsupportedTagWarning
and a TagTable refuses to hold a value for one.

Decoding stops without error at the first byte that is not a supported code;
the remaining bytes are handed back to the caller. Encoding always walks the
codes in declaration order, so a table is byte-stable only once it has been
through the encoder.
"""

from __future__ import annotations

import struct
import warnings
from dataclasses import dataclass, fields
from typing import Any, Callable, Dict, List, Optional, Tuple

from . import constants as C
from .errors import InvalidTagPayload, ShortBuffer, UnsupportedTagWarning
from .primitives import encode_u24, read_bytes, read_u16, read_u24


@dataclass(frozen=True)
class TagTable:
    armet_threshold: Optional[bytes] = None      # A
    codec_data: Optional[bytes] = None           # D
    preset_id: Optional[int] = None              # G
    flags: Optional[bytes] = None                # P
    unknown_s: Optional[bytes] = None            # S
    superfx_clock: Optional[int] = None          # U
    armet_version: Optional[int] = None          # a
    snes_header_location: Optional[int] = None   # c
    unknown_d: Optional[int] = None              # d
    enhancement_chip: Optional[int] = None       # e
    resolution_ratio: Optional[int] = None       # h
    unknown_j: Optional[int] = None              # j
    mouse_flag: Optional[int] = None             # m
    max_players: Optional[int] = None            # p
    visible_height: Optional[int] = None         # r
    unknown_t: Optional[int] = None              # t
    volume: Optional[int] = None                 # v

    def __post_init__(self):
        for entry in TAG_CATALOG:
            value = getattr(self, entry.field)
            if value is None:
                continue
            if not entry.supported:
                raise ValueError(f"tag {entry.code!r} ({entry.field}) has no known payload encoding")
            entry.check(value)

    def items(self) -> List[Tuple[str, Any]]:
        """Present tags as (code, value) pairs in canonical order."""
        out = []
        for entry in TAG_CATALOG:
            value = getattr(self, entry.field)
            if value is not None:
                out.append((entry.code, value))
        return out

    def get(self, code: str) -> Any:
        entry = _CODEC_BY_CODE.get(code)
        if entry is None:
            raise KeyError(code)
        return getattr(self, entry.field)


def _decode_threshold(data: bytes, pos: int) -> Tuple[bytes, int]:
    return read_bytes(data, pos, C.ARMET_THRESHOLD_SIZE)


def _check_threshold(value: bytes) -> None:
    if not isinstance(value, (bytes, bytearray)) or len(value) != C.ARMET_THRESHOLD_SIZE:
        raise ValueError(f"armet_threshold must be {C.ARMET_THRESHOLD_SIZE} bytes")


def _encode_threshold(value: bytes) -> bytes:
    return bytes(value)


def _decode_codec_data(data: bytes, pos: int) -> Tuple[bytes, int]:
    n, pos = read_u24(data, pos)
    return read_bytes(data, pos, n)


def _check_codec_data(value: bytes) -> None:
    if not isinstance(value, (bytes, bytearray)):
        raise ValueError("codec_data must be bytes")
    if len(value) > C.MAX_U24:
        raise ValueError(f"codec_data longer than {C.MAX_U24} bytes")


def _encode_codec_data(value: bytes) -> bytes:
    return encode_u24(len(value)) + bytes(value)


def _decode_preset_id(data: bytes, pos: int) -> Tuple[int, int]:
    _, pos = read_bytes(data, pos, C.PRESET_TAG_SKIP)
    return read_u16(data, pos)


def _check_preset_id(value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= 0xFFFF:
        raise ValueError(f"preset_id must be an integer in 0..0xFFFF: {value!r}")


def _encode_preset_id(value: int) -> bytes:
    return b"\x00" * C.PRESET_TAG_SKIP + struct.pack("<H", value)


@dataclass(frozen=True)
class TagCodec:
    code: str
    field: str
    decode: Optional[Callable[[bytes, int], Tuple[Any, int]]] = None
    encode: Optional[Callable[[Any], bytes]] = None
    check: Optional[Callable[[Any], None]] = None

    @property
    def supported(self) -> bool:
        return self.decode is not None and self.encode is not None


# Canonical (declaration) order
TAG_CATALOG: Tuple[TagCodec, ...] = (
    TagCodec(C.TAG_ARMET_THRESHOLD, "armet_threshold", _decode_threshold, _encode_threshold, _check_threshold),
    TagCodec(C.TAG_CODEC_DATA, "codec_data", _decode_codec_data, _encode_codec_data, _check_codec_data),
    TagCodec(C.TAG_PRESET_ID, "preset_id", _decode_preset_id, _encode_preset_id, _check_preset_id),
    TagCodec(C.TAG_FLAGS, "flags"),
    TagCodec(C.TAG_UNKNOWN_S, "unknown_s"),
    TagCodec(C.TAG_SUPERFX_CLOCK, "superfx_clock"),
    TagCodec(C.TAG_ARMET_VERSION, "armet_version"),
    TagCodec(C.TAG_SNES_HEADER_LOCATION, "snes_header_location"),
    TagCodec(C.TAG_UNKNOWN_D, "unknown_d"),
    TagCodec(C.TAG_ENHANCEMENT_CHIP, "enhancement_chip"),
    TagCodec(C.TAG_RESOLUTION_RATIO, "resolution_ratio"),
    TagCodec(C.TAG_UNKNOWN_J, "unknown_j"),
    TagCodec(C.TAG_MOUSE_FLAG, "mouse_flag"),
    TagCodec(C.TAG_MAX_PLAYERS, "max_players"),
    TagCodec(C.TAG_VISIBLE_HEIGHT, "visible_height"),
    TagCodec(C.TAG_UNKNOWN_T, "unknown_t"),
    TagCodec(C.TAG_VOLUME, "volume"),
)

_CODEC_BY_CODE: Dict[str, TagCodec] = {s.code: s for s in TAG_CATALOG}
_CODEC_BY_BYTE: Dict[int, TagCodec] = {ord(s.code): s for s in TAG_CATALOG}

assert [s.field for s in TAG_CATALOG] == [f.name for f in fields(TagTable)]


def decode_tags(data: bytes, pos: int = 0) -> Tuple[TagTable, bytes]:
    """Decode tags starting at ``pos``.

    Returns the table and the bytes left unconsumed. Raises InvalidTagPayload
    (with the offset of the tag code) when a supported tag's payload runs past
    the end of ``data``.
    """
    values: Dict[str, Any] = {}
    n = len(data)
    while pos < n:
        entry = _CODEC_BY_BYTE.get(data[pos])
        if entry is None:
            break
        if not entry.supported:
            warnings.warn(
                f"tag {entry.code!r} at offset 0x{pos:X} has no known payload encoding; tag table ends here",
                UnsupportedTagWarning,
                stacklevel=2,
            )
            break
        try:
            value, next_pos = entry.decode(data, pos + 1)
        except ShortBuffer as exc:
            raise InvalidTagPayload(
                f"tag {entry.code!r} payload truncated: need {exc.needed} byte(s) at 0x{exc.offset:X}, "
                f"{exc.available} available",
                pos,
            ) from exc
        values[entry.field] = value
        pos = next_pos
    return TagTable(**values), bytes(data[pos:])


def encode_tags(table: TagTable) -> bytes:
    out = bytearray()
    for entry in TAG_CATALOG:
        value = getattr(table, entry.field)
        if value is None:
            continue
        out += entry.code.encode("ascii")
        out += entry.encode(value)
    return bytes(out)


def encoded_tags_size(table: TagTable) -> int:
    return len(encode_tags(table))
