from __future__ import annotations

import struct
from dataclasses import dataclass

from .constants import HEADER_SIZE, PLATFORM_ID_SIZE, SFROM_MAGIC
from .errors import TruncatedHeader
from .primitives import check_uint


# Header (fixed 48 bytes), little endian:
#  magic u32, total_size u32,
#  rom_offset u32, audio_samples_offset u32, audio_trailer_offset u32, footer_offset u32,
#  codec_payload_offset u32 (S-DD1 side channel), reserved1 u32,
#  flags u32, platform_id[8], reserved2 u32
_HEADER_STRUCT = struct.Struct("<IIIIIIIII8sI")
assert _HEADER_STRUCT.size == HEADER_SIZE

_U32_FIELDS = (
    "magic",
    "total_size",
    "rom_offset",
    "audio_samples_offset",
    "audio_trailer_offset",
    "footer_offset",
    "codec_payload_offset",
    "reserved1",
    "flags",
    "reserved2",
)


@dataclass(frozen=True)
class Header:
    magic: int = SFROM_MAGIC
    total_size: int = 0
    rom_offset: int = HEADER_SIZE
    audio_samples_offset: int = HEADER_SIZE
    audio_trailer_offset: int = HEADER_SIZE
    footer_offset: int = HEADER_SIZE
    codec_payload_offset: int = 0
    reserved1: int = 0
    flags: int = 0
    platform_id: bytes = b"\x00" * PLATFORM_ID_SIZE
    reserved2: int = 0

    def __post_init__(self):
        for name in _U32_FIELDS:
            check_uint(name, getattr(self, name), 32)
        if not isinstance(self.platform_id, bytes) or len(self.platform_id) != PLATFORM_ID_SIZE:
            raise ValueError(f"platform_id must be {PLATFORM_ID_SIZE} bytes")

    @property
    def has_audio(self) -> bool:
        # An audio region is absent when samples start where the footer does.
        return self.audio_samples_offset != self.footer_offset

    @property
    def rom_end(self) -> int:
        return self.audio_samples_offset if self.has_audio else self.footer_offset


def decode_header(data: bytes, offset: int = 0) -> Header:
    if len(data) - offset < HEADER_SIZE:
        raise TruncatedHeader(
            f"header needs {HEADER_SIZE} bytes, {max(len(data) - offset, 0)} available", offset
        )
    (
        magic,
        total_size,
        rom_offset,
        audio_samples_offset,
        audio_trailer_offset,
        footer_offset,
        codec_payload_offset,
        reserved1,
        flags,
        platform_id,
        reserved2,
    ) = _HEADER_STRUCT.unpack_from(data, offset)
    return Header(
        magic=magic,
        total_size=total_size,
        rom_offset=rom_offset,
        audio_samples_offset=audio_samples_offset,
        audio_trailer_offset=audio_trailer_offset,
        footer_offset=footer_offset,
        codec_payload_offset=codec_payload_offset,
        reserved1=reserved1,
        flags=flags,
        platform_id=platform_id,
        reserved2=reserved2,
    )


def encode_header(header: Header) -> bytes:
    return _HEADER_STRUCT.pack(
        header.magic,
        header.total_size,
        header.rom_offset,
        header.audio_samples_offset,
        header.audio_trailer_offset,
        header.footer_offset,
        header.codec_payload_offset,
        header.reserved1,
        header.flags,
        header.platform_id,
        header.reserved2,
    )
