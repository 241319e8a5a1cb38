from __future__ import annotations

import struct
from dataclasses import dataclass

from .constants import (
    CHIP_NONE,
    FOOTER_PADDING_SIZE,
    FOOTER_SIZE,
    FOOTER_UNKNOWN_DEFAULT,
    FPS_NTSC,
    ROM_TYPE_LOROM,
)
from .errors import TruncatedFooter
from .primitives import check_uint


# Footer (fixed 35 bytes), little endian:
#  frame_rate u8, rom_size u32, audio_size u32, audio_trailer_size u32,
#  preset_id u16, player_count u8, volume u8, addressing_mode u8, hw_extension u8,
#  unknown1 u32, unknown2 u32, padding[8]
_FOOTER_STRUCT = struct.Struct(f"<BIIIHBBBBII{FOOTER_PADDING_SIZE}s")
assert _FOOTER_STRUCT.size == FOOTER_SIZE

_FIELD_BITS = (
    ("frame_rate", 8),
    ("rom_size", 32),
    ("audio_size", 32),
    ("audio_trailer_size", 32),
    ("preset_id", 16),
    ("player_count", 8),
    ("volume", 8),
    ("addressing_mode", 8),
    ("hw_extension", 8),
    ("unknown1", 32),
    ("unknown2", 32),
)


@dataclass(frozen=True)
class Footer:
    frame_rate: int = FPS_NTSC
    rom_size: int = 0
    audio_size: int = 0
    audio_trailer_size: int = 0
    preset_id: int = 0
    player_count: int = 1
    volume: int = 0xFF
    addressing_mode: int = ROM_TYPE_LOROM
    hw_extension: int = CHIP_NONE
    unknown1: int = FOOTER_UNKNOWN_DEFAULT
    unknown2: int = FOOTER_UNKNOWN_DEFAULT
    padding: bytes = b"\x00" * FOOTER_PADDING_SIZE

    def __post_init__(self):
        for name, bits in _FIELD_BITS:
            check_uint(name, getattr(self, name), bits)
        if not isinstance(self.padding, bytes) or len(self.padding) != FOOTER_PADDING_SIZE:
            raise ValueError(f"footer padding must be {FOOTER_PADDING_SIZE} bytes")


def decode_footer(data: bytes, offset: int) -> Footer:
    if len(data) - offset < FOOTER_SIZE:
        raise TruncatedFooter(
            f"footer needs {FOOTER_SIZE} bytes, {max(len(data) - offset, 0)} available", offset
        )
    (
        frame_rate,
        rom_size,
        audio_size,
        audio_trailer_size,
        preset_id,
        player_count,
        volume,
        addressing_mode,
        hw_extension,
        unknown1,
        unknown2,
        padding,
    ) = _FOOTER_STRUCT.unpack_from(data, offset)
    return Footer(
        frame_rate=frame_rate,
        rom_size=rom_size,
        audio_size=audio_size,
        audio_trailer_size=audio_trailer_size,
        preset_id=preset_id,
        player_count=player_count,
        volume=volume,
        addressing_mode=addressing_mode,
        hw_extension=hw_extension,
        unknown1=unknown1,
        unknown2=unknown2,
        padding=padding,
    )


def encode_footer(footer: Footer) -> bytes:
    return _FOOTER_STRUCT.pack(
        footer.frame_rate,
        footer.rom_size,
        footer.audio_size,
        footer.audio_trailer_size,
        footer.preset_id,
        footer.player_count,
        footer.volume,
        footer.addressing_mode,
        footer.hw_extension,
        footer.unknown1,
        footer.unknown2,
        footer.padding,
    )
