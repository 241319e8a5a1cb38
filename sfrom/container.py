from __future__ import annotations

import io
import os
from dataclasses import dataclass, field, replace
from typing import BinaryIO, Optional

from .constants import (
    CHIP_NONE,
    FOOTER_SIZE,
    FPS_NTSC,
    HEADER_SIZE,
    PLATFORM_ID_SIZE,
    ROM_TYPE_LOROM,
    SFROM_MAGIC,
)
from .errors import BadMagic, OutOfBounds
from .footer import Footer, decode_footer, encode_footer
from .header import Header, decode_header, encode_header
from .layout import Layout, plan_layout
from .tags import TagTable, decode_tags, encode_tags


# Byte position of each region offset inside the header, for error reporting
_OFFSET_FIELD_POS = {
    "rom_offset": 8,
    "audio_samples_offset": 12,
    "audio_trailer_offset": 16,
    "footer_offset": 20,
}

_U32_MAX = 0xFFFFFFFF


@dataclass(frozen=True)
class AudioRegion:
    samples: bytes
    trailer: bytes

    def __post_init__(self):
        # Both empty would put the samples offset on the footer offset, which reads back as "no audio".
        if not self.samples and not self.trailer:
            raise ValueError("audio region must not be empty; use audio=None for a container without audio")


@dataclass(frozen=True)
class Container:
    header: Header
    rom: bytes
    audio: Optional[AudioRegion]
    footer: Footer
    tags: TagTable = field(default_factory=TagTable)

    @property
    def has_audio(self) -> bool:
        return self.audio is not None

    def layout(self) -> Layout:
        return _plan(self, encode_tags(self.tags))

    def canonical_header(self) -> Header:
        """Header as write_container emits it: offsets and total size recomputed, reserved words zeroed."""
        return _header_for_layout(self.header, self.layout())

    @classmethod
    def create(
        cls,
        rom: bytes,
        *,
        audio: Optional[AudioRegion] = None,
        tags: Optional[TagTable] = None,
        frame_rate: int = FPS_NTSC,
        preset_id: int = 0,
        player_count: int = 1,
        volume: int = 0xFF,
        addressing_mode: int = ROM_TYPE_LOROM,
        hw_extension: int = CHIP_NONE,
        flags: int = 0,
        platform_id: bytes = b"\x00" * PLATFORM_ID_SIZE,
        codec_payload_offset: int = 0,
    ) -> "Container":
        """Author a container whose footer sizes and header offsets match the given blobs."""
        rom = bytes(rom)
        footer = Footer(
            frame_rate=frame_rate,
            rom_size=len(rom),
            audio_size=len(audio.samples) if audio is not None else 0,
            audio_trailer_size=len(audio.trailer) if audio is not None else 0,
            preset_id=preset_id,
            player_count=player_count,
            volume=volume,
            addressing_mode=addressing_mode,
            hw_extension=hw_extension,
        )
        draft = cls(
            header=Header(flags=flags, platform_id=bytes(platform_id), codec_payload_offset=codec_payload_offset),
            rom=rom,
            audio=audio,
            footer=footer,
            tags=tags if tags is not None else TagTable(),
        )
        return replace(draft, header=draft.canonical_header())


def _plan(container: Container, tags_blob: bytes) -> Layout:
    audio = container.audio
    audio_lens = (len(audio.samples), len(audio.trailer)) if audio is not None else None
    return plan_layout(len(container.rom), audio_lens, len(tags_blob))


def _header_for_layout(header: Header, layout: Layout) -> Header:
    if layout.total_size > _U32_MAX:
        raise ValueError(f"container too large: {layout.total_size} bytes")
    return replace(
        header,
        magic=SFROM_MAGIC,
        total_size=layout.total_size,
        rom_offset=layout.rom_start,
        audio_samples_offset=layout.audio_start,
        audio_trailer_offset=layout.audio_trailer_start,
        footer_offset=layout.footer_start,
        reserved1=0,
        reserved2=0,
    )


def _check_offsets(header: Header, size: int) -> None:
    # Only offsets that delimit a sliced region are checked. codec_payload_offset is a
    # side channel, and audio_trailer_offset carries no meaning when audio is absent.
    names = ["rom_offset"]
    if header.has_audio:
        names += ["audio_samples_offset", "audio_trailer_offset"]
    names.append("footer_offset")
    floor = HEADER_SIZE
    for name in names:
        value = getattr(header, name)
        pos = _OFFSET_FIELD_POS[name]
        if value > size:
            raise OutOfBounds(f"{name}=0x{value:X} exceeds buffer length 0x{size:X}", pos)
        if value < floor:
            raise OutOfBounds(f"{name}=0x{value:X} precedes previous boundary 0x{floor:X}", pos)
        floor = value


def parse_container(data: bytes) -> Container:
    """Parse a whole .sfrom buffer.

    Trailing bytes after the tag table are ignored.

    Raises:
        TruncatedHeader, BadMagic, OutOfBounds, TruncatedFooter, InvalidTagPayload
    """
    header = decode_header(data, 0)
    if header.magic != SFROM_MAGIC:
        raise BadMagic(f"bad magic 0x{header.magic:08X}, expected 0x{SFROM_MAGIC:08X}", 0)
    _check_offsets(header, len(data))

    rom = bytes(data[header.rom_offset : header.rom_end])
    audio = None
    if header.has_audio:
        audio = AudioRegion(
            samples=bytes(data[header.audio_samples_offset : header.audio_trailer_offset]),
            trailer=bytes(data[header.audio_trailer_offset : header.footer_offset]),
        )

    footer = decode_footer(data, header.footer_offset)
    tags, _rest = decode_tags(data, header.footer_offset + FOOTER_SIZE)
    return Container(header=header, rom=rom, audio=audio, footer=footer, tags=tags)


def write_container(container: Container, sink: BinaryIO) -> int:
    """Write ``container`` in canonical layout to ``sink`` and return the byte count.

    Offsets are recomputed from the blob sizes; offsets held in
    ``container.header`` are not consulted.
    """
    tags_blob = encode_tags(container.tags)
    audio = container.audio
    layout = _plan(container, tags_blob)
    header = _header_for_layout(container.header, layout)

    sink.write(encode_header(header))
    sink.write(container.rom)
    if audio is not None:
        sink.write(audio.samples)
        sink.write(audio.trailer)
    sink.write(encode_footer(container.footer))
    sink.write(tags_blob)
    return layout.total_size


def to_bytes(container: Container) -> bytes:
    buf = io.BytesIO()
    write_container(container, buf)
    return buf.getvalue()


def load(path: str) -> Container:
    with open(path, "rb") as fh:
        return parse_container(fh.read())


def save(container: Container, path: str) -> int:
    # The output size comes from the recomputed layout, never from a previously declared total_size.
    with open(path, "wb") as fh:
        written = write_container(container, fh)
        fh.flush()
        os.fsync(fh.fileno())
    return written
