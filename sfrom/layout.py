from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .constants import FOOTER_SIZE, HEADER_SIZE


@dataclass(frozen=True)
class Layout:
    """Canonical region placement for one container.

    Without audio, ``audio_start``, ``audio_trailer_start`` and
    ``footer_start`` all equal ``rom_end``.
    """

    rom_start: int
    rom_end: int
    audio_start: int
    audio_trailer_start: int
    footer_start: int
    tags_start: int
    total_size: int
    has_audio: bool


def plan_layout(rom_len: int, audio_lens: Optional[Tuple[int, int]] = None, tags_len: int = 0) -> Layout:
    """Place ROM, optional audio pair, footer and tag table back to back after the header.

    Args:
        rom_len: ROM blob length.
        audio_lens: (samples_len, trailer_len), or None when there is no audio.
        tags_len: Encoded tag table length.
    """
    rom_start = HEADER_SIZE
    rom_end = rom_start + rom_len
    if audio_lens is not None:
        samples_len, trailer_len = audio_lens
        audio_start = rom_end
        audio_trailer_start = audio_start + samples_len
        footer_start = audio_trailer_start + trailer_len
    else:
        audio_start = audio_trailer_start = footer_start = rom_end
    tags_start = footer_start + FOOTER_SIZE
    return Layout(
        rom_start=rom_start,
        rom_end=rom_end,
        audio_start=audio_start,
        audio_trailer_start=audio_trailer_start,
        footer_start=footer_start,
        tags_start=tags_start,
        total_size=tags_start + tags_len,
        has_audio=audio_lens is not None,
    )
