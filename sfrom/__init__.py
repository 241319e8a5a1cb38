"""
sfrom — reader/writer for Wii U Virtual Console .sfrom containers.

Features:

- 48-byte header addressing the ROM, optional PCM audio pair and footer by offset.
- 35-byte footer with playback parameters (frame rate, players, volume, ROM
  addressing mode, enhancement chip).
- Self-terminating tag table after the footer (Armet threshold, S-DD1 codec
  table, preset id); unknown trailing bytes end the table without error.
- Canonical writer: offsets and total size are always recomputed from the
  payloads, so parse -> write is stable after one pass.
- CLI to inspect, extract, build and repack containers, plus a JSON game
  catalog reader (sfrom.gamelist) that is independent of the container codec.
"""

__version__ = "0.1"

__all__ = [
    "constants",
    "container",
    "header",
    "footer",
    "tags",
    "layout",
    "gamelist",
]

# Programmatic API lives in sfrom.container (parse_container/write_container,
# load/save, Container.create); the CLI is sfrom.cli:main.
