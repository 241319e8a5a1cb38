from __future__ import annotations

import argparse
import json as _json
import os
import sys
import warnings
from typing import Any, Dict, List, Optional

from sfrom.constants import (
    CHIP_NAMES,
    FPS_NTSC,
    FPS_PAL,
    PLATFORM_ID_SIZE,
    ROM_TYPE_HIROM,
    ROM_TYPE_LOROM,
    ROM_TYPE_NAMES,
)
from sfrom.container import AudioRegion, Container, load, parse_container, save, to_bytes
from sfrom.errors import SfromError, UnsupportedTagWarning
from sfrom.gamelist import GameList
from sfrom.tags import TagTable


def _load_reporting(path: str) -> Container:
    """Load a container, reporting unsupported-tag warnings on stderr."""
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", UnsupportedTagWarning)
        c = load(path)
    for w in caught:
        print(f"Warning: {w.message}", file=sys.stderr)
    return c


def _fmt_tag(value: Any) -> Any:
    if isinstance(value, bytes):
        return value.hex() if len(value) <= 16 else f"{len(value)} bytes"
    return value


def _describe(c: Container) -> Dict[str, Any]:
    h, f = c.header, c.footer
    return {
        "header": {
            "magic": h.magic,
            "total_size": h.total_size,
            "rom_offset": h.rom_offset,
            "audio_samples_offset": h.audio_samples_offset,
            "audio_trailer_offset": h.audio_trailer_offset,
            "footer_offset": h.footer_offset,
            "codec_payload_offset": h.codec_payload_offset,
            "flags": h.flags,
            "platform_id": h.platform_id.hex(),
        },
        "rom_size": len(c.rom),
        "audio": (
            {"samples_size": len(c.audio.samples), "trailer_size": len(c.audio.trailer)}
            if c.audio is not None
            else None
        ),
        "footer": {
            "frame_rate": f.frame_rate,
            "rom_size": f.rom_size,
            "audio_size": f.audio_size,
            "audio_trailer_size": f.audio_trailer_size,
            "preset_id": f.preset_id,
            "player_count": f.player_count,
            "volume": f.volume,
            "addressing_mode": ROM_TYPE_NAMES.get(f.addressing_mode, f"0x{f.addressing_mode:02X}"),
            "hw_extension": CHIP_NAMES.get(f.hw_extension, f"0x{f.hw_extension:02X}"),
        },
        "tags": {code: _fmt_tag(value) for code, value in c.tags.items()},
    }


def cmd_info(path: str, *, as_json: bool = False) -> bool:
    """Print header, footer and tag table of a container.

    Args:
        path: Path to a .sfrom file.
        as_json: Emit a JSON document instead of text.
    """
    c = _load_reporting(path)
    desc = _describe(c)
    if as_json:
        print(_json.dumps(desc))
        return True
    h = desc["header"]
    print(f"File: {path}")
    print(f"  total_size:     {h['total_size']}")
    print(f"  platform_id:    {h['platform_id']}")
    print(f"  flags:          0x{h['flags']:08X}")
    print(f"  rom:            {desc['rom_size']} bytes @ 0x{h['rom_offset']:X}")
    if desc["audio"] is None:
        print("  audio:          none")
    else:
        a = desc["audio"]
        print(f"  audio:          {a['samples_size']} bytes @ 0x{h['audio_samples_offset']:X}")
        print(f"  audio trailer:  {a['trailer_size']} bytes @ 0x{h['audio_trailer_offset']:X}")
    print(f"  footer:         @ 0x{h['footer_offset']:X}")
    for k, v in desc["footer"].items():
        print(f"    {k + ':':<20}{v}")
    if desc["tags"]:
        print("  tags:")
        for code, v in desc["tags"].items():
            print(f"    {code}: {v}")
    else:
        print("  tags:           none")
    return True


def cmd_extract(path: str, *, outdir: str = ".") -> List[str]:
    """Write the ROM, audio pair and S-DD1 codec table of a container to files in ``outdir``."""
    c = _load_reporting(path)
    os.makedirs(outdir, exist_ok=True)
    stem = os.path.splitext(os.path.basename(path))[0]
    parts = [(".sfc", c.rom)]
    if c.audio is not None:
        parts += [(".pcm", c.audio.samples), (".pcmtrailer", c.audio.trailer)]
    if c.tags.codec_data is not None:
        parts.append((".sdd1", c.tags.codec_data))
    written = []
    for ext, blob in parts:
        dst = os.path.join(outdir, stem + ext)
        with open(dst, "wb") as fh:
            fh.write(blob)
        print(f"  extracting: {dst} ({len(blob)} bytes)")
        written.append(dst)
    return written


def _read_file(path: Optional[str]) -> Optional[bytes]:
    if path is None:
        return None
    with open(path, "rb") as fh:
        return fh.read()


def _parse_platform_id(text: Optional[str]) -> bytes:
    if not text:
        return b"\x00" * PLATFORM_ID_SIZE
    raw = text.encode("ascii")
    if len(raw) > PLATFORM_ID_SIZE:
        raise ValueError(f"platform id longer than {PLATFORM_ID_SIZE} characters: {text!r}")
    return raw.ljust(PLATFORM_ID_SIZE, b"\x00")


def cmd_build(
    output: str,
    rom: str,
    *,
    pcm: Optional[str] = None,
    pcm_trailer: Optional[str] = None,
    fps: int = FPS_NTSC,
    players: int = 1,
    volume: int = 0xFF,
    rom_type: str = "lorom",
    chip: str = "none",
    preset_id: int = 0,
    armet_threshold: Optional[str] = None,
    codec_data: Optional[str] = None,
    platform_id: Optional[str] = None,
) -> int:
    """Author a new container from a ROM image and optional audio pair."""
    if (pcm is None) != (pcm_trailer is None):
        raise ValueError("--pcm and --pcm-trailer must be given together")
    audio = None
    if pcm is not None:
        audio = AudioRegion(samples=_read_file(pcm), trailer=_read_file(pcm_trailer))

    threshold = None
    if armet_threshold is not None:
        try:
            threshold = bytes.fromhex(armet_threshold)
        except ValueError as exc:
            raise ValueError(f"--armet-threshold must be hex: {armet_threshold!r}") from exc
    preset_tag = preset_id if preset_id else None
    tags = TagTable(armet_threshold=threshold, codec_data=_read_file(codec_data), preset_id=preset_tag)

    chip_codes = {name: code for code, name in CHIP_NAMES.items()}
    c = Container.create(
        _read_file(rom),
        audio=audio,
        tags=tags,
        frame_rate=fps,
        preset_id=preset_id,
        player_count=players,
        volume=volume,
        addressing_mode=ROM_TYPE_HIROM if rom_type == "hirom" else ROM_TYPE_LOROM,
        hw_extension=chip_codes[chip],
        platform_id=_parse_platform_id(platform_id),
    )
    written = save(c, output)
    print(f"Wrote {output}: {written} bytes")
    return written


def cmd_repack(src: str, output: str) -> bool:
    """Rewrite a container in canonical layout. Returns True when the bytes changed."""
    with open(src, "rb") as fh:
        original = fh.read()
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", UnsupportedTagWarning)
        c = parse_container(original)
        data = to_bytes(c)
    for w in caught:
        print(f"Warning: {w.message}", file=sys.stderr)
    with open(output, "wb") as fh:
        fh.write(data)
    changed = data != original
    print(f"Wrote {output}: {len(data)} bytes ({'canonicalised' if changed else 'unchanged'})")
    return changed


def cmd_titles(catalog: str, *, code: Optional[str] = None) -> bool:
    """List titles from a JSON game catalog."""
    gl = GameList.load(catalog)
    if code is not None:
        t = gl.get(code)
        if t is None:
            raise ValueError(f"no title {code!r} in {catalog}")
        print(_json.dumps(t.to_dict(), ensure_ascii=False, indent=2))
        return True
    for key, t in gl.titles.items():
        print(f"{key}\t{t.release_date}\t{t.publisher}\t{t.title}")
    return True


def main(argv: List[str] | None = None):
    ap = argparse.ArgumentParser(
        prog="sfrom",
        description="Wii U Virtual Console .sfrom container tool",
    )
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_info = sub.add_parser("info", help="Show container information")
    ap_info.add_argument("file", help=".sfrom path")
    ap_info.add_argument("--json", action="store_true", help="Emit JSON")

    ap_extract = sub.add_parser("extract", help="Extract ROM, audio and codec table")
    ap_extract.add_argument("file", help=".sfrom path")
    ap_extract.add_argument("--outdir", default=".", help="Output directory")

    ap_build = sub.add_parser("build", help="Build a container from a ROM image")
    ap_build.add_argument("output", help="Output .sfrom path")
    ap_build.add_argument("--rom", required=True, help="ROM image path")
    ap_build.add_argument("--pcm", help="PCM sample data path (requires --pcm-trailer)")
    ap_build.add_argument("--pcm-trailer", help="PCM trailer path (requires --pcm)")
    ap_build.add_argument("--fps", type=int, choices=[FPS_NTSC, FPS_PAL], default=FPS_NTSC, help="Frame rate (default 60)")
    ap_build.add_argument("--players", type=int, default=1, help="Player count (default 1)")
    ap_build.add_argument("--volume", type=int, default=0xFF, help="Output volume 0-255 (default 255)")
    ap_build.add_argument("--rom-type", choices=sorted(ROM_TYPE_NAMES.values()), default="lorom", help="ROM addressing mode")
    ap_build.add_argument("--chip", choices=list(CHIP_NAMES.values()), default="none", help="Enhancement chip")
    ap_build.add_argument("--preset-id", type=lambda s: int(s, 0), default=0, help="Preset id (also written as a 'G' tag when non-zero)")
    ap_build.add_argument("--armet-threshold", help="Armet threshold as 6 hex digits ('A' tag)")
    ap_build.add_argument("--codec-data", help="S-DD1 codec table path ('D' tag)")
    ap_build.add_argument("--platform-id", help=f"Platform id, up to {PLATFORM_ID_SIZE} ASCII characters")

    ap_repack = sub.add_parser("repack", help="Rewrite a container in canonical layout")
    ap_repack.add_argument("file", help="Input .sfrom path")
    ap_repack.add_argument("output", help="Output .sfrom path")

    ap_titles = sub.add_parser("titles", help="List titles from a JSON game catalog")
    ap_titles.add_argument("catalog", help="Catalog JSON path")
    ap_titles.add_argument("--code", help="Show one title in full")

    args = ap.parse_args(argv)
    try:
        if args.cmd == "info":
            cmd_info(args.file, as_json=args.json)
        elif args.cmd == "extract":
            cmd_extract(args.file, outdir=args.outdir)
        elif args.cmd == "build":
            cmd_build(
                args.output,
                args.rom,
                pcm=args.pcm,
                pcm_trailer=args.pcm_trailer,
                fps=args.fps,
                players=args.players,
                volume=args.volume,
                rom_type=args.rom_type,
                chip=args.chip,
                preset_id=args.preset_id,
                armet_threshold=args.armet_threshold,
                codec_data=args.codec_data,
                platform_id=args.platform_id,
            )
        elif args.cmd == "repack":
            cmd_repack(args.file, args.output)
        elif args.cmd == "titles":
            cmd_titles(args.catalog, code=args.code)
        else:
            raise RuntimeError("Unknown command")
    except (SfromError, ValueError, OSError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
