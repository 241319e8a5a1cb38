from __future__ import annotations

import io
import os
import struct
import tempfile
import unittest
from dataclasses import replace
from pathlib import Path

from sfrom.constants import FOOTER_SIZE, HEADER_SIZE, SFROM_MAGIC
from sfrom.container import AudioRegion, Container, load, parse_container, save, to_bytes, write_container
from sfrom.errors import BadMagic, InvalidTagPayload, OutOfBounds, SfromError, TruncatedFooter, TruncatedHeader
from sfrom.tags import TagTable, encode_tags


_HDR = struct.Struct("<IIIIIIIII8sI")
_FTR = struct.Struct("<BIIIHBBBBII8s")


def _header(total, rom, samples, trailer, footer, *, magic=SFROM_MAGIC, reserved1=0, flags=0, platform_id=b"\x00" * 8):
    return _HDR.pack(magic, total, rom, samples, trailer, footer, 0, reserved1, flags, platform_id, 0)


def _footer(rom_size, audio_size=0, trailer_size=0, *, preset_id=0, players=1, volume=255, mode=0x14, chip=0):
    return _FTR.pack(0x3C, rom_size, audio_size, trailer_size, preset_id, players, volume, mode, chip, 1, 1, b"\x00" * 8)


def _scenario_bytes() -> bytes:
    rom = bytes(range(10))
    return _header(93, 48, 58, 58, 58) + rom + _footer(10)


def _sample_container() -> Container:
    return Container.create(
        b"\x78\x18\xfb" * 400,
        audio=AudioRegion(samples=os.urandom(256), trailer=b"PCMF" + b"\x00" * 12),
        tags=TagTable(armet_threshold=b"\x10\x20\x30", codec_data=b"sdd1-table" * 10, preset_id=0x10A2),
        preset_id=0x10A2,
        player_count=2,
        platform_id=b"WUP-JAAE",
    )


class ParseTests(unittest.TestCase):
    def test_scenario_without_audio(self):
        data = _scenario_bytes()
        c = parse_container(data)
        self.assertEqual(c.rom, bytes(range(10)))
        self.assertIsNone(c.audio)
        self.assertFalse(c.has_audio)
        self.assertEqual(c.footer.frame_rate, 0x3C)
        self.assertEqual(c.footer.rom_size, 10)
        self.assertEqual(c.footer.volume, 255)
        self.assertEqual(c.tags, TagTable())
        out = to_bytes(c)
        self.assertEqual(len(out), 93)
        self.assertEqual(out, data)
        self.assertEqual(struct.unpack_from("<I", out, 4)[0], 93)

    def test_audio_regions_sliced(self):
        rom, pcm, trl = b"R" * 16, b"P" * 8, b"T" * 4
        footer_at = HEADER_SIZE + 16 + 8 + 4
        data = _header(footer_at + FOOTER_SIZE, 48, 64, 72, footer_at) + rom + pcm + trl + _footer(16, 8, 4)
        c = parse_container(data)
        self.assertEqual(c.rom, rom)
        self.assertEqual(c.audio, AudioRegion(samples=pcm, trailer=trl))
        self.assertEqual(to_bytes(c), data)

    def test_sentinel_ignores_trailer_offset(self):
        data = bytearray(_scenario_bytes())
        struct.pack_into("<I", data, 16, 0xFFFFFF)
        c = parse_container(bytes(data))
        self.assertIsNone(c.audio)
        out = to_bytes(c)
        samples_off, trailer_off, footer_off = struct.unpack_from("<III", out, 12)
        self.assertEqual(samples_off, footer_off)
        self.assertEqual(trailer_off, footer_off)

    def test_codec_payload_offset_not_bounds_checked(self):
        data = bytearray(_scenario_bytes())
        struct.pack_into("<I", data, 24, 0xFFFFFFF0)
        c = parse_container(bytes(data))
        self.assertEqual(c.header.codec_payload_offset, 0xFFFFFFF0)
        self.assertEqual(c.rom, bytes(range(10)))
        self.assertEqual(to_bytes(c), bytes(data))

    def test_tags_after_footer_and_trailing_bytes(self):
        tags = b"G\x00\x00\x00\x34\x12"
        data = _header(99, 48, 58, 58, 58) + bytes(10) + _footer(10) + tags + b"\x00junk"
        c = parse_container(data)
        self.assertEqual(c.tags, TagTable(preset_id=0x1234))
        self.assertEqual(to_bytes(c), data[:-5])

    def test_truncated_header(self):
        with self.assertRaises(TruncatedHeader):
            parse_container(_scenario_bytes()[:HEADER_SIZE - 1])

    def test_bad_magic(self):
        data = bytearray(_scenario_bytes())
        struct.pack_into("<I", data, 0, 0x200)
        with self.assertRaises(BadMagic) as cm:
            parse_container(bytes(data))
        self.assertEqual(cm.exception.offset, 0)

    def test_footer_offset_past_end(self):
        data = _header(93, 48, 200, 200, 200) + bytes(10) + _footer(10)
        with self.assertRaises(OutOfBounds) as cm:
            parse_container(data)
        self.assertIn("0x", str(cm.exception))
        self.assertIsInstance(cm.exception, SfromError)

    def test_rom_end_past_end(self):
        data = _header(93, 48, 80, 80, 90) + bytes(10)
        with self.assertRaises(OutOfBounds) as cm:
            parse_container(data)
        self.assertEqual(cm.exception.offset, 12)

    def test_decreasing_offsets(self):
        data = _header(120, 48, 70, 60, 80) + bytes(120 - HEADER_SIZE)
        with self.assertRaises(OutOfBounds) as cm:
            parse_container(data)
        self.assertEqual(cm.exception.offset, 16)

    def test_rom_offset_inside_header(self):
        data = _header(93, 16, 58, 58, 58) + bytes(10) + _footer(10)
        with self.assertRaises(OutOfBounds) as cm:
            parse_container(data)
        self.assertEqual(cm.exception.offset, 8)

    def test_truncated_footer(self):
        data = _scenario_bytes()[:-1]
        with self.assertRaises(TruncatedFooter) as cm:
            parse_container(data)
        self.assertEqual(cm.exception.offset, 58)

    def test_truncated_tag_payload(self):
        data = _scenario_bytes() + b"D\x10\x00\x00abc"
        with self.assertRaises(InvalidTagPayload) as cm:
            parse_container(data)
        self.assertEqual(cm.exception.offset, 93)


class WriteTests(unittest.TestCase):
    def test_roundtrip_self_produced(self):
        c = _sample_container()
        self.assertEqual(parse_container(to_bytes(c)), c)

    def test_canonicalises_after_one_pass(self):
        # ROM placed after a gap, tags out of canonical order, junk at the end.
        rom = b"\x01" * 12
        footer_at = 64 + len(rom)
        tags = b"G\x09\x09\x09\x05\x00" + b"A\x01\x02\x03"
        data = (
            _header(0, 64, footer_at, 0, footer_at, reserved1=7, flags=3)
            + b"\xcc" * (64 - HEADER_SIZE)
            + rom
            + _footer(12)
            + tags
            + b"\x7f"
        )
        first = parse_container(data)
        once = to_bytes(first)
        self.assertNotEqual(once, data)
        second = parse_container(once)
        self.assertEqual(second.rom, rom)
        self.assertEqual(second.tags, first.tags)
        self.assertEqual(second.header.reserved1, 0)
        self.assertEqual(second.header.flags, 3)
        self.assertEqual(second.header.rom_offset, HEADER_SIZE)
        self.assertEqual(once[HEADER_SIZE + len(rom) + FOOTER_SIZE :], b"A\x01\x02\x03G\x00\x00\x00\x05\x00")
        self.assertEqual(to_bytes(second), once)
        self.assertEqual(parse_container(to_bytes(second)), second)

    def test_stale_header_offsets_ignored(self):
        c = _sample_container()
        stale = replace(c, header=replace(c.header, rom_offset=999, footer_offset=5, total_size=1))
        self.assertEqual(to_bytes(stale), to_bytes(c))
        self.assertEqual(stale.header.rom_offset, 999)

    def test_write_returns_total_size(self):
        c = _sample_container()
        buf = io.BytesIO()
        n = write_container(c, buf)
        self.assertEqual(n, len(buf.getvalue()))
        self.assertEqual(n, c.header.total_size)
        self.assertEqual(c.canonical_header(), c.header)

    def test_every_supported_tag_roundtrip(self):
        tags = TagTable(armet_threshold=b"\x00\x7f\xff", codec_data=bytes(range(256)) * 3, preset_id=0xFFFF)
        for audio in (None, AudioRegion(samples=b"\x01" * 32, trailer=b"\x02" * 4)):
            c = Container.create(b"\xea" * 64, audio=audio, tags=tags)
            raw = to_bytes(c)
            self.assertEqual(parse_container(raw), c)
            self.assertEqual(parse_container(raw).tags, tags)

    def test_layout_matches_written_bytes(self):
        for c in (_sample_container(), parse_container(_scenario_bytes())):
            lay = c.layout()
            raw = to_bytes(c)
            self.assertEqual(lay.total_size, len(raw))
            self.assertEqual(struct.unpack_from("<I", raw, 20)[0], lay.footer_start)
            self.assertEqual(raw[lay.tags_start :], encode_tags(c.tags))
            self.assertEqual(parse_container(raw).tags, c.tags)

    def test_empty_audio_pair_rejected(self):
        with self.assertRaises(ValueError):
            AudioRegion(samples=b"", trailer=b"")

    def test_trailer_only_audio_roundtrip(self):
        c = Container.create(b"rom", audio=AudioRegion(samples=b"", trailer=b"trailer"))
        back = parse_container(to_bytes(c))
        self.assertEqual(back.audio, AudioRegion(samples=b"", trailer=b"trailer"))
        self.assertEqual(back, c)

    def test_create_fills_footer_sizes(self):
        c = _sample_container()
        self.assertEqual(c.footer.rom_size, len(c.rom))
        self.assertEqual(c.footer.audio_size, 256)
        self.assertEqual(c.footer.audio_trailer_size, 16)
        self.assertEqual(c.header.audio_samples_offset, HEADER_SIZE + len(c.rom))

    def test_sink_errors_propagate(self):
        class _FailingSink:
            def write(self, _data):
                raise OSError("disk full")

        with self.assertRaises(OSError):
            write_container(_sample_container(), _FailingSink())


class FileTests(unittest.TestCase):
    def test_save_and_load(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "game.sfrom"
            c = _sample_container()
            # A larger declared size must not pad the output file.
            declared = replace(c, header=replace(c.header, total_size=c.header.total_size + 4096))
            written = save(declared, str(path))
            self.assertEqual(written, c.header.total_size)
            self.assertEqual(path.stat().st_size, c.header.total_size)
            self.assertEqual(load(str(path)), c)


if __name__ == "__main__":
    unittest.main()
