from __future__ import annotations

import json
import os
import subprocess
import sys
import tempfile
import unittest
from pathlib import Path

from sfrom.container import load


class CLIIntegrationTests(unittest.TestCase):
    def run_cli(self, args, *, expect: int | None = 0, cwd: Path | None = None):
        cmd = [sys.executable, "-m", "sfrom.cli"] + list(args)
        env = os.environ.copy()
        repo_root = Path(__file__).resolve().parent
        existing = env.get("PYTHONPATH", "")
        env["PYTHONPATH"] = str(repo_root) if not existing else f"{repo_root}{os.pathsep}{existing}"
        env["PYTHONIOENCODING"] = "utf-8"
        proc = subprocess.run(
            cmd,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            env=env,
        )
        if expect is not None and proc.returncode != expect:
            raise AssertionError(
                f"CLI exited {proc.returncode}, expected {expect}\nCommand: {' '.join(cmd)}\nSTDOUT:\n{proc.stdout}\nSTDERR:\n{proc.stderr}"
            )
        return proc

    def make_workspace(self) -> Path:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        return Path(tmp.name)

    def test_build_info_extract_repack(self):
        ws = self.make_workspace()
        rom = os.urandom(2048)
        pcm = os.urandom(512)
        trailer = b"\x00\x01" * 8
        sdd1 = b"codec" * 20
        (ws / "game.sfc").write_bytes(rom)
        (ws / "game.pcm").write_bytes(pcm)
        (ws / "game.trl").write_bytes(trailer)
        (ws / "game.sdd1").write_bytes(sdd1)
        out = ws / "game.sfrom"

        self.run_cli(
            [
                "build", str(out),
                "--rom", str(ws / "game.sfc"),
                "--pcm", str(ws / "game.pcm"),
                "--pcm-trailer", str(ws / "game.trl"),
                "--fps", "50",
                "--players", "2",
                "--rom-type", "hirom",
                "--chip", "sdd1",
                "--preset-id", "0x10A2",
                "--armet-threshold", "0a0b0c",
                "--codec-data", str(ws / "game.sdd1"),
                "--platform-id", "WUP-JAAE",
            ]
        )
        c = load(str(out))
        self.assertEqual(c.rom, rom)
        self.assertEqual(c.audio.samples, pcm)
        self.assertEqual(c.footer.frame_rate, 50)
        self.assertEqual(c.footer.hw_extension, 0x03)
        self.assertEqual(c.tags.preset_id, 0x10A2)
        self.assertEqual(c.tags.armet_threshold, b"\x0a\x0b\x0c")
        self.assertEqual(c.header.platform_id, b"WUP-JAAE")

        info = json.loads(self.run_cli(["info", str(out), "--json"]).stdout)
        self.assertEqual(info["rom_size"], 2048)
        self.assertEqual(info["audio"], {"samples_size": 512, "trailer_size": 16})
        self.assertEqual(info["footer"]["addressing_mode"], "hirom")
        self.assertEqual(info["footer"]["hw_extension"], "sdd1")
        self.assertEqual(info["tags"]["A"], "0a0b0c")
        self.assertEqual(info["tags"]["D"], "100 bytes")

        text = self.run_cli(["info", str(out)]).stdout
        self.assertIn("audio trailer:", text)

        outdir = ws / "extracted"
        self.run_cli(["extract", str(out), "--outdir", str(outdir)])
        self.assertEqual((outdir / "game.sfc").read_bytes(), rom)
        self.assertEqual((outdir / "game.pcm").read_bytes(), pcm)
        self.assertEqual((outdir / "game.pcmtrailer").read_bytes(), trailer)
        self.assertEqual((outdir / "game.sdd1").read_bytes(), sdd1)

        repacked = ws / "repacked.sfrom"
        proc = self.run_cli(["repack", str(out), str(repacked)])
        self.assertIn("unchanged", proc.stdout)
        self.assertEqual(repacked.read_bytes(), out.read_bytes())

    def test_build_requires_audio_pair(self):
        ws = self.make_workspace()
        (ws / "rom.sfc").write_bytes(b"\x00" * 64)
        (ws / "a.pcm").write_bytes(b"\x01" * 8)
        proc = self.run_cli(
            ["build", str(ws / "x.sfrom"), "--rom", str(ws / "rom.sfc"), "--pcm", str(ws / "a.pcm")],
            expect=2,
        )
        self.assertIn("--pcm-trailer", proc.stderr)
        self.assertFalse((ws / "x.sfrom").exists())

    def test_info_rejects_garbage(self):
        ws = self.make_workspace()
        bad = ws / "bad.sfrom"
        bad.write_bytes(b"not an sfrom")
        proc = self.run_cli(["info", str(bad)], expect=2)
        self.assertIn("Error:", proc.stderr)
        proc = self.run_cli(["info", str(ws / "missing.sfrom")], expect=2)
        self.assertIn("Error:", proc.stderr)

    def test_titles(self):
        ws = self.make_workspace()
        entry = {
            "code": "JAAE",
            "copyright": "©1990 Nintendo",
            "cover": "cover.png",
            "details_screen": "details.png",
            "lcla6_release_date": "2019-09-05",
            "players_count": 1,
            "publisher": "Nintendo",
            "release_date": "1990-11-21",
            "rewind_interval": 1.0,
            "rom": "JAAE.sfrom",
            "save_count": 4,
            "simultaneous": False,
            "sort_publisher": "nintendo",
            "sort_title": "f-zero",
            "title": "F-ZERO",
            "volume": 100,
        }
        catalog = ws / "snes.json"
        catalog.write_text(json.dumps({"titles": {"JAAE": entry}}), encoding="utf-8")
        proc = self.run_cli(["titles", str(catalog)])
        self.assertIn("F-ZERO", proc.stdout)
        proc = self.run_cli(["titles", str(catalog), "--code", "JAAE"])
        self.assertEqual(json.loads(proc.stdout)["title_ko"], "ー")
        self.run_cli(["titles", str(catalog), "--code", "NOPE"], expect=2)


if __name__ == "__main__":
    unittest.main()
