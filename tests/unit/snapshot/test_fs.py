"""Tests for filesystem snapshot capture."""

from __future__ import annotations

import hashlib
import os
import tempfile
import unittest
from pathlib import Path

from starterview.snapshot import decode_text, scan_snapshot_files, snapshot_file_from_bytes


class SnapshotFsTests(unittest.TestCase):
    def test_decode_text_detects_binary(self) -> None:
        self.assertEqual(decode_text(b""), "")
        self.assertEqual(decode_text("héllo".encode("utf-8")), "héllo")
        self.assertIsNone(decode_text(b"\xff\xfe\x00"))
        self.assertIsNone(decode_text(b"abc\x00def"))

    def test_snapshot_file_from_bytes_hashes_content(self) -> None:
        file = snapshot_file_from_bytes("a.txt", b"hello\n")

        self.assertEqual(file.size, 6)
        self.assertFalse(file.binary)
        self.assertEqual(file.content, "hello\n")
        self.assertEqual(file.hash, hashlib.sha256(b"hello\n").hexdigest())

    def test_scan_collects_relative_sorted_paths(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "src" / "main").mkdir(parents=True)
            (root / "src" / "main" / "App.java").write_text("class App {}\n", encoding="utf-8")
            (root / "pom.xml").write_text("<project/>\n", encoding="utf-8")
            (root / ".gitignore").write_text("target/\n", encoding="utf-8")
            (root / "logo.png").write_bytes(b"\x89PNG\x00\x01")

            files = scan_snapshot_files(root)
            self.assertEqual(
                [file.path for file in files],
                [".gitignore", "logo.png", "pom.xml", "src/main/App.java"],
            )
            logo = next(file for file in files if file.path == "logo.png")
            self.assertTrue(logo.binary)
            self.assertIsNone(logo.content)

            visible = scan_snapshot_files(root, show_hidden=False)
            self.assertNotIn(".gitignore", [file.path for file in visible])

    @unittest.skipIf(os.name == "nt", "symlinks need privileges on Windows")
    def test_scan_skips_symlinks(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "real.txt").write_text("x", encoding="utf-8")
            (root / "link.txt").symlink_to(root / "real.txt")

            self.assertEqual([file.path for file in scan_snapshot_files(root)], ["real.txt"])


if __name__ == "__main__":
    unittest.main()
