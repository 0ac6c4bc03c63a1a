#!/usr/bin/env python3
"""
test_integration.py - Integration tests for orgmedia

Creates real test data and runs full command-line scenarios to verify the
tool works end-to-end with different modes and options. The test files carry
no EXIF data, so every file is named after its filesystem date.
"""

import os
import shutil
import subprocess
import sys
import tempfile
import unittest
from datetime import datetime
from pathlib import Path

from orgmedia.config import CategoryConfig
from orgmedia.naming import build_destination
from orgmedia.timestamps import get_birth_time


class IntegrationTestCase(unittest.TestCase):
    """Handles creation of test data and running the command line tool."""

    def setUp(self):
        """Initialize test environment."""
        self.test_root = Path(tempfile.mkdtemp(prefix="orgmedia_test_"))
        self.addCleanup(shutil.rmtree, self.test_root)
        self.source_dir = self.test_root / "source"
        self.pictures_dir = self.test_root / "pictures"
        self.movies_dir = self.test_root / "movies"
        self.source_dir.mkdir()

        self.project_dir = Path(__file__).parent

    def create_test_file(self, path: Path, content: str = None, when: datetime = None):
        """Create a test file with specified content and modification time."""
        path.parent.mkdir(parents=True, exist_ok=True)

        if content is None:
            content = f"Test data for {path.name}"
        path.write_text(content)

        if when is not None:
            os.utime(path, (when.timestamp(), when.timestamp()))
        return path

    def expected_path(self, source: Path, root: Path, template: str, suffix=None) -> Path:
        """Destination the tool should pick for a file without EXIF data."""
        config = CategoryConfig(root=root, template=template)
        return build_destination(get_birth_time(source), config, source.suffix, suffix)

    def run_orgmedia(self, args: list, expect_success: bool = True):
        """Run orgmedia with given arguments."""
        cmd = [sys.executable, "-m", "orgmedia"] + args
        result = subprocess.run(
            cmd, capture_output=True, text=True, timeout=120, cwd=str(self.project_dir)
        )
        if expect_success:
            self.assertEqual(result.returncode, 0, f"Command failed: {' '.join(cmd)}\n{result.stderr}")
        return result

    def files_under(self, root: Path):
        if not root.exists():
            return []
        return sorted(p for p in root.rglob("*") if p.is_file())


class TestBasicOperations(IntegrationTestCase):
    def test_basic_copy_operation(self):
        """Copy pictures and movies from a nested source tree."""
        photo = self.create_test_file(self.source_dir / "photo1.png", "Photo 1", datetime(2023, 5, 1, 10, 0, 0))
        clip = self.create_test_file(self.source_dir / "clip1.mov", "Clip 1", datetime(2023, 6, 2, 9, 0, 0))
        nested = self.create_test_file(self.source_dir / "2023" / "trip" / "map.gif", "Map", datetime(2023, 7, 3, 8, 30, 0))

        self.run_orgmedia([
            "--src", str(self.source_dir),
            "--recursive",
            "--copypictures", str(self.pictures_dir),
            "--picture", "YYYY-MM-DD",
            "--copymovies", str(self.movies_dir),
            "--movie", "YYYY-MM-DD-HH-mm-ss",
        ])

        for source, root, template in (
            (photo, self.pictures_dir, "YYYY-MM-DD"),
            (clip, self.movies_dir, "YYYY-MM-DD-HH-mm-ss"),
            (nested, self.pictures_dir, "YYYY-MM-DD"),
        ):
            destination = self.expected_path(source, root, template)
            self.assertTrue(destination.exists(), destination)
            self.assertEqual(destination.read_text(), source.read_text())
            self.assertTrue(source.exists())

    def test_default_picture_template_nests_directories(self):
        photo = self.create_test_file(self.source_dir / "IMG_0001.BMP", when=datetime(2022, 1, 2, 3, 4, 5))

        self.run_orgmedia(["--s", str(self.source_dir), "--copypictures", str(self.pictures_dir)])

        destination = self.expected_path(photo, self.pictures_dir, "YYYY/YYYY-MM/YYYY-MM-DD/YYYY-MM-DD-HH-mm-ss")
        self.assertTrue(destination.exists())
        self.assertEqual(len(destination.relative_to(self.pictures_dir).parts), 4)
        self.assertEqual(destination.suffix, ".bmp")

    def test_move_operation(self):
        clip = self.create_test_file(self.source_dir / "clip1.mp4", "clip content")
        destination = self.expected_path(clip, self.movies_dir, "YYYY-MM-DD-HH-mm-ss")

        self.run_orgmedia(["--source", str(self.source_dir), "--movemovies", str(self.movies_dir)])

        self.assertFalse(clip.exists())
        self.assertEqual(destination.read_text(), "clip content")

    def test_non_recursive_leaves_subdirectories(self):
        self.create_test_file(self.source_dir / "top.png")
        self.create_test_file(self.source_dir / "sub" / "nested.png")

        self.run_orgmedia(["--src", str(self.source_dir), "--copypictures", str(self.pictures_dir)])

        self.assertEqual(len(self.files_under(self.pictures_dir)), 1)


class TestSafetyFeatures(IntegrationTestCase):
    def test_dry_run_changes_nothing(self):
        self.create_test_file(self.source_dir / "photo1.png")
        self.create_test_file(self.source_dir / "clip1.avi")

        result = self.run_orgmedia([
            "--src", str(self.source_dir),
            "--noop",
            "--movepictures", str(self.pictures_dir),
            "--movemovies", str(self.movies_dir),
        ])

        self.assertFalse(self.pictures_dir.exists())
        self.assertFalse(self.movies_dir.exists())
        self.assertEqual(len(self.files_under(self.source_dir)), 2)
        self.assertIn("moved", result.stderr)

    def test_second_run_skips_existing_files(self):
        for i in range(3):
            self.create_test_file(self.source_dir / f"photo{i}.png", when=datetime(2023, 5, 1, 10, i, 0))
        args = [
            "--src", str(self.source_dir),
            "--copypictures", str(self.pictures_dir),
            "--picture", "YYYY-MM-DD-HH-mm",
        ]

        self.run_orgmedia(args)
        first = self.files_under(self.pictures_dir)
        result = self.run_orgmedia(args)

        self.assertEqual(self.files_under(self.pictures_dir), first)
        self.assertEqual(len(first), 3)
        self.assertEqual(result.stderr.count("exists. Skipping"), 3)

    def test_dedupe_same_timestamp(self):
        when = datetime(2023, 5, 1, 10, 0, 0)
        sources = [
            self.create_test_file(self.source_dir / f"photo{i}.png", f"photo {i}", when)
            for i in range(3)
        ]

        self.run_orgmedia([
            "--src", str(self.source_dir),
            "--copypictures", str(self.pictures_dir),
            "--picture", "YYYY-MM-DD",
            "--dedupe",
        ])

        names = sorted(p.name for p in self.files_under(self.pictures_dir))
        base = self.expected_path(sources[0], self.pictures_dir, "YYYY-MM-DD").stem
        self.assertEqual(names, sorted([f"{base}.png", f"{base}-2.png", f"{base}-3.png"]))
        contents = sorted(p.read_text() for p in self.files_under(self.pictures_dir))
        self.assertEqual(contents, ["photo 0", "photo 1", "photo 2"])

    def test_ignored_and_unrecognized_files(self):
        for name in (".DS_Store", "Thumbs.db", "ZbThumbnail.info", "MVI_0001.THM"):
            self.create_test_file(self.source_dir / name)
        self.create_test_file(self.source_dir / "notes.txt")

        result = self.run_orgmedia([
            "--src", str(self.source_dir),
            "--copypictures", str(self.pictures_dir),
        ])

        self.assertEqual(result.stderr.count("Unrecognized file type"), 1)
        self.assertIn("notes.txt", result.stderr)
        self.assertEqual(self.files_under(self.pictures_dir), [])

    def test_others_with_label(self):
        notes = self.create_test_file(self.source_dir / "notes.txt", "notes")
        others_dir = self.test_root / "others"

        self.run_orgmedia([
            "--src", str(self.source_dir),
            "--copyothers", str(others_dir),
            "--other", "YYYY-MM-DD",
            "--otherlabel", "_doc",
        ])

        expected = self.expected_path(notes, others_dir, "YYYY-MM-DD")
        labelled = expected.with_name(expected.stem + "_doc" + expected.suffix)
        self.assertEqual(labelled.read_text(), "notes")

    def test_invalid_source(self):
        result = self.run_orgmedia(
            ["--src", str(self.test_root / "missing"), "--copypictures", str(self.pictures_dir)],
            expect_success=False,
        )
        self.assertEqual(result.returncode, 1)
        self.assertIn("Source directory does not exist", result.stderr)

    def test_logfile_written(self):
        self.create_test_file(self.source_dir / "photo1.png")
        logfile = self.test_root / "events.log"

        self.run_orgmedia([
            "--src", str(self.source_dir),
            "--copypictures", str(self.pictures_dir),
            "--logfile", str(logfile),
        ])

        text = logfile.read_text(encoding="utf-8")
        self.assertIn("Session Started", text)
        self.assertIn("Session Ended", text)


if __name__ == "__main__":
    unittest.main(verbosity=2)
