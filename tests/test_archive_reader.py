"""
Tests for the archive reader — entry streaming and error classification.
"""

import gzip
import random
from pathlib import Path, PurePosixPath

import pytest

from instar.core.errors import ArchiveFormatError, ArchiveOpenError
from instar.core.services.archive_reader import (
    ArchiveReader,
    EntryKind,
    iter_entries,
    normalize_member_name,
    open_archive,
)


class TestOpenArchive:
    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ArchiveOpenError) as exc:
            open_archive(tmp_path / "nope.tar.gz")
        assert "nope.tar.gz" in str(exc.value)

    def test_directory_is_not_an_archive(self, tmp_path: Path):
        with pytest.raises(ArchiveOpenError):
            open_archive(tmp_path)


class TestNormalizeMemberName:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("foo/bin/x", "foo/bin/x"),
            ("./foo/bin/x", "foo/bin/x"),
            ("/foo/bin/x", "foo/bin/x"),
            ("foo/bin/", "foo/bin"),
        ],
    )
    def test_normalize(self, name, expected):
        assert normalize_member_name(name) == PurePosixPath(expected)


class TestIterEntries:
    def test_entries_in_order(self, make_archive):
        path = make_archive(
            "foo-1.0.tar.gz",
            {
                "foo-1.0": None,
                "foo-1.0/bin": None,
                "foo-1.0/bin/foo": b"#!/bin/sh\necho foo\n",
            },
            symlinks={"foo-1.0/bin/f": "foo"},
        )
        with open_archive(path) as stream:
            entries = [(e.path, e.kind, e.linkname) for e in iter_entries(stream)]

        assert entries == [
            (PurePosixPath("foo-1.0"), EntryKind.DIRECTORY, ""),
            (PurePosixPath("foo-1.0/bin"), EntryKind.DIRECTORY, ""),
            (PurePosixPath("foo-1.0/bin/foo"), EntryKind.FILE, ""),
            (PurePosixPath("foo-1.0/bin/f"), EntryKind.SYMLINK, "foo"),
        ]

    def test_file_content(self, make_archive):
        path = make_archive("pkg.tar.gz", {"bin/tool": b"payload"}, modes={"bin/tool": 0o755})
        with open_archive(path) as stream:
            for entry in iter_entries(stream):
                assert not entry.is_dir
                assert entry.size == 7
                assert entry.mode == 0o755
                with entry.open() as f:
                    assert f.read() == b"payload"

    def test_directory_has_no_content(self, make_archive):
        path = make_archive("pkg.tar.gz", {"bin": None})
        with open_archive(path) as stream:
            entry = next(iter_entries(stream))
            assert entry.is_dir
            with pytest.raises(ValueError):
                entry.open()

    def test_hardlink_target_normalized(self, make_archive):
        path = make_archive(
            "h-1.tar.gz",
            [("./h-1/bin/a", b"a"), ("./h-1/bin/b", ("hardlink", "./h-1/bin/a"))],
        )
        with open_archive(path) as stream:
            entries = [(e.path, e.kind, e.linkname) for e in iter_entries(stream)]

        assert entries[1] == (PurePosixPath("h-1/bin/b"), EntryKind.HARDLINK, "h-1/bin/a")

    def test_truncated_inside_member(self, tmp_path: Path, make_archive):
        data = random.Random(0).randbytes(65536)
        full = make_archive("big.tar.gz", {"bin/big": data}).read_bytes()
        path = tmp_path / "cut.tar.gz"
        path.write_bytes(full[: len(full) // 2])

        with open_archive(path) as stream:
            entry = next(iter_entries(stream, name=str(path)))
            with pytest.raises(ArchiveFormatError) as exc:
                b"".join(entry.iter_chunks())
        assert "bin/big" in str(exc.value)

    def test_not_gzip(self, tmp_path: Path):
        path = tmp_path / "bad.tar.gz"
        path.write_bytes(b"this is not gzip data at all")
        with open_archive(path) as stream:
            with pytest.raises(ArchiveFormatError):
                ArchiveReader(stream, name=str(path))

    def test_gzip_but_not_tar(self, tmp_path: Path):
        path = tmp_path / "bad.tar.gz"
        path.write_bytes(gzip.compress(b"\x01" * 2048))
        with open_archive(path) as stream:
            with pytest.raises(ArchiveFormatError):
                list(iter_entries(stream, name=str(path)))

