"""
Archive reader — stream entries out of a ``.tar.gz`` package.

The archive is read in streaming mode (``r|gz``): entries come out in
archive order, once, and the content of an entry can only be read
before the iterator moves on to the next one.
"""

from __future__ import annotations

import logging
import tarfile
import zlib
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path, PurePosixPath
from typing import IO, BinaryIO

from instar.core.errors import ArchiveFormatError, ArchiveOpenError

logger = logging.getLogger(__name__)

# Failures tarfile/gzip raise on truncated or corrupt input
_FORMAT_ERRORS = (tarfile.TarError, EOFError, zlib.error, OSError)


class EntryKind(StrEnum):
    """Archive entry types instar knows how to materialize."""

    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    HARDLINK = "hardlink"


@dataclass
class ArchiveEntry:
    """One member of the archive.

    ``path`` is archive-relative with any leading ``./`` or ``/`` removed.
    For hard links ``linkname`` is the target member, normalized the same way.
    """

    path: PurePosixPath
    kind: EntryKind
    mode: int = 0o644
    size: int = 0
    linkname: str = ""
    _tar: tarfile.TarFile | None = field(default=None, repr=False, compare=False)
    _member: tarfile.TarInfo | None = field(default=None, repr=False, compare=False)

    @property
    def is_dir(self) -> bool:
        return self.kind == EntryKind.DIRECTORY

    def open(self) -> IO[bytes]:
        """Return a readable stream over the file's bytes.

        Only valid while this entry is the current one.
        """
        if self.kind != EntryKind.FILE or self._tar is None or self._member is None:
            raise ValueError(f"Entry has no content: {self.path}")
        try:
            fobj = self._tar.extractfile(self._member)
        except _FORMAT_ERRORS as e:
            raise ArchiveFormatError(
                f"Cannot read archive entry {self.path}: {e}", path=str(self.path),
            ) from e
        if fobj is None:
            raise ArchiveFormatError(f"Archive entry has no data: {self.path}", path=str(self.path))
        return fobj

    def iter_chunks(self, chunk_size: int = 64 * 1024) -> Iterator[bytes]:
        """Yield the file's bytes in chunks.

        Raises:
            ArchiveFormatError: If the data cannot be decompressed or the
                archive ends inside this entry.
        """
        with self.open() as fobj:
            while True:
                try:
                    chunk = fobj.read(chunk_size)
                except _FORMAT_ERRORS as e:
                    raise ArchiveFormatError(
                        f"Corrupt data in archive entry {self.path}: {e}", path=str(self.path),
                    ) from e
                if not chunk:
                    return
                yield chunk


def open_archive(archive_path: Path) -> BinaryIO:
    """Open the archive file for reading.

    Raises:
        ArchiveOpenError: If the file is missing or unreadable.
    """
    try:
        return open(archive_path, "rb")
    except OSError as e:
        raise ArchiveOpenError(f"Cannot open archive {archive_path}: {e}", path=archive_path) from e


def normalize_member_name(name: str) -> PurePosixPath:
    """Strip leading ``./`` and ``/`` from a tar member name."""
    parts = [p for p in PurePosixPath(name).parts if p not in ("/", ".")]
    return PurePosixPath(*parts)


def _to_entry(tar: tarfile.TarFile, member: tarfile.TarInfo) -> ArchiveEntry | None:
    path = normalize_member_name(member.name)
    if member.isdir():
        kind = EntryKind.DIRECTORY
    elif member.isfile():
        kind = EntryKind.FILE
    elif member.issym():
        kind = EntryKind.SYMLINK
    elif member.islnk():
        kind = EntryKind.HARDLINK
    else:
        logger.warning("Skipping unsupported archive entry %s (type %r)", path, member.type)
        return None

    linkname = member.linkname
    if kind == EntryKind.HARDLINK:
        linkname = normalize_member_name(linkname).as_posix()

    return ArchiveEntry(
        path=path,
        kind=kind,
        mode=member.mode,
        size=member.size,
        linkname=linkname,
        _tar=tar,
        _member=member,
    )


class ArchiveReader:
    """Forward-only reader over a gzip-compressed tar stream.

    The gzip header and the first tar header are parsed on construction,
    so an archive that is not a ``.tar.gz`` at all fails before the
    caller has done anything.  Not restartable.

    Raises:
        ArchiveFormatError: On any decompression or tar parsing failure,
            at construction or while iterating.
    """

    def __init__(self, stream: BinaryIO, *, name: str = "<archive>"):
        self.name = name
        try:
            self._tar = tarfile.open(fileobj=stream, mode="r|gz")
        except _FORMAT_ERRORS as e:
            raise ArchiveFormatError(
                f"Not a gzip-compressed tar archive: {name}: {e}", path=name,
            ) from e

    def __iter__(self) -> Iterator[ArchiveEntry]:
        members = iter(self._tar)
        while True:
            try:
                member = next(members)
            except StopIteration:
                return
            except _FORMAT_ERRORS as e:
                raise ArchiveFormatError(f"Corrupt archive {self.name}: {e}", path=self.name) from e

            entry = _to_entry(self._tar, member)
            if entry is not None:
                yield entry

    def close(self) -> None:
        self._tar.close()

    def __enter__(self) -> ArchiveReader:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


def iter_entries(stream: BinaryIO, *, name: str = "<archive>") -> Iterator[ArchiveEntry]:
    """Yield the archive's entries in order (see :class:`ArchiveReader`)."""
    with ArchiveReader(stream, name=name) as reader:
        yield from reader
