# Command-line tool to add metadata to 3MF files.
# Copyright (C) 2020 Ghostkeeper
# Copyright (C) 2025 Jack
# This program is free software; you can redistribute it and/or modify it under the terms of the GNU General Public
# License as published by the Free Software Foundation; either version 2 of the License, or (at your option) any later
# version.
# This program is distributed in the hope that it will be useful, but WITHOUT ANY WARRANTY; without even the implied
# warranty of MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the GNU General Public License for more details.
# You should have received a copy of the GNU General Public License along with this program; if not, write to the Free
# Software Foundation, Inc., 51 Franklin Street, Fifth Floor, Boston, MA 02110-1301 USA.

# <pep8 compliant>

"""
Archive access for 3MF transcoding.

- classify: Decide whether an archive entry holds model XML
- ArchiveReader: Iterate a source archive, read entries decompressed or raw
- ArchiveWriter: Build the destination archive from raw copies and rewritten models

Raw copies move the compressed bytes of an entry from one ZIP file to the
other without inflating them, so everything except the ``.model`` entries
stays bit-identical.  ``zipfile`` has no public API for that; the writer
appends the local header and data itself and registers the entry so that
``ZipFile.close()`` lists it in the central directory.
"""

import enum
import re
import struct
import zipfile
import zlib
from pathlib import PurePosixPath
from typing import IO, List

from ..common.constants import MODEL_COMPRESSION_LEVEL, MODEL_EXTENSION
from ..common.errors import BadArchiveError, UnsafeEntryError
from ..common.logging import debug, warn

__all__ = [
    "EntryKind",
    "enclosed_path",
    "classify",
    "ArchiveReader",
    "ArchiveWriter",
]

_DRIVE_PREFIX = re.compile(r"^[A-Za-z]:")

# Local file header layout, see section 4.3.7 of the ZIP APPNOTE.
_LOCAL_HEADER = struct.Struct(zipfile.structFileHeader)
_LOCAL_HEADER_NAME_LENGTH = 10
_LOCAL_HEADER_EXTRA_LENGTH = 11

_DATA_DESCRIPTOR_FLAG = 0x08
_DATA_DESCRIPTOR_SIGNATURE = 0x08074B50
_ZIP64_EXTRA_ID = 0x0001


class EntryKind(enum.Enum):
    """How the transcoder treats an archive entry."""

    MODEL = "model"  # Parsed, merged and recompressed.
    PASSTHROUGH = "passthrough"  # Copied verbatim.


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def enclosed_path(entry_name: str) -> PurePosixPath:
    """Interpret an entry name as a path relative to the archive root.

    :param entry_name: The name as stored in the archive.
    :return: The name as a relative POSIX path.
    :raises UnsafeEntryError: If the name can't be trusted as a relative path.
    """
    if "\0" in entry_name:
        raise UnsafeEntryError(entry_name, "contains a NUL character")
    try:
        entry_name.encode("utf-8")
    except UnicodeEncodeError:
        raise UnsafeEntryError(entry_name, "is not valid UTF-8") from None

    normalized = entry_name.replace("\\", "/")
    if normalized.startswith("/"):
        raise UnsafeEntryError(entry_name, "is an absolute path")
    if _DRIVE_PREFIX.match(normalized):
        raise UnsafeEntryError(entry_name, "has a drive prefix")

    depth = 0
    for part in normalized.split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            depth -= 1
            if depth < 0:
                raise UnsafeEntryError(entry_name, "points outside the archive")
        else:
            depth += 1
    return PurePosixPath(normalized)


def classify(entry_name: str) -> EntryKind:
    """Classify an archive entry by its name.

    An entry holds model XML iff its path has the ``model`` extension, matched
    case-sensitively.  Directory entries are never models.

    :raises UnsafeEntryError: If the name can't be trusted as a relative path.
    """
    path = enclosed_path(entry_name)
    if entry_name.endswith(("/", "\\")):
        return EntryKind.PASSTHROUGH
    if path.suffix == MODEL_EXTENSION:
        return EntryKind.MODEL
    return EntryKind.PASSTHROUGH


# ---------------------------------------------------------------------------
# Reading
# ---------------------------------------------------------------------------

class ArchiveReader:
    """
    Read access to a source archive.

    The caller owns ``stream``; closing the reader does not close it.
    """

    def __init__(self, stream: IO[bytes], name: str = "<archive>"):
        self.name = name
        self.stream = stream
        try:
            self.archive = zipfile.ZipFile(stream, "r")
        except (zipfile.BadZipFile, zipfile.LargeZipFile) as e:
            raise BadArchiveError(f"Unable to read archive {name}: {e}") from e
        except UnicodeDecodeError as e:
            # Entries flagged as UTF-8 whose name bytes do not decode.
            raw_name = e.object.decode("utf-8", "backslashreplace")
            raise UnsafeEntryError(raw_name, "is not valid UTF-8") from e

    def __enter__(self) -> "ArchiveReader":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def close(self) -> None:
        self.archive.close()

    def entries(self) -> List[zipfile.ZipInfo]:
        """All entries, in the order of the central directory."""
        return self.archive.infolist()

    def read(self, info: zipfile.ZipInfo) -> bytes:
        """Return the decompressed contents of an entry."""
        try:
            return self.archive.read(info)
        except (zipfile.BadZipFile, zlib.error, NotImplementedError, RuntimeError, EOFError) as e:
            raise BadArchiveError(f"Unable to read {info.filename} from {self.name}: {e}") from e

    def read_raw(self, info: zipfile.ZipInfo) -> bytes:
        """Return the compressed bytes of an entry exactly as stored."""
        self.stream.seek(info.header_offset)
        header = self.stream.read(_LOCAL_HEADER.size)
        if len(header) != _LOCAL_HEADER.size:
            raise BadArchiveError(f"Truncated local header for {info.filename} in {self.name}")
        fields = _LOCAL_HEADER.unpack(header)
        if fields[0] != zipfile.stringFileHeader:
            raise BadArchiveError(f"Bad local header magic for {info.filename} in {self.name}")

        data_offset = (
            info.header_offset
            + _LOCAL_HEADER.size
            + fields[_LOCAL_HEADER_NAME_LENGTH]
            + fields[_LOCAL_HEADER_EXTRA_LENGTH]
        )
        self.stream.seek(data_offset)
        raw = self.stream.read(info.compress_size)
        if len(raw) != info.compress_size:
            raise BadArchiveError(f"Truncated data for {info.filename} in {self.name}")
        return raw


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------

def _strip_zip64_extra(extra: bytes) -> bytes:
    """Drop ZIP64 records from an extra field. ``FileHeader`` writes its own when needed."""
    kept = []
    offset = 0
    while offset + 4 <= len(extra):
        header_id, size = struct.unpack("<HH", extra[offset:offset + 4])
        end = offset + 4 + size
        if header_id != _ZIP64_EXTRA_ID:
            kept.append(extra[offset:end])
        offset = end
    return b"".join(kept)


def _clone_info(info: zipfile.ZipInfo) -> zipfile.ZipInfo:
    """Copy the ZIP metadata of a source entry for the destination archive."""
    clone = zipfile.ZipInfo(info.filename, info.date_time)
    clone.compress_type = info.compress_type
    clone.comment = info.comment
    clone.extra = _strip_zip64_extra(info.extra)
    clone.create_system = info.create_system
    clone.create_version = info.create_version
    clone.extract_version = info.extract_version
    clone.flag_bits = info.flag_bits
    clone.volume = info.volume
    clone.internal_attr = info.internal_attr
    clone.external_attr = info.external_attr
    clone.CRC = info.CRC
    clone.compress_size = info.compress_size
    clone.file_size = info.file_size
    return clone


class ArchiveWriter:
    """
    Write access to a destination archive.

    The writer ends in one of two states: ``finish()`` writes the central
    directory, ``abandon()`` stops without one so the output never looks
    like a complete archive.  Used as a context manager, it finishes on
    success and abandons when the block raises.
    """

    def __init__(self, stream: IO[bytes], name: str = "<archive>"):
        self.name = name
        self.archive = zipfile.ZipFile(stream, "w")
        self.state = "open"

    def __enter__(self) -> "ArchiveWriter":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        if self.state != "open":
            return
        if exc_type is None:
            self.finish()
        else:
            self.abandon()

    def write_raw(self, info: zipfile.ZipInfo, raw: bytes) -> None:
        """Append an entry from its already-compressed bytes.

        The bytes are never inflated, so any compression method is copied
        as is.  This works on the private state of ``ZipFile`` (``_lock``,
        ``_seekable``, ``start_dir``, ``_didModify``, ``filelist``,
        ``NameToInfo``), checked against CPython 3.9 to 3.13.
        """
        zinfo = _clone_info(info)
        zip64 = zinfo.file_size > zipfile.ZIP64_LIMIT or zinfo.compress_size > zipfile.ZIP64_LIMIT
        archive = self.archive
        with archive._lock:
            if archive._seekable:
                archive.fp.seek(archive.start_dir)
            zinfo.header_offset = archive.fp.tell()
            if zinfo.filename in archive.NameToInfo:
                warn(f"Duplicate entry {zinfo.filename} in {self.name}")
            archive._didModify = True

            archive.fp.write(zinfo.FileHeader(zip64))
            archive.fp.write(raw)
            if zinfo.flag_bits & _DATA_DESCRIPTOR_FLAG:
                fmt = "<LLQQ" if zip64 else "<LLLL"
                archive.fp.write(struct.pack(
                    fmt, _DATA_DESCRIPTOR_SIGNATURE, zinfo.CRC, zinfo.compress_size, zinfo.file_size
                ))

            archive.filelist.append(zinfo)
            archive.NameToInfo[zinfo.filename] = zinfo
            archive.start_dir = archive.fp.tell()

    def write_transformed(self, info: zipfile.ZipInfo, data: bytes) -> None:
        """Append an entry with new contents, deflated at the highest level.

        Name, timestamp and attributes are taken from the source entry.
        """
        zinfo = zipfile.ZipInfo(info.filename, info.date_time)
        zinfo.external_attr = info.external_attr
        zinfo.create_system = info.create_system
        self.archive.writestr(
            zinfo,
            data,
            compress_type=zipfile.ZIP_DEFLATED,
            compresslevel=MODEL_COMPRESSION_LEVEL,
        )

    def finish(self) -> None:
        """Write the central directory. The archive is complete afterwards."""
        self.archive.close()
        self.state = "finalized"
        debug(f"Finalized archive {self.name}")

    def abandon(self) -> None:
        """Stop writing without a central directory."""
        self.archive._didModify = False
        self.archive.close()
        self.state = "abandoned"
        debug(f"Abandoned archive {self.name}")
