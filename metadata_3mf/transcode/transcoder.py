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
Streaming a 3MF archive into a new one with merged metadata.

Every entry of the source archive is visited once, in order.  ``.model``
entries go through :func:`merge_model`; everything else is copied as raw
compressed bytes.  The destination is only finalized after the last entry,
so a failure part-way never produces something that looks like a complete
archive.
"""

import os
import shutil
import sys
import tempfile
import xml.etree.ElementTree
from pathlib import Path
from typing import IO, Optional, Union

from ..common.errors import ArchiveIOError, ModelParseError
from ..common.logging import debug, info
from ..common.metadata import MetadataDocument, is_metadata_element
from ..common.xml import parse_document, serialize_fragment
from .archive import ArchiveReader, ArchiveWriter, EntryKind, classify
from .context import TranscodeOptions, TranscodeResult
from .merge import merge_model

__all__ = [
    "transcode",
    "transcode_file",
    "show_metadata",
]

PathLike = Union[str, os.PathLike]


def transcode(
    reader: ArchiveReader,
    writer: ArchiveWriter,
    document: MetadataDocument,
    options: TranscodeOptions,
) -> TranscodeResult:
    """Copy every entry of ``reader`` to ``writer``, merging metadata into the models.

    The writer is neither finished nor abandoned here; that is up to the caller.

    :param reader: The source archive.
    :param writer: The destination archive.
    :param document: The validated metadata to inject.
    :param options: Merge policy.
    :return: Which entries were rewritten and which were copied.
    """
    result = TranscodeResult()
    for entry in reader.entries():
        if classify(entry.filename) is EntryKind.MODEL:
            merged = merge_model(reader.read(entry), document, options, entry.filename)
            writer.write_transformed(entry, merged)
            result.model_entries.append(entry.filename)
            info(f"Added metadata to file {entry.filename}")
        else:
            writer.write_raw(entry, reader.read_raw(entry))
            result.copied_entries.append(entry.filename)
            debug(f"Copied {entry.filename}")
    return result


def transcode_file(
    input_path: PathLike,
    output_path: PathLike,
    document: MetadataDocument,
    options: TranscodeOptions,
) -> TranscodeResult:
    """Transcode one 3MF file on disk.

    The new archive is written to a temporary file next to ``output_path`` and
    moved into place once complete.  On failure the temporary file is deleted
    and ``output_path`` is left as it was.

    :raises BadArchiveError: If the input is not a readable ZIP archive.
    :raises ArchiveIOError: If a file can't be opened, read or written.
    """
    input_path = Path(input_path)
    output_path = Path(output_path)
    try:
        source = open(input_path, "rb")
    except OSError as e:
        raise ArchiveIOError(f"Failed to open input file {input_path}: {e}", str(input_path)) from e

    with source:
        try:
            handle, temp_name = tempfile.mkstemp(
                prefix=f".{output_path.name}.", suffix=".tmp", dir=str(output_path.parent)
            )
        except OSError as e:
            raise ArchiveIOError(f"Failed to open output file {output_path}: {e}", str(output_path)) from e

        completed = False
        try:
            with os.fdopen(handle, "wb") as destination:
                with ArchiveReader(source, str(input_path)) as reader:
                    with ArchiveWriter(destination, str(output_path)) as writer:
                        result = transcode(reader, writer, document, options)
            shutil.copymode(input_path, temp_name)
            os.replace(temp_name, output_path)
            completed = True
        except OSError as e:
            raise ArchiveIOError(f"Failed to write output file {output_path}: {e}", str(output_path)) from e
        finally:
            if not completed:
                _discard(temp_name)

    result.output_path = str(output_path)
    return result


def _discard(temp_name: str) -> None:
    try:
        os.remove(temp_name)
    except FileNotFoundError:
        pass
    debug(f"Removed partial output {temp_name}")


def show_metadata(input_path: PathLike, stream: Optional[IO[str]] = None) -> int:
    """Print the metadata of every model in a 3MF file.

    Each ``<metadata>`` element is written without namespaces and without an
    XML declaration, followed by a newline.

    :param input_path: The 3MF file to inspect.
    :param stream: Where to print the metadata. Defaults to ``sys.stdout``.
    :return: How many metadata elements were printed.
    """
    if stream is None:
        stream = sys.stdout
    input_path = Path(input_path)
    try:
        source = open(input_path, "rb")
    except OSError as e:
        raise ArchiveIOError(f"Failed to open input file {input_path}: {e}", str(input_path)) from e

    count = 0
    with source, ArchiveReader(source, str(input_path)) as reader:
        for entry in reader.entries():
            if classify(entry.filename) is not EntryKind.MODEL:
                continue
            try:
                root, _declarations = parse_document(reader.read(entry))
            except xml.etree.ElementTree.ParseError as e:
                raise ModelParseError(f"Model {entry.filename} is malformed: {e}") from e

            metadata = [child for child in root if is_metadata_element(child)]
            if not metadata:
                info(f"No metadata found in file {entry.filename}")
                continue
            info(f"Metadata found in file {entry.filename}:")
            for element in metadata:
                stream.write(serialize_fragment(element))
                stream.write("\n")
            count += len(metadata)
    return count
