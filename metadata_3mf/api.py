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
Public API for adding metadata to 3MF files and showing it.

These entry points run the same pipeline as the command line, but return
lightweight result dataclasses instead of exiting the process.

Quick start::

    from metadata_3mf.api import add_metadata, show

    # Add
    result = add_metadata(["/path/to/part.3mf"], metadata_path="license.xml", title=True)
    print(result.status, result.written)     # FINISHED ['/path/to/part_licensed.3mf']

    # Show
    result = show(["/path/to/part_licensed.3mf"])
    print(result.status, result.num_metadata)

With an already loaded metadata document::

    from metadata_3mf.api import add_metadata
    from metadata_3mf.common import load_metadata_document

    document = load_metadata_document(b'<v1><metadata name="License">CC0</metadata></v1>')
    add_metadata(["a.3mf", "b.3mf"], document=document, keep_existing=True)

Processing stops at the first error; files handled before it stay written.
"""

from __future__ import annotations

import glob
import os
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Iterable, List, Optional, Union

from .common.constants import DEFAULT_METADATA_FILE, DEFAULT_SUFFIX
from .common.errors import InputNotFoundError, Metadata3MFError, OutputExistsError
from .common.logging import error, info
from .common.metadata import MetadataDocument, read_metadata_file
from .transcode import TranscodeOptions, show_metadata, transcode_file

__all__ = [
    # --- Core functions ---
    "add_metadata",
    "show",
    # --- Batch helpers ---
    "expand_inputs",
    "check_input",
    "output_path_for",
    # --- Options and result types ---
    "AddOptions",
    "AddResult",
    "ShowResult",
]

PathLike = Union[str, os.PathLike]

_GLOB_MAGIC = re.compile(r"[*?[]")


# ═══════════════════════════════════════════════════════════════════════════
# Options and result dataclasses
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class AddOptions:
    """User-facing options of the ``add`` command (command line flags or API keyword args)."""

    suffix: str = DEFAULT_SUFFIX  # Appended to the input's stem to name the output.
    metadata_path: str = DEFAULT_METADATA_FILE
    keep_existing: bool = False
    title: bool = False  # Set the Title entry to the output's stem.
    force: bool = False  # Overwrite existing outputs.


@dataclass
class AddResult:
    """Return value from :func:`add_metadata`.

    Attributes:
        status: ``"FINISHED"`` on success, ``"CANCELLED"`` on failure.
        written: Output files written, in processing order.
        skipped: Inputs skipped because their name already ends with the suffix.
        error_message: Human-readable error string when ``status == "CANCELLED"``.
    """

    status: str = "FINISHED"
    written: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    error_message: str = ""


@dataclass
class ShowResult:
    """Return value from :func:`show`.

    Attributes:
        status: ``"OK"`` on success, ``"ERROR"`` on failure.
        num_metadata: Number of metadata elements printed over all files.
        error_message: Human-readable error string when ``status == "ERROR"``.
    """

    status: str = "OK"
    num_metadata: int = 0
    error_message: str = ""


# ═══════════════════════════════════════════════════════════════════════════
# Batch helpers
# ═══════════════════════════════════════════════════════════════════════════

def expand_inputs(patterns: Iterable[PathLike]) -> List[Path]:
    """Expand wildcard patterns among the input arguments.

    Arguments that exist as given, or contain no wildcard, are kept as they
    are.  A pattern that matches nothing is kept too, so that the missing
    file is reported by :func:`check_input`.
    """
    paths = []
    for pattern in patterns:
        pattern = os.fspath(pattern)
        if _GLOB_MAGIC.search(pattern) and not os.path.exists(pattern):
            matches = sorted(glob.glob(pattern))
            if matches:
                paths.extend(Path(match) for match in matches)
                continue
        paths.append(Path(pattern))
    return paths


def check_input(path: Path) -> None:
    """Raise :class:`InputNotFoundError` unless ``path`` is an existing regular file."""
    if not path.exists():
        raise InputNotFoundError(path)
    if not path.is_file():
        raise InputNotFoundError(path, "is not a file")


def output_path_for(input_path: Path, suffix: str) -> Optional[Path]:
    """Name the output of an input file: ``<stem><suffix><extension>`` in the same folder.

    :return: The output path, or ``None`` if the input's stem already ends with the suffix.
    """
    stem = input_path.stem
    if stem.endswith(suffix):
        return None
    return input_path.with_name(f"{stem}{suffix}{input_path.suffix}")


# ═══════════════════════════════════════════════════════════════════════════
# add_metadata
# ═══════════════════════════════════════════════════════════════════════════

def add_metadata(
    input_files: Iterable[PathLike],
    metadata_path: PathLike = DEFAULT_METADATA_FILE,
    suffix: str = DEFAULT_SUFFIX,
    keep_existing: bool = False,
    title: bool = False,
    force: bool = False,
    document: Optional[MetadataDocument] = None,
) -> AddResult:
    """Write a copy of each input with the metadata document merged into its models.

    The metadata document is read and validated before any input is opened.

    :param input_files: 3MF files or wildcard patterns.
    :param metadata_path: The metadata document to inject. Ignored when ``document`` is given.
    :param suffix: Appended to each input's stem to name its output.
    :param keep_existing: Keep a model's own metadata when the document has an entry of the same name.
    :param title: Set each output's Title entry to the output's stem.
    :param force: Overwrite outputs that already exist.
    :param document: An already validated metadata document.
    :return: What was written and skipped, or why processing stopped.
    """
    options = AddOptions(
        suffix=suffix,
        metadata_path=os.fspath(metadata_path),
        keep_existing=keep_existing,
        title=title,
        force=force,
    )
    result = AddResult()
    try:
        if document is None:
            document = read_metadata_file(options.metadata_path)

        paths = expand_inputs(input_files)
        info(f"Number of input files: {len(paths)}")
        for input_path in paths:
            info(f"Processing {input_path}")
            check_input(input_path)

            output_path = output_path_for(input_path, options.suffix)
            if output_path is None:
                info(f"Skipping {input_path}, because it already ends with suffix")
                result.skipped.append(str(input_path))
                continue
            if output_path.exists() and not options.force:
                raise OutputExistsError(output_path)

            transcode_options = TranscodeOptions(
                keep_existing=options.keep_existing,
                title=output_path.stem if options.title else None,
            )
            transcode_file(input_path, output_path, document, transcode_options)
            result.written.append(str(output_path))
    except Metadata3MFError as e:
        error(str(e))
        result.status = "CANCELLED"
        result.error_message = str(e)
    return result


# ═══════════════════════════════════════════════════════════════════════════
# show
# ═══════════════════════════════════════════════════════════════════════════

def show(input_files: Iterable[PathLike], stream: Optional[IO[str]] = None) -> ShowResult:
    """Print the metadata of every model in each input file.

    :param input_files: 3MF files or wildcard patterns.
    :param stream: Where to print the metadata. Defaults to ``sys.stdout``.
    :return: How many metadata elements were printed, or why processing stopped.
    """
    if stream is None:
        stream = sys.stdout
    result = ShowResult()
    try:
        paths = expand_inputs(input_files)
        info(f"Number of input files: {len(paths)}")
        for input_path in paths:
            info(f"Processing {input_path}")
            check_input(input_path)
            result.num_metadata += show_metadata(input_path, stream)
    except Metadata3MFError as e:
        error(str(e))
        result.status = "ERROR"
        result.error_message = str(e)
    return result
