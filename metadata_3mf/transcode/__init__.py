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

"""
Archive transcoding: copy a 3MF archive while merging metadata into its models.

Public entry points::

    from metadata_3mf.transcode import transcode_file, show_metadata, TranscodeOptions
"""

from .archive import ArchiveReader, ArchiveWriter, EntryKind, classify, enclosed_path
from .context import TranscodeOptions, TranscodeResult
from .merge import make_title_entry, merge_children, merge_model, partition_children
from .transcoder import show_metadata, transcode, transcode_file

__all__ = [
    "ArchiveReader",
    "ArchiveWriter",
    "EntryKind",
    "classify",
    "enclosed_path",
    "TranscodeOptions",
    "TranscodeResult",
    "make_title_entry",
    "merge_children",
    "merge_model",
    "partition_children",
    "show_metadata",
    "transcode",
    "transcode_file",
]
