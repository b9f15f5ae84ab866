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
Options and results for a single archive transcoding.

``TranscodeOptions`` mirrors the ``add`` command's merge flags and is
shared by every file of a batch.  ``TranscodeResult`` describes what
happened to one archive.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class TranscodeOptions:
    """How injected metadata is merged into each model entry."""

    keep_existing: bool = False  # Model metadata wins on name collisions.
    title: Optional[str] = None  # Forces the Title entry when set.


@dataclass
class TranscodeResult:
    """What a transcoding pass did to one archive.

    Attributes:
        model_entries: Names of the ``.model`` entries that were rewritten, in archive order.
        copied_entries: Names of the entries that were copied verbatim, in archive order.
        output_path: Where the archive ended up, for file-level transcoding.
    """

    model_entries: List[str] = field(default_factory=list)
    copied_entries: List[str] = field(default_factory=list)
    output_path: Optional[str] = None

    @property
    def num_entries(self) -> int:
        return len(self.model_entries) + len(self.copied_entries)
