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
Add metadata to 3MF files.

A 3MF file is a ZIP archive whose ``.model`` entries hold the 3D model as
XML.  This package merges the ``<metadata>`` entries of a small metadata
document into every model of an archive and writes a new archive; all
other entries are copied without being recompressed.
"""

__version__ = "0.1.0"

from .api import AddOptions, AddResult, ShowResult, add_metadata, show  # noqa: E402

# IDE and Documentation support.
__all__ = [
    "__version__",
    "AddOptions",
    "AddResult",
    "ShowResult",
    "add_metadata",
    "show",
]
