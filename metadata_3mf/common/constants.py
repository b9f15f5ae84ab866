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
This module defines some constants for 3MF's file structure and for the
metadata documents this tool injects.

These are the names a 3MF model uses for its metadata, plus the defaults
of the command-line tool.
"""

# IDE and Documentation support.
__all__ = [
    "MODEL_EXTENSION",
    "METADATA_TAG",
    "METADATA_NAME_ATTRIBUTE",
    "METADATA_VERSION_TAG",
    "TITLE_KEY",
    "MODEL_COMPRESSION_LEVEL",
    "XML_INDENT",
    "DEFAULT_SUFFIX",
    "DEFAULT_METADATA_FILE",
]

# Archive entries with this path extension hold model XML. Everything else is copied verbatim.
MODEL_EXTENSION: str = ".model"

# Metadata elements, in both the model and the injected document.
METADATA_TAG: str = "metadata"
METADATA_NAME_ATTRIBUTE: str = "name"
TITLE_KEY: str = "Title"

# Root tag of an injected metadata document. Bump when the document format changes.
METADATA_VERSION_TAG: str = "v1"

# Rewritten model entries are always deflated at the highest level.
MODEL_COMPRESSION_LEVEL: int = 9
XML_INDENT: str = "\t"

# Command-line defaults.
DEFAULT_SUFFIX: str = "_licensed"
DEFAULT_METADATA_FILE: str = "metadata.xml"
