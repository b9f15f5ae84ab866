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
Common utilities shared by the transcoder, the API and the command line.

Re-exports the most frequently used symbols for convenient access::

    from ..common import debug, info, warn, error
    from ..common import MetadataDocument, load_metadata_document
    from ..common import MODEL_EXTENSION, TITLE_KEY
"""

# Logging
from .logging import DEBUG_MODE, debug, info, warn, error, set_debug

# Constants, the most commonly used ones
from .constants import (
    MODEL_EXTENSION,
    METADATA_TAG,
    METADATA_VERSION_TAG,
    TITLE_KEY,
    MODEL_COMPRESSION_LEVEL,
    DEFAULT_SUFFIX,
    DEFAULT_METADATA_FILE,
)

# Errors
from .errors import (
    Metadata3MFError,
    MetadataValidationError,
    ArchiveIntegrityError,
    PolicyError,
    ArchiveIOError,
)

# Metadata documents
from .metadata import (
    MetadataDocument,
    MergedEntrySet,
    entry_name,
    is_metadata_element,
    load_metadata_document,
    read_metadata_file,
)

__all__ = [
    # Logging
    "DEBUG_MODE",
    "debug",
    "info",
    "warn",
    "error",
    "set_debug",
    # Constants (subset)
    "MODEL_EXTENSION",
    "METADATA_TAG",
    "METADATA_VERSION_TAG",
    "TITLE_KEY",
    "MODEL_COMPRESSION_LEVEL",
    "DEFAULT_SUFFIX",
    "DEFAULT_METADATA_FILE",
    # Errors (base classes)
    "Metadata3MFError",
    "MetadataValidationError",
    "ArchiveIntegrityError",
    "PolicyError",
    "ArchiveIOError",
    # Metadata documents
    "MetadataDocument",
    "MergedEntrySet",
    "entry_name",
    "is_metadata_element",
    "load_metadata_document",
    "read_metadata_file",
]
