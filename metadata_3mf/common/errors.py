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
Exception types raised by the metadata loader, merge engine and transcoder.

The core never exits the process.  Callers (the command line driver or the
:mod:`metadata_3mf.api` functions) decide what an error means for the run.
"""

from typing import Optional

__all__ = [
    "Metadata3MFError",
    "MetadataValidationError",
    "MalformedMetadataError",
    "WrongVersionError",
    "UnexpectedChildError",
    "EmptyMetadataError",
    "ArchiveIntegrityError",
    "BadArchiveError",
    "UnsafeEntryError",
    "ModelParseError",
    "MissingNameError",
    "PolicyError",
    "OutputExistsError",
    "InputNotFoundError",
    "ArchiveIOError",
]


class Metadata3MFError(Exception):
    """Base class of every error this package raises on purpose."""


# ---------------------------------------------------------------------------
# Metadata document validation
# ---------------------------------------------------------------------------

class MetadataValidationError(Metadata3MFError):
    """The injected metadata document is unusable. Detected before any archive is opened."""


class MalformedMetadataError(MetadataValidationError):
    """The metadata document is not well-formed XML."""


class WrongVersionError(MetadataValidationError):
    """The root element of the metadata document is not the supported version tag."""


class UnexpectedChildError(MetadataValidationError):
    """The metadata root holds something other than ``<metadata>`` elements."""


class EmptyMetadataError(MetadataValidationError):
    """The metadata root holds no ``<metadata>`` elements at all."""


# ---------------------------------------------------------------------------
# Archive integrity
# ---------------------------------------------------------------------------

class ArchiveIntegrityError(Metadata3MFError):
    """A 3MF archive can't be transcoded safely."""


class BadArchiveError(ArchiveIntegrityError):
    """The input is not a readable ZIP archive."""


class UnsafeEntryError(ArchiveIntegrityError):
    """An archive entry name can't be read as a relative path inside the archive."""

    def __init__(self, entry_name: str, reason: str):
        super().__init__(f"Unsafe archive entry {entry_name!r}: {reason}")
        self.entry_name = entry_name
        self.reason = reason


class ModelParseError(ArchiveIntegrityError):
    """A ``.model`` entry does not contain well-formed XML."""


class MissingNameError(MetadataValidationError, ArchiveIntegrityError):
    """A ``<metadata>`` element lacks the ``name`` attribute used as its key.

    Raised both for the injected document (a validation error) and for
    metadata already present in a model entry (an archive-integrity error).
    """


# ---------------------------------------------------------------------------
# Batch policy
# ---------------------------------------------------------------------------

class PolicyError(Metadata3MFError):
    """The requested operation is refused by the batch policy."""


class OutputExistsError(PolicyError):
    """The output file exists and overwriting was not forced."""

    def __init__(self, path):
        super().__init__(f"{path} already exists, use -f or --force to ignore")
        self.path = path


class InputNotFoundError(PolicyError):
    """An input path does not exist or is not a regular file."""

    def __init__(self, path, reason: str = "does not exist"):
        super().__init__(f"{path} {reason}")
        self.path = path


# ---------------------------------------------------------------------------
# I/O
# ---------------------------------------------------------------------------

class ArchiveIOError(Metadata3MFError):
    """Opening, reading or writing a file failed."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path
