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
Metadata documents and the keyed entry set used to merge them.

A metadata document is a small XML file::

    <v1>
        <metadata name="License">CC-BY-4.0</metadata>
        <metadata name="Designer">Jane Doe</metadata>
    </v1>

Each ``<metadata>`` child is an entry keyed by its ``name`` attribute.  The
whole element travels into the model, so values may hold nested markup.
"""

import os
import xml.etree.ElementTree
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Union

from .constants import METADATA_NAME_ATTRIBUTE, METADATA_TAG, METADATA_VERSION_TAG
from .errors import (
    ArchiveIOError,
    EmptyMetadataError,
    MalformedMetadataError,
    MissingNameError,
    UnexpectedChildError,
    WrongVersionError,
)
from .logging import debug, warn
from .xml import local_name

__all__ = [
    "MetadataDocument",
    "MergedEntrySet",
    "entry_name",
    "is_metadata_element",
    "load_metadata_document",
    "read_metadata_file",
]


def is_metadata_element(element: xml.etree.ElementTree.Element) -> bool:
    """Whether an element is a ``<metadata>`` entry, in any namespace."""
    return local_name(element.tag) == METADATA_TAG


def entry_name(element: xml.etree.ElementTree.Element) -> str:
    """Return the key of a ``<metadata>`` element.

    :raises MissingNameError: If the element has no ``name`` attribute.
    """
    try:
        return element.attrib[METADATA_NAME_ATTRIBUTE]
    except KeyError:
        raise MissingNameError(
            f"<{local_name(element.tag)}> element without a {METADATA_NAME_ATTRIBUTE!r} attribute"
        ) from None


@dataclass
class MetadataDocument:
    """A validated metadata document: its ``<metadata>`` entries in document order."""

    entries: List[xml.etree.ElementTree.Element] = field(default_factory=list)

    def __iter__(self) -> Iterator[xml.etree.ElementTree.Element]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def names(self) -> List[str]:
        return [entry_name(entry) for entry in self.entries]


class MergedEntrySet:
    """
    Metadata entries keyed by name, in insertion order.

    Storing a key that is already present replaces its element but keeps the
    key where it was first inserted.  So the last writer decides *which*
    element survives, the first writer decides *where* it goes.
    """

    def __init__(self):
        self.entries: Dict[str, xml.etree.ElementTree.Element] = {}

    def __setitem__(self, key: str, element: xml.etree.ElementTree.Element) -> None:
        self.entries[key] = element

    def __getitem__(self, key: str) -> xml.etree.ElementTree.Element:
        return self.entries[key]

    def __contains__(self, key: str) -> bool:
        return key in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def __bool__(self) -> bool:
        return bool(self.entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MergedEntrySet):
            return NotImplemented
        return list(self.entries.items()) == list(other.entries.items())

    def insert(self, element: xml.etree.ElementTree.Element) -> None:
        """Store a ``<metadata>`` element under its own name."""
        self[entry_name(element)] = element

    def insert_all(self, elements: Iterable[xml.etree.ElementTree.Element]) -> None:
        for element in elements:
            self.insert(element)

    def keys(self) -> List[str]:
        return list(self.entries)

    def values(self) -> Iterator[xml.etree.ElementTree.Element]:
        """Yield the surviving elements in serialization order."""
        yield from self.entries.values()


def load_metadata_document(raw_xml: Union[bytes, str]) -> MetadataDocument:
    """Parse and validate a metadata document.

    :param raw_xml: The document contents.
    :return: The validated document.
    :raises MalformedMetadataError: If the document is not well-formed XML.
    :raises WrongVersionError: If the root element is not ``<v1>``.
    :raises UnexpectedChildError: If the root has children other than ``<metadata>`` elements.
    :raises EmptyMetadataError: If the root has no ``<metadata>`` children.
    :raises MissingNameError: If a ``<metadata>`` child has no ``name``.
    """
    # Keep comments and processing instructions in the tree so they can be rejected.
    builder = xml.etree.ElementTree.TreeBuilder(insert_comments=True, insert_pis=True)
    parser = xml.etree.ElementTree.XMLParser(target=builder)
    try:
        root = xml.etree.ElementTree.fromstring(raw_xml, parser=parser)
    except xml.etree.ElementTree.ParseError as e:
        raise MalformedMetadataError(f"Could not parse metadata file: {e}") from e

    if local_name(root.tag) != METADATA_VERSION_TAG:
        raise WrongVersionError(f"Metadata file is not a {METADATA_VERSION_TAG} file")

    if root.text and root.text.strip():
        raise UnexpectedChildError(
            f"Metadata file contains text directly inside <{METADATA_VERSION_TAG}>"
        )
    for child in root:
        if not is_metadata_element(child):
            raise UnexpectedChildError(
                f"Metadata file contains XML nodes other than {METADATA_VERSION_TAG} "
                f"and its {METADATA_TAG} children"
            )
        if child.tail and child.tail.strip():
            raise UnexpectedChildError(
                f"Metadata file contains text directly inside <{METADATA_VERSION_TAG}>"
            )

    entries = list(root)
    if not entries:
        raise EmptyMetadataError("Metadata file has no metadata elements")

    seen = set()
    for entry in entries:
        name = entry_name(entry)
        if name in seen:
            warn(f"Metadata file defines {name!r} more than once, the last one is used")
        seen.add(name)

    debug(f"Loaded {len(entries)} metadata entries: {', '.join(sorted(seen))}")
    return MetadataDocument(entries=entries)


def read_metadata_file(path: Union[str, os.PathLike]) -> MetadataDocument:
    """Read and validate a metadata document from disk.

    :raises ArchiveIOError: If the file can't be read.
    """
    try:
        with open(path, "rb") as f:
            raw_xml = f.read()
    except OSError as e:
        raise ArchiveIOError(f"Could not read metadata file {path}: {e}", str(path)) from e
    return load_metadata_document(raw_xml)
