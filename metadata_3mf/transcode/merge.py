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
Merging injected metadata into a 3MF model.

The model's root holds ``<metadata>`` elements next to ``<resources>`` and
``<build>``.  Merging collects both sets of metadata in one
:class:`MergedEntrySet`; whichever source is inserted *last* wins a name
collision::

    keep_existing=False   existing, then injected    (injected wins)
    keep_existing=True    injected, then existing    (existing wins)

A title override is inserted after both and always wins.  The merged
metadata block is written first, followed by every other child of the root
in its original order.
"""

import copy
import xml.etree.ElementTree
from typing import Iterable, List, Optional, Tuple

from ..common.constants import METADATA_NAME_ATTRIBUTE, METADATA_TAG, TITLE_KEY
from ..common.errors import ModelParseError
from ..common.logging import debug, info
from ..common.metadata import MergedEntrySet, MetadataDocument, is_metadata_element
from ..common.xml import adopt_namespace, namespace_of, parse_document, serialize_document
from .context import TranscodeOptions

__all__ = [
    "partition_children",
    "make_title_entry",
    "merge_children",
    "merge_model",
]

Element = xml.etree.ElementTree.Element


def partition_children(children: Iterable[Element]) -> Tuple[List[Element], List[Element]]:
    """Split the children of a model root into metadata and everything else.

    Both lists keep their original order.
    """
    metadata = []
    other = []
    for child in children:
        if is_metadata_element(child):
            metadata.append(child)
        else:
            other.append(child)
    return metadata, other


def make_title_entry(title: str, namespace: str = "") -> Element:
    """Create a ``<metadata name="Title">`` element holding only ``title`` as text."""
    tag = f"{{{namespace}}}{METADATA_TAG}" if namespace else METADATA_TAG
    element = xml.etree.ElementTree.Element(tag, {METADATA_NAME_ATTRIBUTE: TITLE_KEY})
    element.text = title
    return element


def merge_children(
    model_children: Iterable[Element],
    injected_entries: Iterable[Element],
    keep_existing: bool = False,
    title: Optional[str] = None,
    namespace: str = "",
) -> List[Element]:
    """Merge injected metadata entries into the children of a model root.

    :param model_children: Children of the model root, in document order.
    :param injected_entries: ``<metadata>`` elements to inject. They are inserted as given.
    :param keep_existing: Whether the model's own metadata wins name collisions.
    :param title: If given, the value of a ``Title`` entry that overrides all others.
    :param namespace: Namespace of the synthesized ``Title`` element, normally the model's.
    :return: The merged metadata entries followed by the other children.
    :raises MissingNameError: If a metadata element on either side has no name.
    """
    existing, other = partition_children(model_children)

    merged = MergedEntrySet()
    if keep_existing:
        merged.insert_all(injected_entries)
        merged.insert_all(existing)
    else:
        merged.insert_all(existing)
        merged.insert_all(injected_entries)

    if title is not None:
        merged.insert(make_title_entry(title, namespace))

    return list(merged.values()) + other


def merge_model(
    model_data: bytes,
    document: MetadataDocument,
    options: TranscodeOptions,
    entry_name: str = "<model>",
) -> bytes:
    """Merge a metadata document into one serialized model.

    :param model_data: Contents of a ``.model`` archive entry.
    :param document: The validated metadata to inject.
    :param options: Merge policy.
    :param entry_name: Name of the entry, for messages.
    :return: The rewritten model, serialized with the canonical formatting.
    :raises ModelParseError: If the model is not well-formed XML.
    :raises MissingNameError: If a model metadata element has no name.
    """
    try:
        root, declarations = parse_document(model_data)
    except xml.etree.ElementTree.ParseError as e:
        raise ModelParseError(f"Model {entry_name} is malformed: {e}") from e

    # Injected entries are shared by every model of the batch. Work on copies in the model's namespace.
    namespace = namespace_of(root.tag)
    injected = []
    for entry in document:
        entry = copy.deepcopy(entry)
        entry.tail = None
        adopt_namespace(entry, namespace)
        injected.append(entry)

    if options.title is not None:
        info(f"setting title to {options.title}")
    root[:] = merge_children(list(root), injected, options.keep_existing, options.title, namespace)
    debug(f"Merged {len(injected)} injected entries into {entry_name}")
    return serialize_document(root, declarations)
