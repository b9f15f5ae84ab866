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
XML utility functions shared by the merge engine and the metadata viewer.

ElementTree rewrites namespace prefixes on output (``ns0:``, ``ns1:``...)
and silently drops declarations that no element uses.  3MF consumers read
``requiredextensions`` prefixes straight from the root's ``xmlns``
declarations, so the helpers here remember what the source document
declared and put it back when serializing.
"""

import copy
import io
import re
import xml.etree.ElementTree
from typing import Dict, List, Optional, Set, Tuple

from .constants import XML_INDENT
from .logging import debug

__all__ = [
    "NamespaceDeclarations",
    "local_name",
    "namespace_of",
    "parse_document",
    "adopt_namespace",
    "strip_namespaces",
    "serialize_document",
    "serialize_fragment",
]

NamespaceDeclarations = List[Tuple[str, str]]
"""``(prefix, uri)`` pairs in document order. The default namespace has prefix ``""``."""

# ElementTree refuses to register these itself.
_RESERVED_PREFIX = re.compile(r"ns\d+$")
_XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"


def local_name(tag) -> str:
    """Return the tag name without its ``{namespace}`` part.

    Comments and processing instructions have a factory function as their
    tag; they have no name and yield ``""``.
    """
    if not isinstance(tag, str):
        return ""
    if tag[:1] == "{":
        return tag.rsplit("}", 1)[1]
    return tag


def namespace_of(tag) -> str:
    """Return the namespace URI of a tag, or ``""`` if it has none."""
    if isinstance(tag, str) and tag[:1] == "{":
        return tag[1:].rsplit("}", 1)[0]
    return ""


def parse_document(data: bytes) -> Tuple[xml.etree.ElementTree.Element, NamespaceDeclarations]:
    """Parse an XML document and collect its namespace declarations.

    :param data: The raw document.
    :return: The root element and the declared ``(prefix, uri)`` pairs.
    :raises xml.etree.ElementTree.ParseError: If the document is malformed.
    """
    declarations: NamespaceDeclarations = []
    events = xml.etree.ElementTree.iterparse(io.BytesIO(data), events=("start-ns",))
    for _event, declaration in events:
        declarations.append(declaration)
    return events.root, declarations


def adopt_namespace(element: xml.etree.ElementTree.Element, namespace: str) -> None:
    """Move every unqualified element in a subtree into ``namespace``.

    Elements that already carry a namespace keep it.
    """
    if not namespace:
        return
    for node in element.iter():
        if isinstance(node.tag, str) and node.tag[:1] != "{":
            node.tag = f"{{{namespace}}}{node.tag}"


def strip_namespaces(element: xml.etree.ElementTree.Element) -> None:
    """Remove the namespace from every element tag in a subtree, in place."""
    for node in element.iter():
        if isinstance(node.tag, str):
            node.tag = local_name(node.tag)


def _used_namespaces(root: xml.etree.ElementTree.Element) -> Set[str]:
    used = set()
    for node in root.iter():
        uri = namespace_of(node.tag)
        if uri:
            used.add(uri)
        for key in node.attrib:
            uri = namespace_of(key)
            if uri:
                used.add(uri)
    return used


def _restore_namespaces(
    root: xml.etree.ElementTree.Element,
    declarations: NamespaceDeclarations,
) -> None:
    """Make the serializer reuse the document's own prefixes.

    Used namespaces are registered with ElementTree so it picks the original
    prefix.  Declarations nothing refers to would be dropped by the
    serializer, so they are written onto the root as plain attributes.
    """
    used = _used_namespaces(root)
    seen_prefixes: Dict[str, str] = {}
    for prefix, uri in declarations:
        if prefix in seen_prefixes or uri == _XML_NAMESPACE:
            continue
        seen_prefixes[prefix] = uri
        if uri in used:
            if _RESERVED_PREFIX.match(prefix):
                debug(f"Namespace prefix {prefix} is reserved by ElementTree, it will be renamed")
                continue
            xml.etree.ElementTree.register_namespace(prefix, uri)
        else:
            attribute = f"xmlns:{prefix}" if prefix else "xmlns"
            root.set(attribute, uri)


def serialize_document(
    root: xml.etree.ElementTree.Element,
    declarations: Optional[NamespaceDeclarations] = None,
) -> bytes:
    """Serialize a whole document with the canonical formatting.

    Tab indentation, ``\\n`` line separators, UTF-8, and an XML declaration.

    :param root: The root element. Its whitespace is re-indented in place.
    :param declarations: Namespace declarations of the source document.
    :return: The encoded document.
    """
    _restore_namespaces(root, declarations or [])
    xml.etree.ElementTree.indent(root, space=XML_INDENT)
    buffer = io.BytesIO()
    xml.etree.ElementTree.ElementTree(root).write(buffer, encoding="UTF-8", xml_declaration=True)
    return buffer.getvalue()


def serialize_fragment(element: xml.etree.ElementTree.Element) -> str:
    """Serialize one element for display: no namespaces, no XML declaration.

    The element itself is left untouched.
    """
    fragment = copy.deepcopy(element)
    fragment.tail = None
    strip_namespaces(fragment)
    xml.etree.ElementTree.indent(fragment, space=XML_INDENT)
    return xml.etree.ElementTree.tostring(fragment, encoding="unicode")
