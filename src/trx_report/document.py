"""
Loading of test result documents into a queryable XML tree.
"""

import logging
import os
import xml.etree.ElementTree as ET
from typing import BinaryIO, List, Optional, Union

from .config import TRX_NAMESPACE
from .exceptions import ParseError

logger = logging.getLogger(__name__)

Source = Union[str, "os.PathLike[str]", bytes, BinaryIO]


def local_name(element: ET.Element) -> str:
    """Return an element's tag without its namespace."""
    return element.tag.rsplit("}", 1)[-1]


def namespace_of(element: ET.Element) -> str:
    """Return an element's namespace URI, or an empty string when it has none."""
    if element.tag.startswith("{"):
        return element.tag[1:].split("}", 1)[0]
    return ""


class TrxDocument:
    """
    A parsed result document with namespace-aware lookups.

    All queries take local element names and qualify them with the
    document namespace the instance was created with.
    """

    def __init__(self, root: ET.Element, namespace: str = TRX_NAMESPACE):
        self.root = root
        self.namespace = namespace
        self._ns = {"t": namespace} if namespace else {}

    @classmethod
    def load(cls, source: Source, namespace: str = TRX_NAMESPACE) -> "TrxDocument":
        """
        Parse a document from a path, raw bytes or a binary stream.

        Args:
            source: File path, document bytes or an open binary stream
            namespace: Namespace URI the document elements live in

        Returns:
            TrxDocument wrapping the parsed tree

        Raises:
            ParseError: If the input is not well-formed XML
            FileNotFoundError: If a path is given and does not exist
        """
        if isinstance(source, (bytes, bytearray)):
            label = "<bytes>"
        elif isinstance(source, (str, os.PathLike)):
            label = os.fspath(source)
        else:
            label = getattr(source, "name", "<stream>")

        logger.debug("Parsing test result document %s", label)
        try:
            if isinstance(source, (bytes, bytearray)):
                root = ET.fromstring(bytes(source))
            else:
                root = ET.parse(source).getroot()
        except ET.ParseError as e:
            raise ParseError(str(label), str(e)) from e

        return cls(root, namespace)

    def _qualify(self, name: str) -> str:
        return f"t:{name}" if self._ns else name

    def find_all(self, name: str, element: Optional[ET.Element] = None) -> List[ET.Element]:
        """Return all descendants with the given local name, in document order."""
        scope = self.root if element is None else element
        matches = scope.findall(f".//{self._qualify(name)}", self._ns)
        if element is None and local_name(self.root) == name and self._in_namespace(self.root):
            matches.insert(0, self.root)
        return matches

    def find_first(self, name: str) -> Optional[ET.Element]:
        """Return the first element with the given local name, if any."""
        matches = self.find_all(name)
        return matches[0] if matches else None

    def child(self, element: ET.Element, name: str) -> Optional[ET.Element]:
        """Return the first direct child of element with the given local name."""
        return element.find(self._qualify(name), self._ns)

    def children_named(self, element: ET.Element, name: str) -> List[ET.Element]:
        """Return direct children whose local name matches, ignoring case."""
        wanted = name.casefold()
        return [child for child in element if local_name(child).casefold() == wanted]

    def _in_namespace(self, element: ET.Element) -> bool:
        return namespace_of(element) == self.namespace
