# === NAVMAP v1 ===
# {
#   "module": "FPZ.BundleAssembly.manifest",
#   "purpose": "Read-only attributed tree over the component manifest plus loading helpers",
#   "sections": [
#     {"id": "nodes", "name": "ManifestNode", "anchor": "class-manifestnode", "kind": "class"},
#     {"id": "tree", "name": "ManifestTree", "anchor": "class-manifesttree", "kind": "class"},
#     {"id": "parse", "name": "parse_manifest", "anchor": "function-parse-manifest", "kind": "function"},
#     {"id": "load", "name": "load_manifest", "anchor": "function-load-manifest", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Component manifest tree.

The manifest is a markup document shaped like::

    <list url="https://mirror.example/components/">
      <category id="core">
        <category id="engine">
          <component id="runtime" install-size="1024" hash="..." path="bin"/>
        </category>
      </category>
    </list>

:class:`ManifestTree` wraps the parsed document in parent-aware, read-only
nodes so resolution can walk ancestor chains without touching the parser's
element objects.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, Iterator, Mapping, Optional, Tuple, Union
from urllib.parse import unquote, urlparse

import httpx

from .errors import ManifestFetchError, ManifestFormatError
from .net import fetch_manifest_bytes

__all__ = [
    "CATEGORY_TAG",
    "COMPONENT_TAG",
    "ManifestNode",
    "ManifestTree",
    "parse_manifest",
    "read_manifest_source",
    "load_manifest",
]

LOGGER = logging.getLogger("FPZ.BundleAssembly.manifest")

CATEGORY_TAG = "category"
COMPONENT_TAG = "component"


class ManifestNode:
    """Immutable view over one manifest element."""

    __slots__ = ("tag", "_attributes", "parent", "children")

    def __init__(
        self,
        tag: str,
        attributes: Mapping[str, str],
        parent: Optional["ManifestNode"] = None,
    ) -> None:
        self.tag = tag
        self._attributes: Dict[str, str] = dict(attributes)
        self.parent = parent
        self.children: Tuple["ManifestNode", ...] = ()

    def __repr__(self) -> str:
        node_id = self.get("id")
        suffix = f" id={node_id!r}" if node_id is not None else ""
        return f"<ManifestNode {self.tag}{suffix}>"

    @property
    def is_root(self) -> bool:
        return self.parent is None

    def has(self, name: str) -> bool:
        return name in self._attributes

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Return attribute ``name`` or ``default`` when the node does not carry it."""

        return self._attributes.get(name, default)

    def require(self, name: str) -> str:
        """Return attribute ``name`` or raise :class:`ManifestFormatError`."""

        value = self._attributes.get(name)
        if value is None:
            raise ManifestFormatError(f"{self!r} is missing required attribute '{name}'")
        return value

    def ancestors(self) -> Iterator["ManifestNode"]:
        """Yield ancestors nearest-first, stopping before the tree root."""

        current = self.parent
        while current is not None and not current.is_root:
            yield current
            current = current.parent

    def iter_descendants(self) -> Iterator["ManifestNode"]:
        """Yield descendants depth-first in document order."""

        for child in self.children:
            yield child
            yield from child.iter_descendants()

    def iter_components(self) -> Iterator["ManifestNode"]:
        for node in self.iter_descendants():
            if node.tag == COMPONENT_TAG:
                yield node


def _build_node(element: ET.Element, parent: Optional[ManifestNode]) -> ManifestNode:
    node = ManifestNode(element.tag, element.attrib, parent)
    node.children = tuple(_build_node(child, node) for child in element)
    return node


class ManifestTree:
    """Parsed manifest; built once and never mutated."""

    def __init__(self, root: ManifestNode) -> None:
        self.root = root
        self._base_url: Optional[str] = None

    @property
    def base_url(self) -> str:
        """Root ``url`` attribute, always ending with ``/``."""

        if self._base_url is None:
            url = self.root.get("url")
            if not url:
                raise ManifestFormatError("Manifest root element has no 'url' attribute")
            self._base_url = url if url.endswith("/") else url + "/"
        return self._base_url

    def categories(self, category_id: str) -> Iterator[ManifestNode]:
        for child in self.root.children:
            if child.tag == CATEGORY_TAG and child.get("id") == category_id:
                yield child

    def select_components(self, category_id: str = "core") -> Iterator[ManifestNode]:
        """Yield component nodes under the ``category_id`` category in document order."""

        for category in self.categories(category_id):
            yield from category.iter_components()


def parse_manifest(markup: Union[str, bytes]) -> ManifestTree:
    """Parse ``markup`` into a :class:`ManifestTree`.

    Raises:
        ManifestFetchError: If the markup is not well formed.
    """

    try:
        element = ET.fromstring(markup)
    except ET.ParseError as exc:
        raise ManifestFetchError(f"Manifest markup could not be parsed: {exc}") from exc
    return ManifestTree(_build_node(element, None))


def read_manifest_source(source: str, *, client: Optional[httpx.Client] = None) -> bytes:
    """Return the raw markup behind ``source`` (HTTP(S) URL, ``file://`` URL, or path)."""

    parsed = urlparse(source)
    if parsed.scheme in {"http", "https"}:
        return fetch_manifest_bytes(source, client=client)
    path = Path(unquote(parsed.path)) if parsed.scheme == "file" else Path(source).expanduser()
    try:
        return path.read_bytes()
    except OSError as exc:
        raise ManifestFetchError(f"Manifest {source} could not be read: {exc}") from exc


def load_manifest(source: str, *, client: Optional[httpx.Client] = None) -> ManifestTree:
    """Fetch and parse the manifest at ``source``."""

    LOGGER.debug("loading manifest", extra={"stage": "manifest", "url": source})
    return parse_manifest(read_manifest_source(source, client=client))
