# === NAVMAP v1 ===
# {
#   "module": "FPZ.BundleAssembly.resolver",
#   "purpose": "Derive component identity, download URL, and install metadata from manifest position",
#   "sections": [
#     {"id": "component", "name": "Component", "anchor": "class-component", "kind": "class"},
#     {"id": "helpers", "name": "Attribute helpers", "anchor": "HELP", "kind": "helpers"},
#     {"id": "resolve-component", "name": "resolve_component", "anchor": "function-resolve-component", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Component resolution.

A component's identity is its position in the manifest: the ``id`` of every
ancestor category that carries one, root-most first, followed by the
component's own ``id``, joined with ``-``.  The download URL is that identity
appended to the manifest root's ``url``.  Resolution is a pure function of the
tree; nothing here performs I/O.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Tuple

from .errors import ManifestFormatError
from .manifest import ManifestNode, ManifestTree

__all__ = ["ARCHIVE_SUFFIX", "Component", "derive_component_id", "resolve_component"]

ARCHIVE_SUFFIX = ".zip"
ID_SEPARATOR = "-"

_SIZE_PATTERN = re.compile(r"\d+")


@dataclass(frozen=True)
class Component:
    """Installable unit resolved from one manifest leaf."""

    id: str
    url: str
    install_size: int
    hash: str
    path: str = ""
    depends: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_eligible(self) -> bool:
        """``install_size == 0`` marks a grouping entry with no payload."""
        return self.install_size != 0

    def provenance_header(self) -> str:
        """Return the first provenance line: hash, size, then dependency ids."""
        return " ".join([self.hash, str(self.install_size), *self.depends])


# --- Attribute helpers ---------------------------------------------------------


def derive_component_id(node: ManifestNode) -> str:
    """Join ancestor ids (root-most first) and the node's own id with ``-``."""

    parts: List[str] = [node.require("id")]
    for ancestor in node.ancestors():
        ancestor_id = ancestor.get("id")
        if ancestor_id is not None:
            parts.append(ancestor_id)
    return ID_SEPARATOR.join(reversed(parts))


def _parse_install_size(node: ManifestNode) -> int:
    raw = node.require("install-size").strip()
    if not _SIZE_PATTERN.fullmatch(raw):
        raise ManifestFormatError(
            f"{node!r} has non-numeric install-size {raw!r}"
        )
    return int(raw)


def _parse_depends(node: ManifestNode) -> Tuple[str, ...]:
    raw = node.get("depends")
    if not raw:
        return ()
    return tuple(raw.split(" "))


def resolve_component(node: ManifestNode, tree: ManifestTree) -> Component:
    """Build the :class:`Component` described by ``node``.

    Raises:
        ManifestFormatError: If ``id``, ``hash`` or ``install-size`` is missing,
            ``install-size`` is not a non-negative integer, or the manifest root
            carries no ``url``.
    """

    component_id = derive_component_id(node)
    return Component(
        id=component_id,
        url=f"{tree.base_url}{component_id}{ARCHIVE_SUFFIX}",
        install_size=_parse_install_size(node),
        hash=node.require("hash"),
        path=node.get("path", ""),
        depends=_parse_depends(node),
    )
