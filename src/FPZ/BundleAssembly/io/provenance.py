"""Per-component provenance records.

Each eligible component leaves a plain-text record at
``<staging>/Components/<component id>``::

    <hash> <install-size> [<dependency id> ...]
    <extracted path>
    <extracted path>
    ...
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Sequence, Tuple

from ..errors import ProvenanceWriteError
from ..resolver import Component

__all__ = [
    "COMPONENTS_DIRNAME",
    "ProvenanceRecord",
    "provenance_path",
    "write_provenance",
    "read_provenance",
    "iter_provenance",
]

COMPONENTS_DIRNAME = "Components"

LOGGER = logging.getLogger("FPZ.BundleAssembly.io")


@dataclass(frozen=True)
class ProvenanceRecord:
    """Parsed contents of a provenance file."""

    component_id: str
    hash: str
    install_size: int
    depends: Tuple[str, ...]
    files: Tuple[str, ...]


def provenance_path(staging_root: Path, component_id: str) -> Path:
    return Path(staging_root) / COMPONENTS_DIRNAME / component_id


def write_provenance(
    component: Component,
    extracted: Sequence[str],
    staging_root: Path,
) -> Path:
    """Write the provenance record for ``component`` and return its path.

    Raises:
        ProvenanceWriteError: If the record or its directory cannot be written.
    """

    target = provenance_path(staging_root, component.id)
    lines: List[str] = [component.provenance_header(), *extracted]
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("w", encoding="utf-8", newline="\n") as handle:
            for line in lines:
                handle.write(line + "\n")
    except OSError as exc:
        raise ProvenanceWriteError(
            f"Failed to write provenance for component {component.id}: {exc}"
        ) from exc
    LOGGER.debug(
        "wrote provenance",
        extra={"stage": "provenance", "component_id": component.id, "path": str(target)},
    )
    return target


def read_provenance(path: Path) -> ProvenanceRecord:
    """Parse a provenance file written by :func:`write_provenance`."""

    path = Path(path)
    lines = path.read_text(encoding="utf-8").splitlines()
    if not lines:
        raise ValueError(f"Provenance record {path} is empty")
    header = lines[0].split(" ")
    if len(header) < 2 or not header[1].isdigit():
        raise ValueError(f"Provenance record {path} has a malformed header: {lines[0]!r}")
    return ProvenanceRecord(
        component_id=path.name,
        hash=header[0],
        install_size=int(header[1]),
        depends=tuple(header[2:]),
        files=tuple(lines[1:]),
    )


def iter_provenance(staging_root: Path) -> Iterator[ProvenanceRecord]:
    """Yield every provenance record in ``staging_root`` sorted by component id."""

    directory = Path(staging_root) / COMPONENTS_DIRNAME
    if not directory.is_dir():
        return
    for path in sorted(directory.iterdir()):
        if path.is_file():
            yield read_provenance(path)
