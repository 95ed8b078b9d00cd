# === NAVMAP v1 ===
# {
#   "module": "FPZ.BundleAssembly.io.extraction",
#   "purpose": "Unpack fetched component archives into the staging tree",
#   "sections": [
#     {"id": "paths", "name": "Path Helpers", "anchor": "PTH", "kind": "helpers"},
#     {"id": "archives", "name": "Archive Extraction", "anchor": "ARC", "kind": "api"}
#   ]
# }
# === /NAVMAP ===

"""Archive extraction into the staging tree.

Component archives are read from memory with libarchive.  Directory entries
are skipped and link or special-file entries are refused; every regular file
lands under ``staging_root / component.path`` with the archive's modification
time applied.  The returned relative paths feed the component's provenance
record, so their order is the archive's header order.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path, PurePosixPath
from typing import List, Optional

import libarchive

from ..errors import ArchiveExtractionError
from ..resolver import Component

__all__ = ["ARCHIVE_FORMAT", "normalize_manifest_path", "extract_component"]

ARCHIVE_FORMAT = "zip"

LOGGER = logging.getLogger("FPZ.BundleAssembly.io")


def normalize_manifest_path(value: str) -> str:
    """Convert a manifest ``/``-separated subpath to host separators, relative to the root.

    Raises:
        ArchiveExtractionError: If a segment is ``.`` or ``..``.
    """

    segments = [segment for segment in value.replace("\\", "/").split("/") if segment]
    if any(segment in {".", ".."} for segment in segments):
        raise ArchiveExtractionError(f"Unsafe component path in manifest: {value}")
    return os.sep.join(segments)


def _validate_entry_type(entry: "libarchive.ArchiveEntry") -> None:
    """Reject link and special-file entries; only regular files are extracted."""

    if entry.issym:
        raise ArchiveExtractionError(f"Symlink not permitted: {entry.pathname}")
    if entry.islnk:
        raise ArchiveExtractionError(f"Hardlink not permitted: {entry.pathname}")
    if entry.isfifo or entry.isblk or entry.ischr or entry.issock:
        raise ArchiveExtractionError(f"Special file not permitted: {entry.pathname}")


def _validate_member_path(member_name: str) -> PurePosixPath:
    """Validate archive member paths to prevent traversal outside the destination."""

    relative = PurePosixPath(member_name.replace("\\", "/"))
    if relative.is_absolute():
        raise ArchiveExtractionError(f"Unsafe absolute path detected in archive: {member_name}")
    if not relative.parts:
        raise ArchiveExtractionError(f"Empty path detected in archive: {member_name}")
    if any(part in {"", ".", ".."} for part in relative.parts):
        raise ArchiveExtractionError(f"Unsafe path detected in archive: {member_name}")
    return relative


def _apply_mtime(target: Path, mtime: Optional[float]) -> None:
    if mtime is None:
        return
    os.utime(target, (mtime, mtime))


def extract_component(
    component: Component,
    payload: bytes,
    staging_root: Path,
    *,
    logger: Optional[logging.Logger] = None,
) -> List[str]:
    """Extract ``payload`` into the staging tree at ``component.path``.

    Args:
        component: Resolved component the archive belongs to.
        payload: Raw bytes of the component's zip archive.
        staging_root: Root of the staging tree.
        logger: Optional logger for the ``extract`` stage.

    Returns:
        Staging-relative paths of the extracted files, in archive order.

    Raises:
        ArchiveExtractionError: If the bytes are not a readable archive, the
            component path or an entry name is unsafe, an entry is a link or
            special file, or an entry cannot be written.
    """

    log = logger or LOGGER
    relative_root = normalize_manifest_path(component.path)
    destination = Path(staging_root) / relative_root if relative_root else Path(staging_root)
    extracted: List[str] = []

    try:
        destination.mkdir(parents=True, exist_ok=True)
        with libarchive.memory_reader(payload, format_name=ARCHIVE_FORMAT) as archive:
            for entry in archive:
                if entry.isdir:
                    continue
                _validate_entry_type(entry)
                member = _validate_member_path(entry.pathname)
                target = destination.joinpath(*member.parts)
                target.parent.mkdir(parents=True, exist_ok=True)
                with target.open("wb") as handle:
                    for block in entry.get_blocks():
                        handle.write(block)
                _apply_mtime(target, entry.mtime)
                extracted.append(os.path.join(relative_root, *member.parts))
    except libarchive.ArchiveError as exc:
        raise ArchiveExtractionError(
            f"Failed to read archive for component {component.id}: {exc}"
        ) from exc
    except OSError as exc:
        raise ArchiveExtractionError(
            f"Failed to write files for component {component.id}: {exc}"
        ) from exc

    log.debug(
        "extracted archive",
        extra={
            "stage": "extract",
            "component_id": component.id,
            "path": str(destination),
            "files": len(extracted),
        },
    )
    return extracted
