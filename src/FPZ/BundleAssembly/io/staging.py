# === NAVMAP v1 ===
# {
#   "module": "FPZ.BundleAssembly.io.staging",
#   "purpose": "Reset the staging tree and package it into the output archive",
#   "sections": [
#     {"id": "reset", "name": "reset_staging_tree", "anchor": "function-reset-staging-tree", "kind": "function"},
#     {"id": "walk", "name": "iter_staged_entries", "anchor": "function-iter-staged-entries", "kind": "function"},
#     {"id": "assemble", "name": "assemble_archive", "anchor": "function-assemble-archive", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Staging tree lifecycle.

The staging directory is wiped and recreated once at the start of a run and
packaged into a single deflate-compressed zip at the end.  Entries are written
in sorted walk order so two runs over the same staged content produce the
same entry list.
"""

from __future__ import annotations

import logging
import os
import shutil
import zipfile
from pathlib import Path
from typing import Iterator, Optional, Tuple

from ..errors import AssemblyError

__all__ = ["COMPRESSION", "reset_staging_tree", "iter_staged_entries", "assemble_archive"]

COMPRESSION = zipfile.ZIP_DEFLATED

LOGGER = logging.getLogger("FPZ.BundleAssembly.io")


def reset_staging_tree(root: Path) -> Path:
    """Delete ``root`` if it exists and recreate it empty."""

    root = Path(root)
    try:
        shutil.rmtree(root)
    except FileNotFoundError:
        pass
    except OSError as exc:
        raise AssemblyError(f"Failed to clear staging directory {root}: {exc}") from exc
    try:
        root.mkdir(parents=True)
    except OSError as exc:
        raise AssemblyError(f"Failed to create staging directory {root}: {exc}") from exc
    LOGGER.debug("reset staging tree", extra={"stage": "staging", "path": str(root)})
    return root


def iter_staged_entries(
    staging_root: Path, *, exclude: Optional[Path] = None
) -> Iterator[Tuple[Path, str]]:
    """Yield ``(absolute path, archive name)`` for every directory and file, sorted."""

    root = Path(staging_root)
    excluded = exclude.resolve() if exclude is not None else None
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        current = Path(dirpath)
        for name in dirnames:
            path = current / name
            yield path, path.relative_to(root).as_posix() + "/"
        for name in sorted(filenames):
            path = current / name
            if excluded is not None and path.resolve() == excluded:
                continue
            yield path, path.relative_to(root).as_posix()


def assemble_archive(staging_root: Path, output_path: Path) -> Path:
    """Package everything under ``staging_root`` into ``output_path``.

    Raises:
        AssemblyError: If the previous archive cannot be removed, a staged file
            cannot be read, or the archive cannot be written.
    """

    staging_root = Path(staging_root)
    output_path = Path(output_path)
    if not staging_root.is_dir():
        raise AssemblyError(f"Staging directory {staging_root} does not exist")

    try:
        output_path.unlink()
    except FileNotFoundError:
        pass
    except OSError as exc:
        raise AssemblyError(f"Failed to remove previous archive {output_path}: {exc}") from exc

    count = 0
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(
            output_path, "w", compression=COMPRESSION, strict_timestamps=False
        ) as archive:
            for path, arcname in iter_staged_entries(staging_root, exclude=output_path):
                archive.write(path, arcname)
                count += 1
    except OSError as exc:
        raise AssemblyError(f"Failed to write archive {output_path}: {exc}") from exc

    LOGGER.debug(
        "assembled archive",
        extra={"stage": "assemble", "path": str(output_path), "files": count},
    )
    return output_path
