"""Filesystem stages of a bundle run: extraction, provenance, staging and packaging."""

from __future__ import annotations

from .extraction import extract_component, normalize_manifest_path
from .provenance import (
    COMPONENTS_DIRNAME,
    ProvenanceRecord,
    iter_provenance,
    provenance_path,
    read_provenance,
    write_provenance,
)
from .staging import assemble_archive, iter_staged_entries, reset_staging_tree

__all__ = [
    "COMPONENTS_DIRNAME",
    "ProvenanceRecord",
    "assemble_archive",
    "extract_component",
    "iter_provenance",
    "iter_staged_entries",
    "normalize_manifest_path",
    "provenance_path",
    "read_provenance",
    "reset_staging_tree",
    "write_provenance",
]
