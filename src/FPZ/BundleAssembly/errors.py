# === NAVMAP v1 ===
# {
#   "module": "FPZ.BundleAssembly.errors",
#   "purpose": "Define the exception hierarchy used across manifest resolution, fetching, extraction, and packaging",
#   "sections": [
#     {"id": "base", "name": "Base Exceptions", "anchor": "BAS", "kind": "api"},
#     {"id": "manifest", "name": "Manifest Errors", "anchor": "MAN", "kind": "api"},
#     {"id": "archive", "name": "Archive & Packaging Errors", "anchor": "ARC", "kind": "api"},
#     {"id": "configuration", "name": "Configuration Errors", "anchor": "CFG", "kind": "api"}
#   ]
# }
# === /NAVMAP ===

"""Exception hierarchy shared across manifest resolution, fetching, and packaging.

A bundle run walks one manifest, downloads and unpacks every eligible
component, and then repackages the staging tree.  Every failure along that
path is fatal, so the hierarchy exists to make the failing stage obvious to
callers and to the CLI rather than to drive recovery.
"""

from __future__ import annotations

from typing import Optional

__all__ = [
    "BundleAssemblyError",
    "ManifestFetchError",
    "ManifestFormatError",
    "ArchiveFetchError",
    "ArchiveExtractionError",
    "ProvenanceWriteError",
    "AssemblyError",
    "UserConfigError",
    "ConfigError",
]


class BundleAssemblyError(RuntimeError):
    """Base exception for bundle assembly failures."""


class ManifestFetchError(BundleAssemblyError):
    """Raised when the manifest source is unreachable or returns invalid markup."""


class ManifestFormatError(BundleAssemblyError):
    """Raised when a manifest node lacks a required attribute or carries a malformed one."""


class ArchiveFetchError(BundleAssemblyError):
    """Raised when downloading a component archive fails."""

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class ArchiveExtractionError(BundleAssemblyError):
    """Raised when a component archive cannot be read or unpacked into staging."""


class ProvenanceWriteError(BundleAssemblyError):
    """Raised when a component provenance record cannot be written."""


class AssemblyError(BundleAssemblyError):
    """Raised when the staging tree cannot be reset or packaged into the output archive."""


class UserConfigError(RuntimeError):
    """Raised when CLI arguments or configuration files are invalid."""


# Alias used by the settings loader and the CLI.
ConfigError = UserConfigError
