"""Public API for the FPZ component bundle assembler.

The assembler walks a hierarchical component manifest, resolves each
component's identity and download URL from its position in the tree, unpacks
every component archive into a staging directory with a provenance record,
and repackages the staging directory into one output archive.
"""

from __future__ import annotations

from .errors import (
    ArchiveExtractionError,
    ArchiveFetchError,
    AssemblyError,
    BundleAssemblyError,
    ConfigError,
    ManifestFetchError,
    ManifestFormatError,
    ProvenanceWriteError,
    UserConfigError,
)
from .manifest import ManifestNode, ManifestTree, load_manifest, parse_manifest
from .pipeline import BundleBuilder, BundleResult, build_bundle, plan_bundle
from .resolver import Component, resolve_component
from .settings import BundleConfig, HttpSettings, LoggingSettings, load_config

__version__ = "0.3.0"

__all__ = [
    "__version__",
    "ArchiveExtractionError",
    "ArchiveFetchError",
    "AssemblyError",
    "BundleAssemblyError",
    "BundleBuilder",
    "BundleConfig",
    "BundleResult",
    "Component",
    "ConfigError",
    "HttpSettings",
    "LoggingSettings",
    "ManifestFetchError",
    "ManifestFormatError",
    "ManifestNode",
    "ManifestTree",
    "ProvenanceWriteError",
    "UserConfigError",
    "build_bundle",
    "load_config",
    "load_manifest",
    "parse_manifest",
    "plan_bundle",
    "resolve_component",
]
