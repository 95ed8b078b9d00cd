# === NAVMAP v1 ===
# {
#   "module": "FPZ.BundleAssembly.pipeline",
#   "purpose": "Drive a bundle run: reset staging, walk the manifest, fetch/extract/record components, package",
#   "sections": [
#     {"id": "bundleresult", "name": "BundleResult", "anchor": "class-bundleresult", "kind": "class"},
#     {"id": "bundlebuilder", "name": "BundleBuilder", "anchor": "class-bundlebuilder", "kind": "class"},
#     {"id": "plan-bundle", "name": "plan_bundle", "anchor": "function-plan-bundle", "kind": "function"},
#     {"id": "build-bundle", "name": "build_bundle", "anchor": "function-build-bundle", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Bundle assembly pipeline.

A run is strictly sequential: every component is resolved, downloaded,
unpacked, and recorded before the next one is touched, in manifest document
order, so the staging tree and provenance records are reproducible.  Any
failure aborts the run; there is no partial-success mode and no retry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional

import httpx

from .io.extraction import extract_component
from .io.provenance import write_provenance
from .io.staging import assemble_archive, reset_staging_tree
from .manifest import ManifestTree, load_manifest
from .net import fetch_bytes, get_http_client
from .resolver import Component, resolve_component
from .settings import BundleConfig

__all__ = ["BundleResult", "BundleBuilder", "iter_components", "plan_bundle", "build_bundle"]

LOGGER = logging.getLogger("FPZ.BundleAssembly")


@dataclass(slots=True)
class BundleResult:
    """Summary of a completed run."""

    staging_dir: Path
    output_archive: Path
    components: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    files: int = 0


def iter_components(tree: ManifestTree, category_id: str) -> Iterator[Component]:
    """Resolve every component under ``category_id`` in document order."""

    for node in tree.select_components(category_id):
        yield resolve_component(node, tree)


class BundleBuilder:
    """Runs one bundle assembly against an explicit :class:`BundleConfig`."""

    def __init__(
        self,
        config: BundleConfig,
        *,
        client: Optional[httpx.Client] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config
        self.client = client
        self.logger = logger or LOGGER

    def _http(self) -> httpx.Client:
        if self.client is None:
            self.client = get_http_client(self.config.http)
        return self.client

    def process_component(self, component: Component) -> int:
        """Fetch, extract and record one eligible component; return its file count."""

        staging = self.config.staging_dir

        self.logger.info(
            f"Downloading {component.id}...",
            extra={"stage": "fetch", "component_id": component.id, "url": component.url},
        )
        payload = fetch_bytes(component.url, client=self._http())

        self.logger.info(
            f"Extracting {component.id}...",
            extra={"stage": "extract", "component_id": component.id},
        )
        extracted = extract_component(component, payload, staging, logger=self.logger)

        write_provenance(component, extracted, staging)
        return len(extracted)

    def run(self) -> BundleResult:
        """Execute the run and return its summary."""

        config = self.config
        self.logger.info("Process started", extra={"stage": "start"})

        reset_staging_tree(config.staging_dir)
        tree = load_manifest(config.manifest_source, client=self._http())

        result = BundleResult(staging_dir=config.staging_dir, output_archive=config.output_archive)
        for component in iter_components(tree, config.core_category):
            if not component.is_eligible:
                self.logger.debug(
                    "skipping group marker",
                    extra={"stage": "plan", "component_id": component.id},
                )
                result.skipped.append(component.id)
                continue
            result.files += self.process_component(component)
            result.components.append(component.id)

        self.logger.info("Creating zipped file...", extra={"stage": "assemble"})
        assemble_archive(config.staging_dir, config.output_archive)

        self.logger.info("Process finished", extra={"stage": "finish", "files": result.files})
        return result


def plan_bundle(
    config: BundleConfig, *, client: Optional[httpx.Client] = None
) -> List[Component]:
    """Return the eligible components a run would install, without touching disk."""

    tree = load_manifest(config.manifest_source, client=client or get_http_client(config.http))
    return [
        component
        for component in iter_components(tree, config.core_category)
        if component.is_eligible
    ]


def build_bundle(
    config: BundleConfig,
    *,
    client: Optional[httpx.Client] = None,
    logger: Optional[logging.Logger] = None,
) -> BundleResult:
    """Run the full pipeline for ``config``."""

    return BundleBuilder(config, client=client, logger=logger).run()
