"""Shared fixtures for bundle_assembly test suite."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterator, List

import httpx
import pytest

from FPZ.BundleAssembly import net as net_mod
from FPZ.BundleAssembly.logging_utils import LOGGER_NAME
from FPZ.BundleAssembly.settings import BundleConfig
from FPZ.BundleAssembly.testing import build_zip, use_mock_http_client

BASE_URL = "http://mirror.test/components"
MANIFEST_URL = "http://mirror.test/manifest.xml"

SAMPLE_MANIFEST = f"""<?xml version="1.0" encoding="utf-8"?>
<list url="{BASE_URL}">
  <category id="core">
    <category id="base">
      <component id="runtime" install-size="456" hash="H123" depends="x y" path="bin"/>
      <component id="group" install-size="0" hash="G0"/>
    </category>
    <category>
      <component id="docs" install-size="10" hash="D1"/>
    </category>
  </category>
  <category id="extras">
    <component id="skins" install-size="5" hash="S1"/>
  </category>
</list>
"""


class MirrorServer:
    """In-memory HTTP mirror serving a manifest and component archives."""

    def __init__(self) -> None:
        self.routes: Dict[str, bytes] = {}
        self.requests: List[str] = []

    def add(self, url: str, body: bytes | str) -> None:
        self.routes[url] = body.encode("utf-8") if isinstance(body, str) else body

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        body = self.routes.get(url)
        if body is None:
            return httpx.Response(404, content=b"not found")
        return httpx.Response(200, content=body)


@pytest.fixture
def mirror() -> MirrorServer:
    server = MirrorServer()
    server.add(MANIFEST_URL, SAMPLE_MANIFEST)
    server.add(
        f"{BASE_URL}/core-base-runtime.zip",
        build_zip({"a/": None, "a/1.txt": "one", "a/2.txt": "two"}),
    )
    server.add(f"{BASE_URL}/core-docs.zip", build_zip({"README.txt": "docs"}))
    return server


@pytest.fixture
def http_client(mirror: MirrorServer) -> Iterator[httpx.Client]:
    with use_mock_http_client(httpx.MockTransport(mirror.handler)) as client:
        yield client


@pytest.fixture(autouse=True)
def _reset_shared_state() -> Iterator[None]:
    yield
    net_mod.reset_http_client()
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, "_fpz_managed", False):
            logger.removeHandler(handler)
            handler.close()
    logger.propagate = True


@pytest.fixture
def bundle_config(tmp_path: Path) -> BundleConfig:
    return BundleConfig(
        manifest_source=MANIFEST_URL,
        staging_dir=tmp_path / "staging",
        output_archive=tmp_path / "out" / "bundle.zip",
    )
