# === NAVMAP v1 ===
# {
#   "module": "tests.bundle_assembly.test_extraction",
#   "purpose": "Tests for libarchive-based extraction of component archives into the staging tree",
#   "sections": [
#     {"id": "happy_paths", "name": "Happy Path Tests", "anchor": "HPT", "kind": "tests"},
#     {"id": "failures", "name": "Failure Tests", "anchor": "FAIL", "kind": "tests"}
#   ]
# }
# === /NAVMAP ===

"""Tests for extracting component archives into the staging tree.

Tests cover:
- Directory entries are skipped and never reported
- Destination honours the component path, or the staging root when empty
- Reported paths keep archive order and host separators
- Modification times are preserved and existing files are overwritten
- Corrupt archives, unsafe entry names and component paths fail
- Symlink entries and directory collisions fail
"""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path

import pytest

from FPZ.BundleAssembly.errors import ArchiveExtractionError
from FPZ.BundleAssembly.io.extraction import extract_component, normalize_manifest_path
from FPZ.BundleAssembly.resolver import Component
from FPZ.BundleAssembly.testing import DEFAULT_ENTRY_TIME, build_zip


def _component(path: str = "") -> Component:
    return Component(
        id="core-test",
        url="http://x/core-test.zip",
        install_size=10,
        hash="H",
        path=path,
    )


# ============================================================================
# HAPPY PATH TESTS
# ============================================================================


def test_extracts_files_and_skips_directories(tmp_path: Path) -> None:
    payload = build_zip({"a/": None, "a/1.txt": "one", "a/2.txt": "two"})

    extracted = extract_component(_component("bin"), payload, tmp_path)

    assert extracted == [os.path.join("bin", "a", "1.txt"), os.path.join("bin", "a", "2.txt")]
    assert (tmp_path / "bin" / "a" / "1.txt").read_text() == "one"
    assert (tmp_path / "bin" / "a" / "2.txt").read_text() == "two"


def test_empty_path_extracts_into_staging_root(tmp_path: Path) -> None:
    payload = build_zip({"top.txt": "root"})

    extracted = extract_component(_component(""), payload, tmp_path)

    assert extracted == ["top.txt"]
    assert (tmp_path / "top.txt").read_text() == "root"


def test_nested_manifest_path_uses_host_separator(tmp_path: Path) -> None:
    payload = build_zip({"lib.so": b"\x7fELF"})

    extracted = extract_component(_component("lib/plugins/"), payload, tmp_path)

    assert extracted == [os.path.join("lib", "plugins", "lib.so")]
    assert (tmp_path / "lib" / "plugins" / "lib.so").read_bytes() == b"\x7fELF"


def test_entry_order_is_preserved(tmp_path: Path) -> None:
    payload = build_zip({"z.txt": "z", "m/b.txt": "b", "a.txt": "a"})

    extracted = extract_component(_component(), payload, tmp_path)

    assert extracted == ["z.txt", os.path.join("m", "b.txt"), "a.txt"]


def test_modification_time_is_preserved(tmp_path: Path) -> None:
    payload = build_zip({"stamp.txt": "t"})

    extract_component(_component(), payload, tmp_path)

    mtime = datetime.fromtimestamp((tmp_path / "stamp.txt").stat().st_mtime)
    assert mtime.timetuple()[:6] == DEFAULT_ENTRY_TIME


def test_existing_files_are_overwritten(tmp_path: Path) -> None:
    target = tmp_path / "bin" / "tool.cfg"
    target.parent.mkdir(parents=True)
    target.write_text("stale")

    extract_component(_component("bin"), build_zip({"tool.cfg": "fresh"}), tmp_path)

    assert target.read_text() == "fresh"


def test_archive_with_only_directories_reports_nothing(tmp_path: Path) -> None:
    payload = build_zip({"empty/": None})

    assert extract_component(_component("opt"), payload, tmp_path) == []
    assert (tmp_path / "opt").is_dir()


def test_normalize_manifest_path() -> None:
    assert normalize_manifest_path("") == ""
    assert normalize_manifest_path("a/b/") == os.path.join("a", "b")
    assert normalize_manifest_path("/a") == "a"


# ============================================================================
# FAILURE TESTS
# ============================================================================


def test_corrupt_archive_raises(tmp_path: Path) -> None:
    with pytest.raises(ArchiveExtractionError, match="core-test"):
        extract_component(_component(), b"this is not a zip archive", tmp_path)


def test_traversal_entry_is_rejected(tmp_path: Path) -> None:
    payload = build_zip({"../escape.txt": "nope"})

    with pytest.raises(ArchiveExtractionError, match="Unsafe path"):
        extract_component(_component("bin"), payload, tmp_path)
    assert not (tmp_path / "escape.txt").exists()


@pytest.mark.parametrize("path", ["../evil", "bin/../../evil", "./bin", "a/./b"])
def test_component_path_outside_staging_is_rejected(tmp_path: Path, path: str) -> None:
    staging = tmp_path / "staging"

    with pytest.raises(ArchiveExtractionError, match="Unsafe component path"):
        extract_component(_component(path), build_zip({"x.txt": "pwn"}), staging)
    assert not (tmp_path / "evil").exists()
    assert not staging.exists()


def test_symlink_entry_is_rejected(tmp_path: Path) -> None:
    payload = build_zip({}, symlinks={"link": "target.txt"})

    with pytest.raises(ArchiveExtractionError, match="Symlink not permitted: link"):
        extract_component(_component(), payload, tmp_path)
    assert not os.path.lexists(tmp_path / "link")


def test_directory_collision_raises(tmp_path: Path) -> None:
    (tmp_path / "clash").mkdir()

    with pytest.raises(ArchiveExtractionError, match="Failed to write"):
        extract_component(_component(), build_zip({"clash": "file"}), tmp_path)
