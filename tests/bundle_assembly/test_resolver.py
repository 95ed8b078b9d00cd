"""Tests for component identity, URL, and attribute resolution."""

from __future__ import annotations

import pytest

from FPZ.BundleAssembly.errors import ManifestFormatError
from FPZ.BundleAssembly.manifest import parse_manifest
from FPZ.BundleAssembly.resolver import derive_component_id, resolve_component


def _resolve_single(markup: str):
    tree = parse_manifest(markup)
    (node,) = list(tree.root.iter_components())
    return resolve_component(node, tree)


def test_id_joins_ancestor_ids_root_most_first():
    component = _resolve_single(
        """<list url="http://x/y">
             <category id="a"><category id="b"><category id="c">
               <component id="d" install-size="1" hash="h"/>
             </category></category></category>
           </list>"""
    )
    assert component.id == "a-b-c-d"


def test_id_skips_ancestors_without_id():
    component = _resolve_single(
        """<list url="http://x/y">
             <category id="a"><category><group>
               <component id="d" install-size="1" hash="h"/>
             </group></category></category>
           </list>"""
    )
    assert component.id == "a-d"


def test_id_for_component_directly_under_root():
    tree = parse_manifest('<list url="http://x/"><component id="solo" install-size="1" hash="h"/></list>')
    (node,) = list(tree.root.iter_components())
    assert derive_component_id(node) == "solo"


@pytest.mark.parametrize("root_url", ["http://x/y", "http://x/y/"])
def test_url_has_single_separator(root_url):
    component = _resolve_single(
        f"""<list url="{root_url}">
              <category id="a"><component id="d" install-size="1" hash="h"/></category>
            </list>"""
    )
    assert component.url == "http://x/y/a-d.zip"


def test_optional_attributes_default():
    component = _resolve_single(
        '<list url="http://x/"><category id="a"><component id="d" install-size="7" hash="h"/></category></list>'
    )
    assert component.path == ""
    assert component.depends == ()
    assert component.provenance_header() == "h 7"


def test_all_attributes_are_read():
    component = _resolve_single(
        """<list url="http://x/">
             <category id="core">
               <component id="d" install-size="456" hash="H123" path="lib/plugins" depends="x y"/>
             </category>
           </list>"""
    )
    assert component.install_size == 456
    assert component.hash == "H123"
    assert component.path == "lib/plugins"
    assert component.depends == ("x", "y")
    assert component.is_eligible
    assert component.provenance_header() == "H123 456 x y"


def test_zero_install_size_is_not_eligible():
    component = _resolve_single(
        '<list url="http://x/"><component id="g" install-size="0" hash="h"/></list>'
    )
    assert component.install_size == 0
    assert not component.is_eligible


@pytest.mark.parametrize(
    "attributes",
    [
        'install-size="1"',
        'hash="h"',
        'hash="h" install-size="many"',
        'hash="h" install-size="-3"',
        'hash="h" install-size=""',
    ],
)
def test_missing_or_malformed_required_attributes(attributes):
    with pytest.raises(ManifestFormatError):
        _resolve_single(f'<list url="http://x/"><component id="d" {attributes}/></list>')


def test_missing_component_id():
    with pytest.raises(ManifestFormatError, match="'id'"):
        _resolve_single('<list url="http://x/"><component install-size="1" hash="h"/></list>')


def test_missing_root_url():
    with pytest.raises(ManifestFormatError, match="url"):
        _resolve_single('<list><component id="d" install-size="1" hash="h"/></list>')
