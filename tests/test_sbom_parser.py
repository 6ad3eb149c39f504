import json
from pathlib import Path

import pytest

from sbom_licenses.sbom_parser import EmptySbomError, SbomError, decode_sbom, load_sbom


CYCLONEDX_JSON = {
    "bomFormat": "CycloneDX",
    "specVersion": "1.5",
    "metadata": {
        "component": {"name": "my-app", "version": "2.0.0", "licenses": [{"license": {"id": "MIT"}}]}
    },
    "components": [
        {"name": "click", "version": "8.1.7", "licenses": [{"license": {"id": "BSD-3-Clause"}}]},
        {
            "name": "dual",
            "version": "1.0",
            "licenses": [{"license": {"id": "Apache-2.0"}}, {"license": {"id": "MIT"}}],
        },
        {"name": "named", "version": "0.1", "licenses": [{"license": {"name": "Custom License"}}]},
        {"name": "expr", "version": "3.0", "licenses": [{"expression": "MIT OR Apache-2.0"}]},
        {"name": "bare", "version": "1.2"},
    ],
}

CYCLONEDX_XML = b"""<?xml version="1.0" encoding="UTF-8"?>
<bom xmlns="http://cyclonedx.org/schema/bom/1.5" version="1">
  <metadata>
    <component type="application">
      <name>my-app</name>
      <version>2.0.0</version>
      <licenses><license><id>MIT</id></license></licenses>
    </component>
  </metadata>
  <components>
    <component type="library">
      <name>click</name>
      <version>8.1.7</version>
      <licenses><license><id>BSD-3-Clause</id></license></licenses>
      <components>
        <component type="library"><name>nested</name><version>0.0.1</version></component>
      </components>
    </component>
    <component type="library">
      <name>dual</name>
      <version>1.0</version>
      <licenses>
        <license><id>Apache-2.0</id></license>
        <license><id>MIT</id></license>
      </licenses>
    </component>
    <component type="library">
      <name>bare</name>
      <version>1.2</version>
    </component>
  </components>
</bom>
"""


def test_decode_json_keeps_license_order():
    bom = decode_sbom(json.dumps(CYCLONEDX_JSON).encode(), "json")

    assert [c.name for c in bom.components] == ["click", "dual", "named", "expr", "bare"]
    dual = bom.components[1]
    assert dual.licenses == ["Apache-2.0", "MIT"]
    assert dual.license == "Apache-2.0"
    assert bom.components[2].licenses == ["Custom License"]
    assert bom.components[3].licenses == ["MIT OR Apache-2.0"]
    assert bom.components[4].licenses == []
    assert bom.metadata_component is not None
    assert bom.metadata_component.licenses == ["MIT"]


def test_decode_xml_ignores_namespace_and_nested_components():
    bom = decode_sbom(CYCLONEDX_XML, "xml")

    assert [c.name for c in bom.components] == ["click", "dual", "bare"]
    assert bom.components[0].version == "8.1.7"
    assert bom.components[1].licenses == ["Apache-2.0", "MIT"]
    assert bom.components[2].licenses == []
    assert bom.metadata_component.name == "my-app"
    assert bom.metadata_component.license == "MIT"


def test_format_name_is_case_insensitive():
    bom = decode_sbom(CYCLONEDX_XML, "XML")
    assert len(bom.components) == 3


def test_unsupported_format_is_rejected():
    with pytest.raises(SbomError, match="unsupported format: yaml"):
        decode_sbom(b"{}", "yaml")


@pytest.mark.parametrize(
    "fmt, payload",
    [
        ("json", b""),
        ("json", b"   \n"),
        ("json", b"null"),
        ("json", b"[]"),
        ("json", b'"text"'),
        ("xml", b""),
        ("xml", b"  \n  "),
    ],
)
def test_empty_or_unknown_structure(fmt: str, payload: bytes):
    with pytest.raises(SbomError, match="unknown structure or empty file"):
        decode_sbom(payload, fmt)


@pytest.mark.parametrize(
    "payload",
    [
        b'{"components": 5}',
        b'{"components": [{"name": "a", "licenses": 5}]}',
        b'{"components": [{"name": "a", "licenses": true}]}',
        b'{"metadata": {"component": {"name": "app", "licenses": "MIT"}}, "components": [{"name": "a"}]}',
    ],
)
def test_non_list_fields_are_an_unknown_structure(payload: bytes):
    with pytest.raises(SbomError, match="must be a list"):
        decode_sbom(payload, "json")


def test_null_lists_are_treated_as_empty():
    bom = decode_sbom(b'{"components": [{"name": "a", "licenses": null}]}', "json")
    assert bom.components[0].licenses == []


def test_malformed_json_is_an_input_error():
    with pytest.raises(SbomError, match="Unable to parse SBOM JSON"):
        decode_sbom(b'{"components": [', "json")


def test_zero_components_is_fatal():
    with pytest.raises(EmptySbomError, match="empty components"):
        decode_sbom(b'{"bomFormat": "CycloneDX", "components": []}', "json")

    with pytest.raises(EmptySbomError):
        decode_sbom(b"{}", "json")

    with pytest.raises(EmptySbomError):
        decode_sbom(b'<bom xmlns="http://cyclonedx.org/schema/bom/1.5"><components/></bom>', "xml")

    with pytest.raises(EmptySbomError):
        decode_sbom(b"<bom><metadata/></bom>", "xml")


def test_xml_with_wrong_root_is_rejected():
    with pytest.raises(SbomError, match="expected <bom> root element"):
        decode_sbom(b"<project><components/></project>", "xml")


def test_malformed_xml_is_an_input_error():
    with pytest.raises(SbomError, match="Unable to parse SBOM XML"):
        decode_sbom(b"<bom><components>", "xml")


def test_load_sbom_reports_missing_file(tmp_path: Path):
    with pytest.raises(SbomError, match="Unable to read SBOM file"):
        load_sbom(tmp_path / "missing.json")


def test_load_sbom_accepts_utf8_bom(tmp_path: Path):
    path = tmp_path / "sbom.json"
    path.write_bytes(b"\xef\xbb\xbf" + json.dumps(CYCLONEDX_JSON).encode())

    bom = load_sbom(path, "json")
    assert len(bom.components) == 5
