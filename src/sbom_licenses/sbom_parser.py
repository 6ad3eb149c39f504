from __future__ import annotations

import json
import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Callable, List, Optional

from .types import Bom, Component

logger = logging.getLogger(__name__)


class SbomError(ValueError):
    """Raised when an SBOM cannot be read or has an unrecognised structure."""


class EmptySbomError(SbomError):
    def __init__(self) -> None:
        super().__init__("unknown structure or empty components in sbom")


def _license_id(entry: object) -> str | None:
    if not isinstance(entry, dict):
        return None
    license_data = entry.get("license") or {}
    if isinstance(license_data, dict):
        value = license_data.get("id") or license_data.get("name")
        if value:
            return str(value)
    expression = entry.get("expression")
    return str(expression) if expression else None


def _list_field(container: dict, key: str) -> list:
    value = container.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise SbomError(f"unknown structure: \"{key}\" must be a list, got {type(value).__name__}")
    return value


def _component_from_json(raw: object) -> Component | None:
    if not isinstance(raw, dict):
        return None
    licenses = [lic for lic in (_license_id(e) for e in _list_field(raw, "licenses")) if lic]
    return Component(
        name=str(raw.get("name", "")),
        version=str(raw.get("version", "") or ""),
        licenses=licenses,
    )


def decode_json(data: bytes) -> Bom:
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise SbomError(f"SBOM is not valid UTF-8: {exc}") from exc
    if not text.strip():
        raise SbomError("unknown structure or empty file")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SbomError(f"Unable to parse SBOM JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise SbomError("unknown structure or empty file")

    components: list[Component] = []
    for raw in _list_field(payload, "components"):
        component = _component_from_json(raw)
        if component is not None:
            components.append(component)

    metadata = payload.get("metadata") or {}
    metadata_component = None
    if isinstance(metadata, dict):
        metadata_component = _component_from_json(metadata.get("component"))

    return Bom(components=components, metadata_component=metadata_component)


def _local(tag: str) -> str:
    # "{http://cyclonedx.org/schema/bom/1.5}component" -> "component"
    return tag.rsplit("}", 1)[-1]


def _child(element: ET.Element, name: str) -> Optional[ET.Element]:
    for child in element:
        if _local(child.tag) == name:
            return child
    return None


def _children(element: Optional[ET.Element], name: str) -> List[ET.Element]:
    if element is None:
        return []
    return [child for child in element if _local(child.tag) == name]


def _text(element: ET.Element, name: str) -> str:
    child = _child(element, name)
    if child is None or child.text is None:
        return ""
    return child.text.strip()


def _component_from_xml(element: ET.Element) -> Component:
    licenses: list[str] = []
    licenses_element = _child(element, "licenses")
    entries = list(licenses_element) if licenses_element is not None else []
    for entry in entries:
        if _local(entry.tag) == "license":
            value = _text(entry, "id") or _text(entry, "name")
        elif _local(entry.tag) == "expression":
            value = (entry.text or "").strip()
        else:
            value = ""
        if value:
            licenses.append(value)
    return Component(name=_text(element, "name"), version=_text(element, "version"), licenses=licenses)


def decode_xml(data: bytes) -> Bom:
    if not data.strip():
        raise SbomError("unknown structure or empty file")
    try:
        root = ET.fromstring(data)
    except ET.ParseError as exc:
        raise SbomError(f"Unable to parse SBOM XML: {exc}") from exc
    if _local(root.tag) != "bom":
        raise SbomError(f"unknown structure: expected <bom> root element, found <{_local(root.tag)}>")

    components = [_component_from_xml(el) for el in _children(_child(root, "components"), "component")]

    metadata_component = None
    metadata = _child(root, "metadata")
    if metadata is not None:
        element = _child(metadata, "component")
        if element is not None:
            metadata_component = _component_from_xml(element)

    return Bom(components=components, metadata_component=metadata_component)


DECODERS: dict[str, Callable[[bytes], Bom]] = {
    "json": decode_json,
    "xml": decode_xml,
}


def decode_sbom(data: bytes, fmt: str) -> Bom:
    decoder = DECODERS.get(fmt.lower())
    if decoder is None:
        raise SbomError(f"unsupported format: {fmt}")
    bom = decoder(data)
    if not bom.components:
        raise EmptySbomError()
    return bom


def load_sbom(path: Path, fmt: str = "json") -> Bom:
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise SbomError(f"Unable to read SBOM file {path}: {exc}") from exc
    bom = decode_sbom(data, fmt)
    logger.debug("Parsed %d components from %s (%s)", len(bom.components), path, fmt)
    return bom
