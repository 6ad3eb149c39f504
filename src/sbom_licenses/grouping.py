from __future__ import annotations

from typing import Iterable

from .types import Bom, Component, ComponentsByLicense


class ProjectLicenseError(ValueError):
    def __init__(self, message: str = "project license undeclared") -> None:
        super().__init__(message)


def group_components(components: Iterable[Component]) -> ComponentsByLicense:
    grouped: ComponentsByLicense = {}
    for component in components:
        grouped.setdefault(component.license, []).append(component)
    return grouped


def sorted_license_keys(grouped: ComponentsByLicense) -> list[str]:
    return sorted(grouped)


def project_license(bom: Bom) -> str:
    """Return the effective license of the SBOM's metadata component.

    Unlike dependencies, the project itself never falls back to the
    "No License" group: auditing against an undeclared license is an error.
    """

    metadata = bom.metadata_component
    if metadata is None:
        raise ProjectLicenseError("project license undeclared: SBOM has no metadata component")
    if not metadata.licenses:
        name = metadata.name or "metadata component"
        raise ProjectLicenseError(f"project license undeclared: {name} lists no licenses")
    return metadata.license
