from __future__ import annotations

"""Shared data structures for SBOM parsing and license auditing.

The definitions live in two domain-focused modules: the bill of materials
itself and the compatibility/audit results. Import from here to keep call
sites stable.
"""

from .types_bom import NO_LICENSE, Bom, Component, effective_license
from .types_compat import (
    COMPATIBLE,
    ENTRY_STATUSES,
    INCOMPATIBLE,
    LOOKUP_ERROR,
    LOOKUP_ERROR_REASON,
    WARNING,
    CompatibilityEntry,
    CompatibilityTable,
    Issue,
    LicenseAudit,
    freeze_table,
)

ComponentsByLicense = dict[str, list[Component]]

__all__ = [
    "Bom",
    "Component",
    "ComponentsByLicense",
    "CompatibilityEntry",
    "CompatibilityTable",
    "Issue",
    "LicenseAudit",
    "NO_LICENSE",
    "COMPATIBLE",
    "INCOMPATIBLE",
    "WARNING",
    "LOOKUP_ERROR",
    "LOOKUP_ERROR_REASON",
    "ENTRY_STATUSES",
    "effective_license",
    "freeze_table",
]
