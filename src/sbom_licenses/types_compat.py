from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

COMPATIBLE = "compatible"
INCOMPATIBLE = "incompatible"
WARNING = "warning"
LOOKUP_ERROR = "lookup-error"

ENTRY_STATUSES = (COMPATIBLE, INCOMPATIBLE, WARNING)

LOOKUP_ERROR_REASON = "License not found in compatibility matrix."


@dataclass(frozen=True)
class CompatibilityEntry:
    status: str
    reason: Optional[str] = None


# main license -> dependency license -> entry
CompatibilityTable = Mapping[str, Mapping[str, CompatibilityEntry]]


def freeze_table(rows: dict[str, dict[str, CompatibilityEntry]]) -> CompatibilityTable:
    return MappingProxyType({main: MappingProxyType(dict(row)) for main, row in rows.items()})


@dataclass(frozen=True)
class Issue:
    license_id: str
    status: str
    reason: str = ""

    def as_dict(self) -> dict:
        return {"license": self.license_id, "status": self.status, "reason": self.reason}


@dataclass
class LicenseAudit:
    main_license: str
    issues: dict[str, Issue] = field(default_factory=dict)

    @property
    def clean(self) -> bool:
        return not self.issues

    def sorted_issues(self) -> list[Issue]:
        return [self.issues[key] for key in sorted(self.issues)]

    def as_dict(self) -> dict:
        return {
            "main_license": self.main_license,
            "outcome": "clean" if self.clean else "flagged",
            "issues": [issue.as_dict() for issue in self.sorted_issues()],
        }
