from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

NO_LICENSE = "No License"


def effective_license(licenses: Sequence[str]) -> str:
    """Pick the single license that represents a component.

    Only the first declared license is considered; components declaring
    several licenses are grouped and audited as if the first one applied.
    """

    if licenses:
        return licenses[0]
    return NO_LICENSE


@dataclass
class Component:
    name: str
    version: str = ""
    licenses: List[str] = field(default_factory=list)

    @property
    def license(self) -> str:
        return effective_license(self.licenses)


@dataclass
class Bom:
    components: List[Component] = field(default_factory=list)
    metadata_component: Optional[Component] = None
