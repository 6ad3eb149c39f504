from __future__ import annotations

import json
import logging
from pathlib import Path

from .compatibility import LicenseNotFoundError, resolve
from .grouping import group_components, project_license
from .types import (
    COMPATIBLE,
    LOOKUP_ERROR,
    LOOKUP_ERROR_REASON,
    Bom,
    CompatibilityTable,
    ComponentsByLicense,
    Issue,
    LicenseAudit,
)

logger = logging.getLogger(__name__)


def audit(table: CompatibilityTable, main_license: str, grouped: ComponentsByLicense) -> dict[str, Issue]:
    """Check every distinct dependency license against ``main_license``.

    Components sharing a license produce a single issue. Pairs missing from
    the table become ``lookup-error`` issues instead of failing the run.
    """

    issues: dict[str, Issue] = {}
    for license_id in grouped:
        try:
            entry = resolve(table, main_license, license_id)
        except LicenseNotFoundError:
            logger.debug("No table entry for %s -> %s", main_license, license_id)
            issues[license_id] = Issue(license_id, LOOKUP_ERROR, LOOKUP_ERROR_REASON)
            continue

        if entry.status == COMPATIBLE:
            continue
        issues[license_id] = Issue(license_id, entry.status, entry.reason or "")

    logger.debug(
        "Audited %d licenses against %s: %d flagged", len(grouped), main_license, len(issues)
    )
    return issues


def audit_bom(table: CompatibilityTable, bom: Bom) -> LicenseAudit:
    main_license = project_license(bom)
    grouped = group_components(bom.components)
    return LicenseAudit(main_license=main_license, issues=audit(table, main_license, grouped))


def write_audit_summary(path: Path, result: LicenseAudit) -> None:
    payload = {
        "conclusion": "success" if result.clean else "failure",
        "summary": "; ".join(f"{i.license_id}: {i.reason}" for i in result.sorted_issues())
        if result.issues
        else "All dependency licenses are compatible.",
        "details": result.as_dict(),
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2))
