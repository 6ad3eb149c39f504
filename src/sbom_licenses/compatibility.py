from __future__ import annotations

import logging
from pathlib import Path

import yaml

from .types import ENTRY_STATUSES, CompatibilityEntry, CompatibilityTable, freeze_table

logger = logging.getLogger(__name__)

DEFAULT_TABLE_PATH = "compatibility.yaml"


class CompatibilityTableError(Exception):
    """Raised when the compatibility table cannot be read or has the wrong shape."""


class LicenseNotFoundError(LookupError):
    def __init__(self, main_license: str, dependency_license: str) -> None:
        super().__init__(f"No compatibility entry for {main_license!r} -> {dependency_license!r}")
        self.main_license = main_license
        self.dependency_license = dependency_license


def _require_str(key: object, where: str) -> str:
    if not isinstance(key, str):
        raise CompatibilityTableError(
            f"{where}: license key {key!r} is not a string; quote it in the table"
        )
    return key


def _parse_entry(raw: object, where: str) -> CompatibilityEntry:
    if isinstance(raw, str):
        status, reason = raw, None
    elif isinstance(raw, dict):
        status = raw.get("status")
        reason = raw.get("reason")
        if reason is not None:
            reason = str(reason)
    else:
        raise CompatibilityTableError(f"{where}: expected a status or a mapping, got {type(raw).__name__}")

    if status not in ENTRY_STATUSES:
        raise CompatibilityTableError(
            f"{where}: unknown status {status!r} (expected one of {', '.join(ENTRY_STATUSES)})"
        )
    return CompatibilityEntry(status=status, reason=reason)


def parse_table(raw: object) -> CompatibilityTable:
    """Build a read-only table from the decoded two-level mapping."""

    if raw is None:
        return freeze_table({})
    if not isinstance(raw, dict):
        raise CompatibilityTableError("compatibility table must be a mapping of main licenses")

    rows: dict[str, dict[str, CompatibilityEntry]] = {}
    for main_key, row in raw.items():
        main_license = _require_str(main_key, "top level")
        if row is None:
            row = {}
        if not isinstance(row, dict):
            raise CompatibilityTableError(f"{main_license}: expected a mapping of dependency licenses")
        rows[main_license] = {}
        for dep_key, entry in row.items():
            dep_license = _require_str(dep_key, main_license)
            rows[main_license][dep_license] = _parse_entry(entry, f"{main_license} -> {dep_license}")
    return freeze_table(rows)


def load_table(path: Path) -> CompatibilityTable:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CompatibilityTableError(f"Unable to read compatibility table {path}: {exc}") from exc
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise CompatibilityTableError(f"Invalid YAML in compatibility table {path}: {exc}") from exc

    table = parse_table(raw)
    logger.debug(
        "Loaded compatibility table %s: %d main licenses, %d entries",
        path,
        len(table),
        sum(len(row) for row in table.values()),
    )
    return table


def resolve(table: CompatibilityTable, main_license: str, dependency_license: str) -> CompatibilityEntry:
    """Return the stored entry for ``main_license -> dependency_license``.

    Lookups are exact and directional; there is no fallback for unlisted
    pairs.
    """

    try:
        return table[main_license][dependency_license]
    except KeyError:
        raise LicenseNotFoundError(main_license, dependency_license) from None
