from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import click

from .audit import audit_bom, write_audit_summary
from .compatibility import (
    DEFAULT_TABLE_PATH,
    CompatibilityTableError,
    LicenseNotFoundError,
    load_table,
    resolve,
)
from .grouping import ProjectLicenseError, group_components
from .reporting import ReportTemplateError, load_template, render_licenses, write_report
from .sbom_parser import DECODERS, SbomError, load_sbom
from .types import LicenseAudit

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FLAGGED = 1
EXIT_ERROR = 2

FATAL_ERRORS = (SbomError, CompatibilityTableError, ProjectLicenseError, ReportTemplateError, OSError)


def _default_table_path() -> str:
    return os.environ.get("SBOM_LICENSES_COMPATIBILITY") or DEFAULT_TABLE_PATH


@dataclass
class RunSettings:
    """Everything one report run needs; the audit stage runs only when ``validate`` is set."""

    input_path: Path = Path("sbom.json")
    input_format: str = "json"
    output_path: Path = Path("licenses.md")
    template_path: Optional[Path] = None
    validate: bool = False
    table_path: Path = Path(DEFAULT_TABLE_PATH)
    summary_path: Optional[Path] = None


@dataclass
class RunOutcome:
    output_path: Path
    audit: Optional[LicenseAudit] = None

    @property
    def flagged(self) -> bool:
        return self.audit is not None and not self.audit.clean

    @property
    def exit_code(self) -> int:
        return EXIT_FLAGGED if self.flagged else EXIT_OK


def run(settings: RunSettings) -> RunOutcome:
    """Parse, optionally audit, then render and write the report.

    Every fatal error is raised before the output file is touched.
    """

    bom = load_sbom(settings.input_path, settings.input_format)

    result = None
    if settings.validate:
        table = load_table(settings.table_path)
        result = audit_bom(table, bom)

    template = load_template(settings.template_path)
    grouped = group_components(bom.components)
    rendered = render_licenses(grouped, template, audit=result)
    if result is not None and settings.summary_path:
        write_audit_summary(settings.summary_path, result)
    write_report(rendered, settings.output_path)

    return RunOutcome(output_path=settings.output_path, audit=result)


def _configure_logging(verbose: bool) -> None:
    if not verbose:
        return
    logging.basicConfig(level=logging.DEBUG, format="%(asctime)s - %(levelname)s - %(message)s", force=True)


@click.group()
def main() -> None:
    """SBOM license report CLI."""


@main.command()
@click.option(
    "-i",
    "--input",
    "input_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=Path("sbom.json"),
    show_default=True,
    help="Path to the CycloneDX SBOM.",
)
@click.option(
    "-f",
    "--format",
    "fmt",
    type=click.Choice(sorted(DECODERS), case_sensitive=False),
    default="json",
    show_default=True,
    help="Input format of the SBOM.",
)
@click.option(
    "-o",
    "--output",
    "output_path",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    default=Path("licenses.md"),
    show_default=True,
    help="File to write the rendered report to.",
)
@click.option(
    "-t",
    "--template",
    "template_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Jinja2 template for the report (built-in Markdown template if omitted).",
)
@click.option(
    "--validate/--no-validate",
    default=False,
    show_default=True,
    help="Check dependency licenses against the project license.",
)
@click.option(
    "-c",
    "--compatibility",
    "table_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help=(
        "Compatibility table used with --validate. Defaults to SBOM_LICENSES_COMPATIBILITY "
        f"or ./{DEFAULT_TABLE_PATH}."
    ),
)
@click.option(
    "--summary-output",
    "summary_path",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    help="Write a JSON summary of the license audit (requires --validate).",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def report(
    input_path: Path,
    fmt: str,
    output_path: Path,
    template_path: Optional[Path],
    validate: bool,
    table_path: Optional[Path],
    summary_path: Optional[Path],
    verbose: bool,
) -> None:
    """Group SBOM components by license and render a report."""
    _configure_logging(verbose)

    if summary_path and not validate:
        click.echo("--summary-output has no effect without --validate.", err=True)

    settings = RunSettings(
        input_path=input_path,
        input_format=fmt.lower(),
        output_path=output_path,
        template_path=template_path,
        validate=validate,
        table_path=table_path or Path(_default_table_path()),
        summary_path=summary_path,
    )

    try:
        outcome = run(settings)
    except FATAL_ERRORS as exc:
        logger.debug("Run aborted", exc_info=True)
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(EXIT_ERROR)

    click.echo(f"Components information has been written to {outcome.output_path}")

    result = outcome.audit
    if result is not None and not result.clean:
        click.echo(f"License issues found against project license {result.main_license}:", err=True)
        for issue in result.sorted_issues():
            click.echo(f"  {issue.license_id}: [{issue.status}] {issue.reason}", err=True)
        raise SystemExit(outcome.exit_code)


@main.command(name="resolve")
@click.argument("main_license")
@click.argument("dependency_license")
@click.option(
    "-c",
    "--compatibility",
    "table_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help=f"Compatibility table. Defaults to SBOM_LICENSES_COMPATIBILITY or ./{DEFAULT_TABLE_PATH}.",
)
def resolve_command(main_license: str, dependency_license: str, table_path: Optional[Path]) -> None:
    """Look up a single MAIN_LICENSE -> DEPENDENCY_LICENSE pair in the table."""

    try:
        table = load_table(table_path or Path(_default_table_path()))
    except CompatibilityTableError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(EXIT_ERROR)

    try:
        entry = resolve(table, main_license, dependency_license)
    except LicenseNotFoundError as exc:
        click.echo(str(exc), err=True)
        raise SystemExit(EXIT_FLAGGED)

    line = f"{main_license} -> {dependency_license}: {entry.status}"
    if entry.reason:
        line += f" ({entry.reason})"
    click.echo(line)


if __name__ == "__main__":
    main()
