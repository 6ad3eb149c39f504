from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, Template, TemplateError, select_autoescape

from .grouping import sorted_license_keys
from .types import ComponentsByLicense, LicenseAudit


DEFAULT_TEMPLATE = """\
# Third-party licenses

Generated at: {{ generated_at }}
{% if main_license %}
Project license: {{ main_license }}
{% endif %}
{% for license in sorted_keys %}

## {{ license }}

| Name | Version |
| --- | --- |
{% for component in components_by_license[license] %}
| {{ component.name }} | {{ component.version or "unversioned" }} |
{% endfor %}
{% endfor %}
{% if issues %}

## License issues

{% for issue in issues %}
- **{{ issue.license_id }}** ({{ issue.status }}): {{ issue.reason }}
{% endfor %}
{% endif %}
"""


class ReportTemplateError(Exception):
    """Raised when a report template cannot be loaded or rendered."""


def _environment(loader: Optional[FileSystemLoader] = None, trim: bool = False) -> Environment:
    return Environment(
        loader=loader,
        autoescape=select_autoescape(["html", "xml"], default_for_string=False),
        keep_trailing_newline=True,
        trim_blocks=trim,
        lstrip_blocks=trim,
    )


def load_template(path: Optional[Path] = None) -> Template:
    """Load a user template, or the built-in Markdown one when ``path`` is None.

    Autoescaping follows the template's file extension (``.html``/``.xml``).
    """

    if path is None:
        return _environment(trim=True).from_string(DEFAULT_TEMPLATE)
    if not path.is_file():
        raise ReportTemplateError(f"Template file not found: {path}")
    env = _environment(FileSystemLoader(str(path.parent)))
    try:
        return env.get_template(path.name)
    except TemplateError as exc:
        raise ReportTemplateError(f"failed to parse template file {path}: {exc}") from exc


def render_context(
    grouped: ComponentsByLicense,
    audit: Optional[LicenseAudit] = None,
    generated_at: Optional[datetime] = None,
) -> dict:
    return {
        "sorted_keys": sorted_license_keys(grouped),
        "components_by_license": grouped,
        "main_license": audit.main_license if audit else None,
        "issues": audit.sorted_issues() if audit else [],
        "generated_at": (generated_at or datetime.now(timezone.utc)).isoformat(timespec="seconds"),
    }


def render_licenses(
    grouped: ComponentsByLicense,
    template: Optional[Template] = None,
    audit: Optional[LicenseAudit] = None,
    generated_at: Optional[datetime] = None,
) -> str:
    template = template or load_template()
    try:
        return template.render(**render_context(grouped, audit, generated_at))
    except TemplateError as exc:
        raise ReportTemplateError(f"failed to execute template: {exc}") from exc


def write_report(rendered: str, destination: Path) -> None:
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(rendered)
