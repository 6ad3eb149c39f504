import json
import sys
from pathlib import Path

import pytest

# Make the src layout importable without installing the package
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if SRC.exists():
    sys.path.insert(0, str(SRC))


@pytest.fixture
def write_sbom():
    """Write a minimal CycloneDX JSON document with one license per entry."""

    def _write(path: Path, component_licenses: list[list[str]], project_licenses=("MIT",)) -> Path:
        payload = {
            "bomFormat": "CycloneDX",
            "specVersion": "1.5",
            "metadata": {
                "component": {
                    "name": "app",
                    "version": "1.0.0",
                    "licenses": [{"license": {"id": lic}} for lic in project_licenses],
                }
            },
            "components": [
                {
                    "name": f"pkg-{index}",
                    "version": "1.0.0",
                    "licenses": [{"license": {"id": lic}} for lic in licenses],
                }
                for index, licenses in enumerate(component_licenses)
            ],
        }
        path.write_text(json.dumps(payload))
        return path

    return _write
