"""
SoundPress v1 Run Reports.

Responsibilities:
- Build the JSON report of one pipeline run
- Validate reports against schemas/report.schema.json

Invariants:
- Reports never contain sample data
- Serialization is deterministic (utils.serialize_json)
"""

import json
from pathlib import Path
from typing import Any

import jsonschema

from soundpress.config import PipelineConfig
from soundpress.pipeline import PipelineResult
from soundpress.utils import now_iso


SCHEMA_PATH = Path(__file__).parent / "schemas" / "report.schema.json"
REPORT_VERSION = "v1"


def build_report(
    result: PipelineResult,
    config: PipelineConfig,
    input_name: str,
    output_name: str | None = None,
) -> dict[str, Any]:
    """
    Build the report object for one run.

    Args:
        result: Outcome of pipeline.run
        config: Options the run used
        input_name: Input file name (or other label)
        output_name: Written output file name, None when nothing was written

    Returns:
        Report dictionary matching the report schema.
    """
    return {
        "version": REPORT_VERSION,
        "input": input_name,
        "output": output_name,
        "created_at": now_iso(),
        "config": config.to_dict(),
        **result.to_dict(),
    }


def load_schema() -> dict:
    with open(SCHEMA_PATH) as f:
        return json.load(f)


def validate_report(report: dict[str, Any]) -> list[str]:
    """
    Validate a report against the schema.

    Returns:
        List of validation error messages (empty if valid).
    """
    validator = jsonschema.Draft7Validator(load_schema())
    errors = []
    for error in validator.iter_errors(report):
        path = ".".join(str(p) for p in error.absolute_path) or "(root)"
        errors.append(f"{path}: {error.message}")
    return errors
