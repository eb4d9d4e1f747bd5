"""
schemas/validator.py: JSON Schema validation of record schema YAML files.

Usage:
    from tagrules.schemas.validator import validate_schema_dir

    for issue in validate_schema_dir(Path("schemas")):
        print(issue)
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError

logger = logging.getLogger(__name__)

_RECORD_SCHEMA_PATH = Path(__file__).parent / "json" / "record.schema.json"


@dataclass
class SchemaIssue:
    """A single finding for a record schema YAML file."""

    file: Path
    message: str
    path: str = ""          # location within the document, e.g. "fields[0]/type"
    severity: str = "error" # "error" | "warning"

    def __str__(self) -> str:
        loc = f" at {self.path}" if self.path else ""
        return f"[{self.severity.upper()}] {self.file}{loc}: {self.message}"


def _load_record_schema() -> dict[str, Any]:
    with _RECORD_SCHEMA_PATH.open() as fh:
        return json.load(fh)


def _json_path(error: ValidationError) -> str:
    """Convert a jsonschema ValidationError path to a readable string."""
    parts = []
    for p in error.absolute_path:
        if isinstance(p, int):
            parts.append(f"[{p}]")
        else:
            parts.append(str(p))
    return "/".join(parts).replace("/[", "[")


def validate_schema_file(
    yaml_path: Path,
    *,
    validator: Draft202012Validator | None = None,
) -> list[SchemaIssue]:
    """
    Validate a single record schema YAML file.

    Args:
        yaml_path: Path to the YAML file.
        validator: Pre-built validator.  Built automatically if omitted.

    Returns:
        A list of :class:`SchemaIssue` objects (empty on success).
    """
    try:
        with yaml_path.open() as fh:
            doc = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        return [SchemaIssue(file=yaml_path, message=f"YAML parse error: {exc}")]

    if doc is None:
        return [
            SchemaIssue(file=yaml_path, message="File is empty or contains only whitespace")
        ]

    if validator is None:
        validator = Draft202012Validator(_load_record_schema())

    issues = [
        SchemaIssue(file=yaml_path, message=error.message, path=_json_path(error))
        for error in sorted(validator.iter_errors(doc), key=lambda e: list(e.path))
    ]

    for index, spec in enumerate(doc.get("fields") or [] if isinstance(doc, dict) else []):
        if isinstance(spec, dict) and spec.get("type") == "time" and spec.get("schema"):
            issues.append(
                SchemaIssue(
                    file=yaml_path,
                    message="'schema' is ignored on time fields",
                    path=f"fields[{index}]",
                    severity="warning",
                )
            )
    return issues


def validate_schema_dir(schema_dir: Path, *, strict: bool = False) -> list[SchemaIssue]:
    """
    Validate every ``*.yaml`` file in *schema_dir*.

    Args:
        schema_dir: Directory of record schema files.
        strict:     If ``True``, warnings are escalated to errors.

    Returns:
        A flat list of :class:`SchemaIssue` objects across all files.
    """
    if not schema_dir.is_dir():
        return [
            SchemaIssue(file=schema_dir, message=f"Schema directory does not exist: {schema_dir}")
        ]

    validator = Draft202012Validator(_load_record_schema())
    all_issues: list[SchemaIssue] = []
    for yaml_file in sorted(schema_dir.glob("*.yaml")):
        file_issues = validate_schema_file(yaml_file, validator=validator)
        if strict:
            for issue in file_issues:
                if issue.severity == "warning":
                    issue.severity = "error"
        all_issues.extend(file_issues)

    logger.debug("Checked %s: %d issue(s)", schema_dir, len(all_issues))
    return all_issues
