"""
JSON Schema validation for ModelForge YAML model files.

Usage:
    from modelforge.schema.validator import validate_schema_dir

    issues = validate_schema_dir(Path("schema"))
    for issue in issues:
        print(issue)

PyYAML quirk: the bare key ``on:`` is parsed as boolean ``True``, not the string
``"on"``.  We preprocess loaded dicts to rename that key before schema validation.
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

_SCHEMAS_DIR = Path(__file__).parent / "schemas"
MODEL_SCHEMA = "model.schema.json"


@dataclass
class SchemaIssue:
    """A single validation finding for a model YAML file."""

    file: Path
    message: str
    path: str = ""          # location within the document, e.g. "fields[0]/type"
    severity: str = "error" # "error" | "warning"

    def __str__(self) -> str:
        loc = f" at {self.path}" if self.path else ""
        return f"[{self.severity.upper()}] {self.file}{loc}: {self.message}"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_schema(name: str = MODEL_SCHEMA) -> dict[str, Any]:
    schema_path = _SCHEMAS_DIR / name
    with schema_path.open() as fh:
        return json.load(fh)


def _preprocess_on_key(obj: Any) -> Any:
    """
    Recursively rename the boolean key ``True`` → ``"on"`` in a parsed YAML dict.

    PyYAML parses the bare key ``on:`` as boolean ``True`` (YAML 1.1).
    The JSON Schema uses the string key ``"on"`` so we must fix this before
    validation.
    """
    if isinstance(obj, dict):
        result: dict[Any, Any] = {}
        for k, v in obj.items():
            new_key = "on" if k is True else k
            result[new_key] = _preprocess_on_key(v)
        return result
    if isinstance(obj, list):
        return [_preprocess_on_key(item) for item in obj]
    return obj


def _json_path(error: ValidationError) -> str:
    """Convert a jsonschema ValidationError path to a readable string."""
    parts = []
    for p in error.absolute_path:
        if isinstance(p, int):
            parts.append(f"[{p}]")
        else:
            parts.append(str(p))
    return "/".join(parts).replace("/[", "[")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_schema_file(
    yaml_path: Path,
    *,
    schema: dict[str, Any] | None = None,
) -> list[SchemaIssue]:
    """
    Validate a single model YAML file.

    Args:
        yaml_path: Path to the YAML file to validate.
        schema:    Pre-loaded JSON Schema.  Loaded automatically if omitted.

    Returns:
        A list of :class:`SchemaIssue` objects (empty on success).
    """
    try:
        with yaml_path.open() as fh:
            raw = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        return [SchemaIssue(file=yaml_path, message=f"YAML parse error: {exc}")]

    if raw is None:
        return [
            SchemaIssue(file=yaml_path, message="File is empty or contains only whitespace")
        ]

    doc = _preprocess_on_key(raw)
    validator = Draft202012Validator(schema or _load_schema())

    return [
        SchemaIssue(file=yaml_path, message=error.message, path=_json_path(error))
        for error in sorted(validator.iter_errors(doc), key=lambda e: list(e.path))
    ]


def validate_schema_dir(schema_dir: Path) -> list[SchemaIssue]:
    """
    Validate every ``models/*.yaml`` file under *schema_dir*.

    Returns:
        A flat list of :class:`SchemaIssue` objects across all files.
        Empty list means all files are valid.
    """
    if not schema_dir.is_dir():
        return [
            SchemaIssue(
                file=schema_dir,
                message=f"Schema directory does not exist: {schema_dir}",
            )
        ]

    try:
        schema = _load_schema()
    except (FileNotFoundError, json.JSONDecodeError) as exc:
        return [
            SchemaIssue(file=_SCHEMAS_DIR, message=f"Failed to load JSON Schema: {exc}")
        ]

    issues: list[SchemaIssue] = []
    models_dir = schema_dir / "models"
    if not models_dir.is_dir():
        logger.warning("No models/ directory under %s", schema_dir)
        return issues

    for yaml_file in sorted(models_dir.glob("*.yaml")):
        issues.extend(validate_schema_file(yaml_file, schema=schema))
    return issues
