"""Schema documents: load schemas from dicts, JSON, or YAML; export reports.

Schemas can live in config files next to the code that consumes the data:

    # user.schema.yaml
    id: integer
    email: string
    "?nickname": "?string"
    roles:
      "*":
        name: string
        grants: string => boolean

The document shape (mappings of strings and nested mappings) is checked on
load. Type expressions themselves are not: an unknown type is reported as
TYPE_UNKNOWN when a match reaches it.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml

from .matcher import ErrorReport, SchemaMatcher

SCHEMA_DOCUMENT_SCHEMA: dict = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "Schema Description",
    "type": "object",
    "$ref": "#/$defs/node",
    "$defs": {
        # Strings are type expressions, objects are nested nodes.
        "node": {
            "type": ["string", "object"],
            "propertyNames": {"type": "string", "minLength": 1},
            "additionalProperties": {"$ref": "#/$defs/node"},
        },
    },
}


class SchemaDefinitionError(ValueError):
    """Raised when a schema document does not have the expected shape."""

    def __init__(self, message: str, violations: list[str] | None = None):
        super().__init__(message)
        self.violations = violations or []


def schema_from_dict(d: Any) -> SchemaMatcher:
    """Build a SchemaMatcher from a plain dict, checking its shape first.

    Raises:
        SchemaDefinitionError: If the document is not a mapping of field keys
            to type expressions and nested mappings. ``.violations`` lists
            every offending location.
    """
    if not isinstance(d, dict):
        raise SchemaDefinitionError(
            f"Schema must be a dict, got {type(d).__name__}",
            violations=["(root): not a mapping"],
        )

    validator = jsonschema.Draft202012Validator(SCHEMA_DOCUMENT_SCHEMA)
    violations = []
    for error in validator.iter_errors(d):
        path = ".".join(str(p) for p in error.absolute_path) or "(root)"
        violations.append(f"{path}: {error.message}")
    if violations:
        raise SchemaDefinitionError(
            f"Invalid schema document: {'; '.join(violations)}",
            violations=violations,
        )

    return SchemaMatcher(d)


def schema_from_json(source: str | Path) -> SchemaMatcher:
    """Load a schema from a JSON string or file path.

    If source looks like a file path (contains / or \\, or ends in .json),
    it's treated as a file. Otherwise, it's parsed as a JSON string.
    """
    text = _read_source(source, (".json",))
    try:
        d = json.loads(text)
    except json.JSONDecodeError as e:
        raise SchemaDefinitionError(f"Invalid JSON schema document: {e}") from e
    return schema_from_dict(d)


def schema_from_yaml(source: str | Path) -> SchemaMatcher:
    """Load a schema from a YAML string or file path.

    If source looks like a file path (contains / or \\, or ends in .yaml/.yml),
    it's treated as a file. Otherwise, it's parsed as a YAML string.
    """
    text = _read_source(source, (".yaml", ".yml"))
    try:
        d = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise SchemaDefinitionError(f"Invalid YAML schema document: {e}") from e
    return schema_from_dict(d)


def report_to_dict(report: ErrorReport) -> dict[str, dict[str, str]]:
    """Convert an error report to plain strings (suitable for JSON/YAML)."""
    return {
        path: {kind.value: message for kind, message in kinds.items()}
        for path, kinds in report.items()
    }


def report_to_json(report: ErrorReport, indent: int = 2) -> str:
    return json.dumps(report_to_dict(report), indent=indent)


def _read_source(source: str | Path, suffixes: tuple[str, ...]) -> str:
    path = Path(source)
    named_file = isinstance(source, Path) or path.suffix.lower() in suffixes
    if named_file or "/" in str(source) or "\\" in str(source):
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            if named_file:
                raise SchemaDefinitionError(f"Schema file not found: {source}") from None
            # Fall through: maybe it's actually an inline document
            return str(source)
        except UnicodeDecodeError as e:
            raise SchemaDefinitionError(f"Schema file is not valid UTF-8: {source}: {e}") from e
    return str(source)
