"""schema-matcher: Declarative schema matching for untyped data trees."""

from .matcher import (
    SchemaMatcher, MatchResult, MatchFailedError, ErrorKind, ErrorReport,
    PRIMITIVES, type_name,
)
from .serialization import (
    SchemaDefinitionError,
    schema_from_dict, schema_from_json, schema_from_yaml,
    report_to_dict, report_to_json,
)

__version__ = "1.0.0"
__all__ = [
    "SchemaMatcher", "MatchResult", "MatchFailedError", "ErrorKind", "ErrorReport",
    "PRIMITIVES", "type_name",
    "SchemaDefinitionError",
    "schema_from_dict", "schema_from_json", "schema_from_yaml",
    "report_to_dict", "report_to_json",
]
