"""Declarative schema matching for untyped data trees.

Describe the shape you expect with a plain mapping, then check decoded
JSON/YAML against it. Nothing is coerced: the matcher only reports where the
data disagrees with the schema.

Schema grammar:
- ``{"name": "string"}``: a required field of a primitive type.
- ``{"?name": "string"}``: an optional field.
- ``{"name": "?string"}``: a nullable field.
- ``{"name": {...}}``: a nested field map.
- ``{"*": {...}}``: every element of a collection matches the sub-schema.
- ``{"rules": "string => boolean"}``: a map whose keys and values have the
  given primitive types.

Primitives: ``integer``, ``double``, ``boolean``, ``string``.

Example:
    >>> from schema_matcher import SchemaMatcher
    >>> matcher = SchemaMatcher({"id": "integer", "?tags": {"*": "string"}})
    >>> matcher.match({"id": 7, "tags": ["a", "b"]})
    True
    >>> matcher.match({"tags": ["a", 1]})
    False
    >>> sorted(matcher.get_errors())
    ['id', 'tags.*']
"""

from __future__ import annotations

import copy
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

logger = logging.getLogger(__name__)

WILDCARD = "*"
OPTIONAL_PREFIX = "?"
NULLABLE_PREFIX = "?"
COMPOSITE_SEPARATOR = " => "
PRIMITIVES = ("integer", "double", "boolean", "string")

_COMPOSITE_RE = re.compile(r"^([a-z]+) => ([a-z]+)$")


class ErrorKind(Enum):
    """Kinds of errors a match can report."""
    COLLECTION_DEFINITION = "COLLECTION_DEFINITION"
    KEY_NOT_FOUND = "KEY_NOT_FOUND"
    TYPE_UNKNOWN = "TYPE_UNKNOWN"
    TYPE_MISMATCH = "TYPE_MISMATCH"


ErrorReport = dict[str, dict[ErrorKind, str]]


class MatchFailedError(Exception):
    """Raised by SchemaMatcher.validate() when data does not match."""

    def __init__(self, message: str, errors: ErrorReport | None = None):
        super().__init__(message)
        self.errors = errors or {}
        self.violations = [
            f"{path}: {kind.value}"
            for path, kinds in self.errors.items()
            for kind in kinds
        ]


@dataclass(frozen=True)
class MatchResult:
    """Snapshot of a single match call."""

    valid: bool
    errors: ErrorReport = field(default_factory=dict)


# --- Parsed schema nodes ---

@dataclass(frozen=True)
class TypeExpression:
    """A parsed type expression string.

    ``error`` holds the TYPE_UNKNOWN message when the expression does not
    parse; it is only reported once a field using it is visited.
    """
    raw: str
    nullable: bool = False
    primitive: str | None = None
    key_type: str | None = None
    value_type: str | None = None
    error: str | None = None

    @property
    def composite(self) -> bool:
        return self.key_type is not None

    @classmethod
    def parse(cls, expr: Any) -> TypeExpression:
        if not isinstance(expr, str):
            return cls(raw=repr(expr), error=f"Unknown value type: {expr!r}.")

        text = expr
        nullable = text.startswith(NULLABLE_PREFIX)
        if nullable:
            text = text[len(NULLABLE_PREFIX):]

        if COMPOSITE_SEPARATOR in text:
            m = _COMPOSITE_RE.match(text)
            if m is None:
                return cls(raw=expr, nullable=nullable, error=f"Unknown value type: {text}.")
            key_type, value_type = m.groups()
            if key_type not in PRIMITIVES or value_type not in PRIMITIVES:
                return cls(
                    raw=expr,
                    nullable=nullable,
                    error=f"The key and value types are unknown: {key_type} => {value_type}.",
                )
            return cls(raw=expr, nullable=nullable, key_type=key_type, value_type=value_type)

        if text not in PRIMITIVES:
            return cls(raw=expr, nullable=nullable, error=f"Unknown value type: {text}.")
        return cls(raw=expr, nullable=nullable, primitive=text)


@dataclass(frozen=True)
class FieldSpec:
    """A field of a field map.

    ``key`` is the schema key without its optional prefix, as written
    (possibly an int); ``name`` is its path segment.
    """
    name: str
    optional: bool
    node: SchemaNode
    key: Any = None


@dataclass(frozen=True)
class FieldMap:
    fields: tuple[FieldSpec, ...] = ()


@dataclass(frozen=True)
class Collection:
    """Wildcard node: ``item`` applies to every element of the data.

    Any ``siblings`` make the definition invalid.
    """
    item: SchemaNode
    siblings: tuple[str, ...] = ()


SchemaNode = Union[FieldMap, Collection, TypeExpression]


def parse_schema(description: Any) -> SchemaNode:
    """Parse a schema description into its node form."""
    if isinstance(description, Mapping):
        if WILDCARD in description:
            siblings = tuple(str(k) for k in description if k != WILDCARD)
            return Collection(item=parse_schema(description[WILDCARD]), siblings=siblings)

        fields = []
        for key, value in description.items():
            optional = isinstance(key, str) and key.startswith(OPTIONAL_PREFIX)
            if optional:
                key = key[len(OPTIONAL_PREFIX):]
            fields.append(FieldSpec(
                name=str(key),
                optional=optional,
                node=parse_schema(value),
                key=key,
            ))
        return FieldMap(fields=tuple(fields))

    return TypeExpression.parse(description)


# --- Runtime types ---

def type_name(value: Any) -> str:
    """Name the runtime type of a data value in schema vocabulary."""
    # bool first: it subclasses int
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "double"
    if isinstance(value, str):
        return "string"
    if value is None:
        return "null"
    if is_container(value):
        return "array"
    return type(value).__name__


def is_container(value: Any) -> bool:
    return isinstance(value, (Mapping, list, tuple))


def _items(container: Any):
    if isinstance(container, Mapping):
        return container.items()
    return enumerate(container)


def _key_candidates(key: Any) -> list:
    """The key as written, then its int/str counterpart ("200" and 200 are one key)."""
    candidates = [key]
    if isinstance(key, str) and key.isdecimal():
        candidates.append(int(key))
    elif isinstance(key, int) and not isinstance(key, bool):
        candidates.append(str(key))
    return candidates


def _lookup(container: Any, key: Any) -> tuple[bool, Any]:
    for candidate in _key_candidates(key):
        if isinstance(container, Mapping):
            if candidate in container:
                return True, container[candidate]
        # list indices addressed by integer or decimal field keys
        elif isinstance(candidate, int) and not isinstance(candidate, bool):
            if 0 <= candidate < len(container):
                return True, container[candidate]
    return False, None


def _join(parent: str, segment: str) -> str:
    return f"{parent}.{segment}" if parent else segment


# --- Matching ---

class _Accumulator:
    """Error sink owned by one match call."""

    def __init__(self) -> None:
        self.errors: ErrorReport = {}

    def add(self, path: str, kind: ErrorKind, message: str) -> None:
        self.errors.setdefault(path, {}).setdefault(kind, message)


class SchemaMatcher:
    """Matches untyped data trees against a schema description.

    Args:
        schema: A field map (or collection marker) description. ``None`` or
            an empty mapping matches anything.

    The schema is parsed once; the instance can be reused for any number of
    ``match`` calls. Each call builds its own error report, and
    ``get_errors()`` returns the one from the latest call.
    """

    def __init__(self, schema: Mapping[str, Any] | None = None) -> None:
        if schema is None:
            schema = {}
        if not isinstance(schema, Mapping):
            raise TypeError(f"schema must be a mapping, got {type(schema).__name__}")
        self._description = copy.deepcopy(dict(schema))
        self._root = parse_schema(self._description)
        self._errors: ErrorReport = {}

    @property
    def schema(self) -> dict[str, Any]:
        return copy.deepcopy(self._description)

    @property
    def empty(self) -> bool:
        return not self._description

    def match(self, data: Any) -> bool:
        """Check data against the schema. Returns True when no errors were found."""
        return self.check(data).valid

    def check(self, data: Any) -> MatchResult:
        """Check data and return the result snapshot of this call."""
        self._errors = {}
        if self.empty:
            return MatchResult(valid=True)

        logger.debug("matching data against schema with %d top-level keys", len(self._description))
        acc = _Accumulator()
        _compare_structure(self._root, data, "", acc)
        self._errors = acc.errors
        logger.debug("match finished with %d error path(s)", len(acc.errors))
        return MatchResult(valid=not acc.errors, errors=_copy_report(acc.errors))

    def validate(self, data: Any) -> None:
        """Raise MatchFailedError if data does not match the schema."""
        result = self.check(data)
        if not result.valid:
            paths = ", ".join(result.errors)
            raise MatchFailedError(f"Schema match failed: {paths}", errors=result.errors)

    def get_errors(self) -> ErrorReport:
        """Return the error report of the most recent match call."""
        return _copy_report(self._errors)


def _copy_report(report: ErrorReport) -> ErrorReport:
    return {path: dict(kinds) for path, kinds in report.items()}


def _compare_structure(node: SchemaNode, data: Any, path: str, acc: _Accumulator) -> None:
    if isinstance(node, TypeExpression):
        _compare_type(node, data, path, acc)
        return

    if not is_container(data):
        acc.add(
            path,
            ErrorKind.TYPE_MISMATCH,
            f"The value must be an array as defined in the schema, got '{type_name(data)}'.",
        )
        return

    if isinstance(node, Collection):
        _compare_collection(node, data, path, acc)
    else:
        _compare_fields(node, data, path, acc)


def _compare_collection(node: Collection, data: Any, parent: str, acc: _Accumulator) -> None:
    path = _join(parent, WILDCARD)

    if node.siblings:
        acc.add(
            path,
            ErrorKind.COLLECTION_DEFINITION,
            "Definition of the collection must be the only definition of the level.",
        )
        return

    for _, element in _items(data):
        _compare_structure(node.item, element, path, acc)


def _compare_fields(node: FieldMap, data: Any, parent: str, acc: _Accumulator) -> None:
    for spec in node.fields:
        found, value = _lookup(data, spec.key)
        if not found and spec.optional:
            continue

        path = _join(parent, spec.name)
        if not found:
            acc.add(path, ErrorKind.KEY_NOT_FOUND, "The key defined in the schema is not found in the data.")
            continue

        _compare_structure(spec.node, value, path, acc)


def _compare_type(expr: TypeExpression, value: Any, path: str, acc: _Accumulator) -> None:
    if expr.nullable and value is None:
        return

    if expr.error is not None:
        acc.add(path, ErrorKind.TYPE_UNKNOWN, expr.error)
        return

    if expr.composite:
        _compare_composite(expr, value, path, acc)
        return

    actual = type_name(value)
    if actual != expr.primitive:
        acc.add(
            path,
            ErrorKind.TYPE_MISMATCH,
            f"The value must be of type '{expr.primitive}', got '{actual}'.",
        )


def _compare_composite(expr: TypeExpression, value: Any, path: str, acc: _Accumulator) -> None:
    signature = f"{expr.key_type} => {expr.value_type}"
    if not is_container(value):
        acc.add(
            path,
            ErrorKind.TYPE_MISMATCH,
            f"The value must be an array of type '{signature}', got '{type_name(value)}'.",
        )
        return

    # Keep scanning after a bad pair; the path records the kind once.
    for key, item in _items(value):
        if type_name(key) != expr.key_type or type_name(item) != expr.value_type:
            acc.add(
                path,
                ErrorKind.TYPE_MISMATCH,
                f"The key and value must be of type '{signature}'.",
            )
