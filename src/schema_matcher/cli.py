"""CLI tool for matching data files against a schema.

Usage:
    schema-matcher check --schema user.schema.yaml user.json
    schema-matcher check --schema user.schema.json --stdin < user.json
    schema-matcher check --schema config.schema.yaml --format yaml config.yaml
    schema-matcher types
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

import yaml

from .matcher import PRIMITIVES, SchemaMatcher
from .serialization import (
    SchemaDefinitionError,
    report_to_dict,
    schema_from_json,
    schema_from_yaml,
)

logger = logging.getLogger(__name__)


def _load_schema(path_str: str) -> SchemaMatcher | None:
    """Load a SchemaMatcher from a YAML or JSON file."""
    path = Path(path_str)
    if not path.exists():
        print(f"Error: schema file not found: {path_str}", file=sys.stderr)
        return None

    suffix = path.suffix.lower()
    try:
        if suffix in (".yaml", ".yml"):
            return schema_from_yaml(path)
        elif suffix == ".json":
            return schema_from_json(path)
    except SchemaDefinitionError as e:
        print(f"Error: {e}", file=sys.stderr)
        return None

    print(
        f"Error: unsupported schema file format '{suffix}' (use .yaml, .yml, or .json)",
        file=sys.stderr,
    )
    return None


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="schema-matcher",
        description="Declarative schema matching for JSON and YAML data",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    # --- check command ---
    p_check = sub.add_parser("check", help="Match a data file against a schema")
    p_check.add_argument("file", nargs="?", help="Path to data file (JSON or YAML)")
    p_check.add_argument("--stdin", action="store_true", help="Read data from stdin")
    p_check.add_argument("--schema", "-s", required=True, help="Path to schema file (YAML or JSON)")
    p_check.add_argument("--format", "-f", choices=["json", "yaml"],
                         help="Data format (default: from file extension, else json)")

    # --- types command ---
    sub.add_parser("types", help="List the type expression vocabulary")

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(name)s - %(levelname)s - %(message)s",
            stream=sys.stderr,
        )

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == "types":
        return _cmd_types()
    elif args.command == "check":
        return _cmd_check(args)

    return 1


def _read_content(args: argparse.Namespace) -> str | None:
    """Read content from file or stdin."""
    if getattr(args, "stdin", False):
        return sys.stdin.read()
    if hasattr(args, "file") and args.file:
        path = Path(args.file)
        if not path.exists():
            print(f"Error: file not found: {args.file}", file=sys.stderr)
            return None
        try:
            return path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            print(f"Error: file is not valid UTF-8: {args.file}: {e}", file=sys.stderr)
            return None
    print("Error: provide a file path or --stdin", file=sys.stderr)
    return None


def _data_format(args: argparse.Namespace) -> str:
    if args.format:
        return args.format
    if args.file and Path(args.file).suffix.lower() in (".yaml", ".yml"):
        return "yaml"
    return "json"


def _decode(content: str, fmt: str) -> tuple[bool, Any]:
    try:
        if fmt == "yaml":
            return True, yaml.safe_load(content)
        return True, json.loads(content)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        print(f"Error: invalid {fmt.upper()}: {e}", file=sys.stderr)
        return False, None


def _cmd_types() -> int:
    print("Primitive types:")
    for name in PRIMITIVES:
        print(f"  {name}")
    print("\nType expressions:")
    print("  <type>            value has the primitive type")
    print("  ?<type>           value is null or has the primitive type")
    print("  <type> => <type>  map whose keys and values have the given types")
    print("\nField keys:")
    print("  ?<key>            optional field")
    print("  *                 every element of a collection (must be alone)")
    return 0


def _cmd_check(args: argparse.Namespace) -> int:
    matcher = _load_schema(args.schema)
    if matcher is None:
        return 1

    content = _read_content(args)
    if content is None:
        return 1

    fmt = _data_format(args)
    ok, data = _decode(content, fmt)
    if not ok:
        return 1

    logger.debug("checking %s data against %s", fmt, args.schema)
    result = matcher.check(data)

    output = {
        "valid": result.valid,
        "errors": report_to_dict(result.errors),
    }
    print(json.dumps(output, indent=2))
    return 0 if result.valid else 1


def entry_point() -> None:
    """Entry point for console_scripts — calls main() and exits with its return code."""
    sys.exit(main())


if __name__ == "__main__":
    sys.exit(main())
