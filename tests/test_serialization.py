"""Tests for schema documents — dict, JSON, YAML loading and report export."""

import json
from pathlib import Path

import pytest
import yaml

from schema_matcher import ErrorKind, SchemaMatcher
from schema_matcher.serialization import (
    SchemaDefinitionError,
    report_to_dict,
    report_to_json,
    schema_from_dict,
    schema_from_json,
    schema_from_yaml,
)

USER_SCHEMA_YAML = """\
id: integer
email: string
"?nickname": "?string"
roles:
  "*":
    name: string
    grants: string => boolean
"""


class TestSchemaFromDict:
    def test_valid_document(self):
        matcher = schema_from_dict({"id": "integer", "meta": {"page": "integer"}})
        assert isinstance(matcher, SchemaMatcher)
        assert matcher.match({"id": 1, "meta": {"page": 2}})

    def test_empty_document(self):
        assert schema_from_dict({}).match(["anything"])

    def test_not_a_dict(self):
        with pytest.raises(SchemaDefinitionError) as exc_info:
            schema_from_dict(["integer"])
        assert exc_info.value.violations == ["(root): not a mapping"]

    def test_non_string_leaf(self):
        with pytest.raises(SchemaDefinitionError) as exc_info:
            schema_from_dict({"id": 5, "meta": {"page": ["integer"]}})
        paths = [v.split(":")[0] for v in exc_info.value.violations]
        assert sorted(paths) == ["id", "meta.page"]

    def test_definition_error_is_value_error(self):
        with pytest.raises(ValueError):
            schema_from_dict({"id": None})

    def test_unknown_types_are_not_rejected(self):
        matcher = schema_from_dict({"id": "whatisthis"})
        assert not matcher.match({"id": 1})
        assert ErrorKind.TYPE_UNKNOWN in matcher.get_errors()["id"]


class TestSchemaFromJson:
    def test_from_string(self):
        matcher = schema_from_json('{"id": "integer"}')
        assert matcher.match({"id": 1})

    def test_from_file(self, tmp_path: Path):
        path = tmp_path / "schema.json"
        path.write_text(json.dumps({"*": {"id": "integer"}}), encoding="utf-8")
        matcher = schema_from_json(path)
        assert matcher.match([{"id": 1}])

    def test_invalid_json(self):
        with pytest.raises(SchemaDefinitionError):
            schema_from_json("{not json")


class TestSchemaFromYaml:
    def test_from_string(self):
        matcher = schema_from_yaml(USER_SCHEMA_YAML)
        assert matcher.schema == yaml.safe_load(USER_SCHEMA_YAML)
        assert matcher.match({
            "id": 1,
            "email": "neo@matrix.io",
            "nickname": None,
            "roles": [{"name": "admin", "grants": {"admin.cp": True}}],
        })

    def test_from_file(self, tmp_path: Path):
        path = tmp_path / "user.schema.yaml"
        path.write_text(USER_SCHEMA_YAML, encoding="utf-8")
        matcher = schema_from_yaml(path)
        assert not matcher.match({"id": 1, "roles": [{"name": "admin"}]})
        assert set(matcher.get_errors()) == {"email", "roles.*.grants"}

    def test_empty_yaml(self):
        with pytest.raises(SchemaDefinitionError):
            schema_from_yaml("")

    def test_non_string_keys(self):
        with pytest.raises(SchemaDefinitionError):
            schema_from_yaml("1: integer\n")

    def test_uppercase_suffix_relative_path(self, tmp_path: Path, monkeypatch):
        (tmp_path / "USER.YAML").write_text("id: integer\n", encoding="utf-8")
        monkeypatch.chdir(tmp_path)
        matcher = schema_from_yaml("USER.YAML")
        assert matcher.schema == {"id": "integer"}

    def test_missing_file(self):
        with pytest.raises(SchemaDefinitionError) as exc_info:
            schema_from_yaml("/nonexistent/user.schema.yaml")
        assert "not found" in str(exc_info.value)

    def test_missing_file_as_path(self, tmp_path: Path):
        with pytest.raises(SchemaDefinitionError) as exc_info:
            schema_from_json(tmp_path / "absent")
        assert "not found" in str(exc_info.value)

    def test_non_utf8_file(self, tmp_path: Path):
        path = tmp_path / "latin1.yaml"
        path.write_bytes("name: \xe9\n".encode("latin-1"))
        with pytest.raises(SchemaDefinitionError):
            schema_from_yaml(path)


class TestReportExport:
    def test_report_to_dict(self):
        matcher = SchemaMatcher({"id": "integer"})
        matcher.match({})
        assert report_to_dict(matcher.get_errors()) == {
            "id": {"KEY_NOT_FOUND": "The key defined in the schema is not found in the data."},
        }

    def test_report_to_json(self):
        matcher = SchemaMatcher({"id": "integer"})
        matcher.match({"id": "1"})
        d = json.loads(report_to_json(matcher.get_errors()))
        assert list(d["id"]) == ["TYPE_MISMATCH"]

    def test_empty_report(self):
        assert report_to_dict({}) == {}
