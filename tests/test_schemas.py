"""
Tests for tagrules.schemas

Covers:
  - SchemaLoader.load_all()        : YAML records, cross-references, errors
  - SchemaLoader.check_rules()     : tag problems surfaced at load time
  - validate_schema_file()         : JSON Schema checks (valid + invalid)
  - validate_schema_dir()          : directory walk, strict mode
"""
from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from tagrules.schemas import (
    SchemaError,
    SchemaLoader,
    validate_schema_dir,
    validate_schema_file,
)
from tagrules.validation import FieldKind, Record, RuleRegistry, SchemaResolver, Validation


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _write_yaml(path: Path, data: dict) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.dump(data))
    return path


def _write_raw(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


ADDRESS = {
    "record": "Address",
    "fields": [{"name": "city", "valid": "Required;MaxSize(40)"}],
}

CUSTOMER = {
    "record": "Customer",
    "fields": [
        {"name": "name", "valid": "Required", "json": "full_name"},
        {"name": "address", "type": "record", "schema": "Address"},
        {"name": "previous", "type": "list", "schema": "Address"},
        {"name": "since", "type": "time"},
    ],
}


@pytest.fixture
def schema_dir(tmp_path: Path) -> Path:
    _write_yaml(tmp_path / "address.yaml", ADDRESS)
    _write_yaml(tmp_path / "customer.yaml", CUSTOMER)
    return tmp_path


# ---------------------------------------------------------------------------
# SchemaLoader
# ---------------------------------------------------------------------------


class TestSchemaLoader:
    def test_loads_records(self, schema_dir):
        loader = SchemaLoader(schema_dir)
        schemas = loader.load_all()

        assert loader.list_schemas() == ["Address", "Customer"]
        customer = schemas["Customer"]
        assert [f.name for f in customer.fields] == ["name", "address", "previous", "since"]
        assert customer.get_field("name").key == "full_name"
        assert customer.get_field("address").kind is FieldKind.RECORD
        assert customer.get_field("address").schema == "Address"
        assert customer.get_field("previous").kind is FieldKind.RECORD_LIST
        assert customer.get_field("since").kind is FieldKind.TIME

    def test_unknown_reference(self, tmp_path):
        _write_yaml(tmp_path / "customer.yaml", CUSTOMER)
        with pytest.raises(SchemaError, match="unknown schema 'Address'"):
            SchemaLoader(tmp_path).load_all()

    def test_duplicate_record(self, tmp_path):
        _write_yaml(tmp_path / "a.yaml", ADDRESS)
        _write_yaml(tmp_path / "b.yaml", ADDRESS)
        with pytest.raises(SchemaError, match="duplicate record"):
            SchemaLoader(tmp_path).load_all()

    def test_unknown_field_type(self, tmp_path):
        _write_yaml(
            tmp_path / "a.yaml",
            {"record": "A", "fields": [{"name": "x", "type": "blob"}]},
        )
        with pytest.raises(SchemaError, match="unknown type"):
            SchemaLoader(tmp_path).load_all()

    def test_missing_record_key(self, tmp_path):
        _write_yaml(tmp_path / "a.yaml", {"fields": []})
        with pytest.raises(SchemaError):
            SchemaLoader(tmp_path).load_all()

    def test_missing_directory(self, tmp_path):
        with pytest.raises(SchemaError, match="not found"):
            SchemaLoader(tmp_path / "missing").load_all()

    def test_check_rules_reports_bad_tag(self, tmp_path):
        _write_yaml(
            tmp_path / "a.yaml",
            {"record": "A", "fields": [{"name": "age", "valid": "Range(1)"}]},
        )
        loader = SchemaLoader(tmp_path)
        loader.load_all()
        with pytest.raises(SchemaError, match="field 'age'"):
            loader.check_rules(RuleRegistry.with_builtins())

    def test_check_rules_passes(self, schema_dir):
        loader = SchemaLoader(schema_dir)
        loader.load_all()
        loader.check_rules(RuleRegistry.with_builtins())

    def test_loaded_schemas_validate_mappings(self, schema_dir):
        schemas = SchemaLoader(schema_dir).load_all()
        validation = Validation(resolver=SchemaResolver(schemas=schemas))
        data = {
            "name": "Ann",
            "address": {"city": "Oslo"},
            "previous": [{"city": ""}],
        }

        assert validation.recursive_valid(Record(schemas["Customer"], data)) is False
        assert [e.field for e in validation.errors] == ["city"]


# ---------------------------------------------------------------------------
# validate_schema_file
# ---------------------------------------------------------------------------


class TestValidateSchemaFile:
    def test_valid_file(self, schema_dir):
        assert validate_schema_file(schema_dir / "customer.yaml") == []

    def test_missing_fields(self, tmp_path):
        path = _write_yaml(tmp_path / "a.yaml", {"record": "A"})
        issues = validate_schema_file(path)
        assert len(issues) == 1
        assert "'fields' is a required property" in issues[0].message

    def test_bad_type_reports_path(self, tmp_path):
        path = _write_yaml(
            tmp_path / "a.yaml",
            {"record": "A", "fields": [{"name": "x", "type": "blob"}]},
        )
        issues = validate_schema_file(path)
        assert any(i.path == "fields[0]/type" for i in issues)

    def test_record_field_needs_schema(self, tmp_path):
        path = _write_yaml(
            tmp_path / "a.yaml",
            {"record": "A", "fields": [{"name": "x", "type": "record"}]},
        )
        issues = validate_schema_file(path)
        assert issues
        assert all(i.severity == "error" for i in issues)

    def test_unknown_property(self, tmp_path):
        path = _write_yaml(
            tmp_path / "a.yaml",
            {"record": "A", "fields": [{"name": "x", "rules": "Required"}]},
        )
        assert validate_schema_file(path)

    def test_empty_file(self, tmp_path):
        path = _write_raw(tmp_path / "a.yaml", "")
        issues = validate_schema_file(path)
        assert "empty" in issues[0].message

    def test_yaml_parse_error(self, tmp_path):
        path = _write_raw(tmp_path / "a.yaml", "record: [unclosed\n")
        issues = validate_schema_file(path)
        assert "YAML parse error" in issues[0].message

    def test_time_field_with_schema_warns(self, tmp_path):
        path = _write_yaml(
            tmp_path / "a.yaml",
            {"record": "A", "fields": [{"name": "at", "type": "time", "schema": "X"}]},
        )
        issues = validate_schema_file(path)
        assert [i.severity for i in issues] == ["warning"]

    def test_issue_str(self, tmp_path):
        path = _write_yaml(tmp_path / "a.yaml", {"record": "A"})
        text = str(validate_schema_file(path)[0])
        assert text.startswith("[ERROR]")
        assert "a.yaml" in text


# ---------------------------------------------------------------------------
# validate_schema_dir
# ---------------------------------------------------------------------------


class TestValidateSchemaDir:
    def test_valid_dir(self, schema_dir):
        assert validate_schema_dir(schema_dir) == []

    def test_missing_dir(self, tmp_path):
        issues = validate_schema_dir(tmp_path / "missing")
        assert "does not exist" in issues[0].message

    def test_strict_escalates_warnings(self, tmp_path):
        _write_yaml(
            tmp_path / "a.yaml",
            {"record": "A", "fields": [{"name": "at", "type": "time", "schema": "X"}]},
        )
        assert [i.severity for i in validate_schema_dir(tmp_path)] == ["warning"]
        assert [i.severity for i in validate_schema_dir(tmp_path, strict=True)] == ["error"]
