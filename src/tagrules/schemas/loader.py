"""Load record schemas from YAML files.

Each file declares one record:

    record: Account
    fields:
      - name: password
        valid: Required;MinSize(6)
      - name: owner
        type: record
        schema: User
      - name: members
        type: list
        schema: User

Nested schemas are referenced by name and resolved after all files are read.
"""

import logging
from pathlib import Path
from typing import Any

import yaml

from tagrules.validation.errors import RuleEngineError
from tagrules.validation.parser import TagParser
from tagrules.validation.registry import RuleRegistry
from tagrules.validation.schema import FieldKind, FieldSpec, RecordSchema

logger = logging.getLogger(__name__)


class SchemaError(ValueError):
    """A schema file is malformed or refers to an unknown schema."""


class SchemaLoader:
    """Loads record schemas from a directory of YAML files."""

    def __init__(self, schema_path: Path):
        self.schema_path = schema_path
        self.schemas: dict[str, RecordSchema] = {}

    def load_all(self) -> dict[str, RecordSchema]:
        """Load every *.yaml file and check cross-references."""
        if not self.schema_path.is_dir():
            raise SchemaError(f"Schema directory not found: {self.schema_path}")

        for yaml_file in sorted(self.schema_path.glob("*.yaml")):
            self.load_file(yaml_file)
        self._check_references()
        logger.debug("Loaded %d schema(s) from %s", len(self.schemas), self.schema_path)
        return self.schemas

    def load_file(self, yaml_file: Path) -> RecordSchema:
        with open(yaml_file) as f:
            data = yaml.safe_load(f)
        if not isinstance(data, dict) or "record" not in data:
            raise SchemaError(f"{yaml_file}: expected a mapping with a 'record' key")

        schema = self._resolve_record(data, yaml_file)
        if schema.name in self.schemas:
            raise SchemaError(f"{yaml_file}: duplicate record '{schema.name}'")
        self.schemas[schema.name] = schema
        return schema

    def _resolve_record(self, data: dict[str, Any], source: Path) -> RecordSchema:
        fields = []
        for raw in data.get("fields") or []:
            if not isinstance(raw, dict) or "name" not in raw:
                raise SchemaError(f"{source}: every field needs a 'name'")
            try:
                kind = FieldKind(raw.get("type", "value"))
            except ValueError:
                raise SchemaError(
                    f"{source}: field '{raw['name']}' has unknown type '{raw.get('type')}'"
                ) from None
            fields.append(
                FieldSpec(
                    name=str(raw["name"]),
                    rules=str(raw.get("valid") or ""),
                    json_name=raw.get("json"),
                    alias=raw.get("alias"),
                    kind=kind,
                    inline=bool(raw.get("inline", False)),
                    schema=raw.get("schema"),
                )
            )
        return RecordSchema(name=str(data["record"]), fields=tuple(fields))

    def _check_references(self) -> None:
        for schema in self.schemas.values():
            for spec in schema.fields:
                if isinstance(spec.schema, str) and spec.schema not in self.schemas:
                    raise SchemaError(
                        f"Record '{schema.name}' field '{spec.name}' refers to "
                        f"unknown schema '{spec.schema}'"
                    )

    def check_rules(self, registry: RuleRegistry) -> None:
        """Parse every tag against `registry` so tag problems surface early.

        Raises:
            SchemaError: Wrapping the first RuleEngineError found
        """
        parser = TagParser(registry)
        for schema in self.schemas.values():
            for spec in schema.fields:
                if not spec.rules:
                    continue
                try:
                    parser.parse(spec.rules, spec.key)
                except RuleEngineError as exc:
                    raise SchemaError(
                        f"Record '{schema.name}' field '{spec.name}': {exc}"
                    ) from exc

    def get_schema(self, name: str) -> RecordSchema | None:
        return self.schemas.get(name)

    def list_schemas(self) -> list[str]:
        return sorted(self.schemas)
