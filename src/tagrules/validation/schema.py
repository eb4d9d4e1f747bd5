"""Record schemas: what the walker knows about a record's fields.

A RecordSchema is an ordered list of FieldSpecs (name, tag string, naming
overrides and kind). Schemas come from one of:
- an explicit `Record(schema, data)` wrapper around a mapping
- a class attribute `__validation_schema__`
- dataclass field metadata: field(metadata={"valid": "Required", "json": "name"})
- pydantic model fields: Field(json_schema_extra={"valid": "Required"})

Field kinds are declared (or derived from type hints for dataclasses and
pydantic models) so the walker knows which fields hold nested records.
"""

import dataclasses
import logging
import types
import typing
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel

from tagrules.validation.errors import NotAStructError
from tagrules.validation.parser import resolve_field_key

logger = logging.getLogger(__name__)


class FieldKind(Enum):
    """What a field holds, as far as recursion is concerned."""

    VALUE = "value"
    RECORD = "record"
    RECORD_LIST = "list"
    TIME = "time"


@dataclass(frozen=True)
class FieldSpec:
    """Validation metadata for one field.

    Attributes:
        name: Attribute or mapping key holding the value
        rules: Tag string (e.g. "Required;Range(1,140)")
        json_name: JSON field name; default error key
        alias: Error key override
        kind: VALUE, RECORD, RECORD_LIST or TIME
        inline: Promote the nested record's fields into this record's pass
        schema: Schema (or schema name) for nested mapping values
    """

    name: str
    rules: str = ""
    json_name: str | None = None
    alias: str | None = None
    kind: FieldKind = FieldKind.VALUE
    inline: bool = False
    schema: "RecordSchema | str | None" = None

    @property
    def exported(self) -> bool:
        return not self.name.startswith("_")

    @property
    def key(self) -> str:
        return resolve_field_key(self.name, self.json_name, self.alias)


@dataclass(frozen=True)
class RecordSchema:
    """Ordered field list of a record type."""

    name: str
    fields: tuple[FieldSpec, ...] = ()

    def get_field(self, name: str) -> FieldSpec | None:
        for spec in self.fields:
            if spec.name == name:
                return spec
        return None


@dataclass
class Record:
    """A mapping paired with the schema that describes it."""

    schema: RecordSchema
    data: Mapping[str, Any] = field(default_factory=dict)


@runtime_checkable
class SelfValidating(Protocol):
    """Records that add their own checks after field validation passes.

    The walker calls `valid` when the record class defines it as a method and
    no schema field is named `valid`.
    """

    def valid(self, validation: Any) -> None: ...


# =============================================================================
# Type Hint Inspection
# =============================================================================

_TIME_TYPES = (date, datetime, time)


def _strip_optional(annotation: Any) -> Any:
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def _is_record_type(annotation: Any) -> bool:
    if not isinstance(annotation, type):
        return False
    return (
        dataclasses.is_dataclass(annotation)
        or issubclass(annotation, BaseModel)
        or isinstance(getattr(annotation, "__validation_schema__", None), RecordSchema)
    )


def kind_of(annotation: Any) -> FieldKind:
    """Derive a FieldKind from a type annotation."""
    annotation = _strip_optional(annotation)
    if isinstance(annotation, type) and issubclass(annotation, _TIME_TYPES):
        return FieldKind.TIME
    if _is_record_type(annotation):
        return FieldKind.RECORD
    origin = typing.get_origin(annotation)
    if origin in (list, tuple, Sequence):
        args = [a for a in typing.get_args(annotation) if a is not Ellipsis]
        if len(args) == 1 and _is_record_type(_strip_optional(args[0])):
            return FieldKind.RECORD_LIST
    return FieldKind.VALUE


def _type_hints(cls: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError) as exc:
        logger.debug("Could not resolve type hints of %s: %s", cls.__name__, exc)
        return {}


# =============================================================================
# Schema Resolver
# =============================================================================


class SchemaResolver:
    """Finds the schema of a record and reads its field values.

    Args:
        tag_name: Metadata key holding the rule string
        json_tag: Metadata key holding the JSON field name
        alias_tag: Metadata key holding the error-key alias
        schemas: Named schemas that FieldSpec.schema strings refer to
    """

    def __init__(
        self,
        tag_name: str = "valid",
        json_tag: str = "json",
        alias_tag: str = "alias",
        schemas: Mapping[str, RecordSchema] | None = None,
    ):
        self.tag_name = tag_name
        self.json_tag = json_tag
        self.alias_tag = alias_tag
        self._named: dict[str, RecordSchema] = dict(schemas or {})
        self._cache: dict[type, RecordSchema] = {}

    def add_schema(self, schema: RecordSchema) -> None:
        self._named[schema.name] = schema

    def named(self, schema: "RecordSchema | str") -> RecordSchema:
        if isinstance(schema, RecordSchema):
            return schema
        try:
            return self._named[schema]
        except KeyError:
            raise NotAStructError(schema) from None

    def is_record(self, value: Any) -> bool:
        if isinstance(value, Record):
            return True
        return not isinstance(value, type) and _is_record_type(type(value))

    def resolve(self, record: Any) -> RecordSchema:
        """Schema of `record`.

        Raises:
            NotAStructError: If `record` isn't a record
        """
        if isinstance(record, Record):
            return record.schema
        if not self.is_record(record):
            raise NotAStructError(record)

        cls = type(record)
        if cls not in self._cache:
            self._cache[cls] = self._build(cls)
        return self._cache[cls]

    def _build(self, cls: type) -> RecordSchema:
        explicit = getattr(cls, "__validation_schema__", None)
        if isinstance(explicit, RecordSchema):
            return explicit
        if issubclass(cls, BaseModel):
            return self._pydantic_schema(cls)
        return self._dataclass_schema(cls)

    def _dataclass_schema(self, cls: type) -> RecordSchema:
        hints = _type_hints(cls)
        specs = []
        for f in dataclasses.fields(cls):
            metadata = f.metadata
            specs.append(
                FieldSpec(
                    name=f.name,
                    rules=metadata.get(self.tag_name, ""),
                    json_name=metadata.get(self.json_tag),
                    alias=metadata.get(self.alias_tag),
                    kind=kind_of(hints.get(f.name, f.type)),
                    inline=bool(metadata.get("inline", False)),
                )
            )
        logger.debug("Built schema for dataclass %s", cls.__name__)
        return RecordSchema(cls.__name__, tuple(specs))

    def _pydantic_schema(self, cls: type[BaseModel]) -> RecordSchema:
        specs = []
        for name, info in cls.model_fields.items():
            extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
            specs.append(
                FieldSpec(
                    name=name,
                    rules=str(extra.get(self.tag_name, "")),
                    json_name=info.alias,
                    alias=extra.get(self.alias_tag),
                    kind=kind_of(info.annotation),
                    inline=bool(extra.get("inline", False)),
                )
            )
        logger.debug("Built schema for model %s", cls.__name__)
        return RecordSchema(cls.__name__, tuple(specs))

    def value_of(self, record: Any, spec: FieldSpec) -> Any:
        if isinstance(record, Record):
            return record.data.get(spec.name)
        return getattr(record, spec.name, None)

    def wrap(self, spec: FieldSpec, value: Any) -> Any:
        """Pair a nested mapping with its declared schema."""
        if isinstance(value, Mapping) and spec.schema is not None:
            return Record(self.named(spec.schema), value)
        return value

    def fields(self, record: Any) -> Iterator[tuple[FieldSpec, Any]]:
        """Exported (spec, value) pairs of `record`, with inline fields expanded."""
        schema = self.resolve(record)
        for spec in schema.fields:
            if not spec.exported:
                continue
            value = self.value_of(record, spec)
            if spec.inline:
                nested = self.wrap(spec, value)
                if nested is not None:
                    yield from self.fields(nested)
                continue
            yield spec, value
