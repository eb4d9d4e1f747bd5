"""Struct walker: applies tag rules field by field and descends into records."""

import logging
from collections.abc import Iterable
from datetime import date, datetime, time
from typing import TYPE_CHECKING, Any

from tagrules.validation.parser import TagParser
from tagrules.validation.registry import RuleRegistry
from tagrules.validation.schema import FieldKind, RecordSchema, SchemaResolver
from tagrules.validation.validators.base import is_empty, is_sequence

if TYPE_CHECKING:
    from tagrules.validation.context import Validation

logger = logging.getLogger(__name__)


def _self_validates(record: Any, schema: RecordSchema) -> bool:
    """True if the record class defines a callable `valid` that isn't a field."""
    if schema.get_field("valid") is not None:
        return False
    return callable(getattr(type(record), "valid", None))


class StructWalker:
    """Walks a record's fields and feeds each tag rule to the registry.

    Structural errors (bad tags, unknown rules, non-records) propagate and
    abort the walk. Rule failures are recorded on the Validation and the walk
    continues.
    """

    def __init__(
        self,
        registry: RuleRegistry,
        resolver: SchemaResolver,
        parser: TagParser | None = None,
    ):
        self.registry = registry
        self.resolver = resolver
        self.parser = parser if parser is not None else TagParser(registry)

    def validate(
        self,
        validation: "Validation",
        record: Any,
        exceptions: Iterable[str] = (),
    ) -> bool:
        """Validate the declared fields of `record`.

        Rules whose name matches an entry of `exceptions` (case-insensitive)
        are skipped. When nothing failed and the record implements `valid`,
        it is called once with the Validation.

        Raises:
            NotAStructError: If `record` isn't a record
            RuleEngineError: On any tag or dispatch problem
        """
        skipped = {name.lower() for name in exceptions}
        schema = self.resolver.resolve(record)
        logger.debug("Validating %s", schema.name)

        for spec, value in self.resolver.fields(record):
            if not spec.rules:
                continue
            empty = is_empty(value)
            for invocation in self.parser.parse(spec.rules, spec.key):
                if invocation.name.lower() in skipped:
                    continue
                # Empty values satisfy every rule but Required
                if empty and invocation.name != "Required":
                    continue
                self.registry.invoke(invocation.name, validation, value, *invocation.params)

        if not validation.has_errors() and _self_validates(record, schema):
            record.valid(validation)

        return not validation.has_errors()

    def recursive_validate(
        self,
        validation: "Validation",
        record: Any,
        exceptions: Iterable[str] = (),
    ) -> bool:
        """Validate `record`, then its nested records if it passed.

        Record fields recurse fully; items of record lists are validated one
        level deep. Time values are never descended into.
        """
        exceptions = tuple(exceptions)
        if not self.validate(validation, record, exceptions):
            return False

        for spec, value in self.resolver.fields(record):
            if value is None or spec.kind is FieldKind.TIME:
                continue
            if isinstance(value, (date, datetime, time)):
                continue

            if spec.kind is FieldKind.RECORD:
                self.recursive_validate(validation, self.resolver.wrap(spec, value), exceptions)
            elif spec.kind is FieldKind.RECORD_LIST and is_sequence(value):
                for item in value:
                    if item is not None:
                        self.validate(validation, self.resolver.wrap(spec, item), exceptions)

        return not validation.has_errors()
