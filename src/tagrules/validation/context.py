"""The Validation context: the per-run accumulator of errors.

A Validation collects every rule failure in evaluation order (`errors`) and
keeps the first failure per field (`errors_by_field`). It is the entry point
for validating records (`valid`, `recursive_valid`, ...) and for applying
individual rules from code (`required`, `range`, `check`, ...).

A Validation is not thread-safe; use one per validation run and `clear()`
it between independent runs.
"""

import json
import re
from collections.abc import Iterable
from typing import Any

from tagrules.validation.parser import is_custom_message
from tagrules.validation.registry import RuleRegistry, default_registry
from tagrules.validation.schema import SchemaResolver
from tagrules.validation.types import CustomErrorMessage, Error, Result
from tagrules.validation.validators import catalog
from tagrules.validation.validators.base import MESSAGE_TEMPLATES, Rule, is_empty
from tagrules.validation.walker import StructWalker


def _compiled(regex: "re.Pattern | str") -> re.Pattern:
    return re.compile(regex) if isinstance(regex, str) else regex


class Validation:
    """Validation context.

    Args:
        registry: Rules available to tags (the default registry if omitted)
        resolver: Schema resolver for records (a default resolver if omitted)

    Example:
        validation = Validation()
        if not validation.valid(user):
            for error in validation.errors:
                print(error.key, error.message)
    """

    def __init__(
        self,
        registry: RuleRegistry | None = None,
        resolver: SchemaResolver | None = None,
    ):
        self.registry = registry if registry is not None else default_registry()
        self.resolver = resolver if resolver is not None else SchemaResolver()
        self.walker = StructWalker(self.registry, self.resolver)
        self.errors: list[Error] = []
        self.errors_by_field: dict[str, Error] = {}

    # -------------------------------------------------------------------------
    # Error state
    # -------------------------------------------------------------------------

    def clear(self) -> None:
        """Drop all recorded errors."""
        self.errors = []
        self.errors_by_field = {}

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def error_map(self) -> dict[str, Error]:
        """First error per field. Later failures on a field don't replace it."""
        return self.errors_by_field

    def error(self, message: str, *args: Any) -> Result:
        """Record a free-form error (list only, no field)."""
        result = Result(ok=False, error=Error()).with_message(message, *args)
        self.errors.append(result.error)
        return result

    def set_error(self, field: str, message: str) -> Error:
        """Record an error for `field` with a literal message.

        A rule key such as "count.Even" is split into field and rule name, so
        custom rules can pass the key they were invoked with.
        """
        key, name = field, ""
        parts = key.split(".")
        if len(parts) == 2:
            field, name = parts
        error = Error(message=message, key=key, name=name, field=field, template=message)
        self._record(error)
        return error

    def _record(self, error: Error) -> None:
        self.errors.append(error)
        if error.field not in self.errors_by_field:
            self.errors_by_field[error.field] = error

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": not self.has_errors(),
            "errors": [e.to_dict() for e in self.errors],
            "errorsByField": {f: e.to_dict() for f, e in self.errors_by_field.items()},
        }

    # -------------------------------------------------------------------------
    # Custom messages
    # -------------------------------------------------------------------------

    @staticmethod
    def is_json(text: str) -> bool:
        """True if `text` is a JSON object."""
        return is_custom_message(text)

    @staticmethod
    def set_custom_error_message(message: str, key: str, field: str) -> str:
        """Encode a custom-message envelope to use as a rule key."""
        return json.dumps(CustomErrorMessage(message, key, field).to_dict())

    @staticmethod
    def get_custom_error_message(text: str) -> tuple[str, str, str]:
        """Decode an envelope into (message, key, field).

        Text that isn't a JSON object comes back as (text, "", "").
        """
        if not is_custom_message(text):
            return text, "", ""
        custom = CustomErrorMessage.from_dict(json.loads(text))
        return custom.message, custom.key, custom.field

    # -------------------------------------------------------------------------
    # Applying rules
    # -------------------------------------------------------------------------

    def apply(self, rule: Rule, value: Any) -> Result:
        """Apply one rule to `value`, recording an Error on failure.

        Empty values satisfy every rule except Required.
        """
        if not isinstance(rule, catalog.Required) and is_empty(value):
            return Result(ok=True)
        if rule.is_satisfied(value):
            return Result(ok=True)

        key = rule.get_key()
        name = key
        field = ""
        message = rule.default_message()

        if is_custom_message(key):
            prefix, key, field = self.get_custom_error_message(key)
            message = f"{prefix} {message}".strip()
            name = key

        parts = key.split(".")
        if len(parts) == 2:
            field, name = parts

        error = Error(
            message=message,
            key=key,
            name=name,
            field=field,
            value=value,
            template=MESSAGE_TEMPLATES.get(name, ""),
            limit_value=rule.get_limit_value(),
        )
        self._record(error)
        return Result(ok=False, error=error)

    def check(self, value: Any, *rules: Rule) -> Result:
        """Apply `rules` in order; return the first failure or the last success."""
        result = Result(ok=True)
        for rule in rules:
            result = self.apply(rule, value)
            if not result.ok:
                return result
        return result

    def required(self, obj: Any, key: str) -> Result:
        return self.apply(catalog.Required(key), obj)

    def min(self, obj: Any, min: int, key: str) -> Result:
        return self.apply(catalog.Min(min, key), obj)

    def max(self, obj: Any, max: int, key: str) -> Result:
        return self.apply(catalog.Max(max, key), obj)

    def range(self, obj: Any, min: int, max: int, key: str) -> Result:
        return self.apply(catalog.Range(min, max, key), obj)

    def min_size(self, obj: Any, min: int, key: str) -> Result:
        return self.apply(catalog.MinSize(min, key), obj)

    def max_size(self, obj: Any, max: int, key: str) -> Result:
        return self.apply(catalog.MaxSize(max, key), obj)

    def length(self, obj: Any, n: int, key: str) -> Result:
        return self.apply(catalog.Length(n, key), obj)

    def alpha(self, obj: Any, key: str) -> Result:
        return self.apply(catalog.Alpha(key), obj)

    def numeric(self, obj: Any, key: str) -> Result:
        return self.apply(catalog.Numeric(key), obj)

    def float(self, obj: Any, key: str) -> Result:
        return self.apply(catalog.Float(key), obj)

    def alpha_numeric(self, obj: Any, key: str) -> Result:
        return self.apply(catalog.AlphaNumeric(key), obj)

    def match(self, obj: Any, regex: "re.Pattern | str", key: str) -> Result:
        return self.apply(catalog.Match(_compiled(regex), key), obj)

    def no_match(self, obj: Any, regex: "re.Pattern | str", key: str) -> Result:
        return self.apply(catalog.NoMatch(_compiled(regex), key), obj)

    def alpha_dash(self, obj: Any, key: str) -> Result:
        return self.apply(catalog.AlphaDash(key), obj)

    def base64(self, obj: Any, key: str) -> Result:
        return self.apply(catalog.Base64(key), obj)

    def is_date(self, obj: Any, format: str, key: str) -> Result:
        return self.apply(catalog.IsDate(format, key), obj)

    def date_before(self, obj: Any, reference: str, format: str, key: str) -> Result:
        return self.apply(catalog.DateBefore(reference, format, key), obj)

    def slice_match(self, obj: Any, haystack: Iterable[Any], key: str) -> Result:
        return self.apply(catalog.SliceMatch(tuple(haystack), key), obj)

    def duplicate(self, obj: Any, monitor: str, key: str) -> Result:
        return self.apply(catalog.Duplicate(monitor, key), obj)

    def incremental(self, obj: Any, field: str, key: str) -> Result:
        return self.apply(catalog.Incremental(field, key), obj)

    def email(self, obj: Any, key: str) -> Result:
        return self.apply(catalog.Email(key), obj)

    def positive_float(self, obj: Any, key: str) -> Result:
        return self.apply(catalog.PositiveFloat(key), obj)

    def phone(self, obj: Any, key: str) -> Result:
        return self.apply(catalog.Phone(key), obj)

    def name(self, obj: Any, key: str) -> Result:
        return self.apply(catalog.PersonName(key), obj)

    # -------------------------------------------------------------------------
    # Records
    # -------------------------------------------------------------------------

    def valid(self, record: Any) -> bool:
        """Validate a record's tagged fields.

        Returns:
            True if no errors have been recorded

        Raises:
            NotAStructError: If `record` isn't a record
            RuleEngineError: On a tag or dispatch problem
        """
        return self.walker.validate(self, record)

    def valid_with_exception(self, record: Any, exceptions: Iterable[str]) -> bool:
        """Like `valid`, skipping rules named in `exceptions` (case-insensitive)."""
        return self.walker.validate(self, record, exceptions)

    def recursive_valid(self, record: Any) -> bool:
        """Validate `record` and, if it passes, its nested records."""
        return self.walker.recursive_validate(self, record)

    def recursive_valid_with_exception(self, record: Any, exceptions: Iterable[str]) -> bool:
        """Like `recursive_valid`, skipping the rules named in `exceptions`.

        Every record or record-list field is descended into, whether or not
        the field itself carries a tag.
        """
        return self.walker.recursive_validate(self, record, exceptions)

    def validate(self, record: Any) -> "Validation":
        """Validate `record` and return self, for chaining."""
        self.valid(record)
        return self
