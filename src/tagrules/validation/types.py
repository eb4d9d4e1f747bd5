"""Core types for the tagrules validation engine.

This module defines the values that flow between the engine's layers:
- RuleInvocation: a parsed rule from a field's tag string
- Error / Result: the outcome of applying a rule to a value
- CustomErrorMessage: the JSON envelope a key may carry to override messages
- ParamKind: the primitive kinds a rule parameter can be coerced to
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ParamKind(Enum):
    """Primitive kind of a rule parameter.

    Only INT, STRING and REGEX can be coerced from a tag string. ANY marks a
    parameter that must be supplied from code (e.g. a haystack list).
    """

    INT = "int"
    STRING = "string"
    REGEX = "regex"
    ANY = "any"


@dataclass(frozen=True)
class RuleParameter:
    """Definition of a rule-specific parameter.

    Attributes:
        name: Parameter name (documentation only)
        kind: Primitive kind tag arguments are coerced to
    """

    name: str
    kind: ParamKind = ParamKind.STRING

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "kind": self.kind.value}


@dataclass(frozen=True)
class RuleInvocation:
    """A single rule call produced by the tag parser.

    Attributes:
        name: Registered rule name (e.g. "Range")
        arguments: Coerced rule-specific arguments, in declaration order
        field_key: Key passed as the trailing parameter (e.g. "age.Range")
    """

    name: str
    arguments: tuple[Any, ...] = ()
    field_key: str = ""

    @property
    def params(self) -> tuple[Any, ...]:
        """Arguments followed by the key, ready for RuleRegistry.invoke."""
        return (*self.arguments, self.field_key)


@dataclass
class Error:
    """A single validation failure.

    Attributes:
        message: Human-readable message
        key: Raw key the rule was invoked with (may be "field.Rule")
        name: Rule/name segment of the key
        field: Field segment of the key ("" when the key has no field part)
        value: The value that failed validation
        template: Message template registered for `name`
        limit_value: Machine-readable limit of the rule (e.g. [1, 140] for Range)
    """

    message: str = ""
    key: str = ""
    name: str = ""
    field: str = ""
    value: Any = None
    template: str = ""
    limit_value: Any = None

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "key": self.key,
            "name": self.name,
            "field": self.field,
            "value": _jsonable(self.value),
            "template": self.template,
            "limitValue": _jsonable(self.limit_value),
        }


@dataclass
class Result:
    """Returned from every rule application.

    `ok` tells whether the rule was satisfied; `error` is set when it was not.
    """

    ok: bool = True
    error: Error | None = None

    def with_key(self, key: str) -> "Result":
        """Override the error key (no-op on success)."""
        if self.error is not None:
            self.error.key = key
        return self

    def with_message(self, message: str, *args: Any) -> "Result":
        """Override the error message, %-formatting it when args are given."""
        if self.error is not None:
            self.error.message = message % args if args else message
        return self

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "error": self.error.to_dict() if self.error else None,
        }


@dataclass
class CustomErrorMessage:
    """JSON envelope that a rule key may carry to customize the error.

    Serialized as {"errorMessage": ..., "errorKey": ..., "errorField": ...}.
    """

    message: str = ""
    key: str = ""
    field: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "errorMessage": self.message,
            "errorKey": self.key,
            "errorField": self.field,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CustomErrorMessage":
        return cls(
            message=str(data.get("errorMessage", "")),
            key=str(data.get("errorKey", "")),
            field=str(data.get("errorField", "")),
        )


def _jsonable(value: Any) -> Any:
    """Best-effort conversion of error payload values for JSON output."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    pattern = getattr(value, "pattern", None)
    if isinstance(pattern, str):
        return pattern
    return str(value)
