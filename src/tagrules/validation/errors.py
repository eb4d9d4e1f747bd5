"""Structural errors raised by the validation engine.

These signal configuration bugs (bad tags, unknown rules, wrong inputs) and
abort the current validation call. Rule failures are never raised; they are
recorded as `Error` values on the Validation context.
"""

from typing import Any


class RuleEngineError(Exception):
    """Base class for all structural validation errors."""


class UnknownRuleError(RuleEngineError):
    """A rule name is not registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Rule '{name}' is not registered")


class ArityMismatchError(RuleEngineError):
    """A rule was given the wrong number of parameters."""

    def __init__(self, name: str, expected: int, actual: int, reason: str = ""):
        self.name = name
        self.expected = expected
        self.actual = actual
        detail = f" ({reason})" if reason else ""
        super().__init__(
            f"Rule '{name}' requires {expected} parameter(s), got {actual}{detail}"
        )


class ParameterTypeError(RuleEngineError):
    """A tag argument could not be coerced to the declared parameter kind."""

    def __init__(self, name: str, kind: Any, raw: str, reason: str = ""):
        self.name = name
        self.kind = kind
        self.raw = raw
        detail = f": {reason}" if reason else ""
        super().__init__(
            f"Cannot coerce '{raw}' to {kind} for rule '{name}'{detail}"
        )


class InvalidMatchClauseError(RuleEngineError):
    """A Match(/.../) clause has no terminating '/)'."""

    def __init__(self, tag: str):
        self.tag = tag
        super().__init__(f"Invalid Match clause in tag '{tag}'")


class InvalidSyntaxError(RuleEngineError):
    """A rule segment is malformed (e.g. unbalanced parentheses)."""

    def __init__(self, segment: str, reason: str = "invalid rule syntax"):
        self.segment = segment
        super().__init__(f"{reason}: '{segment}'")


class NameReservedError(RuleEngineError):
    """A custom rule tried to use a reserved name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Invalid rule name '{name}': the name is reserved")


class NotAStructError(RuleEngineError):
    """The value handed to the walker is not a record."""

    def __init__(self, value: Any):
        self.value = value
        super().__init__(
            f"{type(value).__name__} value {value!r} must be a record or a reference to one"
        )


class InvocationError(RuleEngineError):
    """A rule implementation failed internally while being invoked."""

    def __init__(self, name: str, cause: BaseException):
        self.name = name
        self.cause = cause
        super().__init__(f"Rule '{name}' failed: {cause}")
