"""Rule base class, message templates and value helpers shared by the catalog."""

from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from typing import Any, ClassVar

from tagrules.validation.types import RuleParameter


# =============================================================================
# Message Templates
# =============================================================================

# Placeholders are named after the rule's limit fields.
DEFAULT_MESSAGES: dict[str, str] = {
    "Required": "is required",
    "Min": "cannot be less than {min}",
    "Max": "must be less than {max}",
    "Range": "range is between {min} to {max}",
    "MinSize": "minimum size is {min}",
    "MaxSize": "maximum size is {max}",
    "Length": "required length is {n}",
    "Alpha": "must be valid alpha characters",
    "Numeric": "must be valid numeric characters",
    "AlphaNumeric": "must be valid alpha or numeric characters",
    "Match": "must match {pattern}",
    "NoMatch": "must not match {pattern}",
    "AlphaDash": "must be valid alpha or numeric or dash(-_) characters",
    "Base64": "must be valid base64 characters",
    "IsDate": "must be valid date format. eg: '{format}'",
    "DateBefore": "must be set after or equal to {reference}",
    "SliceMatch": "only valid for ({haystack})",
    "Float": "must be valid decimal/integer value",
    "Duplicate": "duplicate value detected",
    "Incremental": "must be in incremental value, start from 1",
    "Phone": "must be valid phone number",
    "Email": "must be valid email address",
    "PositiveFloat": "must be positive decimal number (> 0.00)",
    "Name": "must be valid name.",
}

MESSAGE_TEMPLATES: dict[str, str] = dict(DEFAULT_MESSAGES)


def set_default_messages(messages: Mapping[str, str]) -> None:
    """Override message templates by rule name."""
    for name, template in messages.items():
        MESSAGE_TEMPLATES[name] = template


def reset_default_messages() -> None:
    """Restore the shipped templates. Primarily for testing."""
    MESSAGE_TEMPLATES.clear()
    MESSAGE_TEMPLATES.update(DEFAULT_MESSAGES)


def format_message(name: str, **limits: Any) -> str:
    return MESSAGE_TEMPLATES.get(name, "").format(**limits)


# =============================================================================
# Value Helpers
# =============================================================================


def is_number(value: Any) -> bool:
    """True for int/float/Decimal values; bools are not numbers here."""
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def is_sequence(value: Any) -> bool:
    """Lists and tuples play the role of slices."""
    return isinstance(value, (list, tuple))


def is_zero_time(value: Any) -> bool:
    if isinstance(value, datetime):
        return value.replace(tzinfo=None) == datetime.min
    if isinstance(value, date):
        return value == date.min
    return False


def is_empty(value: Any) -> bool:
    """Empty-check policy used to skip every rule except Required."""
    if value is None:
        return True
    if isinstance(value, bool):
        return False
    if isinstance(value, str):
        return value.strip() == ""
    if is_number(value):
        return value == 0
    if isinstance(value, (date, datetime)):
        return is_zero_time(value)
    if is_sequence(value):
        return len(value) == 0
    return False


def field_value(item: Any, name: str) -> tuple[bool, Any]:
    """Read `name` from a mapping or an object; returns (found, value)."""
    if isinstance(item, Mapping):
        return name in item, item.get(name)
    if hasattr(item, name):
        return True, getattr(item, name)
    return False, None


# =============================================================================
# Rule Base
# =============================================================================


class Rule:
    """Base class of every catalog rule.

    Subclasses are frozen dataclasses holding only their configured parameters
    and the key they report errors under. `name` is the registry name and
    `parameters` lists the rule-specific parameters in constructor order (the
    key always comes last and is not listed).
    """

    name: ClassVar[str] = ""
    parameters: ClassVar[tuple[RuleParameter, ...]] = ()

    key: str

    def is_satisfied(self, value: Any) -> bool:
        raise NotImplementedError("Subclasses must implement is_satisfied()")

    def message_args(self) -> dict[str, Any]:
        return {}

    def default_message(self) -> str:
        return format_message(self.name, **self.message_args())

    def get_key(self) -> str:
        return self.key

    def get_limit_value(self) -> Any:
        return None
