"""Rule catalog shipped with tagrules.

Every rule is a pure predicate over a single value plus the parameters it was
configured with:
- Presence: Required
- Integer bounds: Min, Max, Range
- Size: MinSize, MaxSize, Length (codepoints for strings, items for lists)
- Character classes: Alpha, Numeric, AlphaNumeric, AlphaDash, Float
- Patterns: Match, NoMatch, Base64, Email, Phone, PositiveFloat, Name
- Dates: IsDate, DateBefore
- Collections: SliceMatch, Duplicate, Incremental
"""

import re
import string
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, ClassVar

from tagrules.validation.types import ParamKind, RuleParameter
from tagrules.validation.validators.base import (
    Rule,
    field_value,
    is_integer,
    is_number,
    is_sequence,
    is_zero_time,
)

if TYPE_CHECKING:
    from tagrules.validation.registry import RuleRegistry


# =============================================================================
# Fixed Patterns
# =============================================================================

ALPHA_DASH_PATTERN = re.compile(r"[^\w-]", re.ASCII)

BASE64_PATTERN = re.compile(
    r"^(?:[A-Za-z0-9+/]{4})*(?:[A-Za-z0-9+/]{2}==|[A-Za-z0-9+/]{3}=)?$"
)

EMAIL_PATTERN = re.compile(
    r"[\w!#$%&'*+/=?^_`{|}~-]+(?:\.[\w!#$%&'*+/=?^_`{|}~-]+)*"
    r"@(?:\w(?:[\w-]*\w)?\.)+[a-zA-Z0-9](?:[\w-]*\w)?",
    re.ASCII,
)

PHONE_PATTERN = re.compile(r"^(\+?\d[1-9]\s*-?|\d{2}[1-9])?\s*\d([- ]?\d){4,}$")

# Decimal or integer with at least one non-zero digit
POSITIVE_FLOAT_PATTERN = re.compile(r"^(?=.*[1-9])\d*\.?\d+$")

NAME_PATTERN = re.compile(r'^[a-zA-Z ".-]+$')

_ALPHA = frozenset(string.ascii_letters)
_DIGITS = frozenset(string.digits)
_ALPHA_NUMERIC = _ALPHA | _DIGITS


# =============================================================================
# Presence
# =============================================================================


@dataclass(frozen=True)
class Required(Rule):
    """Value must be present: not None, "", zero, an empty list or zero time."""

    key: str = ""

    name = "Required"

    def is_satisfied(self, value: Any) -> bool:
        if value is None:
            return False
        if isinstance(value, bool):
            return True
        if isinstance(value, str):
            return len(value) > 0
        if is_number(value):
            return value != 0
        if is_zero_time(value):
            return False
        if is_sequence(value):
            return len(value) > 0
        return True


# =============================================================================
# Integer Bounds
# =============================================================================


@dataclass(frozen=True)
class Min(Rule):
    min: int
    key: str = ""

    name = "Min"
    parameters = (RuleParameter("min", ParamKind.INT),)

    def is_satisfied(self, value: Any) -> bool:
        return is_integer(value) and value >= self.min

    def message_args(self) -> dict[str, Any]:
        return {"min": self.min}

    def get_limit_value(self) -> Any:
        return self.min


@dataclass(frozen=True)
class Max(Rule):
    max: int
    key: str = ""

    name = "Max"
    parameters = (RuleParameter("max", ParamKind.INT),)

    def is_satisfied(self, value: Any) -> bool:
        return is_integer(value) and value <= self.max

    def message_args(self) -> dict[str, Any]:
        return {"max": self.max}

    def get_limit_value(self) -> Any:
        return self.max


@dataclass(frozen=True)
class Range(Rule):
    """Integer within [min, max], inclusive."""

    min: int
    max: int
    key: str = ""

    name = "Range"
    parameters = (
        RuleParameter("min", ParamKind.INT),
        RuleParameter("max", ParamKind.INT),
    )

    def is_satisfied(self, value: Any) -> bool:
        return Min(self.min).is_satisfied(value) and Max(self.max).is_satisfied(value)

    def message_args(self) -> dict[str, Any]:
        return {"min": self.min, "max": self.max}

    def get_limit_value(self) -> Any:
        return [self.min, self.max]


# =============================================================================
# Size
# =============================================================================


def _size(value: Any) -> int | None:
    """Codepoint count for strings, item count for lists; None otherwise."""
    if isinstance(value, str) or is_sequence(value):
        return len(value)
    return None


@dataclass(frozen=True)
class MinSize(Rule):
    min: int
    key: str = ""

    name = "MinSize"
    parameters = (RuleParameter("min", ParamKind.INT),)

    def is_satisfied(self, value: Any) -> bool:
        size = _size(value)
        return size is not None and size >= self.min

    def message_args(self) -> dict[str, Any]:
        return {"min": self.min}

    def get_limit_value(self) -> Any:
        return self.min


@dataclass(frozen=True)
class MaxSize(Rule):
    max: int
    key: str = ""

    name = "MaxSize"
    parameters = (RuleParameter("max", ParamKind.INT),)

    def is_satisfied(self, value: Any) -> bool:
        size = _size(value)
        return size is not None and size <= self.max

    def message_args(self) -> dict[str, Any]:
        return {"max": self.max}

    def get_limit_value(self) -> Any:
        return self.max


@dataclass(frozen=True)
class Length(Rule):
    n: int
    key: str = ""

    name = "Length"
    parameters = (RuleParameter("n", ParamKind.INT),)

    def is_satisfied(self, value: Any) -> bool:
        return _size(value) == self.n

    def message_args(self) -> dict[str, Any]:
        return {"n": self.n}

    def get_limit_value(self) -> Any:
        return self.n


# =============================================================================
# Character Classes
# =============================================================================


@dataclass(frozen=True)
class Alpha(Rule):
    key: str = ""

    name = "Alpha"

    def is_satisfied(self, value: Any) -> bool:
        return isinstance(value, str) and all(c in _ALPHA for c in value)


@dataclass(frozen=True)
class Numeric(Rule):
    """Digits only, without leading zeros ("0" itself is fine)."""

    key: str = ""

    name = "Numeric"

    def is_satisfied(self, value: Any) -> bool:
        if not isinstance(value, str):
            return False
        if value.startswith("0") and len(value) > 1:
            return False
        return all(c in _DIGITS for c in value)


@dataclass(frozen=True)
class AlphaNumeric(Rule):
    key: str = ""

    name = "AlphaNumeric"

    def is_satisfied(self, value: Any) -> bool:
        return isinstance(value, str) and all(c in _ALPHA_NUMERIC for c in value)


@dataclass(frozen=True)
class AlphaDash(Rule):
    """Letters, digits, dash and underscore."""

    key: str = ""

    name = "AlphaDash"

    def is_satisfied(self, value: Any) -> bool:
        return isinstance(value, str) and ALPHA_DASH_PATTERN.search(value) is None


@dataclass(frozen=True)
class Float(Rule):
    """A string that parses as a decimal or integer number."""

    key: str = ""

    name = "Float"

    def is_satisfied(self, value: Any) -> bool:
        if not isinstance(value, str):
            return False
        # float() tolerates both, a strict decimal literal does not
        if value != value.strip() or "_" in value:
            return False
        try:
            float(value)
        except ValueError:
            return False
        return True


# =============================================================================
# Patterns
# =============================================================================


@dataclass(frozen=True)
class Match(Rule):
    """The string form of the value must contain a match of `regex`."""

    regex: re.Pattern
    key: str = ""

    name = "Match"
    parameters = (RuleParameter("regex", ParamKind.REGEX),)

    def is_satisfied(self, value: Any) -> bool:
        return self.regex.search(str(value)) is not None

    def message_args(self) -> dict[str, Any]:
        return {"pattern": self.regex.pattern}

    def get_limit_value(self) -> Any:
        return self.regex.pattern


@dataclass(frozen=True)
class NoMatch(Rule):
    regex: re.Pattern
    key: str = ""

    name = "NoMatch"
    parameters = (RuleParameter("regex", ParamKind.REGEX),)

    def is_satisfied(self, value: Any) -> bool:
        return not Match(self.regex).is_satisfied(value)

    def message_args(self) -> dict[str, Any]:
        return {"pattern": self.regex.pattern}

    def get_limit_value(self) -> Any:
        return self.regex.pattern


class PatternRule(Rule):
    """Match against a fixed pattern; no limit value is reported."""

    pattern: ClassVar[re.Pattern]

    def is_satisfied(self, value: Any) -> bool:
        return Match(self.pattern).is_satisfied(value)


@dataclass(frozen=True)
class Base64(PatternRule):
    key: str = ""

    name = "Base64"
    pattern = BASE64_PATTERN


@dataclass(frozen=True)
class Email(PatternRule):
    key: str = ""

    name = "Email"
    pattern = EMAIL_PATTERN


@dataclass(frozen=True)
class Phone(PatternRule):
    key: str = ""

    name = "Phone"
    pattern = PHONE_PATTERN


@dataclass(frozen=True)
class PositiveFloat(PatternRule):
    key: str = ""

    name = "PositiveFloat"
    pattern = POSITIVE_FLOAT_PATTERN


@dataclass(frozen=True)
class PersonName(PatternRule):
    """Letters, spaces, quotes, dots and dashes. Registered as "Name"."""

    key: str = ""

    name = "Name"
    pattern = NAME_PATTERN


# =============================================================================
# Dates
# =============================================================================


def _parse_date(value: str, fmt: str) -> datetime | None:
    try:
        return datetime.strptime(value, fmt)
    except ValueError:
        return None


@dataclass(frozen=True)
class IsDate(Rule):
    """String parses with the strptime `format`."""

    format: str
    key: str = ""

    name = "IsDate"
    parameters = (RuleParameter("format", ParamKind.STRING),)

    def is_satisfied(self, value: Any) -> bool:
        return isinstance(value, str) and _parse_date(value, self.format) is not None

    def message_args(self) -> dict[str, Any]:
        return {"format": self.format}


@dataclass(frozen=True)
class DateBefore(Rule):
    """String date that is not before `reference` (both parsed with `format`)."""

    reference: str
    format: str
    key: str = ""

    name = "DateBefore"
    parameters = (
        RuleParameter("reference", ParamKind.STRING),
        RuleParameter("format", ParamKind.STRING),
    )

    def is_satisfied(self, value: Any) -> bool:
        if not isinstance(value, str):
            return False
        reference = _parse_date(self.reference, self.format)
        parsed = _parse_date(value, self.format)
        if reference is None or parsed is None:
            return False
        return not parsed < reference

    def message_args(self) -> dict[str, Any]:
        return {"reference": self.reference}


# =============================================================================
# Collections
# =============================================================================


@dataclass(frozen=True)
class SliceMatch(Rule):
    """Value equals one of the haystack items."""

    haystack: tuple[Any, ...] = field(default_factory=tuple)
    key: str = ""

    name = "SliceMatch"
    parameters = (RuleParameter("haystack", ParamKind.ANY),)

    def is_satisfied(self, value: Any) -> bool:
        if not is_sequence(self.haystack):
            return False
        return any(value == item for item in self.haystack)

    def message_args(self) -> dict[str, Any]:
        items = self.haystack if is_sequence(self.haystack) else ()
        return {"haystack": " | ".join(str(item) for item in items)}

    def get_limit_value(self) -> Any:
        return list(self.haystack) if is_sequence(self.haystack) else None


@dataclass(frozen=True)
class Duplicate(Rule):
    """No two items share a non-empty value on the `monitor` field."""

    monitor: str
    key: str = ""

    name = "Duplicate"
    parameters = (RuleParameter("monitor", ParamKind.STRING),)

    def is_satisfied(self, value: Any) -> bool:
        if not is_sequence(value):
            return False
        seen: list[Any] = []
        for item in value:
            found, monitored = field_value(item, self.monitor)
            if not found:
                continue
            if isinstance(monitored, str) and monitored == "":
                continue
            if monitored in seen:
                return False
            seen.append(monitored)
        return True


def _sequence_number(item: Any, name: str) -> int:
    _, raw = field_value(item, name)
    if is_integer(raw):
        return raw
    if isinstance(raw, str) and raw.strip().isdigit():
        return int(raw)
    return 0


@dataclass(frozen=True)
class Incremental(Rule):
    """The `field` values form the sequence 1, 2, 3, ... in any order.

    The check runs on a sorted copy; the caller's list is left untouched.
    """

    field: str
    key: str = ""

    name = "Incremental"
    parameters = (RuleParameter("field", ParamKind.STRING),)

    def is_satisfied(self, value: Any) -> bool:
        if not is_sequence(value):
            return False
        numbers = sorted(_sequence_number(item, self.field) for item in value)
        return numbers == list(range(1, len(numbers) + 1))


# =============================================================================
# Registration
# =============================================================================

CATALOG: tuple[type[Rule], ...] = (
    Required,
    Min,
    Max,
    Range,
    MinSize,
    MaxSize,
    Length,
    Alpha,
    Numeric,
    Float,
    AlphaNumeric,
    Match,
    NoMatch,
    AlphaDash,
    Base64,
    IsDate,
    DateBefore,
    SliceMatch,
    Duplicate,
    Incremental,
    Email,
    PositiveFloat,
    Phone,
    PersonName,
)


def register_builtin_rules(registry: "RuleRegistry") -> None:
    """Register every catalog rule that may be referenced from tags.

    Reserved names (NoMatch) are skipped; they stay reachable through
    Validation.check and the Validation helper methods.
    """
    from tagrules.validation.registry import RESERVED_NAMES

    for rule_class in CATALOG:
        if rule_class.name in RESERVED_NAMES:
            continue
        registry.register(rule_class.name, rule_class)
