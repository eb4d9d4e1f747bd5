"""Rule catalog for tagrules.

Rules are small immutable values exposing `is_satisfied`, `default_message`,
`get_key` and `get_limit_value`. They are referenced from tags by name.
"""

from tagrules.validation.validators.base import (
    DEFAULT_MESSAGES,
    MESSAGE_TEMPLATES,
    Rule,
    is_empty,
    reset_default_messages,
    set_default_messages,
)
from tagrules.validation.validators.catalog import (
    CATALOG,
    Alpha,
    AlphaDash,
    AlphaNumeric,
    Base64,
    DateBefore,
    Duplicate,
    Email,
    Float,
    Incremental,
    IsDate,
    Length,
    Match,
    Max,
    MaxSize,
    Min,
    MinSize,
    NoMatch,
    Numeric,
    PersonName,
    Phone,
    PositiveFloat,
    Range,
    Required,
    SliceMatch,
    register_builtin_rules,
)

__all__ = [
    # Base
    "DEFAULT_MESSAGES",
    "MESSAGE_TEMPLATES",
    "Rule",
    "is_empty",
    "reset_default_messages",
    "set_default_messages",
    # Catalog
    "CATALOG",
    "Alpha",
    "AlphaDash",
    "AlphaNumeric",
    "Base64",
    "DateBefore",
    "Duplicate",
    "Email",
    "Float",
    "Incremental",
    "IsDate",
    "Length",
    "Match",
    "Max",
    "MaxSize",
    "Min",
    "MinSize",
    "NoMatch",
    "Numeric",
    "PersonName",
    "Phone",
    "PositiveFloat",
    "Range",
    "Required",
    "SliceMatch",
    # Setup
    "register_builtin_rules",
]
