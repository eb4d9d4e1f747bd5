"""tagrules validation engine.

Rules are attached to record fields as compact tag strings and evaluated by
four cooperating layers:
- Rule catalog: the predicates (Required, Range, Match, ...)
- RuleRegistry: rule name -> definition, extensible with custom rules
- TagParser: tag string -> ordered rule invocations with coerced arguments
- StructWalker: applies invocations per field and recurses into records

Usage:
    from tagrules.validation import Validation, register_rule

    validation = Validation()
    if not validation.valid(user):
        print(validation.error_map())
"""

from tagrules.validation.context import Validation
from tagrules.validation.errors import (
    ArityMismatchError,
    InvalidMatchClauseError,
    InvalidSyntaxError,
    InvocationError,
    NameReservedError,
    NotAStructError,
    ParameterTypeError,
    RuleEngineError,
    UnknownRuleError,
)
from tagrules.validation.parser import TagParser, parse_tag
from tagrules.validation.registry import (
    RESERVED_NAMES,
    RuleDefinition,
    RuleRegistry,
    default_registry,
    register_rule,
)
from tagrules.validation.schema import (
    FieldKind,
    FieldSpec,
    Record,
    RecordSchema,
    SchemaResolver,
    SelfValidating,
)
from tagrules.validation.types import (
    CustomErrorMessage,
    Error,
    ParamKind,
    Result,
    RuleInvocation,
    RuleParameter,
)
from tagrules.validation.validators import (
    Rule,
    register_builtin_rules,
    set_default_messages,
)
from tagrules.validation.walker import StructWalker

__all__ = [
    # Context
    "Validation",
    # Types
    "CustomErrorMessage",
    "Error",
    "ParamKind",
    "Result",
    "RuleInvocation",
    "RuleParameter",
    # Errors
    "ArityMismatchError",
    "InvalidMatchClauseError",
    "InvalidSyntaxError",
    "InvocationError",
    "NameReservedError",
    "NotAStructError",
    "ParameterTypeError",
    "RuleEngineError",
    "UnknownRuleError",
    # Registry
    "RESERVED_NAMES",
    "RuleDefinition",
    "RuleRegistry",
    "default_registry",
    "register_rule",
    # Parsing
    "TagParser",
    "parse_tag",
    # Schemas
    "FieldKind",
    "FieldSpec",
    "Record",
    "RecordSchema",
    "SchemaResolver",
    "SelfValidating",
    # Walking
    "StructWalker",
    # Catalog
    "Rule",
    "register_builtin_rules",
    "set_default_messages",
]
