"""Rule registry for tagrules.

Maps a rule name to a RuleDefinition: the rule's parameter kinds (used by the
tag parser to check arity and coerce arguments) and a handler that applies
the rule to a value.

Two kinds of implementations can be registered:
- Rule subclasses (the catalog): parameters come from the class and the
  handler builds the rule and runs it through Validation.apply
- plain functions `fn(validation, value, *params, key)`: parameter kinds are
  inferred from annotations and the function records its own errors

Registries are ordinary objects. `default_registry()` returns a process-wide
registry preloaded with the catalog for callers that don't manage their own.
"""

import inspect
import logging
import re
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from tagrules.validation.errors import (
    ArityMismatchError,
    InvocationError,
    NameReservedError,
    RuleEngineError,
    UnknownRuleError,
)
from tagrules.validation.types import ParamKind, RuleParameter
from tagrules.validation.validators.base import Rule

if TYPE_CHECKING:
    from tagrules.validation.context import Validation

logger = logging.getLogger(__name__)

# Names that collide with the Validation API and can't be registered
RESERVED_NAMES = frozenset(
    {"Clear", "HasErrors", "ErrorMap", "Error", "apply", "Check", "Valid", "NoMatch"}
)

# Handler signature: (validation, value, *params, key) -> Any
RuleHandler = Callable[..., Any]

_ANNOTATION_KINDS: dict[Any, ParamKind] = {
    int: ParamKind.INT,
    str: ParamKind.STRING,
    re.Pattern: ParamKind.REGEX,
    inspect.Parameter.empty: ParamKind.STRING,
    # Unresolved string annotations
    "int": ParamKind.INT,
    "str": ParamKind.STRING,
    "re.Pattern": ParamKind.REGEX,
    "Pattern": ParamKind.REGEX,
}


@dataclass(frozen=True)
class RuleDefinition:
    """A registered rule.

    Attributes:
        name: Rule name as used in tags
        parameters: Rule-specific parameters (excluding validation, value and key)
        handler: Callable applying the rule
        description: Human-readable description
        rule_class: The Rule subclass for catalog-style rules, else None
    """

    name: str
    parameters: tuple[RuleParameter, ...]
    handler: RuleHandler
    description: str = ""
    rule_class: type[Rule] | None = field(default=None, compare=False)

    @property
    def arity(self) -> int:
        return len(self.parameters)

    def to_dict(self) -> dict[str, Any]:
        """Export for documentation and the CLI."""
        return {
            "name": self.name,
            "arity": self.arity,
            "parameters": [p.to_dict() for p in self.parameters],
            "description": self.description,
            "custom": self.rule_class is None,
        }


def _rule_class_handler(rule_class: type[Rule]) -> RuleHandler:
    def handler(validation: "Validation", value: Any, *params: Any) -> Any:
        return validation.apply(rule_class(*params), value)

    return handler


def _infer_parameters(fn: Callable[..., Any]) -> tuple[RuleParameter, ...]:
    """Parameter kinds of `fn(validation, value, *params, key)` from annotations."""
    try:
        signature = inspect.signature(fn, eval_str=True)
    except (NameError, TypeError, ValueError):
        signature = inspect.signature(fn)

    positional = [
        p
        for p in signature.parameters.values()
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)
    ]
    if len(positional) < 3:
        raise TypeError(
            f"Rule function {fn!r} must accept (validation, value, ..., key)"
        )
    return tuple(
        RuleParameter(p.name, _ANNOTATION_KINDS.get(p.annotation, ParamKind.ANY))
        for p in positional[2:-1]
    )


class RuleRegistry:
    """Registry of rules available to tags.

    Registration replaces any earlier rule of the same name, which is how
    custom rules shadow catalog rules. All reads and writes go through one
    lock; handlers run outside of it.

    Example:
        registry = RuleRegistry.with_builtins()

        def even(validation, value, key):
            if value % 2:
                validation.set_error(key, "must be even")

        registry.register("Even", even)
    """

    def __init__(self) -> None:
        self._rules: dict[str, RuleDefinition] = {}
        self._lock = threading.Lock()

    @classmethod
    def with_builtins(cls) -> "RuleRegistry":
        """Create a registry preloaded with the rule catalog."""
        from tagrules.validation.validators.catalog import register_builtin_rules

        registry = cls()
        register_builtin_rules(registry)
        return registry

    def register(
        self,
        name: str,
        implementation: type[Rule] | RuleHandler,
        *,
        parameters: Sequence[RuleParameter | ParamKind] | None = None,
        description: str = "",
    ) -> RuleDefinition:
        """Register (or replace) a rule.

        Args:
            name: Rule name as referenced from tags
            implementation: A Rule subclass or a function
                `fn(validation, value, *params, key)`
            parameters: Explicit parameter kinds; inferred when omitted
            description: Human-readable description

        Returns:
            The stored RuleDefinition

        Raises:
            NameReservedError: If `name` is reserved
        """
        if name in RESERVED_NAMES:
            raise NameReservedError(name)

        rule_class: type[Rule] | None = None
        if isinstance(implementation, type) and issubclass(implementation, Rule):
            rule_class = implementation
            handler = _rule_class_handler(implementation)
            declared: Sequence[RuleParameter | ParamKind] = implementation.parameters
            description = description or inspect.getdoc(implementation) or ""
        elif callable(implementation):
            handler = implementation
            declared = (
                parameters if parameters is not None else _infer_parameters(implementation)
            )
        else:
            raise TypeError(f"Rule '{name}' implementation must be callable")

        definition = RuleDefinition(
            name=name,
            parameters=tuple(
                p if isinstance(p, RuleParameter) else RuleParameter(f"arg{i}", p)
                for i, p in enumerate(declared)
            ),
            handler=handler,
            description=description,
            rule_class=rule_class,
        )

        with self._lock:
            if name in self._rules:
                logger.warning("Rule '%s' is being replaced", name)
            self._rules[name] = definition
        logger.debug("Registered rule '%s' (arity %d)", name, definition.arity)
        return definition

    def get(self, name: str) -> RuleDefinition:
        """Get a rule definition by name.

        Raises:
            UnknownRuleError: If the rule is not registered
        """
        with self._lock:
            definition = self._rules.get(name)
        if definition is None:
            raise UnknownRuleError(name)
        return definition

    def arity(self, name: str) -> int:
        """Number of rule-specific parameters (validation, value and key excluded)."""
        return self.get(name).arity

    def invoke(self, name: str, validation: "Validation", value: Any, *params: Any) -> Any:
        """Apply rule `name` to `value`.

        `params` are the rule arguments followed by the key.

        Raises:
            UnknownRuleError: If the rule is not registered
            ArityMismatchError: If the key is missing or the argument count
                differs from the arity
            InvocationError: If the rule implementation raised
        """
        definition = self.get(name)
        if not params:
            raise ArityMismatchError(name, definition.arity, 0, "missing key")
        if len(params) - 1 != definition.arity:
            raise ArityMismatchError(name, definition.arity, len(params) - 1)
        try:
            return definition.handler(validation, value, *params)
        except RuleEngineError:
            raise
        except Exception as exc:
            raise InvocationError(name, exc) from exc

    def is_registered(self, name: str) -> bool:
        with self._lock:
            return name in self._rules

    def list_registered(self) -> list[str]:
        with self._lock:
            return sorted(self._rules)

    def list_all(self) -> list[RuleDefinition]:
        with self._lock:
            return [self._rules[name] for name in sorted(self._rules)]

    def export_documentation(self) -> dict[str, Any]:
        """Export all definitions for documentation or the CLI."""
        definitions = self.list_all()
        return {
            "rules": {d.name: d.to_dict() for d in definitions},
            "custom": [d.name for d in definitions if d.rule_class is None],
        }

    def clear(self) -> None:
        """Remove all registrations. Primarily for testing."""
        with self._lock:
            self._rules.clear()


_default_registry: RuleRegistry | None = None
_default_lock = threading.Lock()


def default_registry() -> RuleRegistry:
    """The shared registry, created with the catalog on first use."""
    global _default_registry
    with _default_lock:
        if _default_registry is None:
            _default_registry = RuleRegistry.with_builtins()
        return _default_registry


def register_rule(
    name: str,
    implementation: type[Rule] | RuleHandler,
    *,
    registry: RuleRegistry | None = None,
    parameters: Sequence[RuleParameter | ParamKind] | None = None,
    description: str = "",
) -> RuleDefinition:
    """Register a custom rule on `registry` (the default registry if omitted)."""
    target = registry if registry is not None else default_registry()
    return target.register(
        name, implementation, parameters=parameters, description=description
    )
