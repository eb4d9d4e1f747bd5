"""Parser for field tag strings.

A tag is a `;`-separated list of rules attached to a field:

    Required;Range(1, 140);Match(/^\\w+@\\w+$/)

Grammar (informal):

    tag          := (rule ";")* match-clause? (";" rule)* ";"?
    match-clause := "Match(/" regex-body "/)"
    rule         := identifier ("(" arg ("," arg)* ")")?

The Match clause is extracted before splitting on ";" because the regex body
may contain ";" or "/". It ends at the LAST "/)" of the tag, so rules written
after it must not contain "/)".
"""

import json
import logging
import re
from typing import Any

from tagrules.validation.errors import (
    ArityMismatchError,
    InvalidMatchClauseError,
    InvalidSyntaxError,
    ParameterTypeError,
)
from tagrules.validation.registry import RuleRegistry, default_registry
from tagrules.validation.types import ParamKind, RuleInvocation, RuleParameter

logger = logging.getLogger(__name__)

MATCH_OPEN = "Match(/"
MATCH_CLOSE = "/)"

_INTEGER = re.compile(r"^[+-]?\d+$")


def is_custom_message(key: str) -> bool:
    """True if `key` is a JSON object (a custom-message envelope)."""
    try:
        return isinstance(json.loads(key), dict)
    except (TypeError, ValueError):
        return False


def invocation_key(field_key: str, rule_name: str) -> str:
    """Key a rule reports under: "field.Rule", or the envelope untouched."""
    if is_custom_message(field_key):
        return field_key
    return f"{field_key}.{rule_name}"


def resolve_field_key(name: str, json_name: str | None = None, alias: str | None = None) -> str:
    """Error key for a field: alias, else the JSON name, else the field name.

    JSON names keep only the part before the first comma, so modifiers such
    as `omitempty` are dropped.
    """
    if alias and alias.strip():
        return alias.strip()
    if json_name:
        json_key = json_name.strip().split(",", 1)[0].strip()
        if json_key:
            return json_key
    return name


class TagParser:
    """Turns tag strings into RuleInvocations checked against a registry.

    Usage:
        parser = TagParser(registry)
        invocations = parser.parse("Required;Range(1, 140)", "age")
    """

    def __init__(self, registry: RuleRegistry | None = None):
        self.registry = registry if registry is not None else default_registry()

    def parse(self, tag: str, field_key: str) -> list[RuleInvocation]:
        """Parse `tag` into invocations, in textual order.

        Raises:
            InvalidMatchClauseError: Match(/ without a closing /)
            InvalidSyntaxError: Malformed rule segment
            UnknownRuleError: Rule name not registered
            ArityMismatchError: Argument count differs from the rule's arity
            ParameterTypeError: Argument can't be coerced to its declared kind
        """
        tag = tag.strip()
        if not tag:
            return []

        start = tag.find(MATCH_OPEN)
        if start == -1:
            return self._parse_rules(tag, field_key)

        end = tag.rfind(MATCH_CLOSE)
        if end < start + len(MATCH_OPEN):
            raise InvalidMatchClauseError(tag)

        body = tag[start + len(MATCH_OPEN) : end]
        try:
            pattern = re.compile(body)
        except re.error as exc:
            raise ParameterTypeError("Match", ParamKind.REGEX, body, str(exc)) from exc

        match = RuleInvocation("Match", (pattern,), invocation_key(field_key, "Match"))
        before = self._parse_rules(tag[:start], field_key)
        after = self._parse_rules(tag[end + len(MATCH_CLOSE) :], field_key)
        return [*before, match, *after]

    def _parse_rules(self, text: str, field_key: str) -> list[RuleInvocation]:
        invocations = []
        for segment in text.split(";"):
            segment = segment.strip()
            if segment:
                invocations.append(self.parse_rule(segment, field_key))
        return invocations

    def parse_rule(self, segment: str, field_key: str) -> RuleInvocation:
        """Parse one rule segment such as `Range(1, 140)` or `Required`."""
        segment = segment.strip()
        start = segment.find("(")

        # Zero-argument rules omit the parentheses entirely
        if start == -1:
            if not segment.isidentifier():
                raise InvalidSyntaxError(segment)
            arity = self.registry.arity(segment)
            if arity != 0:
                raise ArityMismatchError(segment, arity, 0)
            return RuleInvocation(segment, (), invocation_key(field_key, segment))

        end = segment.rfind(")")
        if end < start:
            raise InvalidSyntaxError(segment, "unclosed rule arguments")
        if segment[end + 1 :].strip():
            raise InvalidSyntaxError(segment, "unexpected text after rule arguments")

        name = segment[:start].strip()
        if not name.isidentifier():
            raise InvalidSyntaxError(segment)

        definition = self.registry.get(name)
        raw_args = segment[start + 1 : end].split(",")
        if len(raw_args) != definition.arity:
            raise ArityMismatchError(name, definition.arity, len(raw_args))

        arguments = tuple(
            coerce_argument(name, parameter, raw.strip())
            for parameter, raw in zip(definition.parameters, raw_args)
        )
        logger.debug("Parsed rule %s%r for '%s'", name, arguments, field_key)
        return RuleInvocation(name, arguments, invocation_key(field_key, name))


def coerce_argument(rule_name: str, parameter: RuleParameter, raw: str) -> Any:
    """Coerce a raw tag argument to the parameter's declared kind."""
    if parameter.kind is ParamKind.INT:
        if not _INTEGER.match(raw):
            raise ParameterTypeError(rule_name, parameter.kind, raw, "not a decimal integer")
        return int(raw)
    if parameter.kind is ParamKind.STRING:
        return raw
    if parameter.kind is ParamKind.REGEX:
        try:
            return re.compile(raw)
        except re.error as exc:
            raise ParameterTypeError(rule_name, parameter.kind, raw, str(exc)) from exc
    raise ParameterTypeError(rule_name, parameter.kind, raw, "kind is not supported in tags")


def parse_tag(tag: str, field_key: str, registry: RuleRegistry | None = None) -> list[RuleInvocation]:
    """Convenience function to parse a tag string.

    Args:
        tag: The tag string
        field_key: Key the field's errors are reported under
        registry: Registry to resolve rules against (default registry if omitted)

    Returns:
        The parsed rule invocations
    """
    return TagParser(registry).parse(tag, field_key)
