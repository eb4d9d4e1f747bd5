"""Tests for the tag parser."""

import re

import pytest

from tagrules.validation import (
    ArityMismatchError,
    InvalidMatchClauseError,
    InvalidSyntaxError,
    ParameterTypeError,
    RuleRegistry,
    TagParser,
    UnknownRuleError,
    Validation,
    parse_tag,
)
from tagrules.validation.parser import invocation_key, is_custom_message, resolve_field_key

EMAIL_LIKE_TAG = r"Required;Match(/^(test)?\w*@(/test/);com$/)"


@pytest.fixture
def parser():
    return TagParser(RuleRegistry.with_builtins())


def names(invocations):
    return [i.name for i in invocations]


# =============================================================================
# Plain Rules
# =============================================================================


class TestParseRules:
    def test_rules_in_order(self, parser):
        invocations = parser.parse("Required;Range(1,140)", "age")

        assert names(invocations) == ["Required", "Range"]
        assert invocations[0].arguments == ()
        assert invocations[1].arguments == (1, 140)
        assert invocations[1].field_key == "age.Range"
        assert invocations[1].params == (1, 140, "age.Range")

    def test_whitespace_tolerated(self, parser):
        invocations = parser.parse(" Required ; Range( 1 , 140 ) ;", "age")
        assert names(invocations) == ["Required", "Range"]
        assert invocations[1].arguments == (1, 140)

    def test_empty_tag(self, parser):
        assert parser.parse("", "age") == []
        assert parser.parse("  ", "age") == []

    def test_signed_integers(self, parser):
        invocation = parser.parse("Range(-10,+10)", "delta")[0]
        assert invocation.arguments == (-10, 10)

    def test_string_arguments(self, parser):
        invocation = parser.parse("DateBefore(2024-01-01, %Y-%m-%d)", "start")[0]
        assert invocation.arguments == ("2024-01-01", "%Y-%m-%d")

    def test_parse_tag_uses_default_registry(self):
        assert names(parse_tag("Required;Email", "email")) == ["Required", "Email"]


# =============================================================================
# Match Clause
# =============================================================================


class TestMatchClause:
    def test_body_may_contain_separators(self, parser):
        invocations = parser.parse(EMAIL_LIKE_TAG, "name")

        assert names(invocations) == ["Required", "Match"]
        pattern = invocations[1].arguments[0]
        assert isinstance(pattern, re.Pattern)
        assert pattern.pattern == r"^(test)?\w*@(/test/);com$"
        assert invocations[1].field_key == "name.Match"

    def test_textual_order_kept(self, parser):
        invocations = parser.parse("Required;Match(/^a/);MaxSize(5)", "code")
        assert names(invocations) == ["Required", "Match", "MaxSize"]

    def test_match_first(self, parser):
        invocations = parser.parse("Match(/^a/);Required", "code")
        assert names(invocations) == ["Match", "Required"]

    @pytest.mark.parametrize("tag", ["Match(/abc", "Required/);Match(/abc", "Match(/)"])
    def test_unterminated(self, parser, tag):
        with pytest.raises(InvalidMatchClauseError):
            parser.parse(tag, "code")

    def test_invalid_regex(self, parser):
        with pytest.raises(ParameterTypeError):
            parser.parse("Match(/(/)", "code")


# =============================================================================
# Failures
# =============================================================================


class TestParseErrors:
    def test_unknown_rule(self, parser):
        with pytest.raises(UnknownRuleError):
            parser.parse("Required;Nope", "age")
        with pytest.raises(UnknownRuleError):
            parser.parse("Nope(1)", "age")

    def test_arity_mismatch(self, parser):
        with pytest.raises(ArityMismatchError) as exc_info:
            parser.parse("Range(1)", "age")
        assert exc_info.value.expected == 2
        assert exc_info.value.actual == 1

    def test_missing_arguments(self, parser):
        with pytest.raises(ArityMismatchError):
            parser.parse("Range", "age")

    def test_zero_argument_rule_with_parentheses(self, parser):
        with pytest.raises(ArityMismatchError):
            parser.parse("Required()", "age")

    @pytest.mark.parametrize("tag", ["Range(1,140", "Range(1,140)x", "Req uired", "9Lives(1)"])
    def test_invalid_syntax(self, parser, tag):
        with pytest.raises(InvalidSyntaxError):
            parser.parse(tag, "age")

    @pytest.mark.parametrize("tag", ["Range(a,140)", "Min(1.5)", "SliceMatch(a)"])
    def test_parameter_type(self, parser, tag):
        with pytest.raises(ParameterTypeError):
            parser.parse(tag, "age")

    def test_empty_registry(self):
        with pytest.raises(UnknownRuleError):
            TagParser(RuleRegistry()).parse("Required", "age")

    def test_custom_rule_arguments(self):
        registry = RuleRegistry()

        def multiple_of(validation, value, factor: int, key):
            return None

        registry.register("MultipleOf", multiple_of)
        invocation = TagParser(registry).parse("MultipleOf(3)", "qty")[0]
        assert invocation.arguments == (3,)


# =============================================================================
# Keys
# =============================================================================


class TestKeys:
    def test_resolve_field_key(self):
        assert resolve_field_key("Name") == "Name"
        assert resolve_field_key("Name", "name,omitempty") == "name"
        assert resolve_field_key("Name", ",omitempty") == "Name"
        assert resolve_field_key("Name", "name", "full_name") == "full_name"
        assert resolve_field_key("Name", "name", "  ") == "name"

    def test_invocation_key(self):
        assert invocation_key("age", "Range") == "age.Range"

    def test_envelope_key_passed_through(self, parser):
        envelope = Validation.set_custom_error_message("Age", "age", "age")
        assert is_custom_message(envelope)
        assert parser.parse("Required", envelope)[0].field_key == envelope

    def test_plain_text_is_not_custom_message(self):
        assert not is_custom_message("age.Range")
        assert not is_custom_message("[1, 2]")
