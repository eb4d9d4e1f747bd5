"""Tests for the rule registry."""

import logging
import re
import threading

import pytest

from tagrules.validation import (
    RESERVED_NAMES,
    ArityMismatchError,
    InvocationError,
    NameReservedError,
    ParamKind,
    RuleParameter,
    RuleRegistry,
    UnknownRuleError,
    Validation,
    default_registry,
    register_rule,
)
from tagrules.validation.validators import Required


@pytest.fixture
def registry():
    return RuleRegistry.with_builtins()


@pytest.fixture
def validation(registry):
    return Validation(registry=registry)


# =============================================================================
# Registration
# =============================================================================


class TestRegistration:
    def test_builtins_registered(self, registry):
        for name in ["Required", "Range", "Match", "Email", "Name", "Incremental"]:
            assert registry.is_registered(name)

    def test_reserved_catalog_rule_not_registered(self, registry):
        assert not registry.is_registered("NoMatch")

    def test_list_registered_sorted(self, registry):
        names = registry.list_registered()
        assert names == sorted(names)
        assert "SliceMatch" in names

    @pytest.mark.parametrize("name", sorted(RESERVED_NAMES))
    def test_reserved_names_rejected(self, registry, name):
        with pytest.raises(NameReservedError) as exc_info:
            registry.register(name, lambda validation, value, key: None)
        assert exc_info.value.name == name

    def test_replacement_logs_warning(self, registry, caplog):
        def always_ok(validation, value, key):
            return None

        with caplog.at_level(logging.WARNING, logger="tagrules.validation.registry"):
            registry.register("Required", always_ok)

        assert "being replaced" in caplog.text
        assert registry.get("Required").rule_class is None

    def test_non_callable_rejected(self, registry):
        with pytest.raises(TypeError):
            registry.register("Broken", "not callable")

    def test_function_needs_validation_value_and_key(self, registry):
        with pytest.raises(TypeError):
            registry.register("TooShort", lambda value, key: None)

    def test_clear(self, registry):
        registry.clear()
        assert registry.list_registered() == []

    def test_concurrent_registration(self):
        registry = RuleRegistry()

        def register(i):
            registry.register(f"Rule{i}", lambda validation, value, key: None)

        threads = [threading.Thread(target=register, args=(i,)) for i in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(registry.list_registered()) == 20


# =============================================================================
# Parameter Inference
# =============================================================================


class TestParameters:
    def test_catalog_arity(self, registry):
        assert registry.arity("Required") == 0
        assert registry.arity("Min") == 1
        assert registry.arity("Range") == 2
        assert registry.arity("DateBefore") == 2
        assert registry.arity("SliceMatch") == 1

    def test_inferred_from_annotations(self, registry):
        def between(validation, value, low: int, high: int, key):
            return None

        definition = registry.register("Between", between)
        assert [p.kind for p in definition.parameters] == [ParamKind.INT, ParamKind.INT]
        assert [p.name for p in definition.parameters] == ["low", "high"]

    def test_regex_and_string_kinds(self, registry):
        def matches(validation, value, pattern: re.Pattern, label, key):
            return None

        definition = registry.register("Matches", matches)
        assert [p.kind for p in definition.parameters] == [ParamKind.REGEX, ParamKind.STRING]

    def test_other_annotations_are_any(self, registry):
        def one_of(validation, value, options: list, key):
            return None

        definition = registry.register("OneOf", one_of)
        assert definition.parameters[0].kind is ParamKind.ANY

    def test_explicit_parameters(self, registry):
        definition = registry.register(
            "Prefix",
            lambda validation, value, *params: None,
            parameters=[ParamKind.STRING],
        )
        assert definition.arity == 1
        assert definition.parameters[0] == RuleParameter("arg0", ParamKind.STRING)

    def test_unknown_rule_arity(self, registry):
        with pytest.raises(UnknownRuleError):
            registry.arity("Nope")


# =============================================================================
# Invocation
# =============================================================================


class TestInvoke:
    def test_unknown_rule(self, registry, validation):
        with pytest.raises(UnknownRuleError) as exc_info:
            registry.invoke("Nope", validation, "value", "field.Nope")
        assert exc_info.value.name == "Nope"

    def test_catalog_rule_records_error(self, registry, validation):
        result = registry.invoke("Range", validation, 180, 1, 140, "age.Range")

        assert not result.ok
        assert validation.errors[0].field == "age"
        assert validation.errors[0].name == "Range"
        assert validation.errors[0].limit_value == [1, 140]

    def test_every_rule_checks_arity(self, registry, validation):
        for definition in registry.list_all():
            # Omitting the key makes the count one short
            params = [None] * definition.arity
            with pytest.raises(ArityMismatchError):
                registry.invoke(definition.name, validation, "x", *params)

    def test_too_many_params(self, registry, validation):
        with pytest.raises(ArityMismatchError) as exc_info:
            registry.invoke("Required", validation, "x", 1, "name.Required")
        assert exc_info.value.expected == 0
        assert exc_info.value.actual == 1

    def test_expected_count_matches_arity(self, registry, validation):
        with pytest.raises(ArityMismatchError) as exc_info:
            registry.invoke("Range", validation, 5, 1, "age.Range")
        assert exc_info.value.expected == registry.arity("Range") == 2
        assert exc_info.value.actual == 1
        assert "requires 2 parameter(s), got 1" in str(exc_info.value)

    def test_missing_key(self, registry, validation):
        with pytest.raises(ArityMismatchError, match="missing key"):
            registry.invoke("Required", validation, "x")

    def test_custom_function_rule(self, registry, validation):
        def even(validation, value, key):
            if value % 2:
                validation.set_error(key, "must be even")

        registry.register("Even", even)
        registry.invoke("Even", validation, 3, "count")
        registry.invoke("Even", validation, 4, "count")

        assert len(validation.errors) == 1
        assert validation.errors[0].message == "must be even"

    def test_failing_rule_raises_invocation_error(self, registry, validation):
        def explode(validation, value, key):
            raise ValueError("boom")

        registry.register("Explode", explode)
        with pytest.raises(InvocationError) as exc_info:
            registry.invoke("Explode", validation, "x", "field")
        assert isinstance(exc_info.value.cause, ValueError)


# =============================================================================
# Module Helpers and Documentation
# =============================================================================


class TestHelpers:
    def test_default_registry_is_shared(self):
        assert default_registry() is default_registry()
        assert default_registry().is_registered("Required")

    def test_register_rule_on_explicit_registry(self, registry):
        register_rule("Positive", lambda validation, value, key: None, registry=registry)
        assert registry.is_registered("Positive")
        assert not default_registry().is_registered("Positive")

    def test_register_rule_class(self):
        registry = RuleRegistry()
        register_rule("MustExist", Required, registry=registry)
        assert registry.get("MustExist").rule_class is Required

    def test_export_documentation(self, registry):
        registry.register("Even", lambda validation, value, key: None, description="Even numbers")
        docs = registry.export_documentation()

        assert docs["rules"]["Range"]["arity"] == 2
        assert docs["rules"]["Range"]["parameters"][0] == {"name": "min", "kind": "int"}
        assert docs["rules"]["Even"]["description"] == "Even numbers"
        assert docs["custom"] == ["Even"]
