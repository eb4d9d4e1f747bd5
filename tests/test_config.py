"""Tests for EngineConfig."""

from dataclasses import dataclass, field
from pathlib import Path

import pytest

from tagrules.config import EngineConfig
from tagrules.validation import FieldSpec, Record, RecordSchema
from tagrules.validation.validators import Required, reset_default_messages

_ENV_VARS = [
    "TAGRULES_TAG",
    "TAGRULES_JSON_TAG",
    "TAGRULES_ALIAS_TAG",
    "TAGRULES_MESSAGES",
    "TAGRULES_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
    reset_default_messages()


class TestFromEnv:
    def test_defaults(self):
        config = EngineConfig.from_env()
        assert config.tag_name == "valid"
        assert config.json_tag == "json"
        assert config.alias_tag == "alias"
        assert config.messages_path is None
        assert config.log_level == "WARNING"

    def test_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("TAGRULES_TAG", "rules")
        monkeypatch.setenv("TAGRULES_MESSAGES", str(tmp_path / "messages.yaml"))
        monkeypatch.setenv("TAGRULES_LOG_LEVEL", "debug")

        config = EngineConfig.from_env()
        assert config.tag_name == "rules"
        assert config.messages_path == tmp_path / "messages.yaml"
        assert config.log_level == "DEBUG"


class TestMessages:
    def test_no_path(self):
        assert EngineConfig().load_messages() == {}

    def test_load_and_apply(self, tmp_path: Path):
        path = tmp_path / "messages.yaml"
        path.write_text("Required: must be filled in\nMin: at least {min}\n")
        config = EngineConfig(messages_path=path)

        assert config.load_messages() == {
            "Required": "must be filled in",
            "Min": "at least {min}",
        }
        config.apply_messages()
        assert Required().default_message() == "must be filled in"

    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "messages.yaml"
        path.write_text("- Required\n- Min\n")
        with pytest.raises(ValueError, match="must be a mapping"):
            EngineConfig(messages_path=path).load_messages()


class TestFactories:
    def test_custom_tag_name(self):
        @dataclass
        class Item:
            sku: str = field(default="", metadata={"rules": "Required", "name": "item_sku"})

        config = EngineConfig(tag_name="rules", json_tag="name")
        validation = config.create_validation()

        assert validation.valid(Item()) is False
        assert list(validation.error_map()) == ["item_sku"]

    def test_default_tag_ignored_when_renamed(self):
        @dataclass
        class Item:
            sku: str = field(default="", metadata={"valid": "Required"})

        assert EngineConfig(tag_name="rules").create_validation().valid(Item()) is True

    def test_named_schemas(self):
        address = RecordSchema("Address", (FieldSpec("city", "Required"),))
        resolver = EngineConfig().create_resolver({"Address": address})
        assert resolver.named("Address") is address

    def test_validation_uses_schemas(self):
        schema = RecordSchema("Address", (FieldSpec("city", "Required"),))
        validation = EngineConfig().create_validation(schemas={"Address": schema})
        assert validation.valid(Record(schema, {"city": "Oslo"})) is True
