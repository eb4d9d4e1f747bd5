"""Engine configuration."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

import yaml

from tagrules.validation.context import Validation
from tagrules.validation.registry import RuleRegistry
from tagrules.validation.schema import RecordSchema, SchemaResolver
from tagrules.validation.validators.base import set_default_messages

logger = logging.getLogger(__name__)


@dataclass
class EngineConfig:
    """Tag identifiers, message overrides and log level.

    Attributes:
        tag_name: Metadata key holding the rule string
        json_tag: Metadata key holding the JSON field name
        alias_tag: Metadata key holding the error-key alias
        messages_path: Optional YAML file of message-template overrides
        log_level: Logging level name used by the CLI
    """

    tag_name: str = "valid"
    json_tag: str = "json"
    alias_tag: str = "alias"
    messages_path: Path | None = None
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Create config from environment variables.

        TAGRULES_TAG, TAGRULES_JSON_TAG, TAGRULES_ALIAS_TAG,
        TAGRULES_MESSAGES and TAGRULES_LOG_LEVEL; unset ones keep defaults.
        """
        messages = os.environ.get("TAGRULES_MESSAGES")
        return cls(
            tag_name=os.environ.get("TAGRULES_TAG", "valid"),
            json_tag=os.environ.get("TAGRULES_JSON_TAG", "json"),
            alias_tag=os.environ.get("TAGRULES_ALIAS_TAG", "alias"),
            messages_path=Path(messages) if messages else None,
            log_level=os.environ.get("TAGRULES_LOG_LEVEL", "WARNING").upper(),
        )

    def load_messages(self) -> dict[str, str]:
        """Read message overrides from `messages_path` ({} when unset).

        Raises:
            ValueError: If the file isn't a mapping of rule name to template
        """
        if self.messages_path is None:
            return {}
        with self.messages_path.open() as fh:
            data = yaml.safe_load(fh) or {}
        if not isinstance(data, dict):
            raise ValueError(
                f"Message overrides in {self.messages_path} must be a mapping"
            )
        return {str(name): str(template) for name, template in data.items()}

    def apply_messages(self) -> None:
        """Install the message overrides as default templates."""
        messages = self.load_messages()
        if messages:
            logger.info("Overriding %d message template(s)", len(messages))
            set_default_messages(messages)

    def create_resolver(
        self, schemas: dict[str, RecordSchema] | None = None
    ) -> SchemaResolver:
        return SchemaResolver(
            tag_name=self.tag_name,
            json_tag=self.json_tag,
            alias_tag=self.alias_tag,
            schemas=schemas,
        )

    def create_validation(
        self,
        registry: RuleRegistry | None = None,
        schemas: dict[str, RecordSchema] | None = None,
    ) -> Validation:
        """A Validation wired with this config's resolver."""
        return Validation(registry=registry, resolver=self.create_resolver(schemas))
