"""
Configuration Base
==================

Strict pydantic models for harness settings, plus the two helpers every
layered source needs: reading a YAML/JSON mapping from disk and merging
mappings so that later layers win.
"""

import logging
from pathlib import Path
from typing import Any, Self

import orjson
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

YAML_SUFFIXES = {".yaml", ".yml"}

# Serialization context key that writes secrets in clear text.
REVEAL_SECRETS = "reveal_secrets"


class ConfigError(Exception):
    """Configuration-related errors."""


class ConfigValidationError(ConfigError):
    """A configuration that failed schema or semantic checks."""

    def __init__(self, message: str, errors: list[str]):
        self.errors = errors
        detail = "; ".join(errors)
        super().__init__(f"{message}: {detail}" if detail else message)


def deep_merge(base: dict[str, Any], *overrides: dict[str, Any]) -> dict[str, Any]:
    """Merge mappings left to right; nested dicts merge key by key."""
    merged = dict(base)
    for layer in overrides:
        for key, value in layer.items():
            current = merged.get(key)
            if isinstance(current, dict) and isinstance(value, dict):
                merged[key] = deep_merge(current, value)
            else:
                merged[key] = value
    return merged


def read_mapping(path: Path) -> dict[str, Any]:
    """
    Read a YAML (``.yaml``/``.yml``) or JSON file whose top level is a mapping.

    Raises:
        ConfigValidationError: If the file is missing, unreadable or malformed
    """
    if not path.exists():
        raise ConfigValidationError(f"Configuration file not found: {path}", [])

    try:
        raw = path.read_bytes()
    except OSError as e:
        raise ConfigValidationError(f"Failed to read configuration file: {path}", [str(e)]) from e

    try:
        data = yaml.safe_load(raw) if path.suffix.lower() in YAML_SUFFIXES else orjson.loads(raw)
    except (yaml.YAMLError, orjson.JSONDecodeError) as e:
        raise ConfigValidationError(f"Invalid configuration file: {path}", [str(e)]) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigValidationError(f"Invalid configuration file: {path}", ["top level must be a mapping"])
    return data


def _schema_errors(error: ValidationError) -> list[str]:
    return [
        f"{'.'.join(str(part) for part in err['loc']) or '<root>'}: {err['msg']}"
        for err in error.errors()
    ]


class BaseConfig(BaseModel):
    """
    Strict base for harness configuration models.

    Unknown keys are rejected and assignments are re-validated. Subclasses
    add cross-field rules in :meth:`validate_semantics`.
    """

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
        use_enum_values=True,
    )

    source: str | None = Field(
        default=None,
        exclude=True,
        description="Where the configuration came from (file path or 'environment')",
    )

    def validate_semantics(self) -> list[str]:
        """Return cross-field problems; an empty list means valid."""
        return []

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """
        Build and fully validate a configuration.

        Raises:
            ConfigValidationError: On schema or semantic errors
        """
        try:
            instance = cls.model_validate(data)
        except ValidationError as e:
            raise ConfigValidationError(f"Invalid {cls.__name__}", _schema_errors(e)) from e

        if problems := instance.validate_semantics():
            raise ConfigValidationError("Semantic validation failed", problems)
        return instance

    @classmethod
    def from_json(cls, text: str | bytes) -> Self:
        try:
            data = orjson.loads(text)
        except orjson.JSONDecodeError as e:
            raise ConfigValidationError("Invalid JSON format", [str(e)]) from e
        if not isinstance(data, dict):
            raise ConfigValidationError("Invalid JSON format", ["top level must be an object"])
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, file_path: str | Path) -> Self:
        """Load a YAML or JSON file; ``source`` records the path."""
        path = Path(file_path)
        instance = cls.from_dict(read_mapping(path))
        instance.source = str(path)
        return instance

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)

    def to_json(self, indent: bool = True) -> str:
        """Serialize as JSON. Secret values are masked."""
        option = orjson.OPT_INDENT_2 if indent else 0
        return orjson.dumps(self.model_dump(mode="json", exclude_none=True), option=option).decode()

    def merge(self, *others: "BaseConfig") -> Self:
        """Return a new config with ``others`` layered over this one, last wins."""
        return type(self).from_dict(deep_merge(self.to_dict(), *(o.to_dict() for o in others)))

    def save_to_file(self, file_path: str | Path) -> None:
        """
        Write the configuration as YAML or JSON, chosen by file suffix.

        Secrets are written in clear text so the file can be loaded again.

        Raises:
            ConfigError: If the file cannot be written
        """
        path = Path(file_path)
        data = self.model_dump(mode="json", exclude_none=True, context={REVEAL_SECRETS: True})
        if path.suffix.lower() in YAML_SUFFIXES:
            content = yaml.safe_dump(data, sort_keys=False)
        else:
            content = orjson.dumps(data, option=orjson.OPT_INDENT_2).decode()

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Failed to save configuration to {path}: {e}") from e

        self.source = str(path)
        logger.info(f"Configuration saved to {path}")
