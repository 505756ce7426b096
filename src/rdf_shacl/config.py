"""
Validator configuration.

Provides:
- Shapes graph build options
- Validation engine options
- YAML loading and saving
- Configuration validation
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

logger = logging.getLogger(__name__)


class ConfigValidationError(Exception):
    """Configuration validation error."""
    pass


@dataclass
class ShapesConfig:
    """How the shapes graph is built."""
    include_core_vocabulary: bool = True
    eager_caches: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "include_core_vocabulary": self.include_core_vocabulary,
            "eager_caches": self.eager_caches,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ShapesConfig":
        return cls(
            include_core_vocabulary=data.get("include_core_vocabulary", True),
            eager_caches=data.get("eager_caches", False),
        )


@dataclass
class EngineConfig:
    """How a validation pass runs."""
    allow_warnings: bool = False
    max_errors: Optional[int] = None  # None for no limit

    def to_dict(self) -> Dict[str, Any]:
        return {
            "allow_warnings": self.allow_warnings,
            "max_errors": self.max_errors,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineConfig":
        return cls(
            allow_warnings=data.get("allow_warnings", False),
            max_errors=data.get("max_errors"),
        )


@dataclass
class ValidatorConfig:
    """Complete validator configuration."""
    shapes: ShapesConfig = field(default_factory=ShapesConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "shapes": self.shapes.to_dict(),
            "engine": self.engine.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ValidatorConfig":
        return cls(
            shapes=ShapesConfig.from_dict(data.get("shapes") or {}),
            engine=EngineConfig.from_dict(data.get("engine") or {}),
        )

    @classmethod
    def from_yaml(cls, yaml_content: str) -> "ValidatorConfig":
        """
        Parse configuration from YAML.

        Example:
            shapes:
              eager_caches: true
            engine:
              allow_warnings: true
              max_errors: 100
        """
        doc = yaml.safe_load(yaml_content) or {}
        if not isinstance(doc, dict):
            raise ConfigValidationError("Configuration must be a mapping")
        config = cls.from_dict(doc)
        config.validate()
        return config

    def to_yaml(self) -> str:
        return yaml.dump(self.to_dict(), default_flow_style=False, sort_keys=False)

    def save(self, path: Union[str, Path]) -> None:
        """Save configuration to a YAML file."""
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.to_yaml())

    @classmethod
    def load(cls, path: Union[str, Path]) -> "ValidatorConfig":
        """Load configuration from a YAML file, or defaults if it is missing."""
        path = Path(path)
        if not path.exists():
            logger.debug(f"No configuration at {path}, using defaults")
            return cls()
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_yaml(f.read())

    def validate(self) -> None:
        """Raise ConfigValidationError if any value is invalid."""
        ConfigValidator.validate_or_raise(self)


class ConfigValidator:
    """Validates configuration."""

    @staticmethod
    def validate(config: ValidatorConfig) -> List[str]:
        """
        Validate configuration.

        Returns list of error messages (empty if valid).
        """
        errors = []

        for name, value in (
            ("include_core_vocabulary", config.shapes.include_core_vocabulary),
            ("eager_caches", config.shapes.eager_caches),
            ("allow_warnings", config.engine.allow_warnings),
        ):
            if not isinstance(value, bool):
                errors.append(f"{name} must be a boolean")

        max_errors = config.engine.max_errors
        if max_errors is not None:
            if isinstance(max_errors, bool) or not isinstance(max_errors, int):
                errors.append("max_errors must be an integer")
            elif max_errors < 1:
                errors.append("max_errors must be at least 1")

        return errors

    @staticmethod
    def validate_or_raise(config: ValidatorConfig) -> None:
        """Validate configuration, raising on errors."""
        errors = ConfigValidator.validate(config)
        if errors:
            raise ConfigValidationError("; ".join(errors))
