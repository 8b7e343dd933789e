"""
Configuration management (SSOT).

This module defines ALL configuration for the confidence engine.
All config keys are defined here; no other module should invent config keys.

Key invariants:
- Every default confidence and threshold lies in [0, 1]
- low_confidence_threshold < medium_confidence_threshold
- Every tracked field has a default confidence
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from .errors import UnknownFieldError
from .schemas.fields import TRACKED_FIELDS, TrackedField, parse_field

# Lowest score ever suggested for a recognized field; defaults must stay above it
EMPTY_VALUE_FLOOR = 0.1


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    pass


DEFAULT_FIELD_CONFIDENCE: Mapping[TrackedField, float] = MappingProxyType(
    {
        TrackedField.AMOUNT: 0.9,
        TrackedField.CATEGORY: 0.6,
        TrackedField.ACCOUNT: 0.6,
        TrackedField.DESCRIPTION: 0.5,
        TrackedField.DATE: 0.9,
        TrackedField.NOTES: 0.3,
    }
)


@dataclass(frozen=True)
class ConfidenceConfig:
    """Per-field prior confidences and display thresholds.

    The default for a field is also the highest confidence the engine
    will ever suggest for it.
    """

    defaults: Mapping[TrackedField, float] = field(
        default_factory=lambda: DEFAULT_FIELD_CONFIDENCE
    )
    # Below this: flagged as low confidence in the display layer
    low_confidence_threshold: float = 0.7
    # Below this (and at least low): medium confidence
    medium_confidence_threshold: float = 0.8

    def __post_init__(self) -> None:
        # Freeze caller-supplied mappings so the table stays read-only
        if not isinstance(self.defaults, MappingProxyType):
            object.__setattr__(self, "defaults", MappingProxyType(dict(self.defaults)))

    def default_for(self, field_id: Any) -> float:
        """Look up the default confidence for a field.

        Raises:
            UnknownFieldError: If field_id is not a tracked field
        """
        tracked = parse_field(field_id)
        try:
            return self.defaults[tracked]
        except KeyError:
            raise UnknownFieldError(field_id) from None

    def validate(self) -> list[str]:
        """Validate invariants.

        Returns:
            List of validation errors (empty if valid)
        """
        errors: list[str] = []

        for tracked in TRACKED_FIELDS:
            if tracked not in self.defaults:
                errors.append(f"confidence.defaults.{tracked.value} is required")
                continue
            value = self.defaults[tracked]
            if not 0.0 <= value <= 1.0:
                errors.append(f"confidence.defaults.{tracked.value} must be in [0, 1]")
            elif value <= EMPTY_VALUE_FLOOR:
                errors.append(
                    f"confidence.defaults.{tracked.value} must be above {EMPTY_VALUE_FLOOR}"
                )

        for name in ("low_confidence_threshold", "medium_confidence_threshold"):
            if not 0.0 <= getattr(self, name) <= 1.0:
                errors.append(f"confidence.{name} must be in [0, 1]")

        if self.low_confidence_threshold >= self.medium_confidence_threshold:
            errors.append("low_confidence_threshold must be < medium_confidence_threshold")

        return errors


DEFAULT_CONFIDENCE_CONFIG = ConfidenceConfig()


@dataclass
class CacheConfig:
    """Suggestion cache settings."""

    enabled: bool = True
    # Entries kept before eviction
    max_size: int = 1000
    # Entry lifetime (seconds)
    ttl_seconds: float = 3600.0


@dataclass
class Config:
    """Application configuration (SSOT).

    All configuration is centralized here. No other module should define
    configuration keys or defaults.
    """

    confidence: ConfidenceConfig = field(default_factory=ConfidenceConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    state_db_path: Path = field(default_factory=lambda: Path("data/state.db"))
    # Write the feedback ledger to state_db_path after every change
    persist_feedback: bool = True

    def validate(self) -> list[str]:
        """Validate configuration completeness and consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = self.confidence.validate()

        if self.cache.max_size < 1:
            errors.append("cache.max_size must be >= 1")
        if self.cache.ttl_seconds <= 0:
            errors.append("cache.ttl_seconds must be > 0")

        return errors


def _env_flag(name: str, current: bool) -> bool:
    """Read a true/false environment override."""
    raw = os.environ.get(name, "").lower()
    if raw == "true":
        return True
    if raw == "false":
        return False
    return current


def _parse_defaults(data: Mapping[str, Any]) -> dict[TrackedField, float]:
    """Merge YAML field defaults over the built-in table."""
    defaults = dict(DEFAULT_FIELD_CONFIDENCE)
    for name, value in data.items():
        try:
            tracked = parse_field(name)
        except UnknownFieldError as e:
            raise ConfigValidationError(f"confidence.defaults: {e}") from e
        defaults[tracked] = float(value)
    return defaults


def load_config(config_path: Path) -> Config:
    """
    Load configuration from YAML file.

    Environment variables can override config values:
    - SMARTBOOK_STATE_DB
    - SMARTBOOK_PERSIST_FEEDBACK (true/false)
    - SMARTBOOK_CACHE_ENABLED (true/false)
    - SMARTBOOK_CACHE_TTL (seconds)

    Raises:
        ConfigValidationError: If the resulting configuration is invalid
    """
    if config_path.exists():
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    else:
        data = {}

    # Confidence config
    conf_data = data.get("confidence", {})
    confidence = ConfidenceConfig(
        defaults=_parse_defaults(conf_data.get("defaults", {})),
        low_confidence_threshold=float(conf_data.get("low_confidence_threshold", 0.7)),
        medium_confidence_threshold=float(conf_data.get("medium_confidence_threshold", 0.8)),
    )

    # Cache config
    cache_data = data.get("cache", {})
    ttl_env = os.environ.get("SMARTBOOK_CACHE_TTL", "")
    ttl_seconds = float(cache_data.get("ttl_seconds", 3600))
    if ttl_env:
        try:
            ttl_seconds = float(ttl_env)
        except ValueError:
            raise ConfigValidationError(f"SMARTBOOK_CACHE_TTL is not a number: {ttl_env}")

    cache = CacheConfig(
        enabled=_env_flag("SMARTBOOK_CACHE_ENABLED", cache_data.get("enabled", True)),
        max_size=int(cache_data.get("max_size", 1000)),
        ttl_seconds=ttl_seconds,
    )

    state_db = os.environ.get("SMARTBOOK_STATE_DB", data.get("state_db_path", "data/state.db"))

    config = Config(
        confidence=confidence,
        cache=cache,
        state_db_path=Path(state_db),
        persist_feedback=_env_flag(
            "SMARTBOOK_PERSIST_FEEDBACK", data.get("persist_feedback", True)
        ),
    )

    errors = config.validate()
    if errors:
        raise ConfigValidationError("; ".join(errors))

    return config


def create_default_config(config_path: Path) -> None:
    """Create a default configuration file."""
    default_config = """# Smart bookkeeping confidence engine configuration
#
# Default confidences are the prior trust in each recognized field and the
# ceiling the engine suggests once feedback history accumulates.

confidence:
  defaults:
    amount: 0.9
    category: 0.6
    account: 0.6
    description: 0.5
    date: 0.9
    notes: 0.3
  low_confidence_threshold: 0.7      # Below this: flagged for the user
  medium_confidence_threshold: 0.8   # Below this: medium confidence

# Suggestion cache (in-process)
cache:
  enabled: true
  max_size: 1000
  ttl_seconds: 3600

# Feedback history storage
state_db_path: "data/state.db"
persist_feedback: true
"""

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        f.write(default_config)
