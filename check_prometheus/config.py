"""Configuration models using Pydantic for validation."""
from typing import Any, Dict, Mapping, Optional
import os

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from check_prometheus.evaluator import Direction, Tier
from check_prometheus.exceptions import ConfigError

# Positional order of the comma-separated threshold string
THRESHOLD_POSITIONS = (Tier.WARNING, Tier.ERROR, Tier.FATAL)


class ThresholdSet(BaseModel):
    """Threshold per tier, kept as the configured string."""
    model_config = ConfigDict(frozen=True)

    warning: Optional[str] = None
    error: Optional[str] = None
    fatal: Optional[str] = None

    @field_validator("warning", "error", "fatal", mode="before")
    @classmethod
    def validate_threshold(cls, v):
        """Blank thresholds are absent; others must be numeric."""
        if v is None:
            return None
        v = str(v).strip()
        if not v:
            return None
        try:
            float(v)
        except ValueError:
            raise ValueError(f"Threshold '{v}' is not a number")
        return v

    @classmethod
    def from_string(cls, value: str) -> "ThresholdSet":
        """
        Build a threshold set from a ``warning,error,fatal`` string.

        Position decides the tier. Positions past the third are ignored. An
        empty position leaves its tier unchecked; it is not read as a 0.0
        threshold.
        """
        parts = value.split(",")
        values = {
            tier.value: parts[position]
            for position, tier in enumerate(THRESHOLD_POSITIONS)
            if position < len(parts)
        }
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigError(f"Invalid threshold '{value}': {e}") from e

    def raw(self, tier: Tier) -> Optional[str]:
        """Return the configured string of a tier."""
        return getattr(self, tier.value)

    def limits(self) -> Dict[Tier, float]:
        """Return the numeric threshold of every configured tier."""
        return {
            tier: float(self.raw(tier))
            for tier in THRESHOLD_POSITIONS
            if self.raw(tier) is not None
        }


class CheckConfig(BaseModel):
    """Immutable configuration of a single check run."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    host: str
    query: str
    greater_than: bool = False
    last: Optional[ThresholdSet] = None
    concat_output: bool = False
    short_output: bool = False
    http_user: Optional[str] = None
    http_password: Optional[str] = None
    timeout: float = Field(default=10.0, gt=0)
    metrics_file: Optional[str] = None
    log_level: str = "WARNING"

    @field_validator("host", "query")
    @classmethod
    def validate_not_blank(cls, v):
        if not v.strip():
            raise ValueError("must not be empty")
        return v

    @field_validator("last", mode="before")
    @classmethod
    def parse_last(cls, v):
        """Accept the comma-separated threshold string."""
        if isinstance(v, (int, float)):
            v = str(v)
        if isinstance(v, str):
            return ThresholdSet.from_string(v)
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        level = v.upper()
        if level not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            raise ValueError(f"Invalid log level: {v}")
        return level

    @property
    def direction(self) -> Direction:
        return Direction.GREATER_THAN if self.greater_than else Direction.LESS_THAN


def load_config(
    overrides: Optional[Mapping[str, Any]] = None,
    config_path: Optional[str] = None
) -> CheckConfig:
    """
    Build the check configuration.

    Values come from the optional YAML file, then environment variables,
    then explicit overrides (command-line flags). None overrides are ignored.
    """
    import yaml

    raw_config: Dict[str, Any] = {}

    if config_path:
        if not os.path.exists(config_path):
            raise ConfigError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r') as f:
            try:
                loaded = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Could not parse {config_path}: {e}") from e

        if loaded is not None and not isinstance(loaded, dict):
            raise ConfigError(f"Configuration file {config_path} must contain a mapping")
        raw_config.update(loaded or {})

    # Apply environment variable overrides
    if env_host := os.getenv('PROMETHEUS_HOST'):
        raw_config['host'] = env_host

    if env_log_level := os.getenv('LOG_LEVEL'):
        raw_config['log_level'] = env_log_level

    for key, value in (overrides or {}).items():
        if value is not None:
            raw_config[key] = value

    try:
        return CheckConfig(**raw_config)
    except ValidationError as e:
        raise ConfigError(f"Configuration validation failed: {e}") from e
