"""Configuration management for nzbscout."""

import os
import re
from pathlib import Path
from typing import Any, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

TMDB_BASE_URL = "https://api.themoviedb.org/3"

SORT_MODES = ("quality_size", "language_quality_size")


class TMDBConfig(BaseModel):
    """TMDB API configuration."""

    enabled: bool = Field(default=True, description="Enable TMDB integration")
    api_key: Optional[str] = Field(default=None, description="TMDB API key")
    base_url: str = Field(default=TMDB_BASE_URL, description="TMDB API base URL")
    timeout_seconds: float = Field(default=5.0, description="Per-request timeout")
    retry_attempts: int = Field(
        default=1, description="Attempts per request (1 disables retries)"
    )
    default_language: str = Field(
        default="en-US", description="Language tag sent with metadata requests"
    )

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: Optional[str], info) -> Optional[str]:
        """Validate API key is provided when TMDB is enabled."""
        enabled = info.data.get("enabled", True)
        if enabled and not v:
            raise ValueError("TMDB API key required when TMDB is enabled")
        return v

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError("TMDB timeout must be positive")
        return v

    @field_validator("retry_attempts")
    @classmethod
    def validate_retry_attempts(cls, v: int) -> int:
        """Validate at least one attempt is made."""
        if v < 1:
            raise ValueError("retry_attempts must be at least 1")
        return v


class SearchConfig(BaseModel):
    """Search result post-processing configuration."""

    max_size_gb: Optional[float] = Field(
        default=None, description="Drop results larger than this (GiB)"
    )
    sort_mode: str = Field(default="quality_size", description="Result sort mode")
    preferred_language: Optional[str] = Field(
        default=None, description="Language sorted first in language mode"
    )
    max_triage_candidates: int = Field(
        default=3, description="Distinct titles handed to triage"
    )
    language_candidates: List[str] = Field(
        default_factory=list, description="Languages tried for TMDB title search"
    )

    @field_validator("sort_mode")
    @classmethod
    def validate_sort_mode(cls, v: str) -> str:
        """Validate sort mode."""
        if v not in SORT_MODES:
            raise ValueError(f"Sort mode must be one of: {', '.join(SORT_MODES)}")
        return v

    @property
    def max_size_bytes(self) -> Optional[int]:
        """Size limit in bytes, or None when unlimited."""
        if not self.max_size_gb or self.max_size_gb <= 0:
            return None
        return int(self.max_size_gb * 1024 * 1024 * 1024)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    format: str = Field(default="text", description="Log format (json or text)")
    level: str = Field(default="info", description="Log level")
    output: Optional[str] = Field(default=None, description="Optional log file path")

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format."""
        if v not in ("json", "text"):
            raise ValueError("Log format must be 'json' or 'text'")
        return v

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        if v.lower() not in ("debug", "info", "warning", "error", "critical"):
            raise ValueError("Invalid log level")
        return v.lower()


class Config(BaseModel):
    """Main configuration model."""

    tmdb: TMDBConfig = Field(
        default_factory=lambda: TMDBConfig(enabled=False),
        description="TMDB configuration",
    )
    search: SearchConfig = Field(
        default_factory=SearchConfig, description="Search result configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Config":
        """Load configuration from YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            Config instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path) as f:
            raw_config = yaml.safe_load(f)

        if raw_config is None:
            raw_config = {}

        raw_config = cls._substitute_env_vars(raw_config)

        return cls(**raw_config)

    @staticmethod
    def _substitute_env_vars(obj: Any) -> Any:
        """Recursively replace ${VAR_NAME} with os.environ['VAR_NAME']."""
        if isinstance(obj, dict):
            return {key: Config._substitute_env_vars(value) for key, value in obj.items()}
        elif isinstance(obj, list):
            return [Config._substitute_env_vars(item) for item in obj]
        elif isinstance(obj, str):
            pattern = r"\$\{([^}]+)\}"

            def replace_var(match):
                var_name = match.group(1)
                value = os.environ.get(var_name)
                if value is None:
                    raise ValueError(
                        f"Environment variable '{var_name}' not found "
                        f"(referenced in configuration)"
                    )
                return value

            return re.sub(pattern, replace_var, obj)
        else:
            return obj

    @classmethod
    def from_defaults(cls) -> "Config":
        """Create configuration with default values (TMDB disabled)."""
        return cls()


def load_config(path: Optional[str | Path] = None) -> Config:
    """Load configuration from file or use defaults.

    Args:
        path: Optional path to configuration file. If None, uses defaults.

    Returns:
        Config instance
    """
    if path is None:
        return Config.from_defaults()

    return Config.from_yaml(path)
