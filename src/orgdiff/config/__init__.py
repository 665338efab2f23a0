"""Configuration module for orgdiff.

Load and validate TOML configuration with Pydantic models and environment
overrides. As a foundation module, may import: exceptions.

Sources, highest priority first:
1. Environment variables (``ORGDIFF_`` prefix, ``__`` for nesting)
2. TOML file passed to ``load_settings``
3. Defaults

Example:
--------
>>> from orgdiff.config import load_settings
>>> settings = load_settings("orgdiff.toml")
>>> settings.gateway.timeout_s
300.0

    $ ORGDIFF_GATEWAY__EXECUTABLE=/opt/sf/bin/sf orgdiff types "Org A" "Org B"
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional

try:
    import tomllib  # Python >= 3.11
except ImportError:
    import tomli as tomllib  # Python < 3.11

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from orgdiff.exceptions import ConfigError

__all__ = [
    "GatewayConfig",
    "PrefetchConfig",
    "ReconcileConfig",
    "LoggingConfig",
    "Settings",
    "load_settings",
    "ENV_PREFIX",
]

ENV_PREFIX = "ORGDIFF_"

DEFAULT_FINGERPRINT_KEYS = ["size", "lengthWithoutComments", "contentLength"]


# ============================================================================
# Configuration Models
# ============================================================================


class GatewayConfig(BaseModel):
    """External CLI invocation settings."""

    model_config = {"extra": "forbid"}

    executable: str = Field(default="sf", min_length=1, description="CLI executable name or path")
    timeout_s: float = Field(default=300.0, gt=0, description="Per-command timeout in seconds")
    max_output_bytes: int = Field(default=100 * 1024 * 1024, ge=1024, description="Ceiling on captured stdout")
    project_dir: Optional[Path] = Field(default=None, description="Working directory for retrieve commands")
    tmp_root: Optional[Path] = Field(default=None, description="Parent directory for temporary retrieves")
    exclude_namespaced: bool = Field(default=True, description="Drop entries from installed packages")
    fingerprint_keys: List[str] = Field(default_factory=lambda: list(DEFAULT_FINGERPRINT_KEYS))

    @field_validator("project_dir", "tmp_root", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Any:
        """Expand user home in paths."""
        if isinstance(v, str):
            return Path(v).expanduser()
        return v


class PrefetchConfig(BaseModel):
    """Rate limits for bulk count prefetch."""

    model_config = {"extra": "forbid"}

    batch_size: int = Field(default=2, ge=1, description="Categories listed concurrently per batch")
    batch_delay_s: float = Field(default=0.5, ge=0, description="Pause between batches")
    max_categories: Optional[int] = Field(default=50, ge=1, description="Ceiling on categories per prefetch")


class ReconcileConfig(BaseModel):
    """Reconciliation thresholds."""

    model_config = {"extra": "forbid"}

    count_warning_threshold: float = Field(default=0.10, ge=0, le=1, description="Category count gap that warrants a warning")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = {"extra": "forbid"}

    level: str = Field(default="INFO")
    structured: bool = Field(default=False)

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}, got '{v}'")
        return v_upper


class Settings(BaseSettings):
    """Complete orgdiff settings."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="forbid",
    )

    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    prefetch: PrefetchConfig = Field(default_factory=PrefetchConfig)
    reconcile: ReconcileConfig = Field(default_factory=ReconcileConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Let environment variables override values loaded from TOML."""
        return (
            env_settings,
            init_settings,
            dotenv_settings,
            file_secret_settings,
        )


# ============================================================================
# Loading Functions
# ============================================================================


def load_settings(toml_path: Path | str | None = None) -> Settings:
    """Load and validate settings from TOML and environment.

    Args:
        toml_path: Path to TOML configuration file (optional)

    Returns:
        Validated Settings object

    Raises:
        FileNotFoundError: If toml_path specified but doesn't exist
        ConfigError: If the file is not valid TOML or fails validation
    """
    config_dict: dict[str, Any] = {}

    if toml_path is not None:
        toml_path = Path(toml_path)
        if not toml_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {toml_path}")

        try:
            with open(toml_path, "rb") as f:
                config_dict = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {toml_path}: {e}", {"path": str(toml_path)})

    try:
        return Settings(**config_dict)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}", {"path": str(toml_path) if toml_path else None})
