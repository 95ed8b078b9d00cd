# === NAVMAP v1 ===
# {
#   "module": "FPZ.BundleAssembly.settings",
#   "purpose": "Pydantic settings models and loaders for bundle assembly runs",
#   "sections": [
#     {"id": "constants", "name": "Constants", "anchor": "CONST", "kind": "constants"},
#     {"id": "models", "name": "Settings Models", "anchor": "MOD", "kind": "api"},
#     {"id": "environment", "name": "Environment Overrides", "anchor": "ENV", "kind": "api"},
#     {"id": "loading", "name": "Configuration Loading", "anchor": "LOAD", "kind": "api"}
#   ]
# }
# === /NAVMAP ===

"""Configuration models for bundle assembly runs.

A run needs three things: where the manifest lives, where the staging tree
goes, and where the output archive is written.  The original tool read these
from a ``config.json`` with ``XmlSource``/``OutputUnzipped``/``OutputZipped``/
``LogFile`` keys; those names remain accepted as aliases so existing
configuration files keep working.  Environment variables prefixed ``FPZ_``
override file values.

The resolved :class:`BundleConfig` is an immutable value built once per
process and handed explicitly to the builder and assembler.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError, UserConfigError

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_CORE_CATEGORY",
    "HttpSettings",
    "LoggingSettings",
    "BundleConfig",
    "EnvironmentOverrides",
    "load_raw_config",
    "apply_environment_overrides",
    "load_config",
]

# --- Constants -----------------------------------------------------------------

DEFAULT_CONFIG_PATH = Path("config.json")
DEFAULT_CORE_CATEGORY = "core"
DEFAULT_LOG_PATH = Path("fpz.log")
_VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


# --- Settings Models -----------------------------------------------------------


class HttpSettings(BaseModel):
    """HTTP client settings used for manifest and archive downloads."""

    model_config = ConfigDict(frozen=True, validate_assignment=False)

    http2: bool = Field(default=False, description="Enable HTTP/2 support (requires h2)")
    timeout_connect: float = Field(
        default=10.0,
        gt=0.0,
        le=300.0,
        description="Connect timeout in seconds",
    )
    timeout_read: float = Field(
        default=120.0,
        gt=0.0,
        le=3600.0,
        description="Read timeout in seconds",
    )
    follow_redirects: bool = Field(
        default=True,
        description="Follow HTTP redirects when fetching archives",
    )
    trust_env: bool = Field(
        default=True,
        description="Honor HTTP(S)_PROXY and NO_PROXY environment variables",
    )
    user_agent: str = Field(
        default="FPZ-BundleAssembly/0.3",
        description="User-Agent header value",
    )


class LoggingSettings(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(frozen=True, validate_assignment=False)

    level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    log_file: bool = Field(
        default=False,
        description="Also append log lines to log_path (legacy configs use 'LogFile')",
        validation_alias=AliasChoices("log_file", "LogFile"),
    )
    log_path: Path = Field(
        default=DEFAULT_LOG_PATH,
        description="Destination of the log file when log_file is enabled",
    )
    emit_json_logs: bool = Field(
        default=False,
        description="Write JSON lines to log_path instead of the console line format (may use 'json')",
        validation_alias=AliasChoices("emit_json_logs", "json"),
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        """Normalize and validate logging level."""
        upper = str(v).upper()
        if upper not in _VALID_LEVELS:
            raise ValueError(f"level must be one of {list(_VALID_LEVELS)}, got '{v}'")
        return upper

    def level_int(self) -> int:
        """Convert level string to logging module integer."""
        return getattr(logging, self.level)


class BundleConfig(BaseModel):
    """Resolved settings for one bundle assembly run."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    manifest_source: str = Field(
        description="URL or local path of the component manifest",
        validation_alias=AliasChoices("manifest_source", "XmlSource"),
    )
    staging_dir: Path = Field(
        description="Directory receiving extracted components and provenance records",
        validation_alias=AliasChoices("staging_dir", "OutputUnzipped"),
    )
    output_archive: Path = Field(
        description="Path of the packaged output archive",
        validation_alias=AliasChoices("output_archive", "OutputZipped"),
    )
    core_category: str = Field(
        default=DEFAULT_CORE_CATEGORY,
        min_length=1,
        description="Category id whose components are installed",
    )
    http: HttpSettings = Field(default_factory=HttpSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @model_validator(mode="before")
    @classmethod
    def _lift_legacy_log_flag(cls, data: Any) -> Any:
        """Move a top-level ``LogFile`` flag into the ``logging`` section."""

        if not isinstance(data, Mapping) or "LogFile" not in data:
            return data
        payload: Dict[str, Any] = dict(data)
        flag = payload.pop("LogFile")
        section = payload.get("logging")
        merged: Dict[str, Any] = dict(section) if isinstance(section, Mapping) else {}
        merged.setdefault("log_file", flag)
        payload["logging"] = merged
        return payload

    @field_validator("manifest_source")
    @classmethod
    def _require_source(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("manifest_source must not be empty")
        return stripped


# --- Environment Overrides -----------------------------------------------------


class EnvironmentOverrides(BaseSettings):
    """Pydantic settings model exposing ``FPZ_``-prefixed environment overrides."""

    manifest_source: Optional[str] = None
    staging_dir: Optional[Path] = None
    output_archive: Optional[Path] = None
    log_level: Optional[str] = None

    model_config = SettingsConfigDict(env_prefix="FPZ_", case_sensitive=False, extra="ignore")


def apply_environment_overrides(
    raw: Mapping[str, Any], overrides: Optional[EnvironmentOverrides] = None
) -> Dict[str, Any]:
    """Return a copy of ``raw`` with environment-provided values applied."""

    env = overrides or EnvironmentOverrides()
    merged: MutableMapping[str, Any] = dict(raw)
    legacy_keys = {
        "manifest_source": "XmlSource",
        "staging_dir": "OutputUnzipped",
        "output_archive": "OutputZipped",
    }
    for key, legacy in legacy_keys.items():
        value = getattr(env, key)
        if value is None:
            continue
        merged.pop(legacy, None)
        merged[key] = value
    if env.log_level is not None:
        section = merged.get("logging")
        logging_section: Dict[str, Any] = dict(section) if isinstance(section, Mapping) else {}
        logging_section["level"] = env.log_level
        merged["logging"] = logging_section
    return dict(merged)


# --- Configuration Loading -----------------------------------------------------


def load_raw_config(config_path: Path) -> Mapping[str, Any]:
    """Read a YAML or JSON configuration file and return its top-level mapping."""

    normalized_path = Path(config_path).expanduser()
    if not normalized_path.exists():
        raise ConfigError(f"Configuration file not found: {normalized_path}")

    try:
        with normalized_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except yaml.YAMLError as exc:
        raise UserConfigError(
            f"Configuration file '{normalized_path}' contains invalid YAML or JSON"
        ) from exc

    if not isinstance(data, Mapping):
        raise UserConfigError("Configuration file must contain a mapping at the root")
    return data


def load_config(
    config_path: Path = DEFAULT_CONFIG_PATH,
    *,
    overrides: Optional[Mapping[str, Any]] = None,
) -> BundleConfig:
    """Load, merge, and validate configuration suitable for execution.

    Precedence, lowest first: the configuration file, ``FPZ_`` environment
    variables, then explicit ``overrides`` (typically CLI options).
    """

    raw = load_raw_config(config_path)
    merged = apply_environment_overrides(raw)
    if overrides:
        merged.update({key: value for key, value in overrides.items() if value is not None})
    try:
        return BundleConfig.model_validate(merged)
    except ValidationError as exc:
        raise UserConfigError(f"Invalid configuration in '{config_path}': {exc}") from exc
