from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, ValidationError, field_validator

from code_assist_adapter import constants
from code_assist_adapter.exceptions import ConfigurationError
from code_assist_adapter.model_bases import DomainModel
from code_assist_adapter.models import ClientMetadata

logger = logging.getLogger(__name__)


def _env_to_int(name: str, default: Any, env: Mapping[str, str]) -> Any:
    """Return an environment variable parsed as an integer."""
    value = env.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        if logger.isEnabledFor(logging.WARNING):
            logger.warning(f"Ignoring invalid integer for {name}: {value!r}")
        return default


def _env_to_float(name: str, default: Any, env: Mapping[str, str]) -> Any:
    """Return an environment variable parsed as a float."""
    value = env.get(name)
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        if logger.isEnabledFor(logging.WARNING):
            logger.warning(f"Ignoring invalid number for {name}: {value!r}")
        return default


def _validate_url(v: str) -> str:
    if not v.startswith(("http://", "https://")):
        raise ValueError("URL must start with http:// or https://")
    return v.rstrip("/")


class LogLevel(str, Enum):
    """Log levels for configuration."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LoggingConfig(DomainModel):
    """Logging configuration."""

    level: LogLevel = LogLevel.INFO
    log_file: str | None = None


class AdapterConfig(DomainModel):
    """Settings for the Code Assist adapter and its command line."""

    base_url: str = constants.CODE_ASSIST_BASE_URL
    resource_manager_url: str = constants.RESOURCE_MANAGER_PROJECTS_URL
    default_model: str = constants.DEFAULT_MODEL
    tier_id: str = constants.FREE_TIER_ID
    onboarding_poll_interval: float = Field(
        constants.ONBOARDING_POLL_INTERVAL_SECONDS, ge=0
    )
    onboarding_max_retries: int = Field(constants.ONBOARDING_MAX_RETRIES, ge=0)
    connect_timeout: float = Field(constants.DEFAULT_CONNECTION_TIMEOUT, gt=0)
    read_timeout: float = Field(constants.DEFAULT_READ_TIMEOUT, gt=0)
    client_metadata: ClientMetadata = Field(default_factory=ClientMetadata)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("base_url", "resource_manager_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        return _validate_url(v)

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> AdapterConfig:
        """Build a configuration from environment variables only."""
        return cls._build({}, os.environ if env is None else env)

    @classmethod
    def _build(cls, data: dict[str, Any], env: Mapping[str, str]) -> AdapterConfig:
        values = dict(data)
        if "CODE_ASSIST_BASE_URL" in env:
            values["base_url"] = env["CODE_ASSIST_BASE_URL"]
        if "CODE_ASSIST_MODEL" in env:
            values["default_model"] = env["CODE_ASSIST_MODEL"]
        if "CODE_ASSIST_TIER_ID" in env:
            values["tier_id"] = env["CODE_ASSIST_TIER_ID"]
        values["onboarding_poll_interval"] = _env_to_float(
            "CODE_ASSIST_POLL_INTERVAL",
            values.get("onboarding_poll_interval", constants.ONBOARDING_POLL_INTERVAL_SECONDS),
            env,
        )
        values["onboarding_max_retries"] = _env_to_int(
            "CODE_ASSIST_MAX_RETRIES",
            values.get("onboarding_max_retries", constants.ONBOARDING_MAX_RETRIES),
            env,
        )
        values["connect_timeout"] = _env_to_float(
            "CODE_ASSIST_CONNECT_TIMEOUT",
            values.get("connect_timeout", constants.DEFAULT_CONNECTION_TIMEOUT),
            env,
        )
        values["read_timeout"] = _env_to_float(
            "CODE_ASSIST_READ_TIMEOUT",
            values.get("read_timeout", constants.DEFAULT_READ_TIMEOUT),
            env,
        )

        logging_values = dict(values.get("logging") or {})
        if "LOG_LEVEL" in env:
            logging_values["level"] = env["LOG_LEVEL"].upper()
        if "LOG_FILE" in env:
            logging_values["log_file"] = env["LOG_FILE"]
        values["logging"] = logging_values

        try:
            return cls.model_validate(values)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid configuration: {e.error_count()} error(s)",
                details={"errors": e.errors(include_url=False)},
            ) from e


def load_config(
    path: str | Path | None = None, env: Mapping[str, str] | None = None
) -> AdapterConfig:
    """Load configuration from an optional YAML file, then apply environment overrides.

    Args:
        path: YAML configuration file; ``None`` uses defaults only
        env: Environment mapping, defaults to ``os.environ``

    Raises:
        ConfigurationError: If the file is missing, is not a YAML mapping,
            or the merged values do not validate
    """
    env = os.environ if env is None else env
    data: dict[str, Any] = {}
    if path is not None:
        config_path = Path(path)
        if not config_path.is_file():
            raise ConfigurationError(f"Configuration file not found: {config_path}")
        try:
            with config_path.open(encoding="utf-8") as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigurationError(
                f"Configuration file {config_path} must contain a mapping"
            )
        data = loaded
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Loaded configuration from {config_path}")
    return AdapterConfig._build(data, env)
