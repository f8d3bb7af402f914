"""Connection settings for AnkiConnect."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ankirpc.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8765
DEFAULT_TIMEOUT_SECONDS = 10

ENV_HOST = "ANKICONNECT_HOST"
ENV_PORT = "ANKICONNECT_PORT"
ENV_API_KEY = "ANKICONNECT_API_KEY"
ENV_ALLOW_DUPLICATES = "ANKICONNECT_ALLOW_DUPLICATES"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", ""})


@dataclass(frozen=True)
class ConnectionConfig:
    """Where AnkiConnect lives and how requests to it are shaped."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    api_key: str = ""
    allow_duplicates: bool = False
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"


class _RawConnectionConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    host: str = DEFAULT_HOST
    port: int = Field(default=DEFAULT_PORT, gt=0, lt=65536)
    api_key: str = ""
    allow_duplicates: bool = False
    timeout_seconds: int = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)

    @field_validator("host")
    @classmethod
    def _validate_host(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("must be a non-empty string")
        return normalized


_active_config = ConnectionConfig()


def get_config() -> ConnectionConfig:
    """Return the process-wide connection config."""
    return _active_config


def configure(config: ConnectionConfig | None = None, **overrides) -> ConnectionConfig:
    """Replace the process-wide config.

    Starts from ``config`` (or the current config) and applies ``overrides``.
    Values are validated the same way as config files.
    """
    global _active_config
    base = config if config is not None else _active_config
    merged = {
        "host": base.host,
        "port": base.port,
        "api_key": base.api_key,
        "allow_duplicates": base.allow_duplicates,
        "timeout_seconds": base.timeout_seconds,
        **overrides,
    }
    _active_config = _validate(merged, source="configure()")
    logger.debug(f"AnkiConnect endpoint set to {_active_config.url}")
    return _active_config


def reset_config() -> ConnectionConfig:
    """Restore the default config."""
    global _active_config
    _active_config = ConnectionConfig()
    return _active_config


def config_from_env(environ: Mapping[str, str] | None = None) -> ConnectionConfig:
    """Build a config from ``ANKICONNECT_*`` environment variables.

    Unset variables keep their defaults.
    """
    env = os.environ if environ is None else environ
    raw: dict[str, object] = {}
    if ENV_HOST in env:
        raw["host"] = env[ENV_HOST]
    if ENV_PORT in env:
        raw["port"] = env[ENV_PORT]
    if ENV_API_KEY in env:
        raw["api_key"] = env[ENV_API_KEY]
    if ENV_ALLOW_DUPLICATES in env:
        raw["allow_duplicates"] = _parse_flag(
            env[ENV_ALLOW_DUPLICATES], ENV_ALLOW_DUPLICATES
        )
    return _validate(raw, source="environment")


def load_config(path: Path) -> ConnectionConfig:
    """Load a config from a YAML mapping file."""
    if not path.exists() or not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    try:
        with path.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle) or {}
    except yaml.YAMLError as error:
        raise ConfigError(f"Config file is not valid YAML: {path}: {error}") from None
    if not isinstance(raw, dict):
        raise ConfigError(f"Config must be a YAML mapping: {path}")
    return _validate(raw, source=str(path))


def _parse_flag(value: str, name: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean flag, got '{value}'")


def _validate(raw: Mapping[str, object], *, source: str) -> ConnectionConfig:
    try:
        parsed = _RawConnectionConfig.model_validate(dict(raw))
    except ValidationError as error:
        first = error.errors()[0]
        field_path = ".".join(str(part) for part in first.get("loc", ()))
        detail = first.get("msg", "invalid value")
        if field_path:
            raise ConfigError(
                f"Invalid connection config ({source}) field '{field_path}': {detail}"
            ) from None
        raise ConfigError(f"Invalid connection config ({source}): {detail}") from None

    return ConnectionConfig(
        host=parsed.host,
        port=parsed.port,
        api_key=parsed.api_key,
        allow_duplicates=parsed.allow_duplicates,
        timeout_seconds=parsed.timeout_seconds,
    )
