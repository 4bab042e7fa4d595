"""Core configuration.

Why here:
- Environment-driven defaults (pydantic-settings) live apart from the CLI.
- The JSON secrets file and the token precedence rule are plain functions so
  they can be tested without touching the network.
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Literal

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.domain.models import TokenConfig
from core.errors import ConfigError

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def get_user_config_dir() -> Path:
    """Per-user configuration directory (cross-platform, no dependencies)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "ejudge-users"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "ejudge-users"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "ejudge-users"
    return Path.home() / ".config" / "ejudge-users"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


class AppSettings(BaseSettings):
    """Defaults for the CLI.

    The API token is deliberately absent: it only comes from `--token` or
    the secrets file.
    """

    model_config = SettingsConfigDict(
        env_prefix="EJUDGE_USERS_",
        extra="ignore",
        case_sensitive=False,
        # Project first (dev), then the user's global config.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    base_url: str = Field(
        default="http://localhost",
        description="Base URL of the ejudge installation.",
    )
    http_timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        description="Timeout per request (seconds).",
    )
    user_agent: str = Field(
        default="ejudge-users/0.1",
        min_length=1,
        description="User-Agent sent with every request.",
    )
    log_level: LogLevel = Field(
        default="INFO",
        description="Root log level when --verbose is not given.",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: object) -> object:
        return value.strip().upper() if isinstance(value, str) else value


def load_settings() -> AppSettings:
    """Build `AppSettings`, reporting bad env values as `ConfigError`."""

    try:
        return AppSettings()
    except ValidationError as exc:
        raise ConfigError(f"invalid settings: {exc}") from exc


def load_token_config(path: str | Path | None) -> TokenConfig:
    """Load the JSON secrets file.

    An empty path means "no config". Exactly one JSON object is accepted and
    `token` is its only allowed field.
    """

    if path is None or not str(path).strip():
        return TokenConfig()

    path = Path(str(path).strip())
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"opening config file '{path}': {exc}") from exc

    if not raw.strip():
        raise ConfigError("config file is empty")

    decoder = json.JSONDecoder()
    start = len(raw) - len(raw.lstrip())
    try:
        data, end = decoder.raw_decode(raw, start)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"decoding config '{path}': {exc}") from exc

    if raw[end:].strip():
        raise ConfigError(f"config file '{path}' contains multiple JSON values")

    if not isinstance(data, dict):
        raise ConfigError(f"decoding config '{path}': expected a JSON object")

    try:
        return TokenConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"decoding config '{path}': {exc}") from exc


def resolve_token(cli_token: str | None, config_token: str | None) -> str:
    """CLI token wins when non-blank; otherwise the config file's token."""

    token = (cli_token or "").strip() or (config_token or "").strip()
    if not token:
        raise ConfigError("no API token provided: specify it via --token or in the config file")
    # Header values are sent as ASCII; control characters would split the header.
    if not all(32 <= ord(ch) < 127 or ch == "\t" for ch in token):
        raise ConfigError("API token contains characters not allowed in an HTTP header")
    return token
