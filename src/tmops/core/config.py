"""Profile-based configuration for TM server connections.

Settings are loaded with Pydantic Settings. Sources, highest priority first:
explicit keyword arguments, `TMOPS_*` environment variables, then the
selected profile section of an INI file (`~/.tmopscfg` by default,
overridable with TMOPS_CONFIG_FILE).

Example profile file:
    [DEFAULT]
    host = https://tm.example.com

    [prod]
    host = https://tm-prod.example.com
    token = ...
    timeout = 10
"""

from __future__ import annotations

import configparser
import os
from pathlib import Path
from typing import Any

from pydantic import Field, ValidationError, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

CONFIG_FILE_ENV = "TMOPS_CONFIG_FILE"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_PROFILE = "DEFAULT"


class ConfigError(ValueError):
    """Raised when the TM server configuration is missing or invalid."""


def config_file_path() -> Path:
    """Return the config file path, honoring env override."""
    override = os.getenv(CONFIG_FILE_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".tmopscfg"


def _sanitize_host(host: str) -> str:
    """
    Normalize a TM server host URL.

    - Removes query strings (e.g. '?tenant=acme')
    - Removes trailing slashes
    """
    host = host.strip().split("?", 1)[0]
    return host.rstrip("/")


def _read_profile(path: Path, profile: str | None) -> dict[str, str]:
    """Read one profile section from the config file (empty if absent)."""
    named = bool(profile) and profile != DEFAULT_PROFILE
    if not path.exists():
        if named:
            raise ConfigError(f"Profile '{profile}' not found: {path} does not exist.")
        return {}

    parser = configparser.ConfigParser()
    try:
        parser.read(path)
    except configparser.Error as exc:
        raise ConfigError(f"Could not parse {path}: {exc}") from exc

    if not named:
        return dict(parser.defaults())
    if not parser.has_section(profile):
        raise ConfigError(f"Profile '{profile}' not found in {path}.")
    return dict(parser.items(profile))


class ProfileFileSettingsSource(PydanticBaseSettingsSource):
    """Settings source reading one profile section of the tmops INI file."""

    def __init__(self, settings_cls: type[BaseSettings], profile: str | None):
        super().__init__(settings_cls)
        self.profile = profile
        self._values = _read_profile(config_file_path(), profile)

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        return self._values.get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for field_name, field in self.settings_cls.model_fields.items():
            value, key, _ = self.get_field_value(field, field_name)
            if value is not None and value != "":
                data[key] = value
        return data


class TMOpsConfig(BaseSettings):
    """Resolved connection settings for one profile.

    All fields can be overridden via environment variables with the TMOPS_
    prefix (TMOPS_HOST, TMOPS_TOKEN, TMOPS_TIMEOUT, TMOPS_PROFILE).
    """

    host: str = Field(description="Base URL of the TM server management API")
    token: str | None = Field(default=None, description="Bearer token for the session")
    timeout: float = Field(
        default=DEFAULT_TIMEOUT_SECONDS,
        gt=0,
        description="Timeout for every TM server call (seconds)",
    )
    profile: str | None = Field(default=None, description="Profile section name")

    model_config = SettingsConfigDict(
        env_prefix="TMOPS_",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    @field_validator("host")
    @classmethod
    def _check_host(cls, value: str) -> str:
        host = _sanitize_host(value)
        if not host:
            raise ValueError("host must not be empty")
        return host

    @field_validator("token")
    @classmethod
    def _blank_token_is_none(cls, value: str | None) -> str | None:
        return value or None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        profile = init_settings().get("profile") or env_settings().get("profile")
        return (
            init_settings,
            env_settings,
            ProfileFileSettingsSource(settings_cls, profile),
        )


def load_config(profile: str | None = None) -> TMOpsConfig:
    """
    Resolve the connection settings for a profile.

    Raises:
        ConfigError: If the profile does not exist, no host is configured,
            or a value fails validation (e.g. a non-positive timeout).
    """
    try:
        return TMOpsConfig(profile=profile) if profile else TMOpsConfig()
    except ValidationError as exc:
        fields = {str(err["loc"][0]) for err in exc.errors() if err.get("loc")}
        if "host" in fields:
            raise ConfigError(
                "No TM server host configured. Set TMOPS_HOST or add `host` "
                f"to the profile in {config_file_path()}."
            ) from exc
        raise ConfigError(f"Invalid TM server configuration: {exc}") from exc
