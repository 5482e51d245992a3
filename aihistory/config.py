"""Configuration using Pydantic Settings for automatic env var support.

Every component takes its settings through its constructor; nothing reads
configuration from module globals at request time.  Values come from, in
increasing priority: defaults, an optional JSON file, ``AIHISTORY_*`` env vars.

    AIHISTORY_PARSER__DEFAULT_ROLE=user
    AIHISTORY_RESOLVER__MAX_BYTES=1048576
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, EnvSettingsSource, SettingsConfigDict

from aihistory.errors import ConfigError
from aihistory.lib import json as jsonlib
from aihistory.lib.log import get_logger
from aihistory.lib.roles import Role

logger = get_logger(__name__)

CONFIG_ENV = "AIHISTORY_CONFIG"

MAX_ATTACHMENT_BYTES = 64 * 1024 * 1024
ATTACHMENT_FETCH_TIMEOUT_SECONDS = 15.0
DISCOVERY_NODE_BUDGET = 2600


class ParserSettings(BaseSettings):
    """Knobs for format detection and extraction."""

    default_role: Role = Field(default=Role.ASSISTANT)
    html_min_turns: int = Field(default=2, ge=1)
    sniff_chars: int = Field(default=300, ge=0)

    model_config = SettingsConfigDict(
        env_prefix="AIHISTORY_PARSER__",
        extra="ignore",
    )


class ResolverSettings(BaseSettings):
    """Limits applied while resolving attachment hints."""

    max_bytes: int = Field(default=MAX_ATTACHMENT_BYTES, ge=1)
    timeout_seconds: float = Field(default=ATTACHMENT_FETCH_TIMEOUT_SECONDS, gt=0)
    discovery_node_budget: int = Field(default=DISCOVERY_NODE_BUDGET, ge=1)
    connect_attempts: int = Field(default=2, ge=1)
    user_agent: str | None = Field(default=None)

    model_config = SettingsConfigDict(
        env_prefix="AIHISTORY_RESOLVER__",
        extra="ignore",
    )


_SECTIONS: dict[str, type[BaseSettings]] = {
    "parser": ParserSettings,
    "resolver": ResolverSettings,
}


class Settings(BaseSettings):
    """Top-level settings bundle."""

    parser: ParserSettings = Field(default_factory=ParserSettings)
    resolver: ResolverSettings = Field(default_factory=ResolverSettings)
    config_path: Path | None = Field(default=None)

    model_config = SettingsConfigDict(
        env_prefix="AIHISTORY_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @classmethod
    def from_json_file(cls, path: Path) -> Settings:
        """Load settings from a JSON file; raises ConfigError on bad content.

        ``AIHISTORY_*`` env vars still override the values the file sets.
        """
        try:
            data = jsonlib.loads(path.read_bytes())
        except (OSError, ValueError) as exc:
            raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a JSON object")

        config_dict: dict[str, Any] = {"config_path": path}
        try:
            for key, section_cls in _SECTIONS.items():
                section = data.get(key)
                values: dict[str, Any] = dict(section) if isinstance(section, dict) else {}
                values.update(EnvSettingsSource(section_cls)())
                config_dict[key] = section_cls(**values)
            return cls(**config_dict)
        except ValidationError as exc:
            raise ConfigError(f"Invalid config file {path}: {exc}") from exc

    @classmethod
    def load(cls) -> Settings:
        """Load settings from ``$AIHISTORY_CONFIG`` if set, else env/defaults."""
        env_path = os.environ.get(CONFIG_ENV)
        if env_path:
            path = Path(env_path).expanduser()
            if path.exists():
                try:
                    return cls.from_json_file(path)
                except ConfigError as exc:
                    logger.warning("config_load_failed", path=str(path), error=str(exc))
        return cls()


__all__ = [
    "ATTACHMENT_FETCH_TIMEOUT_SECONDS",
    "CONFIG_ENV",
    "DISCOVERY_NODE_BUDGET",
    "MAX_ATTACHMENT_BYTES",
    "ParserSettings",
    "ResolverSettings",
    "Settings",
]
