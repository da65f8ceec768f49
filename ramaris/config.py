from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ramaris.obs.logging import LogSettings

DEFAULT_BASE_URL = "https://www.ramaris.app/api/v1"
API_KEY_ENV = "RAMARIS_API_KEY"
BASE_URL_ENV = "RAMARIS_BASE_URL"


class ConfigError(Exception):
    """Raised when configuration cannot be loaded or validated."""


class ClientConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    api_key: str = Field(min_length=1, repr=False)
    base_url: str = Field(default=DEFAULT_BASE_URL)
    timeout_s: float = Field(default=30, gt=0)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = Field(default=None)
    log_jsonl: bool = Field(default=True)
    log_file: Path | None = Field(default=None)

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"base_url must be an http(s) URL: {value}")
        return value.rstrip("/")

    def log_settings(self) -> LogSettings | None:
        """Handler settings for the client, or None to leave logging to the application."""
        if self.log_level is None:
            return None
        return LogSettings(level=self.log_level, log_file=self.log_file, jsonl=self.log_jsonl)


@dataclass(frozen=True)
class LoadedConfig:
    config: ClientConfig
    raw: dict[str, Any]


def _validate(payload: Mapping[str, Any], env: Mapping[str, str]) -> ClientConfig:
    merged = dict(payload)
    if not merged.get("api_key") and env.get(API_KEY_ENV):
        merged["api_key"] = env[API_KEY_ENV]
    if "base_url" not in merged and env.get(BASE_URL_ENV):
        merged["base_url"] = env[BASE_URL_ENV]
    try:
        return ClientConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc


def config_from_env(env: Mapping[str, str] | None = None) -> ClientConfig:
    """Build a config from RAMARIS_API_KEY and RAMARIS_BASE_URL."""
    return _validate({}, os.environ if env is None else env)


def load_config(path: Path, env: Mapping[str, str] | None = None) -> LoadedConfig:
    """
    Load client settings from a YAML file.

    Settings may sit under a top-level ``ramaris:`` key or at the root.
    A missing ``api_key`` falls back to the RAMARIS_API_KEY variable.
    """
    if not path.exists():
        raise ConfigError(f"Config not found: {path}")

    try:
        payload = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML: {exc}") from exc

    if not isinstance(payload, dict):
        raise ConfigError("Config root must be a mapping")

    section = payload.get("ramaris", payload)
    if not isinstance(section, dict):
        raise ConfigError("ramaris section must be a mapping")

    config = _validate(section, os.environ if env is None else env)
    return LoadedConfig(config=config, raw=payload)
