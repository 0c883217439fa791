from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from libstorage_client.config.schema import ClientConfig, lower_keys
from libstorage_client.errors import ConfigurationError

# Environment variables applied on top of the file, keyed by config path.
ENV_OVERRIDES: dict[str, tuple[str, ...]] = {
    "LIBSTORAGE_HOST": ("libstorage", "host"),
    "LIBSTORAGE_CLIENT_LOCALDEVICESFILE": ("libstorage", "client", "localdevicesfile"),
    "LIBSTORAGE_CLIENT_HTTP_LOGGING_LOGREQUEST": (
        "libstorage", "client", "http", "logging", "logrequest",
    ),
    "LIBSTORAGE_CLIENT_HTTP_LOGGING_LOGRESPONSE": (
        "libstorage", "client", "http", "logging", "logresponse",
    ),
}


class ConfigLoader:
    """Reads a YAML config file, applies environment overrides and validates it."""

    def __init__(self, path: Path | None = None, environ: Mapping[str, str] | None = None) -> None:
        self.path = path
        self.environ = os.environ if environ is None else environ

    def load(self) -> ClientConfig:
        raw = self._read(self.path) if self.path is not None else {}
        raw = apply_env_overrides(raw, self.environ)
        try:
            return ClientConfig.model_validate(raw)
        except ValidationError as e:
            raise ConfigurationError(f"{self._label}: Validation error: {e}") from e

    def _read(self, path: Path) -> dict[str, Any]:
        try:
            text = path.read_text()
        except OSError as e:
            raise ConfigurationError(f"{path}: cannot read config file: {e}") from e
        try:
            raw = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"{path}: Invalid YAML: {e}") from e
        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise ConfigurationError(f"{path}: Expected a YAML mapping at top level")
        return raw

    @property
    def _label(self) -> str:
        return str(self.path) if self.path is not None else "<environment>"


def apply_env_overrides(raw: dict[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    """Return a copy of ``raw`` with any set override variables written into it."""
    result = lower_keys(raw)
    for var, keys in ENV_OVERRIDES.items():
        value = environ.get(var)
        if value is None:
            continue
        node = result
        for key in keys[:-1]:
            child = node.get(key)
            if not isinstance(child, dict):
                child = {}
                node[key] = child
            node = child
        node[keys[-1]] = value
    return result


def load_config(path: Path | None = None) -> ClientConfig:
    """Load client config from ``path`` (if given) plus the environment."""
    return ConfigLoader(path).load()
