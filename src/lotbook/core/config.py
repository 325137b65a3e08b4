"""
Layered configuration for lotbook.

Sources, lowest precedence first:
    1. Built-in defaults (``DEFAULTS``)
    2. A YAML or JSON file
    3. Environment variables ``LOTBOOK_<SECTION>__<KEY>``

Values stay raw (env vars are strings) until ``Config.validated()`` runs
them through the pydantic schema in ``config_schema``.

Usage:
    config = Config(config_file="lotbook.yaml")
    config.get("ledger.money_places")
    settings = config.validated()
    settings.schedule.tolerance
"""

from __future__ import annotations

import copy
import json
import os
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import yaml
from pydantic import ValidationError

from .exceptions import ConfigurationError
from .types import PathLike

if TYPE_CHECKING:
    from .config_schema import LotbookConfig

ENV_PREFIX = "LOTBOOK_"

DEFAULTS: dict[str, Any] = {
    "ledger": {"money_places": 2, "default_currency": "USD"},
    "schedule": {"tolerance": 1e-6},
    "projection": {"max_workers": 4},
    "logging": {"level": "WARNING", "file": None},
}


class Config:
    """
    Merged view of defaults, config file and environment.

    Nested keys in env var names are separated by a double underscore:
    LOTBOOK_LEDGER__MONEY_PLACES=4 -> config["ledger"]["money_places"] = "4"
    """

    def __init__(self, config_file: PathLike | None = None, env_prefix: str = ENV_PREFIX):
        """
        Args:
            config_file: YAML (.yaml/.yml) or JSON file. Must exist when given.
            env_prefix: Prefix for environment overrides; empty disables them.
        """
        self.config_file = os.fspath(config_file) if config_file else None
        self.env_prefix = env_prefix or ""

        self.config_data: dict[str, Any] = copy.deepcopy(DEFAULTS)
        if self.config_file:
            _merge(self.config_data, read_config_file(self.config_file))
        if self.env_prefix:
            _merge(self.config_data, env_overrides(self.env_prefix, os.environ))

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Look up a dotted path such as ``"schedule.tolerance"``.

        Returns ``default`` when any segment is missing.
        """
        node: Any = self.config_data
        for part in key_path.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def set(self, key_path: str, value: Any) -> None:
        """Set a dotted path, creating (or replacing non-dict) parents."""
        *parents, leaf = key_path.split(".")
        node = self.config_data
        for part in parents:
            if not isinstance(node.get(part), dict):
                node[part] = {}
            node = node[part]
        node[leaf] = value

    def validated(self) -> LotbookConfig:
        """Return the merged configuration as a validated ``LotbookConfig``.

        Raises:
            ConfigurationError: if any value fails schema validation.
        """
        from .config_schema import LotbookConfig

        try:
            return LotbookConfig.model_validate(self.config_data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e


def read_config_file(path: str) -> dict[str, Any]:
    """Parse a YAML or JSON config file into a dict.

    Raises:
        ConfigurationError: missing file, unknown extension, parse error, or
            a top level that is not a mapping.
    """
    if not os.path.exists(path):
        raise ConfigurationError(f"Config file not found: {path}")

    ext = os.path.splitext(path)[1].lower()
    if ext not in (".yaml", ".yml", ".json"):
        raise ConfigurationError(f"Unsupported config file type: {path}")

    with open(path, encoding="utf-8") as f:
        try:
            data = json.load(f) if ext == ".json" else yaml.safe_load(f)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Could not parse {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping at the top level")
    return data


def env_overrides(prefix: str, environ: Mapping[str, str]) -> dict[str, Any]:
    """Collect ``PREFIX_SECTION__KEY=value`` variables into a nested dict."""
    overrides: dict[str, Any] = {}
    for name, value in environ.items():
        if not name.startswith(prefix) or len(name) == len(prefix):
            continue
        *parents, leaf = name[len(prefix) :].lower().split("__")
        node = overrides
        for part in parents:
            if not isinstance(node.get(part), dict):
                node[part] = {}
            node = node[part]
        node[leaf] = value
    return overrides


def _merge(target: dict[str, Any], source: Mapping[str, Any]) -> None:
    """Recursively merge ``source`` into ``target`` in place."""
    for key, value in source.items():
        if isinstance(value, Mapping) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        else:
            target[key] = copy.deepcopy(value) if isinstance(value, Mapping) else value
