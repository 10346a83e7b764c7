"""Read ``osac-provisioner.yaml`` into a validated :class:`Config`."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

from dotenv import dotenv_values
from pydantic import ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.constructor import SafeConstructor

from osac_provisioner.config.schema import Config

if TYPE_CHECKING:
    from collections.abc import Mapping

    from osac_provisioner.resources.base import Resource

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """The configuration file is missing, malformed or invalid."""


PROVIDER_ENV_VARS: dict[str, str] = {
    "endpoint": "OSAC_ENDPOINT",
    "token": "OSAC_TOKEN",
    "insecure": "OSAC_INSECURE",
    "plaintext": "OSAC_PLAINTEXT",
}

_BOOL_FIELDS = frozenset({"insecure", "plaintext"})


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        raw = YAML(typ="safe").load(path)
    except Exception as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{path}: expected a mapping at the top level")
    return raw


def _environment(config_dir: Path) -> dict[str, str]:
    """Provider variables from the process environment, falling back to ``.env``."""
    env_file = config_dir / ".env"
    merged: dict[str, str] = {}
    if env_file.is_file():
        logger.debug("Reading %s", env_file)
        dotenv = dotenv_values(env_file, encoding="utf-8-sig")
        merged.update({k: v for k, v in dotenv.items() if v is not None})
    merged.update({k: v for k, v in os.environ.items() if k in PROVIDER_ENV_VARS.values()})
    return merged


def _parse_bool(env_key: str, value: str) -> bool:
    parsed = SafeConstructor.bool_values.get(value.lower())
    if parsed is None:
        raise ConfigError(f"Invalid boolean for {env_key}: {value!r}")
    return parsed


def _resolve_provider(raw: Mapping[str, Any], env: Mapping[str, str]) -> dict[str, Any]:
    """Fill provider fields missing from YAML from *env*."""
    resolved = {k: v for k, v in raw.items() if v is not None}
    for field, env_key in PROVIDER_ENV_VARS.items():
        if field in resolved or env_key not in env:
            continue
        value = env[env_key]
        resolved[field] = _parse_bool(env_key, value) if field in _BOOL_FIELDS else value
    return resolved


def _validate_unique_names(resources: list[Resource]) -> list[str]:
    """Names must be unique per kind; the service looks objects up by name."""
    first_seen: dict[tuple[str, str], str] = {}
    errors: list[str] = []
    for r in resources:
        key = (r.namespace, r.name)
        if key in first_seen:
            errors.append(
                f"Duplicate {r.namespace} name '{r.name}': "
                f"found in both {first_seen[key]} and {r.address}"
            )
        else:
            first_seen[key] = r.address
    return errors


def load_config(path: Path | str) -> Config:
    """Load and validate a configuration file.

    Provider settings missing from the YAML are taken from ``OSAC_*``
    environment variables, then from a ``.env`` file beside the config.
    A relative ``state_path`` is resolved against the config directory.

    Raises:
        ConfigError: On unreadable YAML, validation failures or duplicate names.
    """
    path = Path(path)
    raw = _read_yaml(path)
    config_dir = path.parent

    try:
        raw["provider"] = _resolve_provider(raw.get("provider") or {}, _environment(config_dir))
        config = Config.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc

    config.config_dir = config_dir
    if not config.state_path.is_absolute():
        config.state_path = config_dir / config.state_path

    errors = _validate_unique_names(config.resources)
    if errors:
        raise ConfigError("\n".join(errors))

    logger.info("Loaded %s: %d resources", path, len(config.resources))
    return config
