# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/rigup/config/loader.py

import logging
import os
import yaml
from pathlib import Path
from .models import WorkstationConfig

log = logging.getLogger("rigup")


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Recursively merge *override* into *base* (mutates base).
    Mappings merge key by key; any other value, null and "" included,
    replaces what the base had.
    """
    for key, value in override.items():
        if (
            key in base
            and isinstance(base[key], dict)
            and isinstance(value, dict)
        ):
            _deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def _find_overrides_file(config_path: Path) -> Path | None:
    """
    Locate host-local overrides using this priority:

    1. RIGUP_OVERRIDES_FILE environment variable (explicit override)
    2. local.yaml in the same directory as the config
    """
    env = os.environ.get("RIGUP_OVERRIDES_FILE")
    if env:
        p = Path(env)
        if p.is_file():
            return p
        log.warning("RIGUP_OVERRIDES_FILE=%s does not exist, skipping", env)
        return None

    p = config_path.parent / "local.yaml"
    if p.is_file() and p.resolve() != config_path.resolve():
        return p

    return None


def _load_yaml(path: Path) -> dict:
    """Load a YAML file, expanding ${ENV_VAR} references."""
    raw = path.read_text()
    expanded = os.path.expandvars(raw)
    data = yaml.safe_load(expanded) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def load_config(path: str | Path | None = None) -> WorkstationConfig:
    """
    Load and validate a workstation YAML config.

    With no path the built-in defaults are returned. Otherwise the file is
    read with ``${ENV_VAR}`` expansion, a host-local overrides file (see
    ``_find_overrides_file``) is deep-merged over it, and the result is
    validated by pydantic.
    """
    if path is None:
        return WorkstationConfig()

    path = Path(path)
    data = _load_yaml(path)

    overrides_path = _find_overrides_file(path)
    if overrides_path:
        log.debug("Merging overrides from %s", overrides_path)
        _deep_merge(data, _load_yaml(overrides_path))
    else:
        log.debug("No overrides file found")

    return WorkstationConfig.model_validate(data)
