# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""
Factory methods for creating blueda configurations.

This module provides factory functions for creating BluedaConfig instances:
- from_file_factory: Load from a YAML file, then apply overrides
- from_dict_factory: Validate an in-memory mapping
- parse_section: Validate the keys a component receives from its section

All three turn every loading or validation failure into a ConfigurationError so
that a bad configuration aborts the run before any simulation step.
"""

from pathlib import Path
from typing import Any, Dict, Optional, TYPE_CHECKING, Union

import yaml
from pydantic import ValidationError

from blueda.core.exceptions import ConfigurationError, ConfigValidationError

if TYPE_CHECKING:
    from blueda.core.config.models import BluedaConfig


def _deep_merge(base: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge *updates* into a copy of *base*."""
    merged = dict(base)
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _expand_dotted(overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Turn ``{'logging.level': 'DEBUG'}`` into ``{'logging': {'level': 'DEBUG'}}``."""
    nested: Dict[str, Any] = {}
    for key, value in overrides.items():
        parts = key.split('.')
        node = nested
        for part in parts[:-1]:
            node = node.setdefault(part, {})
        node[parts[-1]] = value
    return nested


def _format_validation_error(error: ValidationError) -> str:
    """Render a pydantic ValidationError as one line per offending field."""
    lines = []
    for item in error.errors():
        location = '.'.join(str(part) for part in item.get('loc', ())) or '<root>'
        lines.append(f"  {location}: {item.get('msg')}")
    return "Invalid configuration:\n" + "\n".join(lines)


def from_dict_factory(
    cls: type,
    data: Dict[str, Any],
    base_dir: Optional[Union[str, Path]] = None,
) -> 'BluedaConfig':
    """
    Validate a configuration mapping.

    Args:
        cls: BluedaConfig class
        data: Nested configuration mapping
        base_dir: Directory used to resolve relative paths

    Raises:
        ConfigValidationError: If a section fails validation
    """
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration must be a mapping, got {type(data).__name__}"
        )
    payload = dict(data)
    if base_dir is not None:
        payload['base_dir'] = Path(base_dir)
    try:
        return cls(**payload)
    except ValidationError as e:
        raise ConfigValidationError(_format_validation_error(e)) from e


def from_file_factory(
    cls: type,
    path: Union[str, Path],
    overrides: Optional[Dict[str, Any]] = None,
) -> 'BluedaConfig':
    """
    Load configuration from a YAML file.

    Loading precedence (highest to lowest):
    1. Programmatic / CLI overrides (dotted or nested keys)
    2. Config file (YAML)
    3. Defaults from the Pydantic models

    Args:
        cls: BluedaConfig class
        path: Path to configuration YAML file
        overrides: Dictionary of overrides

    Returns:
        Validated BluedaConfig instance

    Raises:
        ConfigurationError: If the file is missing, unparsable or invalid
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f"Configuration file not found: {path}")

    try:
        with open(path, "r") as f:
            file_config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Cannot parse configuration file {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file {path}: {e}") from e

    if not isinstance(file_config, dict):
        raise ConfigurationError(
            f"Configuration file {path} must contain a mapping at top level"
        )

    if overrides:
        file_config = _deep_merge(file_config, _expand_dotted(overrides))

    return from_dict_factory(cls, file_config, base_dir=path.resolve().parent)


def parse_section(schema: type, data: Optional[Dict[str, Any]], section: str):
    """
    Validate a component's own configuration keys against *schema*.

    Args:
        schema: Pydantic model class of the component settings
        data: Keys forwarded from the ``model`` or ``observation`` section
        section: Human-readable section name used in error messages

    Raises:
        ConfigValidationError: If the keys do not satisfy the schema
    """
    try:
        return schema(**(data or {}))
    except ValidationError as e:
        message = _format_validation_error(e).replace(
            "Invalid configuration:", f"Invalid configuration in {section}:", 1
        )
        raise ConfigValidationError(message) from e
