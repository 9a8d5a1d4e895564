# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""
Root configuration model.

BluedaConfig gathers every section of a run configuration. It is normally
created with :meth:`BluedaConfig.from_file`, which also records the
configuration file's directory so that relative paths resolve against it.
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field, field_validator

from .assimilation import DataAssimilationConfig
from .base import FROZEN_CONFIG
from .components import ModelSectionConfig, ObservationSectionConfig
from .output import OutputConfig
from .system import DisplayConfig, LoggingConfig


class BluedaConfig(BaseModel):
    """Complete, validated configuration of one run."""
    model_config = FROZEN_CONFIG

    method: str = Field(default='optimal_interpolation', alias='METHOD')
    display: DisplayConfig = Field(default_factory=DisplayConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    data_assimilation: DataAssimilationConfig = Field(default_factory=DataAssimilationConfig)
    model: ModelSectionConfig
    observation: Optional[ObservationSectionConfig] = None
    output: OutputConfig = Field(default_factory=OutputConfig)
    base_dir: Path = Field(default_factory=Path.cwd)

    @field_validator('method')
    @classmethod
    def validate_method(cls, v):
        from blueda.core.registries import R
        if v not in R.methods:
            raise ValueError(f"unknown method {v!r}; available: {R.methods.keys()}")
        return v.lower()

    def resolve_path(self, path: Union[str, Path]) -> Path:
        """Resolve *path* against the configuration file's directory."""
        path = Path(path).expanduser()
        if path.is_absolute():
            return path
        return Path(self.base_dir) / path

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        overrides: Optional[Dict[str, Any]] = None,
    ) -> 'BluedaConfig':
        """Load and validate a YAML configuration file."""
        from blueda.core.config.factories import from_file_factory
        return from_file_factory(cls, path, overrides)

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        base_dir: Optional[Union[str, Path]] = None,
    ) -> 'BluedaConfig':
        """Validate an in-memory configuration mapping."""
        from blueda.core.config.factories import from_dict_factory
        return from_dict_factory(cls, data, base_dir)
