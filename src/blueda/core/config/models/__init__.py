# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""
Hierarchical configuration models for blueda.

Key design features:
- Type-safe hierarchical structure (config.data_assimilation.blue_computation)
- Factory methods: from_file(), from_dict()
- Immutable configs (frozen=True) to prevent mutation bugs
- Component sections (model, observation) forward their own keys to the
  component's schema
"""

from .assimilation import DataAssimilationConfig
from .components import ModelSectionConfig, ObservationSectionConfig
from .output import OutputConfig
from .root import BluedaConfig
from .system import DisplayConfig, LoggingConfig

__all__ = [
    "BluedaConfig",
    "DataAssimilationConfig",
    "DisplayConfig",
    "LoggingConfig",
    "ModelSectionConfig",
    "ObservationSectionConfig",
    "OutputConfig",
]
