# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""Configuration loading and validation for blueda."""

from .models import (
    BluedaConfig,
    DataAssimilationConfig,
    DisplayConfig,
    LoggingConfig,
    ModelSectionConfig,
    ObservationSectionConfig,
    OutputConfig,
)

__all__ = [
    "BluedaConfig",
    "DataAssimilationConfig",
    "DisplayConfig",
    "LoggingConfig",
    "ModelSectionConfig",
    "ObservationSectionConfig",
    "OutputConfig",
]
