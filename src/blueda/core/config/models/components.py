# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""
Model and observation manager sections.

These sections only name the component; every other key is forwarded to the
component, which validates it against its own schema when it is built.
"""

from typing import Any, Dict

from pydantic import BaseModel, Field, field_validator

from .base import OPEN_SECTION_CONFIG


class ModelSectionConfig(BaseModel):
    """The ``model`` section: registered model name plus model settings."""
    model_config = OPEN_SECTION_CONFIG

    name: str = Field(alias='NAME')

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        from blueda.core.registries import R
        if v not in R.models:
            raise ValueError(f"unknown model {v!r}; available: {R.models.keys()}")
        return v.lower()

    @property
    def settings(self) -> Dict[str, Any]:
        """Model-specific keys."""
        return dict(self.model_extra or {})


class ObservationSectionConfig(BaseModel):
    """The ``observation`` section: manager name plus manager settings."""
    model_config = OPEN_SECTION_CONFIG

    manager: str = Field(default='linear', alias='MANAGER')

    @field_validator('manager')
    @classmethod
    def validate_manager(cls, v):
        from blueda.core.registries import R
        if v not in R.observation_managers:
            raise ValueError(
                f"unknown observation manager {v!r}; "
                f"available: {R.observation_managers.keys()}"
            )
        return v.lower()

    @property
    def settings(self) -> Dict[str, Any]:
        """Manager-specific keys."""
        return dict(self.model_extra or {})
