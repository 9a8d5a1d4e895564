# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""
Output saving configuration model.
"""

from pathlib import Path
from typing import Dict, List, Literal

from pydantic import BaseModel, Field, field_validator

from .base import FROZEN_CONFIG

SAVABLE_TAGS = ('initial_condition', 'forecast', 'analysis')


def _default_variables() -> Dict[str, List[str]]:
    return {
        'forecast_state': ['initial_condition', 'forecast'],
        'analysis_state': ['analysis'],
    }


class OutputConfig(BaseModel):
    """Which states are saved, where, and in which format."""
    model_config = FROZEN_CONFIG

    enabled: bool = Field(default=False, alias='OUTPUT_ENABLED')
    format: Literal['binary', 'netcdf'] = Field(default='netcdf', alias='OUTPUT_FORMAT')
    directory: Path = Field(default=Path('output'), alias='OUTPUT_DIR')
    variables: Dict[str, List[str]] = Field(
        default_factory=_default_variables, alias='OUTPUT_VARIABLES',
        description='Output name -> lifecycle tags on which the state is saved'
    )
    lock: bool = Field(default=False, alias='OUTPUT_LOCK')
    lock_retries: int = Field(default=60, alias='OUTPUT_LOCK_RETRIES', ge=0)
    lock_poll_interval: float = Field(default=1.0, alias='OUTPUT_LOCK_POLL', gt=0)

    @field_validator('variables')
    @classmethod
    def validate_tags(cls, v):
        for name, tags in v.items():
            unknown = [t for t in tags if t not in SAVABLE_TAGS]
            if unknown:
                raise ValueError(
                    f"output variable {name!r}: unknown tags {unknown}; "
                    f"expected a subset of {list(SAVABLE_TAGS)}"
                )
        return v
