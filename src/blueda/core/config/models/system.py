# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""
System configuration models.

Contains DisplayConfig for on-screen progress messages and LoggingConfig for
the run logger.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from .base import FROZEN_CONFIG


class DisplayConfig(BaseModel):
    """Progress messages emitted by the drivers."""
    model_config = FROZEN_CONFIG

    show_iteration: bool = Field(default=False, alias='Show_iteration')
    show_time: bool = Field(default=False, alias='Show_time')


class LoggingConfig(BaseModel):
    """Run logger settings."""
    model_config = FROZEN_CONFIG

    level: Literal['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'] = Field(
        default='INFO', alias='LOG_LEVEL'
    )
    to_file: bool = Field(default=False, alias='LOG_TO_FILE')
    file: str = Field(
        default='blueda_{date}.log', alias='LOG_FILE',
        description='Log file name; {date} is replaced by the run start time'
    )
    directory: Path = Field(default=Path('.'), alias='LOG_DIR')
    format: Literal['detailed', 'simple'] = Field(default='detailed', alias='LOG_FORMAT')
