# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""Observation managers and observation record I/O."""

from .linear_observation_manager import LinearObservationManager, LinearObservationSettings
from .records import count_records, read_record, read_records, write_record, write_records

__all__ = [
    'LinearObservationManager',
    'LinearObservationSettings',
    'count_records',
    'read_record',
    'read_records',
    'write_record',
    'write_records',
]
