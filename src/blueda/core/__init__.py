# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""Core infrastructure: configuration, exceptions, logging, registries."""

from .exceptions import (
    BLUEDAError,
    CapabilityError,
    ConfigurationError,
    ConfigValidationError,
    CycleStateError,
    DimensionMismatchError,
    FileOperationError,
    LockFileError,
    NumericalError,
    ObservationIOError,
)
from .mixins import LoggingMixin, LoggingTimingMixin, TimingMixin
from .registries import R, Registries

__all__ = [
    'BLUEDAError',
    'CapabilityError',
    'ConfigurationError',
    'ConfigValidationError',
    'CycleStateError',
    'DimensionMismatchError',
    'FileOperationError',
    'LockFileError',
    'NumericalError',
    'ObservationIOError',
    'LoggingMixin',
    'LoggingTimingMixin',
    'TimingMixin',
    'R',
    'Registries',
]
