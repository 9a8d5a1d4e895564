# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""Assimilation and forward drivers."""

from .base import AnalysisDriver, BaseDriver, DriverState
from .extended_kalman_filter import ExtendedKalmanFilter
from .forward_driver import ForwardDriver
from .optimal_interpolation import OptimalInterpolation

__all__ = [
    'AnalysisDriver',
    'BaseDriver',
    'DriverState',
    'ExtendedKalmanFilter',
    'ForwardDriver',
    'OptimalInterpolation',
]
