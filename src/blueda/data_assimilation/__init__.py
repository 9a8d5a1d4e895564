# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""
Data assimilation for blueda.

The BLUE engine (``blue``) is shared by the optimal interpolation and
extended Kalman filter drivers (``methods``). Models and observation
managers plug in through the contracts of ``interfaces``; drivers announce
their progress through ``events``.
"""

from .blue import BLUEEngine, ComputationMode
from .events import EventDispatcher, LifecycleEvent, LifecycleTag, Recipient
from .interfaces import CovarianceProvider, Model, ObservationManager, ObservationOperator

__all__ = [
    'BLUEEngine',
    'ComputationMode',
    'CovarianceProvider',
    'EventDispatcher',
    'LifecycleEvent',
    'LifecycleTag',
    'Model',
    'ObservationManager',
    'ObservationOperator',
    'Recipient',
]
