# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""BLUE analysis engine, its linear solvers and matrix adapters."""

from .adapters import MatrixCovarianceProvider, MatrixObservationOperator
from .engine import BLUEEngine, ComputationMode
from .solvers import CholeskySolver, LinearSolver, SuperLUSolver, get_linear_solver

__all__ = [
    'BLUEEngine',
    'ComputationMode',
    'LinearSolver',
    'SuperLUSolver',
    'CholeskySolver',
    'get_linear_solver',
    'MatrixCovarianceProvider',
    'MatrixObservationOperator',
]
