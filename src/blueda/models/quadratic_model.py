# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""
Quadratic model.

Each component of the state follows

    dx_i/dt = x' Q_i x + (L x)_i + b_i,

integrated with the explicit Euler scheme. Each of the three terms can be
switched off.
"""

from typing import List, Optional

import numpy as np
from pydantic import BaseModel, Field

from blueda.core.config.models.base import FROZEN_CONFIG
from blueda.core.exceptions import DimensionMismatchError

from .base import TimeSteppingModel
from .covariance import BackgroundErrorSettings, background_covariance


class QuadraticModelSettings(BaseModel):
    model_config = FROZEN_CONFIG

    initial_state: List[float] = Field(min_length=1)
    quadratic_term: Optional[List[List[List[float]]]] = None
    linear_term: Optional[List[List[float]]] = None
    constant_term: Optional[List[float]] = None
    with_quadratic_term: bool = True
    with_linear_term: bool = True
    with_constant_term: bool = True
    delta_t: float = Field(default=0.1, gt=0)
    final_time: float = Field(default=1.0, gt=0)
    background_error: BackgroundErrorSettings = Field(default_factory=BackgroundErrorSettings)
    model_error_variance: float = Field(default=0.0, ge=0)


class QuadraticModel(TimeSteppingModel):
    """Quadratic ODE system with an explicit Euler step."""

    name = 'quadratic'
    settings_schema = QuadraticModelSettings

    def initialize(self) -> None:
        s = self.settings
        n = len(s.initial_state)

        def term(values, shape, what):
            if values is None:
                return np.zeros(shape)
            array = np.asarray(values, dtype=float)
            if array.shape != shape:
                raise DimensionMismatchError(what, shape, array.shape)
            return array

        self.quadratic = term(s.quadratic_term, (n, n, n), "quadratic_term") \
            if s.with_quadratic_term else np.zeros((n, n, n))
        self.linear = term(s.linear_term, (n, n), "linear_term") \
            if s.with_linear_term else np.zeros((n, n))
        self.constant = term(s.constant_term, (n,), "constant_term") \
            if s.with_constant_term else np.zeros(n)
        super().initialize()

    def initial_state(self) -> np.ndarray:
        return np.asarray(self.settings.initial_state, dtype=float)

    def background_error_covariance(self):
        return background_covariance([len(self.settings.initial_state)], self.settings.background_error)

    def tendency(self, x: np.ndarray) -> np.ndarray:
        return np.einsum('ijk,j,k->i', self.quadratic, x, x) + self.linear @ x + self.constant

    def jacobian(self, x: np.ndarray) -> np.ndarray:
        """J_i = x'(Q_i + Q_i') + L_i."""
        return np.einsum('ijk,k->ij', self.quadratic, x) \
            + np.einsum('ikj,k->ij', self.quadratic, x) + self.linear

    def step(self, state: np.ndarray) -> np.ndarray:
        return state + self.settings.delta_t * self.tendency(state)

    def apply_tangent_linear_operator(self, x: np.ndarray) -> np.ndarray:
        """(I + delta_t J) x, with J evaluated at the current state."""
        jacobian = self.jacobian(self._require_initialized())
        x = np.asarray(x, dtype=float)
        return x + self.settings.delta_t * (jacobian @ x)
