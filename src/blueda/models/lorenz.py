# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""
Lorenz (1963) three-variable system, integrated with fourth-order Runge-Kutta.
"""

from typing import List

import numpy as np
from pydantic import BaseModel, Field

from blueda.core.config.models.base import FROZEN_CONFIG

from .base import TimeSteppingModel
from .covariance import BackgroundErrorSettings, background_covariance


class LorenzSettings(BaseModel):
    model_config = FROZEN_CONFIG

    sigma: float = 10.0
    rho: float = 28.0
    beta: float = 8.0 / 3.0
    initial_state: List[float] = Field(default_factory=lambda: [1.0, 1.0, 1.0], min_length=3, max_length=3)
    delta_t: float = Field(default=0.01, gt=0)
    final_time: float = Field(default=1.0, gt=0)
    background_error: BackgroundErrorSettings = Field(default_factory=BackgroundErrorSettings)
    model_error_variance: float = Field(default=0.0, ge=0)


class Lorenz63(TimeSteppingModel):
    name = 'lorenz'
    settings_schema = LorenzSettings

    def initial_state(self) -> np.ndarray:
        return np.asarray(self.settings.initial_state, dtype=float)

    def background_error_covariance(self):
        return background_covariance([3], self.settings.background_error)

    def tendency(self, x: np.ndarray) -> np.ndarray:
        s = self.settings
        return np.array([
            s.sigma * (x[1] - x[0]),
            x[0] * (s.rho - x[2]) - x[1],
            x[0] * x[1] - s.beta * x[2],
        ])

    def jacobian(self, x: np.ndarray) -> np.ndarray:
        s = self.settings
        return np.array([
            [-s.sigma, s.sigma, 0.0],
            [s.rho - x[2], -1.0, -x[0]],
            [x[1], x[0], -s.beta],
        ])

    def step(self, state: np.ndarray) -> np.ndarray:
        dt = self.settings.delta_t
        k1 = self.tendency(state)
        k2 = self.tendency(state + 0.5 * dt * k1)
        k3 = self.tendency(state + 0.5 * dt * k2)
        k4 = self.tendency(state + dt * k3)
        return state + dt / 6.0 * (k1 + 2.0 * k2 + 2.0 * k3 + k4)

    def apply_tangent_linear_operator(self, x: np.ndarray) -> np.ndarray:
        """Derivative of the RK4 step at the current state, applied to ``x``."""
        dt = self.settings.delta_t
        x0 = self._require_initialized()
        dx = np.asarray(x, dtype=float)

        k1 = self.tendency(x0)
        d1 = self.jacobian(x0) @ dx
        x1 = x0 + 0.5 * dt * k1
        k2 = self.tendency(x1)
        d2 = self.jacobian(x1) @ (dx + 0.5 * dt * d1)
        x2 = x0 + 0.5 * dt * k2
        k3 = self.tendency(x2)
        d3 = self.jacobian(x2) @ (dx + 0.5 * dt * d2)
        x3 = x0 + dt * k3
        d4 = self.jacobian(x3) @ (dx + dt * d3)
        return dx + dt / 6.0 * (d1 + 2.0 * d2 + 2.0 * d3 + d4)
