# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""
Clamped bar.

A 1-D elastic bar discretized with linear finite elements, clamped at its
first node and loaded by a uniform force. Time integration uses the Newmark
average acceleration scheme:

    (2/dt M + dt/2 K) u1 = (2/dt M - dt/2 K) u0 + 2 M v0 + dt f
    v1 = 2/dt (u1 - u0) - v0

The state is [displacement, velocity] at every node.
"""

import numpy as np
import scipy.sparse as sp
from pydantic import BaseModel, Field

from blueda.core.config.models.base import FROZEN_CONFIG
from blueda.data_assimilation.blue.solvers import SuperLUSolver

from .base import TimeSteppingModel
from .covariance import BackgroundErrorSettings, background_covariance


class ClampedBarSettings(BaseModel):
    model_config = FROZEN_CONFIG

    bar_length: float = Field(default=1.0, gt=0)
    nx: int = Field(default=10, gt=0, description='Number of elements')
    delta_t: float = Field(default=0.02, gt=0)
    final_time: float = Field(default=1.0, gt=0)
    mass_density: float = Field(default=1.0, gt=0)
    young_modulus: float = Field(default=1.0, gt=0)
    force: float = Field(default=1.0, description='Uniform load per unit length')
    background_error: BackgroundErrorSettings = Field(default_factory=BackgroundErrorSettings)
    model_error_variance: float = Field(default=0.0, ge=0)


def assemble(n_elements: int, element_length: float, density: float, modulus: float):
    """Global mass and stiffness matrices of linear bar elements."""
    n_nodes = n_elements + 1
    element_mass = density * element_length / 6.0 * np.array([[2.0, 1.0], [1.0, 2.0]])
    element_stiffness = modulus / element_length * np.array([[1.0, -1.0], [-1.0, 1.0]])

    rows, cols, mass, stiffness = [], [], [], []
    for e in range(n_elements):
        nodes = (e, e + 1)
        for a in range(2):
            for b in range(2):
                rows.append(nodes[a])
                cols.append(nodes[b])
                mass.append(element_mass[a, b])
                stiffness.append(element_stiffness[a, b])
    shape = (n_nodes, n_nodes)
    return (
        sp.csr_matrix((mass, (rows, cols)), shape=shape),
        sp.csr_matrix((stiffness, (rows, cols)), shape=shape),
    )


def clamp(matrix: sp.spmatrix, node: int = 0) -> sp.csr_matrix:
    """Replace row and column ``node`` by those of the identity."""
    matrix = sp.lil_matrix(matrix)
    matrix[node, :] = 0.0
    matrix[:, node] = 0.0
    matrix[node, node] = 1.0
    return matrix.tocsr()


class ClampedBar(TimeSteppingModel):
    """Vibrating bar clamped at x = 0."""

    name = 'clamped_bar'
    settings_schema = ClampedBarSettings

    def initialize(self) -> None:
        s = self.settings
        self.n_nodes = s.nx + 1
        self.element_length = s.bar_length / s.nx
        dt = s.delta_t

        mass, stiffness = assemble(s.nx, self.element_length, s.mass_density, s.young_modulus)
        self.mass = mass
        self.rhs_matrix = (2.0 / dt) * mass - (dt / 2.0) * stiffness
        self.force_vector = s.force * (mass @ np.ones(self.n_nodes)) / s.mass_density
        self.force_vector[0] = 0.0

        self.solver = SuperLUSolver()
        with self.time_limit("Newmark matrix factorization"):
            self._newmark = self.solver.factor(
                clamp((2.0 / dt) * mass + (dt / 2.0) * stiffness)
            )
        super().initialize()

    def initial_state(self) -> np.ndarray:
        return np.zeros(2 * self.n_nodes)

    def background_error_covariance(self):
        return background_covariance(
            [self.n_nodes, self.n_nodes], self.settings.background_error, self.element_length
        )

    def _newmark_step(self, state: np.ndarray, force: np.ndarray) -> np.ndarray:
        dt = self.settings.delta_t
        u0, v0 = state[:self.n_nodes], state[self.n_nodes:]
        rhs = self.rhs_matrix @ u0 + 2.0 * (self.mass @ v0) + dt * force
        rhs[0] = 0.0
        u1 = self.solver.solve(self._newmark, rhs)
        v1 = 2.0 / dt * (u1 - u0) - v0
        v1[0] = 0.0
        return np.concatenate([u1, v1])

    def step(self, state: np.ndarray) -> np.ndarray:
        return self._newmark_step(state, self.force_vector)

    def apply_tangent_linear_operator(self, x: np.ndarray) -> np.ndarray:
        """The scheme is linear: one step without the load."""
        return self._newmark_step(np.asarray(x, dtype=float), np.zeros(self.n_nodes))

    def get_displacement(self) -> np.ndarray:
        return self.get_state()[:self.n_nodes]

    def get_velocity(self) -> np.ndarray:
        return self.get_state()[self.n_nodes:]
