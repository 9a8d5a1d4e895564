# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""
Shared machinery of the bundled time-stepping models.

TimeSteppingModel keeps the state vector, the step counter and the error
covariances; subclasses provide the initial condition, B, and one time step.
"""

from abc import abstractmethod
from typing import Optional

import numpy as np
import scipy.sparse as sp

from blueda.core.exceptions import CycleStateError, DimensionMismatchError
from blueda.data_assimilation.blue.adapters import MatrixCovarianceProvider
from blueda.data_assimilation.interfaces import Model


class TimeSteppingModel(Model):
    """
    Model advanced by a fixed time step ``delta_t`` up to ``final_time``.

    Subclass settings must define ``delta_t``, ``final_time`` and
    ``model_error_variance``.
    """

    def __init__(self, settings=None, base_dir=None):
        super().__init__(settings, base_dir)
        self._state: Optional[np.ndarray] = None
        self._background: Optional[MatrixCovarianceProvider] = None
        self._step = 0
        self._n_steps = int(np.ceil(self.settings.final_time / self.settings.delta_t - 1e-9))

    # Subclass hooks

    @abstractmethod
    def initial_state(self) -> np.ndarray:
        """Initial condition."""

    @abstractmethod
    def background_error_covariance(self):
        """B as a dense array or sparse matrix."""

    @abstractmethod
    def step(self, state: np.ndarray) -> np.ndarray:
        """The state one time step after ``state``."""

    # Model interface

    def initialize(self) -> None:
        self._state = np.array(self.initial_state(), dtype=float)
        self._step = 0
        self._background = MatrixCovarianceProvider(self.background_error_covariance())
        if self._background.get_n_state() != self._state.size:
            raise DimensionMismatchError(
                "background error covariance", self._state.size,
                self._background.get_n_state(),
            )
        self.logger.debug(
            f"{self.get_name()}: {self._state.size} state variables, "
            f"{self._n_steps} steps of {self.settings.delta_t}"
        )

    def _require_initialized(self) -> np.ndarray:
        if self._state is None:
            raise CycleStateError(f"{self.get_name()} used before initialize()")
        return self._state

    def forward(self) -> None:
        self._state = np.asarray(self.step(self._require_initialized()), dtype=float)
        self._step += 1

    def has_finished(self) -> bool:
        return self._step >= self._n_steps

    def get_state(self) -> np.ndarray:
        return self._require_initialized().copy()

    def set_state(self, state: np.ndarray) -> None:
        current = self._require_initialized()
        state = np.asarray(state, dtype=float)
        if state.shape != current.shape:
            raise DimensionMismatchError("state", current.size, state.size)
        current[:] = state

    def get_n_state(self) -> int:
        return self._require_initialized().size

    def get_time(self) -> float:
        return self._step * self.settings.delta_t

    def get_step(self) -> int:
        return self._step

    def get_background_error_covariance_row(self, row: int) -> np.ndarray:
        self._require_initialized()
        return self._background.get_background_error_covariance_row(row)

    def get_background_error_variance_matrix(self):
        self._require_initialized()
        return self._background.get_background_error_variance_matrix()

    def is_error_sparse(self) -> bool:
        return self.settings.background_error.sparse

    def get_model_error_variance(self):
        n_state = self.get_n_state()
        variance = self.settings.model_error_variance
        if self.is_error_sparse():
            return sp.identity(n_state, format='csr') * variance
        return np.eye(n_state) * variance
