# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""
Adapters exposing explicit matrices through the engine's capability contracts.
"""

import numpy as np
import scipy.sparse as sp

from blueda.core.exceptions import CapabilityError, DimensionMismatchError
from blueda.data_assimilation.interfaces import CovarianceProvider, ObservationOperator


def _as_matrix(matrix):
    if sp.issparse(matrix):
        return sp.csr_matrix(matrix, dtype=float)
    return np.atleast_2d(np.asarray(matrix, dtype=float))


def _row(matrix, row: int) -> np.ndarray:
    if sp.issparse(matrix):
        return matrix[row].toarray().ravel()
    return matrix[row].copy()


class MatrixCovarianceProvider(CovarianceProvider):
    """B given as a dense array or a scipy.sparse matrix."""

    def __init__(self, matrix):
        self._matrix = _as_matrix(matrix)
        n_rows, n_cols = self._matrix.shape
        if n_rows != n_cols:
            raise DimensionMismatchError("B", f"({n_rows}, {n_rows})", self._matrix.shape)

    def get_n_state(self) -> int:
        return self._matrix.shape[0]

    def get_background_error_covariance_row(self, row: int) -> np.ndarray:
        return _row(self._matrix, row)

    def get_background_error_variance_matrix(self):
        return self._matrix

    def is_error_sparse(self) -> bool:
        return sp.issparse(self._matrix)


class MatrixObservationOperator(ObservationOperator):
    """
    A linear observation operator H with error covariance R and observations y.

    With ``r_materialized=False`` R is only reachable entry by entry, which
    is what a manager storing R implicitly offers.
    """

    def __init__(self, operator, error_covariance, observation, r_materialized: bool = True):
        self._operator = _as_matrix(operator)
        self._error = _as_matrix(error_covariance)
        self._observation = np.atleast_1d(np.asarray(observation, dtype=float))
        self._r_materialized = r_materialized

        n_obs = self._operator.shape[0]
        if self._error.shape != (n_obs, n_obs):
            raise DimensionMismatchError("R", (n_obs, n_obs), self._error.shape)
        if self._observation.shape != (n_obs,):
            raise DimensionMismatchError("observation vector", n_obs, self._observation.size)

    def get_n_observation(self) -> int:
        return self._operator.shape[0]

    def get_observation(self) -> np.ndarray:
        return self._observation.copy()

    def apply_operator(self, state: np.ndarray) -> np.ndarray:
        return np.asarray(self._operator @ state, dtype=float).ravel()

    def get_innovation(self, state: np.ndarray) -> np.ndarray:
        n_state = self._operator.shape[1]
        if np.shape(state) != (n_state,):
            raise DimensionMismatchError("state", n_state, np.shape(state))
        return self._observation - self.apply_operator(state)

    def get_tangent_operator_row(self, row: int) -> np.ndarray:
        return _row(self._operator, row)

    def get_tangent_operator(self, i: int, j: int) -> float:
        return float(self._operator[i, j])

    def get_tangent_operator_matrix(self):
        return self._operator

    def get_observation_error_covariance(self, i: int, j: int) -> float:
        return float(self._error[i, j])

    def get_observation_error_variance(self):
        if not self._r_materialized:
            raise CapabilityError("R is not available as a matrix")
        return self._error

    def is_operator_sparse(self) -> bool:
        return sp.issparse(self._operator)

    def is_error_sparse(self) -> bool:
        return sp.issparse(self._error)

    def has_error_matrix(self) -> bool:
        return self._r_materialized
