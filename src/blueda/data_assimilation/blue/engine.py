# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""
Best Linear Unbiased Estimator.

BLUEEngine applies the analysis

    x_a = x_b + B H' (H B H' + R)^{-1} (y - H x_b)

to a state vector in place. Two computational paths give the same result up
to rounding:

- ``vector``: B is read one row at a time, HBH' is accumulated as a dense
  N_obs x N_obs matrix, R is read entry by entry and (HBH' + R) is inverted
  explicitly. Peak memory is O(N_state + N_obs^2) on top of H.
- ``matrix``: B, H and R are materialized (sparse) matrices; BH' and HBH' are
  sparse products and (HBH' + R) is factored with a direct LinearSolver.

``auto`` picks the matrix path only when B, H and R are all sparse and R is
materialized. An explicitly requested path is never replaced by the other.
Nothing computed here outlives a single call.
"""

from enum import Enum
from typing import Optional, Union

import numpy as np
import scipy.linalg
import scipy.sparse as sp

from blueda.core.exceptions import (
    CapabilityError,
    ConfigurationError,
    DimensionMismatchError,
    NumericalError,
)
from blueda.core.mixins import LoggingTimingMixin
from blueda.data_assimilation.interfaces import CovarianceProvider, ObservationOperator

from .solvers import LinearSolver, SuperLUSolver


class ComputationMode(str, Enum):
    """Computational path of the BLUE."""
    VECTOR = 'vector'
    MATRIX = 'matrix'
    AUTO = 'auto'

    @classmethod
    def from_value(cls, value: Union[str, 'ComputationMode']) -> 'ComputationMode':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ConfigurationError(
                f"Unknown BLUE computation {value!r}; expected one of "
                f"{[m.value for m in cls]}"
            ) from None


def _invert(matrix: np.ndarray) -> np.ndarray:
    """Explicit inverse of a symmetric positive definite matrix."""
    try:
        factor = scipy.linalg.cho_factor(matrix)
    except (np.linalg.LinAlgError, ValueError) as e:
        raise NumericalError(f"(HBH' + R) is singular or not positive definite: {e}") from e
    return scipy.linalg.cho_solve(factor, np.eye(matrix.shape[0]))


class BLUEEngine(LoggingTimingMixin):
    """
    Computes and applies BLUE analysis increments.

    Args:
        mode: Computational path (``vector``, ``matrix`` or ``auto``)
        solver: Direct solver of the matrix path; SuperLU when omitted
    """

    def __init__(
        self,
        mode: Union[str, ComputationMode] = ComputationMode.VECTOR,
        solver: Optional[LinearSolver] = None,
    ):
        self.mode = ComputationMode.from_value(mode)
        self.solver = solver if solver is not None else SuperLUSolver()
        self.last_path: Optional[ComputationMode] = None

    def select_path(
        self,
        covariance: CovarianceProvider,
        observation: ObservationOperator,
    ) -> ComputationMode:
        """
        Resolve the configured mode into VECTOR or MATRIX for these collaborators.

        Raises:
            CapabilityError: If MATRIX is requested and R is not materialized
        """
        flags = {
            'B': covariance.is_error_sparse(),
            'H': observation.is_operator_sparse(),
            'R': observation.is_error_sparse(),
        }
        mixed = len(set(flags.values())) > 1

        if self.mode is ComputationMode.MATRIX:
            if not observation.has_error_matrix():
                raise CapabilityError(
                    "BLUE 'matrix' computation requires R as an explicit matrix, "
                    "but the observation manager does not provide one"
                )
            return ComputationMode.MATRIX

        if self.mode is ComputationMode.AUTO and all(flags.values()) \
                and observation.has_error_matrix():
            return ComputationMode.MATRIX

        if mixed:
            description = ', '.join(
                f"{name} {'sparse' if is_sparse else 'dense'}"
                for name, is_sparse in flags.items()
            )
            self.logger.warning(
                f"Mixed sparse and dense representations ({description}); "
                f"using the vector BLUE computation"
            )
        return ComputationMode.VECTOR

    def compute_analysis(
        self,
        state: np.ndarray,
        covariance: CovarianceProvider,
        observation: ObservationOperator,
        innovation: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        """
        Add the BLUE increment to ``state`` in place.

        Args:
            state: Background state x_b (float array of length N_state),
                overwritten with the analysis
            covariance: Provides B
            observation: Provides H, R and, when ``innovation`` is None, y - H x_b
            innovation: Precomputed innovation of length N_obs

        Returns:
            The increment that was added to ``state``

        Raises:
            DimensionMismatchError: If any vector or matrix has the wrong size
            CapabilityError: If the matrix path lacks a materialized matrix
            NumericalError: If (HBH' + R) is singular or the result is not finite
        """
        if not isinstance(state, np.ndarray) or state.dtype.kind != 'f':
            raise TypeError("state must be a floating point numpy array")
        n_state = covariance.get_n_state()
        if state.shape != (n_state,):
            raise DimensionMismatchError("state vector", n_state, state.shape)

        n_obs = observation.get_n_observation()
        if n_obs == 0:
            return np.zeros(n_state)

        if innovation is None:
            innovation = observation.get_innovation(state)
        innovation = np.asarray(innovation, dtype=float).ravel()
        if innovation.shape != (n_obs,):
            raise DimensionMismatchError("innovation", n_obs, innovation.size)

        path = self.select_path(covariance, observation)
        self.last_path = path
        with self.time_limit(f"BLUE {path.value} computation ({n_state} states, {n_obs} observations)"):
            if path is ComputationMode.MATRIX:
                increment = self._matrix_increment(n_state, n_obs, covariance, observation, innovation)
            else:
                increment = self._vector_increment(n_state, n_obs, covariance, observation, innovation)

        if not np.all(np.isfinite(increment)):
            raise NumericalError("BLUE analysis increment is not finite")
        state += increment
        return increment

    def _operator_rows(self, n_state: int, n_obs: int, observation: ObservationOperator) -> np.ndarray:
        rows = np.empty((n_obs, n_state))
        for r in range(n_obs):
            row = np.asarray(observation.get_tangent_operator_row(r), dtype=float).ravel()
            if row.shape != (n_state,):
                raise DimensionMismatchError(f"row {r} of H", n_state, row.size)
            rows[r] = row
        return rows

    @staticmethod
    def _covariance_row(covariance: CovarianceProvider, j: int, n_state: int) -> np.ndarray:
        row = np.asarray(covariance.get_background_error_covariance_row(j), dtype=float).ravel()
        if row.shape != (n_state,):
            raise DimensionMismatchError(f"row {j} of B", n_state, row.size)
        return row

    def _vector_increment(
        self,
        n_state: int,
        n_obs: int,
        covariance: CovarianceProvider,
        observation: ObservationOperator,
        innovation: np.ndarray,
    ) -> np.ndarray:
        h = self._operator_rows(n_state, n_obs, observation)

        # HBH' = sum_j H[:, j] (BH')[j, :], with (BH')[j, :] = H B[j, :]'
        hbht = np.zeros((n_obs, n_obs))
        for j in range(n_state):
            bht_row = h @ self._covariance_row(covariance, j, n_state)
            hbht += np.outer(h[:, j], bht_row)

        for r in range(n_obs):
            for c in range(n_obs):
                hbht[r, c] += observation.get_observation_error_covariance(r, c)

        weights = _invert(hbht) @ innovation

        increment = np.empty(n_state)
        for j in range(n_state):
            increment[j] = (h @ self._covariance_row(covariance, j, n_state)) @ weights
        return increment

    def _materialize(self, covariance: CovarianceProvider, observation: ObservationOperator, n_state: int, n_obs: int):
        b = sp.csr_matrix(covariance.get_background_error_variance_matrix(), dtype=float)
        h = sp.csr_matrix(observation.get_tangent_operator_matrix(), dtype=float)
        r = sp.csr_matrix(observation.get_observation_error_variance(), dtype=float)
        if b.shape != (n_state, n_state):
            raise DimensionMismatchError("B", (n_state, n_state), b.shape)
        if h.shape != (n_obs, n_state):
            raise DimensionMismatchError("H", (n_obs, n_state), h.shape)
        if r.shape != (n_obs, n_obs):
            raise DimensionMismatchError("R", (n_obs, n_obs), r.shape)
        return b, h, r

    def _matrix_increment(
        self,
        n_state: int,
        n_obs: int,
        covariance: CovarianceProvider,
        observation: ObservationOperator,
        innovation: np.ndarray,
    ) -> np.ndarray:
        b, h, r = self._materialize(covariance, observation, n_state, n_obs)
        bht = b @ h.T
        system = (h @ bht + r).tocsc()
        handle = self.solver.factor(system)
        weights = self.solver.solve(handle, innovation.copy())
        return np.asarray(bht @ weights, dtype=float).ravel()

    def compute_gain(
        self,
        covariance: CovarianceProvider,
        observation: ObservationOperator,
    ) -> np.ndarray:
        """
        Dense Kalman gain K = BH'(HBH' + R)^{-1}, of shape (N_state, N_obs).

        B, H and R are read through their row and entry accessors. Used where
        the gain itself is needed, such as the covariance update of the
        extended Kalman filter.
        """
        n_state = covariance.get_n_state()
        n_obs = observation.get_n_observation()
        if n_obs == 0:
            return np.zeros((n_state, 0))
        h = self._operator_rows(n_state, n_obs, observation)
        b = np.vstack([self._covariance_row(covariance, j, n_state) for j in range(n_state)])
        r = np.array([
            [observation.get_observation_error_covariance(i, j) for j in range(n_obs)]
            for i in range(n_obs)
        ])
        bht = b @ h.T
        gain = bht @ _invert(h @ bht + r)
        if not np.all(np.isfinite(gain)):
            raise NumericalError("Kalman gain is not finite")
        return gain
