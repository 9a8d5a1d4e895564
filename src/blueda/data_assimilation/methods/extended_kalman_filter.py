# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""
Extended Kalman filter.

The state error covariance P starts from the model's B. Each forecast
propagates it with the tangent linear model M evaluated at the state before
the step,

    P <- M P M' + Q,

and each analysis applies the BLUE with P in place of B, then

    P <- (I - K H) P.
"""

import numpy as np
import scipy.sparse as sp

from blueda.core.exceptions import CapabilityError, DimensionMismatchError, NumericalError
from blueda.data_assimilation.blue import MatrixCovarianceProvider
from blueda.data_assimilation.interfaces import CovarianceProvider
from blueda.data_assimilation.methods.base import AnalysisDriver


def dense_covariance(provider: CovarianceProvider) -> np.ndarray:
    """Materialize B as a dense array, falling back to its rows."""
    try:
        matrix = provider.get_background_error_variance_matrix()
    except CapabilityError:
        n_state = provider.get_n_state()
        return np.vstack([
            provider.get_background_error_covariance_row(i) for i in range(n_state)
        ]).astype(float)
    return matrix.toarray() if sp.issparse(matrix) else np.array(matrix, dtype=float)


class ExtendedKalmanFilter(AnalysisDriver):
    """Kalman filter with tangent linear covariance propagation."""

    name = 'extended_kalman_filter'
    analysis_label = 'extended Kalman filter analysis'

    def __init__(self, config, model=None, observation_manager=None, engine=None):
        super().__init__(config, model, observation_manager, engine)
        self.state_error_covariance = None

    def _initialize_components(self) -> None:
        n_state = self.model.get_n_state()
        covariance = dense_covariance(self.model)
        if covariance.shape != (n_state, n_state):
            raise DimensionMismatchError("B", (n_state, n_state), covariance.shape)
        self.state_error_covariance = covariance
        super()._initialize_components()

    def _propagate(self, matrix: np.ndarray) -> np.ndarray:
        """M applied to every column of ``matrix``."""
        return np.column_stack([
            self.model.apply_tangent_linear_operator(matrix[:, i])
            for i in range(matrix.shape[1])
        ])

    def _forward(self) -> None:
        p = self.state_error_covariance
        mp = self._propagate(p)
        p = self._propagate(mp.T)
        q = self.model.get_model_error_variance()
        p = p + (q.toarray() if sp.issparse(q) else np.asarray(q, dtype=float))
        self.state_error_covariance = 0.5 * (p + p.T)
        super()._forward()

    def _analyze(self) -> None:
        covariance = MatrixCovarianceProvider(self.state_error_covariance)
        manager = self.observation_manager

        gain = self.engine.compute_gain(covariance, manager)
        state = self.model.get_state()
        self.last_increment = self.engine.compute_analysis(state, covariance, manager)
        self.model.set_state(state)

        h = np.vstack([
            manager.get_tangent_operator_row(r) for r in range(manager.get_n_observation())
        ])
        p = self.state_error_covariance - gain @ (h @ self.state_error_covariance)
        if not np.all(np.isfinite(p)):
            raise NumericalError("State error covariance is not finite after the analysis")
        self.state_error_covariance = 0.5 * (p + p.T)
