# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""
Linear observation manager.

Observations are read from a binary record file (see ``records``) and are
related to the state by a constant linear operator H, either a scaled
identity or a matrix read from a file. The observation error covariance is
``variance * I``.

Observations exist at step k when ``k % (period * nskip) == 0``; the record
read at that step is ``k // period``, so a file holding one record per model
step is used with ``period: 1``.
"""

from pathlib import Path
from typing import Literal, Optional

import numpy as np
import scipy.sparse as sp
from pydantic import BaseModel, Field, model_validator

from blueda.core.config.models.base import FROZEN_CONFIG
from blueda.core.exceptions import (
    CapabilityError,
    ConfigurationError,
    DimensionMismatchError,
    ObservationIOError,
    require,
)
from blueda.data_assimilation.interfaces import Model, ObservationManager

from .records import read_record


class ObservationErrorSettings(BaseModel):
    model_config = FROZEN_CONFIG

    variance: float = Field(default=1.0, gt=0)
    sparse: bool = False


class ObservationOperatorSettings(BaseModel):
    model_config = FROZEN_CONFIG

    definition: Literal['diagonal', 'file'] = 'diagonal'
    diagonal_value: float = 1.0
    file: Optional[str] = None
    sparse: bool = False

    @model_validator(mode='after')
    def file_given_for_file_definition(self):
        if self.definition == 'file' and not self.file:
            raise ValueError("operator.file is required when operator.definition is 'file'")
        return self


class LinearObservationSettings(BaseModel):
    """Keys of the ``observation`` section read by LinearObservationManager."""
    model_config = FROZEN_CONFIG

    file: str
    type: Literal['state', 'observation'] = 'state'
    period: int = Field(default=1, gt=0, description='Model steps between two records')
    nskip: int = Field(default=1, gt=0, description='Use one record out of nskip')
    error: ObservationErrorSettings = Field(default_factory=ObservationErrorSettings)
    operator: ObservationOperatorSettings = Field(default_factory=ObservationOperatorSettings)


def load_operator_file(path: Path):
    """Read an operator matrix from ``.npy``, sparse ``.npz`` or a text file."""
    if not path.is_file():
        raise ConfigurationError(f"Observation operator file not found: {path}")
    try:
        if path.suffix == '.npz':
            return sp.load_npz(path)
        if path.suffix == '.npy':
            return np.atleast_2d(np.load(path))
        return np.loadtxt(path, ndmin=2)
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Cannot read observation operator file {path}: {e}") from e


class LinearObservationManager(ObservationManager):
    """Observations y = H x_true read from a record file, with R = variance * I."""

    name = 'linear'
    settings_schema = LinearObservationSettings

    def __init__(self, settings=None, base_dir=None):
        super().__init__(settings, base_dir)
        self.observation_file = self.resolve_path(self.settings.file)
        self._operator = None
        self._error = None
        self._n_state = 0
        self._observation = np.zeros(0)
        self._available = False
        self._step: Optional[int] = None

    def initialize(self, model: Model) -> None:
        """
        Build H and R for ``model``.

        Raises:
            DimensionMismatchError: If the operator does not have N_state columns
            ObservationIOError: If the observation file does not exist
        """
        self._n_state = model.get_n_state()
        op = self.settings.operator

        if op.definition == 'diagonal':
            operator = sp.identity(self._n_state, format='csr') * op.diagonal_value
        else:
            operator = load_operator_file(self.resolve_path(op.file))
        if operator.shape[1] != self._n_state:
            raise DimensionMismatchError(
                "observation operator columns (model state dimension)",
                self._n_state, operator.shape[1],
            )
        if op.sparse:
            self._operator = sp.csr_matrix(operator, dtype=float)
        else:
            self._operator = operator.toarray() if sp.issparse(operator) \
                else np.asarray(operator, dtype=float)

        n_obs = self._operator.shape[0]
        variance = self.settings.error.variance
        if self.settings.error.sparse:
            self._error = sp.identity(n_obs, format='csr') * variance
        else:
            self._error = np.eye(n_obs) * variance

        if not self.observation_file.is_file():
            raise ObservationIOError(f"Observation file not found: {self.observation_file}")

        self.logger.debug(
            f"Linear observations: {n_obs} per record, operator '{op.definition}', "
            f"period {self.settings.period}, nskip {self.settings.nskip}"
        )

    def _require_initialized(self) -> None:
        require(self._operator is not None, "LinearObservationManager used before initialize()")

    def set_time(self, model: Model, step: int) -> None:
        self._require_initialized()
        self._step = step
        period = self.settings.period
        self._available = step % (period * self.settings.nskip) == 0
        if not self._available:
            self._observation = np.zeros(0)
            return

        record = read_record(self.observation_file, step // period)
        if self.settings.type == 'state':
            if record.size != self._n_state:
                raise DimensionMismatchError("state record", self._n_state, record.size)
            self._observation = self.apply_operator(record)
        else:
            n_obs = self._operator.shape[0]
            if record.size != n_obs:
                raise DimensionMismatchError("observation record", n_obs, record.size)
            self._observation = record

    def has_observation(self) -> bool:
        return self._available

    def get_n_observation(self) -> int:
        return self._operator.shape[0] if self._available else 0

    def get_observation(self) -> np.ndarray:
        return self._observation.copy()

    def apply_operator(self, state: np.ndarray) -> np.ndarray:
        self._require_initialized()
        return np.asarray(self._operator @ np.asarray(state, dtype=float), dtype=float).ravel()

    def apply_adjoint_operator(self, y: np.ndarray) -> np.ndarray:
        self._require_initialized()
        return np.asarray(self._operator.T @ np.asarray(y, dtype=float), dtype=float).ravel()

    def get_innovation(self, state: np.ndarray) -> np.ndarray:
        if np.shape(state) != (self._n_state,):
            raise DimensionMismatchError("state", self._n_state, np.shape(state))
        return self._observation - self.apply_operator(state)

    def get_tangent_operator_row(self, row: int) -> np.ndarray:
        if sp.issparse(self._operator):
            return self._operator[row].toarray().ravel()
        return self._operator[row].copy()

    def get_tangent_operator(self, i: int, j: int) -> float:
        return float(self._operator[i, j])

    def get_tangent_operator_matrix(self):
        self._require_initialized()
        return self._operator

    def get_observation_error_covariance(self, i: int, j: int) -> float:
        return self.settings.error.variance if i == j else 0.0

    def get_observation_error_variance(self):
        if not self.has_error_matrix():
            raise CapabilityError(
                "Observation error covariance is only available as a matrix when "
                "error.sparse is true"
            )
        return self._error

    def is_operator_sparse(self) -> bool:
        return self.settings.operator.sparse

    def is_error_sparse(self) -> bool:
        return self.settings.error.sparse

    def has_error_matrix(self) -> bool:
        return self.settings.error.sparse
