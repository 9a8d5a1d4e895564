# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""
Capability contracts between the BLUE engine, the drivers and their
collaborators.

CovarianceProvider and ObservationOperator are the only views the BLUE
engine has of B, H, R and the innovation. Model and ObservationManager add
the lifecycle methods the drivers call. Representations a collaborator does
not materialize raise CapabilityError from the default implementations.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, ClassVar, Dict, Optional, Type, Union

import numpy as np
from pydantic import BaseModel

from blueda.core.config.factories import parse_section
from blueda.core.exceptions import CapabilityError
from blueda.core.mixins import LoggingTimingMixin

MatrixLike = Any  # numpy.ndarray or scipy.sparse matrix


class CovarianceProvider(ABC):
    """Access to the background error covariance matrix B."""

    @abstractmethod
    def get_n_state(self) -> int:
        """Dimension of the state vector."""

    @abstractmethod
    def get_background_error_covariance_row(self, row: int) -> np.ndarray:
        """Row ``row`` of B as a dense vector of length N_state."""

    def get_background_error_variance_matrix(self) -> MatrixLike:
        """B as a materialized (dense or sparse) matrix."""
        raise CapabilityError(
            f"{type(self).__name__} does not provide B as a matrix"
        )

    @abstractmethod
    def is_error_sparse(self) -> bool:
        """Whether B is stored sparse."""


class ObservationOperator(ABC):
    """Access to H, R and the innovation for the current observations."""

    @abstractmethod
    def get_n_observation(self) -> int:
        """Number of observations currently available (may be zero)."""

    @abstractmethod
    def get_innovation(self, state: np.ndarray) -> np.ndarray:
        """The innovation y - H(x) for ``state``."""

    @abstractmethod
    def get_tangent_operator_row(self, row: int) -> np.ndarray:
        """Row ``row`` of the tangent operator H, length N_state."""

    def get_tangent_operator(self, i: int, j: int) -> float:
        """Entry (i, j) of H."""
        return float(self.get_tangent_operator_row(i)[j])

    def get_tangent_operator_matrix(self) -> MatrixLike:
        """H as a materialized matrix."""
        raise CapabilityError(
            f"{type(self).__name__} does not provide H as a matrix"
        )

    @abstractmethod
    def get_observation_error_covariance(self, i: int, j: int) -> float:
        """Entry (i, j) of R."""

    def get_observation_error_variance(self) -> MatrixLike:
        """R as a materialized matrix; only valid when has_error_matrix()."""
        raise CapabilityError(
            f"{type(self).__name__} does not provide R as a matrix"
        )

    @abstractmethod
    def is_operator_sparse(self) -> bool:
        """Whether H is stored sparse."""

    @abstractmethod
    def is_error_sparse(self) -> bool:
        """Whether R is stored sparse."""

    @abstractmethod
    def has_error_matrix(self) -> bool:
        """Whether get_observation_error_variance() is available."""


class _ConfigurableComponent(LoggingTimingMixin):
    """Holds validated component settings and the directory paths resolve against."""

    settings_schema: ClassVar[Optional[Type[BaseModel]]] = None
    name: ClassVar[str] = ''

    def __init__(
        self,
        settings: Optional[Dict[str, Any]] = None,
        base_dir: Optional[Union[str, Path]] = None,
    ):
        self.base_dir = Path(base_dir) if base_dir is not None else Path.cwd()
        if self.settings_schema is not None:
            self.settings = parse_section(
                self.settings_schema, settings, f"{self.get_name()} settings"
            )
        else:
            self.settings = settings or {}

    def resolve_path(self, path: Union[str, Path]) -> Path:
        path = Path(path).expanduser()
        return path if path.is_absolute() else self.base_dir / path

    def get_name(self) -> str:
        return self.name or type(self).__name__

    def message(self, event) -> None:
        """Lifecycle notification hook; ignores every event by default."""


class Model(_ConfigurableComponent, CovarianceProvider):
    """
    A forward model advanced one step at a time by a driver.

    The state vector has a fixed dimension for the lifetime of a run.
    ``set_state`` copies the given values into the model state.
    """

    @abstractmethod
    def initialize(self) -> None:
        """Build the initial condition and the error statistics."""

    def initialize_step(self) -> None:
        """Prepare the next step (boundary conditions, forcing)."""

    @abstractmethod
    def forward(self) -> None:
        """Advance the state one time step."""

    @abstractmethod
    def has_finished(self) -> bool:
        """True once the configured final time is reached."""

    @abstractmethod
    def get_state(self) -> np.ndarray:
        """A copy of the current state vector."""

    @abstractmethod
    def set_state(self, state: np.ndarray) -> None:
        """Overwrite the current state vector."""

    @abstractmethod
    def get_time(self) -> float:
        """Current model time."""

    @abstractmethod
    def get_step(self) -> int:
        """Index of the current time step (0 at the initial condition)."""

    def apply_tangent_linear_operator(self, x: np.ndarray) -> np.ndarray:
        """Tangent linear model for the coming step applied to ``x``."""
        raise CapabilityError(f"{self.get_name()} has no tangent linear model")

    def get_model_error_variance(self) -> MatrixLike:
        """Model error covariance Q added at each forecast."""
        raise CapabilityError(f"{self.get_name()} has no model error covariance")


class ObservationManager(_ConfigurableComponent, ObservationOperator):
    """Provides observations, their operator and their errors to a driver."""

    @abstractmethod
    def initialize(self, model: Model) -> None:
        """Read the operator and error statistics; check them against ``model``."""

    def load_observation(self, model: Model) -> None:
        """Refresh the available observations for the model's current step."""
        self.set_time(model, model.get_step())

    @abstractmethod
    def set_time(self, model: Model, step: int) -> None:
        """Load the observations available at ``step``."""

    @abstractmethod
    def has_observation(self) -> bool:
        """Whether observations are available at the current step."""

    @abstractmethod
    def get_observation(self) -> np.ndarray:
        """Current observation vector y."""

    @abstractmethod
    def apply_operator(self, state: np.ndarray) -> np.ndarray:
        """H(x)."""

    def apply_tangent_operator(self, x: np.ndarray) -> np.ndarray:
        """H x for a state-space perturbation."""
        return self.apply_operator(x)

    @abstractmethod
    def apply_adjoint_operator(self, y: np.ndarray) -> np.ndarray:
        """H' y for an observation-space vector."""
