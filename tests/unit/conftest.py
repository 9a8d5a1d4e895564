"""
Unit test fixtures and configuration.

Fixtures specific to unit tests (fast, isolated tests), including small
in-memory models and observation managers for driver tests.
"""

from unittest.mock import MagicMock

import numpy as np
import pytest

from blueda.core.config.models import BluedaConfig
from blueda.data_assimilation.blue import MatrixObservationOperator
from blueda.data_assimilation.interfaces import Model, ObservationManager


class LinearModel(Model):
    """x <- A x with a fixed B, for driver tests."""

    name = 'linear_test_model'

    def __init__(self, initial_state, background, transition=None, n_steps=3):
        super().__init__()
        self.initial = np.asarray(initial_state, dtype=float)
        self.background = np.asarray(background, dtype=float)
        n = self.initial.size
        self.transition = np.eye(n) if transition is None else np.asarray(transition, dtype=float)
        self.n_steps = n_steps
        self.received = []

    def initialize(self):
        self.state = self.initial.copy()
        self.step = 0

    def forward(self):
        self.state = self.transition @ self.state
        self.step += 1

    def has_finished(self):
        return self.step >= self.n_steps

    def get_state(self):
        return self.state.copy()

    def set_state(self, state):
        self.state[:] = state

    def get_n_state(self):
        return self.initial.size

    def get_time(self):
        return float(self.step)

    def get_step(self):
        return self.step

    def get_background_error_covariance_row(self, row):
        return self.background[row].copy()

    def get_background_error_variance_matrix(self):
        return self.background

    def is_error_sparse(self):
        return False

    def apply_tangent_linear_operator(self, x):
        return self.transition @ x

    def get_model_error_variance(self):
        return np.zeros_like(self.background)

    def message(self, event):
        self.received.append(event.tag)


class ScheduledObservationManager(ObservationManager):
    """Observations y available at the listed steps, H and R fixed."""

    name = 'scheduled_test_manager'

    def __init__(self, operator, error, observations):
        super().__init__()
        self.operator = np.atleast_2d(np.asarray(operator, dtype=float))
        self.error = np.atleast_2d(np.asarray(error, dtype=float))
        self.observations = {k: np.atleast_1d(np.asarray(v, dtype=float)) for k, v in observations.items()}
        self.current = None
        self.received = []

    def _view(self):
        return MatrixObservationOperator(self.operator, self.error, self.current)

    def initialize(self, model):
        self.n_state = model.get_n_state()

    def set_time(self, model, step):
        self.current = self.observations.get(step)

    def has_observation(self):
        return self.current is not None

    def get_n_observation(self):
        return 0 if self.current is None else self.operator.shape[0]

    def get_observation(self):
        return self.current.copy()

    def get_innovation(self, state):
        return self._view().get_innovation(state)

    def apply_operator(self, state):
        return self.operator @ state

    def apply_adjoint_operator(self, y):
        return self.operator.T @ y

    def get_tangent_operator_row(self, row):
        return self.operator[row].copy()

    def get_tangent_operator_matrix(self):
        return self.operator

    def get_observation_error_covariance(self, i, j):
        return float(self.error[i, j])

    def get_observation_error_variance(self):
        return self.error

    def is_operator_sparse(self):
        return False

    def is_error_sparse(self):
        return False

    def has_error_matrix(self):
        return True

    def message(self, event):
        self.received.append(event.tag)


def random_spd(rng, n, jitter=1.0):
    a = rng.normal(size=(n, n))
    return a @ a.T + jitter * np.eye(n)


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def make_config():
    """Build a BluedaConfig from keyword sections; the model section defaults to a placeholder."""
    def _make(**sections):
        data = {'model': {'name': 'quadratic', 'initial_state': [0.0]}}
        data.update(sections)
        return BluedaConfig.from_dict(data)
    return _make


@pytest.fixture
def scalar_model():
    """N_state = 1, B = 4, x_b = 0."""
    return LinearModel([0.0], [[4.0]], n_steps=2)


@pytest.fixture
def scalar_observations():
    """H = 1, R = 1, y = 3 at steps 0 and 2."""
    return ScheduledObservationManager([[1.0]], [[1.0]], {0: [3.0], 2: [3.0]})


@pytest.fixture
def mock_logger():
    """Create a mock logger for unit tests."""
    return MagicMock()


@pytest.fixture
def linear_model_cls():
    return LinearModel


@pytest.fixture
def scheduled_observations_cls():
    return ScheduledObservationManager


@pytest.fixture
def spd(rng):
    """Random symmetric positive definite matrix of size n."""
    return lambda n, jitter=1.0: random_spd(rng, n, jitter)
