"""Tests for the quadratic model."""

import numpy as np
import pytest

from blueda.core.exceptions import ConfigValidationError, CycleStateError, DimensionMismatchError
from blueda.models.quadratic_model import QuadraticModel

pytestmark = [pytest.mark.unit]


def quadratic_model(**settings):
    settings.setdefault('initial_state', [1.0, 2.0])
    model = QuadraticModel(settings)
    model.initialize()
    return model


class TestDynamics:

    def test_constant_term_only(self):
        model = quadratic_model(constant_term=[1.0, -1.0], delta_t=0.5, final_time=1.0)
        model.forward()
        np.testing.assert_allclose(model.get_state(), [1.5, 1.5])

    def test_linear_term(self):
        model = quadratic_model(linear_term=[[0.0, 1.0], [-1.0, 0.0]], delta_t=0.1)
        model.forward()
        np.testing.assert_allclose(model.get_state(), [1.0 + 0.1 * 2.0, 2.0 - 0.1 * 1.0])

    def test_quadratic_term(self):
        q = np.zeros((2, 2, 2))
        q[0, 0, 1] = 1.0  # dx_0/dt = x_0 x_1
        model = quadratic_model(quadratic_term=q.tolist(), delta_t=0.1)
        model.forward()
        np.testing.assert_allclose(model.get_state(), [1.0 + 0.1 * 2.0, 2.0])

    def test_terms_can_be_switched_off(self):
        model = quadratic_model(constant_term=[1.0, 1.0], with_constant_term=False)
        model.forward()
        np.testing.assert_allclose(model.get_state(), [1.0, 2.0])

    def test_time_and_finish(self):
        model = quadratic_model(delta_t=0.25, final_time=0.5)
        assert model.get_time() == 0.0
        assert not model.has_finished()
        model.forward()
        model.forward()
        assert model.get_step() == 2
        assert model.get_time() == pytest.approx(0.5)
        assert model.has_finished()


class TestTangentLinear:

    def test_matches_finite_differences(self, rng):
        n = 3
        model = quadratic_model(
            initial_state=[0.3, -0.2, 0.5],
            quadratic_term=rng.normal(size=(n, n, n)).tolist(),
            linear_term=rng.normal(size=(n, n)).tolist(),
            constant_term=rng.normal(size=n).tolist(),
            delta_t=0.05,
        )
        x = model.get_state()
        dx = 1e-6 * rng.normal(size=n)
        expected = model.step(x + dx) - model.step(x)
        np.testing.assert_allclose(model.apply_tangent_linear_operator(dx), expected, rtol=1e-4, atol=1e-12)


class TestCovariance:

    def test_dense_balgovind(self):
        model = quadratic_model(background_error={'variance': 2.0, 'balgovind_scale': 1.0})
        assert not model.is_error_sparse()
        np.testing.assert_allclose(model.get_background_error_covariance_row(0), [2.0, 2.0 * 2.0 * np.exp(-1.0)])

    def test_sparse_diagonal(self):
        model = quadratic_model(background_error={'variance': 2.0, 'sparse': True})
        assert model.is_error_sparse()
        np.testing.assert_allclose(model.get_background_error_variance_matrix().toarray(), 2.0 * np.eye(2))
        np.testing.assert_allclose(model.get_background_error_covariance_row(1), [0.0, 2.0])

    def test_model_error(self):
        model = quadratic_model(model_error_variance=0.1)
        np.testing.assert_allclose(model.get_model_error_variance(), 0.1 * np.eye(2))


class TestValidation:

    def test_term_shape(self):
        with pytest.raises(DimensionMismatchError, match="linear_term"):
            quadratic_model(linear_term=[[1.0]])

    def test_set_state_shape(self):
        model = quadratic_model()
        with pytest.raises(DimensionMismatchError):
            model.set_state(np.zeros(3))

    def test_invalid_settings(self):
        with pytest.raises(ConfigValidationError):
            QuadraticModel({'initial_state': [1.0], 'delta_t': -1.0})

    def test_state_before_initialize(self):
        with pytest.raises(CycleStateError):
            QuadraticModel({'initial_state': [1.0]}).get_state()
