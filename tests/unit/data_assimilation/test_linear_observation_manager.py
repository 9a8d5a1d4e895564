"""Tests for LinearObservationManager."""

import numpy as np
import pytest
import scipy.sparse as sp

from blueda.core.exceptions import (
    CapabilityError,
    ConfigurationError,
    ConfigValidationError,
    DimensionMismatchError,
    ObservationIOError,
)
from blueda.data_assimilation.observation import LinearObservationManager, write_records

pytestmark = [pytest.mark.unit]

N_STATE = 3


@pytest.fixture
def model(linear_model_cls):
    model = linear_model_cls(np.zeros(N_STATE), np.eye(N_STATE))
    model.initialize()
    return model


@pytest.fixture
def truth_file(tmp_path):
    """Ten truth states, record k = [k, 10k, 100k]."""
    path = tmp_path / "truth.bin"
    write_records(path, [[k, 10.0 * k, 100.0 * k] for k in range(10)])
    return path


def manager(tmp_path, **settings):
    settings.setdefault('file', 'truth.bin')
    return LinearObservationManager(settings, base_dir=tmp_path)


class TestSettings:

    def test_relative_file_resolved_against_base_dir(self, tmp_path):
        assert manager(tmp_path).observation_file == tmp_path / 'truth.bin'

    @pytest.mark.parametrize("settings", [
        {'period': 0},
        {'nskip': 0},
        {'error': {'variance': 0.0}},
        {'type': 'flattened'},
        {'operator': {'definition': 'file'}},
        {'unexpected': 1},
    ])
    def test_invalid_settings(self, tmp_path, settings):
        with pytest.raises(ConfigValidationError):
            manager(tmp_path, **settings)

    def test_file_required(self, tmp_path):
        with pytest.raises(ConfigValidationError, match="file"):
            LinearObservationManager({}, base_dir=tmp_path)


class TestInitialize:

    def test_diagonal_operator(self, tmp_path, truth_file, model):
        obs = manager(tmp_path, operator={'definition': 'diagonal', 'diagonal_value': 2.0})
        obs.initialize(model)
        np.testing.assert_array_equal(obs.get_tangent_operator_row(1), [0.0, 2.0, 0.0])
        assert obs.get_tangent_operator(2, 2) == 2.0

    def test_operator_from_text_file(self, tmp_path, truth_file, model):
        np.savetxt(tmp_path / "h.txt", [[1.0, 0.0, 0.0], [0.0, 0.0, 1.0]])
        obs = manager(tmp_path, operator={'definition': 'file', 'file': 'h.txt'})
        obs.initialize(model)
        obs.set_time(model, 2)
        np.testing.assert_array_equal(obs.get_observation(), [2.0, 200.0])

    def test_operator_from_sparse_npz(self, tmp_path, truth_file, model):
        sp.save_npz(tmp_path / "h.npz", sp.csr_matrix([[0.0, 1.0, 0.0]]))
        obs = manager(tmp_path, operator={'definition': 'file', 'file': 'h.npz', 'sparse': True})
        obs.initialize(model)
        assert obs.is_operator_sparse()
        assert sp.issparse(obs.get_tangent_operator_matrix())
        np.testing.assert_array_equal(obs.get_tangent_operator_row(0), [0.0, 1.0, 0.0])

    def test_operator_from_npy(self, tmp_path, truth_file, model):
        np.save(tmp_path / "h.npy", np.eye(N_STATE)[:1])
        obs = manager(tmp_path, operator={'definition': 'file', 'file': 'h.npy'})
        obs.initialize(model)
        assert obs.get_tangent_operator_matrix().shape == (1, N_STATE)

    def test_operator_column_mismatch_fails_at_initialize(self, tmp_path, truth_file, model):
        np.savetxt(tmp_path / "h.txt", np.ones((2, N_STATE + 1)))
        obs = manager(tmp_path, operator={'definition': 'file', 'file': 'h.txt'})
        with pytest.raises(DimensionMismatchError, match="expected 3, got 4"):
            obs.initialize(model)

    def test_operator_mismatch_is_configuration_error(self, tmp_path, truth_file, model):
        np.savetxt(tmp_path / "h.txt", np.ones((1, 2)))
        obs = manager(tmp_path, operator={'definition': 'file', 'file': 'h.txt'})
        with pytest.raises(ConfigurationError):
            obs.initialize(model)

    def test_missing_operator_file(self, tmp_path, truth_file, model):
        obs = manager(tmp_path, operator={'definition': 'file', 'file': 'absent.txt'})
        with pytest.raises(ConfigurationError, match="not found"):
            obs.initialize(model)

    def test_missing_observation_file(self, tmp_path, model):
        with pytest.raises(ObservationIOError):
            manager(tmp_path).initialize(model)

    def test_used_before_initialize(self, tmp_path, truth_file, model):
        with pytest.raises(ConfigurationError, match="before initialize"):
            manager(tmp_path).set_time(model, 0)


class TestAvailability:

    @pytest.mark.parametrize("period, nskip, step, available, record", [
        (1, 1, 0, True, 0),
        (1, 1, 3, True, 3),
        (1, 2, 3, False, None),
        (1, 2, 4, True, 4),
        (2, 1, 4, True, 2),
        (2, 1, 3, False, None),
        (2, 2, 8, True, 4),
    ])
    def test_schedule(self, tmp_path, truth_file, model, period, nskip, step, available, record):
        obs = manager(tmp_path, period=period, nskip=nskip)
        obs.initialize(model)
        obs.set_time(model, step)

        assert obs.has_observation() is available
        if available:
            assert obs.get_n_observation() == N_STATE
            np.testing.assert_array_equal(obs.get_observation(), [record, 10.0 * record, 100.0 * record])
        else:
            assert obs.get_n_observation() == 0

    def test_load_observation_uses_model_step(self, tmp_path, truth_file, model):
        obs = manager(tmp_path)
        obs.initialize(model)
        model.forward()
        model.forward()
        obs.load_observation(model)
        np.testing.assert_array_equal(obs.get_observation(), [2.0, 20.0, 200.0])

    def test_step_past_end_of_file(self, tmp_path, truth_file, model):
        obs = manager(tmp_path)
        obs.initialize(model)
        with pytest.raises(ObservationIOError):
            obs.set_time(model, 10)

    def test_observation_type_records(self, tmp_path, model):
        write_records(tmp_path / "y.bin", [[5.0], [6.0]])
        np.savetxt(tmp_path / "h.txt", [[1.0, 1.0, 1.0]])
        obs = manager(tmp_path, file='y.bin', type='observation',
                      operator={'definition': 'file', 'file': 'h.txt'})
        obs.initialize(model)
        obs.set_time(model, 1)
        np.testing.assert_array_equal(obs.get_observation(), [6.0])

    def test_state_record_length_checked(self, tmp_path, model):
        write_records(tmp_path / "short.bin", [[1.0, 2.0]])
        obs = manager(tmp_path, file='short.bin')
        obs.initialize(model)
        with pytest.raises(DimensionMismatchError):
            obs.set_time(model, 0)


class TestOperators:

    def test_innovation(self, tmp_path, truth_file, model):
        obs = manager(tmp_path)
        obs.initialize(model)
        obs.set_time(model, 1)
        np.testing.assert_array_equal(obs.get_innovation(np.array([1.0, 1.0, 1.0])), [0.0, 9.0, 99.0])

    def test_adjoint(self, tmp_path, truth_file, model):
        np.savetxt(tmp_path / "h.txt", [[1.0, 2.0, 3.0]])
        obs = manager(tmp_path, operator={'definition': 'file', 'file': 'h.txt'})
        obs.initialize(model)
        np.testing.assert_array_equal(obs.apply_adjoint_operator(np.array([2.0])), [2.0, 4.0, 6.0])
        np.testing.assert_array_equal(obs.apply_tangent_operator(np.ones(3)), [6.0])

    def test_error_entries(self, tmp_path, truth_file, model):
        obs = manager(tmp_path, error={'variance': 0.5})
        obs.initialize(model)
        assert obs.get_observation_error_covariance(1, 1) == 0.5
        assert obs.get_observation_error_covariance(0, 1) == 0.0

    def test_error_matrix_only_when_sparse(self, tmp_path, truth_file, model):
        dense = manager(tmp_path)
        dense.initialize(model)
        assert not dense.has_error_matrix()
        with pytest.raises(CapabilityError):
            dense.get_observation_error_variance()

        sparse = manager(tmp_path, error={'variance': 0.5, 'sparse': True})
        sparse.initialize(model)
        assert sparse.has_error_matrix()
        assert sparse.is_error_sparse()
        np.testing.assert_array_equal(sparse.get_observation_error_variance().toarray(), 0.5 * np.eye(N_STATE))
