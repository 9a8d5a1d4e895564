"""Tests for the optimal interpolation cycle driver."""

import logging
from unittest.mock import MagicMock

import numpy as np
import pytest

from blueda.core.exceptions import ConfigurationError, CycleStateError, NumericalError
from blueda.data_assimilation.blue import BLUEEngine
from blueda.data_assimilation.events import LifecycleTag
from blueda.data_assimilation.methods import DriverState, OptimalInterpolation

pytestmark = [pytest.mark.unit]


class TestScalarScenario:

    @pytest.mark.parametrize("mode", ["vector", "matrix"])
    def test_analysis_on_first_step(self, make_config, scalar_model, scalar_observations, mode):
        config = make_config(data_assimilation={'blue_computation': mode, 'analyze_first_step': True})
        driver = OptimalInterpolation(config, scalar_model, scalar_observations)

        driver.initialize()

        np.testing.assert_allclose(driver.model.get_state(), [2.4], rtol=1e-12)
        np.testing.assert_allclose(driver.last_increment, [2.4], rtol=1e-12)
        assert driver.state is DriverState.ANALYZED

    def test_full_cycle(self, make_config, scalar_model, scalar_observations):
        driver = OptimalInterpolation(make_config(), scalar_model, scalar_observations)
        driver.run()

        # Identity dynamics, one analysis at step 2: 0 + 0.8 * 3
        np.testing.assert_allclose(driver.model.get_state(), [2.4])
        assert driver.state is DriverState.FINISHED
        assert driver.iteration == 2


class TestNoObservation:

    def test_state_untouched_and_engine_not_called(self, make_config, linear_model_cls, scheduled_observations_cls):
        model = linear_model_cls([1.0], [[4.0]], transition=[[1.5]])
        manager = scheduled_observations_cls([[1.0]], [[1.0]], {2: [3.0]})
        engine = MagicMock(spec=BLUEEngine)
        driver = OptimalInterpolation(make_config(), model, manager, engine=engine)

        driver.initialize()
        driver.initialize_step()
        driver.forward()
        before = model.get_state()

        assert driver.analyze() is False

        assert model.get_state().tobytes() == before.tobytes()
        engine.compute_analysis.assert_not_called()
        assert driver.last_increment is None

    def test_engine_called_when_observation_available(self, make_config, linear_model_cls, scheduled_observations_cls):
        model = linear_model_cls([1.0], [[4.0]])
        manager = scheduled_observations_cls([[1.0]], [[1.0]], {1: [3.0]})
        engine = MagicMock(spec=BLUEEngine)
        driver = OptimalInterpolation(make_config(), model, manager, engine=engine)

        driver.initialize()
        driver.initialize_step()
        driver.forward()

        assert driver.analyze() is True
        engine.compute_analysis.assert_called_once()


class TestStateMachine:

    @pytest.fixture
    def driver(self, make_config, scalar_model, scalar_observations):
        return OptimalInterpolation(make_config(), scalar_model, scalar_observations)

    @pytest.mark.parametrize("operation", ["initialize_step", "forward", "analyze", "has_finished", "finalize"])
    def test_calls_before_initialize(self, driver, operation):
        with pytest.raises(CycleStateError):
            getattr(driver, operation)()

    def test_initialize_twice(self, driver):
        driver.initialize()
        with pytest.raises(CycleStateError, match="initialize"):
            driver.initialize()

    def test_forward_requires_initialize_step(self, driver):
        driver.initialize()
        with pytest.raises(CycleStateError, match="forward"):
            driver.forward()

    def test_analyze_after_initialize_step_is_rejected(self, driver):
        driver.initialize()
        driver.initialize_step()
        with pytest.raises(CycleStateError, match="analyze"):
            driver.analyze()

    def test_analyze_twice(self, driver):
        driver.initialize()
        driver.initialize_step()
        driver.forward()
        driver.analyze()
        with pytest.raises(CycleStateError):
            driver.analyze()

    def test_next_step_after_forecast_or_analysis(self, driver):
        driver.initialize()
        driver.initialize_step()
        driver.forward()
        assert driver.state is DriverState.FORECAST
        driver.initialize_step()
        driver.forward()
        driver.analyze()
        assert driver.state is DriverState.ANALYZED
        assert driver.has_finished()

    def test_finalize(self, driver):
        driver.initialize()
        driver.finalize()
        assert driver.state is DriverState.FINISHED
        assert driver.has_finished()
        with pytest.raises(CycleStateError):
            driver.initialize_step()


class TestNotifications:

    def test_event_sequence(self, make_config, scalar_model, scalar_observations):
        tags = []
        driver = OptimalInterpolation(make_config(), scalar_model, scalar_observations)
        driver.subscribe(lambda event: tags.append(event.tag))

        driver.run()

        T = LifecycleTag
        step_without_analysis = [
            T.INITIALIZE_STEP_BEGIN, T.INITIALIZE_STEP_END,
            T.FORWARD_BEGIN, T.FORECAST, T.FORWARD_END,
            T.ANALYZE_BEGIN, T.ANALYZE_END,
        ]
        step_with_analysis = [
            T.INITIALIZE_STEP_BEGIN, T.INITIALIZE_STEP_END,
            T.FORWARD_BEGIN, T.FORECAST, T.FORWARD_END,
            T.ANALYZE_BEGIN, T.ANALYSIS, T.ANALYZE_END,
        ]
        assert tags == (
            [T.INITIALIZE_BEGIN, T.INITIAL_CONDITION, T.INITIALIZE_END]
            + step_without_analysis
            + step_with_analysis
            + [T.FINALIZE]
        )

    def test_first_step_analysis_is_the_announced_initial_condition(
        self, make_config, scalar_model, scalar_observations
    ):
        events = []
        config = make_config(data_assimilation={'analyze_first_step': True})
        driver = OptimalInterpolation(config, scalar_model, scalar_observations)
        driver.subscribe(events.append)

        driver.initialize()

        T = LifecycleTag
        assert [e.tag for e in events] == [T.INITIALIZE_BEGIN, T.INITIAL_CONDITION, T.INITIALIZE_END]
        np.testing.assert_allclose(events[1].state, [2.4])
        np.testing.assert_allclose(events[1].state, driver.model.get_state())
        assert driver.state is DriverState.ANALYZED

    def test_model_and_manager_hooks(self, make_config, scalar_model, scalar_observations):
        driver = OptimalInterpolation(make_config(), scalar_model, scalar_observations)
        driver.run()

        assert LifecycleTag.INITIAL_CONDITION in scalar_model.received
        assert scalar_model.received.count(LifecycleTag.FORECAST) == 2
        assert scalar_model.received.count(LifecycleTag.ANALYSIS) == 1

        assert LifecycleTag.INITIAL_CONDITION not in scalar_observations.received
        assert scalar_observations.received.count(LifecycleTag.FORECAST) == 2
        assert scalar_observations.received.count(LifecycleTag.ANALYSIS) == 1

    def test_events_carry_state_copies(self, make_config, scalar_model, scalar_observations):
        events = []
        driver = OptimalInterpolation(make_config(), scalar_model, scalar_observations)
        driver.subscribe(events.append)
        driver.run()

        forecast = [e for e in events if e.tag is LifecycleTag.FORECAST][-1]
        analysis = [e for e in events if e.tag is LifecycleTag.ANALYSIS][-1]
        np.testing.assert_allclose(forecast.state, [0.0])
        np.testing.assert_allclose(analysis.state, [2.4])
        assert analysis.step == 2
        assert analysis.driver == 'optimal_interpolation'

    def test_show_time_logs_analysis(self, make_config, scalar_model, scalar_observations, caplog):
        config = make_config(display={'show_time': True, 'show_iteration': True})
        driver = OptimalInterpolation(config, scalar_model, scalar_observations)
        with caplog.at_level(logging.INFO, logger="blueda"):
            driver.run()
        assert "Performing optimal interpolation at step 2" in caplog.text
        assert "Iteration 0 -> 1" in caplog.text


class TestFailures:

    def test_singular_system_is_fatal(self, make_config, linear_model_cls, scheduled_observations_cls):
        model = linear_model_cls([0.0, 0.0], [[4.0, 2.0], [2.0, 1.0]])
        manager = scheduled_observations_cls(np.eye(2), np.zeros((2, 2)), {0: [1.0, 0.0]})
        config = make_config(data_assimilation={'analyze_first_step': True})

        with pytest.raises(NumericalError):
            OptimalInterpolation(config, model, manager).initialize()

    def test_missing_observation_section(self, make_config, scalar_model):
        driver = OptimalInterpolation(make_config(), scalar_model)
        with pytest.raises(ConfigurationError, match="observation"):
            driver.initialize()
