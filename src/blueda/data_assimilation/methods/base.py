# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""
Driver base classes.

BaseDriver runs the cycle state machine shared by every method:

    UNINITIALIZED --initialize--> INITIALIZED
    INITIALIZED | FORECAST | ANALYZED --initialize_step--> STEP_READY
    STEP_READY --forward--> FORECAST
    INITIALIZED | FORECAST --analyze--> ANALYZED        (AnalysisDriver only)
    initialize with analyze_first_step ends in ANALYZED (AnalysisDriver only)
    any initialized state --finalize--> FINISHED

Calls outside these transitions raise CycleStateError. Lifecycle events are
dispatched to the listeners subscribed on the driver; the model and the
observation manager are subscribed for their own recipient at initialization.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Iterable, Optional

import numpy as np

from blueda.core.config.models import BluedaConfig
from blueda.core.exceptions import ConfigurationError, CycleStateError
from blueda.core.mixins import LoggingTimingMixin
from blueda.core.registries import R
from blueda.data_assimilation.blue import BLUEEngine, get_linear_solver
from blueda.data_assimilation.events import (
    EventDispatcher,
    LifecycleEvent,
    LifecycleTag,
    Listener,
    Recipient,
)
from blueda.data_assimilation.interfaces import Model, ObservationManager


class DriverState(Enum):
    UNINITIALIZED = 'uninitialized'
    INITIALIZED = 'initialized'
    STEP_READY = 'step_ready'
    FORECAST = 'forecast'
    ANALYZED = 'analyzed'
    FINISHED = 'finished'


_STEP_SOURCES = frozenset({DriverState.INITIALIZED, DriverState.FORECAST, DriverState.ANALYZED})
_FORWARD_SOURCES = frozenset({DriverState.STEP_READY})
_ANALYZE_SOURCES = frozenset({DriverState.INITIALIZED, DriverState.FORECAST})


class BaseDriver(LoggingTimingMixin):
    """
    Drives a model through Initialize -> {InitializeStep -> Forward}* -> Finalize.

    Args:
        config: Validated run configuration
        model: Model instance to drive; built from ``config.model`` when omitted
    """

    name = ''
    performs_analysis = False

    def __init__(self, config: BluedaConfig, model: Optional[Model] = None):
        self.config = config
        self.model = model
        self.events = EventDispatcher()
        self.state = DriverState.UNINITIALIZED
        self.iteration = 0

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener, recipients: Iterable[Recipient] = (Recipient.ALL,)) -> None:
        """Register ``listener`` for events addressed to ``recipients``."""
        self.events.subscribe(listener, recipients)

    def get_name(self) -> str:
        return self.name or type(self).__name__

    def notify(
        self,
        tag: LifecycleTag,
        recipients: Iterable[Recipient] = (Recipient.ALL,),
        with_state: bool = False,
    ) -> None:
        model = self.model
        step = model.get_step() if model is not None and self._model_ready else 0
        time = model.get_time() if model is not None and self._model_ready else 0.0
        state = model.get_state() if with_state else None
        self.events.dispatch(LifecycleEvent(
            tag=tag,
            recipients=frozenset(recipients),
            driver=self.get_name(),
            step=step,
            time=time,
            state=state,
        ))

    @property
    def _model_ready(self) -> bool:
        return self.state is not DriverState.UNINITIALIZED

    def _require_state(self, operation: str, allowed: Iterable[DriverState]) -> None:
        if self.state not in allowed:
            raise CycleStateError(
                f"{self.get_name()}.{operation}() called in state '{self.state.value}'; "
                f"allowed from {sorted(s.value for s in allowed)}"
            )

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    def _build_model(self) -> Model:
        section = self.config.model
        model_cls = R.lookup('models', section.name)
        return model_cls(section.settings, base_dir=self.config.base_dir)

    def _attach_output(self) -> None:
        if self.config.output.enabled:
            from blueda.data_assimilation.output import OutputSaver
            saver = OutputSaver(self.config.output, base_dir=self.config.base_dir)
            self.subscribe(saver)

    def _initialize_components(self) -> None:
        """Hook for drivers that build more than the model."""

    # ------------------------------------------------------------------
    # Cycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """
        Build and initialize the model (and any other component).

        Raises:
            ConfigurationError: On invalid model or manager configuration
        """
        self._require_state('initialize', {DriverState.UNINITIALIZED})
        self._attach_output()
        self.notify(LifecycleTag.INITIALIZE_BEGIN)

        with self.time_limit(f"{self.get_name()} initialization"):
            if self.model is None:
                self.model = self._build_model()
            self.model.initialize()
            self.subscribe(self.model.message, (Recipient.MODEL,))
            self._initialize_components()

        self.iteration = 0
        self.state = DriverState.INITIALIZED
        self.logger.info(
            f"Initialized {self.get_name()} with model {self.model.get_name()} "
            f"({self.model.get_n_state()} state variables)"
        )
        self._after_initialize()
        self.notify(LifecycleTag.INITIAL_CONDITION, (Recipient.MODEL,), with_state=True)
        self.notify(LifecycleTag.INITIALIZE_END)

    def _after_initialize(self) -> None:
        """Hook run before the initial condition is announced."""

    def initialize_step(self) -> None:
        self._require_state('initialize_step', _STEP_SOURCES)
        self.notify(LifecycleTag.INITIALIZE_STEP_BEGIN)
        self.model.initialize_step()
        if self.config.display.show_iteration:
            self.logger.info(f"Iteration {self.iteration} -> {self.iteration + 1}")
        self.state = DriverState.STEP_READY
        self.notify(LifecycleTag.INITIALIZE_STEP_END)

    def forward(self) -> None:
        """Advance the model one step."""
        self._require_state('forward', _FORWARD_SOURCES)
        self.notify(LifecycleTag.FORWARD_BEGIN)
        with self.time_limit(f"forward step {self.iteration + 1}"):
            self._forward()
        self.iteration += 1
        self.state = DriverState.FORECAST
        self.notify(
            LifecycleTag.FORECAST,
            (Recipient.MODEL, Recipient.OBSERVATION_MANAGER),
            with_state=True,
        )
        self.notify(LifecycleTag.FORWARD_END)

    def _forward(self) -> None:
        self.model.forward()

    def has_finished(self) -> bool:
        """True once the model has reached its final time."""
        if self.state is DriverState.UNINITIALIZED:
            raise CycleStateError(f"{self.get_name()}.has_finished() called before initialize()")
        if self.state is DriverState.FINISHED:
            return True
        return self.model.has_finished()

    def finalize(self) -> None:
        """Announce the end of the run; output listeners flush here."""
        if self.state in (DriverState.UNINITIALIZED, DriverState.FINISHED):
            raise CycleStateError(
                f"{self.get_name()}.finalize() called in state '{self.state.value}'"
            )
        self.notify(LifecycleTag.FINALIZE)
        self.state = DriverState.FINISHED
        self.logger.info(f"{self.get_name()} finished after {self.iteration} steps")

    def run(self) -> None:
        """Run the complete cycle until the model has finished."""
        self.initialize()
        while not self.has_finished():
            self.initialize_step()
            self.forward()
            if self.performs_analysis:
                self.analyze()
        self.finalize()

    def analyze(self) -> bool:
        raise CycleStateError(f"{self.get_name()} does not perform analyses")


class AnalysisDriver(BaseDriver, ABC):
    """
    Driver that corrects the forecast with observations through the BLUE.

    Args:
        config: Validated run configuration
        model: Model to drive; built from ``config.model`` when omitted
        observation_manager: Built from ``config.observation`` when omitted
        engine: BLUE engine; built from ``config.data_assimilation`` when omitted
    """

    performs_analysis = True
    analysis_label = 'analysis'

    def __init__(
        self,
        config: BluedaConfig,
        model: Optional[Model] = None,
        observation_manager: Optional[ObservationManager] = None,
        engine: Optional[BLUEEngine] = None,
    ):
        super().__init__(config, model)
        self.observation_manager = observation_manager
        da = config.data_assimilation
        self.engine = engine if engine is not None else BLUEEngine(
            mode=da.blue_computation, solver=get_linear_solver(da.linear_solver)
        )
        self.last_increment: Optional[np.ndarray] = None

    def _build_observation_manager(self) -> ObservationManager:
        section = self.config.observation
        if section is None:
            raise ConfigurationError(
                f"Method '{self.get_name()}' requires an 'observation' section"
            )
        manager_cls = R.lookup('observation_managers', section.manager)
        return manager_cls(section.settings, base_dir=self.config.base_dir)

    def _initialize_components(self) -> None:
        if self.observation_manager is None:
            self.observation_manager = self._build_observation_manager()
        self.observation_manager.initialize(self.model)
        self.subscribe(self.observation_manager.message, (Recipient.OBSERVATION_MANAGER,))

    def _after_initialize(self) -> None:
        # The analyzed state becomes the announced initial condition; no
        # ANALYSIS event is sent for it.
        if self.config.data_assimilation.analyze_first_step:
            self._analyze_observed()
            self.state = DriverState.ANALYZED

    def analyze(self) -> bool:
        """
        Correct the model state with the observations of the current step.

        Returns:
            True if an analysis was performed, False when no observation was
            available (the state is then left untouched)
        """
        self._require_state('analyze', _ANALYZE_SOURCES)
        self.notify(LifecycleTag.ANALYZE_BEGIN)
        performed = self._analyze_observed()
        if performed:
            self.notify(
                LifecycleTag.ANALYSIS,
                (Recipient.MODEL, Recipient.OBSERVATION_MANAGER),
                with_state=True,
            )
        self.state = DriverState.ANALYZED
        self.notify(LifecycleTag.ANALYZE_END)
        return performed

    def _analyze_observed(self) -> bool:
        """Load the observations of the current step and analyze if there are any."""
        self.last_increment = None
        manager = self.observation_manager
        manager.load_observation(self.model)
        if not (manager.has_observation() and manager.get_n_observation() > 0):
            self.logger.debug(f"No observation at step {self.model.get_step()}")
            return False

        if self.config.display.show_time:
            self.logger.info(
                f"Performing {self.analysis_label} at step {self.model.get_step()} "
                f"(time {self.model.get_time():g})"
            )
        with self.time_limit(f"{self.analysis_label} at step {self.model.get_step()}"):
            self._analyze()
        return True

    @abstractmethod
    def _analyze(self) -> None:
        """Apply the analysis to the model state."""
