# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""
Optimal interpolation.

The background error covariance is the model's static B; every analysis
applies the BLUE to the forecast state and writes the result back into the
model.
"""

from blueda.data_assimilation.methods.base import AnalysisDriver


class OptimalInterpolation(AnalysisDriver):
    """
    Forecast/analysis cycle with a static background error covariance.

    Example:
        >>> driver = OptimalInterpolation(BluedaConfig.from_file("oi.yaml"))
        >>> driver.initialize()
        >>> while not driver.has_finished():
        ...     driver.initialize_step()
        ...     driver.forward()
        ...     driver.analyze()
        >>> driver.finalize()
    """

    name = 'optimal_interpolation'
    analysis_label = 'optimal interpolation'

    def _analyze(self) -> None:
        state = self.model.get_state()
        self.last_increment = self.engine.compute_analysis(
            state, self.model, self.observation_manager
        )
        self.model.set_state(state)
