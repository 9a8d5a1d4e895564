# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""Unified Registries facade for blueda.

All component registries live as class-level :class:`Registry` instances on
the :class:`Registries` class.  Import the convenience alias ``R`` for
terse usage::

    from blueda.core.registries import R

    model_cls = R.models["quadratic"]
"""

from __future__ import annotations

from typing import Any

from blueda.core.exceptions import ConfigurationError
from blueda.core.registry import Registry


class Registries:
    """Single entry-point for every blueda component registry."""

    methods: Registry = Registry("methods", doc="Assimilation and forward drivers")
    models: Registry = Registry("models", doc="Forward model classes")
    observation_managers: Registry = Registry(
        "observation_managers", doc="Observation manager classes"
    )
    linear_solvers: Registry = Registry(
        "linear_solvers", doc="Direct solvers used by the matrix BLUE path"
    )

    @classmethod
    def lookup(cls, registry_name: str, key: str) -> Any:
        """Resolve *key* in the named registry, as a configuration error on miss."""
        registry: Registry = getattr(cls, registry_name)
        try:
            return registry[key]
        except KeyError as exc:
            raise ConfigurationError(str(exc.args[0])) from exc


R = Registries

# Built-in components, resolved on first lookup.
R.methods.add_lazy(
    "optimal_interpolation",
    "blueda.data_assimilation.methods.optimal_interpolation.OptimalInterpolation",
)
R.methods.add_lazy(
    "extended_kalman_filter",
    "blueda.data_assimilation.methods.extended_kalman_filter.ExtendedKalmanFilter",
)
R.methods.add_lazy(
    "forward", "blueda.data_assimilation.methods.forward_driver.ForwardDriver"
)
R.methods.alias("oi", "optimal_interpolation")
R.methods.alias("ekf", "extended_kalman_filter")

R.models.add_lazy("quadratic", "blueda.models.quadratic_model.QuadraticModel")
R.models.add_lazy("clamped_bar", "blueda.models.clamped_bar.ClampedBar")
R.models.add_lazy("lorenz", "blueda.models.lorenz.Lorenz63")

R.observation_managers.add_lazy(
    "linear",
    "blueda.data_assimilation.observation.linear_observation_manager.LinearObservationManager",
)

R.linear_solvers.add_lazy("superlu", "blueda.data_assimilation.blue.solvers.SuperLUSolver")
R.linear_solvers.add_lazy("cholesky", "blueda.data_assimilation.blue.solvers.CholeskySolver")
