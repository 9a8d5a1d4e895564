# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

# src/blueda/__init__.py
"""
blueda: BLUE-based data assimilation.

Combines a dynamical model forecast with noisy observations through the
Best Linear Unbiased Estimator, with optimal interpolation, extended Kalman
filter and plain forward drivers.
"""
try:
    from .blueda_version import __version__
except ImportError:
    try:
        from importlib.metadata import version, PackageNotFoundError
        __version__ = version("blueda")
    except (ImportError, PackageNotFoundError):
        __version__ = "0.0.0"

from .data_assimilation.blue import BLUEEngine, ComputationMode

__all__ = ["BLUEEngine", "ComputationMode", "__version__"]
