# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""Forward models bundled with blueda."""

from .clamped_bar import ClampedBar
from .lorenz import Lorenz63
from .quadratic_model import QuadraticModel

__all__ = ['ClampedBar', 'Lorenz63', 'QuadraticModel']
