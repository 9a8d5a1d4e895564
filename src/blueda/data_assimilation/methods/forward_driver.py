# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""
Forward driver: runs the model without observations.

With binary output enabled, a forward run writes one state per step and the
resulting file can serve as the observation file of a twin experiment.
"""

from blueda.data_assimilation.methods.base import BaseDriver


class ForwardDriver(BaseDriver):
    """Initialize -> {InitializeStep -> Forward}* on the model alone."""

    name = 'forward'
