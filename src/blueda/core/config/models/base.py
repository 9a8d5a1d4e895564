# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""
Common base configuration for config models.

This module provides the ConfigDict shared by every configuration section.
"""

from pydantic import ConfigDict

# Standard ConfigDict for all config models
FROZEN_CONFIG = ConfigDict(extra='forbid', populate_by_name=True, frozen=True)

# Sections that forward their remaining keys to a component-specific schema
OPEN_SECTION_CONFIG = ConfigDict(extra='allow', populate_by_name=True, frozen=True)
