# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""
Single source of truth for the blueda version.
Update this when cutting a release.
"""
# Semantic version (PEP 440-friendly)
__version__ = "0.3.0"
