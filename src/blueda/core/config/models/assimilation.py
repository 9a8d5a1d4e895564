# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""
Data assimilation configuration model.

Selects the BLUE computational path, the sparse direct solver and whether
the initial condition is analyzed before the first forecast.
"""

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from .base import FROZEN_CONFIG


class DataAssimilationConfig(BaseModel):
    """Settings shared by the BLUE-based drivers."""
    model_config = FROZEN_CONFIG

    blue_computation: Literal['vector', 'matrix', 'auto'] = Field(
        default='vector', alias='BLUE_computation',
        description="'vector': dense row-wise path; 'matrix': sparse factorized "
                    "path; 'auto': choose from the sparsity of B, H and R"
    )
    analyze_first_step: bool = Field(default=False, alias='Analyze_first_step')
    linear_solver: str = Field(
        default='superlu', alias='Linear_solver',
        description='Direct solver of the matrix path'
    )

    @field_validator('blue_computation', mode='before')
    @classmethod
    def lower_case_mode(cls, v):
        """Accept 'Vector', 'MATRIX' and the like."""
        return v.lower() if isinstance(v, str) else v

    @field_validator('linear_solver')
    @classmethod
    def validate_solver(cls, v):
        """The solver must be registered."""
        from blueda.core.registries import R
        if v not in R.linear_solvers:
            raise ValueError(
                f"unknown linear solver {v!r}; available: {R.linear_solvers.keys()}"
            )
        return v.lower()
