# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""
Background error covariance builders.

``balgovind`` gives a dense matrix with the Balgovind correlation

    C(d) = (1 + d / L) exp(-d / L)

scaled by a variance; ``diagonal`` gives a sparse ``variance * I``.
"""

from typing import Sequence

import numpy as np
import scipy.sparse as sp
from pydantic import BaseModel, Field

from blueda.core.config.models.base import FROZEN_CONFIG


class BackgroundErrorSettings(BaseModel):
    """The ``background_error`` key of a model section."""
    model_config = FROZEN_CONFIG

    variance: float = Field(default=1.0, gt=0)
    balgovind_scale: float = Field(default=1.0, gt=0)
    sparse: bool = Field(
        default=False,
        description='Use a sparse diagonal B instead of the dense Balgovind matrix'
    )


def balgovind_correlation(distance: np.ndarray, scale: float) -> np.ndarray:
    ratio = np.abs(distance) / scale
    return (1.0 + ratio) * np.exp(-ratio)


def balgovind_matrix(n: int, scale: float, variance: float, spacing: float = 1.0) -> np.ndarray:
    """Dense n x n Balgovind covariance for points ``spacing`` apart."""
    index = np.arange(n)
    distance = spacing * (index[:, None] - index[None, :])
    return variance * balgovind_correlation(distance, scale)


def diagonal_matrix(n: int, variance: float) -> sp.csr_matrix:
    return sp.identity(n, format='csr') * variance


def background_covariance(
    block_sizes: Sequence[int],
    settings: BackgroundErrorSettings,
    spacing: float = 1.0,
):
    """
    B for a state made of consecutive blocks (e.g. displacement and velocity).

    Blocks are uncorrelated with one another; within a block the Balgovind
    correlation applies (dense) or B is diagonal (sparse).
    """
    n_state = int(sum(block_sizes))
    if settings.sparse:
        return diagonal_matrix(n_state, settings.variance)
    blocks = [
        balgovind_matrix(n, settings.balgovind_scale, settings.variance, spacing)
        for n in block_sizes
    ]
    return sp.block_diag(blocks).toarray()
