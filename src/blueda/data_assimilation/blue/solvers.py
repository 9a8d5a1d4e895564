# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""
Direct linear solvers used by the matrix BLUE path.

A solver factors a square matrix once and solves against the factorization
in place. Backends are registered in ``R.linear_solvers``.
"""

from abc import ABC, abstractmethod
from typing import Any

import numpy as np
import scipy.linalg
import scipy.sparse as sp
from scipy.sparse.linalg import splu

from blueda.core.exceptions import DimensionMismatchError, NumericalError


class LinearSolver(ABC):
    """Factor-then-solve interface."""

    name = ''

    @abstractmethod
    def factor(self, matrix) -> Any:
        """Factor the square matrix ``matrix`` and return a handle."""

    @abstractmethod
    def solve(self, handle: Any, rhs: np.ndarray) -> np.ndarray:
        """Overwrite ``rhs`` with the solution of ``A x = rhs`` and return it."""

    @staticmethod
    def _check_square(matrix) -> None:
        if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
            raise DimensionMismatchError(
                "matrix to factor", "a square matrix", f"shape {matrix.shape}"
            )

    @staticmethod
    def _store(solution: np.ndarray, rhs: np.ndarray) -> np.ndarray:
        if not np.all(np.isfinite(solution)):
            raise NumericalError("Linear solve produced non-finite values")
        rhs[...] = solution
        return rhs


class SuperLUSolver(LinearSolver):
    """
    Sparse LU factorization (SuperLU through scipy).

    With ``positive_definite`` (the default) the matrix is factored with
    symmetric ordering and diagonal pivoting, P A P' = L D L', and is
    rejected unless it is symmetric with every pivot of D positive.

    Args:
        positive_definite: Require a symmetric positive definite matrix
    """

    name = 'superlu'

    def __init__(self, positive_definite: bool = True):
        self.positive_definite = positive_definite

    def factor(self, matrix) -> Any:
        matrix = sp.csc_matrix(matrix, dtype=float)
        self._check_square(matrix)
        if not self.positive_definite:
            try:
                return splu(matrix)
            except RuntimeError as e:
                raise NumericalError(f"Sparse LU factorization failed: {e}") from e

        scale = abs(matrix).max() if matrix.nnz else 0.0
        if matrix.nnz and abs(matrix - matrix.T).max() > 1e-10 * scale:
            raise NumericalError("Matrix to factor is not symmetric")
        try:
            handle = splu(
                matrix,
                permc_spec='MMD_AT_PLUS_A',
                diag_pivot_thresh=0.0,
                options=dict(SymmetricMode=True),
            )
        except RuntimeError as e:
            raise NumericalError(f"Sparse LU factorization failed: {e}") from e

        pivots = handle.U.diagonal()
        if not np.array_equal(handle.perm_r, handle.perm_c) or np.any(pivots <= 0.0):
            raise NumericalError(
                f"Matrix is not positive definite (smallest pivot {pivots.min():g})"
            )
        return handle

    def solve(self, handle: Any, rhs: np.ndarray) -> np.ndarray:
        return self._store(handle.solve(np.asarray(rhs, dtype=float)), rhs)


class CholeskySolver(LinearSolver):
    """Dense Cholesky factorization; rejects matrices that are not positive definite."""

    name = 'cholesky'

    def factor(self, matrix) -> Any:
        dense = matrix.toarray() if sp.issparse(matrix) else np.asarray(matrix, dtype=float)
        self._check_square(dense)
        try:
            return scipy.linalg.cho_factor(dense)
        except (np.linalg.LinAlgError, ValueError) as e:
            raise NumericalError(f"Cholesky factorization failed: {e}") from e

    def solve(self, handle: Any, rhs: np.ndarray) -> np.ndarray:
        return self._store(scipy.linalg.cho_solve(handle, np.asarray(rhs, dtype=float)), rhs)


def get_linear_solver(name: str) -> LinearSolver:
    """Instantiate the registered solver ``name``."""
    from blueda.core.registries import R
    return R.lookup('linear_solvers', name)()
