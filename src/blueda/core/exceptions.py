# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""
Custom exception hierarchy for blueda.

This module defines a hierarchy of exceptions that provide clear, specific
error types for the different failure modes of an assimilation run. All of
them are fatal for the run: the drivers never retry or skip past them.
"""

import logging
from contextlib import contextmanager
from typing import Optional


class BLUEDAError(Exception):
    """
    Base exception for all blueda-specific errors.

    All custom exceptions in blueda should inherit from this class.
    This allows catching all blueda errors with a single except clause.
    """
    pass


class ConfigurationError(BLUEDAError):
    """
    Configuration-related errors.

    Raised when:
    - Required configuration keys are missing
    - Configuration values are invalid
    - Configuration file cannot be loaded or parsed
    - A model, observation manager or method name is not registered
    """
    pass


class ConfigValidationError(ConfigurationError):
    """
    Configuration schema validation failures.

    Raised when:
    - A configuration section fails pydantic validation
    - Cross-field validation constraints are violated
    """
    pass


class DimensionMismatchError(ConfigurationError):
    """
    Inconsistent vector or matrix dimensions.

    Raised when:
    - The observation operator column count differs from the state dimension
    - A covariance row, operator row or innovation has the wrong length
    - An observation record does not have the expected length
    """

    def __init__(self, what: str, expected, actual):
        self.what = what
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Inconsistent dimension for {what}: expected {expected}, got {actual}"
        )


class CapabilityError(BLUEDAError):
    """
    A collaborator cannot provide a required representation.

    Raised when:
    - The matrix BLUE path is requested but B, H or R is not materialized
    - A model does not implement the tangent linear operator needed by the
      extended Kalman filter
    """
    pass


class NumericalError(BLUEDAError):
    """
    Linear algebra failures.

    Raised when:
    - (HBH' + R) is singular or not positive definite
    - A factorization or solve produces non-finite values
    """
    pass


class FileOperationError(BLUEDAError):
    """
    File I/O operation failures.

    Raised when:
    - Required file not found
    - File cannot be read or written
    """
    pass


class ObservationIOError(FileOperationError):
    """
    Observation data failures.

    Raised when:
    - The observation file is missing or unreadable
    - The requested observation record is truncated or absent
    """
    pass


class CycleStateError(BLUEDAError):
    """
    Driver lifecycle violations.

    Raised when:
    - A driver method is called before ``initialize``
    - ``forward`` or ``analyze`` is called out of cycle order
    """
    pass


class LockFileError(BLUEDAError):
    """
    Lock acquisition failures.

    Raised when:
    - A lock file is still present after every retry
    - The lock file cannot be created for a reason other than contention
    """
    pass


# =============================================================================
# Validation Helpers
# =============================================================================

def require(condition: bool, message: str, error_type: type = None) -> None:
    """
    Validate a condition, raising an exception if it fails.

    This replaces assert statements with proper validation that cannot be
    disabled with python -O.

    Args:
        condition: The condition that must be True
        message: Error message if condition is False
        error_type: Exception type to raise (default: ConfigurationError)

    Raises:
        ConfigurationError (or specified error_type) if condition is False
    """
    if error_type is None:
        error_type = ConfigurationError
    if not condition:
        raise error_type(message)


@contextmanager
def blueda_error_handler(
    operation: str,
    logger: Optional[logging.Logger] = None,
    error_type: type = BLUEDAError
):
    """
    Context manager for standardized error handling.

    Args:
        operation: Description of the operation being performed (for logging)
        logger: Logger instance for error messages. If None, errors are not logged.
        error_type: blueda exception type to convert generic exceptions to

    Example:
        >>> with blueda_error_handler("observation loading", logger, error_type=ObservationIOError):
        ...     manager.load_observation(model)
    """
    try:
        yield
    except BLUEDAError:
        if logger:
            logger.error(f"Error during {operation}", exc_info=True)
        raise
    except Exception as e:
        if logger:
            logger.error(f"Error during {operation}: {e}", exc_info=True)
        raise error_type(f"Failed during {operation}: {e}") from e


# =============================================================================
# Public API
# =============================================================================

__all__ = [
    # Base
    'BLUEDAError',
    # Domain exceptions
    'ConfigurationError',
    'ConfigValidationError',
    'DimensionMismatchError',
    'CapabilityError',
    'NumericalError',
    'FileOperationError',
    'ObservationIOError',
    'CycleStateError',
    'LockFileError',
    # Helpers
    'require',
    'blueda_error_handler',
]
