# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""
Core mixins for blueda modules.

Provides base mixins for logging and timing that drivers, models and
observation managers build upon.
"""

import logging
import time
from contextlib import contextmanager
from typing import ContextManager


class LoggingMixin:
    """
    Mixin providing standardized logger access.

    Ensures a logger is always available, defaulting to one named after the
    class if none is explicitly set.
    """

    @property
    def logger(self) -> logging.Logger:
        """Get the logger instance."""
        _logger = getattr(self, '_logger', None)
        if _logger is None:
            module = self.__class__.__module__
            name = self.__class__.__name__
            self._logger = logging.getLogger(f"{module}.{name}")
            return self._logger
        return _logger

    @logger.setter
    def logger(self, value: logging.Logger) -> None:
        """Set the logger instance."""
        self._logger = value


class TimingMixin:
    """
    Mixin providing timing and profiling utilities.

    Requires self.logger to be available.
    """

    @contextmanager
    def time_limit(self, task_name: str) -> ContextManager[None]:
        """
        Context manager to time a task and log the duration.
        """
        start_time = time.time()
        logger = getattr(self, 'logger', logging.getLogger(__name__))
        logger.debug(f"Starting task: {task_name}")
        try:
            yield
        finally:
            duration = time.time() - start_time
            logger.debug(f"Completed task: {task_name} in {duration:.4f} seconds")


class LoggingTimingMixin(LoggingMixin, TimingMixin):
    """Logger access plus task timing, the combination most components need."""
    pass
