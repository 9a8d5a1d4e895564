# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""
Run logger configuration.

LoggingManager configures the ``blueda`` logger hierarchy once per run from
the ``logging`` configuration section: a console handler and, optionally, a
file handler whose name may contain a ``{date}`` placeholder.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from blueda.core.config.models import LoggingConfig
from blueda.core.exceptions import FileOperationError

ROOT_LOGGER_NAME = 'blueda'

DETAILED_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
SIMPLE_FORMAT = '%(levelname)s: %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class LoggingManager:
    """
    Owns the handlers attached to the ``blueda`` logger.

    Calling :meth:`setup` again replaces the handlers installed by a previous
    call, so repeated runs in one process do not duplicate output.
    """

    def __init__(self, config: Optional[LoggingConfig] = None, base_dir: Optional[Path] = None):
        self.config = config or LoggingConfig()
        self.base_dir = Path(base_dir) if base_dir is not None else Path.cwd()
        self.log_file: Optional[Path] = None
        self._handlers: List[logging.Handler] = []
        self._previous_level: Optional[int] = None

    def _formatter(self) -> logging.Formatter:
        if self.config.format == 'simple':
            return logging.Formatter(SIMPLE_FORMAT)
        return logging.Formatter(DETAILED_FORMAT, datefmt=DATE_FORMAT)

    def _log_file_path(self, start: datetime) -> Path:
        name = self.config.file.replace('{date}', start.strftime('%Y%m%d_%H%M%S'))
        directory = Path(self.config.directory).expanduser()
        if not directory.is_absolute():
            directory = self.base_dir / directory
        return directory / name

    def setup(self, level: Optional[str] = None) -> logging.Logger:
        """
        Configure and return the ``blueda`` logger.

        Args:
            level: Overrides the configured level (e.g. from the command line)

        Raises:
            FileOperationError: If the log file cannot be opened
        """
        self.teardown()
        logger = logging.getLogger(ROOT_LOGGER_NAME)
        self._previous_level = logger.level
        logger.setLevel(getattr(logging, (level or self.config.level).upper()))
        formatter = self._formatter()

        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(formatter)
        self._add(logger, console)

        if self.config.to_file:
            self.log_file = self._log_file_path(datetime.now())
            try:
                self.log_file.parent.mkdir(parents=True, exist_ok=True)
                file_handler = logging.FileHandler(self.log_file, mode='w')
            except OSError as e:
                raise FileOperationError(f"Cannot open log file {self.log_file}: {e}") from e
            file_handler.setFormatter(formatter)
            self._add(logger, file_handler)
            logger.debug(f"Logging to {self.log_file}")

        return logger

    def _add(self, logger: logging.Logger, handler: logging.Handler) -> None:
        logger.addHandler(handler)
        self._handlers.append(handler)

    def teardown(self) -> None:
        """Detach and close the handlers installed by :meth:`setup`; restore the level."""
        logger = logging.getLogger(ROOT_LOGGER_NAME)
        for handler in self._handlers:
            logger.removeHandler(handler)
            handler.close()
        self._handlers = []
        if self._previous_level is not None:
            logger.setLevel(self._previous_level)
            self._previous_level = None
