# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""
Output saving.

OutputSaver is a lifecycle listener. For every configured output variable it
records the model state whenever an event carrying one of the variable's
tags is dispatched. ``binary`` output appends each state to
``<directory>/<variable>.bin`` in the observation record format; ``netcdf``
output buffers the states and writes ``<directory>/<variable>.nc`` on
FINALIZE.
"""

import logging
from contextlib import nullcontext
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

import numpy as np

from blueda.core.config.models import OutputConfig
from blueda.core.exceptions import FileOperationError, blueda_error_handler
from blueda.core.lock_file import LockFile
from blueda.data_assimilation.events import LifecycleEvent, LifecycleTag
from blueda.data_assimilation.observation.records import write_record

logger = logging.getLogger(__name__)


class OutputSaver:
    """Saves model states on lifecycle events."""

    def __init__(self, config: OutputConfig, base_dir: Optional[Path] = None):
        self.config = config
        directory = Path(config.directory).expanduser()
        if not directory.is_absolute() and base_dir is not None:
            directory = Path(base_dir) / directory
        self.directory = directory
        self._records: Dict[str, List[Tuple[int, float, str, np.ndarray]]] = {
            name: [] for name in config.variables
        }
        self._started: Set[str] = set()
        self.written: List[Path] = []

    def path_for(self, variable: str) -> Path:
        suffix = '.bin' if self.config.format == 'binary' else '.nc'
        return self.directory / f"{variable}{suffix}"

    def _guard(self, path: Path):
        if not self.config.lock:
            return nullcontext()
        return LockFile(
            path.with_name(path.name + '.lock'),
            retries=self.config.lock_retries,
            poll_interval=self.config.lock_poll_interval,
        )

    def __call__(self, event: LifecycleEvent) -> None:
        if event.tag is LifecycleTag.FINALIZE:
            self.flush()
            return
        if event.state is None:
            return
        for variable, tags in self.config.variables.items():
            if event.tag.value in tags:
                self._save(variable, event)

    def _save(self, variable: str, event: LifecycleEvent) -> None:
        if self.config.format == 'netcdf':
            self._records[variable].append(
                (event.step, event.time, event.tag.value, np.array(event.state, dtype=float))
            )
            return

        path = self.path_for(variable)
        with blueda_error_handler(f"writing output file {path}", logger, FileOperationError):
            path.parent.mkdir(parents=True, exist_ok=True)
            with self._guard(path):
                write_record(path, event.state, append=variable in self._started)
        if variable not in self._started:
            self._started.add(variable)
            self.written.append(path)
            logger.info("Saving %s to %s", variable, path)

    def flush(self) -> None:
        """Write the buffered NetCDF variables."""
        if self.config.format != 'netcdf':
            return
        import xarray as xr

        for variable, records in self._records.items():
            if not records:
                continue
            steps, times, tags, states = zip(*records)
            ds = xr.Dataset(
                data_vars={
                    variable: (['record', 'state'], np.vstack(states)),
                },
                coords={
                    'record': np.arange(len(records)),
                    'state': np.arange(len(states[0])),
                    'step': ('record', np.asarray(steps, dtype=np.int64)),
                    'time': ('record', np.asarray(times, dtype=float)),
                    'tag': ('record', np.asarray(tags, dtype=str)),
                },
            )
            ds.attrs.update({
                'title': 'blueda model states',
                'variable': variable,
                'n_records': len(records),
            })
            ds[variable].attrs = {
                'long_name': f"Model state saved on {', '.join(self.config.variables[variable])}",
            }

            path = self.path_for(variable)
            with blueda_error_handler(f"writing output file {path}", logger, FileOperationError):
                path.parent.mkdir(parents=True, exist_ok=True)
                with self._guard(path):
                    ds.to_netcdf(path, encoding={variable: {'zlib': True, 'complevel': 4}})
            self.written.append(path)
            logger.info("Wrote %s: %s", variable, path)
            records.clear()
