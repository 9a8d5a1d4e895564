# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""
Binary observation records.

A record file is a sequence of records of identical length, each stored as a
little-endian int32 length followed by that many float64 values. Forward runs
write truth states in this format, and LinearObservationManager reads them
back as observations.
"""

from pathlib import Path
from typing import Union

import numpy as np

from blueda.core.exceptions import ObservationIOError, blueda_error_handler, require

HEADER_DTYPE = np.dtype('<i4')
VALUE_DTYPE = np.dtype('<f8')

PathLike = Union[str, Path]


def write_record(path: PathLike, values: np.ndarray, append: bool = True) -> None:
    """Append (or, with ``append=False``, write) one record to ``path``."""
    values = np.ascontiguousarray(values, dtype=VALUE_DTYPE).ravel()
    mode = 'ab' if append else 'wb'
    with open(path, mode) as f:
        f.write(np.array([values.size], dtype=HEADER_DTYPE).tobytes())
        f.write(values.tobytes())


def write_records(path: PathLike, records) -> None:
    """Write every row of ``records`` to a new file."""
    with open(path, 'wb'):
        pass
    for values in records:
        write_record(path, values)


def _record_length(path: Path) -> int:
    with blueda_error_handler(f"reading observation file {path}", error_type=ObservationIOError):
        with open(path, 'rb') as f:
            header = f.read(HEADER_DTYPE.itemsize)
    require(len(header) == HEADER_DTYPE.itemsize, f"Observation file {path} is empty", ObservationIOError)
    length = int(np.frombuffer(header, dtype=HEADER_DTYPE)[0])
    require(length > 0, f"Observation file {path} has invalid record length {length}", ObservationIOError)
    return length


def count_records(path: PathLike) -> int:
    """Number of complete records in ``path``."""
    path = Path(path)
    length = _record_length(path)
    return path.stat().st_size // (HEADER_DTYPE.itemsize + length * VALUE_DTYPE.itemsize)


def read_record(path: PathLike, index: int) -> np.ndarray:
    """
    Read record ``index`` (0-based).

    Raises:
        ObservationIOError: If the file is missing, unreadable, or does not
            contain a complete record ``index``
    """
    path = Path(path)
    if not path.is_file():
        raise ObservationIOError(f"Observation file not found: {path}")
    length = _record_length(path)
    record_size = HEADER_DTYPE.itemsize + length * VALUE_DTYPE.itemsize
    offset = index * record_size

    with blueda_error_handler(f"reading observation file {path}", error_type=ObservationIOError):
        with open(path, 'rb') as f:
            f.seek(offset)
            data = f.read(record_size)

    if len(data) < record_size:
        raise ObservationIOError(
            f"Observation file {path} has no complete record {index} "
            f"(record size {record_size} bytes, file size {path.stat().st_size} bytes)"
        )
    stored = int(np.frombuffer(data[:HEADER_DTYPE.itemsize], dtype=HEADER_DTYPE)[0])
    require(
        stored == length,
        f"Observation file {path}: record {index} has length {stored}, expected {length}",
        ObservationIOError,
    )
    return np.frombuffer(data[HEADER_DTYPE.itemsize:], dtype=VALUE_DTYPE).astype(float)


def read_records(path: PathLike) -> np.ndarray:
    """All records of ``path`` as an array of shape (n_records, length)."""
    return np.vstack([read_record(path, i) for i in range(count_records(path))])
