"""Whole-file helpers built on the scalar codec.

Drivers usually export fixed-width records, e.g. four doubles per keypoint
frame or 128 bytes per descriptor. These helpers move such records between an
open :class:`~featurefile.meta.FileMeta` and numpy arrays or pandas frames.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable, Optional, Sequence

import numpy as np
import pandas as pd

from featurefile.errors import BadArgumentError, EndOfFileError
from featurefile.meta import FileMeta

LOGGER = logging.getLogger(__name__)


class ValueKind(Enum):
    """Scalar type stored in a channel."""

    DOUBLE = "double"
    BYTE = "byte"

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(np.float64) if self is ValueKind.DOUBLE else np.dtype(np.uint8)


def write_values(
    meta: FileMeta, values: Iterable[float], kind: ValueKind = ValueKind.DOUBLE
) -> int:
    """Write every element of *values* to the open *meta*.

    Args:
        meta: Open file meta.
        values: Scalars or an array of any shape (flattened in C order).
        kind: Whether to encode values as doubles or bytes.

    Returns:
        Number of values written.

    Raises:
        WriteError: A value could not be written.
        BadArgumentError: A byte value is outside ``[0, 255]``.
    """
    if kind is ValueKind.DOUBLE:
        return meta.put_doubles(values)

    array = np.asarray(values if isinstance(values, np.ndarray) else list(values))
    count = 0
    for value in array.ravel():
        meta.put_byte(value.item())
        count += 1
    return count


def read_values(
    meta: FileMeta, kind: ValueKind = ValueKind.DOUBLE, limit: Optional[int] = None
) -> np.ndarray:
    """Read values from the open *meta* until end of file (or *limit* values).

    Raises:
        BadArgumentError: Malformed data was found before end of file.
    """
    read = meta.get_double if kind is ValueKind.DOUBLE else meta.get_byte
    values = []
    while limit is None or len(values) < limit:
        try:
            values.append(read())
        except EndOfFileError:
            break
    LOGGER.debug("Read %d %s value(s) from %s", len(values), kind.value, meta.name)
    return np.asarray(values, dtype=kind.dtype)


def read_table(
    meta: FileMeta,
    columns: int,
    kind: ValueKind = ValueKind.DOUBLE,
    column_names: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """Read the open *meta* as a table of *columns* values per record.

    Raises:
        BadArgumentError: The value count is not a multiple of *columns*, or
            the data is malformed.
    """
    if columns < 1:
        raise ValueError(f"columns must be at least 1, got {columns}")
    if column_names is not None and len(column_names) != columns:
        raise ValueError(
            f"Expected {columns} column names, got {len(column_names)}"
        )

    values = read_values(meta, kind)
    if values.size % columns:
        raise BadArgumentError(
            f"{meta.name}: {values.size} values do not form records of {columns}",
            filename=meta.name,
        )

    frame = pd.DataFrame(values.reshape(-1, columns), columns=column_names)
    frame.index.name = "record"
    return frame


__all__ = ["ValueKind", "read_table", "read_values", "write_values"]
