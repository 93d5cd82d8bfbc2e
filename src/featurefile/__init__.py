"""Per-item feature files in ascii or binary form.

A :class:`FileMeta` turns a ``[protocol:]pattern`` option into one file per
processed item and encodes doubles and bytes in the selected protocol.
"""

from .config import ChannelConfig, FileMetaConfig, load_channel_configs
from .errors import (
    BadArgumentError,
    EndOfFileError,
    ErrorCode,
    FileMetaError,
    NameOverflowError,
    StreamOpenError,
    WriteError,
)
from .meta import FileMeta
from .protocol import Protocol, parse_protocol
from .tables import ValueKind, read_table, read_values, write_values

__all__ = [
    "BadArgumentError",
    "ChannelConfig",
    "EndOfFileError",
    "ErrorCode",
    "FileMeta",
    "FileMetaConfig",
    "FileMetaError",
    "NameOverflowError",
    "Protocol",
    "StreamOpenError",
    "ValueKind",
    "WriteError",
    "load_channel_configs",
    "parse_protocol",
    "read_table",
    "read_values",
    "write_values",
]
