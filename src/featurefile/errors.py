"""Error taxonomy shared by the file meta layer and its drivers."""

from __future__ import annotations

from enum import IntEnum
from typing import Optional


class ErrorCode(IntEnum):
    """Numeric error codes, also used as CLI exit statuses."""

    OK = 0
    OVERFLOW = 1
    ALLOC = 2
    BAD_ARG = 3
    IO = 4
    EOF = 5


class FileMetaError(RuntimeError):
    """Base class for recoverable file meta failures."""

    code = ErrorCode.BAD_ARG

    def __init__(self, message: str, *, filename: Optional[str] = None) -> None:
        super().__init__(message)
        self.filename = filename


class BadArgumentError(FileMetaError):
    """Unknown protocol token, or malformed data found while reading."""

    code = ErrorCode.BAD_ARG


class NameOverflowError(FileMetaError):
    """A bounded string (pattern or resolved name) would exceed its capacity."""

    code = ErrorCode.OVERFLOW


class StreamOpenError(FileMetaError):
    """The underlying file could not be opened."""

    code = ErrorCode.IO


class WriteError(FileMetaError):
    """A value could not be written completely."""

    code = ErrorCode.ALLOC


class EndOfFileError(FileMetaError):
    """The stream holds no more data."""

    code = ErrorCode.EOF


__all__ = [
    "BadArgumentError",
    "EndOfFileError",
    "ErrorCode",
    "FileMetaError",
    "NameOverflowError",
    "StreamOpenError",
    "WriteError",
]
