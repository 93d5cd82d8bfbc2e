"""Protocol-aware encoding of scalar values to and from open streams.

Ascii streams hold whitespace separated decimal tokens, each value written
with a single trailing space. Binary streams hold raw bytes: a byte value is
one byte and a double is eight bytes in :data:`WIRE_BYTE_ORDER`, so files move
between little- and big-endian hosts unchanged.

The functions here assume the caller has an open stream and a concrete
protocol. Calling them with ``Protocol.UNSPECIFIED`` or without a stream is a
programming error and raises :class:`AssertionError`.
"""

from __future__ import annotations

import io
import logging
import re
import sys
from typing import IO, Iterable, Optional, Tuple, Union

import numpy as np

from featurefile.errors import BadArgumentError, EndOfFileError, WriteError
from featurefile.protocol import Protocol

LOGGER = logging.getLogger(__name__)

WIRE_BYTE_ORDER = "big"
"""Byte order of doubles in binary files."""

DOUBLE_SIZE = 8

_DTYPE_ORDER = {"little": "<", "big": ">"}

WIRE_DOUBLE = np.dtype(np.float64).newbyteorder(_DTYPE_ORDER[WIRE_BYTE_ORDER])

# Pre-compile token patterns; float() alone would also accept "1_000".
_DOUBLE_TOKEN = re.compile(
    r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)",
    flags=re.IGNORECASE,
)
_INTEGER_TOKEN = re.compile(r"[+-]?\d+")

Payload = Union[str, bytes]


def _host_double(host_byte_order: str) -> np.dtype:
    try:
        return np.dtype(np.float64).newbyteorder(_DTYPE_ORDER[host_byte_order])
    except KeyError:
        raise ValueError(
            f"host_byte_order must be 'little' or 'big', got {host_byte_order!r}"
        ) from None


def adapt_endianness(data: bytes, host_byte_order: str = sys.byteorder) -> bytes:
    """Convert between host order and wire order.

    The conversion is its own inverse, so the same call normalizes a native
    value for writing and recovers a native value after reading.

    Args:
        data: Bytes of one multi-byte scalar.
        host_byte_order: ``"little"`` or ``"big"``; defaults to the running
            interpreter. Tests pass the other value to simulate foreign hosts.

    Returns:
        *data* unchanged when the host already uses the wire order, otherwise
        *data* reversed.
    """
    _host_double(host_byte_order)
    if host_byte_order == WIRE_BYTE_ORDER:
        return bytes(data)
    return bytes(data[::-1])


def encode_double(value: float, host_byte_order: str = sys.byteorder) -> bytes:
    """Return the eight wire-order bytes of *value*."""
    native = np.asarray(value, dtype=_host_double(host_byte_order)).tobytes()
    return adapt_endianness(native, host_byte_order)


def decode_double(data: bytes, host_byte_order: str = sys.byteorder) -> float:
    """Return the double stored in eight wire-order bytes."""
    if len(data) != DOUBLE_SIZE:
        raise BadArgumentError(
            f"A binary double needs {DOUBLE_SIZE} bytes, got {len(data)}"
        )
    native = adapt_endianness(data, host_byte_order)
    return float(np.frombuffer(native, dtype=_host_double(host_byte_order))[0])


def format_double(value: float) -> str:
    """Return the ascii token for *value*, trailing space included."""
    return f"{float(value)!r} "


def format_byte(value: int) -> str:
    """Return the ascii token for a byte *value*, trailing space included."""
    return f"{_check_byte(value)} "


def _check_byte(value: int) -> int:
    number = None
    if isinstance(value, (int, np.integer)) and not isinstance(value, (bool, np.bool_)):
        number = int(value)
    if number is None or not 0 <= number <= 255:
        raise BadArgumentError(f"Byte values must be integers in [0, 255], got {value!r}")
    return number


def _require_protocol(stream: Optional[IO], protocol: Protocol) -> None:
    if stream is None:
        raise AssertionError("codec used without an open stream")
    if protocol not in (Protocol.ASCII, Protocol.BINARY):
        raise AssertionError(f"codec used with protocol {protocol}")


def _write(stream: IO, payload: Payload) -> None:
    if isinstance(payload, str) and not _is_text(stream):
        payload = payload.encode("ascii")
    try:
        written = stream.write(payload)
    except (OSError, ValueError) as exc:
        raise WriteError(f"Failed to write {len(payload)} bytes: {exc}") from exc
    if written is not None and written < len(payload):
        raise WriteError(f"Short write: {written} of {len(payload)} bytes")


def _is_text(stream: IO) -> bool:
    return isinstance(stream, io.TextIOBase)


def _read_exact(stream: IO, size: int) -> Tuple[bytes, bool]:
    """Read up to *size* bytes; also report whether end-of-stream was seen."""
    buffer = bytearray()
    while len(buffer) < size:
        try:
            chunk = stream.read(size - len(buffer))
        except OSError as exc:
            raise BadArgumentError(f"Failed to read from stream: {exc}") from exc
        if chunk is None:
            # Non-blocking stream with nothing available; not an end-of-file.
            return bytes(buffer), False
        if not chunk:
            return bytes(buffer), True
        buffer += chunk
    return bytes(buffer), False


def _read_token(stream: IO) -> str:
    """Return the next whitespace-delimited token, or ``""`` at end of stream."""
    chars = []
    while True:
        try:
            char = stream.read(1)
        except UnicodeDecodeError as exc:
            raise BadArgumentError(f"Undecodable ascii data: {exc}") from exc
        except OSError as exc:
            raise BadArgumentError(f"Failed to read from stream: {exc}") from exc
        if isinstance(char, bytes):
            char = char.decode("latin-1")
        if not char:
            break
        if char.isspace():
            if chars:
                break
            continue
        chars.append(char)
    return "".join(chars)


def put_double(stream: IO, protocol: Protocol, value: float) -> None:
    """Write one double to *stream*.

    Raises:
        WriteError: The write did not complete.
    """
    _require_protocol(stream, protocol)
    if protocol is Protocol.ASCII:
        _write(stream, format_double(value))
    else:
        _write(stream, encode_double(value))


def put_doubles(stream: IO, protocol: Protocol, values: Iterable[float]) -> int:
    """Write a sequence of doubles and return how many were written."""
    _require_protocol(stream, protocol)
    if not isinstance(values, np.ndarray):
        values = list(values)
    array = np.asarray(values, dtype=np.float64).ravel()
    if protocol is Protocol.BINARY:
        _write(stream, array.astype(WIRE_DOUBLE).tobytes())
    else:
        _write(stream, "".join(format_double(value) for value in array))
    return int(array.size)


def put_byte(stream: IO, protocol: Protocol, value: int) -> None:
    """Write one byte value to *stream*.

    Raises:
        BadArgumentError: *value* is not in ``[0, 255]``.
        WriteError: The write did not complete.
    """
    _require_protocol(stream, protocol)
    if protocol is Protocol.ASCII:
        _write(stream, format_byte(value))
    else:
        _write(stream, bytes([_check_byte(value)]))


def get_double(stream: IO, protocol: Protocol) -> float:
    """Read one double from *stream*.

    Raises:
        EndOfFileError: No more data is available.
        BadArgumentError: Data is present but is not a double.
    """
    _require_protocol(stream, protocol)
    if protocol is Protocol.ASCII:
        token = _read_token(stream)
        if not token:
            raise EndOfFileError("End of file reached while reading a double")
        if not _DOUBLE_TOKEN.fullmatch(token):
            raise BadArgumentError(f"Malformed ascii double {token!r}")
        return float(token)

    data, at_end = _read_exact(stream, DOUBLE_SIZE)
    if len(data) < DOUBLE_SIZE:
        if at_end:
            if data:
                LOGGER.debug("Discarding %d trailing bytes at end of file", len(data))
            raise EndOfFileError("End of file reached while reading a double")
        raise BadArgumentError(
            f"Short read of {len(data)} bytes while reading a double"
        )
    return decode_double(data)


def get_byte(stream: IO, protocol: Protocol) -> int:
    """Read one byte value from *stream*.

    Raises:
        EndOfFileError: No more data is available.
        BadArgumentError: Data is present but is not a byte value.
    """
    _require_protocol(stream, protocol)
    if protocol is Protocol.ASCII:
        token = _read_token(stream)
        if not token:
            raise EndOfFileError("End of file reached while reading a byte")
        if not _INTEGER_TOKEN.fullmatch(token):
            raise BadArgumentError(f"Malformed ascii byte {token!r}")
        return _check_byte(int(token))

    data, at_end = _read_exact(stream, 1)
    if not data:
        if at_end:
            raise EndOfFileError("End of file reached while reading a byte")
        raise BadArgumentError("No data available while reading a byte")
    return data[0]


__all__ = [
    "DOUBLE_SIZE",
    "WIRE_BYTE_ORDER",
    "WIRE_DOUBLE",
    "adapt_endianness",
    "decode_double",
    "encode_double",
    "format_byte",
    "format_double",
    "get_byte",
    "get_double",
    "put_byte",
    "put_double",
    "put_doubles",
]
