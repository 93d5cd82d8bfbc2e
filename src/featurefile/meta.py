"""File meta information: one configurable output (or input) channel.

A :class:`FileMeta` is created once per kind of exported data, configured once
from a ``[protocol:]pattern`` option string, then opened and closed once per
processed item. The basename of each item replaces the wildcard in the
pattern to produce the file name::

    meta = FileMeta(FileMetaConfig(default_protocol=Protocol.ASCII))
    meta.configure("binary:%.descr")
    with meta.opened("img001", "w"):
        meta.put_double(0.5)

An entity that was never configured is inactive: opening and closing it
succeed without touching the filesystem, and it must not be used for I/O.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import IO, Iterator, Optional

from featurefile import codec
from featurefile.config import FileMetaConfig
from featurefile.errors import StreamOpenError, WriteError
from featurefile.protocol import Protocol, parse_protocol
from featurefile.utils.string_ops import bounded_copy, replace_wildcard

LOGGER = logging.getLogger(__name__)


def normalize_mode(mode: str, protocol: Protocol) -> str:
    """Return *mode* adjusted so the Python stream type matches *protocol*.

    Binary channels always get a ``"b"`` stream and ascii channels a text
    stream; with an unspecified protocol *mode* is used as given.
    """
    if protocol is Protocol.BINARY and "b" not in mode:
        return mode.replace("t", "") + "b"
    if protocol is Protocol.ASCII and "b" in mode:
        return mode.replace("b", "")
    return mode


class FileMeta:
    """Configured file channel with an open/close lifecycle.

    Args:
        config: Shared settings; its ``default_protocol`` is the protocol in
            effect until an option string names one.
        pattern: Initial file name pattern.
    """

    def __init__(
        self, config: Optional[FileMetaConfig] = None, pattern: str = ""
    ) -> None:
        self._config = config if config is not None else FileMetaConfig()
        self._active = False
        self._protocol = self._config.default_protocol
        self._pattern = bounded_copy(pattern, self._config.name_capacity)
        self._name = ""
        self._stream: Optional[IO] = None

    def __repr__(self) -> str:
        state = "open" if self.is_open else ("configured" if self._active else "inactive")
        return (
            f"FileMeta(pattern={self._pattern!r}, protocol={self._protocol.value}, "
            f"state={state})"
        )

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def config(self) -> FileMetaConfig:
        return self._config

    @property
    def active(self) -> bool:
        return self._active

    @property
    def protocol(self) -> Protocol:
        return self._protocol

    @property
    def pattern(self) -> str:
        return self._pattern

    @property
    def name(self) -> str:
        """File name resolved by the most recent successful :meth:`open`."""
        return self._name

    @property
    def stream(self) -> Optional[IO]:
        return self._stream

    @property
    def is_open(self) -> bool:
        return self._stream is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def configure(self, option_value: Optional[str]) -> None:
        """Activate the channel and apply a ``[protocol:]pattern`` option.

        A protocol prefix replaces the current protocol; without one the
        current protocol (initially the configured default) is kept. An empty
        pattern part leaves the current pattern in place, and ``None`` only
        activates the channel.

        Raises:
            BadArgumentError: The prefix names an unknown protocol.
            NameOverflowError: The pattern does not fit the name capacity.

        On failure the entity is left exactly as it was.
        """
        protocol = self._protocol
        pattern = self._pattern

        if option_value is not None:
            parsed_protocol, remainder = parse_protocol(option_value)
            if parsed_protocol is not Protocol.UNSPECIFIED:
                protocol = parsed_protocol
            if remainder:
                pattern = bounded_copy(remainder, self._config.name_capacity)

        self._protocol = protocol
        self._pattern = pattern
        self._active = True
        LOGGER.debug("Configured %r", self)

    def resolve(self, basename: str) -> str:
        """Return the file name for *basename* without opening anything.

        Raises:
            NameOverflowError: The resolved name does not fit the name capacity.
        """
        return replace_wildcard(
            self._pattern,
            self._config.wildcard,
            basename,
            escape=self._config.escape,
            capacity=self._config.name_capacity,
        )

    def open(self, basename: str, mode: str = "r") -> None:
        """Open the file for *basename* with an ``fopen``-style *mode*.

        Does nothing on an inactive entity.

        Raises:
            NameOverflowError: The resolved name is too long; nothing is opened.
            StreamOpenError: The file could not be opened.
        """
        if not self._active:
            return
        if self._stream is not None:
            raise AssertionError(f"{self._name} is already open")

        name = self.resolve(basename)
        mode = normalize_mode(mode, self._protocol)
        try:
            stream = open(name, mode)
        except (OSError, ValueError) as exc:
            raise StreamOpenError(
                f"Cannot open {name!r} with mode {mode!r}: {exc}", filename=name
            ) from exc

        self._name = name
        self._stream = stream
        LOGGER.debug("Opened %s (mode %s, %s)", name, mode, self._protocol.value)

    def close(self) -> None:
        """Release the stream, if any. Safe to call repeatedly.

        Raises:
            WriteError: Buffered data could not be flushed (e.g. disk full).
                The stream is released regardless.
        """
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.close()
        except OSError as exc:
            raise WriteError(
                f"Failed to flush {self._name!r}: {exc}", filename=self._name
            ) from exc
        LOGGER.debug("Closed %s", self._name)

    @contextmanager
    def opened(self, basename: str, mode: str = "r") -> Iterator["FileMeta"]:
        """Open for *basename* and close on every exit path."""
        self.open(basename, mode)
        try:
            yield self
        finally:
            self.close()

    # ------------------------------------------------------------------
    # Value I/O
    # ------------------------------------------------------------------

    def _require_stream(self) -> IO:
        if not self._active:
            raise AssertionError("I/O on an inactive file meta")
        if self._stream is None:
            raise AssertionError("I/O on a file meta that is not open")
        return self._stream

    def put_double(self, value: float) -> None:
        codec.put_double(self._require_stream(), self._protocol, value)

    def put_doubles(self, values) -> int:
        return codec.put_doubles(self._require_stream(), self._protocol, values)

    def put_byte(self, value: int) -> None:
        codec.put_byte(self._require_stream(), self._protocol, value)

    def get_double(self) -> float:
        return codec.get_double(self._require_stream(), self._protocol)

    def get_byte(self) -> int:
        return codec.get_byte(self._require_stream(), self._protocol)


__all__ = ["FileMeta", "normalize_mode"]
