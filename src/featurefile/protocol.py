"""Parsing of ``[protocol:]pattern`` option values."""

from __future__ import annotations

from enum import Enum
from typing import Tuple

from featurefile.errors import BadArgumentError


class Protocol(Enum):
    """Serialization mode of a file meta channel."""

    UNSPECIFIED = "unspecified"
    ASCII = "ascii"
    BINARY = "binary"


# Names accepted in front of the colon; matching is case-sensitive.
_PROTOCOL_NAMES = {
    "ascii": Protocol.ASCII,
    "binary": Protocol.BINARY,
}


def protocol_from_name(name: str) -> Protocol:
    """Return the protocol called *name*, raising for unknown names."""
    try:
        return _PROTOCOL_NAMES[name]
    except KeyError:
        raise BadArgumentError(
            f"Unknown protocol {name!r}; expected one of {sorted(_PROTOCOL_NAMES)}"
        ) from None


def parse_protocol(option_value: str) -> Tuple[Protocol, str]:
    """Split *option_value* into a protocol and the remaining pattern.

    Args:
        option_value: String of the form ``[protocol:]pattern``.

    Returns:
        ``(protocol, pattern)``. Without a colon the protocol is
        ``Protocol.UNSPECIFIED`` and the pattern is *option_value* unchanged.

    Raises:
        BadArgumentError: The text before the first colon is not a known
            protocol name.

    Examples:
        >>> parse_protocol("binary:%.descr")
        (<Protocol.BINARY: 'binary'>, '%.descr')
        >>> parse_protocol("%.frame")
        (<Protocol.UNSPECIFIED: 'unspecified'>, '%.frame')
    """
    prefix, colon, remainder = option_value.partition(":")
    if not colon:
        return Protocol.UNSPECIFIED, option_value
    return protocol_from_name(prefix), remainder


__all__ = ["Protocol", "parse_protocol", "protocol_from_name"]
