"""Bounded string helpers for file name patterns."""

from __future__ import annotations

from typing import Optional

from featurefile.errors import NameOverflowError

NAME_CAPACITY = 1024
"""Capacity of pattern and file name buffers, in bytes, terminator included."""


def encoded_length(value: str) -> int:
    """Return the number of bytes *value* occupies on the filesystem."""
    return len(value.encode("utf-8", "surrogateescape"))


def bounded_copy(value: str, capacity: int = NAME_CAPACITY) -> str:
    """Return *value* if it fits in a buffer of *capacity* bytes.

    The capacity counts a terminating byte, so the longest accepted value is
    ``capacity - 1`` bytes. Values are never truncated.

    Args:
        value: String to store.
        capacity: Buffer size in bytes.

    Returns:
        *value* unchanged.

    Raises:
        NameOverflowError: *value* would not fit.
    """
    length = encoded_length(value)
    if length >= capacity:
        raise NameOverflowError(
            f"String of {length} bytes exceeds capacity of {capacity} bytes"
        )
    return value


def replace_wildcard(
    pattern: str,
    wildcard: str,
    replacement: str,
    *,
    escape: Optional[str] = None,
    capacity: int = NAME_CAPACITY,
) -> str:
    """Substitute every *wildcard* in *pattern* with *replacement*.

    When *escape* is given, the character following it is copied literally,
    which lets a pattern contain the wildcard character itself. A trailing
    lone escape character is dropped.

    Args:
        pattern: Template such as ``"feat-%.bin"``.
        wildcard: Single marker character.
        replacement: Text substituted for each marker (typically a basename).
        escape: Optional single escape character.
        capacity: Buffer size in bytes, terminator included.

    Returns:
        The resolved string.

    Raises:
        NameOverflowError: The resolved string would reach *capacity* bytes.

    Examples:
        >>> replace_wildcard("feat-%.bin", "%", "img001")
        'feat-img001.bin'
        >>> replace_wildcard("100\\\\%-%.txt", "%", "a", escape="\\\\")
        '100%-a.txt'
    """
    pieces = []
    escaped = False
    for char in pattern:
        if escaped:
            pieces.append(char)
            escaped = False
        elif escape is not None and char == escape:
            escaped = True
        elif char == wildcard:
            pieces.append(replacement)
        else:
            pieces.append(char)

    return bounded_copy("".join(pieces), capacity)


__all__ = ["NAME_CAPACITY", "bounded_copy", "encoded_length", "replace_wildcard"]
