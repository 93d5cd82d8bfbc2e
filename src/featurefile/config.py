"""Configuration for file meta channels.

Two frozen dataclasses cover configuration: :class:`FileMetaConfig` holds the
knobs shared by every channel (wildcard, escape character, buffer capacity),
and :class:`ChannelConfig` describes one output channel of a driver, usually
loaded from a JSON file with :func:`load_channel_configs`.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional

from featurefile.errors import BadArgumentError
from featurefile.protocol import Protocol, protocol_from_name
from featurefile.utils.string_ops import NAME_CAPACITY

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileMetaConfig:
    """Settings shared by every :class:`~featurefile.meta.FileMeta`."""

    # ============================================================================
    # PATTERN SUBSTITUTION
    # ============================================================================

    wildcard: str = "%"
    """Character replaced by the basename in file name patterns."""

    escape: Optional[str] = None
    """Character that makes the following pattern character literal (None = off)."""

    # ============================================================================
    # LIMITS
    # ============================================================================

    name_capacity: int = NAME_CAPACITY
    """Capacity in bytes of pattern and resolved name, terminator included."""

    # ============================================================================
    # DEFAULTS
    # ============================================================================

    default_protocol: Protocol = Protocol.UNSPECIFIED
    """Protocol used until an option string names one explicitly."""

    def __post_init__(self) -> None:
        """Validate configuration consistency."""
        if len(self.wildcard) != 1:
            raise ValueError(
                "wildcard must be a single character, got %r" % (self.wildcard,)
            )

        if self.escape is not None:
            if len(self.escape) != 1:
                raise ValueError(
                    "escape must be a single character, got %r" % (self.escape,)
                )
            if self.escape == self.wildcard:
                raise ValueError("escape and wildcard must differ")

        if isinstance(self.name_capacity, bool) or not isinstance(self.name_capacity, int):
            raise ValueError(
                "name_capacity must be an integer, got %r" % (self.name_capacity,)
            )
        if self.name_capacity < 1:
            raise ValueError(
                "name_capacity must be positive, got %s" % (self.name_capacity,)
            )


@dataclass(frozen=True)
class ChannelConfig:
    """One output channel of a driver (frames, descriptors, ...)."""

    name: str
    option: Optional[str] = None
    columns: int = 1
    meta: FileMetaConfig = field(
        default_factory=lambda: FileMetaConfig(default_protocol=Protocol.ASCII)
    )

    def __post_init__(self) -> None:
        if self.columns < 1:
            raise ValueError(
                "columns must be at least 1, got %s" % (self.columns,)
            )


def _channel_from_mapping(name: str, payload: Mapping[str, object]) -> ChannelConfig:
    meta_payload = payload.get("meta") or {}
    if not isinstance(meta_payload, Mapping):
        raise BadArgumentError(f"Channel {name!r}: 'meta' must be an object")
    meta_payload = dict(meta_payload)
    meta_payload["default_protocol"] = protocol_from_name(
        str(payload.get("protocol", "ascii"))
    )
    try:
        meta = FileMetaConfig(**meta_payload)
    except TypeError as exc:
        raise BadArgumentError(
            f"Channel {name!r}: invalid 'meta' settings: {exc}"
        ) from exc
    option = payload.get("option")
    if option is not None and not isinstance(option, str):
        raise BadArgumentError(
            f"Channel {name!r}: 'option' must be a string, got {option!r}"
        )
    return ChannelConfig(
        name=name,
        option=option,
        columns=int(payload.get("columns", 1)),
        meta=meta,
    )


def load_channel_configs(path: Path) -> Dict[str, ChannelConfig]:
    """Load channel definitions from a JSON file.

    The file holds an object keyed by channel name::

        {
          "frames": {"option": "ascii:%.frame", "columns": 4},
          "descriptors": {"option": "%.descr", "protocol": "binary", "columns": 128}
        }

    Args:
        path: JSON file to read.

    Returns:
        Mapping of channel name to :class:`ChannelConfig`, in file order.

    Raises:
        BadArgumentError: The file is not a JSON object of objects, or names an
            unknown protocol.
    """
    path = Path(path)
    with path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)

    if not isinstance(payload, dict):
        raise BadArgumentError(f"Channel configuration must be a JSON object: {path}")

    channels: Dict[str, ChannelConfig] = {}
    for name, entry in payload.items():
        if not isinstance(entry, dict):
            raise BadArgumentError(
                f"Channel {name!r} in {path} must be a JSON object"
            )
        channels[name] = _channel_from_mapping(name, entry)

    LOGGER.debug("Loaded %d channel(s) from %s", len(channels), path)
    return channels


__all__ = ["ChannelConfig", "FileMetaConfig", "load_channel_configs"]
