"""Decode fixture personalities stored in the ``personality`` attribute.

A personality lists the trait ID (channel function) of every channel the
fixture exposes. Two layouts are known, both little-endian:

* simple: 16 bytes, 4 entries of ``uint16 trait_id, uint8 reserved, uint8 flag``;
* complex: a 12-byte header (``uint32`` header value plus 8 reserved bytes)
  followed by entries in the same 4-byte shape.

The flag byte is 1 on entries that appear to close a group or a 16-bit
channel pair. That meaning is inferred from backups, not documented.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass, field
from typing import Callable, Literal, Optional, Tuple

from .payload import DecodeFailure, bytes_to_hex, decode_base64

logger = logging.getLogger(__name__)

PersonalityFormat = Literal["simple", "complex"]

SIMPLE_LENGTH = 16
COMPLEX_HEADER_LENGTH = 12
ENTRY_SIZE = 4
FLAG_MARKER = 0x01

_ENTRY = struct.Struct("<HBB")
_HEADER_VALUE = struct.Struct("<I")


@dataclass(frozen=True)
class ChannelEntry:
    """One channel of a personality."""

    index: int
    trait_id: int
    has_flag: bool


@dataclass(frozen=True)
class Personality:
    """Decoded channel-capability profile of a fixture."""

    format: PersonalityFormat
    channel_count: int
    channels: Tuple[ChannelEntry, ...] = field(default_factory=tuple)
    header_value: Optional[int] = None
    raw_hex: str = ""


def decode_personality(text: Optional[str]) -> Optional[Personality]:
    """Decode a base64 personality attribute.

    Returns ``None`` for a missing, blank or undecodable attribute. Buffers of
    an unrecognised length give a zero-channel personality that still carries
    the raw bytes for inspection.
    """

    if text is None or not text.strip():
        return None

    try:
        data = decode_base64(text)
    except DecodeFailure as exc:
        logger.debug("Personality payload rejected: %s", exc)
        return None

    if not data:
        return None

    # First match wins; the order decides between layouts sharing a length.
    for matches, decode in _LAYOUTS:
        if matches(len(data)):
            return decode(data)

    return _decode_unknown(data)


def format_trait_ids(personality: Personality) -> str:
    """Return the trait IDs as ``"1001, 1002*, 4001"`` (``*`` marks flagged)."""

    return ", ".join(
        f"{channel.trait_id}{'*' if channel.has_flag else ''}"
        for channel in personality.channels
    )


def _read_entries(data: bytes, start: int) -> Tuple[ChannelEntry, ...]:
    """Read consecutive 4-byte channel entries from ``start`` to the end."""

    count = (len(data) - start) // ENTRY_SIZE
    entries = []
    for i in range(count):
        trait_id, _reserved, flag = _ENTRY.unpack_from(data, start + i * ENTRY_SIZE)
        entries.append(ChannelEntry(index=i, trait_id=trait_id, has_flag=flag == FLAG_MARKER))
    return tuple(entries)


def _decode_simple(data: bytes) -> Personality:
    channels = _read_entries(data, 0)
    return Personality(
        format="simple",
        channel_count=len(channels),
        channels=channels,
        raw_hex=bytes_to_hex(data),
    )


def _decode_complex(data: bytes) -> Personality:
    (header_value,) = _HEADER_VALUE.unpack_from(data, 0)
    channels = _read_entries(data, COMPLEX_HEADER_LENGTH)
    return Personality(
        format="complex",
        channel_count=len(channels),
        channels=channels,
        header_value=header_value,
        raw_hex=bytes_to_hex(data),
    )


def _decode_headerless(data: bytes) -> Personality:
    logger.debug("Personality of %d bytes read as headerless entries", len(data))
    return _decode_simple(data)


def _decode_unknown(data: bytes) -> Personality:
    logger.debug("Personality of %d bytes matches no known layout", len(data))
    return Personality(format="simple", channel_count=0, raw_hex=bytes_to_hex(data))


_LAYOUTS: Tuple[Tuple[Callable[[int], bool], Callable[[bytes], Personality]], ...] = (
    (lambda n: n == SIMPLE_LENGTH, _decode_simple),
    (
        lambda n: n > SIMPLE_LENGTH and (n - COMPLEX_HEADER_LENGTH) % ENTRY_SIZE == 0,
        _decode_complex,
    ),
    (lambda n: n % ENTRY_SIZE == 0, _decode_headerless),
)
