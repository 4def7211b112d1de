"""Decode cue frames and map the resulting DMX values onto patched fixtures.

A frame is a sparse DMX snapshot: a little-endian ``uint16`` sequence number
followed by 4-byte records of ``uint16 address (0-indexed), uint8 value,
uint8 high``. A high byte of ``0xFF`` means full (255) regardless of the
value byte. Only non-zero channels are stored.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple

from .payload import DecodeFailure, decode_base64

if TYPE_CHECKING:
    from .schema import Fixture

logger = logging.getLogger(__name__)

DmxState = Dict[int, int]

FRAME_HEADER_LENGTH = 2
RECORD_SIZE = 4
FULL_MARKER = 0xFF
DEFAULT_CHANNEL_COUNT = 4

_FRAME_INDEX = struct.Struct("<H")
_RECORD = struct.Struct("<HBB")


@dataclass(frozen=True)
class FrameChannel:
    """A single address/value pair of a frame (address is 1-indexed)."""

    address: int
    value: int


@dataclass(frozen=True)
class Frame:
    """Decoded frame payload."""

    frame_index: int
    channels: Tuple[FrameChannel, ...] = field(default_factory=tuple)


@dataclass
class ChannelValue:
    """Resolved value of one fixture channel."""

    name: str
    value: int
    trait_id: Optional[int] = None


@dataclass
class FixtureChannelData:
    """DMX values of a fixture, named after its personality when known."""

    fixture_index: int
    label: str
    start_address: int
    channels: List[ChannelValue] = field(default_factory=list)


def decode_frame(text: str) -> Optional[Frame]:
    """Decode a base64 ``frame``/``frame_fx`` payload.

    Returns ``None`` when the payload is not base64 or is shorter than the
    2-byte frame index. Trailing bytes that do not fill a record are ignored.
    Records keep their stored order, duplicates included.
    """

    try:
        data = decode_base64(text)
    except DecodeFailure as exc:
        logger.debug("Frame payload rejected: %s", exc)
        return None

    if len(data) < FRAME_HEADER_LENGTH:
        return None

    (frame_index,) = _FRAME_INDEX.unpack_from(data, 0)
    channels = []
    offset = FRAME_HEADER_LENGTH
    while offset + RECORD_SIZE <= len(data):
        address, value_low, value_high = _RECORD.unpack_from(data, offset)
        value = 255 if value_high == FULL_MARKER else value_low
        channels.append(FrameChannel(address=address + 1, value=value))
        offset += RECORD_SIZE

    if offset < len(data):
        logger.debug("Dropped %d trailing frame bytes", len(data) - offset)

    return Frame(frame_index=frame_index, channels=tuple(channels))


def build_dmx_state(frame_texts: Sequence[str]) -> DmxState:
    """Build the DMX state of a cue from its frame payloads.

    Only the first frame is applied and later frames are ignored. Repeated
    addresses within that frame keep their last value.
    """

    # TODO: decide whether multi-frame cues should apply every frame in order
    # once a backup with more than one frame per cue has been checked.

    state: DmxState = {}
    if not frame_texts:
        return state

    frame = decode_frame(frame_texts[0])
    if frame is None:
        logger.warning("First frame of cue could not be decoded")
        return state

    for channel in frame.channels:
        state[channel.address] = channel.value
    return state


def map_fixture_channels(
    state: DmxState,
    fixtures: Sequence["Fixture"],
    default_channel_count: int = DEFAULT_CHANNEL_COUNT,
) -> List[FixtureChannelData]:
    """Resolve the DMX values of every fixture that has at least one lit channel.

    Fixtures without a decoded personality are assumed to span
    ``default_channel_count`` channels and get generic ``Ch<n>`` names.
    """

    result: List[FixtureChannelData] = []
    for fixture in fixtures:
        start_address = fixture.address + 1
        personality = fixture.parsed_personality
        channel_count = (
            personality.channel_count if personality is not None else default_channel_count
        )

        channels: List[ChannelValue] = []
        for i in range(channel_count):
            value = state.get(start_address + i, 0)
            entry = None
            if personality is not None and i < len(personality.channels):
                entry = personality.channels[i]

            if entry is not None:
                name = f"{entry.trait_id}{'*' if entry.has_flag else ''}"
                channels.append(ChannelValue(name=name, value=value, trait_id=entry.trait_id))
            else:
                channels.append(ChannelValue(name=f"Ch{i + 1}", value=value))

        if any(channel.value > 0 for channel in channels):
            result.append(
                FixtureChannelData(
                    fixture_index=fixture.index,
                    label=fixture.label,
                    start_address=start_address,
                    channels=channels,
                )
            )

    return result
