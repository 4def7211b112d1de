import base64
import random
import struct

import pytest

from cuebackup.personality import ChannelEntry, decode_personality, format_trait_ids


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _entry(trait_id: int, flag: int = 0) -> bytes:
    return struct.pack("<HBB", trait_id, 0, flag)


@pytest.mark.parametrize("text", [None, "", "   ", "\n\t"])
def test_missing_or_blank_personality_is_none(text) -> None:
    assert decode_personality(text) is None


def test_malformed_base64_is_none() -> None:
    assert decode_personality("@@ not base64 @@") is None
    assert decode_personality("AQIDB") is None


def test_any_sixteen_byte_buffer_is_simple_with_four_channels() -> None:
    rng = random.Random(16)
    for _ in range(20):
        data = bytes(rng.randrange(256) for _ in range(16))
        personality = decode_personality(_b64(data))
        assert personality is not None
        assert personality.format == "simple"
        assert personality.channel_count == 4
        assert personality.header_value is None
        assert [ch.index for ch in personality.channels] == [0, 1, 2, 3]


def test_simple_personality_reads_trait_ids_and_flags() -> None:
    data = _entry(1001) + _entry(1002, flag=1) + _entry(1003) + _entry(1005, flag=2)
    personality = decode_personality(_b64(data))
    assert personality is not None
    assert personality.channels[0] == ChannelEntry(index=0, trait_id=1001, has_flag=False)
    assert personality.channels[1] == ChannelEntry(index=1, trait_id=1002, has_flag=True)
    # Only a flag byte of exactly 1 counts as a marker.
    assert personality.channels[3].has_flag is False
    assert personality.raw_hex.startswith("e9 03 00 00 ea 03 00 01")


@pytest.mark.parametrize("length", [20, 24, 28, 64, 524])
def test_complex_layout_for_header_plus_whole_entries(length: int) -> None:
    rng = random.Random(length)
    data = bytes(rng.randrange(256) for _ in range(length))
    personality = decode_personality(_b64(data))
    assert personality is not None
    assert personality.format == "complex"
    assert personality.channel_count == (length - 12) // 4
    assert len(personality.channels) == personality.channel_count
    assert personality.header_value == struct.unpack_from("<I", data, 0)[0]


def test_complex_header_value_is_unsigned() -> None:
    data = b"\xff\xff\xff\xff" + bytes(8) + _entry(1007) + _entry(4001, flag=1)
    personality = decode_personality(_b64(data))
    assert personality is not None
    assert personality.header_value == 0xFFFFFFFF
    assert [ch.trait_id for ch in personality.channels] == [1007, 4001]
    assert personality.channels[1].has_flag is True


@pytest.mark.parametrize("length, channels", [(4, 1), (8, 2), (12, 3)])
def test_short_multiples_of_four_fall_back_to_headerless_entries(length: int, channels: int) -> None:
    data = b"".join(_entry(2000 + i) for i in range(length // 4))
    personality = decode_personality(_b64(data))
    assert personality is not None
    assert personality.format == "simple"
    assert personality.channel_count == channels
    assert personality.channels[0].trait_id == 2000
    assert personality.header_value is None


@pytest.mark.parametrize("length", [1, 5, 15, 18, 23])
def test_unknown_length_gives_zero_channel_personality(length: int) -> None:
    data = bytes(range(length))
    personality = decode_personality(_b64(data))
    assert personality is not None
    assert personality.format == "simple"
    assert personality.channel_count == 0
    assert personality.channels == ()
    assert personality.header_value is None
    assert personality.raw_hex.split(" ")[0] == "00"
    assert len(personality.raw_hex.split(" ")) == length


def test_format_trait_ids_marks_flagged_channels() -> None:
    data = _entry(1001) + _entry(1002, flag=1) + _entry(1003) + _entry(1005)
    personality = decode_personality(_b64(data))
    assert personality is not None
    assert format_trait_ids(personality) == "1001, 1002*, 1003, 1005"
