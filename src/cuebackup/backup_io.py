"""Read CueCore backup files into ``BackupFile`` models."""

import copy
import logging
import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import List, Optional, Union

from .frames import decode_frame
from .personality import decode_personality
from .schema import (
    Action,
    ActionList,
    BackupFile,
    BackupHeader,
    Cue,
    Fixture,
    FixturePlayback,
    Playback,
    Precedence,
    Task,
    TaskParameter,
    Track,
    Trigger,
)

logger = logging.getLogger(__name__)

HEADER_ATTRIBUTES = (
    "device",
    "version_pcb",
    "version_firmware",
    "pcb_serial",
    "mac_address",
    "backup_utility",
    "utility_version",
    "protocol_version",
)

_INTEGER = re.compile(r"[+-]?[0-9]+")


class BackupFormatError(ValueError):
    """Raised when a document is not a usable CueCore backup."""


def load_backup(path: str) -> BackupFile:
    """Load and decode a CueCore backup (.xml) from disk."""

    backup = parse_backup_xml(Path(path).read_bytes())
    logger.info(
        "Loaded %s: %d fixtures, %d fixture playbacks, %d actions",
        Path(path).name,
        backup.fixture_count,
        backup.playback_count,
        backup.action_count,
    )
    return backup


def parse_backup_xml(xml_text: Union[str, bytes]) -> BackupFile:
    """Decode a backup document, including its embedded binary payloads.

    Raises ``BackupFormatError`` if the XML is malformed or has no ``<core>``
    element. Bytes are decoded using the encoding the XML declaration names.
    Undecodable personalities and frames never abort parsing; they
    are left as ``None`` on the fixture or cue that carried them.
    """

    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as exc:
        raise BackupFormatError(f"XML parse error: {exc}") from exc
    except (UnicodeError, LookupError) as exc:
        raise BackupFormatError(f"XML encoding error: {exc}") from exc

    core = root if root.tag == "core" else root.find(".//core")
    if core is None:
        raise BackupFormatError("Invalid backup file: missing <core> element")

    return BackupFile(
        header=_parse_header(core),
        patch=_parse_patch(root),
        playbacks=_parse_playbacks(root),
        fixture_playbacks=_parse_fixture_playbacks(root),
        show_control=_parse_show_control(root),
        tracks=_parse_tracks(root),
    )


def _attr_int(el: ET.Element, name: str, default: int = 0) -> int:
    """Read an integer attribute, falling back on missing or non-numeric values."""

    value = el.get(name)
    if not value:
        return default
    value = value.strip()
    if _INTEGER.fullmatch(value):
        return int(value)
    logger.debug("Non-numeric %s=%r on <%s>", name, value, el.tag)
    return default


def _attr_bool(el: ET.Element, name: str, default: bool = False) -> bool:
    value = el.get(name)
    if not value:
        return default
    return value.lower() == "true"


def _precedence(el: ET.Element) -> Precedence:
    """Normalise precedence spellings such as ``Ltp`` or ``priority``."""

    raw = el.get("precedence", "LTP").upper()
    if raw == "HTP":
        return "HTP"
    if raw == "PRIORITY":
        return "Priority"
    return "LTP"


def _text_content(el: ET.Element) -> str:
    return "".join(el.itertext())


def _outer_xml(el: ET.Element) -> str:
    """Serialise ``el`` without the text that follows its closing tag."""

    detached = copy.copy(el)
    detached.tail = None
    return ET.tostring(detached, encoding="unicode")


def _parse_header(core: ET.Element) -> BackupHeader:
    return BackupHeader(**{name: core.get(name, "") for name in HEADER_ATTRIBUTES})


def _parse_patch(root: ET.Element) -> List[Fixture]:
    fixtures: List[Fixture] = []
    for fixture_el in root.findall(".//patch/fixture"):
        personality = fixture_el.get("personality", "")
        parsed = decode_personality(personality)
        if personality.strip() and parsed is None:
            logger.warning(
                "Fixture %s has an undecodable personality", fixture_el.get("index", "?")
            )

        fixtures.append(
            Fixture(
                index=_attr_int(fixture_el, "index"),
                label=fixture_el.get("label", ""),
                address=_attr_int(fixture_el, "address"),
                virtual_dimmer=_attr_bool(fixture_el, "virtualdimmer"),
                personality=personality,
                parsed_personality=parsed,
                uid=fixture_el.get("uid"),
                raw_xml=_outer_xml(fixture_el),
            )
        )

    return sorted(fixtures, key=lambda fx: fx.index)


def _parse_playbacks(root: ET.Element) -> List[Playback]:
    """Parse ``<playbacks>``: metadata only, no frame data.

    Playbacks and their cues are numbered in document order; any ``index``
    attribute is ignored here, unlike in ``<fixture_playbacks>``.
    """

    playbacks: List[Playback] = []
    for position, playback_el in enumerate(root.findall(".//playbacks/playback")):
        cues = [
            Cue(
                index=cue_position,
                label="Cue",
                duration=cue_el.get("duration", "halt"),
                condition=cue_el.get("condition") or None,
                fade=cue_el.get("fade"),
            )
            for cue_position, cue_el in enumerate(playback_el.findall("cues/cue"))
        ]

        playbacks.append(
            Playback(
                index=position,
                label=playback_el.get("label", ""),
                release=playback_el.get("release", "0s"),
                precedence=_precedence(playback_el),
                repeat=playback_el.get("repeat", "Off"),
                timecode_offset=playback_el.get("timecode_offset", "00:00:00.00"),
                cues=cues,
            )
        )

    return playbacks


def _parse_fixture_cue(cue_el: ET.Element) -> Cue:
    """Parse a fixture-playback cue and decode its frame payloads."""

    frames = [text for text in map(_text_content, cue_el.iter("frame")) if text]
    frame_fx = [text for text in map(_text_content, cue_el.iter("frame_fx")) if text]

    parsed_frames = [decode_frame(text) for text in frames]
    parsed_frame_fx = [decode_frame(text) for text in frame_fx]
    failed = parsed_frames.count(None) + parsed_frame_fx.count(None)
    if failed:
        logger.warning(
            "Cue %s: %d frame payload(s) could not be decoded", cue_el.get("index", "?"), failed
        )

    return Cue(
        index=_attr_int(cue_el, "index"),
        label=cue_el.get("label", "Cue"),
        duration=cue_el.get("duration", "halt"),
        fade=cue_el.get("fade"),
        frames=frames,
        frame_fx=frame_fx,
        parsed_frames=parsed_frames,
        parsed_frame_fx=parsed_frame_fx,
        raw_xml=_outer_xml(cue_el),
    )


def _parse_fixture_playbacks(root: ET.Element) -> List[FixturePlayback]:
    playbacks: List[FixturePlayback] = []
    for playback_el in root.findall(".//fixture_playbacks/playback"):
        playbacks.append(
            FixturePlayback(
                index=_attr_int(playback_el, "index"),
                label=playback_el.get("label", ""),
                release=playback_el.get("release", "0s"),
                precedence=_precedence(playback_el),
                repeat=playback_el.get("repeat", "Off"),
                timecode_enabled=_attr_bool(playback_el, "timecode_enabled"),
                timecode_offset=playback_el.get("timecode_offset", "00:00:00.00"),
                cues=[_parse_fixture_cue(cue_el) for cue_el in playback_el.iter("cue")],
                raw_xml=_outer_xml(playback_el),
            )
        )

    return sorted(playbacks, key=lambda pb: pb.index)


def _parse_action(action_el: ET.Element) -> Action:
    trigger_el: Optional[ET.Element] = action_el.find(".//trigger")
    if trigger_el is not None:
        trigger = Trigger(
            type=trigger_el.get("type", ""),
            value=trigger_el.get("value", ""),
            flank=trigger_el.get("flank", "Change"),
        )
    else:
        trigger = Trigger()

    tasks: List[Task] = []
    for task_el in action_el.findall(".//tasks/task"):
        parameters = [
            TaskParameter(
                index=_attr_int(param_el, "index"),
                type=param_el.get("type", ""),
                value=_text_content(param_el),
            )
            for param_el in task_el.iter("parameter")
        ]
        tasks.append(
            Task(
                type=task_el.get("type", ""),
                feature=task_el.get("feature", ""),
                function=task_el.get("function", ""),
                parameters=parameters,
            )
        )

    return Action(
        label=action_el.get("label", ""),
        trigger=trigger,
        tasks=tasks,
        raw_xml=_outer_xml(action_el),
    )


def _parse_show_control(root: ET.Element) -> ActionList:
    actionlist_el = root.find(".//show_control/actionlist")
    if actionlist_el is None:
        return ActionList(enabled=False, source="", actions=[])

    return ActionList(
        enabled=_attr_bool(actionlist_el, "enabled", default=True),
        source=actionlist_el.get("source", "UDP"),
        actions=[_parse_action(action_el) for action_el in actionlist_el.iter("action")],
    )


def _parse_tracks(root: ET.Element) -> List[Track]:
    tracks = [
        Track(
            index=_attr_int(track_el, "index"),
            label=track_el.get("label", ""),
            version=track_el.get("version", ""),
            frames=_attr_int(track_el, "frames"),
            filesize=_attr_int(track_el, "filesize"),
            sample_rate=_attr_int(track_el, "sample_rate"),
            external=_attr_bool(track_el, "external"),
        )
        for track_el in root.findall(".//tracks/track")
    ]
    return sorted(tracks, key=lambda track: track.index)
