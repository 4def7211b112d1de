"""Schemas describing a decoded CueCore backup."""

from dataclasses import dataclass, field
from typing import List, Literal, Optional

from .frames import DmxState, Frame, build_dmx_state
from .personality import Personality

Precedence = Literal["LTP", "HTP", "Priority"]


@dataclass
class BackupHeader:
    """Device and backup-tool details from the root ``<core>`` element."""

    device: str = ""
    version_pcb: str = ""
    version_firmware: str = ""
    pcb_serial: str = ""
    mac_address: str = ""
    backup_utility: str = ""
    utility_version: str = ""
    protocol_version: str = ""


@dataclass
class Fixture:
    """A patched fixture; ``address`` is the 0-indexed DMX start address."""

    index: int
    label: str
    address: int
    virtual_dimmer: bool = False
    personality: str = ""
    parsed_personality: Optional[Personality] = None
    uid: Optional[str] = None
    raw_xml: Optional[str] = None


@dataclass
class Cue:
    """A playback step; fixture-playback cues also carry frame payloads."""

    index: int
    label: str = "Cue"
    duration: str = "halt"
    fade: Optional[str] = None
    condition: Optional[str] = None
    frames: List[str] = field(default_factory=list)
    frame_fx: List[str] = field(default_factory=list)
    parsed_frames: List[Optional[Frame]] = field(default_factory=list)
    parsed_frame_fx: List[Optional[Frame]] = field(default_factory=list)
    raw_xml: Optional[str] = None

    def dmx_state(self) -> DmxState:
        """Return the sparse DMX state stored in this cue's frames."""
        return build_dmx_state(self.frames)


@dataclass
class Playback:
    """A playback with its cue list."""

    index: int
    label: str = ""
    release: str = "0s"
    precedence: Precedence = "LTP"
    repeat: str = "Off"
    timecode_offset: str = "00:00:00.00"
    cues: List[Cue] = field(default_factory=list)


@dataclass
class FixturePlayback(Playback):
    """A playback whose cues store fixture DMX frames."""

    timecode_enabled: bool = False
    raw_xml: Optional[str] = None


@dataclass
class Trigger:
    type: str = ""
    value: str = ""
    flank: str = "Change"


@dataclass
class TaskParameter:
    index: int
    type: str = ""
    value: str = ""


@dataclass
class Task:
    type: str = ""
    feature: str = ""
    function: str = ""
    parameters: List[TaskParameter] = field(default_factory=list)


@dataclass
class Action:
    """A show-control action: one trigger running a list of tasks."""

    label: str
    trigger: Trigger = field(default_factory=Trigger)
    tasks: List[Task] = field(default_factory=list)
    raw_xml: Optional[str] = None


@dataclass
class ActionList:
    enabled: bool = False
    source: str = ""
    actions: List[Action] = field(default_factory=list)


@dataclass
class Track:
    """An audio track stored on the device."""

    index: int
    label: str = ""
    version: str = ""
    frames: int = 0
    filesize: int = 0
    sample_rate: int = 0
    external: bool = False


@dataclass
class BackupFile:
    """Full decoded backup document."""

    header: BackupHeader
    patch: List[Fixture] = field(default_factory=list)
    playbacks: List[Playback] = field(default_factory=list)
    fixture_playbacks: List[FixturePlayback] = field(default_factory=list)
    show_control: ActionList = field(default_factory=ActionList)
    tracks: List[Track] = field(default_factory=list)

    @property
    def fixture_count(self) -> int:
        return len(self.patch)

    @property
    def playback_count(self) -> int:
        """Return the number of fixture playbacks."""
        return len(self.fixture_playbacks)

    @property
    def action_count(self) -> int:
        return len(self.show_control.actions)
