"""Command-line entry point to inspect a CueCore backup."""

import argparse
import logging
import sys
from typing import Optional

from .backup_io import BackupFormatError, load_backup
from .frames import DEFAULT_CHANNEL_COUNT, map_fixture_channels
from .payload import payload_hex_dump
from .personality import format_trait_ids
from .schema import BackupFile, Cue, FixturePlayback

logger = logging.getLogger(__name__)


def main(argv: Optional[list[str]] = None) -> int:
    """Print a report of the backup given on the command line."""

    parser = argparse.ArgumentParser(description="Inspect a CueCore backup file.")
    parser.add_argument("backup", help="Path to the backup file (.xml)")
    parser.add_argument(
        "--playback",
        type=int,
        help="Index of the fixture playback whose cue DMX values are shown.",
    )
    parser.add_argument(
        "--cue",
        type=int,
        default=None,
        help="Index of the cue within --playback. Defaults to the first cue.",
    )
    parser.add_argument(
        "--default-channels",
        type=int,
        default=DEFAULT_CHANNEL_COUNT,
        help="Channel count assumed for fixtures without a decodable personality.",
    )
    parser.add_argument(
        "--hexdump",
        action="store_true",
        help="Also print a hex dump of each frame payload of the selected cue.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    try:
        backup = load_backup(args.backup)
    except (BackupFormatError, OSError) as exc:
        logger.error("Could not load %s: %s", args.backup, exc)
        return 1

    _print_summary(backup)

    if args.playback is None:
        return 0

    playback = next((pb for pb in backup.fixture_playbacks if pb.index == args.playback), None)
    if playback is None:
        logger.error("No fixture playback with index %d", args.playback)
        return 1

    cue = _select_cue(playback, args.cue)
    if cue is None:
        logger.error("Fixture playback %d has no cue %s", args.playback, args.cue)
        return 1

    _print_cue(backup, playback, cue, args.default_channels, args.hexdump)
    return 0


def _select_cue(playback: FixturePlayback, cue_index: Optional[int]) -> Optional[Cue]:
    if cue_index is None:
        return playback.cues[0] if playback.cues else None
    return next((cue for cue in playback.cues if cue.index == cue_index), None)


def _print_summary(backup: BackupFile) -> None:
    header = backup.header
    print(f"Device: {header.device} (firmware {header.version_firmware}, PCB {header.version_pcb})")
    print(f"Serial: {header.pcb_serial}  MAC: {header.mac_address}")
    print(f"Backup: {header.backup_utility} {header.utility_version}")
    print()

    print(f"Fixtures ({backup.fixture_count}):")
    for fixture in backup.patch:
        personality = fixture.parsed_personality
        traits = format_trait_ids(personality) if personality else "-"
        print(f"  #{fixture.index:<3} @{fixture.address + 1:<4} {fixture.label:<24} {traits}")
    print()

    print(f"Fixture playbacks ({backup.playback_count}):")
    for playback in backup.fixture_playbacks:
        print(
            f"  #{playback.index:<3} {playback.label:<24} {playback.precedence:<8} "
            f"{len(playback.cues)} cue(s)"
        )
    print()

    print(f"Playbacks: {len(backup.playbacks)}")
    print(f"Actions: {backup.action_count}")
    print(f"Tracks: {len(backup.tracks)}")


def _print_cue(
    backup: BackupFile,
    playback: FixturePlayback,
    cue: Cue,
    default_channels: int,
    hexdump: bool,
) -> None:
    print()
    print(f"Playback #{playback.index} {playback.label}, cue #{cue.index} {cue.label}")

    fixture_data = map_fixture_channels(cue.dmx_state(), backup.patch, default_channels)
    if not fixture_data:
        print("  (no active channels)")
    for data in fixture_data:
        values = ", ".join(f"{ch.name}={ch.value}" for ch in data.channels)
        print(f"  #{data.fixture_index:<3} @{data.start_address:<4} {data.label:<24} {values}")

    if hexdump:
        for position, text in enumerate(cue.frames):
            print()
            print(f"frame {position}:")
            print(payload_hex_dump(text))


if __name__ == "__main__":
    sys.exit(main())
