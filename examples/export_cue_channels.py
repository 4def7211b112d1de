"""Export the per-fixture DMX values of every fixture-playback cue to JSON."""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import asdict
from pathlib import Path

from cuebackup.backup_io import load_backup
from cuebackup.frames import DEFAULT_CHANNEL_COUNT, map_fixture_channels

logger = logging.getLogger(__name__)


def export_cues(backup_path: Path, default_channels: int) -> list[dict]:
    backup = load_backup(str(backup_path))
    exported: list[dict] = []
    for playback in backup.fixture_playbacks:
        for cue in playback.cues:
            fixtures = map_fixture_channels(cue.dmx_state(), backup.patch, default_channels)
            exported.append(
                {
                    "playback": playback.index,
                    "playback_label": playback.label,
                    "cue": cue.index,
                    "cue_label": cue.label,
                    "fixtures": [asdict(data) for data in fixtures],
                }
            )
    return exported


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    parser = argparse.ArgumentParser(description="Export cue DMX values from a CueCore backup")
    parser.add_argument("backup", help="Path to the backup file (.xml)")
    parser.add_argument("-o", "--output", help="Output JSON path (default: generated/<backup>_cues.json)")
    parser.add_argument(
        "--default-channels",
        type=int,
        default=DEFAULT_CHANNEL_COUNT,
        help=f"Channels assumed for fixtures without a personality. Default: {DEFAULT_CHANNEL_COUNT}",
    )

    args = parser.parse_args()

    backup_path = Path(args.backup)
    cues = export_cues(backup_path, args.default_channels)

    output_path = (
        Path(args.output) if args.output else Path("generated") / f"{backup_path.stem}_cues.json"
    )
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps({"cues": cues}, indent=2), encoding="utf-8")
    logger.info("Wrote %d cues to %s", len(cues), output_path)


if __name__ == "__main__":
    main()
