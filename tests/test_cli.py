from pathlib import Path

from cuebackup.cli import main


SAMPLE_PATH = Path(__file__).resolve().parent / "data" / "backup_sample.xml"


def test_cli_prints_summary(capsys) -> None:
    assert main([str(SAMPLE_PATH)]) == 0
    out = capsys.readouterr().out
    assert "Device: CueCore3" in out
    assert "Fixtures (3):" in out
    assert "1001, 1002*, 1003, 1005" in out
    assert "Fixture playbacks (2):" in out
    assert "Actions: 2" in out


def test_cli_prints_cue_channels_and_hexdump(capsys) -> None:
    assert main([str(SAMPLE_PATH), "--playback", "1", "--cue", "0", "--hexdump"]) == 0
    out = capsys.readouterr().out
    assert "cue #0 Open" in out
    assert "1001=128, 1002*=255, 1003=0, 1005=0" in out
    assert "1007=64, 4001*=0" in out
    assert "Blinder" in out.split("cue #0 Open")[0]
    assert "Blinder" not in out.split("cue #0 Open")[1]
    assert "0000: 01 00 00 00 80 00" in out


def test_cli_reports_dark_cue(capsys) -> None:
    assert main([str(SAMPLE_PATH), "--playback", "1", "--cue", "1"]) == 0
    assert "(no active channels)" in capsys.readouterr().out


def test_cli_unknown_playback_fails() -> None:
    assert main([str(SAMPLE_PATH), "--playback", "42"]) == 1


def test_cli_structural_error_fails(tmp_path: Path) -> None:
    broken = tmp_path / "broken.xml"
    broken.write_text("<backup><patch/></backup>", encoding="utf-8")
    assert main([str(broken)]) == 1
    assert main([str(tmp_path / "missing.xml")]) == 1


def test_cli_reads_latin1_backup(tmp_path: Path, capsys) -> None:
    latin1 = tmp_path / "latin1.xml"
    latin1.write_bytes(
        "<?xml version='1.0' encoding='ISO-8859-1'?><core device='Café'/>".encode("latin-1")
    )
    assert main([str(latin1)]) == 0
    assert "Device: Café" in capsys.readouterr().out


def test_cli_undecodable_backup_fails(tmp_path: Path) -> None:
    broken = tmp_path / "broken.xml"
    broken.write_bytes(b"<?xml version='1.0' encoding='UTF-8'?><core device='\xe9'/>")
    assert main([str(broken)]) == 1
