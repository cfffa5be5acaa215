"""
Frank Karaoke - Batch Validation CLI Tests

Tests for scripts/validate_songs.py: file collection, text and JSON output,
filtering flags and exit codes.
"""

import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from scripts.validate_songs import collect_txt_files, main, validate_all
from tests.conftest import SAMPLE_CHART_NO_NOTES, SAMPLE_CHART_VALID, write_song_folder


def _library(songs_dir: Path) -> None:
    write_song_folder(songs_dir / "Good")
    write_song_folder(songs_dir / "Warn", SAMPLE_CHART_VALID.replace("E\n", ""))
    write_song_folder(songs_dir / "Bad", SAMPLE_CHART_NO_NOTES)


class TestCollectFiles:
    def test_recursive_and_sorted(self, songs_dir: Path):
        _library(songs_dir)
        (songs_dir / "Good" / "notes.chart").write_text("", encoding="utf-8")
        files = collect_txt_files(songs_dir)
        assert [f.parent.name for f in files] == ["Bad", "Good", "Warn"]

    def test_single_file(self, song_folder: Path):
        chart = song_folder / "song.txt"
        assert collect_txt_files(chart) == [chart]
        assert collect_txt_files(song_folder / "song.mp3") == []

    def test_validate_all_keeps_order(self, songs_dir: Path):
        _library(songs_dir)
        files = collect_txt_files(songs_dir)
        results = validate_all(files, workers=3)
        assert [r.chart_path for r in results] == files


class TestMain:
    def test_missing_path(self, tmp_path: Path, capsys):
        assert main(["--path", str(tmp_path / "nope")]) == 1
        assert "does not exist" in capsys.readouterr().err

    def test_no_files(self, songs_dir: Path, capsys):
        assert main(["-p", str(songs_dir)]) == 0
        assert "No .txt files found" in capsys.readouterr().out

    def test_all_valid(self, song_folder: Path, songs_dir: Path, capsys):
        assert main(["-p", str(songs_dir)]) == 0
        out = capsys.readouterr().out
        assert "Total files:  1" in out
        assert "Valid:        1 (100.0%)" in out
        # Valid files are only listed with --verbose
        assert "song.txt" not in out

    def test_errors_exit_nonzero(self, songs_dir: Path, capsys):
        _library(songs_dir)
        assert main(["-p", str(songs_dir)]) == 1
        out = capsys.readouterr().out
        assert "❌" in out
        assert "ERROR: Song contains no notes" in out
        assert "WARN:" not in out
        assert "With errors:  1 (33.3%)" in out

    def test_warnings_flag(self, songs_dir: Path, capsys):
        _library(songs_dir)
        main(["-p", str(songs_dir), "-w"])
        out = capsys.readouterr().out
        assert "WARN: Missing 'E' end marker" in out
        assert "Total warnings: 1" in out

    def test_verbose_lists_valid_files(self, song_folder: Path, songs_dir: Path, capsys):
        main(["-p", str(songs_dir), "--verbose"])
        assert "✅" in capsys.readouterr().out

    def test_error_line_and_context(self, songs_dir: Path, capsys):
        write_song_folder(
            songs_dir / "Broken",
            SAMPLE_CHART_VALID.replace(": 4 4 7 lo", ": 4 4"),
        )
        main(["-p", str(songs_dir)])
        out = capsys.readouterr().out
        assert "(line 10) - : 4 4" in out

    def test_json_output(self, songs_dir: Path, capsys):
        _library(songs_dir)
        assert main(["-p", str(songs_dir), "--format", "json"]) == 1
        data = json.loads(capsys.readouterr().out)
        assert [Path(d["path"]).parent.name for d in data] == ["Bad"]
        assert data[0]["valid"] is False
        assert data[0]["errors"][0]["kind"] == "NoNotes"
        assert data[0]["warnings"] == []

    def test_json_with_warnings(self, songs_dir: Path, capsys):
        _library(songs_dir)
        main(["-p", str(songs_dir), "-f", "json", "-w"])
        data = json.loads(capsys.readouterr().out)
        by_folder = {Path(d["path"]).parent.name: d for d in data}
        assert set(by_folder) == {"Bad", "Warn"}
        assert by_folder["Warn"]["valid"] is True
        assert by_folder["Warn"]["warnings"][0]["kind"] == "NoEndMarker"

    def test_status_lines_come_from_result_summary(self, songs_dir: Path, capsys):
        _library(songs_dir)
        main(["-p", str(songs_dir), "-w", "-v"])
        out = capsys.readouterr().out
        assert f"❌ INVALID: {songs_dir / 'Bad' / 'song.txt'}" in out
        assert f"⚠️  VALID: {songs_dir / 'Warn' / 'song.txt'}" in out
        assert f"✅ VALID: {songs_dir / 'Good' / 'song.txt'}" in out
        assert "  1 error(s)" in out
