"""Tests for event recording."""

import json
import tempfile
from pathlib import Path

import pytest

from bgrules.core.types import Side, WinClass
from bgrules.recorder import GameRecorder
from bgrules.rules.game_end import GameEndResult, rejected_double_result


def read_events(path):
    with open(path) as f:
        return [json.loads(line) for line in f]


class TestGameRecorder:
    """Test recorder functionality."""

    def test_recorder_creation(self):
        """Test creating a recorder."""
        with tempfile.TemporaryDirectory() as tmpdir:
            recorder = GameRecorder(log_dir=tmpdir, run_name="test_run")
            assert recorder.log_dir == Path(tmpdir)
            assert recorder.events_path == Path(tmpdir) / "test_run_events.jsonl"
            assert recorder.events_path.exists()
            recorder.close()

    def test_log_event_auto_step(self):
        """Steps count up from zero when not given."""
        with tempfile.TemporaryDirectory() as tmpdir:
            recorder = GameRecorder(log_dir=tmpdir, run_name="test_run", console_interval=100)
            recorder.log_event("roll", {"dice": "3-1"})
            recorder.log_event("roll", {"dice": "6-6"})
            recorder.log_event("roll", {"dice": "2-5"}, step=10)
            recorder.close()

            events = read_events(recorder.events_path)
            assert [e["step"] for e in events] == [0, 1, 10]
            assert events[0]["type"] == "roll"
            assert events[1]["dice"] == "6-6"
            assert "timestamp" in events[0]

    def test_game_end_event(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            recorder = GameRecorder(log_dir=tmpdir, console_interval=100)
            result = GameEndResult(
                game_ended=True,
                winner=Side.BLACK,
                win_class=WinClass.GAMMON,
                base_points=2,
                final_points=4,
                message="Black wins by Gammon!",
            )
            recorder.log_game_end(result, game_number=3, moves=88)
            recorder.log_game_end(rejected_double_result(Side.WHITE, 1), game_number=4, moves=12)
            recorder.close()

            first, second = read_events(recorder.events_path)
            assert first["type"] == "game_end"
            assert first["winner"] == "black"
            assert first["win_class"] == "Gammon"
            assert first["points"] == 4
            assert first["moves"] == 88
            assert second["by_rejection"]

    def test_cube_and_config_events(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            recorder = GameRecorder(log_dir=tmpdir, console_interval=100)
            recorder.log_config({"match_length": 5, "seed": 1})
            recorder.log_cube_action("offer", Side.WHITE, 2)
            recorder.close()

            config, cube = read_events(recorder.events_path)
            assert config["type"] == "config"
            assert config["match_length"] == 5
            assert "step" not in config
            assert cube["type"] == "cube"
            assert (cube["action"], cube["side"], cube["value"]) == ("offer", "white", 2)

    def test_save_summary(self):
        """Test saving summary statistics."""
        with tempfile.TemporaryDirectory() as tmpdir:
            recorder = GameRecorder(log_dir=tmpdir, run_name="test_run")
            path = recorder.save_summary({"total_games": 12, "gammons": 3})
            recorder.close()

            assert path == Path(tmpdir) / "test_run_summary.json"
            with open(path) as f:
                assert json.load(f) == {"total_games": 12, "gammons": 3}

    def test_context_manager(self):
        """Test using recorder as context manager."""
        with tempfile.TemporaryDirectory() as tmpdir:
            with GameRecorder(log_dir=tmpdir) as recorder:
                recorder.log_event("start", {})

            # Should be closed automatically
            assert recorder._jsonl_file is None
            with pytest.raises(ValueError):
                recorder.log_event("late", {})

    def test_console_logging_interval(self, capsys):
        """Console echoes every Nth event only."""
        with tempfile.TemporaryDirectory() as tmpdir:
            recorder = GameRecorder(log_dir=tmpdir, console_interval=5)
            for _ in range(6):
                recorder.log_event("tick", {"value": 0.5})
            recorder.close()

            out = capsys.readouterr().out
            assert out.count("tick") == 2
            assert len(read_events(recorder.events_path)) == 6
