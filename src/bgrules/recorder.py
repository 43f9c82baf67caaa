"""Event recording for simulated games and matches.

Writes one JSON object per line to ``<log_dir>/<run_name>_events.jsonl`` and
echoes every ``console_interval``-th event to the console.
"""

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from bgrules.core.types import Side
from bgrules.rules.game_end import GameEndResult

logger = logging.getLogger(__name__)


@dataclass
class GameRecorder:
    """JSONL recorder for game, cube and match events.

    Args:
        log_dir: Directory for event files
        run_name: Name of this run (used as the file prefix)
        console_interval: Print every N events to the console
    """

    log_dir: Path
    run_name: str = "bgrules"
    console_interval: int = 10

    # Internal state
    _jsonl_file: Optional[Any] = field(default=None, init=False, repr=False)
    _step_count: int = field(default=0, init=False, repr=False)
    _start_time: float = field(default_factory=time.time, init=False, repr=False)

    def __post_init__(self):
        """Open the event file."""
        self.log_dir = Path(self.log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self._jsonl_file = open(self.events_path, 'a')
        logger.debug("Recording events to %s", self.events_path)

    @property
    def events_path(self) -> Path:
        return self.log_dir / f"{self.run_name}_events.jsonl"

    def log_event(self, event_type: str, data: Dict[str, Any], step: Optional[int] = None) -> None:
        """Append one event.

        Args:
            event_type: Event name, e.g. ``"game_end"`` or ``"cube"``
            data: JSON-compatible payload
            step: Event number (auto-incremented if None)
        """
        if self._jsonl_file is None:
            raise ValueError("Recorder is closed")

        if step is None:
            step = self._step_count
            self._step_count += 1

        entry = {
            "step": step,
            "timestamp": time.time() - self._start_time,
            "type": event_type,
            **data,
        }
        self._jsonl_file.write(json.dumps(entry) + '\n')
        self._jsonl_file.flush()

        if step % self.console_interval == 0:
            self._log_console(step, event_type, data)

    def _log_console(self, step: int, event_type: str, data: Dict[str, Any]) -> None:
        elapsed = time.time() - self._start_time
        fields_str = " | ".join(
            f"{k}: {v:.3f}" if isinstance(v, float) else f"{k}: {v}"
            for k, v in data.items()
        )
        print(f"[Event {step:6d}] [{elapsed:8.1f}s] {event_type} | {fields_str}")

    def log_config(self, params: Dict[str, Any]) -> None:
        """Record the run configuration as a ``config`` event (never echoed)."""
        entry = {
            "type": "config",
            "timestamp": time.time() - self._start_time,
            **params,
        }
        self._jsonl_file.write(json.dumps(entry) + '\n')
        self._jsonl_file.flush()

    def log_game_end(self, result: GameEndResult, game_number: int, moves: int) -> None:
        self.log_event("game_end", {
            "game_number": game_number,
            "winner": str(result.winner) if result.winner is not None else None,
            "win_class": result.win_class.label if result.win_class is not None else None,
            "points": result.final_points,
            "by_rejection": result.by_rejection,
            "moves": moves,
        })

    def log_cube_action(self, action: str, side: Side, value: int) -> None:
        self.log_event("cube", {"action": action, "side": str(side), "value": value})

    def save_summary(self, summary: Dict[str, Any]) -> Path:
        """Write final statistics to ``<run_name>_summary.json``."""
        summary_path = self.log_dir / f"{self.run_name}_summary.json"
        with open(summary_path, 'w') as f:
            json.dump(summary, f, indent=2)
        print(f"Summary saved to: {summary_path}")
        return summary_path

    def close(self) -> None:
        if self._jsonl_file is not None:
            self._jsonl_file.close()
            self._jsonl_file = None

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
