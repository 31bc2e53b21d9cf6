"""
JSON-based storage for the active mesocycle and its history.

Layout of the state directory:
    state.json      active cycle (or null), fatigue snapshot, feedback list
    history.jsonl   archived cycles, one JSON object per line
"""

import json
import logging
import os
from datetime import date, datetime
from pathlib import Path

from ..core.config import FEEDBACK_HISTORY_LIMIT
from ..core.fatigue import FatigueAccumulator
from ..core.models import MesoCycleState, WorkoutFeedback
from .serializers import (
    ValidationError,
    cycle_to_dict,
    cycle_to_json_line,
    dict_to_cycle,
    dict_to_fatigue_entries,
    dict_to_feedback,
    fatigue_to_dict,
    feedback_to_dict,
    json_line_to_cycle,
)

logger = logging.getLogger(__name__)

STATE_FILENAME = "state.json"
HISTORY_FILENAME = "history.jsonl"


class StateStore:
    """
    Persists tracker state between CLI invocations.

    The core never touches the filesystem; commands load a
    MesoCycleTracker from here, apply one event, and save it back.
    """

    def __init__(self, state_dir: str | Path):
        """
        Initialize the store.

        Args:
            state_dir: Directory holding state.json and history.jsonl
        """
        self.state_dir = Path(state_dir)
        self.state_path = self.state_dir / STATE_FILENAME
        self.history_path = self.state_dir / HISTORY_FILENAME

    def exists(self) -> bool:
        """Check if the state file exists."""
        return self.state_path.exists()

    def init(self) -> None:
        """Create the state directory and empty files if missing."""
        self.state_dir.mkdir(parents=True, exist_ok=True)
        if not self.state_path.exists():
            self._write_state({"cycle": None, "fatigue": {}, "feedback": [], "last_decay_date": None})
        if not self.history_path.exists():
            self.history_path.touch()

    # ------------------------------------------------------------------
    # state.json
    # ------------------------------------------------------------------

    def _read_state(self) -> dict:
        if not self.state_path.exists():
            return {"cycle": None, "fatigue": {}, "feedback": [], "last_decay_date": None}
        try:
            with open(self.state_path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Corrupt state file {self.state_path}: {e}") from e
        if not isinstance(data, dict):
            raise ValidationError(f"Corrupt state file {self.state_path}: expected an object")
        return data

    def _write_state(self, data: dict) -> None:
        self.state_dir.mkdir(parents=True, exist_ok=True)
        tmp = self.state_path.with_suffix(".json.tmp")
        with open(tmp, "w") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp, self.state_path)

    def load_cycle(self) -> MesoCycleState | None:
        """
        Load the active cycle.

        Raises:
            ValidationError: If the stored cycle is invalid
        """
        raw = self._read_state().get("cycle")
        return dict_to_cycle(raw) if raw else None

    def load_fatigue(self, **kwargs) -> FatigueAccumulator:
        """Load the fatigue snapshot; kwargs go to FatigueAccumulator."""
        raw = self._read_state().get("fatigue") or {}
        return FatigueAccumulator(entries=dict_to_fatigue_entries(raw), **kwargs)

    def save(self, cycle: MesoCycleState | None, fatigue: FatigueAccumulator) -> None:
        """Save the active cycle (None clears it) and fatigue snapshot."""
        data = self._read_state()
        data["cycle"] = cycle_to_dict(cycle) if cycle is not None else None
        data["fatigue"] = fatigue_to_dict(fatigue)
        self._write_state(data)
        logger.debug("saved state to %s", self.state_path)

    def get_last_decay_date(self) -> str | None:
        return self._read_state().get("last_decay_date")

    def set_last_decay_date(self, on: str) -> None:
        data = self._read_state()
        data["last_decay_date"] = on
        self._write_state(data)

    def days_since_last_decay(self, today: str | None = None) -> int:
        """Whole days between the last decay and ``today`` (0 if never decayed)."""
        last = self.get_last_decay_date()
        if last is None:
            return 0
        end = today or date.today().isoformat()
        delta = datetime.strptime(end, "%Y-%m-%d") - datetime.strptime(last, "%Y-%m-%d")
        return max(0, delta.days)

    # ------------------------------------------------------------------
    # Feedback
    # ------------------------------------------------------------------

    def load_feedback(self) -> list[WorkoutFeedback]:
        return [dict_to_feedback(d) for d in self._read_state().get("feedback", [])]

    def append_feedback(self, fb: WorkoutFeedback) -> None:
        """Append feedback, keeping only the most recent FEEDBACK_HISTORY_LIMIT entries."""
        data = self._read_state()
        entries = list(data.get("feedback", []))
        entries.append(feedback_to_dict(fb))
        data["feedback"] = entries[-FEEDBACK_HISTORY_LIMIT:]
        self._write_state(data)

    # ------------------------------------------------------------------
    # history.jsonl
    # ------------------------------------------------------------------

    def archive_cycle(self, cycle: MesoCycleState) -> None:
        """Append a finished or abandoned cycle to the history file."""
        self.state_dir.mkdir(parents=True, exist_ok=True)
        with open(self.history_path, "a") as f:
            f.write(cycle_to_json_line(cycle) + "\n")
        logger.debug("archived cycle %s (%s)", cycle.id, cycle.status)

    def load_history(self) -> list[MesoCycleState]:
        """
        Load archived cycles, oldest first.

        Raises:
            ValidationError: If a line is invalid (message names the line)
        """
        if not self.history_path.exists():
            return []
        cycles: list[MesoCycleState] = []
        with open(self.history_path, "r") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    cycles.append(json_line_to_cycle(line))
                except ValidationError as e:
                    raise ValidationError(f"Line {line_num}: {e}") from e
        return cycles


def get_default_state_dir() -> Path:
    """Default state directory: ~/.meso-tracker (honours $HOME)."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    return home / ".meso-tracker"
