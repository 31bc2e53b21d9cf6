"""
Per-muscle fatigue accumulator.

Fatigue rises by a fixed amount per working set and decays linearly with
rest days. Scores are not capped; needs_deload is derived from the
current value on every read.
"""

import logging
from datetime import date

from .config import (
    DECAY_RATE_PER_DAY,
    FATIGUE_DELOAD_THRESHOLD,
    FATIGUE_MODERATE_THRESHOLD,
    FATIGUE_PER_SET,
    FATIGUE_VISIBLE_THRESHOLD,
)
from .models import MuscleFatigue, validate_iso_date, validate_muscle

logger = logging.getLogger(__name__)


def fatigue_level(value: float, deload_threshold: float = FATIGUE_DELOAD_THRESHOLD) -> str | None:
    """
    Display tier for a fatigue score.

    Returns "high" (above the deload threshold, 70 by default), "moderate"
    (>50), "low" (>30), or None when the muscle is fresh enough not to be
    shown.
    """
    if value > deload_threshold:
        return "high"
    if value > FATIGUE_MODERATE_THRESHOLD:
        return "moderate"
    if value > FATIGUE_VISIBLE_THRESHOLD:
        return "low"
    return None


class FatigueAccumulator:
    """
    Map of muscle group → MuscleFatigue.

    Muscles that were never trained read as 0.
    """

    def __init__(
        self,
        entries: dict[str, MuscleFatigue] | None = None,
        fatigue_per_set: float = FATIGUE_PER_SET,
        decay_rate_per_day: float = DECAY_RATE_PER_DAY,
        deload_threshold: float = FATIGUE_DELOAD_THRESHOLD,
    ):
        self.entries: dict[str, MuscleFatigue] = dict(entries or {})
        self.fatigue_per_set = fatigue_per_set
        self.decay_rate_per_day = decay_rate_per_day
        self.deload_threshold = deload_threshold

    def record_volume(self, muscle: str, set_count: int, on: str | None = None) -> float:
        """
        Add fatigue for ``set_count`` working sets on ``muscle``.

        Args:
            muscle: Muscle group
            set_count: Sets performed (>= 0)
            on: ISO date of the session, defaults to today

        Returns:
            The muscle's new fatigue score
        """
        validate_muscle(muscle)
        if set_count < 0:
            raise ValueError(f"set_count must be non-negative, got {set_count}")
        trained_on = on or date.today().isoformat()
        validate_iso_date(trained_on)

        entry = self.entries.get(muscle)
        if entry is None:
            entry = MuscleFatigue(muscle_group=muscle)
            self.entries[muscle] = entry
        entry.current_fatigue += set_count * self.fatigue_per_set
        entry.last_trained_date = trained_on
        logger.debug("fatigue %s +%d sets -> %.1f", muscle, set_count, entry.current_fatigue)
        return entry.current_fatigue

    def decay(self, elapsed_days: float) -> None:
        """Recover every muscle by decay_rate_per_day × elapsed_days, floored at 0."""
        if elapsed_days < 0:
            raise ValueError(f"elapsed_days must be non-negative, got {elapsed_days}")
        amount = self.decay_rate_per_day * elapsed_days
        for entry in self.entries.values():
            entry.current_fatigue = max(0.0, entry.current_fatigue - amount)

    def reset(self) -> None:
        for entry in self.entries.values():
            entry.current_fatigue = 0.0

    def get(self, muscle: str) -> float:
        entry = self.entries.get(muscle)
        return entry.current_fatigue if entry is not None else 0.0

    def needs_deload(self, muscle: str) -> bool:
        return self.get(muscle) > self.deload_threshold

    def level(self, muscle: str) -> str | None:
        return fatigue_level(self.get(muscle), self.deload_threshold)

    def fatigued_muscles(self, threshold: float | None = None) -> list[str]:
        """Muscles strictly above ``threshold`` (the deload threshold by default)."""
        if threshold is None:
            threshold = self.deload_threshold
        return [m for m, e in self.entries.items() if e.current_fatigue > threshold]

    def visible(self) -> list[MuscleFatigue]:
        """Muscles worth showing (above 30), most fatigued first."""
        shown = [e for e in self.entries.values() if e.current_fatigue > FATIGUE_VISIBLE_THRESHOLD]
        return sorted(shown, key=lambda e: e.current_fatigue, reverse=True)
