"""
Adaptation rules: deload scheduling, deload triggers, and feedback-driven
volume adjustment.

Scheduling policies decide up front which cycle weeks are deload weeks.
Triggers look at accumulated fatigue and recent workout feedback to
suggest an unscheduled deload.
"""

from .config import (
    DEFAULT_DELOAD_INTERVAL_WEEKS,
    DELOAD_MIN_FATIGUED_MUSCLES,
    FEEDBACK_WINDOW,
    SCORE_DELOAD,
    SCORE_INCREASE_HIGH,
    SCORE_INCREASE_LOW,
    SCORE_MAINTAIN,
    SETS_DECREASE,
    SETS_DELOAD,
    SETS_INCREASE_HIGH,
    SETS_INCREASE_LOW,
    SETS_MAINTAIN,
    VOLUME_LANDMARKS,
)
from .fatigue import FatigueAccumulator
from .models import WorkoutFeedback


# =============================================================================
# DELOAD SCHEDULING POLICIES
# =============================================================================


class DeloadPolicy:
    """Decides whether a 1-based cycle week is a scheduled deload week."""

    name = "base"

    def is_deload(self, week_number: int, total_weeks: int) -> bool:
        raise NotImplementedError

    def schedule(self, total_weeks: int) -> list[bool]:
        return [self.is_deload(w, total_weeks) for w in range(1, total_weeks + 1)]


class FinalWeekDeload(DeloadPolicy):
    """The last week of the cycle is the deload (single-week cycles have none)."""

    name = "final_week"

    def is_deload(self, week_number: int, total_weeks: int) -> bool:
        return total_weeks > 1 and week_number == total_weeks


class EveryNthWeekDeload(DeloadPolicy):
    """Every n-th week is a deload week."""

    def __init__(self, n: int = DEFAULT_DELOAD_INTERVAL_WEEKS):
        if n < 2:
            raise ValueError(f"deload interval must be at least 2 weeks, got {n}")
        self.n = n
        self.name = f"every_{n}_weeks"

    def is_deload(self, week_number: int, total_weeks: int) -> bool:
        return week_number % self.n == 0


class NoScheduledDeload(DeloadPolicy):
    """No planned deloads; deloads only happen when triggered."""

    name = "none"

    def is_deload(self, week_number: int, total_weeks: int) -> bool:
        return False


def policy_from_name(name: str) -> DeloadPolicy:
    """
    Build a deload policy from its name.

    Accepts "final_week", "none", or "every_<n>_weeks" (e.g. "every_4_weeks").

    Raises:
        ValueError: If the name is not recognised
    """
    if name == "final_week":
        return FinalWeekDeload()
    if name == "none":
        return NoScheduledDeload()
    parts = name.split("_")
    if len(parts) == 3 and parts[0] == "every" and parts[2] == "weeks" and parts[1].isdigit():
        return EveryNthWeekDeload(int(parts[1]))
    raise ValueError(
        f"Unknown deload policy '{name}'. Use final_week, none, or every_<n>_weeks"
    )


# =============================================================================
# DELOAD TRIGGERS
# =============================================================================


def average_recent_score(
    feedback: list[WorkoutFeedback], window: int = FEEDBACK_WINDOW
) -> float | None:
    """Mean total score of the latest ``window`` feedback entries, or None."""
    recent = feedback[-window:]
    if not recent:
        return None
    return sum(f.total_score for f in recent) / len(recent)


def should_trigger_deload(
    fatigue: FatigueAccumulator,
    feedback: list[WorkoutFeedback] | None = None,
) -> bool:
    """
    Decide whether an unscheduled deload is warranted.

    True if at least DELOAD_MIN_FATIGUED_MUSCLES muscles need a deload
    (> 70, which includes every severely fatigued muscle above 80), or if
    the mean score of the last three feedback entries reaches SCORE_DELOAD.
    """
    if len(fatigue.fatigued_muscles()) >= DELOAD_MIN_FATIGUED_MUSCLES:
        return True

    avg = average_recent_score(feedback or [])
    return avg is not None and avg >= SCORE_DELOAD


# =============================================================================
# VOLUME ADJUSTMENT
# =============================================================================


def volume_adjustment_for_score(score: float) -> int:
    """
    Weekly set delta for a feedback score (0..7, lower = easier session).

    <= 2: +3, <= 4: +1, == 5: 0, >= 7: -3 (deload), otherwise -1.
    """
    if score <= SCORE_INCREASE_HIGH:
        return SETS_INCREASE_HIGH
    if score <= SCORE_INCREASE_LOW:
        return SETS_INCREASE_LOW
    if score == SCORE_MAINTAIN:
        return SETS_MAINTAIN
    if score >= SCORE_DELOAD:
        return SETS_DELOAD
    return SETS_DECREASE


def clamp_volume(muscle: str, sets: int) -> int:
    lm = VOLUME_LANDMARKS[muscle]
    return max(lm["MV"], min(lm["MRV"], sets))


def next_week_volume(
    current_targets: dict[str, int],
    feedback: list[WorkoutFeedback],
) -> dict[str, int]:
    """
    Adjust each muscle's weekly target from recent feedback.

    With no feedback the targets are only clamped into [MV, MRV].
    """
    avg = average_recent_score(feedback)
    delta = volume_adjustment_for_score(avg) if avg is not None else 0
    return {m: clamp_volume(m, sets + delta) for m, sets in current_targets.items()}
