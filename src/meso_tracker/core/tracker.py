"""
Mesocycle state tracker.

A small state machine over the single active mesocycle:

    (none) --start--> active --complete--> completed (archived)
                        |
                        +-- stop: abandoned (archived)
                        |
                        +-- trigger_deload: current week becomes a deload week

Events that arrive when they cannot apply (no cycle, cycle finished, ...)
are not errors. They return a TrackerOutcome with applied=False and a
NoOpReason so callers can tell "nothing to do" apart from a bug.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from enum import Enum

from .adaptation import DeloadPolicy, policy_from_name, should_trigger_deload
from .config import (
    ALL_MUSCLES,
    CUSTOM_VOLUME_INCREASE_PER_WEEK,
    DELOAD_VOLUME_FACTOR,
    MAX_CYCLE_WEEKS,
    MIN_CYCLE_WEEKS,
    VOLUME_LANDMARKS,
)
from .errors import ConfigurationError
from .fatigue import FatigueAccumulator
from .models import (
    PRIORITIES,
    MesoCycleState,
    NextDay,
    TrainingProgram,
    WeekInfo,
    WorkoutFeedback,
    validate_iso_date,
    validate_muscle,
)
from .resolver import (
    base_volume,
    resolve_next_day,
    validate_program,
    week_for_completed,
    weekly_target_volume,
)

logger = logging.getLogger(__name__)


class NoOpReason(str, Enum):
    NO_ACTIVE_CYCLE = "no_active_cycle"
    CYCLE_NOT_ACTIVE = "cycle_not_active"
    CYCLE_FINISHED = "cycle_finished"
    ALREADY_DELOAD = "already_deload"
    CYCLE_ID_MISMATCH = "cycle_id_mismatch"


NO_OP_MESSAGES: dict[NoOpReason, str] = {
    NoOpReason.NO_ACTIVE_CYCLE: "No active mesocycle.",
    NoOpReason.CYCLE_NOT_ACTIVE: "The mesocycle is not active.",
    NoOpReason.CYCLE_FINISHED: "All planned workouts are done; complete the cycle.",
    NoOpReason.ALREADY_DELOAD: "The current week is already a deload week.",
    NoOpReason.CYCLE_ID_MISMATCH: "That cycle id does not match the active mesocycle.",
}


@dataclass(frozen=True)
class TrackerOutcome:
    """Result of a tracker event."""

    state: MesoCycleState | None
    applied: bool
    reason: NoOpReason | None = None

    @property
    def message(self) -> str:
        return NO_OP_MESSAGES[self.reason] if self.reason is not None else ""


def _today() -> str:
    return date.today().isoformat()


def new_cycle_id() -> str:
    return f"meso-{uuid.uuid4().hex[:8]}"


class MesoCycleTracker:
    """
    Owns the active MesoCycleState (or None) and the fatigue accumulator.

    The tracker never persists anything; io.state_store does that with the
    state and fatigue it exposes.
    """

    def __init__(
        self,
        state: MesoCycleState | None = None,
        fatigue: FatigueAccumulator | None = None,
        deload_factor: float = DELOAD_VOLUME_FACTOR,
    ):
        self.state = state
        self.fatigue = fatigue if fatigue is not None else FatigueAccumulator()
        self.deload_factor = deload_factor

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def _noop(self, reason: NoOpReason, event: str) -> TrackerOutcome:
        logger.debug("%s ignored: %s", event, reason.value)
        return TrackerOutcome(state=self.state, applied=False, reason=reason)

    def _guard_active(self, event: str, allow_finished: bool = False) -> TrackerOutcome | None:
        if self.state is None:
            return self._noop(NoOpReason.NO_ACTIVE_CYCLE, event)
        if not self.state.is_active:
            return self._noop(NoOpReason.CYCLE_NOT_ACTIVE, event)
        if not allow_finished and self.state.is_finished:
            return self._noop(NoOpReason.CYCLE_FINISHED, event)
        return None

    def _applied(self) -> TrackerOutcome:
        return TrackerOutcome(state=self.state, applied=True)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def is_finished(self) -> bool:
        return self.state is not None and self.state.is_finished

    @property
    def is_deload_week(self) -> bool:
        return self.state is not None and self.state.is_deload_week

    def next_day(self) -> NextDay | None:
        """
        Resolve the next template day of the active cycle.

        Returns None when there is no cycle. Raises ConfigurationError for a
        custom cycle, which has no week template.
        """
        if self.state is None:
            return None
        if self.state.program is None:
            raise ConfigurationError(f"Cycle '{self.state.name}' has no week template")
        return resolve_next_day(
            self.state.program,
            self.state.completed_workouts,
            weeks=self.state.weeks,
            total_weeks=self.state.total_weeks,
            deload_factor=self.deload_factor,
        )

    def deload_suggested(self, feedback: list[WorkoutFeedback] | None = None) -> bool:
        return should_trigger_deload(self.fatigue, feedback)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def start(
        self,
        program: TrainingProgram,
        start_date: str | None = None,
        cycle_id: str | None = None,
        deload_policy: DeloadPolicy | None = None,
    ) -> TrackerOutcome:
        """
        Start a new cycle from a program, replacing any active one.

        Raises:
            ConfigurationError: If the program template is malformed
        """
        validate_program(program)
        policy = deload_policy or policy_from_name(program.deload_policy)
        schedule = policy.schedule(program.duration_weeks)

        weeks = [
            WeekInfo(
                week_number=i + 1,
                is_deload=is_deload,
                target_volume=weekly_target_volume(program, i, is_deload),
            )
            for i, is_deload in enumerate(schedule)
        ]
        self.state = MesoCycleState(
            id=cycle_id or new_cycle_id(),
            name=program.name,
            total_weeks=program.duration_weeks,
            days_per_week=len(program.week_template),
            start_date=start_date or _today(),
            program_id=program.id,
            program=program,
            weeks=weeks,
        )
        self.fatigue.reset()
        logger.debug(
            "started %s from %s (%d weeks, policy %s)",
            self.state.id, program.id, program.duration_weeks, policy.name,
        )
        return self._applied()

    def start_custom(
        self,
        name: str,
        total_weeks: int,
        days_per_week: int,
        muscle_priorities: dict[str, str] | None = None,
        start_date: str | None = None,
        cycle_id: str | None = None,
        deload_policy: DeloadPolicy | None = None,
    ) -> TrackerOutcome:
        """
        Start a cycle without a program template.

        Every muscle gets a target; muscles missing from ``muscle_priorities``
        are "normal". Targets start at the muscle's base volume and grow by
        CUSTOM_VOLUME_INCREASE_PER_WEEK sets per week, capped at MRV.
        """
        if not MIN_CYCLE_WEEKS <= total_weeks <= MAX_CYCLE_WEEKS:
            raise ValueError(f"total_weeks must be within {MIN_CYCLE_WEEKS}..{MAX_CYCLE_WEEKS}")
        if days_per_week < 1:
            raise ValueError("days_per_week must be at least 1")
        priorities = {m: "normal" for m in ALL_MUSCLES}
        priorities.update(muscle_priorities or {})
        for muscle, priority in priorities.items():
            validate_muscle(muscle)
            if priority not in PRIORITIES:
                raise ValueError(f"Invalid priority for {muscle}: {priority!r}")
        policy = deload_policy or policy_from_name("final_week")

        weeks = []
        for i, is_deload in enumerate(policy.schedule(total_weeks)):
            targets = {}
            for muscle, priority in priorities.items():
                lm = VOLUME_LANDMARKS[muscle]
                if is_deload:
                    targets[muscle] = lm["MV"]
                else:
                    raw = base_volume(muscle, priority) + i * CUSTOM_VOLUME_INCREASE_PER_WEEK
                    targets[muscle] = min(raw, lm["MRV"])
            weeks.append(WeekInfo(week_number=i + 1, is_deload=is_deload, target_volume=targets))

        self.state = MesoCycleState(
            id=cycle_id or new_cycle_id(),
            name=name,
            total_weeks=total_weeks,
            days_per_week=days_per_week,
            start_date=start_date or _today(),
            weeks=weeks,
        )
        self.fatigue.reset()
        return self._applied()

    def record_workout_completion(
        self,
        sets_by_muscle: dict[str, int] | None = None,
        workout_id: str | None = None,
        on: str | None = None,
    ) -> TrackerOutcome:
        """
        Count one completed template day and feed its volume into fatigue.

        Args:
            sets_by_muscle: Working sets performed per muscle
            workout_id: Optional id stored on the week
            on: ISO date of the workout, defaults to today

        Raises:
            ValueError: On unknown muscles, negative set counts, or bad dates
        """
        sets_by_muscle = dict(sets_by_muscle or {})
        for muscle, sets in sets_by_muscle.items():
            validate_muscle(muscle)
            if sets < 0:
                raise ValueError(f"Set count for {muscle} must be non-negative, got {sets}")
        if on is not None:
            validate_iso_date(on)

        blocked = self._guard_active("record_workout_completion")
        if blocked is not None:
            return blocked

        state = self.state
        week_idx = week_for_completed(
            state.completed_workouts, state.days_per_week, state.total_weeks
        ) - 1
        week = state.weeks[week_idx] if week_idx < len(state.weeks) else None

        state.completed_workouts += 1
        state.current_week = week_for_completed(
            state.completed_workouts, state.days_per_week, state.total_weeks
        )

        if week is not None:
            for muscle, sets in sets_by_muscle.items():
                week.completed_volume[muscle] = week.completed_volume.get(muscle, 0) + sets
            if workout_id:
                week.workout_ids.append(workout_id)

        trained_on = on or _today()
        for muscle, sets in sets_by_muscle.items():
            if sets > 0:
                self.fatigue.record_volume(muscle, sets, on=trained_on)

        logger.debug(
            "%s: %d/%d workouts, week %d",
            state.id, state.completed_workouts, state.total_workouts, state.current_week,
        )
        return self._applied()

    def advance_day(self) -> TrackerOutcome:
        """Move past the current template day without logging volume."""
        return self.record_workout_completion({})

    def skip_to_next_week(self) -> TrackerOutcome:
        """Jump to the first day of the next week, clamped to the cycle end."""
        blocked = self._guard_active("skip_to_next_week")
        if blocked is not None:
            return blocked

        state = self.state
        d = state.days_per_week
        target = (state.completed_workouts // d + 1) * d
        state.completed_workouts = min(target, state.total_workouts)
        state.current_week = week_for_completed(
            state.completed_workouts, d, state.total_weeks
        )
        return self._applied()

    def trigger_deload(self) -> TrackerOutcome:
        """Turn the current week into a deload week and clear fatigue."""
        blocked = self._guard_active("trigger_deload", allow_finished=True)
        if blocked is not None:
            return blocked

        week = self.state.current_week_info()
        if week is None:
            return self._noop(NoOpReason.NO_ACTIVE_CYCLE, "trigger_deload")
        if week.is_deload:
            return self._noop(NoOpReason.ALREADY_DELOAD, "trigger_deload")

        week.is_deload = True
        week.target_volume = {m: VOLUME_LANDMARKS[m]["MV"] for m in week.target_volume}
        self.fatigue.reset()
        logger.debug("%s: week %d switched to deload", self.state.id, week.week_number)
        return self._applied()

    def _close(self, status: str, on: str | None, event: str) -> TrackerOutcome:
        state = self.state
        end_date = on or _today()
        validate_iso_date(end_date)
        state.status = status  # type: ignore
        state.end_date = end_date
        self.state = None
        self.fatigue.reset()
        logger.debug("%s: %s on %s", state.id, event, end_date)
        return TrackerOutcome(state=state, applied=True)

    def complete(self, cycle_id: str | None = None, on: str | None = None) -> TrackerOutcome:
        """
        Mark the active cycle completed and clear the active slot.

        The returned outcome's state is the archived cycle.
        """
        if self.state is None:
            return self._noop(NoOpReason.NO_ACTIVE_CYCLE, "complete")
        if cycle_id is not None and cycle_id != self.state.id:
            return self._noop(NoOpReason.CYCLE_ID_MISMATCH, "complete")
        if not self.state.is_active:
            return self._noop(NoOpReason.CYCLE_NOT_ACTIVE, "complete")
        return self._close("completed", on, "completed")

    def stop(self, on: str | None = None) -> TrackerOutcome:
        """Abandon the active cycle."""
        if self.state is None:
            return self._noop(NoOpReason.NO_ACTIVE_CYCLE, "stop")
        if not self.state.is_active:
            return self._noop(NoOpReason.CYCLE_NOT_ACTIVE, "stop")
        return self._close("abandoned", on, "abandoned")
