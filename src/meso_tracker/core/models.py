"""
Data models for meso-tracker.

All core dataclasses representing program templates, the active mesocycle,
per-muscle fatigue, and workout feedback. Field-level validation happens in
__post_init__ (ValueError); structural template problems are reported by
resolver.validate_program as ConfigurationError.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from .config import ALL_MUSCLES

MuscleGroup = str  # one of config.ALL_MUSCLES
MusclePriority = Literal["focus", "normal", "maintain"]
Difficulty = Literal["beginner", "intermediate", "advanced"]
DayType = Literal["workout", "rest", "cardio", "active_recovery"]
ExerciseCategory = Literal["compound", "isolation"]
CycleStatus = Literal["active", "completed", "abandoned"]

DAY_TYPES: tuple[str, ...] = ("workout", "rest", "cardio", "active_recovery")
PRIORITIES: tuple[str, ...] = ("focus", "normal", "maintain")
DIFFICULTIES: tuple[str, ...] = ("beginner", "intermediate", "advanced")
CYCLE_STATUSES: tuple[str, ...] = ("active", "completed", "abandoned")


def validate_iso_date(date_str: str) -> None:
    """Validate date string is ISO format YYYY-MM-DD."""
    if not re.match(r"^\d{4}-\d{2}-\d{2}$", date_str):
        raise ValueError(f"Invalid date format: {date_str}. Expected YYYY-MM-DD")
    try:
        datetime.strptime(date_str, "%Y-%m-%d")
    except ValueError as e:
        raise ValueError(f"Invalid date: {date_str}") from e


def validate_muscle(muscle: str) -> None:
    if muscle not in ALL_MUSCLES:
        raise ValueError(
            f"Unknown muscle group: {muscle!r}. Valid: {', '.join(ALL_MUSCLES)}"
        )


@dataclass(frozen=True)
class ExercisePrescription:
    """One exercise slot inside a program day."""

    muscle_group: MuscleGroup
    exercise_name: str
    category: ExerciseCategory
    sets: int  # base sets, before weekly scaling
    reps_min: int
    reps_max: int
    rir_target: int  # reps in reserve
    rest_seconds: int
    notes: str | None = None

    def __post_init__(self) -> None:
        """Validate prescription data."""
        validate_muscle(self.muscle_group)
        if self.category not in ("compound", "isolation"):
            raise ValueError(f"Invalid category: {self.category}")
        if self.sets < 1:
            raise ValueError("sets must be at least 1")
        if self.reps_min < 0 or self.reps_min > self.reps_max:
            raise ValueError(
                f"Invalid rep range {self.reps_min}-{self.reps_max} for {self.exercise_name}"
            )
        if self.rir_target < 0:
            raise ValueError("rir_target must be non-negative")
        if self.rest_seconds < 0:
            raise ValueError("rest_seconds must be non-negative")


@dataclass(frozen=True)
class ProgramDay:
    """
    A single day of a program's weekly template.

    Only workout days carry exercises. Cardio activities and recovery
    suggestions are opaque to the engine and passed through untouched.
    """

    day_number: int  # 1-based, unique within the template
    name: str
    day_type: DayType = "workout"
    exercises: tuple[ExercisePrescription, ...] = ()
    notes: str | None = None
    cardio_activities: tuple[dict, ...] = ()
    recovery_suggestions: tuple[dict, ...] = ()

    def __post_init__(self) -> None:
        if self.day_number < 1:
            raise ValueError("day_number must be 1-based")
        if self.day_type not in DAY_TYPES:
            raise ValueError(f"Invalid day_type: {self.day_type}")
        if self.day_type != "workout" and self.exercises:
            raise ValueError(
                f"Day {self.day_number} ({self.day_type}) cannot prescribe exercises"
            )

    @property
    def is_workout(self) -> bool:
        return self.day_type == "workout"

    @property
    def muscle_groups(self) -> list[str]:
        """Muscles trained on this day, in prescription order, de-duplicated."""
        seen: list[str] = []
        for ex in self.exercises:
            if ex.muscle_group not in seen:
                seen.append(ex.muscle_group)
        return seen


@dataclass(frozen=True)
class TrainingProgram:
    """
    A premade program template. Read-only once selected.

    ``deload_policy`` names the scheduling policy used when a cycle is
    started from this program (see adaptation.policy_from_name).
    """

    id: str
    name: str
    difficulty: Difficulty
    duration_weeks: int
    days_per_week: int
    week_template: tuple[ProgramDay, ...]
    starting_volume_multiplier: float = 1.0
    volume_progression_per_week: int = 0
    muscle_priorities: dict = field(default_factory=dict)  # {muscle: priority}
    weekly_frequency: dict = field(default_factory=dict)  # {muscle: sessions/week}
    description: str = ""
    split: str = ""
    goals: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    deload_policy: str = "final_week"

    def __post_init__(self) -> None:
        """Validate field-level program data."""
        if not self.id:
            raise ValueError("program id must be non-empty")
        if self.difficulty not in DIFFICULTIES:
            raise ValueError(f"Invalid difficulty: {self.difficulty}")
        if self.duration_weeks < 1:
            raise ValueError("duration_weeks must be at least 1")
        if self.days_per_week < 1:
            raise ValueError("days_per_week must be at least 1")
        if self.starting_volume_multiplier <= 0:
            raise ValueError("starting_volume_multiplier must be positive")
        for muscle, priority in self.muscle_priorities.items():
            validate_muscle(muscle)
            if priority not in PRIORITIES:
                raise ValueError(f"Invalid priority for {muscle}: {priority!r}")
        for muscle, freq in self.weekly_frequency.items():
            validate_muscle(muscle)
            if freq < 0:
                raise ValueError(f"weekly_frequency[{muscle!r}] must be non-negative")

    @property
    def total_workouts(self) -> int:
        return self.duration_weeks * self.days_per_week

    def priority_for(self, muscle: str) -> str:
        return self.muscle_priorities.get(muscle, "normal")


@dataclass
class WeekInfo:
    """One week of a mesocycle."""

    week_number: int
    is_deload: bool = False
    target_volume: dict = field(default_factory=dict)  # {muscle: sets}
    completed_volume: dict = field(default_factory=dict)  # {muscle: sets}
    workout_ids: list[str] = field(default_factory=list)


@dataclass
class MesoCycleState:
    """
    The single active mesocycle.

    Invariants maintained by the tracker:
        completed_workouts <= total_workouts
        current_week == min(total_weeks, 1 + completed_workouts // days_per_week)
    """

    id: str
    name: str
    total_weeks: int
    days_per_week: int
    start_date: str  # ISO format: YYYY-MM-DD
    program_id: str | None = None  # None for custom cycles
    program: TrainingProgram | None = None  # template snapshot taken at start
    current_week: int = 1
    completed_workouts: int = 0
    status: CycleStatus = "active"
    weeks: list[WeekInfo] = field(default_factory=list)
    end_date: str | None = None

    def __post_init__(self) -> None:
        """Validate cycle state."""
        validate_iso_date(self.start_date)
        if self.end_date is not None:
            validate_iso_date(self.end_date)
        if self.total_weeks < 1:
            raise ValueError("total_weeks must be at least 1")
        if self.days_per_week < 1:
            raise ValueError("days_per_week must be at least 1")
        if self.status not in CYCLE_STATUSES:
            raise ValueError(f"Invalid status: {self.status}")
        if not 0 <= self.completed_workouts <= self.total_workouts:
            raise ValueError(
                f"completed_workouts must be within 0..{self.total_workouts}, "
                f"got {self.completed_workouts}"
            )
        if not 1 <= self.current_week <= self.total_weeks:
            raise ValueError(f"current_week must be within 1..{self.total_weeks}")

    @property
    def total_workouts(self) -> int:
        return self.total_weeks * self.days_per_week

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    @property
    def is_finished(self) -> bool:
        """True once every planned workout has been recorded."""
        return self.completed_workouts >= self.total_workouts

    def current_week_info(self) -> WeekInfo | None:
        idx = self.current_week - 1
        if 0 <= idx < len(self.weeks):
            return self.weeks[idx]
        return None

    @property
    def is_deload_week(self) -> bool:
        week = self.current_week_info()
        return week is not None and week.is_deload


@dataclass
class MuscleFatigue:
    """Decaying fatigue score for one muscle group (not capped at 100)."""

    muscle_group: MuscleGroup
    current_fatigue: float = 0.0
    last_trained_date: str | None = None

    def __post_init__(self) -> None:
        validate_muscle(self.muscle_group)
        if self.current_fatigue < 0:
            raise ValueError("current_fatigue must be non-negative")


@dataclass
class WorkoutFeedback:
    """
    Post-workout feedback used for auto-regulation.

    pump: 0=none, 1=moderate, 2=great
    soreness: 0=none, 1=mild, 2=significant
    performance: 0=exceeded, 1=hit, 2=struggled, 3=missed
    """

    date: str
    pump_rating: int
    soreness_rating: int
    performance_rating: int
    workout_id: str | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        validate_iso_date(self.date)
        if self.pump_rating not in (0, 1, 2):
            raise ValueError("pump_rating must be 0, 1 or 2")
        if self.soreness_rating not in (0, 1, 2):
            raise ValueError("soreness_rating must be 0, 1 or 2")
        if self.performance_rating not in (0, 1, 2, 3):
            raise ValueError("performance_rating must be 0..3")

    @property
    def total_score(self) -> int:
        return self.pump_rating + self.soreness_rating + self.performance_rating


@dataclass(frozen=True)
class ResolvedExercise:
    """An exercise prescription with sets scaled for the current week."""

    prescription: ExercisePrescription
    effective_sets: int

    @property
    def muscle_group(self) -> str:
        return self.prescription.muscle_group

    @property
    def exercise_name(self) -> str:
        return self.prescription.exercise_name


@dataclass(frozen=True)
class NextDay:
    """What the athlete should do next, as returned by the resolver."""

    day: ProgramDay
    day_index: int  # 0-based position in the week template
    total_days: int
    week: int
    is_deload: bool
    exercises: tuple[ResolvedExercise, ...] = ()

    @property
    def day_number(self) -> int:
        return self.day_index + 1

    @property
    def day_type(self) -> str:
        return self.day.day_type

    @property
    def total_sets(self) -> int:
        return sum(e.effective_sets for e in self.exercises)

    def sets_by_muscle(self) -> dict[str, int]:
        """Planned sets per muscle, for logging the day as prescribed."""
        result: dict[str, int] = {}
        for e in self.exercises:
            result[e.muscle_group] = result.get(e.muscle_group, 0) + e.effective_sets
        return result
