"""
Program template resolver.

Maps a position in the mesocycle (completed workout count) onto the
concrete day of the weekly template, with set counts scaled for the
current week. Everything here is a pure function of its arguments.
"""

import logging

from .config import (
    DELOAD_VOLUME_FACTOR,
    FOCUS_EXTRA_SETS,
    MIN_EFFECTIVE_SETS,
    VOLUME_LANDMARKS,
    round_half_up,
)
from .errors import ConfigurationError
from .models import NextDay, ResolvedExercise, TrainingProgram, WeekInfo

logger = logging.getLogger(__name__)


def validate_program(program: TrainingProgram) -> None:
    """
    Check the structural shape of a program template.

    Raises:
        ConfigurationError: If the template is empty, its length differs from
            days_per_week, or day numbers are not 1..N in order.
    """
    template = program.week_template
    if not template:
        raise ConfigurationError(f"Program '{program.id}' has no days in its week template")
    if len(template) != program.days_per_week:
        raise ConfigurationError(
            f"Program '{program.id}': week template has {len(template)} days "
            f"but days_per_week is {program.days_per_week}"
        )
    numbers = [d.day_number for d in template]
    if numbers != list(range(1, len(template) + 1)):
        raise ConfigurationError(
            f"Program '{program.id}': day numbers must be 1..{len(template)} in order, got {numbers}"
        )
    if not any(d.is_workout and d.exercises for d in template):
        raise ConfigurationError(f"Program '{program.id}' has no workout day with exercises")


def week_for_completed(completed_workouts: int, days_per_week: int, total_weeks: int) -> int:
    """1-based week number for a completion count, clamped to the last week."""
    return min(total_weeks, 1 + completed_workouts // days_per_week)


def effective_sets(
    base_sets: int,
    multiplier: float,
    progression: int,
    week: int,
    is_deload: bool,
    deload_factor: float = DELOAD_VOLUME_FACTOR,
) -> int:
    """
    Sets to prescribe for one exercise in a given week.

    Training week:  round(base × multiplier + progression × (week − 1))
    Deload week:    round(base × deload_factor), no progression

    Rounding is half-up and the result is never below MIN_EFFECTIVE_SETS.

    Args:
        base_sets: Sets from the template prescription
        multiplier: Program starting_volume_multiplier
        progression: Extra sets added per week
        week: 1-based week number
        is_deload: Whether the week is a deload week
        deload_factor: Fraction of base sets kept during deload

    Returns:
        Integer set count >= 1
    """
    if week < 1:
        raise ValueError(f"week must be 1-based, got {week}")
    if is_deload:
        raw = base_sets * deload_factor
    else:
        raw = base_sets * multiplier + progression * (week - 1)
    return max(MIN_EFFECTIVE_SETS, round_half_up(raw))


def resolve_next_day(
    program: TrainingProgram,
    completed_workouts: int,
    weeks: list[WeekInfo] | None = None,
    total_weeks: int | None = None,
    deload_factor: float = DELOAD_VOLUME_FACTOR,
) -> NextDay:
    """
    Resolve which template day comes next and its scaled exercises.

    Args:
        program: Program template
        completed_workouts: Workouts (template days) already done in this cycle
        weeks: Cycle weeks; the matching entry decides whether it is a deload week
        total_weeks: Cycle length, defaults to program.duration_weeks
        deload_factor: Fraction of base sets kept during deload

    Returns:
        NextDay for position ``completed_workouts``

    Raises:
        ConfigurationError: If the template is empty or completed_workouts < 0
    """
    template = program.week_template
    if not template:
        raise ConfigurationError(f"Program '{program.id}' has no days in its week template")
    if completed_workouts < 0:
        raise ConfigurationError(f"completed_workouts must be >= 0, got {completed_workouts}")

    n_days = len(template)
    day_index = completed_workouts % n_days
    week = week_for_completed(
        completed_workouts, n_days, total_weeks or program.duration_weeks
    )

    is_deload = False
    if weeks and 0 <= week - 1 < len(weeks):
        is_deload = weeks[week - 1].is_deload

    day = template[day_index]
    resolved: tuple[ResolvedExercise, ...] = ()
    if day.is_workout:
        resolved = tuple(
            ResolvedExercise(
                prescription=ex,
                effective_sets=effective_sets(
                    ex.sets,
                    program.starting_volume_multiplier,
                    program.volume_progression_per_week,
                    week,
                    is_deload,
                    deload_factor,
                ),
            )
            for ex in day.exercises
        )

    logger.debug(
        "resolved %s: completed=%d -> day %d/%d week %d deload=%s",
        program.id, completed_workouts, day_index + 1, n_days, week, is_deload,
    )
    return NextDay(
        day=day,
        day_index=day_index,
        total_days=n_days,
        week=week,
        is_deload=is_deload,
        exercises=resolved,
    )


def base_volume(muscle: str, priority: str) -> int:
    """Starting weekly sets for a muscle given its priority."""
    lm = VOLUME_LANDMARKS[muscle]
    if priority == "focus":
        return lm["MEV"] + FOCUS_EXTRA_SETS
    if priority == "maintain":
        return lm["MV"]
    return lm["MEV"]


def weekly_target_volume(
    program: TrainingProgram,
    week_index: int,
    is_deload: bool,
) -> dict[str, int]:
    """
    Per-muscle weekly set targets for one cycle week.

    Only muscles the program trains (template exercises or declared
    priorities) get a target.

    Training week i (0-based):  min(base × multiplier + progression × i, MRV)
    Deload week:                MV

    Args:
        program: Program template
        week_index: 0-based week index
        is_deload: Whether this week is a deload week

    Returns:
        {muscle: target sets}
    """
    muscles: list[str] = []
    for day in program.week_template:
        for m in day.muscle_groups:
            if m not in muscles:
                muscles.append(m)
    for m in program.muscle_priorities:
        if m not in muscles:
            muscles.append(m)

    targets: dict[str, int] = {}
    for m in muscles:
        lm = VOLUME_LANDMARKS[m]
        if is_deload:
            targets[m] = lm["MV"]
            continue
        base = base_volume(m, program.priority_for(m))
        raw = base * program.starting_volume_multiplier
        raw += program.volume_progression_per_week * week_index
        targets[m] = min(round_half_up(raw), lm["MRV"])
    return targets
