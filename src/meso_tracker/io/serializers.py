"""
JSON serialization for meso-tracker data models.

Handles conversion between dataclasses and JSON-compatible dicts, plus
parsing of the compact strings accepted on the command line.
"""

import json
import re
from datetime import datetime
from typing import Any

from ..core.config import ALL_MUSCLES
from ..core.errors import ConfigurationError
from ..core.fatigue import FatigueAccumulator
from ..core.models import (
    PRIORITIES,
    ExercisePrescription,
    MesoCycleState,
    MuscleFatigue,
    NextDay,
    ProgramDay,
    TrainingProgram,
    WeekInfo,
    WorkoutFeedback,
)
from ..core.programs.loader import program_from_dict


class ValidationError(Exception):
    """Raised when data validation fails."""

    pass


def validate_date(date_str: str) -> str:
    """
    Validate and normalize date string to ISO format.

    Raises:
        ValidationError: If date format is invalid
    """
    if not re.match(r"^\d{4}-\d{2}-\d{2}$", date_str):
        raise ValidationError(f"Invalid date format: {date_str}. Expected YYYY-MM-DD")

    try:
        datetime.strptime(date_str, "%Y-%m-%d")
    except ValueError as e:
        raise ValidationError(f"Invalid date: {date_str}") from e

    return date_str


def validate_muscle_name(name: str) -> str:
    name = name.strip().lower()
    if name not in ALL_MUSCLES:
        raise ValidationError(
            f"Unknown muscle group: {name!r}. Valid: {', '.join(ALL_MUSCLES)}"
        )
    return name


def parse_sets_by_muscle(s: str) -> dict[str, int]:
    """
    Parse a compact per-muscle set string.

    Format: ``muscle=sets`` pairs separated by commas, e.g.
    ``"chest=6, back=3, triceps=3"``. Repeated muscles are summed.

    Raises:
        ValidationError: On malformed pairs, unknown muscles, or negative sets
    """
    result: dict[str, int] = {}
    if not s.strip():
        return result
    for part in s.split(","):
        part = part.strip()
        if not part:
            continue
        m = re.match(r"^([a-zA-Z_]+)\s*[=:]\s*(-?\d+)$", part)
        if m is None:
            raise ValidationError(f"Invalid muscle/sets pair: {part!r}. Expected muscle=sets")
        muscle = validate_muscle_name(m.group(1))
        sets = int(m.group(2))
        if sets < 0:
            raise ValidationError(f"Sets for {muscle} must be non-negative, got {sets}")
        result[muscle] = result.get(muscle, 0) + sets
    return result


def parse_priorities(s: str) -> dict[str, str]:
    """
    Parse ``muscle=priority`` pairs, e.g. ``"chest=focus, calves=maintain"``.

    Raises:
        ValidationError: On malformed pairs, unknown muscles, or priorities
    """
    result: dict[str, str] = {}
    for part in s.split(","):
        part = part.strip()
        if not part:
            continue
        m = re.match(r"^([a-zA-Z_]+)\s*[=:]\s*([a-zA-Z]+)$", part)
        if m is None:
            raise ValidationError(f"Invalid muscle/priority pair: {part!r}. Expected muscle=priority")
        muscle = validate_muscle_name(m.group(1))
        priority = m.group(2).lower()
        if priority not in PRIORITIES:
            raise ValidationError(
                f"Invalid priority for {muscle}: {priority!r}. Valid: {', '.join(PRIORITIES)}"
            )
        result[muscle] = priority
    return result


# =============================================================================
# Program templates
# =============================================================================


def exercise_to_dict(ex: ExercisePrescription) -> dict[str, Any]:
    result: dict[str, Any] = {
        "muscle_group": ex.muscle_group,
        "exercise_name": ex.exercise_name,
        "category": ex.category,
        "sets": ex.sets,
        "reps_min": ex.reps_min,
        "reps_max": ex.reps_max,
        "rir_target": ex.rir_target,
        "rest_seconds": ex.rest_seconds,
    }
    if ex.notes is not None:
        result["notes"] = ex.notes
    return result


def day_to_dict(day: ProgramDay) -> dict[str, Any]:
    result: dict[str, Any] = {
        "day_number": day.day_number,
        "name": day.name,
        "day_type": day.day_type,
        "exercises": [exercise_to_dict(e) for e in day.exercises],
    }
    if day.notes is not None:
        result["notes"] = day.notes
    if day.cardio_activities:
        result["cardio_activities"] = [dict(a) for a in day.cardio_activities]
    if day.recovery_suggestions:
        result["recovery_suggestions"] = [dict(s) for s in day.recovery_suggestions]
    return result


def program_to_dict(program: TrainingProgram) -> dict[str, Any]:
    return {
        "id": program.id,
        "name": program.name,
        "description": program.description,
        "difficulty": program.difficulty,
        "duration_weeks": program.duration_weeks,
        "days_per_week": program.days_per_week,
        "split": program.split,
        "goals": list(program.goals),
        "tags": list(program.tags),
        "muscle_priorities": dict(program.muscle_priorities),
        "weekly_frequency": dict(program.weekly_frequency),
        "starting_volume_multiplier": program.starting_volume_multiplier,
        "volume_progression_per_week": program.volume_progression_per_week,
        "deload_policy": program.deload_policy,
        "week_template": [day_to_dict(d) for d in program.week_template],
    }


def dict_to_program(data: dict[str, Any]) -> TrainingProgram:
    """
    Rebuild a stored program snapshot.

    Raises:
        ValidationError: If the snapshot is incomplete or invalid
    """
    try:
        return program_from_dict(data)
    except (ValueError, KeyError, TypeError) as e:
        raise ValidationError(f"Invalid program data: {e}") from e


# =============================================================================
# Cycle state
# =============================================================================


def week_to_dict(week: WeekInfo) -> dict[str, Any]:
    return {
        "week_number": week.week_number,
        "is_deload": week.is_deload,
        "target_volume": dict(week.target_volume),
        "completed_volume": dict(week.completed_volume),
        "workout_ids": list(week.workout_ids),
    }


def dict_to_week(data: dict[str, Any]) -> WeekInfo:
    return WeekInfo(
        week_number=int(data["week_number"]),
        is_deload=bool(data.get("is_deload", False)),
        target_volume={k: int(v) for k, v in data.get("target_volume", {}).items()},
        completed_volume={k: int(v) for k, v in data.get("completed_volume", {}).items()},
        workout_ids=[str(w) for w in data.get("workout_ids", [])],
    )


def cycle_to_dict(state: MesoCycleState) -> dict[str, Any]:
    """
    Convert MesoCycleState to JSON-compatible dict.

    The program snapshot is embedded so the cycle keeps working even if the
    template file later changes or disappears.
    """
    return {
        "id": state.id,
        "name": state.name,
        "program_id": state.program_id,
        "program": program_to_dict(state.program) if state.program is not None else None,
        "total_weeks": state.total_weeks,
        "days_per_week": state.days_per_week,
        "total_workouts": state.total_workouts,
        "current_week": state.current_week,
        "completed_workouts": state.completed_workouts,
        "status": state.status,
        "start_date": state.start_date,
        "end_date": state.end_date,
        "weeks": [week_to_dict(w) for w in state.weeks],
    }


def dict_to_cycle(data: dict[str, Any]) -> MesoCycleState:
    """
    Convert dict to MesoCycleState.

    Raises:
        ValidationError: If data is invalid
    """
    try:
        program_data = data.get("program")
        program = dict_to_program(program_data) if program_data else None
        return MesoCycleState(
            id=str(data["id"]),
            name=str(data["name"]),
            program_id=data.get("program_id"),
            program=program,
            total_weeks=int(data["total_weeks"]),
            days_per_week=int(data["days_per_week"]),
            current_week=int(data.get("current_week", 1)),
            completed_workouts=int(data.get("completed_workouts", 0)),
            status=data.get("status", "active"),
            start_date=validate_date(data["start_date"]),
            end_date=data.get("end_date"),
            weeks=[dict_to_week(w) for w in data.get("weeks", [])],
        )
    except ValidationError:
        raise
    except (KeyError, TypeError, ValueError, ConfigurationError) as e:
        raise ValidationError(f"Invalid cycle data: {e}") from e


def cycle_to_json_line(state: MesoCycleState) -> str:
    return json.dumps(cycle_to_dict(state), separators=(",", ":"))


def json_line_to_cycle(line: str) -> MesoCycleState:
    """
    Parse one history line into a MesoCycleState.

    Raises:
        ValidationError: If the line is not valid JSON or not a valid cycle
    """
    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON: {e}") from e
    return dict_to_cycle(data)


# =============================================================================
# Fatigue and feedback
# =============================================================================


def fatigue_to_dict(fatigue: FatigueAccumulator) -> dict[str, Any]:
    return {
        m: {
            "current_fatigue": round(e.current_fatigue, 3),
            "last_trained_date": e.last_trained_date,
        }
        for m, e in sorted(fatigue.entries.items())
    }


def dict_to_fatigue_entries(data: dict[str, Any]) -> dict[str, MuscleFatigue]:
    """
    Rebuild fatigue entries; pass them to FatigueAccumulator(entries=...).

    Raises:
        ValidationError: On unknown muscles or invalid values
    """
    entries: dict[str, MuscleFatigue] = {}
    try:
        for muscle, raw in data.items():
            entries[muscle] = MuscleFatigue(
                muscle_group=muscle,
                current_fatigue=float(raw.get("current_fatigue", 0.0)),
                last_trained_date=raw.get("last_trained_date"),
            )
    except (AttributeError, TypeError, ValueError) as e:
        raise ValidationError(f"Invalid fatigue data: {e}") from e
    return entries


def feedback_to_dict(fb: WorkoutFeedback) -> dict[str, Any]:
    result: dict[str, Any] = {
        "date": fb.date,
        "pump": fb.pump_rating,
        "soreness": fb.soreness_rating,
        "performance": fb.performance_rating,
    }
    if fb.workout_id is not None:
        result["workout_id"] = fb.workout_id
    if fb.notes:
        result["notes"] = fb.notes
    return result


def dict_to_feedback(data: dict[str, Any]) -> WorkoutFeedback:
    try:
        return WorkoutFeedback(
            date=validate_date(data["date"]),
            pump_rating=int(data["pump"]),
            soreness_rating=int(data["soreness"]),
            performance_rating=int(data["performance"]),
            workout_id=data.get("workout_id"),
            notes=data.get("notes"),
        )
    except ValidationError:
        raise
    except (KeyError, TypeError, ValueError) as e:
        raise ValidationError(f"Invalid feedback data: {e}") from e


# =============================================================================
# Resolver output
# =============================================================================


def next_day_to_dict(next_day: NextDay) -> dict[str, Any]:
    """JSON view of a resolved day (used by --json output)."""
    return {
        "week": next_day.week,
        "day_number": next_day.day_number,
        "total_days": next_day.total_days,
        "name": next_day.day.name,
        "day_type": next_day.day_type,
        "is_deload": next_day.is_deload,
        "notes": next_day.day.notes,
        "exercises": [
            {
                "muscle_group": e.muscle_group,
                "exercise_name": e.exercise_name,
                "category": e.prescription.category,
                "base_sets": e.prescription.sets,
                "sets": e.effective_sets,
                "reps_min": e.prescription.reps_min,
                "reps_max": e.prescription.reps_max,
                "rir_target": e.prescription.rir_target,
                "rest_seconds": e.prescription.rest_seconds,
            }
            for e in next_day.exercises
        ],
        "cardio_activities": [dict(a) for a in next_day.day.cardio_activities],
        "recovery_suggestions": [dict(s) for s in next_day.day.recovery_suggestions],
    }
