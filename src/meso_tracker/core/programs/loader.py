"""
YAML → TrainingProgram loader.

Loads program templates from individual YAML files in the bundled
``src/meso_tracker/programs/`` directory. Each file (e.g. ppl_6x.yaml)
holds one program in the TrainingProgram schema.

User overrides: place matching files in ``~/.meso-tracker/programs/``.
A user file is deep-merged over the bundled program of the same file
name, so only changed keys need to be listed (lists such as
week_template are replaced whole). A user file with no bundled
counterpart is loaded as a new program.

Usage (internal, called by registry.py):
    from .loader import load_programs_from_yaml
    programs = load_programs_from_yaml()   # dict, possibly empty
"""

from __future__ import annotations

import warnings
from pathlib import Path

from ..config import ALL_MUSCLES
from ..engine.config_loader import deep_merge, load_yaml_file, user_config_dir
from ..errors import ConfigurationError
from ..models import ExercisePrescription, ProgramDay, TrainingProgram
from ..resolver import validate_program

_REQUIRED_PROGRAM_FIELDS: frozenset[str] = frozenset(
    {"id", "name", "difficulty", "duration_weeks", "days_per_week", "week_template"}
)

_REQUIRED_EXERCISE_FIELDS: frozenset[str] = frozenset(
    {
        "muscle_group",
        "exercise_name",
        "category",
        "sets",
        "reps_min",
        "reps_max",
        "rir_target",
        "rest_seconds",
    }
)


def exercise_from_dict(d: dict) -> ExercisePrescription:
    """Convert a raw dict to ExercisePrescription, raising ValueError on missing fields."""
    missing = _REQUIRED_EXERCISE_FIELDS - set(d)
    if missing:
        raise ValueError(f"exercise missing fields: {sorted(missing)}")
    return ExercisePrescription(
        muscle_group=str(d["muscle_group"]),
        exercise_name=str(d["exercise_name"]),
        category=str(d["category"]),  # type: ignore
        sets=int(d["sets"]),
        reps_min=int(d["reps_min"]),
        reps_max=int(d["reps_max"]),
        rir_target=int(d["rir_target"]),
        rest_seconds=int(d["rest_seconds"]),
        notes=d.get("notes"),
    )


def day_from_dict(d: dict) -> ProgramDay:
    if "day_number" not in d or "name" not in d:
        raise ValueError("template day needs day_number and name")
    return ProgramDay(
        day_number=int(d["day_number"]),
        name=str(d["name"]),
        day_type=str(d.get("day_type", "workout")),  # type: ignore
        exercises=tuple(exercise_from_dict(e) for e in d.get("exercises") or []),
        notes=d.get("notes"),
        cardio_activities=tuple(dict(a) for a in d.get("cardio_activities") or []),
        recovery_suggestions=tuple(dict(s) for s in d.get("recovery_suggestions") or []),
    )


def program_from_dict(d: dict) -> TrainingProgram:
    """Convert a raw dict (from YAML or stored state) to a TrainingProgram.

    ``weekly_frequency`` may be a single number, meaning the same
    frequency for every muscle the template trains.

    Raises ValueError if any required field is absent or invalid.
    """
    d = dict(d)
    missing = _REQUIRED_PROGRAM_FIELDS - set(d)
    if missing:
        raise ValueError(f"program missing fields: {sorted(missing)}")

    days = tuple(day_from_dict(day) for day in d["week_template"] or [])

    freq_raw = d.get("weekly_frequency") or {}
    if isinstance(freq_raw, (int, float)):
        trained = {e.muscle_group for day in days for e in day.exercises}
        freq = {m: int(freq_raw) for m in ALL_MUSCLES if m in trained}
    else:
        freq = {str(k): int(v) for k, v in freq_raw.items()}

    return TrainingProgram(
        id=str(d["id"]),
        name=str(d["name"]),
        difficulty=str(d["difficulty"]),  # type: ignore
        duration_weeks=int(d["duration_weeks"]),
        days_per_week=int(d["days_per_week"]),
        week_template=days,
        starting_volume_multiplier=float(d.get("starting_volume_multiplier", 1.0)),
        volume_progression_per_week=int(d.get("volume_progression_per_week", 0)),
        muscle_priorities={str(k): str(v) for k, v in (d.get("muscle_priorities") or {}).items()},
        weekly_frequency=freq,
        description=str(d.get("description", "")).strip(),
        split=str(d.get("split", "")),
        goals=tuple(d.get("goals") or ()),
        tags=tuple(d.get("tags") or ()),
        deload_policy=str(d.get("deload_policy", "final_week")),
    )


def load_program_file(path: Path, override: dict | None = None) -> TrainingProgram:
    """
    Load and validate one program file, optionally merging an override dict.

    Raises:
        ValueError: Missing or invalid fields
        ConfigurationError: Structurally broken template
    """
    raw = load_yaml_file(path)
    if not raw:
        raise ValueError(f"{path.name} is empty or not a mapping")
    if override:
        raw = deep_merge(raw, override)
    program = program_from_dict(raw)
    validate_program(program)
    return program


def _get_bundled_programs_dir() -> Path | None:
    """Return path to the bundled programs/ data directory, or None if not found."""
    # loader.py lives at src/meso_tracker/core/programs/loader.py
    candidate = Path(__file__).parent.parent.parent / "programs"
    return candidate if candidate.is_dir() else None


def _get_user_programs_dir() -> Path | None:
    """Return ~/.meso-tracker/programs/ if it exists, else None."""
    p = user_config_dir() / "programs"
    return p if p.is_dir() else None


def load_programs_from_yaml() -> dict[str, TrainingProgram]:
    """Return {program_id: TrainingProgram} from bundled and user YAML files.

    Files that fail validation are skipped with a warning.
    """
    bundled_dir = _get_bundled_programs_dir()
    user_dir = _get_user_programs_dir()

    stems: dict[str, Path] = {}
    if bundled_dir is not None:
        for p in sorted(bundled_dir.glob("*.yaml")):
            stems[p.stem] = p

    user_only: list[Path] = []
    if user_dir is not None:
        for p in sorted(user_dir.glob("*.yaml")):
            if p.stem not in stems:
                user_only.append(p)

    result: dict[str, TrainingProgram] = {}

    for stem, bundled_path in stems.items():
        override = None
        if user_dir is not None and (user_dir / f"{stem}.yaml").exists():
            override = load_yaml_file(user_dir / f"{stem}.yaml")
        try:
            program = load_program_file(bundled_path, override)
        except (ValueError, ConfigurationError) as exc:
            warnings.warn(f"meso-tracker: skipping program '{stem}': {exc}", stacklevel=2)
            continue
        result[program.id] = program

    for p in user_only:
        try:
            program = load_program_file(p)
        except (ValueError, ConfigurationError) as exc:
            warnings.warn(f"meso-tracker: skipping user program '{p.stem}': {exc}", stacklevel=2)
            continue
        result[program.id] = program

    return result
