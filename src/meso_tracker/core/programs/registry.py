"""
Program registry.

Programs are loaded from per-program YAML files in the bundled
``src/meso_tracker/programs/`` directory at import time. If none can be
loaded a RuntimeError is raised; the application cannot start without
program templates.

User overrides: place matching files in ``~/.meso-tracker/programs/`` and
call reload_programs() (the CLI does this on startup).
"""

from ..models import TrainingProgram


def _build_registry() -> dict[str, TrainingProgram]:
    from .loader import load_programs_from_yaml

    loaded = load_programs_from_yaml()
    if not loaded:
        raise RuntimeError(
            "meso-tracker: no program templates could be loaded from YAML. "
            "Check that src/meso_tracker/programs/*.yaml files are present and valid."
        )
    return loaded


PROGRAM_REGISTRY: dict[str, TrainingProgram] = _build_registry()


def reload_programs() -> dict[str, TrainingProgram]:
    """Re-read bundled and user program files into PROGRAM_REGISTRY."""
    fresh = _build_registry()
    PROGRAM_REGISTRY.clear()
    PROGRAM_REGISTRY.update(fresh)
    return PROGRAM_REGISTRY


def list_programs() -> list[TrainingProgram]:
    """All programs, easiest first, then by name."""
    order = {"beginner": 0, "intermediate": 1, "advanced": 2}
    return sorted(PROGRAM_REGISTRY.values(), key=lambda p: (order[p.difficulty], p.name))


def get_program(program_id: str) -> TrainingProgram:
    """
    Return the TrainingProgram for the given id.

    Raises:
        ValueError: If program_id is not in the registry
    """
    if program_id not in PROGRAM_REGISTRY:
        valid = ", ".join(PROGRAM_REGISTRY)
        raise ValueError(f"Unknown program '{program_id}'. Valid IDs: {valid}")
    return PROGRAM_REGISTRY[program_id]
