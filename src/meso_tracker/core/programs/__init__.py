"""
Program templates for meso-tracker.

Each premade program is a TrainingProgram loaded from YAML and
registered by id.
"""

from .registry import PROGRAM_REGISTRY, get_program, list_programs, reload_programs

__all__ = [
    "PROGRAM_REGISTRY",
    "get_program",
    "list_programs",
    "reload_programs",
]
