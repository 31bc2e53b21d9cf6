"""Shared Typer app object, shared option types, and store utilities."""

from pathlib import Path
from typing import Annotated, Optional

import typer

from ..core.engine.config_loader import load_model_settings
from ..core.fatigue import FatigueAccumulator
from ..core.tracker import MesoCycleTracker
from ..io.state_store import StateStore, get_default_state_dir

# Shared --state-dir option type used across all commands
StateDirOption = Annotated[
    Optional[Path],
    typer.Option("--state-dir", "-p", help="Directory holding state.json and history.jsonl"),
]

JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for machine processing"),
]

app = typer.Typer(
    name="meso-tracker",
    help="Mesocycle planner: program templates, weekly volume progression and fatigue tracking.",
    no_args_is_help=True,
)


def get_store(state_dir: Path | None) -> StateStore:
    """Get state store from path or default location."""
    if state_dir is None:
        state_dir = get_default_state_dir()
    return StateStore(state_dir)


def load_tracker(store: StateStore) -> MesoCycleTracker:
    """Build a tracker from stored state and the merged model settings."""
    settings = load_model_settings()
    fatigue: FatigueAccumulator = store.load_fatigue(
        fatigue_per_set=settings.fatigue_per_set,
        decay_rate_per_day=settings.decay_rate_per_day,
        deload_threshold=settings.deload_fatigue_threshold,
    )
    return MesoCycleTracker(
        state=store.load_cycle(),
        fatigue=fatigue,
        deload_factor=settings.deload_volume_factor,
    )
