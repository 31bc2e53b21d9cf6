"""
CLI entry point using Typer.

Commands are grouped by module:
- programs:  programs, show-program
- cycle:     start, start-custom, status, next, log-workout, advance-day,
             skip-week, deload, complete, stop
- analysis:  decay, fatigue, volume, feedback, history
"""

import logging
from typing import Annotated

import typer

from ..core.programs import reload_programs
from .app import app
from .commands import analysis, cycle, programs  # noqa: F401  (register commands)


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log engine decisions to stderr"),
    ] = False,
) -> None:
    """
    Mesocycle planner. Start a program, log workouts, and watch fatigue.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
        )
    # pick up ~/.meso-tracker/programs overrides added since import
    reload_programs()


if __name__ == "__main__":
    app()
