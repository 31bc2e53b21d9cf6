"""Program template commands: programs, show-program."""

import json
from typing import Annotated, Optional

import typer

from ...core.programs import get_program, list_programs
from ...core.resolver import effective_sets, weekly_target_volume
from ...io.serializers import program_to_dict
from .. import views
from ..app import JsonOption, app


@app.command("programs")
def programs_cmd(json_out: JsonOption = False) -> None:
    """
    List the available program templates.

    Bundled programs can be overridden or extended with YAML files in
    ~/.meso-tracker/programs/.
    """
    programs = list_programs()

    if json_out:
        print(json.dumps([
            {
                "id": p.id,
                "name": p.name,
                "difficulty": p.difficulty,
                "duration_weeks": p.duration_weeks,
                "days_per_week": p.days_per_week,
                "split": p.split,
                "tags": list(p.tags),
            }
            for p in programs
        ], indent=2))
        return

    views.console.print(views.format_programs_table(programs))


@app.command("show-program")
def show_program(
    program_id: Annotated[str, typer.Argument(help="Program ID (see 'programs')")],
    week: Annotated[
        Optional[int],
        typer.Option("--week", "-w", help="Show sets scaled for this week (training week)"),
    ] = None,
    deload: Annotated[
        bool,
        typer.Option("--deload", help="With --week: show the week as a deload week"),
    ] = False,
    json_out: JsonOption = False,
) -> None:
    """
    Show a program's weekly template.

    With --week, set counts are scaled the way the cycle would prescribe
    them in that week.
    """
    try:
        program = get_program(program_id)
    except ValueError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if week is not None and not 1 <= week <= program.duration_weeks:
        views.print_error(f"Week must be between 1 and {program.duration_weeks}")
        raise typer.Exit(1)

    sets_by_day: dict[int, list[int]] | None = None
    if week is not None:
        sets_by_day = {
            day.day_number: [
                effective_sets(
                    ex.sets,
                    program.starting_volume_multiplier,
                    program.volume_progression_per_week,
                    week,
                    deload,
                )
                for ex in day.exercises
            ]
            for day in program.week_template
        }

    if json_out:
        data = program_to_dict(program)
        if week is not None:
            data["preview_week"] = week
            data["preview_sets"] = {str(k): v for k, v in (sets_by_day or {}).items()}
            data["preview_targets"] = weekly_target_volume(program, week - 1, deload)
        print(json.dumps(data, indent=2))
        return

    views.print_program(program, week=week, sets_by_day=sets_by_day)
