"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of programs, cycle progress,
fatigue and volume.
"""

from rich.console import Console
from rich.table import Table

from ..core.config import FATIGUE_SEVERE_THRESHOLD, VOLUME_LANDMARKS
from ..core.fatigue import FatigueAccumulator
from ..core.models import MesoCycleState, NextDay, TrainingProgram
from ..core.tracker import TrackerOutcome
from ..core.volume import MuscleVolumeStatus

console = Console()

_LEVEL_STYLE = {"high": "red", "moderate": "yellow", "low": "green"}
_STATUS_STYLE = {
    "below_mev": "dim",
    "at_mev": "cyan",
    "in_mav": "green",
    "near_mrv": "yellow",
    "at_mrv": "red",
}
_DAY_TYPE_LABEL = {
    "workout": "Workout",
    "rest": "Rest",
    "cardio": "Cardio",
    "active_recovery": "Active recovery",
}


def format_programs_table(programs: list[TrainingProgram]) -> Table:
    """
    Create a Rich table listing available programs.

    Args:
        programs: Programs to list

    Returns:
        Rich Table object
    """
    table = Table(title="Programs")

    table.add_column("ID", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Level", style="magenta")
    table.add_column("Weeks", justify="right")
    table.add_column("Days", justify="right")
    table.add_column("Split")

    for p in programs:
        workouts = sum(1 for d in p.week_template if d.is_workout)
        table.add_row(
            p.id,
            p.name,
            p.difficulty,
            str(p.duration_weeks),
            f"{workouts}/{p.days_per_week}",
            p.split,
        )

    return table


def print_program(program: TrainingProgram, week: int | None = None, sets_by_day: dict | None = None) -> None:
    """Print a program template; when ``sets_by_day`` is given show scaled sets for ``week``."""
    console.print(f"[bold cyan]{program.name}[/bold cyan] ({program.id})")
    if program.description:
        console.print(program.description)
    console.print(
        f"{program.difficulty} · {program.duration_weeks} weeks · "
        f"{program.split or 'custom split'} · deload: {program.deload_policy}"
    )
    console.print(
        f"Volume: x{program.starting_volume_multiplier:g} start, "
        f"+{program.volume_progression_per_week} sets/week"
    )

    for day in program.week_template:
        console.print()
        label = _DAY_TYPE_LABEL[day.day_type]
        console.print(f"[bold]Day {day.day_number}: {day.name}[/bold] [dim]({label})[/dim]")
        if day.notes:
            console.print(f"  [dim]{day.notes}[/dim]")
        scaled = (sets_by_day or {}).get(day.day_number)
        for i, ex in enumerate(day.exercises):
            sets = scaled[i] if scaled is not None else ex.sets
            console.print(
                f"  {ex.exercise_name:<28} {sets} x {ex.reps_min}-{ex.reps_max}"
                f"  RIR {ex.rir_target}  rest {ex.rest_seconds}s  [dim]{ex.muscle_group}[/dim]"
            )
        for act in day.cardio_activities:
            console.print(f"  • {act.get('name', 'cardio')} {act.get('duration_minutes', '')} min")
        for sug in day.recovery_suggestions:
            console.print(f"  • {sug.get('name', 'recovery')} {sug.get('duration_minutes', '')} min")

    if week is not None:
        console.print(f"\n[dim]Sets shown for week {week}.[/dim]")


def print_next_day(next_day: NextDay) -> None:
    """Print the resolved next day."""
    deload = " [yellow](deload week)[/yellow]" if next_day.is_deload else ""
    console.print(
        f"[bold]Week {next_day.week} · Day {next_day.day_number}/{next_day.total_days}: "
        f"{next_day.day.name}[/bold]{deload}"
    )
    if next_day.day.notes:
        console.print(f"[dim]{next_day.day.notes}[/dim]")

    if not next_day.day.is_workout:
        console.print(f"[blue]{_DAY_TYPE_LABEL[next_day.day_type]} day.[/blue]")
        for act in next_day.day.cardio_activities:
            console.print(
                f"  • {act.get('name', 'cardio')} {act.get('duration_minutes', '')} min"
                f" ({act.get('intensity', 'any')})"
            )
        for sug in next_day.day.recovery_suggestions:
            console.print(f"  • {sug.get('name', 'recovery')} {sug.get('duration_minutes', '')} min")
        return

    table = Table()
    table.add_column("Exercise", style="bold")
    table.add_column("Muscle", style="cyan")
    table.add_column("Sets", justify="right", style="bold")
    table.add_column("Reps", justify="right")
    table.add_column("RIR", justify="right")
    table.add_column("Rest", justify="right")
    for e in next_day.exercises:
        p = e.prescription
        table.add_row(
            p.exercise_name,
            p.muscle_group,
            str(e.effective_sets),
            f"{p.reps_min}-{p.reps_max}",
            str(p.rir_target),
            f"{p.rest_seconds}s",
        )
    console.print(table)
    console.print(f"Total: {next_day.total_sets} sets")


def print_status(state: MesoCycleState, deload_suggested: bool = False) -> None:
    """Print progress of the active cycle."""
    pct = 100 * state.completed_workouts // state.total_workouts
    console.print(f"[bold cyan]{state.name}[/bold cyan] [dim]{state.id}[/dim]")
    console.print(f"Started:   {state.start_date}")
    console.print(f"Week:      {state.current_week} / {state.total_weeks}")
    console.print(f"Workouts:  {state.completed_workouts} / {state.total_workouts} ({pct}%)")

    deload_weeks = [str(w.week_number) for w in state.weeks if w.is_deload]
    console.print(f"Deload:    week {', '.join(deload_weeks)}" if deload_weeks else "Deload:    none scheduled")
    if state.is_deload_week:
        console.print("[yellow]This is a deload week: reduced volume, focus on recovery.[/yellow]")
    if state.is_finished:
        console.print("[green]All planned workouts done. Run 'complete' to archive the cycle.[/green]")
    elif deload_suggested and not state.is_deload_week:
        print_warning("Fatigue is high. Consider running 'deload'.")


def format_fatigue_table(fatigue: FatigueAccumulator, show_all: bool = False) -> Table:
    """
    Create a Rich table of per-muscle fatigue.

    Args:
        fatigue: Fatigue accumulator
        show_all: Include muscles below the visible threshold

    Returns:
        Rich Table object
    """
    table = Table(title="Muscle Fatigue")
    table.add_column("Muscle", style="cyan")
    table.add_column("Fatigue", justify="right")
    table.add_column("Level")
    table.add_column("Last trained", style="dim")

    entries = (
        sorted(fatigue.entries.values(), key=lambda e: e.current_fatigue, reverse=True)
        if show_all
        else fatigue.visible()
    )
    for e in entries:
        level = fatigue.level(e.muscle_group)
        style = _LEVEL_STYLE.get(level or "", "dim")
        marker = " !" if e.current_fatigue > FATIGUE_SEVERE_THRESHOLD else ""
        table.add_row(
            e.muscle_group,
            f"{e.current_fatigue:.0f}{marker}",
            f"[{style}]{level or 'fresh'}[/{style}]",
            e.last_trained_date or "-",
        )
    return table


def format_volume_table(report: list[MuscleVolumeStatus], week: int) -> Table:
    """Create a Rich table of this week's volume per muscle against landmarks."""
    table = Table(title=f"Week {week} Volume")
    table.add_column("Muscle", style="cyan")
    table.add_column("Done", justify="right", style="bold")
    table.add_column("Target", justify="right")
    table.add_column("MEV", justify="right", style="dim")
    table.add_column("MRV", justify="right", style="dim")
    table.add_column("Status")

    for r in report:
        lm = VOLUME_LANDMARKS[r.muscle_group]
        style = _STATUS_STYLE[r.status]
        table.add_row(
            r.muscle_group,
            str(r.sets_completed),
            str(r.target),
            str(lm["MEV"]),
            str(lm["MRV"]),
            f"[{style}]{r.status}[/{style}]",
        )
    return table


def format_history_table(cycles: list[MesoCycleState]) -> Table:
    table = Table(title="Mesocycle History")
    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Name", style="bold")
    table.add_column("Start", style="cyan")
    table.add_column("End", style="cyan")
    table.add_column("Workouts", justify="right")
    table.add_column("Status")

    for i, c in enumerate(cycles, 1):
        style = "green" if c.status == "completed" else "yellow"
        table.add_row(
            str(i),
            c.name,
            c.start_date,
            c.end_date or "-",
            f"{c.completed_workouts}/{c.total_workouts}",
            f"[{style}]{c.status}[/{style}]",
        )
    return table


def print_noop(outcome: TrackerOutcome) -> None:
    """Explain why an event changed nothing."""
    print_warning(outcome.message)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{message} [y/N]: ")
    return response.lower() in ("y", "yes")
