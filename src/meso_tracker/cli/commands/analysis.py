"""Analysis commands: decay, fatigue, volume, feedback, history."""

import json
from datetime import datetime
from typing import Annotated, Optional

import typer

from ...core.adaptation import (
    average_recent_score,
    next_week_volume,
    volume_adjustment_for_score,
)
from ...core.models import WorkoutFeedback
from ...core.volume import week_volume_report
from ...io.serializers import ValidationError, cycle_to_dict, validate_date
from .. import views
from ..app import JsonOption, StateDirOption, app, get_store, load_tracker


def _today() -> str:
    return datetime.now().strftime("%Y-%m-%d")


@app.command()
def decay(
    state_dir: StateDirOption = None,
    days: Annotated[
        Optional[float],
        typer.Option("--days", "-n", help="Rest days to apply (default: days since last decay)"),
    ] = None,
) -> None:
    """
    Recover fatigue for elapsed rest days.

    Without --days, the days since the previous 'decay' run are used.
    """
    store = get_store(state_dir)
    try:
        tracker = load_tracker(store)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    today = _today()
    if days is None:
        days = store.days_since_last_decay(today)
    if days < 0:
        views.print_error("Days must be non-negative")
        raise typer.Exit(1)

    tracker.fatigue.decay(days)
    store.save(tracker.state, tracker.fatigue)
    store.set_last_decay_date(today)
    views.print_success(f"Applied {days:g} day(s) of recovery")


@app.command()
def fatigue(
    state_dir: StateDirOption = None,
    show_all: Annotated[
        bool,
        typer.Option("--all", "-a", help="Include fresh muscles"),
    ] = False,
    json_out: JsonOption = False,
) -> None:
    """Show per-muscle fatigue (muscles above 30 by default)."""
    store = get_store(state_dir)
    try:
        tracker = load_tracker(store)
        feedback = store.load_feedback()
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    acc = tracker.fatigue
    suggested = tracker.deload_suggested(feedback)

    if json_out:
        print(json.dumps({
            "muscles": {
                m: {
                    "fatigue": round(e.current_fatigue, 1),
                    "level": acc.level(m),
                    "needs_deload": acc.needs_deload(m),
                    "last_trained_date": e.last_trained_date,
                }
                for m, e in sorted(acc.entries.items())
            },
            "deload_suggested": suggested,
        }, indent=2))
        return

    if not show_all and not acc.visible():
        views.print_info("No notable fatigue. All muscles are fresh.")
    else:
        views.console.print(views.format_fatigue_table(acc, show_all=show_all))
    if suggested:
        views.print_warning("Deload recommended: several muscles are highly fatigued or feedback is poor.")


@app.command()
def volume(
    state_dir: StateDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """Show this week's sets per muscle against volume landmarks."""
    store = get_store(state_dir)
    try:
        tracker = load_tracker(store)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if tracker.state is None:
        views.print_error("No active mesocycle. Run 'start <program>' first.")
        raise typer.Exit(1)

    report = week_volume_report(tracker.state)
    if json_out:
        print(json.dumps({
            "week": tracker.state.current_week,
            "muscles": [
                {
                    "muscle_group": r.muscle_group,
                    "sets_completed": r.sets_completed,
                    "target": r.target,
                    "status": r.status,
                    "percent_of_mrv": r.percent_of_mrv,
                }
                for r in report
            ],
        }, indent=2))
        return

    views.console.print(views.format_volume_table(report, tracker.state.current_week))


@app.command()
def feedback(
    pump: Annotated[int, typer.Option("--pump", help="0=none, 1=moderate, 2=great")],
    soreness: Annotated[int, typer.Option("--soreness", help="0=none, 1=mild, 2=significant")],
    performance: Annotated[
        int,
        typer.Option("--performance", help="0=exceeded, 1=hit, 2=struggled, 3=missed"),
    ],
    state_dir: StateDirOption = None,
    date: Annotated[
        Optional[str],
        typer.Option("--date", "-d", help="Workout date (YYYY-MM-DD), default today"),
    ] = None,
    notes: Annotated[Optional[str], typer.Option("--notes", help="Free-text notes")] = None,
) -> None:
    """
    Record post-workout feedback and show the suggested volume change.

    Lower scores mean the session felt easy and volume can go up.
    """
    store = get_store(state_dir)
    try:
        fb = WorkoutFeedback(
            date=validate_date(date) if date else _today(),
            pump_rating=pump,
            soreness_rating=soreness,
            performance_rating=performance,
            notes=notes,
        )
    except (ValueError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    try:
        tracker = load_tracker(store)
        store.init()
        store.append_feedback(fb)
        history = store.load_feedback()
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    avg = average_recent_score(history)
    delta = volume_adjustment_for_score(avg)
    views.print_success(f"Feedback saved (score {fb.total_score}, recent average {avg:.1f})")
    views.console.print(f"Suggested weekly volume change: {delta:+d} sets per muscle")

    week = tracker.state.current_week_info() if tracker.state is not None else None
    if week is not None and week.target_volume:
        adjusted = next_week_volume(week.target_volume, history)
        views.console.print(
            "Next week: " + ", ".join(f"{m} {s}" for m, s in adjusted.items())
        )
    if tracker.deload_suggested(history):
        views.print_warning("Deload recommended. Run 'deload' to reduce this week's volume.")


@app.command()
def history(
    state_dir: StateDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """Show completed and abandoned mesocycles."""
    store = get_store(state_dir)
    try:
        cycles = store.load_history()
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        out = []
        for c in cycles:
            d = cycle_to_dict(c)
            d.pop("program", None)
            out.append(d)
        print(json.dumps(out, indent=2))
        return

    if not cycles:
        views.console.print("[yellow]No mesocycles archived yet.[/yellow]")
        return
    views.console.print(views.format_history_table(cycles))
