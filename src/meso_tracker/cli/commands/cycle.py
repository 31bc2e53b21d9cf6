"""Cycle lifecycle commands: start, start-custom, status, next, log-workout,
advance-day, skip-week, deload, complete, stop."""

import json
from datetime import datetime
from typing import Annotated, Optional

import typer

from ...core.adaptation import policy_from_name
from ...core.config import MAX_CYCLE_WEEKS, MIN_CYCLE_WEEKS
from ...core.errors import ConfigurationError
from ...core.programs import get_program
from ...core.tracker import MesoCycleTracker, TrackerOutcome
from ...io.serializers import (
    ValidationError,
    cycle_to_dict,
    next_day_to_dict,
    parse_priorities,
    parse_sets_by_muscle,
    validate_date,
)
from ...io.state_store import StateStore
from .. import views
from ..app import JsonOption, StateDirOption, app, get_store, load_tracker


def _open(state_dir) -> tuple[StateStore, MesoCycleTracker]:
    store = get_store(state_dir)
    try:
        return store, load_tracker(store)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)


def _report(outcome: TrackerOutcome, store: StateStore, tracker: MesoCycleTracker, message: str) -> None:
    """Save after an applied event, or explain the no-op."""
    if not outcome.applied:
        views.print_noop(outcome)
        return
    store.save(tracker.state, tracker.fatigue)
    views.print_success(message)


def _check_date(value: str | None) -> str | None:
    if value is None:
        return None
    try:
        return validate_date(value)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)


@app.command()
def start(
    program_id: Annotated[str, typer.Argument(help="Program ID (see 'programs')")],
    state_dir: StateDirOption = None,
    start_date: Annotated[
        Optional[str],
        typer.Option("--start-date", "-s", help="Start date (YYYY-MM-DD), default today"),
    ] = None,
    deload_policy: Annotated[
        Optional[str],
        typer.Option("--deload-policy", help="final_week, none, or every_<n>_weeks"),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Replace an active cycle without prompting"),
    ] = False,
) -> None:
    """
    Start a mesocycle from a program template.

    An active cycle is abandoned (and archived) when replaced.
    """
    start_date = _check_date(start_date)
    try:
        program = get_program(program_id)
        policy = policy_from_name(deload_policy) if deload_policy else None
    except ValueError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    store, tracker = _open(state_dir)
    _replace_active(store, tracker, force)

    try:
        tracker.start(program, start_date=start_date, deload_policy=policy)
    except ConfigurationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    _report_started(store, tracker)


@app.command("start-custom")
def start_custom(
    name: Annotated[str, typer.Argument(help="Name for the mesocycle")],
    state_dir: StateDirOption = None,
    weeks: Annotated[
        int,
        typer.Option("--weeks", "-w", help="Cycle length in weeks (final week is a deload by default)"),
    ] = 5,
    days: Annotated[
        int,
        typer.Option("--days", "-d", help="Training days per week"),
    ] = 4,
    priorities: Annotated[
        Optional[str],
        typer.Option(
            "--priorities",
            help="Muscle priorities, e.g. 'chest=focus,calves=maintain'. Others are normal",
        ),
    ] = None,
    start_date: Annotated[
        Optional[str],
        typer.Option("--start-date", "-s", help="Start date (YYYY-MM-DD), default today"),
    ] = None,
    deload_policy: Annotated[
        Optional[str],
        typer.Option("--deload-policy", help="final_week, none, or every_<n>_weeks"),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Replace an active cycle without prompting"),
    ] = False,
) -> None:
    """
    Start a mesocycle without a program template.

    Weekly set targets come from volume landmarks and muscle priorities.
    Log workouts with 'log-workout --sets'; there is no 'next' day to show.
    """
    start_date = _check_date(start_date)
    if not MIN_CYCLE_WEEKS <= weeks <= MAX_CYCLE_WEEKS:
        views.print_error(f"Weeks must be between {MIN_CYCLE_WEEKS} and {MAX_CYCLE_WEEKS}")
        raise typer.Exit(1)
    if days < 1:
        views.print_error("Days per week must be at least 1")
        raise typer.Exit(1)
    try:
        muscle_priorities = parse_priorities(priorities) if priorities else None
        policy = policy_from_name(deload_policy) if deload_policy else None
    except (ValueError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    store, tracker = _open(state_dir)
    _replace_active(store, tracker, force)

    try:
        tracker.start_custom(
            name,
            total_weeks=weeks,
            days_per_week=days,
            muscle_priorities=muscle_priorities,
            start_date=start_date,
            deload_policy=policy,
        )
    except ValueError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    _report_started(store, tracker)


def _replace_active(store: StateStore, tracker: MesoCycleTracker, force: bool) -> None:
    """Abandon and archive the active cycle, asking first unless forced."""
    store.init()
    if tracker.state is None:
        return
    if not force and not views.confirm_action(
        f"Abandon the active cycle '{tracker.state.name}'?"
    ):
        views.print_info("Cancelled.")
        raise typer.Exit(0)
    stopped = tracker.stop()
    if stopped.applied and stopped.state is not None:
        store.archive_cycle(stopped.state)


def _report_started(store: StateStore, tracker: MesoCycleTracker) -> None:
    store.save(tracker.state, tracker.fatigue)
    state = tracker.state
    views.print_success(
        f"Started {state.name}: {state.total_weeks} weeks, {state.total_workouts} days ({state.id})"
    )


@app.command()
def status(
    state_dir: StateDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """Show progress of the active mesocycle."""
    store, tracker = _open(state_dir)
    try:
        feedback = store.load_feedback()
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if tracker.state is None:
        if json_out:
            print(json.dumps({"cycle": None}))
            return
        views.print_info("No active mesocycle. Run 'start <program>' to begin.")
        return

    suggested = tracker.deload_suggested(feedback)
    if json_out:
        data = cycle_to_dict(tracker.state)
        data.pop("program", None)
        print(json.dumps({
            "cycle": data,
            "is_finished": tracker.is_finished,
            "is_deload_week": tracker.is_deload_week,
            "deload_suggested": suggested,
        }, indent=2))
        return

    views.print_status(tracker.state, deload_suggested=suggested)


@app.command("next")
def next_cmd(
    state_dir: StateDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """Show the next training day with this week's set counts."""
    _, tracker = _open(state_dir)

    if tracker.state is None:
        views.print_error("No active mesocycle. Run 'start <program>' first.")
        raise typer.Exit(1)
    if tracker.is_finished:
        views.print_info("All planned workouts done. Run 'complete' to archive the cycle.")
        return

    try:
        next_day = tracker.next_day()
    except ConfigurationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps(next_day_to_dict(next_day), indent=2))
        return
    views.print_next_day(next_day)


@app.command("log-workout")
def log_workout(
    state_dir: StateDirOption = None,
    sets: Annotated[
        Optional[str],
        typer.Option(
            "--sets", "-s",
            help="Sets per muscle, e.g. 'chest=6,back=3'. Default: the planned day",
        ),
    ] = None,
    date: Annotated[
        Optional[str],
        typer.Option("--date", "-d", help="Workout date (YYYY-MM-DD), default today"),
    ] = None,
    workout_id: Annotated[
        Optional[str],
        typer.Option("--workout-id", help="Identifier stored with the week"),
    ] = None,
) -> None:
    """
    Record the next template day as completed.

    Without --sets the planned sets of the resolved day are logged.
    """
    date = _check_date(date)
    store, tracker = _open(state_dir)

    if sets is not None:
        try:
            sets_by_muscle = parse_sets_by_muscle(sets)
        except ValidationError as e:
            views.print_error(str(e))
            raise typer.Exit(1)
    else:
        sets_by_muscle = {}
        if tracker.state is not None and tracker.state.program is not None and not tracker.is_finished:
            sets_by_muscle = tracker.next_day().sets_by_muscle()

    outcome = tracker.record_workout_completion(sets_by_muscle, workout_id=workout_id, on=date)
    if not outcome.applied:
        views.print_noop(outcome)
        return

    store.save(tracker.state, tracker.fatigue)
    state = tracker.state
    total = sum(sets_by_muscle.values())
    views.print_success(
        f"Logged day {state.completed_workouts}/{state.total_workouts} ({total} sets)"
    )
    if tracker.is_finished:
        views.print_info("All planned workouts done. Run 'complete' to archive the cycle.")
    elif not tracker.is_deload_week and tracker.deload_suggested(store.load_feedback()):
        views.print_warning("Fatigue is high. Consider running 'deload'.")


@app.command("advance-day")
def advance_day(state_dir: StateDirOption = None) -> None:
    """Skip the current template day without logging any volume."""
    store, tracker = _open(state_dir)
    outcome = tracker.advance_day()
    if outcome.applied:
        msg = f"Advanced to day {tracker.state.completed_workouts + 1}"
        if tracker.is_finished:
            msg = "Advanced past the last day"
    else:
        msg = ""
    _report(outcome, store, tracker, msg)


@app.command("skip-week")
def skip_week(state_dir: StateDirOption = None) -> None:
    """Jump to the first day of the next week."""
    store, tracker = _open(state_dir)
    outcome = tracker.skip_to_next_week()
    msg = f"Now in week {tracker.state.current_week}" if outcome.applied else ""
    _report(outcome, store, tracker, msg)


@app.command()
def deload(state_dir: StateDirOption = None) -> None:
    """Turn the current week into a deload week and reset fatigue."""
    store, tracker = _open(state_dir)
    outcome = tracker.trigger_deload()
    msg = f"Week {tracker.state.current_week} is now a deload week" if outcome.applied else ""
    _report(outcome, store, tracker, msg)


@app.command()
def complete(
    state_dir: StateDirOption = None,
    cycle_id: Annotated[
        Optional[str],
        typer.Option("--cycle-id", help="Only complete if this is the active cycle's id"),
    ] = None,
    date: Annotated[
        Optional[str],
        typer.Option("--date", "-d", help="End date (YYYY-MM-DD), default today"),
    ] = None,
) -> None:
    """Mark the active mesocycle completed and archive it."""
    date = _check_date(date)
    store, tracker = _open(state_dir)
    outcome = tracker.complete(cycle_id, on=date)
    if not outcome.applied:
        views.print_noop(outcome)
        return
    store.archive_cycle(outcome.state)
    store.save(None, tracker.fatigue)
    c = outcome.state
    views.print_success(
        f"Completed {c.name}: {c.completed_workouts}/{c.total_workouts} days, ended {c.end_date}"
    )


@app.command()
def stop(
    state_dir: StateDirOption = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Stop without prompting"),
    ] = False,
) -> None:
    """Abandon the active mesocycle (it is kept in history)."""
    store, tracker = _open(state_dir)
    if tracker.state is not None and not force:
        if not views.confirm_action(f"Abandon '{tracker.state.name}'?"):
            views.print_info("Cancelled.")
            raise typer.Exit(0)
    outcome = tracker.stop(on=datetime.now().strftime("%Y-%m-%d"))
    if not outcome.applied:
        views.print_noop(outcome)
        return
    store.archive_cycle(outcome.state)
    store.save(None, tracker.fatigue)
    views.print_success(f"Stopped {outcome.state.name}")
