"""
Integration tests for the mesocycle tracker.

Each test drives MesoCycleTracker through a sequence of events and checks
the resulting cycle state, resolved days and fatigue. Hand-computed
expected values are included in comments.
"""

import tempfile
import warnings
from pathlib import Path

import pytest

from meso_tracker.core.adaptation import EveryNthWeekDeload
from meso_tracker.core.config import ALL_MUSCLES
from meso_tracker.core.errors import ConfigurationError
from meso_tracker.core.fatigue import FatigueAccumulator
from meso_tracker.core.models import ExercisePrescription, MesoCycleState, ProgramDay, TrainingProgram, WeekInfo
from meso_tracker.core.programs import get_program
from meso_tracker.core.resolver import resolve_next_day, validate_program
from meso_tracker.core import tracker as tracker_module
from meso_tracker.core.tracker import MesoCycleTracker, NoOpReason
from meso_tracker.io.serializers import cycle_to_dict
from meso_tracker.io.state_store import StateStore


# ===========================================================================
# Helpers
# ===========================================================================


def _ex(muscle: str, sets: int = 3) -> ExercisePrescription:
    return ExercisePrescription(
        muscle_group=muscle,
        exercise_name=f"{muscle} movement",
        category="compound",
        sets=sets,
        reps_min=8,
        reps_max=12,
        rir_target=2,
        rest_seconds=120,
    )


def _make_program(
    days_per_week: int = 3,
    weeks: int = 5,
    multiplier: float = 1.0,
    progression: int = 2,
    deload_policy: str = "final_week",
) -> TrainingProgram:
    """Program whose day N trains one muscle with 3 base sets."""
    muscles = ["chest", "back", "quadriceps", "hamstrings", "shoulders", "biceps", "triceps"]
    days = tuple(
        ProgramDay(day_number=i + 1, name=f"Day {i + 1}", exercises=(_ex(muscles[i % len(muscles)]),))
        for i in range(days_per_week)
    )
    return TrainingProgram(
        id="test-program",
        name="Test Program",
        difficulty="intermediate",
        duration_weeks=weeks,
        days_per_week=days_per_week,
        week_template=days,
        starting_volume_multiplier=multiplier,
        volume_progression_per_week=progression,
        deload_policy=deload_policy,
    )


def _started(program: TrainingProgram | None = None, **kwargs) -> MesoCycleTracker:
    tracker = MesoCycleTracker()
    tracker.start(program or _make_program(), start_date="2026-01-05", cycle_id="c1", **kwargs)
    return tracker


# ===========================================================================
# Resolver scenarios
# ===========================================================================


class TestResolveNextDay:
    def test_day_index_and_week_from_completions(self):
        # 5 completions, 3 days: index 5 mod 3 = 2, week 1 + 5 // 3 = 2
        nd = resolve_next_day(_make_program(days_per_week=3), 5)
        assert nd.day_index == 2
        assert nd.day_number == 3
        assert nd.total_days == 3
        assert nd.week == 2

    def test_week_three_sets_progressed(self):
        # completed 6 of 3/week → week 3: 3 × 1.0 + 2 × 2 = 7
        nd = resolve_next_day(_make_program(), 6)
        assert nd.week == 3
        assert nd.exercises[0].effective_sets == 7

    def test_deload_week_from_week_info(self):
        tracker = _started()
        tracker.state.completed_workouts = 6
        tracker.state.current_week = 3
        tracker.trigger_deload()
        nd = tracker.next_day()
        assert nd.is_deload
        assert nd.exercises[0].effective_sets == 2  # 3 × 0.5 = 1.5 → 2

    def test_pure_function(self):
        program = _make_program()
        assert resolve_next_day(program, 4) == resolve_next_day(program, 4)

    def test_empty_template(self):
        program = TrainingProgram(
            id="empty", name="Empty", difficulty="beginner",
            duration_weeks=4, days_per_week=3, week_template=(),
        )
        with pytest.raises(ConfigurationError):
            resolve_next_day(program, 0)

    def test_negative_completions(self):
        with pytest.raises(ConfigurationError):
            resolve_next_day(_make_program(), -1)

    def test_non_workout_day_passes_payload_through(self):
        program = get_program("upper-lower-4x")
        nd = resolve_next_day(program, 4)  # day 5 of 7
        assert nd.day_type == "cardio"
        assert nd.exercises == ()
        assert nd.day.cardio_activities[0]["name"] == "Incline Treadmill Walk"

    def test_bundled_program_first_day(self):
        # upper-lower week 1: bench 4 × 1.1 = 4.4 → 4
        nd = resolve_next_day(get_program("upper-lower-4x"), 0)
        assert nd.exercises[0].exercise_name == "Barbell Bench Press"
        assert nd.exercises[0].effective_sets == 4


class TestValidateProgram:
    def test_length_must_match_days_per_week(self):
        program = _make_program(days_per_week=3)
        broken = TrainingProgram(
            id="x", name="X", difficulty="beginner", duration_weeks=4,
            days_per_week=4, week_template=program.week_template,
        )
        with pytest.raises(ConfigurationError):
            validate_program(broken)

    def test_all_rest_template_rejected(self):
        rest = ProgramDay(day_number=1, name="Rest", day_type="rest")
        program = TrainingProgram(
            id="rest", name="Rest", difficulty="beginner", duration_weeks=2,
            days_per_week=1, week_template=(rest,),
        )
        with pytest.raises(ConfigurationError):
            validate_program(program)


# ===========================================================================
# Tracker lifecycle
# ===========================================================================


class TestStart:
    def test_initial_state(self):
        tracker = _started()
        s = tracker.state
        assert s.status == "active"
        assert s.current_week == 1
        assert s.completed_workouts == 0
        assert s.total_workouts == 15
        assert s.program_id == "test-program"
        assert [w.is_deload for w in s.weeks] == [False, False, False, False, True]

    def test_week_targets_built(self):
        s = _started().state
        # chest: MEV 10, +2 per week; final week MV
        assert s.weeks[0].target_volume["chest"] == 10
        assert s.weeks[3].target_volume["chest"] == 16
        assert s.weeks[4].target_volume["chest"] == 6

    def test_start_resets_fatigue(self):
        tracker = MesoCycleTracker()
        tracker.fatigue.record_volume("chest", 10, on="2026-01-01")
        tracker.start(_make_program(), start_date="2026-01-05")
        assert tracker.fatigue.get("chest") == 0.0

    def test_policy_override(self):
        tracker = _started(_make_program(weeks=8), deload_policy=EveryNthWeekDeload(4))
        assert [w.week_number for w in tracker.state.weeks if w.is_deload] == [4, 8]

    def test_malformed_program_creates_nothing(self):
        program = TrainingProgram(
            id="empty", name="Empty", difficulty="beginner",
            duration_weeks=4, days_per_week=3, week_template=(),
        )
        tracker = MesoCycleTracker()
        with pytest.raises(ConfigurationError):
            tracker.start(program)
        assert tracker.state is None


class TestRecordWorkoutCompletion:
    def test_full_cycle_signals_finish(self):
        # 6 weeks × 4 days = 24 workouts
        tracker = _started(_make_program(days_per_week=4, weeks=6))
        for _ in range(24):
            assert tracker.record_workout_completion({"chest": 3}, on="2026-01-06").applied
        assert tracker.state.completed_workouts == 24
        assert tracker.is_finished

        outcome = tracker.record_workout_completion({"chest": 3})
        assert not outcome.applied
        assert outcome.reason is NoOpReason.CYCLE_FINISHED
        assert tracker.state.completed_workouts == 24

    def test_week_invariant_holds_after_every_event(self):
        tracker = _started()
        s = tracker.state
        for _ in range(20):
            tracker.record_workout_completion({})
            assert s.completed_workouts <= s.total_workouts
            assert s.current_week == min(s.total_weeks, 1 + s.completed_workouts // s.days_per_week)

    def test_volume_lands_in_the_workout_week(self):
        tracker = _started()
        for _ in range(3):
            tracker.record_workout_completion({"chest": 3}, workout_id="w", on="2026-01-06")
        tracker.record_workout_completion({"chest": 4}, workout_id="w4", on="2026-01-12")
        weeks = tracker.state.weeks
        assert weeks[0].completed_volume == {"chest": 9}
        assert weeks[1].completed_volume == {"chest": 4}
        assert weeks[1].workout_ids == ["w4"]

    def test_fatigue_forwarded(self):
        tracker = _started()
        tracker.record_workout_completion({"chest": 3, "triceps": 2}, on="2026-01-06")
        assert tracker.fatigue.get("chest") == pytest.approx(15.0)
        assert tracker.fatigue.get("triceps") == pytest.approx(10.0)

    def test_no_active_cycle_is_named_noop(self):
        tracker = MesoCycleTracker()
        outcome = tracker.record_workout_completion({"chest": 3})
        assert not outcome.applied
        assert outcome.reason is NoOpReason.NO_ACTIVE_CYCLE
        assert outcome.state is None
        assert tracker.fatigue.get("chest") == 0.0

    def test_invalid_input_raises(self):
        tracker = _started()
        with pytest.raises(ValueError):
            tracker.record_workout_completion({"chest": -1})
        assert tracker.state.completed_workouts == 0


def _closed_state(status: str = "completed") -> MesoCycleState:
    return MesoCycleState(
        id="done",
        name="Finished block",
        total_weeks=2,
        days_per_week=3,
        start_date="2026-01-05",
        current_week=2,
        completed_workouts=4,
        status=status,
        weeks=[WeekInfo(week_number=1, target_volume={"chest": 10}), WeekInfo(week_number=2)],
        end_date="2026-01-19",
    )


class TestClosedCycleIsIdempotent:
    """Events against a cycle that is no longer active change nothing."""

    @pytest.mark.parametrize("status", ["completed", "abandoned"])
    def test_completion_does_not_count(self, status):
        tracker = MesoCycleTracker(state=_closed_state(status))
        outcome = tracker.record_workout_completion({"chest": 3}, on="2026-01-20")
        assert not outcome.applied
        assert outcome.reason is NoOpReason.CYCLE_NOT_ACTIVE
        assert tracker.state.completed_workouts == 4
        assert tracker.state.weeks[1].completed_volume == {}
        assert tracker.fatigue.get("chest") == 0.0

    def test_repeated_completions_stay_put(self):
        tracker = MesoCycleTracker(state=_closed_state())
        for _ in range(3):
            tracker.record_workout_completion({"back": 5}, on="2026-01-20")
        assert tracker.state.completed_workouts == 4
        assert tracker.fatigue.get("back") == 0.0

    def test_advance_and_skip_ignored(self):
        tracker = MesoCycleTracker(state=_closed_state())
        assert tracker.advance_day().reason is NoOpReason.CYCLE_NOT_ACTIVE
        assert tracker.skip_to_next_week().reason is NoOpReason.CYCLE_NOT_ACTIVE
        assert tracker.state.completed_workouts == 4

    def test_trigger_deload_ignored(self):
        fatigue = FatigueAccumulator()
        fatigue.record_volume("chest", 10, on="2026-01-18")
        tracker = MesoCycleTracker(state=_closed_state(), fatigue=fatigue)
        outcome = tracker.trigger_deload()
        assert outcome.reason is NoOpReason.CYCLE_NOT_ACTIVE
        assert not tracker.state.weeks[1].is_deload
        assert tracker.fatigue.get("chest") == pytest.approx(50.0)

    def test_complete_and_stop_ignored(self):
        tracker = MesoCycleTracker(state=_closed_state())
        assert tracker.complete(on="2026-01-21").reason is NoOpReason.CYCLE_NOT_ACTIVE
        assert tracker.stop(on="2026-01-21").reason is NoOpReason.CYCLE_NOT_ACTIVE
        assert tracker.state.status == "completed"
        assert tracker.state.end_date == "2026-01-19"


class TestAdvanceAndSkip:
    def test_advance_day_leaves_fatigue(self):
        tracker = _started()
        tracker.record_workout_completion({"chest": 3}, on="2026-01-06")
        tracker.advance_day()
        assert tracker.state.completed_workouts == 2
        assert tracker.fatigue.get("chest") == pytest.approx(15.0)

    def test_skip_to_next_week(self):
        tracker = _started()
        tracker.advance_day()
        tracker.skip_to_next_week()
        assert tracker.state.completed_workouts == 3
        assert tracker.state.current_week == 2
        # from a week boundary: 3 → 6
        tracker.skip_to_next_week()
        assert tracker.state.completed_workouts == 6

    def test_skip_clamped_at_cycle_end(self):
        tracker = _started()
        tracker.state.completed_workouts = 14
        tracker.state.current_week = 5
        tracker.skip_to_next_week()
        assert tracker.state.completed_workouts == 15
        assert tracker.skip_to_next_week().reason is NoOpReason.CYCLE_FINISHED


class TestTriggerDeload:
    def test_marks_current_week_and_resets_fatigue(self):
        tracker = _started()
        tracker.record_workout_completion({"chest": 20}, on="2026-01-06")
        outcome = tracker.trigger_deload()
        assert outcome.applied
        assert tracker.is_deload_week
        assert tracker.fatigue.get("chest") == 0.0
        assert tracker.state.weeks[0].target_volume["chest"] == 6

    def test_second_trigger_is_noop(self):
        tracker = _started()
        tracker.trigger_deload()
        tracker.record_workout_completion({"back": 4}, on="2026-01-06")
        outcome = tracker.trigger_deload()
        assert not outcome.applied
        assert outcome.reason is NoOpReason.ALREADY_DELOAD
        assert tracker.fatigue.get("back") == pytest.approx(20.0)

    def test_deload_suggested_from_fatigue(self):
        tracker = _started()
        tracker.record_workout_completion(
            {"chest": 15, "back": 15, "shoulders": 15}, on="2026-01-06"
        )
        assert tracker.deload_suggested()


class TestCompleteAndStop:
    def test_complete_archives_and_clears(self):
        tracker = _started()
        outcome = tracker.complete("c1", on="2026-02-09")
        assert outcome.applied
        assert outcome.state.status == "completed"
        assert outcome.state.end_date == "2026-02-09"
        assert tracker.state is None

        after = tracker.record_workout_completion({"chest": 3})
        assert after.reason is NoOpReason.NO_ACTIVE_CYCLE

    def test_complete_wrong_id(self):
        tracker = _started()
        outcome = tracker.complete("other")
        assert outcome.reason is NoOpReason.CYCLE_ID_MISMATCH
        assert tracker.state is not None
        assert tracker.state.status == "active"

    def test_stop_abandons(self):
        tracker = _started()
        tracker.record_workout_completion({"chest": 3}, on="2026-01-06")
        outcome = tracker.stop(on="2026-01-07")
        assert outcome.state.status == "abandoned"
        assert tracker.state is None
        assert tracker.fatigue.get("chest") == 0.0
        assert tracker.stop().reason is NoOpReason.NO_ACTIVE_CYCLE


class TestCustomCycle:
    def test_targets_from_priorities(self):
        tracker = MesoCycleTracker()
        tracker.start_custom(
            "Chest block", total_weeks=4, days_per_week=3,
            muscle_priorities={"chest": "focus"}, start_date="2026-01-05",
        )
        weeks = tracker.state.weeks
        assert tracker.state.program_id is None
        # focus: MEV 10 + 2 = 12, then +2 per week; final week MV
        assert [w.target_volume["chest"] for w in weeks] == [12, 14, 16, 6]
        # unlisted muscles are normal: hamstrings MEV 6
        assert [w.target_volume["hamstrings"] for w in weeks] == [6, 8, 10, 4]

    def test_every_muscle_targeted_without_priorities(self):
        tracker = MesoCycleTracker()
        tracker.start_custom("Custom", total_weeks=3, days_per_week=4, start_date="2026-01-05")
        for week in tracker.state.weeks:
            assert set(week.target_volume) == set(ALL_MUSCLES)
        assert tracker.state.weeks[0].target_volume["back"] == 10
        assert tracker.state.weeks[1].target_volume["back"] == 12

    def test_targets_capped_at_mrv(self):
        tracker = MesoCycleTracker()
        tracker.start_custom(
            "Long chest block", total_weeks=8, days_per_week=3,
            muscle_priorities={"chest": "focus"}, start_date="2026-01-05",
        )
        chest = [w.target_volume["chest"] for w in tracker.state.weeks]
        assert chest == [12, 14, 16, 18, 20, 22, 22, 6]

    def test_invalid_priority_rejected(self):
        tracker = MesoCycleTracker()
        with pytest.raises(ValueError):
            tracker.start_custom("Bad", total_weeks=4, days_per_week=3, muscle_priorities={"chest": "max"})
        assert tracker.state is None

    def test_next_day_needs_template(self):
        tracker = MesoCycleTracker()
        tracker.start_custom("Custom", total_weeks=2, days_per_week=2, start_date="2026-01-05")
        assert tracker.record_workout_completion({"back": 3}, on="2026-01-06").applied
        with pytest.raises(ConfigurationError):
            tracker.next_day()


# ===========================================================================
# Persistence round trip
# ===========================================================================


class TestStateStore:
    def test_tracker_survives_save_and_load(self):
        tracker = _started(get_program("ppl-6x"))
        tracker.record_workout_completion({"chest": 7, "shoulders": 8}, workout_id="w1", on="2026-01-06")
        tracker.trigger_deload()
        tracker.record_workout_completion({"back": 6}, on="2026-01-07")

        with tempfile.TemporaryDirectory() as tmpdir:
            store = StateStore(Path(tmpdir))
            store.init()
            store.save(tracker.state, tracker.fatigue)

            loaded_state = store.load_cycle()
            loaded_fatigue = store.load_fatigue()

        assert cycle_to_dict(loaded_state) == cycle_to_dict(tracker.state)
        assert loaded_fatigue.get("back") == pytest.approx(30.0)
        restored = MesoCycleTracker(loaded_state, loaded_fatigue)
        assert restored.next_day() == tracker.next_day()

    def test_history_append(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = StateStore(Path(tmpdir))
            tracker = _started()
            store.archive_cycle(tracker.complete(on="2026-02-01").state)
            tracker = _started()
            store.archive_cycle(tracker.stop(on="2026-02-02").state)
            history = store.load_history()
        assert [c.status for c in history] == ["completed", "abandoned"]

    def test_fatigue_accumulator_kwargs(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = StateStore(Path(tmpdir))
            acc = store.load_fatigue(fatigue_per_set=2.0)
        assert isinstance(acc, FatigueAccumulator)
        assert acc.fatigue_per_set == 2.0


class TestTrackerModuleSource:
    def test_compiles_without_warnings(self):
        path = Path(tracker_module.__file__)
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            compile(path.read_text(encoding="utf-8"), str(path), "exec")
