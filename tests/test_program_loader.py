"""
Tests for the YAML program loader, the registry and model settings.

User override tests point $HOME at a temporary directory, so the real
~/.meso-tracker is never read.
"""

from pathlib import Path

import pytest

from meso_tracker.core.config import DECAY_RATE_PER_DAY, FATIGUE_PER_SET
from meso_tracker.core.engine.config_loader import deep_merge, load_model_settings
from meso_tracker.core.errors import ConfigurationError
from meso_tracker.core.programs import get_program, list_programs
from meso_tracker.core.programs.loader import load_program_file, load_programs_from_yaml, program_from_dict


@pytest.fixture
def home(tmp_path, monkeypatch) -> Path:
    monkeypatch.setenv("HOME", str(tmp_path))
    return tmp_path


def _user_programs(home: Path) -> Path:
    d = home / ".meso-tracker" / "programs"
    d.mkdir(parents=True)
    return d


MINIMAL_PROGRAM = """\
id: arms-2x
name: Arms Twice
difficulty: beginner
duration_weeks: 3
days_per_week: 2
week_template:
  - day_number: 1
    name: Arms A
    exercises:
      - {muscle_group: biceps, exercise_name: Curl, category: isolation, sets: 3, reps_min: 10, reps_max: 15, rir_target: 1, rest_seconds: 60}
  - day_number: 2
    name: Rest
    day_type: rest
"""


class TestBundledPrograms:
    def test_bundled_ids(self, home):
        assert set(load_programs_from_yaml()) == {"full-body-3x", "upper-lower-4x", "ppl-6x"}

    def test_ppl_shape(self):
        program = get_program("ppl-6x")
        assert program.days_per_week == 7
        assert len(program.week_template) == 7
        assert sum(1 for d in program.week_template if d.is_workout) == 6
        assert program.total_workouts == 42

    def test_list_order_easiest_first(self):
        difficulties = [p.difficulty for p in list_programs()]
        assert difficulties == sorted(
            difficulties, key=["beginner", "intermediate", "advanced"].index
        )

    def test_unknown_program(self):
        with pytest.raises(ValueError, match="Valid IDs"):
            get_program("does-not-exist")

    def test_integer_frequency_expands_to_trained_muscles(self):
        program = get_program("full-body-3x")
        assert program.weekly_frequency["chest"] == 3
        assert "forearms" not in program.weekly_frequency


class TestUserPrograms:
    def test_override_merges_over_bundled(self, home):
        (_user_programs(home) / "full_body_3x.yaml").write_text("duration_weeks: 8\n")
        programs = load_programs_from_yaml()
        assert programs["full-body-3x"].duration_weeks == 8
        # untouched keys keep bundled values
        assert programs["full-body-3x"].days_per_week == 3

    def test_user_only_program(self, home):
        (_user_programs(home) / "arms.yaml").write_text(MINIMAL_PROGRAM)
        programs = load_programs_from_yaml()
        assert "arms-2x" in programs
        assert programs["arms-2x"].week_template[1].day_type == "rest"

    def test_bad_user_file_skipped_with_warning(self, home):
        (_user_programs(home) / "broken.yaml").write_text("id: [unclosed\n")
        with pytest.warns(UserWarning):
            programs = load_programs_from_yaml()
        assert set(programs) == {"full-body-3x", "upper-lower-4x", "ppl-6x"}

    def test_mismatched_days_per_week_skipped(self, home):
        text = MINIMAL_PROGRAM.replace("days_per_week: 2", "days_per_week: 3")
        (_user_programs(home) / "arms.yaml").write_text(text)
        with pytest.warns(UserWarning, match="arms"):
            programs = load_programs_from_yaml()
        assert "arms-2x" not in programs


class TestProgramFromDict:
    def test_missing_fields(self):
        with pytest.raises(ValueError, match="missing"):
            program_from_dict({"id": "x", "name": "X"})

    def test_load_program_file_validates(self, tmp_path):
        path = tmp_path / "p.yaml"
        path.write_text(MINIMAL_PROGRAM.replace("day_number: 2", "day_number: 5"))
        with pytest.raises(ConfigurationError):
            load_program_file(path)

    def test_defaults(self, tmp_path):
        path = tmp_path / "p.yaml"
        path.write_text(MINIMAL_PROGRAM)
        program = load_program_file(path)
        assert program.starting_volume_multiplier == 1.0
        assert program.volume_progression_per_week == 0
        assert program.deload_policy == "final_week"


class TestModelSettings:
    def test_bundled_defaults(self, home):
        settings = load_model_settings()
        assert settings.fatigue_per_set == FATIGUE_PER_SET
        assert settings.decay_rate_per_day == DECAY_RATE_PER_DAY
        assert settings.deload_volume_factor == 0.5

    def test_user_override(self, home):
        cfg = home / ".meso-tracker"
        cfg.mkdir()
        (cfg / "model.yaml").write_text("fatigue:\n  PER_SET: 4\n")
        settings = load_model_settings()
        assert settings.fatigue_per_set == 4.0
        assert settings.decay_rate_per_day == DECAY_RATE_PER_DAY

    def test_invalid_value_warns_and_falls_back(self, home):
        cfg = home / ".meso-tracker"
        cfg.mkdir()
        (cfg / "model.yaml").write_text("deload:\n  VOLUME_FACTOR: -1\n")
        with pytest.warns(UserWarning):
            settings = load_model_settings()
        assert settings.deload_volume_factor == 0.5

    def test_deep_merge_keeps_base(self):
        base = {"a": {"x": 1, "y": 2}, "b": 3}
        merged = deep_merge(base, {"a": {"y": 5}})
        assert merged == {"a": {"x": 1, "y": 5}, "b": 3}
        assert base["a"]["y"] == 2
