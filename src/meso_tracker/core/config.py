"""
Configuration constants for the mesocycle progression model.

All adjustable parameters are centralized here for easy tuning.
Values can be overridden at runtime through model.yaml (see
engine/config_loader.py); the constants below are the defaults.
"""

from typing import Final

# =============================================================================
# MUSCLE GROUPS
# =============================================================================

ALL_MUSCLES: Final[tuple[str, ...]] = (
    "chest",
    "back",
    "shoulders",
    "biceps",
    "triceps",
    "forearms",
    "quadriceps",
    "hamstrings",
    "glutes",
    "calves",
    "core",
)

# =============================================================================
# VOLUME PROGRESSION
# =============================================================================

DELOAD_VOLUME_FACTOR: Final[float] = 0.5  # Deload week runs at ~half the base sets
MIN_EFFECTIVE_SETS: Final[int] = 1  # An exercise is never prescribed with 0 sets

# =============================================================================
# FATIGUE ACCUMULATOR
# =============================================================================

# ~14 sets/week for one muscle lands exactly on the deload threshold.
FATIGUE_PER_SET: Final[float] = 5.0
# Points recovered per day; one session of 6-9 sets clears within 48-72h.
DECAY_RATE_PER_DAY: Final[float] = 15.0

FATIGUE_DELOAD_THRESHOLD: Final[float] = 70.0  # needs_deload above this
FATIGUE_MODERATE_THRESHOLD: Final[float] = 50.0
FATIGUE_VISIBLE_THRESHOLD: Final[float] = 30.0  # below this the muscle is not shown
FATIGUE_SEVERE_THRESHOLD: Final[float] = 80.0

# =============================================================================
# DELOAD TRIGGERS
# =============================================================================

DELOAD_MIN_FATIGUED_MUSCLES: Final[int] = 3  # muscles over threshold to suggest a deload
FEEDBACK_WINDOW: Final[int] = 3  # most recent feedback entries considered
FEEDBACK_HISTORY_LIMIT: Final[int] = 100  # feedback entries kept in state
DEFAULT_DELOAD_INTERVAL_WEEKS: Final[int] = 4

# =============================================================================
# FEEDBACK → VOLUME ADJUSTMENT
# =============================================================================
# Score = pump (0-2) + soreness (0-2) + performance (0-3), so 0..7.
# Lower score = session felt easy = room for more volume.

SCORE_INCREASE_HIGH: Final[int] = 2  # score <= 2
SCORE_INCREASE_LOW: Final[int] = 4  # score <= 4
SCORE_MAINTAIN: Final[int] = 5  # score == 5
SCORE_DELOAD: Final[int] = 7  # score >= 7

SETS_INCREASE_HIGH: Final[int] = 3
SETS_INCREASE_LOW: Final[int] = 1
SETS_MAINTAIN: Final[int] = 0
SETS_DECREASE: Final[int] = -1
SETS_DELOAD: Final[int] = -3

# =============================================================================
# VOLUME LANDMARKS (sets per week per muscle)
# =============================================================================
# MV  = maintenance volume (used for deload weeks)
# MEV = minimum effective volume (start of a mesocycle)
# MAV = maximum adaptive volume range
# MRV = maximum recoverable volume (never planned above this)

VOLUME_LANDMARKS: Final[dict[str, dict]] = {
    "chest":      {"MV": 6, "MEV": 10, "MAV": (12, 20), "MRV": 22},
    "back":       {"MV": 6, "MEV": 10, "MAV": (14, 22), "MRV": 25},
    "shoulders":  {"MV": 6, "MEV": 8,  "MAV": (12, 18), "MRV": 20},
    "biceps":     {"MV": 4, "MEV": 8,  "MAV": (10, 16), "MRV": 20},
    "triceps":    {"MV": 4, "MEV": 6,  "MAV": (10, 14), "MRV": 18},
    "forearms":   {"MV": 2, "MEV": 4,  "MAV": (6, 10),  "MRV": 14},
    "quadriceps": {"MV": 6, "MEV": 8,  "MAV": (12, 18), "MRV": 20},
    "hamstrings": {"MV": 4, "MEV": 6,  "MAV": (10, 16), "MRV": 18},
    "glutes":     {"MV": 4, "MEV": 6,  "MAV": (10, 16), "MRV": 20},
    "calves":     {"MV": 4, "MEV": 6,  "MAV": (10, 16), "MRV": 20},
    "core":       {"MV": 4, "MEV": 6,  "MAV": (8, 14),  "MRV": 18},
}

FOCUS_EXTRA_SETS: Final[int] = 2  # focus muscles start at MEV + 2
CUSTOM_VOLUME_INCREASE_PER_WEEK: Final[int] = 2  # sets added per muscle per week in custom cycles
NEAR_MRV_MARGIN: Final[int] = 2  # within this many sets of MRV counts as "near"

# =============================================================================
# CYCLE DEFAULTS
# =============================================================================

MIN_CYCLE_WEEKS: Final[int] = 1
MAX_CYCLE_WEEKS: Final[int] = 52


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, halves away from zero for positives.

    Python's round() uses banker's rounding (round(2.5) == 2); set
    prescriptions expect 2.5 → 3.
    """
    import math

    return int(math.floor(value + 0.5))
