"""Weekly volume status against per-muscle volume landmarks."""

from dataclasses import dataclass
from typing import Literal

from .config import NEAR_MRV_MARGIN, VOLUME_LANDMARKS
from .models import MesoCycleState, validate_muscle

VolumeStatus = Literal["below_mev", "at_mev", "in_mav", "near_mrv", "at_mrv"]


@dataclass(frozen=True)
class MuscleVolumeStatus:
    muscle_group: str
    sets_completed: int
    target: int
    status: VolumeStatus
    percent_of_mrv: float


def classify_volume(muscle: str, sets: int) -> VolumeStatus:
    """
    Place a weekly set count relative to the muscle's landmarks.

    below_mev < MEV <= at_mev < MAV low <= in_mav < MRV - 2 <= near_mrv < MRV <= at_mrv
    """
    lm = VOLUME_LANDMARKS[muscle]
    if sets < lm["MEV"]:
        return "below_mev"
    if sets >= lm["MRV"]:
        return "at_mrv"
    if sets >= lm["MRV"] - NEAR_MRV_MARGIN:
        return "near_mrv"
    if sets >= lm["MAV"][0]:
        return "in_mav"
    return "at_mev"


def volume_status(muscle: str, sets_completed: int, target: int) -> MuscleVolumeStatus:
    validate_muscle(muscle)
    mrv = VOLUME_LANDMARKS[muscle]["MRV"]
    return MuscleVolumeStatus(
        muscle_group=muscle,
        sets_completed=sets_completed,
        target=target,
        status=classify_volume(muscle, sets_completed),
        percent_of_mrv=round(100.0 * sets_completed / mrv, 1),
    )


def volume_recommendation(state: MesoCycleState | None, muscle: str) -> int:
    """Current week's target for ``muscle``, falling back to its MEV."""
    validate_muscle(muscle)
    if state is not None:
        week = state.current_week_info()
        if week is not None and muscle in week.target_volume:
            return week.target_volume[muscle]
    return VOLUME_LANDMARKS[muscle]["MEV"]


def week_volume_report(state: MesoCycleState) -> list[MuscleVolumeStatus]:
    """Status for every muscle that has a target or logged sets this week."""
    week = state.current_week_info()
    if week is None:
        return []
    muscles = list(week.target_volume)
    muscles += [m for m in week.completed_volume if m not in muscles]
    return [
        volume_status(m, week.completed_volume.get(m, 0), volume_recommendation(state, m))
        for m in muscles
    ]
