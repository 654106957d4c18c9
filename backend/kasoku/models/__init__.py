from .user import User, Coach, Athlete, AthleteGroup, AthleteGroupHistory
from .exercise import Exercise, ExerciseType, Tag, Unit
from .plan import Macrocycle, Mesocycle, Microcycle, PresetGroup, Preset, PresetDetail
from .session import TrainingSession, TrainingDetail

__all__ = [
    "User",
    "Coach",
    "Athlete",
    "AthleteGroup",
    "AthleteGroupHistory",
    "Exercise",
    "ExerciseType",
    "Tag",
    "Unit",
    "Macrocycle",
    "Mesocycle",
    "Microcycle",
    "PresetGroup",
    "Preset",
    "PresetDetail",
    "TrainingSession",
    "TrainingDetail",
]
