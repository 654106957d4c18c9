import enum


class UserRole(str, enum.Enum):
    ATHLETE = "athlete"
    COACH = "coach"


class SessionMode(str, enum.Enum):
    INDIVIDUAL = "individual"
    GROUP = "group"


class SessionStatus(str, enum.Enum):
    PENDING = "pending"
    ASSIGNED = "assigned"
    ONGOING = "ongoing"
    COMPLETED = "completed"


class PlanNodeKind(str, enum.Enum):
    MACROCYCLE = "macrocycle"
    MESOCYCLE = "mesocycle"
    MICROCYCLE = "microcycle"
    PRESET_GROUP = "preset_group"
    PRESET = "preset"
    PRESET_DETAIL = "preset_detail"


class ProgressionKind(str, enum.Enum):
    RESISTANCE = "resistance"
    REPS = "reps"
    VOLUME = "volume"


class DashboardSessionType(str, enum.Enum):
    ONGOING = "ongoing"
    ASSIGNED = "assigned"
    PENDING = "pending"
    COMPLETED = "completed"


STARTABLE_STATUSES = (SessionStatus.PENDING, SessionStatus.ASSIGNED)
