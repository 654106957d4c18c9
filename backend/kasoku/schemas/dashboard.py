from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from ..core.enums import DashboardSessionType
from .plan import PresetGroupTree
from .session import TrainingDetailRead, TrainingSessionRead


class DashboardSession(BaseModel):
    type: Optional[DashboardSessionType] = None
    session: Optional[TrainingSessionRead] = None
    preset_group: Optional[PresetGroupTree] = None
    details: List[TrainingDetailRead] = []


class DashboardResponse(BaseModel):
    athlete_id: int
    timezone: str
    resolved_at: datetime
    current: DashboardSession
