from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ..core.enums import SessionMode, SessionStatus


class TrainingDetailMetrics(BaseModel):
    reps: Optional[int] = Field(default=None, ge=0)
    resistance: Optional[float] = Field(default=None, ge=0)
    resistance_unit_id: Optional[int] = None
    distance: Optional[float] = Field(default=None, ge=0)
    duration: Optional[int] = Field(default=None, ge=0)
    tempo: Optional[str] = Field(default=None, max_length=20)
    power: Optional[float] = Field(default=None, ge=0)
    velocity: Optional[float] = Field(default=None, ge=0)


class TrainingDetailRead(TrainingDetailMetrics):
    id: int
    exercise_training_session_id: int
    exercise_preset_id: Optional[int] = None
    set_index: int
    completed: bool

    model_config = {"from_attributes": True}


class TrainingDetailUpdate(TrainingDetailMetrics):
    id: int
    completed: Optional[bool] = None


class TrainingDetailBatchUpdate(BaseModel):
    details: List[TrainingDetailUpdate] = Field(min_length=1)


class TrainingSessionRead(BaseModel):
    id: int
    athlete_id: int
    athlete_group_id: Optional[int] = None
    exercise_preset_group_id: int
    session_mode: SessionMode
    date_time: datetime
    status: SessionStatus
    notes: Optional[str] = None

    model_config = {"from_attributes": True}


class TrainingSessionWithDetails(TrainingSessionRead):
    details: List[TrainingDetailRead] = []


class SessionCompleteRequest(BaseModel):
    notes: Optional[str] = None


class AssignmentRequest(BaseModel):
    athlete_ids: List[int] = []


class ItemOutcome(BaseModel):
    id: int
    reason: str


class AssignmentResult(BaseModel):
    preset_group_id: int
    sessions_touched: int
    created: List[int] = []
    updated: List[int] = []
    skipped: List[ItemOutcome] = []
    failed: List[ItemOutcome] = []


class BulkTransitionResult(BaseModel):
    preset_group_id: int
    status: SessionStatus
    transitioned: List[int] = []
    skipped: List[ItemOutcome] = []
    failed: List[ItemOutcome] = []
