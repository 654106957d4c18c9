from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

from ..core.enums import PlanNodeKind, ProgressionKind, SessionMode

DateType = date


class _DateRange(BaseModel):
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def _check_range(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class MacrocycleBase(_DateRange):
    name: str = Field(min_length=1, max_length=120)
    description: Optional[str] = None
    athlete_group_id: Optional[int] = None


class MacrocycleCreate(MacrocycleBase):
    pass


class MacrocycleUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    description: Optional[str] = None
    athlete_group_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class MacrocycleRead(MacrocycleBase):
    id: int
    coach_id: int

    model_config = {"from_attributes": True}


class MesocycleBase(_DateRange):
    name: str = Field(min_length=1, max_length=120)
    description: Optional[str] = None
    position: int = Field(default=1, ge=1)


class MesocycleCreate(MesocycleBase):
    macrocycle_id: int


class MesocycleUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    description: Optional[str] = None
    position: Optional[int] = Field(default=None, ge=1)
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class MesocycleRead(MesocycleBase):
    id: int
    macrocycle_id: int
    coach_id: int

    model_config = {"from_attributes": True}


class MicrocycleBase(_DateRange):
    name: Optional[str] = None
    week_index: int = Field(default=1, ge=1)


class MicrocycleCreate(MicrocycleBase):
    mesocycle_id: Optional[int] = None


class MicrocycleUpdate(BaseModel):
    name: Optional[str] = None
    week_index: Optional[int] = Field(default=None, ge=1)
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class MicrocycleRead(MicrocycleBase):
    id: int
    mesocycle_id: Optional[int] = None
    coach_id: int

    model_config = {"from_attributes": True}


class PresetDetailBase(BaseModel):
    reps: Optional[int] = Field(default=None, ge=0)
    resistance: Optional[float] = Field(default=None, ge=0)
    resistance_unit_id: Optional[int] = None
    distance: Optional[float] = Field(default=None, ge=0)
    duration: Optional[int] = Field(default=None, ge=0)
    tempo: Optional[str] = Field(default=None, max_length=20)
    power: Optional[float] = Field(default=None, ge=0)
    velocity: Optional[float] = Field(default=None, ge=0)
    rest_time: Optional[int] = Field(default=None, ge=0)


class PresetDetailCreate(PresetDetailBase):
    set_index: Optional[int] = Field(default=None, ge=1)


class PresetDetailRead(PresetDetailBase):
    id: int
    exercise_preset_id: int
    set_index: int

    model_config = {"from_attributes": True}


class PresetBase(BaseModel):
    exercise_id: int
    preset_order: Optional[int] = Field(default=None, ge=0)
    superset_id: Optional[str] = Field(default=None, max_length=40)
    notes: Optional[str] = None


class PresetCreate(PresetBase):
    details: List[PresetDetailCreate] = []

    @model_validator(mode="after")
    def _unique_set_indexes(self):
        explicit = [d.set_index for d in self.details if d.set_index is not None]
        if len(explicit) != len(set(explicit)):
            raise ValueError("set_index values must be unique within a preset")
        return self


class PresetRead(PresetBase):
    id: int
    exercise_preset_group_id: int
    preset_order: int

    model_config = {"from_attributes": True}


class ExerciseSummary(BaseModel):
    id: int
    name: str
    exercise_type: Optional[str] = None

    model_config = {"from_attributes": True}


class PresetTree(PresetRead):
    exercise: Optional[ExerciseSummary] = None
    details: List[PresetDetailRead] = []


class PresetGroupBase(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    description: Optional[str] = None
    date: Optional[DateType] = None
    week: Optional[int] = Field(default=None, ge=1)
    day: Optional[int] = Field(default=None, ge=1, le=7)
    session_mode: SessionMode = SessionMode.INDIVIDUAL
    athlete_group_id: Optional[int] = None
    microcycle_id: Optional[int] = None


class PresetGroupCreate(PresetGroupBase):
    presets: List[PresetCreate] = []


class PresetGroupUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    description: Optional[str] = None
    date: Optional[DateType] = None
    week: Optional[int] = Field(default=None, ge=1)
    day: Optional[int] = Field(default=None, ge=1, le=7)
    session_mode: Optional[SessionMode] = None
    athlete_group_id: Optional[int] = None
    microcycle_id: Optional[int] = None


class PresetGroupRead(PresetGroupBase):
    id: int
    coach_id: int
    is_deleted: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class PresetGroupTree(PresetGroupRead):
    presets: List[PresetTree] = []


class MicrocycleTree(MicrocycleRead):
    sessions: List[PresetGroupTree] = []


class MesocycleTree(MesocycleRead):
    weeks: List[MicrocycleTree] = []


class MacrocycleTree(MacrocycleRead):
    mesocycles: List[MesocycleTree] = []


class PresetGroupDuplicateRequest(BaseModel):
    date: Optional[DateType] = None
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    microcycle_id: Optional[int] = None
    resistance_increase: float = 0.0
    rep_increase: int = 0


class ProgressionRequest(BaseModel):
    kind: ProgressionKind
    value: float
    set_indexes: Optional[List[int]] = None


class PlanGenerationRequest(BaseModel):
    training_goals: str = Field(min_length=1)
    name: Optional[str] = None
    date: Optional[DateType] = None
    microcycle_id: Optional[int] = None
    session_mode: SessionMode = SessionMode.INDIVIDUAL
    athlete_group_id: Optional[int] = None
    exercise_ids: List[int] = []


class PlanNodeCreate(BaseModel):
    kind: PlanNodeKind
    parent_id: Optional[int] = None
    attributes: Dict[str, Any] = {}


class PlanNodeCreated(BaseModel):
    kind: PlanNodeKind
    id: int
