from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class AthleteProfileBase(BaseModel):
    height_cm: Optional[float] = Field(default=None, gt=0)
    weight_kg: Optional[float] = Field(default=None, gt=0)
    training_goals: Optional[str] = None
    experience: Optional[str] = None
    events: list[str] = []


class AthleteProfileUpdate(BaseModel):
    height_cm: Optional[float] = Field(default=None, gt=0)
    weight_kg: Optional[float] = Field(default=None, gt=0)
    training_goals: Optional[str] = None
    experience: Optional[str] = None
    events: Optional[list[str]] = None


class AthleteRead(AthleteProfileBase):
    id: int
    user_id: int
    athlete_group_id: Optional[int] = None

    model_config = {"from_attributes": True}


class AthleteGroupCreate(BaseModel):
    group_name: str = Field(min_length=1, max_length=120)


class AthleteGroupUpdate(AthleteGroupCreate):
    pass


class AthleteGroupRead(BaseModel):
    id: int
    coach_id: int
    group_name: str
    created_at: datetime

    model_config = {"from_attributes": True}


class AthleteGroupWithMembers(AthleteGroupRead):
    athletes: list[AthleteRead] = []


class GroupMembershipUpdate(BaseModel):
    group_id: int
    notes: Optional[str] = None


class GroupHistoryRead(BaseModel):
    id: int
    athlete_id: int
    group_id: Optional[int] = None
    created_by: Optional[int] = None
    notes: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}
