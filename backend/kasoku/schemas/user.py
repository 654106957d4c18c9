from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from ..core.enums import UserRole


class TokenData(BaseModel):
    sub: Optional[str] = None
    role: Optional[UserRole] = None
    name: Optional[str] = None


class OnboardRequest(BaseModel):
    name: str = Field(min_length=1, max_length=150)
    email: Optional[EmailStr] = None
    role: UserRole
    speciality: Optional[str] = None
    height_cm: Optional[float] = Field(default=None, gt=0)
    weight_kg: Optional[float] = Field(default=None, gt=0)
    training_goals: Optional[str] = None
    experience: Optional[str] = None
    events: list[str] = []


class UserRead(BaseModel):
    id: int
    external_id: str
    name: str
    email: Optional[EmailStr] = None
    role: UserRole
    created_at: datetime

    model_config = {"from_attributes": True}


class PrincipalRead(BaseModel):
    user: UserRead
    coach_id: Optional[int] = None
    athlete_id: Optional[int] = None
