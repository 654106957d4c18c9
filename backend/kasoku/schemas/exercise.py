from typing import Optional

from pydantic import BaseModel, Field


class ExerciseTypeCreate(BaseModel):
    type: str = Field(min_length=1, max_length=80)
    description: Optional[str] = None


class ExerciseTypeRead(ExerciseTypeCreate):
    id: int

    model_config = {"from_attributes": True}


class UnitCreate(BaseModel):
    name: str = Field(min_length=1, max_length=40)
    description: Optional[str] = None


class UnitRead(UnitCreate):
    id: int

    model_config = {"from_attributes": True}


class TagCreate(BaseModel):
    name: str = Field(min_length=1, max_length=80)


class TagRead(TagCreate):
    id: int

    model_config = {"from_attributes": True}


class ExerciseBase(BaseModel):
    name: str = Field(min_length=1, max_length=150)
    description: Optional[str] = None
    exercise_type_id: int
    unit_id: Optional[int] = None
    video_url: Optional[str] = None


class ExerciseCreate(ExerciseBase):
    tag_ids: list[int] = []


class ExerciseUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=150)
    description: Optional[str] = None
    exercise_type_id: Optional[int] = None
    unit_id: Optional[int] = None
    video_url: Optional[str] = None


class ExerciseRead(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    video_url: Optional[str] = None
    exercise_type: ExerciseTypeRead
    unit: Optional[UnitRead] = None
    tags: list[TagRead] = []


class TagAssignment(BaseModel):
    tag_ids: list[int] = Field(min_length=1)
