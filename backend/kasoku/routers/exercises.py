from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..core.enums import UserRole
from ..core.security import Principal
from ..database import get_db
from ..dependencies import get_current_principal, require_role
from ..models.exercise import ExerciseType, Tag, Unit
from ..schemas.exercise import (
    ExerciseCreate,
    ExerciseRead,
    ExerciseTypeCreate,
    ExerciseTypeRead,
    ExerciseUpdate,
    TagAssignment,
    TagCreate,
    TagRead,
    UnitCreate,
    UnitRead,
)
from ..services import catalog

router = APIRouter(prefix="/exercises", tags=["exercises"])


@router.post("/types", response_model=ExerciseTypeRead, status_code=status.HTTP_201_CREATED)
def create_exercise_type(
    payload: ExerciseTypeCreate,
    _: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> ExerciseType:
    return catalog.create_exercise_type(db, payload)


@router.get("/types", response_model=list[ExerciseTypeRead])
def list_exercise_types(
    _: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> list[ExerciseType]:
    return catalog.list_exercise_types(db)


@router.post("/units", response_model=UnitRead, status_code=status.HTTP_201_CREATED)
def create_unit(
    payload: UnitCreate,
    _: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> Unit:
    return catalog.create_unit(db, payload)


@router.get("/units", response_model=list[UnitRead])
def list_units(
    _: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> list[Unit]:
    return catalog.list_units(db)


@router.post("/tags", response_model=TagRead, status_code=status.HTTP_201_CREATED)
def create_tag(
    payload: TagCreate,
    _: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> Tag:
    return catalog.create_tag(db, payload)


@router.get("/tags", response_model=list[TagRead])
def list_tags(
    _: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> list[Tag]:
    return catalog.list_tags(db)


@router.post("", response_model=ExerciseRead, status_code=status.HTTP_201_CREATED)
def create_exercise(
    payload: ExerciseCreate,
    _: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> ExerciseRead:
    return catalog.create_exercise(db, payload)


@router.get("", response_model=list[ExerciseRead])
def list_exercises(
    _: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
    exercise_type_id: Optional[int] = Query(default=None),
    tag_id: Optional[int] = Query(default=None),
    search: Optional[str] = Query(default=None, min_length=1),
) -> list[ExerciseRead]:
    return catalog.list_exercises(db, exercise_type_id=exercise_type_id, tag_id=tag_id, search=search)


@router.get("/{exercise_id}", response_model=ExerciseRead)
def read_exercise(
    exercise_id: int,
    _: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> ExerciseRead:
    return catalog.get_exercise(db, exercise_id)


@router.put("/{exercise_id}", response_model=ExerciseRead)
def update_exercise(
    exercise_id: int,
    payload: ExerciseUpdate,
    _: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> ExerciseRead:
    return catalog.update_exercise(db, exercise_id, payload)


@router.delete("/{exercise_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_exercise(
    exercise_id: int,
    _: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> None:
    catalog.delete_exercise(db, exercise_id)


@router.post("/{exercise_id}/tags", response_model=ExerciseRead)
def add_tags(
    exercise_id: int,
    payload: TagAssignment,
    _: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> ExerciseRead:
    return catalog.add_tags(db, exercise_id, payload.tag_ids)


@router.delete("/{exercise_id}/tags", response_model=ExerciseRead)
def remove_tags(
    exercise_id: int,
    payload: TagAssignment,
    _: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> ExerciseRead:
    return catalog.remove_tags(db, exercise_id, payload.tag_ids)
