import logging
from typing import Iterable, Optional

from sqlalchemy.orm import Session, selectinload

from ..core.exceptions import DataIntegrityError, NotFound, ValidationError
from ..database import commit_or_raise
from ..models.exercise import Exercise, ExerciseType, Tag, Unit
from ..models.plan import Preset
from ..schemas.exercise import (
    ExerciseCreate,
    ExerciseRead,
    ExerciseTypeCreate,
    ExerciseTypeRead,
    ExerciseUpdate,
    TagCreate,
    TagRead,
    UnitCreate,
    UnitRead,
)

logger = logging.getLogger(__name__)


def create_exercise_type(db: Session, payload: ExerciseTypeCreate) -> ExerciseType:
    if db.query(ExerciseType).filter(ExerciseType.type == payload.type).first():
        raise ValidationError(f"Exercise type '{payload.type}' already exists.", field="type")
    exercise_type = ExerciseType(type=payload.type, description=payload.description)
    db.add(exercise_type)
    commit_or_raise(db, "create exercise type")
    db.refresh(exercise_type)
    return exercise_type


def list_exercise_types(db: Session) -> list[ExerciseType]:
    return db.query(ExerciseType).order_by(ExerciseType.type).all()


def create_unit(db: Session, payload: UnitCreate) -> Unit:
    if db.query(Unit).filter(Unit.name == payload.name).first():
        raise ValidationError(f"Unit '{payload.name}' already exists.", field="name")
    unit = Unit(name=payload.name, description=payload.description)
    db.add(unit)
    commit_or_raise(db, "create unit")
    db.refresh(unit)
    return unit


def list_units(db: Session) -> list[Unit]:
    return db.query(Unit).order_by(Unit.name).all()


def create_tag(db: Session, payload: TagCreate) -> Tag:
    if db.query(Tag).filter(Tag.name == payload.name).first():
        raise ValidationError(f"Tag '{payload.name}' already exists.", field="name")
    tag = Tag(name=payload.name)
    db.add(tag)
    commit_or_raise(db, "create tag")
    db.refresh(tag)
    return tag


def list_tags(db: Session) -> list[Tag]:
    return db.query(Tag).order_by(Tag.name).all()


def create_exercise(db: Session, payload: ExerciseCreate) -> ExerciseRead:
    _check_references(db, payload.exercise_type_id, payload.unit_id)
    exercise = Exercise(
        name=payload.name,
        description=payload.description,
        exercise_type_id=payload.exercise_type_id,
        unit_id=payload.unit_id,
        video_url=payload.video_url,
    )
    exercise.tags = _load_tags(db, payload.tag_ids)
    db.add(exercise)
    commit_or_raise(db, "create exercise")
    db.refresh(exercise)
    logger.info("Created exercise %s (%s)", exercise.id, exercise.name)
    return resolve_exercises(db, [exercise])[0]


def update_exercise(db: Session, exercise_id: int, payload: ExerciseUpdate) -> ExerciseRead:
    exercise = _get_exercise(db, exercise_id)
    updates = payload.model_dump(exclude_unset=True)
    if "exercise_type_id" in updates and updates["exercise_type_id"] is None:
        raise ValidationError("An exercise must keep an exercise type.", field="exercise_type_id")
    _check_references(db, updates.get("exercise_type_id"), updates.get("unit_id"))
    for field, value in updates.items():
        setattr(exercise, field, value)
    commit_or_raise(db, "update exercise")
    db.refresh(exercise)
    return resolve_exercises(db, [exercise])[0]


def delete_exercise(db: Session, exercise_id: int) -> None:
    exercise = _get_exercise(db, exercise_id)
    in_use = db.query(Preset.id).filter(Preset.exercise_id == exercise_id).first()
    if in_use:
        raise ValidationError(
            "Exercise is used by a preset and cannot be deleted.",
            entity="Exercise",
            identifier=exercise_id,
        )
    db.delete(exercise)
    commit_or_raise(db, "delete exercise")


def get_exercise(db: Session, exercise_id: int) -> ExerciseRead:
    return resolve_exercises(db, [_get_exercise(db, exercise_id)])[0]


def list_exercises(
    db: Session,
    exercise_type_id: Optional[int] = None,
    tag_id: Optional[int] = None,
    search: Optional[str] = None,
) -> list[ExerciseRead]:
    query = db.query(Exercise).options(selectinload(Exercise.tags))
    if exercise_type_id:
        query = query.filter(Exercise.exercise_type_id == exercise_type_id)
    if tag_id:
        query = query.filter(Exercise.tags.any(Tag.id == tag_id))
    if search:
        query = query.filter(Exercise.name.ilike(f"%{search}%"))
    return resolve_exercises(db, query.order_by(Exercise.name).all())


def add_tags(db: Session, exercise_id: int, tag_ids: Iterable[int]) -> ExerciseRead:
    exercise = _get_exercise(db, exercise_id)
    current = {tag.id for tag in exercise.tags}
    for tag in _load_tags(db, tag_ids):
        if tag.id not in current:
            exercise.tags.append(tag)
    commit_or_raise(db, "tag exercise")
    db.refresh(exercise)
    return resolve_exercises(db, [exercise])[0]


def remove_tags(db: Session, exercise_id: int, tag_ids: Iterable[int]) -> ExerciseRead:
    exercise = _get_exercise(db, exercise_id)
    drop = set(tag_ids)
    exercise.tags = [tag for tag in exercise.tags if tag.id not in drop]
    commit_or_raise(db, "untag exercise")
    db.refresh(exercise)
    return resolve_exercises(db, [exercise])[0]


def resolve_exercises(db: Session, exercises: list[Exercise]) -> list[ExerciseRead]:
    """Attach type and unit to each exercise; a missing type is a data error."""
    type_ids = {e.exercise_type_id for e in exercises if e.exercise_type_id is not None}
    unit_ids = {e.unit_id for e in exercises if e.unit_id is not None}
    types = (
        {t.id: t for t in db.query(ExerciseType).filter(ExerciseType.id.in_(type_ids)).all()}
        if type_ids
        else {}
    )
    units = (
        {u.id: u for u in db.query(Unit).filter(Unit.id.in_(unit_ids)).all()} if unit_ids else {}
    )
    resolved = []
    for exercise in exercises:
        exercise_type = types.get(exercise.exercise_type_id)
        if exercise_type is None:
            raise DataIntegrityError(
                f"Exercise {exercise.id} has no exercise type.",
                entity="Exercise",
                identifier=exercise.id,
            )
        unit = units.get(exercise.unit_id)
        resolved.append(
            ExerciseRead(
                id=exercise.id,
                name=exercise.name,
                description=exercise.description,
                video_url=exercise.video_url,
                exercise_type=ExerciseTypeRead.model_validate(exercise_type),
                unit=UnitRead.model_validate(unit) if unit else None,
                tags=[TagRead.model_validate(tag) for tag in exercise.tags],
            )
        )
    return resolved


def exercise_type_names(db: Session, exercise_ids: Iterable[int]) -> dict[int, tuple[str, str]]:
    """Map exercise id to ``(name, type)`` with one batched read."""
    ids = set(exercise_ids)
    if not ids:
        return {}
    rows = (
        db.query(Exercise.id, Exercise.name, ExerciseType.type)
        .outerjoin(ExerciseType, ExerciseType.id == Exercise.exercise_type_id)
        .filter(Exercise.id.in_(ids))
        .all()
    )
    names = {}
    for exercise_id, name, type_name in rows:
        if type_name is None:
            raise DataIntegrityError(
                f"Exercise {exercise_id} has no exercise type.",
                entity="Exercise",
                identifier=exercise_id,
            )
        names[exercise_id] = (name, type_name)
    return names


def ensure_exercises_exist(db: Session, exercise_ids: Iterable[int]) -> None:
    ids = set(exercise_ids)
    if not ids:
        return
    found = {row.id for row in db.query(Exercise.id).filter(Exercise.id.in_(ids)).all()}
    missing = sorted(ids - found)
    if missing:
        raise ValidationError(
            f"Unknown exercise ids: {missing}.", field="exercise_id", identifier=missing
        )


def _get_exercise(db: Session, exercise_id: int) -> Exercise:
    exercise = db.get(Exercise, exercise_id)
    if not exercise:
        raise NotFound("Exercise", exercise_id)
    return exercise


def _check_references(db: Session, exercise_type_id: Optional[int], unit_id: Optional[int]) -> None:
    if exercise_type_id is not None and not db.get(ExerciseType, exercise_type_id):
        raise ValidationError(
            f"Unknown exercise type {exercise_type_id}.", field="exercise_type_id"
        )
    if unit_id is not None and not db.get(Unit, unit_id):
        raise ValidationError(f"Unknown unit {unit_id}.", field="unit_id")


def _load_tags(db: Session, tag_ids: Iterable[int]) -> list[Tag]:
    ids = set(tag_ids)
    if not ids:
        return []
    tags = db.query(Tag).filter(Tag.id.in_(ids)).all()
    missing = sorted(ids - {tag.id for tag in tags})
    if missing:
        raise ValidationError(f"Unknown tag ids: {missing}.", field="tag_ids")
    return tags
