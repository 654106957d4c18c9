"""
Periodization store: owner-scoped CRUD over the plan hierarchy.

Macrocycle, mesocycle and microcycle deletes cascade down the hierarchy.
Preset groups are only ever soft-deleted, since training sessions keep
pointing at them; a preset group losing its microcycle is soft-deleted and
detached from it.
"""
import logging
from datetime import date
from typing import Any, Optional, Type

from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.orm import Session

from ..core import policy
from ..core.enums import PlanNodeKind, ProgressionKind, SessionMode
from ..core.exceptions import Forbidden, NotFound, ValidationError
from ..core.security import Principal
from ..database import commit_or_raise
from ..models.plan import Macrocycle, Mesocycle, Microcycle, Preset, PresetDetail, PresetGroup
from ..models.session import TrainingDetail
from ..models.user import AthleteGroup
from ..schemas.plan import (
    MacrocycleCreate,
    MacrocycleTree,
    MacrocycleUpdate,
    MesocycleCreate,
    MesocycleTree,
    MesocycleUpdate,
    MicrocycleCreate,
    MicrocycleTree,
    MicrocycleUpdate,
    PresetCreate,
    PresetDetailCreate,
    PresetGroupCreate,
    PresetGroupDuplicateRequest,
    PresetGroupTree,
    PresetGroupUpdate,
    ProgressionRequest,
)
from . import plan_tree
from .catalog import ensure_exercises_exist

logger = logging.getLogger(__name__)

ENTITY_NAMES = {
    Macrocycle: "Macrocycle",
    Mesocycle: "Mesocycle",
    Microcycle: "Microcycle",
    PresetGroup: "Preset group",
}


def get_owned(db: Session, principal: Principal, model: Type, node_id: int):
    entity = ENTITY_NAMES[model]
    node = db.get(model, node_id)
    if node is None or (model is PresetGroup and node.is_deleted):
        raise NotFound(entity, node_id)
    policy.ensure_plan_owner(principal, node, entity)
    return node


def get_owned_preset(db: Session, principal: Principal, preset_id: int) -> tuple[Preset, PresetGroup]:
    preset = db.get(Preset, preset_id)
    if preset is None:
        raise NotFound("Preset", preset_id)
    group = db.get(PresetGroup, preset.exercise_preset_group_id)
    if group is None or group.is_deleted:
        raise NotFound("Preset", preset_id)
    policy.ensure_plan_owner(principal, group, "Preset")
    return preset, group


# --- create -----------------------------------------------------------------


def create_macrocycle(db: Session, principal: Principal, payload: MacrocycleCreate) -> Macrocycle:
    _require_coach(principal, "Macrocycle")
    _check_athlete_group(db, principal, payload.athlete_group_id)
    macrocycle = Macrocycle(coach_id=principal.coach_id, **payload.model_dump())
    db.add(macrocycle)
    commit_or_raise(db, "create macrocycle")
    db.refresh(macrocycle)
    logger.info("Coach %s created macrocycle %s", principal.coach_id, macrocycle.id)
    return macrocycle


def create_mesocycle(db: Session, principal: Principal, payload: MesocycleCreate) -> Mesocycle:
    _require_coach(principal, "Mesocycle")
    get_owned(db, principal, Macrocycle, payload.macrocycle_id)
    mesocycle = Mesocycle(coach_id=principal.coach_id, **payload.model_dump())
    db.add(mesocycle)
    commit_or_raise(db, "create mesocycle")
    db.refresh(mesocycle)
    return mesocycle


def create_microcycle(db: Session, principal: Principal, payload: MicrocycleCreate) -> Microcycle:
    _require_coach(principal, "Microcycle")
    if payload.mesocycle_id is not None:
        get_owned(db, principal, Mesocycle, payload.mesocycle_id)
    microcycle = Microcycle(coach_id=principal.coach_id, **payload.model_dump())
    db.add(microcycle)
    commit_or_raise(db, "create microcycle")
    db.refresh(microcycle)
    return microcycle


def create_preset_group(
    db: Session, principal: Principal, payload: PresetGroupCreate, commit: bool = True
) -> PresetGroup:
    _require_coach(principal, "Preset group")
    if payload.microcycle_id is not None:
        get_owned(db, principal, Microcycle, payload.microcycle_id)
    _check_session_mode(payload.session_mode, payload.athlete_group_id)
    _check_athlete_group(db, principal, payload.athlete_group_id)
    ensure_exercises_exist(db, {preset.exercise_id for preset in payload.presets})

    group = PresetGroup(
        coach_id=principal.coach_id,
        **payload.model_dump(exclude={"presets"}),
    )
    for position, preset_payload in enumerate(payload.presets):
        group.presets.append(_build_preset(preset_payload, position))
    db.add(group)
    if commit:
        commit_or_raise(db, "create preset group")
        db.refresh(group)
        logger.info(
            "Coach %s created preset group %s with %d presets",
            principal.coach_id,
            group.id,
            len(payload.presets),
        )
    return group


def add_preset(db: Session, principal: Principal, group_id: int, payload: PresetCreate) -> Preset:
    group = get_owned(db, principal, PresetGroup, group_id)
    ensure_exercises_exist(db, [payload.exercise_id])
    position = payload.preset_order
    if position is None:
        position = db.query(Preset).filter(Preset.exercise_preset_group_id == group.id).count()
    preset = _build_preset(payload, position)
    preset.exercise_preset_group_id = group.id
    db.add(preset)
    commit_or_raise(db, "add preset")
    db.refresh(preset)
    return preset


def add_preset_details(
    db: Session, principal: Principal, preset_id: int, payload: list[PresetDetailCreate]
) -> list[PresetDetail]:
    preset, _ = get_owned_preset(db, principal, preset_id)
    existing = {
        row.set_index
        for row in db.query(PresetDetail.set_index)
        .filter(PresetDetail.exercise_preset_id == preset.id)
        .all()
    }
    next_index = max(existing, default=0) + 1
    created = []
    for detail_payload in payload:
        set_index = detail_payload.set_index
        if set_index is None:
            set_index = next_index
        if set_index in existing:
            raise ValidationError(
                f"Set {set_index} already exists for preset {preset.id}.", field="set_index"
            )
        existing.add(set_index)
        next_index = max(next_index, set_index + 1)
        detail = PresetDetail(
            exercise_preset_id=preset.id,
            set_index=set_index,
            **detail_payload.model_dump(exclude={"set_index"}),
        )
        db.add(detail)
        created.append(detail)
    commit_or_raise(db, "add preset details")
    for detail in created:
        db.refresh(detail)
    return created


NODE_SCHEMAS = {
    PlanNodeKind.MACROCYCLE: (MacrocycleCreate, None),
    PlanNodeKind.MESOCYCLE: (MesocycleCreate, "macrocycle_id"),
    PlanNodeKind.MICROCYCLE: (MicrocycleCreate, "mesocycle_id"),
    PlanNodeKind.PRESET_GROUP: (PresetGroupCreate, "microcycle_id"),
    PlanNodeKind.PRESET: (PresetCreate, None),
    PlanNodeKind.PRESET_DETAIL: (PresetDetailCreate, None),
}


def create_plan_node(
    db: Session,
    principal: Principal,
    kind: PlanNodeKind,
    fields: dict[str, Any],
    parent_id: Optional[int] = None,
) -> int:
    """Create any node of the hierarchy from raw fields and return its id."""
    schema, parent_field = NODE_SCHEMAS[kind]
    data = dict(fields)
    if parent_field is not None and parent_id is not None:
        data[parent_field] = parent_id
    if kind in (PlanNodeKind.PRESET, PlanNodeKind.PRESET_DETAIL) and parent_id is None:
        raise ValidationError(f"A {kind.value} needs a parent id.", field="parent_id")
    payload = parse_payload(schema, data)

    if kind == PlanNodeKind.MACROCYCLE:
        return create_macrocycle(db, principal, payload).id
    if kind == PlanNodeKind.MESOCYCLE:
        return create_mesocycle(db, principal, payload).id
    if kind == PlanNodeKind.MICROCYCLE:
        return create_microcycle(db, principal, payload).id
    if kind == PlanNodeKind.PRESET_GROUP:
        return create_preset_group(db, principal, payload).id
    if kind == PlanNodeKind.PRESET:
        return add_preset(db, principal, parent_id, payload).id
    return add_preset_details(db, principal, parent_id, [payload])[0].id


def parse_payload(schema: Type, data: Any):
    try:
        return schema.model_validate(data)
    except SchemaValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or None
        raise ValidationError(f"Invalid {schema.__name__}: {first.get('msg')}", field=field)


# --- read -------------------------------------------------------------------


def list_macrocycles(db: Session, principal: Principal) -> list[Macrocycle]:
    _require_coach(principal, "Macrocycle")
    return (
        db.query(Macrocycle)
        .filter(Macrocycle.coach_id == principal.coach_id)
        .order_by(Macrocycle.start_date.desc())
        .all()
    )


def list_preset_groups(
    db: Session, principal: Principal, microcycle_id: Optional[int] = None
) -> list[PresetGroup]:
    _require_coach(principal, "Preset group")
    query = db.query(PresetGroup).filter(
        PresetGroup.coach_id == principal.coach_id, PresetGroup.is_deleted.is_(False)
    )
    if microcycle_id is not None:
        query = query.filter(PresetGroup.microcycle_id == microcycle_id)
    return query.order_by(PresetGroup.date, PresetGroup.week, PresetGroup.day, PresetGroup.id).all()


def get_macrocycle_tree(db: Session, principal: Principal, macrocycle_id: int) -> MacrocycleTree:
    macrocycle = get_owned(db, principal, Macrocycle, macrocycle_id)
    return plan_tree.build_macrocycle_tree(db, macrocycle)


def get_mesocycle_tree(db: Session, principal: Principal, mesocycle_id: int) -> MesocycleTree:
    mesocycle = get_owned(db, principal, Mesocycle, mesocycle_id)
    return plan_tree.build_mesocycle_trees(db, [mesocycle])[0]


def get_microcycle_tree(db: Session, principal: Principal, microcycle_id: int) -> MicrocycleTree:
    microcycle = get_owned(db, principal, Microcycle, microcycle_id)
    return plan_tree.build_microcycle_trees(db, [microcycle])[0]


def get_preset_group_tree(db: Session, principal: Principal, group_id: int) -> PresetGroupTree:
    group = get_owned(db, principal, PresetGroup, group_id)
    return plan_tree.build_preset_group_trees(db, [group])[0]


TREE_READERS = {
    PlanNodeKind.MACROCYCLE: get_macrocycle_tree,
    PlanNodeKind.MESOCYCLE: get_mesocycle_tree,
    PlanNodeKind.MICROCYCLE: get_microcycle_tree,
    PlanNodeKind.PRESET_GROUP: get_preset_group_tree,
}


def get_plan_tree(db: Session, principal: Principal, kind: PlanNodeKind, root_id: int):
    reader = TREE_READERS.get(kind)
    if reader is None:
        raise ValidationError(f"Trees cannot be rooted at a {kind.value}.", field="kind")
    return reader(db, principal, root_id)


# --- update -----------------------------------------------------------------


def update_macrocycle(
    db: Session, principal: Principal, macrocycle_id: int, payload: MacrocycleUpdate
) -> Macrocycle:
    macrocycle = get_owned(db, principal, Macrocycle, macrocycle_id)
    updates = payload.model_dump(exclude_unset=True)
    if "athlete_group_id" in updates:
        _check_athlete_group(db, principal, updates["athlete_group_id"])
    return _apply_dated_updates(db, macrocycle, updates, "update macrocycle")


def update_mesocycle(
    db: Session, principal: Principal, mesocycle_id: int, payload: MesocycleUpdate
) -> Mesocycle:
    mesocycle = get_owned(db, principal, Mesocycle, mesocycle_id)
    return _apply_dated_updates(
        db, mesocycle, payload.model_dump(exclude_unset=True), "update mesocycle"
    )


def update_microcycle(
    db: Session, principal: Principal, microcycle_id: int, payload: MicrocycleUpdate
) -> Microcycle:
    microcycle = get_owned(db, principal, Microcycle, microcycle_id)
    return _apply_dated_updates(
        db, microcycle, payload.model_dump(exclude_unset=True), "update microcycle"
    )


def update_preset_group(
    db: Session, principal: Principal, group_id: int, payload: PresetGroupUpdate
) -> PresetGroup:
    group = get_owned(db, principal, PresetGroup, group_id)
    updates = payload.model_dump(exclude_unset=True)
    if updates.get("microcycle_id") is not None:
        get_owned(db, principal, Microcycle, updates["microcycle_id"])
    mode = updates.get("session_mode", group.session_mode)
    athlete_group_id = updates.get("athlete_group_id", group.athlete_group_id)
    _check_session_mode(mode, athlete_group_id)
    if "athlete_group_id" in updates:
        _check_athlete_group(db, principal, athlete_group_id)
    for field, value in updates.items():
        setattr(group, field, value)
    commit_or_raise(db, "update preset group")
    db.refresh(group)
    return group


# --- delete -----------------------------------------------------------------


def delete_macrocycle(db: Session, principal: Principal, macrocycle_id: int) -> None:
    macrocycle = get_owned(db, principal, Macrocycle, macrocycle_id)
    meso_ids = [
        row.id for row in db.query(Mesocycle.id).filter(Mesocycle.macrocycle_id == macrocycle.id)
    ]
    _retire_groups_of_mesocycles(db, meso_ids)
    db.delete(macrocycle)
    commit_or_raise(db, "delete macrocycle")
    logger.info("Coach %s deleted macrocycle %s", principal.coach_id, macrocycle_id)


def delete_mesocycle(db: Session, principal: Principal, mesocycle_id: int) -> None:
    mesocycle = get_owned(db, principal, Mesocycle, mesocycle_id)
    _retire_groups_of_mesocycles(db, [mesocycle.id])
    db.delete(mesocycle)
    commit_or_raise(db, "delete mesocycle")


def delete_microcycle(db: Session, principal: Principal, microcycle_id: int) -> None:
    microcycle = get_owned(db, principal, Microcycle, microcycle_id)
    _retire_groups(db, [microcycle.id])
    db.delete(microcycle)
    commit_or_raise(db, "delete microcycle")


def delete_preset_group(db: Session, principal: Principal, group_id: int) -> None:
    group = get_owned(db, principal, PresetGroup, group_id)
    group.is_deleted = True
    commit_or_raise(db, "delete preset group")
    logger.info("Coach %s soft-deleted preset group %s", principal.coach_id, group_id)


def delete_preset(db: Session, principal: Principal, preset_id: int) -> None:
    preset, _ = get_owned_preset(db, principal, preset_id)
    db.query(TrainingDetail).filter(TrainingDetail.exercise_preset_id == preset.id).update(
        {TrainingDetail.exercise_preset_id: None}, synchronize_session=False
    )
    db.delete(preset)
    commit_or_raise(db, "delete preset")


# --- templates --------------------------------------------------------------


def duplicate_preset_group(
    db: Session, principal: Principal, group_id: int, payload: PresetGroupDuplicateRequest
) -> PresetGroup:
    source = get_owned(db, principal, PresetGroup, group_id)
    microcycle_id = payload.microcycle_id if payload.microcycle_id is not None else source.microcycle_id
    if payload.microcycle_id is not None:
        get_owned(db, principal, Microcycle, payload.microcycle_id)

    copy = PresetGroup(
        coach_id=principal.coach_id,
        microcycle_id=microcycle_id,
        name=payload.name or f"{source.name} Copy",
        description=source.description,
        date=payload.date if payload.date is not None else source.date,
        week=source.week,
        day=source.day,
        session_mode=source.session_mode,
        athlete_group_id=source.athlete_group_id,
    )
    presets = plan_tree.fetch_presets(db, [source.id])
    details = plan_tree.fetch_preset_details(db, [preset.id for preset in presets])
    details_by_preset: dict[int, list[PresetDetail]] = {}
    for detail in details:
        details_by_preset.setdefault(detail.exercise_preset_id, []).append(detail)

    for preset in presets:
        new_preset = Preset(
            exercise_id=preset.exercise_id,
            preset_order=preset.preset_order,
            superset_id=preset.superset_id,
            notes=preset.notes,
        )
        for detail in details_by_preset.get(preset.id, []):
            new_preset.details.append(
                PresetDetail(
                    set_index=detail.set_index,
                    reps=_bump_reps(detail.reps, payload.rep_increase),
                    resistance=_bump_resistance(detail.resistance, payload.resistance_increase),
                    resistance_unit_id=detail.resistance_unit_id,
                    distance=detail.distance,
                    duration=detail.duration,
                    tempo=detail.tempo,
                    power=detail.power,
                    velocity=detail.velocity,
                    rest_time=detail.rest_time,
                )
            )
        copy.presets.append(new_preset)

    db.add(copy)
    commit_or_raise(db, "duplicate preset group")
    db.refresh(copy)
    logger.info("Duplicated preset group %s into %s", source.id, copy.id)
    return copy


def apply_progression(
    db: Session, principal: Principal, preset_id: int, payload: ProgressionRequest
) -> list[PresetDetail]:
    preset, _ = get_owned_preset(db, principal, preset_id)
    details = plan_tree.fetch_preset_details(db, [preset.id])
    targets = set(payload.set_indexes) if payload.set_indexes else None
    for detail in details:
        if targets is not None and detail.set_index not in targets:
            continue
        if payload.kind == ProgressionKind.RESISTANCE:
            detail.resistance = _bump_resistance(detail.resistance, payload.value)
        elif payload.kind == ProgressionKind.REPS:
            detail.reps = _bump_reps(detail.reps, int(payload.value))
        elif detail.resistance and detail.reps:
            factor = 1 + payload.value / 100
            detail.resistance = round(detail.resistance * factor, 2)
            detail.reps = max(1, round(detail.reps * factor))
    commit_or_raise(db, "apply progression")
    for detail in details:
        db.refresh(detail)
    return details


# --- helpers ----------------------------------------------------------------


def _require_coach(principal: Principal, entity: str) -> None:
    if not principal.is_coach:
        raise Forbidden(entity, reason="Only coaches can author plans.")


def _check_session_mode(mode: SessionMode, athlete_group_id: Optional[int]) -> None:
    if mode == SessionMode.GROUP and athlete_group_id is None:
        raise ValidationError(
            "Group sessions need a target athlete group.", field="athlete_group_id"
        )


def _check_athlete_group(db: Session, principal: Principal, athlete_group_id: Optional[int]) -> None:
    if athlete_group_id is None:
        return
    group = db.get(AthleteGroup, athlete_group_id)
    if group is None:
        raise NotFound("Athlete group", athlete_group_id)
    policy.ensure_group_owner(principal, group)


def _build_preset(payload: PresetCreate, position: int) -> Preset:
    preset = Preset(
        exercise_id=payload.exercise_id,
        preset_order=payload.preset_order if payload.preset_order is not None else position,
        superset_id=payload.superset_id,
        notes=payload.notes,
    )
    used = {d.set_index for d in payload.details if d.set_index is not None}
    next_index = 1
    for detail_payload in payload.details:
        set_index = detail_payload.set_index
        if set_index is None:
            while next_index in used:
                next_index += 1
            set_index = next_index
            used.add(set_index)
        preset.details.append(
            PresetDetail(set_index=set_index, **detail_payload.model_dump(exclude={"set_index"}))
        )
    return preset


def _apply_dated_updates(db: Session, node, updates: dict[str, Any], action: str):
    start: date = updates.get("start_date", node.start_date)
    end: date = updates.get("end_date", node.end_date)
    if end < start:
        raise ValidationError("end_date must not be before start_date.", field="end_date")
    for field, value in updates.items():
        setattr(node, field, value)
    commit_or_raise(db, action)
    db.refresh(node)
    return node


def _retire_groups_of_mesocycles(db: Session, meso_ids: list[int]) -> None:
    if not meso_ids:
        return
    micro_ids = [
        row.id for row in db.query(Microcycle.id).filter(Microcycle.mesocycle_id.in_(meso_ids))
    ]
    _retire_groups(db, micro_ids)


def _retire_groups(db: Session, micro_ids: list[int]) -> None:
    if not micro_ids:
        return
    db.query(PresetGroup).filter(PresetGroup.microcycle_id.in_(micro_ids)).update(
        {PresetGroup.is_deleted: True, PresetGroup.microcycle_id: None},
        synchronize_session=False,
    )


def _bump_reps(reps: Optional[int], increase: int) -> Optional[int]:
    if reps is None or not increase:
        return reps
    return max(1, reps + increase)


def _bump_resistance(resistance: Optional[float], increase: float) -> Optional[float]:
    if resistance is None or not increase:
        return resistance
    return max(0.0, round(resistance + increase, 2))
