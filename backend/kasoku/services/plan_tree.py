"""
Nested plan reads.

Every level is fetched with one ``IN`` query keyed on the parent ids of the
level above and stitched together in memory through id-keyed maps, so a tree
costs one query per level regardless of its size.
"""
from collections import defaultdict

from sqlalchemy.orm import Session

from ..models.plan import Macrocycle, Mesocycle, Microcycle, Preset, PresetDetail, PresetGroup
from ..schemas.plan import (
    ExerciseSummary,
    MacrocycleTree,
    MesocycleRead,
    MesocycleTree,
    MicrocycleRead,
    MicrocycleTree,
    PresetDetailRead,
    PresetGroupRead,
    PresetGroupTree,
    PresetRead,
    PresetTree,
)
from .catalog import exercise_type_names


def fetch_presets(db: Session, group_ids: list[int]) -> list[Preset]:
    if not group_ids:
        return []
    return (
        db.query(Preset)
        .filter(Preset.exercise_preset_group_id.in_(group_ids))
        .order_by(Preset.preset_order, Preset.id)
        .all()
    )


def fetch_preset_details(db: Session, preset_ids: list[int]) -> list[PresetDetail]:
    if not preset_ids:
        return []
    return (
        db.query(PresetDetail)
        .filter(PresetDetail.exercise_preset_id.in_(preset_ids))
        .order_by(PresetDetail.exercise_preset_id, PresetDetail.set_index)
        .all()
    )


def build_preset_group_trees(db: Session, groups: list[PresetGroup]) -> list[PresetGroupTree]:
    presets = fetch_presets(db, [group.id for group in groups])
    details = fetch_preset_details(db, [preset.id for preset in presets])
    exercises = exercise_type_names(db, {preset.exercise_id for preset in presets})

    details_by_preset: dict[int, list[PresetDetailRead]] = defaultdict(list)
    for detail in details:
        details_by_preset[detail.exercise_preset_id].append(PresetDetailRead.model_validate(detail))

    presets_by_group: dict[int, list[PresetTree]] = defaultdict(list)
    for preset in presets:
        name, type_name = exercises.get(preset.exercise_id, (None, None))
        summary = (
            ExerciseSummary(id=preset.exercise_id, name=name, exercise_type=type_name)
            if name is not None
            else None
        )
        presets_by_group[preset.exercise_preset_group_id].append(
            PresetTree(
                **PresetRead.model_validate(preset).model_dump(),
                exercise=summary,
                details=details_by_preset.get(preset.id, []),
            )
        )

    return [
        PresetGroupTree(
            **PresetGroupRead.model_validate(group).model_dump(),
            presets=presets_by_group.get(group.id, []),
        )
        for group in groups
    ]


def build_microcycle_trees(db: Session, microcycles: list[Microcycle]) -> list[MicrocycleTree]:
    micro_ids = [micro.id for micro in microcycles]
    groups = []
    if micro_ids:
        groups = (
            db.query(PresetGroup)
            .filter(PresetGroup.microcycle_id.in_(micro_ids), PresetGroup.is_deleted.is_(False))
            .order_by(PresetGroup.week, PresetGroup.day, PresetGroup.date, PresetGroup.id)
            .all()
        )
    groups_by_micro: dict[int, list[PresetGroupTree]] = defaultdict(list)
    for tree in build_preset_group_trees(db, groups):
        groups_by_micro[tree.microcycle_id].append(tree)

    return [
        MicrocycleTree(
            **MicrocycleRead.model_validate(micro).model_dump(),
            sessions=groups_by_micro.get(micro.id, []),
        )
        for micro in microcycles
    ]


def build_mesocycle_trees(db: Session, mesocycles: list[Mesocycle]) -> list[MesocycleTree]:
    meso_ids = [meso.id for meso in mesocycles]
    microcycles = []
    if meso_ids:
        microcycles = (
            db.query(Microcycle)
            .filter(Microcycle.mesocycle_id.in_(meso_ids))
            .order_by(Microcycle.week_index, Microcycle.start_date, Microcycle.id)
            .all()
        )
    weeks_by_meso: dict[int, list[MicrocycleTree]] = defaultdict(list)
    for tree in build_microcycle_trees(db, microcycles):
        weeks_by_meso[tree.mesocycle_id].append(tree)

    return [
        MesocycleTree(
            **MesocycleRead.model_validate(meso).model_dump(),
            weeks=weeks_by_meso.get(meso.id, []),
        )
        for meso in mesocycles
    ]


def build_macrocycle_tree(db: Session, macrocycle: Macrocycle) -> MacrocycleTree:
    mesocycles = (
        db.query(Mesocycle)
        .filter(Mesocycle.macrocycle_id == macrocycle.id)
        .order_by(Mesocycle.position, Mesocycle.start_date, Mesocycle.id)
        .all()
    )
    return MacrocycleTree(
        id=macrocycle.id,
        coach_id=macrocycle.coach_id,
        name=macrocycle.name,
        description=macrocycle.description,
        athlete_group_id=macrocycle.athlete_group_id,
        start_date=macrocycle.start_date,
        end_date=macrocycle.end_date,
        mesocycles=build_mesocycle_trees(db, mesocycles),
    )
