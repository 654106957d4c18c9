from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..core.enums import UserRole
from ..core.security import Principal
from ..database import get_db
from ..dependencies import get_current_principal, require_role
from ..models.plan import Macrocycle, Mesocycle, Microcycle, Preset, PresetDetail, PresetGroup
from ..schemas.plan import (
    MacrocycleCreate,
    MacrocycleRead,
    MacrocycleTree,
    MacrocycleUpdate,
    MesocycleCreate,
    MesocycleRead,
    MesocycleTree,
    MesocycleUpdate,
    MicrocycleCreate,
    MicrocycleRead,
    MicrocycleTree,
    MicrocycleUpdate,
    PlanGenerationRequest,
    PlanNodeCreate,
    PlanNodeCreated,
    PresetCreate,
    PresetDetailCreate,
    PresetDetailRead,
    PresetGroupCreate,
    PresetGroupDuplicateRequest,
    PresetGroupRead,
    PresetGroupTree,
    PresetGroupUpdate,
    PresetRead,
    ProgressionRequest,
)
from ..schemas.session import AssignmentRequest, AssignmentResult
from ..services import assignment, plan_generator, plan_store

router = APIRouter(prefix="/plans", tags=["plans"])


@router.post("/nodes", response_model=PlanNodeCreated, status_code=status.HTTP_201_CREATED)
def create_plan_node(
    payload: PlanNodeCreate,
    principal: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> PlanNodeCreated:
    node_id = plan_store.create_plan_node(
        db, principal, payload.kind, payload.attributes, parent_id=payload.parent_id
    )
    return PlanNodeCreated(kind=payload.kind, id=node_id)


@router.post("/macrocycles", response_model=MacrocycleRead, status_code=status.HTTP_201_CREATED)
def create_macrocycle(
    payload: MacrocycleCreate,
    principal: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> Macrocycle:
    return plan_store.create_macrocycle(db, principal, payload)


@router.get("/macrocycles", response_model=list[MacrocycleRead])
def list_macrocycles(
    principal: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> list[Macrocycle]:
    return plan_store.list_macrocycles(db, principal)


@router.get("/macrocycles/{macrocycle_id}", response_model=MacrocycleTree)
def read_macrocycle(
    macrocycle_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> MacrocycleTree:
    return plan_store.get_macrocycle_tree(db, principal, macrocycle_id)


@router.put("/macrocycles/{macrocycle_id}", response_model=MacrocycleRead)
def update_macrocycle(
    macrocycle_id: int,
    payload: MacrocycleUpdate,
    principal: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> Macrocycle:
    return plan_store.update_macrocycle(db, principal, macrocycle_id, payload)


@router.delete("/macrocycles/{macrocycle_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_macrocycle(
    macrocycle_id: int,
    principal: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> None:
    plan_store.delete_macrocycle(db, principal, macrocycle_id)


@router.post("/mesocycles", response_model=MesocycleRead, status_code=status.HTTP_201_CREATED)
def create_mesocycle(
    payload: MesocycleCreate,
    principal: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> Mesocycle:
    return plan_store.create_mesocycle(db, principal, payload)


@router.get("/mesocycles/{mesocycle_id}", response_model=MesocycleTree)
def read_mesocycle(
    mesocycle_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> MesocycleTree:
    return plan_store.get_mesocycle_tree(db, principal, mesocycle_id)


@router.put("/mesocycles/{mesocycle_id}", response_model=MesocycleRead)
def update_mesocycle(
    mesocycle_id: int,
    payload: MesocycleUpdate,
    principal: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> Mesocycle:
    return plan_store.update_mesocycle(db, principal, mesocycle_id, payload)


@router.delete("/mesocycles/{mesocycle_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_mesocycle(
    mesocycle_id: int,
    principal: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> None:
    plan_store.delete_mesocycle(db, principal, mesocycle_id)


@router.post("/microcycles", response_model=MicrocycleRead, status_code=status.HTTP_201_CREATED)
def create_microcycle(
    payload: MicrocycleCreate,
    principal: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> Microcycle:
    return plan_store.create_microcycle(db, principal, payload)


@router.get("/microcycles/{microcycle_id}", response_model=MicrocycleTree)
def read_microcycle(
    microcycle_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> MicrocycleTree:
    return plan_store.get_microcycle_tree(db, principal, microcycle_id)


@router.put("/microcycles/{microcycle_id}", response_model=MicrocycleRead)
def update_microcycle(
    microcycle_id: int,
    payload: MicrocycleUpdate,
    principal: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> Microcycle:
    return plan_store.update_microcycle(db, principal, microcycle_id, payload)


@router.delete("/microcycles/{microcycle_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_microcycle(
    microcycle_id: int,
    principal: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> None:
    plan_store.delete_microcycle(db, principal, microcycle_id)


@router.post("/preset-groups", response_model=PresetGroupTree, status_code=status.HTTP_201_CREATED)
def create_preset_group(
    payload: PresetGroupCreate,
    principal: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> PresetGroupTree:
    group = plan_store.create_preset_group(db, principal, payload)
    return plan_store.get_preset_group_tree(db, principal, group.id)


@router.post(
    "/preset-groups/generate", response_model=PresetGroupTree, status_code=status.HTTP_201_CREATED
)
def generate_preset_group(
    payload: PlanGenerationRequest,
    principal: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> PresetGroupTree:
    group = plan_generator.generate_preset_group(db, principal, payload)
    return plan_store.get_preset_group_tree(db, principal, group.id)


@router.get("/preset-groups", response_model=list[PresetGroupRead])
def list_preset_groups(
    principal: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
    microcycle_id: Optional[int] = Query(default=None),
) -> list[PresetGroup]:
    return plan_store.list_preset_groups(db, principal, microcycle_id=microcycle_id)


@router.get("/preset-groups/{group_id}", response_model=PresetGroupTree)
def read_preset_group(
    group_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> PresetGroupTree:
    return plan_store.get_preset_group_tree(db, principal, group_id)


@router.put("/preset-groups/{group_id}", response_model=PresetGroupRead)
def update_preset_group(
    group_id: int,
    payload: PresetGroupUpdate,
    principal: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> PresetGroup:
    return plan_store.update_preset_group(db, principal, group_id, payload)


@router.delete("/preset-groups/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_preset_group(
    group_id: int,
    principal: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> None:
    plan_store.delete_preset_group(db, principal, group_id)


@router.post(
    "/preset-groups/{group_id}/duplicate",
    response_model=PresetGroupTree,
    status_code=status.HTTP_201_CREATED,
)
def duplicate_preset_group(
    group_id: int,
    payload: PresetGroupDuplicateRequest,
    principal: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> PresetGroupTree:
    copy = plan_store.duplicate_preset_group(db, principal, group_id, payload)
    return plan_store.get_preset_group_tree(db, principal, copy.id)


@router.post("/preset-groups/{group_id}/assign", response_model=AssignmentResult)
def assign_preset_group(
    group_id: int,
    payload: Optional[AssignmentRequest] = None,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> AssignmentResult:
    athlete_ids = payload.athlete_ids if payload else None
    return assignment.assign_preset_group(db, principal, group_id, athlete_ids=athlete_ids)


@router.post(
    "/preset-groups/{group_id}/presets",
    response_model=PresetRead,
    status_code=status.HTTP_201_CREATED,
)
def add_preset(
    group_id: int,
    payload: PresetCreate,
    principal: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> Preset:
    return plan_store.add_preset(db, principal, group_id, payload)


@router.delete("/presets/{preset_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_preset(
    preset_id: int,
    principal: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> None:
    plan_store.delete_preset(db, principal, preset_id)


@router.post(
    "/presets/{preset_id}/details",
    response_model=list[PresetDetailRead],
    status_code=status.HTTP_201_CREATED,
)
def add_preset_details(
    preset_id: int,
    payload: list[PresetDetailCreate],
    principal: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> list[PresetDetail]:
    return plan_store.add_preset_details(db, principal, preset_id, payload)


@router.post("/presets/{preset_id}/progression", response_model=list[PresetDetailRead])
def apply_progression(
    preset_id: int,
    payload: ProgressionRequest,
    principal: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> list[PresetDetail]:
    return plan_store.apply_progression(db, principal, preset_id, payload)
