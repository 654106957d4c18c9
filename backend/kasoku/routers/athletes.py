from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..core.enums import UserRole
from ..core.security import Principal
from ..database import get_db
from ..dependencies import get_current_principal, require_role
from ..models.user import Athlete, AthleteGroup, AthleteGroupHistory
from ..schemas.athlete import (
    AthleteGroupCreate,
    AthleteGroupRead,
    AthleteGroupUpdate,
    AthleteGroupWithMembers,
    AthleteProfileUpdate,
    AthleteRead,
    GroupHistoryRead,
    GroupMembershipUpdate,
)
from ..services import athletes as athlete_service

router = APIRouter(prefix="/athletes", tags=["athletes"])


@router.get("/me", response_model=AthleteRead)
def get_my_profile(
    principal: Principal = Depends(require_role(UserRole.ATHLETE)),
    db: Session = Depends(get_db),
) -> Athlete:
    return athlete_service.get_my_profile(db, principal)


@router.put("/me", response_model=AthleteRead)
def update_my_profile(
    payload: AthleteProfileUpdate,
    principal: Principal = Depends(require_role(UserRole.ATHLETE)),
    db: Session = Depends(get_db),
) -> Athlete:
    return athlete_service.update_my_profile(db, principal, payload)


@router.post("/groups", response_model=AthleteGroupRead, status_code=status.HTTP_201_CREATED)
def create_group(
    payload: AthleteGroupCreate,
    principal: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> AthleteGroup:
    return athlete_service.create_group(db, principal, payload)


@router.get("/groups", response_model=list[AthleteGroupRead])
def list_groups(
    principal: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> list[AthleteGroup]:
    return athlete_service.list_groups(db, principal)


@router.get("/groups/{group_id}", response_model=AthleteGroupWithMembers)
def read_group(
    group_id: int,
    principal: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> AthleteGroupWithMembers:
    return athlete_service.get_group_with_members(db, principal, group_id)


@router.put("/groups/{group_id}", response_model=AthleteGroupRead)
def rename_group(
    group_id: int,
    payload: AthleteGroupUpdate,
    principal: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> AthleteGroup:
    return athlete_service.rename_group(db, principal, group_id, payload)


@router.delete("/groups/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_group(
    group_id: int,
    principal: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> None:
    athlete_service.delete_group(db, principal, group_id)


@router.get("/{athlete_id}", response_model=AthleteRead)
def read_athlete(
    athlete_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> Athlete:
    return athlete_service.get_athlete(db, principal, athlete_id)


@router.put("/{athlete_id}/group", response_model=AthleteRead)
def move_athlete(
    athlete_id: int,
    payload: GroupMembershipUpdate,
    principal: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> Athlete:
    return athlete_service.move_athlete(db, principal, athlete_id, payload.group_id, payload.notes)


@router.delete("/{athlete_id}/group", response_model=AthleteRead)
def remove_athlete_from_group(
    athlete_id: int,
    principal: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> Athlete:
    return athlete_service.move_athlete(db, principal, athlete_id, None)


@router.get("/{athlete_id}/group-history", response_model=list[GroupHistoryRead])
def group_history(
    athlete_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> list[AthleteGroupHistory]:
    return athlete_service.group_history(db, principal, athlete_id)
