from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.enums import SessionStatus, UserRole
from ..core.security import Principal
from ..database import get_db
from ..dependencies import get_current_principal, require_role
from ..models.session import TrainingSession
from ..schemas.session import (
    BulkTransitionResult,
    SessionCompleteRequest,
    TrainingDetailBatchUpdate,
    TrainingDetailRead,
    TrainingSessionRead,
    TrainingSessionWithDetails,
)
from ..services import lifecycle

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.get("/me", response_model=list[TrainingSessionRead])
def list_my_sessions(
    principal: Principal = Depends(require_role(UserRole.ATHLETE)),
    db: Session = Depends(get_db),
    status: Optional[SessionStatus] = Query(default=None),
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    timezone: str = Query(default="UTC"),
) -> list[TrainingSession]:
    return lifecycle.list_athlete_sessions(
        db,
        principal,
        status=status,
        start_date=start_date,
        end_date=end_date,
        timezone=timezone,
    )


@router.get("/preset-group/{group_id}", response_model=list[TrainingSessionRead])
def list_preset_group_sessions(
    group_id: int,
    principal: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> list[TrainingSession]:
    return lifecycle.list_group_sessions(db, principal, group_id)


@router.post("/preset-group/{group_id}/start", response_model=BulkTransitionResult)
def start_group_sessions(
    group_id: int,
    principal: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> BulkTransitionResult:
    return lifecycle.start_group_sessions(db, principal, group_id)


@router.post("/preset-group/{group_id}/complete", response_model=BulkTransitionResult)
def complete_group_sessions(
    group_id: int,
    principal: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
) -> BulkTransitionResult:
    return lifecycle.complete_group_sessions(db, principal, group_id)


@router.get("/{session_id}", response_model=TrainingSessionWithDetails)
def read_session(
    session_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> TrainingSessionWithDetails:
    return lifecycle.read_session(db, principal, session_id)


@router.post("/{session_id}/start", response_model=TrainingSessionWithDetails)
def start_session(
    session_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> TrainingSessionWithDetails:
    return lifecycle.start_session(db, principal, session_id)


@router.put("/{session_id}/details", response_model=list[TrainingDetailRead])
def update_session_details(
    session_id: int,
    payload: TrainingDetailBatchUpdate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> list[TrainingDetailRead]:
    return lifecycle.update_session_details(db, principal, session_id, payload.details)


@router.post("/{session_id}/complete", response_model=TrainingSessionRead)
def complete_session(
    session_id: int,
    payload: Optional[SessionCompleteRequest] = None,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> TrainingSessionRead:
    notes = payload.notes if payload else None
    return lifecycle.complete_session(db, principal, session_id, notes=notes)
