from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.enums import UserRole
from ..core.security import Principal
from ..database import get_db
from ..dependencies import require_role
from ..schemas.dashboard import DashboardResponse
from ..services.dashboard import resolve_dashboard_session

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/me/session", response_model=DashboardResponse)
def my_current_session(
    principal: Principal = Depends(require_role(UserRole.ATHLETE)),
    db: Session = Depends(get_db),
    timezone: Optional[str] = Query(default=None),
) -> DashboardResponse:
    return resolve_dashboard_session(db, principal, timezone=timezone)


@router.get("/athletes/{athlete_id}/session", response_model=DashboardResponse)
def athlete_current_session(
    athlete_id: int,
    principal: Principal = Depends(require_role(UserRole.COACH)),
    db: Session = Depends(get_db),
    timezone: Optional[str] = Query(default=None),
) -> DashboardResponse:
    return resolve_dashboard_session(db, principal, athlete_id=athlete_id, timezone=timezone)
