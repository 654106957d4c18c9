from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..core.security import Principal
from ..database import get_db
from ..dependencies import get_current_principal, get_current_user, get_token_data
from ..models.user import User
from ..schemas.user import OnboardRequest, PrincipalRead, TokenData, UserRead
from ..services import athletes as athlete_service

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/onboard", response_model=PrincipalRead, status_code=status.HTTP_201_CREATED)
def onboard(
    payload: OnboardRequest,
    token_data: TokenData = Depends(get_token_data),
    db: Session = Depends(get_db),
) -> PrincipalRead:
    user = athlete_service.onboard_user(db, token_data.sub, payload)
    return _principal_read(user)


@router.get("/me", response_model=PrincipalRead)
def read_me(
    current_user: User = Depends(get_current_user),
    principal: Principal = Depends(get_current_principal),
) -> PrincipalRead:
    return PrincipalRead(
        user=UserRead.model_validate(current_user),
        coach_id=principal.coach_id,
        athlete_id=principal.athlete_id,
    )


def _principal_read(user: User) -> PrincipalRead:
    return PrincipalRead(
        user=UserRead.model_validate(user),
        coach_id=user.coach.id if user.coach else None,
        athlete_id=user.athlete.id if user.athlete else None,
    )
