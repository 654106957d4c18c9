from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.orm import Session

from .core.enums import UserRole
from .core.security import Principal, bearer_scheme, decode_access_token
from .database import get_db
from .models.user import Athlete, Coach, User
from .schemas.user import TokenData


def get_token_data(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> TokenData:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials.",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception
    try:
        payload = decode_access_token(credentials.credentials)
    except JWTError:
        raise credentials_exception
    token_data = TokenData.model_validate(payload)
    if not token_data.sub:
        raise credentials_exception
    return token_data


def get_current_user(
    token_data: TokenData = Depends(get_token_data), db: Session = Depends(get_db)
) -> User:
    user = db.query(User).filter(User.external_id == token_data.sub).first()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User is not onboarded.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def get_current_principal(
    current_user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> Principal:
    coach_id = None
    athlete_id = None
    if current_user.role == UserRole.COACH:
        coach = db.query(Coach).filter(Coach.user_id == current_user.id).first()
        coach_id = coach.id if coach else None
    else:
        athlete = db.query(Athlete).filter(Athlete.user_id == current_user.id).first()
        athlete_id = athlete.id if athlete else None
    return Principal(
        user_id=current_user.id,
        role=current_user.role,
        coach_id=coach_id,
        athlete_id=athlete_id,
    )


def require_role(expected_role: UserRole):
    def _role_dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role != expected_role:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role.")
        return principal

    return _role_dependency
