from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi.security import HTTPBearer
from jose import jwt

from .config import get_settings
from .enums import UserRole

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, as handed to every service call."""

    user_id: int
    role: UserRole
    coach_id: Optional[int] = None
    athlete_id: Optional[int] = None

    @property
    def is_coach(self) -> bool:
        return self.role == UserRole.COACH and self.coach_id is not None

    @property
    def is_athlete(self) -> bool:
        return self.role == UserRole.ATHLETE and self.athlete_id is not None


def create_access_token(subject: Dict[str, Any], expires_delta: timedelta | None = None) -> str:
    settings = get_settings()
    to_encode = subject.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    settings = get_settings()
    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
