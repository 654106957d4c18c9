"""
Picks the single training session an athlete should see right now.

Rules are evaluated in order and the first match wins:

1. an ``ongoing`` session, most recently scheduled first;
2. an ``assigned`` or ``pending`` session scheduled today in the caller's
   timezone, earliest first;
3. the nearest future ``pending`` session;
4. the most recent ``completed`` session scheduled within the lookback window;
5. nothing.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Query, Session

from ..core import policy
from ..core.config import get_settings
from ..core.enums import DashboardSessionType, SessionStatus, UserRole
from ..core.exceptions import NotFound
from ..core.security import Principal
from ..core.timeutils import local_day_bounds, resolve_zone, to_utc, utcnow
from ..models.plan import PresetGroup
from ..models.session import TrainingSession
from ..models.user import Athlete, AthleteGroup
from ..schemas.dashboard import DashboardResponse, DashboardSession
from ..schemas.session import TrainingDetailRead, TrainingSessionRead
from . import plan_tree
from .lifecycle import fetch_details

logger = logging.getLogger(__name__)


def resolve_dashboard_session(
    db: Session,
    principal: Principal,
    athlete_id: Optional[int] = None,
    timezone: Optional[str] = None,
    now: Optional[datetime] = None,
) -> DashboardResponse:
    settings = get_settings()
    timezone = timezone or settings.default_timezone
    zone = resolve_zone(timezone)
    now = to_utc(now or utcnow())

    athlete = _load_athlete(db, principal, athlete_id)
    session, kind = pick_session(
        db, athlete.id, now, zone, settings.dashboard_completed_lookback_days
    )
    current = DashboardSession()
    if session is not None:
        group = db.get(PresetGroup, session.exercise_preset_group_id)
        current = DashboardSession(
            type=kind,
            session=TrainingSessionRead.model_validate(session),
            preset_group=plan_tree.build_preset_group_trees(db, [group])[0] if group else None,
            details=[TrainingDetailRead.model_validate(d) for d in fetch_details(db, session.id)],
        )
    logger.info(
        "Dashboard for athlete %s resolved to %s (%s)",
        athlete.id,
        session.id if session is not None else None,
        kind.value if kind else "none",
    )
    return DashboardResponse(
        athlete_id=athlete.id, timezone=timezone, resolved_at=now, current=current
    )


def pick_session(
    db: Session, athlete_id: int, now: datetime, zone, lookback_days: int = 7
) -> tuple[Optional[TrainingSession], Optional[DashboardSessionType]]:
    def sessions() -> Query:
        return db.query(TrainingSession).filter(TrainingSession.athlete_id == athlete_id)

    ongoing = (
        sessions()
        .filter(TrainingSession.status == SessionStatus.ONGOING)
        .order_by(TrainingSession.date_time.desc(), TrainingSession.id.desc())
        .first()
    )
    if ongoing:
        return ongoing, DashboardSessionType.ONGOING

    start, end = local_day_bounds(now, zone)
    today = (
        sessions()
        .filter(
            TrainingSession.status.in_((SessionStatus.ASSIGNED, SessionStatus.PENDING)),
            TrainingSession.date_time >= start,
            TrainingSession.date_time < end,
        )
        .order_by(TrainingSession.date_time, TrainingSession.id)
        .first()
    )
    if today:
        return today, DashboardSessionType.ASSIGNED

    upcoming = (
        sessions()
        .filter(TrainingSession.status == SessionStatus.PENDING, TrainingSession.date_time > now)
        .order_by(TrainingSession.date_time, TrainingSession.id)
        .first()
    )
    if upcoming:
        return upcoming, DashboardSessionType.PENDING

    recent = (
        sessions()
        .filter(
            TrainingSession.status == SessionStatus.COMPLETED,
            TrainingSession.date_time >= now - timedelta(days=lookback_days),
        )
        .order_by(TrainingSession.date_time.desc(), TrainingSession.id.desc())
        .first()
    )
    if recent:
        return recent, DashboardSessionType.COMPLETED
    return None, None


def _load_athlete(db: Session, principal: Principal, athlete_id: Optional[int]) -> Athlete:
    if athlete_id is None:
        if principal.role != UserRole.ATHLETE or principal.athlete_id is None:
            raise NotFound("Athlete")
        athlete_id = principal.athlete_id
    athlete = db.get(Athlete, athlete_id)
    if athlete is None:
        raise NotFound("Athlete", athlete_id)
    group = db.get(AthleteGroup, athlete.athlete_group_id) if athlete.athlete_group_id else None
    policy.ensure_can_view_athlete(principal, athlete, group)
    return athlete
