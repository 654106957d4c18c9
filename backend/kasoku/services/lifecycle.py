"""
Training session state machine.

``pending``/``assigned`` -> ``ongoing`` -> ``completed``. Starting a session is
the only place training details are created, and it happens in the same
transaction as the status flip.
"""
import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from ..core import policy
from ..core.enums import STARTABLE_STATUSES, SessionStatus
from ..core.exceptions import InvalidState, NotFound, PersistenceError, ValidationError
from ..core.security import Principal
from ..core.timeutils import day_bounds, local_day_bounds, resolve_zone, utcnow
from ..database import commit_or_raise
from ..models.plan import PresetGroup
from ..models.session import TrainingDetail, TrainingSession
from ..schemas.session import (
    BulkTransitionResult,
    ItemOutcome,
    TrainingDetailRead,
    TrainingDetailUpdate,
    TrainingSessionRead,
    TrainingSessionWithDetails,
)
from . import plan_tree
from .plan_store import get_owned

logger = logging.getLogger(__name__)

ENTITY = "Training session"

_DETAIL_FIELDS = (
    "reps",
    "resistance",
    "resistance_unit_id",
    "distance",
    "duration",
    "tempo",
    "power",
    "velocity",
)


def get_training_session(db: Session, session_id: int) -> TrainingSession:
    session = db.get(TrainingSession, session_id)
    if session is None:
        raise NotFound(ENTITY, session_id)
    return session


def fetch_details(db: Session, session_id: int) -> list[TrainingDetail]:
    return (
        db.query(TrainingDetail)
        .filter(TrainingDetail.exercise_training_session_id == session_id)
        .order_by(TrainingDetail.exercise_preset_id, TrainingDetail.set_index, TrainingDetail.id)
        .all()
    )


def with_details(db: Session, session: TrainingSession) -> TrainingSessionWithDetails:
    return TrainingSessionWithDetails(
        **TrainingSessionRead.model_validate(session).model_dump(),
        details=[TrainingDetailRead.model_validate(d) for d in fetch_details(db, session.id)],
    )


def start_session(db: Session, principal: Principal, session_id: int) -> TrainingSessionWithDetails:
    session = get_training_session(db, session_id)
    policy.ensure_session_athlete(principal, session)
    if session.status == SessionStatus.ONGOING:
        if _has_details(db, session.id):
            return with_details(db, session)
    elif session.status not in STARTABLE_STATUSES:
        raise InvalidState(ENTITY, session.id, session.status.value, SessionStatus.ONGOING.value)

    created = _begin(db, session)
    commit_or_raise(db, "start training session")
    db.refresh(session)
    logger.info(
        "Athlete %s started session %s with %d details", session.athlete_id, session.id, created
    )
    return with_details(db, session)


def update_session_details(
    db: Session, principal: Principal, session_id: int, updates: list[TrainingDetailUpdate]
) -> list[TrainingDetailRead]:
    """Apply every detail update of the call, or none of them."""
    session = get_training_session(db, session_id)
    policy.ensure_session_athlete(principal, session)
    if session.status != SessionStatus.ONGOING:
        raise InvalidState(ENTITY, session.id, session.status.value, SessionStatus.ONGOING.value)

    requested = {update.id for update in updates}
    rows = {
        detail.id: detail
        for detail in db.query(TrainingDetail)
        .filter(
            TrainingDetail.exercise_training_session_id == session.id,
            TrainingDetail.id.in_(requested),
        )
        .all()
    }
    unknown = sorted(requested - rows.keys())
    if unknown:
        raise ValidationError(
            f"Unknown training detail ids for session {session.id}: {unknown}.",
            field="details.id",
            entity="Training detail",
            identifier=unknown,
        )

    for update in updates:
        detail = rows[update.id]
        for field, value in update.model_dump(exclude_unset=True, exclude={"id"}).items():
            if field == "completed" and value is None:
                continue
            setattr(detail, field, value)
    commit_or_raise(db, "update training details")
    logger.info("Updated %d details of session %s", len(rows), session.id)
    return [
        TrainingDetailRead.model_validate(detail)
        for detail in fetch_details(db, session.id)
        if detail.id in requested
    ]


def complete_session(
    db: Session, principal: Principal, session_id: int, notes: Optional[str] = None
) -> TrainingSessionRead:
    session = get_training_session(db, session_id)
    policy.ensure_can_complete(principal, session, db.get(PresetGroup, session.exercise_preset_group_id))
    if session.status == SessionStatus.COMPLETED:
        return TrainingSessionRead.model_validate(session)
    if session.status != SessionStatus.ONGOING:
        raise InvalidState(ENTITY, session.id, session.status.value, SessionStatus.COMPLETED.value)

    session.status = SessionStatus.COMPLETED
    if notes is not None:
        session.notes = notes
    commit_or_raise(db, "complete training session")
    db.refresh(session)
    logger.info("Session %s completed", session.id)
    return TrainingSessionRead.model_validate(session)


def start_group_sessions(db: Session, principal: Principal, preset_group_id: int) -> BulkTransitionResult:
    group = get_owned(db, principal, PresetGroup, preset_group_id)
    result = BulkTransitionResult(preset_group_id=group.id, status=SessionStatus.ONGOING)
    for session in _group_sessions(db, group.id):
        if session.status not in STARTABLE_STATUSES:
            _skip(result, session)
            continue
        _begin(db, session)
        _commit_item(db, result, session, "start")
    _log_bulk(result)
    return result


def complete_group_sessions(
    db: Session, principal: Principal, preset_group_id: int
) -> BulkTransitionResult:
    group = get_owned(db, principal, PresetGroup, preset_group_id)
    result = BulkTransitionResult(preset_group_id=group.id, status=SessionStatus.COMPLETED)
    for session in _group_sessions(db, group.id):
        if session.status != SessionStatus.ONGOING:
            _skip(result, session)
            continue
        session.status = SessionStatus.COMPLETED
        _commit_item(db, result, session, "complete")
    _log_bulk(result)
    return result


def promote_due_sessions(db: Session, now: Optional[datetime] = None, timezone: str = "UTC") -> int:
    """Flip ``pending`` sessions scheduled up to the end of today to ``assigned``."""
    now = now or utcnow()
    _, end = local_day_bounds(now, resolve_zone(timezone))
    count = (
        db.query(TrainingSession)
        .filter(TrainingSession.status == SessionStatus.PENDING, TrainingSession.date_time < end)
        .update(
            {TrainingSession.status: SessionStatus.ASSIGNED, TrainingSession.updated_at: now},
            synchronize_session=False,
        )
    )
    commit_or_raise(db, "promote due sessions")
    logger.info("Promoted %d due sessions to assigned", count)
    return count


def read_session(db: Session, principal: Principal, session_id: int) -> TrainingSessionWithDetails:
    session = get_training_session(db, session_id)
    policy.ensure_can_view_session(
        principal, session, db.get(PresetGroup, session.exercise_preset_group_id)
    )
    return with_details(db, session)


def list_athlete_sessions(
    db: Session,
    principal: Principal,
    status: Optional[SessionStatus] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    timezone: str = "UTC",
) -> list[TrainingSession]:
    if principal.athlete_id is None:
        raise NotFound("Athlete")
    zone = resolve_zone(timezone)
    query = db.query(TrainingSession).filter(TrainingSession.athlete_id == principal.athlete_id)
    if status:
        query = query.filter(TrainingSession.status == status)
    if start_date:
        query = query.filter(TrainingSession.date_time >= day_bounds(start_date, zone)[0])
    if end_date:
        query = query.filter(TrainingSession.date_time < day_bounds(end_date, zone)[1])
    return query.order_by(TrainingSession.date_time.desc(), TrainingSession.id).all()


def list_group_sessions(db: Session, principal: Principal, preset_group_id: int) -> list[TrainingSession]:
    group = get_owned(db, principal, PresetGroup, preset_group_id)
    return _group_sessions(db, group.id)


def _begin(db: Session, session: TrainingSession) -> int:
    """Materialize training details from the preset details and flip to ongoing."""
    created = 0
    if not _has_details(db, session.id):
        presets = plan_tree.fetch_presets(db, [session.exercise_preset_group_id])
        for detail in plan_tree.fetch_preset_details(db, [preset.id for preset in presets]):
            db.add(
                TrainingDetail(
                    exercise_training_session_id=session.id,
                    exercise_preset_id=detail.exercise_preset_id,
                    set_index=detail.set_index,
                    completed=False,
                    **{field: getattr(detail, field) for field in _DETAIL_FIELDS},
                )
            )
            created += 1
    session.status = SessionStatus.ONGOING
    return created


def _has_details(db: Session, session_id: int) -> bool:
    return (
        db.query(TrainingDetail.id)
        .filter(TrainingDetail.exercise_training_session_id == session_id)
        .first()
        is not None
    )


def _group_sessions(db: Session, preset_group_id: int) -> list[TrainingSession]:
    return (
        db.query(TrainingSession)
        .filter(TrainingSession.exercise_preset_group_id == preset_group_id)
        .order_by(TrainingSession.athlete_id)
        .all()
    )


def _skip(result: BulkTransitionResult, session: TrainingSession) -> None:
    result.skipped.append(ItemOutcome(id=session.id, reason=f"session is {session.status.value}"))
    logger.warning(
        "Skipping session %s of preset group %s: status is %s",
        session.id,
        result.preset_group_id,
        session.status.value,
    )


def _commit_item(db: Session, result: BulkTransitionResult, session: TrainingSession, action: str) -> None:
    session_id = session.id
    try:
        commit_or_raise(db, f"{action} training session {session_id}")
    except PersistenceError as exc:
        result.failed.append(ItemOutcome(id=session_id, reason=exc.detail))
        return
    result.transitioned.append(session_id)


def _log_bulk(result: BulkTransitionResult) -> None:
    logger.info(
        "Bulk %s of preset group %s: %d transitioned, %d skipped, %d failed",
        result.status.value,
        result.preset_group_id,
        len(result.transitioned),
        len(result.skipped),
        len(result.failed),
    )
