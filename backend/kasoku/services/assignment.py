"""
Fan-out of a preset group into one training session per target athlete.

All rows of one assignment go to the store as a single
``INSERT ... ON CONFLICT (athlete_id, exercise_preset_group_id) DO UPDATE``
statement. The conflict branch only touches rows that are still ``pending``
or ``assigned``, so a retried assignment never duplicates a session and
never pulls an ``ongoing`` or ``completed`` one back.
"""
import logging
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core import policy
from ..core.enums import STARTABLE_STATUSES, SessionMode, SessionStatus, UserRole
from ..core.exceptions import NotFound, PersistenceError, ValidationError
from ..core.security import Principal
from ..core.timeutils import schedule_for, utcnow
from ..models.plan import PresetGroup
from ..models.session import TrainingSession
from ..models.user import Athlete, AthleteGroup
from ..schemas.session import AssignmentResult, ItemOutcome

logger = logging.getLogger(__name__)

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def assign_preset_group(
    db: Session,
    principal: Principal,
    preset_group_id: int,
    athlete_ids: Optional[Iterable[int]] = None,
    now: Optional[datetime] = None,
) -> AssignmentResult:
    """Upsert one pending session per target athlete of ``preset_group_id``.

    Coaches fan a ``group`` template out to every current member of its
    athlete group; for an ``individual`` template they name the athletes.
    Athletes can only assign a template to themselves.
    """
    if principal.role == UserRole.ATHLETE and principal.athlete_id is None:
        raise NotFound("Athlete")
    group = db.get(PresetGroup, preset_group_id)
    if group is None or group.is_deleted:
        raise NotFound("Preset group", preset_group_id)
    policy.ensure_can_assign(principal, group)

    now = now or utcnow()
    scheduled = schedule_for(group.date, now)
    failed: list[ItemOutcome] = []

    if principal.is_athlete:
        athlete = db.get(Athlete, principal.athlete_id)
        targets = [(athlete.id, athlete.athlete_group_id or group.athlete_group_id)]
        mode = group.session_mode
    elif group.session_mode == SessionMode.GROUP:
        if group.athlete_group_id is None:
            raise ValidationError(
                "Group sessions need a target athlete group.",
                field="athlete_group_id",
                entity="Preset group",
                identifier=group.id,
            )
        members = (
            db.query(Athlete.id)
            .filter(Athlete.athlete_group_id == group.athlete_group_id)
            .order_by(Athlete.id)
            .all()
        )
        targets = [(row.id, group.athlete_group_id) for row in members]
        mode = SessionMode.GROUP
    else:
        targets, failed = _coached_athletes(db, principal, athlete_ids or [])
        mode = SessionMode.INDIVIDUAL

    result = AssignmentResult(preset_group_id=group.id, sessions_touched=0, failed=failed)
    if not targets:
        logger.info("Preset group %s has no athletes to assign", group.id)
        return result

    existing = {
        session.athlete_id: session
        for session in db.query(TrainingSession)
        .filter(
            TrainingSession.exercise_preset_group_id == group.id,
            TrainingSession.athlete_id.in_([athlete_id for athlete_id, _ in targets]),
        )
        .all()
    }
    rows = []
    for athlete_id, athlete_group_id in targets:
        current = existing.get(athlete_id)
        if current is not None and current.status not in STARTABLE_STATUSES:
            result.skipped.append(
                ItemOutcome(id=current.id, reason=f"session is already {current.status.value}")
            )
            continue
        rows.append(
            {
                "athlete_id": athlete_id,
                "athlete_group_id": athlete_group_id,
                "exercise_preset_group_id": group.id,
                "session_mode": mode,
                "date_time": scheduled,
                "status": SessionStatus.PENDING,
                "created_at": now,
                "updated_at": now,
            }
        )

    if rows:
        _upsert_sessions(db, rows, now)

    touched = {row["athlete_id"] for row in rows}
    for session in (
        db.query(TrainingSession)
        .filter(
            TrainingSession.exercise_preset_group_id == group.id,
            TrainingSession.athlete_id.in_(touched),
        )
        .order_by(TrainingSession.athlete_id)
        .all()
    ):
        if session.athlete_id in existing:
            result.updated.append(session.id)
        else:
            result.created.append(session.id)
    result.sessions_touched = len(result.created) + len(result.updated)

    logger.info(
        "Assigned preset group %s: %d created, %d updated, %d skipped, %d failed",
        group.id,
        len(result.created),
        len(result.updated),
        len(result.skipped),
        len(result.failed),
    )
    for outcome in result.skipped:
        logger.warning(
            "Assignment of preset group %s skipped session %s: %s",
            group.id,
            outcome.id,
            outcome.reason,
        )
    return result


def _upsert_sessions(db: Session, rows: list[dict], now: datetime) -> None:
    dialect = db.get_bind().dialect.name
    insert = _DIALECT_INSERTS.get(dialect)
    if insert is None:
        raise PersistenceError(f"Upserts are not supported on '{dialect}'.")

    table = TrainingSession.__table__
    stmt = insert(table).values(rows)
    stmt = stmt.on_conflict_do_update(
        index_elements=[table.c.athlete_id, table.c.exercise_preset_group_id],
        set_={
            "date_time": stmt.excluded.date_time,
            "athlete_group_id": stmt.excluded.athlete_group_id,
            "session_mode": stmt.excluded.session_mode,
            "updated_at": now,
        },
        where=table.c.status.in_(STARTABLE_STATUSES),
    )
    try:
        db.execute(stmt)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Batch upsert of %d training sessions failed: %s", len(rows), exc)
        raise PersistenceError(
            f"Failed to assign {len(rows)} training sessions.", entity="Training session"
        ) from exc


def _coached_athletes(
    db: Session, principal: Principal, athlete_ids: Iterable[int]
) -> tuple[list[tuple[int, Optional[int]]], list[ItemOutcome]]:
    requested = list(dict.fromkeys(athlete_ids))
    if not requested:
        raise ValidationError(
            "Individual templates need at least one athlete to assign to.", field="athlete_ids"
        )
    rows = (
        db.query(Athlete.id, Athlete.athlete_group_id, AthleteGroup.coach_id)
        .outerjoin(AthleteGroup, AthleteGroup.id == Athlete.athlete_group_id)
        .filter(Athlete.id.in_(requested))
        .all()
    )
    found = {row.id: row for row in rows}
    targets, failed = [], []
    for athlete_id in requested:
        row = found.get(athlete_id)
        if row is None or row.coach_id != principal.coach_id:
            failed.append(ItemOutcome(id=athlete_id, reason="athlete not found"))
            continue
        targets.append((row.id, row.athlete_group_id))
    return targets, failed
