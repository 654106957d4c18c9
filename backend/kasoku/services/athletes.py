import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..core import policy
from ..core.enums import UserRole
from ..core.exceptions import Forbidden, NotFound, ValidationError
from ..core.security import Principal
from ..database import commit_or_raise
from ..models.user import Athlete, AthleteGroup, AthleteGroupHistory, Coach, User
from ..schemas.athlete import (
    AthleteGroupCreate,
    AthleteGroupRead,
    AthleteGroupUpdate,
    AthleteGroupWithMembers,
    AthleteProfileUpdate,
    AthleteRead,
)
from ..schemas.user import OnboardRequest

logger = logging.getLogger(__name__)


def onboard_user(db: Session, external_id: str, payload: OnboardRequest) -> User:
    """Create the user and its role profile for an identity-provider subject.

    Onboarding twice returns the existing user; the role cannot change.
    """
    user = db.query(User).filter(User.external_id == external_id).first()
    if user is not None:
        if user.role != payload.role:
            raise ValidationError(
                f"User is already onboarded as {user.role.value}.", field="role"
            )
        return user

    user = User(
        external_id=external_id,
        name=payload.name,
        email=payload.email,
        role=payload.role,
    )
    if payload.role == UserRole.COACH:
        user.coach = Coach(speciality=payload.speciality)
    else:
        user.athlete = Athlete(
            height_cm=payload.height_cm,
            weight_kg=payload.weight_kg,
            training_goals=payload.training_goals,
            experience=payload.experience,
            events=list(payload.events),
        )
    db.add(user)
    commit_or_raise(db, "onboard user")
    db.refresh(user)
    logger.info("Onboarded %s user %s", user.role.value, user.id)
    return user


def get_my_profile(db: Session, principal: Principal) -> Athlete:
    if principal.athlete_id is None:
        raise NotFound("Athlete")
    athlete = db.get(Athlete, principal.athlete_id)
    if athlete is None:
        raise NotFound("Athlete", principal.athlete_id)
    return athlete


def update_my_profile(db: Session, principal: Principal, payload: AthleteProfileUpdate) -> Athlete:
    athlete = get_my_profile(db, principal)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if field == "events" and value is None:
            value = []
        setattr(athlete, field, value)
    commit_or_raise(db, "update athlete profile")
    db.refresh(athlete)
    return athlete


def get_athlete(db: Session, principal: Principal, athlete_id: int) -> Athlete:
    athlete = db.get(Athlete, athlete_id)
    if athlete is None:
        raise NotFound("Athlete", athlete_id)
    group = db.get(AthleteGroup, athlete.athlete_group_id) if athlete.athlete_group_id else None
    policy.ensure_can_view_athlete(principal, athlete, group)
    return athlete


def create_group(db: Session, principal: Principal, payload: AthleteGroupCreate) -> AthleteGroup:
    if not principal.is_coach:
        raise Forbidden("Athlete group", reason="Only coaches can manage athlete groups.")
    group = AthleteGroup(coach_id=principal.coach_id, group_name=payload.group_name)
    db.add(group)
    commit_or_raise(db, "create athlete group")
    db.refresh(group)
    return group


def list_groups(db: Session, principal: Principal) -> list[AthleteGroup]:
    return (
        db.query(AthleteGroup)
        .filter(AthleteGroup.coach_id == principal.coach_id)
        .order_by(AthleteGroup.group_name, AthleteGroup.id)
        .all()
    )


def get_group(db: Session, principal: Principal, group_id: int) -> AthleteGroup:
    group = db.get(AthleteGroup, group_id)
    if group is None:
        raise NotFound("Athlete group", group_id)
    policy.ensure_group_owner(principal, group)
    return group


def get_group_with_members(db: Session, principal: Principal, group_id: int) -> AthleteGroupWithMembers:
    group = get_group(db, principal, group_id)
    members = (
        db.query(Athlete).filter(Athlete.athlete_group_id == group.id).order_by(Athlete.id).all()
    )
    return AthleteGroupWithMembers(
        **AthleteGroupRead.model_validate(group).model_dump(),
        athletes=[AthleteRead.model_validate(member) for member in members],
    )


def rename_group(
    db: Session, principal: Principal, group_id: int, payload: AthleteGroupUpdate
) -> AthleteGroup:
    group = get_group(db, principal, group_id)
    group.group_name = payload.group_name
    commit_or_raise(db, "rename athlete group")
    db.refresh(group)
    return group


def delete_group(db: Session, principal: Principal, group_id: int) -> None:
    """Delete a group, detaching its members and recording their removal."""
    group = get_group(db, principal, group_id)
    members = db.query(Athlete).filter(Athlete.athlete_group_id == group.id).all()
    for athlete in members:
        athlete.athlete_group_id = None
        db.add(
            AthleteGroupHistory(
                athlete_id=athlete.id,
                group_id=None,
                created_by=principal.user_id,
                notes=f"Group '{group.group_name}' deleted",
            )
        )
    db.delete(group)
    commit_or_raise(db, "delete athlete group")
    logger.info("Deleted athlete group %s and detached %d athletes", group_id, len(members))


def move_athlete(
    db: Session,
    principal: Principal,
    athlete_id: int,
    group_id: Optional[int],
    notes: Optional[str] = None,
) -> Athlete:
    """Move an athlete into ``group_id``, or out of any group when it is ``None``.

    Every effective change appends exactly one history row.
    """
    athlete = db.get(Athlete, athlete_id)
    if athlete is None:
        raise NotFound("Athlete", athlete_id)
    current = db.get(AthleteGroup, athlete.athlete_group_id) if athlete.athlete_group_id else None
    if current is not None:
        policy.ensure_group_owner(principal, current)
    elif not principal.is_coach:
        raise Forbidden("Athlete", athlete_id)
    if group_id is not None:
        get_group(db, principal, group_id)
    if athlete.athlete_group_id == group_id:
        return athlete

    athlete.athlete_group_id = group_id
    db.add(
        AthleteGroupHistory(
            athlete_id=athlete.id,
            group_id=group_id,
            created_by=principal.user_id,
            notes=notes,
        )
    )
    commit_or_raise(db, "change athlete group")
    db.refresh(athlete)
    logger.info("Athlete %s moved to group %s by user %s", athlete.id, group_id, principal.user_id)
    return athlete


def group_history(db: Session, principal: Principal, athlete_id: int) -> list[AthleteGroupHistory]:
    athlete = db.get(Athlete, athlete_id)
    if athlete is None:
        raise NotFound("Athlete", athlete_id)
    if not _has_coached(db, principal, athlete):
        group = db.get(AthleteGroup, athlete.athlete_group_id) if athlete.athlete_group_id else None
        policy.ensure_can_view_athlete(principal, athlete, group)
    return (
        db.query(AthleteGroupHistory)
        .filter(AthleteGroupHistory.athlete_id == athlete.id)
        .order_by(AthleteGroupHistory.created_at.desc(), AthleteGroupHistory.id.desc())
        .all()
    )


def _has_coached(db: Session, principal: Principal, athlete: Athlete) -> bool:
    """True when any group in the athlete's history belongs to the calling coach."""
    if not principal.is_coach:
        return False
    return (
        db.query(AthleteGroupHistory.id)
        .join(AthleteGroup, AthleteGroup.id == AthleteGroupHistory.group_id)
        .filter(
            AthleteGroupHistory.athlete_id == athlete.id,
            AthleteGroup.coach_id == principal.coach_id,
        )
        .first()
        is not None
    )
