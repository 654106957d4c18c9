"""
Authorization predicates, one per operation.

Each ``ensure_*`` function takes the principal and the entity it acts on and
raises :class:`Forbidden` when the principal has no rights over it.
"""
from typing import Optional

from ..models.plan import Macrocycle, Mesocycle, Microcycle, PresetGroup
from ..models.session import TrainingSession
from ..models.user import Athlete, AthleteGroup
from .exceptions import Forbidden
from .security import Principal

PlanNode = Macrocycle | Mesocycle | Microcycle | PresetGroup


def owns_plan_node(principal: Principal, node: PlanNode) -> bool:
    return principal.is_coach and node.coach_id == principal.coach_id


def ensure_plan_owner(principal: Principal, node: PlanNode, entity: str) -> None:
    if not owns_plan_node(principal, node):
        raise Forbidden(entity, node.id)


def ensure_group_owner(principal: Principal, group: AthleteGroup) -> None:
    if not (principal.is_coach and group.coach_id == principal.coach_id):
        raise Forbidden("Athlete group", group.id)


def ensure_can_assign(principal: Principal, preset_group: PresetGroup) -> None:
    """Coaches assign their own templates; athletes may only self-assign."""
    if principal.is_coach:
        ensure_plan_owner(principal, preset_group, "Preset group")
        return
    if principal.is_athlete:
        return
    raise Forbidden("Preset group", preset_group.id)


def ensure_session_athlete(principal: Principal, session: TrainingSession) -> None:
    if not (principal.is_athlete and session.athlete_id == principal.athlete_id):
        raise Forbidden("Training session", session.id)


def ensure_can_complete(
    principal: Principal, session: TrainingSession, preset_group: Optional[PresetGroup]
) -> None:
    if principal.is_athlete and session.athlete_id == principal.athlete_id:
        return
    if preset_group is not None and owns_plan_node(principal, preset_group):
        return
    raise Forbidden("Training session", session.id)


def ensure_can_view_session(
    principal: Principal, session: TrainingSession, preset_group: Optional[PresetGroup]
) -> None:
    ensure_can_complete(principal, session, preset_group)


def ensure_can_view_athlete(
    principal: Principal, athlete: Athlete, group: Optional[AthleteGroup]
) -> None:
    if principal.is_athlete and principal.athlete_id == athlete.id:
        return
    if group is not None and principal.is_coach and group.coach_id == principal.coach_id:
        return
    raise Forbidden("Athlete", athlete.id)
