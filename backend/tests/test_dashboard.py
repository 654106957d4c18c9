from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient

from kasoku.core.enums import DashboardSessionType, SessionStatus, UserRole
from kasoku.core.exceptions import NotFound, ValidationError
from kasoku.core.security import Principal
from kasoku.models.plan import PresetGroup
from kasoku.models.session import TrainingSession
from kasoku.models.user import Athlete, Coach, User
from kasoku.services.dashboard import resolve_dashboard_session

NOW = datetime(2026, 3, 10, 15, 0, tzinfo=timezone.utc)


@pytest.fixture()
def world(db_session):
    coach_user = User(external_id="coach", name="Coach", role=UserRole.COACH)
    coach_user.coach = Coach()
    athlete_user = User(external_id="athlete", name="Athlete", role=UserRole.ATHLETE)
    athlete_user.athlete = Athlete(events=[])
    db_session.add_all([coach_user, athlete_user])
    db_session.commit()
    principal = Principal(
        user_id=athlete_user.id, role=UserRole.ATHLETE, athlete_id=athlete_user.athlete.id
    )
    return {"db": db_session, "coach_id": coach_user.coach.id, "athlete_id": athlete_user.athlete.id, "principal": principal}


def _session(world, status: SessionStatus, when: datetime) -> int:
    db = world["db"]
    group = PresetGroup(coach_id=world["coach_id"], name=f"{status.value} {when:%Y-%m-%d %H:%M}")
    db.add(group)
    db.flush()
    session = TrainingSession(
        athlete_id=world["athlete_id"],
        exercise_preset_group_id=group.id,
        date_time=when,
        status=status,
    )
    db.add(session)
    db.commit()
    return session.id


def _remove(world, session_id: int) -> None:
    db = world["db"]
    db.delete(db.get(TrainingSession, session_id))
    db.commit()


def _resolve(world, tz: str = "UTC", now: datetime = NOW):
    return resolve_dashboard_session(world["db"], world["principal"], timezone=tz, now=now).current


def test_precedence_ongoing_then_today_then_recent_completed(world):
    ongoing = _session(world, SessionStatus.ONGOING, NOW - timedelta(days=2))
    today = _session(world, SessionStatus.ASSIGNED, NOW.replace(hour=9))
    completed = _session(world, SessionStatus.COMPLETED, NOW - timedelta(days=6))

    current = _resolve(world)
    assert current.type == DashboardSessionType.ONGOING
    assert current.session.id == ongoing

    _remove(world, ongoing)
    current = _resolve(world)
    assert current.type == DashboardSessionType.ASSIGNED
    assert current.session.id == today

    _remove(world, today)
    current = _resolve(world)
    assert current.type == DashboardSessionType.COMPLETED
    assert current.session.id == completed


def test_completed_outside_window_resolves_to_none(world):
    _session(world, SessionStatus.COMPLETED, NOW - timedelta(days=8))
    current = _resolve(world)
    assert current.type is None
    assert current.session is None


def test_next_future_pending_is_picked_earliest_first(world):
    _session(world, SessionStatus.PENDING, NOW + timedelta(days=5))
    soon = _session(world, SessionStatus.PENDING, NOW + timedelta(days=2))
    _session(world, SessionStatus.COMPLETED, NOW - timedelta(days=1))

    current = _resolve(world)
    assert current.type == DashboardSessionType.PENDING
    assert current.session.id == soon


def test_today_pending_is_shown_as_assigned(world):
    today = _session(world, SessionStatus.PENDING, NOW - timedelta(hours=3))
    current = _resolve(world)
    assert current.type == DashboardSessionType.ASSIGNED
    assert current.session.id == today

    _remove(world, today)
    upcoming = _session(world, SessionStatus.PENDING, NOW + timedelta(days=2))
    current = _resolve(world)
    assert current.type == DashboardSessionType.PENDING
    assert current.session.id == upcoming


def test_today_uses_the_callers_calendar_day(world):
    # 2026-03-11 02:00 UTC is still 2026-03-10 in Los Angeles
    late = datetime(2026, 3, 11, 2, 0, tzinfo=timezone.utc)
    session_id = _session(world, SessionStatus.ASSIGNED, late)
    now = datetime(2026, 3, 10, 20, 0, tzinfo=timezone.utc)

    pacific = _resolve(world, tz="America/Los_Angeles", now=now)
    assert pacific.type == DashboardSessionType.ASSIGNED
    assert pacific.session.id == session_id
    assert late.astimezone(ZoneInfo("America/Los_Angeles")).day == 10

    utc = _resolve(world, tz="UTC", now=now)
    assert utc.type is None


def test_unknown_timezone_is_rejected(world):
    with pytest.raises(ValidationError):
        _resolve(world, tz="Mars/Olympus")


def test_athlete_without_profile_is_not_found(world):
    principal = Principal(user_id=999, role=UserRole.ATHLETE)
    with pytest.raises(NotFound):
        resolve_dashboard_session(world["db"], principal, now=NOW)


def test_dashboard_routes(client: TestClient, api):
    coach = api.onboard("coach")
    athlete = api.onboard("athlete")
    stranger = api.onboard("coach")
    api.group(coach, members=(athlete,))
    template = api.preset_group(coach, api.exercise(coach))
    api.assign(coach, template["id"], athlete_ids=[athlete["athlete_id"]])

    mine = client.get("/dashboard/me/session", params={"timezone": "Europe/Madrid"}, headers=athlete["headers"])
    assert mine.status_code == 200, mine.text
    body = mine.json()
    assert body["timezone"] == "Europe/Madrid"
    assert body["current"]["type"] == "assigned"
    assert body["current"]["preset_group"]["id"] == template["id"]
    assert len(body["current"]["preset_group"]["presets"][0]["details"]) == 3

    coach_view = client.get(f"/dashboard/athletes/{athlete['athlete_id']}/session", headers=coach["headers"])
    assert coach_view.status_code == 200
    assert coach_view.json()["current"]["session"]["id"] == body["current"]["session"]["id"]

    hidden = client.get(f"/dashboard/athletes/{athlete['athlete_id']}/session", headers=stranger["headers"])
    assert hidden.status_code == 404
