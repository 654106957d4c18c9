import pytest
from fastapi.testclient import TestClient

from kasoku.core.enums import SessionMode, SessionStatus, UserRole
from kasoku.core.exceptions import PersistenceError
from kasoku.core.security import Principal
from kasoku.models.session import TrainingSession
from kasoku.services import assignment


def _squad(api, size: int = 3):
    coach = api.onboard("coach")
    athletes = [api.onboard("athlete") for _ in range(size)]
    group_id = api.group(coach, members=tuple(athletes))
    squat = api.exercise(coach)
    template = api.preset_group(
        coach, squat, session_mode="group", athlete_group_id=group_id, date="2026-03-02"
    )
    return coach, athletes, group_id, template


def test_group_fan_out_creates_one_pending_session_per_member(api, db_session):
    coach, athletes, group_id, template = _squad(api)

    result = api.assign(coach, template["id"])
    assert result["sessions_touched"] == 3
    assert len(result["created"]) == 3
    assert result["updated"] == [] and result["failed"] == []

    rows = db_session.query(TrainingSession).order_by(TrainingSession.athlete_id).all()
    assert [row.athlete_id for row in rows] == [a["athlete_id"] for a in athletes]
    assert {row.status for row in rows} == {SessionStatus.PENDING}
    assert {row.exercise_preset_group_id for row in rows} == {template["id"]}
    assert {row.athlete_group_id for row in rows} == {group_id}


def test_repeated_assignment_is_idempotent_and_never_regresses(client: TestClient, api, db_session):
    coach, athletes, _, template = _squad(api)
    api.assign(coach, template["id"])

    first = api.my_sessions(athletes[0])[0]
    started = client.post(f"/sessions/{first['id']}/start", headers=athletes[0]["headers"])
    assert started.status_code == 200, started.text

    again = api.assign(coach, template["id"])
    assert again["created"] == []
    assert len(again["updated"]) == 2
    assert [item["id"] for item in again["skipped"]] == [first["id"]]

    rows = db_session.query(TrainingSession).all()
    assert len(rows) == 3
    statuses = {row.athlete_id: row.status for row in rows}
    assert statuses[athletes[0]["athlete_id"]] == SessionStatus.ONGOING


def test_self_assignment_bypasses_group_membership(api, db_session):
    coach, _, _, template = _squad(api)
    outsider = api.onboard("athlete")

    result = api.assign(outsider, template["id"])
    assert result["sessions_touched"] == 1

    rows = (
        db_session.query(TrainingSession)
        .filter(TrainingSession.athlete_id == outsider["athlete_id"])
        .all()
    )
    assert len(rows) == 1
    assert rows[0].status == SessionStatus.PENDING
    assert rows[0].session_mode == SessionMode.GROUP


def test_coach_individual_assignment_reports_unknown_athletes(api):
    coach = api.onboard("coach")
    mine = api.onboard("athlete")
    stranger = api.onboard("athlete")
    api.group(coach, members=(mine,))
    squat = api.exercise(coach)
    template = api.preset_group(coach, squat)

    result = api.assign(coach, template["id"], athlete_ids=[mine["athlete_id"], stranger["athlete_id"]])
    assert result["sessions_touched"] == 1
    assert result["failed"] == [{"id": stranger["athlete_id"], "reason": "athlete not found"}]


def test_individual_assignment_without_athletes_is_invalid(client: TestClient, api):
    coach = api.onboard("coach")
    squat = api.exercise(coach)
    template = api.preset_group(coach, squat)

    response = client.post(f"/plans/preset-groups/{template['id']}/assign", headers=coach["headers"])
    assert response.status_code == 422
    assert response.json()["field"] == "athlete_ids"


def test_other_coach_cannot_assign(client: TestClient, api):
    _, _, _, template = _squad(api)
    intruder = api.onboard("coach")

    response = client.post(f"/plans/preset-groups/{template['id']}/assign", headers=intruder["headers"])
    assert response.status_code == 404
    assert response.json()["detail"] == "Preset group not found."


def test_deleted_template_cannot_be_assigned(client: TestClient, api):
    coach, _, _, template = _squad(api)
    client.delete(f"/plans/preset-groups/{template['id']}", headers=coach["headers"])

    response = client.post(f"/plans/preset-groups/{template['id']}/assign", headers=coach["headers"])
    assert response.status_code == 404


def test_failed_upsert_surfaces_persistence_error(api, db_session, monkeypatch):
    coach, _, _, template = _squad(api)
    principal = Principal(user_id=coach["user_id"], role=UserRole.COACH, coach_id=coach["coach_id"])
    monkeypatch.setattr(assignment, "_DIALECT_INSERTS", {})

    with pytest.raises(PersistenceError):
        assignment.assign_preset_group(db_session, principal, template["id"])
    assert db_session.query(TrainingSession).count() == 0
