import pytest
from fastapi.testclient import TestClient

from kasoku.core.security import create_access_token
from kasoku.models.user import AthleteGroupHistory, ImmutableRowError


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def test_onboarding_is_idempotent_per_subject(client: TestClient):
    headers = auth_header(create_access_token({"sub": "idp|42", "role": "athlete"}))
    payload = {"name": "Ana", "role": "athlete", "events": ["400m"], "height_cm": 170}

    first = client.post("/users/onboard", json=payload, headers=headers)
    second = client.post("/users/onboard", json=payload, headers=headers)
    assert first.status_code == second.status_code == 201
    assert first.json()["user"]["id"] == second.json()["user"]["id"]
    assert first.json()["athlete_id"] is not None

    conflict = client.post("/users/onboard", json={**payload, "role": "coach"}, headers=headers)
    assert conflict.status_code == 422

    me = client.get("/users/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["user"]["external_id"] == "idp|42"


def test_unknown_subject_is_unauthorized(client: TestClient):
    headers = auth_header(create_access_token({"sub": "ghost", "role": "coach"}))
    assert client.get("/users/me", headers=headers).status_code == 401
    assert client.get("/users/me").status_code == 401
    assert client.get("/users/me", headers=auth_header("not-a-token")).status_code == 401


def test_athlete_updates_own_profile(client: TestClient, api):
    athlete = api.onboard("athlete", events=["100m"])
    response = client.put(
        "/athletes/me",
        json={"weight_kg": 72.5, "training_goals": "Break 11s", "events": ["100m", "200m"]},
        headers=athlete["headers"],
    )
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["weight_kg"] == 72.5
    assert body["events"] == ["100m", "200m"]
    assert client.get("/athletes/me", headers=athlete["headers"]).json()["training_goals"] == "Break 11s"


def test_group_moves_append_history(client: TestClient, api, db_session):
    coach = api.onboard("coach")
    athlete = api.onboard("athlete")
    x = api.group(coach, "X")
    y = api.group(coach, "Y")

    api.move(coach, athlete, x)
    api.move(coach, athlete, y)
    removed = client.delete(f"/athletes/{athlete['athlete_id']}/group", headers=coach["headers"])
    assert removed.status_code == 200
    assert removed.json()["athlete_group_id"] is None

    history = client.get(f"/athletes/{athlete['athlete_id']}/group-history", headers=coach["headers"])
    assert history.status_code == 200
    assert [row["group_id"] for row in history.json()] == [None, y, x]

    rows = db_session.query(AthleteGroupHistory).order_by(AthleteGroupHistory.id).all()
    assert [row.group_id for row in rows] == [x, y, None]
    assert all(row.created_by == coach["user_id"] for row in rows)


def test_moving_into_the_same_group_records_nothing(api, db_session):
    coach = api.onboard("coach")
    athlete = api.onboard("athlete")
    group_id = api.group(coach, members=(athlete,))
    api.move(coach, athlete, group_id)
    assert db_session.query(AthleteGroupHistory).count() == 1


def test_history_rows_are_append_only(api, db_session):
    coach = api.onboard("coach")
    athlete = api.onboard("athlete")
    api.group(coach, members=(athlete,))

    row = db_session.query(AthleteGroupHistory).one()
    row.notes = "rewritten"
    with pytest.raises(ImmutableRowError):
        db_session.commit()
    db_session.rollback()

    row = db_session.query(AthleteGroupHistory).one()
    db_session.delete(row)
    with pytest.raises(ImmutableRowError):
        db_session.commit()


def test_deleting_group_detaches_members(client: TestClient, api, db_session):
    coach = api.onboard("coach")
    athletes = [api.onboard("athlete") for _ in range(2)]
    group_id = api.group(coach, members=tuple(athletes))

    response = client.delete(f"/athletes/groups/{group_id}", headers=coach["headers"])
    assert response.status_code == 204
    for athlete in athletes:
        profile = client.get("/athletes/me", headers=athlete["headers"]).json()
        assert profile["athlete_group_id"] is None
    removals = db_session.query(AthleteGroupHistory).filter(AthleteGroupHistory.group_id.is_(None)).count()
    assert removals == 2


def test_group_listing_and_members(client: TestClient, api):
    coach = api.onboard("coach")
    other = api.onboard("coach")
    athlete = api.onboard("athlete")
    group_id = api.group(coach, "Jumpers", members=(athlete,))

    groups = client.get("/athletes/groups", headers=coach["headers"]).json()
    assert [g["group_name"] for g in groups] == ["Jumpers"]
    detail = client.get(f"/athletes/groups/{group_id}", headers=coach["headers"]).json()
    assert [a["id"] for a in detail["athletes"]] == [athlete["athlete_id"]]

    assert client.get("/athletes/groups", headers=other["headers"]).json() == []
    assert client.get(f"/athletes/groups/{group_id}", headers=other["headers"]).status_code == 404
    assert client.get(f"/athletes/{athlete['athlete_id']}", headers=other["headers"]).status_code == 404
    assert client.get(f"/athletes/{athlete['athlete_id']}", headers=coach["headers"]).status_code == 200


def test_other_coach_cannot_take_a_grouped_athlete(client: TestClient, api):
    coach = api.onboard("coach")
    poacher = api.onboard("coach")
    athlete = api.onboard("athlete")
    api.group(coach, members=(athlete,))
    theirs = api.group(poacher, "Mine")

    response = client.put(
        f"/athletes/{athlete['athlete_id']}/group",
        json={"group_id": theirs},
        headers=poacher["headers"],
    )
    assert response.status_code == 404
