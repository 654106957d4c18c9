from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

from kasoku.core.enums import UserRole
from kasoku.core.exceptions import Forbidden
from kasoku.core.security import Principal
from kasoku.schemas.athlete import AthleteGroupCreate
from kasoku.schemas.plan import MacrocycleCreate
from kasoku.services import plan_store
from kasoku.services.athletes import create_group


def _week(client: TestClient, coach: dict) -> dict:
    start = date(2026, 3, 2)
    macro = client.post(
        "/plans/macrocycles",
        json={"name": "Season", "start_date": start.isoformat(), "end_date": (start + timedelta(weeks=12)).isoformat()},
        headers=coach["headers"],
    )
    assert macro.status_code == 201, macro.text
    meso = client.post(
        "/plans/mesocycles",
        json={
            "macrocycle_id": macro.json()["id"],
            "name": "Base",
            "start_date": start.isoformat(),
            "end_date": (start + timedelta(weeks=4)).isoformat(),
        },
        headers=coach["headers"],
    )
    assert meso.status_code == 201, meso.text
    micro = client.post(
        "/plans/microcycles",
        json={
            "mesocycle_id": meso.json()["id"],
            "start_date": start.isoformat(),
            "end_date": (start + timedelta(days=6)).isoformat(),
        },
        headers=coach["headers"],
    )
    assert micro.status_code == 201, micro.text
    return {"macro": macro.json()["id"], "meso": meso.json()["id"], "micro": micro.json()["id"]}


def test_macrocycle_tree_keeps_ordering(client: TestClient, api):
    coach = api.onboard("coach")
    squat = api.exercise(coach, "Back Squat")
    sprint = api.exercise(coach, "Flying 30m", type_name="sprint")
    ids = _week(client, coach)

    api.preset_group(coach, squat, name="Thursday", microcycle_id=ids["micro"], week=1, day=4)
    response = client.post(
        "/plans/preset-groups",
        json={
            "name": "Monday",
            "microcycle_id": ids["micro"],
            "week": 1,
            "day": 1,
            "presets": [
                {"exercise_id": sprint, "preset_order": 1, "details": [{"set_index": 2, "distance": 30}, {"set_index": 1, "distance": 30}]},
                {"exercise_id": squat, "preset_order": 0, "details": [{"reps": 5}]},
            ],
        },
        headers=coach["headers"],
    )
    assert response.status_code == 201, response.text

    tree = client.get(f"/plans/macrocycles/{ids['macro']}", headers=coach["headers"])
    assert tree.status_code == 200, tree.text
    sessions = tree.json()["mesocycles"][0]["weeks"][0]["sessions"]
    assert [s["name"] for s in sessions] == ["Monday", "Thursday"]
    monday = sessions[0]
    assert [p["exercise"]["name"] for p in monday["presets"]] == ["Back Squat", "Flying 30m"]
    assert monday["presets"][1]["exercise"]["exercise_type"] == "sprint"
    assert [d["set_index"] for d in monday["presets"][1]["details"]] == [1, 2]


def test_generic_node_creation_and_validation(client: TestClient, api):
    coach = api.onboard("coach")
    squat = api.exercise(coach)
    response = client.post(
        "/plans/nodes",
        json={"kind": "microcycle", "attributes": {"start_date": "2026-03-02", "end_date": "2026-03-08"}},
        headers=coach["headers"],
    )
    assert response.status_code == 201, response.text
    micro_id = response.json()["id"]

    response = client.post(
        "/plans/nodes",
        json={"kind": "preset_group", "parent_id": micro_id, "attributes": {"name": "Legs"}},
        headers=coach["headers"],
    )
    assert response.status_code == 201, response.text
    group_id = response.json()["id"]

    response = client.post(
        "/plans/nodes",
        json={"kind": "preset", "parent_id": group_id, "attributes": {"exercise_id": squat}},
        headers=coach["headers"],
    )
    assert response.status_code == 201, response.text
    preset_id = response.json()["id"]

    response = client.post(
        "/plans/nodes",
        json={"kind": "preset_detail", "parent_id": preset_id, "attributes": {"reps": 8}},
        headers=coach["headers"],
    )
    assert response.status_code == 201, response.text

    bad_range = client.post(
        "/plans/nodes",
        json={"kind": "macrocycle", "attributes": {"name": "X", "start_date": "2026-03-08", "end_date": "2026-03-01"}},
        headers=coach["headers"],
    )
    assert bad_range.status_code == 422
    assert bad_range.json()["error_code"] == "VALIDATION_ERROR"

    tree = client.get(f"/plans/preset-groups/{group_id}", headers=coach["headers"]).json()
    assert tree["presets"][0]["details"][0]["set_index"] == 1


def test_group_mode_requires_target_group(client: TestClient, api):
    coach = api.onboard("coach")
    squat = api.exercise(coach)
    response = client.post(
        "/plans/preset-groups",
        json={"name": "Team", "session_mode": "group", "presets": [{"exercise_id": squat}]},
        headers=coach["headers"],
    )
    assert response.status_code == 422
    assert response.json()["field"] == "athlete_group_id"


def test_unknown_exercise_is_rejected(client: TestClient, api):
    coach = api.onboard("coach")
    response = client.post(
        "/plans/preset-groups",
        json={"name": "Ghost", "presets": [{"exercise_id": 999}]},
        headers=coach["headers"],
    )
    assert response.status_code == 422
    assert response.json()["field"] == "exercise_id"


def test_other_coach_sees_not_found(client: TestClient, api):
    owner = api.onboard("coach")
    other = api.onboard("coach")
    squat = api.exercise(owner)
    group = api.preset_group(owner, squat)

    foreign = client.get(f"/plans/preset-groups/{group['id']}", headers=other["headers"])
    missing = client.get("/plans/preset-groups/9999", headers=other["headers"])
    assert foreign.status_code == missing.status_code == 404
    assert foreign.json() == missing.json()


def test_preset_group_delete_is_soft(client: TestClient, api, db_session):
    from kasoku.models.plan import PresetGroup

    coach = api.onboard("coach")
    squat = api.exercise(coach)
    group = api.preset_group(coach, squat)

    response = client.delete(f"/plans/preset-groups/{group['id']}", headers=coach["headers"])
    assert response.status_code == 204
    assert client.get(f"/plans/preset-groups/{group['id']}", headers=coach["headers"]).status_code == 404
    assert db_session.get(PresetGroup, group["id"]).is_deleted is True


def test_deleting_microcycle_retires_its_preset_groups(client: TestClient, api, db_session):
    from kasoku.models.plan import Microcycle, PresetGroup

    coach = api.onboard("coach")
    squat = api.exercise(coach)
    ids = _week(client, coach)
    group = api.preset_group(coach, squat, microcycle_id=ids["micro"])

    response = client.delete(f"/plans/mesocycles/{ids['meso']}", headers=coach["headers"])
    assert response.status_code == 204
    stored = db_session.get(PresetGroup, group["id"])
    assert stored.is_deleted is True
    assert stored.microcycle_id is None
    assert db_session.get(Microcycle, ids["micro"]) is None
    tree = client.get(f"/plans/macrocycles/{ids['macro']}", headers=coach["headers"]).json()
    assert tree["mesocycles"] == []


def test_duplicate_adapts_load_and_reps(client: TestClient, api):
    coach = api.onboard("coach")
    squat = api.exercise(coach)
    group = api.preset_group(coach, squat, sets=2, date="2026-03-02")

    response = client.post(
        f"/plans/preset-groups/{group['id']}/duplicate",
        json={"date": "2026-03-09", "resistance_increase": 2.5, "rep_increase": -10},
        headers=coach["headers"],
    )
    assert response.status_code == 201, response.text
    copy = response.json()
    assert copy["id"] != group["id"]
    assert copy["name"] == "Speed Day Copy"
    assert copy["date"] == "2026-03-09"
    details = copy["presets"][0]["details"]
    assert [d["resistance"] for d in details] == [62.5, 63.5]
    assert [d["reps"] for d in details] == [1, 1]


def test_progression_by_volume_on_selected_sets(client: TestClient, api):
    coach = api.onboard("coach")
    squat = api.exercise(coach)
    group = api.preset_group(coach, squat, sets=3)
    preset_id = group["presets"][0]["id"]

    response = client.post(
        f"/plans/presets/{preset_id}/progression",
        json={"kind": "volume", "value": 10, "set_indexes": [1, 3]},
        headers=coach["headers"],
    )
    assert response.status_code == 200, response.text
    by_set = {d["set_index"]: d for d in response.json()}
    assert by_set[1]["resistance"] == 66.0
    assert by_set[2]["resistance"] == 61.0
    assert by_set[3]["reps"] == 6


def test_athlete_cannot_author_plans(client: TestClient, api):
    athlete = api.onboard("athlete")
    response = client.post(
        "/plans/macrocycles",
        json={"name": "Mine", "start_date": "2026-01-01", "end_date": "2026-02-01"},
        headers=athlete["headers"],
    )
    assert response.status_code == 403


def test_foreign_and_unknown_athlete_groups_look_the_same(client: TestClient, api):
    coach = api.onboard("coach")
    other = api.onboard("coach")
    squat = api.exercise(coach)
    theirs = api.group(other, "Theirs")

    def create(group_id: int):
        return client.post(
            "/plans/preset-groups",
            json={
                "name": "Team",
                "session_mode": "group",
                "athlete_group_id": group_id,
                "presets": [{"exercise_id": squat}],
            },
            headers=coach["headers"],
        )

    foreign = create(theirs)
    unknown = create(99999)
    assert foreign.status_code == unknown.status_code == 404
    assert foreign.json() == unknown.json()


def test_non_coach_principal_is_forbidden_in_the_store(api, db_session):
    athlete = api.onboard("athlete")
    principal = Principal(user_id=athlete["user_id"], role=UserRole.ATHLETE, athlete_id=athlete["athlete_id"])
    payload = MacrocycleCreate(name="Mine", start_date=date(2026, 1, 1), end_date=date(2026, 2, 1))

    with pytest.raises(Forbidden):
        plan_store.create_macrocycle(db_session, principal, payload)
    with pytest.raises(Forbidden):
        create_group(db_session, principal, AthleteGroupCreate(group_name="Mine"))
