import pytest
from fastapi.testclient import TestClient

from kasoku.core.exceptions import DataIntegrityError
from kasoku.models.exercise import Exercise
from kasoku.services.catalog import exercise_type_names, resolve_exercises


def test_catalog_crud_and_filters(client: TestClient, api):
    coach = api.onboard("coach")
    athlete = api.onboard("athlete")
    headers = coach["headers"]

    strength = client.post("/exercises/types", json={"type": "strength"}, headers=headers).json()
    sprint = client.post("/exercises/types", json={"type": "sprint"}, headers=headers).json()
    kg = client.post("/exercises/units", json={"name": "kg"}, headers=headers).json()
    legs = client.post("/exercises/tags", json={"name": "legs"}, headers=headers).json()

    squat = client.post(
        "/exercises",
        json={"name": "Back Squat", "exercise_type_id": strength["id"], "unit_id": kg["id"], "tag_ids": [legs["id"]]},
        headers=headers,
    )
    assert squat.status_code == 201, squat.text
    assert squat.json()["exercise_type"]["type"] == "strength"
    assert squat.json()["unit"]["name"] == "kg"
    assert [t["name"] for t in squat.json()["tags"]] == ["legs"]

    client.post("/exercises", json={"name": "Flying 30m", "exercise_type_id": sprint["id"]}, headers=headers)

    everything = client.get("/exercises", headers=athlete["headers"])
    assert everything.status_code == 200
    assert [e["name"] for e in everything.json()] == ["Back Squat", "Flying 30m"]

    by_type = client.get("/exercises", params={"exercise_type_id": sprint["id"]}, headers=headers).json()
    assert [e["name"] for e in by_type] == ["Flying 30m"]
    by_tag = client.get("/exercises", params={"tag_id": legs["id"]}, headers=headers).json()
    assert [e["name"] for e in by_tag] == ["Back Squat"]
    by_name = client.get("/exercises", params={"search": "squat"}, headers=headers).json()
    assert [e["name"] for e in by_name] == ["Back Squat"]

    renamed = client.put(
        f"/exercises/{squat.json()['id']}",
        json={"name": "High Bar Squat", "exercise_type_id": sprint["id"]},
        headers=headers,
    )
    assert renamed.status_code == 200
    assert renamed.json()["exercise_type"]["type"] == "sprint"


def test_duplicate_type_and_unknown_references_are_rejected(client: TestClient, api):
    coach = api.onboard("coach")
    headers = coach["headers"]
    client.post("/exercises/types", json={"type": "strength"}, headers=headers)

    duplicate = client.post("/exercises/types", json={"type": "strength"}, headers=headers)
    assert duplicate.status_code == 422
    assert duplicate.json()["field"] == "type"

    orphan = client.post("/exercises", json={"name": "Ghost", "exercise_type_id": 404}, headers=headers)
    assert orphan.status_code == 422
    assert orphan.json()["field"] == "exercise_type_id"


def test_tags_are_added_and_removed(client: TestClient, api):
    coach = api.onboard("coach")
    headers = coach["headers"]
    exercise_id = api.exercise(coach)
    push = client.post("/exercises/tags", json={"name": "push"}, headers=headers).json()
    pull = client.post("/exercises/tags", json={"name": "pull"}, headers=headers).json()

    tagged = client.post(
        f"/exercises/{exercise_id}/tags", json={"tag_ids": [push["id"], pull["id"]]}, headers=headers
    )
    assert sorted(t["name"] for t in tagged.json()["tags"]) == ["pull", "push"]

    untagged = client.request(
        "DELETE", f"/exercises/{exercise_id}/tags", json={"tag_ids": [push["id"]]}, headers=headers
    )
    assert untagged.status_code == 200
    assert [t["name"] for t in untagged.json()["tags"]] == ["pull"]


def test_exercise_in_use_cannot_be_deleted(client: TestClient, api):
    coach = api.onboard("coach")
    used = api.exercise(coach, "Back Squat")
    unused = api.exercise(coach, "Deadlift")
    api.preset_group(coach, used)

    blocked = client.delete(f"/exercises/{used}", headers=coach["headers"])
    assert blocked.status_code == 422
    assert blocked.json()["id"] == used

    assert client.delete(f"/exercises/{unused}", headers=coach["headers"]).status_code == 204
    assert client.get(f"/exercises/{unused}", headers=coach["headers"]).status_code == 404


def test_athletes_cannot_edit_the_catalog(client: TestClient, api):
    athlete = api.onboard("athlete")
    response = client.post("/exercises/types", json={"type": "strength"}, headers=athlete["headers"])
    assert response.status_code == 403


def test_missing_exercise_type_is_a_data_integrity_error(db_session):
    broken = Exercise(name="Orphan", exercise_type_id=12345)
    db_session.add(broken)
    db_session.commit()

    with pytest.raises(DataIntegrityError) as excinfo:
        resolve_exercises(db_session, [broken])
    assert excinfo.value.identifier == broken.id

    with pytest.raises(DataIntegrityError):
        exercise_type_names(db_session, [broken.id])
