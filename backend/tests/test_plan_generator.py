import httpx
from fastapi.testclient import TestClient

from kasoku.models.plan import PresetGroup
from kasoku.services import plan_generator

RealClient = httpx.Client


def _route_generator(monkeypatch, handler) -> list[httpx.Request]:
    seen: list[httpx.Request] = []

    def recording(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    def factory(**kwargs):
        return RealClient(transport=httpx.MockTransport(recording), **kwargs)

    monkeypatch.setattr(plan_generator.httpx, "Client", factory)
    return seen


def test_generated_plan_is_stored_as_a_template(client: TestClient, api, monkeypatch):
    coach = api.onboard("coach")
    squat = api.exercise(coach)
    skeleton = {
        "preset_group": {
            "name": "Generated strength",
            "presets": [{"exercise_id": squat, "details": [{"reps": 5, "resistance": 80}, {"reps": 5, "resistance": 82.5}]}],
        }
    }
    seen = _route_generator(monkeypatch, lambda request: httpx.Response(200, json=skeleton))

    response = client.post(
        "/plans/preset-groups/generate",
        json={"training_goals": "Maximal strength", "name": "Tuesday", "date": "2026-03-03", "exercise_ids": [squat]},
        headers=coach["headers"],
    )
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["name"] == "Tuesday"
    assert body["date"] == "2026-03-03"
    assert [d["resistance"] for d in body["presets"][0]["details"]] == [80.0, 82.5]

    assert len(seen) == 1
    assert str(seen[0].url) == "http://generator.test/plans"


def test_generator_outage_stores_nothing(client: TestClient, api, db_session, monkeypatch):
    coach = api.onboard("coach")
    _route_generator(monkeypatch, lambda request: httpx.Response(503, json={"error": "busy"}))

    response = client.post(
        "/plans/preset-groups/generate", json={"training_goals": "Speed"}, headers=coach["headers"]
    )
    assert response.status_code == 500
    assert response.json()["error_code"] == "PERSISTENCE_ERROR"
    assert db_session.query(PresetGroup).count() == 0


def test_invalid_generated_plan_is_rejected(client: TestClient, api, db_session, monkeypatch):
    coach = api.onboard("coach")
    broken = {"name": "Broken", "presets": [{"exercise_id": 777, "details": [{"reps": 5}]}]}
    _route_generator(monkeypatch, lambda request: httpx.Response(200, json=broken))

    response = client.post(
        "/plans/preset-groups/generate", json={"training_goals": "Speed"}, headers=coach["headers"]
    )
    assert response.status_code == 422
    assert response.json()["field"] == "exercise_id"
    assert db_session.query(PresetGroup).count() == 0

    _route_generator(monkeypatch, lambda request: httpx.Response(200, json=["not", "a", "plan"]))
    response = client.post(
        "/plans/preset-groups/generate", json={"training_goals": "Speed"}, headers=coach["headers"]
    )
    assert response.status_code == 422
