import os
from itertools import count

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["JWT_ALGORITHM"] = "HS256"
os.environ["ACCESS_TOKEN_EXPIRE_MINUTES"] = "60"
os.environ["PLAN_GENERATOR_URL"] = "http://generator.test/plans"

from kasoku.core.security import create_access_token  # noqa: E402
from kasoku.database import Base, get_db  # noqa: E402
from kasoku.main import app  # noqa: E402

engine = create_engine(
    os.environ["DATABASE_URL"],
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def reset_database() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class Api:
    """Thin HTTP helpers for building fixtures through the public routes."""

    def __init__(self, client: TestClient):
        self.client = client
        self._ids = count(1)
        self._types: dict[str, int] = {}

    def onboard(self, role: str, name: str | None = None, **profile) -> dict:
        sub = f"{role}-{next(self._ids)}"
        name = name or sub
        token = create_access_token({"sub": sub, "role": role, "name": name})
        response = self.client.post(
            "/users/onboard",
            json={"name": name, "role": role, **profile},
            headers=auth_header(token),
        )
        assert response.status_code == 201, response.text
        body = response.json()
        return {
            "sub": sub,
            "headers": auth_header(token),
            "user_id": body["user"]["id"],
            "coach_id": body["coach_id"],
            "athlete_id": body["athlete_id"],
        }

    def exercise(self, coach: dict, name: str = "Back Squat", type_name: str = "strength") -> int:
        if type_name not in self._types:
            response = self.client.post(
                "/exercises/types", json={"type": type_name}, headers=coach["headers"]
            )
            assert response.status_code == 201, response.text
            self._types[type_name] = response.json()["id"]
        response = self.client.post(
            "/exercises",
            json={"name": name, "exercise_type_id": self._types[type_name]},
            headers=coach["headers"],
        )
        assert response.status_code == 201, response.text
        return response.json()["id"]

    def group(self, coach: dict, name: str = "Sprinters", members: tuple = ()) -> int:
        response = self.client.post(
            "/athletes/groups", json={"group_name": name}, headers=coach["headers"]
        )
        assert response.status_code == 201, response.text
        group_id = response.json()["id"]
        for athlete in members:
            self.move(coach, athlete, group_id)
        return group_id

    def move(self, coach: dict, athlete: dict, group_id: int) -> dict:
        response = self.client.put(
            f"/athletes/{athlete['athlete_id']}/group",
            json={"group_id": group_id},
            headers=coach["headers"],
        )
        assert response.status_code == 200, response.text
        return response.json()

    def preset_group(self, coach: dict, exercise_id: int, sets: int = 3, **fields) -> dict:
        payload = {
            "name": "Speed Day",
            "presets": [
                {
                    "exercise_id": exercise_id,
                    "details": [{"reps": 5, "resistance": 60.0 + i} for i in range(sets)],
                }
            ],
            **fields,
        }
        response = self.client.post("/plans/preset-groups", json=payload, headers=coach["headers"])
        assert response.status_code == 201, response.text
        return response.json()

    def assign(self, caller: dict, group_id: int, athlete_ids: list[int] | None = None) -> dict:
        kwargs = {"json": {"athlete_ids": athlete_ids}} if athlete_ids is not None else {}
        response = self.client.post(
            f"/plans/preset-groups/{group_id}/assign", headers=caller["headers"], **kwargs
        )
        assert response.status_code == 200, response.text
        return response.json()

    def my_sessions(self, athlete: dict) -> list[dict]:
        response = self.client.get("/sessions/me", headers=athlete["headers"])
        assert response.status_code == 200, response.text
        return response.json()


@pytest.fixture(autouse=True)
def _prepare_db():
    reset_database()


@pytest.fixture()
def client():
    app.dependency_overrides[get_db] = override_get_db
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture()
def api(client):
    return Api(client)


@pytest.fixture()
def db_session():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
