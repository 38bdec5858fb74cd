import os

# Settings are cached on first import, so the test database and LLM switch must be set first.
os.environ["DATABASE_URL"] = "sqlite+pysqlite://"
os.environ["PLANNER_LLM_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tuition_planner.api.deps import get_db
from tuition_planner.db.base import Base
from tuition_planner.main import app


@pytest.fixture()
def client():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def register_user(client, payload):
    response = client.post("/api/auth/register", json=payload)
    assert response.status_code == 201
    return response.json()


def login_user(client, email, password):
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200
    return response.json()["access_token"]


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def teacher_headers(client):
    payload = {
        "name": "Tutor One",
        "email": "tutor@example.com",
        "password": "password123",
        "role": "teacher",
    }
    register_user(client, payload)
    return auth_headers(login_user(client, payload["email"], payload["password"]))
