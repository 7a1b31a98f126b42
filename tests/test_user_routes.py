import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base, get_db
from app.deps import AuthenticatedUser, get_current_user
from app.main import build_app
from app.models.user import User
from app.routers.auth import get_auth_service
from app.routers.users import router as users_router
from app.services import auth as auth_tokens
from app.services.auth import hash_password
from app.services.auth_service import AuthService
from tests.fixtures_data import ADMIN_ID, OWNER_ID

ADMIN = AuthenticatedUser(id=ADMIN_ID, email="admin@example.com", role="admin")
OWNER = AuthenticatedUser(id=OWNER_ID, email="owner@example.com", role="business_owner")


@pytest.fixture(autouse=True)
def _fast_hashes(monkeypatch):
    monkeypatch.setattr(auth_tokens, "BCRYPT_ROUNDS", 4)


def _build_client():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    db.add(User(id=ADMIN_ID, email="admin@example.com", role="admin", profile={"firstName": "Ada"}))
    db.add(
        User(
            id=OWNER_ID,
            email="owner@example.com",
            role="business_owner",
            password_hash=hash_password("Str0ngPass"),
            profile={"firstName": "Olive", "lastName": "Baker"},
        )
    )
    for index in range(3):
        db.add(User(id=str(uuid.uuid4()), email=f"consumer{index}@example.com", role="consumer", profile={}))
    db.commit()

    current = {"user": ADMIN}
    app = build_app([users_router])
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_current_user] = lambda: current["user"]
    app.dependency_overrides[get_auth_service] = lambda: AuthService(db, provider="jwt")
    return TestClient(app), current


def test_update_profile_merges_fields():
    client, current = _build_client()
    current["user"] = OWNER

    response = client.put(
        "/api/users/profile",
        json={"phone": "555-123-4567", "locationPreferences": {"latitude": 45.5, "longitude": -122.6}},
    )

    assert response.status_code == 200
    profile = response.json()["data"]["profile"]
    assert profile["firstName"] == "Olive"
    assert profile["lastName"] == "Baker"
    assert profile["phone"] == "555-123-4567"
    assert profile["locationPreferences"] == {"latitude": 45.5, "longitude": -122.6, "radius": 25}


def test_update_profile_rejects_empty_body():
    client, current = _build_client()
    current["user"] = OWNER

    response = client.put("/api/users/profile", json={})

    assert response.status_code == 400
    assert response.json()["error"] == "Validation failed"


def test_change_password_checks_current_password():
    client, current = _build_client()
    current["user"] = OWNER

    wrong = client.put("/api/users/password", json={"currentPassword": "Nope1234", "newPassword": "N3wPassword"})
    ok = client.put("/api/users/password", json={"currentPassword": "Str0ngPass", "newPassword": "N3wPassword"})

    assert wrong.status_code == 400
    assert wrong.json()["error"] == "Current password is incorrect"
    assert ok.status_code == 200


def test_list_users_is_admin_only_and_paginated():
    client, current = _build_client()

    page = client.get("/api/users", params={"page": 2, "limit": 2})
    consumers = client.get("/api/users", params={"role": "consumer"})

    assert page.status_code == 200
    assert len(page.json()["data"]) == 2
    assert page.json()["pagination"]["totalCount"] == 5
    assert page.json()["pagination"]["totalPages"] == 3
    assert consumers.json()["pagination"]["totalCount"] == 3

    current["user"] = OWNER
    denied = client.get("/api/users")
    assert denied.status_code == 403
    assert denied.json()["error"] == "Insufficient permissions"


def test_list_users_validates_limit():
    client, _ = _build_client()

    response = client.get("/api/users", params={"limit": 500})

    assert response.status_code == 400
    assert response.json()["details"][0]["field"] == "limit"


def test_admin_creates_and_deletes_user():
    client, _ = _build_client()

    created = client.post(
        "/api/users",
        json={
            "email": "New.Admin@Example.com",
            "password": "Str0ngPass",
            "role": "admin",
            "firstName": "Nia",
            "lastName": "Stone",
        },
    )
    assert created.status_code == 201
    user_id = created.json()["data"]["id"]
    assert created.json()["data"]["email"] == "new.admin@example.com"

    verified = client.post(f"/api/users/{user_id}/verify-email")
    assert verified.json()["data"]["is_email_verified"] is True

    deleted = client.delete(f"/api/users/{user_id}")
    missing = client.get(f"/api/users/{user_id}")
    assert deleted.status_code == 200
    assert missing.status_code == 404
    assert missing.json()["error"] == "User not found"


def test_admin_cannot_delete_own_account():
    client, _ = _build_client()

    response = client.delete(f"/api/users/{ADMIN_ID}")

    assert response.status_code == 400
    assert response.json()["error"] == "Cannot delete your own account"
