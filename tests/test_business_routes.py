from copy import deepcopy

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base, get_db
from app.deps import AuthenticatedUser, get_current_user
from app.main import build_app
from app.models.user import User
from app.routers.businesses import router as businesses_router
from tests.fixtures_data import (
    ADMIN_ID,
    BUSINESS_PAYLOAD,
    FAR_LOCATION,
    NEARBY_LOCATION,
    OTHER_OWNER_ID,
    OWNER_ID,
)

OWNER = AuthenticatedUser(id=OWNER_ID, email="owner@example.com", role="business_owner")
OTHER_OWNER = AuthenticatedUser(id=OTHER_OWNER_ID, email="other@example.com", role="business_owner")
CONSUMER = AuthenticatedUser(id="9d0e8f7a-1111-4222-8333-444455556666", email="c@example.com", role="consumer")
ADMIN = AuthenticatedUser(id=ADMIN_ID, email="admin@example.com", role="admin")


def _build_client():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    db.add(User(id=OWNER_ID, email="owner@example.com", role="business_owner", profile={}))
    db.add(User(id=OTHER_OWNER_ID, email="other@example.com", role="business_owner", profile={}))
    db.commit()

    current = {"user": OWNER}
    app = build_app([businesses_router])
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_current_user] = lambda: current["user"]
    return TestClient(app), current


def _payload(**overrides):
    payload = deepcopy(BUSINESS_PAYLOAD)
    payload.update(overrides)
    return payload


def _create(client, **overrides):
    response = client.post("/api/businesses", json=_payload(**overrides))
    assert response.status_code == 201, response.json()
    return response.json()["data"]


def test_create_business_normalizes_location_and_contact():
    client, _ = _build_client()

    response = client.post("/api/businesses", json=BUSINESS_PAYLOAD)

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Business created successfully"
    data = body["data"]
    assert data["owner_id"] == OWNER_ID
    assert data["location"]["city"] == "Portland"
    assert data["location"]["state"] == "OR"
    assert data["location"]["zipCode"] == "97201"
    assert data["contact"] == {
        "phone": "(555) 123-4567",
        "email": "hello@cornerbakery.com",
        "website": "https://cornerbakery.com",
    }
    assert data["media"] == []
    assert data["is_active"] is True


def test_consumer_cannot_create_business():
    client, current = _build_client()
    current["user"] = CONSUMER

    response = client.post("/api/businesses", json=BUSINESS_PAYLOAD)

    assert response.status_code == 403
    assert response.json()["error"] == "Insufficient permissions"


def test_create_business_rejects_duplicate_name_for_same_owner():
    client, current = _build_client()
    _create(client)

    duplicate = client.post("/api/businesses", json=_payload(name="  corner bakery "))

    assert duplicate.status_code == 409
    assert duplicate.json()["error"] == (
        'A business with the name "corner bakery" already exists. Please choose a different name.'
    )

    # outro dono pode usar o mesmo nome
    current["user"] = OTHER_OWNER
    assert client.post("/api/businesses", json=BUSINESS_PAYLOAD).status_code == 201


def test_create_business_validation_errors_use_error_envelope():
    client, _ = _build_client()

    response = client.post(
        "/api/businesses",
        json=_payload(categories=["restaurants", "spaceships"], hours={"monday": {"open": "09:00"}}),
    )

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Validation failed"
    messages = {detail["field"]: detail["message"] for detail in body["details"]}
    assert messages["categories"] == "Category must be one of the predefined business categories"
    assert messages["hours.monday"] == "If open time is specified, close time is also required"


def test_create_business_rejects_inappropriate_name():
    client, _ = _build_client()

    response = client.post("/api/businesses", json=_payload(name="Crap Burgers"))

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid business name: Business name contains inappropriate language"


def test_get_business_returns_404_and_400_for_bad_ids():
    client, _ = _build_client()

    missing = client.get("/api/businesses/5a1b7d1e-0000-4000-8000-000000000000")
    malformed = client.get("/api/businesses/not-a-uuid")

    assert missing.status_code == 404
    assert missing.json()["error"] == "Business not found"
    assert malformed.status_code == 400
    assert malformed.json()["details"][0]["field"] == "business_id"


def test_update_business_requires_ownership_unless_admin():
    client, current = _build_client()
    business = _create(client)

    current["user"] = OTHER_OWNER
    denied = client.put(f"/api/businesses/{business['id']}", json={"description": "Hijacked"})
    assert denied.status_code == 404
    assert denied.json()["error"] == "Business not found or access denied"

    current["user"] = ADMIN
    allowed = client.put(f"/api/businesses/{business['id']}", json={"description": "Now with pastries"})
    assert allowed.status_code == 200
    assert allowed.json()["data"]["description"] == "Now with pastries"


def test_update_business_rejects_empty_payload():
    client, _ = _build_client()
    business = _create(client)

    response = client.put(f"/api/businesses/{business['id']}", json={})

    assert response.status_code == 400
    assert response.json()["details"][0]["message"] == "At least one field must be provided for update"


def test_delete_business_soft_deletes_and_hides_from_search():
    client, _ = _build_client()
    business = _create(client)

    deleted = client.delete(f"/api/businesses/{business['id']}")
    assert deleted.status_code == 200
    assert deleted.json()["message"] == "Business deleted successfully"

    fetched = client.get(f"/api/businesses/{business['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["data"]["is_active"] is False

    search = client.get("/api/businesses")
    assert search.json()["data"] == []
    assert search.json()["pagination"]["totalCount"] == 0


def test_search_by_location_filters_by_radius_and_sorts_by_distance():
    client, _ = _build_client()
    _create(client, name="Nearby Books", location=NEARBY_LOCATION, categories=["retail"])
    _create(client, name="Seattle Books", location=FAR_LOCATION, categories=["retail"])
    _create(client)

    response = client.get("/api/businesses", params={"lat": 45.5152, "lng": -122.6784, "radius": 25})

    assert response.status_code == 200
    body = response.json()
    names = [item["name"] for item in body["data"]]
    assert names == ["Corner Bakery", "Nearby Books"]
    assert body["data"][0]["distance"] == 0
    assert 5 < body["data"][1]["distance"] < 25
    assert body["pagination"] == {
        "page": 1,
        "limit": 10,
        "totalCount": 2,
        "totalPages": 1,
        "hasNextPage": False,
        "hasPrevPage": False,
    }


def test_search_filters_by_category_and_text():
    client, _ = _build_client()
    _create(client)
    _create(client, name="Rose Salon", description="Cuts and color", categories=["beauty"])

    by_category = client.get("/api/businesses", params={"category": "beauty"})
    by_text = client.get("/api/businesses", params={"search": "bread"})

    assert [item["name"] for item in by_category.json()["data"]] == ["Rose Salon"]
    assert [item["name"] for item in by_text.json()["data"]] == ["Corner Bakery"]


def test_search_requires_both_coordinates_and_valid_radius():
    client, _ = _build_client()

    only_lat = client.get("/api/businesses", params={"lat": 45.5})
    bad_radius = client.get("/api/businesses", params={"lat": 45.5, "lng": -122.6, "radius": 500})

    assert only_lat.status_code == 400
    assert only_lat.json()["error"] == "Both latitude and longitude are required for location search"
    assert bad_radius.status_code == 400
    assert bad_radius.json()["error"] == "Radius must be between 1 and 100 miles"


def test_search_paginates_results():
    client, _ = _build_client()
    for index in range(3):
        _create(client, name=f"Shop Number {index}")

    response = client.get("/api/businesses", params={"page": 2, "limit": 2})

    body = response.json()
    assert len(body["data"]) == 1
    assert body["pagination"]["totalPages"] == 2
    assert body["pagination"]["hasPrevPage"] is True
    assert body["pagination"]["hasNextPage"] is False


def test_my_businesses_and_categories():
    client, current = _build_client()
    _create(client)
    current["user"] = OTHER_OWNER
    _create(client, name="Quick Lube", categories=["automotive"])

    mine = client.get("/api/businesses/my")
    categories = client.get("/api/businesses/categories")
    by_category = client.get("/api/businesses/categories/automotive")

    assert [item["name"] for item in mine.json()["data"]] == ["Quick Lube"]
    assert categories.json()["data"] == [
        {"value": "automotive", "label": "Automotive"},
        {"value": "restaurants", "label": "Restaurants & Food"},
    ]
    assert [item["name"] for item in by_category.json()["data"]] == ["Quick Lube"]


def test_search_treats_like_wildcards_as_literal_text():
    client, _ = _build_client()
    _create(client)
    _create(client, name="Rose Salon", description="Cuts and color", categories=["beauty"])

    percent = client.get("/api/businesses", params={"search": "%"})
    underscore = client.get("/api/businesses", params={"search": "_"})

    assert percent.json()["data"] == []
    assert percent.json()["pagination"]["totalCount"] == 0
    assert underscore.json()["data"] == []


def test_search_counts_category_matches_across_pages():
    client, _ = _build_client()
    for index in range(3):
        _create(client, name=f"Salon Number {index}", categories=["beauty", "services"])
    _create(client)

    response = client.get("/api/businesses", params={"category": "beauty", "page": 1, "limit": 2})

    body = response.json()
    assert len(body["data"]) == 2
    assert all("beauty" in item["categories"] for item in body["data"])
    assert body["pagination"]["totalCount"] == 3
    assert body["pagination"]["hasNextPage"] is True


def test_update_business_ignores_media_in_payload():
    client, _ = _build_client()
    business = _create(client)

    response = client.put(
        f"/api/businesses/{business['id']}",
        json={"description": "Sourdough daily", "media": [{"id": "x", "type": "logo"}]},
    )

    assert response.status_code == 200
    assert response.json()["data"]["description"] == "Sourdough daily"
    assert response.json()["data"]["media"] == []
