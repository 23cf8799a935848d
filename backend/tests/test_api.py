"""Endpoint tests for profile lookup and blends."""
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from bookblend.core.errors import PersistenceFailure, UpstreamUnavailable
from bookblend.core.identifiers import UsernameId
from bookblend.models import Blend, User
from bookblend.routers import user as user_router


def test_health_endpoint(client: TestClient):
    """Test that GET /health returns 200 and {"status": "ok"}."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_test_db_endpoint(client: TestClient):
    response = client.get("/api/test-db")

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["user_count"] == 0


def test_lookup_caches_user_and_resolves_by_slug(client: TestClient, db: Session):
    response = client.get("/api/user", params={"user_id": "42944663"})

    assert response.status_code == 200
    data = response.json()
    assert data["user"]["id"] == "42944663"
    assert data["user"]["slug"] == "ben-wallace"
    assert [friend["id"] for friend in data["friends"]] == ["93322377"]
    assert response.headers["cache-control"] == "no-store"

    resolved = client.get("/api/share/resolve", params={"slug": "ben-wallace"})
    assert resolved.json()["user_id"] == "42944663"


def test_lookup_accepts_profile_url(client: TestClient, fake_upstream):
    response = client.get(
        "/api/user",
        params={"user_id": "https://www.goodreads.com/user/show/42944663-ben-wallace"},
    )

    assert response.status_code == 200
    assert str(fake_upstream.user_calls[0]) == "42944663"


def test_lookup_by_username_caches_under_numeric_id(client: TestClient, db: Session, fake_upstream):
    response = client.get("/api/user", params={"user_id": "https://www.goodreads.com/bewal416"})

    assert response.status_code == 200
    assert str(fake_upstream.user_calls[0]) == "username:bewal416"
    assert db.get(User, "42944663") is not None
    assert db.get(User, "username:bewal416") is None


def test_lookup_twice_keeps_slug(client: TestClient, fake_upstream):
    client.get("/api/user", params={"user_id": "42944663"})
    fake_upstream.users["42944663"]["user"]["name"] = "Benjamin Wallace"

    response = client.get("/api/user", params={"user_id": "42944663"})

    assert response.json()["user"]["name"] == "Benjamin Wallace"
    assert response.json()["user"]["slug"] == "ben-wallace"


def test_lookup_requires_user_id(client: TestClient):
    response = client.get("/api/user")

    assert response.status_code == 400
    assert response.json() == {"error": "user_id is required"}


def test_lookup_rejects_malformed_input(client: TestClient, fake_upstream):
    response = client.get("/api/user", params={"user_id": "123abc"})

    assert response.status_code == 400
    assert response.json()["error"] == "Enter a valid Goodreads user ID, username, or URL"
    assert fake_upstream.user_calls == []


def test_lookup_maps_upstream_not_found(client: TestClient):
    response = client.get("/api/user", params={"user_id": "11111111"})

    assert response.status_code == 404
    assert response.json()["user_friendly"] is True


def test_lookup_hides_raw_upstream_errors(client: TestClient, fake_upstream):
    fake_upstream.user_error = UpstreamUnavailable(
        "The BookBlend service is having trouble right now.",
        status_code=503,
        detail="Traceback: scraper exploded",
    )

    response = client.get("/api/user", params={"user_id": "42944663"})

    assert response.status_code == 500
    assert "Traceback" not in response.json()["error"]


def test_lookup_still_returns_profile_when_cache_write_fails(client: TestClient, monkeypatch):
    def failing_cache_user(db, profile):
        raise PersistenceFailure("unique constraint failed")

    monkeypatch.setattr(user_router, "cache_user", failing_cache_user)

    response = client.get("/api/user", params={"user_id": "42944663"})

    assert response.status_code == 200
    assert response.json()["user"]["name"] == "Ben Wallace"
    assert response.json()["user"]["slug"] is None


def test_lookup_rejects_upstream_payload_without_user(client: TestClient, fake_upstream):
    fake_upstream.users["42944663"] = {"friends": []}

    response = client.get("/api/user", params={"user_id": "42944663"})

    assert response.status_code == 500
    assert response.json()["user_friendly"] is True


def test_blend_requires_both_ids(client: TestClient):
    response = client.get("/api/blend", params={"user_id1": "42944663"})

    assert response.status_code == 400
    assert response.json() == {"error": "user_id1 and user_id2 are required"}


def test_blend_rejects_same_user_twice(client: TestClient):
    response = client.get("/api/blend", params={"user_id1": "42944663", "user_id2": "42944663-ben-wallace"})

    assert response.status_code == 400


def test_blend_is_cached_between_calls(client: TestClient, db: Session, fake_upstream):
    first = client.get("/api/blend", params={"user_id1": "93322377", "user_id2": "42944663"})
    second = client.get("/api/blend", params={"user_id1": "42944663", "user_id2": "93322377"})

    assert first.status_code == 200
    assert second.status_code == 200
    assert first.json()["_meta"]["cached"] is False
    assert second.json()["_meta"]["cached"] is True
    assert first.json()["_meta"]["blend_id"] == second.json()["_meta"]["blend_id"]
    assert second.json()["_meta"]["user1_id"] == "42944663"
    assert second.json()["_meta"]["user2_id"] == "93322377"
    assert second.json()["blend"]["score"] == 85.7
    assert len(fake_upstream.blend_calls) == 1


def test_blend_force_new(client: TestClient, db: Session, fake_upstream):
    client.get("/api/blend", params={"user_id1": "42944663", "user_id2": "93322377"})
    response = client.get(
        "/api/blend",
        params={"user_id1": "42944663", "user_id2": "93322377", "force_new": "true"},
    )

    assert response.json()["_meta"]["cached"] is False
    assert len(fake_upstream.blend_calls) == 2
    assert db.query(Blend).count() == 2


def test_blend_upstream_private_profile(client: TestClient, db: Session, fake_upstream):
    fake_upstream.blend_error = UpstreamUnavailable(
        "One of these Goodreads profiles is private, so we can't read their shelves.",
        status_code=403,
    )

    response = client.get("/api/blend", params={"user_id1": "42944663", "user_id2": "93322377"})

    assert response.status_code == 403
    assert response.json()["user_friendly"] is True
    assert db.query(Blend).count() == 0


def test_get_blend_by_id(client: TestClient):
    created = client.get("/api/blend", params={"user_id1": "42944663", "user_id2": "93322377"})
    blend_id = created.json()["_meta"]["blend_id"]

    response = client.get(f"/api/blend/{blend_id}")

    assert response.status_code == 200
    data = response.json()
    assert data["blend"]["score"] == 85.7
    assert data["_meta"]["blend_id"] == blend_id
    assert data["_meta"]["user1_id"] == "42944663"


def test_get_blend_by_id_not_found(client: TestClient):
    assert client.get("/api/blend/00000000-0000-0000-0000-000000000000").status_code == 404
    response = client.get("/api/blend/not-a-uuid")
    assert response.status_code == 404
    assert response.json() == {"error": "Blend not found"}


def test_blend_by_username_uses_numeric_id(client: TestClient, db: Session, fake_upstream):
    first = client.get("/api/blend", params={"user_id1": "bewal416", "user_id2": "93322377"})
    second = client.get("/api/blend", params={"user_id1": "42944663", "user_id2": "93322377"})

    assert first.status_code == 200
    assert fake_upstream.user_calls == [UsernameId("bewal416")]
    assert fake_upstream.blend_calls == [("42944663", "93322377")]
    assert [(b.user1_id, b.user2_id) for b in db.query(Blend).all()] == [("42944663", "93322377")]
    assert db.get(User, "42944663").username == "bewal416"
    assert second.json()["_meta"]["cached"] is True


def test_blend_by_username_reuses_cached_user(client: TestClient, fake_upstream):
    client.get("/api/user", params={"user_id": "42944663"})

    response = client.get("/api/blend", params={"user_id1": "93322377", "user_id2": "bewal416"})

    assert response.status_code == 200
    assert len(fake_upstream.user_calls) == 1
    assert fake_upstream.blend_calls == [("93322377", "42944663")]


def test_blend_rejects_username_and_id_of_same_user(client: TestClient, fake_upstream):
    response = client.get("/api/blend", params={"user_id1": "bewal416", "user_id2": "42944663"})

    assert response.status_code == 400
    assert response.json() == {"error": "Pick two different users to blend"}
    assert fake_upstream.blend_calls == []


def test_blend_by_unknown_username(client: TestClient, db: Session, fake_upstream):
    response = client.get("/api/blend", params={"user_id1": "nobody123", "user_id2": "93322377"})

    assert response.status_code == 404
    assert fake_upstream.blend_calls == []
    assert db.query(Blend).count() == 0
