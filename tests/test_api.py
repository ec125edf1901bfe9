"""
Tests for the FastAPI REST API endpoints.
"""

import json
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from pokekv.api.app import create_app
from pokekv.core.config import ApiSettings, Settings
from pokekv.kv import CommitResult, KvError, MemoryKvStore


@pytest.fixture
def store():
    """Provide the shared store."""
    return MemoryKvStore()


@pytest.fixture
def settings():
    """Settings with no static site and no CORS."""
    return Settings(api=ApiSettings(static_dir=None, cors_origins=""))


@pytest.fixture
def client(settings, store):
    """Create test client; the context runs the app lifespan."""
    with TestClient(create_app(settings, store=store)) as client:
        yield client


def post_record(client, record):
    return client.post("/api/pokemons", data={"record": json.dumps(record)})


def put_record(client, id, record):
    return client.put(f"/api/pokemons/{id}", data={"record": json.dumps(record)})


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_health_check(self, client):
        """Test basic health check."""
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "pokekv"

    def test_readiness_check(self, client):
        """Test readiness check."""
        response = client.get("/api/health/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_readiness_store_down(self, client, store):
        """Test readiness when the store fails."""
        with patch.object(store, "get", AsyncMock(side_effect=KvError("down"))):
            response = client.get("/api/health/ready")
        assert response.status_code == 503


class TestCreate:
    """Tests for POST /api/pokemons."""

    def test_create(self, client):
        """Test successful creation."""
        response = post_record(client, {"name": "Pikachu"})

        assert response.status_code == 201
        assert response.headers["Location"] == "/api/pokemons/1"
        assert response.json() == {"path": "/api/pokemons"}

    def test_create_assigns_sequential_ids(self, client):
        """Test that each create gets the next ID."""
        post_record(client, {"name": "Pikachu"})
        response = post_record(client, {"name": "Eevee"})
        assert response.headers["Location"] == "/api/pokemons/2"

    def test_create_invalid_json(self, client):
        """Test that a non-JSON record is rejected."""
        response = client.post("/api/pokemons", data={"record": "{not json"})
        assert response.status_code == 400

    def test_create_missing_record_field(self, client):
        """Test that the record form field is required."""
        response = client.post("/api/pokemons", data={"name": "Pikachu"})
        assert response.status_code == 422

    def test_create_allocation_failure(self, client, store):
        """Test 503 when no ID can be allocated."""
        with patch.object(store, "increment", AsyncMock(side_effect=KvError("down"))):
            response = post_record(client, {"name": "Pikachu"})
        assert response.status_code == 503
        assert client.get("/api/pokemons").status_code == 404


class TestRead:
    """Tests for GET endpoints."""

    def test_get_one(self, client):
        """Test reading a created record."""
        post_record(client, {"name": "Pikachu"})

        response = client.get("/api/pokemons/1")
        assert response.status_code == 200
        data = response.json()
        assert data["id"] == 1
        assert data["name"] == "Pikachu"
        assert data["createdAt"].endswith("Z")

    def test_get_one_invalid_id(self, client):
        """Test 400 for a malformed ID."""
        assert client.get("/api/pokemons/pikachu").status_code == 400

    def test_get_one_missing(self, client):
        """Test 404 for an unknown ID."""
        response = client.get("/api/pokemons/9")
        assert response.status_code == 404
        assert "9" in response.json()["detail"]

    def test_list(self, client):
        """Test listing in ID order."""
        for name in ("Pikachu", "Eevee", "Mew"):
            post_record(client, {"name": name})

        response = client.get("/api/pokemons")
        assert response.status_code == 200
        assert [r["id"] for r in response.json()] == [1, 2, 3]

    def test_list_empty(self, client):
        """Test that an empty collection is a 404."""
        assert client.get("/api/pokemons").status_code == 404


class TestUpdate:
    """Tests for PUT /api/pokemons/{id}."""

    def test_update(self, client):
        """Test a full replace keeping the original createdAt."""
        post_record(client, {"name": "Pikachu", "level": 5})
        created_at = client.get("/api/pokemons/1").json()["createdAt"]

        response = put_record(client, 1, {"id": 1, "name": "Raichu"})
        assert response.status_code == 204
        assert response.content == b""

        assert client.get("/api/pokemons/1").json() == {
            "id": 1,
            "name": "Raichu",
            "createdAt": created_at,
        }

    def test_update_identity_mismatch(self, client):
        """Test 400 when the embedded id differs from the path."""
        post_record(client, {"name": "Pikachu"})

        response = put_record(client, 1, {"id": 2, "name": "Raichu"})
        assert response.status_code == 400
        assert client.get("/api/pokemons/1").json()["name"] == "Pikachu"

    def test_update_missing(self, client):
        """Test 404 for an unknown ID."""
        assert put_record(client, 4, {"id": 4}).status_code == 404

    def test_update_invalid_id(self, client):
        """Test 400 for a malformed ID."""
        assert put_record(client, "x", {"id": 1}).status_code == 400


class TestDelete:
    """Tests for DELETE endpoints."""

    def test_delete_one(self, client):
        """Test deleting a record."""
        post_record(client, {"name": "Pikachu"})

        response = client.delete("/api/pokemons/1")
        assert response.status_code == 204
        assert client.get("/api/pokemons/1").status_code == 404
        assert client.delete("/api/pokemons/1").status_code == 404

    def test_delete_one_invalid_id(self, client):
        """Test 400 for a malformed ID."""
        assert client.delete("/api/pokemons/1.5").status_code == 400

    def test_delete_all(self, client):
        """Test bulk delete restarts IDs at 1."""
        post_record(client, {"name": "Pikachu"})
        post_record(client, {"name": "Eevee"})

        assert client.delete("/api/pokemons").status_code == 204
        assert client.get("/api/pokemons").status_code == 404

        response = post_record(client, {"name": "Mew"})
        assert response.headers["Location"] == "/api/pokemons/1"

    def test_delete_all_failure(self, client, store):
        """Test 503 and no deletion when the batch does not commit."""
        post_record(client, {"name": "Pikachu"})

        with patch.object(store, "_commit", AsyncMock(return_value=CommitResult(ok=False))):
            response = client.delete("/api/pokemons")

        assert response.status_code == 503
        assert len(client.get("/api/pokemons").json()) == 1


class TestOversizedId:
    """Tests for numeric IDs beyond the storable range."""

    HUGE_ID = "99999999999999999999"

    def test_get(self, client):
        """Test GET with a 20-digit ID is a client error."""
        assert client.get(f"/api/pokemons/{self.HUGE_ID}").status_code == 400

    def test_put(self, client):
        """Test PUT with a 20-digit ID is a client error."""
        post_record(client, {"name": "Pikachu"})
        response = put_record(client, self.HUGE_ID, {"id": 1, "name": "Raichu"})
        assert response.status_code == 400
        assert client.get("/api/pokemons/1").json()["name"] == "Pikachu"

    def test_delete(self, client):
        """Test DELETE with a 20-digit ID is a client error."""
        post_record(client, {"name": "Pikachu"})
        assert client.delete(f"/api/pokemons/{self.HUGE_ID}").status_code == 400
        assert client.get("/api/pokemons/1").status_code == 200


class TestScenario:
    """End-to-end walk through the collection lifecycle."""

    def test_lifecycle(self, client):
        """Test create, read, update, delete in sequence."""
        assert post_record(client, {"name": "Pikachu"}).status_code == 201

        record = client.get("/api/pokemons/1").json()
        assert record["name"] == "Pikachu"

        assert put_record(client, 1, {"id": 1, "name": "Raichu"}).status_code == 204
        updated = client.get("/api/pokemons/1").json()
        assert updated["name"] == "Raichu"
        assert updated["createdAt"] == record["createdAt"]

        assert client.delete("/api/pokemons/1").status_code == 204
        assert client.get("/api/pokemons/1").status_code == 404


class TestRootAndStatic:
    """Tests for the root endpoint and static site."""

    def test_root(self, client):
        """Test root endpoint without a static site."""
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert "name" in data
        assert "version" in data
        assert data["docs"] == "/api/docs"

    def test_static_site(self, tmp_path, store):
        """Test that a configured static directory is served at /."""
        public = tmp_path / "public"
        public.mkdir()
        (public / "index.html").write_text("<h1>Pokedex</h1>")
        settings = Settings(api=ApiSettings(static_dir=str(public)))

        with TestClient(create_app(settings, store=store)) as client:
            response = client.get("/")
            assert response.status_code == 200
            assert "Pokedex" in response.text
            assert client.get("/api/health").status_code == 200

    def test_cors_exposes_location(self, store):
        """Test CORS headers when origins are configured."""
        settings = Settings(api=ApiSettings(static_dir=None, cors_origins="http://localhost:3000"))

        with TestClient(create_app(settings, store=store)) as client:
            response = client.get("/api/health", headers={"Origin": "http://localhost:3000"})
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"


class TestLifespanStore:
    """Tests for store ownership by the app lifespan."""

    def test_sqlite_store_opened_from_settings(self, tmp_path):
        """Test that the app opens and closes a SQLite store it owns."""
        settings = Settings(api=ApiSettings(static_dir=None))
        settings.store.backend = "sqlite"
        settings.store.path = str(tmp_path / "pokekv.sqlite3")

        with TestClient(create_app(settings)) as client:
            assert post_record(client, {"name": "Pikachu"}).status_code == 201

        with TestClient(create_app(settings)) as client:
            assert client.get("/api/pokemons/1").json()["name"] == "Pikachu"
