"""Tests for Controller API endpoints."""

import pytest
from fastapi.testclient import TestClient

from conftest import ADMIN, PUBLISHER, STRANGER, VIEWER
from controller.main import create_app
from controller.persistence import save_state
from controller.store import Store


def as_principal(identity):
    return {"X-Principal-Id": identity}


@pytest.fixture
def client(store):
    """Create FastAPI test client over the shared test store."""
    return TestClient(create_app(store=store, state_path=None))


@pytest.fixture
def file_id(client):
    response = client.post(
        "/files",
        files={"file": ("a.txt", b"hello world")},
        headers=as_principal(PUBLISHER)
    )
    assert response.status_code == 201
    return response.json()["file_id"]


def test_root_endpoint(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "running"


def test_health_endpoint(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_request_id_header(client):
    assert client.get("/health").headers["X-Request-ID"]


def test_missing_principal_header(client):
    response = client.get("/files")
    assert response.status_code == 401


class TestFileEndpoints:
    """Test /files endpoints."""

    def test_upload_response(self, client):
        response = client.post(
            "/files",
            files={"file": ("a.txt", b"hello world")},
            headers=as_principal(PUBLISHER)
        )
        assert response.status_code == 201
        data = response.json()
        assert data["filename"] == "a.txt"
        assert data["size"] == 11
        assert data["chunk_count"] == 3

    def test_upload_filename_override(self, client):
        response = client.post(
            "/files",
            files={"file": ("a.txt", b"hello")},
            data={"filename": "renamed.txt"},
            headers=as_principal(PUBLISHER)
        )
        assert response.json()["filename"] == "renamed.txt"

    def test_download(self, client, file_id):
        response = client.get(f"/files/{file_id}", headers=as_principal(VIEWER))
        assert response.status_code == 200
        assert response.content == b"hello world"
        assert 'filename="a.txt"' in response.headers["content-disposition"]

    def test_viewer_upload_forbidden(self, client):
        response = client.post(
            "/files",
            files={"file": ("a.txt", b"hello")},
            headers=as_principal(VIEWER)
        )
        assert response.status_code == 403
        assert response.json()["code"] == "UNAUTHORIZED"

    def test_invalid_filename(self, client):
        response = client.post(
            "/files",
            files={"file": ("bad name.txt", b"hello")},
            headers=as_principal(PUBLISHER)
        )
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_uploads_disabled(self, client):
        client.patch("/config", json={"uploads_enabled": False}, headers=as_principal(ADMIN))
        response = client.post(
            "/files",
            files={"file": ("a.txt", b"hello")},
            headers=as_principal(PUBLISHER)
        )
        assert response.status_code == 503
        assert response.json()["code"] == "UPLOADS_DISABLED"

    def test_unknown_file(self, client):
        response = client.get("/files/missing", headers=as_principal(ADMIN))
        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    def test_list_files(self, client, file_id):
        response = client.get("/files", headers=as_principal(PUBLISHER))
        assert response.status_code == 200
        files = response.json()["files"]
        assert [f["file_id"] for f in files] == [file_id]
        assert files[0]["owner"] == PUBLISHER

    def test_list_all_forbidden_for_publisher(self, client, file_id):
        response = client.get("/files?scope=all", headers=as_principal(PUBLISHER))
        assert response.status_code == 403

    def test_metadata(self, client, file_id):
        response = client.get(f"/files/{file_id}/metadata", headers=as_principal(VIEWER))
        assert response.status_code == 200
        data = response.json()
        assert data["size"] == 11
        assert data["is_active"] is True

    def test_delete(self, client, file_id):
        response = client.delete(f"/files/{file_id}", headers=as_principal(ADMIN))
        assert response.status_code == 200
        assert response.json()["deleted"] is True
        assert client.get(f"/files/{file_id}", headers=as_principal(ADMIN)).status_code == 404

    def test_delete_forbidden_for_viewer(self, client, file_id):
        response = client.delete(f"/files/{file_id}", headers=as_principal(VIEWER))
        assert response.status_code == 403

    def test_set_inactive(self, client, file_id):
        response = client.patch(
            f"/files/{file_id}/active",
            json={"active": False},
            headers=as_principal(ADMIN)
        )
        assert response.status_code == 200
        assert response.json()["is_active"] is False
        assert client.get(f"/files/{file_id}", headers=as_principal(VIEWER)).status_code == 404

    def test_integrity(self, client, file_id):
        response = client.get(f"/files/{file_id}/integrity", headers=as_principal(ADMIN))
        assert response.json() == {"file_id": file_id, "valid": True}

    def test_garbage_collect(self, client):
        response = client.post("/files/gc", headers=as_principal(ADMIN))
        assert response.status_code == 200
        assert response.json() == {"removed": 0}

    def test_audit(self, client, file_id):
        response = client.get("/files/audit", headers=as_principal(ADMIN))
        assert response.status_code == 200
        assert response.json() == {"corrupted": []}
        assert client.get("/files/audit", headers=as_principal(PUBLISHER)).status_code == 403

    def test_stats(self, client, file_id):
        response = client.get("/files/stats", headers=as_principal(ADMIN))
        assert response.status_code == 200
        data = response.json()
        assert data["files"] == 1
        assert data["stored_bytes"] == 11
        assert data["admins"] == 1

    def test_owner_publisher_toggles_active(self, client, file_id):
        response = client.patch(
            f"/files/{file_id}/active",
            json={"active": False},
            headers=as_principal(PUBLISHER)
        )
        assert response.status_code == 200
        assert response.json()["is_active"] is False


class TestRoleEndpoints:
    """Test /roles endpoints."""

    def test_grant_and_read(self, client):
        response = client.post(
            "/roles/grant",
            json={"target": STRANGER, "role": "publisher"},
            headers=as_principal(ADMIN)
        )
        assert response.status_code == 200
        assert response.json() == {"identity": STRANGER, "roles": ["publisher"]}
        me = client.get("/roles/me", headers=as_principal(STRANGER))
        assert me.json()["roles"] == ["publisher"]

    def test_grant_duplicate(self, client):
        response = client.post(
            "/roles/grant",
            json={"target": VIEWER, "role": "viewer"},
            headers=as_principal(ADMIN)
        )
        assert response.status_code == 409
        assert response.json()["code"] == "ROLE_ALREADY_ASSIGNED"

    def test_grant_invalid_role(self, client):
        response = client.post(
            "/roles/grant",
            json={"target": VIEWER, "role": "wizard"},
            headers=as_principal(ADMIN)
        )
        assert response.status_code == 400

    def test_revoke_last_admin(self, client):
        response = client.post(
            "/roles/revoke",
            json={"target": ADMIN, "role": "admin"},
            headers=as_principal(ADMIN)
        )
        assert response.status_code == 409
        assert response.json()["code"] == "LAST_ADMIN_VIOLATION"

    def test_revoke_missing_role(self, client):
        response = client.post(
            "/roles/revoke",
            json={"target": VIEWER, "role": "publisher"},
            headers=as_principal(ADMIN)
        )
        assert response.status_code == 409
        assert response.json()["code"] == "ROLE_NOT_PRESENT"

    def test_bootstrap_after_init(self, client):
        response = client.post("/roles/bootstrap", headers=as_principal(STRANGER))
        assert response.status_code == 409
        assert response.json()["code"] == "ALREADY_INITIALIZED"

    def test_list_principals(self, client):
        response = client.get("/roles", headers=as_principal(ADMIN))
        assert response.json()["principals"][ADMIN] == ["admin"]
        assert client.get("/roles", headers=as_principal(VIEWER)).status_code == 403

    def test_roles_of(self, client):
        response = client.get(f"/roles/{VIEWER}", headers=as_principal(PUBLISHER))
        assert response.json() == {"identity": VIEWER, "roles": ["viewer"]}


def test_bootstrap_on_empty_store(monkeypatch):
    monkeypatch.setattr("controller.routes.role_routes.BOOTSTRAP_ADMIN", None)
    client = TestClient(create_app(store=Store(), state_path=None))
    response = client.post("/roles/bootstrap", headers=as_principal("first"))
    assert response.status_code == 201
    assert response.json()["roles"] == ["admin"]


class TestConfigEndpoints:
    """Test /config endpoints."""

    def test_get_config(self, client):
        response = client.get("/config", headers=as_principal(VIEWER))
        assert response.status_code == 200
        assert response.json()["uploads_enabled"] is True

    def test_update_config(self, client):
        response = client.patch(
            "/config",
            json={"max_file_size_bytes": 1024, "domain": "cdn.example.com"},
            headers=as_principal(ADMIN)
        )
        assert response.status_code == 200
        data = response.json()
        assert data["max_file_size_bytes"] == 1024
        assert data["domain"] == "cdn.example.com"

    def test_update_config_out_of_range(self, client):
        response = client.patch(
            "/config",
            json={"max_file_size_bytes": 0},
            headers=as_principal(ADMIN)
        )
        assert response.status_code == 400

    def test_update_config_forbidden(self, client):
        response = client.patch(
            "/config",
            json={"uploads_enabled": False},
            headers=as_principal(PUBLISHER)
        )
        assert response.status_code == 403

    def test_reset_config(self, client):
        client.patch("/config", json={"uploads_enabled": False}, headers=as_principal(ADMIN))
        response = client.post("/config/reset", headers=as_principal(ADMIN))
        assert response.json()["uploads_enabled"] is True


def test_state_saved_on_shutdown(tmp_path, store):
    state_path = tmp_path / "state.json"
    with TestClient(create_app(store=store, state_path=str(state_path))) as client:
        client.post(
            "/files",
            files={"file": ("a.txt", b"hello")},
            headers=as_principal(PUBLISHER)
        )
    assert state_path.exists()


def test_state_loaded_on_startup(tmp_path, store, file_service):
    metadata = file_service.upload_file(PUBLISHER, "a.txt", b"hello")
    state_path = tmp_path / "state.json"
    save_state(store, state_path)

    with TestClient(create_app(state_path=str(state_path))) as client:
        response = client.get(f"/files/{metadata.file_id}", headers=as_principal(VIEWER))
        assert response.content == b"hello"


def test_bootstrap_limited_to_configured_principal(monkeypatch):
    monkeypatch.setattr("controller.routes.role_routes.BOOTSTRAP_ADMIN", "ops")
    client = TestClient(create_app(store=Store(), state_path=None))

    response = client.post("/roles/bootstrap", headers=as_principal("first"))
    assert response.status_code == 403
    assert response.json()["code"] == "UNAUTHORIZED"

    response = client.post("/roles/bootstrap", headers=as_principal("ops"))
    assert response.status_code == 201
    assert response.json() == {"identity": "ops", "roles": ["admin"]}
