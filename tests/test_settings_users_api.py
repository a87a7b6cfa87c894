"""Settings, user and upload API tests."""
from unittest.mock import patch

from galaxy_chat.config import settings
from galaxy_chat.models.file import File
from galaxy_chat.models.user import default_preferences


def test_get_settings_returns_defaults_for_new_user(client):
    response = client.get("/settings")

    assert response.status_code == 200
    assert response.json() == default_preferences()


def test_put_settings_only_changes_given_keys(client):
    response = client.put("/settings", json={"theme": "dark", "maxTokens": 800})

    assert response.status_code == 200
    data = response.json()
    assert data["theme"] == "dark"
    assert data["maxTokens"] == 800
    assert data["language"] == "en"
    assert data["temperature"] == 0.7

    # Persisted across requests
    assert client.get("/settings").json()["theme"] == "dark"


def test_put_settings_merges_nested_notifications(client):
    client.put("/settings", json={"notifications": {"summary": True}})

    data = client.get("/settings").json()

    assert data["notifications"] == {"email": True, "summary": True, "inApp": True}


def test_put_settings_accepts_empty_body(client):
    response = client.put("/settings", json={})

    assert response.status_code == 200
    assert response.json() == default_preferences()


def test_settings_are_per_user(client, auth):
    client.put("/settings", json={"theme": "light"})
    auth.subject = "user_bob"

    assert client.get("/settings").json()["theme"] == "system"


def test_create_user_is_idempotent(client):
    first = client.post("/users", json={"email": "dave@example.com", "name": "Dave"})
    second = client.post("/users", json={"email": "other@example.com", "name": "Other"})

    assert first.status_code == 201
    assert second.status_code == 200
    assert first.json()["id"] == second.json()["id"]
    assert second.json()["email"] == "dave@example.com"
    assert first.json()["subject"] == "user_alice"


def test_create_user_returns_existing_lazily_created_user(client):
    me = client.get("/users/me").json()

    response = client.post("/users", json={"name": "Ignored"})

    assert response.status_code == 200
    assert response.json()["id"] == me["id"]
    assert response.json()["preferences"] == default_preferences()


def test_users_requires_authentication(anonymous_client):
    response = anonymous_client.post("/users", json={})

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


CDN_RESULT = {
    "secure_url": "https://res.cloudinary.com/demo/image/upload/v1/galaxy-ai/a.png",
    "public_id": "galaxy-ai/user_alice/1",
    "format": "png",
    "width": 10,
    "height": 20,
}


def test_upload_stores_file_record(client, db_session):
    with patch(
        "galaxy_chat.services.upload_service.upload_to_cdn", return_value=CDN_RESULT
    ) as upload:
        response = client.post(
            "/upload", files={"file": ("a.png", b"\x89PNG fake", "image/png")}
        )

    assert response.status_code == 200
    data = response.json()
    assert data["url"] == CDN_RESULT["secure_url"]
    assert data["name"] == "a.png"
    assert data["size"] == len(b"\x89PNG fake")
    assert data["type"] == "image/png"

    args = upload.call_args.args
    assert args[0] == b"\x89PNG fake"
    assert args[1].startswith("user_alice/")

    record = db_session.get(File, data["id"])
    assert record.file_path == CDN_RESULT["secure_url"]
    assert record.meta["cloudinaryId"] == CDN_RESULT["public_id"]


def test_upload_without_file_is_bad_request(client):
    response = client.post("/upload", data={"other": "x"})

    assert response.status_code == 400
    assert response.json() == {"error": "No file provided"}


def test_upload_empty_file_is_bad_request(client):
    response = client.post("/upload", files={"file": ("empty.txt", b"", "text/plain")})

    assert response.status_code == 400


def test_upload_rejects_oversized_file(client, monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE", 4)

    with patch("galaxy_chat.services.upload_service.upload_to_cdn") as upload:
        response = client.post("/upload", files={"file": ("big.bin", b"12345", "application/octet-stream")})

    assert response.status_code == 400
    upload.assert_not_called()


def test_health_is_public(anonymous_client):
    assert anonymous_client.get("/health").json() == {"status": "ok"}
