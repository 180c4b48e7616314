import logging
import uuid

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from rbac_console.database import Database
from rbac_console.errors import UpstreamError
from rbac_console.main import create_app
from rbac_console.utils.security import create_access_token


class ScriptedTextGenerator:
    def __init__(self) -> None:
        self.outputs: list[str] = []
        self.exc: Exception | None = None
        self.calls = 0

    async def generate(self, prompt: str) -> str:
        self.calls += 1
        if self.exc is not None:
            raise self.exc
        return self.outputs.pop(0)


@pytest.fixture
def generator() -> ScriptedTextGenerator:
    return ScriptedTextGenerator()


@pytest.fixture
def client(generator, app_settings):
    app = create_app(
        app_settings,
        database=Database.from_settings(app_settings),
        text_generator=generator,
    )
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers() -> dict[str, str]:
    token = create_access_token(uuid.uuid4(), "admin@example.com", ["admin"])
    return {"Authorization": f"Bearer {token}"}


def test_health(client) -> None:
    response = client.get("/health")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"status": "ok"}


def test_signup_and_login(client) -> None:
    signup = client.post(
        "/api/auth/signup",
        json={"email": "new@example.com", "password": "password123"},
    )
    assert signup.status_code == status.HTTP_201_CREATED
    assert signup.json()["user"]["email"] == "new@example.com"

    login = client.post(
        "/api/auth/login",
        json={"email": "new@example.com", "password": "password123"},
    )
    assert login.status_code == status.HTTP_200_OK
    assert login.json()["token"]

    bad = client.post(
        "/api/auth/login",
        json={"email": "new@example.com", "password": "not-the-password"},
    )
    assert bad.status_code == status.HTTP_401_UNAUTHORIZED
    assert bad.json()["error"] == "Invalid credentials"


def test_signup_short_password_is_validation_error(client) -> None:
    response = client.post(
        "/api/auth/signup",
        json={"email": "new@example.com", "password": "short"},
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    body = response.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert body["error"] == "Validation failed"
    assert body["details"]


def test_roles_require_token(client) -> None:
    response = client.get("/api/roles")

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["error"] == "Unauthorized - No token provided"


def test_invalid_token_rejected(client) -> None:
    response = client.get("/api/roles", headers={"Authorization": "Bearer nope"})

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["error"] == "Unauthorized - Invalid token"


def test_role_crud_and_permission_links(client, auth_headers) -> None:
    role = client.post("/api/roles", json={"name": "editor"}, headers=auth_headers)
    assert role.status_code == status.HTTP_201_CREATED
    role_id = role.json()["id"]

    permission = client.post(
        "/api/permissions",
        json={"name": "publish", "description": "Publish articles"},
        headers=auth_headers,
    )
    assert permission.status_code == status.HTTP_201_CREATED
    permission_id = permission.json()["id"]

    link = client.post(
        f"/api/roles/{role_id}/permissions",
        json={"permissionId": permission_id},
        headers=auth_headers,
    )
    assert link.status_code == status.HTTP_201_CREATED
    assert link.json()["permission"]["name"] == "publish"

    duplicate = client.post(
        f"/api/roles/{role_id}/permissions",
        json={"permissionId": permission_id},
        headers=auth_headers,
    )
    assert duplicate.status_code == status.HTTP_409_CONFLICT
    assert duplicate.json()["code"] == "CONFLICT_ERROR"

    fetched = client.get(f"/api/roles/{role_id}", headers=auth_headers)
    assert [p["name"] for p in fetched.json()["permissions"]] == ["publish"]

    unlink = client.request(
        "DELETE",
        f"/api/roles/{role_id}/permissions",
        json={"permissionId": permission_id},
        headers=auth_headers,
    )
    assert unlink.status_code == status.HTTP_204_NO_CONTENT

    renamed = client.put(f"/api/roles/{role_id}", json={"name": "writer"}, headers=auth_headers)
    assert renamed.json()["name"] == "writer"

    page = client.get("/api/roles", params={"skip": 0, "take": 5}, headers=auth_headers)
    assert page.json()["total"] == 1
    assert page.json()["take"] == 5

    deleted = client.delete(f"/api/roles/{role_id}", headers=auth_headers)
    assert deleted.status_code == status.HTTP_204_NO_CONTENT
    missing = client.get(f"/api/roles/{role_id}", headers=auth_headers)
    assert missing.status_code == status.HTTP_404_NOT_FOUND
    assert missing.json()["error"] == "Role not found"


def test_take_above_limit_rejected(client, auth_headers) -> None:
    response = client.get("/api/permissions", params={"take": 1000}, headers=auth_headers)

    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_parse_command_requires_token_before_upstream(client, generator) -> None:
    response = client.post("/api/ai/parse-command", json={"command": "Create admin role"})

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert generator.calls == 0


def test_parse_command_creates_role(client, generator, auth_headers) -> None:
    generator.outputs.append(
        '```json\n{"action":"create_role","params":{"role_name":"admin","permission_name":null}}\n```'
    )

    response = client.post(
        "/api/ai/parse-command", json={"command": "Create admin role"}, headers=auth_headers
    )

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["success"] is True
    assert body["parsed"]["action"] == "create_role"
    assert body["result"]["name"] == "admin"


def test_parse_command_domain_failure_carries_parsed(client, generator, auth_headers) -> None:
    output = '{"action":"create_role","params":{"role_name":"admin","permission_name":null}}'
    generator.outputs.extend([output, output])
    client.post("/api/ai/parse-command", json={"command": "Create admin"}, headers=auth_headers)

    response = client.post(
        "/api/ai/parse-command", json={"command": "Create admin"}, headers=auth_headers
    )

    assert response.status_code == status.HTTP_409_CONFLICT
    body = response.json()
    assert body["error"] == "Role with this name already exists"
    assert body["code"] == "CONFLICT_ERROR"
    assert body["parsed"]["params"]["role_name"] == "admin"


def test_parse_command_blank_is_rejected(client, generator, auth_headers) -> None:
    response = client.post("/api/ai/parse-command", json={"command": "  "}, headers=auth_headers)

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "command is required"
    assert generator.calls == 0


def test_parse_command_upstream_failure_has_no_parsed(client, generator, auth_headers) -> None:
    generator.exc = UpstreamError(
        "Text generation API error: 500", details={"upstream_status": 500}
    )

    response = client.post(
        "/api/ai/parse-command", json={"command": "Create admin role"}, headers=auth_headers
    )

    assert response.status_code == status.HTTP_502_BAD_GATEWAY
    body = response.json()
    assert body["code"] == "UPSTREAM_ERROR"
    assert body["details"] == {"upstream_status": 500}
    assert "parsed" not in body


def test_parse_command_unknown_is_success(client, generator, auth_headers) -> None:
    generator.outputs.append("no idea")

    response = client.post(
        "/api/ai/parse-command", json={"command": "sing a song"}, headers=auth_headers
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {
        "success": True,
        "parsed": {"action": "unknown", "params": {}},
        "result": {"message": "Command executed"},
    }


def test_create_app_applies_configured_log_level(app_settings) -> None:
    app_logger = logging.getLogger("rbac_console")
    previous = app_logger.level
    try:
        create_app(app_settings.model_copy(update={"log_level": "DEBUG"}))
        assert app_logger.level == logging.DEBUG

        create_app(app_settings.model_copy(update={"log_level": "WARNING"}))
        assert app_logger.level == logging.WARNING
    finally:
        app_logger.setLevel(previous)


def test_parse_command_missing_field_is_rejected(client, generator, auth_headers) -> None:
    response = client.post("/api/ai/parse-command", json={}, headers=auth_headers)

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "command is required"
    assert generator.calls == 0
