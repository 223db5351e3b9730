"""
tests/test_user_routes.py -- Integration tests for admin user management.

Coverage:
  - General User: 403 on every /users route; no token: 401
  - Admin: list, get, create (201), update (PUT), delete (204)
  - Duplicate identifier / email: 409 conflict, nothing written
  - Self-deletion: 400 invalid_operation, distinct from 403
  - Empty update: 400 no_changes; unknown target: 404
  - Password change takes effect at the next login
  - Passwords over 72 UTF-8 bytes: 422; surrounding whitespace is kept
  - Every handler routes its decision through authorize_user_operation()

Fixtures used (from conftest.py):
  - api_client: (client, tokens) -- tokens for admin001, user001 and user002
"""

from __future__ import annotations

from fastapi.testclient import TestClient


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _new_user(identifier: str, **overrides) -> dict:
    body = {
        "identifier": identifier,
        "password": "initialpass1",
        "role": "General User",
        "name": identifier.title(),
        "email": f"{identifier}@test.local",
        "department": "QA",
    }
    body.update(overrides)
    return body


class TestUserAccessControl:
    def test_no_token_is_401(self, api_client: tuple[TestClient, dict[str, str]]) -> None:
        client, _tokens = api_client
        assert client.get("/api/v1/users").status_code == 401

    def test_general_user_forbidden_everywhere(self, api_client: tuple[TestClient, dict[str, str]]) -> None:
        client, tokens = api_client
        headers = _auth(tokens["user001"])
        calls = [
            client.get("/api/v1/users", headers=headers),
            client.get("/api/v1/users/user002", headers=headers),
            client.post("/api/v1/users", json=_new_user("sneaky"), headers=headers),
            client.put("/api/v1/users/user002", json={"name": "x"}, headers=headers),
            client.delete("/api/v1/users/user002", headers=headers),
            client.delete("/api/v1/users/user001", headers=headers),
        ]
        for resp in calls:
            assert resp.status_code == 403, f"{resp.request.method} {resp.request.url}: {resp.status_code}"
            assert resp.json()["error"] == {
                "code": "forbidden",
                "message": "Access denied. Admin privileges required.",
            }
        store = client.app.state.principal_store
        assert store.get_by_identifier("sneaky") is None
        assert store.get_by_identifier("user002") is not None


class TestUserManagement:
    def test_list_users(self, api_client: tuple[TestClient, dict[str, str]]) -> None:
        client, tokens = api_client
        resp = client.get("/api/v1/users", headers=_auth(tokens["admin001"]))
        assert resp.status_code == 200
        identifiers = {u["identifier"] for u in resp.json()}
        assert {"admin001", "user001", "user002"} <= identifiers
        assert all("hashed_password" not in u for u in resp.json())

    def test_get_user(self, api_client: tuple[TestClient, dict[str, str]]) -> None:
        client, tokens = api_client
        resp = client.get("/api/v1/users/user001", headers=_auth(tokens["admin001"]))
        assert resp.status_code == 200
        assert resp.json()["email"] == "user1@test.local"

    def test_get_missing_user(self, api_client: tuple[TestClient, dict[str, str]]) -> None:
        client, tokens = api_client
        resp = client.get("/api/v1/users/ghost", headers=_auth(tokens["admin001"]))
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "not_found"

    def test_create_user(self, api_client: tuple[TestClient, dict[str, str]]) -> None:
        client, tokens = api_client
        resp = client.post("/api/v1/users", json=_new_user("newhire"), headers=_auth(tokens["admin001"]))
        assert resp.status_code == 201, resp.text
        data = resp.json()
        assert data["identifier"] == "newhire"
        assert data["role"] == "General User"
        assert data["department"] == "QA"
        assert "password" not in data
        assert "hashed_password" not in data

        login = client.post(
            "/api/v1/auth/login",
            json={"identifier": "newhire", "password": "initialpass1", "role": "General User"},
        )
        assert login.status_code == 200

    def test_create_duplicate_identifier(self, api_client: tuple[TestClient, dict[str, str]]) -> None:
        client, tokens = api_client
        resp = client.post(
            "/api/v1/users",
            json=_new_user("user001", email="fresh@test.local"),
            headers=_auth(tokens["admin001"]),
        )
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "conflict"
        assert client.app.state.principal_store.get_by_identifier("user001").email == "user1@test.local"

    def test_create_duplicate_email(self, api_client: tuple[TestClient, dict[str, str]]) -> None:
        client, tokens = api_client
        resp = client.post(
            "/api/v1/users",
            json=_new_user("dupmail", email="user1@test.local"),
            headers=_auth(tokens["admin001"]),
        )
        assert resp.status_code == 409
        assert client.app.state.principal_store.get_by_identifier("dupmail") is None

    def test_create_rejects_bad_input(self, api_client: tuple[TestClient, dict[str, str]]) -> None:
        client, tokens = api_client
        headers = _auth(tokens["admin001"])
        bad_bodies = [
            _new_user("badmail", email="not-an-email"),
            _new_user("shortpw", password="short"),
            _new_user("badrole", role="Superuser"),
            _new_user("bad id with spaces"),
        ]
        for body in bad_bodies:
            resp = client.post("/api/v1/users", json=body, headers=headers)
            assert resp.status_code == 422, f"{body['identifier']}: {resp.status_code}"
            assert resp.json()["error"]["code"] == "validation_error"

    def test_update_user(self, api_client: tuple[TestClient, dict[str, str]]) -> None:
        client, tokens = api_client
        headers = _auth(tokens["admin001"])
        client.post("/api/v1/users", json=_new_user("promote"), headers=headers)
        resp = client.put(
            "/api/v1/users/promote",
            json={"role": "Admin", "department": "Security"},
            headers=headers,
        )
        assert resp.status_code == 200, resp.text
        assert resp.json()["role"] == "Admin"
        assert resp.json()["department"] == "Security"
        assert resp.json()["name"] == "Promote"

    def test_update_password_changes_login(self, api_client: tuple[TestClient, dict[str, str]]) -> None:
        client, tokens = api_client
        headers = _auth(tokens["admin001"])
        client.post("/api/v1/users", json=_new_user("rotate"), headers=headers)
        resp = client.put("/api/v1/users/rotate", json={"password": "rotatedpass9"}, headers=headers)
        assert resp.status_code == 200

        def login(password: str) -> int:
            return client.post(
                "/api/v1/auth/login",
                json={"identifier": "rotate", "password": password, "role": "General User"},
            ).status_code

        assert login("initialpass1") == 401
        assert login("rotatedpass9") == 200

    def test_update_email_conflict(self, api_client: tuple[TestClient, dict[str, str]]) -> None:
        client, tokens = api_client
        resp = client.put(
            "/api/v1/users/user002",
            json={"email": "user1@test.local"},
            headers=_auth(tokens["admin001"]),
        )
        assert resp.status_code == 409

    def test_update_with_no_fields(self, api_client: tuple[TestClient, dict[str, str]]) -> None:
        client, tokens = api_client
        resp = client.put("/api/v1/users/user002", json={}, headers=_auth(tokens["admin001"]))
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "no_changes"

    def test_update_missing_user(self, api_client: tuple[TestClient, dict[str, str]]) -> None:
        client, tokens = api_client
        resp = client.put("/api/v1/users/ghost", json={"name": "Ghost"}, headers=_auth(tokens["admin001"]))
        assert resp.status_code == 404

    def test_delete_user(self, api_client: tuple[TestClient, dict[str, str]]) -> None:
        client, tokens = api_client
        headers = _auth(tokens["admin001"])
        client.post("/api/v1/users", json=_new_user("leaver"), headers=headers)
        resp = client.delete("/api/v1/users/leaver", headers=headers)
        assert resp.status_code == 204
        assert resp.content == b""
        assert client.get("/api/v1/users/leaver", headers=headers).status_code == 404

    def test_delete_missing_user(self, api_client: tuple[TestClient, dict[str, str]]) -> None:
        client, tokens = api_client
        resp = client.delete("/api/v1/users/ghost", headers=_auth(tokens["admin001"]))
        assert resp.status_code == 404

    def test_admin_cannot_delete_self(self, api_client: tuple[TestClient, dict[str, str]]) -> None:
        client, tokens = api_client
        resp = client.delete("/api/v1/users/admin001", headers=_auth(tokens["admin001"]))
        assert resp.status_code == 400
        assert resp.json()["error"] == {"code": "invalid_operation", "message": "Cannot delete your own account."}
        assert client.app.state.principal_store.get_by_identifier("admin001") is not None

    def test_create_rejects_password_over_72_bytes(self, api_client: tuple[TestClient, dict[str, str]]) -> None:
        """40 two-byte characters fit the character cap but not bcrypt's 72-byte input limit."""
        client, tokens = api_client
        resp = client.post(
            "/api/v1/users",
            json=_new_user("longpw", password="é" * 40),
            headers=_auth(tokens["admin001"]),
        )
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "validation_error"
        assert client.app.state.principal_store.get_by_identifier("longpw") is None

    def test_update_rejects_password_over_72_bytes(self, api_client: tuple[TestClient, dict[str, str]]) -> None:
        client, tokens = api_client
        store = client.app.state.principal_store
        before = store.get_by_identifier("user002").hashed_password
        resp = client.put("/api/v1/users/user002", json={"password": "é" * 40}, headers=_auth(tokens["admin001"]))
        assert resp.status_code == 422
        assert store.get_by_identifier("user002").hashed_password == before

    def test_password_at_byte_limit_accepted(self, api_client: tuple[TestClient, dict[str, str]]) -> None:
        client, tokens = api_client
        resp = client.post(
            "/api/v1/users",
            json=_new_user("edgepw", password="é" * 36),
            headers=_auth(tokens["admin001"]),
        )
        assert resp.status_code == 201, resp.text

    def test_password_whitespace_is_kept(self, api_client: tuple[TestClient, dict[str, str]]) -> None:
        """Surrounding spaces are part of the password; other text fields are trimmed."""
        client, tokens = api_client
        resp = client.post(
            "/api/v1/users",
            json=_new_user("spacey", password="  padded pass  ", name="  Spacey  "),
            headers=_auth(tokens["admin001"]),
        )
        assert resp.status_code == 201, resp.text
        assert resp.json()["name"] == "Spacey"

        def login(password: str) -> int:
            return client.post(
                "/api/v1/auth/login",
                json={"identifier": " spacey ", "password": password, "role": "General User"},
            ).status_code

        assert login("  padded pass  ") == 200
        assert login("padded pass") == 401


class TestUserOperationDecisions:
    def test_every_route_consults_the_policy(self, api_client, monkeypatch) -> None:
        """Each handler hands its operation and target to authorize_user_operation."""
        import api.routes.v1.users as users_routes
        from auth.policy import UserOperation

        client, tokens = api_client
        headers = _auth(tokens["admin001"])
        seen = []
        real = users_routes.authorize_user_operation

        def recording(principal, operation, target_identifier=None):
            seen.append((operation, target_identifier))
            return real(principal, operation, target_identifier)

        monkeypatch.setattr(users_routes, "authorize_user_operation", recording)

        client.get("/api/v1/users", headers=headers)
        client.get("/api/v1/users/user001", headers=headers)
        client.post("/api/v1/users", json=_new_user("audited"), headers=headers)
        client.put("/api/v1/users/audited", json={"name": "Audited"}, headers=headers)
        client.delete("/api/v1/users/audited", headers=headers)

        assert seen == [
            (UserOperation.LIST, None),
            (UserOperation.READ, "user001"),
            (UserOperation.CREATE, "audited"),
            (UserOperation.UPDATE, "audited"),
            (UserOperation.DELETE, "audited"),
        ]
