# =============================================================================
# BARANGAY AUTH SERVICE - AUTH API TESTS
# =============================================================================
# File: tests/test_auth_api.py
# Description: Integration tests for /api/auth, health and error envelopes
# =============================================================================

from typing import Dict

from fastapi.testclient import TestClient

from barangay_auth.core.security import jwt_manager


def auth_header(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def register(client: TestClient, data: Dict, **overrides):
    return client.post("/api/auth/register", json={**data, **overrides})


def approve(client: TestClient, admin_headers: Dict, user_id: str) -> None:
    response = client.post(f"/api/admin/pending/{user_id}/approve", headers=admin_headers)
    assert response.status_code == 200, response.text


class TestRegistrationToLogin:
    """The full resident journey: register, wait, get approved, log in."""

    def test_end_to_end(self, client: TestClient, registration_data, admin_headers):
        # Register
        response = register(client, registration_data)
        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["status"] == "pending"
        assert body["email"] == "juan@example.com"
        reference_id = body["referenceId"]

        # Same username again
        response = register(client, registration_data, email="other@example.com")
        assert response.status_code == 409
        assert response.json()["errorCode"] == "CONFLICT"

        # Pending accounts cannot log in
        response = client.post(
            "/api/auth/login", json={"username": "juan", "password": "SecurePass1!"}
        )
        assert response.status_code == 403
        assert response.json()["errorCode"] == "ACCOUNT_PENDING"
        assert response.json()["details"]["referenceId"] == reference_id

        approve(client, admin_headers, reference_id)

        # Approved
        response = client.post(
            "/api/auth/login", json={"username": "juan", "password": "SecurePass1!"}
        )
        assert response.status_code == 200
        body = response.json()
        assert body["user"] == {
            "id": reference_id,
            "username": "juan",
            "email": "juan@example.com",
            "role": "resident",
        }
        payload = jwt_manager.verify_token(body["accessToken"], "access")
        assert payload.sub == reference_id
        assert payload.role == "resident"

        # Five wrong passwords, then locked out
        for _ in range(5):
            response = client.post(
                "/api/auth/login", json={"username": "juan", "password": "WrongPass1!"}
            )
            assert response.status_code == 401
            assert response.json()["error"] == "Invalid credentials"

        response = client.post(
            "/api/auth/login", json={"username": "juan", "password": "SecurePass1!"}
        )
        assert response.status_code == 429
        assert response.json()["errorCode"] == "RATE_LIMIT_EXCEEDED"
        assert int(response.headers["Retry-After"]) > 0

    def test_status_lookup(self, client: TestClient, registration_data):
        reference_id = register(client, registration_data).json()["referenceId"]

        response = client.get(f"/api/auth/status/{reference_id}")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "pending"
        assert body["email"] == "juan@example.com"
        assert body["referenceId"] == reference_id
        assert body["verifiedAt"] is None

    def test_status_unknown_reference(self, client: TestClient):
        response = client.get("/api/auth/status/00000000-0000-0000-0000-000000000000")

        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "error": "User not found",
            "errorCode": "NOT_FOUND",
            "details": {},
        }


class TestRegistrationValidation:

    def test_missing_fields(self, client: TestClient):
        response = client.post("/api/auth/register", json={"username": "juan"})

        assert response.status_code == 400
        body = response.json()
        assert body["errorCode"] == "MISSING_FIELDS"
        assert body["details"]["missing"] == [
            "firstName", "lastName", "dateOfBirth", "purok",
            "phoneNumber", "email", "password",
        ]

    def test_consent_required(self, client: TestClient, registration_data):
        response = register(client, registration_data, acceptedPrivacy=False)

        assert response.status_code == 400
        assert response.json()["errorCode"] == "CONSENT_REQUIRED"

    def test_weak_password_lists_all_rules(self, client: TestClient, registration_data):
        response = register(client, registration_data, password="password")

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Password must contain at least one uppercase letter"
        assert len(body["details"]["validation_errors"]) == 3

    def test_too_young(self, client: TestClient, registration_data):
        response = register(client, registration_data, dateOfBirth="2020-01-01")

        assert response.status_code == 400
        assert response.json()["error"] == "Must be at least 16 years old"

    def test_international_phone_format(self, client: TestClient, registration_data):
        response = register(client, registration_data, phoneNumber="+639171234567")

        assert response.status_code == 201

    def test_malformed_body_uses_error_envelope(self, client: TestClient):
        response = client.post(
            "/api/auth/register",
            content="not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["errorCode"] == "VALIDATION_ERROR"

    def test_registration_rate_limited_per_ip(self, client: TestClient, registration_data):
        for i in range(10):
            response = register(
                client,
                registration_data,
                username=f"resident{i + 10}",
                email=f"resident{i + 10}@example.com",
            )
            assert response.status_code == 201

        response = register(client, registration_data)
        assert response.status_code == 429


class TestAvailability:

    def test_username(self, client: TestClient):
        assert client.get("/api/auth/check-username/admin").json() == {
            "success": True,
            "available": False,
        }
        assert client.get("/api/auth/check-username/ADMIN").json()["available"] is False
        assert client.get("/api/auth/check-username/newbie").json()["available"] is True

    def test_email(self, client: TestClient):
        assert client.get("/api/auth/check-email/admin@barangay.local").json()["available"] is False
        assert client.get("/api/auth/check-email/new@example.com").json()["available"] is True


class TestLoginErrors:

    def test_missing_credentials(self, client: TestClient):
        response = client.post("/api/auth/login", json={"username": "admin"})

        assert response.status_code == 400
        assert response.json()["error"] == "Username/Email and password are required"

    def test_login_by_email(self, client: TestClient):
        response = client.post(
            "/api/auth/login",
            json={"username": "Admin@Barangay.local", "password": "SeedPass1!"},
        )

        assert response.status_code == 200
        assert response.json()["user"]["role"] == "admin"


class TestSessionLifecycle:

    def test_me(self, client: TestClient, login):
        tokens = login("resident1")

        response = client.get("/api/auth/me", headers=auth_header(tokens["accessToken"]))

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["username"] == "resident1"
        assert user["firstName"] == "Resident"
        assert user["status"] == "active"
        assert "passwordHash" not in user

    def test_me_without_token(self, client: TestClient):
        response = client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["errorCode"] == "TOKEN_MISSING"

    def test_me_with_refresh_token(self, client: TestClient, login):
        tokens = login("resident1")

        response = client.get("/api/auth/me", headers=auth_header(tokens["refreshToken"]))

        assert response.status_code == 401
        assert response.json()["errorCode"] == "TOKEN_INVALID"

    def test_logout_then_me(self, client: TestClient, login):
        tokens = login("resident1")
        headers = auth_header(tokens["accessToken"])

        response = client.post("/api/auth/logout", headers=headers)
        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Logged out successfully"}

        response = client.get("/api/auth/me", headers=headers)
        assert response.status_code == 401
        assert response.json()["errorCode"] == "SESSION_REVOKED"

        # Idempotent
        assert client.post("/api/auth/logout", headers=headers).status_code == 200

    def test_logout_requires_token(self, client: TestClient):
        assert client.post("/api/auth/logout").status_code == 401

    def test_refresh(self, client: TestClient, login):
        tokens = login("resident1")

        response = client.post("/api/auth/refresh", json={"refreshToken": tokens["refreshToken"]})

        assert response.status_code == 200
        new_token = response.json()["accessToken"]
        assert new_token != tokens["accessToken"]

        # Same session, so /me still works with the new token
        me = client.get("/api/auth/me", headers=auth_header(new_token))
        assert me.status_code == 200

    def test_logout_with_refreshed_token_revokes_session(self, client: TestClient, login):
        tokens = login("resident1")
        new_token = client.post(
            "/api/auth/refresh", json={"refreshToken": tokens["refreshToken"]}
        ).json()["accessToken"]

        client.post("/api/auth/logout", headers=auth_header(new_token))

        response = client.get("/api/auth/me", headers=auth_header(tokens["accessToken"]))
        assert response.status_code == 401

    def test_refresh_rejects_access_token(self, client: TestClient, login):
        tokens = login("resident1")

        response = client.post("/api/auth/refresh", json={"refreshToken": tokens["accessToken"]})

        assert response.status_code == 401

    def test_refresh_requires_token(self, client: TestClient):
        response = client.post("/api/auth/refresh", json={})

        assert response.status_code == 400


class TestAuditTrail:

    def test_logout_is_audited(self, client: TestClient, login, admin_headers):
        resident = login("resident1")

        client.post(
            "/api/auth/logout?reason=done",
            headers=auth_header(resident["accessToken"]),
        )

        entries = client.get("/api/admin/audit-snapshot", headers=admin_headers).json()["entries"]
        logout_entries = [e for e in entries if e["actionType"] == "USER_LOGOUT"]
        assert len(logout_entries) == 1
        entry = logout_entries[0]
        assert entry["userId"] == resident["user"]["id"]
        assert entry["resourceType"] == "/api/auth/logout"
        assert entry["details"] == {"body": None, "query": {"reason": "done"}}

    def test_failed_request_is_not_audited(self, client: TestClient, admin_headers):
        client.post("/api/auth/logout", headers=auth_header("garbage"))

        entries = client.get("/api/admin/audit-snapshot", headers=admin_headers).json()["entries"]
        assert not [e for e in entries if e["actionType"] == "USER_LOGOUT"]


class TestPlumbing:

    def test_health(self, client: TestClient):
        for path in ("/health", "/health/live"):
            response = client.get(path)
            assert response.status_code == 200
            assert response.json()["status"] == "healthy"

    def test_readiness(self, client: TestClient):
        response = client.get("/health/ready")

        assert response.status_code == 200
        components = response.json()["components"]
        assert components["database"]["status"] == "healthy"
        assert "redis" not in components

    def test_root(self, client: TestClient):
        body = client.get("/").json()

        assert body["success"] is True
        assert body["name"]

    def test_request_id_and_security_headers(self, client: TestClient):
        response = client.get("/health", headers={"X-Request-ID": "abc-123"})

        assert response.headers["X-Request-ID"] == "abc-123"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"

    def test_unknown_route_uses_error_envelope(self, client: TestClient):
        response = client.get("/api/nope")

        assert response.status_code == 404
        assert response.json()["success"] is False
        assert response.json()["errorCode"] == "HTTP_404"
