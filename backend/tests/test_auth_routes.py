"""End-to-end tests for the /auth endpoints."""

from fastapi.testclient import TestClient

from arbeit_auth.auth_utils import decode_access_token
from arbeit_auth.db.connection import get_db_session
from arbeit_auth.db.models import User
from arbeit_auth.main import create_app

from conftest import BUSINESS_PASSWORD, USER_PASSWORD


def _set_cookie_header(response) -> str:
    return response.headers.get("set-cookie", "")


def _cookie_attributes(response) -> list:
    header = _set_cookie_header(response).lower()
    return [part.strip() for part in header.split(";")[1:]]


class TestLogin:
    def test_login_sets_cookie_and_hides_token(self, client, test_user, settings):
        response = client.post(
            "/auth/login", json={"email": "ada@example.com", "password": USER_PASSWORD}
        )
        assert response.status_code == 200

        token = response.cookies.get("accessToken")
        assert token
        assert token not in response.text
        assert decode_access_token(token, settings).id == test_user.id

        body = response.json()
        assert body == {
            "message": "Login successful",
            "userId": str(test_user.id),
            "email": "ada@example.com",
            "role": "USER",
        }

    def test_cookie_attributes(self, client, test_user):
        response = client.post(
            "/auth/login", json={"email": "ada@example.com", "password": USER_PASSWORD}
        )
        header = _set_cookie_header(response).lower()
        assert header.startswith("accesstoken=")
        assert "httponly" in header
        assert "max-age=1800" in header
        assert "path=/" in header
        assert "samesite=lax" in header
        attributes = _cookie_attributes(response)
        assert "secure" not in attributes
        assert not any(a.startswith("domain=") for a in attributes)

    def test_cookie_domain_and_secure_follow_settings(self, settings, db_session, test_user):
        secure_settings = settings.model_copy(
            update={"COOKIE_DOMAIN": "arbeit.example.com", "COOKIE_SECURE": True}
        )
        app = create_app(secure_settings)
        app.dependency_overrides[get_db_session] = lambda: db_session
        response = TestClient(app).post(
            "/auth/login", json={"email": "ada@example.com", "password": USER_PASSWORD}
        )
        attributes = _cookie_attributes(response)
        assert "domain=arbeit.example.com" in attributes
        assert "secure" in attributes

    def test_email_is_normalized(self, client, test_user):
        messy = client.post(
            "/auth/login", json={"email": "  ADA@Example.com ", "password": USER_PASSWORD}
        )
        clean = client.post(
            "/auth/login", json={"email": "ada@example.com", "password": USER_PASSWORD}
        )
        assert messy.status_code == clean.status_code == 200
        assert messy.json()["userId"] == clean.json()["userId"]

    def test_wrong_password(self, client, test_user):
        response = client.post(
            "/auth/login", json={"email": "ada@example.com", "password": "wrong"}
        )
        assert response.status_code == 400
        assert response.json() == {"message": "Login failed: Invalid email or password"}
        assert "accessToken" not in response.cookies

    def test_unknown_email_gets_same_message(self, client):
        response = client.post(
            "/auth/login", json={"email": "ghost@example.com", "password": "whatever"}
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Login failed: Invalid email or password"

    def test_missing_fields(self, client):
        response = client.post("/auth/login", json={"email": "ada@example.com"})
        assert response.status_code == 400
        assert response.json() == {"message": "Invalid request"}

    def test_unexpected_error_is_generic(self, client, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("connection string with password=hunter2")

        monkeypatch.setattr("arbeit_auth.routers.auth.authenticate_user", boom)
        response = client.post(
            "/auth/login", json={"email": "ada@example.com", "password": "x"}
        )
        assert response.status_code == 500
        assert response.json() == {"message": "Internal server error"}
        assert "hunter2" not in response.text

    def test_unexpected_error_keeps_cors_headers(self, client, test_user, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("unexpected")

        # Not wrapped by the route, so it reaches the catch-all
        monkeypatch.setattr("arbeit_auth.routers.auth.set_session_cookie", boom)
        response = client.post(
            "/auth/login",
            json={"email": "ada@example.com", "password": USER_PASSWORD},
            headers={"Origin": "http://localhost:3000"},
        )
        assert response.status_code == 500
        assert response.json() == {"message": "Internal server error"}
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"


class TestRegister:
    payload = {
        "email": "Grace@Example.com",
        "password": "Cobol1959!",
        "firstName": "Grace",
        "lastName": "Hopper",
    }

    def test_register_then_duplicate(self, client):
        first = client.post("/auth/register", json=self.payload)
        assert first.status_code == 201
        body = first.json()
        assert body["message"] == "User registered successfully"
        assert body["email"] == "grace@example.com"
        assert body["role"] == "USER"
        assert body["userId"]
        assert "password" not in first.text

        second = client.post("/auth/register", json=self.payload)
        assert second.status_code == 400
        assert second.json()["message"].startswith("Registration failed: ")

    def test_registration_does_not_log_in(self, client):
        response = client.post("/auth/register", json=self.payload)
        assert "accessToken" not in response.cookies

    def test_registered_user_can_log_in(self, client):
        client.post("/auth/register", json=self.payload)
        response = client.post(
            "/auth/login", json={"email": "grace@example.com", "password": "Cobol1959!"}
        )
        assert response.status_code == 200

    def test_invalid_email_shape(self, client):
        response = client.post("/auth/register", json={**self.payload, "email": "not-an-email"})
        assert response.status_code == 400

    def test_short_password(self, client):
        response = client.post("/auth/register", json={**self.payload, "password": "short"})
        assert response.status_code == 400

    def test_blank_names_are_rejected(self, client):
        for field in ("firstName", "lastName"):
            response = client.post("/auth/register", json={**self.payload, field: "   "})
            assert response.status_code == 400
            assert response.json() == {"message": "Invalid request"}

    def test_names_are_stored_trimmed(self, client, db_session):
        client.post(
            "/auth/register",
            json={**self.payload, "firstName": "  Grace ", "lastName": " Hopper  "},
        )
        user = db_session.query(User).filter(User.email_lower == "grace@example.com").one()
        assert (user.first_name, user.last_name) == ("Grace", "Hopper")

    def test_concurrent_duplicate_is_a_conflict(self, client, test_user, monkeypatch):
        # Another request inserted the same email between the lookup and the insert
        monkeypatch.setattr(
            "arbeit_auth.services.accounts._find_by_email", lambda *args, **kwargs: None
        )
        response = client.post(
            "/auth/register", json={**self.payload, "email": "ada@example.com"}
        )
        assert response.status_code == 400
        assert response.json() == {
            "message": "Registration failed: An account with email 'ada@example.com' already exists."
        }

    def test_unexpected_error_is_generic(self, client, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("disk full")

        monkeypatch.setattr("arbeit_auth.routers.auth.register_user", boom)
        response = client.post("/auth/register", json=self.payload)
        assert response.status_code == 500
        assert response.json() == {"message": "Internal server error"}


class TestLogout:
    def test_logout_clears_cookie(self, client):
        response = client.post("/auth/logout")
        assert response.status_code == 200
        assert response.json() == {"message": "Logged out successfully"}
        header = _set_cookie_header(response).lower()
        assert header.startswith("accesstoken=")
        assert "max-age=0" in header
        assert "httponly" in header
        assert "path=/" in header

    def test_logout_is_idempotent(self, client):
        assert client.post("/auth/logout").status_code == 200
        assert client.post("/auth/logout").status_code == 200

    def test_token_stays_valid_after_logout(self, client, user_token, settings):
        # No server-side revocation: a client that kept the token can still use it
        client.cookies.set("accessToken", user_token)
        client.post("/auth/logout")
        assert decode_access_token(user_token, settings) is not None

        client.cookies.set("accessToken", user_token)
        response = client.post(
            "/auth/change-password",
            json={"currentPassword": USER_PASSWORD, "newPassword": "Another123!"},
        )
        assert response.status_code == 200


class TestChangePassword:
    def test_missing_cookie_is_401_regardless_of_body(self, client):
        for body in (
            {"currentPassword": "a", "newPassword": "bbbbbbbb"},
            {"currentPassword": "a"},
            {},
        ):
            response = client.post("/auth/change-password", json=body)
            assert response.status_code == 401
            assert response.json() == {"message": "Unauthorized"}

    def test_invalid_cookie_is_401(self, client):
        client.cookies.set("accessToken", "garbage")
        response = client.post(
            "/auth/change-password",
            json={"currentPassword": "a", "newPassword": "bbbbbbbb"},
        )
        assert response.status_code == 401

    def test_missing_fields_with_valid_cookie(self, client, user_token):
        client.cookies.set("accessToken", user_token)
        for body in ({"currentPassword": USER_PASSWORD}, {"newPassword": "Another123!"}, {}):
            response = client.post("/auth/change-password", json=body)
            assert response.status_code == 400

    def test_success(self, client, user_token):
        client.cookies.set("accessToken", user_token)
        response = client.post(
            "/auth/change-password",
            json={"currentPassword": USER_PASSWORD, "newPassword": "Another123!"},
        )
        assert response.status_code == 200
        assert response.json() == {"message": "Password updated"}

        login = client.post(
            "/auth/login", json={"email": "ada@example.com", "password": "Another123!"}
        )
        assert login.status_code == 200

    def test_wrong_current_password(self, client, user_token):
        client.cookies.set("accessToken", user_token)
        response = client.post(
            "/auth/change-password",
            json={"currentPassword": "not-it", "newPassword": "Another123!"},
        )
        assert response.status_code == 400
        assert response.json() == {"message": "Current password is incorrect"}

    def test_business_can_change_password(self, client, business_token):
        client.cookies.set("accessToken", business_token)
        response = client.post(
            "/auth/change-password",
            json={"currentPassword": BUSINESS_PASSWORD, "newPassword": "Another123!"},
        )
        assert response.status_code == 200

    def test_unexpected_error_is_generic(self, client, user_token, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("db exploded")

        monkeypatch.setattr("arbeit_auth.routers.auth.change_account_password", boom)
        client.cookies.set("accessToken", user_token)
        response = client.post(
            "/auth/change-password",
            json={"currentPassword": USER_PASSWORD, "newPassword": "Another123!"},
        )
        assert response.status_code == 500
        assert response.json() == {"message": "Failed to update password"}


class TestVerifyEmail:
    def test_request_code(self, client):
        response = client.post("/auth/verify-email", json={"email": "ada@example.com"})
        assert response.status_code == 200
        assert response.json() == {"message": "Verification code sent"}

    def test_request_code_requires_email(self, client):
        for body in ({}, {"email": ""}, {"email": "   "}):
            response = client.post("/auth/verify-email", json=body)
            assert response.status_code == 400
            assert response.json() == {"message": "Email is required"}

    def test_submit_code(self, client):
        response = client.put(
            "/auth/verify-email", json={"email": "ada@example.com", "code": "000000"}
        )
        assert response.status_code == 200
        assert response.json() == {"message": "Email verified"}

    def test_submit_code_requires_both_fields(self, client):
        for body in ({"email": "ada@example.com"}, {"code": "123456"}, {"email": "", "code": ""}):
            response = client.put("/auth/verify-email", json=body)
            assert response.status_code == 400
            assert response.json() == {"message": "Invalid request"}
