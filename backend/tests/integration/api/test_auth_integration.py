"""
Integration tests for authentication API.

WHY: Integration tests verify that multiple components work together correctly,
testing the full request-response cycle including database operations.
"""

from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.core.config import settings

from tests.factories import UserFactory


class TestRegistration:
    async def test_register_returns_token_and_user(self, client: AsyncClient, sample_user_data):
        response = await client.post("/api/auth/register", json=sample_user_data)

        assert response.status_code == 201
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["expires_in"] == settings.JWT_EXPIRATION_MINUTES * 60
        assert data["user"]["email"] == "test@example.com"
        assert data["user"]["role"] == "USER"
        assert "hashed_password" not in data["user"]

    async def test_register_duplicate_email(
        self, client: AsyncClient, db_session: AsyncSession, sample_user_data
    ):
        await UserFactory.create(db_session, email="test@example.com")

        response = await client.post("/api/auth/register", json=sample_user_data)

        assert response.status_code == 409

    async def test_register_invalid_body(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/register",
            json={"email": "not-an-email", "password": "short", "first_name": "", "last_name": "X"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "ValidationError"


class TestLogin:
    async def test_login_flow_success(self, client: AsyncClient, db_session: AsyncSession):
        await UserFactory.create(db_session, email="user@test.com", password="SecurePassword123!")

        response = await client.post(
            "/api/auth/login",
            json={"email": "user@test.com", "password": "SecurePassword123!"},
        )

        assert response.status_code == 200
        data = response.json()
        assert "access_token" in data
        assert data["token_type"] == "bearer"

    async def test_login_with_invalid_password(self, client: AsyncClient, db_session: AsyncSession):
        await UserFactory.create(db_session, email="user@test.com", password="CorrectPassword123!")

        response = await client.post(
            "/api/auth/login",
            json={"email": "user@test.com", "password": "WrongPassword123!"},
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"

    async def test_login_with_nonexistent_user(self, client: AsyncClient):
        """Same message as a wrong password so emails can't be enumerated."""
        response = await client.post(
            "/api/auth/login",
            json={"email": "nobody@test.com", "password": "SomePassword123!"},
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"

    async def test_login_inactive_user(self, client: AsyncClient, db_session: AsyncSession):
        await UserFactory.create(
            db_session, email="gone@test.com", password="SecurePassword123!", is_active=False
        )

        response = await client.post(
            "/api/auth/login",
            json={"email": "gone@test.com", "password": "SecurePassword123!"},
        )

        assert response.status_code == 401


class TestProfileAndLogout:
    async def test_profile(self, client: AsyncClient, test_user, auth_headers):
        response = await client.get("/api/auth/profile", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["id"] == str(test_user.id)

    async def test_profile_without_token(self, client: AsyncClient):
        response = await client.get("/api/auth/profile")

        assert response.status_code == 401
        assert response.json()["error"] == "AuthenticationError"

    async def test_profile_with_garbage_token(self, client: AsyncClient):
        response = await client.get(
            "/api/auth/profile", headers={"Authorization": "Bearer not.a.token"}
        )

        assert response.status_code == 401

    async def test_inactive_user_token_rejected(
        self, client: AsyncClient, db_session: AsyncSession, headers_for
    ):
        user = await UserFactory.create(db_session, is_active=False)

        response = await client.get("/api/auth/profile", headers=headers_for(user))

        assert response.status_code == 401

    async def test_logout_revokes_token(self, client: AsyncClient, auth_headers):
        response = await client.post("/api/auth/logout", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["message"] == "Successfully logged out"

        response = await client.get("/api/auth/profile", headers=auth_headers)
        assert response.status_code == 401
        assert response.json()["message"] == "Token has been revoked"


class TestHealth:
    async def test_health_and_request_id(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert "X-Request-ID" in response.headers
