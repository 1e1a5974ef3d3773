"""
Integration tests for user management API endpoints.
"""

import uuid

from httpx import AsyncClient

from tests.factories import OrganizationFactory, UserFactory


class TestCreateUser:
    async def test_admin_creates_user(self, client: AsyncClient, admin_headers):
        response = await client.post(
            "/api/users",
            json={
                "email": "new@example.com",
                "password": "SecurePassword123!",
                "first_name": "New",
                "last_name": "User",
                "role": "ADMIN",
            },
            headers=admin_headers,
        )

        assert response.status_code == 201
        assert response.json()["role"] == "ADMIN"

    async def test_regular_user_cannot_create(self, client: AsyncClient, auth_headers):
        response = await client.post(
            "/api/users",
            json={
                "email": "new@example.com",
                "password": "SecurePassword123!",
                "first_name": "New",
                "last_name": "User",
            },
            headers=auth_headers,
        )

        assert response.status_code == 403
        assert response.json()["error"] == "InsufficientPermissionsError"


class TestReadUsers:
    async def test_list_paginated(self, client: AsyncClient, db_session, auth_headers):
        for _ in range(2):
            await UserFactory.create(db_session)

        response = await client.get("/api/users", params={"limit": 2}, headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert data["total_pages"] == 2
        assert len(data["data"]) == 2

    async def test_active_and_by_role(self, client: AsyncClient, db_session, auth_headers, test_admin):
        await UserFactory.create(db_session, is_active=False)

        response = await client.get("/api/users/active", headers=auth_headers)
        assert len(response.json()) == 2

        response = await client.get("/api/users/role/ADMIN", headers=auth_headers)
        assert [u["id"] for u in response.json()] == [str(test_admin.id)]

    async def test_get_user(self, client: AsyncClient, test_user, auth_headers):
        response = await client.get(f"/api/users/{test_user.id}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["email"] == "testuser@example.com"

    async def test_get_missing_user(self, client: AsyncClient, auth_headers):
        response = await client.get(f"/api/users/{uuid.uuid4()}", headers=auth_headers)

        assert response.status_code == 404


class TestUpdateUser:
    async def test_update_self(self, client: AsyncClient, test_user, auth_headers):
        response = await client.patch(
            f"/api/users/{test_user.id}", json={"first_name": "Renamed"}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["first_name"] == "Renamed"

    async def test_cannot_update_someone_else(self, client: AsyncClient, db_session, auth_headers):
        other = await UserFactory.create(db_session)

        response = await client.patch(
            f"/api/users/{other.id}", json={"first_name": "Hacked"}, headers=auth_headers
        )

        assert response.status_code == 403

    async def test_cannot_promote_self(self, client: AsyncClient, test_user, auth_headers):
        response = await client.patch(
            f"/api/users/{test_user.id}", json={"role": "ADMIN"}, headers=auth_headers
        )

        assert response.status_code == 403

    async def test_admin_deactivates_user(self, client: AsyncClient, test_user, admin_headers):
        response = await client.patch(
            f"/api/users/{test_user.id}", json={"is_active": False}, headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["is_active"] is False


class TestDeleteUser:
    async def test_delete_user(self, client: AsyncClient, db_session, admin_headers):
        user = await UserFactory.create(db_session)

        response = await client.delete(f"/api/users/{user.id}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "User deleted"

        response = await client.get(f"/api/users/{user.id}", headers=admin_headers)
        assert response.status_code == 404

    async def test_last_owner_cannot_be_deleted(self, client: AsyncClient, db_session, admin_headers):
        owner = await UserFactory.create(db_session)
        organization = await OrganizationFactory.create(db_session, owners=[(owner, "OWNER")])

        response = await client.delete(f"/api/users/{owner.id}", headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["details"]["organization_ids"] == [str(organization.id)]

    async def test_regular_user_cannot_delete(self, client: AsyncClient, db_session, auth_headers):
        other = await UserFactory.create(db_session)

        response = await client.delete(f"/api/users/{other.id}", headers=auth_headers)

        assert response.status_code == 403
