"""
Integration tests for organization API endpoints.

WHY: Organization changes are protected by ownership guards on the
organization_id path parameter. These tests exercise the whole chain:
token -> guard -> service -> database -> JSON response.
"""

import uuid

import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from tests.factories import OrganizationFactory, UserFactory


@pytest_asyncio.fixture
async def acme(db_session: AsyncSession):
    """Acme with an OWNER, an ADMIN and a MEMBER."""
    owner = await UserFactory.create(db_session, email="owner@acme.com")
    admin = await UserFactory.create(db_session, email="admin@acme.com")
    member = await UserFactory.create(db_session, email="member@acme.com")
    organization = await OrganizationFactory.create(
        db_session,
        name="Acme",
        owners=[(owner, "OWNER"), (admin, "ADMIN"), (member, "MEMBER")],
    )
    return {"organization": organization, "owner": owner, "admin": admin, "member": member}


class TestCreateOrganization:
    async def test_create(self, client: AsyncClient, test_user, auth_headers, db_session):
        other = await UserFactory.create(db_session)

        response = await client.post(
            "/api/organizations",
            json={
                "name": "New Corp",
                "description": "Things",
                "owner_ids": [str(test_user.id), str(other.id)],
            },
            headers=auth_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "New Corp"
        assert data["is_active"] is True
        assert len(data["owners"]) == 2
        assert {o["role"] for o in data["owners"]} == {"OWNER"}
        assert {o["user_id"] for o in data["owners"]} == {str(test_user.id), str(other.id)}

    async def test_create_with_missing_owner_persists_nothing(
        self, client: AsyncClient, test_user, auth_headers
    ):
        missing = str(uuid.uuid4())

        response = await client.post(
            "/api/organizations",
            json={"name": "Ghost Corp", "owner_ids": [str(test_user.id), missing]},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["details"]["user_ids"] == [missing]

        response = await client.get("/api/organizations/name/Ghost Corp", headers=auth_headers)
        assert response.status_code == 404

    async def test_create_name_conflict(self, client: AsyncClient, test_user, auth_headers, acme):
        response = await client.post(
            "/api/organizations",
            json={"name": "Acme", "owner_ids": [str(test_user.id)]},
            headers=auth_headers,
        )

        assert response.status_code == 409

    async def test_create_body_validation(self, client: AsyncClient, test_user, auth_headers):
        for body in (
            {"name": "A", "owner_ids": [str(test_user.id)]},
            {"name": "Valid Name", "owner_ids": []},
            {"name": "Valid Name", "owner_ids": ["not-a-uuid"]},
            {"name": "Valid Name", "description": "x" * 501, "owner_ids": [str(test_user.id)]},
        ):
            response = await client.post("/api/organizations", json=body, headers=auth_headers)
            assert response.status_code == 400, body

    async def test_create_requires_authentication(self, client: AsyncClient):
        response = await client.post(
            "/api/organizations", json={"name": "Anon Corp", "owner_ids": [str(uuid.uuid4())]}
        )

        assert response.status_code == 401


class TestReadOrganizations:
    async def test_list_paginated(self, client: AsyncClient, auth_headers, db_session):
        for i in range(3):
            await OrganizationFactory.create(db_session, name=f"Org {i}")

        response = await client.get(
            "/api/organizations", params={"page": 1, "limit": 2}, headers=auth_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert data["total_pages"] == 2
        assert len(data["data"]) == 2
        assert "owners" not in data["data"][0]

    async def test_list_with_owners(self, client: AsyncClient, auth_headers, acme):
        response = await client.get(
            "/api/organizations", params={"include_owners": True}, headers=auth_headers
        )

        assert response.status_code == 200
        assert len(response.json()["data"][0]["owners"]) == 3

    async def test_list_normalizes_paging(self, client: AsyncClient, auth_headers, acme):
        response = await client.get(
            "/api/organizations", params={"page": 0, "limit": 1000}, headers=auth_headers
        )

        data = response.json()
        assert data["page"] == 1
        assert data["limit"] == 100

    async def test_get_by_id(self, client: AsyncClient, auth_headers, acme):
        organization_id = acme["organization"].id

        response = await client.get(f"/api/organizations/{organization_id}", headers=auth_headers)

        assert response.status_code == 200
        owners = response.json()["owners"]
        assert {o["user"]["email"] for o in owners} == {
            "owner@acme.com",
            "admin@acme.com",
            "member@acme.com",
        }

    async def test_get_missing(self, client: AsyncClient, auth_headers):
        response = await client.get(f"/api/organizations/{uuid.uuid4()}", headers=auth_headers)

        assert response.status_code == 404

    async def test_get_by_name(self, client: AsyncClient, auth_headers, acme):
        response = await client.get("/api/organizations/name/Acme", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["id"] == str(acme["organization"].id)

    async def test_active_and_by_owner(self, client: AsyncClient, auth_headers, acme, db_session):
        await OrganizationFactory.create(db_session, name="Dormant", is_active=False)

        response = await client.get("/api/organizations/active", headers=auth_headers)
        assert [o["name"] for o in response.json()] == ["Acme"]

        response = await client.get(
            f"/api/organizations/by-owner/{acme['member'].id}", headers=auth_headers
        )
        assert [o["name"] for o in response.json()] == ["Acme"]

    async def test_context(self, client: AsyncClient, headers_for, acme):
        organization_id = acme["organization"].id

        response = await client.get(
            f"/api/organizations/{organization_id}/context", headers=headers_for(acme["admin"])
        )

        assert response.status_code == 200
        data = response.json()
        assert data["is_owner"] is True
        assert data["user_role"] == "ADMIN"
        assert data["organization"]["name"] == "Acme"

    async def test_context_for_non_owner(self, client: AsyncClient, auth_headers, acme):
        response = await client.get(
            f"/api/organizations/{acme['organization'].id}/context", headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["is_owner"] is False
        assert response.json()["user_role"] is None


class TestUpdateOrganization:
    async def test_owner_can_update(self, client: AsyncClient, headers_for, acme):
        response = await client.patch(
            f"/api/organizations/{acme['organization'].id}",
            json={"description": "Updated"},
            headers=headers_for(acme["owner"]),
        )

        assert response.status_code == 200
        assert response.json()["description"] == "Updated"

    async def test_admin_can_update(self, client: AsyncClient, headers_for, acme):
        response = await client.patch(
            f"/api/organizations/{acme['organization'].id}",
            json={"name": "Acme Renamed"},
            headers=headers_for(acme["admin"]),
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Acme Renamed"

    async def test_member_cannot_update(self, client: AsyncClient, headers_for, acme):
        response = await client.patch(
            f"/api/organizations/{acme['organization'].id}",
            json={"description": "Nope"},
            headers=headers_for(acme["member"]),
        )

        assert response.status_code == 403
        assert response.json()["error"] == "OrganizationAccessDenied"

    async def test_non_owner_cannot_update(self, client: AsyncClient, auth_headers, acme):
        response = await client.patch(
            f"/api/organizations/{acme['organization'].id}",
            json={"description": "Nope"},
            headers=auth_headers,
        )

        assert response.status_code == 403

    async def test_anonymous_cannot_update(self, client: AsyncClient, acme):
        response = await client.patch(
            f"/api/organizations/{acme['organization'].id}", json={"description": "Nope"}
        )

        assert response.status_code == 401

    async def test_malformed_id(self, client: AsyncClient, auth_headers):
        response = await client.patch(
            "/api/organizations/not-a-uuid", json={"description": "Nope"}, headers=auth_headers
        )

        assert response.status_code == 400

    async def test_rename_conflict(self, client: AsyncClient, headers_for, acme, db_session):
        await OrganizationFactory.create(db_session, name="Taken")

        response = await client.patch(
            f"/api/organizations/{acme['organization'].id}",
            json={"name": "Taken"},
            headers=headers_for(acme["owner"]),
        )

        assert response.status_code == 409


class TestDeleteOrganization:
    async def test_owner_can_delete(self, client: AsyncClient, headers_for, acme):
        organization_id = acme["organization"].id
        headers = headers_for(acme["owner"])

        response = await client.delete(f"/api/organizations/{organization_id}", headers=headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Organization deleted"

        response = await client.get(f"/api/organizations/{organization_id}", headers=headers)
        assert response.status_code == 404

    async def test_admin_cannot_delete(self, client: AsyncClient, headers_for, acme):
        response = await client.delete(
            f"/api/organizations/{acme['organization'].id}", headers=headers_for(acme["admin"])
        )

        assert response.status_code == 403
        assert response.json()["message"] == "Only OWNER members can perform this action"
