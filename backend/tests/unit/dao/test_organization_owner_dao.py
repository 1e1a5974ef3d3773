"""
Unit tests for OrganizationOwnerDAO.

WHAT: Tests for ownership row reads and writes.

WHY: The DAO is the only code touching organization_owners. These tests pin
down what each query counts as an owner (active only or any row) since the
service rules are built on top of those answers.
"""

import uuid
import pytest
import pytest_asyncio

from backoffice.core.exceptions import OwnershipNotFoundError
from backoffice.dao.organization_owner import OrganizationOwnerDAO

from tests.factories import OrganizationFactory, OwnershipFactory, UserFactory


@pytest_asyncio.fixture
async def owners(db_session):
    alice = await UserFactory.create(db_session, email="alice@example.com")
    bob = await UserFactory.create(db_session, email="bob@example.com")
    carol = await UserFactory.create(db_session, email="carol@example.com")
    organization = await OrganizationFactory.create(
        db_session,
        name="Acme",
        owners=[(alice, "OWNER"), (bob, "ADMIN")],
    )
    await OwnershipFactory.create(db_session, organization, carol, role="MEMBER", is_active=False)
    return organization, alice, bob, carol


class TestOwnerQueries:
    """Test queries by organization."""

    async def test_find_owners_includes_inactive(self, db_session, owners):
        organization, alice, bob, carol = owners
        dao = OrganizationOwnerDAO(db_session)

        rows = await dao.find_owners(organization.id)

        assert {row.user_id for row in rows} == {alice.id, bob.id, carol.id}

    async def test_find_active_owners(self, db_session, owners):
        organization, alice, bob, carol = owners
        dao = OrganizationOwnerDAO(db_session)

        rows = await dao.find_active_owners(organization.id)

        assert {row.user_id for row in rows} == {alice.id, bob.id}

    async def test_find_owners_by_role(self, db_session, owners):
        organization, alice, bob, carol = owners
        dao = OrganizationOwnerDAO(db_session)

        assert [row.user_id for row in await dao.find_owners_by_role(organization.id, "ADMIN")] == [
            bob.id
        ]
        # Inactive rows are ignored
        assert await dao.find_owners_by_role(organization.id, "MEMBER") == []

    async def test_find_owners_with_user_info(self, db_session, owners):
        organization, alice, bob, carol = owners
        dao = OrganizationOwnerDAO(db_session)

        rows = await dao.find_owners_with_user_info(organization.id)

        assert {row.user.email for row in rows} == {"alice@example.com", "bob@example.com"}

    async def test_find_owner_relation(self, db_session, owners):
        organization, alice, bob, carol = owners
        dao = OrganizationOwnerDAO(db_session)

        relation = await dao.find_owner_relation(organization.id, carol.id)

        assert relation is not None
        assert relation.is_active is False
        assert await dao.find_owner_relation(organization.id, uuid.uuid4()) is None

    async def test_is_owner_vs_is_active_owner(self, db_session, owners):
        organization, alice, bob, carol = owners
        dao = OrganizationOwnerDAO(db_session)

        assert await dao.is_owner(organization.id, carol.id) is True
        assert await dao.owner_exists(organization.id, carol.id) is True
        assert await dao.is_active_owner(organization.id, carol.id) is False
        assert await dao.is_active_owner(organization.id, alice.id) is True

    async def test_counts(self, db_session, owners):
        organization, alice, bob, carol = owners
        dao = OrganizationOwnerDAO(db_session)

        assert await dao.count_owners(organization.id) == 3
        assert await dao.count_active_owners(organization.id) == 2


class TestOwnerMutations:
    """Test ownership row writes."""

    async def test_add_owner(self, db_session, owners):
        organization, alice, bob, carol = owners
        dave = await UserFactory.create(db_session, email="dave@example.com")
        dao = OrganizationOwnerDAO(db_session)

        row = await dao.add_owner(organization.id, dave.id, "MEMBER", alice.id)

        assert row.role == "MEMBER"
        assert row.is_active is True
        assert row.assigned_by == alice.id
        assert row.assigned_at is not None

    async def test_add_owner_default_role(self, db_session, owners):
        organization = owners[0]
        dave = await UserFactory.create(db_session, email="dave@example.com")
        dao = OrganizationOwnerDAO(db_session)

        row = await dao.add_owner(organization.id, dave.id)

        assert row.role == "OWNER"
        assert row.assigned_by is None

    async def test_remove_owner(self, db_session, owners):
        organization, alice, bob, carol = owners
        dao = OrganizationOwnerDAO(db_session)

        assert await dao.remove_owner(organization.id, bob.id) is True
        assert await dao.remove_owner(organization.id, bob.id) is False
        assert await dao.is_owner(organization.id, bob.id) is False

    async def test_update_owner_role_keeps_audit_fields(self, db_session, owners):
        organization, alice, bob, carol = owners
        dao = OrganizationOwnerDAO(db_session)
        before = await dao.find_owner_relation(organization.id, bob.id)
        assigned_at = before.assigned_at

        row = await dao.update_owner_role(organization.id, bob.id, "MEMBER")

        assert row.role == "MEMBER"
        assert row.assigned_at == assigned_at

    async def test_update_owner_role_missing_row(self, db_session, owners):
        dao = OrganizationOwnerDAO(db_session)

        with pytest.raises(OwnershipNotFoundError):
            await dao.update_owner_role(owners[0].id, uuid.uuid4(), "ADMIN")

    async def test_deactivate_and_reactivate(self, db_session, owners):
        organization, alice, bob, carol = owners
        dao = OrganizationOwnerDAO(db_session)

        await dao.deactivate_owner(organization.id, bob.id)
        relation = await dao.find_owner_relation(organization.id, bob.id)
        assert relation.is_active is False
        assert relation.role == "ADMIN"

        await dao.reactivate_owner(organization.id, bob.id)
        relation = await dao.find_owner_relation(organization.id, bob.id)
        assert relation.is_active is True

    async def test_remove_all_owners(self, db_session, owners):
        organization = owners[0]
        dao = OrganizationOwnerDAO(db_session)

        assert await dao.remove_all_owners(organization.id) == 3
        assert await dao.count_owners(organization.id) == 0


class TestInverseQueries:
    """Test queries by user."""

    async def test_organizations_by_owner(self, db_session, owners):
        organization, alice, bob, carol = owners
        other = await OrganizationFactory.create(db_session, name="Other", owners=[(alice, "MEMBER")])
        dao = OrganizationOwnerDAO(db_session)

        rows = await dao.find_organizations_by_owner(alice.id)

        assert {row.organization.name for row in rows} == {"Acme", "Other"}
        assert await dao.count_organizations_by_owner(alice.id) == 2
        assert [row.organization_id for row in await dao.find_organizations_by_role(alice.id, "MEMBER")] == [
            other.id
        ]

    async def test_active_organizations_by_owner(self, db_session, owners):
        organization, alice, bob, carol = owners
        dao = OrganizationOwnerDAO(db_session)

        assert await dao.find_active_organizations_by_owner(carol.id) == []
        assert len(await dao.find_organizations_by_owner(carol.id)) == 1

    async def test_organizations_with_org_info_skips_inactive_organizations(self, db_session, owners):
        organization, alice, bob, carol = owners
        await OrganizationFactory.create(
            db_session, name="Dormant", is_active=False, owners=[(alice, "OWNER")]
        )
        dao = OrganizationOwnerDAO(db_session)

        rows = await dao.find_organizations_with_org_info(alice.id)

        assert [row.organization.name for row in rows] == ["Acme"]

    async def test_sole_owned_organizations(self, db_session, owners):
        organization, alice, bob, carol = owners
        solo = await OrganizationFactory.create(db_session, name="Solo", owners=[(alice, "OWNER")])
        dao = OrganizationOwnerDAO(db_session)

        assert await dao.find_sole_owned_organization_ids(alice.id) == [solo.id]
        assert await dao.find_sole_owned_organization_ids(carol.id) == []

    async def test_remove_user_from_all_organizations(self, db_session, owners):
        organization, alice, bob, carol = owners
        await OrganizationFactory.create(db_session, name="Other", owners=[(alice, "MEMBER")])
        dao = OrganizationOwnerDAO(db_session)

        assert await dao.remove_user_from_all_organizations(alice.id) == 2
        assert await dao.find_organizations_by_owner(alice.id) == []
