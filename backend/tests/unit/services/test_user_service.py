"""
Unit tests for UserService.
"""

import uuid
from unittest.mock import AsyncMock
import pytest

from backoffice.core.auth import verify_password
from backoffice.core.exceptions import (
    LastOwnerError,
    ResourceAlreadyExistsError,
    UserNotFoundError,
)
from backoffice.dao.organization_owner import OrganizationOwnerDAO
from backoffice.models.user import UserRole
from backoffice.services.user_service import UserService

from tests.factories import OrganizationFactory, OwnershipFactory, UserFactory


class TestUserService:
    async def test_create_hashes_password(self, db_session):
        service = UserService(db_session)

        user = await service.create("jane@example.com", "SecurePassword123!", "Jane", "Doe")

        assert user.hashed_password != "SecurePassword123!"
        assert verify_password("SecurePassword123!", user.hashed_password)
        assert user.role == UserRole.USER

    async def test_create_duplicate_email(self, db_session):
        await UserFactory.create(db_session, email="jane@example.com")
        service = UserService(db_session)

        with pytest.raises(ResourceAlreadyExistsError):
            await service.create("JANE@example.com", "SecurePassword123!", "Jane", "Doe")

    async def test_find_one_missing(self, db_session):
        with pytest.raises(UserNotFoundError):
            await UserService(db_session).find_one(uuid.uuid4())

    async def test_find_all_paginated(self, db_session):
        for _ in range(3):
            await UserFactory.create(db_session)
        service = UserService(db_session)

        result = await service.find_all_paginated(page=1, limit=2)

        assert result.total == 3
        assert result.total_pages == 2
        assert len(result.data) == 2

    async def test_update(self, db_session):
        user = await UserFactory.create(db_session, email="jane@example.com")
        service = UserService(db_session)

        updated = await service.update(
            user.id, first_name="Janet", password="AnotherPassword1!", role=UserRole.ADMIN
        )

        assert updated.first_name == "Janet"
        assert updated.role == UserRole.ADMIN
        assert verify_password("AnotherPassword1!", updated.hashed_password)

    async def test_update_email_conflict(self, db_session):
        await UserFactory.create(db_session, email="taken@example.com")
        user = await UserFactory.create(db_session, email="jane@example.com")
        service = UserService(db_session)

        with pytest.raises(ResourceAlreadyExistsError):
            await service.update(user.id, email="taken@example.com")


class TestRemoveUser:
    async def test_remove_refused_for_last_owner(self, db_session):
        a = await UserFactory.create(db_session)
        organization = await OrganizationFactory.create(db_session, owners=[(a, "OWNER")])
        service = UserService(db_session)

        with pytest.raises(LastOwnerError) as exc_info:
            await service.remove(a.id)

        assert exc_info.value.context["organization_ids"] == [str(organization.id)]
        assert (await service.find_one(a.id)).id == a.id

    async def test_remove_deletes_ownership_rows(self, db_session):
        a = await UserFactory.create(db_session)
        b = await UserFactory.create(db_session)
        organization = await OrganizationFactory.create(
            db_session, owners=[(a, "OWNER"), (b, "OWNER")]
        )
        service = UserService(db_session)

        await service.remove(a.id)

        owner_dao = OrganizationOwnerDAO(db_session)
        assert await owner_dao.is_owner(organization.id, a.id) is False
        assert await owner_dao.count_active_owners(organization.id) == 1
        with pytest.raises(UserNotFoundError):
            await service.find_one(a.id)

    async def test_inactive_row_does_not_block_removal(self, db_session):
        a = await UserFactory.create(db_session)
        b = await UserFactory.create(db_session)
        organization = await OrganizationFactory.create(db_session, owners=[(b, "OWNER")])
        await OwnershipFactory.create(db_session, organization, a, is_active=False)
        service = UserService(db_session)

        await service.remove(a.id)

        with pytest.raises(UserNotFoundError):
            await service.find_one(a.id)

    async def test_remove_missing(self, db_session):
        with pytest.raises(UserNotFoundError):
            await UserService(db_session).remove(uuid.uuid4())

    async def test_locks_owned_organizations_in_id_order(self, db_session):
        a = await UserFactory.create(db_session)
        b = await UserFactory.create(db_session)
        first = await OrganizationFactory.create(db_session, owners=[(a, "OWNER"), (b, "OWNER")])
        second = await OrganizationFactory.create(db_session, owners=[(a, "ADMIN"), (b, "OWNER")])
        service = UserService(db_session)
        lock = AsyncMock(wraps=service.organization_dao.lock_for_update)
        service.organization_dao.lock_for_update = lock

        await service.remove(a.id)

        locked = [call.args[0] for call in lock.await_args_list]
        assert locked == sorted([first.id, second.id])

    async def test_owner_deactivated_during_removal(self, db_session, monkeypatch):
        """Another owner stepping down mid-removal is caught by the re-count."""
        a = await UserFactory.create(db_session)
        b = await UserFactory.create(db_session)
        organization = await OrganizationFactory.create(
            db_session, owners=[(a, "OWNER"), (b, "OWNER")]
        )
        org_id, a_id, b_id = organization.id, a.id, b.id
        service = UserService(db_session)
        owner_dao = OrganizationOwnerDAO(db_session)
        find_sole_owned = service.owner_dao.find_sole_owned_organization_ids

        async def find_then_deactivate_b(user_id):
            sole_owned = await find_sole_owned(user_id)
            await owner_dao.deactivate_owner(org_id, b_id)
            return sole_owned

        monkeypatch.setattr(
            service.owner_dao, "find_sole_owned_organization_ids", find_then_deactivate_b
        )

        with pytest.raises(LastOwnerError) as exc_info:
            await service.remove(a_id)

        assert exc_info.value.context["organization_ids"] == [str(org_id)]

        await db_session.rollback()
        assert await owner_dao.count_active_owners(org_id) == 2
        assert (await service.find_one(a_id)).id == a_id
