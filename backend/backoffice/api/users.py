"""
User management API endpoints.

WHY: Account administration for the backoffice. Creating and deleting
accounts is reserved to system ADMINs; users may edit their own profile.
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.core.deps import get_current_user, require_admin
from backoffice.core.exceptions import InsufficientPermissionsError
from backoffice.db.session import get_db
from backoffice.models.user import User, UserRole
from backoffice.schemas.common import MessageResponse
from backoffice.schemas.user import (
    UserCreate,
    UserListResponse,
    UserResponse,
    UserUpdate,
)
from backoffice.services.user_service import UserService


router = APIRouter(prefix="/users", tags=["users"])


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create user",
    description="Create a user account (ADMIN only)",
)
async def create_user(
    request: UserCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    user = await UserService(db).create(
        email=request.email,
        password=request.password,
        first_name=request.first_name,
        last_name=request.last_name,
        role=request.role,
    )
    return UserResponse.model_validate(user)


@router.get(
    "",
    response_model=UserListResponse,
    summary="List users",
    description="Paginated list of users, oldest first",
)
async def list_users(
    page: int = Query(1, description="Page number (1-based)"),
    limit: int = Query(10, description="Items per page (max 100)"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UserListResponse:
    result = await UserService(db).find_all_paginated(page, limit)
    return UserListResponse(
        data=[UserResponse.model_validate(user) for user in result.data],
        total=result.total,
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
    )


@router.get("/active", response_model=List[UserResponse], summary="List active users")
async def list_active_users(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> List[UserResponse]:
    users = await UserService(db).find_active_users()
    return [UserResponse.model_validate(user) for user in users]


@router.get("/role/{role}", response_model=List[UserResponse], summary="List users by role")
async def list_users_by_role(
    role: UserRole,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> List[UserResponse]:
    users = await UserService(db).find_by_role(role)
    return [UserResponse.model_validate(user) for user in users]


@router.get("/{user_id}", response_model=UserResponse, summary="Get user by ID")
async def get_user(
    user_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    user = await UserService(db).find_one(user_id)
    return UserResponse.model_validate(user)


@router.patch(
    "/{user_id}",
    response_model=UserResponse,
    summary="Update user",
    description="Users may update their own profile; ADMINs may update anyone",
)
async def update_user(
    user_id: uuid.UUID,
    request: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """
    Update a user.

    Raises:
        InsufficientPermissionsError (403): Non-admins editing someone else,
            or changing role/active status
    """
    is_admin = current_user.role == UserRole.ADMIN
    if not is_admin:
        if current_user.id != user_id:
            raise InsufficientPermissionsError(
                message="You can only update your own account",
                user_id=str(current_user.id),
            )
        if request.role is not None or request.is_active is not None:
            raise InsufficientPermissionsError(
                message="Only administrators can change role or account status",
                user_id=str(current_user.id),
            )

    user = await UserService(db).update(user_id, **request.model_dump(exclude_unset=True))
    return UserResponse.model_validate(user)


@router.delete(
    "/{user_id}",
    response_model=MessageResponse,
    summary="Delete user",
    description="Delete a user and their ownership records (ADMIN only)",
)
async def delete_user(
    user_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """
    Raises:
        LastOwnerError (400): If the user is the last active owner of an organization
    """
    await UserService(db).remove(user_id)
    return MessageResponse(message="User deleted")
