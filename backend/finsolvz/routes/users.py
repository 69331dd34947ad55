"""
Finsolvz Backend — User Routes
===============================

    POST   /api/register         SUPER_ADMIN   201 {"message", "newUser"}
    GET    /api/users            ADMIN+        [User]
    GET    /api/users/{id}       any session   User
    PUT    /api/users/{id}       SUPER_ADMIN   {"message", "updatedUser"}
    DELETE /api/users/{id}       SUPER_ADMIN   {"message", "user"}
    GET    /api/loginUser        any session   the caller's own User
    PUT    /api/updateRole       SUPER_ADMIN   {"message", "user"}
    PATCH  /api/change-password  any session   {"message"}
"""

from typing import List

from fastapi import APIRouter, Depends

from finsolvz.auth import Principal, require_role
from finsolvz.dependencies import get_user_service
from finsolvz.schemas.auth import ChangePasswordRequest
from finsolvz.schemas.common import MessageResponse, error_responses
from finsolvz.schemas.user import (
    RegisterRequest,
    RegisterResponse,
    UpdateRoleRequest,
    UpdateUserRequest,
    UpdateUserResponse,
    UserEnvelope,
    UserResponse,
)
from finsolvz.services.user_service import UserService

router = APIRouter(prefix="/api", tags=["Users"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=201,
    responses=error_responses(400, 401, 403, 409, 500),
    summary="Create a user account",
)
async def register(
    body: RegisterRequest,
    principal: Principal = Depends(require_role("users:register")),
    service: UserService = Depends(get_user_service),
) -> RegisterResponse:
    user = await service.register(body)
    return RegisterResponse(message="Success", new_user=user)


@router.get(
    "/users",
    response_model=List[UserResponse],
    responses=error_responses(401, 403, 500),
    summary="List all users",
)
async def list_users(
    principal: Principal = Depends(require_role("users:list")),
    service: UserService = Depends(get_user_service),
) -> List[UserResponse]:
    return await service.list_users()


@router.get(
    "/users/{user_id}",
    response_model=UserResponse,
    responses=error_responses(400, 401, 404, 500),
    summary="Get a user by id",
)
async def get_user(
    user_id: str,
    principal: Principal = Depends(require_role("users:read")),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    return await service.get_user(user_id)


@router.put(
    "/users/{user_id}",
    response_model=UpdateUserResponse,
    responses=error_responses(400, 401, 403, 404, 409, 500),
    summary="Update a user's profile",
)
async def update_user(
    user_id: str,
    body: UpdateUserRequest,
    principal: Principal = Depends(require_role("users:update")),
    service: UserService = Depends(get_user_service),
) -> UpdateUserResponse:
    user = await service.update_user(user_id, body)
    return UpdateUserResponse(message="User updated", updated_user=user)


@router.delete(
    "/users/{user_id}",
    response_model=UserEnvelope,
    responses=error_responses(400, 401, 403, 404, 500),
    summary="Delete a user",
)
async def delete_user(
    user_id: str,
    principal: Principal = Depends(require_role("users:delete")),
    service: UserService = Depends(get_user_service),
) -> UserEnvelope:
    user = await service.delete_user(user_id)
    return UserEnvelope(message="Success", user=user)


@router.get(
    "/loginUser",
    response_model=UserResponse,
    responses=error_responses(401, 404, 500),
    summary="Get the authenticated user",
)
async def get_login_user(
    principal: Principal = Depends(require_role("users:read_self")),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    return await service.get_login_user(principal)


@router.put(
    "/updateRole",
    response_model=UserEnvelope,
    responses=error_responses(400, 401, 403, 404, 500),
    summary="Change a user's role",
)
async def update_role(
    body: UpdateRoleRequest,
    principal: Principal = Depends(require_role("users:update_role")),
    service: UserService = Depends(get_user_service),
) -> UserEnvelope:
    user = await service.update_role(body.user_id, body.new_role)
    return UserEnvelope(message="Success", user=user)


@router.patch(
    "/change-password",
    response_model=MessageResponse,
    responses=error_responses(400, 401, 500),
    summary="Change the authenticated user's password",
)
async def change_password(
    body: ChangePasswordRequest,
    principal: Principal = Depends(require_role("users:change_password")),
    service: UserService = Depends(get_user_service),
) -> MessageResponse:
    await service.change_password(principal, body.new_password, body.confirm_password)
    return MessageResponse(message="Password successfully changed")
