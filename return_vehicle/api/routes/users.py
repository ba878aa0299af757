"""
User endpoints
==============

POST  /api/v1/users/sync            -- upsert from the identity provider
GET   /api/v1/users                 -- all users, newest first
GET   /api/v1/users/uid/{uid}       -- lookup by identity-provider UID
GET   /api/v1/users/{user_id}       -- user details
PATCH /api/v1/users/{user_id}/role  -- pick passenger / driver role
PATCH /api/v1/users/{user_id}/profile -- phone and driver details
"""

from fastapi import APIRouter, Depends, Request, Response

from return_vehicle.api.dependencies import get_user_service
from return_vehicle.api.middleware import limiter
from return_vehicle.api.schemas import (
    ProfileRequest,
    RoleRequest,
    UserListResponse,
    UserResponse,
    UserSyncRequest,
)
from return_vehicle.services.users import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.post(
    "/sync",
    response_model=UserResponse,
    summary="Create or refresh a user record",
    description="Returns 201 when the user is created and 200 when it already existed.",
)
@limiter.limit("100/minute")
async def sync_user(
    request: Request,
    response: Response,
    body: UserSyncRequest,
    service: UserService = Depends(get_user_service),
):
    user, created = await service.sync_user(
        body.external_uid,
        body.email,
        body.name,
        phone=body.phone,
        role=body.role,
        auth_provider=body.auth_provider,
    )
    response.status_code = 201 if created else 200
    return UserResponse.model_validate(user)


@router.get("", response_model=UserListResponse, summary="List users, newest first")
@limiter.limit("100/minute")
async def list_users(
    request: Request,
    service: UserService = Depends(get_user_service),
):
    users = await service.list_users()
    return UserListResponse(
        count=len(users),
        users=[UserResponse.model_validate(u) for u in users],
    )


@router.get(
    "/uid/{external_uid}",
    response_model=UserResponse,
    summary="Get a user by identity-provider UID",
)
@limiter.limit("100/minute")
async def get_user_by_uid(
    request: Request,
    external_uid: str,
    service: UserService = Depends(get_user_service),
):
    return UserResponse.model_validate(await service.get_by_external_uid(external_uid))


@router.get("/{user_id}", response_model=UserResponse, summary="Get a user")
@limiter.limit("100/minute")
async def get_user(
    request: Request,
    user_id: int,
    service: UserService = Depends(get_user_service),
):
    return UserResponse.model_validate(await service.get_user(user_id))


@router.patch("/{user_id}/role", response_model=UserResponse, summary="Select role")
@limiter.limit("100/minute")
async def select_role(
    request: Request,
    user_id: int,
    body: RoleRequest,
    service: UserService = Depends(get_user_service),
):
    user = await service.select_role(user_id, body.role)
    return UserResponse.model_validate(user)


@router.patch(
    "/{user_id}/profile",
    response_model=UserResponse,
    summary="Complete the user profile",
)
@limiter.limit("100/minute")
async def update_profile(
    request: Request,
    user_id: int,
    body: ProfileRequest,
    service: UserService = Depends(get_user_service),
):
    details = (
        body.driver_details.model_dump(exclude_none=True, by_alias=True, mode="json")
        if body.driver_details is not None
        else None
    )
    user = await service.update_profile(user_id, phone=body.phone, driver_details=details)
    return UserResponse.model_validate(user)
