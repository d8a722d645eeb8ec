from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from schoolhub.auth.rbac import require_roles
from schoolhub.auth.schemas import UserInfo
from schoolhub.core.enums import UserRole
from schoolhub.core.exceptions import ServiceError
from schoolhub.core.responses import Envelope, success

from .schemas import UserCreate, UserUpdate
from .service import UserService, get_user_service

router = APIRouter(
    prefix="/api/v1/users",
    tags=["users"],
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)


@router.post("", response_model=Envelope[UserInfo], status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    service: UserService = Depends(get_user_service),
):
    try:
        return success(await service.create_user(payload), "User created successfully")
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=Envelope[List[UserInfo]])
async def list_users(
    role: Optional[UserRole] = Query(None),
    service: UserService = Depends(get_user_service),
):
    return success(await service.list_users(role))


@router.get("/{user_id}", response_model=Envelope[UserInfo])
async def get_user(
    user_id: UUID,
    service: UserService = Depends(get_user_service),
):
    try:
        return success(await service.get_user(user_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/{user_id}", response_model=Envelope[UserInfo])
async def update_user(
    user_id: UUID,
    payload: UserUpdate,
    service: UserService = Depends(get_user_service),
):
    try:
        return success(await service.update_user(user_id, payload), "User updated successfully")
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{user_id}", response_model=Envelope[None])
async def deactivate_user(
    user_id: UUID,
    service: UserService = Depends(get_user_service),
):
    try:
        await service.deactivate_user(user_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return success(message="User deactivated successfully")
