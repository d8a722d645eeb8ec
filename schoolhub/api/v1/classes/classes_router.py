from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from schoolhub.auth.dependencies import get_current_user
from schoolhub.auth.rbac import require_roles
from schoolhub.auth.schemas import CurrentUser, UserInfo
from schoolhub.core.enums import UserRole
from schoolhub.core.exceptions import ServiceError
from schoolhub.core.responses import Envelope, success

from .schemas import ClassCreate, ClassResponse, ClassUpdate
from .service import ClassService, get_class_service

router = APIRouter(prefix="/api/v1/classes", tags=["classes"])


@router.post(
    "",
    response_model=Envelope[ClassResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def create_class(
    payload: ClassCreate,
    service: ClassService = Depends(get_class_service),
):
    try:
        return success(await service.create_class(payload), "Class created successfully")
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "",
    response_model=Envelope[List[ClassResponse]],
    dependencies=[Depends(get_current_user)],
)
async def list_classes(
    active_only: bool = Query(True, description="Return only is_active=true by default"),
    teacher_id: Optional[UUID] = Query(None, description="Filter by homeroom teacher"),
    q: Optional[str] = Query(None, description="Search in name and code"),
    service: ClassService = Depends(get_class_service),
):
    return success(await service.list_classes(active_only=active_only, teacher_id=teacher_id, q=q))


@router.get(
    "/without-teacher",
    response_model=Envelope[List[ClassResponse]],
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def list_classes_without_teacher(
    service: ClassService = Depends(get_class_service),
):
    return success(await service.list_classes_without_teacher())


@router.get(
    "/unassigned-teachers",
    response_model=Envelope[List[UserInfo]],
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def list_unassigned_teachers(
    service: ClassService = Depends(get_class_service),
):
    return success(await service.list_unassigned_teachers())


@router.get(
    "/{class_id}",
    response_model=Envelope[ClassResponse],
    dependencies=[Depends(get_current_user)],
)
async def get_class(
    class_id: UUID,
    service: ClassService = Depends(get_class_service),
):
    try:
        return success(await service.get_class(class_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put(
    "/{class_id}",
    response_model=Envelope[ClassResponse],
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def update_class(
    class_id: UUID,
    payload: ClassUpdate,
    service: ClassService = Depends(get_class_service),
):
    try:
        return success(await service.update_class(class_id, payload), "Class updated successfully")
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete(
    "/{class_id}",
    response_model=Envelope[None],
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def delete_class(
    class_id: UUID,
    service: ClassService = Depends(get_class_service),
):
    try:
        await service.delete_class(class_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return success(message="Class deleted successfully")


@router.get("/{class_id}/students", response_model=Envelope[List[UserInfo]])
async def list_class_students(
    class_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    service: ClassService = Depends(get_class_service),
):
    try:
        return success(await service.list_students(current_user, class_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
