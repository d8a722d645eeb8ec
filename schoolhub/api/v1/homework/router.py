"""Homework API router."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from schoolhub.api.v1.submissions.schemas import SubmissionCreate, SubmissionResponse
from schoolhub.api.v1.submissions.service import SubmissionService, get_submission_service
from schoolhub.auth.dependencies import get_current_user
from schoolhub.auth.rbac import require_roles
from schoolhub.auth.schemas import CurrentUser
from schoolhub.core.enums import HomeworkStatus, SubmissionStatus, UserRole
from schoolhub.core.exceptions import ServiceError
from schoolhub.core.responses import Envelope, success

from .schemas import HomeworkAnalytics, HomeworkCreate, HomeworkResponse, HomeworkUpdate
from .service import DUE_OVERDUE, DUE_UPCOMING, HomeworkService, get_homework_service

router = APIRouter(prefix="/api/v1/homeworks", tags=["homework"])


# ----- Homework -----
@router.post(
    "",
    response_model=Envelope[HomeworkResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_homework(
    payload: HomeworkCreate,
    current_user: CurrentUser = Depends(require_roles(UserRole.TEACHER)),
    service: HomeworkService = Depends(get_homework_service),
):
    try:
        return success(await service.create_homework(current_user, payload), "Homework created successfully")
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=Envelope[List[HomeworkResponse]])
async def list_homeworks(
    class_id: Optional[UUID] = Query(None),
    status_filter: Optional[HomeworkStatus] = Query(None, alias="status"),
    current_user: CurrentUser = Depends(get_current_user),
    service: HomeworkService = Depends(get_homework_service),
):
    return success(await service.list_homeworks(current_user, class_id, status_filter))


@router.get("/upcoming", response_model=Envelope[List[HomeworkResponse]])
async def list_upcoming_homeworks(
    limit: int = Query(4, ge=1, le=50),
    current_user: CurrentUser = Depends(get_current_user),
    service: HomeworkService = Depends(get_homework_service),
):
    return success(await service.list_homeworks(current_user, due=DUE_UPCOMING, limit=limit))


@router.get("/overdue", response_model=Envelope[List[HomeworkResponse]])
async def list_overdue_homeworks(
    limit: int = Query(10, ge=1, le=50),
    current_user: CurrentUser = Depends(get_current_user),
    service: HomeworkService = Depends(get_homework_service),
):
    return success(await service.list_homeworks(current_user, due=DUE_OVERDUE, limit=limit))


@router.get("/{homework_id}", response_model=Envelope[HomeworkResponse])
async def get_homework(
    homework_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    service: HomeworkService = Depends(get_homework_service),
):
    try:
        return success(await service.get_homework(current_user, homework_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/{homework_id}", response_model=Envelope[HomeworkResponse])
async def update_homework(
    homework_id: UUID,
    payload: HomeworkUpdate,
    current_user: CurrentUser = Depends(require_roles(UserRole.TEACHER)),
    service: HomeworkService = Depends(get_homework_service),
):
    try:
        hw = await service.update_homework(current_user, homework_id, payload)
        return success(hw, "Homework updated successfully")
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{homework_id}/publish", response_model=Envelope[HomeworkResponse])
async def publish_homework(
    homework_id: UUID,
    current_user: CurrentUser = Depends(require_roles(UserRole.TEACHER)),
    service: HomeworkService = Depends(get_homework_service),
):
    try:
        return success(await service.publish_homework(current_user, homework_id), "Homework published")
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{homework_id}/close", response_model=Envelope[HomeworkResponse])
async def close_homework(
    homework_id: UUID,
    current_user: CurrentUser = Depends(require_roles(UserRole.TEACHER)),
    service: HomeworkService = Depends(get_homework_service),
):
    try:
        return success(await service.close_homework(current_user, homework_id), "Homework closed")
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{homework_id}", response_model=Envelope[None])
async def delete_homework(
    homework_id: UUID,
    current_user: CurrentUser = Depends(require_roles(UserRole.TEACHER)),
    service: HomeworkService = Depends(get_homework_service),
):
    try:
        await service.delete_homework(current_user, homework_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return success(message="Homework deleted successfully")


@router.get("/{homework_id}/analytics", response_model=Envelope[HomeworkAnalytics])
async def homework_analytics(
    homework_id: UUID,
    current_user: CurrentUser = Depends(require_roles(UserRole.ADMIN, UserRole.TEACHER)),
    service: HomeworkService = Depends(get_homework_service),
):
    try:
        return success(await service.get_analytics(current_user, homework_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


# ----- Submissions -----
@router.post(
    "/{homework_id}/submit",
    response_model=Envelope[SubmissionResponse],
    status_code=status.HTTP_201_CREATED,
)
async def submit_homework(
    homework_id: UUID,
    payload: SubmissionCreate,
    current_user: CurrentUser = Depends(require_roles(UserRole.STUDENT)),
    service: SubmissionService = Depends(get_submission_service),
):
    try:
        return success(await service.submit(current_user, homework_id, payload), "Homework submitted successfully")
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{homework_id}/submissions", response_model=Envelope[List[SubmissionResponse]])
async def list_homework_submissions(
    homework_id: UUID,
    status_filter: Optional[SubmissionStatus] = Query(None, alias="status"),
    current_user: CurrentUser = Depends(require_roles(UserRole.ADMIN, UserRole.TEACHER)),
    service: SubmissionService = Depends(get_submission_service),
):
    try:
        return success(await service.list_for_homework(current_user, homework_id, status_filter))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
