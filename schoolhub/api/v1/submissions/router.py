from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from schoolhub.auth.dependencies import get_current_user
from schoolhub.auth.rbac import require_roles
from schoolhub.auth.schemas import CurrentUser
from schoolhub.core.enums import SubmissionStatus, UserRole
from schoolhub.core.exceptions import ServiceError
from schoolhub.core.responses import Envelope, success

from .schemas import GradeRequest, SubmissionResponse
from .service import SubmissionService, get_submission_service

router = APIRouter(prefix="/api/v1/submissions", tags=["submissions"])


@router.get("/me", response_model=Envelope[List[SubmissionResponse]])
async def list_my_submissions(
    status_filter: Optional[SubmissionStatus] = Query(None, alias="status"),
    current_user: CurrentUser = Depends(require_roles(UserRole.STUDENT)),
    service: SubmissionService = Depends(get_submission_service),
):
    return success(await service.list_my_submissions(current_user, status_filter))


@router.get("/{submission_id}", response_model=Envelope[SubmissionResponse])
async def get_submission(
    submission_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    service: SubmissionService = Depends(get_submission_service),
):
    try:
        return success(await service.get_submission(current_user, submission_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{submission_id}/grade", response_model=Envelope[SubmissionResponse])
async def grade_submission(
    submission_id: UUID,
    payload: GradeRequest,
    current_user: CurrentUser = Depends(require_roles(UserRole.TEACHER)),
    service: SubmissionService = Depends(get_submission_service),
):
    try:
        return success(await service.grade(current_user, submission_id, payload), "Submission graded successfully")
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{submission_id}", response_model=Envelope[None])
async def delete_submission(
    submission_id: UUID,
    current_user: CurrentUser = Depends(require_roles(UserRole.STUDENT)),
    service: SubmissionService = Depends(get_submission_service),
):
    try:
        await service.delete_submission(current_user, submission_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return success(message="Submission deleted successfully")
