from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from schoolhub.auth.rbac import require_roles
from schoolhub.core.enums import EnrollmentStatus, UserRole
from schoolhub.core.exceptions import ServiceError
from schoolhub.core.responses import Envelope, success

from .schemas import (
    EnrollmentCreate,
    EnrollmentResponse,
    EnrollmentUpdate,
    TransferRequest,
    TransferResponse,
)
from .service import EnrollmentService, get_enrollment_service

router = APIRouter(
    prefix="/api/v1/enrollments",
    tags=["enrollments"],
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)


@router.post("", response_model=Envelope[EnrollmentResponse], status_code=status.HTTP_201_CREATED)
async def enroll_student(
    payload: EnrollmentCreate,
    service: EnrollmentService = Depends(get_enrollment_service),
):
    try:
        enrollment = await service.enroll(payload.student_id, payload.class_id, payload.notes)
        return success(enrollment, "Student enrolled successfully")
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/transfer", response_model=Envelope[TransferResponse])
async def transfer_student(
    payload: TransferRequest,
    service: EnrollmentService = Depends(get_enrollment_service),
):
    try:
        result = await service.transfer(payload.student_id, payload.new_class_id, payload.notes)
        return success(result, "Student transferred successfully")
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/class/{class_id}", response_model=Envelope[List[EnrollmentResponse]])
async def list_class_enrollments(
    class_id: UUID,
    status_filter: Optional[EnrollmentStatus] = Query(None, alias="status"),
    service: EnrollmentService = Depends(get_enrollment_service),
):
    try:
        return success(await service.list_class_enrollments(class_id, status_filter))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/student/{student_id}", response_model=Envelope[List[EnrollmentResponse]])
async def list_student_history(
    student_id: UUID,
    service: EnrollmentService = Depends(get_enrollment_service),
):
    try:
        return success(await service.list_student_history(student_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{enrollment_id}", response_model=Envelope[EnrollmentResponse])
async def get_enrollment(
    enrollment_id: UUID,
    service: EnrollmentService = Depends(get_enrollment_service),
):
    try:
        return success(await service.get_enrollment(enrollment_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/{enrollment_id}", response_model=Envelope[EnrollmentResponse])
async def update_enrollment(
    enrollment_id: UUID,
    payload: EnrollmentUpdate,
    service: EnrollmentService = Depends(get_enrollment_service),
):
    try:
        return success(await service.update_status(enrollment_id, payload), "Enrollment updated successfully")
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
