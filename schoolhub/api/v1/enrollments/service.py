"""Enrollment and the class capacity gate.

A student holds at most one ``enrolled`` row at a time; ``users.current_class_id``
mirrors that row. Every path that produces an ``enrolled`` row goes through
``_check_can_enroll``.
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.auth.models import User
from schoolhub.core.enums import EnrollmentStatus, UserRole
from schoolhub.core.exceptions import (
    AlreadyEnrolledError,
    CapacityExceededError,
    NotFoundError,
    RoleMismatchError,
    StateError,
)
from schoolhub.core.models import Enrollment, SchoolClass
from schoolhub.core.service import BaseService
from schoolhub.db.session import get_db

from .schemas import EnrollmentResponse, EnrollmentUpdate, TransferResponse

logger = logging.getLogger(__name__)

ENROLLED = EnrollmentStatus.ENROLLED.value


class EnrollmentService(BaseService):
    async def _get_student(self, student_id: UUID) -> User:
        student = await self.db.get(User, student_id)
        if not student:
            raise NotFoundError("Student not found")
        if student.role != UserRole.STUDENT:
            raise RoleMismatchError("User is not a student")
        return student

    async def _get_class(self, class_id: UUID) -> SchoolClass:
        obj = await self.db.get(SchoolClass, class_id)
        if not obj:
            raise NotFoundError("Class not found")
        return obj

    async def _get_enrollment(self, enrollment_id: UUID) -> Enrollment:
        obj = await self.db.get(Enrollment, enrollment_id)
        if not obj:
            raise NotFoundError("Enrollment not found")
        return obj

    async def _active_enrollment(self, student_id: UUID) -> Optional[Enrollment]:
        result = await self.db.execute(
            select(Enrollment).where(Enrollment.student_id == student_id, Enrollment.status == ENROLLED)
        )
        return result.scalar_one_or_none()

    async def _pair(self, student_id: UUID, class_id: UUID) -> Optional[Enrollment]:
        result = await self.db.execute(
            select(Enrollment).where(Enrollment.student_id == student_id, Enrollment.class_id == class_id)
        )
        return result.scalar_one_or_none()

    async def _check_capacity(self, school_class: SchoolClass) -> None:
        if await self.enrolled_count(school_class.id) >= school_class.max_students:
            raise CapacityExceededError()

    async def _check_can_enroll(self, student_id: UUID, school_class: SchoolClass) -> None:
        if not school_class.is_active:
            raise StateError("Class is not active")
        if await self._active_enrollment(student_id) is not None:
            raise AlreadyEnrolledError(
                "Student can only be enrolled in one class at a time; complete or drop the current enrollment first"
            )
        await self._check_capacity(school_class)

    def _mark_enrolled(self, enrollment: Enrollment) -> None:
        enrollment.status = ENROLLED
        enrollment.enrolled_at = self.now()
        enrollment.completed_at = None
        enrollment.dropped_at = None

    async def _commit(self) -> None:
        # The partial unique index catches a concurrent enroll of the same student
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise AlreadyEnrolledError()

    async def enroll(self, student_id: UUID, class_id: UUID, notes: str = "") -> EnrollmentResponse:
        student = await self._get_student(student_id)
        school_class = await self._get_class(class_id)
        await self._check_can_enroll(student.id, school_class)

        enrollment = await self._pair(student.id, school_class.id)
        if enrollment is None:
            enrollment = Enrollment(student_id=student.id, class_id=school_class.id, notes=notes)
            self.db.add(enrollment)
        else:
            enrollment.notes = notes
        self._mark_enrolled(enrollment)
        student.current_class_id = school_class.id

        await self._commit()
        await self.db.refresh(enrollment)
        logger.info("Enrolled student %s in class %s", student.id, school_class.id)
        return EnrollmentResponse.model_validate(enrollment)

    async def transfer(self, student_id: UUID, new_class_id: UUID, notes: str = "") -> TransferResponse:
        student = await self._get_student(student_id)
        new_class = await self._get_class(new_class_id)
        current = await self._active_enrollment(student.id)
        if current is None:
            raise StateError("Student is not currently enrolled in any class")
        if current.class_id == new_class.id:
            raise AlreadyEnrolledError("Student is already enrolled in this class")
        if not new_class.is_active:
            raise StateError("Class is not active")
        # Gate the target before the current row is touched
        await self._check_capacity(new_class)

        now = self.now()
        current.status = EnrollmentStatus.COMPLETED.value
        current.completed_at = now
        moved = f"Transferred to {new_class.name}"
        current.notes = f"{current.notes} | {moved}" if current.notes else moved
        # Release the single-enrolled slot before the target row claims it
        await self.db.flush()

        new_notes = f"Transferred from previous class | {notes}" if notes else "Transferred from previous class"
        target = await self._pair(student.id, new_class.id)
        if target is None:
            target = Enrollment(student_id=student.id, class_id=new_class.id, notes=new_notes)
            self.db.add(target)
        else:
            target.notes = new_notes
        self._mark_enrolled(target)
        student.current_class_id = new_class.id

        await self._commit()
        await self.db.refresh(current)
        await self.db.refresh(target)
        logger.info("Transferred student %s from class %s to %s", student.id, current.class_id, new_class.id)
        return TransferResponse(
            completed_enrollment=EnrollmentResponse.model_validate(current),
            new_enrollment=EnrollmentResponse.model_validate(target),
        )

    async def update_status(self, enrollment_id: UUID, payload: EnrollmentUpdate) -> EnrollmentResponse:
        enrollment = await self._get_enrollment(enrollment_id)
        student = await self.db.get(User, enrollment.student_id)
        if payload.notes is not None:
            enrollment.notes = payload.notes

        new_status = payload.status.value if payload.status is not None else None
        if new_status is not None and new_status != enrollment.status:
            now = self.now()
            if new_status == ENROLLED:
                await self._check_can_enroll(enrollment.student_id, await self._get_class(enrollment.class_id))
                self._mark_enrolled(enrollment)
                if student is not None:
                    student.current_class_id = enrollment.class_id
            else:
                if enrollment.status == ENROLLED and student is not None and student.current_class_id == enrollment.class_id:
                    student.current_class_id = None
                enrollment.status = new_status
                if new_status == EnrollmentStatus.COMPLETED.value:
                    enrollment.completed_at = now
                elif new_status == EnrollmentStatus.DROPPED.value:
                    enrollment.dropped_at = now

        await self._commit()
        await self.db.refresh(enrollment)
        return EnrollmentResponse.model_validate(enrollment)

    async def list_class_enrollments(
        self, class_id: UUID, status: Optional[EnrollmentStatus] = None
    ) -> List[EnrollmentResponse]:
        await self._get_class(class_id)
        stmt = select(Enrollment).where(Enrollment.class_id == class_id)
        if status is not None:
            stmt = stmt.where(Enrollment.status == status.value)
        result = await self.db.execute(stmt.order_by(Enrollment.enrolled_at.desc()))
        return [EnrollmentResponse.model_validate(e) for e in result.scalars().all()]

    async def get_enrollment(self, enrollment_id: UUID) -> EnrollmentResponse:
        return EnrollmentResponse.model_validate(await self._get_enrollment(enrollment_id))

    async def list_student_history(self, student_id: UUID) -> List[EnrollmentResponse]:
        await self._get_student(student_id)
        result = await self.db.execute(
            select(Enrollment).where(Enrollment.student_id == student_id).order_by(Enrollment.enrolled_at.desc())
        )
        return [EnrollmentResponse.model_validate(e) for e in result.scalars().all()]


def get_enrollment_service(db: AsyncSession = Depends(get_db)) -> EnrollmentService:
    return EnrollmentService(db)
