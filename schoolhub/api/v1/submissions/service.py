"""Submission state machine: submitted -> graded.

Re-submitting reuses the (homework, student) row and bumps attempt_number. A graded
submission is final. Every write ends with a best-effort refresh of the homework
stats cache.
"""

import logging
import math
from typing import List, Optional
from uuid import UUID

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from schoolhub.api.v1.homework.service import HomeworkService, refresh_homework_stats
from schoolhub.auth import policies
from schoolhub.auth.models import User
from schoolhub.auth.schemas import CurrentUser
from schoolhub.core.clock import Clock, as_aware, utcnow
from schoolhub.core.enums import HomeworkStatus, SubmissionStatus, UserRole
from schoolhub.core.exceptions import (
    AttemptsExceededError,
    DeadlinePassedError,
    ForbiddenError,
    NotFoundError,
    OutOfRangeError,
    RoleMismatchError,
    StateError,
)
from schoolhub.core.grading import can_withdraw
from schoolhub.core.models import Submission
from schoolhub.core.service import BaseService
from schoolhub.db.session import get_db

from .schemas import GradeRequest, SubmissionCreate, SubmissionResponse

logger = logging.getLogger(__name__)


class SubmissionService(BaseService):
    def __init__(self, db: AsyncSession, now: Clock = utcnow) -> None:
        super().__init__(db, now)
        self.homeworks = HomeworkService(db, now)

    async def _get(self, submission_id: UUID) -> Submission:
        sub = await self.db.get(Submission, submission_id)
        if not sub:
            raise NotFoundError("Submission not found")
        return sub

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise StateError("Duplicate submission for this homework")
        except StaleDataError:
            await self.db.rollback()
            raise StateError("Submission was modified by another request")

    async def submit(
        self, current_user: CurrentUser, homework_id: UUID, payload: SubmissionCreate
    ) -> SubmissionResponse:
        # 1-2. Homework must exist and be open
        hw = await self.homeworks.get_or_404(homework_id)
        if hw.status != HomeworkStatus.PUBLISHED:
            raise StateError("Homework is not open for submissions")

        # 3-4. Caller must be a student of the homework's class
        student = await self.db.get(User, current_user.id)
        if not student:
            raise NotFoundError("Student not found")
        if student.role != UserRole.STUDENT:
            raise RoleMismatchError("Only students can submit homework")
        if student.current_class_id != hw.class_id:
            raise ForbiddenError("You are not enrolled in the class of this homework")

        # 5. Deadline
        now = self.now()
        is_late = now > as_aware(hw.due_date)
        if is_late and not hw.allow_late_submission:
            raise DeadlinePassedError()

        # 6. Create or re-submit
        attachments = [a.model_dump() for a in payload.attachments]
        result = await self.db.execute(
            select(Submission).where(Submission.homework_id == hw.id, Submission.student_id == student.id)
        )
        sub = result.scalar_one_or_none()
        if sub is None:
            sub = Submission(
                homework_id=hw.id,
                student_id=student.id,
                class_id=hw.class_id,
                attempt_number=1,
            )
            self.db.add(sub)
        else:
            if sub.status == SubmissionStatus.GRADED:
                raise StateError("Submission has already been graded")
            if sub.attempt_number >= hw.max_attempts:
                raise AttemptsExceededError()
            sub.attempt_number += 1

        sub.content = payload.content
        sub.attachments = attachments
        sub.notes = payload.notes
        sub.status = SubmissionStatus.SUBMITTED.value
        sub.submitted_at = now
        sub.is_late = is_late
        sub.max_score = hw.points
        sub.late_penalty = hw.late_penalty
        await self._commit()
        await self.db.refresh(sub)
        response = SubmissionResponse.model_validate(sub)

        # 7. Cache refresh never undoes the submission
        await refresh_homework_stats(self.db, hw.id)
        return response

    async def grade(
        self, current_user: CurrentUser, submission_id: UUID, payload: GradeRequest
    ) -> SubmissionResponse:
        sub = await self._get(submission_id)
        hw = await self.homeworks.get_or_404(sub.homework_id)
        if not policies.can_grade(current_user, hw):
            raise ForbiddenError("Only the teacher who owns this homework can grade it")
        if sub.status == SubmissionStatus.GRADED:
            raise StateError("Submission has already been graded")
        if not math.isfinite(payload.score) or payload.score < 0 or payload.score > sub.max_score:
            raise OutOfRangeError(f"Score must be between 0 and {sub.max_score:g}")

        sub.score = payload.score
        sub.feedback = payload.feedback
        sub.refresh_derived_scores()
        sub.grade = payload.grade or sub.grade_letter
        sub.status = SubmissionStatus.GRADED.value
        sub.graded_at = self.now()
        sub.graded_by = current_user.id
        await self._commit()
        await self.db.refresh(sub)
        response = SubmissionResponse.model_validate(sub)
        logger.info("Submission %s graded %s/%s by %s", sub.id, sub.score, sub.max_score, current_user.id)

        await refresh_homework_stats(self.db, hw.id)
        return response

    async def delete_submission(self, current_user: CurrentUser, submission_id: UUID) -> None:
        sub = await self._get(submission_id)
        if not policies.owns_submission(current_user, sub):
            raise ForbiddenError("You can only delete your own submission")
        hw = await self.homeworks.get_or_404(sub.homework_id)
        deadline_passed = self.now() > as_aware(hw.due_date)
        if not can_withdraw(deadline_passed, sub.status == SubmissionStatus.GRADED):
            raise StateError("Cannot delete an ungraded submission after the deadline")

        await self.db.delete(sub)
        await self._commit()
        await refresh_homework_stats(self.db, hw.id)

    async def get_submission(self, current_user: CurrentUser, submission_id: UUID) -> SubmissionResponse:
        sub = await self._get(submission_id)
        hw = await self.homeworks.get_or_404(sub.homework_id)
        if not policies.can_view_submission(current_user, sub, hw):
            raise ForbiddenError("Not allowed to view this submission")
        return SubmissionResponse.model_validate(sub)

    async def list_my_submissions(
        self, current_user: CurrentUser, status: Optional[SubmissionStatus] = None
    ) -> List[SubmissionResponse]:
        stmt = select(Submission).where(Submission.student_id == current_user.id)
        if status is not None:
            stmt = stmt.where(Submission.status == status.value)
        result = await self.db.execute(stmt.order_by(Submission.submitted_at.desc()))
        return [SubmissionResponse.model_validate(s) for s in result.scalars().all()]

    async def list_for_homework(
        self, current_user: CurrentUser, homework_id: UUID, status: Optional[SubmissionStatus] = None
    ) -> List[SubmissionResponse]:
        hw = await self.homeworks.get_or_404(homework_id)
        if not policies.can_review_homework(current_user, hw):
            raise ForbiddenError("Not allowed to view submissions for this homework")
        stmt = select(Submission).where(Submission.homework_id == hw.id)
        if status is not None:
            stmt = stmt.where(Submission.status == status.value)
        result = await self.db.execute(stmt.order_by(Submission.submitted_at.asc()))
        return [SubmissionResponse.model_validate(s) for s in result.scalars().all()]


def get_submission_service(db: AsyncSession = Depends(get_db)) -> SubmissionService:
    return SubmissionService(db)
