"""Homework lifecycle: draft -> published -> closed."""

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.auth import policies
from schoolhub.auth.schemas import CurrentUser
from schoolhub.core import grading
from schoolhub.core.clock import as_aware
from schoolhub.core.enums import HomeworkStatus, SubmissionStatus
from schoolhub.core.exceptions import (
    ForbiddenError,
    InvalidDeadlineError,
    NotFoundError,
    StateError,
)
from schoolhub.core.models import Homework, SchoolClass, Submission
from schoolhub.core.service import BaseService
from schoolhub.db.session import get_db

from .schemas import AttachmentItem, HomeworkAnalytics, HomeworkCreate, HomeworkResponse, HomeworkUpdate

logger = logging.getLogger(__name__)

DUE_UPCOMING = "upcoming"
DUE_OVERDUE = "overdue"


def _hw_to_resp(hw: Homework) -> HomeworkResponse:
    return HomeworkResponse(
        id=hw.id,
        class_id=hw.class_id,
        teacher_id=hw.teacher_id,
        title=hw.title,
        description=hw.description,
        instructions=hw.instructions,
        due_date=as_aware(hw.due_date),
        status=hw.status,
        allow_late_submission=hw.allow_late_submission,
        late_penalty=hw.late_penalty,
        max_attempts=hw.max_attempts,
        points=hw.points,
        attachments=[AttachmentItem(**a) for a in (hw.attachments or [])],
        total_submissions=hw.total_submissions,
        average_score=hw.average_score,
        published_at=as_aware(hw.published_at),
        closed_at=as_aware(hw.closed_at),
        created_at=hw.created_at,
        updated_at=hw.updated_at,
    )


async def refresh_homework_stats(db: AsyncSession, homework_id: UUID) -> bool:
    """
    Rewrite the cached total_submissions/average_score of one homework.

    Runs after the submission write has been committed. A failure here is logged
    and swallowed; analytics never reads the cache.
    """
    try:
        result = await db.execute(
            select(Submission.status, Submission.score).where(Submission.homework_id == homework_id)
        )
        summary = grading.summarize_submissions(result.all())
        hw = await db.get(Homework, homework_id)
        if hw is None:
            return False
        hw.total_submissions = summary["total_submissions"]
        hw.average_score = summary["average_score"]
        await db.commit()
        return True
    except Exception:
        await db.rollback()
        logger.warning("Failed to refresh stats for homework %s", homework_id, exc_info=True)
        return False


class HomeworkService(BaseService):
    async def get_or_404(self, homework_id: UUID) -> Homework:
        hw = await self.db.get(Homework, homework_id)
        if not hw:
            raise NotFoundError("Homework not found")
        return hw

    async def _get_owned(self, current_user: CurrentUser, homework_id: UUID) -> Homework:
        hw = await self.get_or_404(homework_id)
        if not policies.can_modify_homework(current_user, hw):
            raise ForbiddenError("Not allowed to modify this homework")
        return hw

    def _check_deadline(self, due_date: datetime) -> datetime:
        due = as_aware(due_date)
        if due <= self.now():
            raise InvalidDeadlineError()
        return due

    async def create_homework(self, current_user: CurrentUser, payload: HomeworkCreate) -> HomeworkResponse:
        school_class = await self.db.get(SchoolClass, payload.class_id)
        if not school_class:
            raise NotFoundError("Class not found")
        if not policies.can_manage_class(current_user, school_class):
            raise ForbiddenError("Only the homeroom teacher of this class can create homework")
        due = self._check_deadline(payload.due_date)

        now = self.now()
        hw = Homework(
            class_id=school_class.id,
            teacher_id=current_user.id,
            title=payload.title.strip(),
            description=payload.description,
            instructions=payload.instructions,
            due_date=due,
            status=HomeworkStatus.PUBLISHED.value if payload.publish else HomeworkStatus.DRAFT.value,
            allow_late_submission=payload.allow_late_submission,
            late_penalty=payload.late_penalty,
            max_attempts=payload.max_attempts,
            points=payload.points,
            attachments=[a.model_dump() for a in payload.attachments],
            published_at=now if payload.publish else None,
        )
        self.db.add(hw)
        await self.db.commit()
        await self.db.refresh(hw)
        logger.info("Homework %s created in class %s (%s)", hw.id, hw.class_id, hw.status)
        return _hw_to_resp(hw)

    async def update_homework(
        self, current_user: CurrentUser, homework_id: UUID, payload: HomeworkUpdate
    ) -> HomeworkResponse:
        hw = await self._get_owned(current_user, homework_id)
        if hw.status == HomeworkStatus.CLOSED:
            raise StateError("Cannot update a closed homework")

        data = payload.model_dump(exclude_unset=True)
        if data.get("due_date") is not None:
            hw.due_date = self._check_deadline(data.pop("due_date"))
        if data.get("attachments") is not None:
            hw.attachments = [a.model_dump() for a in payload.attachments]
        data.pop("attachments", None)
        for field, value in data.items():
            if value is not None:
                setattr(hw, field, value)

        await self.db.commit()
        await self.db.refresh(hw)
        return _hw_to_resp(hw)

    async def publish_homework(self, current_user: CurrentUser, homework_id: UUID) -> HomeworkResponse:
        hw = await self._get_owned(current_user, homework_id)
        if hw.status != HomeworkStatus.DRAFT:
            raise StateError(f"Homework is already {hw.status}")
        hw.status = HomeworkStatus.PUBLISHED.value
        hw.published_at = self.now()
        await self.db.commit()
        await self.db.refresh(hw)
        logger.info("Homework %s published", hw.id)
        return _hw_to_resp(hw)

    async def close_homework(self, current_user: CurrentUser, homework_id: UUID) -> HomeworkResponse:
        hw = await self._get_owned(current_user, homework_id)
        if hw.status == HomeworkStatus.CLOSED:
            raise StateError("Homework is already closed")
        hw.status = HomeworkStatus.CLOSED.value
        hw.closed_at = self.now()
        await self.db.commit()
        await self.db.refresh(hw)
        logger.info("Homework %s closed", hw.id)
        return _hw_to_resp(hw)

    async def delete_homework(self, current_user: CurrentUser, homework_id: UUID) -> None:
        hw = await self._get_owned(current_user, homework_id)
        result = await self.db.execute(
            select(func.count(Submission.id)).where(Submission.homework_id == hw.id)
        )
        if result.scalar_one() > 0:
            raise StateError("Cannot delete homework with submissions")
        await self.db.delete(hw)
        await self.db.commit()
        logger.info("Homework %s deleted", homework_id)

    async def get_homework(self, current_user: CurrentUser, homework_id: UUID) -> HomeworkResponse:
        hw = await self.get_or_404(homework_id)
        if not policies.can_view_homework(current_user, hw, await self.student_class_id(current_user)):
            # Drafts do not exist as far as students are concerned
            if policies.is_student(current_user) and hw.status == HomeworkStatus.DRAFT:
                raise NotFoundError("Homework not found")
            raise ForbiddenError("Not allowed to view this homework")
        return _hw_to_resp(hw)

    async def list_homeworks(
        self,
        current_user: CurrentUser,
        class_id: Optional[UUID] = None,
        status: Optional[HomeworkStatus] = None,
        due: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[HomeworkResponse]:
        """
        Role-scoped listing. ``due="upcoming"`` keeps homework whose deadline is still
        ahead (soonest first), ``due="overdue"`` the ones already past (latest first).
        """
        stmt = select(Homework)
        if policies.is_teacher(current_user):
            stmt = stmt.where(Homework.teacher_id == current_user.id)
        elif policies.is_student(current_user):
            student_class_id = await self.student_class_id(current_user)
            if student_class_id is None:
                return []
            stmt = stmt.where(
                Homework.class_id == student_class_id,
                Homework.status != HomeworkStatus.DRAFT.value,
            )
        if class_id is not None:
            stmt = stmt.where(Homework.class_id == class_id)
        if status is not None:
            stmt = stmt.where(Homework.status == status.value)

        now = self.now()
        if due == DUE_UPCOMING:
            stmt = stmt.where(Homework.due_date >= now).order_by(Homework.due_date.asc())
        elif due == DUE_OVERDUE:
            stmt = stmt.where(Homework.due_date < now).order_by(Homework.due_date.desc())
        else:
            stmt = stmt.order_by(Homework.due_date.asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.db.execute(stmt)
        return [_hw_to_resp(h) for h in result.scalars().all()]

    async def get_analytics(self, current_user: CurrentUser, homework_id: UUID) -> HomeworkAnalytics:
        """Always recomputed from the submission rows."""
        hw = await self.get_or_404(homework_id)
        if not policies.can_review_homework(current_user, hw):
            raise ForbiddenError("Not allowed to view analytics for this homework")

        result = await self.db.execute(select(Submission).where(Submission.homework_id == hw.id))
        rows = result.scalars().all()
        graded = [s for s in rows if s.status == SubmissionStatus.GRADED]
        total_students = await self.enrolled_count(hw.class_id)
        summary = grading.summarize_submissions(rows)

        return HomeworkAnalytics(
            homework_id=hw.id,
            total_students=total_students,
            total_submissions=summary["total_submissions"],
            submission_rate=grading.submission_rate(len(rows), total_students),
            graded_submissions=len(graded),
            late_submissions=sum(1 for s in rows if s.is_late),
            average_score=summary["average_score"],
            score_distribution=grading.score_distribution(s.percentage for s in graded),
        )


def get_homework_service(db: AsyncSession = Depends(get_db)) -> HomeworkService:
    return HomeworkService(db)
