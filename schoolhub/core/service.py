from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.auth.models import User
from schoolhub.auth.schemas import CurrentUser
from schoolhub.core.clock import Clock, utcnow
from schoolhub.core.enums import EnrollmentStatus, UserRole
from schoolhub.core.models import Enrollment


class BaseService:
    """Per-request service bound to one session and a clock."""

    def __init__(self, db: AsyncSession, now: Clock = utcnow) -> None:
        self.db = db
        self.now = now

    async def student_class_id(self, user: CurrentUser) -> Optional[UUID]:
        """Current class of a student caller; None for every other role."""
        if user.role != UserRole.STUDENT:
            return None
        row = await self.db.get(User, user.id)
        return row.current_class_id if row else None

    async def enrolled_count(self, class_id: UUID) -> int:
        result = await self.db.execute(
            select(func.count(Enrollment.id)).where(
                Enrollment.class_id == class_id,
                Enrollment.status == EnrollmentStatus.ENROLLED.value,
            )
        )
        return result.scalar_one()
