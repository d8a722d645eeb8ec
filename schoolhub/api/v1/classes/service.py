import logging
from typing import List, Optional
from uuid import UUID

from fastapi import Depends, status
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.auth import policies
from schoolhub.auth.models import User
from schoolhub.auth.schemas import CurrentUser, UserInfo
from schoolhub.core.enums import EnrollmentStatus, UserRole
from schoolhub.core.exceptions import (
    ForbiddenError,
    NotFoundError,
    RoleMismatchError,
    ServiceError,
    StateError,
)
from schoolhub.core.models import Enrollment, SchoolClass
from schoolhub.core.service import BaseService
from schoolhub.db.session import get_db

from .schemas import ClassCreate, ClassResponse, ClassUpdate

logger = logging.getLogger(__name__)


def _class_to_response(c: SchoolClass, student_count: int) -> ClassResponse:
    return ClassResponse(
        id=c.id,
        name=c.name,
        code=c.code,
        description=c.description,
        homeroom_teacher_id=c.homeroom_teacher_id,
        max_students=c.max_students,
        student_count=student_count,
        is_active=c.is_active,
        created_at=c.created_at,
        updated_at=c.updated_at,
    )


class ClassService(BaseService):
    async def _get(self, class_id: UUID) -> SchoolClass:
        obj = await self.db.get(SchoolClass, class_id)
        if not obj:
            raise NotFoundError("Class not found")
        return obj

    async def _resolve_teacher(self, teacher_id: UUID, class_id: Optional[UUID] = None) -> User:
        teacher = await self.db.get(User, teacher_id)
        if not teacher:
            raise NotFoundError("Homeroom teacher not found")
        if teacher.role != UserRole.TEACHER:
            raise RoleMismatchError("User is not a teacher")
        if teacher.teaching_class_id is not None and teacher.teaching_class_id != class_id:
            raise StateError("Teacher is already the homeroom teacher of another class")
        return teacher

    async def _release_teacher(self, teacher_id: Optional[UUID], class_id: UUID) -> None:
        if teacher_id is None:
            return
        teacher = await self.db.get(User, teacher_id)
        if teacher and teacher.teaching_class_id == class_id:
            teacher.teaching_class_id = None

    async def _commit_unique_code(self) -> None:
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ServiceError("Class code already exists", status.HTTP_409_CONFLICT)

    async def create_class(self, payload: ClassCreate) -> ClassResponse:
        code = payload.code.strip().upper()
        existing = await self.db.execute(select(SchoolClass.id).where(SchoolClass.code == code))
        if existing.scalar_one_or_none():
            raise ServiceError("Class code already exists", status.HTTP_409_CONFLICT)
        teacher = None
        if payload.homeroom_teacher_id is not None:
            teacher = await self._resolve_teacher(payload.homeroom_teacher_id)

        obj = SchoolClass(
            name=payload.name.strip(),
            code=code,
            description=payload.description,
            homeroom_teacher_id=payload.homeroom_teacher_id,
            max_students=payload.max_students,
            is_active=payload.is_active,
        )
        self.db.add(obj)
        await self.db.flush()
        if teacher is not None:
            teacher.teaching_class_id = obj.id
        await self._commit_unique_code()
        await self.db.refresh(obj)
        logger.info("Created class %s (%s)", obj.code, obj.id)
        return _class_to_response(obj, 0)

    @staticmethod
    def _with_counts():
        counts = (
            select(Enrollment.class_id, func.count(Enrollment.id).label("n"))
            .where(Enrollment.status == EnrollmentStatus.ENROLLED.value)
            .group_by(Enrollment.class_id)
            .subquery()
        )
        return select(SchoolClass, func.coalesce(counts.c.n, 0)).outerjoin(
            counts, counts.c.class_id == SchoolClass.id
        )

    async def list_classes(
        self,
        active_only: bool = True,
        teacher_id: Optional[UUID] = None,
        q: Optional[str] = None,
    ) -> List[ClassResponse]:
        stmt = self._with_counts()
        if active_only:
            stmt = stmt.where(SchoolClass.is_active.is_(True))
        if teacher_id is not None:
            stmt = stmt.where(SchoolClass.homeroom_teacher_id == teacher_id)
        if q:
            pattern = f"%{q.strip()}%"
            stmt = stmt.where(or_(SchoolClass.name.ilike(pattern), SchoolClass.code.ilike(pattern)))
        stmt = stmt.order_by(SchoolClass.name)
        result = await self.db.execute(stmt)
        return [_class_to_response(c, n) for c, n in result.all()]

    async def list_classes_without_teacher(self) -> List[ClassResponse]:
        """Active classes that still need a homeroom teacher."""
        stmt = (
            self._with_counts()
            .where(SchoolClass.homeroom_teacher_id.is_(None), SchoolClass.is_active.is_(True))
            .order_by(SchoolClass.created_at.desc())
        )
        result = await self.db.execute(stmt)
        return [_class_to_response(c, n) for c, n in result.all()]

    async def list_unassigned_teachers(self) -> List[UserInfo]:
        """Teachers who are not the homeroom teacher of any class."""
        result = await self.db.execute(
            select(User)
            .where(User.role == UserRole.TEACHER.value, User.teaching_class_id.is_(None))
            .order_by(User.created_at.desc())
        )
        return [UserInfo.model_validate(u) for u in result.scalars().all()]

    async def get_class(self, class_id: UUID) -> ClassResponse:
        obj = await self._get(class_id)
        return _class_to_response(obj, await self.enrolled_count(obj.id))

    async def update_class(self, class_id: UUID, payload: ClassUpdate) -> ClassResponse:
        obj = await self._get(class_id)
        data = payload.model_dump(exclude_unset=True)
        enrolled = await self.enrolled_count(obj.id)

        if data.get("max_students") is not None and data["max_students"] < enrolled:
            raise StateError(
                f"max_students cannot be lower than the {enrolled} students currently enrolled"
            )
        if "homeroom_teacher_id" in data and data["homeroom_teacher_id"] != obj.homeroom_teacher_id:
            new_teacher_id = data["homeroom_teacher_id"]
            teacher = await self._resolve_teacher(new_teacher_id, obj.id) if new_teacher_id else None
            await self._release_teacher(obj.homeroom_teacher_id, obj.id)
            obj.homeroom_teacher_id = new_teacher_id
            if teacher is not None:
                teacher.teaching_class_id = obj.id

        if data.get("code") is not None:
            obj.code = data["code"].strip().upper()
        if data.get("name") is not None:
            obj.name = data["name"].strip()
        for field in ("description", "max_students", "is_active"):
            if data.get(field) is not None:
                setattr(obj, field, data[field])

        await self._commit_unique_code()
        await self.db.refresh(obj)
        return _class_to_response(obj, enrolled)

    async def delete_class(self, class_id: UUID) -> None:
        obj = await self._get(class_id)
        enrolled = await self.enrolled_count(obj.id)
        if enrolled:
            raise StateError("Cannot delete a class that still has enrolled students")
        await self._release_teacher(obj.homeroom_teacher_id, obj.id)
        await self.db.delete(obj)
        await self.db.commit()
        logger.info("Deleted class %s", class_id)

    async def list_students(self, current_user: CurrentUser, class_id: UUID) -> List[UserInfo]:
        obj = await self._get(class_id)
        if not policies.can_view_class(current_user, obj, await self.student_class_id(current_user)):
            raise ForbiddenError("You are not allowed to view this class roster")
        result = await self.db.execute(
            select(User)
            .join(Enrollment, Enrollment.student_id == User.id)
            .where(
                Enrollment.class_id == class_id,
                Enrollment.status == EnrollmentStatus.ENROLLED.value,
            )
            .order_by(User.last_name, User.first_name)
        )
        return [UserInfo.model_validate(u) for u in result.scalars().all()]


def get_class_service(db: AsyncSession = Depends(get_db)) -> ClassService:
    return ClassService(db)
