import logging
from typing import List, Optional
from uuid import UUID

from fastapi import Depends, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.auth.models import User
from schoolhub.auth.schemas import UserInfo
from schoolhub.auth.security import hash_password
from schoolhub.core.enums import UserRole
from schoolhub.core.exceptions import NotFoundError, ServiceError, StateError
from schoolhub.core.service import BaseService
from schoolhub.db.session import get_db

from .schemas import UserCreate, UserUpdate

logger = logging.getLogger(__name__)


class UserService(BaseService):
    """Admin-side account management."""

    async def _get(self, user_id: UUID) -> User:
        user = await self.db.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    async def create_user(self, payload: UserCreate) -> UserInfo:
        email = payload.email.lower()
        existing = await self.db.execute(select(User.id).where(func.lower(User.email) == email))
        if existing.scalar_one_or_none():
            raise ServiceError("User already exists with this email", status.HTTP_409_CONFLICT)
        user = User(
            first_name=payload.first_name.strip(),
            last_name=payload.last_name.strip(),
            email=email,
            phone=payload.phone,
            password_hash=hash_password(payload.password),
            role=payload.role.value,
            is_active=True,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ServiceError("User already exists with this email", status.HTTP_409_CONFLICT)
        await self.db.refresh(user)
        logger.info("Created %s account %s", user.role, user.id)
        return UserInfo.model_validate(user)

    async def list_users(self, role: Optional[UserRole] = None) -> List[UserInfo]:
        stmt = select(User)
        if role is not None:
            stmt = stmt.where(User.role == role.value)
        stmt = stmt.order_by(User.last_name, User.first_name)
        result = await self.db.execute(stmt)
        return [UserInfo.model_validate(u) for u in result.scalars().all()]

    async def get_user(self, user_id: UUID) -> UserInfo:
        return UserInfo.model_validate(await self._get(user_id))

    async def update_user(self, user_id: UUID, payload: UserUpdate) -> UserInfo:
        user = await self._get(user_id)
        data = payload.model_dump(exclude_unset=True)
        new_role = data.pop("role", None)
        if new_role is not None and new_role.value != user.role:
            # Role-specific links must be released first
            if user.current_class_id is not None or user.teaching_class_id is not None:
                raise StateError("User is still assigned to a class; unassign before changing role")
            user.role = new_role.value
        for field in ("first_name", "last_name"):
            if data.get(field) is not None:
                setattr(user, field, data[field].strip())
        if "phone" in data:
            user.phone = data["phone"]
        if data.get("is_active") is not None:
            user.is_active = data["is_active"]
        await self.db.commit()
        await self.db.refresh(user)
        return UserInfo.model_validate(user)

    async def deactivate_user(self, user_id: UUID) -> None:
        user = await self._get(user_id)
        user.is_active = False
        await self.db.commit()
        logger.info("Deactivated user %s", user_id)


def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)
